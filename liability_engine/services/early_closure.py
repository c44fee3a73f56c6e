"""
Early loan closure planning.

Compares paying a selection of liabilities on their installments alone with
paying them together plus a monthly extra amount, reporting interest and time
saved per loan and for the group.
"""

import logging
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from liability_engine.config import Settings, get_global_settings
from liability_engine.models.allocation import AllocationPolicy, MultiLoanAllocator
from liability_engine.models.amortization import BALANCE_EPSILON, LoanCalculator
from liability_engine.models.loan import Liability
from liability_engine.models.results import (
    AmortizationResult,
    GroupPayoffResult,
    PayoffSummary,
    UnreachablePayoff,
)
from liability_engine.models.time_grid import months_between

logger = logging.getLogger(__name__)


class LoanClosureComparison(BaseModel):
    """Baseline vs accelerated payoff of one liability."""

    model_config = ConfigDict(frozen=True)

    loan_id: str = Field(..., description="Liability identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    baseline: AmortizationResult = Field(..., description="Installments only")
    accelerated: AmortizationResult = Field(..., description="With the shared extra pool")
    interest_saved: Optional[float] = Field(
        default=None, description="Interest avoided; None if either plan is unreachable"
    )
    months_saved: Optional[int] = Field(
        default=None, description="Months earlier payoff; None if either plan is unreachable"
    )
    total_extra_received: float = Field(default=0.0, ge=0)
    average_extra_per_month: float = Field(default=0.0, ge=0)


class EarlyClosureReport(BaseModel):
    """Group-level savings from an early closure strategy."""

    model_config = ConfigDict(frozen=True)

    loans: List[LoanClosureComparison] = Field(..., description="Per-loan comparisons")
    baseline_overall: GroupPayoffResult = Field(..., description="Installments only")
    accelerated_overall: GroupPayoffResult = Field(..., description="With extra pool")
    interest_saved: Optional[float] = Field(default=None)
    months_saved: Optional[int] = Field(default=None)
    additional_payment: float = Field(..., ge=0)
    allocation_policy: str = Field(...)
    snowball: bool = Field(...)


def is_eligible(liability: Liability) -> bool:
    """Whether a liability can take part in an early closure projection."""
    return (
        liability.outstanding_principal > BALANCE_EPSILON
        and liability.annual_rate_percent is not None
        and liability.installment is not None
        and liability.installment > 0
    )


def _savings(baseline, accelerated):
    if not (baseline.is_reachable and accelerated.is_reachable):
        return None, None
    interest_saved = baseline.total_interest_paid - accelerated.total_interest_paid
    months_saved = months_between(accelerated.payoff_date, baseline.payoff_date)
    return interest_saved, months_saved


class EarlyClosurePlanner:
    """Plans accelerated payoff for a selection of liabilities."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_global_settings()

    def plan(
        self,
        liabilities: Sequence[Liability],
        additional_payment: float,
        snowball: Optional[bool] = None,
        policy: Optional[Union[AllocationPolicy, str]] = None,
    ) -> EarlyClosureReport:
        """
        Compare installments-only payoff with a shared extra payment.

        Args:
            liabilities: Selected liabilities
            additional_payment: Extra amount available every month
            snowball: Fold freed installments into the pool (settings default)
            policy: Pool allocation policy (settings default)

        Returns:
            EarlyClosureReport with per-loan and group savings

        Raises:
            ValueError: If nothing is selected, the extra payment is negative, or
                a selected liability is paid off or lacks a rate or installment
        """
        if not liabilities:
            raise ValueError("Select at least one liability")
        if additional_payment < 0:
            raise ValueError("Additional monthly payment must be non-negative")

        ineligible = [item.liability_id for item in liabilities if not is_eligible(item)]
        if ineligible:
            raise ValueError(
                "Liabilities already paid off or missing rate/installment: "
                + ", ".join(ineligible)
            )

        snowball = self.settings.snowball_enabled if snowball is None else snowball
        policy = AllocationPolicy(policy or self.settings.allocation_policy)
        max_months = self.settings.max_projection_months
        start_date = min(item.next_due_date for item in liabilities)

        baselines = {
            item.liability_id: LoanCalculator.project_payoff(
                item.outstanding_principal,
                item.annual_rate_percent,
                item.installment,
                0.0,
                item.next_due_date,
                max_months=max_months,
            )
            for item in liabilities
        }
        group = MultiLoanAllocator.project_group(
            [item.to_group_loan() for item in liabilities],
            additional_payment,
            start_date,
            policy=policy,
            snowball=snowball,
            max_months=max_months,
        )

        comparisons = []
        for record in group.loans:
            baseline = baselines[record.loan_id]
            interest_saved, months_saved = _savings(baseline, record.outcome)
            comparisons.append(
                LoanClosureComparison(
                    loan_id=record.loan_id,
                    name=record.name,
                    baseline=baseline,
                    accelerated=record.outcome,
                    interest_saved=interest_saved,
                    months_saved=months_saved,
                    total_extra_received=record.total_extra_received,
                    average_extra_per_month=record.average_extra_per_month,
                )
            )

        baseline_overall = self._baseline_overall(list(baselines.values()), start_date)
        interest_saved, months_saved = _savings(baseline_overall, group.overall)
        if not group.is_reachable:
            logger.warning(
                f"Early closure plan for {len(liabilities)} liabilities is unreachable"
            )

        logger.info(
            f"Planned early closure for {len(liabilities)} liabilities "
            f"({policy.value}, snowball={snowball})"
        )
        return EarlyClosureReport(
            loans=comparisons,
            baseline_overall=baseline_overall,
            accelerated_overall=group.overall,
            interest_saved=interest_saved,
            months_saved=months_saved,
            additional_payment=additional_payment,
            allocation_policy=policy.value,
            snowball=snowball,
        )

    @staticmethod
    def _baseline_overall(baselines, start_date):
        unreachable = [b for b in baselines if not b.is_reachable]
        if unreachable:
            return UnreachablePayoff(
                reason=f"{len(unreachable)} liabilities cannot be paid off on installments alone"
            )
        latest = max(b.payoff_date for b in baselines)
        return PayoffSummary(
            term_months=months_between(start_date, latest),
            total_interest_paid=sum(b.total_interest_paid for b in baselines),
            payoff_date=latest,
        )
