"""
Result models produced by the amortization and ledger engines.

Payoff outcomes are a tagged union: a projection that reaches zero carries a
finite term, interest total and payoff date, while an impossible plan is an
``UnreachablePayoff`` with no numbers on it at all. Callers branch on
``status`` (or ``isinstance``) instead of checking for infinities.
"""

from datetime import date
from typing import Annotated, List, Literal, Optional, Union

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, computed_field


class PaymentSplit(BaseModel):
    """Interest and principal components of a single payment."""

    model_config = ConfigDict(frozen=True)

    interest_paid: float = Field(..., ge=0, description="Interest portion")
    principal_paid: float = Field(..., ge=0, description="Principal portion")

    @property
    def total(self) -> float:
        return self.interest_paid + self.principal_paid


class MonthEntry(BaseModel):
    """One simulated month of a payoff schedule."""

    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=1, description="Month number (1-based)")
    interest_paid: float = Field(..., ge=0, description="Interest charged this month")
    principal_paid: float = Field(
        ..., ge=0, description="Principal retired this month (including extra)"
    )
    remaining_balance: float = Field(
        ..., ge=0, description="Balance after this month's payment"
    )
    extra_applied: float = Field(
        default=0.0, ge=0, description="Extra payment applied beyond the installment"
    )

    @property
    def payment(self) -> float:
        """Total cash paid this month."""
        return self.interest_paid + self.principal_paid


class PayoffSummary(BaseModel):
    """A plan that retires the debt: term, interest total and payoff date."""

    model_config = ConfigDict(frozen=True)

    status: Literal["paid_off"] = "paid_off"
    term_months: int = Field(..., ge=0, description="Months until the balance is zero")
    total_interest_paid: float = Field(
        ..., ge=0, description="Interest paid over the whole plan"
    )
    payoff_date: date = Field(..., description="Date the balance reaches zero")

    @property
    def is_reachable(self) -> bool:
        return True


class PayoffProjection(PayoffSummary):
    """Finite payoff plan for a single loan with its month-by-month schedule."""

    schedule: List[MonthEntry] = Field(
        default_factory=list, description="Month-by-month breakdown"
    )

    @computed_field
    @property
    def total_principal_paid(self) -> float:
        return float(sum(entry.principal_paid for entry in self.schedule))

    @computed_field
    @property
    def total_extra_applied(self) -> float:
        return float(sum(entry.extra_applied for entry in self.schedule))

    def balance_series(self) -> NDArray[np.float64]:
        """Remaining balance after each month."""
        return np.array([e.remaining_balance for e in self.schedule], dtype=np.float64)

    def principal_series(self) -> NDArray[np.float64]:
        """Principal retired in each month."""
        return np.array([e.principal_paid for e in self.schedule], dtype=np.float64)

    def interest_series(self) -> NDArray[np.float64]:
        """Interest charged in each month."""
        return np.array([e.interest_paid for e in self.schedule], dtype=np.float64)

    def cumulative_interest(self) -> NDArray[np.float64]:
        """Running interest total, month by month."""
        return np.cumsum(self.interest_series())


class UnreachablePayoff(BaseModel):
    """The supplied payments can never retire the debt."""

    model_config = ConfigDict(frozen=True)

    status: Literal["unreachable"] = "unreachable"
    reason: str = Field(..., description="Why the plan cannot reach zero")

    @property
    def is_reachable(self) -> bool:
        return False


AmortizationResult = Annotated[
    Union[PayoffProjection, UnreachablePayoff], Field(discriminator="status")
]
GroupPayoffResult = Annotated[
    Union[PayoffSummary, UnreachablePayoff], Field(discriminator="status")
]


class LoanPayoffRecord(BaseModel):
    """Per-loan outcome of a joint projection."""

    model_config = ConfigDict(frozen=True)

    loan_id: str = Field(..., description="Loan identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    outcome: AmortizationResult = Field(..., description="Payoff outcome")
    total_extra_received: float = Field(
        default=0.0, ge=0, description="Extra principal received from the shared pool"
    )
    months_receiving_extra: int = Field(
        default=0, ge=0, description="Months in which any pool money was received"
    )

    @computed_field
    @property
    def average_extra_per_month(self) -> float:
        if self.months_receiving_extra == 0:
            return 0.0
        return self.total_extra_received / self.months_receiving_extra


class MultiLoanResult(BaseModel):
    """Outcome of paying several loans together from a shared extra pool."""

    model_config = ConfigDict(frozen=True)

    loans: List[LoanPayoffRecord] = Field(..., description="Per-loan outcomes")
    overall: GroupPayoffResult = Field(..., description="Outcome across the group")
    total_extra_monthly: float = Field(
        ..., ge=0, description="User-supplied monthly extra payment"
    )
    allocation_policy: str = Field(..., description="Pool allocation policy used")
    snowball: bool = Field(..., description="Whether freed installments joined the pool")

    @property
    def is_reachable(self) -> bool:
        return self.overall.is_reachable

    def get_loan(self, loan_id: str) -> Optional[LoanPayoffRecord]:
        """Get a per-loan record by identifier."""
        for record in self.loans:
            if record.loan_id == loan_id:
                return record
        return None


class ReplayOutcome(BaseModel):
    """Principal/interest attribution of one historical payment."""

    model_config = ConfigDict(frozen=True)

    payment_id: str = Field(..., description="Payment identifier")
    principal_component: float = Field(..., ge=0, description="Principal attributed")
    interest_component: float = Field(default=0.0, ge=0, description="Interest attributed")
    outstanding_before: float = Field(..., ge=0, description="Balance before the payment")
    outstanding_after: float = Field(..., ge=0, description="Balance after the payment")


class LedgerReplay(BaseModel):
    """Every payment of a liability's history, replayed from origin."""

    model_config = ConfigDict(frozen=True)

    liability_id: str = Field(..., description="Liability identifier")
    outcomes: List[ReplayOutcome] = Field(default_factory=list)

    @computed_field
    @property
    def total_principal_repaid(self) -> float:
        return float(sum(o.principal_component for o in self.outcomes))

    @computed_field
    @property
    def total_interest_paid(self) -> float:
        return float(sum(o.interest_component for o in self.outcomes))

    def outcome_for(self, payment_id: str) -> Optional[ReplayOutcome]:
        """Get the replayed split of one payment."""
        for outcome in self.outcomes:
            if outcome.payment_id == payment_id:
                return outcome
        return None
