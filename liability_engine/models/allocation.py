"""
Joint payoff projection for several loans sharing an extra-payment pool.

Every loan keeps paying its own installment. On top of that a shared pool
(the user's monthly extra plus, with the snowball effect, the installments of
loans already paid off) is handed out each month in priority order, each loan
taking at most what it still owes after its own installment.

A loan that could not outpace its interest even with the whole pool is marked
unreachable before the first month. It is left out of the simulation
entirely: it pays no installment, has no schedule and accrues no interest in
the result.

The simulation is a fold: each month maps an immutable tuple of per-loan
states to a new tuple, so no loan record is mutated while the pool is being
distributed.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .amortization import (
    BALANCE_EPSILON,
    MAX_PROJECTION_MONTHS,
    apply_installment,
    monthly_rate,
)
from .loan import GroupLoan
from .results import (
    LoanPayoffRecord,
    MonthEntry,
    MultiLoanResult,
    PayoffProjection,
    PayoffSummary,
    UnreachablePayoff,
)
from .time_grid import add_months, resolve_start_date

logger = logging.getLogger(__name__)


class AllocationPolicy(str, Enum):
    """Order in which the shared pool is handed out each month."""

    # Largest outstanding principal x annual rate first.
    WEIGHTED = "weighted"
    # Highest annual rate first, larger balance breaking ties.
    AVALANCHE = "avalanche"


@dataclass(frozen=True)
class _LoanState:
    index: int
    loan_id: str
    name: Optional[str]
    annual_rate_percent: float
    installment: float
    balance: float
    total_interest: float = 0.0
    extra_received: float = 0.0
    months_receiving_extra: int = 0
    finished_month: Optional[int] = None
    hopeless: bool = False

    @property
    def active(self) -> bool:
        return self.finished_month is None and not self.hopeless

    @property
    def rate(self) -> float:
        if self.annual_rate_percent <= 0:
            return 0.0
        return monthly_rate(self.annual_rate_percent)


@dataclass(frozen=True)
class _InstallmentStep:
    interest_charged: float
    principal_paid: float
    unpaid_interest: float
    remaining_after: float


def _priority_key(state: _LoanState, policy: AllocationPolicy) -> Tuple[float, float, int]:
    if policy is AllocationPolicy.AVALANCHE:
        return (-state.annual_rate_percent, -state.balance, state.index)
    weight = state.balance * state.annual_rate_percent
    return (-weight, -state.annual_rate_percent, state.index)


def _installment_step(state: _LoanState) -> _InstallmentStep:
    interest, principal_paid, _ = apply_installment(
        state.balance, state.rate, state.installment
    )
    # Interest the installment alone leaves uncovered; pool money settles it first.
    unpaid_interest = max(0.0, state.balance * state.rate - state.installment)
    remaining_after = state.balance - principal_paid
    return _InstallmentStep(
        interest_charged=interest,
        principal_paid=principal_paid,
        unpaid_interest=unpaid_interest,
        remaining_after=remaining_after,
    )


def _allocate_pool(
    candidates: List[_LoanState],
    steps: Dict[int, _InstallmentStep],
    pool: float,
    policy: AllocationPolicy,
) -> Dict[int, float]:
    """Hand the pool out in priority order, capping each loan at what it owes."""
    grants: Dict[int, float] = {}
    remaining_pool = pool
    for state in sorted(candidates, key=lambda s: _priority_key(s, policy)):
        if remaining_pool <= 0:
            break
        step = steps[state.index]
        owed = step.remaining_after + step.unpaid_interest
        grant = min(remaining_pool, owed)
        grants[state.index] = grant
        remaining_pool -= grant
    return grants


def _advance_month(
    states: Tuple[_LoanState, ...],
    month: int,
    total_extra_monthly: float,
    policy: AllocationPolicy,
    snowball: bool,
) -> Tuple[Tuple[_LoanState, ...], Dict[int, MonthEntry]]:
    """Simulate one month for every active loan."""
    active = [s for s in states if s.active]
    steps = {s.index: _installment_step(s) for s in active}

    pool = total_extra_monthly
    if snowball:
        pool += sum(
            s.installment
            for s in states
            if s.finished_month is not None and s.finished_month > 0
        )

    candidates = [
        s
        for s in active
        if steps[s.index].remaining_after + steps[s.index].unpaid_interest
        > BALANCE_EPSILON
    ]
    grants = _allocate_pool(candidates, steps, pool, policy)

    new_states = []
    entries: Dict[int, MonthEntry] = {}
    for state in states:
        if not state.active:
            new_states.append(state)
            continue

        step = steps[state.index]
        extra = grants.get(state.index, 0.0)
        extra_interest = min(extra, step.unpaid_interest)
        extra_principal = extra - extra_interest
        interest = step.interest_charged + extra_interest
        principal = step.principal_paid + extra_principal
        balance = max(0.0, step.remaining_after - extra_principal)

        entries[state.index] = MonthEntry(
            month=month,
            interest_paid=interest,
            principal_paid=principal,
            remaining_balance=balance,
            extra_applied=extra,
        )
        new_states.append(
            replace(
                state,
                balance=balance,
                total_interest=state.total_interest + interest,
                extra_received=state.extra_received + extra,
                months_receiving_extra=state.months_receiving_extra + (1 if extra > 0 else 0),
                finished_month=month if balance <= BALANCE_EPSILON else None,
            )
        )
    return tuple(new_states), entries


def _initial_states(
    loans: Sequence[GroupLoan], total_extra_monthly: float, snowball: bool
) -> Tuple[_LoanState, ...]:
    installments = [loan.resolved_installment() for loan in loans]
    total_installments = sum(installments)

    states = []
    for index, (loan, installment) in enumerate(zip(loans, installments)):
        state = _LoanState(
            index=index,
            loan_id=loan.loan_id,
            name=loan.name,
            annual_rate_percent=loan.annual_rate_percent,
            installment=installment,
            balance=max(0.0, loan.principal),
        )
        if state.balance <= BALANCE_EPSILON:
            states.append(replace(state, finished_month=0))
            continue

        # Most this loan could ever receive in a month: its installment plus the
        # whole pool, including every other installment once freed.
        best_payment = installment + total_extra_monthly
        if snowball:
            best_payment += total_installments - installment
        first_interest = state.balance * state.rate
        if best_payment <= first_interest and best_payment < state.balance:
            states.append(replace(state, hopeless=True))
            continue
        states.append(state)
    return tuple(states)


def _loan_record(
    state: _LoanState,
    schedule: List[MonthEntry],
    start_date: date,
    max_months: int,
) -> LoanPayoffRecord:
    if state.hopeless:
        outcome = UnreachablePayoff(
            reason=(
                "Installment plus the whole extra pool cannot cover monthly interest; "
                "the loan was left out of the simulation, so it has no schedule"
            )
        )
    elif state.finished_month is None:
        outcome = UnreachablePayoff(reason=f"Balance not repaid within {max_months} months")
    else:
        outcome = PayoffProjection(
            term_months=state.finished_month,
            total_interest_paid=state.total_interest,
            payoff_date=add_months(start_date, state.finished_month),
            schedule=schedule,
        )
    return LoanPayoffRecord(
        loan_id=state.loan_id,
        name=state.name,
        outcome=outcome,
        total_extra_received=state.extra_received,
        months_receiving_extra=state.months_receiving_extra,
    )


class MultiLoanAllocator:
    """Projects payoff for a group of loans paid down together."""

    @staticmethod
    def project_group(
        loans: Sequence[GroupLoan],
        total_extra_monthly: float = 0.0,
        start_date: Optional[date] = None,
        policy: AllocationPolicy = AllocationPolicy.WEIGHTED,
        snowball: bool = True,
        max_months: int = MAX_PROJECTION_MONTHS,
    ) -> MultiLoanResult:
        """
        Simulate several loans concurrently with a shared extra-payment pool.

        Args:
            loans: Loans to pay down, each with its own installment
            total_extra_monthly: Extra amount available every month
            start_date: Date of the first payment (defaults to today, UTC)
            policy: How the pool is prioritised across loans
            snowball: Fold installments of paid-off loans into the pool. With no
                extra payment a loan only matches its single-loan projection
                when this is False; freed installments otherwise speed it up.
            max_months: Iteration cap guaranteeing termination

        Returns:
            MultiLoanResult with per-loan outcomes and group totals
        """
        loan_ids = [loan.loan_id for loan in loans]
        if len(set(loan_ids)) != len(loan_ids):
            raise ValueError("Loan identifiers must be unique within a group")

        start_date = resolve_start_date(start_date)
        policy = AllocationPolicy(policy)
        total_extra_monthly = max(0.0, total_extra_monthly)
        logger.debug(
            f"Projecting {len(loans)} loans with {total_extra_monthly:.2f} extra/month "
            f"({policy.value}, snowball={snowball})"
        )

        states = _initial_states(loans, total_extra_monthly, snowball)
        schedules: Dict[int, List[MonthEntry]] = {s.index: [] for s in states}

        month = 0
        while month < max_months and any(s.active for s in states):
            month += 1
            states, entries = _advance_month(
                states, month, total_extra_monthly, policy, snowball
            )
            for index, entry in entries.items():
                schedules[index].append(entry)

        records = [
            _loan_record(s, schedules[s.index], start_date, max_months) for s in states
        ]

        unreachable = [r for r in records if not r.outcome.is_reachable]
        if unreachable:
            logger.warning(
                f"{len(unreachable)} of {len(records)} loans cannot be paid off "
                f"with the current installments and extra payment"
            )
            overall = UnreachablePayoff(
                reason="One or more loans cannot be paid off: "
                + ", ".join(r.loan_id for r in unreachable)
            )
        else:
            term = max((s.finished_month for s in states), default=0)
            overall = PayoffSummary(
                term_months=term,
                total_interest_paid=sum(s.total_interest for s in states),
                payoff_date=add_months(start_date, term),
            )

        return MultiLoanResult(
            loans=records,
            overall=overall,
            total_extra_monthly=total_extra_monthly,
            allocation_policy=policy.value,
            snowball=snowball,
        )
