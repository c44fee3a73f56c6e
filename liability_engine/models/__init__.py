"""Data models and calculators for loan amortization and ledger replay."""

from .amortization import (
    BALANCE_EPSILON,
    MAX_PROJECTION_MONTHS,
    ROUNDING_TOLERANCE,
    LoanCalculator,
)
from .allocation import AllocationPolicy, MultiLoanAllocator
from .ledger_replay import (
    LedgerReplayer,
    LedgerReplayError,
    PaymentNotFoundError,
    UnsortedPaymentHistoryError,
    amount_repaid_after_delete,
    amount_repaid_after_edit,
    amount_repaid_after_record,
    sort_payment_history,
)
from .loan import GroupLoan, Liability, LoanTerms, PaymentEvent
from .results import (
    AmortizationResult,
    LedgerReplay,
    LoanPayoffRecord,
    MonthEntry,
    MultiLoanResult,
    PaymentSplit,
    PayoffProjection,
    PayoffSummary,
    ReplayOutcome,
    UnreachablePayoff,
)

__all__ = [
    "BALANCE_EPSILON",
    "MAX_PROJECTION_MONTHS",
    "ROUNDING_TOLERANCE",
    "LoanCalculator",
    "AllocationPolicy",
    "MultiLoanAllocator",
    "LedgerReplayer",
    "LedgerReplayError",
    "PaymentNotFoundError",
    "UnsortedPaymentHistoryError",
    "amount_repaid_after_delete",
    "amount_repaid_after_edit",
    "amount_repaid_after_record",
    "sort_payment_history",
    "GroupLoan",
    "Liability",
    "LoanTerms",
    "PaymentEvent",
    "AmortizationResult",
    "LedgerReplay",
    "LoanPayoffRecord",
    "MonthEntry",
    "MultiLoanResult",
    "PaymentSplit",
    "PayoffProjection",
    "PayoffSummary",
    "ReplayOutcome",
    "UnreachablePayoff",
]
