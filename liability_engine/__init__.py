"""Amortization and ledger-reconciliation engine for consumer liabilities."""

from .models import (
    AllocationPolicy,
    GroupLoan,
    LedgerReplayer,
    LedgerReplayError,
    Liability,
    LoanCalculator,
    LoanTerms,
    MultiLoanAllocator,
    MultiLoanResult,
    PaymentEvent,
    PaymentNotFoundError,
    PayoffProjection,
    ReplayOutcome,
    UnreachablePayoff,
    UnsortedPaymentHistoryError,
)

__all__ = [
    "AllocationPolicy",
    "GroupLoan",
    "LedgerReplayer",
    "LedgerReplayError",
    "Liability",
    "LoanCalculator",
    "LoanTerms",
    "MultiLoanAllocator",
    "MultiLoanResult",
    "PaymentEvent",
    "PaymentNotFoundError",
    "PayoffProjection",
    "ReplayOutcome",
    "UnreachablePayoff",
    "UnsortedPaymentHistoryError",
]
