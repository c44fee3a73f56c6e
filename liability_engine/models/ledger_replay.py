"""
Payment-history replay for liabilities.

A liability stores only ``amount_repaid``, the running total of principal
retired. When a recorded payment is edited or deleted, the principal that
payment contributed has to be recovered by replaying the whole history from
the original principal, because each payment's interest share depends on the
balance left by every payment before it.
"""

import logging
from typing import Iterable, List, Sequence

from .amortization import LoanCalculator
from .loan import Liability, PaymentEvent
from .results import LedgerReplay, ReplayOutcome

logger = logging.getLogger(__name__)


class LedgerReplayError(ValueError):
    """Base exception for replay contract violations."""


class PaymentNotFoundError(LedgerReplayError):
    """Raised when the target payment is not part of the supplied history."""


class UnsortedPaymentHistoryError(LedgerReplayError):
    """Raised when the history is not strictly ordered by (date, sequence key)."""


def sort_payment_history(payments: Iterable[PaymentEvent]) -> List[PaymentEvent]:
    """Order payments by (payment date, sequence key), oldest first."""
    try:
        return sorted(payments, key=lambda p: p.ordering_key)
    except TypeError as e:
        raise UnsortedPaymentHistoryError(
            f"Payment sequence keys are not mutually comparable: {e}"
        ) from e


def validate_payment_order(payments: Sequence[PaymentEvent]) -> None:
    """Ensure ``payments`` is strictly ascending by (date, sequence key).

    Raises:
        UnsortedPaymentHistoryError: If two payments are out of order, share an
            ordering key, or carry keys of incomparable types
    """
    for previous, current in zip(payments, payments[1:]):
        try:
            in_order = previous.ordering_key < current.ordering_key
        except TypeError as e:
            raise UnsortedPaymentHistoryError(
                f"Payments {previous.payment_id} and {current.payment_id} have "
                f"incomparable sequence keys"
            ) from e
        if not in_order:
            raise UnsortedPaymentHistoryError(
                f"Payment {current.payment_id} is not strictly after "
                f"{previous.payment_id} in (date, sequence key) order"
            )


class LedgerReplayer:
    """Reconstructs historical principal/interest splits of a liability."""

    @staticmethod
    def replay(liability: Liability, ordered_payments: Sequence[PaymentEvent]) -> LedgerReplay:
        """
        Replay every payment from the liability's original principal.

        Args:
            liability: Liability snapshot; only its origin terms are used
            ordered_payments: Complete history sorted by (date, sequence key)

        Returns:
            LedgerReplay with one outcome per payment, in order

        Raises:
            UnsortedPaymentHistoryError: If the history is not strictly ordered
        """
        validate_payment_order(ordered_payments)

        outcomes = []
        outstanding = liability.initial_amount
        for payment in ordered_payments:
            if liability.has_interest:
                split = LoanCalculator.decompose_payment(
                    outstanding, liability.annual_rate_percent, payment.amount
                )
                principal, interest = split.principal_paid, split.interest_paid
            else:
                principal, interest = payment.amount, 0.0

            remaining = max(0.0, outstanding - principal)
            outcomes.append(
                ReplayOutcome(
                    payment_id=payment.payment_id,
                    principal_component=principal,
                    interest_component=interest,
                    outstanding_before=outstanding,
                    outstanding_after=remaining,
                )
            )
            outstanding = remaining

        return LedgerReplay(liability_id=liability.liability_id, outcomes=outcomes)

    @staticmethod
    def principal_component_of(
        liability: Liability,
        ordered_payments: Sequence[PaymentEvent],
        target_payment_id: str,
    ) -> ReplayOutcome:
        """
        Recover the principal attributed to one historical payment.

        Args:
            liability: Liability snapshot; only its origin terms are used
            ordered_payments: Complete history sorted by (date, sequence key)
            target_payment_id: Payment whose split is wanted

        Returns:
            ReplayOutcome of the target payment

        Raises:
            PaymentNotFoundError: If the target is not in the history
            UnsortedPaymentHistoryError: If the history is not strictly ordered
        """
        if not any(p.payment_id == target_payment_id for p in ordered_payments):
            raise PaymentNotFoundError(
                f"Payment {target_payment_id} not found in history of "
                f"liability {liability.liability_id}"
            )

        validate_payment_order(ordered_payments)

        # Payments after the target cannot affect its split.
        prefix = []
        for payment in ordered_payments:
            prefix.append(payment)
            if payment.payment_id == target_payment_id:
                break

        outcome = LedgerReplayer.replay(liability, prefix).outcomes[-1]
        logger.debug(
            f"Payment {target_payment_id} of liability {liability.liability_id} "
            f"retired {outcome.principal_component:.2f} principal"
        )
        return outcome


def clamp_amount_repaid(liability: Liability, amount_repaid: float) -> float:
    """Clamp a candidate ``amount_repaid`` into ``[0, initial_amount]``."""
    return min(max(0.0, amount_repaid), liability.initial_amount)


def amount_repaid_after_delete(liability: Liability, principal_component: float) -> float:
    """``amount_repaid`` once a payment with this principal share is removed."""
    return clamp_amount_repaid(liability, liability.amount_repaid - principal_component)


def amount_repaid_after_edit(
    liability: Liability, old_principal_component: float, new_principal_component: float
) -> float:
    """``amount_repaid`` once a payment's principal share is replaced."""
    return clamp_amount_repaid(
        liability,
        liability.amount_repaid - old_principal_component + new_principal_component,
    )


def amount_repaid_after_record(liability: Liability, principal_component: float) -> float:
    """``amount_repaid`` once a new payment with this principal share is added."""
    return clamp_amount_repaid(liability, liability.amount_repaid + principal_component)
