"""
Ledger service for keeping a liability's ``amount_repaid`` consistent.

This service coordinates the payment-history flows of the liability screens:
recording a payment, editing or deleting a recorded one, and rebuilding the
principal total from scratch. It loads snapshots through a
``LiabilityRepository``, asks the replay engine for principal splits and
writes the adjusted values back through the same repository.
"""

import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from liability_engine.models.ledger_replay import (
    LedgerReplayer,
    amount_repaid_after_delete,
    amount_repaid_after_edit,
    amount_repaid_after_record,
    sort_payment_history,
)
from liability_engine.models.loan import Liability, PaymentEvent
from liability_engine.models.protocols import LiabilityRepository

logger = logging.getLogger(__name__)


class LedgerSummary(BaseModel):
    """Payment totals for one liability."""

    model_config = ConfigDict(frozen=True)

    liability_id: str = Field(..., description="Liability identifier")
    payment_count: int = Field(..., ge=0, description="Number of recorded payments")
    total_paid: float = Field(..., ge=0, description="Sum of all recorded payments")
    principal_repaid: float = Field(..., ge=0, description="Stored amount_repaid")
    total_interest_paid: float = Field(
        ..., ge=0, description="Payments not attributed to principal"
    )
    outstanding_principal: float = Field(..., description="Principal still owed")
    replayed_principal: float = Field(
        ..., ge=0, description="Principal total reconstructed from the history"
    )


class LiabilityLedgerService:
    """Service for applying payment-history changes to stored liabilities."""

    def __init__(self, repository: LiabilityRepository) -> None:
        """Initialize the ledger service.

        Args:
            repository: Storage collaborator for liabilities and payments
        """
        self.repository = repository
        self.logger = logging.getLogger(__name__)

    def record_payment(self, liability_id: str, payment: PaymentEvent) -> Liability:
        """Record a new payment and add its principal share to ``amount_repaid``.

        Args:
            liability_id: Liability the payment belongs to
            payment: The new payment

        Returns:
            The updated liability as persisted

        Raises:
            ValueError: If the liability is unknown or the payment id is taken
        """
        liability, history = self._load(liability_id)
        if any(p.payment_id == payment.payment_id for p in history):
            raise ValueError(
                f"Payment {payment.payment_id} already recorded for liability {liability_id}"
            )

        try:
            history = sort_payment_history(history + [payment])
            outcome = LedgerReplayer.principal_component_of(
                liability, history, payment.payment_id
            )
            updated = liability.with_amount_repaid(
                amount_repaid_after_record(liability, outcome.principal_component)
            )
        except ValueError as e:
            self.logger.error(
                f"Recording payment {payment.payment_id} on {liability_id} failed: {str(e)}"
            )
            raise

        self.repository.save_payment(liability_id, payment)
        self.repository.save_liability(updated)
        self.logger.info(
            f"Recorded payment {payment.payment_id} on {liability_id}: "
            f"{outcome.principal_component:.2f} principal, "
            f"{outcome.interest_component:.2f} interest"
        )
        return updated

    def edit_payment(self, liability_id: str, payment: PaymentEvent) -> Liability:
        """Replace a recorded payment and swap its principal share.

        The old share is replayed against the history as stored; the new share
        is replayed against the history with the edited payment in its (possibly
        new) position.

        Args:
            liability_id: Liability the payment belongs to
            payment: Edited payment, identified by its ``payment_id``

        Returns:
            The updated liability as persisted
        """
        liability, history = self._load(liability_id)

        try:
            old_outcome = LedgerReplayer.principal_component_of(
                liability, history, payment.payment_id
            )
            edited_history = sort_payment_history(
                [p for p in history if p.payment_id != payment.payment_id] + [payment]
            )
            new_outcome = LedgerReplayer.principal_component_of(
                liability, edited_history, payment.payment_id
            )
            updated = liability.with_amount_repaid(
                amount_repaid_after_edit(
                    liability,
                    old_outcome.principal_component,
                    new_outcome.principal_component,
                )
            )
        except ValueError as e:
            self.logger.error(
                f"Editing payment {payment.payment_id} on {liability_id} failed: {str(e)}"
            )
            raise

        self.repository.save_payment(liability_id, payment)
        self.repository.save_liability(updated)
        self.logger.info(
            f"Edited payment {payment.payment_id} on {liability_id}: principal "
            f"{old_outcome.principal_component:.2f} -> {new_outcome.principal_component:.2f}"
        )
        return updated

    def delete_payment(self, liability_id: str, payment_id: str) -> Liability:
        """Delete a recorded payment and back its principal share out.

        Args:
            liability_id: Liability the payment belongs to
            payment_id: Payment to delete

        Returns:
            The updated liability as persisted
        """
        liability, history = self._load(liability_id)

        try:
            outcome = LedgerReplayer.principal_component_of(liability, history, payment_id)
            updated = liability.with_amount_repaid(
                amount_repaid_after_delete(liability, outcome.principal_component)
            )
        except ValueError as e:
            self.logger.error(
                f"Deleting payment {payment_id} on {liability_id} failed: {str(e)}"
            )
            raise

        self.repository.delete_payment(liability_id, payment_id)
        self.repository.save_liability(updated)
        self.logger.info(
            f"Deleted payment {payment_id} on {liability_id}: "
            f"backed out {outcome.principal_component:.2f} principal"
        )
        return updated

    def rebuild_amount_repaid(self, liability_id: str) -> Liability:
        """Recompute ``amount_repaid`` from a full replay of the history."""
        liability, history = self._load(liability_id)
        replay = LedgerReplayer.replay(liability, history)
        updated = liability.with_amount_repaid(replay.total_principal_repaid)
        if abs(updated.amount_repaid - liability.amount_repaid) > 0.01:
            self.logger.warning(
                f"Liability {liability_id} amount_repaid drifted: stored "
                f"{liability.amount_repaid:.2f}, replayed {updated.amount_repaid:.2f}"
            )
        self.repository.save_liability(updated)
        return updated

    def summarize(self, liability_id: str) -> LedgerSummary:
        """Summarise payments, principal and interest for one liability."""
        liability, history = self._load(liability_id)
        replay = LedgerReplayer.replay(liability, history)
        total_paid = sum(p.amount for p in history)
        return LedgerSummary(
            liability_id=liability_id,
            payment_count=len(history),
            total_paid=total_paid,
            principal_repaid=liability.amount_repaid,
            total_interest_paid=max(0.0, total_paid - liability.amount_repaid),
            outstanding_principal=liability.outstanding_principal,
            replayed_principal=replay.total_principal_repaid,
        )

    def _load(self, liability_id: str) -> Tuple[Liability, List[PaymentEvent]]:
        liability: Optional[Liability] = self.repository.get_liability(liability_id)
        if liability is None:
            raise ValueError(f"Liability {liability_id} not found")
        history = sort_payment_history(self.repository.list_payments(liability_id))
        return liability, history
