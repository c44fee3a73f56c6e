"""
Protocol interfaces for the collaborators around the engine.

The engine never performs I/O. Durability, real-time sync and ordering of
stored records belong to whoever implements these protocols; the services
only load snapshots through them and hand back values to persist.
"""

from typing import List, Optional, Protocol

from .loan import Liability, PaymentEvent


class LiabilityRepository(Protocol):
    """
    Storage collaborator for liabilities and their payment histories.

    Implementations must serialise mutations per liability: replaying against
    a history that is changing underneath produces a wrong principal split
    with no detectable error.
    """

    def get_liability(self, liability_id: str) -> Optional[Liability]:
        """
        Load the current snapshot of a liability.

        Args:
            liability_id: Liability identifier

        Returns:
            The liability, or None if it does not exist
        """
        ...

    def list_payments(self, liability_id: str) -> List[PaymentEvent]:
        """
        Load the complete payment history of a liability.

        Args:
            liability_id: Liability identifier

        Returns:
            Every recorded payment, in any order
        """
        ...

    def save_liability(self, liability: Liability) -> None:
        """Persist an updated liability snapshot."""
        ...

    def save_payment(self, liability_id: str, payment: PaymentEvent) -> None:
        """Insert or replace a payment in a liability's history."""
        ...

    def delete_payment(self, liability_id: str, payment_id: str) -> None:
        """Remove a payment from a liability's history."""
        ...
