"""
Pytest configuration and shared fixtures for the liability engine tests.
"""

from datetime import date
from typing import Dict, List, Optional

import pytest

from liability_engine.config import Settings, reset_global_settings
from liability_engine.models.loan import Liability, PaymentEvent


class InMemoryLiabilityRepository:
    """Dictionary-backed LiabilityRepository for service tests."""

    def __init__(self) -> None:
        self.liabilities: Dict[str, Liability] = {}
        self.payments: Dict[str, Dict[str, PaymentEvent]] = {}

    def add(self, liability: Liability, payments: Optional[List[PaymentEvent]] = None):
        self.liabilities[liability.liability_id] = liability
        self.payments[liability.liability_id] = {p.payment_id: p for p in payments or []}

    def get_liability(self, liability_id: str) -> Optional[Liability]:
        return self.liabilities.get(liability_id)

    def list_payments(self, liability_id: str) -> List[PaymentEvent]:
        # Deliberately newest-first, like the history screen lists them.
        return sorted(
            self.payments.get(liability_id, {}).values(),
            key=lambda p: p.ordering_key,
            reverse=True,
        )

    def save_liability(self, liability: Liability) -> None:
        self.liabilities[liability.liability_id] = liability

    def save_payment(self, liability_id: str, payment: PaymentEvent) -> None:
        self.payments.setdefault(liability_id, {})[payment.payment_id] = payment

    def delete_payment(self, liability_id: str, payment_id: str) -> None:
        del self.payments[liability_id][payment_id]


@pytest.fixture(autouse=True)
def clean_global_settings():
    """Make sure no test sees settings cached by another."""
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def settings():
    """Settings with defaults only, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def car_loan():
    """A 10,000 loan at 12% with no payments recorded yet."""
    return Liability(
        liability_id="car",
        name="Car Loan",
        initial_amount=10000.0,
        amount_repaid=0.0,
        annual_rate_percent=12.0,
        installment=1000.0,
        next_due_date=date(2024, 1, 5),
    )


@pytest.fixture
def monthly_payments():
    """Three monthly payments of 1,000, oldest first."""
    return [
        PaymentEvent(
            payment_id="p1", amount=1000.0, payment_date=date(2024, 1, 5), sequence_key=1
        ),
        PaymentEvent(
            payment_id="p2", amount=1000.0, payment_date=date(2024, 2, 5), sequence_key=2
        ),
        PaymentEvent(
            payment_id="p3", amount=1000.0, payment_date=date(2024, 3, 5), sequence_key=3
        ),
    ]


@pytest.fixture
def repository():
    """Empty in-memory liability repository."""
    return InMemoryLiabilityRepository()
