"""
Tests for payment-history replay.
"""

from datetime import date, datetime

import pytest

from liability_engine.models.ledger_replay import (
    LedgerReplayer,
    LedgerReplayError,
    PaymentNotFoundError,
    UnsortedPaymentHistoryError,
    amount_repaid_after_delete,
    amount_repaid_after_edit,
    amount_repaid_after_record,
    sort_payment_history,
    validate_payment_order,
)
from liability_engine.models.loan import Liability, PaymentEvent


def payment(payment_id, amount, payment_date, sequence_key):
    return PaymentEvent(
        payment_id=payment_id,
        amount=amount,
        payment_date=payment_date,
        sequence_key=sequence_key,
    )


class TestReplay:
    """Test cases for full-history replay."""

    def test_interest_bearing_history(self, car_loan, monthly_payments):
        """Test that each payment's interest follows the balance left before it."""
        replay = LedgerReplayer.replay(car_loan, monthly_payments)

        assert [o.payment_id for o in replay.outcomes] == ["p1", "p2", "p3"]

        p1, p2, p3 = replay.outcomes
        assert abs(p1.interest_component - 100.0) < 0.01
        assert abs(p1.principal_component - 900.0) < 0.01
        assert abs(p2.interest_component - 91.0) < 0.01
        assert abs(p2.principal_component - 909.0) < 0.01
        assert abs(p3.interest_component - 81.91) < 0.01
        assert abs(p3.principal_component - 918.09) < 0.01

        assert abs(replay.total_principal_repaid - 2727.09) < 0.01
        assert abs(replay.total_interest_paid - 272.91) < 0.01

    def test_outstanding_balances_chain(self, car_loan, monthly_payments):
        """Test that each payment starts from the balance the previous one left."""
        replay = LedgerReplayer.replay(car_loan, monthly_payments)

        assert replay.outcomes[0].outstanding_before == 10000.0
        for previous, current in zip(replay.outcomes, replay.outcomes[1:]):
            assert current.outstanding_before == previous.outstanding_after

    def test_replay_ignores_stored_amount_repaid(self, car_loan, monthly_payments):
        """Test that replay always starts from the original principal."""
        stale = car_loan.with_amount_repaid(5000)

        assert LedgerReplayer.replay(stale, monthly_payments) == LedgerReplayer.replay(
            car_loan, monthly_payments
        )

    def test_no_rate_means_all_principal(self, monthly_payments):
        """Test that a liability without a rate attributes every payment to principal."""
        liability = Liability(
            liability_id="family",
            initial_amount=5000,
            next_due_date=date(2024, 1, 1),
        )
        replay = LedgerReplayer.replay(liability, monthly_payments)

        assert all(o.principal_component == 1000.0 for o in replay.outcomes)
        assert all(o.interest_component == 0.0 for o in replay.outcomes)
        assert replay.outcomes[-1].outstanding_after == 2000.0

    def test_overpayment_floors_balance_at_zero(self):
        """Test that paying more than is owed leaves a zero balance."""
        liability = Liability(
            liability_id="small",
            initial_amount=500,
            annual_rate_percent=0,
            next_due_date=date(2024, 1, 1),
        )
        replay = LedgerReplayer.replay(
            liability,
            [
                payment("a", 400, date(2024, 1, 1), 1),
                payment("b", 400, date(2024, 2, 1), 2),
                payment("c", 50, date(2024, 3, 1), 3),
            ],
        )

        assert replay.outcomes[1].outstanding_after == 0.0
        assert replay.outcomes[2].outstanding_before == 0.0
        assert replay.outcomes[2].principal_component == 50.0

    def test_empty_history(self, car_loan):
        """Test that an empty history replays to nothing."""
        replay = LedgerReplayer.replay(car_loan, [])

        assert replay.outcomes == []
        assert replay.total_principal_repaid == 0.0

    def test_outcome_lookup(self, car_loan, monthly_payments):
        """Test per-payment lookup on a replay."""
        replay = LedgerReplayer.replay(car_loan, monthly_payments)

        assert replay.outcome_for("p2").payment_id == "p2"
        assert replay.outcome_for("missing") is None


class TestPrincipalComponentOf:
    """Test cases for recovering one payment's principal share."""

    def test_middle_payment(self, car_loan, monthly_payments):
        """Test the share of a payment in the middle of the history."""
        outcome = LedgerReplayer.principal_component_of(car_loan, monthly_payments, "p2")

        assert outcome.payment_id == "p2"
        assert abs(outcome.principal_component - 909.0) < 0.01
        assert abs(outcome.outstanding_before - 9100.0) < 0.01

    def test_matches_full_replay(self, car_loan, monthly_payments):
        """Test that the prefix replay agrees with a full replay."""
        replay = LedgerReplayer.replay(car_loan, monthly_payments)

        for expected in replay.outcomes:
            outcome = LedgerReplayer.principal_component_of(
                car_loan, monthly_payments, expected.payment_id
            )
            assert outcome == expected

    def test_later_payments_do_not_matter(self, car_loan, monthly_payments):
        """Test that changing a later payment leaves an earlier share untouched."""
        changed = monthly_payments[:2] + [
            payment("p3", 7000, date(2024, 3, 5), 3),
        ]

        before = LedgerReplayer.principal_component_of(car_loan, monthly_payments, "p2")
        after = LedgerReplayer.principal_component_of(car_loan, changed, "p2")

        assert before == after

    def test_unknown_payment(self, car_loan, monthly_payments):
        """Test that a missing target raises PaymentNotFoundError."""
        with pytest.raises(PaymentNotFoundError, match="p9"):
            LedgerReplayer.principal_component_of(car_loan, monthly_payments, "p9")

    def test_unsorted_history_rejected(self, car_loan, monthly_payments):
        """Test that a newest-first history is rejected rather than replayed."""
        with pytest.raises(UnsortedPaymentHistoryError):
            LedgerReplayer.principal_component_of(
                car_loan, list(reversed(monthly_payments)), "p2"
            )

    def test_errors_are_value_errors(self):
        """Test the replay error hierarchy."""
        assert issubclass(PaymentNotFoundError, LedgerReplayError)
        assert issubclass(UnsortedPaymentHistoryError, LedgerReplayError)
        assert issubclass(LedgerReplayError, ValueError)


class TestPaymentOrdering:
    """Test cases for sorting and validating payment histories."""

    def test_same_day_payments_use_sequence_key(self, car_loan):
        """Test that two payments on one day replay in creation order."""
        first = payment("first", 3000, date(2024, 1, 5), 1)
        second = payment("second", 1000, date(2024, 1, 5), 2)

        ordered = sort_payment_history([second, first])
        assert [p.payment_id for p in ordered] == ["first", "second"]

        replay = LedgerReplayer.replay(car_loan, ordered)
        # The second payment sees the balance after the first one.
        assert abs(replay.outcomes[1].interest_component - 71.0) < 0.01

    def test_datetime_sequence_keys(self):
        """Test ordering by creation timestamps."""
        early = payment("a", 100, date(2024, 1, 5), datetime(2024, 1, 5, 9, 0))
        late = payment("b", 100, date(2024, 1, 5), datetime(2024, 1, 5, 17, 30))

        assert [p.payment_id for p in sort_payment_history([late, early])] == ["a", "b"]

    def test_duplicate_ordering_key_rejected(self):
        """Test that two payments sharing (date, sequence key) are ambiguous."""
        history = [
            payment("a", 100, date(2024, 1, 5), 1),
            payment("b", 100, date(2024, 1, 5), 1),
        ]

        with pytest.raises(UnsortedPaymentHistoryError):
            validate_payment_order(history)

    def test_incomparable_sequence_keys(self):
        """Test that mixing key types on one day is reported, not crashed on."""
        history = [
            payment("a", 100, date(2024, 1, 5), 1),
            payment("b", 100, date(2024, 1, 5), "zzz"),
        ]

        with pytest.raises(UnsortedPaymentHistoryError):
            sort_payment_history(history)
        with pytest.raises(UnsortedPaymentHistoryError):
            validate_payment_order(history)

    def test_mixed_keys_on_different_days(self):
        """Test that key types only need to agree on the same day."""
        history = [
            payment("a", 100, date(2024, 1, 5), 1),
            payment("b", 100, date(2024, 1, 6), "zzz"),
        ]

        validate_payment_order(history)


class TestAmountRepaidAdjustments:
    """Test cases for applying a recovered principal share to amount_repaid."""

    @pytest.fixture
    def partly_repaid(self):
        return Liability(
            liability_id="loan",
            initial_amount=10000,
            amount_repaid=2727.09,
            annual_rate_percent=12,
            next_due_date=date(2024, 4, 5),
        )

    def test_delete(self, partly_repaid):
        """Test backing out a deleted payment's principal."""
        assert abs(amount_repaid_after_delete(partly_repaid, 909) - 1818.09) < 0.01

    def test_edit(self, partly_repaid):
        """Test swapping the old principal share for the new one."""
        assert abs(amount_repaid_after_edit(partly_repaid, 909, 1909) - 3727.09) < 0.01

    def test_record(self, partly_repaid):
        """Test adding a new payment's principal share."""
        assert abs(amount_repaid_after_record(partly_repaid, 927.27) - 3654.36) < 0.01

    def test_clamped_to_zero(self, partly_repaid):
        """Test that amount_repaid never goes negative."""
        assert amount_repaid_after_delete(partly_repaid, 5000) == 0.0

    def test_clamped_to_initial_amount(self, partly_repaid):
        """Test that amount_repaid never exceeds the original principal."""
        assert amount_repaid_after_record(partly_repaid, 50000) == 10000
        assert amount_repaid_after_edit(partly_repaid, 0, 50000) == 10000
