"""
Loan, liability and payment-event models.

These are the immutable input snapshots the calculators work from. The
liability record itself is owned by the storage layer; the engine only ever
receives copies and hands back new values for the caller to persist.
"""

from datetime import date, datetime
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .amortization import LoanCalculator

SequenceKey = Union[int, datetime, str]


class LoanTerms(BaseModel):
    """Contractual shape of a loan at a point in time."""

    model_config = ConfigDict(frozen=True)

    principal: float = Field(..., description="Outstanding principal to simulate")
    annual_rate_percent: float = Field(
        default=0.0, ge=0, description="Annual interest rate in percent (5 = 5%)"
    )
    term_months: Optional[int] = Field(
        default=None, gt=0, description="Contractual term in months"
    )
    installment: Optional[float] = Field(
        default=None, ge=0, description="Fixed monthly installment (EMI)"
    )

    def resolved_installment(self) -> float:
        """Installment to simulate with.

        Uses the stated installment when present, otherwise derives one from the
        term. A loan with neither has no installment at all.
        """
        if self.installment is not None:
            return self.installment
        if self.term_months is not None:
            return LoanCalculator.calculate_installment(
                self.principal, self.annual_rate_percent, self.term_months
            )
        return 0.0


class GroupLoan(LoanTerms):
    """A loan taking part in a joint payoff projection."""

    loan_id: str = Field(..., min_length=1, description="Stable loan identifier")
    name: Optional[str] = Field(default=None, description="Display name")


class PaymentEvent(BaseModel):
    """One recorded payment against a liability."""

    model_config = ConfigDict(frozen=True)

    payment_id: str = Field(..., min_length=1, description="Payment identifier")
    amount: float = Field(..., gt=0, description="Amount paid")
    payment_date: date = Field(..., description="Calendar date of the payment")
    sequence_key: SequenceKey = Field(
        ..., description="Tiebreak for payments sharing a date (creation order)"
    )

    @property
    def ordering_key(self) -> Tuple[date, SequenceKey]:
        """Total ordering key for payment history replay."""
        return (self.payment_date, self.sequence_key)


class Liability(BaseModel):
    """Snapshot of a stored liability record."""

    model_config = ConfigDict(frozen=True)

    liability_id: str = Field(..., min_length=1, description="Liability identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    initial_amount: float = Field(..., ge=0, description="Original principal")
    amount_repaid: float = Field(
        default=0.0, ge=0, description="Total principal repaid so far"
    )
    annual_rate_percent: Optional[float] = Field(
        default=None, ge=0, description="Annual interest rate in percent"
    )
    installment: Optional[float] = Field(
        default=None, ge=0, description="Stated monthly installment (EMI)"
    )
    term_months: Optional[int] = Field(
        default=None, gt=0, description="Total loan term in months"
    )
    next_due_date: date = Field(..., description="Next installment due date")

    @model_validator(mode="after")
    def validate_amount_repaid(self):
        if self.amount_repaid > self.initial_amount:
            raise ValueError("amount_repaid cannot exceed initial_amount")
        return self

    @property
    def outstanding_principal(self) -> float:
        """Principal still owed: initial amount minus principal repaid."""
        return self.initial_amount - self.amount_repaid

    @property
    def has_interest(self) -> bool:
        """Whether an interest rate is configured for this liability."""
        return self.annual_rate_percent is not None

    def with_amount_repaid(self, amount_repaid: float) -> "Liability":
        """Copy of this liability with ``amount_repaid`` clamped into range."""
        clamped = min(max(0.0, amount_repaid), self.initial_amount)
        return self.model_copy(update={"amount_repaid": clamped})

    def to_group_loan(self) -> GroupLoan:
        """Current outstanding position as a group-projection input."""
        return GroupLoan(
            loan_id=self.liability_id,
            name=self.name,
            principal=self.outstanding_principal,
            annual_rate_percent=self.annual_rate_percent or 0.0,
            term_months=self.term_months,
            installment=self.installment,
        )
