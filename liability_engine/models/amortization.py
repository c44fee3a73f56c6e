"""
Loan amortization calculations.

This module provides the installment formula, the interest/principal split of
a single payment and the month-by-month payoff projection for one loan. All
routines are pure: they never raise for out-of-range numbers and instead
return a neutral value (a zero installment, an all-principal split or an
``UnreachablePayoff``).
"""

import logging
import math
from datetime import date
from typing import Optional, Tuple

from .results import (
    AmortizationResult,
    MonthEntry,
    PaymentSplit,
    PayoffProjection,
    UnreachablePayoff,
)
from .time_grid import add_months, resolve_start_date

logger = logging.getLogger(__name__)

# A balance at or below this is treated as paid off.
BALANCE_EPSILON = 0.005
# Tolerance for "interest + principal == payment" style invariants.
ROUNDING_TOLERANCE = 0.01
# Hard cap on simulated months (100 years).
MAX_PROJECTION_MONTHS = 1200


def monthly_rate(annual_rate_percent: float) -> float:
    """Convert an annual percentage rate (5 = 5%) into a monthly decimal rate."""
    return annual_rate_percent / 12 / 100


def apply_installment(
    balance: float, rate: float, payment: float
) -> Tuple[float, float, float]:
    """Apply one month's payment to a balance.

    Interest accrues on the opening balance; a payment larger than what is
    owed is trimmed to balance plus interest so the final month never
    overpays. Returns ``(interest_charged, principal_paid, payment_made)``
    with ``interest_charged + principal_paid == payment_made``.
    """
    interest = balance * rate
    if payment >= balance + interest:
        payment = balance + interest
    principal = min(max(0.0, payment - interest), balance)
    interest_charged = max(0.0, payment - principal)
    return interest_charged, principal, payment


class LoanCalculator:
    """Calculator for installments, payment splits and payoff projections."""

    @staticmethod
    def calculate_installment(
        principal: float, annual_rate_percent: float, term_months: int
    ) -> float:
        """
        Calculate the fixed monthly installment (EMI) for a loan.

        Args:
            principal: Loan principal amount
            annual_rate_percent: Annual interest rate in percent (5 for 5%)
            term_months: Loan term in months

        Returns:
            Monthly installment, or 0.0 if the inputs cannot describe a loan
        """
        if principal <= 0 or annual_rate_percent < 0 or term_months <= 0:
            return 0.0
        if annual_rate_percent == 0:
            return principal / term_months

        rate = monthly_rate(annual_rate_percent)
        try:
            growth = (1 + rate) ** term_months
            installment = principal * rate * growth / (growth - 1)
        except (OverflowError, ZeroDivisionError):
            return 0.0

        if not math.isfinite(installment):
            return 0.0
        return installment

    @staticmethod
    def decompose_payment(
        outstanding_principal: float, annual_rate_percent: float, payment_amount: float
    ) -> PaymentSplit:
        """
        Split one payment into its interest and principal components.

        Args:
            outstanding_principal: Principal owed before the payment
            annual_rate_percent: Annual interest rate in percent
            payment_amount: Amount paid

        Returns:
            PaymentSplit whose components add up to the payment
        """
        if outstanding_principal <= 0 or annual_rate_percent < 0:
            return PaymentSplit(interest_paid=0.0, principal_paid=max(0.0, payment_amount))

        interest = outstanding_principal * monthly_rate(annual_rate_percent)
        # Never charge more interest than the payment holds or than the balance.
        interest = max(0.0, min(interest, payment_amount, outstanding_principal))
        principal = max(0.0, payment_amount - interest)
        return PaymentSplit(interest_paid=interest, principal_paid=principal)

    @staticmethod
    def project_payoff(
        principal: float,
        annual_rate_percent: float,
        installment: float,
        extra_monthly: float = 0.0,
        start_date: Optional[date] = None,
        max_months: int = MAX_PROJECTION_MONTHS,
    ) -> AmortizationResult:
        """
        Project a loan month by month until it is paid off.

        Args:
            principal: Outstanding principal at ``start_date``
            annual_rate_percent: Annual interest rate in percent
            installment: Regular monthly installment
            extra_monthly: Additional amount paid every month
            start_date: Date of the first payment (defaults to today, UTC)
            max_months: Iteration cap guaranteeing termination

        Returns:
            PayoffProjection, or UnreachablePayoff if the payment can never
            retire the balance
        """
        start_date = resolve_start_date(start_date)

        if principal <= 0:
            return PayoffProjection(
                term_months=0, total_interest_paid=0.0, payoff_date=start_date
            )

        payment = installment + extra_monthly
        if payment <= 0:
            return UnreachablePayoff(reason="No monthly payment is being made")

        rate = monthly_rate(annual_rate_percent) if annual_rate_percent > 0 else 0.0
        first_interest = principal * rate
        if payment <= first_interest and payment < principal:
            logger.debug(
                f"Payment {payment:.2f} does not cover first-month interest "
                f"{first_interest:.2f}"
            )
            return UnreachablePayoff(
                reason="Monthly payment does not exceed the interest accrued each month"
            )

        schedule = []
        balance = principal
        total_interest = 0.0
        month = 0
        while balance > BALANCE_EPSILON and month < max_months:
            month += 1
            interest, principal_paid, paid = apply_installment(balance, rate, payment)
            extra = min(extra_monthly, max(0.0, paid - installment))
            total_interest += interest
            balance = max(0.0, balance - principal_paid)
            schedule.append(
                MonthEntry(
                    month=month,
                    interest_paid=interest,
                    principal_paid=principal_paid,
                    remaining_balance=balance,
                    extra_applied=max(0.0, extra),
                )
            )

        if balance > BALANCE_EPSILON:
            logger.warning(
                f"Projection hit the {max_months}-month cap with {balance:.2f} outstanding"
            )
            return UnreachablePayoff(
                reason=f"Balance not repaid within {max_months} months"
            )

        return PayoffProjection(
            term_months=month,
            total_interest_paid=total_interest,
            payoff_date=add_months(start_date, month),
            schedule=schedule,
        )
