"""
Late-Fee (mora) Accumulator

Late fees accrue per payment: a payment received after its own loan's
maturity carries `late_fee_per_day * whole days late`.
"""

from decimal import Decimal
from datetime import tzinfo
from typing import Iterable

from .classifiers import days_between_floor
from .days import start_of_day
from .models import Loan, Payment
from .money import ZERO, to_decimal


def days_late(payment: Payment, loan: Loan, tz: tzinfo) -> int:
    """Whole days between the loan's maturity and the payment; zero if on time"""
    maturity = start_of_day(loan.maturity_date, tz)
    if not maturity < payment.paid_at:
        return 0
    return days_between_floor(payment.paid_at, maturity)


def late_fee_for_payment(payment: Payment, tz: tzinfo) -> Decimal:
    loan = payment.loan
    if loan is None:
        return ZERO
    return to_decimal(loan.late_fee_per_day) * days_late(payment, loan, tz)


def accrue_late_fees(payments: Iterable[Payment], tz: tzinfo) -> Decimal:
    """Sum of late fees over the payments, each against its own loan"""
    return sum((late_fee_for_payment(p, tz) for p in payments), ZERO)
