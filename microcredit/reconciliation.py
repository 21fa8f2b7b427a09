"""
Cash Reconciliation Module

Chains daily cash balances: a day opens with the previous day's persisted
closing and closes with opening + collected - lent - expenses. The figures
are always derived from the chain; a day's own closing record only marks
it as closed and carries its closing cash forward to the next day.

Days close once and in order. A closing is never overwritten, and a day
cannot be closed after a later day, since the later day already opened on
what the earlier one carried forward.
"""

from decimal import Decimal
from datetime import date, datetime, timezone, tzinfo
from dataclasses import dataclass
from typing import Iterable, Optional
import logging
import uuid

from .days import ONE_DAY, day_window
from .errors import DailyClosingExistsError, LaterDayClosedError
from .logging_config import log_action
from .models import DailyClosing, Expense, Loan, Payment
from .money import ZERO, to_decimal
from .repository import LedgerRepository


logger = logging.getLogger("microcredit.reconciliation")


@dataclass
class CashDay:
    """One node of the cash chain"""
    day: date
    opening_cash: Decimal
    collected: Decimal
    lent: Decimal
    expenses: Decimal
    closing_cash: Decimal
    closing: Optional[DailyClosing] = None

    @property
    def is_closed(self) -> bool:
        return self.closing is not None


def sum_amounts(records: Iterable) -> Decimal:
    return sum((to_decimal(r.amount) for r in records), ZERO)


def sum_principal(loans: Iterable[Loan]) -> Decimal:
    return sum((to_decimal(loan.principal) for loan in loans), ZERO)


def project_cash_day(day: date, previous_closing: Optional[DailyClosing],
                     collected: Decimal, lent: Decimal, expenses: Decimal,
                     closing: Optional[DailyClosing] = None) -> CashDay:
    """
    Compute a day's cash position without writing anything.

    Opening cash is the previous day's persisted closing, or zero when that
    day was never closed. `closing` only flags the day as closed.
    """
    opening_cash = to_decimal(previous_closing.closing_cash) if previous_closing else ZERO

    return CashDay(
        day=day,
        opening_cash=opening_cash,
        collected=collected,
        lent=lent,
        expenses=expenses,
        closing_cash=opening_cash + collected - lent - expenses,
        closing=closing
    )


class CashReconciliation:
    """Reads and closes days against a LedgerRepository"""

    def __init__(self, repository: LedgerRepository, tz: tzinfo):
        self.repository = repository
        self.tz = tz

    def project_from(self, day: date, payments: Iterable[Payment], loans: Iterable[Loan],
                     expenses: Iterable[Expense]) -> CashDay:
        """Project a day from activity the caller already fetched"""
        return project_cash_day(
            day,
            previous_closing=self.repository.get_daily_closing(day - ONE_DAY),
            collected=sum_amounts(payments),
            lent=sum_principal(loans),
            expenses=sum_amounts(expenses),
            closing=self.repository.get_daily_closing(day)
        )

    def project(self, day: date) -> CashDay:
        start, end = day_window(day, self.tz)
        return self.project_from(
            day,
            payments=self.repository.payments_between(start, end),
            loans=self.repository.loans_created_between(start, end),
            expenses=self.repository.expenses_between(start, end)
        )

    def close(self, day: date, user_id: Optional[str] = None,
              now: Optional[datetime] = None) -> DailyClosing:
        """
        Persist the day's closing.

        Raises:
            DailyClosingExistsError: If the day is already closed. The
                repository enforces the same guard at the storage layer, so
                two concurrent closes cannot both succeed.
            LaterDayClosedError: If a later day is already closed
        """
        if self.repository.get_daily_closing(day) is not None:
            raise DailyClosingExistsError(day)
        later = self.repository.latest_daily_closing()
        if later is not None and later.day > day:
            raise LaterDayClosedError(day, later.day)

        cash_day = self.project(day)
        closing = DailyClosing(
            id=str(uuid.uuid4()),
            created_at=now or datetime.now(timezone.utc),
            day=day,
            opening_cash=cash_day.opening_cash,
            closing_cash=cash_day.closing_cash,
            closed_by=user_id
        )
        self.repository.create_daily_closing(closing)

        log_action(
            logger, "info", f"Day {day.isoformat()} closed",
            user_id=user_id, action="close_day", resource="daily_closing",
            extra={
                "closing_id": closing.id,
                "opening_cash": str(closing.opening_cash),
                "closing_cash": str(closing.closing_cash)
            }
        )
        return closing
