"""
Loan and Client Classifiers

Overdue detection, visit partitioning, renewal and transfer classification.
All functions work on in-memory collections handed over by the repository.
"""

from decimal import Decimal
from datetime import date, datetime, timedelta, tzinfo
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .balances import compute_loan_balance
from .days import ONE_DAY, start_of_day
from .models import Client, Loan, Payment
from .money import ZERO, to_decimal


@dataclass
class OverdueLoan:
    """An active loan past its maturity as of a given instant"""
    loan: Loan
    days_overdue: int
    total_paid: Decimal
    pending_balance: Decimal
    payments: List[Payment] = field(default_factory=list)   # Most recent first


def days_between_ceil(later: datetime, earlier: datetime) -> int:
    """Whole days from earlier to later, any partial day counting as one"""
    return -((earlier - later) // ONE_DAY)


def days_between_floor(later: datetime, earlier: datetime) -> int:
    """Whole days from earlier to later, partial days dropped"""
    return (later - earlier) // ONE_DAY


def find_overdue_loans(loans: Iterable[Loan], now: datetime, tz: tzinfo) -> List[OverdueLoan]:
    """
    Select active loans whose maturity is before `now`.

    Compares against the wall clock, not a report date; see
    `classify_renewals` for the report-date variant.
    """
    overdue = []
    for loan in loans:
        if not loan.is_active:
            continue
        maturity = start_of_day(loan.maturity_date, tz)
        if maturity >= now:
            continue
        payments = sorted(loan.payments, key=lambda p: p.paid_at, reverse=True)
        balance = compute_loan_balance(loan, payments)
        overdue.append(OverdueLoan(
            loan=loan,
            days_overdue=days_between_ceil(now, maturity),
            total_paid=balance.total_paid,
            pending_balance=balance.pending_balance,
            payments=payments
        ))
    return overdue


@dataclass
class VisitPartition:
    """Clients with live loans split by whether they paid in the day"""
    visited: List[Client]
    not_visited: List[Client]
    visited_client_ids: List[str]       # Every client paying that day, first payment first


def visited_client_ids(day_payments: Iterable[Payment]) -> List[str]:
    """Distinct owning-client ids of the day's payments"""
    seen: Dict[str, None] = {}
    for payment in day_payments:
        if payment.loan is not None:
            seen.setdefault(payment.loan.client_id, None)
    return list(seen)


def partition_visits(clients: Iterable[Client], day_payments: Iterable[Payment]) -> VisitPartition:
    """
    Split clients into visited / not visited.

    `clients` must already be restricted to clients holding a live loan;
    anyone else appears in neither side.
    """
    paid_ids = visited_client_ids(day_payments)
    paid_set = set(paid_ids)
    visited, not_visited = [], []
    for client in clients:
        (visited if client.id in paid_set else not_visited).append(client)
    return VisitPartition(visited=visited, not_visited=not_visited, visited_client_ids=paid_ids)


@dataclass
class RenewalSummary:
    candidate_client_ids: List[str]     # Clients with more than one loan ever
    due_soon_client_ids: List[str]      # Clients with an active loan maturing inside the window
    backlog: List[Loan]                 # Active loans matured before the report date
    executed_today: List[Loan]          # Today's loans issued to renewal candidates


def classify_renewals(loan_counts: Dict[str, int], loans_created_today: Iterable[Loan],
                      active_loans: Iterable[Loan], report_day: date,
                      window_days: int = 5) -> RenewalSummary:
    """
    Classify renewal activity for a report date.

    Args:
        loan_counts: Loans per client id, all time and any state
        loans_created_today: Loans created inside the report day's window
        active_loans: Loans currently in the ACTIVE state
        report_day: The report's target date (not the wall clock)
        window_days: How far ahead a maturity counts as "due soon"
    """
    candidates = [client_id for client_id, count in loan_counts.items() if count > 1]
    candidate_set = set(candidates)

    limit = report_day + timedelta(days=window_days)
    due_soon: Dict[str, None] = {}
    backlog = []
    for loan in active_loans:
        if not loan.is_active:
            continue
        if loan.maturity_date <= limit:
            due_soon.setdefault(loan.client_id, None)
        if loan.maturity_date < report_day:
            backlog.append(loan)

    executed = [loan for loan in loans_created_today if loan.client_id in candidate_set]

    return RenewalSummary(
        candidate_client_ids=candidates,
        due_soon_client_ids=list(due_soon),
        backlog=backlog,
        executed_today=executed
    )


@dataclass
class TransferSummary:
    total_transferred: Decimal
    executed_today: int
    pending_today: int                  # Today's transfer loans still active


def summarize_transfers(loans_created_today: Iterable[Loan]) -> TransferSummary:
    transfers = [loan for loan in loans_created_today if loan.is_transfer]
    return TransferSummary(
        total_transferred=sum((to_decimal(loan.principal) for loan in transfers), ZERO),
        executed_today=len(transfers),
        pending_today=sum(1 for loan in transfers if loan.is_active)
    )
