"""
Loan Balance Module

Per-loan outstanding balances and their roll-up per client.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .models import Client, Loan, Payment
from .money import ZERO, to_decimal


def total_owed(principal: Decimal, interest_rate: Decimal) -> Decimal:
    """Flat simple interest: principal plus rate percent of principal"""
    principal = to_decimal(principal)
    return principal + principal * to_decimal(interest_rate) / Decimal('100')


@dataclass
class LoanBalance:
    """Derived balance figures for one loan"""
    loan: Loan
    total_owed: Decimal
    total_paid: Decimal
    pending_balance: Decimal            # Negative when over-paid
    installments_paid: int
    last_activity: datetime


def compute_loan_balance(loan: Loan, payments: Optional[List[Payment]] = None) -> LoanBalance:
    """
    Derive the balance of a loan from its payments.

    Args:
        loan: The loan
        payments: Payments most recent first; defaults to the ones attached
            to the loan

    Returns:
        LoanBalance for the loan
    """
    if payments is None:
        payments = loan.payments

    paid = sum((to_decimal(p.amount) for p in payments), ZERO)
    owed = total_owed(loan.principal, loan.interest_rate)

    last_activity = loan.created_at
    if payments:
        latest_payment = max(p.paid_at for p in payments)
        if latest_payment > last_activity:
            last_activity = latest_payment

    return LoanBalance(
        loan=loan,
        total_owed=owed,
        total_paid=paid,
        pending_balance=owed - paid,
        installments_paid=len(payments),
        last_activity=last_activity
    )


@dataclass
class ClientLoanBundle:
    """A client's loans with their totals folded in"""
    client: Client
    most_recent_activity: datetime
    loans: List[LoanBalance] = field(default_factory=list)
    total_pending_balance: Decimal = ZERO
    total_installments_paid: int = 0
    total_principal_lent: Decimal = ZERO

    def add(self, balance: LoanBalance) -> None:
        self.loans.append(balance)
        self.total_pending_balance += balance.pending_balance
        self.total_installments_paid += balance.installments_paid
        self.total_principal_lent += to_decimal(balance.loan.principal)
        if balance.last_activity > self.most_recent_activity:
            self.most_recent_activity = balance.last_activity


def group_by_client(balances: Iterable[LoanBalance],
                    only_with_balance: bool = False) -> List[ClientLoanBundle]:
    """
    Fold loan balances into one bundle per client.

    Bundles come back most recent activity first. Equal activity keeps the
    order in which clients first appeared in `balances`.

    Args:
        balances: Loan balances; each loan must carry its client
        only_with_balance: Keep only bundles still owing money

    Returns:
        List of ClientLoanBundle
    """
    bundles: Dict[str, ClientLoanBundle] = {}
    for balance in balances:
        client = balance.loan.client
        bundle = bundles.get(client.id)
        if bundle is None:
            bundle = ClientLoanBundle(client=client, most_recent_activity=balance.last_activity)
            bundles[client.id] = bundle
        bundle.add(balance)

    ordered = sorted(bundles.values(), key=lambda b: b.most_recent_activity, reverse=True)
    if only_with_balance:
        ordered = [b for b in ordered if b.total_pending_balance > ZERO]
    return ordered
