"""
Ledger Repository Module

The persistence contract consumed by the engine. Every query returns fully
hydrated in-memory records (loans carry their client and payments, payments
carry their loan) so the accounting components stay pure functions over
plain collections.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from collections import Counter
from typing import Dict, Iterable, List, Optional

from .errors import DailyClosingExistsError, DuplicateRecordError
from .models import Client, Collector, DailyClosing, Expense, Loan, LoanState, Payment
from .storage import StorageInterface


class LedgerRepository(ABC):
    """Read/write capabilities the engine needs from the persistence layer"""

    @abstractmethod
    def payments_between(self, start: datetime, end: datetime) -> List[Payment]:
        """Payments in [start, end], each with its loan and the loan's client attached"""

    @abstractmethod
    def loans_in_states(self, states: Iterable[LoanState]) -> List[Loan]:
        """Loans in any of the states, with client and payments (newest first), newest start date first"""

    def active_loans(self) -> List[Loan]:
        return self.loans_in_states({LoanState.ACTIVE})

    @abstractmethod
    def loans_created_between(self, start: datetime, end: datetime) -> List[Loan]:
        """Loans created in [start, end], with client attached"""

    @abstractmethod
    def expenses_between(self, start: datetime, end: datetime) -> List[Expense]:
        pass

    @abstractmethod
    def clients_created_between(self, start: datetime, end: datetime) -> List[Client]:
        pass

    @abstractmethod
    def clients_with_loans_in_states(self, states: Iterable[LoanState],
                                     active_clients_only: bool = False) -> List[Client]:
        """Clients holding at least one loan in the states; `client.loans` holds only those loans"""

    @abstractmethod
    def loan_counts_by_client(self) -> Dict[str, int]:
        """Number of loans per client id, all time and any state"""

    @abstractmethod
    def get_client(self, client_id: str) -> Optional[Client]:
        pass

    @abstractmethod
    def get_loan(self, loan_id: str) -> Optional[Loan]:
        pass

    @abstractmethod
    def payments_for_loan(self, loan_id: str) -> List[Payment]:
        """Payments of one loan, most recent first"""

    @abstractmethod
    def get_daily_closing(self, day: date) -> Optional[DailyClosing]:
        pass

    @abstractmethod
    def latest_daily_closing(self) -> Optional[DailyClosing]:
        """Closing with the latest date, if any day was ever closed"""

    @abstractmethod
    def get_collector(self, collector_id: str) -> Optional[Collector]:
        pass

    @abstractmethod
    def create_loan(self, loan: Loan) -> Loan:
        pass

    @abstractmethod
    def create_daily_closing(self, closing: DailyClosing) -> DailyClosing:
        """
        Persist a closing; at most one per date.

        Raises:
            DailyClosingExistsError: If the date is already closed
        """

    @abstractmethod
    def save_client(self, client: Client) -> Client:
        pass

    @abstractmethod
    def record_payment(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    def record_expense(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    def save_collector(self, collector: Collector) -> Collector:
        pass


class StorageLedgerRepository(LedgerRepository):
    """LedgerRepository backed by any StorageInterface"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage

        self.clients_table = "clients"
        self.loans_table = "loans"
        self.payments_table = "payments"
        self.expenses_table = "expenses"
        self.closings_table = "daily_closings"
        self.collectors_table = "collectors"

    # Hydration helpers

    def _clients_by_id(self) -> Dict[str, Client]:
        return {
            data['id']: Client.from_dict(data)
            for data in self.storage.load_all(self.clients_table)
        }

    def _payments_by_loan(self) -> Dict[str, List[Payment]]:
        grouped: Dict[str, List[Payment]] = {}
        for data in self.storage.load_all(self.payments_table):
            payment = Payment.from_dict(data)
            grouped.setdefault(payment.loan_id, []).append(payment)
        for payments in grouped.values():
            payments.sort(key=lambda p: p.paid_at, reverse=True)
        return grouped

    def _hydrate_loans(self, loans: List[Loan], with_payments: bool = True) -> List[Loan]:
        clients = self._clients_by_id()
        payments = self._payments_by_loan() if with_payments else {}
        for loan in loans:
            loan.client = clients.get(loan.client_id)
            loan.payments = payments.get(loan.id, [])
        return loans

    def _all_loans(self) -> List[Loan]:
        return [Loan.from_dict(data) for data in self.storage.load_all(self.loans_table)]

    # Queries

    def payments_between(self, start: datetime, end: datetime) -> List[Payment]:
        payments = [
            Payment.from_dict(data)
            for data in self.storage.find_between(self.payments_table, 'paid_at', start, end)
        ]
        loans = {loan.id: loan for loan in self._hydrate_loans(self._all_loans(), with_payments=False)}
        for payment in payments:
            payment.loan = loans.get(payment.loan_id)
        payments.sort(key=lambda p: p.paid_at)
        return payments

    def loans_in_states(self, states: Iterable[LoanState]) -> List[Loan]:
        wanted = set(states)
        loans = [loan for loan in self._all_loans() if loan.state in wanted]
        loans.sort(key=lambda loan: loan.start_date, reverse=True)
        return self._hydrate_loans(loans)

    def loans_created_between(self, start: datetime, end: datetime) -> List[Loan]:
        loans = [
            Loan.from_dict(data)
            for data in self.storage.find_between(self.loans_table, 'created_at', start, end)
        ]
        loans.sort(key=lambda loan: loan.created_at)
        return self._hydrate_loans(loans, with_payments=False)

    def expenses_between(self, start: datetime, end: datetime) -> List[Expense]:
        expenses = [
            Expense.from_dict(data)
            for data in self.storage.find_between(self.expenses_table, 'spent_at', start, end)
        ]
        expenses.sort(key=lambda e: e.spent_at)
        return expenses

    def clients_created_between(self, start: datetime, end: datetime) -> List[Client]:
        clients = [
            Client.from_dict(data)
            for data in self.storage.find_between(self.clients_table, 'created_at', start, end)
        ]
        clients.sort(key=lambda c: c.created_at)
        return clients

    def clients_with_loans_in_states(self, states: Iterable[LoanState],
                                     active_clients_only: bool = False) -> List[Client]:
        clients = self._clients_by_id()
        holders: Dict[str, Client] = {}
        for loan in self.loans_in_states(states):
            client = clients.get(loan.client_id)
            if client is None or (active_clients_only and not client.is_active):
                continue
            holders.setdefault(client.id, client).loans.append(loan)
        return sorted(holders.values(), key=lambda c: c.created_at)

    def loan_counts_by_client(self) -> Dict[str, int]:
        return dict(Counter(data['client_id'] for data in self.storage.load_all(self.loans_table)))

    def get_client(self, client_id: str) -> Optional[Client]:
        data = self.storage.load(self.clients_table, client_id)
        return Client.from_dict(data) if data else None

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        data = self.storage.load(self.loans_table, loan_id)
        if not data:
            return None
        loan = Loan.from_dict(data)
        loan.client = self.get_client(loan.client_id)
        loan.payments = self.payments_for_loan(loan.id)
        return loan

    def payments_for_loan(self, loan_id: str) -> List[Payment]:
        payments = [
            Payment.from_dict(data)
            for data in self.storage.find(self.payments_table, {'loan_id': loan_id})
        ]
        payments.sort(key=lambda p: p.paid_at, reverse=True)
        return payments

    def get_daily_closing(self, day: date) -> Optional[DailyClosing]:
        data = self.storage.load(self.closings_table, day.isoformat())
        return DailyClosing.from_dict(data) if data else None

    def latest_daily_closing(self) -> Optional[DailyClosing]:
        closings = [DailyClosing.from_dict(data) for data in self.storage.load_all(self.closings_table)]
        return max(closings, key=lambda c: c.day, default=None)

    def get_collector(self, collector_id: str) -> Optional[Collector]:
        data = self.storage.load(self.collectors_table, collector_id)
        return Collector.from_dict(data) if data else None

    # Writes

    def create_loan(self, loan: Loan) -> Loan:
        self.storage.insert(self.loans_table, loan.id, loan.to_dict())
        return loan

    def create_daily_closing(self, closing: DailyClosing) -> DailyClosing:
        # Keyed by date so the storage primary key is the uniqueness guard
        try:
            self.storage.insert(self.closings_table, closing.day.isoformat(), closing.to_dict())
        except DuplicateRecordError:
            raise DailyClosingExistsError(closing.day)
        return closing

    def save_client(self, client: Client) -> Client:
        self.storage.save(self.clients_table, client.id, client.to_dict())
        return client

    def record_payment(self, payment: Payment) -> Payment:
        self.storage.insert(self.payments_table, payment.id, payment.to_dict())
        return payment

    def record_expense(self, expense: Expense) -> Expense:
        self.storage.insert(self.expenses_table, expense.id, expense.to_dict())
        return expense

    def save_collector(self, collector: Collector) -> Collector:
        self.storage.save(self.collectors_table, collector.id, collector.to_dict())
        return collector
