"""
Shared fixtures: in-memory storage, a ledger repository and record builders
"""

import uuid
import pytest
from decimal import Decimal
from datetime import date, datetime, timezone

from microcredit.frequency import maturity_date
from microcredit.balances import total_owed
from microcredit.models import (
    Client, Collector, Expense, FundingChannel, Loan, LoanState, Payment
)
from microcredit.money import round_money
from microcredit.repository import StorageLedgerRepository
from microcredit.storage import InMemoryStorage


UTC = timezone.utc
EPOCH = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def repository(storage):
    return StorageLedgerRepository(storage)


@pytest.fixture
def make_client():
    def _make(client_id=None, first_name="Ana", last_name="Lopez", document=None,
              created_at=EPOCH, **kwargs):
        client_id = client_id or str(uuid.uuid4())
        return Client(
            id=client_id,
            created_at=created_at,
            document=document or f"DOC-{client_id}",
            first_name=first_name,
            last_name=last_name,
            **kwargs
        )
    return _make


@pytest.fixture
def make_loan():
    def _make(client, loan_id=None, principal="1000", rate="20", installments=10,
              frequency="DIARIO", start_date=date(2024, 1, 1), created_at=EPOCH,
              state=LoanState.ACTIVE, channel=FundingChannel.CASH, late_fee="0",
              maturity=None, collector_id="collector-1"):
        principal = Decimal(principal)
        rate = Decimal(rate)
        loan = Loan(
            id=loan_id or str(uuid.uuid4()),
            created_at=created_at,
            client_id=client.id,
            collector_id=collector_id,
            principal=principal,
            interest_rate=rate,
            installments=installments,
            installment_value=round_money(total_owed(principal, rate) / installments),
            payment_frequency=frequency,
            start_date=start_date,
            maturity_date=maturity or maturity_date(start_date, installments, frequency),
            funding_channel=channel,
            state=state,
            late_fee_per_day=Decimal(late_fee),
            interest_amount=principal * rate / Decimal('100')
        )
        loan.client = client
        return loan
    return _make


@pytest.fixture
def make_payment():
    def _make(loan, amount, paid_at, payment_id=None, attach=True):
        payment = Payment(
            id=payment_id or str(uuid.uuid4()),
            created_at=paid_at,
            loan_id=loan.id,
            amount=Decimal(amount),
            paid_at=paid_at
        )
        if attach:
            payment.loan = loan
            loan.payments.insert(0, payment)
        return payment
    return _make


@pytest.fixture
def make_expense():
    def _make(amount, spent_at, concept="Fuel"):
        return Expense(
            id=str(uuid.uuid4()),
            created_at=spent_at,
            concept=concept,
            amount=Decimal(amount),
            spent_at=spent_at
        )
    return _make


@pytest.fixture
def collector():
    return Collector(
        id="collector-1",
        created_at=EPOCH,
        first_name="Carlos",
        last_name="Ruiz",
        phone="Ruta 7"
    )
