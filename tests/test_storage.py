"""
Tests for storage backends and record serialization
"""

import pytest
from decimal import Decimal
from datetime import date, datetime, timezone, timedelta

from microcredit.errors import DuplicateRecordError
from microcredit.models import DailyClosing, FundingChannel, Loan, LoanState, Payment
from microcredit.storage import InMemoryStorage, SQLiteStorage


UTC = timezone.utc


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, tmp_path):
    """Every backend must honour the same contract"""
    if request.param == "memory":
        store = InMemoryStorage()
    else:
        store = SQLiteStorage(tmp_path / "ledger.db")
    yield store
    store.close()


class TestStorageContract:
    """Basic CRUD shared by all backends"""

    def test_save_load_roundtrip(self, backend):
        record = {"id": "r1", "amount": "100.50", "created_at": "2024-01-01T00:00:00+00:00"}
        backend.save("records", "r1", record)
        assert backend.load("records", "r1") == record
        assert backend.load("records", "missing") is None

    def test_save_replaces(self, backend):
        backend.save("records", "r1", {"id": "r1", "value": 1, "created_at": ""})
        backend.save("records", "r1", {"id": "r1", "value": 2, "created_at": ""})
        assert len(backend.load_all("records")) == 1
        assert backend.load("records", "r1")["value"] == 2

    def test_find_matches_every_filter(self, backend):
        backend.save("records", "a", {"id": "a", "loan_id": "L1", "created_at": ""})
        backend.save("records", "b", {"id": "b", "loan_id": "L2", "created_at": ""})
        assert [r["id"] for r in backend.find("records", {"loan_id": "L2"})] == ["b"]
        assert backend.find("records", {"loan_id": "L3"}) == []
        assert [r["id"] for r in backend.find("records", {"id": "a", "loan_id": "L1"})] == ["a"]

    def test_insert_is_create_only(self, backend):
        backend.insert("daily_closings", "2024-01-10", {"id": "x", "created_at": ""})
        with pytest.raises(DuplicateRecordError) as exc_info:
            backend.insert("daily_closings", "2024-01-10", {"id": "y", "created_at": ""})
        assert exc_info.value.table == "daily_closings"
        # The first write survives
        assert backend.load("daily_closings", "2024-01-10")["id"] == "x"

    def test_find_between_is_inclusive(self, backend):
        start = datetime(2024, 1, 10, tzinfo=UTC)
        end = datetime(2024, 1, 10, 23, 59, 59, 999999, tzinfo=UTC)
        for record_id, moment in [
            ("before", start - timedelta(microseconds=1)),
            ("first", start),
            ("last", end),
            ("after", end + timedelta(microseconds=1)),
        ]:
            backend.save("payments", record_id, {
                "id": record_id, "paid_at": moment.isoformat(), "created_at": moment.isoformat()
            })
        found = {r["id"] for r in backend.find_between("payments", "paid_at", start, end)}
        assert found == {"first", "last"}

    def test_loaded_data_is_a_copy(self):
        storage = InMemoryStorage()
        storage.save("records", "r1", {"id": "r1", "tags": ["a"]})
        loaded = storage.load("records", "r1")
        loaded["tags"].append("b")
        assert storage.load("records", "r1")["tags"] == ["a"]


class TestSQLitePersistence:
    """Durability of the SQLite backend"""

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "persist.db"
        storage = SQLiteStorage(path)
        storage.save("records", "r1", {"id": "r1", "created_at": ""})
        storage.close()

        reopened = SQLiteStorage(path)
        assert reopened.load("records", "r1") == {"id": "r1", "created_at": ""}
        reopened.close()


class TestStorageRecord:
    """Dataclass <-> dict conversion"""

    def _loan(self):
        return Loan(
            id="L1",
            created_at=datetime(2024, 1, 1, 9, 30, tzinfo=UTC),
            client_id="C1",
            collector_id="U1",
            principal=Decimal("1000.00"),
            interest_rate=Decimal("20"),
            installments=10,
            installment_value=Decimal("120.00"),
            payment_frequency="DIARIO",
            start_date=date(2024, 1, 1),
            maturity_date=date(2024, 1, 11),
            funding_channel=FundingChannel.TRANSFER
        )

    def test_to_dict_encodes_types(self):
        data = self._loan().to_dict()
        assert data["principal"] == "1000.00"
        assert data["start_date"] == "2024-01-01"
        assert data["created_at"] == "2024-01-01T09:30:00+00:00"
        assert data["funding_channel"] == "TRANSFERENCIA"
        assert data["state"] == "ACTIVO"

    def test_transient_fields_are_not_stored(self):
        loan = self._loan()
        loan.payments = [Payment(
            id="P1", created_at=loan.created_at, loan_id="L1",
            amount=Decimal("10"), paid_at=loan.created_at
        )]
        data = loan.to_dict()
        assert "client" not in data
        assert "payments" not in data

    def test_from_dict_restores_types(self):
        restored = Loan.from_dict(self._loan().to_dict())
        assert restored == self._loan()
        assert isinstance(restored.principal, Decimal)
        assert restored.state is LoanState.ACTIVE
        assert restored.funding_channel is FundingChannel.TRANSFER
        assert restored.payments == []

    def test_optional_fields_roundtrip(self):
        closing = DailyClosing(
            id="K1", created_at=datetime(2024, 1, 10, 20, tzinfo=UTC),
            day=date(2024, 1, 10), opening_cash=Decimal("500"), closing_cash=Decimal("650")
        )
        restored = DailyClosing.from_dict(closing.to_dict())
        assert restored.closed_by is None
        assert restored.day == date(2024, 1, 10)
        assert restored.closing_cash == Decimal("650")

    def test_payment_amount_must_be_positive(self):
        with pytest.raises(ValueError):
            Payment(
                id="P1", created_at=datetime(2024, 1, 1, tzinfo=UTC), loan_id="L1",
                amount=Decimal("0"), paid_at=datetime(2024, 1, 1, tzinfo=UTC)
            )
