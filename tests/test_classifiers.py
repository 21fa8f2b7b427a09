"""
Tests for overdue detection, visit partitioning and renewal/transfer classification
"""

import pytest
from decimal import Decimal
from datetime import date, datetime, timezone, timedelta
from zoneinfo import ZoneInfo

from microcredit.classifiers import (
    days_between_ceil, days_between_floor, find_overdue_loans,
    partition_visits, visited_client_ids, classify_renewals, summarize_transfers
)
from microcredit.models import FundingChannel, LoanState


UTC = timezone.utc


class TestDayArithmetic:

    def test_ceil_counts_partial_days(self):
        earlier = datetime(2024, 1, 10, tzinfo=UTC)
        assert days_between_ceil(earlier + timedelta(hours=1), earlier) == 1
        assert days_between_ceil(earlier + timedelta(days=2), earlier) == 2
        assert days_between_ceil(earlier + timedelta(days=2, seconds=1), earlier) == 3

    def test_floor_drops_partial_days(self):
        earlier = datetime(2024, 1, 10, tzinfo=UTC)
        assert days_between_floor(earlier + timedelta(hours=23), earlier) == 0
        assert days_between_floor(earlier + timedelta(days=5, hours=10), earlier) == 5


class TestOverdueDetector:
    """Active loans whose maturity precedes now"""

    def test_detects_past_maturity(self, make_client, make_loan, make_payment):
        loan = make_loan(make_client("c1"), "L1", maturity=date(2024, 1, 10))
        make_payment(loan, "100", datetime(2024, 1, 3, tzinfo=UTC))
        make_payment(loan, "200", datetime(2024, 1, 5, tzinfo=UTC))

        overdue = find_overdue_loans([loan], datetime(2024, 1, 12, 6, tzinfo=UTC), UTC)
        assert len(overdue) == 1
        item = overdue[0]
        assert item.loan is loan
        assert item.days_overdue == 3
        assert item.total_paid == Decimal("300")
        assert item.pending_balance == Decimal("900")
        assert [p.amount for p in item.payments] == [Decimal("200"), Decimal("100")]

    def test_maturity_day_itself(self, make_client, make_loan):
        """Maturity is taken at the start of its day; one second later is overdue"""
        loan = make_loan(make_client("c1"), "L1", maturity=date(2024, 1, 10))
        assert find_overdue_loans([loan], datetime(2024, 1, 10, tzinfo=UTC), UTC) == []
        overdue = find_overdue_loans([loan], datetime(2024, 1, 10, 0, 0, 1, tzinfo=UTC), UTC)
        assert overdue[0].days_overdue == 1

    def test_ignores_inactive_and_future(self, make_client, make_loan):
        client = make_client("c1")
        paid = make_loan(client, "L1", maturity=date(2024, 1, 1), state=LoanState.PAID_OFF)
        future = make_loan(client, "L2", maturity=date(2024, 2, 1))
        assert find_overdue_loans([paid, future], datetime(2024, 1, 15, tzinfo=UTC), UTC) == []

    def test_business_timezone_shifts_maturity(self, make_client, make_loan):
        """Maturity midnight in Bogota is 05:00 UTC"""
        bogota = ZoneInfo("America/Bogota")
        loan = make_loan(make_client("c1"), "L1", maturity=date(2024, 1, 10))
        now = datetime(2024, 1, 10, 3, tzinfo=UTC)
        assert find_overdue_loans([loan], now, UTC) != []
        assert find_overdue_loans([loan], now, bogota) == []


class TestVisitClassifier:
    """Clients split by whether they paid in the day"""

    def test_scenario_no_payments_means_not_visited(self, make_client, make_loan):
        client = make_client("c1")
        client.loans = [make_loan(client, "L1"), make_loan(client, "L2")]
        partition = partition_visits([client], [])
        assert partition.visited == []
        assert partition.not_visited == [client]
        assert partition.visited_client_ids == []

    def test_partition(self, make_client, make_loan, make_payment):
        ana, beto, caro = make_client("ana"), make_client("beto"), make_client("caro")
        loan_a = make_loan(ana, "LA")
        loan_c = make_loan(caro, "LC")
        day_payments = [
            make_payment(loan_c, "10", datetime(2024, 1, 10, 9, tzinfo=UTC)),
            make_payment(loan_a, "10", datetime(2024, 1, 10, 10, tzinfo=UTC)),
            make_payment(loan_c, "10", datetime(2024, 1, 10, 11, tzinfo=UTC)),
        ]
        partition = partition_visits([ana, beto, caro], day_payments)
        assert [c.id for c in partition.visited] == ["ana", "caro"]
        assert [c.id for c in partition.not_visited] == ["beto"]
        assert partition.visited_client_ids == ["caro", "ana"]

    def test_paying_client_outside_the_list_is_counted_but_not_classified(self, make_client, make_loan,
                                                                         make_payment):
        outsider_loan = make_loan(make_client("outsider"), "LO")
        payment = make_payment(outsider_loan, "10", datetime(2024, 1, 10, tzinfo=UTC))
        partition = partition_visits([make_client("ana")], [payment])
        assert partition.visited == []
        assert [c.id for c in partition.not_visited] == ["ana"]
        assert visited_client_ids([payment]) == ["outsider"]


class TestRenewalClassifier:
    """Renewal candidates, due-soon clients and backlog against the report date"""

    def test_classification(self, make_client, make_loan):
        ana, beto, caro = make_client("ana"), make_client("beto"), make_client("caro")
        report_day = date(2024, 1, 10)

        ana_due = make_loan(ana, "A1", maturity=date(2024, 1, 15))        # inside the window
        beto_late = make_loan(beto, "B1", maturity=date(2024, 1, 9))      # backlog, also due
        caro_far = make_loan(caro, "C1", maturity=date(2024, 1, 16))      # outside the window
        ana_today = make_loan(ana, "A2", created_at=datetime(2024, 1, 10, 9, tzinfo=UTC))
        caro_today = make_loan(caro, "C2", created_at=datetime(2024, 1, 10, 9, tzinfo=UTC))

        summary = classify_renewals(
            loan_counts={"ana": 3, "beto": 1, "caro": 1},
            loans_created_today=[ana_today, caro_today],
            active_loans=[ana_due, beto_late, caro_far],
            report_day=report_day
        )
        assert summary.candidate_client_ids == ["ana"]
        assert summary.due_soon_client_ids == ["ana", "beto"]
        assert summary.backlog == [beto_late]
        assert summary.executed_today == [ana_today]

    def test_backlog_uses_report_date_not_wall_clock(self, make_client, make_loan):
        loan = make_loan(make_client("c1"), "L1", maturity=date(2024, 1, 9))
        earlier = classify_renewals({}, [], [loan], report_day=date(2024, 1, 9))
        later = classify_renewals({}, [], [loan], report_day=date(2024, 1, 10))
        assert earlier.backlog == []
        assert later.backlog == [loan]

    def test_window_is_configurable(self, make_client, make_loan):
        loan = make_loan(make_client("c1"), "L1", maturity=date(2024, 1, 13))
        assert classify_renewals({}, [], [loan], date(2024, 1, 10), window_days=2).due_soon_client_ids == []
        assert classify_renewals({}, [], [loan], date(2024, 1, 10), window_days=3).due_soon_client_ids == ["c1"]


class TestTransferClassifier:

    def test_summary(self, make_client, make_loan):
        client = make_client("c1")
        loans = [
            make_loan(client, "T1", principal="300", channel=FundingChannel.TRANSFER),
            make_loan(client, "T2", principal="200", channel=FundingChannel.TRANSFER,
                      state=LoanState.CANCELLED),
            make_loan(client, "E1", principal="999"),
        ]
        summary = summarize_transfers(loans)
        assert summary.total_transferred == Decimal("500")
        assert summary.executed_today == 2
        assert summary.pending_today == 1

    def test_no_transfers(self):
        summary = summarize_transfers([])
        assert summary.total_transferred == Decimal("0")
        assert summary.executed_today == 0
