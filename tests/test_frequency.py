"""
Tests for the payment-frequency calendar
"""

import pytest
from datetime import date

from microcredit.frequency import (
    PaymentFrequency, DAYS_PER_PERIOD, days_per_period, maturity_date
)


class TestDaysPerPeriod:
    """Period length per frequency code"""

    @pytest.mark.parametrize("code,days", [
        ("DIARIO", 1),
        ("SEMANAL", 7),
        ("LUNES_A_VIERNES", 1),
        ("LUNES_A_SABADO", 1),
        ("QUINCENAL", 15),
        ("CATORCENAL", 14),
        ("FIN_DE_MES", 30),
        ("MENSUAL", 30),
        ("TRIMESTRAL", 90),
        ("CUATRIMESTRAL", 120),
        ("SEMESTRAL", 180),
        ("ANUAL", 365),
    ])
    def test_known_codes(self, code, days):
        assert days_per_period(code) == days

    def test_every_frequency_has_a_period(self):
        assert set(DAYS_PER_PERIOD) == set(PaymentFrequency)

    def test_unknown_code_defaults_to_one_day(self):
        """Unrecognized and missing codes count as daily"""
        assert days_per_period("BIMESTRAL") == 1
        assert days_per_period(None) == 1
        assert days_per_period("") == 1


class TestMaturityDate:
    """Maturity = start + installments * period"""

    def test_daily_ten_installments(self):
        assert maturity_date(date(2024, 1, 1), 10, "DIARIO") == date(2024, 1, 11)

    def test_weekly_crosses_month(self):
        assert maturity_date(date(2024, 1, 25), 4, "SEMANAL") == date(2024, 2, 22)

    def test_monthly_uses_thirty_day_periods(self):
        assert maturity_date(date(2024, 1, 31), 1, "MENSUAL") == date(2024, 3, 1)

    def test_weekday_schedules_do_not_skip_weekends(self):
        """LUNES_A_VIERNES advances calendar days like DIARIO"""
        assert maturity_date(date(2024, 1, 5), 3, "LUNES_A_VIERNES") == date(2024, 1, 8)

    def test_unknown_code_is_daily(self):
        assert maturity_date(date(2024, 1, 1), 5, "XYZ") == date(2024, 1, 6)
