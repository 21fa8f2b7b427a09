"""
Payment-Frequency Calendar

Maps payment-frequency codes to the number of days in one installment
period and derives loan maturity dates from them.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Optional


class PaymentFrequency(Enum):
    """Known payment-frequency codes"""
    DAILY = "DIARIO"
    WEEKLY = "SEMANAL"
    WEEKDAYS = "LUNES_A_VIERNES"        # Daily, Monday to Friday
    MONDAY_TO_SATURDAY = "LUNES_A_SABADO"
    BIWEEKLY = "QUINCENAL"
    EVERY_14_DAYS = "CATORCENAL"
    END_OF_MONTH = "FIN_DE_MES"
    MONTHLY = "MENSUAL"
    QUARTERLY = "TRIMESTRAL"
    FOUR_MONTHLY = "CUATRIMESTRAL"
    SEMIANNUAL = "SEMESTRAL"
    ANNUAL = "ANUAL"


DAYS_PER_PERIOD = {
    PaymentFrequency.DAILY: 1,
    PaymentFrequency.WEEKLY: 7,
    PaymentFrequency.WEEKDAYS: 1,
    PaymentFrequency.MONDAY_TO_SATURDAY: 1,
    PaymentFrequency.BIWEEKLY: 15,
    PaymentFrequency.EVERY_14_DAYS: 14,
    PaymentFrequency.END_OF_MONTH: 30,
    PaymentFrequency.MONTHLY: 30,
    PaymentFrequency.QUARTERLY: 90,
    PaymentFrequency.FOUR_MONTHLY: 120,
    PaymentFrequency.SEMIANNUAL: 180,
    PaymentFrequency.ANNUAL: 365,
}

DEFAULT_FREQUENCY = PaymentFrequency.DAILY


def days_per_period(code: Optional[str]) -> int:
    """Days in one installment period; unknown codes count as one day"""
    try:
        return DAYS_PER_PERIOD[PaymentFrequency(code)]
    except ValueError:
        return 1


def maturity_date(start_date: date, installments: int, code: Optional[str]) -> date:
    """Maturity is fixed at creation: start + installments * period length"""
    return start_date + timedelta(days=installments * days_per_period(code))
