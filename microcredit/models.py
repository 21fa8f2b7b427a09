"""
Domain Records Module

Clients, loans, payments, expenses, daily closings and collectors as stored
records. Monetary fields are Decimal; related records attached by the
repository (a loan's client, a payment's loan) are transient and never
persisted.
"""

from decimal import Decimal
from datetime import date, datetime
from dataclasses import dataclass, field
from typing import List, Optional
from enum import Enum

from .storage import StorageRecord, TRANSIENT
from .money import ZERO


class LoanState(Enum):
    """Loan lifecycle states"""
    ACTIVE = "ACTIVO"
    PAID_OFF = "PAGADO"
    CANCELLED = "CANCELADO"


class FundingChannel(Enum):
    """How the principal reached the client"""
    CASH = "EFECTIVO"
    TRANSFER = "TRANSFERENCIA"


class MicroInsuranceType(Enum):
    NONE = "NINGUNO"
    FIXED_AMOUNT = "MONTO_FIJO"
    PERCENTAGE = "PORCENTAJE"


# States that still count as a live loan for visit planning
OPEN_LOAN_STATES = frozenset(state for state in LoanState if state != LoanState.CANCELLED)


@dataclass
class Client(StorageRecord):
    """Borrower profile"""
    document: str
    first_name: str
    last_name: str
    client_code: Optional[str] = None
    phone: Optional[str] = None
    home_address: Optional[str] = None
    collection_address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    personal_references: Optional[str] = None
    is_active: bool = True
    loans: List['Loan'] = field(default_factory=list, compare=False, repr=False, metadata=TRANSIENT)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class Payment(StorageRecord):
    """Installment payment received against a loan"""
    loan_id: str
    amount: Decimal
    paid_at: datetime
    notes: Optional[str] = None
    loan: Optional['Loan'] = field(default=None, compare=False, repr=False, metadata=TRANSIENT)

    def __post_init__(self):
        if self.amount <= ZERO:
            raise ValueError("Payment amount must be positive")


@dataclass
class Loan(StorageRecord):
    """
    Flat simple-interest loan.

    The installment value and maturity date are computed once at creation
    and never rescheduled.
    """
    client_id: str
    collector_id: str
    principal: Decimal
    interest_rate: Decimal              # Percent, e.g. 20 for 20%
    installments: int
    installment_value: Decimal
    payment_frequency: str
    start_date: date
    maturity_date: date
    funding_channel: FundingChannel = FundingChannel.CASH
    state: LoanState = LoanState.ACTIVE
    grace_period_days: int = 0
    late_fee_per_day: Decimal = ZERO
    interest_amount: Decimal = ZERO
    micro_insurance_type: MicroInsuranceType = MicroInsuranceType.NONE
    micro_insurance_value: Decimal = ZERO
    micro_insurance_total: Decimal = ZERO
    notes: Optional[str] = None
    client: Optional[Client] = field(default=None, compare=False, repr=False, metadata=TRANSIENT)
    payments: List[Payment] = field(default_factory=list, compare=False, repr=False, metadata=TRANSIENT)

    @property
    def is_active(self) -> bool:
        return self.state == LoanState.ACTIVE

    @property
    def is_transfer(self) -> bool:
        return self.funding_channel == FundingChannel.TRANSFER


@dataclass
class Expense(StorageRecord):
    """Standalone cash outflow not tied to any loan"""
    concept: str
    amount: Decimal
    spent_at: datetime
    notes: Optional[str] = None


@dataclass
class DailyClosing(StorageRecord):
    """Persisted cash snapshot; at most one per calendar day"""
    day: date
    opening_cash: Decimal
    closing_cash: Decimal
    closed_by: Optional[str] = None


@dataclass
class Collector(StorageRecord):
    """Field agent; the phone doubles as the route label on reports"""
    first_name: str
    last_name: str
    phone: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
