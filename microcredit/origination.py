"""
Loan Origination Module

Validates new-loan requests and schedules the loan: interest, installment
value and maturity date. Every check runs before any write and the first
failure wins.
"""

from decimal import Decimal, DecimalException
from datetime import date, datetime, timezone
from dataclasses import dataclass
from typing import Any, Mapping, Optional
import logging
import uuid

from .balances import total_owed
from .errors import (
    ClientNotFoundError, InvalidEnumError, InvalidNumericError,
    MissingFieldError, OutOfRangeError
)
from .frequency import DEFAULT_FREQUENCY, maturity_date
from .logging_config import log_action
from .models import FundingChannel, Loan, LoanState, MicroInsuranceType
from .money import ZERO, fits_money, parse_decimal, parse_integer, round_money
from .repository import LedgerRepository


logger = logging.getLogger("microcredit.origination")

REQUIRED_FIELDS = ("clienteId", "monto", "interes", "cuotas", "fechaInicio")


@dataclass
class LoanApplication:
    """A validated, fully parsed loan request"""
    client_id: str
    principal: Decimal
    interest_rate: Decimal
    installments: int
    start_date: date
    payment_frequency: str
    funding_channel: FundingChannel
    grace_period_days: int
    late_fee_per_day: Decimal
    micro_insurance_type: MicroInsuranceType
    micro_insurance_value: Decimal
    micro_insurance_total: Decimal
    notes: Optional[str]


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        # Full timestamps are accepted; only the calendar date is kept
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidNumericError(field_name, f"Field {field_name} must be an ISO date (YYYY-MM-DD)")


def _parse_enum(enum_type, value: Any, default, field_name: str):
    if _is_missing(value):
        return default
    try:
        return enum_type(str(value).strip())
    except ValueError:
        raise InvalidEnumError(field_name, value, [member.value for member in enum_type])


def _optional(payload: Mapping[str, Any], key: str, default: Any) -> Any:
    value = payload.get(key)
    return default if _is_missing(value) else value


def validate_loan_request(payload: Mapping[str, Any], precision: int = 2) -> LoanApplication:
    """
    Parse and validate a raw loan request.

    Raises:
        MissingFieldError: A required field is absent or blank
        InvalidNumericError: A number or date does not parse
        OutOfRangeError: A number is outside its allowed range, or too large
            to schedule (amounts past the decimal context, maturity past date.max)
        InvalidEnumError: Unknown funding channel or micro-insurance type
    """
    for field_name in REQUIRED_FIELDS:
        if _is_missing(payload.get(field_name)):
            raise MissingFieldError(field_name)

    principal = parse_decimal(payload["monto"], "monto")
    interest_rate = parse_decimal(payload["interes"], "interes")
    installments = parse_integer(payload["cuotas"], "cuotas")
    grace_period_days = parse_integer(_optional(payload, "diasGracia", 0), "diasGracia")
    late_fee_per_day = parse_decimal(_optional(payload, "moraCredito", 0), "moraCredito")
    micro_insurance_value = parse_decimal(_optional(payload, "microseguroValor", 0), "microseguroValor")
    micro_insurance_total = parse_decimal(_optional(payload, "microseguroTotal", 0), "microseguroTotal")
    start_date = _parse_date(payload["fechaInicio"], "fechaInicio")

    if principal <= ZERO:
        raise OutOfRangeError("monto", "Field monto must be greater than zero")
    if installments <= 0:
        raise OutOfRangeError("cuotas", "Field cuotas must be greater than zero")
    for field_name, value in (
        ("interes", interest_rate),
        ("diasGracia", grace_period_days),
        ("moraCredito", late_fee_per_day),
        ("microseguroValor", micro_insurance_value),
        ("microseguroTotal", micro_insurance_total),
    ):
        if value < 0:
            raise OutOfRangeError(field_name, f"Field {field_name} must not be negative")
    for field_name, value in (
        ("monto", principal),
        ("moraCredito", late_fee_per_day),
        ("microseguroValor", micro_insurance_value),
        ("microseguroTotal", micro_insurance_total),
    ):
        if not fits_money(value, precision):
            raise OutOfRangeError(field_name, f"Field {field_name} is too large")
    try:
        round_money(total_owed(principal, interest_rate) / installments, precision)
    except DecimalException:
        raise OutOfRangeError("interes", "Fields monto and interes give a total too large to schedule")

    payment_frequency = str(_optional(payload, "tipoPago", DEFAULT_FREQUENCY.value)).strip()
    try:
        maturity_date(start_date, installments, payment_frequency)
    except OverflowError:
        raise OutOfRangeError("cuotas", "Field cuotas puts the maturity date out of range")

    funding_channel = _parse_enum(FundingChannel, payload.get("tipoCredito"),
                                  FundingChannel.CASH, "tipoCredito")
    micro_insurance_type = _parse_enum(MicroInsuranceType, payload.get("microseguroTipo"),
                                       MicroInsuranceType.NONE, "microseguroTipo")

    notes = payload.get("observaciones")
    notes = notes.strip() or None if isinstance(notes, str) else None

    return LoanApplication(
        client_id=str(payload["clienteId"]).strip(),
        principal=principal,
        interest_rate=interest_rate,
        installments=installments,
        start_date=start_date,
        payment_frequency=payment_frequency,
        funding_channel=funding_channel,
        grace_period_days=grace_period_days,
        late_fee_per_day=late_fee_per_day,
        micro_insurance_type=micro_insurance_type,
        micro_insurance_value=micro_insurance_value,
        micro_insurance_total=micro_insurance_total,
        notes=notes
    )


def schedule_loan(application: LoanApplication, collector_id: str,
                  now: Optional[datetime] = None, precision: int = 2) -> Loan:
    """Compute interest, installment value and maturity for an application"""
    interest_amount = application.principal * application.interest_rate / Decimal('100')
    owed = total_owed(application.principal, application.interest_rate)
    installment_value = round_money(owed / application.installments, precision)

    return Loan(
        id=str(uuid.uuid4()),
        created_at=now or datetime.now(timezone.utc),
        client_id=application.client_id,
        collector_id=collector_id,
        principal=application.principal,
        interest_rate=application.interest_rate,
        installments=application.installments,
        installment_value=installment_value,
        payment_frequency=application.payment_frequency,
        start_date=application.start_date,
        maturity_date=maturity_date(application.start_date, application.installments,
                                    application.payment_frequency),
        funding_channel=application.funding_channel,
        state=LoanState.ACTIVE,
        grace_period_days=application.grace_period_days,
        late_fee_per_day=application.late_fee_per_day,
        interest_amount=interest_amount,
        micro_insurance_type=application.micro_insurance_type,
        micro_insurance_value=application.micro_insurance_value,
        micro_insurance_total=application.micro_insurance_total,
        notes=application.notes
    )


class LoanOriginator:
    """Validates, schedules and persists new loans"""

    def __init__(self, repository: LedgerRepository, precision: int = 2):
        self.repository = repository
        self.precision = precision

    def originate(self, payload: Mapping[str, Any], collector_id: str,
                  now: Optional[datetime] = None) -> Loan:
        """
        Create a loan from a raw request

        Args:
            payload: Request fields keyed by their wire names
            collector_id: Collector issuing the loan
            now: Creation timestamp (defaults to the current UTC time)

        Returns:
            The persisted Loan with its client attached

        Raises:
            ValidationError: Any validation failure (nothing is written)
            ClientNotFoundError: The client does not exist
        """
        try:
            application = validate_loan_request(payload, precision=self.precision)
        except Exception as e:
            log_action(
                logger, "warning", f"Loan request rejected: {e}",
                user_id=collector_id, action="create_loan_rejected", resource="loan"
            )
            raise

        client = self.repository.get_client(application.client_id)
        if client is None:
            raise ClientNotFoundError(application.client_id)

        loan = schedule_loan(application, collector_id, now=now, precision=self.precision)
        self.repository.create_loan(loan)
        loan.client = client

        log_action(
            logger, "info", "Loan created",
            user_id=collector_id, action="create_loan", resource="loan",
            extra={
                "loan_id": loan.id,
                "client_id": client.id,
                "principal": str(loan.principal),
                "installment_value": str(loan.installment_value),
                "maturity_date": loan.maturity_date.isoformat()
            }
        )
        return loan
