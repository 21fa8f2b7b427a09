"""
Report Assembler Module

Composes balances, classifiers, late fees and the cash chain into the report
shapes served at the API boundary: the collector's daily report, the
client-visits report and the client-grouped loan portfolio.

Report dictionaries use the wire field names. Amounts are formatted as
fixed-point strings.
"""

from datetime import date, datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional

from .balances import ClientLoanBundle, compute_loan_balance, group_by_client
from .classifiers import classify_renewals, find_overdue_loans, partition_visits, summarize_transfers
from .days import day_window
from .late_fees import accrue_late_fees, late_fee_for_payment
from .models import Client, FundingChannel, Loan, LoanState, OPEN_LOAN_STATES
from .money import ZERO, format_amount
from .reconciliation import CashReconciliation, sum_amounts, sum_principal
from .repository import LedgerRepository


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_client(client: Optional[Client]) -> Optional[Dict[str, Any]]:
    if client is None:
        return None
    return {
        "id": client.id,
        "codigoCliente": client.client_code,
        "documento": client.document,
        "nombre": client.first_name,
        "apellido": client.last_name,
        "direccionCliente": client.home_address,
        "direccionCobro": client.collection_address,
        "telefono": client.phone,
        "pais": client.country,
        "ciudad": client.city,
        "referenciasPersonales": client.personal_references,
        "activo": client.is_active,
    }


def serialize_loan(loan: Loan, precision: int = 2) -> Dict[str, Any]:
    """Loan with its stored and derived figures"""
    return {
        "id": loan.id,
        "monto": format_amount(loan.principal, precision),
        "interes": str(loan.interest_rate),
        "interesTotal": format_amount(loan.interest_amount, precision),
        "cuotas": loan.installments,
        "valorCuota": format_amount(loan.installment_value, precision),
        "fechaInicio": _iso(loan.start_date),
        "fechaFin": _iso(loan.maturity_date),
        "estado": loan.state.value,
        "observaciones": loan.notes,
        "tipoPago": loan.payment_frequency,
        "tipoCredito": loan.funding_channel.value,
        "diasGracia": loan.grace_period_days,
        "moraCredito": format_amount(loan.late_fee_per_day, precision),
        "microseguroTipo": loan.micro_insurance_type.value,
        "microseguroValor": format_amount(loan.micro_insurance_value, precision),
        "microseguroTotal": format_amount(loan.micro_insurance_total, precision),
        "cliente": serialize_client(loan.client),
    }


def serialize_bundle(bundle: ClientLoanBundle, precision: int = 2) -> Dict[str, Any]:
    loans = []
    for balance in bundle.loans:
        entry = serialize_loan(balance.loan, precision)
        entry.update({
            "montoTotal": format_amount(balance.total_owed, precision),
            "totalPagado": format_amount(balance.total_paid, precision),
            "saldoPendiente": format_amount(balance.pending_balance, precision),
            "cuotasPagadas": balance.installments_paid,
            "fechaActividadReciente": _iso(balance.last_activity),
        })
        loans.append(entry)
    return {
        "cliente": serialize_client(bundle.client),
        "prestamos": loans,
        "fechaActividadReciente": _iso(bundle.most_recent_activity),
        "saldoTotalPendiente": format_amount(bundle.total_pending_balance, precision),
        "cuotasTotalesPagadas": bundle.total_installments_paid,
        "montoTotalPrestado": format_amount(bundle.total_principal_lent, precision),
    }


class ReportAssembler:
    """Builds reports from a LedgerRepository"""

    def __init__(self, repository: LedgerRepository, tz: tzinfo,
                 renewal_window_days: int = 5, precision: int = 2):
        self.repository = repository
        self.tz = tz
        self.renewal_window_days = renewal_window_days
        self.precision = precision
        self.reconciliation = CashReconciliation(repository, tz)

    def _money(self, value) -> Optional[str]:
        return format_amount(value, self.precision)

    def today(self, now: Optional[datetime] = None) -> date:
        return (now or datetime.now(timezone.utc)).astimezone(self.tz).date()

    def loan_portfolio(self, with_balance_only: bool = False) -> List[Dict[str, Any]]:
        """Active loans grouped by client, most recent activity first"""
        balances = [compute_loan_balance(loan) for loan in self.repository.active_loans()]
        bundles = group_by_client(balances, only_with_balance=with_balance_only)
        return [serialize_bundle(bundle, self.precision) for bundle in bundles]

    def daily_report(self, day: date, collector_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Collector's report for one calendar day.

        Args:
            day: The report's target date
            collector_id: Collector requesting the report, for the header

        Returns:
            Dict with totals, cash position, summaries and detail lines
        """
        start, end = day_window(day, self.tz)

        payments = self.repository.payments_between(start, end)
        new_loans = self.repository.loans_created_between(start, end)
        expenses = self.repository.expenses_between(start, end)
        new_clients = self.repository.clients_created_between(start, end)
        open_loans = self.repository.loans_in_states(OPEN_LOAN_STATES)
        clients_with_open_loans = self.repository.clients_with_loans_in_states(OPEN_LOAN_STATES)
        active_loans = [loan for loan in open_loans if loan.state == LoanState.ACTIVE]

        visits = partition_visits(clients_with_open_loans, payments)
        renewals = classify_renewals(
            self.repository.loan_counts_by_client(), new_loans, active_loans, day,
            window_days=self.renewal_window_days
        )
        transfers = summarize_transfers(new_loans)
        cash = self.reconciliation.project_from(day, payments, new_loans, expenses)

        collector = self.repository.get_collector(collector_id) if collector_id else None

        return {
            "fecha": day.isoformat(),
            "nombreCobrador": collector.display_name if collector else "N/A",
            "numeroRuta": (collector.phone if collector else None) or "N/A",
            "totalCobrado": self._money(cash.collected),
            "moraCobrada": self._money(accrue_late_fees(payments, self.tz)),
            "dineroTransferencia": self._money(transfers.total_transferred),
            "totalPrestado": self._money(cash.lent),
            "totalGastos": self._money(cash.expenses),
            "saldoInicial": self._money(cash.opening_cash),
            "saldoEfectivo": self._money(cash.closing_cash),
            "cerrado": cash.is_closed,
            "cierreId": cash.closing.id if cash.closing else None,
            "cantidadPagos": len(payments),
            "cantidadPrestamos": len(new_loans),
            "cantidadGastos": len(expenses),
            "resumenClientes": {
                "clientesNuevos": len(new_clients),
                "clientesVisitados": len(visits.visited_client_ids),
                "clientesPendientes": len(visits.not_visited),
                "clientesPorVisitar": len(clients_with_open_loans) - len(visits.visited_client_ids),
            },
            "resumenPrestamos": {
                "nuevosPrestamos": len(new_loans),
                "prestamosRealizados": len(open_loans),
            },
            "resumenRenovaciones": {
                "renovacionClientes": len(renewals.candidate_client_ids),
                "clientesPorRenovar": len(renewals.due_soon_client_ids),
                "renovacionesPendientes": len(renewals.backlog),
                "renovacionesRealizadas": len(renewals.executed_today),
            },
            "resumenTransferencias": {
                "totalTransferencia": self._money(transfers.total_transferred),
                "transferenciasRealizadas": transfers.executed_today,
                "transferenciasPendientes": transfers.pending_today,
            },
            "detallePagos": [
                {
                    "id": payment.id,
                    "monto": self._money(payment.amount),
                    "mora": self._money(late_fee_for_payment(payment, self.tz)),
                    "metodoPago": FundingChannel.CASH.value,  # collections are always in cash
                    "fecha": _iso(payment.paid_at),
                    "observaciones": payment.notes,
                    "cliente": self._client_brief(payment.loan.client if payment.loan else None),
                }
                for payment in payments
            ],
            "detallePrestamos": [
                {
                    "id": loan.id,
                    "monto": self._money(loan.principal),
                    "interes": str(loan.interest_rate),
                    "tipoCredito": loan.funding_channel.value,
                    "fechaInicio": _iso(loan.start_date),
                    "cliente": self._client_brief(loan.client),
                }
                for loan in new_loans
            ],
            "detalleGastos": [
                {
                    "id": expense.id,
                    "concepto": expense.concept,
                    "monto": self._money(expense.amount),
                    "fecha": _iso(expense.spent_at),
                    "observaciones": expense.notes,
                }
                for expense in expenses
            ],
            "detalleClientesNuevos": [
                {
                    "id": client.id,
                    "nombre": client.first_name,
                    "apellido": client.last_name,
                    "documento": client.document,
                }
                for client in new_clients
            ],
        }

    def client_visits_report(self, day: date, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Who paid on `day`, who did not, and which loans are overdue as of `now`.

        Only active clients holding an ACTIVE loan are considered.
        """
        now = now or datetime.now(timezone.utc)
        start, end = day_window(day, self.tz)

        payments = self.repository.payments_between(start, end)
        clients = self.repository.clients_with_loans_in_states({LoanState.ACTIVE}, active_clients_only=True)
        visits = partition_visits(clients, payments)
        overdue = find_overdue_loans(self.repository.active_loans(), now, self.tz)

        return {
            "fecha": day.isoformat(),
            "resumen": {
                "totalClientes": len(clients),
                "totalPrestamosActivos": sum(len(client.loans) for client in clients),
                "totalPrestamosVencidos": len(overdue),
                "totalCobradoHoy": self._money(sum_amounts(payments)),
                "clientesVisitados": len(visits.visited),
                "clientesNoVisitados": len(visits.not_visited),
            },
            "detalles": {
                "clientesVisitados": [self._client_position(c) for c in visits.visited],
                "clientesNoVisitados": [self._client_position(c) for c in visits.not_visited],
                "prestamosVencidos": [
                    {
                        "id": item.loan.id,
                        "cliente": item.loan.client.full_name if item.loan.client else None,
                        "documento": item.loan.client.document if item.loan.client else None,
                        "telefono": item.loan.client.phone if item.loan.client else None,
                        "monto": self._money(item.loan.principal),
                        "valorCuota": self._money(item.loan.installment_value),
                        "cuotas": item.loan.installments,
                        "fechaVencimiento": _iso(item.loan.maturity_date),
                        "diasVencido": item.days_overdue,
                        "totalPagado": self._money(item.total_paid),
                        "saldoPendiente": self._money(item.pending_balance),
                    }
                    for item in overdue
                ],
                "cobrosHoy": [
                    {
                        "id": payment.id,
                        "cliente": payment.loan.client.full_name if payment.loan and payment.loan.client else None,
                        "monto": self._money(payment.amount),
                        "fecha": _iso(payment.paid_at),
                    }
                    for payment in payments
                ],
            },
        }

    def _client_brief(self, client: Optional[Client]) -> Optional[Dict[str, Any]]:
        if client is None:
            return None
        return {
            "nombre": client.first_name,
            "apellido": client.last_name,
            "documento": client.document,
        }

    def _client_position(self, client: Client) -> Dict[str, Any]:
        balances = [compute_loan_balance(loan) for loan in client.loans]
        return {
            "id": client.id,
            "nombre": client.full_name,
            "prestamosActivos": len(client.loans),
            "totalPrestado": self._money(sum_principal(client.loans)),
            "totalPagado": self._money(sum((b.total_paid for b in balances), ZERO)),
            "saldoPendiente": self._money(sum((b.pending_balance for b in balances), ZERO)),
        }
