"""
Reporting endpoints
"""

from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, HTTPException, Depends, Query

from .auth import MicrocreditSystem, get_current_user, get_system
from ..errors import MicrocreditError, ValidationError
from ..money import format_amount


router = APIRouter()
logger = logging.getLogger("microcredit.api.reports")


def resolve_report_day(fecha: Optional[str], system: MicrocreditSystem) -> date:
    """Parse the `fecha` query parameter; today in the business timezone when absent"""
    if fecha is None or not fecha.strip():
        return system.reports.today()
    try:
        return date.fromisoformat(fecha.strip())
    except ValueError:
        raise ValidationError(f"Invalid fecha '{fecha}'; expected YYYY-MM-DD")


@router.get("/daily")
async def daily_report(
    fecha: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user),
    system: MicrocreditSystem = Depends(get_system)
):
    """Collector's daily report"""
    day = resolve_report_day(fecha, system)
    try:
        return system.reports.daily_report(day, collector_id=user_id)
    except MicrocreditError:
        raise
    except Exception:
        logger.exception("Failed to build daily report for %s", day.isoformat())
        raise HTTPException(status_code=500, detail="internal error")


@router.get("/client-visits")
async def client_visits_report(
    fecha: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user),
    system: MicrocreditSystem = Depends(get_system)
):
    """Visited and not-visited clients plus overdue loans"""
    day = resolve_report_day(fecha, system)
    try:
        return system.reports.client_visits_report(day)
    except MicrocreditError:
        raise
    except Exception:
        logger.exception("Failed to build client visits report for %s", day.isoformat())
        raise HTTPException(status_code=500, detail="internal error")


@router.post("/daily/close")
async def close_day(
    fecha: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user),
    system: MicrocreditSystem = Depends(get_system)
):
    """Persist the day's cash closing; a day can only be closed once"""
    day = resolve_report_day(fecha, system)
    try:
        closing = system.reconciliation.close(day, user_id=user_id)
    except MicrocreditError:
        raise
    except Exception:
        logger.exception("Failed to close %s", day.isoformat())
        raise HTTPException(status_code=500, detail="internal error")

    precision = system.config.money_precision
    return {
        "message": "Day closed successfully",
        "cierre": {
            "id": closing.id,
            "fecha": closing.day.isoformat(),
            "saldoInicial": format_amount(closing.opening_cash, precision),
            "saldoFinal": format_amount(closing.closing_cash, precision),
            "cerradoPor": closing.closed_by
        }
    }
