"""
Loan endpoints
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Query

from .auth import MicrocreditSystem, get_current_user, get_system
from .schemas import CreateLoanRequest
from ..balances import total_owed
from ..errors import MicrocreditError
from ..money import format_amount
from ..reports import serialize_loan


router = APIRouter()
logger = logging.getLogger("microcredit.api.loans")


@router.get("")
async def list_loans(
    conSaldo: bool = Query(False),
    user_id: str = Depends(get_current_user),
    system: MicrocreditSystem = Depends(get_system)
):
    """Active loans grouped by client, most recent activity first"""
    try:
        return system.reports.loan_portfolio(with_balance_only=conSaldo)
    except MicrocreditError:
        raise
    except Exception:
        logger.exception("Failed to list loans")
        raise HTTPException(status_code=500, detail="internal error")


@router.post("")
async def create_loan(
    request: CreateLoanRequest,
    user_id: str = Depends(get_current_user),
    system: MicrocreditSystem = Depends(get_system)
):
    """Validate, schedule and persist a new loan"""
    try:
        loan = system.originator.originate(request.model_dump(), collector_id=user_id)
    except MicrocreditError:
        raise
    except Exception:
        logger.exception("Failed to create loan")
        raise HTTPException(status_code=500, detail="internal error")

    precision = system.config.money_precision
    loan_data = serialize_loan(loan, precision)
    loan_data["montoTotal"] = format_amount(total_owed(loan.principal, loan.interest_rate), precision)
    return {
        "message": "Loan created successfully",
        "prestamo": loan_data
    }
