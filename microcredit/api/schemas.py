"""
Pydantic schemas for API requests
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class CreateLoanRequest(BaseModel):
    """
    New-loan request body.

    Fields are loose: numbers may arrive as strings and
    required fields may be missing. The origination validator runs every
    check and reports each failure with its own message.
    """
    model_config = ConfigDict(extra="ignore")

    clienteId: Optional[Any] = None
    monto: Optional[Any] = None
    interes: Optional[Any] = None
    tipoPago: Optional[Any] = None
    cuotas: Optional[Any] = None
    fechaInicio: Optional[Any] = None
    observaciones: Optional[Any] = None
    tipoCredito: Optional[Any] = None
    diasGracia: Optional[Any] = None
    moraCredito: Optional[Any] = None
    microseguroTipo: Optional[Any] = None
    microseguroValor: Optional[Any] = None
    microseguroTotal: Optional[Any] = None
