"""
Response envelope and request models shared by the API routes.
"""

from decimal import Decimal
from typing import Any, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field


class ApiResponse(BaseModel):
    """Uniform envelope: {success, data | error, message?}"""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None


def ok(data: Any, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    body = ApiResponse(success=True, data=data, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def fail(error: str, status_code: int = 500) -> JSONResponse:
    body = ApiResponse(success=False, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


class AddHoldingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(..., min_length=1)
    sector: Optional[str] = None
    exchange: str = "S&P"
    purchase_price: Decimal = Field(..., alias="purchasePrice")
    quantity: Decimal
