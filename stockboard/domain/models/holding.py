"""
DOMAIN MODEL — HOLDING

A user-tracked position in one stock symbol. Derived values are properties,
so they are always computed from the current inputs and never stored.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional

from stockboard.domain.errors import HoldingValidationError


class Exchange(str, Enum):
    """Exchange / index label a holding is filed under"""
    SP = "S&P"
    DOW = "DOW"
    NASDAQ = "NASDAQ"


def to_decimal(value: Any) -> Decimal:
    """Decimal from int/float/str without binary float artefacts."""
    if isinstance(value, bool):
        raise HoldingValidationError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise HoldingValidationError(f"Not a number: {value!r}") from exc
    if not result.is_finite():
        raise HoldingValidationError(f"Not a finite number: {value!r}")
    return result


@dataclass(frozen=True)
class Holding:
    """Holding - Immutable; updates go through dataclasses.replace"""
    symbol: str
    sector: str
    exchange: Exchange
    purchase_price: Decimal
    quantity: int
    cmp: Optional[Decimal] = None
    pe_ratio: Optional[float] = None
    latest_earnings: Optional[float] = None

    def __post_init__(self):
        if not self.symbol or not self.symbol.strip():
            raise HoldingValidationError("Holding symbol cannot be empty")
        if self.purchase_price < 0:
            raise HoldingValidationError("Purchase price cannot be negative")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise HoldingValidationError("Quantity must be a whole number")
        if self.quantity < 0:
            raise HoldingValidationError("Quantity cannot be negative")

    @property
    def investment(self) -> Decimal:
        return self.purchase_price * self.quantity

    def present_value(self, price: Decimal) -> Decimal:
        return price * self.quantity

    def gain_loss(self, price: Decimal) -> Decimal:
        return self.present_value(price) - self.investment

    # ------------------------------------------------------------------
    # Storage format (JSON object inside the persisted array)
    # ------------------------------------------------------------------

    def to_storage_dict(self) -> Dict[str, Any]:
        return {
            "name": self.symbol,
            "sector": self.sector,
            "exchange": self.exchange.value,
            "purchasePrice": float(self.purchase_price),
            "quantity": self.quantity,
            "cmp": float(self.cmp) if self.cmp is not None else None,
            "peRatio": self.pe_ratio,
            "latestEarnings": self.latest_earnings,
        }

    @classmethod
    def from_storage_dict(cls, data: Dict[str, Any]) -> "Holding":
        if not isinstance(data, dict):
            raise HoldingValidationError(f"Holding entry must be an object, got {type(data).__name__}")
        raw_name = data.get("name")
        if not isinstance(raw_name, str) or not raw_name.strip():
            raise HoldingValidationError(f"Holding entry has no usable name: {raw_name!r}")
        symbol = raw_name.strip().upper()
        try:
            exchange = Exchange(data.get("exchange") or Exchange.SP.value)
            purchase_price = to_decimal(data["purchasePrice"])
            raw_quantity = data["quantity"]
        except KeyError as exc:
            raise HoldingValidationError(f"Holding entry missing field {exc}") from exc
        except ValueError as exc:
            raise HoldingValidationError(str(exc)) from exc

        quantity = to_decimal(raw_quantity)
        if quantity != quantity.to_integral_value():
            raise HoldingValidationError(f"Quantity must be a whole number: {raw_quantity!r}")

        cmp = data.get("cmp")
        pe_ratio = data.get("peRatio")
        earnings = data.get("latestEarnings")
        return cls(
            symbol=symbol,
            sector=str(data.get("sector") or "Other"),
            exchange=exchange,
            purchase_price=purchase_price,
            quantity=int(quantity),
            cmp=to_decimal(cmp) if cmp is not None else None,
            pe_ratio=float(pe_ratio) if pe_ratio is not None else None,
            latest_earnings=float(earnings) if earnings is not None else None,
        )
