"""
DOMAIN MODELS — QUOTES & MARKET OVERVIEW

Normalized provider records. Every numeric field is a plain float and is
zero when the provider omitted it.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from stockboard.utils.time import to_iso


class MarketStatus(str, Enum):
    """US equity session state"""
    OPEN = "open"
    CLOSED = "closed"
    PRE_MARKET = "pre-market"
    AFTER_HOURS = "after-hours"


@dataclass(frozen=True)
class StockQuote:
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    volume: float
    market_cap: float
    pe_ratio: float
    earnings: float
    dividend: float
    dividend_yield: float
    last_updated: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "volume": self.volume,
            "marketCap": self.market_cap,
            "peRatio": self.pe_ratio,
            "earnings": self.earnings,
            "dividend": self.dividend,
            "dividendYield": self.dividend_yield,
            "lastUpdated": to_iso(self.last_updated),
        }


@dataclass(frozen=True)
class QuoteSnapshot:
    """
    Latest batch of quotes. Replaced wholesale on every refresh.
    """
    quotes: Dict[str, StockQuote]
    fetched_at: datetime

    def get(self, symbol: str) -> StockQuote | None:
        return self.quotes.get(symbol.upper())

    def prices(self) -> Dict[str, Decimal]:
        return {symbol: Decimal(str(q.price)) for symbol, q in self.quotes.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {symbol: quote.to_dict() for symbol, quote in self.quotes.items()}


@dataclass(frozen=True)
class IndexLevel:
    value: float
    change: float
    change_percent: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "value": self.value,
            "change": self.change,
            "changePercent": self.change_percent,
        }


@dataclass(frozen=True)
class MarketOverview:
    indices: Dict[str, IndexLevel]
    market_status: MarketStatus
    last_updated: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indices": {name: level.to_dict() for name, level in self.indices.items()},
            "marketStatus": self.market_status.value,
            "lastUpdated": to_iso(self.last_updated),
        }
