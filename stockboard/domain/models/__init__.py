"""
Domain Models Package
Export all domain entities
"""

from .holding import Exchange, Holding
from .portfolio import (
    HoldingValuation,
    PortfolioSummary,
    PortfolioView,
    SectorSummary,
)
from .quote import (
    IndexLevel,
    MarketOverview,
    MarketStatus,
    QuoteSnapshot,
    StockQuote,
)

__all__ = [
    # Enums
    "Exchange",
    "MarketStatus",

    # Entities
    "Holding",
    "HoldingValuation",
    "IndexLevel",
    "MarketOverview",
    "PortfolioSummary",
    "PortfolioView",
    "QuoteSnapshot",
    "SectorSummary",
    "StockQuote",
]
