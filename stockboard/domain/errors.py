"""
Domain errors.

Routes translate these into response envelopes; nothing here is fatal to
the process.
"""


class StockboardError(Exception):
    """Base class for all application errors"""


class MarketDataError(StockboardError):
    """A whole market data request failed (network, provider outage)."""


class QuoteNotFoundError(MarketDataError):
    """The provider returned no usable quote for a symbol."""

    def __init__(self, symbol: str):
        super().__init__(f"No quote available for {symbol}")
        self.symbol = symbol


class HoldingValidationError(StockboardError):
    """Holding input failed validation."""


class DuplicateHoldingError(StockboardError):
    def __init__(self, symbol: str):
        super().__init__(f"Holding already exists: {symbol}")
        self.symbol = symbol


class HoldingNotFoundError(StockboardError):
    def __init__(self, symbol: str):
        super().__init__(f"Holding not found: {symbol}")
        self.symbol = symbol
