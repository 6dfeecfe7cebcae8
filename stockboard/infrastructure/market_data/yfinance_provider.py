"""
YFinance Quote Provider
Async-safe Yahoo Finance integration for US stocks & indices
"""

import asyncio
import os
import yfinance as yf
from typing import Any, Dict
import logging

from stockboard.domain.errors import QuoteNotFoundError

logger = logging.getLogger(__name__)

# Any of these in Ticker.info means Yahoo actually resolved the symbol
_QUOTE_MARKERS = ("regularMarketPrice", "currentPrice", "quoteType")


class YFinanceProvider:
    """
    Yahoo Finance quote provider
    Async-safe via thread offloading
    """

    def __init__(self):
        # Dashboard symbol -> Yahoo symbol where they differ
        self.symbol_mapping: Dict[str, str] = {
            "BRK.B": "BRK-B",
            "BF.B": "BF-B",
        }
        self._apply_symbol_overrides()

    def _apply_symbol_overrides(self) -> None:
        """
        Apply Yahoo symbol mapping overrides from env.

        Format: YF_SYMBOL_OVERRIDES="BRK.A=BRK-A,SPX=^GSPC"
        """
        raw = os.getenv("YF_SYMBOL_OVERRIDES", "").strip()
        if not raw:
            return
        overrides: Dict[str, str] = {}
        for pair in raw.split(","):
            pair = pair.strip()
            if not pair or "=" not in pair:
                continue
            key, value = pair.split("=", 1)
            key = key.strip().upper()
            value = value.strip()
            if key and value:
                overrides[key] = value
        if overrides:
            self.symbol_mapping.update(overrides)

    def _to_yahoo_symbol(self, symbol: str) -> str:
        return self.symbol_mapping.get(symbol.upper(), symbol.upper())

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    async def _info(self, ticker: yf.Ticker) -> Dict[str, Any]:
        """
        Async-safe wrapper around yfinance Ticker.info
        """
        return await asyncio.to_thread(lambda: ticker.info)

    # ------------------------------------------------------------------
    # QUOTES
    # ------------------------------------------------------------------

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        yf_symbol = self._to_yahoo_symbol(symbol)
        info = await self._info(yf.Ticker(yf_symbol))

        if not info or not any(info.get(marker) is not None for marker in _QUOTE_MARKERS):
            logger.warning(f"No quote data for {symbol} ({yf_symbol})")
            raise QuoteNotFoundError(symbol)

        # Equities without a live session expose currentPrice only
        if info.get("regularMarketPrice") is None and info.get("currentPrice") is not None:
            info = dict(info)
            info["regularMarketPrice"] = info["currentPrice"]
        return info
