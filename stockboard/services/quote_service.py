"""
Quote service.

Batched quote lookups and market index levels, normalized into fixed record
shapes. Partial success is the normal case for batches: a symbol the
provider cannot serve is logged and left out of the result.
"""

import asyncio
import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from stockboard.domain.errors import MarketDataError
from stockboard.domain.models import IndexLevel, MarketOverview, QuoteSnapshot, StockQuote
from stockboard.infrastructure.calendar.us_market_calendar import USMarketCalendar
from stockboard.infrastructure.market_data.types import QuoteProvider
from stockboard.utils.time import now_utc

logger = logging.getLogger(__name__)


def parse_symbols(symbols: Union[str, Iterable[str]]) -> List[str]:
    """
    Upper-cased symbols in request order, blanks dropped, duplicates collapsed.

    Accepts a comma-separated string or any iterable of strings.
    """
    if isinstance(symbols, str):
        symbols = symbols.split(",")
    seen: List[str] = []
    for symbol in symbols:
        cleaned = (symbol or "").strip().upper()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def _number(raw: Mapping[str, Any], key: str) -> float:
    """Provider field as float; zero when missing, null, NaN or garbage."""
    value = raw.get(key)
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def normalize_quote(symbol: str, raw: Mapping[str, Any], fetched_at: datetime) -> StockQuote:
    symbol = symbol.upper()
    price = _number(raw, "regularMarketPrice")
    pe_ratio = _number(raw, "trailingPE")
    return StockQuote(
        symbol=symbol,
        name=raw.get("shortName") or raw.get("longName") or symbol,
        price=price,
        change=_number(raw, "regularMarketChange"),
        change_percent=_number(raw, "regularMarketChangePercent"),
        volume=_number(raw, "regularMarketVolume"),
        market_cap=_number(raw, "marketCap"),
        pe_ratio=pe_ratio,
        earnings=price / pe_ratio if pe_ratio > 0 else 0.0,
        dividend=_number(raw, "trailingAnnualDividendRate"),
        dividend_yield=_number(raw, "trailingAnnualDividendYield"),
        last_updated=fetched_at,
    )


def normalize_index(raw: Mapping[str, Any]) -> IndexLevel:
    return IndexLevel(
        value=_number(raw, "regularMarketPrice"),
        change=_number(raw, "regularMarketChange"),
        change_percent=_number(raw, "regularMarketChangePercent"),
    )


class QuoteService:
    """
    Quote fetcher over a QuoteProvider.
    Symbol lookups in one batch run concurrently and are joined.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        indices: Dict[str, str],
        calendar: Optional[USMarketCalendar] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.provider = provider
        self.indices = dict(indices)
        self.calendar = calendar or USMarketCalendar()
        self.timeout_seconds = timeout_seconds

    async def _call_provider(self, symbol: str) -> Dict[str, Any]:
        call = self.provider.get_quote(symbol)
        if self.timeout_seconds:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        return await call

    async def _fetch_one(self, symbol: str) -> Optional[StockQuote]:
        try:
            raw = await self._call_provider(symbol)
        except Exception as e:
            logger.error(f"Error fetching quote for {symbol}: {e!r}")
            return None
        return normalize_quote(symbol, raw, now_utc())

    # ------------------------------------------------------------------
    # QUOTES
    # ------------------------------------------------------------------

    async def fetch_quotes(self, symbols: Union[str, Iterable[str]]) -> Dict[str, StockQuote]:
        """
        Latest quotes keyed by upper-cased symbol.

        Raises:
            ValueError: no usable symbol was given
        """
        symbol_list = parse_symbols(symbols)
        if not symbol_list:
            raise ValueError("At least one symbol is required")

        results = await asyncio.gather(*(self._fetch_one(s) for s in symbol_list))
        quotes = {quote.symbol: quote for quote in results if quote is not None}

        logger.debug(f"Fetched {len(quotes)}/{len(symbol_list)} quotes")
        return quotes

    async def fetch_snapshot(self, symbols: Union[str, Iterable[str]]) -> QuoteSnapshot:
        quotes = await self.fetch_quotes(symbols)
        return QuoteSnapshot(quotes=quotes, fetched_at=now_utc())

    async def get_quote(self, symbol: str) -> Optional[StockQuote]:
        quotes = await self.fetch_quotes([symbol])
        return quotes.get(symbol.strip().upper())

    # ------------------------------------------------------------------
    # MARKET OVERVIEW
    # ------------------------------------------------------------------

    async def fetch_market_overview(self) -> MarketOverview:
        """
        Levels for every tracked index. All or nothing.

        Raises:
            MarketDataError: any index lookup failed
        """
        names = list(self.indices.keys())
        try:
            raws = await asyncio.gather(*(self._call_provider(self.indices[n]) for n in names))
        except Exception as e:
            logger.error(f"Error fetching market overview: {e!r}")
            raise MarketDataError(str(e) or "Failed to fetch market data") from e

        return MarketOverview(
            indices={name: normalize_index(raw) for name, raw in zip(names, raws)},
            market_status=self.calendar.get_status(),
            last_updated=now_utc(),
        )
