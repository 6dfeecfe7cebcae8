"""
Stock quote routes - batch lookup by comma-separated symbols.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query

from stockboard.api.dependencies import get_quote_service
from stockboard.api.schemas import fail, ok
from stockboard.services.quote_service import QuoteService, parse_symbols

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def get_stocks(
    symbols: Optional[str] = Query(None, description="Comma-separated ticker symbols"),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """
    Latest quotes for a batch of symbols.

    Symbols the provider cannot serve are left out; the call still succeeds.
    """
    symbol_list = parse_symbols(symbols or "")
    if not symbol_list:
        return fail("Symbols parameter is required", status_code=400)

    try:
        quotes = await quote_service.fetch_quotes(symbol_list)
    except Exception as e:
        logger.error(f"API Error: {e!r}")
        return fail(str(e) or "Failed to fetch stock data", status_code=500)

    return ok(
        {symbol: quote.to_dict() for symbol, quote in quotes.items()},
        message=f"Successfully processed {len(quotes)} out of {len(symbol_list)} symbols.",
    )
