"""
Market Data routes - tracked index levels and session status.
"""

import logging

from fastapi import APIRouter, Depends

from stockboard.api.dependencies import get_quote_service
from stockboard.api.schemas import fail, ok
from stockboard.domain.errors import MarketDataError
from stockboard.services.quote_service import QuoteService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def get_market_data(quote_service: QuoteService = Depends(get_quote_service)):
    """S&P 500, NASDAQ and Dow levels plus the current market status."""
    try:
        overview = await quote_service.fetch_market_overview()
    except MarketDataError as e:
        return fail(str(e) or "Failed to fetch market data", status_code=500)
    return ok(overview.to_dict())
