"""
Dashboard route - everything the landing page renders in one call.
"""

from fastapi import APIRouter, Depends

from stockboard.api.dependencies import (
    get_market_refresher,
    get_popular_refresher,
    get_portfolio_refresher,
    get_portfolio_service,
)
from stockboard.api.routes.portfolio import live_prices
from stockboard.api.schemas import ok
from stockboard.realtime.refresh_loop import MarketOverviewRefresher, QuoteRefresher
from stockboard.services.portfolio_service import PortfolioService

router = APIRouter()


@router.get("")
async def get_dashboard(
    market: MarketOverviewRefresher = Depends(get_market_refresher),
    popular: QuoteRefresher = Depends(get_popular_refresher),
    portfolio_refresher: QuoteRefresher = Depends(get_portfolio_refresher),
    service: PortfolioService = Depends(get_portfolio_service),
):
    view = service.view(live_prices(portfolio_refresher))
    return ok({
        "market": market.status(),
        "popularStocks": popular.status(),
        "portfolioSummary": view.summary.to_dict(),
    })
