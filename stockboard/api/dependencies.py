"""
Request-scoped accessors for the services wired up in main.lifespan.
"""

from fastapi import HTTPException, Request

from stockboard.domain.services.config_engine import ConfigEngine
from stockboard.realtime.refresh_loop import MarketOverviewRefresher, QuoteRefresher
from stockboard.services.portfolio_service import PortfolioService
from stockboard.services.quote_service import QuoteService


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return value


def get_config_engine(request: Request) -> ConfigEngine:
    return _state(request, "config_engine")


def get_quote_service(request: Request) -> QuoteService:
    return _state(request, "quote_service")


def get_portfolio_service(request: Request) -> PortfolioService:
    return _state(request, "portfolio_service")


def get_market_refresher(request: Request) -> MarketOverviewRefresher:
    return _state(request, "market_refresher")


def get_popular_refresher(request: Request) -> QuoteRefresher:
    return _state(request, "popular_refresher")


def get_portfolio_refresher(request: Request) -> QuoteRefresher:
    return _state(request, "portfolio_refresher")
