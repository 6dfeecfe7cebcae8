"""
Portfolio API Routes
Holdings with live market values, sector breakdown, add/remove
"""

from decimal import Decimal
from typing import Dict, Optional
import logging

from fastapi import APIRouter, Depends, Query

from stockboard.api.dependencies import (
    get_config_engine,
    get_portfolio_refresher,
    get_portfolio_service,
)
from stockboard.api.schemas import AddHoldingRequest, fail, ok
from stockboard.domain.errors import (
    DuplicateHoldingError,
    HoldingNotFoundError,
    HoldingValidationError,
)
from stockboard.domain.services.config_engine import ConfigEngine
from stockboard.realtime.refresh_loop import QuoteRefresher
from stockboard.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)
router = APIRouter()


def live_prices(refresher: QuoteRefresher) -> Dict[str, Decimal]:
    snapshot = refresher.snapshot
    return snapshot.prices() if snapshot is not None else {}


@router.get("")
async def get_portfolio(
    sort_by: Optional[str] = Query(None),
    descending: bool = Query(False),
    service: PortfolioService = Depends(get_portfolio_service),
    refresher: QuoteRefresher = Depends(get_portfolio_refresher),
):
    """
    Holdings valued at the latest polled prices, with totals per sector.
    """
    try:
        view = service.view(live_prices(refresher), sort_by=sort_by, descending=descending)
    except ValueError as e:
        return fail(str(e), status_code=400)

    status = refresher.status()
    data = view.to_dict()
    data["groups"] = {
        sector: [v.symbol for v in members]
        for sector, members in view.grouped_by_sector().items()
    }
    data["refresh"] = {
        "state": status["state"],
        "loading": status["loading"],
        "error": status["error"],
        "lastUpdated": status["lastUpdated"],
    }
    return ok(data)


@router.post("/holdings")
async def add_holding(
    payload: AddHoldingRequest,
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        holding = await service.add_holding(
            symbol=payload.symbol,
            sector=payload.sector,
            exchange=payload.exchange,
            purchase_price=payload.purchase_price,
            quantity=payload.quantity,
        )
    except HoldingValidationError as e:
        return fail(str(e), status_code=400)
    except DuplicateHoldingError as e:
        return fail(str(e), status_code=409)

    return ok(holding.to_storage_dict(), message=f"Added {holding.symbol}", status_code=201)


@router.delete("/holdings/{symbol}")
async def remove_holding(
    symbol: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    try:
        removed = service.remove_holding(symbol)
    except HoldingNotFoundError as e:
        return fail(str(e), status_code=404)
    return ok(removed.to_storage_dict(), message=f"Removed {removed.symbol}")


@router.get("/prefill/{symbol}")
async def prefill_holding(
    symbol: str,
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Suggested sector and purchase price for a new holding."""
    try:
        return ok(await service.prefill(symbol))
    except HoldingValidationError as e:
        return fail(str(e), status_code=400)


@router.get("/popular")
async def get_popular_stocks(config_engine: ConfigEngine = Depends(get_config_engine)):
    """Quick-add choices: popular stocks, sectors and exchanges."""
    return ok({
        "stocks": [s.to_dict() for s in config_engine.popular_stocks],
        "sectors": config_engine.sectors,
        "exchanges": [e.to_dict() for e in config_engine.exchanges],
    })
