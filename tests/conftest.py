from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Iterable, Optional

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from stockboard.api.routes import dashboard, market_data, portfolio, stocks
from stockboard.domain.errors import QuoteNotFoundError
from stockboard.domain.models import MarketStatus
from stockboard.domain.services.config_engine import ConfigEngine
from stockboard.infrastructure.repositories.holding_repository import HoldingRepository
from stockboard.infrastructure.storage.local_storage import LocalStorage
from stockboard.realtime.refresh_loop import MarketOverviewRefresher, QuoteRefresher
from stockboard.services.portfolio_service import PortfolioService
from stockboard.services.quote_service import QuoteService


DEFAULT_QUOTES: Dict[str, Dict[str, Any]] = {
    "AAPL": {
        "shortName": "Apple Inc.",
        "regularMarketPrice": 190.5,
        "regularMarketChange": 1.5,
        "regularMarketChangePercent": 0.79,
        "regularMarketVolume": 50_000_000,
        "marketCap": 2_900_000_000_000,
        "trailingPE": 30.0,
        "trailingAnnualDividendRate": 0.96,
        "trailingAnnualDividendYield": 0.005,
    },
    "MSFT": {
        "shortName": "Microsoft Corporation",
        "regularMarketPrice": 410.0,
        "regularMarketChange": -2.0,
        "regularMarketChangePercent": -0.49,
        "regularMarketVolume": 20_000_000,
        "marketCap": 3_050_000_000_000,
        "trailingPE": 41.0,
    },
    "TSLA": {
        "shortName": "Tesla, Inc.",
        "regularMarketPrice": 250.0,
        "regularMarketChange": 5.0,
        "regularMarketChangePercent": 2.04,
        "regularMarketVolume": 90_000_000,
        "marketCap": 800_000_000_000,
    },
    "^GSPC": {"regularMarketPrice": 5000.0, "regularMarketChange": 25.0, "regularMarketChangePercent": 0.5},
    "^IXIC": {"regularMarketPrice": 16000.0, "regularMarketChange": -40.0, "regularMarketChangePercent": -0.25},
    "^DJI": {"regularMarketPrice": 38000.0, "regularMarketChange": 100.0, "regularMarketChangePercent": 0.26},
}


class StubProvider:
    """In-memory QuoteProvider. Unknown or failing symbols raise."""

    def __init__(self, quotes: Optional[Dict[str, Dict[str, Any]]] = None, failing: Iterable[str] = ()):
        source = DEFAULT_QUOTES if quotes is None else quotes
        self.quotes = {symbol: dict(fields) for symbol, fields in source.items()}
        self.failing = set(failing)
        self.calls = []

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        self.calls.append(symbol)
        if symbol in self.failing:
            raise ConnectionError(f"provider unavailable for {symbol}")
        if symbol not in self.quotes:
            raise QuoteNotFoundError(symbol)
        return dict(self.quotes[symbol])


class StubCalendar:
    def __init__(self, status: MarketStatus = MarketStatus.OPEN):
        self.status = status

    def get_status(self, check_time=None) -> MarketStatus:
        return self.status


@pytest.fixture(scope="session")
def config_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "config"


@pytest.fixture()
def config_engine(config_dir) -> ConfigEngine:
    engine = ConfigEngine(config_dir)
    engine.load_all()
    return engine


@pytest.fixture()
def provider() -> StubProvider:
    return StubProvider()


@pytest.fixture()
def quote_service(provider, config_engine) -> QuoteService:
    return QuoteService(provider, indices=config_engine.indices, calendar=StubCalendar())


@pytest.fixture()
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "local_storage.json")


@pytest.fixture()
def repository(storage) -> HoldingRepository:
    repo = HoldingRepository(storage)
    repo.load()
    return repo


@pytest.fixture()
def portfolio_service(repository, quote_service, config_engine) -> PortfolioService:
    return PortfolioService(repository, quote_service, config_engine)


@pytest.fixture()
def app(config_engine, quote_service, repository, portfolio_service) -> FastAPI:
    app = FastAPI()
    app.include_router(market_data.router, prefix="/api/market-data", tags=["Market Data"])
    app.include_router(stocks.router, prefix="/api/stocks", tags=["Stocks"])
    app.include_router(portfolio.router, prefix="/api/portfolio", tags=["Portfolio"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])

    # Loops run without a scheduler; tests drive refresh() directly
    portfolio_refresher = QuoteRefresher(
        quote_service,
        interval_seconds=15,
        symbols_source=repository.symbols,
        name="portfolio",
    )
    portfolio_refresher.subscribe(portfolio_service.apply_snapshot)

    app.state.config_engine = config_engine
    app.state.quote_service = quote_service
    app.state.portfolio_service = portfolio_service
    app.state.market_refresher = MarketOverviewRefresher(quote_service, interval_seconds=60)
    app.state.popular_refresher = QuoteRefresher(
        quote_service,
        interval_seconds=30,
        symbols=config_engine.popular_symbols,
        name="popular_stocks",
    )
    app.state.portfolio_refresher = portfolio_refresher
    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
