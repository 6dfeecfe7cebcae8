"""
Service wiring shared by the API server and the CLI.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from stockboard.config import settings
from stockboard.domain.services.config_engine import ConfigEngine
from stockboard.infrastructure.calendar.us_market_calendar import USMarketCalendar
from stockboard.infrastructure.market_data.provider_factory import get_quote_provider
from stockboard.infrastructure.market_data.types import QuoteProvider
from stockboard.infrastructure.repositories.holding_repository import HoldingRepository
from stockboard.infrastructure.storage.local_storage import LocalStorage
from stockboard.realtime.refresh_loop import MarketOverviewRefresher, QuoteRefresher
from stockboard.services.portfolio_service import PortfolioService
from stockboard.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


@dataclass
class Services:
    config_engine: ConfigEngine
    quote_service: QuoteService
    repository: HoldingRepository
    portfolio_service: PortfolioService


@dataclass
class RefreshLoops:
    scheduler: AsyncIOScheduler
    market: MarketOverviewRefresher
    popular: QuoteRefresher
    portfolio: QuoteRefresher

    def start(self) -> None:
        self.market.start()
        self.popular.start()
        self.portfolio.start()
        if not self.scheduler.running:
            self.scheduler.start()

    def stop(self) -> None:
        for loop in (self.market, self.popular, self.portfolio):
            loop.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)


def load_config(config_dir: Optional[Path] = None) -> ConfigEngine:
    config_dir = Path(config_dir or settings.CONFIG_DIR or DEFAULT_CONFIG_DIR)
    config_engine = ConfigEngine(config_dir)
    config_engine.load_all()
    return config_engine


def build_services(
    config_engine: Optional[ConfigEngine] = None,
    provider: Optional[QuoteProvider] = None,
    storage_path: Optional[str] = None,
) -> Services:
    config_engine = config_engine or load_config()
    quote_service = QuoteService(
        provider=provider or get_quote_provider(config_engine=config_engine),
        indices=config_engine.indices,
        calendar=USMarketCalendar(config_engine.market_holidays),
        timeout_seconds=settings.QUOTE_TIMEOUT_SECONDS,
    )

    storage = LocalStorage(storage_path or settings.STORAGE_PATH)
    repository = HoldingRepository(storage, key=settings.HOLDINGS_STORAGE_KEY)
    repository.load()

    portfolio_service = PortfolioService(repository, quote_service, config_engine)
    return Services(
        config_engine=config_engine,
        quote_service=quote_service,
        repository=repository,
        portfolio_service=portfolio_service,
    )


def build_refresh_loops(
    services: Services,
    scheduler: Optional[AsyncIOScheduler] = None,
) -> RefreshLoops:
    """
    The index loop and the two quote loops run on independent timers.
    """
    scheduler = scheduler or AsyncIOScheduler(timezone=pytz.timezone(settings.TIMEZONE))
    intervals = services.config_engine.refresh

    market = MarketOverviewRefresher(
        services.quote_service,
        interval_seconds=settings.MARKET_REFRESH_SECONDS or intervals.market_overview,
        scheduler=scheduler,
    )
    popular = QuoteRefresher(
        services.quote_service,
        interval_seconds=settings.POPULAR_REFRESH_SECONDS or intervals.popular_stocks,
        symbols=services.config_engine.popular_symbols,
        scheduler=scheduler,
        name="popular_stocks",
    )
    portfolio = QuoteRefresher(
        services.quote_service,
        interval_seconds=settings.PORTFOLIO_REFRESH_SECONDS or intervals.portfolio,
        symbols_source=services.repository.symbols,
        scheduler=scheduler,
        name="portfolio",
    )
    portfolio.subscribe(services.portfolio_service.apply_snapshot)
    return RefreshLoops(scheduler=scheduler, market=market, popular=popular, portfolio=portfolio)
