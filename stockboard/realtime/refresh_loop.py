"""
Polling refresh loops: periodic re-fetch, latest snapshot, subscribers.

Each refresh takes a sequence number when it starts. A result is applied
only if it is newer than the one on display and the loop has not been
stopped, so a slow response can never overwrite a newer one and nothing
lands after teardown.
"""

from __future__ import annotations

import inspect
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stockboard.domain.errors import MarketDataError
from stockboard.domain.models import MarketOverview, QuoteSnapshot
from stockboard.services.quote_service import QuoteService, parse_symbols
from stockboard.utils.time import now_utc, to_iso

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[Any], Any]


class RefreshLoop(Generic[T]):
    """
    Base loop. Subclasses implement _fetch().

    Display state is exactly one of:
      loading - no data yet and a refresh is running
      error   - the latest completed refresh failed
      data    - the latest completed refresh succeeded
    """

    name = "refresh"
    default_error = "Failed to refresh data"

    def __init__(self, interval_seconds: int, scheduler: Optional[AsyncIOScheduler] = None):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self._scheduler = scheduler
        self._job_id = f"refresh:{self.name}"

        self._snapshot: Optional[T] = None
        self._error: Optional[str] = None
        self._last_updated: Optional[datetime] = None
        self._issued = 0
        self._applied = 0
        self._in_flight = 0
        self._started = False
        self._stopped = False
        self._subscribers: List[Subscriber] = []

    async def _fetch(self) -> T:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Optional[T]:
        return self._snapshot

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._last_updated

    @property
    def applied_sequence(self) -> int:
        return self._applied

    @property
    def display_state(self) -> str:
        if self._error is not None:
            return "error"
        if self._snapshot is None:
            return "loading"
        return "data"

    def status(self) -> Dict[str, Any]:
        data = self._snapshot.to_dict() if self._snapshot is not None else None
        return {
            "state": self.display_state,
            "loading": self.loading,
            "error": self._error,
            "lastUpdated": to_iso(self._last_updated) if self._last_updated else None,
            "data": data,
        }

    def subscribe(self, callback: Subscriber) -> None:
        """Register a sync or async callable invoked with each new snapshot"""
        self._subscribers.append(callback)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """
        Run one fetch and apply its outcome.

        Returns:
            True when a new snapshot was applied
        """
        if self._stopped:
            return False

        self._issued += 1
        sequence = self._issued
        self._in_flight += 1
        try:
            result = await self._fetch()
        except Exception as e:
            self._apply_failure(sequence, e)
            return False
        finally:
            self._in_flight -= 1

        return await self._apply_success(sequence, result)

    def _is_stale(self, sequence: int) -> bool:
        if self._stopped:
            logger.debug(f"[{self.name}] discarding refresh #{sequence}: loop stopped")
            return True
        if sequence < self._applied:
            logger.debug(
                f"[{self.name}] discarding refresh #{sequence}: #{self._applied} already applied"
            )
            return True
        return False

    async def _apply_success(self, sequence: int, result: T) -> bool:
        if self._is_stale(sequence):
            return False

        self._applied = sequence
        self._snapshot = result
        self._error = None
        self._last_updated = now_utc()
        await self._notify(result)
        return True

    def _apply_failure(self, sequence: int, exc: Exception) -> None:
        if self._is_stale(sequence):
            return

        # Previous snapshot stays on display
        self._applied = sequence
        self._error = str(exc) or self.default_error
        logger.warning(f"[{self.name}] refresh #{sequence} failed: {self._error}")

    async def _notify(self, result: T) -> None:
        for callback in list(self._subscribers):
            try:
                outcome = callback(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception(f"[{self.name}] subscriber failed")

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def start(self, run_immediately: bool = True) -> None:
        if self._scheduler is None:
            raise RuntimeError(f"[{self.name}] no scheduler configured")
        if self._started:
            return

        self._stopped = False
        job_kwargs: Dict[str, Any] = {}
        if run_immediately:
            job_kwargs["next_run_time"] = now_utc()
        self._scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self._job_id,
            replace_existing=True,
            coalesce=True,
            max_instances=2,
            **job_kwargs,
        )
        self._started = True
        logger.info(f"[{self.name}] polling every {self.interval_seconds}s")

    def stop(self) -> None:
        """Remove the timer; in-flight results are dropped when they land."""
        self._stopped = True
        if self._scheduler is not None and self._started:
            try:
                self._scheduler.remove_job(self._job_id)
            except JobLookupError:
                pass
        self._started = False
        logger.info(f"[{self.name}] stopped")


class MarketOverviewRefresher(RefreshLoop[MarketOverview]):
    """Polls the tracked market indices"""

    name = "market_overview"
    default_error = "Failed to fetch market data"

    def __init__(
        self,
        quote_service: QuoteService,
        interval_seconds: int,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        super().__init__(interval_seconds, scheduler)
        self.quote_service = quote_service

    async def _fetch(self) -> MarketOverview:
        return await self.quote_service.fetch_market_overview()


class QuoteRefresher(RefreshLoop[QuoteSnapshot]):
    """
    Polls quotes for a tracked symbol set.

    The set is either fixed (set_symbols) or read from a callable on every
    tick, so a portfolio loop follows holdings as they are added/removed.
    """

    default_error = "Failed to fetch stock data"

    def __init__(
        self,
        quote_service: QuoteService,
        interval_seconds: int,
        symbols: Optional[Iterable[str]] = None,
        symbols_source: Optional[Callable[[], Iterable[str]]] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
        name: str = "quotes",
    ):
        self.name = name
        super().__init__(interval_seconds, scheduler)
        self.quote_service = quote_service
        self._symbols: List[str] = parse_symbols(symbols or [])
        self._symbols_source = symbols_source

    @property
    def symbols(self) -> List[str]:
        if self._symbols_source is not None:
            return parse_symbols(self._symbols_source())
        return list(self._symbols)

    def set_symbols(self, symbols: Iterable[str]) -> None:
        self._symbols_source = None
        self._symbols = parse_symbols(symbols)

    async def _fetch(self) -> QuoteSnapshot:
        symbols = self.symbols
        if not symbols:
            return QuoteSnapshot(quotes={}, fetched_at=now_utc())
        snapshot = await self.quote_service.fetch_snapshot(symbols)
        if not snapshot.quotes:
            # Every symbol dropped; keep the last good prices on display
            raise MarketDataError(f"No quotes returned for {', '.join(symbols)}")
        return snapshot
