import asyncio
from dataclasses import dataclass
from datetime import timedelta

import pytest

from stockboard.realtime.refresh_loop import MarketOverviewRefresher, QuoteRefresher, RefreshLoop


@dataclass(frozen=True)
class Payload:
    value: str

    def to_dict(self):
        return {"value": self.value}


class ScriptedLoop(RefreshLoop):
    """Each refresh waits on a future the test resolves."""

    name = "scripted"

    def __init__(self, scheduler=None):
        super().__init__(interval_seconds=5, scheduler=scheduler)
        self.pending = []

    async def _fetch(self):
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future


async def _wait_for_pending(loop: ScriptedLoop, count: int):
    for _ in range(100):
        if len(loop.pending) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} in-flight refreshes")


class RecordingScheduler:
    def __init__(self):
        self.jobs = {}

    def add_job(self, func, trigger=None, id=None, **kwargs):
        self.jobs[id] = {"func": func, "trigger": trigger, **kwargs}

    def remove_job(self, job_id):
        del self.jobs[job_id]


@pytest.mark.asyncio
async def test_failure_after_success_keeps_snapshot():
    loop = ScriptedLoop()

    task = asyncio.create_task(loop.refresh())
    await _wait_for_pending(loop, 1)
    assert loop.loading is True
    assert loop.display_state == "loading"
    loop.pending[0].set_result(Payload("first"))
    assert await task is True
    assert loop.display_state == "data"
    first_updated = loop.last_updated

    task = asyncio.create_task(loop.refresh())
    await _wait_for_pending(loop, 2)
    loop.pending[1].set_exception(ConnectionError("network down"))
    assert await task is False

    assert loop.snapshot == Payload("first")
    assert loop.error == "network down"
    assert loop.display_state == "error"
    assert loop.last_updated == first_updated
    assert loop.loading is False

    status = loop.status()
    assert status["state"] == "error"
    assert status["data"] == {"value": "first"}


@pytest.mark.asyncio
async def test_success_clears_previous_error():
    loop = ScriptedLoop()

    task = asyncio.create_task(loop.refresh())
    await _wait_for_pending(loop, 1)
    loop.pending[0].set_exception(RuntimeError())
    await task
    assert loop.error == RefreshLoop.default_error
    assert loop.snapshot is None

    task = asyncio.create_task(loop.refresh())
    await _wait_for_pending(loop, 2)
    loop.pending[1].set_result(Payload("ok"))
    await task
    assert loop.error is None
    assert loop.display_state == "data"


@pytest.mark.asyncio
async def test_out_of_order_response_is_discarded():
    loop = ScriptedLoop()

    older = asyncio.create_task(loop.refresh())
    newer = asyncio.create_task(loop.refresh())
    await _wait_for_pending(loop, 2)

    loop.pending[1].set_result(Payload("new"))
    assert await newer is True
    loop.pending[0].set_result(Payload("old"))
    assert await older is False

    assert loop.snapshot == Payload("new")
    assert loop.applied_sequence == 2


@pytest.mark.asyncio
async def test_stale_failure_does_not_set_error():
    loop = ScriptedLoop()

    older = asyncio.create_task(loop.refresh())
    newer = asyncio.create_task(loop.refresh())
    await _wait_for_pending(loop, 2)

    loop.pending[1].set_result(Payload("new"))
    await newer
    loop.pending[0].set_exception(ConnectionError("late failure"))
    await older

    assert loop.error is None
    assert loop.snapshot == Payload("new")


@pytest.mark.asyncio
async def test_response_after_stop_is_discarded():
    loop = ScriptedLoop()
    seen = []
    loop.subscribe(seen.append)

    task = asyncio.create_task(loop.refresh())
    await _wait_for_pending(loop, 1)
    loop.stop()
    loop.pending[0].set_result(Payload("late"))

    assert await task is False
    assert loop.snapshot is None
    assert seen == []

    # a stopped loop no longer fetches
    assert await loop.refresh() is False
    assert len(loop.pending) == 1


@pytest.mark.asyncio
async def test_subscribers_sync_and_async():
    loop = ScriptedLoop()
    seen = []

    async def async_subscriber(payload):
        seen.append(("async", payload.value))

    def broken_subscriber(payload):
        raise RuntimeError("boom")

    loop.subscribe(lambda payload: seen.append(("sync", payload.value)))
    loop.subscribe(broken_subscriber)
    loop.subscribe(async_subscriber)

    task = asyncio.create_task(loop.refresh())
    await _wait_for_pending(loop, 1)
    loop.pending[0].set_result(Payload("x"))
    assert await task is True

    assert seen == [("sync", "x"), ("async", "x")]


@pytest.mark.asyncio
async def test_quote_refresher_empty_symbols_skips_provider(provider, quote_service):
    refresher = QuoteRefresher(quote_service, interval_seconds=15)

    assert await refresher.refresh() is True
    assert refresher.snapshot.quotes == {}
    assert provider.calls == []


@pytest.mark.asyncio
async def test_quote_refresher_follows_symbol_source(quote_service):
    held = ["AAPL"]
    refresher = QuoteRefresher(quote_service, interval_seconds=15, symbols_source=lambda: held)

    await refresher.refresh()
    assert set(refresher.snapshot.quotes) == {"AAPL"}

    held.append("msft")
    await refresher.refresh()
    assert set(refresher.snapshot.quotes) == {"AAPL", "MSFT"}

    refresher.set_symbols(["TSLA"])
    await refresher.refresh()
    assert set(refresher.snapshot.quotes) == {"TSLA"}


@pytest.mark.asyncio
async def test_quote_refresher_keeps_snapshot_when_every_symbol_fails(provider, quote_service):
    refresher = QuoteRefresher(quote_service, interval_seconds=15, symbols=["AAPL", "MSFT"])
    assert await refresher.refresh() is True
    fetched_at = refresher.last_updated

    provider.failing.update({"AAPL", "MSFT"})
    assert await refresher.refresh() is False

    assert set(refresher.snapshot.quotes) == {"AAPL", "MSFT"}
    assert refresher.last_updated == fetched_at
    assert refresher.display_state == "error"
    assert "AAPL" in refresher.error

    provider.failing.clear()
    assert await refresher.refresh() is True
    assert refresher.error is None
    assert refresher.display_state == "data"


@pytest.mark.asyncio
async def test_market_refresher_keeps_overview_on_failure(provider, quote_service):
    refresher = MarketOverviewRefresher(quote_service, interval_seconds=60)
    await refresher.refresh()
    assert refresher.snapshot.indices["dow"].value == 38000.0

    provider.failing.add("^GSPC")
    await refresher.refresh()
    assert refresher.snapshot.indices["dow"].value == 38000.0
    assert refresher.display_state == "error"
    assert "^GSPC" in refresher.error


def test_start_and_stop_manage_scheduler_job():
    scheduler = RecordingScheduler()
    loop = ScriptedLoop(scheduler=scheduler)

    loop.start()
    job = scheduler.jobs["refresh:scripted"]
    assert job["func"] == loop.refresh
    assert job["trigger"].interval == timedelta(seconds=5)
    assert job["coalesce"] is True
    assert "next_run_time" in job

    loop.stop()
    assert scheduler.jobs == {}


def test_start_without_immediate_run_defers_first_tick():
    scheduler = RecordingScheduler()
    loop = ScriptedLoop(scheduler=scheduler)
    loop.start(run_immediately=False)
    assert "next_run_time" not in scheduler.jobs["refresh:scripted"]


def test_start_requires_scheduler():
    with pytest.raises(RuntimeError):
        ScriptedLoop().start()


def test_interval_must_be_positive(quote_service):
    with pytest.raises(ValueError):
        QuoteRefresher(quote_service, interval_seconds=0)
