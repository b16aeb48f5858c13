"""Periodic loop reporting host stats as identity traits."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Any, Dict, Mapping, Optional, Protocol

from meili_analytics.telemetry.batcher import EventBatcher
from meili_analytics.telemetry.config import DEFAULT_TICK_INTERVAL
from meili_analytics.telemetry.errors import ErrorKind, ErrorSink
from meili_analytics.telemetry.models import Identify, Stats

logger = logging.getLogger("meili_analytics.telemetry.ticker")

# Optional operator-supplied traits, read at every tick
OPTIONAL_ENV_TRAITS = {
    "User email": "MEILI_USER_EMAIL",
    "Server provider": "MEILI_SERVER_PROVIDER",
}


class StatsSource(Protocol):
    """Host collaborator computing document counts and storage size."""

    async def get_all_stats(self) -> Stats:
        ...


def stats_traits(stats: Stats, elapsed: float, environ: Mapping[str, str]) -> Dict[str, Any]:
    """Build the traits reported for one tick."""
    traits: Dict[str, Any] = {
        "Elapsed since start (in secs)": int(elapsed),
        "Number of indexes": len(stats.indexes),
        "Number of documents": [index.number_of_documents for index in stats.indexes.values()],
        "Database size": stats.database_size,
    }
    for trait, var in OPTIONAL_ENV_TRAITS.items():
        value = environ.get(var)
        if value:
            traits[trait] = value
    return traits


class Ticker:
    """Every ``interval`` seconds, reports stats and flushes the batcher.

    The first report happens one interval after ``start``. Stats failures skip
    the trait update of that iteration only; the flush still happens.
    """

    def __init__(
        self,
        batcher: EventBatcher,
        stats_source: StatsSource,
        interval: float = DEFAULT_TICK_INTERVAL,
        sink: Optional[ErrorSink] = None,
        environ: Optional[Mapping[str, str]] = None,
        stop_event: Optional[asyncio.Event] = None,
    ):
        self.batcher = batcher
        self.stats_source = stats_source
        self.interval = interval
        self.sink = sink or batcher.sink
        self.environ = environ if environ is not None else os.environ
        self.iterations = 0
        self._stop = stop_event or asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._start_time = time.monotonic()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Spawn the loop on the running event loop."""
        if self._task is None:
            self._start_time = time.monotonic()
            self._task = asyncio.create_task(self._run(), name="meili-analytics-ticker")
            logger.info(f"Analytics ticker started (every {self.interval}s)")
        return self._task

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it."""
        self._stop.set()
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                try:
                    await self.run_once()
                except Exception as e:
                    self.sink.record(ErrorKind.TICK_FAILED, "Analytics tick failed", e)
        logger.info("Analytics ticker stopped")

    async def run_once(self) -> None:
        """Run one iteration: report stats if available, then flush."""
        self.iterations += 1
        try:
            stats = await self.stats_source.get_all_stats()
            traits = stats_traits(stats, time.monotonic() - self._start_time, self.environ)
        except Exception as e:
            self.sink.record(ErrorKind.STATS_UNAVAILABLE, "Skipping stats report", e)
        else:
            logger.debug("Pushing identify tick")
            await self.batcher.push(Identify(traits=traits))

        logger.debug("Pushing batch")
        await self.batcher.flush()
