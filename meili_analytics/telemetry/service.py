"""Analytics service composing identity, batcher, transport and ticker.

The host creates one service at startup and shares it; ``publish`` and
``tick`` never block on network I/O and never raise.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Any, Dict, Optional

from meili_analytics.telemetry.batcher import EventBatcher
from meili_analytics.telemetry.config import AnalyticsConfig
from meili_analytics.telemetry.errors import ErrorKind, ErrorSink
from meili_analytics.telemetry.identity import IdentityStore
from meili_analytics.telemetry.models import Identify, Track
from meili_analytics.telemetry.system import compute_traits
from meili_analytics.telemetry.ticker import StatsSource, Ticker
from meili_analytics.telemetry.transport import NullTransport, PostHogTransport, Transport

logger = logging.getLogger("meili_analytics.telemetry")

FIRST_LAUNCH_EVENT = "Launched for the first time"


class AnalyticsService:
    """Anonymous analytics agent of a Meilisearch instance.

    Use :meth:`create` rather than the constructor: it resolves the identity
    and queues the startup events.
    """

    def __init__(
        self,
        config: AnalyticsConfig,
        identity: str,
        first_run: bool,
        batcher: EventBatcher,
        sink: Optional[ErrorSink] = None,
    ):
        self.config = config
        self.identity = identity
        self.first_run = first_run
        self.batcher = batcher
        self.errors = sink or batcher.sink
        self.enabled = config.enabled
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=config.queue_size)
        self._stop = asyncio.Event()
        self._ticker: Optional[Ticker] = None
        self._worker: Optional[asyncio.Task] = None

    @classmethod
    async def create(
        cls,
        config: Optional[AnalyticsConfig] = None,
        transport: Optional[Transport] = None,
        system_info: Optional[Dict[str, Any]] = None,
        sink: Optional[ErrorSink] = None,
    ) -> AnalyticsService:
        """Create the service and queue the startup events.

        Args:
            config: Analytics configuration, or None to load from environment
            transport: Where batches are sent; defaults to PostHog, or to a
                       discarding transport when analytics are disabled
                       or no API key is configured
            system_info: Startup traits, computed from the host when omitted
            sink: Error sink shared by all components

        Returns:
            The running service
        """
        config = config or AnalyticsConfig.from_env()
        sink = sink or ErrorSink()

        if not config.enabled:
            logger.info("Analytics disabled")
            batcher = EventBatcher("", transport or NullTransport(), sink)
            return cls(config, "", False, batcher, sink)

        identity, first_run = IdentityStore(config.identity_path, sink).load()
        if transport is None and config.api_key:
            transport = PostHogTransport(config.api_key, config.host)
        elif transport is None:
            logger.warning("No MEILI_ANALYTICS_API_KEY set, analytics events will be discarded")
            transport = NullTransport()
        batcher = EventBatcher(identity, transport, sink)
        service = cls(config, identity, first_run, batcher, sink)

        traits = system_info if system_info is not None else compute_traits(config, sink)
        await batcher.push(Identify(traits=traits))
        logger.info(f"Analytics enabled with installation ID: {identity}")

        service._worker = asyncio.create_task(service._drain_publishes(), name="meili-analytics-publish")
        if first_run:
            service.publish(FIRST_LAUNCH_EVENT, {})
        return service

    def publish(self, event_name: str, properties: Optional[Dict[str, Any]] = None) -> None:
        """Queue a track event. Returns immediately.

        Args:
            event_name: Name of the event
            properties: Event properties (must not contain sensitive data)
        """
        if not self.enabled or self._stop.is_set():
            logger.debug(f"Analytics not running, skipping event: {event_name}")
            return

        try:
            event = Track(event=event_name, properties=dict(properties or {}))
        except Exception as e:
            self.errors.record(ErrorKind.INVALID_EVENT, f"Could not build event {event_name!r}", e)
            return

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.errors.record(ErrorKind.QUEUE_FULL, f"Dropped event {event_name!r}")
            return
        logger.debug(f"{event_name} queued for batch")

    def tick(self, stats_source: StatsSource) -> Optional[asyncio.Task]:
        """Start the periodic stats report. Meant to be called once.

        Returns:
            The ticker task, or None when analytics are disabled
        """
        if not self.enabled:
            return None
        if self._ticker is not None:
            logger.warning("Analytics ticker already running, ignoring tick")
            return self._ticker.start()

        self._ticker = Ticker(
            self.batcher,
            stats_source,
            interval=self.config.tick_interval,
            sink=self.errors,
            stop_event=self._stop,
        )
        return self._ticker.start()

    async def flush(self) -> bool:
        """Move queued publishes into the batch and send it.

        Returns:
            bool: True if a non-empty batch was sent, False otherwise
        """
        if self._worker is not None and not self._worker.done():
            await self._queue.join()
        return await self.batcher.flush()

    async def stop(self) -> None:
        """Stop the ticker, drain pending publishes and flush one last time."""
        if self._stop.is_set():
            return
        self._stop.set()

        if self._ticker is not None:
            await self._ticker.stop()

        if self._worker is not None and not self._worker.done():
            await self._queue.join()
            self._worker.cancel()
            with suppress(asyncio.CancelledError):
                await self._worker

        # Events left behind by a dead worker
        while not self._queue.empty():
            await self.batcher.push(self._queue.get_nowait())
            self._queue.task_done()

        await self.batcher.flush()
        logger.info("Analytics stopped")

    async def _drain_publishes(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.batcher.push(event)
            finally:
                self._queue.task_done()

    def __str__(self) -> str:
        return self.identity


# Global analytics service instance
_service: Optional[AnalyticsService] = None


async def init_analytics(
    config: Optional[AnalyticsConfig] = None, **kwargs: Any
) -> AnalyticsService:
    """Create the global analytics service, or return the existing one.

    Args:
        config: Analytics configuration, or None to load from environment
        **kwargs: Forwarded to :meth:`AnalyticsService.create`

    Returns:
        The global analytics service
    """
    global _service

    if _service is None:
        _service = await AnalyticsService.create(config, **kwargs)

    return _service


def get_analytics() -> Optional[AnalyticsService]:
    """Return the global analytics service, if initialized."""
    return _service


def publish(event_name: str, properties: Optional[Dict[str, Any]] = None) -> None:
    """Publish a track event using the global analytics service.

    Args:
        event_name: Name of the event
        properties: Event properties (must not contain sensitive data)
    """
    if _service is not None:
        _service.publish(event_name, properties)


async def shutdown_analytics() -> None:
    """Stop and forget the global analytics service."""
    global _service

    if _service is not None:
        await _service.stop()
        _service = None
