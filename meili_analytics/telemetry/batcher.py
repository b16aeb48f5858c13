"""In-memory event batch shared by every analytics producer."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from meili_analytics.telemetry.errors import ErrorKind, ErrorSink
from meili_analytics.telemetry.models import Event
from meili_analytics.telemetry.transport import Transport

logger = logging.getLogger("meili_analytics.telemetry.batcher")


class EventBatcher:
    """Buffers events under a lock and hands them to a transport on flush.

    The transport is awaited while the lock is held, so a slow send stalls
    concurrent ``push`` and ``flush`` callers until it returns.
    """

    def __init__(self, identity: str, transport: Transport, sink: Optional[ErrorSink] = None):
        self.identity = identity
        self.transport = transport
        self.sink = sink or ErrorSink()
        self._batch: List[Event] = []
        self._lock = asyncio.Lock()

    @property
    def pending(self) -> int:
        """Number of events waiting for the next flush."""
        return len(self._batch)

    async def push(self, event: Event) -> None:
        """Append an event to the batch without waiting for transmission."""
        async with self._lock:
            self._batch.append(event)
        logger.debug(f"{type(event).__name__} event added to batch")

    async def flush(self) -> bool:
        """Drain the batch and send it.

        The batch is emptied whatever the transport outcome; failed batches are
        dropped, not retried.

        Returns:
            bool: True if a non-empty batch was sent, False otherwise
        """
        async with self._lock:
            events, self._batch = self._batch, []
            if not events:
                return False

            try:
                success = await self.transport.send(self.identity, events)
            except Exception as e:
                self.sink.record(ErrorKind.TRANSMISSION, f"Dropped batch of {len(events)} events", e)
                return False

            if not success:
                self.sink.record(ErrorKind.TRANSMISSION, f"Dropped batch of {len(events)} events")
                return False

        logger.debug(f"Flushed batch of {len(events)} events")
        return True
