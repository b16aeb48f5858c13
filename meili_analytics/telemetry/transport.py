"""Transports sending event batches to the ingestion endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Protocol, Sequence, runtime_checkable

from posthog.request import batch_post

from meili_analytics.telemetry.config import DEFAULT_POSTHOG_HOST
from meili_analytics.telemetry.models import Event, Identify

logger = logging.getLogger("meili_analytics.telemetry.transport")


@runtime_checkable
class Transport(Protocol):
    """Sends a non-empty batch of events owned by ``identity``."""

    async def send(self, identity: str, events: Sequence[Event]) -> bool:
        """Send events.

        Returns:
            bool: True if sending was successful, False otherwise
        """
        ...


def to_posthog_message(identity: str, event: Event) -> Dict[str, Any]:
    """Convert an event to a PostHog batch message."""
    if isinstance(event, Identify):
        return {
            "event": "$identify",
            "distinct_id": identity,
            "properties": {"$set": event.traits},
            "timestamp": event.timestamp.isoformat(),
        }
    return {
        "event": event.event,
        "distinct_id": identity,
        "properties": event.properties,
        "timestamp": event.timestamp.isoformat(),
    }


class PostHogTransport:
    """Sends each batch as a single POST to the PostHog ``/batch/`` endpoint."""

    def __init__(
        self,
        api_key: str,
        host: str = DEFAULT_POSTHOG_HOST,
        timeout: int = 15,
    ):
        self.api_key = api_key
        self.host = host
        self.timeout = timeout

    def _post(self, messages: List[Dict[str, Any]]) -> None:
        batch_post(self.api_key, host=self.host, timeout=self.timeout, batch=messages)

    async def send(self, identity: str, events: Sequence[Event]) -> bool:
        messages = [to_posthog_message(identity, event) for event in events]
        try:
            # batch_post is blocking (requests), keep it off the event loop
            await asyncio.to_thread(self._post, messages)
        except Exception as e:
            logger.debug(f"Failed to send {len(messages)} events to PostHog: {e}")
            return False
        logger.debug(f"Sent {len(messages)} events to PostHog")
        return True


class NullTransport:
    """Accepts and discards every batch. Used when analytics are disabled."""

    async def send(self, identity: str, events: Sequence[Event]) -> bool:
        logger.debug(f"Analytics disabled, discarding {len(events)} events")
        return True
