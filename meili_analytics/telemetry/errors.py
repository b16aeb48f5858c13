"""Single sink for every failure the analytics agent recovers from locally."""

from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger("meili_analytics.telemetry")


class ErrorKind(str, Enum):
    """Kinds of failures recovered without informing the host."""

    IDENTITY_STORAGE = "identity_storage"
    TRANSMISSION = "transmission"
    STATS_UNAVAILABLE = "stats_unavailable"
    QUEUE_FULL = "queue_full"
    INVALID_EVENT = "invalid_event"
    TICK_FAILED = "tick_failed"
    SYSTEM_INFO = "system_info"


class ErrorSink:
    """Counts and logs recovered failures.

    Nothing recorded here is ever raised to the host; the counters exist so
    operators (and tests) can see what was swallowed.
    """

    def __init__(self) -> None:
        self.counts: Counter = Counter()
        self.last_messages: Dict[ErrorKind, str] = {}

    def record(self, kind: ErrorKind, message: str, exc: Optional[BaseException] = None) -> None:
        """Record a recovered failure.

        Args:
            kind: Category of the failure
            message: Human readable description
            exc: The exception that caused it, if any
        """
        self.counts[kind] += 1
        if exc is not None:
            message = f"{message}: {exc}"
        self.last_messages[kind] = message
        logger.warning(f"Analytics {kind.value} error: {message}")

    def count(self, kind: ErrorKind) -> int:
        return self.counts[kind]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def to_dict(self) -> Dict[str, int]:
        return {kind.value: count for kind, count in self.counts.items()}
