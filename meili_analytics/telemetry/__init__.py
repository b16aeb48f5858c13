"""This module provides the anonymous analytics agent of Meilisearch.

It batches identity traits and usage events and sends them to PostHog in the
background, without ever failing the host.
"""

from meili_analytics.telemetry.config import (
    AnalyticsConfig,
    is_analytics_globally_disabled,
    set_telemetry_log_level,
)
from meili_analytics.telemetry.batcher import EventBatcher
from meili_analytics.telemetry.errors import ErrorKind, ErrorSink
from meili_analytics.telemetry.identity import IdentityStore, load_identity
from meili_analytics.telemetry.models import Event, Identify, IndexStats, Stats, Track
from meili_analytics.telemetry.service import (
    AnalyticsService,
    get_analytics,
    init_analytics,
    publish,
    shutdown_analytics,
)
from meili_analytics.telemetry.ticker import StatsSource, Ticker
from meili_analytics.telemetry.transport import NullTransport, PostHogTransport, Transport

# Set analytics loggers to the level requested via environment variable
set_telemetry_log_level()

__all__ = [
    "AnalyticsConfig",
    "AnalyticsService",
    "ErrorKind",
    "ErrorSink",
    "Event",
    "EventBatcher",
    "Identify",
    "IdentityStore",
    "IndexStats",
    "NullTransport",
    "PostHogTransport",
    "Stats",
    "StatsSource",
    "Ticker",
    "Track",
    "Transport",
    "get_analytics",
    "init_analytics",
    "is_analytics_globally_disabled",
    "load_identity",
    "publish",
    "shutdown_analytics",
    "set_telemetry_log_level",
]
