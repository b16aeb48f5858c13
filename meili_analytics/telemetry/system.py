"""One-time snapshot of the host environment reported at startup."""

from __future__ import annotations

import logging
import platform
from typing import Any, Callable, Dict, Optional

import psutil

from meili_analytics import __version__
from meili_analytics.telemetry.config import AnalyticsConfig
from meili_analytics.telemetry.errors import ErrorKind, ErrorSink

logger = logging.getLogger("meili_analytics.telemetry.system")


def _collect(name: str, fn: Callable[[], Any], sink: ErrorSink) -> Any:
    try:
        return fn()
    except Exception as e:
        sink.record(ErrorKind.SYSTEM_INFO, f"Could not read {name}", e)
        return None


def _avg_cpu_frequency() -> Optional[int]:
    freq = psutil.cpu_freq()
    if freq is None:
        return None
    return int(freq.current)


def _disk_space() -> Dict[str, int]:
    total = 0
    available = 0
    for partition in psutil.disk_partitions(all=False):
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError:
            # Unmounted or inaccessible partitions are skipped
            continue
        total += usage.total
        available += usage.free
    return {"total": total, "available": available}


def system_configuration(sink: Optional[ErrorSink] = None) -> Dict[str, Any]:
    """Collect OS, memory, CPU and disk facts of the host."""
    sink = sink or ErrorSink()
    memory = _collect("memory", psutil.virtual_memory, sink)
    disks = _collect("disk space", _disk_space, sink) or {}

    return {
        "Distribution": platform.system(),
        "Kernel Version": platform.release(),
        "OS Version": platform.version(),
        "Total RAM (in KB)": memory.total // 1024 if memory else None,
        "Used RAM (in KB)": memory.used // 1024 if memory else None,
        "Nb CPUs": _collect("cpu count", psutil.cpu_count, sink),
        "Avg CPU frequency": _collect("cpu frequency", _avg_cpu_frequency, sink),
        "Total disk space (in bytes)": disks.get("total"),
        "Available disk space (in bytes)": disks.get("available"),
    }


def compute_traits(config: AnalyticsConfig, sink: Optional[ErrorSink] = None) -> Dict[str, Any]:
    """Build the trait snapshot pushed once when the service starts.

    Args:
        config: Analytics configuration holding the reported host options
        sink: Where collection failures are recorded

    Returns:
        Traits grouped under "System configuration" and "Meilisearch configuration"
    """
    traits = {
        "System configuration": system_configuration(sink),
        "Meilisearch configuration": {
            "Package version": __version__,
            **config.to_dict(),
        },
    }
    logger.debug(f"Computed startup traits: {traits}")
    return traits
