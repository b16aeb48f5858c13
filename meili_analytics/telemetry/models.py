"""Models for analytics events and host stats."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Identify(BaseModel):
    """Replaces or updates the known traits of the installation."""

    type: Literal["identify"] = "identify"
    traits: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class Track(BaseModel):
    """A named occurrence with optional properties."""

    type: Literal["track"] = "track"
    event: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


Event = Union[Identify, Track]


class IndexStats(BaseModel):
    """Stats of a single index as reported by the host."""

    number_of_documents: int = 0


class Stats(BaseModel):
    """Stats returned by the host's stats source."""

    database_size: int = 0
    indexes: Dict[str, IndexStats] = Field(default_factory=dict)
