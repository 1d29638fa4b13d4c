"""Domain models (Pydantic v2).

These describe *what* a lookup is made of, not *how* it is fetched: the
adapters translate them to and from the platform and control-plane wire
formats.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

LOOKBACK = timedelta(days=1)


class EntityKind(str, Enum):
    """Entity kinds accepted on the command line."""

    USER = "user"
    MACHINE = "machine"
    IMAGE = "image"

    @classmethod
    def names(cls) -> list[str]:
        return [kind.value for kind in cls]


class LookupOutcome(str, Enum):
    """Successful results of a dispatched lookup."""

    FOUND = "found"
    NOT_FOUND = "not_found"


class LookupQuery(BaseModel):
    """A parsed `kind:value` argument."""

    model_config = ConfigDict(frozen=True)

    kind: EntityKind = Field(..., description="Entity kind to search for.")
    value: str = Field(..., min_length=1, description="Attribute value to match.")


class TimeWindow(BaseModel):
    """Closed time range a search is restricted to (UTC)."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @classmethod
    def last_day(cls, now: datetime | None = None) -> "TimeWindow":
        """Window ending at `now` (default: current UTC time) and starting one day earlier."""

        end = now or datetime.now(timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        end = end.astimezone(timezone.utc)
        return cls(start=end - LOOKBACK, end=end)


class SearchFilter(BaseModel):
    """A single equality filter plus its time window."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(..., min_length=1, description="Platform field name.")
    expression: str = Field(default="eq", description="Comparison operator.")
    value: str = Field(..., description="Value compared against `field`.")
    window: TimeWindow


class UserRecord(BaseModel):
    """A user entity; only the machine association is used."""

    model_config = ConfigDict(extra="allow")

    mid: int = Field(..., description="Machine id the user was seen on.")


class PingResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = ""


class TelemetryEvent(BaseModel):
    """A honeyvent: one completed lookup's duration and search key."""

    model_config = ConfigDict(frozen=True)

    duration_ms: int = Field(..., ge=0)
    feature: str = Field(..., min_length=1)
    data: dict[str, str] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return {
            "durationMs": self.duration_ms,
            "feature": self.feature,
            "featureData": dict(self.data),
        }
