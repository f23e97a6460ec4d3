import math
from numbers import Real
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator


def _finite(value: Any) -> Optional[float]:
    """Numeric value (or numeric string) as a finite float, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, Real):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


class WatchStat(BaseModel):
    """
    Per-file aggregate watch record, stored under the watchStats slot.
    Field aliases keep the persisted camelCase document format.

    Reads are lenient: an out-of-shape field falls back to its own default
    (fractional values are rounded half-up) without discarding the others.
    """
    last_watched: int = Field(0, alias="lastWatched", description="ms since epoch")
    total_minutes: float = Field(0.0, alias="totalMinutes")
    last_position_sec: Optional[int] = Field(None, alias="lastPositionSec")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_validator("last_watched", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> int:
        value = _finite(v)
        if value is None or value < 0:
            return 0
        return math.floor(value + 0.5)

    @field_validator("total_minutes", mode="before")
    @classmethod
    def _coerce_minutes(cls, v: Any) -> float:
        value = _finite(v)
        if value is None or value < 0:
            return 0.0
        return value

    @field_validator("last_position_sec", mode="before")
    @classmethod
    def _coerce_position(cls, v: Any) -> Optional[int]:
        value = _finite(v)
        if value is None:
            return None
        return math.floor(max(0.0, value) + 0.5)


class WatchStatsView(WatchStat):
    """WatchStat plus the rolling 14-day total, as returned to callers."""
    last14_minutes: int = Field(0, alias="last14Minutes")


class DailyTotals(BaseModel):
    """Per-date watched seconds across files, oldest date first."""
    dates: List[str] = Field(default_factory=list)
    seconds: List[int] = Field(default_factory=list)

    @property
    def minutes(self) -> List[int]:
        return [math.floor(s / 60 + 0.5) for s in self.seconds]
