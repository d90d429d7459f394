"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class AggregationWindow(str, Enum):
    """Trailing aggregation periods queried for every request."""

    minute = "minute"
    hour = "hour"
    day = "day"

    @property
    def duration(self) -> str:
        return _DURATIONS[self]


_DURATIONS = {
    AggregationWindow.minute: "1m",
    AggregationWindow.hour: "1h",
    AggregationWindow.day: "1d",
}


class EnvironmentMode(str, Enum):
    """Which metrics backend a request is routed to."""

    production = "production"
    development = "development"


@dataclass(frozen=True, slots=True)
class NodeValue:
    """A single node reading; ``value`` is None for NaN or missing samples."""

    node: str
    value: Optional[float]


WindowResult = Dict[str, NodeValue]


@dataclass(slots=True)
class TemperatureRecord:
    """Merged readings for one node across the three windows."""

    node: str
    minutely: Optional[float] = None
    hourly: Optional[float] = None
    daily: Optional[float] = None


TemperatureReport = List[TemperatureRecord]
