"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import TemperatureRecord


def _round(value: Optional[float], digits: int) -> Optional[float]:
    """Round halves away from zero; builtin ``round`` rounds them to even."""
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class TemperatureMeasurement(BaseModel):
    """Readings for one node; a null field means the window had no data."""

    node: str
    minutely_temperature: Optional[float] = Field(
        default=None, description="Average over the trailing minute, one decimal."
    )
    hourly_temperature: Optional[float] = Field(
        default=None, description="Average over the trailing hour, whole degrees."
    )
    daily_temperature: Optional[float] = Field(
        default=None, description="Average over the trailing day, one decimal."
    )

    @classmethod
    def from_record(cls, record: TemperatureRecord) -> "TemperatureMeasurement":
        return cls(
            node=record.node,
            minutely_temperature=_round(record.minutely, 1),
            hourly_temperature=_round(record.hourly, 0),
            daily_temperature=_round(record.daily, 1),
        )


class TemperatureResponse(BaseModel):
    """Full report returned by ``GET /api/temperatures``."""

    measurements: List[TemperatureMeasurement] = Field(default_factory=list)
