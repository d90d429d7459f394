"""Merging of per-window node readings into a temperature report."""

from __future__ import annotations

from typing import Mapping

from models.records import NodeValue, TemperatureRecord, TemperatureReport, WindowResult
from services.metrics_client import hottest


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def merge(
        self,
        minute: WindowResult,
        hour: WindowResult,
        day: WindowResult,
    ) -> TemperatureReport:
        """Build one record per node seen in any window, sorted by node.

        A node missing from a window keeps ``None`` for that reading.
        """
        nodes = set(minute) | set(hour) | set(day)
        return [
            TemperatureRecord(
                node=node,
                minutely=_value_of(minute, node),
                hourly=_value_of(hour, node),
                daily=_value_of(day, node),
            )
            for node in sorted(nodes)
        ]

    def rename(self, result: WindowResult, names: Mapping[str, str]) -> WindowResult:
        """Relabel nodes through ``names``; unmapped identifiers are kept."""
        renamed: WindowResult = {}
        for node, reading in result.items():
            name = names.get(node, node)
            value = reading.value
            previous = renamed.get(name)
            if previous is not None:
                value = hottest(previous.value, value)
            renamed[name] = NodeValue(node=name, value=value)
        return renamed


def _value_of(result: WindowResult, node: str) -> float | None:
    reading = result.get(node)
    return reading.value if reading is not None else None
