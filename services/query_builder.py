"""PromQL expressions sent to the metrics backend."""

from __future__ import annotations

from models.records import AggregationWindow

TEMPERATURE_METRIC = "node_hwmon_temp_celsius"
POD_INFO_METRIC = "kube_pod_info"


def build_query(window: AggregationWindow) -> str:
    """Average of the temperature metric over the window's trailing duration."""
    return f"avg_over_time({TEMPERATURE_METRIC}[{window.duration}])"
