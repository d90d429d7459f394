from __future__ import annotations

import dataclasses
from typing import Any, Callable, Dict, Iterable, Tuple

import httpx
import pytest

from services.metrics_client import MetricsClient
from services.temperature import TemperatureService
from settings import Settings

PRODUCTION_URL = "http://metrics.prod.test:8429"
DEVELOPMENT_URL = "http://localhost:8429"


def vector_payload(series: Iterable[Tuple[Dict[str, str], Any]]) -> Dict[str, Any]:
    """Instant-query body in the shape Prometheus and VictoriaMetrics return."""

    return {
        "status": "success",
        "data": {
            "resultType": "vector",
            "result": [
                {"metric": dict(labels), "value": [1700000000.123, value]}
                for labels, value in series
            ],
        },
    }


def node_payload(values: Dict[str, str], label: str = "instance") -> Dict[str, Any]:
    return vector_payload(
        ({"__name__": "node_hwmon_temp_celsius", label: node, "chip": "platform_coretemp_0"}, value)
        for node, value in values.items()
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        production_url=PRODUCTION_URL,
        development_url=DEVELOPMENT_URL,
        node_label_key="instance",
        query_timeout=1.0,
        request_deadline=2.0,
        resolve_node_names=False,
        node_exporter_port=9100,
        log_level="INFO",
    )


@pytest.fixture
def make_service(settings: Settings) -> Callable[..., TemperatureService]:
    def factory(handler: Callable[[httpx.Request], Any], **overrides: Any) -> TemperatureService:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service_settings = dataclasses.replace(settings, **overrides)
        client = MetricsClient(http_client, node_label=service_settings.node_label_key)
        return TemperatureService(client=client, settings=service_settings)

    return factory
