"""Tests for the backend query client using a mocked HTTP transport."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List

import httpx
import pytest

from conftest import node_payload, vector_payload
from models.records import NodeValue
from services.metrics_client import (
    BackendError,
    BackendUnavailable,
    MalformedResponse,
    MetricsClient,
    MissingLabel,
    QueryTimeout,
)

BASE_URL = "http://metrics.test:8429"
QUERY = "avg_over_time(node_hwmon_temp_celsius[1m])"


def _client(handler: Callable[[httpx.Request], httpx.Response], label: str = "instance") -> MetricsClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MetricsClient(http_client, node_label=label)


def _json_handler(payload: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


def _query(client: MetricsClient):
    return asyncio.run(client.query(BASE_URL, QUERY, timeout=1.0))


def test_query_sends_instant_query_and_parses_values() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=node_payload({"10.0.0.1:9100": "70.5", "10.0.0.2:9100": "71"}))

    result = _query(_client(handler))

    assert result == {
        "10.0.0.1:9100": NodeValue(node="10.0.0.1:9100", value=70.5),
        "10.0.0.2:9100": NodeValue(node="10.0.0.2:9100", value=71.0),
    }
    assert len(requests) == 1
    assert requests[0].method == "GET"
    assert requests[0].url.path == "/api/v1/query"
    assert requests[0].url.params["query"] == QUERY


def test_query_records_nan_and_infinite_samples_as_absent() -> None:
    payload = node_payload({"blade001": "NaN", "blade002": "+Inf", "blade003": "64.0"})

    result = _query(_client(_json_handler(payload)))

    assert result["blade001"].value is None
    assert result["blade002"].value is None
    assert result["blade003"].value == 64.0


def test_query_keeps_hottest_sensor_per_node() -> None:
    payload = vector_payload(
        [
            ({"instance": "blade001", "sensor": "temp1"}, "61.0"),
            ({"instance": "blade001", "sensor": "temp2"}, "NaN"),
            ({"instance": "blade001", "sensor": "temp3"}, "74.25"),
            ({"instance": "blade002", "sensor": "temp1"}, "NaN"),
        ]
    )

    result = _query(_client(_json_handler(payload)))

    assert result == {
        "blade001": NodeValue(node="blade001", value=74.25),
        "blade002": NodeValue(node="blade002", value=None),
    }


def test_query_uses_configured_node_label() -> None:
    payload = node_payload({"blade007": "55.5"}, label="node")

    result = _query(_client(_json_handler(payload), label="node"))

    assert list(result) == ["blade007"]


def test_query_missing_node_label_raises() -> None:
    payload = vector_payload([({"job": "node-exporter"}, "50.0")])

    with pytest.raises(MissingLabel) as excinfo:
        _query(_client(_json_handler(payload)))

    assert excinfo.value.label_key == "instance"


def test_query_error_status_raises_backend_error() -> None:
    with pytest.raises(BackendError) as excinfo:
        _query(_client(_json_handler({"status": "error"}, status_code=503)))

    assert excinfo.value.status_code == 503


def test_query_timeout_raises_query_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(QueryTimeout):
        _query(_client(handler))


def test_query_connection_failure_raises_backend_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendUnavailable):
        _query(_client(handler))


@pytest.mark.parametrize(
    "body",
    [
        b"not json at all",
        b"[]",
        b'{"status": "success"}',
        b'{"data": {"result": {}}}',
        b'{"status": "error", "data": {"result": []}}',
        b'{"data": {"result": [{"metric": {"instance": "a"}}]}}',
        b'{"data": {"result": [{"metric": {"instance": "a"}, "value": [1, "hot"]}]}}',
        b'{"data": {"result": [{"metric": {"instance": "a"}, "value": [1]}]}}',
    ],
)
def test_query_malformed_body_raises(body: bytes) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body)

    with pytest.raises(MalformedResponse):
        _query(_client(handler))


def test_query_non_string_label_value_is_malformed() -> None:
    payload = vector_payload([({"instance": "blade001"}, "70"), ({"instance": 5}, "71")])

    with pytest.raises(MalformedResponse) as excinfo:
        _query(_client(_json_handler(payload)))

    assert excinfo.value.reason == "label values must be strings"


def test_query_node_names_rejects_non_string_pod_label() -> None:
    payload = vector_payload([({"pod": ["node-exporter"], "pod_ip": "10.0.0.1", "node": "blade001"}, "1")])

    with pytest.raises(MalformedResponse):
        asyncio.run(_client(_json_handler(payload)).query_node_names(BASE_URL, timeout=1.0))


def test_query_empty_result_is_empty_mapping() -> None:
    result = _query(_client(_json_handler(vector_payload([]))))

    assert result == {}


def test_query_node_names_maps_exporter_pods_only() -> None:
    payload = vector_payload(
        [
            ({"pod": "node-exporter-abc12", "pod_ip": "10.0.0.1", "node": "blade001"}, "1"),
            ({"pod": "node-exporter-def34", "pod_ip": "10.0.0.2", "node": "blade002"}, "1"),
            ({"pod": "coredns-5d78c9869d", "pod_ip": "10.0.0.9", "node": "blade001"}, "1"),
            ({"pod": "node-exporter-xyz99", "node": "blade003"}, "1"),
        ]
    )
    seen: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params["query"])
        return httpx.Response(200, json=payload)

    names = asyncio.run(_client(handler).query_node_names(BASE_URL, timeout=1.0))

    assert seen == ["kube_pod_info"]
    assert names == {"10.0.0.1:9100": "blade001", "10.0.0.2:9100": "blade002"}
