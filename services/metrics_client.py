"""Instant-query client for a Prometheus-compatible metrics backend."""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Dict, List, Optional, Tuple

import httpx

from models.records import NodeValue, WindowResult
from services.query_builder import POD_INFO_METRIC

logger = logging.getLogger(__name__)

QUERY_PATH = "/api/v1/query"

Series = Tuple[Dict[str, str], Any]


class QueryError(Exception):
    """Base class for failures of a single backend query."""


class QueryTimeout(QueryError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"query exceeded {timeout:g}s timeout")
        self.timeout = timeout


class BackendUnavailable(QueryError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"backend unreachable: {reason}")
        self.reason = reason


class BackendError(QueryError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"backend responded with HTTP {status_code}")
        self.status_code = status_code


class MalformedResponse(QueryError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"malformed backend response: {reason}")
        self.reason = reason


class MissingLabel(QueryError):
    def __init__(self, label_key: str) -> None:
        super().__init__(f"series is missing the {label_key!r} label")
        self.label_key = label_key


class MetricsClient:
    """Runs one instant query per call over a shared ``httpx.AsyncClient``.

    The HTTP client is owned by the caller and only read here, so a single
    pooled client can serve concurrent queries and tests can hand in one
    built on ``httpx.MockTransport``.
    """

    def __init__(self, http_client: httpx.AsyncClient, node_label: str = "instance") -> None:
        self.http_client = http_client
        self.node_label = node_label

    async def query(self, base_url: str, query: str, timeout: float) -> WindowResult:
        """Execute ``query`` and return the reading per node.

        Several series can carry the same node identifier (one per hwmon
        sensor); the hottest finite reading is kept for that node.
        """
        result: WindowResult = {}
        for labels, raw_value in await self._fetch(base_url, query, timeout):
            node = labels.get(self.node_label)
            if not node:
                raise MissingLabel(self.node_label)
            value = _parse_sample(raw_value)
            previous = result.get(node)
            if previous is not None:
                value = hottest(previous.value, value)
            result[node] = NodeValue(node=node, value=value)
        return result

    async def query_node_names(
        self, base_url: str, timeout: float, exporter_port: int = 9100
    ) -> Dict[str, str]:
        """Map node-exporter scrape targets (``<pod_ip>:<port>``) to node names."""
        names: Dict[str, str] = {}
        for labels, _ in await self._fetch(base_url, POD_INFO_METRIC, timeout):
            if "node-exporter" not in labels.get("pod", ""):
                continue
            pod_ip = labels.get("pod_ip")
            node = labels.get("node")
            if pod_ip and node:
                names[f"{pod_ip}:{exporter_port}"] = node
        return names

    async def _fetch(self, base_url: str, query: str, timeout: float) -> List[Series]:
        url = f"{base_url.rstrip('/')}{QUERY_PATH}"
        logger.debug("Querying metrics backend", extra={"query": query})
        start_time = time.perf_counter()
        try:
            response = await self.http_client.get(
                url, params={"query": query}, timeout=timeout
            )
        except httpx.TimeoutException as exc:
            logger.warning("Metrics query timed out", extra={"query": query})
            raise QueryTimeout(timeout) from exc
        except httpx.RequestError as exc:
            logger.warning(
                "Metrics backend unreachable", extra={"query": query, "reason": str(exc)}
            )
            raise BackendUnavailable(str(exc)) from exc

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        if not response.is_success:
            logger.warning(
                "Metrics backend returned an error status",
                extra={
                    "query": query,
                    "status_code": response.status_code,
                    "elapsed_ms": elapsed_ms,
                },
            )
            raise BackendError(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponse("body is not valid JSON") from exc

        series = _extract_series(payload)
        logger.debug(
            "Metrics query completed",
            extra={"query": query, "series_count": len(series), "elapsed_ms": elapsed_ms},
        )
        return series


def hottest(current: Optional[float], candidate: Optional[float]) -> Optional[float]:
    if current is None:
        return candidate
    if candidate is None:
        return current
    return max(current, candidate)


def _extract_series(payload: Any) -> List[Series]:
    if not isinstance(payload, dict):
        raise MalformedResponse("top-level JSON value is not an object")

    status = payload.get("status")
    if status is not None and status != "success":
        raise MalformedResponse(f"query status is {status!r}")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise MalformedResponse("missing 'data' object")
    result = data.get("result")
    if not isinstance(result, list):
        raise MalformedResponse("missing 'data.result' list")

    series: List[Series] = []
    for item in result:
        if not isinstance(item, dict):
            raise MalformedResponse("result entry is not an object")
        labels = item.get("metric")
        sample = item.get("value")
        if not isinstance(labels, dict):
            raise MalformedResponse("result entry has no 'metric' labels")
        if not all(isinstance(key, str) and isinstance(value, str) for key, value in labels.items()):
            raise MalformedResponse("label values must be strings")
        if not isinstance(sample, (list, tuple)) or len(sample) != 2:
            raise MalformedResponse("result entry has no [timestamp, value] sample")
        series.append((labels, sample[1]))
    return series


def _parse_sample(raw: Any) -> Optional[float]:
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise MalformedResponse(f"sample value {raw!r} is not numeric")
    try:
        value = float(raw)
    except ValueError as exc:
        raise MalformedResponse(f"sample value {raw!r} is not numeric") from exc
    if not math.isfinite(value):
        return None
    return value
