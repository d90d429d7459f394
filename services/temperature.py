"""Concurrent orchestration of the per-window temperature queries."""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import Any, Dict, List, Optional

import httpx

from models.records import (
    AggregationWindow,
    EnvironmentMode,
    TemperatureReport,
    WindowResult,
)
from services.aggregator import Aggregator
from services.metrics_client import MetricsClient, QueryError
from services.query_builder import build_query
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

WINDOWS = (AggregationWindow.minute, AggregationWindow.hour, AggregationWindow.day)


class ServiceError(Exception):
    """Base class for failures of a whole temperature request."""


class PartialBackendFailure(ServiceError):
    def __init__(self, window: AggregationWindow, cause: QueryError) -> None:
        super().__init__(f"{window.value} query failed: {cause}")
        self.window = window
        self.cause = cause


class OverallTimeout(ServiceError):
    def __init__(self, deadline: float) -> None:
        super().__init__(f"request exceeded {deadline:g}s deadline")
        self.deadline = deadline


class TemperatureService:
    """Coordinates the minute/hour/day queries and merges their results."""

    def __init__(
        self,
        client: MetricsClient,
        settings: Settings,
        aggregator: Optional[Aggregator] = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.aggregator = aggregator or Aggregator()

    async def get_temperatures(
        self, mode: EnvironmentMode = EnvironmentMode.production
    ) -> TemperatureReport:
        """Query all windows concurrently and return the merged report.

        Any failed window fails the whole request with
        :class:`PartialBackendFailure`; no partial report is returned.
        """
        base_url = self.settings.base_url_for(mode)
        deadline = self.settings.request_deadline
        start_time = time.perf_counter()

        names_task: Optional[asyncio.Task[Dict[str, str]]] = None
        if self.settings.resolve_node_names:
            names_task = asyncio.ensure_future(self._lookup_node_names(base_url))

        try:
            try:
                outcomes = await asyncio.wait_for(self._run_queries(base_url), timeout=deadline)
            except asyncio.TimeoutError as exc:
                logger.warning(
                    "Temperature request exceeded its deadline",
                    extra={"environment": mode.value, "reason": f"deadline={deadline:g}s"},
                )
                raise OverallTimeout(deadline) from exc

            results = self._window_results(mode, outcomes)
            remaining = deadline - (time.perf_counter() - start_time)
            names = await self._await_node_names(names_task, remaining)
        finally:
            if names_task is not None:
                names_task.cancel()

        if names:
            results = {
                window: self.aggregator.rename(result, names)
                for window, result in results.items()
            }

        report = self.aggregator.merge(
            results[AggregationWindow.minute],
            results[AggregationWindow.hour],
            results[AggregationWindow.day],
        )
        logger.info(
            "Temperature report built",
            extra={
                "environment": mode.value,
                "node_count": len(report),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return report

    async def aclose(self) -> None:
        """Release the pooled HTTP connections."""
        await self.client.http_client.aclose()

    async def _run_queries(self, base_url: str) -> List[Any]:
        timeout = self.settings.query_timeout
        return await asyncio.gather(
            *(self.client.query(base_url, build_query(window), timeout) for window in WINDOWS),
            return_exceptions=True,
        )

    @staticmethod
    def _window_results(
        mode: EnvironmentMode, outcomes: List[Any]
    ) -> Dict[AggregationWindow, WindowResult]:
        results: Dict[AggregationWindow, WindowResult] = {}
        for window, outcome in zip(WINDOWS, outcomes):
            if isinstance(outcome, QueryError):
                logger.warning(
                    "Temperature window query failed",
                    extra={
                        "environment": mode.value,
                        "window": window.value,
                        "reason": str(outcome),
                    },
                )
                raise PartialBackendFailure(window, outcome) from outcome
            if isinstance(outcome, BaseException):
                raise outcome
            results[window] = outcome
        return results

    async def _lookup_node_names(self, base_url: str) -> Dict[str, str]:
        try:
            return await self.client.query_node_names(
                base_url,
                self.settings.query_timeout,
                exporter_port=self.settings.node_exporter_port,
            )
        except QueryError as exc:
            logger.warning(
                "Node name lookup failed, using raw identifiers",
                extra={"reason": str(exc)},
            )
            return {}

    @staticmethod
    async def _await_node_names(
        task: Optional[asyncio.Task[Dict[str, str]]], remaining: float
    ) -> Dict[str, str]:
        # Bounded by what is left of the request deadline once the windows return.
        if task is None:
            return {}
        done, _ = await asyncio.wait({task}, timeout=max(remaining, 0.0))
        if not done:
            logger.warning(
                "Node name lookup did not finish before the deadline, using raw identifiers",
                extra={"reason": f"remaining={max(remaining, 0.0):.3f}s"},
            )
            return {}
        return task.result()


@lru_cache
def build_default_service() -> TemperatureService:
    """Factory that wires the service with a pooled HTTP client."""
    settings = get_settings()
    http_client = httpx.AsyncClient(timeout=settings.query_timeout)
    client = MetricsClient(http_client, node_label=settings.node_label_key)
    return TemperatureService(client=client, settings=settings)
