from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from models.records import EnvironmentMode


_PRODUCTION_URL_ENV = "METRICS_PRODUCTION_URL"
_DEVELOPMENT_URL_ENV = "METRICS_DEVELOPMENT_URL"
_NODE_LABEL_ENV = "NODE_LABEL_KEY"
_QUERY_TIMEOUT_ENV = "QUERY_TIMEOUT_SECONDS"
_REQUEST_DEADLINE_ENV = "REQUEST_DEADLINE_SECONDS"
_RESOLVE_NAMES_ENV = "RESOLVE_NODE_NAMES"
_EXPORTER_PORT_ENV = "NODE_EXPORTER_PORT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_PRODUCTION_URL = (
    "http://vmsingle-vm-victoria-metrics-k8s-stack.victoria-metrics.svc:8429"
)
DEFAULT_DEVELOPMENT_URL = "http://localhost:8429"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    production_url: str
    development_url: str
    node_label_key: str
    query_timeout: float
    request_deadline: float
    resolve_node_names: bool
    node_exporter_port: int
    log_level: str

    def base_url_for(self, mode: EnvironmentMode) -> str:
        if mode is EnvironmentMode.development:
            return self.development_url
        return self.production_url


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_url_env(name: str, default: str) -> str:
    return _read_str_env(name, default).rstrip("/")


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        production_url=_read_url_env(_PRODUCTION_URL_ENV, DEFAULT_PRODUCTION_URL),
        development_url=_read_url_env(_DEVELOPMENT_URL_ENV, DEFAULT_DEVELOPMENT_URL),
        node_label_key=_read_str_env(_NODE_LABEL_ENV, "instance"),
        query_timeout=_read_positive_float(_QUERY_TIMEOUT_ENV, 5.0),
        request_deadline=_read_positive_float(_REQUEST_DEADLINE_ENV, 10.0),
        resolve_node_names=_read_bool(_RESOLVE_NAMES_ENV, False),
        node_exporter_port=_read_positive_int(_EXPORTER_PORT_ENV, 9100),
        log_level=_read_log_level("INFO"),
    )
