"""Prometheus-style request counters for the service."""

from __future__ import annotations

from collections import Counter
from threading import Lock
from typing import Iterable

_COUNTERS: Counter[str] = Counter()
_LOCK = Lock()

_REQUESTS_METRIC = "scenariolab_requests_total"
_INFO_METRIC = "scenariolab_service_info"


def record_request(method: str, status_code: int) -> None:
    """Track an HTTP request labelled by method and status code."""

    labels = f'method="{method.lower()}",status="{status_code}"'
    with _LOCK:
        _COUNTERS[f"{_REQUESTS_METRIC}{{{labels}}}"] += 1


def _snapshot() -> Iterable[tuple[str, int]]:
    with _LOCK:
        return sorted(_COUNTERS.items())


def reset() -> None:
    """Clear recorded samples; used between test runs."""

    with _LOCK:
        _COUNTERS.clear()


def render(service_name: str, service_version: str) -> str:
    """Render metrics using the Prometheus text exposition format."""

    lines = [
        f"# HELP {_REQUESTS_METRIC} Count of HTTP requests processed by the service",
        f"# TYPE {_REQUESTS_METRIC} counter",
    ]
    samples = [f"{sample} {value}" for sample, value in _snapshot()]
    lines.extend(samples or [f'{_REQUESTS_METRIC}{{method="none",status="0"}} 0'])
    lines.extend(
        [
            f"# HELP {_INFO_METRIC} Static service metadata",
            f"# TYPE {_INFO_METRIC} gauge",
            f'{_INFO_METRIC}{{service="{service_name}",version="{service_version}"}} 1',
        ]
    )
    return "\n".join(lines) + "\n"


__all__ = ["record_request", "render", "reset"]
