from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock
from typing import TypedDict

from prometheus_client import CollectorRegistry, Counter as PromCounter, generate_latest


class MetricsSnapshot(TypedDict):
    http_status_counts: dict[str, int]
    resolution_counts: dict[str, int]
    error_counts: dict[str, int]


@dataclass
class InMemoryMetrics:
    lock: Lock = field(default_factory=Lock)
    http_status_counts: Counter[int] = field(default_factory=Counter)
    resolution_counts: Counter[str] = field(default_factory=Counter)
    error_counts: Counter[str] = field(default_factory=Counter)
    _registry: CollectorRegistry = field(init=False, repr=False)
    _http_status_total: PromCounter = field(init=False, repr=False)
    _resolution_total: PromCounter = field(init=False, repr=False)
    _error_total: PromCounter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._build_registry()

    def _build_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_status_total = PromCounter(
            "tracks_http_status_total",
            "Total HTTP responses by status code.",
            ["status_code"],
            registry=self._registry,
        )
        self._resolution_total = PromCounter(
            "tracks_resolved_total",
            "Resolved learning tracks by outcome.",
            ["outcome"],
            registry=self._registry,
        )
        self._error_total = PromCounter(
            "tracks_resolution_error_total",
            "Failed resolution requests by error code.",
            ["error_code"],
            registry=self._registry,
        )

    def record_http_status(self, status_code: int) -> None:
        with self.lock:
            self.http_status_counts[status_code] += 1
            self._http_status_total.labels(status_code=str(status_code)).inc()

    def record_resolution(self, *, featured: bool, listed: int) -> None:
        with self.lock:
            if featured:
                self.resolution_counts["featured"] += 1
                self._resolution_total.labels(outcome="featured").inc()
            if listed:
                self.resolution_counts["listed"] += listed
                self._resolution_total.labels(outcome="listed").inc(listed)

    def record_error(self, error_code: str) -> None:
        with self.lock:
            self.error_counts[error_code] += 1
            self._error_total.labels(error_code=error_code).inc()

    def snapshot(self) -> MetricsSnapshot:
        with self.lock:
            return {
                "http_status_counts": {
                    str(status): count for status, count in self.http_status_counts.items()
                },
                "resolution_counts": dict(self.resolution_counts),
                "error_counts": dict(self.error_counts),
            }

    def reset(self) -> None:
        with self.lock:
            self.http_status_counts.clear()
            self.resolution_counts.clear()
            self.error_counts.clear()
            self._build_registry()

    def prometheus_text(self) -> str:
        return generate_latest(self._registry).decode("utf-8")


metrics = InMemoryMetrics()
