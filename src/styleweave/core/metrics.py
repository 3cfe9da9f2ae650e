"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics adapters for build coordination observability.
"""

from __future__ import annotations

import threading
import weakref
from collections import Counter
from collections.abc import Mapping
from typing import Any, Protocol


class BuildMetrics(Protocol):
    """Minimal metrics interface for transform/load instrumentation."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""

    def observe(self, name: str, value: float) -> None:
        """Record one duration/size observation."""


class NoOpBuildMetrics:
    """Default metrics sink when no metrics backend is provided."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags

    def observe(self, name: str, value: float) -> None:
        _ = name
        _ = value


class InMemoryBuildMetrics:
    """Process-local counters and summed observations, handy for tests."""

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.totals: dict[str, float] = {}

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = tags
        self.counters[name] += value

    def observe(self, name: str, value: float) -> None:
        self.totals[name] = self.totals.get(name, 0.0) + value

_collector_lock = threading.Lock()
_collectors: "weakref.WeakKeyDictionary[Any, dict[tuple[str, str, str, tuple[str, ...]], Any]]" = (
    weakref.WeakKeyDictionary()
)


class PrometheusBuildMetrics:
    """
    Prometheus-backed build metrics adapter.

    Requires `prometheus_client` package. Collectors are shared per
    registry, so several adapters in one process (a plugin and a loader)
    can each own an instance without registering duplicate timeseries.
    """

    def __init__(self, *, namespace: str = "styleweave", registry: Any = None) -> None:
        try:
            import prometheus_client
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusBuildMetrics requires `prometheus_client` to be installed."
            ) from exc

        self._client = prometheus_client
        self._namespace = namespace
        self.registry = registry if registry is not None else prometheus_client.REGISTRY

    def _collector(self, kind: str, name: str, label_names: tuple[str, ...]) -> Any:
        key = (self._namespace, kind, name, label_names)
        with _collector_lock:
            known = _collectors.setdefault(self.registry, {})
            collector = known.get(key)
            if collector is None:
                factory = self._client.Counter if kind == "counter" else self._client.Summary
                collector = factory(
                    name=name,
                    documentation=f"styleweave build {kind} {name}",
                    namespace=self._namespace,
                    labelnames=label_names,
                    registry=self.registry,
                )
                known[key] = collector
        return collector

    def incr(self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None) -> None:
        tags = tags or {}
        label_names = tuple(sorted(tags))
        counter = self._collector("counter", name, label_names)
        if label_names:
            counter = counter.labels(*(str(tags[label]) for label in label_names))
        counter.inc(value)

    def observe(self, name: str, value: float) -> None:
        self._collector("summary", name, ()).observe(value)
