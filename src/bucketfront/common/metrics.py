"""Metrics utilities for exposing Prometheus-formatted data."""

from __future__ import annotations

from typing import Dict, Iterable


def _header(name: str, kind: str, description: str) -> list[str]:
    return [f"# HELP {name} {description}", f"# TYPE {name} {kind}"]


class Counter:
    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description
        self._value = 0.0

    def inc(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("counters only go up")
        self._value += amount

    @property
    def value(self) -> float:
        return self._value

    def render(self) -> str:
        lines = _header(self.name, "counter", self.description)
        lines.append(f"{self.name} {self._value}")
        return "\n".join(lines) + "\n"


class Histogram:
    def __init__(self, name: str, buckets: Iterable[float], description: str = "") -> None:
        self.name = name
        self.description = description
        self._bounds = sorted(buckets) + [float("inf")]
        self._counts = [0] * len(self._bounds)
        self._sum = 0.0
        self._count = 0

    def observe(self, value: float) -> None:
        self._count += 1
        self._sum += value
        for index, bound in enumerate(self._bounds):
            if value <= bound:
                self._counts[index] += 1

    @property
    def count(self) -> int:
        return self._count

    def render(self) -> str:
        lines = _header(self.name, "histogram", self.description)
        for bound, count in zip(self._bounds, self._counts):
            label = "+Inf" if bound == float("inf") else bound
            lines.append(f'{self.name}_bucket{{le="{label}"}} {count}')
        lines.append(f"{self.name}_sum {self._sum}")
        lines.append(f"{self.name}_count {self._count}")
        return "\n".join(lines) + "\n"


class MetricsRegistry:
    def __init__(self) -> None:
        self._metrics: Dict[str, object] = {}

    def register(self, metric):
        # Re-registering by name keeps the first instance so module reloads share state.
        return self._metrics.setdefault(metric.name, metric)

    def render(self) -> str:
        return "\n".join(metric.render() for metric in self._metrics.values()) + "\n"


GLOBAL_REGISTRY = MetricsRegistry()
