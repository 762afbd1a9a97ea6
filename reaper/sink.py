# reaper/sink.py
# Metrics sink interface the reconcilers write to; the Prometheus-backed one lives in observability.metrics

from __future__ import annotations
from typing import Protocol


class MetricsSink(Protocol):
    def reaped(self, namespace: str, method: str, amount: int = 1) -> None: ...
    def pods_detected(self, namespace: str, kind: str, value: int) -> None: ...
    def nodes_detected(self, group: str, category: str, value: int) -> None: ...
    def clear_nodes(self) -> None: ...


class NullSink:
    """Drops everything. Default when no sink is wired (tests, dry tooling)."""

    def reaped(self, namespace: str, method: str, amount: int = 1) -> None:
        pass

    def pods_detected(self, namespace: str, kind: str, value: int) -> None:
        pass

    def nodes_detected(self, group: str, category: str, value: int) -> None:
        pass

    def clear_nodes(self) -> None:
        pass


__all__ = ["MetricsSink", "NullSink"]
