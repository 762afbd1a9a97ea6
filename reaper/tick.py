# reaper/tick.py
# Tick driver: one pass of pod reaping over every configured namespace, then node reaping; daemon loop or one-shot.

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from .config import ReaperConfig
from .model import UTCNOW, TickReport
from .nodes import NodeLifetimeReconciler
from .pods import PodLifetimeReconciler

logger = logging.getLogger(__name__)


class TickDriver:
    """
    Runs ticks on the calling thread. Nothing carries over between ticks except
    what the cluster and the metrics registry remember.

    FatalReapError raised by a reconciler is not caught here; it ends the
    loop and is handled by the caller.
    """

    def __init__(
        self,
        cfg: ReaperConfig,
        pods: PodLifetimeReconciler,
        nodes: NodeLifetimeReconciler,
        *,
        tick_counter: Optional[Any] = None,
    ) -> None:
        self.cfg = cfg
        self.pods = pods
        self.nodes = nodes
        self.tick_counter = tick_counter

        self._stop = threading.Event()
        self._ticks = 0
        self._last_tick_at: Optional[datetime] = None

    # ---------------- Lifecycle ----------------

    def run(self) -> int:
        """Run according to the configured mode. Returns the number of completed ticks."""
        if self.cfg.CRON_JOB:
            self.run_once()
        else:
            self.run_forever()
        return self._ticks

    def run_forever(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            if self._stop.is_set():
                break
            logger.info("Now sleeping for %d seconds", self.cfg.INTERVAL_SECONDS)
            self._stop.wait(timeout=self.cfg.INTERVAL_SECONDS)

    def stop(self) -> None:
        """Ask the loop to exit after the current tick (or right away if sleeping)."""
        self._stop.set()

    # ---------------- One tick ----------------

    def run_once(self) -> TickReport:
        report = TickReport()
        policy = self.cfg.reap_policy()

        if not policy.namespaces:
            logger.info("No namespaces to monitor")
        for ns in policy.namespaces:
            report.pods.append(self.pods.reconcile_namespace(ns, policy))

        report.node_groups = self.nodes.reconcile_nodes(self.cfg.node_policy())

        self._ticks += 1
        self._last_tick_at = UTCNOW()
        if self.tick_counter is not None:
            self.tick_counter.inc()
        logger.debug("tick %d done: %d pods reaped across %d namespaces",
                     self._ticks, report.killed, len(report.pods))
        return report

    # ---------------- Introspection ----------------

    def health(self) -> Dict[str, Any]:
        return {
            "ticks": self._ticks,
            "last_tick_at": self._last_tick_at.isoformat() if self._last_tick_at else None,
            "stopping": self._stop.is_set(),
        }


__all__ = ["TickDriver"]
