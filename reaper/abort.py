# reaper/abort.py
# The kill switch: fatal errors from a tick end up here, get counted and logged, then stop the process.

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Optional
import logging
import sys

logger = logging.getLogger(__name__)

KillFn = Callable[[str], None]


@dataclass
class Abort:
    kill: KillFn
    counter: Optional[Any] = None  # prometheus Counter with a "reason" label

    def trigger(self, reason: str, detail: str = "") -> None:
        if self.counter is not None:
            self.counter.labels(reason=reason).inc()
        logger.critical("Shutting down: %s%s", reason, f" ({detail})" if detail else "")
        self.kill(reason)


# --- ready-to-use kill strategies ---

def exit_process(_: str) -> None:
    # non-zero exit lets the supervisor (Deployment restart / CronJob retry) take over
    sys.exit(1)


__all__ = ["Abort", "exit_process"]
