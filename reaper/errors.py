# reaper/errors.py
# Exception taxonomy: startup failures, recoverable parse/API errors, and the fatal errors that abort the process.

from __future__ import annotations
from typing import Optional


class ReaperError(Exception):
    """Base class for everything the reaper raises on purpose."""


# --- startup (fatal before the first tick) ---

class ConfigError(ReaperError):
    """A configuration value is present but malformed."""

    def __init__(self, name: str, value: object, expected: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"{name}={value!r} is invalid, expected {expected}")


class BootstrapError(ReaperError):
    """Cannot load cluster credentials or build an API client."""


# --- recoverable ---

class DurationError(ReaperError, ValueError):
    """A duration string does not parse."""


class ClusterError(ReaperError):
    """
    A single cluster API call failed.
    status is the HTTP status when the API server answered, None otherwise.
    """

    def __init__(self, op: str, target: str, message: str, status: Optional[int] = None) -> None:
        self.op = op
        self.target = target
        self.status = status
        detail = f" (status={status})" if status is not None else ""
        super().__init__(f"{op} {target} failed{detail}: {message}")

    @property
    def not_found(self) -> bool:
        return self.status == 404


# --- fatal: the process must stop ---

class FatalReapError(ReaperError):
    """
    Raised from inside a tick when the failure policy says abort.
    `reason` is a short stable token used as a metric label.
    """
    reason = "fatal"


class PodListError(FatalReapError):
    reason = "pod_list_failed"


class EvictedCleanupError(FatalReapError):
    reason = "evicted_cleanup_failed"


__all__ = [
    "ReaperError", "ConfigError", "BootstrapError", "DurationError",
    "ClusterError", "FatalReapError", "PodListError", "EvictedCleanupError",
]
