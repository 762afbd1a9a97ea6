# reaper/config.py
# Immutable reaper configuration resolved once from the environment; malformed values fail at startup.

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple
import logging
import os

from .errors import ConfigError
from .model import ALL_NAMESPACES, NodePolicy, ReapPolicy

# ---------- Helpers ----------
_TRUE = {"1", "t", "true", "y", "yes", "on"}
_FALSE = {"0", "f", "false", "n", "no", "off"}


def _to_bool(name: str, v: Optional[str], default: bool) -> bool:
    if v is None:
        return default
    s = str(v).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ConfigError(name, v, "a boolean (true/false)")


def _to_int(name: str, v: Optional[str], default: int, *, minimum: int = 0) -> int:
    if v is None or str(v).strip() == "":
        return default
    try:
        n = int(str(v).strip())
    except ValueError:
        raise ConfigError(name, v, "an integer") from None
    if n < minimum:
        raise ConfigError(name, v, f"an integer >= {minimum}")
    return n


def _to_namespaces(v: Optional[str]) -> Tuple[str, ...]:
    if not v:
        return ()
    parts = [p.strip() for p in v.split(",")]
    parts = [p for p in parts if p]
    if len(parts) == 1 and parts[0].lower() == "all":
        return (ALL_NAMESPACES,)
    return tuple(parts)


def _to_log_level(name: str, v: Optional[str], default: str) -> str:
    level = (v or default).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(name, v, "a logging level name (DEBUG, INFO, WARNING, ERROR)")
    return level


def default_kubeconfig(environ: Mapping[str, str] = os.environ) -> str:
    home = environ.get("HOME") or environ.get("USERPROFILE") or ""  # USERPROFILE on windows
    if not home:
        return ""
    return str(Path(home) / ".kube" / "config")


# ---------- Config Dataclass ----------
@dataclass(frozen=True)
class ReaperConfig:
    # Pod reaping
    MAX_REAPER_COUNT_PER_RUN: int = 30    # TTL reaps per namespace per tick
    NAMESPACES: Tuple[str, ...] = ()      # () disables pod reaping; ("",) is every namespace
    EVICT: bool = False                   # evict (respects PDBs) instead of delete
    REAP_EVICTED_PODS: bool = False       # delete pods whose status reason says Evicted

    # Node reaping (raw duration; parsed on every tick, not here)
    NODE_LIFE_TIME: Optional[str] = None

    # Driver
    INTERVAL_SECONDS: int = 60
    CRON_JOB: bool = False                # one tick then exit

    # Cluster access
    REMOTE_EXEC: bool = False             # in-cluster service account
    KUBECONFIG: str = field(default_factory=default_kubeconfig)

    # HTTP / logging
    HTTP_PORT: int = 8080
    LOG_LEVEL: str = "DEBUG"

    def reap_policy(self) -> ReapPolicy:
        return ReapPolicy(
            max_reap_count=self.MAX_REAPER_COUNT_PER_RUN,
            evict=self.EVICT,
            reap_evicted=self.REAP_EVICTED_PODS,
            namespaces=self.NAMESPACES,
        )

    def node_policy(self) -> NodePolicy:
        return NodePolicy(node_lifetime=self.NODE_LIFE_TIME)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, *,
                 kubeconfig: Optional[str] = None) -> "ReaperConfig":
        env = os.environ if environ is None else environ
        node_life_time = env.get("NODE_LIFE_TIME") or None
        return cls(
            MAX_REAPER_COUNT_PER_RUN=_to_int("MAX_REAPER_COUNT_PER_RUN", env.get("MAX_REAPER_COUNT_PER_RUN"), 30),
            NAMESPACES=_to_namespaces(env.get("REAPER_NAMESPACES")),
            EVICT=_to_bool("EVICT", env.get("EVICT"), False),
            REAP_EVICTED_PODS=_to_bool("REAP_EVICTED_PODS", env.get("REAP_EVICTED_PODS"), False),
            NODE_LIFE_TIME=node_life_time,
            INTERVAL_SECONDS=_to_int("REAPER_INTERVAL_IN_SEC", env.get("REAPER_INTERVAL_IN_SEC"), 60, minimum=1),
            CRON_JOB=_to_bool("CRON_JOB", env.get("CRON_JOB"), False),
            REMOTE_EXEC=_to_bool("REMOTE_EXEC", env.get("REMOTE_EXEC"), False),
            KUBECONFIG=kubeconfig if kubeconfig is not None else default_kubeconfig(env),
            HTTP_PORT=_to_int("REAPER_HTTP_PORT", env.get("REAPER_HTTP_PORT"), 8080, minimum=1),
            LOG_LEVEL=_to_log_level("REAPER_LOG_LEVEL", env.get("REAPER_LOG_LEVEL"), "DEBUG"),
        )

    def describe(self) -> str:
        ns = ",".join(n or "<all>" for n in self.NAMESPACES) or "<none>"
        return (
            f"namespaces={ns} max_reap={self.MAX_REAPER_COUNT_PER_RUN} evict={self.EVICT} "
            f"reap_evicted={self.REAP_EVICTED_PODS} node_life_time={self.NODE_LIFE_TIME or '<disabled>'} "
            f"interval={self.INTERVAL_SECONDS}s cron_job={self.CRON_JOB} remote_exec={self.REMOTE_EXEC}"
        )


__all__ = ["ReaperConfig", "default_kubeconfig"]
