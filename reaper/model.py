# reaper/model.py
# Snapshot dataclasses, policies and fixed label/annotation identities for pod and node reaping

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

UTCNOW = lambda: datetime.now(timezone.utc)

# ---------- fixed identities ----------
LIFETIME_ANNOTATION = "pod.kubernetes.io/lifetime"
EVICTED_MARKER = "Evicted"

# "all namespaces" sentinel, same as metav1.NamespaceAll
ALL_NAMESPACES = ""

SPOT_LABEL = "node-lifecycle"
SPOT_VALUE = "spot"
TAINTED_LABEL = "ci_node"
TAINTED_VALUE = "Disable:NoSchedule"
NODE_GROUP_LABEL = "alpha.eksctl.io/nodegroup-name"


class ReapMethod(str, Enum):
    DELETED = "deleted"
    EVICTED = "evicted"
    KILLED_EVICTED = "killed_evicted"


class PodKind(str, Enum):
    TRACKING = "tracking"
    IGNORING = "ignoring"


class NodeCategory(str, Enum):
    SPOT = "spot"
    TAINTED = "tainted"
    TOTAL = "total"


@dataclass(frozen=True)
class Taint:
    key: str
    effect: str
    value: str = ""

    def matches(self, other: "Taint") -> bool:
        # same identity as the API server uses: key + effect
        return self.key == other.key and self.effect == other.effect

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "value": self.value, "effect": self.effect}


SHUTDOWN_TAINT = Taint(key="ci_node", effect="NoSchedule", value="Disable")


@dataclass(frozen=True)
class PodSnapshot:
    namespace: str
    name: str
    created_at: datetime
    annotations: Dict[str, str] = field(default_factory=dict)
    reason: str = ""

    @property
    def lifetime(self) -> Optional[str]:
        return self.annotations.get(LIFETIME_ANNOTATION)

    @property
    def is_tracked(self) -> bool:
        return LIFETIME_ANNOTATION in self.annotations

    @property
    def is_evicted(self) -> bool:
        return EVICTED_MARKER in (self.reason or "")

    def age(self, now: Optional[datetime] = None) -> timedelta:
        return (now or UTCNOW()) - self.created_at


@dataclass(frozen=True)
class NodeSnapshot:
    name: str
    created_at: datetime
    labels: Dict[str, str] = field(default_factory=dict)
    taints: Tuple[Taint, ...] = ()

    @property
    def is_spot(self) -> bool:
        return self.labels.get(SPOT_LABEL) == SPOT_VALUE

    @property
    def is_tainted(self) -> bool:
        """
        Label-based proxy for "already carries the shutdown taint".
        This reads node labels, not spec.taints, so it is an approximation;
        use has_taint() for the exact answer.
        """
        return self.labels.get(TAINTED_LABEL) == TAINTED_VALUE

    @property
    def group(self) -> str:
        return self.labels.get(NODE_GROUP_LABEL, "")

    def has_taint(self, taint: Taint) -> bool:
        return any(t.matches(taint) and t.value == taint.value for t in self.taints)

    def age(self, now: Optional[datetime] = None) -> timedelta:
        return (now or UTCNOW()) - self.created_at


@dataclass
class NodeGroup:
    name: str
    spot: int = 0
    tainted: int = 0
    total: int = 0

    def add(self, node: NodeSnapshot) -> None:
        self.spot += int(node.is_spot)
        self.tainted += int(node.is_tainted)
        self.total += 1


@dataclass(frozen=True)
class ReapPolicy:
    max_reap_count: int = 30
    evict: bool = False
    reap_evicted: bool = False
    namespaces: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NodePolicy:
    # raw duration string; None disables node reconciliation
    node_lifetime: Optional[str] = None


@dataclass
class ReapStats:
    namespace: str
    tracked: int = 0
    ignored: int = 0
    killed: int = 0
    cleaned: int = 0


@dataclass
class TickReport:
    pods: List[ReapStats] = field(default_factory=list)
    node_groups: Dict[str, NodeGroup] = field(default_factory=dict)

    @property
    def killed(self) -> int:
        return sum(s.killed for s in self.pods)


__all__ = [
    "LIFETIME_ANNOTATION", "EVICTED_MARKER", "ALL_NAMESPACES",
    "SPOT_LABEL", "SPOT_VALUE", "TAINTED_LABEL", "TAINTED_VALUE", "NODE_GROUP_LABEL",
    "ReapMethod", "PodKind", "NodeCategory",
    "Taint", "SHUTDOWN_TAINT", "PodSnapshot", "NodeSnapshot", "NodeGroup",
    "ReapPolicy", "NodePolicy", "ReapStats", "TickReport",
]
