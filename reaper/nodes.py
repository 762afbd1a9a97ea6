# reaper/nodes.py
# Node lifetime reconciler: count spot/tainted/total nodes per node group and taint spot nodes past the age threshold.

from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional
import logging

from .durations import format_duration, parse_duration
from .errors import ClusterError, DurationError
from .model import UTCNOW, SHUTDOWN_TAINT, NodeCategory, NodeGroup, NodePolicy, NodeSnapshot, Taint
from .sink import MetricsSink, NullSink

logger = logging.getLogger(__name__)


def aggregate_node_groups(nodes: Iterable[NodeSnapshot]) -> Dict[str, NodeGroup]:
    """
    Bucket nodes by node group label. Nodes without the label go under "".
    Every node lands in exactly one bucket, so the totals sum to the node count.
    """
    groups: Dict[str, NodeGroup] = {}
    for node in nodes:
        key = node.group
        if key not in groups:
            groups[key] = NodeGroup(name=key)
        groups[key].add(node)
    return groups


class NodeLifetimeReconciler:
    """
    Two passes over one node listing: publish group composition, then taint
    spot nodes at least `node_lifetime` old. No retries, no per-node state.
    """

    def __init__(self, cluster: Any, sink: Optional[MetricsSink] = None, *,
                 taint: Taint = SHUTDOWN_TAINT,
                 now_fn: Callable[[], datetime] = UTCNOW) -> None:
        self.cluster = cluster
        self.sink = sink or NullSink()
        self.taint = taint
        self.now_fn = now_fn

    def reconcile_nodes(self, policy: NodePolicy) -> Dict[str, NodeGroup]:
        if not policy.node_lifetime:
            logger.info("Node reaper is disabled.")
            return {}
        try:
            lifetime = parse_duration(policy.node_lifetime)
        except DurationError:
            logger.error("Failed to process NODE_LIFE_TIME = %s", policy.node_lifetime)
            return {}

        try:
            nodes = self.cluster.list_nodes()
        except ClusterError as e:
            # unlike pod listing this is not fatal: no nodes means nothing to do
            logger.warning("cannot list nodes, treating as empty: %s", e)
            nodes = []

        groups = aggregate_node_groups(nodes)
        # drop series of node groups that no longer exist
        self.sink.clear_nodes()
        for name, group in groups.items():
            self.sink.nodes_detected(name, NodeCategory.SPOT.value, group.spot)
            self.sink.nodes_detected(name, NodeCategory.TAINTED.value, group.tainted)
            self.sink.nodes_detected(name, NodeCategory.TOTAL.value, group.total)

        now = self.now_fn()
        for node in nodes:
            age = node.age(now)
            if age < lifetime or not node.is_spot:
                continue
            if node.has_taint(self.taint):
                logger.debug("node %s already carries the shutdown taint", node.name)
                continue
            try:
                patched = self.cluster.add_or_update_taint(node.name, self.taint)
            except ClusterError as e:
                if e.not_found:
                    logger.warning("node %s was deleted before it could be tainted", node.name)
                else:
                    logger.error("failed to apply shutdown taint to node %s: %s", node.name, e)
                continue
            if patched:
                logger.info("Disable node %s (age %s)", node.name, format_duration(age))
            else:
                logger.debug("node %s already carries the shutdown taint", node.name)
        return groups


__all__ = ["aggregate_node_groups", "NodeLifetimeReconciler"]
