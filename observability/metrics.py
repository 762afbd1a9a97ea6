# observability/metrics.py
# Prometheus metrics for pod reaping, node fleet composition, ticks and aborts.

from prometheus_client import Counter, Gauge

# --- Pods ---
pods_reaped_total = Counter(
    "pod_reaper_reaped",
    "Number of reaped pods.",
    ["namespace", "method"]  # method=deleted|evicted|killed_evicted
)
pods_detected = Gauge(
    "pod_reaper_detected",
    "Number of pods watching.",
    ["namespace", "kind"]  # kind=tracking|ignoring
)

# --- Nodes ---
nodes_detected = Gauge(
    "node_reaper_detected",
    "Number of nodes watching.",
    ["nodegroups", "nodes"]  # nodes=spot|tainted|total
)

# --- Process ---
ticks_total = Counter(
    "pod_reaper_ticks",
    "Number of completed reconciliation ticks."
)
aborts_total = Counter(
    "pod_reaper_aborts",
    "Number of times a fatal error aborted the process",
    ["reason"]
)


class PrometheusSink:
    """The process-wide metrics sink handed to both reconcilers."""

    def reaped(self, namespace: str, method: str, amount: int = 1) -> None:
        if amount:
            pods_reaped_total.labels(namespace=namespace, method=method).inc(amount)

    def pods_detected(self, namespace: str, kind: str, value: int) -> None:
        pods_detected.labels(namespace=namespace, kind=kind).set(float(value))

    def nodes_detected(self, group: str, category: str, value: int) -> None:
        nodes_detected.labels(nodegroups=group, nodes=category).set(float(value))

    def clear_nodes(self) -> None:
        nodes_detected.clear()
