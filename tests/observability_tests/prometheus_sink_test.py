# tests/observability_tests/prometheus_sink_test.py
import observability.metrics as m
from reaper.model import ReapMethod

# ---------- helpers ----------
def _counter_value(counter, labels: dict) -> float:
    total = 0.0
    for metric in counter.collect():
        for sample in metric.samples:
            if sample.name.endswith("_total") and sample.labels == labels:
                total += sample.value
    return total

def _gauge_value(gauge, labels: dict) -> float:
    for metric in gauge.collect():
        for sample in metric.samples:
            if sample.name == gauge._name and sample.labels == labels:
                return sample.value
    raise AssertionError("Gauge sample not found")


# ---------- tests ----------

def test_reaped_counts_per_namespace_and_method():
    sink = m.PrometheusSink()
    deleted = {"namespace": "sink-a", "method": "deleted"}
    cleaned = {"namespace": "sink-a", "method": "killed_evicted"}
    base_d = _counter_value(m.pods_reaped_total, deleted)
    base_c = _counter_value(m.pods_reaped_total, cleaned)

    sink.reaped("sink-a", ReapMethod.DELETED.value)
    sink.reaped("sink-a", ReapMethod.DELETED.value)
    sink.reaped("sink-a", ReapMethod.KILLED_EVICTED.value, 3)

    assert _counter_value(m.pods_reaped_total, deleted) == base_d + 2
    assert _counter_value(m.pods_reaped_total, cleaned) == base_c + 3


def test_reaped_zero_amount_creates_no_series():
    sink = m.PrometheusSink()
    sink.reaped("sink-never", "evicted", 0)
    assert _counter_value(m.pods_reaped_total, {"namespace": "sink-never", "method": "evicted"}) == 0.0
    names = {s.labels.get("namespace") for metric in m.pods_reaped_total.collect() for s in metric.samples}
    assert "sink-never" not in names


def test_pod_gauges_are_overwritten_each_pass():
    sink = m.PrometheusSink()
    sink.pods_detected("sink-b", "tracking", 5)
    sink.pods_detected("sink-b", "ignoring", 2)
    sink.pods_detected("sink-b", "tracking", 1)

    assert _gauge_value(m.pods_detected, {"namespace": "sink-b", "kind": "tracking"}) == 1.0
    assert _gauge_value(m.pods_detected, {"namespace": "sink-b", "kind": "ignoring"}) == 2.0


def test_node_gauges_use_group_and_category_labels():
    sink = m.PrometheusSink()
    sink.nodes_detected("ng-sink", "spot", 4)
    sink.nodes_detected("ng-sink", "total", 9)
    sink.nodes_detected("", "total", 1)

    assert _gauge_value(m.nodes_detected, {"nodegroups": "ng-sink", "nodes": "spot"}) == 4.0
    assert _gauge_value(m.nodes_detected, {"nodegroups": "ng-sink", "nodes": "total"}) == 9.0
    assert _gauge_value(m.nodes_detected, {"nodegroups": "", "nodes": "total"}) == 1.0


def test_clear_nodes_drops_stale_groups():
    sink = m.PrometheusSink()
    sink.nodes_detected("ng-retired", "total", 3)
    sink.clear_nodes()
    sink.nodes_detected("ng-live", "total", 2)

    groups = {s.labels.get("nodegroups") for metric in m.nodes_detected.collect() for s in metric.samples}
    assert "ng-retired" not in groups
    assert _gauge_value(m.nodes_detected, {"nodegroups": "ng-live", "nodes": "total"}) == 2.0


def test_process_counters_exposed_under_reaper_names():
    base_ticks = _counter_value(m.ticks_total, {})
    base_abort = _counter_value(m.aborts_total, {"reason": "pod_list_failed"})

    m.ticks_total.inc()
    m.aborts_total.labels(reason="pod_list_failed").inc()

    assert _counter_value(m.ticks_total, {}) == base_ticks + 1
    assert _counter_value(m.aborts_total, {"reason": "pod_list_failed"}) == base_abort + 1
