# reaper/pods.py
# Pod lifetime reconciler: reap pods past their lifetime annotation (bounded per tick) and clean up evicted pods.

from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Optional
import logging

from .durations import format_duration, parse_duration
from .errors import ClusterError, DurationError, EvictedCleanupError, PodListError
from .model import UTCNOW, PodKind, PodSnapshot, ReapMethod, ReapPolicy, ReapStats
from .sink import MetricsSink, NullSink

logger = logging.getLogger(__name__)


class PodLifetimeReconciler:
    """
    One call to reconcile_namespace() is one pass over one namespace.

    Two failure policies live here on purpose and must not be merged:
      - lifetime reaps log and continue when a delete/evict call fails;
      - evicted-pod cleanup raises EvictedCleanupError, which aborts the process.

    Pods are visited in the order the API server lists them. That order is not
    guaranteed, so once the reap budget runs out, which of the expired pods
    got reaped this tick is not deterministic.
    """

    def __init__(self, cluster: Any, sink: Optional[MetricsSink] = None, *,
                 now_fn: Callable[[], datetime] = UTCNOW) -> None:
        self.cluster = cluster
        self.sink = sink or NullSink()
        self.now_fn = now_fn

    def reconcile_namespace(self, namespace: str, policy: ReapPolicy) -> ReapStats:
        label = namespace or "<all>"
        try:
            pods = self.cluster.list_pods(namespace)
        except ClusterError as e:
            raise PodListError(f"cannot list pods in namespace {label}: {e}") from e

        logger.info("Checking %d pods in namespace %s", len(pods), label)
        stats = ReapStats(namespace=namespace)
        now = self.now_fn()

        for pod in pods:
            reaped = False
            if pod.is_tracked:
                stats.tracked += 1
                reaped = self._reap_if_expired(pod, policy, stats, now)
            else:
                stats.ignored += 1

            if policy.reap_evicted and pod.is_evicted and not reaped:
                self._cleanup_evicted(pod, stats)

        logger.info("Killed %d old pods and cleaned %d evicted pods in namespace %s",
                    stats.killed, stats.cleaned, label)
        self.sink.pods_detected(namespace, PodKind.IGNORING.value, stats.ignored)
        self.sink.pods_detected(namespace, PodKind.TRACKING.value, stats.tracked)
        return stats

    # ---------------- lifetime reaping ----------------

    def _reap_if_expired(self, pod: PodSnapshot, policy: ReapPolicy,
                         stats: ReapStats, now: datetime) -> bool:
        raw = pod.lifetime
        logger.debug("pod %s: found lifetime annotation %r", pod.name, raw)
        try:
            lifetime = parse_duration(raw or "")
        except DurationError:
            logger.debug("pod %s: provided value %r is incorrect", pod.name, raw)
            return False
        if lifetime.total_seconds() <= 0:
            logger.debug("pod %s: provided value %r is not a positive duration", pod.name, raw)
            return False

        if stats.killed >= policy.max_reap_count:
            logger.debug("pod %s: max %d pods killed", pod.name, policy.max_reap_count)
            return False

        age = pod.age(now)
        if age <= lifetime:
            return False

        method = ReapMethod.EVICTED if policy.evict else ReapMethod.DELETED
        logger.info("pod %s: age %s is past its lifetime %s and will be %s",
                    pod.name, format_duration(age), format_duration(lifetime), method.value)
        try:
            if policy.evict:
                self.cluster.evict_pod(pod.namespace, pod.name)
            else:
                self.cluster.delete_pod(pod.namespace, pod.name)
        except ClusterError as e:
            logger.warning("unable to reap pod %s: %s", pod.name, e)
            return False

        logger.info("pod %s: pod reaped", pod.name)
        stats.killed += 1
        self.sink.reaped(stats.namespace, method.value)
        return True

    # ---------------- evicted cleanup ----------------

    def _cleanup_evicted(self, pod: PodSnapshot, stats: ReapStats) -> None:
        logger.debug("pod %s: pod is evicted and needs to be deleted", pod.name)
        try:
            self.cluster.delete_pod(pod.namespace, pod.name)
        except ClusterError as e:
            raise EvictedCleanupError(f"cannot delete evicted pod {pod.namespace}/{pod.name}: {e}") from e
        logger.info("pod %s: evicted pod killed", pod.name)
        stats.cleaned += 1
        self.sink.reaped(stats.namespace, ReapMethod.KILLED_EVICTED.value)


__all__ = ["PodLifetimeReconciler"]
