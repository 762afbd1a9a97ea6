# reaper/__init__.py
# pod-reaper core package: pod and node lifetime reconcilers plus their config, cluster client and driver

__all__ = [
    "abort", "cluster", "config", "durations", "errors", "model",
    "nodes", "pods", "sink", "tick",
]
