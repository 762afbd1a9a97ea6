# observability/__init__.py
# Prometheus metrics and the health/metrics HTTP endpoint

__all__ = ["health_server", "metrics"]
