# tests/observability_tests/health_server_test.py
from __future__ import annotations

from urllib.error import HTTPError
from urllib.request import urlopen

from prometheus_client import CollectorRegistry, Counter

from observability.health_server import start_health_server


# ---------- helpers ----------

def _fetch(url: str, timeout: float = 2.0):
    try:
        with urlopen(url, timeout=timeout) as r:
            return r.status, r.read(), dict(r.headers)
    except HTTPError as e:
        return e.code, e.read(), dict(e.headers)


def _start(registry=None):
    thread, httpd, url = start_health_server(port=0, host="127.0.0.1", registry=registry)
    return thread, httpd, url


# ---------- tests ----------

def test_root_answers_ok():
    _, httpd, url = _start()
    try:
        status, body, headers = _fetch(url)
        assert status == 200
        assert body == b"ok\n"
        assert headers.get("Content-Type", "").startswith("text/plain")
    finally:
        httpd.shutdown()


def test_metrics_serves_the_given_registry():
    reg = CollectorRegistry()
    demo = Counter("demo_reaps", "Demo counter.", registry=reg)
    demo.inc(3)

    _, httpd, url = _start(reg)
    try:
        status, body, headers = _fetch(url + "metrics")
        assert status == 200
        assert b"demo_reaps_total 3.0" in body
        assert "text/plain" in headers.get("Content-Type", "")
    finally:
        httpd.shutdown()


def test_metrics_default_registry_has_reaper_series():
    import observability.metrics  # noqa: F401  registers the process metrics

    _, httpd, url = _start()
    try:
        status, body, _ = _fetch(url + "metrics")
        assert status == 200
        assert b"pod_reaper_ticks_total" in body
    finally:
        httpd.shutdown()


def test_unknown_path_is_404():
    _, httpd, url = _start()
    try:
        status, body, _ = _fetch(url + "healthz")
        assert status == 404
        assert b"not found" in body
    finally:
        httpd.shutdown()


def test_url_reports_the_bound_port():
    _, httpd, url = _start()
    try:
        assert url == f"http://127.0.0.1:{httpd.server_address[1]}/"
        assert httpd.server_address[1] != 0
    finally:
        httpd.shutdown()


def test_shutdown_is_clean():
    thread, httpd, url = _start()
    status, _, _ = _fetch(url)
    assert status == 200

    httpd.shutdown()
    thread.join(timeout=2.0)
    assert not thread.is_alive()
