# observability/health_server.py
# Background HTTP server: GET / answers "ok" for liveness probes, GET /metrics serves the Prometheus registry.

from __future__ import annotations
import http.server
import threading
from typing import Optional, Tuple

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest


class _HealthAndMetricsHandler(http.server.BaseHTTPRequestHandler):
    """Serves the liveness body on / and the exposition format on /metrics."""
    registry: CollectorRegistry = REGISTRY

    # Silence default noisy logging
    def log_message(self, fmt, *args):  # noqa: N802
        pass

    def do_GET(self):  # noqa: N802
        path = self.path.split("?", 1)[0]
        if path.rstrip("/") == "/metrics":
            self._send(200, generate_latest(self.registry), CONTENT_TYPE_LATEST)
            return
        if path == "/":
            self._send(200, b"ok\n", "text/plain; charset=utf-8")
            return
        self._send(404, b"not found\n", "text/plain; charset=utf-8")

    def _send(self, code: int, body: bytes, content_type: str) -> None:
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def start_health_server(
    port: int = 8080,
    host: str = "0.0.0.0",
    registry: Optional[CollectorRegistry] = None,
) -> Tuple[threading.Thread, http.server.ThreadingHTTPServer, str]:
    """
    Start serving on a daemon thread so a long tick never blocks probes.

    Returns: (thread, httpd, url)
    """
    handler = type(
        "HealthAndMetricsHandler",
        (_HealthAndMetricsHandler,),
        {"registry": registry if registry is not None else REGISTRY},
    )
    httpd = http.server.ThreadingHTTPServer((host, port), handler)
    httpd.daemon_threads = True
    url = f"http://{host}:{httpd.server_address[1]}/"

    def serve():
        with httpd:
            httpd.serve_forever(poll_interval=0.5)

    t = threading.Thread(target=serve, name="health-server", daemon=True)
    t.start()
    return t, httpd, url
