"""HTTP endpoint serving the metrics registry in Prometheus text format."""
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"


class MetricsHandler(BaseHTTPRequestHandler):
    registry: CollectorRegistry

    def do_GET(self):
        if self.path.split("?", 1)[0] == METRICS_PATH:
            self.handle_metrics()
        else:
            self.send_response(404)
            self.send_header("Content-Type", "text/plain")
            self.end_headers()
            self.wfile.write(b"Not Found\n")

    def log_message(self, fmt, *args):
        logger.debug(f"{self.address_string()} - {fmt % args}")

    def handle_metrics(self):
        body = generate_latest(self.registry)
        self.send_response(200)
        self.send_header("Content-Type", CONTENT_TYPE_LATEST)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def make_server(registry: CollectorRegistry, port: int, host: str = "0.0.0.0") -> ThreadingHTTPServer:
    """Bind a threaded HTTP server that serves ``registry`` on /metrics."""
    handler = type("BoundMetricsHandler", (MetricsHandler,), {"registry": registry})
    server = ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server
