"""
Prometheus exporter for a Livepeer orchestrator.

Five sub-exporters (info, score, delegators, test streams, tickets) each
fetch upstream data on their own interval and republish it into gauges on
the update interval. The registry is served on ``/metrics``.
"""
import logging
import signal
import threading
from collections.abc import Mapping

from prometheus_client import CollectorRegistry, Gauge

from . import __version__
from .base import FetchStats, SubExporter
from .client import NodeClient
from .config import Config, ConfigError, load_config
from .orch_delegators import OrchDelegatorsExporter
from .orch_info import OrchInfoExporter
from .orch_score import OrchScoreExporter
from .orch_test_streams import OrchTestStreamsExporter
from .orch_tickets import OrchTicketsExporter
from .server import make_server

logger = logging.getLogger(__name__)

# Seconds to wait for each loop thread on shutdown
STOP_TIMEOUT = 5.0

# ======================
# Logging Setup
# ======================

def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

# ======================
# Sub-exporters
# ======================

def build_exporters(config: Config, registry: CollectorRegistry, client: NodeClient) -> list[SubExporter]:
    """
    Register exporter-level metrics and construct every sub-exporter.

    Args:
        config: Validated configuration
        registry: Registry all gauges are registered into
        client: Upstream HTTP client shared by the sub-exporters

    Returns:
        The sub-exporters, not yet started
    """
    info = Gauge("livepeer_exporter_info", "Exporter version information.", ["version"], registry=registry)
    info.labels(__version__).set(1)
    stats = FetchStats(registry)

    def common(name: str) -> dict:
        return {
            "address": config.address,
            "fetch_interval": config.fetch_interval_for(name),
            "update_interval": config.update_interval,
            "registry": registry,
            "client": client,
            "stats": stats,
        }

    return [
        OrchInfoExporter(api_url=config.api_url, address_secondary=config.address_secondary, **common("info")),
        OrchScoreExporter(leaderboard_url=config.leaderboard_url, **common("score")),
        OrchDelegatorsExporter(api_url=config.api_url, **common("delegators")),
        OrchTestStreamsExporter(leaderboard_url=config.leaderboard_url, **common("test_streams")),
        OrchTicketsExporter(api_url=config.api_url, **common("tickets")),
    ]

# ======================
# Main
# ======================

def main(environ: Mapping[str, str] | None = None) -> None:
    """Main entry point for the exporter."""
    setup_logging()
    logger.info(f"Starting Livepeer exporter v{__version__}...")

    try:
        config = load_config(environ)
    except ConfigError as e:
        logger.critical(f"Configuration error: {e}")
        raise SystemExit(1) from e

    logging.getLogger().setLevel(config.log_level)
    logger.info(
        f"Monitoring orchestrator {config.address}"
        + (f" (secondary {config.address_secondary})" if config.address_secondary else "")
        + f", update interval {config.update_interval}s"
    )

    registry = CollectorRegistry()
    client = NodeClient(timeout=config.request_timeout)
    exporters = build_exporters(config, registry, client)

    shutdown_requested = threading.Event()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        shutdown_requested.set()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    server = make_server(registry, config.port)

    logger.info("Starting sub exporters...")
    for exporter in exporters:
        exporter.start()

    server_thread = threading.Thread(target=server.serve_forever, name="http-server", daemon=True)
    server_thread.start()
    logger.info(f"Exposing metrics via HTTP on 0.0.0.0:{config.port}/metrics")

    try:
        while not shutdown_requested.is_set():
            shutdown_requested.wait(0.5)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        logger.info("Shutting down HTTP server...")
        server.shutdown()
        server.server_close()

        logger.info("Stopping sub exporters...")
        for exporter in exporters:
            exporter.stop(STOP_TIMEOUT)
        client.close()

        logger.info("Exporter shutdown complete")

