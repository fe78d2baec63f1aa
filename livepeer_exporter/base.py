"""
Generic sub-exporter: a fetch loop that replaces an in-memory snapshot and an
update loop that republishes the snapshot into gauges.
"""
import logging
import threading
import time
from collections.abc import Mapping
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Gauge

from .client import NodeClient, categorize_error
from .tasks import PeriodicTask

logger = logging.getLogger(__name__)

LabelValues = tuple[str, ...]


class FetchStats:
    """Exporter self-observability, shared by every sub-exporter of a registry."""

    def __init__(self, registry: CollectorRegistry):
        self.fetch_errors = Counter(
            "livepeer_exporter_fetch_errors",
            "Total number of failed upstream fetches.",
            ["exporter", "error_type"],
            registry=registry,
        )
        self.fetch_duration = Gauge(
            "livepeer_exporter_fetch_duration_seconds",
            "Duration of the last upstream fetch in seconds.",
            ["exporter"],
            registry=registry,
        )
        self.last_success = Gauge(
            "livepeer_exporter_last_fetch_success_timestamp_seconds",
            "Unix time of the last successful upstream fetch.",
            ["exporter"],
            registry=registry,
        )
        self.up = Gauge(
            "livepeer_exporter_up",
            "Whether the last upstream fetch of the exporter succeeded.",
            ["exporter"],
            registry=registry,
        )

    def observe_success(self, exporter: str, duration: float) -> None:
        self.fetch_duration.labels(exporter).set(duration)
        self.last_success.labels(exporter).set(time.time())
        self.up.labels(exporter).set(1)

    def observe_failure(self, exporter: str, error_type: str, duration: float) -> None:
        self.fetch_duration.labels(exporter).set(duration)
        self.fetch_errors.labels(exporter, error_type).inc()
        self.up.labels(exporter).set(0)


class SubExporter:
    """
    Base class of the Livepeer sub-exporters.

    Subclasses set ``name`` and implement ``_init_metrics``,
    ``fetch_snapshot`` and ``update_metrics``. The snapshot returned by
    ``fetch_snapshot`` must be immutable; it is swapped in whole and never
    modified afterwards.
    """

    name = "base"

    def __init__(
        self,
        address: str,
        fetch_interval: float,
        update_interval: float,
        registry: CollectorRegistry,
        client: NodeClient,
        stats: FetchStats | None = None,
    ):
        self.address = address
        self.client = client
        self.stats = stats
        self._snapshot: Any = None
        self._snapshot_lock = threading.Lock()
        # gauge -> label combinations published on the last update
        self._published: dict[Gauge, set[LabelValues]] = {}

        self.fetch_task = PeriodicTask(f"{self.name}-fetch", fetch_interval, self.fetch)
        self.update_task = PeriodicTask(f"{self.name}-update", update_interval, self.update)

        self._init_metrics(registry)

    # Subclass hooks

    def _init_metrics(self, registry: CollectorRegistry) -> None:
        raise NotImplementedError

    def fetch_snapshot(self) -> Any:
        """Fetch and decode upstream data. Raise on any failure."""
        raise NotImplementedError

    def update_metrics(self, snapshot: Any) -> None:
        raise NotImplementedError

    # Lifecycle

    def start(self) -> None:
        logger.info(
            f"Starting {self.name} exporter (fetch every {self.fetch_task.interval}s, "
            f"update every {self.update_task.interval}s)"
        )
        self.fetch_task.start()
        self.update_task.start()

    def stop(self, timeout: float | None = None) -> None:
        self.fetch_task.stop(timeout)
        self.update_task.stop(timeout)

    # Snapshot

    @property
    def snapshot(self) -> Any:
        with self._snapshot_lock:
            return self._snapshot

    def publish(self, snapshot: Any) -> None:
        with self._snapshot_lock:
            self._snapshot = snapshot

    # Ticks

    def fetch(self) -> None:
        """One fetch tick. Errors are logged and the previous snapshot is kept."""
        fetch_start = time.time()
        try:
            snapshot = self.fetch_snapshot()
        except Exception as e:
            duration = time.time() - fetch_start
            error_type = categorize_error(e)
            logger.warning(
                f"Failed to fetch {self.name} data for {self.address} ({error_type}): {e} "
                f"(duration: {duration:.3f}s)"
            )
            if self.stats is not None:
                self.stats.observe_failure(self.name, error_type, duration)
            return

        duration = time.time() - fetch_start
        self.publish(snapshot)
        if self.stats is not None:
            self.stats.observe_success(self.name, duration)
        logger.debug(f"Fetched {self.name} data for {self.address} in {duration:.3f}s")

    def update(self) -> None:
        """One update tick. Skipped until a first snapshot has been published."""
        snapshot = self.snapshot
        if snapshot is None:
            logger.debug(f"No {self.name} data fetched yet, skipping update")
            return
        try:
            self.update_metrics(snapshot)
        except Exception:
            logger.exception(f"Failed to update {self.name} metrics")

    # Helpers

    def _set_labelled(self, gauge: Gauge, samples: Mapping[LabelValues, float]) -> None:
        """
        Publish the full label set of a gauge.

        Label combinations published on the previous call but absent from
        ``samples`` are removed, so entries that disappeared upstream stop
        being exported.
        """
        for labels, value in samples.items():
            gauge.labels(*labels).set(value)
        previous = self._published.get(gauge, set())
        for labels in previous.difference(samples):
            gauge.remove(*labels)
        self._published[gauge] = set(samples.keys())
