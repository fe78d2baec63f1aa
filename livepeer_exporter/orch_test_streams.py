"""
Test streams exporter.

The leaderboard periodically streams test segments to the orchestrator from
several regions. Only the newest result of each region is exported. The
upstream call is slow, so this exporter normally runs on a longer fetch
interval than the others.
"""
from typing import Any, NamedTuple

from prometheus_client import CollectorRegistry, Gauge

from .base import FetchStats, SubExporter
from .client import NodeClient, optional_number, require_list, require_object


class StreamResult(NamedTuple):
    region: str
    timestamp: float
    success_rate: float
    segments_sent: float
    segments_received: float
    upload_time: float
    download_time: float
    transcode_time: float
    round_trip_time: float
    errors: float


def parse_test_stream_result(region: str, data: Any) -> StreamResult:
    result = require_object(data, f"test stream result ({region})")
    errors = result.get("errors") or []
    return StreamResult(
        region=region,
        timestamp=optional_number(result, "timestamp"),
        success_rate=optional_number(result, "success_rate"),
        segments_sent=optional_number(result, "segments_sent"),
        segments_received=optional_number(result, "segments_received"),
        upload_time=optional_number(result, "upload_time"),
        download_time=optional_number(result, "download_time"),
        transcode_time=optional_number(result, "transcode_time"),
        round_trip_time=optional_number(result, "round_trip_time"),
        errors=float(len(errors)) if isinstance(errors, list) else 0.0,
    )


def parse_test_streams(data: Any) -> tuple[StreamResult, ...]:
    """Decode a ``raw_stats`` response, keeping the newest result per region."""
    latest: list[StreamResult] = []
    for region, results in sorted(require_object(data, "raw_stats").items()):
        parsed = [parse_test_stream_result(region, r) for r in require_list(results, f"region {region}")]
        if parsed:
            latest.append(max(parsed, key=lambda r: r.timestamp))
    return tuple(latest)


class OrchTestStreamsExporter(SubExporter):
    name = "test_streams"

    def __init__(
        self,
        address: str,
        fetch_interval: float,
        update_interval: float,
        registry: CollectorRegistry,
        client: NodeClient,
        leaderboard_url: str,
        stats: FetchStats | None = None,
    ):
        self.leaderboard_url = leaderboard_url
        super().__init__(address, fetch_interval, update_interval, registry, client, stats)

    def _init_metrics(self, registry: CollectorRegistry) -> None:
        def gauge(name: str, doc: str) -> Gauge:
            return Gauge(f"livepeer_orch_test_stream_{name}", doc, ["region"], registry=registry)

        self.gauges = {
            "success_rate": gauge("success_rate", "Success rate of the latest test stream."),
            "segments_sent": gauge("segments_sent", "Segments sent in the latest test stream."),
            "segments_received": gauge("segments_received", "Segments received in the latest test stream."),
            "upload_time": gauge("upload_time_seconds", "Average segment upload time of the latest test stream."),
            "download_time": gauge("download_time_seconds", "Average segment download time of the latest test stream."),
            "transcode_time": gauge("transcode_time_seconds", "Average transcode time of the latest test stream."),
            "round_trip_time": gauge("round_trip_time_seconds", "Average round trip time of the latest test stream."),
            "errors": gauge("errors", "Number of errors in the latest test stream."),
            "timestamp": gauge("timestamp_seconds", "Unix time of the latest test stream."),
        }

    def fetch_snapshot(self) -> tuple[StreamResult, ...]:
        data = self.client.get_json(
            f"{self.leaderboard_url}/raw_stats", params={"orchestrator": self.address}
        )
        return parse_test_streams(data)

    def update_metrics(self, snapshot: tuple[StreamResult, ...]) -> None:
        for field, gauge in self.gauges.items():
            self._set_labelled(gauge, {(r.region,): getattr(r, field) for r in snapshot})
