"""Orchestrator leaderboard score exporter, one series per test region."""
from typing import Any, NamedTuple

from prometheus_client import CollectorRegistry, Gauge

from .base import FetchStats, SubExporter
from .client import NodeClient, optional_number, require_object


class RegionScore(NamedTuple):
    region: str
    success_rate: float
    latency_score: float
    total_score: float


def parse_scores(data: Any, address: str) -> tuple[RegionScore, ...]:
    """
    Decode an ``aggregated_stats`` response.

    The response is keyed by orchestrator address, then by region. The
    address is matched case-insensitively; an unknown orchestrator yields
    no regions.
    """
    stats = require_object(data, "aggregated_stats")
    regions: Any = None
    for key, value in stats.items():
        if key.lower() == address.lower():
            regions = value
            break
    # a missing or null entry means the orchestrator has not been tested yet
    regions = require_object(regions or {}, "aggregated_stats regions")

    scores: list[RegionScore] = []
    for region, values in sorted(regions.items()):
        values = require_object(values, f"region {region}")
        scores.append(RegionScore(
            region=region,
            success_rate=optional_number(values, "success_rate"),
            latency_score=optional_number(values, "round_trip_score"),
            total_score=optional_number(values, "score"),
        ))
    return tuple(scores)


class OrchScoreExporter(SubExporter):
    name = "score"

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
        self.success_rate = Gauge(
            "livepeer_orch_success_rate",
            "Transcoding success rate reported by the leaderboard.",
            ["region"],
            registry=registry,
        )
        self.latency_score = Gauge(
            "livepeer_orch_latency_score",
            "Round trip latency score reported by the leaderboard.",
            ["region"],
            registry=registry,
        )
        self.total_score = Gauge(
            "livepeer_orch_total_score",
            "Total leaderboard score.",
            ["region"],
            registry=registry,
        )

    def fetch_snapshot(self) -> tuple[RegionScore, ...]:
        data = self.client.get_json(
            f"{self.leaderboard_url}/aggregated_stats", params={"orchestrator": self.address}
        )
        return parse_scores(data, self.address)

    def update_metrics(self, snapshot: tuple[RegionScore, ...]) -> None:
        self._set_labelled(self.success_rate, {(s.region,): s.success_rate for s in snapshot})
        self._set_labelled(self.latency_score, {(s.region,): s.latency_score for s in snapshot})
        self._set_labelled(self.total_score, {(s.region,): s.total_score for s in snapshot})
