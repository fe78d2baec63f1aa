"""Exports the stake of every delegator bonded to the orchestrator."""
from typing import Any, NamedTuple

from prometheus_client import CollectorRegistry, Gauge

from .base import FetchStats, SubExporter
from .client import NodeClient, optional_number, require_list, require_number, require_object


class Delegator(NamedTuple):
    address: str
    bonded_amount: float
    start_round: float


def parse_delegators(data: Any) -> tuple[Delegator, ...]:
    delegators: list[Delegator] = []
    for entry in require_list(data, "delegators", key="delegators"):
        entry = require_object(entry, "delegator")
        address = entry.get("id") or entry.get("address")
        if not address:
            raise ValueError("delegator without an id")
        delegators.append(Delegator(
            address=str(address),
            bonded_amount=require_number(entry, "bondedAmount"),
            start_round=optional_number(entry, "startRound"),
        ))
    return tuple(delegators)


class OrchDelegatorsExporter(SubExporter):
    name = "delegators"

    def __init__(
        self,
        address: str,
        fetch_interval: float,
        update_interval: float,
        registry: CollectorRegistry,
        client: NodeClient,
        api_url: str,
        stats: FetchStats | None = None,
    ):
        self.api_url = api_url
        super().__init__(address, fetch_interval, update_interval, registry, client, stats)

    def _init_metrics(self, registry: CollectorRegistry) -> None:
        self.count = Gauge(
            "livepeer_orch_delegator_count",
            "Number of delegators bonded to the orchestrator.",
            registry=registry,
        )
        self.bonded_amount = Gauge(
            "livepeer_orch_delegator_bonded_amount",
            "LPT bonded by each delegator.",
            ["delegator"],
            registry=registry,
        )
        self.start_round = Gauge(
            "livepeer_orch_delegator_start_round",
            "Round in which each delegator's bond started.",
            ["delegator"],
            registry=registry,
        )

    def fetch_snapshot(self) -> tuple[Delegator, ...]:
        data = self.client.get_json(f"{self.api_url}/orchestrator/{self.address}/delegators")
        return parse_delegators(data)

    def update_metrics(self, snapshot: tuple[Delegator, ...]) -> None:
        bonded: dict[tuple[str, ...], float] = {}
        start: dict[tuple[str, ...], float] = {}
        for d in snapshot:
            bonded[(d.address,)] = bonded.get((d.address,), 0.0) + d.bonded_amount
            start[(d.address,)] = d.start_round
        self.count.set(len(bonded))
        self._set_labelled(self.bonded_amount, bonded)
        self._set_labelled(self.start_round, start)
