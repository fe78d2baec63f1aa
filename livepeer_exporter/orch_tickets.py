"""Exports the winning tickets redeemed by the orchestrator."""
from collections.abc import Mapping
from typing import Any, NamedTuple

from prometheus_client import CollectorRegistry, Gauge

from .base import FetchStats, SubExporter
from .client import NodeClient, require_list, require_number, require_object, round_id


class Ticket(NamedTuple):
    transaction_hash: str
    sender: str
    round: str
    face_value: float


def parse_tickets(data: Any) -> tuple[Ticket, ...]:
    tickets: list[Ticket] = []
    for entry in require_list(data, "tickets", key="tickets"):
        entry = require_object(entry, "ticket")
        tx = entry.get("transactionHash") or entry.get("transaction_hash")
        if not tx:
            raise ValueError("ticket without a transactionHash")
        sender = entry.get("sender") or ""
        if isinstance(sender, Mapping):
            sender = sender.get("id", "")
        tickets.append(Ticket(
            transaction_hash=str(tx),
            sender=str(sender),
            round=round_id(entry.get("round")),
            face_value=require_number(entry, "faceValue"),
        ))
    return tuple(tickets)


class OrchTicketsExporter(SubExporter):
    name = "tickets"

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
            "livepeer_orch_ticket_count",
            "Number of winning tickets redeemed by the orchestrator.",
            registry=registry,
        )
        self.value_total = Gauge(
            "livepeer_orch_ticket_value_total_eth",
            "Summed face value of all redeemed winning tickets, in ETH.",
            registry=registry,
        )
        self.value = Gauge(
            "livepeer_orch_ticket_value_eth",
            "Face value of each redeemed winning ticket, in ETH.",
            ["transaction_hash", "sender", "round"],
            registry=registry,
        )

    def fetch_snapshot(self) -> tuple[Ticket, ...]:
        data = self.client.get_json(f"{self.api_url}/orchestrator/{self.address}/tickets")
        return parse_tickets(data)

    def update_metrics(self, snapshot: tuple[Ticket, ...]) -> None:
        values: dict[tuple[str, ...], float] = {}
        for t in snapshot:
            key = (t.transaction_hash, t.sender, t.round)
            values[key] = values.get(key, 0.0) + t.face_value
        self.count.set(len(snapshot))
        self.value_total.set(sum(t.face_value for t in snapshot))
        self._set_labelled(self.value, values)
