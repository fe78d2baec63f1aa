"""
Orchestrator info exporter.

Exports the orchestrator's registration state, cuts, stake and fee volume.
When a secondary address is configured its bonded stake is added to the
orchestrator's own stake in ``livepeer_orch_stake``.
"""
from collections.abc import Mapping
from typing import Any, NamedTuple

from prometheus_client import CollectorRegistry, Gauge

from .base import FetchStats, SubExporter
from .client import (
    NodeClient,
    bool_numeric,
    optional_number,
    parse_number,
    require_number,
    require_object,
    round_id,
)

# feeShare and rewardCut are expressed in parts per million
PERC_DIVISOR = 1_000_000.0


class OrchInfo(NamedTuple):
    address: str
    status: str
    service_uri: str
    active: float
    activation_round: float
    deactivation_round: float
    last_reward_round: float
    reward_cut: float
    fee_cut: float
    total_stake: float
    stake: float
    total_volume_eth: float
    thirty_day_volume_eth: float
    ninety_day_volume_eth: float


def _last_reward_round(orch: Mapping[str, Any]) -> float:
    value = round_id(orch.get("lastRewardRound"))
    return parse_number(value, "lastRewardRound") if value else 0.0


def parse_orchestrator(data: Any, address: str, stake: float) -> OrchInfo:
    """Decode an orchestrator object into an OrchInfo snapshot."""
    orch = require_object(data, "orchestrator")
    fee_share = require_number(orch, "feeShare")
    reward_cut = require_number(orch, "rewardCut")
    return OrchInfo(
        address=address,
        status=str(orch.get("status") or ""),
        service_uri=str(orch.get("serviceURI") or ""),
        active=bool_numeric(orch.get("active")),
        activation_round=optional_number(orch, "activationRound"),
        deactivation_round=optional_number(orch, "deactivationRound"),
        last_reward_round=_last_reward_round(orch),
        reward_cut=reward_cut / PERC_DIVISOR,
        fee_cut=1.0 - fee_share / PERC_DIVISOR,
        total_stake=require_number(orch, "totalStake"),
        stake=stake,
        total_volume_eth=optional_number(orch, "totalVolumeETH"),
        thirty_day_volume_eth=optional_number(orch, "thirtyDayVolumeETH"),
        ninety_day_volume_eth=optional_number(orch, "ninetyDayVolumeETH"),
    )


class OrchInfoExporter(SubExporter):
    name = "info"

    def __init__(
        self,
        address: str,
        fetch_interval: float,
        update_interval: float,
        registry: CollectorRegistry,
        client: NodeClient,
        api_url: str,
        address_secondary: str = "",
        stats: FetchStats | None = None,
    ):
        self.api_url = api_url
        self.address_secondary = address_secondary
        super().__init__(address, fetch_interval, update_interval, registry, client, stats)

    def _init_metrics(self, registry: CollectorRegistry) -> None:
        self.info = Gauge(
            "livepeer_orch_info",
            "Static information about the orchestrator.",
            ["address", "status", "service_uri"],
            registry=registry,
        )
        self.active = Gauge("livepeer_orch_active", "Whether the orchestrator is active.", registry=registry)
        self.activation_round = Gauge(
            "livepeer_orch_activation_round", "Round in which the orchestrator was activated.", registry=registry
        )
        self.deactivation_round = Gauge(
            "livepeer_orch_deactivation_round", "Round in which the orchestrator is deactivated.", registry=registry
        )
        self.last_reward_round = Gauge(
            "livepeer_orch_last_reward_round", "Last round in which the orchestrator called reward.", registry=registry
        )
        self.reward_cut = Gauge(
            "livepeer_orch_reward_cut", "Fraction of rewards kept by the orchestrator.", registry=registry
        )
        self.fee_cut = Gauge("livepeer_orch_fee_cut", "Fraction of fees kept by the orchestrator.", registry=registry)
        self.total_stake = Gauge(
            "livepeer_orch_total_stake", "Total LPT stake delegated to the orchestrator.", registry=registry
        )
        self.stake = Gauge(
            "livepeer_orch_stake",
            "LPT bonded by the orchestrator itself, including the secondary address.",
            registry=registry,
        )
        self.total_volume_eth = Gauge(
            "livepeer_orch_total_volume_eth", "Total fee volume earned, in ETH.", registry=registry
        )
        self.thirty_day_volume_eth = Gauge(
            "livepeer_orch_thirty_day_volume_eth", "Fee volume earned over the last 30 days, in ETH.", registry=registry
        )
        self.ninety_day_volume_eth = Gauge(
            "livepeer_orch_ninety_day_volume_eth", "Fee volume earned over the last 90 days, in ETH.", registry=registry
        )

    def _bonded_amount(self, address: str) -> float:
        data = self.client.get_json(f"{self.api_url}/delegator/{address}")
        return require_number(require_object(data, "delegator"), "bondedAmount")

    def fetch_snapshot(self) -> OrchInfo:
        orch = self.client.get_json(f"{self.api_url}/orchestrator/{self.address}")
        stake = self._bonded_amount(self.address)
        if self.address_secondary:
            stake += self._bonded_amount(self.address_secondary)
        return parse_orchestrator(orch, self.address, stake)

    def update_metrics(self, snapshot: OrchInfo) -> None:
        self._set_labelled(self.info, {(snapshot.address, snapshot.status, snapshot.service_uri): 1.0})
        self.active.set(snapshot.active)
        self.activation_round.set(snapshot.activation_round)
        self.deactivation_round.set(snapshot.deactivation_round)
        self.last_reward_round.set(snapshot.last_reward_round)
        self.reward_cut.set(snapshot.reward_cut)
        self.fee_cut.set(snapshot.fee_cut)
        self.total_stake.set(snapshot.total_stake)
        self.stake.set(snapshot.stake)
        self.total_volume_eth.set(snapshot.total_volume_eth)
        self.thirty_day_volume_eth.set(snapshot.thirty_day_volume_eth)
        self.ninety_day_volume_eth.set(snapshot.ninety_day_volume_eth)
