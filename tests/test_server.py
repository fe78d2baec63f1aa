import threading

import pytest
import requests

from conftest import ADDRESS, API, LEADERBOARD
from livepeer_exporter.config import load_config
from livepeer_exporter.exporter import build_exporters
from livepeer_exporter.server import make_server


@pytest.fixture
def serve(registry):
    server = make_server(registry, 0, host="127.0.0.1")
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def config():
    return load_config({
        "LIVEPEER_EXPORTER_ORCHESTRATOR_ADDRESS": ADDRESS,
        "LIVEPEER_EXPORTER_API_URL": API,
        "LIVEPEER_EXPORTER_LEADERBOARD_URL": LEADERBOARD,
    })


def test_metrics_served_when_every_fetch_failed(registry, client, config, serve):
    exporters = build_exporters(config, registry, client)
    for exporter in exporters:
        exporter.fetch()
        exporter.update()

    response = requests.get(f"{serve}/metrics", timeout=5)
    assert response.status_code == 200
    assert response.headers["Content-Type"].startswith("text/plain")
    body = response.text
    assert "# TYPE livepeer_orch_stake gauge" in body
    assert "livepeer_orch_stake 0.0" in body
    assert 'livepeer_exporter_up{exporter="tickets"} 0.0' in body
    assert 'livepeer_exporter_info{version="' in body


def test_scrape_drops_removed_delegator(registry, client, config, serve):
    exporters = {e.name: e for e in build_exporters(config, registry, client)}
    delegators = exporters["delegators"]
    url = f"{API}/orchestrator/{ADDRESS}/delegators"

    client.set(url, [{"id": "0x1", "bondedAmount": 1}, {"id": "0x2", "bondedAmount": 2}])
    delegators.fetch()
    delegators.update()
    assert 'delegator="0x2"' in requests.get(f"{serve}/metrics", timeout=5).text

    client.set(url, [{"id": "0x1", "bondedAmount": 1}])
    delegators.fetch()
    delegators.update()
    body = requests.get(f"{serve}/metrics", timeout=5).text
    assert 'delegator="0x1"' in body
    assert 'delegator="0x2"' not in body


def test_build_exporters_uses_per_exporter_intervals(registry, client, config):
    exporters = {e.name: e for e in build_exporters(config, registry, client)}
    assert set(exporters) == {"info", "score", "delegators", "test_streams", "tickets"}
    assert exporters["test_streams"].fetch_task.interval == 900.0
    assert exporters["info"].fetch_task.interval == 60.0
    assert all(e.update_task.interval == 30.0 for e in exporters.values())


@pytest.mark.parametrize("path", ["/", "/health", "/metricsx"])
def test_other_paths_are_not_found(serve, path):
    assert requests.get(f"{serve}{path}", timeout=5).status_code == 404
