import pytest
from prometheus_client import CollectorRegistry

API = "http://api.test"
LEADERBOARD = "http://leaderboard.test"
ADDRESS = "0xabc0000000000000000000000000000000000001"
SECONDARY = "0xdef0000000000000000000000000000000000002"


class FakeClient:
    """Stands in for NodeClient: maps URLs to canned JSON or exceptions."""

    def __init__(self):
        self.responses = {}
        self.calls = []

    def set(self, url, value):
        self.responses[url] = value

    def get_json(self, url, params=None):
        self.calls.append((url, params))
        if url not in self.responses:
            raise ConnectionError(f"no route for {url}")
        value = self.responses[url]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def client():
    return FakeClient()
