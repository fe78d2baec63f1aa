import pytest

from livepeer_exporter.config import (
    DEFAULT_API_URL,
    DEFAULT_LEADERBOARD_URL,
    ConfigError,
    load_config,
    parse_duration,
)

ADDRESS = "0xabc0000000000000000000000000000000000001"


def env(**overrides):
    values = {"LIVEPEER_EXPORTER_ORCHESTRATOR_ADDRESS": ADDRESS}
    values.update({f"LIVEPEER_EXPORTER_{k}": v for k, v in overrides.items()})
    return values


class TestParseDuration:

    @pytest.mark.parametrize("text,expected", [
        ("30s", 30.0),
        ("1m", 60.0),
        ("15m", 900.0),
        ("1h30m", 5400.0),
        ("1.5h", 5400.0),
        ("300ms", 0.3),
        ("2m3s", 123.0),
        ("0", 0.0),
        ("-5s", -5.0),
        ("+5s", 5.0),
    ])
    def test_valid(self, text, expected):
        assert parse_duration(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["notaduration", "", "10", "5x", "1m x", "s", "-"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)


class TestLoadConfig:

    def test_defaults(self):
        config = load_config(env())
        assert config.address == ADDRESS
        assert config.address_secondary == ""
        assert config.fetch_interval == 60.0
        assert config.fetch_test_streams_interval == 900.0
        assert config.update_interval == 30.0
        assert config.request_timeout == 30.0
        assert config.port == 9153
        assert config.api_url == DEFAULT_API_URL
        assert config.leaderboard_url == DEFAULT_LEADERBOARD_URL
        assert config.log_level == "INFO"

    def test_every_exporter_uses_fetch_interval_except_test_streams(self):
        config = load_config(env(FETCH_INTERVAL="2m"))
        for name in ("info", "score", "delegators", "tickets"):
            assert config.fetch_interval_for(name) == 120.0
        assert config.fetch_interval_for("test_streams") == 900.0

    def test_overrides(self):
        config = load_config(env(
            ORCHESTRATOR_ADDRESS_SECONDARY="0xdef",
            FETCH_INTERVAL="10s",
            FETCH_TEST_STREAMS_INTERVAL="1h",
            UPDATE_INTERVAL="5s",
            PORT="9999",
            API_URL="http://localhost:8080/api/",
        ))
        assert config.address_secondary == "0xdef"
        assert config.fetch_interval == 10.0
        assert config.fetch_test_streams_interval == 3600.0
        assert config.update_interval == 5.0
        assert config.port == 9999
        assert config.api_url == "http://localhost:8080/api"

    def test_per_exporter_override_only_affects_that_exporter(self):
        config = load_config(env(FETCH_TICKETS_INTERVAL="5m"))
        assert config.fetch_interval_for("tickets") == 300.0
        assert config.fetch_interval_for("delegators") == 60.0

    def test_empty_values_fall_back_to_defaults(self):
        config = load_config(env(FETCH_INTERVAL="", UPDATE_INTERVAL=""))
        assert config.fetch_interval == 60.0
        assert config.update_interval == 30.0

    @pytest.mark.parametrize("environ", [
        {},
        {"LIVEPEER_EXPORTER_ORCHESTRATOR_ADDRESS": ""},
        {"LIVEPEER_EXPORTER_ORCHESTRATOR_ADDRESS": "   "},
    ])
    def test_missing_address(self, environ):
        with pytest.raises(ConfigError, match="ORCHESTRATOR_ADDRESS"):
            load_config(environ)

    @pytest.mark.parametrize("var", [
        "FETCH_INTERVAL",
        "FETCH_TEST_STREAMS_INTERVAL",
        "UPDATE_INTERVAL",
        "REQUEST_TIMEOUT",
        "FETCH_SCORE_INTERVAL",
    ])
    def test_unparseable_duration(self, var):
        with pytest.raises(ConfigError, match=f"LIVEPEER_EXPORTER_{var}"):
            load_config(env(**{var: "notaduration"}))

    @pytest.mark.parametrize("value", ["0", "-1m"])
    def test_non_positive_interval(self, value):
        with pytest.raises(ConfigError, match="positive"):
            load_config(env(UPDATE_INTERVAL=value))

    @pytest.mark.parametrize("value", ["abc", "0", "70000"])
    def test_invalid_port(self, value):
        with pytest.raises(ConfigError, match="PORT"):
            load_config(env(PORT=value))

    def test_log_level_is_case_insensitive(self):
        assert load_config(env(LOG_LEVEL="debug")).log_level == "DEBUG"

    @pytest.mark.parametrize("value", ["VERBOSE", "BASIC_FORMAT", "10"])
    def test_invalid_log_level(self, value):
        with pytest.raises(ConfigError, match="LOG_LEVEL"):
            load_config(env(LOG_LEVEL=value))
