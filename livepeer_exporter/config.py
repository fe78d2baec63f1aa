"""
Exporter configuration read from LIVEPEER_EXPORTER_* environment variables.
"""
import logging
import os
import re
from collections.abc import Mapping
from typing import NamedTuple

# ======================
# Constants
# ======================

ENV_PREFIX = "LIVEPEER_EXPORTER_"

DEFAULT_FETCH_INTERVAL = "1m"
DEFAULT_FETCH_TEST_STREAMS_INTERVAL = "15m"
DEFAULT_UPDATE_INTERVAL = "30s"
DEFAULT_REQUEST_TIMEOUT = "30s"
DEFAULT_PORT = 9153
DEFAULT_API_URL = "https://explorer.livepeer.org/api"
DEFAULT_LEADERBOARD_URL = "https://leaderboard-serverless.vercel.app/api"
DEFAULT_LOG_LEVEL = "INFO"

# Sub-exporters whose fetch interval can be overridden with
# LIVEPEER_EXPORTER_FETCH_<NAME>_INTERVAL.
EXPORTER_NAMES = ("info", "score", "delegators", "test_streams", "tickets")

# Exporters that default to something other than the global fetch interval.
FETCH_INTERVAL_DEFAULTS = {
    "test_streams": DEFAULT_FETCH_TEST_STREAMS_INTERVAL,
}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class ConfigError(ValueError):
    """Raised when an environment variable holds an invalid value."""


# ======================
# Duration parsing
# ======================

def parse_duration(text: str) -> float:
    """
    Parse a Go-style duration string into seconds.

    Accepts one or more ``<number><unit>`` parts with an optional sign,
    e.g. ``"30s"``, ``"1h30m"``, ``"1.5h"``, ``"300ms"``. The bare string
    ``"0"`` is also accepted.

    Args:
        text: Duration string

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the string is not a valid duration
    """
    s = text.strip()
    sign = 1.0
    if s[:1] in ("+", "-"):
        if s[0] == "-":
            sign = -1.0
        s = s[1:]
    if s == "0":
        return 0.0
    if not s:
        raise ValueError(f"invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(s):
        m = _DURATION_PART.match(s, pos)
        if not m:
            raise ValueError(f"invalid duration {text!r}")
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    return sign * total


# ======================
# Config
# ======================

class Config(NamedTuple):
    address: str
    address_secondary: str
    fetch_interval: float
    fetch_intervals: Mapping[str, float]
    update_interval: float
    request_timeout: float
    port: int
    api_url: str
    leaderboard_url: str
    log_level: str

    @property
    def fetch_test_streams_interval(self) -> float:
        return self.fetch_intervals["test_streams"]

    def fetch_interval_for(self, name: str) -> float:
        """Return the fetch interval (seconds) of the named sub-exporter."""
        return self.fetch_intervals.get(name, self.fetch_interval)


def _get(environ: Mapping[str, str], name: str, default: str = "") -> str:
    return (environ.get(ENV_PREFIX + name, "") or default).strip()


def _interval(environ: Mapping[str, str], name: str, default: str) -> float:
    var = ENV_PREFIX + name
    raw = _get(environ, name, default)
    try:
        seconds = parse_duration(raw)
    except ValueError as e:
        raise ConfigError(f"failed to parse '{var}' environment variable: {e}") from e
    if seconds <= 0:
        raise ConfigError(f"'{var}' must be a positive duration, got {raw!r}")
    return seconds


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """
    Build a Config from environment variables.

    Args:
        environ: Mapping to read from, defaults to os.environ

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the orchestrator address is missing or any value is invalid
    """
    if environ is None:
        environ = os.environ

    address = _get(environ, "ORCHESTRATOR_ADDRESS")
    if not address:
        raise ConfigError(f"'{ENV_PREFIX}ORCHESTRATOR_ADDRESS' environment variable should be set")

    fetch_interval = _interval(environ, "FETCH_INTERVAL", DEFAULT_FETCH_INTERVAL)
    fetch_intervals: dict[str, float] = {}
    for name in EXPORTER_NAMES:
        env_name = f"FETCH_{name.upper()}_INTERVAL"
        if name in FETCH_INTERVAL_DEFAULTS or _get(environ, env_name):
            fetch_intervals[name] = _interval(environ, env_name, FETCH_INTERVAL_DEFAULTS.get(name, ""))
        else:
            fetch_intervals[name] = fetch_interval

    port_raw = _get(environ, "PORT", str(DEFAULT_PORT))
    try:
        port = int(port_raw)
    except ValueError as e:
        raise ConfigError(f"failed to parse '{ENV_PREFIX}PORT' environment variable: {e}") from e
    if not (1 <= port <= 65535):
        raise ConfigError(f"'{ENV_PREFIX}PORT' must be between 1 and 65535, got {port}")

    log_level = _get(environ, "LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    # getLevelName maps a registered level name to its number and echoes anything else back
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"'{ENV_PREFIX}LOG_LEVEL' must be a logging level name, got {log_level!r}")

    return Config(
        address=address,
        address_secondary=_get(environ, "ORCHESTRATOR_ADDRESS_SECONDARY"),
        fetch_interval=fetch_interval,
        fetch_intervals=fetch_intervals,
        update_interval=_interval(environ, "UPDATE_INTERVAL", DEFAULT_UPDATE_INTERVAL),
        request_timeout=_interval(environ, "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        port=port,
        api_url=_get(environ, "API_URL", DEFAULT_API_URL).rstrip("/"),
        leaderboard_url=_get(environ, "LEADERBOARD_URL", DEFAULT_LEADERBOARD_URL).rstrip("/"),
        log_level=log_level,
    )
