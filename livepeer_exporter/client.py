"""
HTTP/JSON client for the upstream Livepeer APIs, plus helpers for decoding
the loosely typed values they return.
"""
import logging
import math
from collections.abc import Mapping
from typing import Any

import requests

from . import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"livepeer-exporter/{__version__}"


# ======================
# Low-level upstream communication
# ======================

class NodeClient:
    """Thin wrapper around a requests.Session that always applies a timeout."""

    def __init__(self, timeout: float, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.session.headers.setdefault("Accept", "application/json")

    def get_json(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        """
        GET a URL and decode the JSON body.

        Args:
            url: Absolute URL
            params: Optional query string parameters

        Returns:
            Decoded JSON value

        Raises:
            requests.Timeout: If the request exceeds the timeout
            requests.HTTPError: On a non-2xx status
            requests.RequestException: For other network errors
            ValueError: If the body is not valid JSON
        """
        logger.debug(f"GET {url} params={params}")
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self.session.close()


# ======================
# Error Categorization
# ======================

def categorize_error(error: Exception) -> str:
    """
    Categorize a fetch exception for logging and the error counter.

    Args:
        error: The exception to categorize

    Returns:
        Error type string: 'timeout', 'connection', 'http', 'parse', or 'other'
    """
    if isinstance(error, requests.Timeout):
        return "timeout"
    elif isinstance(error, requests.HTTPError):
        return "http"
    elif isinstance(error, requests.ConnectionError):
        return "connection"
    # requests.JSONDecodeError is both a RequestException and a ValueError
    elif isinstance(error, (ValueError, KeyError, TypeError)):
        return "parse"
    elif isinstance(error, (requests.RequestException, OSError)):
        return "connection"
    else:
        return "other"


# ======================
# Decoding helpers
# ======================

def parse_number(value: Any, field: str) -> float:
    """
    Convert a JSON number or decimal string to float.

    Raises:
        ValueError: If the value is missing or not numeric
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"field {field!r}: expected a number, got {value!r}")
    if isinstance(value, str) and "_" in value:
        raise ValueError(f"field {field!r}: expected a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"field {field!r}: expected a number, got {value!r}") from e
    if not math.isfinite(number):
        raise ValueError(f"field {field!r}: expected a finite number, got {value!r}")
    return number


def require_number(data: Mapping[str, Any], field: str) -> float:
    """Read a required numeric field from a JSON object."""
    if field not in data:
        raise ValueError(f"missing field {field!r}")
    return parse_number(data[field], field)


def optional_number(data: Mapping[str, Any], field: str, default: float = 0.0) -> float:
    """Read an optional numeric field, falling back to ``default`` when absent or null."""
    value = data.get(field)
    if value is None or value == "":
        return default
    return parse_number(value, field)


def require_object(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what}: expected a JSON object, got {type(value).__name__}")
    return value


def require_list(value: Any, what: str, key: str | None = None) -> list[Any]:
    """
    Accept either a bare JSON list or an object wrapping it under ``key``.
    """
    if key is not None and isinstance(value, Mapping) and key in value:
        value = value[key]
    if not isinstance(value, list):
        raise ValueError(f"{what}: expected a JSON list, got {type(value).__name__}")
    return value


def round_id(value: Any) -> str:
    """
    Return a round number as a string. Rounds arrive either as a scalar or as
    a ``{"id": ...}`` object; a missing round yields ``""``.
    """
    if isinstance(value, Mapping):
        value = value.get("id")
    if value is None:
        return ""
    return str(value).strip()


def bool_numeric(raw_val: Any) -> float:
    """Convert true/false, yes/no, 1/0 etc into 0.0/1.0."""
    if raw_val is None:
        return 0.0
    if isinstance(raw_val, bool):
        return 1.0 if raw_val else 0.0
    s = str(raw_val).strip().lower()
    if s in ("true", "y", "yes", "1", "active"):
        return 1.0
    return 0.0
