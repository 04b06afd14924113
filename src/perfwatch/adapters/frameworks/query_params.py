"""Shared query parameter parsing utilities for framework adapters.

Invalid values are ignored (treated as absent) rather than rejected, so a
malformed dashboard request still gets data back.
"""

import math


def _first(params: dict[str, list[str]], key: str) -> str | None:
    values = params.get(key)
    return values[0] if values else None


def _parse_since_param(params: dict[str, list[str]]) -> int | None:
    """Parse and validate the 'since' query parameter.

    Args:
        params: Parsed query string parameters (as returned by urllib.parse.parse_qs).

    Returns:
        Unix timestamp in milliseconds, or None if missing or invalid.
        Rejects negative, NaN, and infinite values.
    """
    raw = _first(params, "since")
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if value < 0 or math.isnan(value) or math.isinf(value):
        return None
    return int(value)


def _parse_limit_param(params: dict[str, list[str]]) -> int | None:
    """Parse and validate the 'limit' query parameter.

    Returns:
        A positive integer, or None if missing or invalid.
    """
    raw = _first(params, "limit")
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def _parse_name_param(params: dict[str, list[str]]) -> str | None:
    """Return the 'name' query parameter, or None if missing or blank."""
    raw = _first(params, "name")
    if raw is None or not raw.strip():
        return None
    return raw
