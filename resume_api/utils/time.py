"""Token lifetime parsing and refresh thresholds.

Lifetimes come from duration strings such as ``"1h"`` or ``"7d"``. Refresh
thresholds are a fixed fraction of the configured lifetime, so shortening a
lifetime shortens its refresh window with it.
"""
from __future__ import annotations

import re
from typing import Optional

DEFAULT_ACCESS_TOKEN_SECONDS = 60 * 60  # 1 hour
DEFAULT_REFRESH_TOKEN_SECONDS = 7 * 24 * 60 * 60  # 7 days

# Refresh once 1/3 of an access token's lifetime, or 1/2 of a refresh
# token's lifetime, is left.
ACCESS_TOKEN_REFRESH_RATIO = 3
REFRESH_TOKEN_REFRESH_RATIO = 2

_DURATION_RE = re.compile(r"^(\d+)([hd])$")
_UNIT_SECONDS = {"h": 60 * 60, "d": 24 * 60 * 60}


def parse_time_to_seconds(value: Optional[str], default_seconds: int) -> int:
    """Convert ``<integer><h|d>`` to seconds, else return ``default_seconds``."""
    if not value:
        return default_seconds
    match = _DURATION_RE.match(value)
    if not match:
        return default_seconds
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


def access_token_lifetime(value: Optional[str]) -> int:
    return parse_time_to_seconds(value, DEFAULT_ACCESS_TOKEN_SECONDS)


def refresh_token_lifetime(value: Optional[str]) -> int:
    return parse_time_to_seconds(value, DEFAULT_REFRESH_TOKEN_SECONDS)


def access_refresh_threshold(value: Optional[str]) -> float:
    """Seconds-to-expiry below which an access token gets silently refreshed."""
    return access_token_lifetime(value) / ACCESS_TOKEN_REFRESH_RATIO


def refresh_rotation_threshold(value: Optional[str]) -> float:
    """Seconds-to-expiry at or below which a refresh token gets rotated."""
    return refresh_token_lifetime(value) / REFRESH_TOKEN_REFRESH_RATIO
