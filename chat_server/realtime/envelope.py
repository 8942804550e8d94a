"""
Timestamp and payload helpers for events emitted over Socket.IO.

All server-assigned timestamps are ISO 8601 UTC with a 'Z' suffix so the
browser client can hand them straight to `new Date(...)`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any


def utc_now_z() -> str:
    """Return current UTC time in ISO 8601 format with 'Z' suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def strip_none(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None; optional wire fields are omitted, not null."""
    return {key: value for key, value in payload.items() if value is not None}
