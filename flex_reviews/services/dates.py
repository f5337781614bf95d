"""Timestamp helpers for upstream review payloads.

Hostaway returns naive timestamps such as ``"2020-08-21 22:45:14"``; they are
treated as UTC and rendered as ``2020-08-21T22:45:14.000Z``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_timestamp(value: Any) -> Optional[datetime]:
    """Return an aware UTC datetime for an ISO-8601 string, or ``None``."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None


def format_iso(dt: datetime) -> str:
    # Millisecond precision with a Z suffix: 2020-08-21T22:45:14.000Z
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def utc_now_iso(now: Optional[Callable[[], datetime]] = None) -> str:
    return format_iso((now or _utc_now)())


def to_iso_date(
    raw: Any,
    fallback_to_now: bool = True,
    *,
    now: Optional[Callable[[], datetime]] = None,
) -> str:
    """Normalize a loosely formatted upstream timestamp to ISO-8601.

    Strings containing ``T`` or ending in ``Z`` are parsed as-is; anything
    else gets its first space replaced with ``T`` and is read as UTC. When the
    value cannot be parsed the current instant is returned, or ``""`` if
    ``fallback_to_now`` is false.
    """
    if isinstance(raw, str) and raw.strip():
        candidate = raw if ("T" in raw or raw.endswith("Z")) else raw.replace(" ", "T", 1) + "Z"
        parsed = parse_iso_timestamp(candidate)
        if parsed is not None:
            return format_iso(parsed)
    return utc_now_iso(now) if fallback_to_now else ""
