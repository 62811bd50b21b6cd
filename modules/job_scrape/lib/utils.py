from __future__ import annotations

import os
import re
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlsplit

from dateutil import parser as date_parser

_RELATIVE_AGE_RE = re.compile(
    r"(\d+)\s*(minute|min|hour|hr|day|week|month)s?\s+ago",
    re.IGNORECASE,
)
_RELATIVE_UNITS = {
    "minute": timedelta(minutes=1),
    "min": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "hr": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
}


def truthy(v: Any) -> bool:
    """
    Normalize common truthy inputs from env/kwargs.
    Accepts bools or strings like: '1', 'true', 'yes', 'on'.
    """
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    if isinstance(v, (int, float)):
        return v != 0
    return str(v).strip().lower() in {"1", "true", "yes", "on", "y", "t"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """
    UTC ISO-8601 timestamp with 'Z' suffix.
    """
    return utcnow().isoformat().replace("+00:00", "Z")


def to_iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def getenv_str(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    return val if val is not None else default


def origin_of(url: str) -> str:
    """scheme://host of a URL ('' if it has neither)."""
    parts = urlsplit(url or "")
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


def parse_datetime(text: str | None) -> datetime | None:
    """
    Best-effort parse of scraped date text into an aware UTC datetime.

    Handles ISO/RFC-822 strings (feeds, <time datetime>) via dateutil and
    relative ages such as "3 days ago". Returns None when nothing parses.
    """
    if not text:
        return None
    s = str(text).strip()
    if not s:
        return None

    m = _RELATIVE_AGE_RE.search(s)
    if m:
        unit = _RELATIVE_UNITS[m.group(2).lower()]
        return utcnow() - unit * int(m.group(1))
    if s.lower() in {"today", "just now"}:
        return utcnow()
    if s.lower() == "yesterday":
        return utcnow() - timedelta(days=1)

    try:
        dt = date_parser.parse(s)
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
