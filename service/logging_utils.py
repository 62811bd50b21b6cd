# service/logging_utils.py
"""
Structured JSONL logs: one activity file and one error file per day.

    $LOG_DIR/activity-YYYY-MM-DD.jsonl
    $LOG_DIR/error-YYYY-MM-DD.jsonl

Every record is deep-copied with secret-looking keys redacted and a
`_meta` block (host, pid, ts) added. LOG_DIR is read per write.
"""

from __future__ import annotations

import datetime as _dt
import json
import os
import socket
from collections.abc import Iterable
from typing import Any

DEFAULT_LOG_DIR = "/app/local/logs"

_REDACT_KEYS = {
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "cookie",
    "set-cookie",
}
_REDACTED = "***REDACTED***"

_HOSTNAME = socket.gethostname()
_PID = os.getpid()


# ---- Public API --------------------------------------------------------------


def write_activity_log(record: dict[str, Any]) -> None:
    """
    Append one activity record. Never mutates `record`.
    Raises OSError on unrecoverable I/O, TypeError/ValueError if not JSON-safe.
    """
    _write_jsonl(_log_path_for_today(os.getenv("ACTIVITY_LOG_PREFIX", "activity")), record)


def write_error_log(record: dict[str, Any]) -> None:
    """Append one error record, parallel to the activity log."""
    _write_jsonl(_log_path_for_today(os.getenv("ERROR_LOG_PREFIX", "error")), record)


def get_activity_log_path() -> str:
    return _log_path_for_today(os.getenv("ACTIVITY_LOG_PREFIX", "activity"))


def get_error_log_path() -> str:
    return _log_path_for_today(os.getenv("ERROR_LOG_PREFIX", "error"))


def redact(record: dict[str, Any], keys: Iterable[str] | None = None) -> dict[str, Any]:
    """
    Redacted deep copy of `record`: values whose KEY contains any of `keys`
    (case-insensitive substring) are replaced. Bearer tokens in strings are scrubbed.
    """
    return _redact_deep(record, tuple(keys or _REDACT_KEYS))


# ---- Internal helpers --------------------------------------------------------


def _log_dir() -> str:
    return os.getenv("LOG_DIR") or DEFAULT_LOG_DIR


def _log_path_for_today(prefix: str) -> str:
    return os.path.join(_log_dir(), f"{prefix}-{_dt.date.today().isoformat()}.jsonl")


def _key_matches(name: str, patterns: Iterable[str]) -> bool:
    n = name.lower()
    return any(pat in n for pat in patterns)


def _scrub_bearer(value: str) -> str:
    if "bearer " in value.lower():
        scheme = value.split(" ", 1)[0]
        return f"{scheme} {_REDACTED}"
    return value


def _redact_deep(value: Any, patterns: Iterable[str]) -> Any:
    if isinstance(value, dict):
        return {
            k: (_REDACTED if isinstance(k, str) and _key_matches(k, patterns) else _redact_deep(v, patterns))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact_deep(v, patterns) for v in value]
    if isinstance(value, str):
        return _scrub_bearer(value)
    return value


def _with_metadata(record: dict[str, Any]) -> dict[str, Any]:
    meta = record.get("_meta")
    out = dict(record)
    out["_meta"] = {
        **(meta if isinstance(meta, dict) else {}),
        "host": _HOSTNAME,
        "pid": _PID,
        "ts": _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="seconds"),
    }
    return out


def _write_jsonl(path: str, record: dict[str, Any]) -> None:
    payload = _with_metadata(_redact_deep(record, _REDACT_KEYS))
    # Serialize before touching the file so a bad record writes nothing.
    data = (json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str) + "\n").encode("utf-8")

    os.makedirs(os.path.dirname(path), exist_ok=True)
    fd = os.open(path, os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644)
    try:
        os.write(fd, data)  # single write; O_APPEND keeps lines whole on POSIX
    finally:
        os.close(fd)
