# service/runner.py
from __future__ import annotations

import importlib
import json
import logging
import os
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import datetime, timezone
from typing import Any

from service.logging_utils import write_activity_log

DEFAULT_MODULE = "modules.job_scrape"

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def now_iso() -> str:
    return datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds")


def _maybe_bool(v: Any) -> Any:
    if isinstance(v, str):
        low = v.strip().lower()
        if low in ("true", "t", "yes", "y", "1"):
            return True
        if low in ("false", "f", "no", "n", "0"):
            return False
    return v


def _maybe_number(v: Any) -> Any:
    if not isinstance(v, str):
        return v
    s = v.strip()
    if s and (s.isdigit() or (s.startswith("-") and s[1:].isdigit())):
        return int(s)
    try:
        return float(s)
    except ValueError:
        return v


def _normalize_kwargs_types(kwargs: dict[str, object] | None) -> dict[str, object]:
    """
    Normalize job kwargs (config file or CLI strings) right before module.run(**kwargs):

      • Keys ending with "_env": the value names an environment variable;
        it is replaced by that variable's value ("" if unset). The key is kept.
      • Other string values: JSON if they look like {...}/[...], else
        common bool/number spellings are coerced.
      • Non-strings pass through unchanged.
    """
    if not kwargs:
        return {}

    normalized: dict[str, object] = {}
    for k, v in kwargs.items():
        if isinstance(k, str) and k.endswith("_env") and isinstance(v, str):
            normalized[k] = os.getenv(v.strip(), "")
            continue

        if isinstance(v, str):
            s = v.strip()
            if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
                try:
                    normalized[k] = json.loads(s)
                    continue
                except json.JSONDecodeError:
                    pass
            normalized[k] = _maybe_number(_maybe_bool(s))
        else:
            normalized[k] = v

    return normalized


def _resolve_callable(module_path: str) -> Callable[..., Any]:
    """Import module and return its `run` callable."""
    mod = importlib.import_module(module_path)
    if not hasattr(mod, "run") or not callable(mod.run):
        raise AttributeError(f"Module {module_path!r} does not define a callable `run(**kwargs)`.")
    return mod.run  # type: ignore[no-any-return]


def _emit_activity(record: dict[str, Any]) -> None:
    try:
        write_activity_log(record)
    except (OSError, TypeError, ValueError) as e:
        log.warning("write_activity_log failed: %s", e)


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------
def run_module_once(
    module: str = DEFAULT_MODULE,
    kwargs: dict[str, object] | None = None,
    trigger_type: str = "manual",
    job_context: dict[str, object] | None = None,  # e.g., {"job_id": "...", "now_iso": "..."}
    timeout_sec: int | None = None,
) -> tuple[dict[str, Any], str]:
    """
    Execute a module's run(**kwargs) once and record the outcome.

    Returns:
        (meta, run_id) where meta is the module's summary dict.
    Raises:
        Propagates exceptions from module execution (caller/CLI logs them),
        and TimeoutError when `timeout_sec` elapses first.
    """
    run_id = uuid.uuid4().hex
    context: dict[str, Any] = {
        "run_id": run_id,
        "module": module,
        "trigger_type": trigger_type,
        "started_at": now_iso(),
    }
    if job_context:
        context.update({k: v for k, v in job_context.items() if k not in context})

    kw = _normalize_kwargs_types(kwargs)
    run_callable = _resolve_callable(module)

    meta: dict[str, Any] = {}
    exc: BaseException | None = None
    t0 = datetime.now()
    # No context manager: a timed-out run must not block the caller on shutdown.
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="runner")
    try:
        fut = pool.submit(run_callable, **kw)
        value = fut.result(timeout=timeout_sec) if timeout_sec else fut.result()
        meta = value if isinstance(value, dict) else {"result": value}
    except FutureTimeout:
        exc = TimeoutError(f"Module run timed out after {timeout_sec}s")
        meta = {"timeout_sec": timeout_sec}
    except Exception as e:
        exc = e
        meta = {"exception_type": type(e).__name__}
    finally:
        pool.shutdown(wait=False)
        duration_ms = int((datetime.now() - t0).total_seconds() * 1000)

    _emit_activity({
        "ts": now_iso(),
        "run_id": run_id,
        "module": module,
        "trigger_type": trigger_type,
        "ok": exc is None,
        "message": str(exc) if exc else meta.get("message", "OK"),
        "duration_ms": duration_ms,
        "context": context,
        "kwargs": kw,
        "meta": meta,
    })

    if exc:
        raise exc
    return meta, run_id
