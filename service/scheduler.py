# service/scheduler.py
from __future__ import annotations

import logging
import os
import threading
import time as _time
from dataclasses import dataclass
from datetime import datetime, time
from typing import Any

import pytz
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from . import config_schema, runner
from .logging_utils import write_activity_log

LOG = logging.getLogger(__name__)

_INTERVAL_FIELDS = ("weeks", "days", "hours", "minutes", "seconds")
_CRON_FIELDS = ("second", "minute", "hour", "day", "day_of_week", "month", "start_date", "end_date", "jitter")


@dataclass(frozen=True)
class JobSpec:
    id: str
    module: str
    trigger: BaseTrigger
    kwargs: dict[str, Any]
    timeout_sec: int | None
    coalesce: bool
    misfire_grace_time: int | None


class SchedulerController:
    """Small façade over APScheduler so the CLI can stop and wait on it."""

    def __init__(self, scheduler: BackgroundScheduler) -> None:
        self._scheduler = scheduler
        self._stopped_evt = threading.Event()

    def stop(self) -> None:
        if self._scheduler.running:
            LOG.info("Shutting down scheduler...")
            # In-flight runs finish on their own threads.
            self._scheduler.shutdown(wait=False)
        self._stopped_evt.set()

    def join(self, timeout: float | None = None) -> bool:
        """True if stopped before `timeout`."""
        return self._stopped_evt.wait(timeout=timeout)

    def get_job_ids(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs()]


# ---- Module API -------------------------------------------------------------


def start(config_path: str | None = None) -> SchedulerController:
    """
    Load configuration, schedule every job and start a BackgroundScheduler.

    Every job runs with max_instances=1 and coalesce=True by default, so a
    scrape that outlasts its interval delays the next one instead of
    overlapping it.
    """
    cfg = config_schema.load_config(config_path)
    tz = resolve_timezone(cfg.get("timezone"))

    scheduler = BackgroundScheduler(
        timezone=tz,
        job_defaults={"coalesce": True, "max_instances": 1},
        executors={"default": ThreadPoolExecutor(4)},
        jobstores={"default": MemoryJobStore()},
    )

    for raw in cfg["jobs"]:
        _add_job(scheduler, make_job_spec(raw, tz))

    scheduler.start()
    LOG.info("Scheduler started with %d job(s).", len(scheduler.get_jobs()))
    return SchedulerController(scheduler)


def resolve_timezone(name: str | None) -> Any:
    """pytz zone for `name` (or $TZ), UTC when unknown. APScheduler 3.x wants pytz."""
    tz_name = name or os.getenv("TZ") or "UTC"
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        LOG.warning("Unknown timezone %r; using UTC", tz_name)
        return pytz.UTC


def make_job_spec(raw: dict[str, Any], tz: Any) -> JobSpec:
    return JobSpec(
        id=str(raw["id"]),
        module=str(raw.get("module") or config_schema.DEFAULT_MODULE),
        trigger=build_trigger(raw["trigger"], tz),
        kwargs=dict(raw.get("kwargs") or {}),
        timeout_sec=raw.get("timeout_sec"),
        coalesce=bool(raw.get("coalesce", True)),
        misfire_grace_time=raw.get("misfire_grace_time"),
    )


def build_trigger(trig_def: dict[str, Any], tz: Any = None) -> BaseTrigger:
    """
    APScheduler trigger from one of:

      {"interval":   {weeks|days|hours|minutes|seconds, jitter?, start_date?, end_date?}}
      {"cron":       "*/15 * * * *" | {second?, minute?, hour?, day?, day_of_week?, month?, jitter?, ...}}
      {"daily_time": {"time": "HH:MM[:SS]" | [...], "day_of_week"?: "mon-fri"}}
      {"date":       ISO-8601 string | epoch seconds | {"run_at": either}}

    A block may carry its own "timezone"; otherwise `tz` (scheduler zone) applies.
    """
    if not isinstance(trig_def, dict):
        raise ValueError("trigger spec must be a dict")
    present = [k for k in config_schema.TRIGGER_FIELDS if trig_def.get(k) is not None]
    if len(present) != 1:
        raise ValueError(f"exactly one of {config_schema.TRIGGER_FIELDS} must be provided")
    kind = present[0]
    spec = trig_def[kind]
    default_tz = _tz(tz) or pytz.UTC

    if kind == "interval":
        return _interval_trigger(spec, default_tz)
    if kind == "cron":
        return _cron_trigger(spec, default_tz)
    if kind == "daily_time":
        return _daily_time_trigger(spec, default_tz)
    return _date_trigger(spec, default_tz)


# ---- Trigger builders -------------------------------------------------------


def _tz(z: Any) -> Any:
    if not z:
        return None
    if isinstance(z, str):
        return pytz.timezone(z)
    return z


def _check_fields(kind: str, spec: dict[str, Any], allowed: tuple[str, ...]) -> None:
    unknown = set(spec) - set(allowed) - {"timezone"}
    if unknown:
        raise ValueError(f"{kind} has unknown field(s): {sorted(unknown)}")


def _interval_trigger(spec: Any, default_tz: Any) -> IntervalTrigger:
    if not isinstance(spec, dict):
        raise ValueError("interval must be an object with time fields")
    _check_fields("interval", spec, _INTERVAL_FIELDS + ("jitter", "start_date", "end_date"))

    kwargs: dict[str, Any] = {}
    for name in _INTERVAL_FIELDS + ("jitter",):
        if name not in spec:
            continue
        try:
            v = int(spec[name])
        except (TypeError, ValueError) as err:
            raise ValueError(f"interval.{name} must be an integer") from err
        if v < 0:
            raise ValueError(f"interval.{name} must be >= 0")
        if v:
            kwargs[name] = v
    if not any(kwargs.get(f) for f in _INTERVAL_FIELDS):
        raise ValueError("interval must be greater than 0 (provide at least one nonzero time field)")
    for name in ("start_date", "end_date"):
        if name in spec:
            kwargs[name] = spec[name]
    return IntervalTrigger(timezone=_tz(spec.get("timezone")) or default_tz, **kwargs)


def _cron_trigger(spec: Any, default_tz: Any) -> CronTrigger:
    if isinstance(spec, str):
        if len(spec.split()) != 5:
            raise ValueError(f"cron string must have 5 fields: {spec!r}")
        return CronTrigger.from_crontab(spec, timezone=default_tz)
    if not isinstance(spec, dict):
        raise ValueError("cron must be a crontab string or an object")
    _check_fields("cron", spec, _CRON_FIELDS)
    return CronTrigger(
        second=spec.get("second", 0),
        minute=spec.get("minute", 0),
        hour=spec.get("hour", 0),
        day=spec.get("day"),
        day_of_week=spec.get("day_of_week"),
        month=spec.get("month"),
        start_date=spec.get("start_date"),
        end_date=spec.get("end_date"),
        jitter=spec.get("jitter"),
        timezone=_tz(spec.get("timezone")) or default_tz,
    )


def _parse_hms(s: str) -> tuple[int, int, int]:
    parts = s.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"daily_time.time must be 'HH:MM' or 'HH:MM:SS', got {s!r}")
    try:
        hh, mm = int(parts[0]), int(parts[1])
        ss = int(parts[2]) if len(parts) == 3 else 0
    except ValueError as err:
        raise ValueError(f"daily_time.time must contain integers: {s!r}") from err
    time(hh, mm, ss)  # range check
    return hh, mm, ss


def _daily_time_trigger(spec: Any, default_tz: Any) -> BaseTrigger:
    if not isinstance(spec, dict):
        raise ValueError("daily_time must be an object")
    _check_fields("daily_time", spec, ("time", "day_of_week"))
    times = spec.get("time")
    if times is None:
        raise ValueError("daily_time requires 'time'")
    if isinstance(times, str):
        times = [times]
    if not isinstance(times, list) or not times:
        raise ValueError("daily_time.time must be a string or non-empty list of strings")

    tzinfo = _tz(spec.get("timezone")) or default_tz
    triggers = [
        CronTrigger(hour=h, minute=m, second=s, day_of_week=spec.get("day_of_week"), timezone=tzinfo)
        for h, m, s in sorted({_parse_hms(str(t)) for t in times})
    ]
    return triggers[0] if len(triggers) == 1 else OrTrigger(triggers)


def _date_trigger(spec: Any, default_tz: Any) -> DateTrigger:
    run_at = spec.get("run_at") if isinstance(spec, dict) else spec
    if run_at is None or isinstance(run_at, bool):
        raise ValueError(f"Invalid date trigger: {spec!r}")
    if isinstance(run_at, (int, float)):
        return DateTrigger(run_date=datetime.fromtimestamp(run_at, tz=pytz.UTC))
    try:
        dt = datetime.fromisoformat(str(run_at).strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid date trigger: {spec!r}") from e
    if dt.tzinfo is None:
        dt = default_tz.localize(dt) if hasattr(default_tz, "localize") else dt.replace(tzinfo=default_tz)
    return DateTrigger(run_date=dt)


# ---- Job registration -------------------------------------------------------


def _add_job(scheduler: BackgroundScheduler, spec: JobSpec) -> None:
    def _job_wrapper() -> None:
        started = _time.monotonic()
        LOG.info("Job[%s] starting (module=%s)", spec.id, spec.module)
        status = "ok"
        try:
            runner.run_module_once(
                spec.module,
                kwargs=spec.kwargs,
                trigger_type="scheduled",
                job_context={"job_id": spec.id, "now_iso": runner.now_iso()},
                timeout_sec=spec.timeout_sec,
            )
        except Exception:
            status = "error"
            LOG.exception("Job[%s] raised an exception.", spec.id)
        duration = _time.monotonic() - started
        LOG.info("Job[%s] finished (%s) in %.3fs", spec.id, status, duration)
        _write_activity(spec, status, duration)

    scheduler.add_job(
        func=_job_wrapper,
        trigger=spec.trigger,
        id=spec.id,
        max_instances=1,
        coalesce=spec.coalesce,
        misfire_grace_time=spec.misfire_grace_time,
        replace_existing=True,
    )
    job = scheduler.get_job(spec.id)
    LOG.info("Registered job[%s] (module=%s) next_run_time=%s", spec.id, spec.module, getattr(job, "next_run_time", None))


def _write_activity(spec: JobSpec, status: str, duration_s: float) -> None:
    try:
        write_activity_log({
            "source": "scheduler",
            "event": "job_run",
            "job_id": spec.id,
            "module": spec.module,
            "status": status,
            "duration_ms": int(duration_s * 1000),
        })
    except OSError:
        LOG.debug("write_activity_log failed for job[%s]", spec.id, exc_info=True)
