# service/config_schema.py
"""
Service configuration (CONFIG_PATH), JSON or YAML:

    {
      "timezone": "Africa/Nairobi",
      "jobs": [
        {
          "id": "scrape_jobs",
          "module": "modules.job_scrape",          # optional, this is the default
          "trigger": {"interval": {"hours": 6}},   # or cron / daily_time / date
          "kwargs": {"min_jobs_required": 20},
          "timeout_sec": 900,
          "misfire_grace_time": 600
        }
      ]
    }

Every job runs with max_instances=1; a trigger firing while the previous
run is still going is coalesced, never run concurrently.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_MODULE = "modules.job_scrape"
TRIGGER_FIELDS = ("interval", "cron", "daily_time", "date")


class ConfigError(ValueError):
    """Raised when the config is invalid."""


def load_config(path: str | None = None) -> dict[str, Any]:
    """
    Load and normalize the service configuration.

    Resolution order:
      1) Explicit `path` argument
      2) os.environ['CONFIG_PATH']
      3) Empty default config (no jobs)
    """
    resolved_path = path or os.environ.get("CONFIG_PATH")
    if not resolved_path:
        logger.info("CONFIG_PATH not provided; using empty default config.")
        cfg: dict[str, Any] = {"jobs": []}
    else:
        cfg = _read_any(resolved_path)
    validate(cfg)
    return _apply_defaults(cfg)


def validate(cfg: dict[str, Any]) -> None:
    """Raise ConfigError on any problem. No prints, no sys.exit()."""
    if not isinstance(cfg, dict):
        raise ConfigError("Config must be an object.")

    tz = cfg.get("timezone")
    if tz is not None and not isinstance(tz, str):
        raise ConfigError("'timezone' must be a string if provided.")

    jobs = cfg.get("jobs", [])
    if not isinstance(jobs, list):
        raise ConfigError("'jobs' must be a list.")

    seen_ids: set[str] = set()
    for idx, job in enumerate(jobs):
        if not isinstance(job, dict):
            raise ConfigError(f"Job at index {idx} must be an object.")
        job_id = _derive_job_id(job, idx)
        if job_id in seen_ids:
            raise ConfigError(f"Duplicate job id '{job_id}'.")
        seen_ids.add(job_id)

        module = job.get("module", DEFAULT_MODULE)
        if not isinstance(module, str) or not module.strip():
            raise ConfigError(f"Job '{job_id}': 'module' must be a non-empty string.")

        trigger = job.get("trigger")
        if not isinstance(trigger, dict):
            raise ConfigError(f"Job '{job_id}': 'trigger' object is required.")
        present = [k for k in TRIGGER_FIELDS if trigger.get(k) is not None]
        if len(present) != 1:
            raise ConfigError(f"Job '{job_id}': exactly one trigger required among {', '.join(TRIGGER_FIELDS)}.")
        kind = present[0]
        if kind == "interval" and not isinstance(trigger[kind], dict):
            raise ConfigError(f"Job '{job_id}': interval must be an object of time fields.")
        if kind == "cron" and not isinstance(trigger[kind], (str, dict)):
            raise ConfigError(f"Job '{job_id}': cron must be a crontab string or an object.")
        if kind == "daily_time" and not isinstance(trigger[kind], dict):
            raise ConfigError(f"Job '{job_id}': daily_time must be an object with 'time'.")

        if "kwargs" in job and not isinstance(job["kwargs"], dict):
            raise ConfigError(f"Job '{job_id}': 'kwargs' must be an object if provided.")
        if "max_instances" in job and _to_int(job["max_instances"], "max_instances", job_id) != 1:
            raise ConfigError(f"Job '{job_id}': 'max_instances' must be 1; scrape runs never overlap.")
        for field in ("timeout_sec", "misfire_grace_time"):
            if field in job:
                _to_int(job[field], field, job_id)
        if "coalesce" in job and not isinstance(job["coalesce"], bool):
            raise ConfigError(f"Job '{job_id}': 'coalesce' must be a boolean.")


# ---- Helpers ----------------------------------------------------------------


def _apply_defaults(cfg: dict[str, Any]) -> dict[str, Any]:
    out = dict(cfg)
    tz = out.get("timezone")
    if not isinstance(tz, str) or not tz.strip():
        out["timezone"] = os.environ.get("TZ", "UTC")

    jobs: list[dict[str, Any]] = []
    for idx, job in enumerate(out.get("jobs") or []):
        job_copy = dict(job)
        job_copy["id"] = _derive_job_id(job_copy, idx)
        job_copy["module"] = str(job_copy.get("module") or DEFAULT_MODULE).strip()
        job_copy["kwargs"] = dict(job_copy.get("kwargs") or {})
        job_copy["max_instances"] = 1
        job_copy["coalesce"] = bool(job_copy.get("coalesce", True))
        for field in ("timeout_sec", "misfire_grace_time"):
            if field in job_copy:
                job_copy[field] = _to_int(job_copy[field], field, job_copy["id"])
        jobs.append(job_copy)
    out["jobs"] = jobs
    return out


def _derive_job_id(job: dict[str, Any], idx: int) -> str:
    # id | name | module -> id
    for key in ("id", "name", "module"):
        v = job.get(key)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return f"job_{idx}"


def _to_int(value: Any, field: str, job_id: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Job '{job_id}': '{field}' must be an integer.")
    try:
        iv = int(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"Job '{job_id}': '{field}' must be an integer.") from err
    if iv < 0:
        raise ConfigError(f"Job '{job_id}': '{field}' must be >= 0 (got {iv}).")
    return iv


def _read_any(path: str) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {path}: {e}") from e

    if path.lower().endswith((".yml", ".yaml")):
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Top-level config in {path} must be an object.")
    return data
