from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .sites import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_TIMEOUT_SECONDS,
    FeedType,
    JobSiteDefinition,
    SelectorMap,
    get_job_sites,
)
from .utils import getenv_str, truthy

DEFAULT_SQLITE_PATH = "/app/local/state/scraped_jobs.db"
DEFAULT_MIN_JOBS_REQUIRED = 20


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when provided kwargs/env cannot form a valid Settings."""


# -----------------------------
# Models
# -----------------------------
@dataclass
class Settings:
    """
    Canonical configuration for a 'job_scrape' run.

    Sites come from the built-in registry (sites.DEFAULT_SITES) unless
    `sites_path` points at a JSON list of site objects. `sources` narrows
    either list to the named sources. `keywords`, when given, replaces every
    selected site's own feed keyword filter.
    """

    sqlite_path: str = DEFAULT_SQLITE_PATH
    max_threads: int = 8

    # Site selection
    sites_path: str | None = None
    sources: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    _selected: list[JobSiteDefinition] = field(default_factory=list, repr=False)

    # Run behavior
    dry_run: bool = False
    use_fallback: bool = True
    dedupe_across_sites: bool = False
    skip_network: bool = False
    min_jobs_required: int = DEFAULT_MIN_JOBS_REQUIRED

    def sites(self) -> list[JobSiteDefinition]:
        """Active site list for this run (loaded once, then cached)."""
        if self._selected:
            return self._selected

        if self.sites_path:
            all_sites = load_sites_file(self.sites_path)
            wanted = {s.lower() for s in self.sources}
            selected = [s for s in all_sites if not wanted or s.source.lower() in wanted]
        else:
            selected = get_job_sites(self.sources)

        if not selected:
            where = self.sites_path or "built-in registry"
            raise ConfigError(f"No job sites selected from {where} (sources={self.sources or 'all'}).")
        if self.keywords:
            selected = [replace(s, keywords=tuple(self.keywords)) for s in selected]
        self._selected = selected
        return self._selected

    # ------------- constructors -------------
    @classmethod
    def from_env_and_kwargs(cls, kwargs: Mapping[str, Any] | None) -> Settings:
        """
        Build Settings from kwargs with validation.

        Expected kwargs (all optional):

            sqlite_path: str = $JOBS_SQLITE_PATH or "/app/local/state/scraped_jobs.db"
            max_threads: int = 8
            sites_path: str            # JSON site list replacing the built-in registry
            sources: list[str] | str   # comma-separated accepted
            keywords: list[str] | str  # overrides each site's feed keywords
            dry_run: bool = false      # alias: test_mode
            use_fallback: bool = true
            dedupe_across_sites: bool = false
            skip_network: bool = false
            min_jobs_required: int = 20
        """
        kw = dict(kwargs or {})

        sites_path = kw.get("sites_path")
        if sites_path is not None:
            sites_path = str(sites_path).strip() or None

        sqlite_path = str(kw.get("sqlite_path") or getenv_str("JOBS_SQLITE_PATH") or DEFAULT_SQLITE_PATH)

        try:
            max_threads = int(kw.get("max_threads") or 8)
            raw_min = kw.get("min_jobs_required")
            min_jobs_required = DEFAULT_MIN_JOBS_REQUIRED if raw_min in (None, "") else int(raw_min)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid integer setting: {e}") from e

        dry_run = truthy(kw.get("dry_run")) or truthy(kw.get("test_mode"))
        use_fallback = truthy(kw["use_fallback"]) if "use_fallback" in kw else True

        settings = cls(
            sqlite_path=sqlite_path,
            max_threads=max_threads,
            sites_path=sites_path,
            sources=_parse_names(kw.get("sources"), "sources"),
            keywords=_parse_names(kw.get("keywords"), "keywords"),
            dry_run=dry_run,
            use_fallback=use_fallback,
            dedupe_across_sites=truthy(kw.get("dedupe_across_sites")),
            skip_network=truthy(kw.get("skip_network")),
            min_jobs_required=min_jobs_required,
        )
        _validate_settings(settings)
        return settings


# -----------------------------
# Site files
# -----------------------------
def load_sites_file(path: str) -> list[JobSiteDefinition]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"job_scrape sites file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"job_scrape sites file is invalid JSON: {path}") from e
    return parse_sites_list(data)


def parse_sites_list(value: Any) -> list[JobSiteDefinition]:
    """
    Parse a flat list into JobSiteDefinition objects.
    Accepts: [{"url": "...", "source": "...", "feed_type": "html",
               "selectors": {"job_container": "...", "title": "...", ...},
               "retry_attempts": 3, "timeout_seconds": 30, ...}, ...]
    """
    if not value:
        return []
    if not isinstance(value, list):
        raise ConfigError("Expected a list of site objects.")
    out: list[JobSiteDefinition] = []
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise ConfigError(f"Item[{i}] must be an object.")
        url = str(item.get("url") or "").strip()
        source = str(item.get("source") or "").strip()
        if not url or not source:
            raise ConfigError(f"Item[{i}] requires 'url' and 'source'.")

        sel = item.get("selectors") or {}
        if not isinstance(sel, dict):
            raise ConfigError(f"Item[{i}].selectors must be an object.")
        if not sel.get("job_container") or not sel.get("title"):
            raise ConfigError(f"Item[{i}].selectors requires 'job_container' and 'title'.")
        unknown = set(sel) - set(SelectorMap.__dataclass_fields__)
        if unknown:
            raise ConfigError(f"Item[{i}].selectors has unknown keys: {sorted(unknown)}")

        try:
            feed_type = FeedType(str(item.get("feed_type") or "html").strip().lower())
        except ValueError as e:
            raise ConfigError(f"Item[{i}].feed_type must be one of html/xml/json.") from e

        keywords = item.get("keywords") or []
        if isinstance(keywords, str):
            keywords = [k for k in (p.strip() for p in keywords.split(",")) if k]

        try:
            retry_attempts = int(item.get("retry_attempts") or DEFAULT_RETRY_ATTEMPTS)
            timeout_seconds = float(item.get("timeout_seconds") or DEFAULT_TIMEOUT_SECONDS)
            rate_limit_seconds = float(item.get("rate_limit_seconds") or 0.0)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Item[{i}] has a non-numeric retry/timeout value.") from e
        if retry_attempts < 1 or timeout_seconds <= 0 or rate_limit_seconds < 0:
            raise ConfigError(f"Item[{i}] retry_attempts/timeout_seconds/rate_limit_seconds out of range.")

        out.append(
            JobSiteDefinition(
                url=url,
                source=source,
                selectors=SelectorMap(**{k: str(v) for k, v in sel.items()}),
                feed_type=feed_type,
                keywords=tuple(str(k) for k in keywords),
                retry_attempts=retry_attempts,
                timeout_seconds=timeout_seconds,
                rate_limit_seconds=rate_limit_seconds,
            )
        )
    return out


# -----------------------------
# Helpers
# -----------------------------
def _parse_names(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        parts = [str(v) for v in value]
    else:
        raise ConfigError(f"'{key}' must be a list or a comma-separated string.")
    return [p.strip() for p in parts if p.strip()]


def _validate_settings(s: Settings) -> None:
    if s.max_threads <= 0:
        raise ConfigError("'max_threads' must be >= 1.")
    if s.min_jobs_required < 0:
        raise ConfigError("'min_jobs_required' must be >= 0.")
    if not s.sqlite_path.strip():
        raise ConfigError("'sqlite_path' cannot be empty.")

    # Fail early on a bad sites file or a sources filter that matches nothing
    s.sites()
