from __future__ import annotations

from typing import Any

from .lib.config import Settings
from .lib.db import SqliteJobStore
from .lib.engine import run_scrape
from .lib.logging_bridge import activity as log_activity


def run(**kwargs: Any) -> dict[str, Any]:
    """
    Entry point for the 'job_scrape' module.

    Accepts kwargs (from scheduler/runner/CLI), including:
      sqlite_path: str = "/app/local/state/scraped_jobs.db"
      max_threads: int = 8
      sources: list[str] | "A,B"   # limit to these registry sources
      sites_path: str              # JSON site list instead of the built-in registry
      dry_run: bool = False        # scrape, but leave the database untouched
      use_fallback: bool = True
      dedupe_across_sites: bool = False
      skip_network: bool = False
      min_jobs_required: int = 20

    Returns:
      The run summary dict (counts per source, fallback, inserts).
    """
    settings = Settings.from_env_and_kwargs(kwargs)
    sites = settings.sites()

    log_activity({
        "component": "job_scrape.main",
        "op": "start",
        "sources": [s.source for s in sites],
        "flags": {
            "dry_run": settings.dry_run,
            "use_fallback": settings.use_fallback,
            "dedupe_across_sites": settings.dedupe_across_sites,
            "skip_network": settings.skip_network,
        },
    })

    store = None if settings.dry_run else SqliteJobStore(settings.sqlite_path)
    result = run_scrape(
        sites,
        store,
        max_workers=settings.max_threads,
        use_fallback=settings.use_fallback,
        dry_run=settings.dry_run,
        dedupe_across_sites=settings.dedupe_across_sites,
        min_jobs_required=settings.min_jobs_required,
        skip_network=settings.skip_network,
    )
    return result.summary()
