# modules/job_scrape/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .config import ConfigError, Settings
from .db import JobStore, PersistenceError, SqliteJobStore
from .engine import ScrapeInProgressError, run_scrape
from .models import JobRecord, JobType, ScrapeRunResult, SiteResult
from .sites import DEFAULT_SITES, FeedType, JobSiteDefinition, SelectorMap, get_job_sites

__all__ = [
    "DEFAULT_SITES",
    "ConfigError",
    "FeedType",
    "JobRecord",
    "JobSiteDefinition",
    "JobStore",
    "JobType",
    "PersistenceError",
    "ScrapeInProgressError",
    "ScrapeRunResult",
    "SelectorMap",
    "Settings",
    "SiteResult",
    "SqliteJobStore",
    "get_job_sites",
    "run_scrape",
]
