"""
Coordinator for one scrape run.

Features:
  - One worker per site; a failing site never affects the others
  - Optional cross-site dedup by content hash
  - Curated fallback list when every site comes back empty
  - Full-replace persistence: clear once, insert each record, finish
  - Structured summary via `logging_bridge`
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed

from . import logging_bridge
from .db import JobStore, PersistenceError
from .fallback import get_fallback_jobs
from .fetcher import scrape_site
from .http_client import HttpClient
from .models import JobRecord, ScrapeRunResult, SiteResult
from .sites import JobSiteDefinition

log = logging.getLogger(__name__)

# One run at a time per process; the scheduler's max_instances=1 covers
# scheduled triggers, this covers manual ones racing a scheduled run.
_RUN_LOCK = threading.Lock()

ScrapeSiteFunc = Callable[[JobSiteDefinition, HttpClient], SiteResult]


class ScrapeInProgressError(RuntimeError):
    """Raised when run_scrape is called while another run is still going."""


def content_key(job: JobRecord) -> str:
    """Hash of the fields that identify a posting regardless of which board listed it."""
    basis = "\x1f".join(s.strip().lower() for s in (job.title, job.company, job.location))
    return hashlib.sha256(basis.encode("utf-8")).hexdigest()


def dedupe_jobs(jobs: Iterable[JobRecord]) -> list[JobRecord]:
    """Keep the first record per content_key, preserving order."""
    seen: set[str] = set()
    out: list[JobRecord] = []
    for job in jobs:
        key = content_key(job)
        if key in seen:
            continue
        seen.add(key)
        out.append(job)
    return out


def _scrape_all(
    sites: list[JobSiteDefinition],
    scrape_func: ScrapeSiteFunc,
    max_workers: int,
) -> list[SiteResult]:
    results: list[SiteResult] = []
    with HttpClient(pool_maxsize=max(10, max_workers)) as client:
        with ThreadPoolExecutor(max_workers=max(1, min(len(sites), max_workers))) as pool:
            futures = {pool.submit(scrape_func, site, client): site for site in sites}
            for fut in as_completed(futures):
                site = futures[fut]
                try:
                    results.append(fut.result())
                except Exception as e:
                    log.exception("%s: scrape raised", site.source)
                    logging_bridge.error({
                        "component": "job_scrape.engine",
                        "op": "scrape_site",
                        "source": site.source,
                        "error": repr(e),
                    })
                    results.append(SiteResult(source=site.source, errors=[repr(e)]))
    return results


def _persist(jobs: list[JobRecord], store: JobStore, result: ScrapeRunResult) -> None:
    """clear -> insert each -> finish. Clear/finish errors propagate."""
    store.clear_previous_batch()
    for job in jobs:
        try:
            store.insert_job(job)
            result.inserted += 1
        except PersistenceError as e:
            result.insert_failures += 1
            log.warning("insert failed for %r (%s): %s", job.title, job.source, e)
    store.finish_batch()
    result.persisted = True


def run_scrape(
    sites: list[JobSiteDefinition],
    store: JobStore | None,
    *,
    max_workers: int = 8,
    scrape_site_func: ScrapeSiteFunc | None = None,
    use_fallback: bool = True,
    dry_run: bool = False,
    dedupe_across_sites: bool = False,
    min_jobs_required: int = 0,
    skip_network: bool = False,
) -> ScrapeRunResult:
    """
    Scrape every site, aggregate, fall back if empty, persist.

    Args:
        sites: registry entries for this run.
        store: persistence gateway; may be None only when dry_run is set.
        scrape_site_func: override for fetch+extract (tests); defaults to fetcher.scrape_site.
        skip_network: do not contact any site (all sites count as empty).

    Raises:
        ScrapeInProgressError: another run holds the lock.
        PersistenceError: clearing or finishing the batch failed.
    """
    if not _RUN_LOCK.acquire(blocking=False):
        raise ScrapeInProgressError("A scrape run is already in progress.")
    try:
        t0 = time.perf_counter()
        result = ScrapeRunResult(min_jobs_required=min_jobs_required)

        if skip_network:
            logging_bridge.activity({
                "component": "job_scrape.engine",
                "op": "skipped_network",
                "sources": [s.source for s in sites],
            })
            result.site_results = [SiteResult(source=s.source) for s in sites]
        else:
            result.site_results = _scrape_all(sites, scrape_site_func or scrape_site, max_workers)

        jobs = [job for r in result.site_results for job in r.jobs]
        if dedupe_across_sites:
            before = len(jobs)
            jobs = dedupe_jobs(jobs)
            if before != len(jobs):
                log.info("cross-site dedup removed %d duplicates", before - len(jobs))

        if not jobs and use_fallback:
            jobs = get_fallback_jobs()
            result.used_fallback = True
            logging_bridge.activity({
                "component": "job_scrape.engine",
                "op": "fallback",
                "reason": "no jobs scraped from any site",
                "fallback_jobs": len(jobs),
                "errors": {r.source: r.errors for r in result.site_results if r.errors},
            })
            log.warning("No jobs scraped from %d sites; using %d fallback jobs", len(sites), len(jobs))

        result.jobs = jobs

        if dry_run:
            log.info("dry run: not persisting %d jobs", len(jobs))
        elif store is None:
            raise ValueError("run_scrape needs a store unless dry_run is set.")
        else:
            _persist(jobs, store, result)

        result.elapsed_seconds = time.perf_counter() - t0
        summary = result.summary()
        logging_bridge.activity({
            "component": "job_scrape.engine",
            "op": "summary",
            "dry_run": dry_run,
            "durations_ms": {r.source: r.duration_ms for r in result.site_results},
            **summary,
        })
        if not result.meets_minimum:
            log.warning("Only %d jobs collected; minimum is %d", len(jobs), min_jobs_required)
            logging_bridge.activity({
                "component": "job_scrape.engine",
                "op": "below_minimum",
                "total_jobs": len(jobs),
                "min_jobs_required": min_jobs_required,
            })
        return result
    finally:
        _RUN_LOCK.release()
