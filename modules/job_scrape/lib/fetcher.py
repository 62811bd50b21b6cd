"""
Per-site fetch with retry/backoff, then dispatch to the feed-type extractor.

Neither fetch_site nor scrape_site raises: a site that cannot be fetched or
parsed becomes a SiteResult with zero jobs and an error string.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import requests

from .http_client import HttpClient, browser_headers
from .models import SiteResult
from .scrapers import registry
from .sites import JobSiteDefinition

log = logging.getLogger(__name__)

ERROR_BACKOFF_SECONDS = 3.0
SHORT_BODY_BACKOFF_SECONDS = 5.0


@dataclass
class FetchOutcome:
    body: str | None = None
    attempts: int = 0
    status: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.body is not None


def _wait_seconds(base: float, attempt: int, site: JobSiteDefinition) -> float:
    return max(base * attempt, site.rate_limit_seconds)


def fetch_site(
    site: JobSiteDefinition,
    client: HttpClient,
    *,
    min_body_bytes: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> FetchOutcome:
    """
    GET site.url up to site.retry_attempts times.

    Network errors and non-2xx statuses back off 3s * attempt; a body shorter
    than `min_body_bytes` (block pages, empty shells) backs off 5s * attempt.
    rate_limit_seconds is a floor on every wait. No wait after the last try.
    """
    if min_body_bytes is None:
        min_body_bytes = registry.get(site.feed_type).min_body_bytes

    outcome = FetchOutcome()
    attempts = max(1, site.retry_attempts)
    for attempt in range(1, attempts + 1):
        outcome.attempts = attempt
        backoff = ERROR_BACKOFF_SECONDS
        try:
            resp = client.get(site.url, headers=browser_headers(site.feed_type), timeout=site.timeout_seconds)
            outcome.status = resp.status_code
            if not 200 <= resp.status_code < 300:
                outcome.error = f"HTTP {resp.status_code}"
            elif len(resp.content or b"") < min_body_bytes:
                outcome.error = f"short body ({len(resp.content or b'')} bytes < {min_body_bytes})"
                backoff = SHORT_BODY_BACKOFF_SECONDS
            else:
                outcome.body = resp.text
                outcome.error = None
                return outcome
        except requests.RequestException as e:
            outcome.error = f"{type(e).__name__}: {e}"

        if attempt < attempts:
            wait = _wait_seconds(backoff, attempt, site)
            log.warning(
                "%s: attempt %d/%d failed (%s); retrying in %.1fs", site.source, attempt, attempts, outcome.error, wait
            )
            sleep(wait)

    log.warning("%s: giving up after %d attempts (%s)", site.source, outcome.attempts, outcome.error)
    return outcome


def scrape_site(
    site: JobSiteDefinition,
    client: HttpClient | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> SiteResult:
    """Fetch one site and extract its jobs. Owns the client if none is given."""
    t0 = time.perf_counter_ns()
    result = SiteResult(source=site.source)
    own_client = client is None
    http = client or HttpClient(timeout=site.timeout_seconds)
    try:
        extractor = registry.get(site.feed_type)()
        outcome = fetch_site(site, http, min_body_bytes=extractor.min_body_bytes, sleep=sleep)
        result.attempts = outcome.attempts
        if not outcome.ok:
            result.errors.append(f"fetch failed: {outcome.error}")
        else:
            try:
                result.jobs = extractor.extract(outcome.body or "", site)
            except Exception as e:
                log.exception("%s: extractor raised", site.source)
                result.errors.append(f"extract failed: {e!r}")
    except KeyError as e:
        result.errors.append(f"no extractor: {e}")
    finally:
        if own_client:
            http.close()
        result.duration_ms = int((time.perf_counter_ns() - t0) // 1_000_000)

    log.info("%s: %d jobs in %d ms (%d attempts)", site.source, len(result.jobs), result.duration_ms, result.attempts)
    return result
