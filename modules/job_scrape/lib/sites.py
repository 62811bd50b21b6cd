"""
Static catalog of job sources.

Adding or removing a source is an edit to DEFAULT_SITES (or to a JSON file
passed as `sites_path`, see config.py); extractors never special-case a site.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from .utils import origin_of

DEFAULT_TIMEOUT_SECONDS = 45.0
DEFAULT_RETRY_ATTEMPTS = 3

SUPPLY_CHAIN_FOCUS = ("supply chain", "logistics", "procurement", "warehouse", "inventory", "distribution")


class FeedType(str, Enum):
    HTML = "html"
    XML = "xml"
    JSON = "json"


@dataclass(frozen=True)
class SelectorMap:
    """CSS selectors per field; commas separate alternatives tried in order."""

    job_container: str
    title: str
    company: str = ""
    location: str = ""
    job_link: str = ""
    job_type: str = ""
    deadline: str = ""
    salary: str = ""
    description: str = ""
    posted_at: str = ""


@dataclass(frozen=True)
class JobSiteDefinition:
    url: str
    source: str
    selectors: SelectorMap
    feed_type: FeedType = FeedType.HTML
    keywords: tuple[str, ...] = field(default_factory=tuple)
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    rate_limit_seconds: float = 0.0

    @property
    def is_xml_feed(self) -> bool:
        return self.feed_type is FeedType.XML

    @property
    def base_origin(self) -> str:
        return origin_of(self.url)


def split_selectors(selector: str | None) -> list[str]:
    """'a, .b ,c' -> ['a', '.b', 'c'] (empty parts dropped)."""
    if not selector:
        return []
    return [part.strip() for part in selector.split(",") if part.strip()]


DEFAULT_SITES: tuple[JobSiteDefinition, ...] = (
    JobSiteDefinition(
        url="https://www.brightermonday.co.ke/jobs/supply-chain-management",
        source="BrighterMonday",
        selectors=SelectorMap(
            job_container=".job-item, .search-result, .vacancy-item, .listing-item",
            title=".job-title a, .title a, h3 a, .job-name a, .position-title",
            company=".company-name, .employer, .company, .hiring-company",
            location=".location, .job-location, .place",
            job_link=".job-title a, .title a, h3 a, .position-title a",
            job_type=".job-type, .employment-type, .contract-type",
            deadline=".deadline, .expiry, .closing-date",
            posted_at=".posted-date, .date-posted, time",
        ),
        keywords=SUPPLY_CHAIN_FOCUS,
        retry_attempts=3,
        timeout_seconds=30.0,
    ),
    JobSiteDefinition(
        url="https://www.myjobmag.co.ke/jobs-by-field/supply-chain",
        source="MyJobMag",
        selectors=SelectorMap(
            job_container=".job-list-wrapper, .job-item, .job, .vacancy",
            title=".job-title-text a, .job-title a, .title, h3",
            company=".company-hiring-info, .company-name, .employer, .company",
            location=".job-location-details, .location, .place",
            job_link=".job-title-text a, .job-title a, a",
            description=".job-desc, .job-description",
        ),
        keywords=SUPPLY_CHAIN_FOCUS,
        retry_attempts=3,
        timeout_seconds=30.0,
    ),
    JobSiteDefinition(
        url="https://www.fuzu.com/kenya/jobs?query=supply%20chain%20logistics",
        source="Fuzu",
        selectors=SelectorMap(
            job_container=".job-card, .job-item, .job, .opportunity",
            title=".job-title, .title, h3, .position",
            company=".company-name, .employer, .organization",
            location=".location, .job-location, .place",
            job_link="a, .job-link",
        ),
        keywords=SUPPLY_CHAIN_FOCUS,
        retry_attempts=2,
        timeout_seconds=25.0,
        rate_limit_seconds=2.0,
    ),
    JobSiteDefinition(
        url="https://www.pigiame.co.ke/jobs?q=logistics+supply+chain",
        source="PigiaMe",
        selectors=SelectorMap(
            job_container=".listings__item, .job-item, .listing, .ad-item",
            title=".listings__title, .title, h3, .ad-title",
            company=".listings__author, .company, .advertiser",
            location=".listings__address, .location, .place",
            job_link=".listings__title a, a",
            salary=".listings__price, .price",
        ),
        keywords=SUPPLY_CHAIN_FOCUS,
        retry_attempts=2,
        timeout_seconds=25.0,
    ),
    JobSiteDefinition(
        url="https://jobwebkenya.com/feed/?post_type=job_listing",
        source="JobWebKenya",
        selectors=SelectorMap(
            job_container="item",
            title="title",
            company="description",
            location="description",
            job_link="link",
        ),
        feed_type=FeedType.XML,
        keywords=SUPPLY_CHAIN_FOCUS,
        retry_attempts=3,
        timeout_seconds=30.0,
    ),
    JobSiteDefinition(
        url="https://www.corporate-staffing.com/job-search/?keywords=supply+chain",
        source="Corporate Staffing",
        selectors=SelectorMap(
            job_container=".job-listing, .position, .opportunity",
            title=".job-title, h3, .position-title",
            company=".company, .employer, .client",
            location=".location, .place",
            job_link="a, .job-link",
        ),
        keywords=SUPPLY_CHAIN_FOCUS,
        retry_attempts=2,
        timeout_seconds=25.0,
    ),
    JobSiteDefinition(
        url="https://www.kenyajob.com/jobs?q=logistics",
        source="KenyaJob",
        selectors=SelectorMap(
            job_container=".job-item, .vacancy, .position",
            title=".job-title, h3, .title",
            company=".company, .employer",
            location=".location, .place",
            job_link="a",
        ),
        keywords=SUPPLY_CHAIN_FOCUS,
        retry_attempts=2,
        timeout_seconds=25.0,
    ),
)


def get_job_sites(sources: Iterable[str] | None = None) -> list[JobSiteDefinition]:
    """
    Return the registry, optionally narrowed to the given source names
    (case-insensitive). Unknown names are ignored.
    """
    sites = list(DEFAULT_SITES)
    wanted = {s.strip().lower() for s in (sources or []) if s and s.strip()}
    if not wanted:
        return sites
    return [s for s in sites if s.source.lower() in wanted]
