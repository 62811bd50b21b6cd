# modules/job_scrape/lib/scrapers/html.py
from __future__ import annotations

import logging
from collections.abc import Iterator

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from ..cleaners import (
    clean_company_name,
    clean_job_description,
    clean_location,
    clean_title,
    collapse_whitespace,
)
from ..heuristics import extract_employment_type, is_remote, map_job_type
from ..models import JobRecord, RawExtraction
from ..sites import FeedType, JobSiteDefinition, split_selectors
from ..utils import parse_datetime, utcnow
from ..validators import is_placeholder_text, resolve_job_url, supply_chain_tags
from .base import DEFAULT_COMPANY, DEFAULT_LOCATION, BaseExtractor, passes_gate, synthesized_description
from .registry import register

log = logging.getLogger(__name__)

# Most specific first; broad attribute matches only after class names.
GENERIC_CONTAINER_SELECTORS = (
    ".job-card",
    ".job-item",
    ".job-listing",
    ".job-post",
    ".vacancy",
    ".listing-item",
    '[class*="job"]',
    '[class*="vacancy"]',
    "article",
    ".card",
)
MAX_FALLBACK_CONTAINERS = 500

GENERIC_FIELD_FALLBACKS: dict[str, tuple[str, ...]] = {
    "title": ("h1", "h2", "h3", "h4", "h5", ".title", '[class*="title"]'),
    "company": (".company", ".company-name", ".employer", '[class*="company"]', '[class*="employer"]'),
    "location": (".location", ".job-location", ".place", '[class*="location"]', '[class*="city"]'),
}


def _select(root: Tag, selector: str) -> list[Tag]:
    """root.select() that treats an invalid selector as matching nothing."""
    try:
        return root.select(selector)
    except (SelectorSyntaxError, NotImplementedError):
        log.debug("Skipping invalid selector %r", selector)
        return []


def _node_text(node: Tag) -> str:
    return collapse_whitespace(node.get_text(" ", strip=True))


def _field_kind(field_name: str) -> str | None:
    name = (field_name or "").lower()
    for kind in ("title", "company", "location"):
        if kind in name:
            return kind
    return None


# ---- Public helpers -----------------------------------------------------------


def find_job_containers(soup: BeautifulSoup | Tag, site: JobSiteDefinition) -> list[Tag]:
    """
    Configured container selectors in order (first with any match wins),
    then the generic list, where a match only counts if it is plausibly a
    job list (between 1 and MAX_FALLBACK_CONTAINERS elements).
    """
    for sel in split_selectors(site.selectors.job_container):
        found = _select(soup, sel)
        if found:
            return found

    for sel in GENERIC_CONTAINER_SELECTORS:
        found = _select(soup, sel)
        if 0 < len(found) < MAX_FALLBACK_CONTAINERS:
            log.info("%s: configured containers matched nothing; using fallback %r (%d)", site.source, sel, len(found))
            return found
    return []


def extract_text_with_fallbacks(element: Tag, selectors: str | None, field_name: str) -> str:
    """
    First non-placeholder text among the configured selector alternatives,
    then among generic selectors for the field's kind (title/company/location).
    Returns "" when nothing usable is found.
    """
    candidates = list(split_selectors(selectors))
    kind = _field_kind(field_name)
    if kind:
        candidates.extend(GENERIC_FIELD_FALLBACKS[kind])

    for sel in candidates:
        for node in _select(element, sel):
            text = _node_text(node)
            if text and not is_placeholder_text(text):
                return text
    return ""


def extract_job_url(element: Tag, site: JobSiteDefinition) -> str | None:
    """First candidate href that resolves to a job-looking absolute URL."""
    base = site.base_origin or site.url
    for href in _href_candidates(element, site.selectors.job_link):
        url = resolve_job_url(href, base)
        if url:
            return url
    return None


def _href_candidates(element: Tag, link_selectors: str) -> Iterator[str]:
    for sel in split_selectors(link_selectors):
        for node in _select(element, sel):
            href = node.get("href")
            if not href:
                inner = node.find("a", href=True)
                href = inner.get("href") if inner else None
            if href:
                yield str(href)
    if element.name == "a" and element.get("href"):
        yield str(element["href"])
    for a in element.find_all("a", href=True):
        yield str(a["href"])


def _posted_candidates(element: Tag, selector: str) -> Iterator[str]:
    for sel in split_selectors(selector):
        for node in _select(element, sel):
            value = node.get("datetime") or _node_text(node)
            if value:
                yield str(value)
    for node in element.find_all("time", attrs={"datetime": True}):
        yield str(node["datetime"])


def _posted_text(element: Tag, selector: str) -> str:
    """First posted-date candidate that parses; labels like "New" are passed over."""
    for value in _posted_candidates(element, selector):
        if parse_datetime(value) is not None:
            return value
    return ""


# ---- Extractor ----------------------------------------------------------------


def extract_raw(element: Tag, site: JobSiteDefinition) -> RawExtraction:
    sel = site.selectors
    return RawExtraction(
        title=extract_text_with_fallbacks(element, sel.title, "title"),
        company=extract_text_with_fallbacks(element, sel.company, "company"),
        location=extract_text_with_fallbacks(element, sel.location, "location"),
        job_url=extract_job_url(element, site),
        job_type=extract_text_with_fallbacks(element, sel.job_type, "job_type"),
        deadline=extract_text_with_fallbacks(element, sel.deadline, "deadline"),
        salary=extract_text_with_fallbacks(element, sel.salary, "salary"),
        description=extract_text_with_fallbacks(element, sel.description, "description"),
        posted_at=_posted_text(element, sel.posted_at),
    )


def build_record(raw: RawExtraction, site: JobSiteDefinition) -> JobRecord | None:
    """Validate and clean one raw extraction; None when it is not a job."""
    # Raw first so masked values ("Acme ****") are caught before cleaning hides them.
    if not passes_gate(raw.title, raw.company, raw.location, site):
        return None

    title = clean_title(raw.title)
    company = clean_company_name(raw.company) or DEFAULT_COMPANY
    location = clean_location(raw.location) or DEFAULT_LOCATION
    if not passes_gate(title, company, location, site):
        return None

    job_type = map_job_type(raw.job_type)
    description = clean_job_description(raw.description) or synthesized_description(title, company, location, job_type)

    return JobRecord(
        title=title,
        company=company,
        location=location,
        source=site.source,
        job_type=job_type,
        description=description,
        job_url=raw.job_url,
        application_url=raw.job_url,
        deadline=parse_datetime(raw.deadline),
        salary=collapse_whitespace(raw.salary) or None,
        tags=supply_chain_tags(title, description),
        employment_type=extract_employment_type(raw.job_type),
        is_remote=is_remote(title, location),
        source_posted_at=parse_datetime(raw.posted_at) or utcnow(),
    )


def extract_jobs_from_html(html: str, site: JobSiteDefinition) -> list[JobRecord]:
    """
    All valid listings on one page. Duplicate (title, url) pairs are dropped.
    Pages where nothing matches return [] rather than raising.
    """
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    containers = find_job_containers(soup, site)
    if not containers:
        log.info("%s: no job containers found", site.source)
        return []

    out: list[JobRecord] = []
    seen: set[tuple[str, str | None]] = set()
    for element in containers:
        record = build_record(extract_raw(element, site), site)
        if record is None:
            continue
        key = (record.title.lower(), record.job_url)
        if key in seen:
            continue
        seen.add(key)
        out.append(record)

    log.info("%s: %d/%d containers yielded jobs", site.source, len(out), len(containers))
    return out


@register
class HtmlExtractor(BaseExtractor):
    feed_type = FeedType.HTML
    min_body_bytes = 1000

    def extract(self, body: str, site: JobSiteDefinition) -> list[JobRecord]:
        return extract_jobs_from_html(body, site)
