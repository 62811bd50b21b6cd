# modules/job_scrape/lib/scrapers/xml_feed.py
"""
RSS / XML feed extractor.

Feeds come in three shapes, tried most specific first; a tier that raises
or yields nothing hands over to the next one:

  1. <job> elements with one tag per field.
  2. RSS <item> elements (WordPress "WP Job Manager" tags when present,
     otherwise company/location inferred from the description).
  3. A regex scan that collects same-named tags document-wide and zips
     them by position. Noisy; the same validation gates apply.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from datetime import timedelta
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from ..cleaners import (
    DESCRIPTION_MAX,
    DESCRIPTION_MIN,
    clean_company_name,
    clean_description,
    clean_location,
    clean_title,
)
from ..heuristics import (
    extract_company_description,
    extract_company_website,
    extract_employment_type,
    extract_experience_level,
    extract_salary,
    extract_skills,
    infer_company,
    infer_location,
    is_remote,
    map_job_type,
)
from ..models import JobRecord
from ..sites import FeedType, JobSiteDefinition
from ..utils import parse_datetime
from ..validators import has_supply_chain_keywords, matches_site_keywords, supply_chain_tags
from .base import DEFAULT_COMPANY, DEFAULT_LOCATION, BaseExtractor, passes_gate, synthesized_description
from .registry import register

log = logging.getLogger(__name__)

DEFAULT_DEADLINE_DAYS = 30

# field -> tag names tried in order (namespaced names in both spellings lxml may produce)
JOB_ELEMENT_TAGS: dict[str, tuple[str, ...]] = {
    "title": ("title",),
    "company": ("company",),
    "location": ("location",),
    "description": ("description",),
    "link": ("link", "url"),
    "job_type": ("job_type", "type"),
    "deadline": ("deadline", "expiry_date"),
    "salary": ("salary",),
}
RSS_ITEM_TAGS: dict[str, tuple[str, ...]] = {
    "title": ("title",),
    "link": ("link", "guid"),
    "description": ("description", "content:encoded", "encoded"),
    "pub_date": ("pubDate", "dc:date", "date"),
    "company": ("job_listing_company",),
    "location": ("job_listing_location",),
    "job_type": ("job_listing_job_type",),
    "deadline": ("job_listing_expiry_date",),
}
SCAN_TAGS = ("title", "link", "description", "pubDate")


# ---- Small helpers ----------------------------------------------------------


def _child_text(el: Tag, names: tuple[str, ...]) -> str:
    for name in names:
        node = el.find(name)
        if node is not None:
            text = node.get_text(" ", strip=True)
            if text:
                return text
    return ""


def _meta_company(item: Tag) -> str:
    """<job:meta><company>..</company></job:meta>"""
    meta = item.find("job:meta") or item.find("meta")
    if meta is None:
        return ""
    node = meta.find("company")
    return node.get_text(" ", strip=True) if node is not None else ""


def _absolute_http(url: str | None) -> str | None:
    if not url:
        return None
    u = url.strip()
    parts = urlsplit(u)
    if parts.scheme in ("http", "https") and parts.netloc:
        return u
    return None


# ---- Record construction ----------------------------------------------------


def build_feed_record(fields: Mapping[str, str], site: JobSiteDefinition) -> JobRecord | None:
    """
    One feed entry -> JobRecord, or None when it is off-topic or invalid.
    `fields` holds raw tag text keyed like RSS_ITEM_TAGS.
    """
    title = clean_description(fields.get("title"))
    description = clean_description(fields.get("description"))

    if not (has_supply_chain_keywords(title) or has_supply_chain_keywords(description)):
        log.debug("%s: skipped off-topic entry %r", site.source, title)
        return None
    if not matches_site_keywords(site.keywords, title, description):
        log.debug("%s: entry %r matches none of %s", site.source, title, site.keywords)
        return None

    company_raw = clean_description(fields.get("company")) or infer_company(description) or ""
    location_raw = clean_description(fields.get("location")) or infer_location(description) or ""
    if not passes_gate(title, company_raw, location_raw, site):
        return None

    title = clean_title(title)
    company = clean_company_name(company_raw) or DEFAULT_COMPANY
    location = clean_location(location_raw) or DEFAULT_LOCATION
    if not passes_gate(title, company, location, site):
        return None

    job_type_text = clean_description(fields.get("job_type"))
    employment_type = extract_employment_type(job_type_text) or extract_employment_type(description)
    job_type = map_job_type(job_type_text or employment_type)

    posted_at = parse_datetime(fields.get("pub_date"))
    deadline = parse_datetime(clean_description(fields.get("deadline")))
    if deadline is None and posted_at is not None:
        deadline = posted_at + timedelta(days=DEFAULT_DEADLINE_DAYS)

    if len(description) < DESCRIPTION_MIN:
        description = synthesized_description(title, company, location, job_type)
    link = _absolute_http(clean_description(fields.get("link")))

    return JobRecord(
        title=title,
        company=company,
        location=location,
        source=site.source,
        job_type=job_type,
        description=description[:DESCRIPTION_MAX].rstrip(),
        job_url=link,
        application_url=link,
        deadline=deadline,
        salary=clean_description(fields.get("salary")) or extract_salary(description),
        tags=supply_chain_tags(title, description),
        skills=extract_skills(description),
        experience_level=extract_experience_level(description),
        employment_type=employment_type,
        is_remote=is_remote(title, location, description),
        company_website=extract_company_website(description),
        company_description=extract_company_description(description),
        source_posted_at=posted_at,
    )


def _records(entries: list[dict[str, str]], site: JobSiteDefinition) -> list[JobRecord]:
    out: list[JobRecord] = []
    seen: set[tuple[str, str | None]] = set()
    for fields in entries:
        record = build_feed_record(fields, site)
        if record is None:
            continue
        key = (record.title.lower(), record.job_url)
        if key in seen:
            continue
        seen.add(key)
        out.append(record)
    return out


# ---- Tiers ------------------------------------------------------------------


def parse_job_elements(xml_text: str, site: JobSiteDefinition) -> list[JobRecord]:
    soup = BeautifulSoup(xml_text, "xml")
    entries = []
    for el in soup.find_all("job"):
        entries.append({field: _child_text(el, names) for field, names in JOB_ELEMENT_TAGS.items()})
    return _records(entries, site)


def parse_rss_items(xml_text: str, site: JobSiteDefinition) -> list[JobRecord]:
    soup = BeautifulSoup(xml_text, "xml")
    entries = []
    for item in soup.find_all("item"):
        fields = {field: _child_text(item, names) for field, names in RSS_ITEM_TAGS.items()}
        if not fields["company"]:
            fields["company"] = _meta_company(item)
        entries.append(fields)
    return _records(entries, site)


def _scan_tag(xml_text: str, tag: str) -> list[str]:
    rx = re.compile(rf"<{re.escape(tag)}\b[^>]*>(.*?)</{re.escape(tag)}\s*>", re.IGNORECASE | re.DOTALL)
    return [m.group(1) for m in rx.finditer(xml_text)]


def scan_generic_tags(xml_text: str, site: JobSiteDefinition) -> list[JobRecord]:
    """
    Positional zip of same-named tags. Channel-level <title>/<link>/
    <description> come first in a feed, so every column is aligned on its
    tail: with n entries per column, the last n values of each are used.
    """
    columns = {tag: _scan_tag(xml_text, tag) for tag in SCAN_TAGS}
    n = len(columns["title"])
    for tag in ("link", "description"):
        if columns[tag]:
            n = min(n, len(columns[tag]))
    if n == 0:
        return []

    tails = {tag: (vals[-n:] if len(vals) >= n else []) for tag, vals in columns.items()}
    entries = []
    for i in range(n):
        entries.append({
            "title": tails["title"][i],
            "link": tails["link"][i] if tails["link"] else "",
            "description": tails["description"][i] if tails["description"] else "",
            "pub_date": tails["pubDate"][i] if tails["pubDate"] else "",
        })
    return _records(entries, site)


TIERS: tuple[tuple[str, Callable[[str, JobSiteDefinition], list[JobRecord]]], ...] = (
    ("job_elements", parse_job_elements),
    ("rss_items", parse_rss_items),
    ("generic_scan", scan_generic_tags),
)


def extract_jobs_from_xml(xml_text: str, site: JobSiteDefinition) -> list[JobRecord]:
    if not xml_text or not xml_text.strip():
        return []
    for name, tier in TIERS:
        try:
            records = tier(xml_text, site)
        except Exception as e:
            log.warning("%s: feed tier %s failed: %r", site.source, name, e)
            continue
        if records:
            log.info("%s: feed tier %s yielded %d jobs", site.source, name, len(records))
            return records
        log.debug("%s: feed tier %s yielded nothing", site.source, name)
    return []


@register
class XmlFeedExtractor(BaseExtractor):
    feed_type = FeedType.XML
    min_body_bytes = 100

    def extract(self, body: str, site: JobSiteDefinition) -> list[JobRecord]:
        return extract_jobs_from_xml(body, site)
