# modules/job_scrape/lib/scrapers/json_api.py
from __future__ import annotations

import json
import logging
from typing import Any

from ..cleaners import DESCRIPTION_MAX, clean_company_name, clean_job_description, clean_location, clean_title
from ..heuristics import extract_employment_type, extract_salary, is_remote, map_job_type
from ..models import JobRecord
from ..sites import FeedType, JobSiteDefinition
from ..utils import parse_datetime
from ..validators import has_supply_chain_keywords, supply_chain_tags
from .base import DEFAULT_COMPANY, DEFAULT_LOCATION, BaseExtractor, ExtractorError, passes_gate, synthesized_description
from .registry import register

log = logging.getLogger(__name__)


def _apply_link(item: dict[str, Any]) -> str | None:
    """apply_link.link, then the first apply_options entry, then share_link."""
    candidates: list[Any] = []
    apply_link = item.get("apply_link")
    if isinstance(apply_link, dict):
        candidates.append(apply_link.get("link"))
    options = item.get("apply_options")
    if isinstance(options, list):
        candidates.extend(o.get("link") for o in options if isinstance(o, dict))
    candidates.append(item.get("share_link"))
    for c in candidates:
        if isinstance(c, str) and c.startswith(("http://", "https://")):
            return c
    return None


def build_api_record(item: dict[str, Any], site: JobSiteDefinition) -> JobRecord | None:
    title_raw = str(item.get("title") or "")
    if not has_supply_chain_keywords(title_raw):
        log.debug("%s: skipped off-topic entry %r", site.source, title_raw)
        return None

    company_raw = str(item.get("company_name") or "")
    location_raw = str(item.get("location") or "")
    if not passes_gate(title_raw, company_raw, location_raw, site):
        return None

    title = clean_title(title_raw)
    company = clean_company_name(company_raw) or DEFAULT_COMPANY
    location = clean_location(location_raw) or DEFAULT_LOCATION
    if not passes_gate(title, company, location, site):
        return None

    ext = item.get("detected_extensions") if isinstance(item.get("detected_extensions"), dict) else {}
    schedule = str(ext.get("schedule_type") or "")
    job_type = map_job_type(schedule)
    description = clean_job_description(str(item.get("description") or "")) or synthesized_description(
        title, company, location, job_type
    )
    url = _apply_link(item)

    return JobRecord(
        title=title,
        company=company,
        location=location,
        source=site.source,
        job_type=job_type,
        description=description[:DESCRIPTION_MAX],
        job_url=url,
        application_url=url,
        salary=str(ext.get("salary") or "") or extract_salary(description),
        tags=supply_chain_tags(title, description),
        employment_type=extract_employment_type(schedule),
        is_remote=bool(ext.get("work_from_home")) or is_remote(title, location, description),
        source_posted_at=parse_datetime(str(ext.get("posted_at") or "")),
    )


def extract_jobs_from_json(body: str, site: JobSiteDefinition) -> list[JobRecord]:
    """Google-Jobs style document: {"jobs_results": [{...}, ...]}."""
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ExtractorError(f"{site.source}: response is not JSON: {e}") from e
    results = data.get("jobs_results") if isinstance(data, dict) else None
    if not isinstance(results, list):
        log.info("%s: no jobs_results list in response", site.source)
        return []

    out: list[JobRecord] = []
    seen: set[tuple[str, str | None]] = set()
    for item in results:
        if not isinstance(item, dict):
            continue
        record = build_api_record(item, site)
        if record is None:
            continue
        key = (record.title.lower(), record.job_url)
        if key not in seen:
            seen.add(key)
            out.append(record)
    return out


@register
class JsonApiExtractor(BaseExtractor):
    feed_type = FeedType.JSON
    min_body_bytes = 100

    def extract(self, body: str, site: JobSiteDefinition) -> list[JobRecord]:
        return extract_jobs_from_json(body, site)
