from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .utils import to_iso, utcnow


class JobType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    TEMPORARY = "temporary"


@dataclass
class RawExtraction:
    """
    As-extracted text for one candidate job element, before cleaning.
    Lives only while a single element is being classified.
    """

    title: str = ""
    company: str = ""
    location: str = ""
    job_url: str | None = None
    job_type: str = ""
    deadline: str = ""
    salary: str = ""
    description: str = ""
    posted_at: str = ""


@dataclass(frozen=True)
class JobRecord:
    """
    A validated, cleaned job posting. Built only after the raw extraction
    passed `validators.is_valid_job_data`.
    """

    title: str
    company: str
    location: str
    source: str
    job_type: JobType = JobType.FULL_TIME
    description: str = ""
    job_url: str | None = None
    application_url: str | None = None
    deadline: datetime | None = None
    salary: str | None = None
    tags: tuple[str, ...] = ()
    skills: tuple[str, ...] = ()
    experience_level: str | None = None
    employment_type: str | None = None
    is_remote: bool = False
    company_website: str | None = None
    company_description: str | None = None
    source_posted_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_row(self) -> dict[str, Any]:
        """Flat dict in the shape of the scraped_jobs table."""
        return {
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "source": self.source,
            "job_type": self.job_type.value,
            "description": self.description,
            "job_url": self.job_url,
            "application_url": self.application_url or self.job_url,
            "application_deadline": to_iso(self.deadline),
            "salary": self.salary,
            "tags": json.dumps(list(self.tags)),
            "skills": json.dumps(list(self.skills)),
            "experience_level": self.experience_level,
            "employment_type": self.employment_type,
            "is_remote": int(self.is_remote),
            "company_website": self.company_website,
            "company_description": self.company_description,
            "source_posted_at": to_iso(self.source_posted_at),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


@dataclass
class SiteResult:
    """
    Outcome of scraping one site.
    - jobs: validated records extracted from that site.
    - errors: non-fatal issues (fetch failures, extractor exceptions).
    """

    source: str
    jobs: list[JobRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    attempts: int = 0
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class ScrapeRunResult:
    """Aggregate of one coordinator invocation."""

    jobs: list[JobRecord] = field(default_factory=list)
    site_results: list[SiteResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    used_fallback: bool = False
    inserted: int = 0
    insert_failures: int = 0
    persisted: bool = False
    min_jobs_required: int = 0

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.site_results if r.ok)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.site_results if not r.ok)

    @property
    def meets_minimum(self) -> bool:
        return len(self.jobs) >= self.min_jobs_required

    def summary(self) -> dict[str, Any]:
        return {
            "message": (
                f"Processed {len(self.jobs)} jobs from "
                f"{self.success_count}/{len(self.site_results)} sources"
            ),
            "total_jobs": len(self.jobs),
            "inserted": self.inserted,
            "insert_failures": self.insert_failures,
            "persisted": self.persisted,
            "used_fallback": self.used_fallback,
            "meets_minimum": self.meets_minimum,
            "min_jobs_required": self.min_jobs_required,
            "successful_sources": self.success_count,
            "failed_sources": self.failure_count,
            "by_source": {
                r.source: {"jobs": len(r.jobs), "ok": r.ok, "errors": list(r.errors), "attempts": r.attempts}
                for r in self.site_results
            },
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
