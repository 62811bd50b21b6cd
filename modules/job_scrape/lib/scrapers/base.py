from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ..models import JobRecord, JobType
from ..sites import FeedType, JobSiteDefinition
from ..validators import is_valid_job_data

log = logging.getLogger(__name__)

DEFAULT_COMPANY = "Company Name Available on Site"
DEFAULT_LOCATION = "Kenya"


class ExtractorError(Exception):
    """Raised by an extractor when a document cannot be read at all."""


class BaseExtractor(ABC):
    """
    Turns one fetched document into validated JobRecords.

    Contract:
      - extract(body, site) returns every record that passed validation;
        an empty list is a normal outcome, not an error.
      - Rejected candidates are logged at debug level and dropped.
      - No network, no persistence, no global state.
    """

    # Concrete subclasses MUST set this; the registry is keyed by it.
    feed_type: FeedType | None = None

    # Bodies shorter than this are treated as "blocked or empty" by the fetcher.
    min_body_bytes: int = 100

    @abstractmethod
    def extract(self, body: str, site: JobSiteDefinition) -> list[JobRecord]:
        raise NotImplementedError


def synthesized_description(title: str, company: str, location: str, job_type: JobType) -> str:
    """Stand-in description for listings that carry none."""
    return f"{title} at {company} in {location}. This is a {job_type.value.replace('_', ' ')} position."


def passes_gate(title: str, company: str, location: str, site: JobSiteDefinition) -> bool:
    """is_valid_job_data plus a debug line for each rejection."""
    if is_valid_job_data(title, company, location, site.source):
        return True
    log.debug("%s: rejected candidate title=%r company=%r location=%r", site.source, title, company, location)
    return False
