"""
Regex heuristics that pull optional fields out of free-text descriptions.

Every function returns None (or an empty tuple / False) when nothing
matches; none of these fields is required for a record to be valid.
"""

from __future__ import annotations

import re

from .cleaners import clean_company_name, clean_location, collapse_whitespace
from .models import JobType
from .validators import is_placeholder_text

_FIELD_LABELS = r"(?:Company|Employer|Organi[sz]ation|Location|Job\s*Type|Deadline|Salary|Position|Title|Category)"

_COMPANY_LABEL_RE = re.compile(
    r"\b(?:Company|Employer|Organi[sz]ation)\s*:\s*(.+?)"
    r"(?=\s*(?:[,;|]\s*)?" + _FIELD_LABELS + r"\s*:|\s*[;|]|\.\s|$)",
    re.IGNORECASE,
)
_COMPANY_AT_RE = re.compile(r"\bat\s+([A-Z][\w&.'-]*(?:\s+(?:&\s+)?[A-Z][\w&.'-]*){0,4})")

_LOCATION_LABEL_RE = re.compile(
    r"\bLocation\s*:\s*(.+?)"
    r"(?=\s*(?:[;|]\s*)?" + _FIELD_LABELS + r"\s*:|\s*[;|]|\.\s|$)",
    re.IGNORECASE,
)
_LOCATION_IN_RE = re.compile(r"\bin\s+([A-Z][A-Za-z .'-]*?,\s*Kenya)\b")

_SKILLS_RE = re.compile(
    r"(?:required skills|key skills|skills|qualifications|requirements)\s*:\s*(.+?)(?:\.\s|$)",
    re.IGNORECASE,
)
_YEARS_RE = re.compile(r"(\d{1,2})\s*\+?\s*(?:-\s*\d{1,2}\s*)?years?(?:'|\s+of)?\s+(?:\w+\s+)?experience", re.IGNORECASE)
_SENIORITY_WORDS = (
    (re.compile(r"\b(?:senior|lead|head of|principal|manager)\b", re.IGNORECASE), "senior"),
    (re.compile(r"\b(?:entry[- ]level|graduate|junior|trainee|intern)\b", re.IGNORECASE), "entry"),
)

_SALARY_AMOUNT_RE = re.compile(
    r"(?:KSH|KES|Kshs?)\.?\s*[\d,]+(?:\.\d+)?"
    r"(?:\s*(?:-|to)\s*(?:(?:KSH|KES|Kshs?)\.?\s*)?[\d,]+(?:\.\d+)?)?",
    re.IGNORECASE,
)
_SALARY_LABEL_RE = re.compile(r"\bsalary\s*:\s*([^.;|]+)", re.IGNORECASE)

# First match wins; order matters ("full-time contract" reads as full-time).
_EMPLOYMENT_TYPES = (
    (re.compile(r"\bfull[\s-]?time\b|\bpermanent\b", re.IGNORECASE), "Full-time"),
    (re.compile(r"\bpart[\s-]?time\b", re.IGNORECASE), "Part-time"),
    (re.compile(r"\bcontract(?:ual|or)?\b", re.IGNORECASE), "Contract"),
    (re.compile(r"\bintern(?:ship)?\b|\battachment\b", re.IGNORECASE), "Internship"),
    (re.compile(r"\bfreelance\b|\bconsultan(?:t|cy)\b", re.IGNORECASE), "Freelance"),
)

_REMOTE_RE = re.compile(r"\bremote\b|work\s+from\s+home|\bwfh\b", re.IGNORECASE)
_WEBSITE_RE = re.compile(r"\b(?:website|visit)\s*:?\s*((?:https?://|www\.)[^\s,;<>\"')]+)", re.IGNORECASE)
_ABOUT_RE = re.compile(
    r"\b(?:about us|about the company|about the organi[sz]ation|company profile)\s*:?\s*(.+?)"
    r"(?=\s*\b(?:responsibilities|requirements|qualifications|key duties|job description|how to apply)\b|$)",
    re.IGNORECASE,
)

_PART_TIME_RE = re.compile(r"\bpart[\s-]?time\b")
_INTERN_RE = re.compile(r"\bintern(?:s|ship|ships)?\b")

COMPANY_MAX_INFERRED = 100
COMPANY_DESCRIPTION_MAX = 1000


def map_job_type(text: str | None) -> JobType:
    """Free-text job type -> JobType; anything unrecognized is full time."""
    low = (text or "").lower()
    if _PART_TIME_RE.search(low):
        return JobType.PART_TIME
    if "contract" in low:
        return JobType.CONTRACT
    if _INTERN_RE.search(low):
        return JobType.INTERNSHIP
    if "temporary" in low or re.search(r"\btemp\b", low):
        return JobType.TEMPORARY
    return JobType.FULL_TIME


def infer_company(description: str | None) -> str | None:
    """'Company: Acme Ltd, Location: ...' first, then '... at Acme Ltd'."""
    if not description:
        return None
    for rx in (_COMPANY_LABEL_RE, _COMPANY_AT_RE):
        m = rx.search(description)
        if not m:
            continue
        value = clean_company_name(m.group(1))
        if value and len(value) <= COMPANY_MAX_INFERRED and not is_placeholder_text(value):
            return value
    return None


def infer_location(description: str | None) -> str | None:
    if not description:
        return None
    for rx in (_LOCATION_LABEL_RE, _LOCATION_IN_RE):
        m = rx.search(description)
        if not m:
            continue
        value = clean_location(m.group(1))
        if value and not is_placeholder_text(value):
            return value
    return None


def extract_skills(description: str | None, limit: int = 15) -> tuple[str, ...]:
    if not description:
        return ()
    m = _SKILLS_RE.search(description)
    if not m:
        return ()
    out: list[str] = []
    for part in re.split(r"[,;]", m.group(1)):
        skill = collapse_whitespace(part).strip(" .-")
        if 2 <= len(skill) <= 60 and skill.lower() not in (s.lower() for s in out):
            out.append(skill)
        if len(out) >= limit:
            break
    return tuple(out)


def extract_experience_level(description: str | None) -> str | None:
    """
    'entry' (<2 years), 'mid' (2-4 years) or 'senior' (5+ years).
    Falls back to seniority words when no year count is present.
    """
    if not description:
        return None
    m = _YEARS_RE.search(description)
    if m:
        years = int(m.group(1))
        if years < 2:
            return "entry"
        if years < 5:
            return "mid"
        return "senior"
    for rx, level in _SENIORITY_WORDS:
        if rx.search(description):
            return level
    return None


def extract_salary(description: str | None) -> str | None:
    if not description:
        return None
    m = _SALARY_AMOUNT_RE.search(description)
    if m:
        return collapse_whitespace(m.group(0))
    m = _SALARY_LABEL_RE.search(description)
    if m:
        value = collapse_whitespace(m.group(1))
        return value or None
    return None


def extract_employment_type(text: str | None) -> str | None:
    if not text:
        return None
    for rx, label in _EMPLOYMENT_TYPES:
        if rx.search(text):
            return label
    return None


def is_remote(*texts: str | None) -> bool:
    return any(t and _REMOTE_RE.search(t) for t in texts)


def extract_company_website(description: str | None) -> str | None:
    if not description:
        return None
    m = _WEBSITE_RE.search(description)
    if not m:
        return None
    url = m.group(1).rstrip(".")
    if url.lower().startswith("www."):
        url = "https://" + url
    return url


def extract_company_description(description: str | None) -> str | None:
    if not description:
        return None
    m = _ABOUT_RE.search(description)
    if not m:
        return None
    text = collapse_whitespace(m.group(1))
    if len(text) < 20:
        return None
    return text[:COMPANY_DESCRIPTION_MAX].rstrip()
