"""
Predicates that separate real job content from scraping artifacts.

Everything here is pure: no logging, no I/O. Extractors call these and do
their own logging around the verdicts.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

# ---- Placeholder classifier -------------------------------------------------

_PLACEHOLDER_PATTERNS = (
    re.compile(r"^[\s*\-()]+$"),  # asterisks / dashes / parentheses only
    re.compile(r"\*{2,}"),  # masked text like "Company ****"
    re.compile(r"^(?:null|undefined|none|n/a)$", re.IGNORECASE),
    re.compile(r"^\d+$"),
    re.compile(r"^[\W_]+$"),
)
_LETTER_RE = re.compile(r"[^\W\d_]")

NON_JOB_BLOCKLIST = (
    "advertisement",
    "sponsored",
    "load more",
    "show more",
    "sign up",
    "sign in",
    "click here",
    "apply now",
    "read more",
    "subscribe",
    "newsletter",
    "privacy policy",
    "terms of use",
    "cookie policy",
    "view all jobs",
    "no jobs found",
    "page not found",
)

JOB_URL_TOKENS = ("job", "career", "vacancy", "position", "opportunity", "hiring", "employment")

SUPPLY_CHAIN_KEYWORDS = (
    "supply",
    "chain",
    "logistics",
    "procurement",
    "warehouse",
    "inventory",
    "shipping",
    "distribution",
    "operations",
    "sourcing",
    "purchasing",
)


def letter_count(text: str) -> int:
    return len(_LETTER_RE.findall(text or ""))


def is_placeholder_text(text: str | None) -> bool:
    """
    True when `text` looks like a scraping artifact rather than content.
    Errs on the side of rejecting short ambiguous strings.
    """
    if text is None:
        return True
    s = str(text).strip()
    if not s:
        return True
    if any(p.search(s) for p in _PLACEHOLDER_PATTERNS):
        return True
    return letter_count(s) == 0


def is_blocklisted(text: str) -> bool:
    low = (text or "").lower()
    return any(term in low for term in NON_JOB_BLOCKLIST)


def is_valid_job_data(title: str | None, company: str | None, location: str | None, source: str | None) -> bool:
    """
    Gate between a raw extraction and a JobRecord.

    The title must be a real, non-navigational string with at least three
    letters. Company and location may be empty but not garbage. A title that
    is just the site's own name (page header scraped as a listing) is rejected.
    """
    t = (title or "").strip()
    if len(t) < 3 or letter_count(t) < 3:
        return False
    if is_placeholder_text(t) or is_blocklisted(t):
        return False
    if source and t.lower() == source.strip().lower():
        return False

    for extra in (company, location):
        e = (extra or "").strip()
        if e and is_placeholder_text(e):
            return False
    return True


# ---- URLs -------------------------------------------------------------------


def is_valid_job_url(url: str | None) -> bool:
    """Absolute http(s) URL whose path or query mentions a job-ish token."""
    if not url:
        return False
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return False
    tail = f"{parts.path}?{parts.query}".lower()
    return any(tok in tail for tok in JOB_URL_TOKENS)


def resolve_job_url(href: str | None, base_url: str) -> str | None:
    """
    Resolve `href` against the site and return it only if it passes
    `is_valid_job_url`. Anything else counts as "no URL available".
    """
    if not href:
        return None
    h = href.strip()
    if not h or h.startswith(("#", "javascript:", "mailto:", "tel:")):
        return None
    try:
        absolute = urljoin(base_url, h)
    except ValueError:
        return None
    return absolute if is_valid_job_url(absolute) else None


# ---- Topic relevance ----------------------------------------------------------


def has_supply_chain_keywords(text: str | None) -> bool:
    if not text:
        return False
    low = text.lower()
    return any(kw in low for kw in SUPPLY_CHAIN_KEYWORDS)


def supply_chain_tags(*texts: str | None) -> tuple[str, ...]:
    """Keywords from SUPPLY_CHAIN_KEYWORDS found in any of `texts`, in list order."""
    low = " ".join(t for t in texts if t).lower()
    return tuple(kw for kw in SUPPLY_CHAIN_KEYWORDS if kw in low)


def matches_site_keywords(keywords: tuple[str, ...], *texts: str | None) -> bool:
    """True when `keywords` is empty or any keyword appears in `texts` (case-insensitive)."""
    if not keywords:
        return True
    low = " ".join(t for t in texts if t).lower()
    return any(kw.lower() in low for kw in keywords if kw)
