"""
String normalizers for extracted job fields.

Feed generators double-encode entities and wrap (or half-wrap) text in
CDATA, so feed text goes through several small passes instead of one
large regex. Each pass is a plain str -> str function.
"""

from __future__ import annotations

import html
import re

from .validators import is_placeholder_text

TITLE_MAX = 255
COMPANY_MAX = 200
LOCATION_MAX = 100
DESCRIPTION_MAX = 5000
DESCRIPTION_MIN = 10

_WS_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^\w\s\-&().,]")
_TAG_RE = re.compile(r"<[^>]*>")
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)

# "<", "!" and "[" / "]" and ">" in every spelling seen in the wild:
# literal, named entity, double-encoded named entity, decimal and hex.
_LT = r"(?:<|&lt;|&amp;lt;|&#0*60;|&#x0*3c;)"
_GT = r"(?:>|&gt;|&amp;gt;|&#0*62;|&#x0*3e;)"
_BANG = r"(?:!|&#0*33;|&#x0*21;)"
_LBRACKET = r"(?:\[|&#0*91;|&#x0*5b;)"
_RBRACKET = r"(?:\]|&#0*93;|&#x0*5d;)"

_CDATA_PAIR_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_CDATA_OPEN_RE = re.compile(_LT + _BANG + _LBRACKET + r"CDATA" + _LBRACKET, re.IGNORECASE)
_CDATA_CLOSE_RE = re.compile(_RBRACKET + _RBRACKET + _GT, re.IGNORECASE)


# ---- Building blocks -----------------------------------------------------------


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def strip_tags(text: str) -> str:
    return _TAG_RE.sub(" ", text or "")


def unwrap_cdata(text: str) -> str:
    """Replace well-formed <![CDATA[...]]> sections with their content."""
    return _CDATA_PAIR_RE.sub(r"\1", text or "")


def strip_cdata_open(text: str) -> str:
    """Drop CDATA open markers in any encoding, matched or not."""
    return _CDATA_OPEN_RE.sub("", text or "")


def strip_cdata_close(text: str) -> str:
    """Drop CDATA close markers in any encoding, matched or not."""
    return _CDATA_CLOSE_RE.sub("", text or "")


def decode_entities(text: str) -> str:
    """One level of HTML entity decoding: "&amp;lt;" becomes "&lt;", not "<"."""
    return html.unescape(text or "").replace("\xa0", " ")


def _clean_field(text: str | None, max_len: int) -> str:
    if not text:
        return ""
    s = _DISALLOWED_RE.sub("", str(text))
    s = collapse_whitespace(s)
    return s[:max_len].rstrip()


# ---- Field cleaners --------------------------------------------------------------


def clean_title(text: str | None) -> str:
    return _clean_field(text, TITLE_MAX)


def clean_company_name(text: str | None) -> str:
    return _clean_field(text, COMPANY_MAX)


def clean_location(text: str | None) -> str:
    return _clean_field(text, LOCATION_MAX)


def clean_job_description(text: str | None) -> str:
    """
    Description scraped from HTML: markup removed, whitespace collapsed.
    Returns "" when what is left is too short or a placeholder.
    """
    if not text:
        return ""
    s = _SCRIPT_STYLE_RE.sub(" ", str(text))
    s = collapse_whitespace(strip_tags(s))
    if len(s) < DESCRIPTION_MIN or is_placeholder_text(s):
        return ""
    return s[:DESCRIPTION_MAX].rstrip()


def clean_description(text: str | None) -> str:
    """
    Description (or any text node) taken from a feed.

    Passes, in order: unwrap whole CDATA sections, remove stray open markers,
    remove stray close markers, strip tags, collapse whitespace, decode
    entities. A second marker/tag sweep after decoding catches markup that
    was hidden behind a double encoding.
    """
    if not text:
        return ""
    s = unwrap_cdata(str(text))
    s = strip_cdata_open(s)
    s = strip_cdata_close(s)
    s = _SCRIPT_STYLE_RE.sub(" ", s)
    s = collapse_whitespace(strip_tags(s))
    s = decode_entities(s)
    s = strip_tags(strip_cdata_close(strip_cdata_open(s)))
    return collapse_whitespace(s)
