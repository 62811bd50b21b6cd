# modules/job_scrape/lib/scrapers/__init__.py
from __future__ import annotations

# Importing the extractor modules registers them by feed type.
from . import html, json_api, xml_feed
from .base import BaseExtractor, ExtractorError
from .registry import all_feed_types, get, register

__all__ = [
    "BaseExtractor",
    "ExtractorError",
    "all_feed_types",
    "get",
    "html",
    "json_api",
    "register",
    "xml_feed",
]
