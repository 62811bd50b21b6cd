from __future__ import annotations

import logging
import random
from collections.abc import Mapping

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .sites import FeedType

LOG = logging.getLogger(__name__)

# Current desktop browsers; rotated per request.
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36 Edg/124.0.0.0",
]

_ACCEPT_BY_FEED = {
    FeedType.HTML: "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    FeedType.XML: "application/rss+xml,application/xml,text/xml;q=0.9,*/*;q=0.8",
    FeedType.JSON: "application/json,text/plain;q=0.9,*/*;q=0.8",
}


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def browser_headers(feed_type: FeedType = FeedType.HTML) -> dict[str, str]:
    """Headers that make a plain GET look like a browser visit from search."""
    return {
        "User-Agent": random_user_agent(),
        "Accept": _ACCEPT_BY_FEED.get(feed_type, _ACCEPT_BY_FEED[FeedType.HTML]),
        "Accept-Language": "en-US,en;q=0.9",
        "Referer": "https://www.google.com/",
    }


class HttpClient:
    """
    Shared HTTP client: one pooled Session for all sites in a run.

    The mounted Retry only covers connection setup; status and body-level
    retries belong to fetcher.fetch_site, which owns the per-site budget.
    """

    def __init__(self, timeout: float = 45.0, pool_maxsize: int = 20):
        self.timeout = float(timeout)
        self.session = requests.Session()

        retry = Retry(
            total=1,
            connect=1,
            read=0,
            status=0,
            backoff_factor=0.5,
            allowed_methods=frozenset(["GET", "HEAD"]),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=pool_maxsize)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def get(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> requests.Response:
        """GET without raising on status; callers decide what a bad status means."""
        resp = self.session.get(url, headers=dict(headers or {}), timeout=timeout or self.timeout)
        if not resp.encoding and resp.apparent_encoding:
            resp.encoding = resp.apparent_encoding
        return resp

    def close(self) -> None:
        try:
            self.session.close()
        except requests.RequestException:
            LOG.debug("HttpClient.close() failed", exc_info=True)

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
