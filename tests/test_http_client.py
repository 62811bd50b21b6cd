# tests/test_http_client.py
from unittest import mock

from modules.job_scrape.lib import http_client
from modules.job_scrape.lib.sites import FeedType


def test_browser_headers_rotate_from_pool():
    seen = {http_client.browser_headers()["User-Agent"] for _ in range(200)}
    assert seen <= set(http_client.USER_AGENTS)
    assert len(seen) > 1


def test_accept_header_follows_feed_type():
    assert "application/json" in http_client.browser_headers(FeedType.JSON)["Accept"]
    assert "rss" in http_client.browser_headers(FeedType.XML)["Accept"]
    headers = http_client.browser_headers(FeedType.HTML)
    assert headers["Accept-Language"].startswith("en-US")
    assert headers["Referer"] == "https://www.google.com/"


def test_client_mounts_connection_only_retry():
    with http_client.HttpClient(timeout=12) as client:
        retry = client.session.get_adapter("https://example.com").max_retries
        assert retry.connect == 1
        assert retry.status == 0
        assert retry.read == 0
        assert client.timeout == 12.0


def test_get_uses_default_timeout_and_apparent_encoding():
    client = http_client.HttpClient(timeout=9)
    resp = mock.MagicMock(encoding=None, apparent_encoding="utf-8", status_code=200)
    with mock.patch.object(client.session, "get", return_value=resp) as get:
        out = client.get("https://example.com/jobs", headers={"X": "1"})
    get.assert_called_once_with("https://example.com/jobs", headers={"X": "1"}, timeout=9.0)
    assert out.encoding == "utf-8"
    client.close()
