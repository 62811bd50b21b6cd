# tests/conftest.py
import os
import pathlib
import tempfile

import pytest
from freezegun import freeze_time

from modules.job_scrape.lib.db import JobStore, PersistenceError
from modules.job_scrape.lib.models import JobRecord, SiteResult
from modules.job_scrape.lib.sites import FeedType, JobSiteDefinition, SelectorMap

FIXTURES = pathlib.Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (real network calls to job sites).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch):
    # Logs go to a throwaway dir per test
    tmp_logs = tempfile.mkdtemp(prefix="js-pytest-logs-")
    monkeypatch.setenv("LOG_DIR", tmp_logs)
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    monkeypatch.delenv("JOBS_SQLITE_PATH", raising=False)
    yield


@pytest.fixture
def frozen_utc():
    with freeze_time("2025-01-01T00:00:00Z"):
        yield


@pytest.fixture
def fixture_text():
    def _read(name: str) -> str:
        return (FIXTURES / name).read_text(encoding="utf-8")

    return _read


@pytest.fixture
def make_site():
    def _make(
        source: str = "TestBoard",
        url: str = "https://jobs.example.com/listings",
        feed_type: FeedType = FeedType.HTML,
        retry_attempts: int = 3,
        rate_limit_seconds: float = 0.0,
        **selectors,
    ) -> JobSiteDefinition:
        sel = {"job_container": ".nothing-matches-this", "title": ".title"}
        sel.update(selectors)
        return JobSiteDefinition(
            url=url,
            source=source,
            selectors=SelectorMap(**sel),
            feed_type=feed_type,
            retry_attempts=retry_attempts,
            timeout_seconds=5.0,
            rate_limit_seconds=rate_limit_seconds,
        )

    return _make


@pytest.fixture
def make_job():
    def _make(title: str = "Supply Chain Analyst", source: str = "TestBoard", **kw) -> JobRecord:
        kw.setdefault("company", "Acme Ltd")
        kw.setdefault("location", "Nairobi, Kenya")
        kw.setdefault("job_url", f"https://jobs.example.com/job/{title.lower().replace(' ', '-')}")
        return JobRecord(title=title, source=source, **kw)

    return _make


class RecordingStore(JobStore):
    """In-memory JobStore that records every call in order."""

    def __init__(self, fail_titles=(), fail_clear=False):
        self.calls: list[tuple[str, object]] = []
        self.rows: list[JobRecord] = []
        self.fail_titles = set(fail_titles)
        self.fail_clear = fail_clear

    def clear_previous_batch(self) -> None:
        self.calls.append(("clear", None))
        if self.fail_clear:
            raise PersistenceError("clear failed")
        self.rows.clear()

    def insert_job(self, job: JobRecord) -> None:
        self.calls.append(("insert", job.title))
        if job.title in self.fail_titles:
            raise PersistenceError(f"insert failed for {job.title}")
        self.rows.append(job)

    def finish_batch(self) -> None:
        self.calls.append(("finish", None))

    @property
    def ops(self) -> list[str]:
        return [op for op, _ in self.calls]


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def site_result():
    def _make(source: str, jobs=(), errors=()) -> SiteResult:
        return SiteResult(source=source, jobs=list(jobs), errors=list(errors), attempts=1)

    return _make


@pytest.fixture
def make_store():
    return RecordingStore
