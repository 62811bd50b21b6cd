from datetime import datetime, timedelta, timezone

import pytest

# Helpers ----------------------------------------------------------------------


def _next_times(trigger, tzinfo, count=5, start=None):
    """
    Ask a trigger for the next `count` fire times, seeding the computation
    as if the previous fire happened at `start`. This avoids APScheduler's
    internal default anchoring to trigger.start_date (creation time).
    """
    if start is None:
        start = datetime.now(tz=tzinfo)

    prev = start
    now = start

    out = []
    for _ in range(count):
        nxt = trigger.get_next_fire_time(prev, now)
        if nxt is None:
            break
        out.append(nxt)
        prev = nxt
        now = nxt + timedelta(microseconds=1)
    return out


# Tests ------------------------------------------------------------------------


def test_build_trigger_accepts_interval_hours():
    from service.scheduler import build_trigger

    trig = build_trigger({"interval": {"hours": 6}}, "UTC")
    assert trig.interval.total_seconds() == 6 * 3600

    ts = datetime(2099, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    times = _next_times(trig, timezone.utc, count=2, start=ts)
    assert times[0] == ts + timedelta(hours=6)
    assert times[1] == ts + timedelta(hours=12)


def test_build_trigger_accepts_cron_numeric_fields():
    from service.scheduler import build_trigger

    trig = build_trigger(
        {"cron": {"second": 0, "minute": 0, "hour": 3, "day_of_week": "mon-fri"}},
        "UTC",
    )
    # 2096-01-02 is a Monday
    start = datetime(2096, 1, 2, 0, 0, 0, tzinfo=timezone.utc)
    times = _next_times(trig, timezone.utc, count=3, start=start)
    assert times[0] == datetime(2096, 1, 2, 3, 0, 0, tzinfo=timezone.utc)
    assert times[1] == datetime(2096, 1, 3, 3, 0, 0, tzinfo=timezone.utc)
    assert times[2] == datetime(2096, 1, 4, 3, 0, 0, tzinfo=timezone.utc)


def test_build_trigger_accepts_crontab_string():
    from service.scheduler import build_trigger

    trig = build_trigger({"cron": "0 */6 * * *"}, "UTC")
    start = datetime(2099, 1, 5, 4, 59, 0, tzinfo=timezone.utc)
    times = _next_times(trig, timezone.utc, count=2, start=start)
    assert times[0] == datetime(2099, 1, 5, 6, 0, 0, tzinfo=timezone.utc)
    assert times[1] == datetime(2099, 1, 5, 12, 0, 0, tzinfo=timezone.utc)


def test_build_trigger_accepts_date_forms():
    from service.scheduler import build_trigger

    iso = build_trigger({"date": {"run_at": "2099-01-01T00:00:00Z"}}, "UTC")
    assert iso.run_date.year == 2099
    assert iso.run_date.tzinfo is not None

    ts = int(datetime(2099, 1, 1, 0, 0, 0, tzinfo=timezone.utc).timestamp())
    epoch = build_trigger({"date": ts}, "UTC")
    assert epoch.run_date == datetime(2099, 1, 1, tzinfo=timezone.utc)


def test_build_trigger_date_iso_without_tz_uses_scheduler_tz():
    from service.scheduler import build_trigger

    trig = build_trigger({"date": "2099-01-01T00:00:00"}, "Africa/Nairobi")
    assert trig.run_date.utcoffset() == timedelta(hours=3)


def test_build_trigger_daily_time_multiple_times_no_cross_product():
    from apscheduler.triggers.combining import OrTrigger

    from service.scheduler import build_trigger

    trig = build_trigger({"daily_time": {"time": ["06:00", "12:30", "18:00"]}}, "Africa/Nairobi")
    assert isinstance(trig, OrTrigger)

    # 02:59 UTC is 05:59 in Nairobi
    start = datetime(2097, 1, 7, 2, 59, 0, tzinfo=timezone.utc)
    times = _next_times(trig, timezone.utc, count=3, start=start)
    hm = [(t.hour, t.minute) for t in times]
    assert hm == [(6, 0), (12, 30), (18, 0)]


def test_build_trigger_daily_time_supports_seconds_and_dedup():
    from service.scheduler import build_trigger

    trig = build_trigger(
        {"daily_time": {"time": ["12:00:10", "12:00:10", "12:00:20"], "day_of_week": "sun"}},
        "UTC",
    )
    # 2099-01-04 is a Sunday
    start = datetime(2099, 1, 4, 11, 59, 59, tzinfo=timezone.utc)
    times = _next_times(trig, timezone.utc, count=3, start=start)
    assert times[0] == datetime(2099, 1, 4, 12, 0, 10, tzinfo=timezone.utc)
    assert times[1] == datetime(2099, 1, 4, 12, 0, 20, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "payload",
    [
        {"date": {}},
        {"date": "next tuesday"},
        {"daily_time": {}},
        {"daily_time": {"time": "99:99"}},
        {"cron": "*/15 * *"},
        {"cron": {"minute": 0, "fortnight": 2}},
        {"interval": {"minutes": -5}},
        {"interval": {"minutes": 0}},
        {"interval": {"hours": 1}, "cron": "0 * * * *"},
        {},
    ],
)
def test_build_trigger_invalid_inputs_raise(payload):
    from service.scheduler import build_trigger

    with pytest.raises(ValueError):
        build_trigger(payload, "UTC")


def test_resolve_timezone_falls_back_to_utc():
    import pytz

    from service.scheduler import resolve_timezone

    assert resolve_timezone("Africa/Nairobi").zone == "Africa/Nairobi"
    assert resolve_timezone("Mars/Olympus_Mons") is pytz.UTC


def test_start_registers_jobs_with_single_instance(tmp_path):
    import json

    from service import scheduler

    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({
        "timezone": "Africa/Nairobi",
        "jobs": [{"id": "scrape_jobs", "trigger": {"interval": {"hours": 6}}, "kwargs": {"dry_run": True}}],
    }))

    controller = scheduler.start(config_path=str(cfg))
    try:
        assert controller.get_job_ids() == ["scrape_jobs"]
        job = controller._scheduler.get_job("scrape_jobs")
        assert job.max_instances == 1
        assert job.coalesce is True
    finally:
        controller.stop()
    assert controller.join(timeout=1.0)
