import json

import pytest

from service import config_schema


def _write(tmp_path, name, text):
    p = tmp_path / name
    p.write_text(text)
    return str(p)


def test_load_and_validate_min_config(tmp_path, monkeypatch):
    path = _write(tmp_path, "config.json", json.dumps({
        "jobs": [{"id": "scrape_jobs", "trigger": {"interval": {"hours": 6}}}],
    }))
    monkeypatch.setenv("CONFIG_PATH", path)
    monkeypatch.setenv("TZ", "Africa/Nairobi")

    cfg = config_schema.load_config()

    (job,) = cfg["jobs"]
    assert job["module"] == config_schema.DEFAULT_MODULE
    assert job["kwargs"] == {}
    assert job["max_instances"] == 1
    assert job["coalesce"] is True
    assert cfg["timezone"] == "Africa/Nairobi"


def test_yaml_config(tmp_path):
    path = _write(
        tmp_path,
        "config.yaml",
        "timezone: UTC\n"
        "jobs:\n"
        "  - name: nightly\n"
        "    trigger:\n"
        "      daily_time:\n"
        "        time: '02:00'\n"
        "    kwargs:\n"
        "      sources: Fuzu,PigiaMe\n"
        "    timeout_sec: '900'\n",
    )
    cfg = config_schema.load_config(path)
    (job,) = cfg["jobs"]
    assert job["id"] == "nightly"
    assert job["kwargs"] == {"sources": "Fuzu,PigiaMe"}
    assert job["timeout_sec"] == 900


def test_missing_config_path_means_no_jobs():
    assert config_schema.load_config()["jobs"] == []


@pytest.mark.parametrize(
    "cfg",
    [
        {"jobs": {}},
        {"timezone": 3, "jobs": []},
        {"jobs": ["scrape"]},
        {"jobs": [{"id": "a", "trigger": {"interval": {"hours": 1}}}, {"id": "a", "trigger": {"cron": "0 * * * *"}}]},
        {"jobs": [{"id": "a"}]},
        {"jobs": [{"id": "a", "trigger": {}}]},
        {"jobs": [{"id": "a", "trigger": {"interval": 5}}]},
        {"jobs": [{"id": "a", "trigger": {"cron": 5}}]},
        {"jobs": [{"id": "a", "trigger": {"interval": {"hours": 1}}, "kwargs": []}]},
        {"jobs": [{"id": "a", "trigger": {"interval": {"hours": 1}}, "max_instances": 2}]},
        {"jobs": [{"id": "a", "trigger": {"interval": {"hours": 1}}, "timeout_sec": "soon"}]},
        {"jobs": [{"id": "a", "trigger": {"interval": {"hours": 1}}, "coalesce": "yes"}]},
    ],
)
def test_validate_rejects(cfg):
    with pytest.raises(config_schema.ConfigError):
        config_schema.validate(cfg)


def test_unreadable_files_raise_config_error(tmp_path):
    with pytest.raises(config_schema.ConfigError):
        config_schema.load_config(str(tmp_path / "nope.json"))
    with pytest.raises(config_schema.ConfigError):
        config_schema.load_config(_write(tmp_path, "bad.json", "{"))
    with pytest.raises(config_schema.ConfigError):
        config_schema.load_config(_write(tmp_path, "bad.yml", "jobs: [unclosed"))
    with pytest.raises(config_schema.ConfigError):
        config_schema.load_config(_write(tmp_path, "list.json", "[]"))
