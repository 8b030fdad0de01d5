from datetime import timedelta

import pytest

from drivesafe.config import load_config

ENV_VARS = [
    "DRIVESAFE_URGENCY_THRESHOLD_SECONDS",
    "DRIVESAFE_UNKNOWN_GRACE_MS",
    "DRIVESAFE_DEDUP_WINDOW_MS",
    "DRIVESAFE_TRIP_HISTORY_LIMIT",
    "DRIVESAFE_STORE_PATH",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = load_config()

    assert config.urgency_threshold == timedelta(minutes=2)
    assert config.unknown_grace == timedelta(milliseconds=800)
    assert config.dedup_window == timedelta(seconds=2)
    assert config.trip_history_limit == 20
    assert config.store_path is None
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("DRIVESAFE_URGENCY_THRESHOLD_SECONDS", "90")
    monkeypatch.setenv("DRIVESAFE_UNKNOWN_GRACE_MS", "1200")
    monkeypatch.setenv("DRIVESAFE_DEDUP_WINDOW_MS", "1500")
    monkeypatch.setenv("DRIVESAFE_TRIP_HISTORY_LIMIT", "5")
    monkeypatch.setenv("DRIVESAFE_STORE_PATH", "/tmp/drivesafe.json")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = load_config()

    assert config.urgency_threshold == timedelta(seconds=90)
    assert config.unknown_grace == timedelta(milliseconds=1200)
    assert config.dedup_window == timedelta(milliseconds=1500)
    assert config.trip_history_limit == 5
    assert config.store_path == "/tmp/drivesafe.json"
    assert config.log_level == "DEBUG"


def test_blank_store_path_means_in_memory(monkeypatch) -> None:
    monkeypatch.setenv("DRIVESAFE_STORE_PATH", "")

    assert load_config().store_path is None
