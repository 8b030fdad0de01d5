import json
from pathlib import Path

import pytest

from drivesafe.config import DEFAULT_AUTO_REPLY_MESSAGE
from drivesafe.database import (
    SETTINGS_KEY,
    InMemoryKeyValueDatabase,
    JsonFileKeyValueDatabase,
)
from drivesafe.settings import SettingsStore


def test_defaults_when_nothing_persisted() -> None:
    settings = SettingsStore(InMemoryKeyValueDatabase()).settings

    assert settings.auto_reply_message == DEFAULT_AUTO_REPLY_MESSAGE
    assert settings.vip_numbers == set()
    assert not settings.auto_decline
    assert not settings.voice_confirm


def test_every_mutation_is_persisted() -> None:
    store = InMemoryKeyValueDatabase()
    settings_store = SettingsStore(store)

    settings_store.add_vip("+1 (555) 123-4567")
    assert store.get(SETTINGS_KEY)["vip_numbers"] == ["+15551234567"]

    settings_store.set_auto_reply("On the road")
    assert store.get(SETTINGS_KEY)["auto_reply_message"] == "On the road"

    assert settings_store.toggle_auto_decline() is True
    assert store.get(SETTINGS_KEY)["auto_decline"] is True

    assert settings_store.toggle_voice_confirm() is True
    assert store.get(SETTINGS_KEY)["voice_confirm"] is True

    assert settings_store.remove_vip("+15551234567") is True
    assert store.get(SETTINGS_KEY)["vip_numbers"] == []


def test_invalid_vip_rejected() -> None:
    settings_store = SettingsStore(InMemoryKeyValueDatabase())

    with pytest.raises(ValueError):
        settings_store.add_vip("Unknown")


def test_remove_missing_vip_returns_false() -> None:
    assert SettingsStore(InMemoryKeyValueDatabase()).remove_vip("123") is False


def test_empty_auto_reply_rejected() -> None:
    with pytest.raises(ValueError):
        SettingsStore(InMemoryKeyValueDatabase()).set_auto_reply("   ")


def test_malformed_settings_fall_back_to_defaults() -> None:
    store = InMemoryKeyValueDatabase()
    store.put(SETTINGS_KEY, {"auto_decline": "definitely", "vip_numbers": 7})

    settings = SettingsStore(store).settings

    assert not settings.auto_decline
    assert settings.vip_numbers == set()


def test_settings_survive_file_store_reload(tmp_path: Path) -> None:
    path = tmp_path / "drivesafe.json"
    SettingsStore(JsonFileKeyValueDatabase(path)).add_vip("9876543210")

    reloaded = SettingsStore(JsonFileKeyValueDatabase(path)).settings

    assert reloaded.vip_numbers == {"9876543210"}
    assert json.loads(path.read_text())[SETTINGS_KEY]["vip_numbers"] == ["9876543210"]


def test_corrupt_store_file_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "drivesafe.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonFileKeyValueDatabase(path)

    assert len(store) == 0
    assert SettingsStore(store).settings.vip_numbers == set()


def test_remove_vip_matches_by_suffix() -> None:
    settings_store = SettingsStore(InMemoryKeyValueDatabase())
    settings_store.add_vip("5551234567")
    settings_store.add_vip("9876543210")

    assert settings_store.remove_vip("+1 555 123 4567") is True

    assert settings_store.settings.vip_numbers == {"9876543210"}


def test_remove_unknown_vip_returns_false() -> None:
    settings_store = SettingsStore(InMemoryKeyValueDatabase())
    settings_store.add_vip("5551234567")

    assert settings_store.remove_vip("") is False
    assert settings_store.settings.vip_numbers == {"5551234567"}


def test_file_store_leaves_no_temp_files(tmp_path: Path) -> None:
    path = tmp_path / "drivesafe.json"
    settings_store = SettingsStore(JsonFileKeyValueDatabase(path))

    settings_store.add_vip("9876543210")
    settings_store.toggle_auto_decline()

    assert [p.name for p in tmp_path.iterdir()] == ["drivesafe.json"]
    assert json.loads(path.read_text())[SETTINGS_KEY]["auto_decline"] is True
