import logging
from typing import Any

from pydantic import ValidationError

from drivesafe.caller_id import callers_match, is_unknown, normalize_caller
from drivesafe.database import SETTINGS_KEY, InMemoryKeyValueDatabase
from drivesafe.errors import ConfigurationError
from drivesafe.models import Settings

logger = logging.getLogger(__name__)


def load_settings(store: InMemoryKeyValueDatabase[str, Any]) -> Settings:
    """Read persisted settings. Raises ConfigurationError on a malformed blob."""
    raw = store.get(SETTINGS_KEY)
    if raw is None:
        return Settings()
    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Malformed settings: {e}") from e


class SettingsStore:
    """User settings and VIP list, persisted after every mutation."""

    def __init__(self, store: InMemoryKeyValueDatabase[str, Any]) -> None:
        self.store = store
        try:
            self.settings = load_settings(store)
        except ConfigurationError as e:
            logger.warning(f"{e}; using default settings")
            self.settings = Settings()

    def add_vip(self, number: str) -> str:
        caller = normalize_caller(number)
        if is_unknown(caller):
            raise ValueError(f"Not a valid phone number: {number!r}")
        self.settings.vip_numbers.add(caller)
        self.persist()
        return caller

    def remove_vip(self, number: str) -> bool:
        """Drop every VIP entry that would match calls from ``number``."""
        caller = normalize_caller(number)
        if is_unknown(caller):
            return False
        matching = {vip for vip in self.settings.vip_numbers if callers_match(vip, caller)}
        if not matching:
            return False
        self.settings.vip_numbers -= matching
        self.persist()
        return True

    def set_auto_reply(self, message: str) -> None:
        if not message.strip():
            raise ValueError("Auto-reply message cannot be empty")
        self.settings.auto_reply_message = message
        self.persist()

    def toggle_auto_decline(self) -> bool:
        self.settings.auto_decline = not self.settings.auto_decline
        self.persist()
        return self.settings.auto_decline

    def toggle_voice_confirm(self) -> bool:
        self.settings.voice_confirm = not self.settings.voice_confirm
        self.persist()
        return self.settings.voice_confirm

    def persist(self) -> None:
        data = self.settings.model_dump(mode="json")
        data["vip_numbers"] = sorted(self.settings.vip_numbers)
        self.store.put(SETTINGS_KEY, data)
