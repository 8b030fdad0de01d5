"""
Runtime configuration for the driving-mode engine.

Reads from environment variables, falling back to the empirically chosen
defaults for telephony notification jitter.
"""

import os
from datetime import timedelta

from pydantic import BaseModel

DEFAULT_AUTO_REPLY_MESSAGE = (
    "I'm currently driving and will call you back when it's safe. "
    "If this is urgent, please call again."
)

# Vibration pattern for urgent repeats: wait, buzz, wait, buzz (ms)
URGENT_VIBRATION_PATTERN = [0, 500, 200, 500]


class DriveSafeConfig(BaseModel):
    urgency_threshold_seconds: float = 120
    unknown_grace_ms: float = 800
    dedup_window_ms: float = 2000
    trip_history_limit: int = 20
    store_path: str | None = None
    log_level: str = "INFO"

    @property
    def urgency_threshold(self) -> timedelta:
        return timedelta(seconds=self.urgency_threshold_seconds)

    @property
    def unknown_grace(self) -> timedelta:
        return timedelta(milliseconds=self.unknown_grace_ms)

    @property
    def dedup_window(self) -> timedelta:
        return timedelta(milliseconds=self.dedup_window_ms)


def load_config() -> DriveSafeConfig:
    """Build configuration from environment variables with defaults."""
    return DriveSafeConfig(
        urgency_threshold_seconds=float(
            os.getenv("DRIVESAFE_URGENCY_THRESHOLD_SECONDS", "120")
        ),
        unknown_grace_ms=float(os.getenv("DRIVESAFE_UNKNOWN_GRACE_MS", "800")),
        dedup_window_ms=float(os.getenv("DRIVESAFE_DEDUP_WINDOW_MS", "2000")),
        trip_history_limit=int(os.getenv("DRIVESAFE_TRIP_HISTORY_LIMIT", "20")),
        store_path=os.getenv("DRIVESAFE_STORE_PATH") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
