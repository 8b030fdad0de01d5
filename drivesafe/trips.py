"""
Trip session lifecycle and bounded trip history.
"""

import logging
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from drivesafe.database import TRIP_HISTORY_KEY, InMemoryKeyValueDatabase
from drivesafe.errors import ConfigurationError
from drivesafe.models import CallOutcome, LogKind, TripLogEntry, TripSession

logger = logging.getLogger(__name__)

_history_adapter = TypeAdapter(list[TripSession])


def load_trip_history(store: InMemoryKeyValueDatabase[str, Any]) -> list[TripSession]:
    """Read the persisted history. Raises ConfigurationError on a malformed blob."""
    raw = store.get(TRIP_HISTORY_KEY)
    if raw is None:
        return []
    try:
        return _history_adapter.validate_python(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Malformed trip history: {e}") from e


class TripSessionAggregator:
    """Owns the active trip, if any, and the most-recent-first history."""

    def __init__(
        self,
        store: InMemoryKeyValueDatabase[str, Any],
        history_limit: int = 20,
    ) -> None:
        self.store = store
        self.history_limit = history_limit
        self.current: TripSession | None = None
        try:
            self.history = load_trip_history(store)[:history_limit]
        except ConfigurationError as e:
            logger.warning(f"{e}; starting with empty trip history")
            self.history = []

    @property
    def is_active(self) -> bool:
        return self.current is not None

    def start(self, now: datetime) -> TripSession:
        if self.current is not None:
            return self.current

        self.current = TripSession(started_at=now)
        self.log(now, "Started Driving")
        logger.info(f"Trip {self.current.id} started")
        return self.current

    def stop(self, now: datetime) -> TripSession | None:
        """End the active trip and persist history. Returns None when idle."""
        if self.current is None:
            return None

        session = self.current
        self.log(now, "Safely Stopped")
        session.ended_at = now
        self.current = None

        self.history = [session, *self.history][: self.history_limit]
        self.persist()
        logger.info(f"Trip {session.id} ended with {len(session.calls)} calls")
        return session

    def record(self, outcome: CallOutcome) -> None:
        if self.current is None:
            logger.debug(f"No active trip, outcome for {outcome.caller} not recorded")
            return
        self.current.calls.append(outcome)
        self.log(outcome.at, f"{outcome.status}: {outcome.caller}", LogKind.CALL)

    def log(self, at: datetime, action: str, kind: LogKind = LogKind.STATUS) -> None:
        if self.current is None:
            return
        self.current.log.append(TripLogEntry(at=at, action=action, kind=kind))

    def log_to(
        self, trip_id: str | None, at: datetime, action: str, kind: LogKind
    ) -> None:
        """Append to the named trip, even one that has already ended."""
        if self.current is not None and self.current.id == trip_id:
            self.log(at, action, kind)
            return
        for session in self.history:
            if session.id == trip_id:
                session.log.append(TripLogEntry(at=at, action=action, kind=kind))
                self.persist()
                return
        logger.debug(f"Trip {trip_id} no longer held, '{action}' not logged")

    def persist(self) -> None:
        self.store.put(
            TRIP_HISTORY_KEY,
            [session.model_dump(mode="json") for session in self.history],
        )
