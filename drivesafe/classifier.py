"""
Urgency classification over per-caller call history.

A call is urgent when the same caller identity called within the urgency
threshold; otherwise it is a first contact. UNKNOWN callers share one
history entry, so back-to-back withheld numbers are flagged urgent even if
they come from different people.
"""

import logging
from datetime import datetime, timedelta

from drivesafe.caller_id import callers_match
from drivesafe.models import UrgencyResult

logger = logging.getLogger(__name__)


class CallHistory:
    """Owned per-caller timestamp history. Lives until explicitly reset."""

    def __init__(self) -> None:
        self._calls: dict[str, list[datetime]] = {}

    def last_call(self, caller: str) -> datetime | None:
        """Most recent timestamp for any recorded id matching ``caller``."""
        latest = None
        for number, timestamps in self._calls.items():
            if timestamps and callers_match(number, caller):
                if latest is None or timestamps[-1] > latest:
                    latest = timestamps[-1]
        return latest

    def record(self, caller: str, at: datetime) -> None:
        timestamps = self._calls.setdefault(caller, [])
        if timestamps and at < timestamps[-1]:
            logger.warning(f"Out-of-order call time for {caller}, clamping")
            at = timestamps[-1]
        timestamps.append(at)

    def calls_for(self, caller: str) -> list[datetime]:
        return list(self._calls.get(caller, []))

    def reset(self) -> None:
        self._calls.clear()

    def __len__(self) -> int:
        return len(self._calls)


def classify(
    history: CallHistory,
    caller: str,
    now: datetime,
    threshold: timedelta,
) -> UrgencyResult:
    last = history.last_call(caller)
    is_urgent = last is not None and (now - last) < threshold
    history.record(caller, now)

    if is_urgent:
        logger.info(f"Urgent repeat from {caller} ({(now - last).total_seconds():.0f}s)")
    return UrgencyResult(
        caller=caller,
        is_urgent=is_urgent,
        is_first_contact=not is_urgent,
    )
