"""
Call event resolution.

Telephony sources often report a blank caller id first and the real number
a fraction of a second later, and repeat ringing transitions for the same
call. The resolver collapses that stream into at most one ResolvedCallEvent
per physical call:

- a known number resolves immediately unless it repeats the last resolved
  caller inside the dedup window;
- an unknown number is buffered for a short grace window and only resolves
  as UNKNOWN if no real number supersedes it and the call is not
  disconnected first.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from drivesafe.caller_id import UNKNOWN, callers_match, is_unknown, normalize_caller
from drivesafe.models import (
    CallEventKind,
    DrivingState,
    PendingUnresolvedCall,
    RawCallNotification,
    ResolvedCallEvent,
)

logger = logging.getLogger(__name__)

GraceExpiredCallback = Callable[[PendingUnresolvedCall], Awaitable[None]]


class CallEventResolver:
    def __init__(
        self,
        state: DrivingState,
        on_grace_expired: GraceExpiredCallback,
        grace: timedelta,
        dedup_window: timedelta,
    ) -> None:
        self.state = state
        self.grace = grace
        self.dedup_window = dedup_window
        self._on_grace_expired = on_grace_expired
        self._timer: asyncio.Task | None = None

    def handle(
        self, notification: RawCallNotification, at: datetime
    ) -> ResolvedCallEvent | None:
        """Feed one raw notification. Returns the event it resolves, if any."""
        if notification.event_kind == CallEventKind.DISCONNECTED:
            if self.state.pending_unresolved_call is not None:
                logger.info("Call disconnected before caller id resolved")
            self.cancel_pending()
            return None

        if notification.event_kind == CallEventKind.OFFHOOK:
            return None

        caller = normalize_caller(notification.caller)
        if is_unknown(caller):
            self._buffer_unknown(at)
            return None
        return self._resolve_known(caller, at)

    def _resolve_known(self, caller: str, at: datetime) -> ResolvedCallEvent | None:
        last = self.state.last_resolved
        if (
            last is not None
            and callers_match(last.caller, caller)
            and at - last.observed_at < self.dedup_window
        ):
            logger.debug(f"Duplicate transition for {caller} dropped")
            return None

        if self.state.pending_unresolved_call is not None:
            logger.info(f"Caller id {caller} superseded pending unknown call")
            self.cancel_pending()

        event = ResolvedCallEvent(caller=caller, observed_at=at)
        self.state.last_resolved = event
        return event

    def _buffer_unknown(self, at: datetime) -> None:
        if self.state.pending_unresolved_call is not None:
            return

        last = self.state.last_resolved
        if last is not None and timedelta(0) <= at - last.observed_at < self.dedup_window:
            logger.debug("Blank caller id trailing a resolved call dropped")
            return

        pending = PendingUnresolvedCall(scheduled_at=at, fire_at=at + self.grace)
        self.state.pending_unresolved_call = pending
        self._timer = asyncio.create_task(self._grace_timer(pending))

    async def _grace_timer(self, pending: PendingUnresolvedCall) -> None:
        await asyncio.sleep(self.grace.total_seconds())
        await self._on_grace_expired(pending)

    def fire(self, pending: PendingUnresolvedCall) -> ResolvedCallEvent | None:
        """Resolve a buffered unknown call whose grace window has elapsed.

        A timer for a buffer that was cancelled or replaced is a no-op.
        """
        if self.state.pending_unresolved_call is not pending:
            logger.debug("Stale grace timer fired, ignoring")
            return None

        self.state.pending_unresolved_call = None
        self._timer = None
        event = ResolvedCallEvent(caller=UNKNOWN, observed_at=pending.fire_at)
        self.state.last_resolved = event
        return event

    def cancel_pending(self) -> None:
        self.state.pending_unresolved_call = None
        if self._timer is not None:
            if self._timer is not asyncio.current_task():
                self._timer.cancel()
            self._timer = None

    def reset(self) -> None:
        self.cancel_pending()
        self.state.last_resolved = None
