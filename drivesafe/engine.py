"""
The driving-mode engine.

Every input (raw call notification, grace-timer expiry, user action, voice
command, dispatch result) is processed one at a time under a single lock, so
the resolver buffer and the live trip session only ever have one writer.
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from drivesafe.classifier import CallHistory, classify
from drivesafe.config import DriveSafeConfig
from drivesafe.database import InMemoryKeyValueDatabase
from drivesafe.intent import VoiceCommandIntent, parse_voice_command_intent
from drivesafe.models import (
    CallOutcome,
    CallStatus,
    DispatchResult,
    Disposition,
    DrivingMode,
    DrivingState,
    LogKind,
    PendingUnresolvedCall,
    RawCallNotification,
    ResolvedCallEvent,
    Settings,
    TripSession,
)
from drivesafe.notifier import EffectDispatcher, Notifier
from drivesafe.policy import decide, voice_command_effect
from drivesafe.resolver import CallEventResolver
from drivesafe.settings import SettingsStore
from drivesafe.trips import TripSessionAggregator

logger = logging.getLogger(__name__)


class DrivingEngine:
    def __init__(
        self,
        config: DriveSafeConfig,
        store: InMemoryKeyValueDatabase[str, Any],
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config
        self.state = DrivingState()
        self.history = CallHistory()
        self.settings_store = SettingsStore(store)
        self.trips = TripSessionAggregator(store, config.trip_history_limit)
        self.resolver = CallEventResolver(
            self.state,
            self._on_grace_expired,
            grace=config.unknown_grace,
            dedup_window=config.dedup_window,
        )
        self.dispatcher = EffectDispatcher(
            notifier or Notifier(), self._on_dispatch_result
        )
        self.alert_active = False
        self.awaiting_voice_from: str | None = None
        self._lock = asyncio.Lock()

    @property
    def settings(self) -> Settings:
        return self.settings_store.settings

    @property
    def is_driving(self) -> bool:
        return self.state.mode == DrivingMode.ACTIVE

    # ===== DRIVING LIFECYCLE =====

    async def start_driving(self, now: datetime | None = None) -> TripSession:
        async with self._lock:
            now = now or datetime.now(UTC)
            if self.is_driving:
                return self.trips.current
            self.state.mode = DrivingMode.ACTIVE
            return self.trips.start(now)

    async def stop_driving(self, now: datetime | None = None) -> TripSession | None:
        async with self._lock:
            if not self.is_driving:
                return None
            now = now or datetime.now(UTC)
            self.resolver.reset()
            self.state.mode = DrivingMode.IDLE
            self.alert_active = False
            self.awaiting_voice_from = None
            return self.trips.stop(now)

    # ===== CALL PIPELINE =====

    async def handle_notification(
        self, notification: RawCallNotification
    ) -> CallOutcome | None:
        """Feed one raw notification. Returns the outcome if it resolved a call."""
        async with self._lock:
            if not self.is_driving:
                logger.debug(f"Not driving, {notification.event_kind} ignored")
                return None
            at = notification.at or datetime.now(UTC)
            event = self.resolver.handle(notification, at)
            if event is None:
                return None
            return self._process(event)

    async def _on_grace_expired(self, pending: PendingUnresolvedCall) -> None:
        async with self._lock:
            event = self.resolver.fire(pending)
            if event is None or not self.is_driving:
                return
            try:
                self._process(event)
            except Exception as e:
                logger.exception(f"Handling buffered call from {event.caller} failed")
                self.trips.log(
                    datetime.now(UTC), f"Call handling failed: {e}", LogKind.ERROR
                )

    def _process(self, event: ResolvedCallEvent) -> CallOutcome:
        urgency = classify(
            self.history,
            event.caller,
            event.observed_at,
            self.config.urgency_threshold,
        )
        disposition: Disposition = decide(event.caller, urgency, self.settings)
        outcome = CallOutcome(
            caller=event.caller,
            status=disposition.outcome,
            at=event.observed_at,
        )
        self.trips.record(outcome)
        logger.info(f"Call from {event.caller}: {outcome.status}")

        if outcome.status == CallStatus.URGENT_ALERT:
            self.alert_active = True
        elif outcome.status == CallStatus.VOICE_PROMPTED:
            self.awaiting_voice_from = event.caller

        self.dispatcher.dispatch(disposition.effects, self._trip_id())
        return outcome

    async def _on_dispatch_result(self, result: DispatchResult) -> None:
        async with self._lock:
            now = datetime.now(UTC)
            if result.ok:
                action = f"{result.effect.kind}: {result.detail}"
                kind = LogKind.DISPATCH
            else:
                action = f"{result.effect.kind} failed: {result.detail}"
                kind = LogKind.ERROR
            self.trips.log_to(result.trip_id, now, action, kind)

    def _trip_id(self) -> str | None:
        return self.trips.current.id if self.trips.current else None

    # ===== VOICE CONFIRMATION =====

    async def handle_voice_command(self, text: str) -> VoiceCommandIntent:
        async with self._lock:
            intent = parse_voice_command_intent(text)
            caller = self.awaiting_voice_from
            if caller is None:
                logger.info("Voice command with no call awaiting confirmation")
                return intent
            if intent == VoiceCommandIntent.UNKNOWN:
                return intent

            accept = intent == VoiceCommandIntent.ACCEPT
            self.awaiting_voice_from = None
            verb = "Answered" if accept else "Declined"
            self.trips.log(datetime.now(UTC), f"{verb} by voice: {caller}", LogKind.VOICE)
            self.dispatcher.dispatch([voice_command_effect(accept)], self._trip_id())
            return intent

    # ===== USER ACTIONS =====

    async def dismiss_alert(self) -> None:
        async with self._lock:
            self.alert_active = False

    async def add_vip(self, number: str) -> str:
        async with self._lock:
            return self.settings_store.add_vip(number)

    async def remove_vip(self, number: str) -> bool:
        async with self._lock:
            return self.settings_store.remove_vip(number)

    async def set_auto_reply(self, message: str) -> None:
        async with self._lock:
            self.settings_store.set_auto_reply(message)

    async def toggle_auto_decline(self) -> bool:
        async with self._lock:
            return self.settings_store.toggle_auto_decline()

    async def toggle_voice_confirm(self) -> bool:
        async with self._lock:
            return self.settings_store.toggle_voice_confirm()

    async def reset_simulation(self) -> None:
        """Forget per-caller urgency history and any half-resolved call."""
        async with self._lock:
            self.history.reset()
            self.resolver.reset()

    async def shutdown(self) -> None:
        self.resolver.cancel_pending()
        self.dispatcher.clear()
