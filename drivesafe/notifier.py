"""
Collaborator adapters for side-effect requests, and the fire-and-forget
dispatcher that runs them.

The default Notifier only logs each request; platform integrations subclass
it and raise TransientDispatchError when a request cannot be carried out.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from drivesafe.caller_id import is_unknown
from drivesafe.errors import TransientDispatchError
from drivesafe.models import (
    CallAccept,
    CallDecline,
    DispatchResult,
    Effect,
    LocalAlert,
    Notification,
    SmsSend,
    Speech,
    Vibration,
    VoiceCapture,
)

logger = logging.getLogger(__name__)


class Notifier:
    async def send_sms(self, phone: str, message: str) -> str:
        if not phone or is_unknown(phone):
            raise TransientDispatchError("Invalid or hidden phone number")
        if not message:
            raise TransientDispatchError("Message is empty")
        logger.info(f"SMS requested to {phone}")
        return "SMS sent"

    async def decline_call(self) -> str:
        logger.info("Call decline requested")
        return "Call declined"

    async def accept_call(self) -> str:
        logger.info("Call accept requested")
        return "Call accepted"

    async def speak(self, text: str) -> str:
        logger.info(f"Speech requested: {text}")
        return "Spoken"

    async def capture_voice(self) -> str:
        logger.info("Voice capture requested")
        return "Listening"

    async def raise_local_alert(self, caller: str) -> str:
        logger.info(f"Local alert requested for {caller}")
        return "Alert raised"

    async def vibrate(self, pattern: list[int]) -> str:
        logger.info(f"Vibration requested: {pattern}")
        return "Vibrated"

    async def notify(self, title: str, body: str) -> str:
        logger.info(f"Notification requested: {title}")
        return "Notified"


async def execute_effect(notifier: Notifier, effect: Effect) -> str:
    if isinstance(effect, SmsSend):
        return await notifier.send_sms(effect.caller, effect.message)
    if isinstance(effect, CallDecline):
        return await notifier.decline_call()
    if isinstance(effect, CallAccept):
        return await notifier.accept_call()
    if isinstance(effect, Speech):
        return await notifier.speak(effect.text)
    if isinstance(effect, VoiceCapture):
        return await notifier.capture_voice()
    if isinstance(effect, LocalAlert):
        return await notifier.raise_local_alert(effect.caller)
    if isinstance(effect, Vibration):
        return await notifier.vibrate(effect.pattern)
    if isinstance(effect, Notification):
        return await notifier.notify(effect.title, effect.body)
    raise TransientDispatchError(f"Unsupported effect {effect.kind}")


ResultCallback = Callable[[DispatchResult], Awaitable[None]]


class EffectDispatcher:
    """Runs effect requests as background tasks and reports each result."""

    def __init__(self, notifier: Notifier, on_result: ResultCallback) -> None:
        self.notifier = notifier
        self._on_result = on_result
        self._tasks: set[asyncio.Task] = set()

    def dispatch(self, effects: list[Effect], trip_id: str | None = None) -> None:
        """Request every effect in order without waiting for any of them."""
        for effect in effects:
            task = asyncio.create_task(self._run(effect, trip_id))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, effect: Effect, trip_id: str | None) -> None:
        try:
            detail = await execute_effect(self.notifier, effect)
        except TransientDispatchError as e:
            logger.warning(f"{effect.kind} failed: {e}")
            result = DispatchResult(
                effect=effect, ok=False, detail=str(e), trip_id=trip_id
            )
        except Exception as e:
            logger.exception(f"{effect.kind} raised unexpectedly")
            result = DispatchResult(
                effect=effect, ok=False, detail=str(e), trip_id=trip_id
            )
        else:
            result = DispatchResult(
                effect=effect, ok=True, detail=detail, trip_id=trip_id
            )
        await self._on_result(result)

    async def drain(self) -> None:
        """Wait for every in-flight request to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def clear(self) -> None:
        """Cancel in-flight requests and drop their references."""
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
