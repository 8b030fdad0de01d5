"""
Disposition policy: one outcome and an ordered list of side-effect requests
per resolved call. Pure; performs no I/O and holds no state.

Precedence, first match wins:
1. VIP numbers ring through untouched.
2. Urgent repeats raise an alert (no SMS, the caller is calling back on purpose).
3. Known first contacts get an auto-reply, optionally declined. Voice
   confirmation overrides auto-decline and asks the driver instead.
4. Unknown first contacts are declined if auto-decline is on, else only logged.
"""

from drivesafe.caller_id import callers_match, is_unknown
from drivesafe.config import URGENT_VIBRATION_PATTERN
from drivesafe.models import (
    CallAccept,
    CallDecline,
    CallStatus,
    Disposition,
    LocalAlert,
    Notification,
    Settings,
    SmsSend,
    Speech,
    UrgencyResult,
    Vibration,
    VoiceCapture,
)


def is_vip(caller: str, settings: Settings) -> bool:
    if is_unknown(caller):
        return False
    return any(callers_match(caller, vip) for vip in settings.vip_numbers)


def voice_prompt(caller: str) -> str:
    return f"Incoming call from {caller}. Say answer or decline."


def decide(caller: str, urgency: UrgencyResult, settings: Settings) -> Disposition:
    if is_vip(caller, settings):
        return Disposition(outcome=CallStatus.VIP_IGNORED)

    if urgency.is_urgent:
        return Disposition(
            outcome=CallStatus.URGENT_ALERT,
            effects=[
                LocalAlert(caller=caller),
                Vibration(pattern=list(URGENT_VIBRATION_PATTERN)),
                Notification(
                    title="Urgent call",
                    body=f"{caller} called again while you were driving",
                ),
            ],
        )

    if is_unknown(caller):
        if settings.auto_decline:
            return Disposition(outcome=CallStatus.DECLINED, effects=[CallDecline()])
        return Disposition(outcome=CallStatus.UNANSWERED)

    if settings.voice_confirm:
        return Disposition(
            outcome=CallStatus.VOICE_PROMPTED,
            effects=[Speech(text=voice_prompt(caller)), VoiceCapture()],
        )

    reply = SmsSend(caller=caller, message=settings.auto_reply_message)
    if settings.auto_decline:
        return Disposition(
            outcome=CallStatus.DECLINED_AND_REPLIED,
            effects=[CallDecline(), reply],
        )
    return Disposition(outcome=CallStatus.REPLIED, effects=[reply])


def voice_command_effect(accept: bool) -> CallAccept | CallDecline:
    return CallAccept() if accept else CallDecline()
