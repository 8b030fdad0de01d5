"""
Domain models for the driving-mode call arbitration engine.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from drivesafe.config import DEFAULT_AUTO_REPLY_MESSAGE


class CallEventKind(StrEnum):
    RINGING = "Ringing"
    INCOMING = "Incoming"
    DISCONNECTED = "Disconnected"
    OFFHOOK = "Offhook"


class DrivingMode(StrEnum):
    IDLE = "idle"
    ACTIVE = "active"


class CallStatus(StrEnum):
    VIP_IGNORED = "VipIgnored"  # rang through untouched
    URGENT_ALERT = "UrgentAlert"
    REPLIED = "Replied"
    DECLINED_AND_REPLIED = "DeclinedAndReplied"
    DECLINED = "Declined"
    VOICE_PROMPTED = "VoicePrompted"  # waiting on a spoken answer/decline
    UNANSWERED = "Unanswered"  # unknown caller, nothing sent


class LogKind(StrEnum):
    STATUS = "status"
    CALL = "call"
    DISPATCH = "dispatch"
    ERROR = "error"
    VOICE = "voice"


class RawCallNotification(BaseModel):
    """One notification from the telephony layer, possibly noisy."""

    event_kind: CallEventKind
    caller: str | None = None  # None or blank while caller id is unresolved
    at: datetime | None = None

    @field_validator("at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        # offset-free timestamps from the telephony layer are UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class PendingUnresolvedCall(BaseModel):
    scheduled_at: datetime
    fire_at: datetime


class ResolvedCallEvent(BaseModel):
    """The single canonical event for one physical call."""

    model_config = ConfigDict(frozen=True)

    caller: str
    observed_at: datetime


class UrgencyResult(BaseModel):
    caller: str
    is_urgent: bool
    is_first_contact: bool


class CallOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    caller: str
    status: CallStatus
    at: datetime


class TripLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    at: datetime
    action: str
    kind: LogKind = LogKind.STATUS


class TripSession(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    started_at: datetime
    ended_at: datetime | None = None
    calls: list[CallOutcome] = []
    log: list[TripLogEntry] = []


class Settings(BaseModel):
    auto_reply_message: str = DEFAULT_AUTO_REPLY_MESSAGE
    vip_numbers: set[str] = Field(default_factory=set)
    auto_decline: bool = False
    voice_confirm: bool = False


# Side-effect requests. The engine only describes them; a Notifier executes.


class SmsSend(BaseModel):
    kind: Literal["sms_send"] = "sms_send"
    caller: str
    message: str


class CallDecline(BaseModel):
    kind: Literal["call_decline"] = "call_decline"


class CallAccept(BaseModel):
    kind: Literal["call_accept"] = "call_accept"


class Speech(BaseModel):
    kind: Literal["speech"] = "speech"
    text: str


class VoiceCapture(BaseModel):
    kind: Literal["voice_capture"] = "voice_capture"


class LocalAlert(BaseModel):
    kind: Literal["local_alert"] = "local_alert"
    caller: str


class Vibration(BaseModel):
    kind: Literal["vibration"] = "vibration"
    pattern: list[int]


class Notification(BaseModel):
    kind: Literal["notification"] = "notification"
    title: str
    body: str


Effect = Annotated[
    SmsSend
    | CallDecline
    | CallAccept
    | Speech
    | VoiceCapture
    | LocalAlert
    | Vibration
    | Notification,
    Field(discriminator="kind"),
]


class Disposition(BaseModel):
    outcome: CallStatus
    effects: list[Effect] = []


class DispatchResult(BaseModel):
    effect: Effect
    ok: bool
    detail: str = ""
    trip_id: str | None = None  # trip that requested the effect


class VoiceCommand(BaseModel):
    text: str


class DrivingState(BaseModel):
    """The engine's single mutable state record.

    At most one unresolved call can be buffered at a time.
    """

    mode: DrivingMode = DrivingMode.IDLE
    pending_unresolved_call: PendingUnresolvedCall | None = None
    last_resolved: ResolvedCallEvent | None = None
