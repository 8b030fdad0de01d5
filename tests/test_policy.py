from drivesafe.caller_id import UNKNOWN
from drivesafe.config import URGENT_VIBRATION_PATTERN
from drivesafe.models import (
    CallDecline,
    CallStatus,
    LocalAlert,
    Notification,
    Settings,
    SmsSend,
    Speech,
    UrgencyResult,
    Vibration,
    VoiceCapture,
)
from drivesafe.policy import decide, is_vip


def first_contact(caller: str) -> UrgencyResult:
    return UrgencyResult(caller=caller, is_urgent=False, is_first_contact=True)


def urgent(caller: str) -> UrgencyResult:
    return UrgencyResult(caller=caller, is_urgent=True, is_first_contact=False)


def test_vip_rings_through_even_when_urgent() -> None:
    settings = Settings(vip_numbers={"5551234567"})

    disposition = decide("+15551234567", urgent("+15551234567"), settings)

    assert disposition.outcome == CallStatus.VIP_IGNORED
    assert disposition.effects == []


def test_unknown_is_never_vip() -> None:
    settings = Settings(vip_numbers={"5551234567"})

    assert not is_vip(UNKNOWN, settings)


def test_urgent_repeat_alerts_without_sms() -> None:
    disposition = decide("9876543210", urgent("9876543210"), Settings())

    assert disposition.outcome == CallStatus.URGENT_ALERT
    assert disposition.effects[0] == LocalAlert(caller="9876543210")
    assert disposition.effects[1] == Vibration(pattern=URGENT_VIBRATION_PATTERN)
    assert isinstance(disposition.effects[2], Notification)
    assert not any(isinstance(e, SmsSend) for e in disposition.effects)


def test_first_contact_gets_auto_reply() -> None:
    settings = Settings(auto_reply_message="Driving, call you later")

    disposition = decide("9876543210", first_contact("9876543210"), settings)

    assert disposition.outcome == CallStatus.REPLIED
    assert disposition.effects == [
        SmsSend(caller="9876543210", message="Driving, call you later")
    ]


def test_auto_decline_declines_before_replying() -> None:
    settings = Settings(auto_decline=True)

    disposition = decide("9876543210", first_contact("9876543210"), settings)

    assert disposition.outcome == CallStatus.DECLINED_AND_REPLIED
    assert disposition.effects == [
        CallDecline(),
        SmsSend(caller="9876543210", message=settings.auto_reply_message),
    ]


def test_voice_confirm_overrides_auto_decline() -> None:
    settings = Settings(auto_decline=True, voice_confirm=True)

    disposition = decide("9876543210", first_contact("9876543210"), settings)

    assert disposition.outcome == CallStatus.VOICE_PROMPTED
    assert isinstance(disposition.effects[0], Speech)
    assert "9876543210" in disposition.effects[0].text
    assert disposition.effects[1] == VoiceCapture()


def test_unknown_first_contact_declined_with_auto_decline() -> None:
    disposition = decide(UNKNOWN, first_contact(UNKNOWN), Settings(auto_decline=True))

    assert disposition.outcome == CallStatus.DECLINED
    assert disposition.effects == [CallDecline()]


def test_unknown_first_contact_only_logged() -> None:
    disposition = decide(UNKNOWN, first_contact(UNKNOWN), Settings(voice_confirm=True))

    assert disposition.outcome == CallStatus.UNANSWERED
    assert disposition.effects == []


def test_decide_is_deterministic() -> None:
    settings = Settings(auto_decline=True)

    first = decide("9876543210", first_contact("9876543210"), settings)
    second = decide("9876543210", first_contact("9876543210"), settings)

    assert first == second
