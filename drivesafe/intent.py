from enum import StrEnum

ACCEPT_KEYWORDS = ("answer", "accept")
DECLINE_KEYWORDS = ("decline", "reject", "no")


class VoiceCommandIntent(StrEnum):
    ACCEPT = "accept"
    DECLINE = "decline"
    UNKNOWN = "unknown"


def parse_voice_command_intent(text: str) -> VoiceCommandIntent:
    """Match a recognized utterance by substring. Accept words win over decline words."""
    spoken = text.strip().lower()
    if any(word in spoken for word in ACCEPT_KEYWORDS):
        return VoiceCommandIntent.ACCEPT
    if any(word in spoken for word in DECLINE_KEYWORDS):
        return VoiceCommandIntent.DECLINE
    return VoiceCommandIntent.UNKNOWN
