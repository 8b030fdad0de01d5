"""
Caller-id normalization and matching.

Numbers are compared by suffix containment on their digits so that a
number stored without a country code still matches the full form
delivered by the telephony stack.
"""

import re

UNKNOWN = "Unknown"

_NON_DIALABLE = re.compile(r"[^\d+]")


def normalize_caller(raw: str | None) -> str:
    """Strip everything but digits and a leading '+'. Blank ids become UNKNOWN."""
    if raw is None:
        return UNKNOWN
    raw = raw.strip()
    if not raw or raw.lower() == UNKNOWN.lower():
        return UNKNOWN

    cleaned = _NON_DIALABLE.sub("", raw)
    digits = cleaned.replace("+", "")
    if not digits:
        return UNKNOWN
    return ("+" if cleaned.startswith("+") else "") + digits


def is_unknown(caller: str) -> bool:
    return caller == UNKNOWN


def callers_match(a: str, b: str) -> bool:
    """True when both ids refer to the same caller.

    UNKNOWN only ever matches UNKNOWN.
    """
    if is_unknown(a) or is_unknown(b):
        return is_unknown(a) and is_unknown(b)

    digits_a = a.lstrip("+")
    digits_b = b.lstrip("+")
    if not digits_a or not digits_b:
        return False
    return digits_a.endswith(digits_b) or digits_b.endswith(digits_a)
