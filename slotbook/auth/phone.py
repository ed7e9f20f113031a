"""
Phone number utilities.

The canonical form is what the verification provider receives and what the
users table is keyed on, so sending and checking a code always agree.
"""

import re
from typing import Optional

DEFAULT_COUNTRY_CODE = "1"
MIN_PHONE_DIGITS = 10

_NON_DIGITS = re.compile(r"\D")


def digits_only(raw: Optional[str]) -> str:
    """Strip every non-digit character."""
    if not raw:
        return ""
    return _NON_DIGITS.sub("", raw)


def normalize_phone(raw: str) -> str:
    """
    Normalize a phone number to E.164, assuming the default region.

    Lossy for numbers outside the default region: an 11-digit foreign number
    that happens to start with the default country code's digit is kept as-is.

    Examples:
        normalize_phone("4148616375") -> "+14148616375"
        normalize_phone("14148616375") -> "+14148616375"
        normalize_phone("+14148616375") -> "+14148616375"
        normalize_phone("(414) 861-6375") -> "+14148616375"
    """
    digits = digits_only(raw)
    if len(digits) == 10:
        return f"+{DEFAULT_COUNTRY_CODE}{digits}"
    if len(digits) == 11 and digits.startswith(DEFAULT_COUNTRY_CODE):
        return f"+{digits}"
    # Anything else is assumed to already carry its country code
    return f"+{digits}"


def is_plausible_phone(raw: Optional[str], min_digits: int = MIN_PHONE_DIGITS) -> bool:
    return len(digits_only(raw)) >= min_digits


def mask_phone(phone: Optional[str]) -> str:
    """Mask all but the last four digits for logging."""
    digits = digits_only(phone)
    if len(digits) <= 4:
        return "***"
    return f"***{digits[-4:]}"
