"""
Authentication module for slotbook.

Phone-number login: numbers are normalized to E.164, users are keyed on that
form, and successful logins receive a signed session token.
"""

from .jwt_handler import SessionIssuer, SessionClaims
from .phone import normalize_phone, digits_only, is_plausible_phone, mask_phone
from .users import UserRepository, default_display_name

__all__ = [
    "SessionIssuer",
    "SessionClaims",
    "UserRepository",
    "default_display_name",
    "normalize_phone",
    "digits_only",
    "is_plausible_phone",
    "mask_phone",
]
