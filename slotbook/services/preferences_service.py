"""User display preferences (theme, time/date format, timezone)."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..auth import UserRepository
from ..errors import ValidationError, Unauthenticated

logger = logging.getLogger(__name__)

VALID_THEMES = ("light", "dark", "system")
VALID_TIME_FORMATS = ("12h", "24h")
VALID_DATE_FORMATS = ("MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD")


@dataclass
class UserPreferences:
    theme: str
    time_format: str
    date_format: str
    timezone: str

    def to_dict(self) -> dict:
        return {
            "theme": self.theme,
            "timeFormat": self.time_format,
            "dateFormat": self.date_format,
            "timezone": self.timezone,
        }


class PreferencesService:
    """Reads and updates a user's display preferences."""

    def __init__(self, users: UserRepository):
        self.users = users

    def get(self, user_id: str) -> UserPreferences:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise Unauthenticated()
        return UserPreferences(
            theme=user.theme,
            time_format=user.time_format,
            date_format=user.date_format,
            timezone=user.timezone,
        )

    def update(
        self,
        user_id: str,
        theme: Optional[str] = None,
        time_format: Optional[str] = None,
        date_format: Optional[str] = None,
        timezone: Optional[str] = None
    ) -> UserPreferences:
        """
        Update any subset of preferences.

        Raises:
            ValidationError: an invalid value, or nothing to update
            Unauthenticated: the user no longer exists
            PreferencesUpdateFailed: storage failure
        """
        if theme and theme not in VALID_THEMES:
            raise ValidationError("Invalid theme. Must be light, dark, or system.")
        if time_format and time_format not in VALID_TIME_FORMATS:
            raise ValidationError("Invalid time format. Must be 12h or 24h.")
        if date_format and date_format not in VALID_DATE_FORMATS:
            raise ValidationError("Invalid date format.")
        # IANA identifiers always have a region prefix
        if timezone and "/" not in timezone:
            raise ValidationError("Invalid timezone. Must be an IANA timezone identifier.")

        changes = {
            key: value
            for key, value in (
                ("theme", theme),
                ("time_format", time_format),
                ("date_format", date_format),
                ("timezone", timezone),
            )
            if value
        }
        if not changes:
            raise ValidationError("No preferences to update")

        self.users.update_preferences(user_id, **changes)
        logger.info(f"Preferences updated for user {user_id}: {sorted(changes)}")
        return self.get(user_id)
