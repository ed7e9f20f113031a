"""slotbook: phone-number login and role setup for the appointment scheduler."""

__version__ = "1.0.0"
