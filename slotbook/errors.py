"""
Error taxonomy for the login and setup flow.

Services raise these; the API layer turns them into status codes and
structured bodies. Messages are safe to show to end users.
"""

from typing import Optional, Dict


class SlotbookError(Exception):
    """Base class for all expected application errors."""
    code = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(SlotbookError):
    """A required secret or setting is missing."""
    code = "CONFIGURATION_ERROR"


class ValidationError(SlotbookError):
    """Malformed input, rejected before any external call."""
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.details = details or {}


class GatewayError(SlotbookError):
    """The verification provider failed to send or check a code."""
    code = "GATEWAY_ERROR"


class InvalidCredential(SlotbookError):
    """The submitted code was not approved. The reason is never disclosed."""
    code = "INVALID_CREDENTIAL"

    def __init__(self, message: str = "Invalid verification code", state: Optional[str] = None):
        super().__init__(message)
        # Final state of the login attempt, for logs and tests only
        self.state = state


class InvalidRolePassword(SlotbookError):
    code = "INVALID_ROLE_PASSWORD"

    def __init__(self, message: str = "Invalid role password. Leave blank to register as a client."):
        super().__init__(message)


class EmailInUse(SlotbookError):
    code = "EMAIL_IN_USE"

    def __init__(self, message: str = "This email is already in use"):
        super().__init__(message)


class Unauthenticated(SlotbookError):
    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class SetupFailed(SlotbookError):
    code = "SETUP_FAILED"

    def __init__(self, message: str = "Failed to complete setup. Please try again."):
        super().__init__(message)


class SetupAlreadyComplete(SlotbookError):
    code = "SETUP_ALREADY_COMPLETE"

    def __init__(self, message: str = "Account setup has already been completed"):
        super().__init__(message)


class PreferencesUpdateFailed(SlotbookError):
    code = "PREFERENCES_UPDATE_FAILED"

    def __init__(self, message: str = "Failed to update preferences"):
        super().__init__(message)


class RateLimitExceeded(SlotbookError):
    code = "RATE_LIMITED"

    def __init__(self, message: str = "Too many requests. Please try again later.",
                 limit: int = 0, remaining: int = 0, reset: int = 0):
        super().__init__(message)
        self.limit = limit
        self.remaining = remaining
        self.reset = reset
