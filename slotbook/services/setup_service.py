"""
First-login account setup.

After the first login a user picks a display name, optionally an email, and
optionally a role password. The role password decides the final role:

- blank: CLIENT
- the administrator setup secret: ADMIN
- the professional password of an active, non-deleted event: PROFESSIONAL,
  linked to that event

The administrator secret is always checked before any event, so an event that
reuses the administrator's password can never downgrade the match.
"""

import secrets
import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..auth import SessionClaims, UserRepository
from ..db.models import Role
from ..errors import (
    ConfigurationError,
    InvalidRolePassword,
    SetupAlreadyComplete,
    Unauthenticated,
    ValidationError,
)

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class RoleGrant:
    """Role granted by a role password."""
    role: Role
    event_id: Optional[str] = None
    event_name: Optional[str] = None


@dataclass
class SetupResult:
    role: Role
    event_name: Optional[str] = None

    def to_dict(self) -> dict:
        result = {"ok": True, "role": self.role.value}
        if self.event_name:
            result["eventName"] = self.event_name
        return result


class RoleSetupResolver:
    """
    Service for completing account setup.

    Setup runs once per user: a second call after setup_complete is set is
    rejected with SetupAlreadyComplete, so a role password cannot be used to
    re-assign the role of an account that is already set up.
    """

    def __init__(self, users: UserRepository, admin_password: Optional[str]):
        """
        Initialize the resolver.

        Args:
            users: User repository
            admin_password: Administrator setup secret (ADMIN_SETUP_PASSWORD)

        Raises:
            ConfigurationError: admin password missing
        """
        if not admin_password:
            raise ConfigurationError("Missing ADMIN_SETUP_PASSWORD")
        self.users = users
        self._admin_password = admin_password

    def resolve_role(self, role_password: Optional[str]) -> RoleGrant:
        """
        Map a role password to a role.

        Args:
            role_password: Password as typed; surrounding whitespace is ignored

        Returns:
            RoleGrant

        Raises:
            InvalidRolePassword: non-blank password that grants nothing
        """
        pwd = (role_password or "").strip()

        if not pwd:
            return RoleGrant(role=Role.CLIENT)

        if secrets.compare_digest(pwd.encode("utf-8"), self._admin_password.encode("utf-8")):
            return RoleGrant(role=Role.ADMIN)

        event = self.users.find_active_event_by_password(pwd)
        if event is not None:
            return RoleGrant(role=Role.PROFESSIONAL, event_id=event.id, event_name=event.name)

        raise InvalidRolePassword()

    def complete_setup(
        self,
        claims: Optional[SessionClaims],
        name: Optional[str],
        email: Optional[str] = None,
        role_password: Optional[str] = None
    ) -> SetupResult:
        """
        Validate the setup form, decide the role and persist everything.

        Args:
            claims: Session of the caller (None if not signed in)
            name: Display name, at least 2 characters after trimming
            email: Optional email address
            role_password: Optional role password

        Returns:
            SetupResult with the final role and the linked event's name

        Raises:
            Unauthenticated: no session, or the session's user no longer exists
            ValidationError: bad name or email
            SetupAlreadyComplete: setup already done for this user
            InvalidRolePassword: role password matched nothing
            EmailInUse: email taken by another user
            SetupFailed: storage failure
        """
        if claims is None:
            raise Unauthenticated()

        trimmed_name = (name or "").strip()
        if len(trimmed_name) < MIN_NAME_LENGTH:
            raise ValidationError("Name must be at least 2 characters", {"name": "too short"})

        trimmed_email = (email or "").strip() or None
        if trimmed_email and not EMAIL_PATTERN.match(trimmed_email):
            raise ValidationError("Invalid email format", {"email": "invalid format"})

        user = self.users.get_by_id(claims.user_id)
        if user is None:
            raise Unauthenticated()
        if user.setup_complete:
            logger.warning(f"Repeated setup attempt for user {user.id} rejected")
            raise SetupAlreadyComplete()

        grant = self.resolve_role(role_password)

        self.users.complete_setup(
            user_id=user.id,
            name=trimmed_name,
            email=trimmed_email,
            role=grant.role,
            event_id=grant.event_id,
        )

        logger.info(f"Setup complete for user {user.id}: role {grant.role.value}")
        return SetupResult(role=grant.role, event_name=grant.event_name)
