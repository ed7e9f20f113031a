"""
Credential authorization for phone-number login.

One login attempt moves through:

    AWAITING_CODE_REQUEST -> CODE_SENT -> VERIFYING -> AUTHORIZED | REJECTED

Codes are sent and checked through an injected VerificationGateway. An
approved code resolves (or creates) the local user and the caller receives a
session token.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from ..auth import SessionIssuer, UserRepository, normalize_phone, is_plausible_phone, mask_phone
from ..db.models import Role, User
from ..errors import ValidationError, GatewayError, InvalidCredential, Unauthenticated
from .verification import VerificationGateway, SendResult

logger = logging.getLogger(__name__)


class LoginState(str, enum.Enum):
    AWAITING_CODE_REQUEST = "awaiting_code_request"
    CODE_SENT = "code_sent"
    VERIFYING = "verifying"
    AUTHORIZED = "authorized"
    REJECTED = "rejected"


# Legal moves of one login attempt
_TRANSITIONS = {
    LoginState.AWAITING_CODE_REQUEST: {LoginState.CODE_SENT},
    LoginState.CODE_SENT: {LoginState.VERIFYING},
    LoginState.VERIFYING: {LoginState.AUTHORIZED, LoginState.REJECTED},
}


def advance(current: LoginState, target: LoginState) -> LoginState:
    """Move a login attempt to its next state; AUTHORIZED and REJECTED are final."""
    if target not in _TRANSITIONS.get(current, ()):
        raise ValueError(f"Illegal login transition {current.value} -> {target.value}")
    return target


@dataclass
class CodeRequest:
    """Result of a successful code request."""
    phone: str  # Canonical form, reused on the verify step
    result: SendResult
    state: LoginState = LoginState.CODE_SENT


@dataclass
class AuthorizedIdentity:
    """What a successful login knows about the user. Never carries secrets."""
    user_id: str
    phone_number: str
    name: str
    role: Role
    setup_complete: bool
    is_new_user: bool = False

    @classmethod
    def from_user(cls, user: User, is_new_user: bool = False) -> "AuthorizedIdentity":
        return cls(
            user_id=user.id,
            phone_number=user.phone_number,
            name=user.name,
            role=user.role,
            setup_complete=user.setup_complete,
            is_new_user=is_new_user,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "phoneNumber": self.phone_number,
            "name": self.name,
            "role": self.role.value,
            "setupComplete": self.setup_complete,
            "isNewUser": self.is_new_user,
        }


@dataclass
class LoginResult:
    """Authorized identity plus its freshly issued session."""
    identity: AuthorizedIdentity
    access_token: str
    expires_in: int
    token_type: str = "bearer"
    state: LoginState = LoginState.AUTHORIZED


class CredentialAuthorizer:
    """
    Service for phone-number login.

    Handles:
    - Code requests (validation, then dispatch through the gateway)
    - Code checks (never revealing why a code was rejected)
    - Lookup-or-create of the local user
    - Session issuance
    """

    def __init__(
        self,
        gateway: VerificationGateway,
        users: UserRepository,
        sessions: SessionIssuer
    ):
        """
        Initialize the authorizer.

        Args:
            gateway: Verification provider adapter, shared for the process lifetime
            users: User repository
            sessions: Session issuer
        """
        self.gateway = gateway
        self.users = users
        self.sessions = sessions

    def request_code(self, raw_phone: Optional[str]) -> CodeRequest:
        """
        Send a verification code to a phone number.

        Args:
            raw_phone: Phone number as typed by the user

        Returns:
            CodeRequest with the canonical phone number

        Raises:
            ValidationError: fewer than 10 digits (the gateway is not contacted)
            GatewayError: the provider failed to send
        """
        if not is_plausible_phone(raw_phone):
            raise ValidationError("Invalid phone number", {"phone": "must contain at least 10 digits"})

        phone = normalize_phone(raw_phone)
        result = self.gateway.send_code(phone)
        state = advance(LoginState.AWAITING_CODE_REQUEST, LoginState.CODE_SENT)
        logger.info(f"Code requested for {mask_phone(phone)}")
        return CodeRequest(phone=phone, result=result, state=state)

    def authorize(self, phone_number: Optional[str], code: Optional[str]) -> AuthorizedIdentity:
        """
        Check a code and resolve the user it authenticates.

        Args:
            phone_number: Phone number in any format
            code: Code received by SMS

        Returns:
            AuthorizedIdentity (the user is created on first login)

        Raises:
            ValidationError: phone number or code missing
            InvalidCredential: code not approved, for whatever reason
        """
        phone_number = (phone_number or "").strip()
        code = (code or "").strip()
        if not phone_number or not code:
            raise ValidationError("Phone number and verification code required")

        phone = normalize_phone(phone_number)
        state = advance(LoginState.CODE_SENT, LoginState.VERIFYING)

        try:
            check = self.gateway.check_code(phone, code)
        except GatewayError as e:
            logger.warning(f"Login rejected for {mask_phone(phone)}: gateway error ({e.message})")
            raise InvalidCredential(state=advance(state, LoginState.REJECTED))

        if not check.approved:
            logger.info(f"Login rejected for {mask_phone(phone)}: status {check.status}")
            raise InvalidCredential(state=advance(state, LoginState.REJECTED))

        advance(state, LoginState.AUTHORIZED)
        user, created = self.users.get_or_create_by_phone(phone)
        logger.info(f"Login authorized for user {user.id} (role {user.role.value}, new={created})")
        return AuthorizedIdentity.from_user(user, is_new_user=created)

    def login(self, phone_number: Optional[str], code: Optional[str]) -> LoginResult:
        """Authorize and issue a session token."""
        identity = self.authorize(phone_number, code)
        token = self.sessions.issue(identity)
        return LoginResult(
            identity=identity,
            access_token=token,
            expires_in=self.sessions.lifetime_seconds,
        )

    def reissue(self, user_id: str) -> LoginResult:
        """
        Issue a fresh session from the stored user row.

        Claims are frozen at issuance, so callers use this after an operation
        that changes the role.
        """
        user = self.users.get_by_id(user_id)
        if user is None:
            raise Unauthenticated("User not found")
        identity = AuthorizedIdentity.from_user(user)
        return LoginResult(
            identity=identity,
            access_token=self.sessions.issue(identity),
            expires_in=self.sessions.lifetime_seconds,
        )
