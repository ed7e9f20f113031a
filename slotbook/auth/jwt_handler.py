"""
Session token issuer.

Mints and resolves the signed session tokens that carry a user's identity and
role. Sessions are stateless: there is no server-side revocation, so a token
stays valid until it expires. Claims are fixed at issuance; a role change
only becomes visible after a new token is issued.
"""

import time
import uuid
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from jose import jwt, JWTError

from ..config import SESSION_MAX_AGE_SECONDS
from ..db.models import Role
from ..errors import ConfigurationError, Unauthenticated

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass
class SessionClaims:
    """Session token payload."""
    sub: str  # User id
    phone_number: str
    role: str
    setup_complete: bool
    is_new_user: bool
    iat: int  # Issued at timestamp
    exp: int  # Expiration timestamp
    jti: str  # Token id, reserved for a future denylist

    @property
    def user_id(self) -> str:
        return self.sub

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SessionClaims":
        return cls(
            sub=data["sub"],
            phone_number=data["phone_number"],
            role=data["role"],
            setup_complete=bool(data.get("setup_complete", False)),
            is_new_user=bool(data.get("is_new_user", False)),
            iat=int(data["iat"]),
            exp=int(data["exp"]),
            jti=data.get("jti", ""),
        )


class SessionIssuer:
    """
    Issues and resolves signed session tokens.

    Tokens are HS256 JWTs signed with a server-held secret and expire a fixed
    lifetime (30 days by default) after issuance.
    """

    def __init__(self, secret_key: Optional[str], lifetime_seconds: int = SESSION_MAX_AGE_SECONDS):
        """
        Initialize the issuer.

        Args:
            secret_key: Signing secret. Required; there is no default.
            lifetime_seconds: Session lifetime from issuance.
        """
        if not secret_key:
            raise ConfigurationError("Missing SESSION_SECRET")
        self.secret_key = secret_key
        self.lifetime_seconds = lifetime_seconds

    def issue(self, identity, expires_in: Optional[int] = None) -> str:
        """
        Issue a session token for an authorized identity.

        Args:
            identity: Any object with user_id, phone_number, role and
                      setup_complete attributes (an AuthorizedIdentity or a
                      User row).
            expires_in: Custom lifetime in seconds (tests use negative values).

        Returns:
            Encoded token string
        """
        now = int(time.time())
        lifetime = self.lifetime_seconds if expires_in is None else expires_in
        role = identity.role.value if isinstance(identity.role, Role) else str(identity.role)

        claims = SessionClaims(
            sub=str(_user_id_of(identity)),
            phone_number=identity.phone_number,
            role=role,
            setup_complete=bool(identity.setup_complete),
            is_new_user=bool(getattr(identity, "is_new_user", False)),
            iat=now,
            exp=now + lifetime,
            jti=uuid.uuid4().hex,
        )

        token = jwt.encode(claims.to_dict(), self.secret_key, algorithm=ALGORITHM)
        logger.debug(f"Issued session for user {claims.sub}, expires in {lifetime}s")
        return token

    def resolve(self, token: Optional[str]) -> SessionClaims:
        """
        Verify a token's signature and expiry and return its claims.

        Raises:
            Unauthenticated: missing, malformed, tampered or expired token
        """
        if not token:
            raise Unauthenticated()

        try:
            data = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
            claims = SessionClaims.from_dict(data)
        except JWTError as e:
            logger.debug(f"Session verification failed: {e}")
            raise Unauthenticated("Invalid or expired session")
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Session claims malformed: {e}")
            raise Unauthenticated("Invalid or expired session")

        if claims.exp < int(time.time()):
            logger.debug("Session expired")
            raise Unauthenticated("Invalid or expired session")

        if claims.role not in {r.value for r in Role}:
            raise Unauthenticated("Invalid or expired session")

        return claims

    def verify_token(self, token: str) -> Optional[SessionClaims]:
        """Like resolve(), but returns None instead of raising."""
        try:
            return self.resolve(token)
        except Unauthenticated:
            return None


def _user_id_of(identity) -> str:
    return getattr(identity, "user_id", None) or identity.id
