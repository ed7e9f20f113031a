"""
Services layer for slotbook.

Core business logic as reusable services, consumed by the API and scripts.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from ..auth import SessionIssuer, UserRepository
from ..config import Config, load_config, require
from ..db import create_db_engine, create_session_factory, init_db
from .credential_service import (
    CredentialAuthorizer,
    AuthorizedIdentity,
    CodeRequest,
    LoginResult,
    LoginState,
)
from .preferences_service import PreferencesService, UserPreferences
from .rate_limit import RateLimiter, RateLimitStatus
from .setup_service import RoleSetupResolver, RoleGrant, SetupResult
from .verification import (
    VerificationGateway,
    TwilioVerifyGateway,
    StaticCodeGateway,
    SendResult,
    CheckResult,
)

logger = logging.getLogger(__name__)

__all__ = [
    # Container
    "ServiceContainer",
    "create_services",
    "create_gateway",
    # Services
    "CredentialAuthorizer",
    "RoleSetupResolver",
    "PreferencesService",
    "RateLimiter",
    "TwilioVerifyGateway",
    "StaticCodeGateway",
    "VerificationGateway",
    # Data classes
    "AuthorizedIdentity",
    "CodeRequest",
    "LoginResult",
    "LoginState",
    "RoleGrant",
    "SetupResult",
    "UserPreferences",
    "RateLimitStatus",
    "SendResult",
    "CheckResult",
]


@dataclass
class ServiceContainer:
    """Every long-lived dependency, built once at process start."""
    config: Config
    engine: Engine
    users: UserRepository
    sessions: SessionIssuer
    gateway: VerificationGateway
    authorizer: CredentialAuthorizer
    setup: RoleSetupResolver
    preferences: PreferencesService
    rate_limiter: RateLimiter

    def close(self):
        """Release pooled database connections."""
        self.engine.dispose()


def create_gateway(config: Config) -> VerificationGateway:
    """Build the verification gateway selected by VERIFY_BACKEND."""
    if config.verify_backend == "static":
        if config.is_production:
            logger.warning("Static verification gateway enabled in production")
        return StaticCodeGateway()

    return TwilioVerifyGateway(
        account_sid=config.twilio.account_sid,
        auth_token=config.twilio.auth_token,
        service_sid=config.twilio.verify_service_sid,
    )


def create_services(
    config: Optional[Config] = None,
    gateway: Optional[VerificationGateway] = None,
    engine: Optional[Engine] = None
) -> ServiceContainer:
    """
    Factory function to create all services with proper dependencies.

    Missing secrets fail here, at startup, not on the first request.

    Args:
        config: Optional config (loads from env if not provided)
        gateway: Optional verification gateway (built from config if not provided)
        engine: Optional database engine (built from config if not provided)

    Returns:
        ServiceContainer
    """
    cfg = config or load_config()
    require(cfg.session.base_url, "SESSION_BASE_URL")

    engine = engine or create_db_engine(cfg.database.url, echo=cfg.database.echo)
    init_db(engine)

    users = UserRepository(create_session_factory(engine))
    sessions = SessionIssuer(cfg.session.secret, cfg.session.max_age_seconds)
    gateway = gateway or create_gateway(cfg)

    return ServiceContainer(
        config=cfg,
        engine=engine,
        users=users,
        sessions=sessions,
        gateway=gateway,
        authorizer=CredentialAuthorizer(gateway, users, sessions),
        setup=RoleSetupResolver(users, cfg.setup.admin_password),
        preferences=PreferencesService(users),
        rate_limiter=RateLimiter(cfg.rate_limit.redis_url),
    )
