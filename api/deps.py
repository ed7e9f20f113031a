"""
API dependencies.

Provides dependency injection for services, authentication, and rate limiting.
"""

import logging
from typing import Optional, Annotated

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from slotbook.auth import SessionClaims
from slotbook.db import User
from slotbook.errors import RateLimitExceeded, Unauthenticated
from slotbook.services import ServiceContainer, create_services

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)

# Global services instance (singleton)
_services: Optional[ServiceContainer] = None


def get_services() -> ServiceContainer:
    """
    Get or create the services singleton.

    This initializes all services on first call. Missing secrets raise
    ConfigurationError here and abort startup.
    """
    global _services

    if _services is None:
        logger.info("Initializing services...")
        _services = create_services()
        logger.info("Services initialized successfully")

    return _services


def close_services():
    """Close and cleanup services."""
    global _services
    if _services:
        _services.close()
        _services = None
        logger.info("Services closed")


# Dependency for getting services
def services_dep() -> ServiceContainer:
    """FastAPI dependency for services."""
    return get_services()


ServicesDep = Annotated[ServiceContainer, Depends(services_dep)]


# Authentication dependencies

async def get_session_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    services: ServicesDep
) -> Optional[SessionClaims]:
    """
    Get the caller's session claims (optional).

    Returns None if no valid token is provided.
    """
    if credentials is None:
        return None
    return services.sessions.verify_token(credentials.credentials)


async def get_session(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    services: ServicesDep
) -> SessionClaims:
    """
    Get the caller's session claims (required).

    Raises 401 if no valid token is provided.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        return services.sessions.resolve(credentials.credentials)
    except Unauthenticated as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"}
        )


async def get_current_user(
    claims: Annotated[SessionClaims, Depends(get_session)],
    services: ServicesDep
) -> User:
    """
    Get the user row behind the caller's session.

    Raises 401 if the user no longer exists.
    """
    user = services.users.get_by_id(claims.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user


# Type aliases for dependencies
CurrentSession = Annotated[SessionClaims, Depends(get_session)]
CurrentSessionOptional = Annotated[Optional[SessionClaims], Depends(get_session_optional)]
CurrentUser = Annotated[User, Depends(get_current_user)]


def get_client_ip(request: Request) -> str:
    """Client IP, honoring proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host
    return "unknown"


async def auth_rate_limit(request: Request, response: Response, services: ServicesDep) -> None:
    """Throttle login endpoints per client IP; adds X-RateLimit-* headers."""
    cfg = services.config.rate_limit
    try:
        state = services.rate_limiter.enforce(
            "auth",
            get_client_ip(request),
            cfg.auth_limit,
            cfg.auth_window_seconds
        )
    except RateLimitExceeded as e:
        logger.warning(f"Auth rate limit exceeded for {get_client_ip(request)}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=e.message,
            headers={
                "X-RateLimit-Limit": str(e.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(e.reset),
                "Retry-After": str(cfg.auth_window_seconds),
            }
        )

    for name, value in state.headers().items():
        response.headers[name] = value


AuthRateLimit = Depends(auth_rate_limit)
