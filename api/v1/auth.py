"""
Authentication endpoints.

Handles verification code requests, code checks (login) and session lookup.
"""

import logging
from typing import Optional

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from slotbook.errors import GatewayError, InvalidCredential, ValidationError

from ..deps import ServicesDep, CurrentSession, CurrentUser, AuthRateLimit

logger = logging.getLogger(__name__)

router = APIRouter()


# Request/Response models

class SendCodeRequest(BaseModel):
    """Verification code request."""
    phone: Optional[str] = Field(None, description="Phone number in any format (e.g., (414) 861-6375)")


class SendCodeResponse(BaseModel):
    ok: bool = True
    attempt_id: str
    status: str
    normalized: str


class VerifyRequest(BaseModel):
    """Code check request."""
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(None, alias="phoneNumber", description="Phone number used to request the code")
    code: Optional[str] = Field(None, description="Code received by SMS")


class UserResponse(BaseModel):
    """User info response."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    phone_number: str = Field(..., alias="phoneNumber")
    name: str
    role: str
    setup_complete: bool = Field(..., alias="setupComplete")
    is_new_user: bool = Field(False, alias="isNewUser")


class LoginResponse(BaseModel):
    """Session issued by a successful login."""
    ok: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class SessionResponse(BaseModel):
    """Claims carried by the caller's session."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    phone_number: str = Field(..., alias="phoneNumber")
    role: str
    setup_complete: bool = Field(..., alias="setupComplete")
    is_new_user: bool = Field(..., alias="isNewUser")
    expires_at: int = Field(..., alias="expiresAt")


class ProfileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    phone_number: str = Field(..., alias="phoneNumber")
    name: str
    email: Optional[str] = None
    role: str
    setup_complete: bool = Field(..., alias="setupComplete")
    event_id: Optional[str] = Field(None, alias="eventId")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


# Endpoints

@router.post("/send-code", response_model=SendCodeResponse, dependencies=[AuthRateLimit])
def send_code(request: SendCodeRequest, services: ServicesDep):
    """
    Send a verification code by SMS.

    Returns the canonical phone number; the client should submit that same
    value when verifying.
    """
    if not request.phone or not request.phone.strip():
        return _error(status.HTTP_400_BAD_REQUEST, "Missing phone")

    try:
        sent = services.authorizer.request_code(request.phone)
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message)
    except GatewayError as e:
        return _error(status.HTTP_502_BAD_GATEWAY, e.message)
    except Exception as e:
        logger.error(f"send-code failed: {e}", exc_info=True)
        message = "Internal server error" if services.config.is_production else str(e)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    return SendCodeResponse(
        attempt_id=sent.result.attempt_id,
        status=sent.result.status,
        normalized=sent.phone
    )


@router.post("/verify", response_model=LoginResponse, dependencies=[AuthRateLimit])
def verify(request: VerifyRequest, services: ServicesDep):
    """
    Check a verification code and sign in.

    Creates the user on first login. The reason a code is rejected is never
    returned.
    """
    try:
        result = services.authorizer.login(request.phone_number, request.code)
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message)
    except InvalidCredential as e:
        return _error(status.HTTP_401_UNAUTHORIZED, e.message)

    identity = result.identity
    return LoginResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_in=result.expires_in,
        user=UserResponse(
            id=identity.user_id,
            phone_number=identity.phone_number,
            name=identity.name,
            role=identity.role.value,
            setup_complete=identity.setup_complete,
            is_new_user=identity.is_new_user
        )
    )


@router.get("/session", response_model=SessionResponse)
async def get_session_info(claims: CurrentSession):
    """
    Get the claims of the current session.

    Claims are frozen at issuance; they may lag behind the user row.
    """
    return SessionResponse(
        id=claims.user_id,
        phone_number=claims.phone_number,
        role=claims.role,
        setup_complete=claims.setup_complete,
        is_new_user=claims.is_new_user,
        expires_at=claims.exp
    )


@router.get("/me", response_model=ProfileResponse)
async def get_current_user_info(current_user: CurrentUser):
    """
    Get current authenticated user info.

    Requires valid access token.
    """
    return ProfileResponse(
        id=current_user.id,
        phone_number=current_user.phone_number,
        name=current_user.name,
        email=current_user.email,
        role=current_user.role.value,
        setup_complete=current_user.setup_complete,
        event_id=current_user.event_id
    )
