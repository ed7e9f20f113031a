"""
Account setup endpoint.

Completes first-login setup: name, optional email, and role selection by
role password.
"""

import logging
from typing import Optional

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from slotbook.errors import (
    EmailInUse,
    InvalidRolePassword,
    SetupAlreadyComplete,
    SetupFailed,
    Unauthenticated,
    ValidationError,
)

from ..deps import ServicesDep, CurrentSessionOptional

logger = logging.getLogger(__name__)

router = APIRouter()


class CompleteSetupRequest(BaseModel):
    """Setup form."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, description="Display name (min 2 chars)")
    email: Optional[str] = Field(None, description="Email address")
    role_password: Optional[str] = Field(
        None,
        alias="rolePassword",
        description="Role password; leave blank to register as a client"
    )


class CompleteSetupResponse(BaseModel):
    """Setup outcome with a re-issued session carrying the new role."""
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    role: str
    event_name: Optional[str] = Field(None, alias="eventName")
    access_token: str
    token_type: str = "bearer"
    expires_in: int


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


@router.post("/complete", response_model=CompleteSetupResponse, response_model_exclude_none=True)
def complete_setup(
    request: CompleteSetupRequest,
    claims: CurrentSessionOptional,
    services: ServicesDep
):
    """
    Complete account setup for the signed-in user.

    Returns the final role, the linked event's name for professionals, and a
    new session token: the old token still carries the previous role.
    """
    try:
        result = services.setup.complete_setup(
            claims,
            name=request.name,
            email=request.email,
            role_password=request.role_password
        )
    except Unauthenticated as e:
        return _error(status.HTTP_401_UNAUTHORIZED, e.message)
    except (ValidationError, InvalidRolePassword) as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message)
    except (EmailInUse, SetupAlreadyComplete) as e:
        return _error(status.HTTP_409_CONFLICT, e.message)
    except SetupFailed as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)

    session = services.authorizer.reissue(claims.user_id)

    return CompleteSetupResponse(
        role=result.role.value,
        event_name=result.event_name,
        access_token=session.access_token,
        token_type=session.token_type,
        expires_in=session.expires_in
    )
