"""
User preference endpoints.
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from slotbook.errors import PreferencesUpdateFailed, Unauthenticated, ValidationError

from ..deps import ServicesDep, CurrentSession

logger = logging.getLogger(__name__)

router = APIRouter()


class PreferencesModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    theme: Optional[str] = None
    time_format: Optional[str] = Field(None, alias="timeFormat")
    date_format: Optional[str] = Field(None, alias="dateFormat")
    timezone: Optional[str] = None


@router.get("/me/preferences", response_model=PreferencesModel)
async def get_preferences(claims: CurrentSession, services: ServicesDep):
    """Get the current user's display preferences."""
    try:
        prefs = services.preferences.get(claims.user_id)
    except Unauthenticated as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    return PreferencesModel(**asdict(prefs))


@router.patch("/me/preferences", response_model=PreferencesModel)
async def update_preferences(
    request: PreferencesModel,
    claims: CurrentSession,
    services: ServicesDep
):
    """Update any subset of the current user's display preferences."""
    try:
        prefs = services.preferences.update(
            claims.user_id,
            theme=request.theme,
            time_format=request.time_format,
            date_format=request.date_format,
            timezone=request.timezone
        )
    except Unauthenticated as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except PreferencesUpdateFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    return PreferencesModel(**asdict(prefs))
