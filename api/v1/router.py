"""
API v1 router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from . import auth, setup, users, system

router = APIRouter()

# Include all route modules
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(setup.router, prefix="/setup", tags=["Setup"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(system.router, prefix="/system", tags=["System"])
