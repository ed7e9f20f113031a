"""
FastAPI application entry point.

Configures the API with all routes, middleware, and error handling.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .v1.router import router as v1_router
from .v1.system import database_health
from .deps import ServicesDep, get_services, close_services

logger = logging.getLogger(__name__)

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    logger.info("Starting slotbook API...")

    # Build services on startup so missing secrets abort the process
    get_services()
    logger.info("Services initialized")

    yield

    logger.info("Shutting down...")
    close_services()


app = FastAPI(
    title="Slotbook API",
    description="Phone-number login and account setup for the appointment scheduler",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware; the web front end lives at SESSION_BASE_URL
_base_url = os.getenv("SESSION_BASE_URL")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[_base_url] if _base_url else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": "Internal server error"}
    )


# Health check
@app.get("/health", tags=["System"])
async def health_check(services: ServicesDep):
    """Health check endpoint; verifies the database connection."""
    return database_health(services)


# Include API v1 routes
app.include_router(v1_router, prefix="/api/v1")


# Root endpoint
@app.get("/", tags=["System"])
async def root():
    """API root endpoint."""
    return {
        "name": "Slotbook API",
        "version": "1.0.0",
        "docs": "/docs"
    }
