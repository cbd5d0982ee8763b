"""
WorkHub Backend - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from workhub.api.router import api_router
from workhub.api.v1.face import face_router
from workhub.core.config import settings
from workhub.core.constants import DEFAULT_VERSION
from workhub.core.errors import (
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from workhub.core.logging import setup_logging
from workhub.db.session import SessionLocal
from workhub.services.user_service import ensure_initial_admin

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "***"
    if parsed.scheme.startswith("sqlite"):
        return url
    if parsed.password:
        netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
        if parsed.port:
            netloc += f":{parsed.port}"
        return urlunparse(parsed._replace(netloc=netloc))
    return url


app = FastAPI(
    title="WorkHub Backend",
    description="Attendance tracking with face verification",
    version=settings.VERSION or DEFAULT_VERSION
)

allowed_origins = settings.get_allowed_origins_list()
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    # browsers reject credentials with a wildcard origin
    allow_credentials=allowed_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Versioned API under /api/v1; face enrol/reset keep their /api/face paths
app.include_router(api_router, prefix="/api/v1")
app.include_router(face_router)


@app.on_event("startup")
def startup_log_config() -> None:
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
    logger.info("Reference time zone: %s", settings.TZ)


@app.on_event("startup")
def bootstrap_initial_admin() -> None:
    """
    Create the initial admin user if no admin exists.
    This ensures the system always has at least one admin user.
    """
    db = SessionLocal()
    try:
        ensure_initial_admin(db)
    except OperationalError as e:
        db.rollback()
        # Handle database not ready yet (tables might not exist)
        if "no such table" in str(e).lower():
            logger.warning("Database tables not ready yet, skipping initial bootstrap")
        else:
            logger.error("Database error during admin bootstrap: %s", e)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error during initial admin bootstrap: %s", e)
    finally:
        db.close()
