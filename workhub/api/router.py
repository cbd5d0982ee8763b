"""
Main API router
"""
from fastapi import APIRouter

from workhub.api.v1 import (
    health,
    version,
    auth,
    attendance,
    face,
    profile,
)
from workhub.api.v1.admin import admin_router

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["attendance"])
api_router.include_router(face.router, prefix="/face", tags=["face"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(admin_router)
