"""Admin API (ADMIN role only)."""
from fastapi import APIRouter
from workhub.api.v1.admin import users as admin_users

admin_router = APIRouter(prefix="/admin", tags=["admin"])
admin_router.include_router(admin_users.router)
