"""
Authentication endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from workhub.core.deps import get_db, get_current_user
from workhub.core.errors import raise_for_result
from workhub.models.user import User
from workhub.schemas.auth import (
    ChangePasswordRequest,
    FirstLoginRequest,
    LoginRequest,
    MessageResponse,
    TokenResponse,
)
from workhub.services import user_service

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return JWT token

    Accepts a full email or the bare name for company accounts. Employees
    still holding an admin-issued password get reset_required and user_id
    instead of a token.
    """
    result = user_service.login(db, login_data.email, login_data.password)
    if result.success:
        return TokenResponse(**result.data)
    if result.data and result.data.get("reset_required"):
        return TokenResponse(reset_required=True, user_id=result.data["user_id"])
    raise_for_result(result)


@router.post("/first-login", response_model=MessageResponse)
async def first_login(
    payload: FirstLoginRequest,
    db: Session = Depends(get_db)
):
    """Set a personal password in place of the temporary one, then log in normally"""
    result = user_service.complete_first_login(
        db,
        payload.email,
        payload.current_password,
        payload.new_password,
        payload.confirm_password,
    )
    raise_for_result(result)
    return MessageResponse(message="Password updated. Please log in with your new password.")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    result = user_service.change_password(
        db,
        current_user,
        payload.current_password,
        payload.new_password,
        payload.confirm_password,
    )
    raise_for_result(result)
    return MessageResponse(message="Password updated successfully")
