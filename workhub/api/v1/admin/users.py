"""
Admin user management endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from workhub.core.deps import get_db, require_admin
from workhub.core.errors import raise_for_result
from workhub.models.user import User
from workhub.schemas.auth import MessageResponse
from workhub.schemas.user import PasswordReset, UserCreate, UserOut, UserStats, UserUpdate
from workhub.services import user_service

router = APIRouter()


@router.get("/users", response_model=List[UserOut])
async def list_users(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All users, newest first"""
    return user_service.list_users(db)


@router.get("/stats", response_model=UserStats)
async def user_stats(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return UserStats(**user_service.user_counts(db))


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create a user with a temporary password.

    The user must choose their own password on first login. A duplicate
    email is rejected with 409.
    """
    result = user_service.add_user(
        db,
        current_user,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    raise_for_result(result)
    return result.data


@router.patch("/users/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    result = user_service.update_user(
        db,
        current_user,
        user_id,
        name=payload.name,
        email=payload.email,
        role=payload.role,
    )
    raise_for_result(result)
    return result.data


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a user together with their attendance records and profile"""
    result = user_service.delete_user(db, current_user, user_id)
    raise_for_result(result)
    return MessageResponse(message=result.message)


@router.post("/users/{user_id}/reset-password", response_model=MessageResponse)
async def reset_password(
    user_id: int,
    payload: PasswordReset,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    result = user_service.reset_user_password(db, current_user, user_id, payload.password)
    raise_for_result(result)
    return MessageResponse(message=result.message)
