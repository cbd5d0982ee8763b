"""
Employee profile endpoints (the caller's own profile)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from workhub.core.deps import get_db, get_current_user
from workhub.core.errors import raise_for_result
from workhub.models.user import User
from workhub.schemas.profile import ProfileOut, ProfileUpdate
from workhub.services.profile_service import PROFILE_FIELDS, get_profile, update_profile

router = APIRouter()


def _to_out(user: User, profile) -> ProfileOut:
    data = {"user_id": user.id, "name": user.name, "email": user.email}
    if profile is not None:
        data.update({field: getattr(profile, field) for field in PROFILE_FIELDS})
        data["work_experiences"] = list(profile.work_experiences)
        data["educations"] = list(profile.educations)
        data["certifications"] = list(profile.certifications)
    return ProfileOut.model_validate(data, from_attributes=True)


@router.get("", response_model=ProfileOut)
async def read_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Profile fields and lists; empty when the user has not filled a profile yet"""
    return _to_out(current_user, get_profile(db, current_user.id))


@router.put("", response_model=ProfileOut)
async def replace_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Replace the caller's profile.

    Work experience, education and certification lists are replaced as a
    whole. On any error nothing is changed.
    """
    result = update_profile(db, current_user.id, payload.model_dump())
    raise_for_result(result)
    db.refresh(current_user)
    return _to_out(current_user, result.data)
