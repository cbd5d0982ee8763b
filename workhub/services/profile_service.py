"""
Employee profile service: read and full replace of a user's profile
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from workhub.core.config import settings
from workhub.models.profile import Certification, Education, EmployeeProfile, WorkExperience
from workhub.models.user import User
from workhub.services.audit_service import log_audit
from workhub.services.results import ErrorCode, OperationResult
from workhub.services.user_service import normalize_email

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "designation",
    "department",
    "phone_number",
    "alternate_phone",
    "alternate_email",
    "address",
    "pincode",
    "map_location",
    "joining_date",
    "date_of_birth",
    "profile_image",
    "guardian_name",
    "guardian_designation",
    "guardian_phone",
    "guardian_email",
)


def get_profile(db: Session, user_id: int) -> Optional[EmployeeProfile]:
    """Profile with its child collections loaded, or None."""
    try:
        return (
            db.query(EmployeeProfile)
            .options(
                selectinload(EmployeeProfile.work_experiences),
                selectinload(EmployeeProfile.educations),
                selectinload(EmployeeProfile.certifications),
            )
            .filter(EmployeeProfile.user_id == user_id)
            .first()
        )
    except SQLAlchemyError:
        logger.exception("Get profile error: user_id=%s", user_id)
        return None


def update_profile(db: Session, user_id: int, data: Dict[str, Any]) -> OperationResult:
    """
    Replace the user's profile in one transaction.

    Name and email are written to the user row; the scalar profile fields are
    upserted; work experience, education and certification lists are deleted
    and recreated from `data`. Nothing is written if any step fails.

    Args:
        db: Database session
        user_id: Profile owner
        data: Profile payload (schemas.profile.ProfileUpdate.model_dump())

    Returns:
        OperationResult with the refreshed profile
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return OperationResult.failed("User not found", ErrorCode.NOT_FOUND)

    email = data.get("email")
    if email is not None and email.strip():
        email = normalize_email(email)
        if not email.endswith(f"@{settings.EMAIL_DOMAIN}"):
            return OperationResult.failed(f"Email must end with @{settings.EMAIL_DOMAIN}")
    else:
        email = None

    try:
        name = data.get("name")
        if name is not None and name.strip():
            user.name = name.strip()
        if email is not None:
            user.email = email

        profile = user.profile
        if profile is None:
            profile = EmployeeProfile(user_id=user.id)
            user.profile = profile

        for field in PROFILE_FIELDS:
            if field in data:
                setattr(profile, field, data[field])

        profile.work_experiences.clear()
        profile.educations.clear()
        profile.certifications.clear()
        # flush the orphan deletes before inserting the replacements
        db.flush()

        for item in data.get("work_experiences") or []:
            profile.work_experiences.append(WorkExperience(**item))
        for item in data.get("educations") or []:
            profile.educations.append(Education(**item))
        for item in data.get("certifications") or []:
            profile.certifications.append(Certification(**item))

        db.commit()
        db.refresh(profile)
    except IntegrityError:
        db.rollback()
        return OperationResult.failed("Email is already in use", ErrorCode.CONFLICT)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Profile update error: user_id=%s", user_id)
        return OperationResult.failed("Failed to update profile", ErrorCode.INTERNAL)

    log_audit(
        db=db,
        actor_id=user_id,
        action="PROFILE_UPDATE",
        entity_type="employee_profiles",
        entity_id=profile.id,
        meta={
            "work_experiences": len(profile.work_experiences),
            "educations": len(profile.educations),
            "certifications": len(profile.certifications),
        },
    )
    return OperationResult.ok(profile, "Profile updated successfully")
