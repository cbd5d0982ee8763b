"""
Face template persistence: enrol (store averaged descriptor) and reset.
"""
import logging
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from workhub.models.user import User
from workhub.services.audit_service import log_audit
from workhub.services.face_descriptor import DESCRIPTOR_LENGTH, is_legacy_template, is_valid_descriptor
from workhub.services.results import ErrorCode, OperationResult
from workhub.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)


def enroll_face(
    db: Session,
    user_id: int,
    face_descriptor: Sequence[float],
    actor_id: Optional[int] = None,
) -> OperationResult:
    """
    Store the enrolment template for a user, replacing any previous one.

    The descriptor must already be the average of the enrolment captures.
    """
    if not is_valid_descriptor(face_descriptor):
        return OperationResult.failed(
            f"Face descriptor must be {DESCRIPTOR_LENGTH} numbers", ErrorCode.INVALID_INPUT
        )

    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            return OperationResult.failed("User not found", ErrorCode.NOT_FOUND)

        user.face_descriptor = [float(v) for v in face_descriptor]
        user.face_enrolled = True
        user.face_enrolled_at = now_utc()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Face enrollment error: user_id=%s", user_id)
        return OperationResult.failed("Failed to enroll face", ErrorCode.INTERNAL)

    log_audit(
        db=db,
        actor_id=actor_id or user_id,
        action="FACE_ENROLL",
        entity_type="users",
        entity_id=user_id,
    )
    return OperationResult.ok()


def reset_face(db: Session, user_id: int, actor_id: Optional[int] = None) -> OperationResult:
    """Clear the user's template so they must enrol again."""
    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            return OperationResult.failed("User not found", ErrorCode.NOT_FOUND)

        user.face_descriptor = None
        user.face_enrolled = False
        user.face_enrolled_at = None
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Face reset error: user_id=%s", user_id)
        return OperationResult.failed("Failed to reset face data", ErrorCode.INTERNAL)

    log_audit(
        db=db,
        actor_id=actor_id or user_id,
        action="FACE_RESET",
        entity_type="users",
        entity_id=user_id,
    )
    return OperationResult.ok(message="Face data reset successfully")


def face_template(user: User) -> dict:
    """Template as sent to the verification client."""
    descriptor = user.face_descriptor or None
    return {
        "user_id": user.id,
        "face_enrolled": bool(user.face_enrolled and descriptor),
        "face_descriptor": descriptor,
        "face_enrolled_at": user.face_enrolled_at,
        "reset_required": is_legacy_template(descriptor),
    }
