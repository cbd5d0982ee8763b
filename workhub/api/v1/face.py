"""
Face template endpoints.

The enrol/reset pair is served at /api/face/* with a flat {"error": ...} body,
the shape the web client's camera flow expects. The template read lives under
/api/v1 with the rest of the API.
"""
import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from workhub.core.deps import get_db, get_current_user
from workhub.core.errors import status_for_error_code
from workhub.models.user import User
from workhub.schemas.face import FaceEnrollRequest, FaceResetRequest, FaceTemplateOut
from workhub.services.face_service import enroll_face, face_template, reset_face

router = APIRouter()
face_router = APIRouter(prefix="/api/face", tags=["face"])
_log = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _forbidden_for(current_user: User, user_id: int) -> bool:
    return current_user.id != user_id and not current_user.is_admin


@router.get("/template", response_model=FaceTemplateOut)
async def get_face_template(current_user: User = Depends(get_current_user)):
    """
    The caller's stored template for client-side verification.

    reset_required is true when the template predates the current descriptor
    format; the client must reset and enrol again.
    """
    return FaceTemplateOut(**face_template(current_user))


@face_router.post("/enroll")
async def enroll(
    payload: FaceEnrollRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Store the averaged enrolment descriptor for userId"""
    if not payload.user_id or payload.face_descriptor is None:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required fields")
    if _forbidden_for(current_user, payload.user_id):
        return _error(status.HTTP_403_FORBIDDEN, "Not allowed to enroll another user")

    result = enroll_face(db, payload.user_id, payload.face_descriptor, actor_id=current_user.id)
    if not result.success:
        _log.info("Face enrollment failed: user_id=%s error=%s", payload.user_id, result.error)
        return _error(status_for_error_code(result.error_code), result.error)
    return {"success": True}


@face_router.post("/reset")
async def reset(
    payload: FaceResetRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Clear the stored template for userId so they must enrol again"""
    if not payload.user_id:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing userId")
    if _forbidden_for(current_user, payload.user_id):
        return _error(status.HTTP_403_FORBIDDEN, "Not allowed to reset another user")

    result = reset_face(db, payload.user_id, actor_id=current_user.id)
    if not result.success:
        return _error(status_for_error_code(result.error_code), result.error)
    return {"success": True, "message": result.message}
