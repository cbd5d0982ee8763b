"""
Face template schemas
"""
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from workhub.utils.datetime_utils import iso_local


class FaceEnrollRequest(BaseModel):
    """Body of POST /api/face/enroll (camelCase, as sent by the web client)"""
    user_id: Optional[int] = Field(None, alias="userId")
    face_descriptor: Optional[Any] = Field(None, alias="faceDescriptor")

    model_config = ConfigDict(populate_by_name=True)


class FaceResetRequest(BaseModel):
    user_id: Optional[int] = Field(None, alias="userId")

    model_config = ConfigDict(populate_by_name=True)


class FaceTemplateOut(BaseModel):
    user_id: int
    face_enrolled: bool
    face_descriptor: Optional[List[float]] = None
    face_enrolled_at: Optional[datetime] = None
    reset_required: bool = False

    @field_serializer("face_enrolled_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, value: Optional[datetime]) -> Optional[str]:
        return iso_local(value)
