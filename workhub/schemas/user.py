"""
User schemas (admin user management)
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from workhub.utils.datetime_utils import iso_local


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., description="Temporary password; the user changes it on first login")
    role: Optional[str] = Field(None, description="admin or employee (default employee)")


class UserUpdate(BaseModel):
    """Only the fields sent are changed"""
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class PasswordReset(BaseModel):
    password: str


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    must_change_password: bool
    face_enrolled: bool
    face_enrolled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("face_enrolled_at", "created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, value: Optional[datetime]) -> Optional[str]:
        return iso_local(value)


class UserStats(BaseModel):
    total: int
    admins: int
    employees: int
