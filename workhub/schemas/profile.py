"""
Employee profile schemas
"""
import datetime as dt
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class WorkExperienceIn(BaseModel):
    company: str = Field(..., min_length=1)
    role: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class WorkExperienceOut(WorkExperienceIn):
    id: int

    model_config = ConfigDict(from_attributes=True)


class EducationIn(BaseModel):
    level: str = Field(..., min_length=1, description="e.g. 10th, 12th, Graduation")
    institution: Optional[str] = None
    year: Optional[str] = None
    score: Optional[str] = None


class EducationOut(EducationIn):
    id: int

    model_config = ConfigDict(from_attributes=True)


class CertificationIn(BaseModel):
    name: str = Field(..., min_length=1)
    issuer: Optional[str] = None
    date: Optional[dt.date] = None


class CertificationOut(CertificationIn):
    id: int

    model_config = ConfigDict(from_attributes=True)


class ProfileFields(BaseModel):
    designation: Optional[str] = None
    department: Optional[str] = None
    phone_number: Optional[str] = None
    alternate_phone: Optional[str] = None
    alternate_email: Optional[str] = None
    address: Optional[str] = None
    pincode: Optional[str] = None
    map_location: Optional[str] = None
    joining_date: Optional[dt.date] = None
    date_of_birth: Optional[dt.date] = None
    profile_image: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_designation: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_email: Optional[str] = None


class ProfileUpdate(ProfileFields):
    """
    Full replacement of the caller's profile.

    The three lists replace whatever is stored; send the complete list each time.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    work_experiences: List[WorkExperienceIn] = Field(default_factory=list)
    educations: List[EducationIn] = Field(default_factory=list)
    certifications: List[CertificationIn] = Field(default_factory=list)


class ProfileOut(ProfileFields):
    user_id: int
    name: str
    email: str
    work_experiences: List[WorkExperienceOut] = Field(default_factory=list)
    educations: List[EducationOut] = Field(default_factory=list)
    certifications: List[CertificationOut] = Field(default_factory=list)
