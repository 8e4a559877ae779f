"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import USER_ROLES, USER_STATUSES, WEEKDAYS
from ...security_utils import check_password_strength, sanitize_html
from ...shared.pagination import PaginationMeta
from ...shared.validators import (
    clean_string_list,
    validate_choice,
    validate_email,
    validate_url,
    validate_weekdays,
)


class SocialLinks(BaseModel):
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None

    @field_validator("facebook", "twitter", "instagram", "linkedin")
    @classmethod
    def validate_links(cls, v):
        return validate_url(v)


class SelectedClass(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    value: str = Field(..., min_length=1, max_length=100)


class SlotCreate(BaseModel):
    """A bookable time slot offered by a trainer"""

    slotName: str = Field(..., min_length=1, max_length=100)
    slotTime: str = Field(..., min_length=1, max_length=50)
    slotDay: str
    selectedClasses: list[SelectedClass] = Field(..., min_length=1)

    @field_validator("slotName", "slotTime")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Cannot be blank")
        return v

    @field_validator("slotDay")
    @classmethod
    def validate_day(cls, v):
        v = v.strip().capitalize()
        return validate_choice(v, WEEKDAYS, "Slot day")


class SlotRemove(BaseModel):
    slotNameToRemove: str = Field(..., min_length=1)


class TrainerProfileFields(BaseModel):
    """Trainer profile fields shared by the application and profile updates"""

    age: Optional[int] = Field(None, ge=13, le=100)
    skills: Optional[list[str]] = None
    availableDays: Optional[list[str]] = None
    hoursPerDay: Optional[int] = Field(None, ge=1, le=24)
    experience: Optional[int] = Field(None, ge=0, le=80)
    socialLinks: Optional[SocialLinks] = None
    biodata: Optional[str] = Field(None, max_length=1000)
    photoURL: Optional[str] = None

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v):
        return clean_string_list(v, max_items=20)

    @field_validator("availableDays")
    @classmethod
    def validate_days(cls, v):
        return validate_weekdays(v)

    @field_validator("biodata")
    @classmethod
    def clean_biodata(cls, v):
        return sanitize_html(v)

    @field_validator("photoURL")
    @classmethod
    def validate_photo(cls, v):
        return validate_url(v)


class TrainerApplication(TrainerProfileFields):
    """Everything an applicant must tell the admins"""

    age: int = Field(..., ge=13, le=100)
    skills: list[str] = Field(..., min_length=1)
    availableDays: list[str] = Field(..., min_length=1)
    hoursPerDay: int = Field(..., ge=1, le=24)
    experience: int = Field(..., ge=0, le=80)


class ProfileUpdate(TrainerProfileFields):
    name: Optional[str] = Field(None, min_length=2, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if v else v


class AdminUserCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: str
    password: str
    role: str = "member"
    status: str = "active"
    photoURL: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        error = check_password_strength(v)
        if error:
            raise ValueError(error)
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        return validate_choice(v, USER_ROLES, "Role")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return validate_choice(v, USER_STATUSES, "Status")

    @field_validator("photoURL")
    @classmethod
    def validate_photo(cls, v):
        return validate_url(v)


class RejectApplicationRequest(BaseModel):
    feedback: str = Field(..., min_length=1, max_length=500)

    @field_validator("feedback")
    @classmethod
    def clean_feedback(cls, v):
        v = sanitize_html(v)
        if not v:
            raise ValueError("Feedback is required")
        return v


class UserResponse(BaseModel):
    """Public profile - never carries the password hash or admin feedback"""

    id: int
    name: str
    email: str
    photo_url: Optional[str] = None
    role: str
    status: str
    age: Optional[int] = None
    skills: Optional[list[str]] = None
    available_days: Optional[list[str]] = None
    hours_per_day: Optional[int] = None
    experience: Optional[int] = None
    social_links: Optional[dict] = None
    biodata: Optional[str] = None
    slots: Optional[list[dict]] = None
    is_email_verified: bool = False
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserDetailResponse(UserResponse):
    """Profile as seen by its owner or an admin"""

    feedback: Optional[str] = None


class UserListResponse(BaseModel):
    users: list[UserDetailResponse]
    pagination: PaginationMeta


class TrainerBookingInfo(BaseModel):
    id: int
    name: str
    email: str
    skills: Optional[list[str]] = None

    class Config:
        from_attributes = True
