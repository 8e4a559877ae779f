"""Class domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import CLASS_DIFFICULTIES
from ...security_utils import sanitize_html
from ...shared.pagination import PaginationMeta
from ...shared.validators import validate_choice, validate_url


class ClassCreate(BaseModel):
    """Schema for creating a new class"""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    image: str
    price: float = Field(..., ge=0)
    duration: int = Field(..., ge=1)
    difficulty: str
    category: str = Field(..., min_length=1, max_length=100)
    maxCapacity: int = Field(20, ge=1)

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Cannot be blank")
        return v

    @field_validator("description")
    @classmethod
    def clean_description(cls, v):
        return sanitize_html(v)

    @field_validator("image")
    @classmethod
    def validate_image(cls, v):
        return validate_url(v)

    @field_validator("difficulty")
    @classmethod
    def validate_difficulty(cls, v):
        return validate_choice(v, CLASS_DIFFICULTIES, "Difficulty")


class ClassUpdate(BaseModel):
    """Schema for updating an existing class"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    image: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=1)
    difficulty: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    maxCapacity: Optional[int] = Field(None, ge=1)
    isActive: Optional[bool] = None

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Cannot be blank")
        return v

    @field_validator("description")
    @classmethod
    def clean_description(cls, v):
        return sanitize_html(v)

    @field_validator("image")
    @classmethod
    def validate_image(cls, v):
        return validate_url(v)

    @field_validator("difficulty")
    @classmethod
    def validate_difficulty(cls, v):
        return validate_choice(v, CLASS_DIFFICULTIES, "Difficulty")


class ClassResponse(BaseModel):
    """Schema for class response"""

    id: int
    name: str
    description: str
    image: str
    price: float
    duration: int
    difficulty: str
    category: str
    booking_count: int
    max_capacity: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClassListResponse(BaseModel):
    classes: list[ClassResponse]
    pagination: PaginationMeta


class CapacityResponse(BaseModel):
    """Result of a successful capacity check"""

    class_id: int
    available: bool
    booking_count: int
    max_capacity: int
    remaining: int


class CategoryClass(BaseModel):
    id: int
    name: str
    difficulty: str
    price: float
    booking_count: int


class CategorySummary(BaseModel):
    category: str
    count: int
    classes: list[CategoryClass]
