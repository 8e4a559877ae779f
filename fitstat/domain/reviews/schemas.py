"""Review domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...security_utils import sanitize_html
from ...shared.pagination import PaginationMeta
from ...shared.validators import validate_email


def _clean_comment(v: str) -> str:
    v = sanitize_html(v)
    if len(v) < 10:
        raise ValueError("Comment must be at least 10 characters long")
    return v


class ReviewCreate(BaseModel):
    """A review targets a class, a trainer, or both"""

    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., max_length=1000)
    classId: Optional[int] = None
    trainerEmail: Optional[str] = None

    @field_validator("comment")
    @classmethod
    def clean_comment(cls, v):
        return _clean_comment(v)

    @field_validator("trainerEmail")
    @classmethod
    def validate_trainer_email(cls, v):
        return validate_email(v)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator("comment")
    @classmethod
    def clean_comment(cls, v):
        if v is None:
            return v
        return _clean_comment(v)


class BulkReviewRequest(BaseModel):
    reviewIds: list[int] = Field(..., min_length=1, max_length=100)


class ReviewClassSummary(BaseModel):
    id: int
    name: str
    category: str
    difficulty: str

    class Config:
        from_attributes = True


class ReviewResponse(BaseModel):
    id: int
    user_email: str
    user_name: str
    rating: int
    comment: str
    trainer_email: Optional[str] = None
    class_id: Optional[int] = None
    is_verified: bool
    is_visible: bool
    fitness_class: Optional[ReviewClassSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReviewListResponse(BaseModel):
    reviews: list[ReviewResponse]
    pagination: PaginationMeta


class RatingInfo(BaseModel):
    average: float
    total: int


class ClassReviewsResponse(BaseModel):
    reviews: list[ReviewResponse]
    class_rating: RatingInfo
    pagination: PaginationMeta


class TrainerReviewsResponse(BaseModel):
    reviews: list[ReviewResponse]
    trainer_rating: RatingInfo
    pagination: PaginationMeta


class ReviewSummaryResponse(BaseModel):
    """Keys of the breakdowns are the star ratings 5..1"""

    total_reviews: int
    average_rating: float
    rating_breakdown: dict[int, int]
    percentage_breakdown: dict[int, int]


class BulkReviewResult(BaseModel):
    message: str
    modified_count: int
