"""Review router - FastAPI endpoints for reviews"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    BulkReviewRequest,
    BulkReviewResult,
    ClassReviewsResponse,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewSummaryResponse,
    ReviewUpdate,
    TrainerReviewsResponse,
)
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("", response_model=ReviewListResponse)
async def list_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    classId: Optional[int] = None,
    trainerEmail: Optional[str] = None,
    verified: Optional[bool] = None,
    sortBy: str = Query("createdAt", pattern="^(createdAt|rating)$"),
    sortOrder: str = Query("desc", pattern="^(asc|desc)$"),
    service: ReviewService = Depends(get_review_service),
):
    """Visible reviews only"""
    return service.list_reviews(
        page, limit, rating, classId, trainerEmail, verified, sortBy, sortOrder
    )


@router.get("/top", response_model=list[ReviewResponse])
async def get_top_reviews(
    limit: int = Query(10, ge=1, le=50), service: ReviewService = Depends(get_review_service)
):
    return service.get_top_reviews(limit)


@router.get("/featured", response_model=list[ReviewResponse])
async def get_featured_reviews(
    limit: int = Query(6, ge=1, le=50), service: ReviewService = Depends(get_review_service)
):
    return service.get_featured_reviews(limit)


@router.get("/latest", response_model=list[ReviewResponse])
async def get_latest_reviews(
    limit: int = Query(10, ge=1, le=50), service: ReviewService = Depends(get_review_service)
):
    return service.get_recent_reviews(limit)


@router.get("/class/{class_id}", response_model=ClassReviewsResponse)
async def get_class_reviews(
    class_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_class_reviews(class_id, page, limit, rating)


@router.get("/class/{class_id}/summary", response_model=ReviewSummaryResponse)
async def get_class_review_summary(
    class_id: int, service: ReviewService = Depends(get_review_service)
):
    return service.get_class_summary(class_id)


@router.get("/trainer/{trainer_email}", response_model=TrainerReviewsResponse)
async def get_trainer_reviews(
    trainer_email: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_trainer_reviews(trainer_email, page, limit, rating)


# ============================================================================
# AUTHENTICATED
# ============================================================================


@router.get("/user/my-reviews", response_model=list[ReviewResponse])
async def get_my_reviews(
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_user_reviews(current_user)


@router.get("/user/latest", response_model=Optional[ReviewResponse])
async def get_my_latest_review(
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_latest_user_review(current_user)


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.create_review(data, current_user)


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/admin/stats")
async def get_review_stats(
    current_user: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_review_stats()


@router.post("/bulk/verify", response_model=BulkReviewResult)
async def bulk_verify_reviews(
    data: BulkReviewRequest,
    current_user: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return service.bulk_update(data.reviewIds, "verified", is_verified=True)


@router.post("/bulk/hide", response_model=BulkReviewResult)
async def bulk_hide_reviews(
    data: BulkReviewRequest,
    current_user: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return service.bulk_update(data.reviewIds, "hidden", is_visible=False)


@router.patch("/{review_id}/verify", response_model=ReviewResponse)
async def verify_review(
    review_id: int,
    current_user: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return service.set_flag(review_id, is_verified=True)


@router.patch("/{review_id}/hide", response_model=ReviewResponse)
async def hide_review(
    review_id: int,
    current_user: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return service.set_flag(review_id, is_visible=False)


@router.patch("/{review_id}/show", response_model=ReviewResponse)
async def show_review(
    review_id: int,
    current_user: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return service.set_flag(review_id, is_visible=True)


# ============================================================================
# SINGLE REVIEW
# ============================================================================


@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(review_id: int, service: ReviewService = Depends(get_review_service)):
    return service.get_review(review_id)


@router.patch("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.update_review(review_id, data, current_user)


@router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return service.delete_review(review_id, current_user)


__all__ = [
    "router",
    "get_review_service",
]
