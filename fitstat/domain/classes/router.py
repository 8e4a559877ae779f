"""Class router - FastAPI endpoints for the class directory"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin, require_staff
from ...database import get_db
from ...models import User
from .schemas import (
    CapacityResponse,
    CategorySummary,
    ClassCreate,
    ClassListResponse,
    ClassResponse,
    ClassUpdate,
)
from .service import ClassService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes", tags=["Classes"])


def get_class_service(db: Session = Depends(get_db)) -> ClassService:
    """Dependency injection for ClassService"""
    return ClassService(db)


# ============================================================================
# PUBLIC ROUTES
# ============================================================================


@router.get("", response_model=ClassListResponse)
async def list_classes(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(6, ge=1, le=100),
    category: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    sortBy: str = Query("createdAt"),
    sortOrder: str = Query("desc", pattern="^(asc|desc)$"),
    service: ClassService = Depends(get_class_service),
):
    """Paginated list of active classes with search, filters and sorting"""
    return service.list_classes(search, page, limit, category, difficulty, sortBy, sortOrder)


@router.get("/all", response_model=list[ClassResponse])
async def get_all_classes(service: ClassService = Depends(get_class_service)):
    """Every active class, unpaginated (used by booking forms)"""
    return service.get_all_classes()


@router.get("/popular", response_model=list[ClassResponse])
async def get_popular_classes(
    limit: int = Query(6, ge=1, le=50),
    service: ClassService = Depends(get_class_service),
):
    return service.get_popular_classes(limit)


@router.get("/categories", response_model=list[CategorySummary])
async def get_categories(service: ClassService = Depends(get_class_service)):
    return service.get_categories()


@router.get("/search", response_model=ClassListResponse)
async def search_classes(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ClassService = Depends(get_class_service),
):
    return service.search_classes(q, page, limit)


# ============================================================================
# ADMIN ROUTES
# ============================================================================


@router.get("/admin/stats")
async def get_class_stats(
    current_user: User = Depends(require_admin),
    service: ClassService = Depends(get_class_service),
):
    """Totals plus difficulty and category distributions"""
    return service.get_class_stats()


@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    data: ClassCreate,
    current_user: User = Depends(require_staff),
    service: ClassService = Depends(get_class_service),
):
    return service.create_class(data, current_user)


@router.patch("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: int,
    data: ClassUpdate,
    current_user: User = Depends(require_staff),
    service: ClassService = Depends(get_class_service),
):
    return service.update_class(class_id, data)


@router.delete("/{class_id}")
async def delete_class(
    class_id: int,
    current_user: User = Depends(require_admin),
    service: ClassService = Depends(get_class_service),
):
    return service.delete_class(class_id)


# ============================================================================
# SINGLE CLASS + BOOKING
# ============================================================================


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(class_id: int, service: ClassService = Depends(get_class_service)):
    return service.get_class(class_id)


@router.get("/{class_id}/validate-capacity", response_model=CapacityResponse)
async def validate_capacity(
    class_id: int,
    requested: int = Query(1, ge=1),
    service: ClassService = Depends(get_class_service),
):
    """400 'Class is fully booked' when the requested bookings do not fit"""
    return service.validate_class_capacity(class_id, requested)


@router.patch("/{class_id}/book", response_model=ClassResponse)
async def book_class(
    class_id: int,
    current_user: User = Depends(get_current_user),
    service: ClassService = Depends(get_class_service),
):
    return service.book_class(class_id, current_user)


__all__ = [
    "router",
    "get_class_service",
]
