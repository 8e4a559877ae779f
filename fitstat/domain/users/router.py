"""User router - FastAPI endpoints for profiles, trainers and applications"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    AdminUserCreate,
    ProfileUpdate,
    RejectApplicationRequest,
    SlotCreate,
    SlotRemove,
    TrainerApplication,
    TrainerBookingInfo,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
)
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# PUBLIC TRAINER DIRECTORY
# ============================================================================


@router.get("/trainers", response_model=list[UserResponse])
async def get_trainers(service: UserService = Depends(get_user_service)):
    return service.get_trainers()


@router.get("/trainers/team", response_model=list[UserResponse])
async def get_featured_trainers(service: UserService = Depends(get_user_service)):
    """Three most experienced trainers for the landing page"""
    return service.get_trainers(limit=3)


@router.get("/trainers/class/{class_name}", response_model=list[UserResponse])
async def get_trainers_by_class(class_name: str, service: UserService = Depends(get_user_service)):
    return service.get_trainers_by_class(class_name)


@router.get("/trainer/{user_id}", response_model=UserResponse)
async def get_trainer(user_id: int, service: UserService = Depends(get_user_service)):
    return service.get_trainer(user_id)


@router.get("/booking/{user_id}", response_model=TrainerBookingInfo)
async def get_trainer_for_booking(user_id: int, service: UserService = Depends(get_user_service)):
    """Only what the booking form needs"""
    return service.get_trainer(user_id)


# ============================================================================
# AUTHENTICATED USER ROUTES
# ============================================================================


@router.get("/me", response_model=UserDetailResponse)
async def get_my_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserDetailResponse)
async def update_my_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.update_profile(current_user, data)


@router.post("/{user_id}/apply", response_model=UserDetailResponse)
@router.patch("/{user_id}/apply", response_model=UserDetailResponse)
async def apply_for_trainer(
    user_id: int,
    data: TrainerApplication,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Submit a trainer application; the account moves to status=pending"""
    return service.apply_for_trainer(user_id, data, current_user)


@router.patch("/{user_id}/slot", response_model=UserDetailResponse)
async def add_slot(
    user_id: int,
    data: SlotCreate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.add_slot(user_id, data, current_user)


@router.patch("/{user_id}/slot/remove", response_model=UserDetailResponse)
async def remove_slot(
    user_id: int,
    data: SlotRemove,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.remove_slot(user_id, data.slotNameToRemove, current_user)


# ============================================================================
# ADMIN ROUTES
# ============================================================================


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = Query(None, pattern="^(member|trainer|admin)$"),
    status: Optional[str] = Query(None, pattern="^(active|pending|rejected|inactive)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.list_users(role, status, page, limit)


@router.get("/user", response_model=UserDetailResponse)
async def get_user_by_email(
    email: str = Query(..., min_length=3),
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.get_user_by_email(email)


@router.get("/stats")
async def get_user_stats(
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.get_user_stats()


@router.post("", response_model=UserDetailResponse, status_code=201)
async def create_user(
    data: AdminUserCreate,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.create_user(data, current_user)


@router.get("/applications", response_model=list[UserDetailResponse])
async def get_pending_applications(
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.get_pending_applications()


@router.get("/application/{user_id}", response_model=UserDetailResponse)
async def get_application(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.get_application(user_id)


@router.patch("/application/accept/{user_id}", response_model=UserDetailResponse)
async def approve_application(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """role=trainer, status=active, feedback cleared"""
    return service.approve_application(user_id, current_user)


@router.patch("/application/reject/{user_id}", response_model=UserDetailResponse)
async def reject_application(
    user_id: int,
    data: RejectApplicationRequest,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """status=rejected with feedback; the user stays a member"""
    return service.reject_application(user_id, data.feedback, current_user)


@router.patch("/trainer/{user_id}/remove", response_model=UserDetailResponse)
async def remove_trainer(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.remove_trainer(user_id, current_user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.delete_user(user_id, current_user)


__all__ = [
    "router",
    "get_user_service",
]
