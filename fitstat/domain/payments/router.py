"""Payment router - FastAPI endpoints for payments and refunds"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    BookedSlot,
    PaymentCreate,
    PaymentDashboardResponse,
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentListResponse,
    PaymentResponse,
    RefundRequest,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


# ============================================================================
# BOOKING FLOW
# ============================================================================


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    data: PaymentIntentCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Create a card payment intent; returns the client secret for the checkout form"""
    return await service.create_payment_intent(data, current_user)


@router.post("", response_model=PaymentResponse, status_code=201)
async def process_payment(
    data: PaymentCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Record a booking once its payment intent has succeeded"""
    return await service.process_payment(data, current_user)


@router.get("/slots/booked", response_model=list[BookedSlot])
async def get_booked_slots(
    classId: int = Query(...),
    service: PaymentService = Depends(get_payment_service),
):
    """Slots already taken for a class (completed payments only)"""
    return service.get_booked_slots(classId)


# ============================================================================
# MEMBER ROUTES
# ============================================================================


@router.get("/my-payments", response_model=list[PaymentResponse])
async def get_my_payments(
    email: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_user_payments(current_user, email)


@router.get("/latest", response_model=Optional[PaymentResponse])
async def get_latest_payment(
    email: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Most recent payment of the caller (admins may pass ?email=)"""
    return service.get_latest_payment(current_user, email)


# ============================================================================
# ADMIN ROUTES
# ============================================================================


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, pattern="^(pending|completed|failed|refunded)$"),
    userEmail: Optional[str] = Query(None),
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    sortBy: str = Query("createdAt", pattern="^(createdAt|packagePrice|paymentStatus)$"),
    sortOrder: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    return service.list_payments(
        page, limit, status, userEmail, startDate, endDate, sortBy, sortOrder
    )


@router.get("/stats")
async def get_payment_stats(
    current_user: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    """Revenue overview, last 12 months and top payers"""
    return service.get_payment_stats()


@router.get("/admin/dashboard", response_model=PaymentDashboardResponse)
async def get_payment_dashboard(
    current_user: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_dashboard_stats()


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: int,
    data: Optional[RefundRequest] = None,
    current_user: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    """Refund a completed payment; refunding twice returns 409"""
    reason = data.reason if data else "requested_by_customer"
    return await service.refund_payment(payment_id, reason, current_user)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_payment_for_user(payment_id, current_user)


__all__ = [
    "router",
    "get_payment_service",
]
