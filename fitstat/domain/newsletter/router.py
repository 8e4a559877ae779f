"""Newsletter router - FastAPI endpoints for newsletter subscriptions"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import NEWSLETTER_FREQUENCIES, NEWSLETTER_TOPICS, User
from .schemas import (
    BulkUnsubscribeRequest,
    BulkUnsubscribeResult,
    NewsletterPreferences,
    SubscribeRequest,
    SubscriberListResponse,
    SubscriberResponse,
    UnsubscribeRequest,
)
from .service import NewsletterService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/newsletters", tags=["Newsletter"])

TOPIC_PATTERN = f"^({'|'.join(NEWSLETTER_TOPICS)})$"
FREQUENCY_PATTERN = f"^({'|'.join(NEWSLETTER_FREQUENCIES)})$"


def get_newsletter_service(db: Session = Depends(get_db)) -> NewsletterService:
    """Dependency injection for NewsletterService"""
    return NewsletterService(db)


@router.post("/subscribe", response_model=SubscriberResponse, status_code=201)
async def subscribe(
    data: SubscribeRequest,
    response: Response,
    service: NewsletterService = Depends(get_newsletter_service),
):
    """201 for a new subscriber, 200 when an old subscription is reactivated"""
    subscriber, created = service.subscribe(data)
    if not created:
        response.status_code = 200
    return subscriber


@router.post("/unsubscribe")
async def unsubscribe(
    data: UnsubscribeRequest, service: NewsletterService = Depends(get_newsletter_service)
):
    return service.unsubscribe(data.email)


@router.patch("/preferences/{email}", response_model=SubscriberResponse)
async def update_preferences(
    email: str,
    data: NewsletterPreferences,
    current_user: User = Depends(get_current_user),
    service: NewsletterService = Depends(get_newsletter_service),
):
    return service.update_preferences(email, data, current_user)


# ============================================================================
# ADMIN ROUTES
# ============================================================================


@router.get("", response_model=SubscriberListResponse)
async def list_subscribers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    isActive: Optional[bool] = True,
    topic: Optional[str] = Query(None, pattern=TOPIC_PATTERN),
    frequency: Optional[str] = Query(None, pattern=FREQUENCY_PATTERN),
    sortOrder: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    return service.list_subscribers(page, limit, isActive, topic, frequency, sortOrder)


@router.get("/subscriber", response_model=SubscriberResponse)
async def get_subscriber(
    email: str = Query(..., min_length=3),
    current_user: User = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    return service.get_subscriber(email)


@router.get("/stats")
async def get_subscriber_stats(
    current_user: User = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    return service.get_subscriber_stats()


@router.get("/topic/{topic}", response_model=list[SubscriberResponse])
async def get_subscribers_by_topic(
    topic: str,
    current_user: User = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    return service.get_subscribers_by_topic(topic.lower())


@router.get("/frequency/{frequency}", response_model=list[SubscriberResponse])
async def get_subscribers_by_frequency(
    frequency: str,
    current_user: User = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    return service.get_subscribers_by_frequency(frequency.lower())


@router.post("/bulk-unsubscribe", response_model=BulkUnsubscribeResult)
async def bulk_unsubscribe(
    data: BulkUnsubscribeRequest,
    current_user: User = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    return service.bulk_unsubscribe(data.emails)


@router.get("/export")
async def export_subscribers(
    topic: Optional[str] = Query(None, pattern=TOPIC_PATTERN),
    frequency: Optional[str] = Query(None, pattern=FREQUENCY_PATTERN),
    current_user: User = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    """Download active subscribers as a CSV file"""
    return service.export_subscribers_csv(current_user, topic, frequency)


@router.delete("")
async def delete_subscriber(
    email: str = Query(..., min_length=3),
    current_user: User = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    return service.delete_subscriber(email)


__all__ = [
    "router",
    "get_newsletter_service",
]
