"""Forum router - FastAPI endpoints for community posts"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    ForumCategorySummary,
    ForumPostCreate,
    ForumPostListResponse,
    ForumPostResponse,
    ForumPostUpdate,
)
from .service import ForumService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forums", tags=["Forum"])


def get_forum_service(db: Session = Depends(get_db)) -> ForumService:
    """Dependency injection for ForumService"""
    return ForumService(db)


@router.get("", response_model=ForumPostListResponse)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(6, ge=1, le=100),
    category: Optional[str] = None,
    search: Optional[str] = None,
    author: Optional[str] = None,
    sortBy: str = Query("createdAt", pattern="^(createdAt|voteCount|viewCount)$"),
    sortOrder: str = Query("desc", pattern="^(asc|desc)$"),
    service: ForumService = Depends(get_forum_service),
):
    """Active posts, pinned first"""
    return service.list_posts(page, limit, category, search, author, sortBy, sortOrder)


@router.get("/latest", response_model=list[ForumPostResponse])
async def get_latest_posts(
    limit: int = Query(6, ge=1, le=100),
    service: ForumService = Depends(get_forum_service),
):
    return service.get_latest_posts(limit)


@router.get("/trending", response_model=list[ForumPostResponse])
async def get_trending_posts(
    limit: int = Query(10, ge=1, le=100),
    service: ForumService = Depends(get_forum_service),
):
    return service.get_trending_posts(limit)


@router.get("/categories", response_model=list[ForumCategorySummary])
async def get_categories(service: ForumService = Depends(get_forum_service)):
    return service.get_categories()


@router.get("/search", response_model=ForumPostListResponse)
async def search_posts(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ForumService = Depends(get_forum_service),
):
    return service.search_posts(q, page, limit)


@router.get("/admin/stats")
async def get_forum_stats(
    current_user: User = Depends(require_admin),
    service: ForumService = Depends(get_forum_service),
):
    return service.get_forum_stats()


@router.post("", response_model=ForumPostResponse, status_code=201)
async def create_post(
    data: ForumPostCreate,
    current_user: User = Depends(get_current_user),
    service: ForumService = Depends(get_forum_service),
):
    return service.create_post(data, current_user)


@router.get("/{post_id}", response_model=ForumPostResponse)
async def get_post(post_id: int, service: ForumService = Depends(get_forum_service)):
    return service.get_post(post_id)


@router.patch("/{post_id}/upvote", response_model=ForumPostResponse)
async def upvote_post(post_id: int, service: ForumService = Depends(get_forum_service)):
    return service.vote(post_id, 1)


@router.patch("/{post_id}/downvote", response_model=ForumPostResponse)
async def downvote_post(post_id: int, service: ForumService = Depends(get_forum_service)):
    return service.vote(post_id, -1)


@router.patch("/{post_id}/pin", response_model=ForumPostResponse)
async def pin_post(
    post_id: int,
    current_user: User = Depends(require_admin),
    service: ForumService = Depends(get_forum_service),
):
    return service.set_pinned(post_id, True)


@router.patch("/{post_id}/unpin", response_model=ForumPostResponse)
async def unpin_post(
    post_id: int,
    current_user: User = Depends(require_admin),
    service: ForumService = Depends(get_forum_service),
):
    return service.set_pinned(post_id, False)


@router.patch("/{post_id}", response_model=ForumPostResponse)
async def update_post(
    post_id: int,
    data: ForumPostUpdate,
    current_user: User = Depends(get_current_user),
    service: ForumService = Depends(get_forum_service),
):
    """Authors only"""
    return service.update_post(post_id, data, current_user)


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    service: ForumService = Depends(get_forum_service),
):
    """Soft delete by the author or an admin"""
    return service.delete_post(post_id, current_user)


__all__ = [
    "router",
    "get_forum_service",
]
