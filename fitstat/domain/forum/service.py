"""Forum service - Posts, votes and moderation"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import ForumPost, User
from ...shared.analytics import days_ago
from ...shared.pagination import paginate
from .repository import ForumRepository
from .schemas import ForumPostCreate, ForumPostUpdate

logger = logging.getLogger(__name__)

RECENT_POSTS_PER_CATEGORY = 5


class ForumService:
    """Service layer for the community forum"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ForumRepository()

    def _get_post(self, post_id: int) -> ForumPost:
        post = self.repo.get_post_by_id(self.db, post_id)
        if not post:
            raise HTTPException(status_code=404, detail="Forum post not found")
        return post

    def _save(self, post: ForumPost, action: str, **updates) -> ForumPost:
        try:
            return self.repo.update_post(self.db, post, **updates)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to {action} forum post {post.id}: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to {action} post") from e

    def create_post(self, data: ForumPostCreate, author: User) -> ForumPost:
        try:
            post = self.repo.create_post(
                self.db,
                title=data.title,
                content=data.content,
                category=data.category,
                tags=data.tags,
                author_name=author.name,
                author_email=author.email,
                author_avatar=author.photo_url,
                vote_count=0,
                view_count=0,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create forum post for {author.email}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create post") from e

        logger.info(f"✅ Forum post created: {post.id} ({post.title}) by {author.email}")
        return post

    def list_posts(
        self,
        page: int = 1,
        limit: int = 6,
        category: Optional[str] = None,
        search: Optional[str] = None,
        author: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> dict:
        query = self.repo.build_post_query(self.db, search, category, author, sort_by, sort_order)
        posts, pagination = paginate(query, page, limit)
        return {"posts": posts, "pagination": pagination}

    def search_posts(self, term: str, page: int = 1, limit: int = 10) -> dict:
        if not term or not term.strip():
            raise HTTPException(status_code=400, detail="Search term is required")
        return self.list_posts(page=page, limit=limit, search=term, sort_by="voteCount")

    def get_post(self, post_id: int) -> ForumPost:
        """Fetch a post and count the view"""
        post = self._get_post(post_id)
        self.repo.increment_counter(self.db, post_id, ForumPost.view_count)
        self.db.refresh(post)
        return post

    def vote(self, post_id: int, delta: int) -> ForumPost:
        if not self.repo.increment_counter(self.db, post_id, ForumPost.vote_count, delta):
            raise HTTPException(status_code=404, detail="Forum post not found")
        post = self._get_post(post_id)
        self.db.refresh(post)
        logger.info(f"🗳️ Post {post_id} voted {delta:+d} (now {post.vote_count})")
        return post

    def update_post(self, post_id: int, data: ForumPostUpdate, user: User) -> ForumPost:
        post = self._get_post(post_id)
        if post.author_email != user.email:
            raise HTTPException(status_code=403, detail="You can only edit your own posts")

        updates = {
            "title": data.title,
            "content": data.content,
            "category": data.category,
            "tags": list(data.tags) if data.tags is not None else None,
        }
        if not any(value is not None for value in updates.values()):
            raise HTTPException(status_code=400, detail="No fields to update")

        post = self._save(post, "update", **updates)
        logger.info(f"✅ Forum post {post_id} updated by {user.email}")
        return post

    def delete_post(self, post_id: int, user: User) -> dict:
        post = self._get_post(post_id)
        if post.author_email != user.email and user.role != "admin":
            raise HTTPException(status_code=403, detail="You can only delete your own posts")

        self._save(post, "delete", is_active=False)
        logger.info(f"🗑️ Forum post {post_id} deleted by {user.email} (author {post.author_email})")
        return {"message": "Post deleted successfully"}

    def set_pinned(self, post_id: int, pinned: bool) -> ForumPost:
        post = self._get_post(post_id)
        post = self._save(post, "pin" if pinned else "unpin", is_pinned=pinned)
        logger.info(f"📌 Forum post {post_id} {'pinned' if pinned else 'unpinned'}")
        return post

    def get_latest_posts(self, limit: int = 6) -> list[ForumPost]:
        return self.repo.get_latest_posts(self.db, limit)

    def get_trending_posts(self, limit: int = 10) -> list[ForumPost]:
        """Most voted posts from the last seven days"""
        return self.repo.get_trending_posts(self.db, days_ago(7), limit)

    def get_categories(self) -> list[dict]:
        grouped: dict[str, list[ForumPost]] = {}
        for post in self.repo.get_active_posts(self.db):
            grouped.setdefault(post.category, []).append(post)

        categories = [
            {
                "category": category,
                "count": len(posts),
                "total_votes": sum(p.vote_count for p in posts),
                "total_views": sum(p.view_count for p in posts),
                "recent_posts": [
                    {
                        "id": p.id,
                        "title": p.title,
                        "author_name": p.author_name,
                        "vote_count": p.vote_count,
                        "created_at": p.created_at,
                    }
                    for p in posts[:RECENT_POSTS_PER_CATEGORY]
                ],
            }
            for category, posts in grouped.items()
        ]
        categories.sort(key=lambda item: (-item["count"], item["category"]))
        return categories

    def get_forum_stats(self) -> dict:
        return {
            "overview": self.repo.get_overview(self.db),
            "category_stats": self.repo.get_category_stats(self.db),
        }
