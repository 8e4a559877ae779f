"""Forum repository - Database operations for forum posts"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, case, cast, func, or_
from sqlalchemy.orm import Query, Session

from ...models import ForumPost

SORT_COLUMNS = {
    "createdAt": ForumPost.created_at,
    "voteCount": ForumPost.vote_count,
    "viewCount": ForumPost.view_count,
}


class ForumRepository:
    """Repository for forum post database operations"""

    @staticmethod
    def get_post_by_id(db: Session, post_id: int, include_inactive: bool = False) -> Optional[ForumPost]:
        query = db.query(ForumPost).filter(ForumPost.id == post_id)
        if not include_inactive:
            query = query.filter(ForumPost.is_active.is_(True))
        return query.first()

    @staticmethod
    def create_post(db: Session, **post_data) -> ForumPost:
        post = ForumPost(**post_data)
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    @staticmethod
    def update_post(db: Session, post: ForumPost, **updates) -> ForumPost:
        for key, value in updates.items():
            if value is not None and hasattr(post, key):
                setattr(post, key, value)

        db.commit()
        db.refresh(post)
        return post

    @staticmethod
    def increment_counter(db: Session, post_id: int, column, amount: int = 1) -> int:
        """Atomic counter update for vote_count / view_count"""
        updated = (
            db.query(ForumPost)
            .filter(ForumPost.id == post_id, ForumPost.is_active.is_(True))
            .update({column: column + amount}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def build_post_query(
        db: Session,
        search: Optional[str] = None,
        category: Optional[str] = None,
        author: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Query:
        """Active posts matching the filters; pinned posts always come first"""
        query = db.query(ForumPost).filter(ForumPost.is_active.is_(True))

        if category:
            query = query.filter(ForumPost.category.ilike(f"%{category.strip()}%"))

        if author:
            query = query.filter(ForumPost.author_email == author.strip().lower())

        if search:
            search_term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    ForumPost.title.ilike(search_term),
                    ForumPost.content.ilike(search_term),
                    cast(ForumPost.tags, String).ilike(search_term),
                )
            )

        column = SORT_COLUMNS.get(sort_by, ForumPost.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        return query.order_by(ForumPost.is_pinned.desc(), ordering, ForumPost.id.desc())

    @staticmethod
    def get_latest_posts(db: Session, limit: int = 6) -> list[ForumPost]:
        return (
            db.query(ForumPost)
            .filter(ForumPost.is_active.is_(True))
            .order_by(ForumPost.vote_count.desc(), ForumPost.created_at.desc(), ForumPost.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_trending_posts(db: Session, since: datetime, limit: int = 10) -> list[ForumPost]:
        return (
            db.query(ForumPost)
            .filter(ForumPost.is_active.is_(True), ForumPost.created_at >= since)
            .order_by(ForumPost.vote_count.desc(), ForumPost.view_count.desc(), ForumPost.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_active_posts(db: Session) -> list[ForumPost]:
        return (
            db.query(ForumPost)
            .filter(ForumPost.is_active.is_(True))
            .order_by(ForumPost.created_at.desc(), ForumPost.id.desc())
            .all()
        )

    @staticmethod
    def get_overview(db: Session) -> dict:
        total, active, votes, views, pinned = db.query(
            func.count(ForumPost.id),
            func.coalesce(func.sum(case((ForumPost.is_active.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(ForumPost.vote_count), 0),
            func.coalesce(func.sum(ForumPost.view_count), 0),
            func.coalesce(func.sum(case((ForumPost.is_pinned.is_(True), 1), else_=0)), 0),
        ).one()
        return {
            "total_posts": total,
            "active_posts": int(active),
            "total_votes": int(votes),
            "total_views": int(views),
            "pinned_posts": int(pinned),
        }

    @staticmethod
    def get_category_stats(db: Session) -> list[dict]:
        rows = (
            db.query(
                ForumPost.category,
                func.count(ForumPost.id),
                func.avg(ForumPost.vote_count),
                func.sum(ForumPost.view_count),
            )
            .filter(ForumPost.is_active.is_(True))
            .group_by(ForumPost.category)
            .order_by(func.count(ForumPost.id).desc())
            .all()
        )
        return [
            {
                "category": category,
                "count": count,
                "avg_votes": round(float(avg_votes or 0), 2),
                "total_views": int(total_views or 0),
            }
            for category, count, avg_votes, total_views in rows
        ]

    @staticmethod
    def count_posts(db: Session, since: Optional[datetime] = None) -> int:
        query = db.query(func.count(ForumPost.id)).filter(ForumPost.is_active.is_(True))
        if since:
            query = query.filter(ForumPost.created_at >= since)
        return query.scalar() or 0

    @staticmethod
    def get_recent_posts(db: Session, limit: int = 5) -> list[ForumPost]:
        return (
            db.query(ForumPost)
            .filter(ForumPost.is_active.is_(True))
            .order_by(ForumPost.created_at.desc(), ForumPost.id.desc())
            .limit(limit)
            .all()
        )
