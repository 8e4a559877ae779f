"""Review repository - Database operations for reviews"""

from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session, joinedload

from ...models import FitnessClass, Review

SORT_COLUMNS = {
    "createdAt": Review.created_at,
    "rating": Review.rating,
}


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def _base_query(db: Session) -> Query:
        return db.query(Review).options(joinedload(Review.fitness_class))

    @classmethod
    def get_review_by_id(cls, db: Session, review_id: int) -> Optional[Review]:
        return cls._base_query(db).filter(Review.id == review_id).first()

    @staticmethod
    def find_existing_review(
        db: Session, user_email: str, class_id: Optional[int], trainer_email: Optional[str]
    ) -> Optional[Review]:
        """A user's earlier review of the same class or the same trainer"""
        targets = []
        if class_id is not None:
            targets.append(Review.class_id == class_id)
        if trainer_email:
            targets.append(Review.trainer_email == trainer_email)
        if not targets:
            return None
        return db.query(Review).filter(Review.user_email == user_email, or_(*targets)).first()

    @staticmethod
    def create_review(db: Session, **review_data) -> Review:
        review = Review(**review_data)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def update_review(db: Session, review: Review, **updates) -> Review:
        for key, value in updates.items():
            if value is not None and hasattr(review, key):
                setattr(review, key, value)

        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def delete_review(db: Session, review: Review) -> None:
        db.delete(review)
        db.commit()

    @staticmethod
    def bulk_update(db: Session, review_ids: list[int], **values) -> int:
        updated = (
            db.query(Review)
            .filter(Review.id.in_(review_ids))
            .update(values, synchronize_session=False)
        )
        db.commit()
        return updated

    @classmethod
    def build_review_query(
        cls,
        db: Session,
        rating: Optional[int] = None,
        class_id: Optional[int] = None,
        trainer_email: Optional[str] = None,
        verified: Optional[bool] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Query:
        """Visible reviews matching the filters"""
        query = cls._base_query(db).filter(Review.is_visible.is_(True))

        if rating:
            query = query.filter(Review.rating == rating)
        if class_id is not None:
            query = query.filter(Review.class_id == class_id)
        if trainer_email:
            query = query.filter(Review.trainer_email == trainer_email)
        if verified is not None:
            query = query.filter(Review.is_verified.is_(verified))

        column = SORT_COLUMNS.get(sort_by, Review.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        return query.order_by(ordering, Review.id.desc())

    @staticmethod
    def get_rating_info(db: Session, column, value) -> dict:
        """Average (one decimal) and count of visible reviews where ``column == value``"""
        average, total = (
            db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(column == value, Review.is_visible.is_(True))
            .one()
        )
        return {"average": round(float(average or 0), 1), "total": total}

    @staticmethod
    def get_rating_counts(db: Session, class_id: Optional[int] = None) -> dict[int, int]:
        query = db.query(Review.rating, func.count(Review.id)).filter(Review.is_visible.is_(True))
        if class_id is not None:
            query = query.filter(Review.class_id == class_id)
        return {rating: count for rating, count in query.group_by(Review.rating).all()}

    @classmethod
    def get_top_reviews(
        cls, db: Session, limit: int = 10, verified_only: bool = False
    ) -> list[Review]:
        query = cls._base_query(db).filter(Review.is_visible.is_(True), Review.rating >= 4)
        if verified_only:
            query = query.filter(Review.is_verified.is_(True))
        return (
            query.order_by(Review.rating.desc(), Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )

    @classmethod
    def get_recent_reviews(cls, db: Session, limit: int = 10) -> list[Review]:
        return (
            cls._base_query(db)
            .filter(Review.is_visible.is_(True))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )

    @classmethod
    def get_reviews_by_user(cls, db: Session, email: str) -> list[Review]:
        return (
            cls._base_query(db)
            .filter(Review.user_email == email)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def get_overview(db: Session) -> dict:
        total, visible, verified, average = db.query(
            func.count(Review.id),
            func.coalesce(func.sum(case((Review.is_visible.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(case((Review.is_verified.is_(True), 1), else_=0)), 0),
            func.avg(Review.rating),
        ).one()
        return {
            "total_reviews": total,
            "visible_reviews": int(visible),
            "verified_reviews": int(verified),
            "average_rating": round(float(average or 0), 2),
        }

    @staticmethod
    def get_ratings_since(db: Session, since: datetime) -> list[tuple[datetime, int]]:
        return db.query(Review.created_at, Review.rating).filter(Review.created_at >= since).all()

    @staticmethod
    def get_top_reviewed_classes(db: Session, limit: int = 10) -> list[dict]:
        rows = (
            db.query(
                FitnessClass.id,
                FitnessClass.name,
                FitnessClass.category,
                func.count(Review.id),
                func.avg(Review.rating),
            )
            .select_from(Review)
            .join(FitnessClass, Review.class_id == FitnessClass.id)
            .filter(Review.is_visible.is_(True))
            .group_by(FitnessClass.id, FitnessClass.name, FitnessClass.category)
            .order_by(func.count(Review.id).desc(), FitnessClass.id.asc())
            .limit(limit)
            .all()
        )
        return [
            {
                "class_id": class_id,
                "class_name": name,
                "class_category": category,
                "review_count": count,
                "average_rating": round(float(average or 0), 2),
            }
            for class_id, name, category, count, average in rows
        ]

    @staticmethod
    def count_reviews(db: Session, since: Optional[datetime] = None) -> int:
        query = db.query(func.count(Review.id))
        if since:
            query = query.filter(Review.created_at >= since)
        return query.scalar() or 0
