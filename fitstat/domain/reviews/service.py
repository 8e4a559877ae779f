"""Review service - Ratings for classes and trainers, plus moderation"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Review, User
from ...shared.analytics import monthly_series, months_ago
from ...shared.pagination import paginate
from ..classes.service import ClassService
from .repository import ReviewRepository
from .schemas import ReviewCreate, ReviewUpdate

logger = logging.getLogger(__name__)

STAR_RATINGS = (5, 4, 3, 2, 1)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def get_review(self, review_id: int) -> Review:
        review = self.repo.get_review_by_id(self.db, review_id)
        if not review:
            raise HTTPException(status_code=404, detail="Review not found")
        return review

    def _save(self, review: Review, action: str, **updates) -> Review:
        try:
            self.repo.update_review(self.db, review, **updates)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to {action} review {review.id}: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to {action} review") from e
        return self.get_review(review.id)

    @staticmethod
    def _ensure_owner_or_admin(review: Review, user: User, action: str):
        if review.user_email != user.email and user.role != "admin":
            raise HTTPException(status_code=403, detail=f"You can only {action} your own reviews")

    def create_review(self, data: ReviewCreate, user: User) -> Review:
        """One review per user for any given class or trainer"""
        if data.classId is None and not data.trainerEmail:
            raise HTTPException(
                status_code=400, detail="Either classId or trainerEmail must be provided"
            )

        if data.classId is not None:
            ClassService(self.db).get_class(data.classId)

        if self.repo.find_existing_review(self.db, user.email, data.classId, data.trainerEmail):
            raise HTTPException(
                status_code=409, detail="You have already submitted a review for this item"
            )

        try:
            review = self.repo.create_review(
                self.db,
                user_email=user.email,
                user_name=user.name,
                rating=data.rating,
                comment=data.comment,
                class_id=data.classId,
                trainer_email=data.trainerEmail,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create review for {user.email}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create review") from e

        logger.info(f"✅ Review {review.id} created by {user.email} (rating {review.rating})")
        return self.get_review(review.id)

    def list_reviews(
        self,
        page: int = 1,
        limit: int = 10,
        rating: Optional[int] = None,
        class_id: Optional[int] = None,
        trainer_email: Optional[str] = None,
        verified: Optional[bool] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> dict:
        query = self.repo.build_review_query(
            self.db, rating, class_id, trainer_email, verified, sort_by, sort_order
        )
        reviews, pagination = paginate(query, page, limit)
        return {"reviews": reviews, "pagination": pagination}

    def get_class_reviews(
        self, class_id: int, page: int = 1, limit: int = 10, rating: Optional[int] = None
    ) -> dict:
        result = self.list_reviews(page, limit, rating=rating, class_id=class_id)
        result["class_rating"] = self.repo.get_rating_info(self.db, Review.class_id, class_id)
        return result

    def get_trainer_reviews(
        self, trainer_email: str, page: int = 1, limit: int = 10, rating: Optional[int] = None
    ) -> dict:
        trainer_email = trainer_email.strip().lower()
        result = self.list_reviews(page, limit, rating=rating, trainer_email=trainer_email)
        result["trainer_rating"] = self.repo.get_rating_info(
            self.db, Review.trainer_email, trainer_email
        )
        return result

    def get_class_summary(self, class_id: int) -> dict:
        counts = self.repo.get_rating_counts(self.db, class_id)
        breakdown = {stars: counts.get(stars, 0) for stars in STAR_RATINGS}
        total = sum(breakdown.values())
        average = sum(stars * count for stars, count in breakdown.items()) / total if total else 0

        return {
            "total_reviews": total,
            "average_rating": round(average, 1),
            "rating_breakdown": breakdown,
            "percentage_breakdown": {
                stars: round(count / total * 100) if total else 0
                for stars, count in breakdown.items()
            },
        }

    def get_top_reviews(self, limit: int = 10) -> list[Review]:
        return self.repo.get_top_reviews(self.db, limit)

    def get_featured_reviews(self, limit: int = 6) -> list[Review]:
        """Verified reviews rated 4 or 5"""
        return self.repo.get_top_reviews(self.db, limit, verified_only=True)

    def get_recent_reviews(self, limit: int = 10) -> list[Review]:
        return self.repo.get_recent_reviews(self.db, limit)

    def get_user_reviews(self, user: User) -> list[Review]:
        return self.repo.get_reviews_by_user(self.db, user.email)

    def get_latest_user_review(self, user: User) -> Optional[Review]:
        reviews = self.repo.get_reviews_by_user(self.db, user.email)
        return reviews[0] if reviews else None

    def update_review(self, review_id: int, data: ReviewUpdate, user: User) -> Review:
        review = self.get_review(review_id)
        self._ensure_owner_or_admin(review, user, "update")

        if data.rating is None and data.comment is None:
            raise HTTPException(status_code=400, detail="No fields to update")

        review = self._save(review, "update", rating=data.rating, comment=data.comment)
        logger.info(f"✅ Review {review_id} updated by {user.email}")
        return review

    def delete_review(self, review_id: int, user: User) -> dict:
        review = self.get_review(review_id)
        self._ensure_owner_or_admin(review, user, "delete")
        author_email = review.user_email

        try:
            self.repo.delete_review(self.db, review)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete review {review_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete review") from e

        logger.info(f"🗑️ Review {review_id} deleted by {user.email} (author {author_email})")
        return {"message": "Review deleted successfully"}

    # ========================================================================
    # MODERATION
    # ========================================================================

    def set_flag(self, review_id: int, **flags) -> Review:
        review = self.get_review(review_id)
        review = self._save(review, "moderate", **flags)
        logger.info(f"🛡️ Review {review_id} moderated: {flags}")
        return review

    def bulk_update(self, review_ids: list[int], label: str, **values) -> dict:
        try:
            modified = self.repo.bulk_update(self.db, review_ids, **values)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Bulk {label} failed for {len(review_ids)} reviews: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to {label} reviews") from e

        logger.info(f"🛡️ Bulk {label}: {modified}/{len(review_ids)} reviews updated")
        return {"message": f"{modified} reviews {label} successfully", "modified_count": modified}

    def get_review_stats(self) -> dict:
        counts = self.repo.get_rating_counts(self.db)
        trends = monthly_series(self.repo.get_ratings_since(self.db, months_ago(6)), months=6)

        return {
            "overview": self.repo.get_overview(self.db),
            "rating_distribution": [
                {"rating": stars, "count": counts.get(stars, 0)} for stars in reversed(STAR_RATINGS)
            ],
            "monthly_trends": [
                {
                    "month": bucket["month"],
                    "count": bucket["count"],
                    "average_rating": round(bucket["total"] / bucket["count"], 2)
                    if bucket["count"]
                    else 0,
                }
                for bucket in trends
            ],
            "top_reviewed_classes": self.repo.get_top_reviewed_classes(self.db),
        }
