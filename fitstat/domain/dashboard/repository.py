"""Dashboard repository - Cross-table aggregations for admin analytics"""

from sqlalchemy import func, text
from sqlalchemy.orm import Session

from ...models import FitnessClass, ForumPost, Payment, Review, User


class DashboardRepository:
    """Read-only aggregation queries spanning several tables"""

    @staticmethod
    def count_distinct(db: Session, column, *criteria) -> int:
        return db.query(func.count(func.distinct(column))).filter(*criteria).scalar() or 0

    @classmethod
    def get_engagement_counts(cls, db: Session) -> dict:
        return {
            "total_members": db.query(func.count(User.id)).filter(User.role == "member").scalar()
            or 0,
            "paying_members": cls.count_distinct(
                db, Payment.user_email, Payment.payment_status == "completed"
            ),
            "forum_active_members": cls.count_distinct(
                db, ForumPost.author_email, ForumPost.is_active.is_(True)
            ),
            "reviewing_members": cls.count_distinct(
                db, Review.user_email, Review.is_visible.is_(True)
            ),
        }

    @staticmethod
    def get_revenue_by_category(db: Session) -> list[dict]:
        rows = (
            db.query(
                FitnessClass.category,
                func.sum(Payment.package_price),
                func.count(Payment.id),
                func.avg(Payment.package_price),
            )
            .select_from(Payment)
            .join(FitnessClass, Payment.class_id == FitnessClass.id)
            .filter(Payment.payment_status == "completed")
            .group_by(FitnessClass.category)
            .order_by(func.sum(Payment.package_price).desc())
            .all()
        )
        return [
            {
                "category": category,
                "total_revenue": round(float(revenue or 0), 2),
                "booking_count": count,
                "average_price": round(float(average or 0), 2),
            }
            for category, revenue, count, average in rows
        ]

    @staticmethod
    def get_trainer_booking_stats(db: Session, limit: int = 10) -> list[dict]:
        rows = (
            db.query(
                Payment.trainer_email,
                func.max(Payment.trainer_name),
                func.count(Payment.id),
                func.sum(Payment.package_price),
                func.avg(Payment.package_price),
            )
            .filter(Payment.payment_status == "completed", Payment.trainer_email.isnot(None))
            .group_by(Payment.trainer_email)
            .order_by(func.sum(Payment.package_price).desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "trainer_email": email,
                "trainer_name": name,
                "total_bookings": count,
                "total_revenue": round(float(revenue or 0), 2),
                "average_booking_value": round(float(average or 0), 2),
            }
            for email, name, count, revenue, average in rows
        ]

    @staticmethod
    def get_trainer_ratings(db: Session) -> dict[str, dict]:
        rows = (
            db.query(Review.trainer_email, func.avg(Review.rating), func.count(Review.id))
            .filter(Review.trainer_email.isnot(None), Review.is_visible.is_(True))
            .group_by(Review.trainer_email)
            .all()
        )
        return {
            email: {"average_rating": round(float(average or 0), 2), "total_reviews": count}
            for email, average, count in rows
        }

    @staticmethod
    def get_popular_slots(db: Session, limit: int = 10) -> list[dict]:
        rows = (
            db.query(Payment.slot_name, func.count(Payment.id), func.sum(Payment.package_price))
            .filter(Payment.payment_status == "completed", Payment.slot_name.isnot(None))
            .group_by(Payment.slot_name)
            .order_by(func.count(Payment.id).desc(), Payment.slot_name.asc())
            .limit(limit)
            .all()
        )
        return [
            {"slot_name": slot, "booking_count": count, "revenue": round(float(revenue or 0), 2)}
            for slot, count, revenue in rows
        ]

    @staticmethod
    def ping(db: Session) -> None:
        db.execute(text("SELECT 1"))
