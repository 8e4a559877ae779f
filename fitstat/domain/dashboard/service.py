"""Dashboard service - Admin analytics across every directory"""

import logging
import platform
import time
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import rate_limiter
from ...config import ENVIRONMENT
from ...models import User
from ...shared.analytics import monthly_series, months_ago
from ..classes.repository import ClassRepository
from ..forum.repository import ForumRepository
from ..newsletter.repository import SubscriberRepository
from ..payments.gateway import stripe_gateway
from ..payments.repository import PaymentRepository
from ..reviews.repository import ReviewRepository
from ..users.repository import UserRepository
from .repository import DashboardRepository

logger = logging.getLogger(__name__)

STARTED_AT = time.time()


def format_uptime(seconds: float) -> str:
    days, remainder = divmod(int(seconds), 86400)
    hours, remainder = divmod(remainder, 3600)
    return f"{days}d {hours}h {remainder // 60}m"


class DashboardService:
    """Read-only fan-out over users, classes, payments, reviews, forum and newsletter"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DashboardRepository()
        self.users = UserRepository()
        self.classes = ClassRepository()
        self.payments = PaymentRepository()
        self.reviews = ReviewRepository()
        self.forum = ForumRepository()
        self.subscribers = SubscriberRepository()

    def get_dashboard_stats(self) -> dict:
        try:
            roles = self.users.count_by(self.db, User.role)
            payments = self.payments.get_overview(self.db)
            classes = self.classes.get_class_overview(self.db)
            reviews = self.reviews.get_overview(self.db)
            forum = self.forum.get_overview(self.db)
            signups = [(d, 1) for d in self.users.get_signup_dates(self.db, months_ago(12))]
            revenue_rows = self.payments.get_completed_since(self.db, months_ago(12))

            return {
                "overview": {
                    "total_users": self.users.count_users(self.db),
                    "total_members": roles.get("member", 0),
                    "total_trainers": roles.get("trainer", 0),
                    "total_admins": roles.get("admin", 0),
                    "total_bookings": payments["total_payments"],
                    "total_revenue": payments["total_revenue"],
                    "paid_members": self.payments.count_unique_payers(self.db),
                    "total_classes": classes["total_classes"],
                    "active_classes": classes["active_classes"],
                    "subscribers": self.subscribers.count_subscribers(self.db),
                    "total_reviews": reviews["total_reviews"],
                    "average_rating": reviews["average_rating"],
                    "total_forum_posts": forum["total_posts"],
                    "active_posts": forum["active_posts"],
                },
                "recent_activity": {
                    "transactions": self.payments.get_recent_payments(self.db, 10),
                    "users": self.users.get_recent_users(self.db, 5),
                },
                "insights": {
                    "top_classes": self.classes.get_popular_classes(self.db, 5),
                    "monthly_revenue": [
                        {"month": m["month"], "revenue": m["total"], "count": m["count"]}
                        for m in monthly_series(revenue_rows, 12)
                    ],
                    "user_growth": [
                        {"month": m["month"], "new_users": m["count"]}
                        for m in monthly_series(signups, 12)
                    ],
                },
            }
        except Exception as e:
            logger.error(f"❌ Failed to build dashboard stats: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch dashboard stats") from e

    def get_user_engagement(self) -> dict:
        counts = self.repo.get_engagement_counts(self.db)
        members = counts["total_members"]
        counts["engagement_rate"] = (
            round(counts["paying_members"] / members * 100, 2) if members else 0
        )
        return counts

    def get_revenue_by_category(self) -> list[dict]:
        return self.repo.get_revenue_by_category(self.db)

    def get_trainer_performance(self) -> list[dict]:
        """Top trainers by revenue, joined with their visible review ratings"""
        ratings = self.repo.get_trainer_ratings(self.db)
        empty = {"average_rating": 0, "total_reviews": 0}
        return [
            {**trainer, **ratings.get(trainer["trainer_email"], empty)}
            for trainer in self.repo.get_trainer_booking_stats(self.db)
        ]

    def get_popular_slots(self) -> list[dict]:
        return self.repo.get_popular_slots(self.db)

    def get_advanced_analytics(self) -> dict:
        return {
            "user_engagement": self.get_user_engagement(),
            "revenue_by_category": self.get_revenue_by_category(),
            "trainer_performance": self.get_trainer_performance(),
            "popular_slots": self.get_popular_slots(),
        }

    def get_recent_activity(self, limit: int = 10) -> dict:
        return {
            "transactions": self.payments.get_recent_payments(self.db, limit),
            "users": self.users.get_recent_users(self.db, limit),
        }

    def get_top_classes(self, limit: int = 5):
        return self.classes.get_popular_classes(self.db, limit)

    def get_system_health(self) -> dict:
        uptime = time.time() - STARTED_AT
        health = {
            "status": "healthy",
            "uptime": {"seconds": round(uptime, 2), "formatted": format_uptime(uptime)},
            "python_version": platform.python_version(),
            "environment": ENVIRONMENT,
            "timestamp": datetime.utcnow().isoformat(),
        }

        try:
            start_time = time.time()
            self.repo.ping(self.db)
            health["database"] = {
                "connected": True,
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
            }
        except Exception as e:
            logger.error(f"❌ Database health check failed: {str(e)}")
            health["status"] = "degraded"
            health["database"] = {"connected": False, "error": str(e)}

        try:
            start_time = time.time()
            rate_limiter.get_redis_client().ping()
            health["redis"] = {
                "connected": True,
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
            }
        except Exception as e:
            logger.warning(f"⚠️ Redis health check failed: {str(e)}")
            health["status"] = "degraded"
            health["redis"] = {"connected": False, "error": str(e)}

        # Missing Stripe credentials only disable payments, the rest of the API keeps serving
        health["payment_gateway"] = {"configured": stripe_gateway.is_available()}

        return health
