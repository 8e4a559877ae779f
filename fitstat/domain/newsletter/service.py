"""Newsletter service - Subscriptions, preferences and exports"""

import csv
import logging
from collections import Counter
from datetime import datetime
from io import StringIO
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Subscriber, User
from ...security_utils import mask_email
from ...shared.analytics import monthly_series, months_ago
from ...shared.pagination import paginate
from .repository import SubscriberRepository
from .schemas import NewsletterPreferences, SubscribeRequest

logger = logging.getLogger(__name__)

ALREADY_SUBSCRIBED_MESSAGE = "Email is already subscribed to newsletter"


class NewsletterService:
    """Service layer for newsletter subscriptions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SubscriberRepository()

    def get_subscriber(self, email: str) -> Subscriber:
        subscriber = self.repo.get_by_email(self.db, email)
        if not subscriber:
            raise HTTPException(status_code=404, detail="Subscriber not found")
        return subscriber

    def _save(self, subscriber: Subscriber, action: str, **updates) -> Subscriber:
        try:
            return self.repo.update_subscriber(self.db, subscriber, **updates)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to {action} for {mask_email(subscriber.email)}: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to {action}") from e

    def subscribe(self, data: SubscribeRequest) -> tuple[Subscriber, bool]:
        """
        Subscribe an email address.

        An inactive subscription for the same email is reactivated in place.
        Returns the subscriber and whether it was newly created.
        """
        preferences = data.preferences
        existing = self.repo.get_by_email(self.db, data.email)

        if existing:
            if existing.is_active:
                raise HTTPException(status_code=409, detail=ALREADY_SUBSCRIBED_MESSAGE)

            subscriber = self._save(
                existing,
                "reactivate subscription",
                is_active=True,
                name=data.name,
                topics=list(preferences.topics) if preferences else None,
                frequency=preferences.frequency if preferences else None,
            )
            logger.info(f"🔄 Newsletter subscription reactivated: {mask_email(subscriber.email)}")
            return subscriber, False

        preferences = preferences or NewsletterPreferences()
        try:
            subscriber = self.repo.create_subscriber(
                self.db,
                email=data.email,
                name=data.name or data.email.split("@")[0],
                is_active=True,
                topics=list(preferences.topics),
                frequency=preferences.frequency,
            )
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Duplicate subscription insert rejected for {mask_email(data.email)}")
            raise HTTPException(status_code=409, detail=ALREADY_SUBSCRIBED_MESSAGE) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to subscribe {mask_email(data.email)}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to subscribe") from e

        logger.info(f"✅ New newsletter subscriber: {mask_email(subscriber.email)}")
        return subscriber, True

    def unsubscribe(self, email: str) -> dict:
        subscriber = self.get_subscriber(email)
        if not subscriber.is_active:
            raise HTTPException(status_code=400, detail="Email is already unsubscribed")

        self._save(subscriber, "unsubscribe", is_active=False)
        logger.info(f"👋 Newsletter unsubscription: {mask_email(email)}")
        return {"message": "Successfully unsubscribed from newsletter"}

    def update_preferences(
        self, email: str, preferences: NewsletterPreferences, user: User
    ) -> Subscriber:
        if email.strip().lower() != user.email and user.role != "admin":
            raise HTTPException(status_code=403, detail="You can only update your own preferences")

        subscriber = self.get_subscriber(email)
        subscriber = self._save(
            subscriber,
            "update preferences",
            topics=list(preferences.topics),
            frequency=preferences.frequency,
        )
        logger.info(f"✅ Preferences updated for {mask_email(subscriber.email)}")
        return subscriber

    def list_subscribers(
        self,
        page: int = 1,
        limit: int = 10,
        is_active: Optional[bool] = True,
        topic: Optional[str] = None,
        frequency: Optional[str] = None,
        sort_order: str = "desc",
    ) -> dict:
        query = self.repo.build_subscriber_query(self.db, is_active, topic, frequency, sort_order)
        subscribers, pagination = paginate(query, page, limit)
        return {"subscribers": subscribers, "pagination": pagination}

    def get_subscribers_by_topic(self, topic: str) -> list[Subscriber]:
        return self.repo.build_subscriber_query(self.db, topic=topic).all()

    def get_subscribers_by_frequency(self, frequency: str) -> list[Subscriber]:
        return self.repo.build_subscriber_query(self.db, frequency=frequency).all()

    def bulk_unsubscribe(self, emails: list[str]) -> dict:
        try:
            modified = self.repo.bulk_deactivate(self.db, emails)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Bulk unsubscribe failed for {len(emails)} emails: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to unsubscribe subscribers") from e

        logger.info(f"👋 Bulk unsubscribe: {modified}/{len(emails)} subscribers deactivated")
        return {
            "message": f"{modified} subscribers unsubscribed successfully",
            "modified_count": modified,
        }

    def delete_subscriber(self, email: str) -> dict:
        subscriber = self.get_subscriber(email)
        try:
            self.repo.delete_subscriber(self.db, subscriber)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete subscriber {mask_email(email)}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete subscriber") from e

        logger.info(f"🗑️ Subscriber deleted: {mask_email(email)}")
        return {"message": "Subscriber deleted successfully"}

    def get_subscriber_stats(self) -> dict:
        topic_counts = Counter(
            topic for topics in self.repo.get_active_topics(self.db) for topic in topics
        )
        signups = [
            (created_at, 1 if is_active else 0)
            for created_at, is_active in self.repo.get_signups_since(self.db, months_ago(12))
        ]

        return {
            "overview": self.repo.get_overview(self.db),
            "frequency_distribution": self.repo.get_frequency_distribution(self.db),
            "topic_distribution": [
                {"topic": topic, "count": count} for topic, count in topic_counts.most_common()
            ],
            "monthly_trends": [
                {
                    "month": bucket["month"],
                    "new_subscribers": bucket["count"],
                    "active_subscribers": int(bucket["total"]),
                }
                for bucket in monthly_series(signups, months=12)
            ],
        }

    def export_subscribers_csv(
        self,
        admin: User,
        topic: Optional[str] = None,
        frequency: Optional[str] = None,
    ) -> StreamingResponse:
        """Export active subscribers as CSV"""
        try:
            logger.info(f"📊 Subscriber export requested by {admin.email}")
            subscribers = self.repo.build_subscriber_query(
                self.db, topic=topic, frequency=frequency
            ).all()

            output = StringIO()
            writer = csv.writer(output)
            writer.writerow(["Email", "Name", "Topics", "Frequency", "Subscribed Date"])
            for subscriber in subscribers:
                writer.writerow(
                    [
                        subscriber.email,
                        subscriber.name or "",
                        ";".join(subscriber.topics or []),
                        subscriber.frequency or "weekly",
                        subscriber.created_at.strftime("%Y-%m-%d") if subscriber.created_at else "",
                    ]
                )

            output.seek(0)
            filename = f"subscribers_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
            logger.info(f"✅ Subscriber export successful: {filename} ({len(subscribers)} rows)")

            return StreamingResponse(
                iter([output.getvalue()]),
                media_type="text/csv",
                headers={
                    "Content-Disposition": f"attachment; filename={filename}",
                    "Cache-Control": "no-cache",
                },
            )
        except Exception as e:
            logger.error(f"❌ Subscriber export failed: {str(e)}")
            logger.exception(e)
            raise HTTPException(
                status_code=500, detail="Failed to export subscribers. Please try again."
            ) from e
