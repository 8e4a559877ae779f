"""Newsletter repository - Database operations for subscribers"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, case, cast, func
from sqlalchemy.orm import Query, Session

from ...models import Subscriber


class SubscriberRepository:
    """Repository for subscriber database operations"""

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[Subscriber]:
        return db.query(Subscriber).filter(Subscriber.email == email.strip().lower()).first()

    @staticmethod
    def create_subscriber(db: Session, **subscriber_data) -> Subscriber:
        subscriber = Subscriber(**subscriber_data)
        db.add(subscriber)
        db.commit()
        db.refresh(subscriber)
        return subscriber

    @staticmethod
    def update_subscriber(db: Session, subscriber: Subscriber, **updates) -> Subscriber:
        for key, value in updates.items():
            if value is not None and hasattr(subscriber, key):
                setattr(subscriber, key, value)

        db.commit()
        db.refresh(subscriber)
        return subscriber

    @staticmethod
    def delete_subscriber(db: Session, subscriber: Subscriber) -> None:
        db.delete(subscriber)
        db.commit()

    @staticmethod
    def bulk_deactivate(db: Session, emails: list[str]) -> int:
        updated = (
            db.query(Subscriber)
            .filter(Subscriber.email.in_(emails), Subscriber.is_active.is_(True))
            .update({Subscriber.is_active: False}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def build_subscriber_query(
        db: Session,
        is_active: Optional[bool] = True,
        topic: Optional[str] = None,
        frequency: Optional[str] = None,
        sort_order: str = "desc",
    ) -> Query:
        query = db.query(Subscriber)

        if is_active is not None:
            query = query.filter(Subscriber.is_active.is_(is_active))

        if topic:
            # topics is a JSON list of plain words; match the quoted element
            query = query.filter(cast(Subscriber.topics, String).like(f'%"{topic}"%'))

        if frequency:
            query = query.filter(Subscriber.frequency == frequency)

        ordering = Subscriber.created_at.asc() if sort_order == "asc" else Subscriber.created_at.desc()
        return query.order_by(ordering, Subscriber.id.desc())

    @staticmethod
    def get_overview(db: Session) -> dict:
        total, active = db.query(
            func.count(Subscriber.id),
            func.coalesce(func.sum(case((Subscriber.is_active.is_(True), 1), else_=0)), 0),
        ).one()
        return {
            "total_subscribers": total,
            "active_subscribers": int(active),
            "inactive_subscribers": total - int(active),
        }

    @staticmethod
    def get_frequency_distribution(db: Session) -> list[dict]:
        rows = (
            db.query(Subscriber.frequency, func.count(Subscriber.id))
            .filter(Subscriber.is_active.is_(True))
            .group_by(Subscriber.frequency)
            .order_by(func.count(Subscriber.id).desc())
            .all()
        )
        return [{"frequency": frequency, "count": count} for frequency, count in rows]

    @staticmethod
    def get_active_topics(db: Session) -> list[list[str]]:
        rows = db.query(Subscriber.topics).filter(Subscriber.is_active.is_(True)).all()
        return [topics or [] for (topics,) in rows]

    @staticmethod
    def get_signups_since(db: Session, since: datetime) -> list[tuple[datetime, bool]]:
        return (
            db.query(Subscriber.created_at, Subscriber.is_active)
            .filter(Subscriber.created_at >= since)
            .all()
        )

    @staticmethod
    def count_subscribers(db: Session, active_only: bool = True) -> int:
        query = db.query(func.count(Subscriber.id))
        if active_only:
            query = query.filter(Subscriber.is_active.is_(True))
        return query.scalar() or 0
