"""User repository - Database operations for users and trainers"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        """Set every given field, None included (callers pass only what changes)"""
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()

    @staticmethod
    def touch_last_login(db: Session, user: User) -> None:
        user.last_login = datetime.utcnow()
        db.commit()

    @staticmethod
    def build_user_query(
        db: Session, role: Optional[str] = None, status: Optional[str] = None
    ) -> Query:
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        if status:
            query = query.filter(User.status == status)
        return query.order_by(User.created_at.desc(), User.id.desc())

    @staticmethod
    def get_trainers(db: Session, limit: Optional[int] = None) -> list[User]:
        query = (
            db.query(User)
            .filter(User.role == "trainer", User.status == "active")
            .order_by(User.experience.desc(), User.id.asc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_pending_applications(db: Session) -> list[User]:
        return (
            db.query(User)
            .filter(User.status == "pending")
            .order_by(User.updated_at.asc(), User.id.asc())
            .all()
        )

    @staticmethod
    def count_by(db: Session, column) -> dict[str, int]:
        rows = db.query(column, func.count(User.id)).group_by(column).all()
        return {key: count for key, count in rows}

    @staticmethod
    def count_users(db: Session, since: Optional[datetime] = None) -> int:
        query = db.query(func.count(User.id))
        if since:
            query = query.filter(User.created_at >= since)
        return query.scalar() or 0

    @staticmethod
    def get_recent_users(db: Session, limit: int = 5) -> list[User]:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()

    @staticmethod
    def get_signup_dates(db: Session, since: datetime) -> list[datetime]:
        rows = db.query(User.created_at).filter(User.created_at >= since).all()
        return [created_at for (created_at,) in rows]
