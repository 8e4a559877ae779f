"""Class repository - Database operations for fitness classes"""

from typing import Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session

from ...models import FitnessClass

SORT_COLUMNS = {
    "createdAt": FitnessClass.created_at,
    "name": FitnessClass.name,
    "price": FitnessClass.price,
    "bookingCount": FitnessClass.booking_count,
    "difficulty": FitnessClass.difficulty,
    "duration": FitnessClass.duration,
}


class ClassRepository:
    """Repository for class database operations"""

    @staticmethod
    def get_class_by_id(
        db: Session, class_id: int, include_inactive: bool = False
    ) -> Optional[FitnessClass]:
        query = db.query(FitnessClass).filter(FitnessClass.id == class_id)
        if not include_inactive:
            query = query.filter(FitnessClass.is_active.is_(True))
        return query.first()

    @staticmethod
    def get_class_by_name(
        db: Session, name: str, exclude_id: Optional[int] = None
    ) -> Optional[FitnessClass]:
        """Case-insensitive lookup used for duplicate-name checks"""
        query = db.query(FitnessClass).filter(func.lower(FitnessClass.name) == name.strip().lower())
        if exclude_id is not None:
            query = query.filter(FitnessClass.id != exclude_id)
        return query.first()

    @staticmethod
    def create_class(db: Session, **class_data) -> FitnessClass:
        fitness_class = FitnessClass(**class_data)
        db.add(fitness_class)
        db.commit()
        db.refresh(fitness_class)
        return fitness_class

    @staticmethod
    def update_class(db: Session, fitness_class: FitnessClass, **updates) -> FitnessClass:
        """Update a class with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(fitness_class, key):
                setattr(fitness_class, key, value)

        db.commit()
        db.refresh(fitness_class)
        return fitness_class

    @staticmethod
    def build_class_query(
        db: Session,
        search: Optional[str] = None,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Query:
        """Active classes matching the listing filters, sorted"""
        query = db.query(FitnessClass).filter(FitnessClass.is_active.is_(True))

        if search:
            search_term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    FitnessClass.name.ilike(search_term),
                    FitnessClass.description.ilike(search_term),
                    FitnessClass.category.ilike(search_term),
                )
            )

        if category:
            query = query.filter(FitnessClass.category.ilike(f"%{category.strip()}%"))

        if difficulty:
            query = query.filter(FitnessClass.difficulty == difficulty)

        column = SORT_COLUMNS.get(sort_by, FitnessClass.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        return query.order_by(ordering, FitnessClass.id.desc())

    @staticmethod
    def get_active_classes(db: Session) -> list[FitnessClass]:
        return (
            db.query(FitnessClass)
            .filter(FitnessClass.is_active.is_(True))
            .order_by(FitnessClass.name.asc())
            .all()
        )

    @staticmethod
    def increment_booking_count(db: Session, class_id: int, amount: int = 1) -> int:
        """
        Single-statement counter bump, evaluated by the database.
        Returns the number of rows touched (0 when the class does not exist).
        """
        updated = (
            db.query(FitnessClass)
            .filter(FitnessClass.id == class_id)
            .update(
                {FitnessClass.booking_count: FitnessClass.booking_count + amount},
                synchronize_session=False,
            )
        )
        db.commit()
        return updated

    @staticmethod
    def get_popular_classes(db: Session, limit: int = 6) -> list[FitnessClass]:
        return (
            db.query(FitnessClass)
            .filter(FitnessClass.is_active.is_(True))
            .order_by(FitnessClass.booking_count.desc(), FitnessClass.id.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_class_overview(db: Session) -> dict:
        total, active, bookings, avg_price = db.query(
            func.count(FitnessClass.id),
            func.coalesce(func.sum(case((FitnessClass.is_active.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(FitnessClass.booking_count), 0),
            func.coalesce(func.avg(FitnessClass.price), 0),
        ).one()
        return {
            "total_classes": total,
            "active_classes": int(active),
            "total_bookings": int(bookings),
            "avg_price": round(float(avg_price), 2),
        }

    @staticmethod
    def get_difficulty_distribution(db: Session) -> list[dict]:
        rows = (
            db.query(FitnessClass.difficulty, func.count(FitnessClass.id))
            .filter(FitnessClass.is_active.is_(True))
            .group_by(FitnessClass.difficulty)
            .all()
        )
        return [{"difficulty": difficulty, "count": count} for difficulty, count in rows]

    @staticmethod
    def get_category_distribution(db: Session) -> list[dict]:
        rows = (
            db.query(
                FitnessClass.category,
                func.count(FitnessClass.id).label("count"),
                func.avg(FitnessClass.price),
                func.sum(FitnessClass.booking_count),
            )
            .filter(FitnessClass.is_active.is_(True))
            .group_by(FitnessClass.category)
            .order_by(func.count(FitnessClass.id).desc())
            .all()
        )
        return [
            {
                "category": category,
                "count": count,
                "avg_price": round(float(avg_price or 0), 2),
                "total_bookings": int(total_bookings or 0),
            }
            for category, count, avg_price, total_bookings in rows
        ]
