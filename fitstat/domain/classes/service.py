"""Class service - Business logic for the class directory"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import FitnessClass, User
from ...shared.pagination import paginate
from .repository import ClassRepository
from .schemas import CapacityResponse, ClassCreate, ClassUpdate

logger = logging.getLogger(__name__)


class ClassService:
    """Service layer for class business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClassRepository()

    def get_class(self, class_id: int, include_inactive: bool = False) -> FitnessClass:
        fitness_class = self.repo.get_class_by_id(self.db, class_id, include_inactive)
        if not fitness_class:
            raise HTTPException(status_code=404, detail="Class not found")
        return fitness_class

    def create_class(self, data: ClassCreate, user: User) -> FitnessClass:
        """Create a class; names are unique regardless of case"""
        logger.info(f"📥 Creating class '{data.name}' by {user.email}")

        if self.repo.get_class_by_name(self.db, data.name):
            raise HTTPException(status_code=409, detail="Class with this name already exists")

        try:
            fitness_class = self.repo.create_class(
                self.db,
                name=data.name,
                description=data.description,
                image=data.image,
                price=data.price,
                duration=data.duration,
                difficulty=data.difficulty,
                category=data.category,
                max_capacity=data.maxCapacity,
                booking_count=0,
                is_active=True,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create class '{data.name}': {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create class") from e

        logger.info(f"✅ Class created: {fitness_class.id} ({fitness_class.name})")
        return fitness_class

    def update_class(self, class_id: int, data: ClassUpdate) -> FitnessClass:
        fitness_class = self.get_class(class_id, include_inactive=True)

        if data.name and self.repo.get_class_by_name(self.db, data.name, exclude_id=class_id):
            raise HTTPException(status_code=409, detail="Class with this name already exists")

        if data.maxCapacity is not None and data.maxCapacity < fitness_class.booking_count:
            raise HTTPException(
                status_code=400,
                detail=f"Capacity cannot be lower than current bookings ({fitness_class.booking_count})",
            )

        updates = {
            "name": data.name,
            "description": data.description,
            "image": data.image,
            "price": data.price,
            "duration": data.duration,
            "difficulty": data.difficulty,
            "category": data.category,
            "max_capacity": data.maxCapacity,
            "is_active": data.isActive,
        }

        try:
            return self.repo.update_class(self.db, fitness_class, **updates)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update class {class_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update class") from e

    def delete_class(self, class_id: int) -> dict:
        """Soft delete: the class disappears from listings but payments keep their reference"""
        fitness_class = self.get_class(class_id)
        try:
            self.repo.update_class(self.db, fitness_class, is_active=False)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete class {class_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete class") from e

        logger.info(f"🗑️ Class {class_id} deactivated")
        return {"message": "Class deleted successfully"}

    def list_classes(
        self,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 6,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> dict:
        query = self.repo.build_class_query(
            self.db, search, category, difficulty, sort_by, sort_order
        )
        classes, pagination = paginate(query, page, limit)
        return {"classes": classes, "pagination": pagination}

    def get_all_classes(self) -> list[FitnessClass]:
        return self.repo.get_active_classes(self.db)

    def search_classes(self, term: str, page: int = 1, limit: int = 10) -> dict:
        if not term or not term.strip():
            raise HTTPException(status_code=400, detail="Search term is required")
        query = self.repo.build_class_query(self.db, search=term, sort_by="name", sort_order="asc")
        classes, pagination = paginate(query, page, limit)
        return {"classes": classes, "pagination": pagination}

    def get_popular_classes(self, limit: int = 6) -> list[FitnessClass]:
        return self.repo.get_popular_classes(self.db, limit)

    def get_categories(self) -> list[dict]:
        """Active classes grouped by category, biggest category first"""
        grouped: dict[str, list[FitnessClass]] = {}
        for fitness_class in self.repo.get_active_classes(self.db):
            grouped.setdefault(fitness_class.category, []).append(fitness_class)

        categories = [
            {
                "category": category,
                "count": len(classes),
                "classes": [
                    {
                        "id": c.id,
                        "name": c.name,
                        "difficulty": c.difficulty,
                        "price": c.price,
                        "booking_count": c.booking_count,
                    }
                    for c in classes
                ],
            }
            for category, classes in grouped.items()
        ]
        categories.sort(key=lambda item: (-item["count"], item["category"]))
        return categories

    def get_class_stats(self) -> dict:
        return {
            "overview": self.repo.get_class_overview(self.db),
            "difficulty_distribution": self.repo.get_difficulty_distribution(self.db),
            "category_distribution": self.repo.get_category_distribution(self.db),
        }

    # Capacity and booking counter
    def validate_class_capacity(self, class_id: int, requested: int = 1) -> CapacityResponse:
        """
        Fail with 400 when ``requested`` more bookings would exceed capacity.

        Read-only: nothing is reserved, so a later increment can still overshoot
        if another booking lands in between.
        """
        if requested < 1:
            raise HTTPException(status_code=400, detail="Requested bookings must be at least 1")

        fitness_class = self.get_class(class_id)
        if fitness_class.booking_count + requested > fitness_class.max_capacity:
            logger.warning(
                f"⚠️ Class {class_id} is fully booked "
                f"({fitness_class.booking_count}/{fitness_class.max_capacity}, requested {requested})"
            )
            raise HTTPException(status_code=400, detail="Class is fully booked")

        return CapacityResponse(
            class_id=fitness_class.id,
            available=True,
            booking_count=fitness_class.booking_count,
            max_capacity=fitness_class.max_capacity,
            remaining=fitness_class.max_capacity - fitness_class.booking_count,
        )

    def increment_booking_count(self, class_id: int) -> FitnessClass:
        """Bump the booking counter by one without any capacity check"""
        try:
            updated = self.repo.increment_booking_count(self.db, class_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to increment booking count for class {class_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update booking count") from e

        if not updated:
            raise HTTPException(status_code=404, detail="Class not found")

        fitness_class = self.get_class(class_id, include_inactive=True)
        self.db.refresh(fitness_class)
        return fitness_class

    def book_class(self, class_id: int, user: User) -> FitnessClass:
        """Capacity check followed by the counter increment"""
        self.validate_class_capacity(class_id)
        fitness_class = self.increment_booking_count(class_id)
        logger.info(
            f"✅ {user.email} booked class {class_id} "
            f"({fitness_class.booking_count}/{fitness_class.max_capacity})"
        )
        return fitness_class
