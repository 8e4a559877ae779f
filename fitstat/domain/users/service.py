"""User service - Profiles, trainer applications and trainer slots"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import User
from ...security_utils import hash_password_bcrypt, log_security_event
from ...shared.pagination import paginate
from .repository import UserRepository
from .schemas import (
    AdminUserCreate,
    ProfileUpdate,
    SlotCreate,
    TrainerApplication,
    TrainerProfileFields,
)

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"

PROFILE_FIELD_MAP = {
    "age": "age",
    "skills": "skills",
    "availableDays": "available_days",
    "hoursPerDay": "hours_per_day",
    "experience": "experience",
    "biodata": "biodata",
    "photoURL": "photo_url",
    "name": "name",
}


def profile_updates(data: TrainerProfileFields) -> dict:
    """Map the camelCase fields a client actually sent onto model columns"""
    updates = {}
    for field, column in PROFILE_FIELD_MAP.items():
        if field in data.model_fields_set and hasattr(data, field):
            value = getattr(data, field)
            if value is not None:
                updates[column] = value
    if "socialLinks" in data.model_fields_set and data.socialLinks is not None:
        updates["social_links"] = data.socialLinks.model_dump(exclude_none=True)
    return updates


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def _save(self, user: User, action: str, **updates) -> User:
        try:
            return self.repo.update_user(self.db, user, **updates)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to {action} for user {user.id}: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to {action}") from e

    def get_user(self, user_id: int) -> User:
        user = self.repo.get_user_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def get_user_by_email(self, email: str) -> User:
        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    @staticmethod
    def _ensure_self_or_admin(user_id: int, current_user: User):
        if current_user.id != user_id and current_user.role != "admin":
            raise HTTPException(status_code=403, detail="Access denied")

    # ========================================================================
    # PROFILE
    # ========================================================================

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        updates = profile_updates(data)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        return self._save(user, "update profile", **updates)

    def list_users(
        self,
        role: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        users, pagination = paginate(self.repo.build_user_query(self.db, role, status), page, limit)
        return {"users": users, "pagination": pagination}

    def create_user(self, data: AdminUserCreate, admin: User) -> User:
        if self.repo.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail=DUPLICATE_EMAIL_MESSAGE)

        try:
            user = self.repo.create_user(
                self.db,
                name=data.name,
                email=data.email,
                password_hash=hash_password_bcrypt(data.password),
                role=data.role,
                status=data.status,
                photo_url=data.photoURL,
            )
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Duplicate user insert rejected for {data.email}")
            raise HTTPException(status_code=409, detail=DUPLICATE_EMAIL_MESSAGE) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create user {data.email}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create user") from e

        log_security_event(
            "user_created_by_admin", user_id=admin.id, details={"email": user.email, "role": user.role}
        )
        return user

    def delete_user(self, user_id: int, admin: User) -> dict:
        user = self.get_user(user_id)
        if user.id == admin.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")

        try:
            self.repo.delete_user(self.db, user)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete user") from e

        log_security_event("user_deleted", user_id=admin.id, details={"deleted_user_id": user_id})
        return {"message": "User deleted successfully"}

    def get_user_stats(self) -> dict:
        return {
            "total_users": self.repo.count_users(self.db),
            "role_stats": self.repo.count_by(self.db, User.role),
            "status_stats": self.repo.count_by(self.db, User.status),
        }

    # ========================================================================
    # TRAINER APPLICATION: member -> pending -> trainer | rejected
    # ========================================================================

    def apply_for_trainer(self, user_id: int, data: TrainerApplication, current_user: User) -> User:
        self._ensure_self_or_admin(user_id, current_user)
        user = self.get_user(user_id)

        if user.role == "trainer":
            raise HTTPException(status_code=400, detail="User is already a trainer")
        if user.status == "pending":
            raise HTTPException(status_code=400, detail="Application is already pending")
        if user.role == "admin":
            raise HTTPException(status_code=400, detail="Admins cannot apply to become trainers")

        updates = profile_updates(data)
        user = self._save(user, "submit trainer application", status="pending", **updates)
        logger.info(f"📥 Trainer application submitted by {user.email}")
        return user

    def get_pending_applications(self) -> list[User]:
        return self.repo.get_pending_applications(self.db)

    def get_application(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if user.status not in ("pending", "rejected") and user.role != "trainer":
            raise HTTPException(status_code=404, detail="Application not found")
        return user

    def _get_pending(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if user.status != "pending":
            raise HTTPException(status_code=400, detail="No pending application for this user")
        return user

    def approve_application(self, user_id: int, admin: User) -> User:
        user = self._get_pending(user_id)
        user = self._save(
            user, "approve trainer application", role="trainer", status="active", feedback=None
        )
        log_security_event(
            "role_change", user_id=admin.id, details={"target_user": user_id, "role": "trainer"}
        )
        logger.info(f"✅ {user.email} approved as trainer")
        return user

    def reject_application(self, user_id: int, feedback: str, admin: User) -> User:
        user = self._get_pending(user_id)
        user = self._save(user, "reject trainer application", status="rejected", feedback=feedback)
        log_security_event(
            "trainer_application_rejected", user_id=admin.id, details={"target_user": user_id}
        )
        return user

    def remove_trainer(self, user_id: int, admin: User) -> User:
        user = self.get_user(user_id)
        if user.role != "trainer":
            raise HTTPException(status_code=400, detail="User is not a trainer")

        user = self._save(user, "remove trainer", role="member", status="inactive")
        log_security_event(
            "role_change", user_id=admin.id, details={"target_user": user_id, "role": "member"}
        )
        return user

    # ========================================================================
    # TRAINER DIRECTORY + SLOTS
    # ========================================================================

    def get_trainers(self, limit: Optional[int] = None) -> list[User]:
        return self.repo.get_trainers(self.db, limit)

    def get_trainer(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if user.role != "trainer" or user.status != "active":
            raise HTTPException(status_code=404, detail="Trainer not found")
        return user

    def get_trainers_by_class(self, class_name: str) -> list[User]:
        """Active trainers with at least one slot offering a class whose label contains ``class_name``"""
        needle = class_name.strip().lower()
        return [
            trainer
            for trainer in self.repo.get_trainers(self.db)
            if any(
                needle in (selected.get("label") or "").lower()
                for slot in (trainer.slots or [])
                for selected in slot.get("selectedClasses", [])
            )
        ]

    def add_slot(self, user_id: int, data: SlotCreate, current_user: User) -> User:
        self._ensure_self_or_admin(user_id, current_user)
        user = self.get_user(user_id)

        if user.role != "trainer":
            raise HTTPException(status_code=400, detail="Only trainers can add slots")

        slots = list(user.slots or [])
        if any(slot.get("slotName") == data.slotName for slot in slots):
            raise HTTPException(status_code=409, detail="Slot with this name already exists")

        slots.append(data.model_dump())
        user = self._save(user, "add slot", slots=slots)
        logger.info(f"✅ Slot '{data.slotName}' added for trainer {user.id}")
        return user

    def remove_slot(self, user_id: int, slot_name: str, current_user: User) -> User:
        self._ensure_self_or_admin(user_id, current_user)
        user = self.get_user(user_id)

        slots = list(user.slots or [])
        remaining = [slot for slot in slots if slot.get("slotName") != slot_name]
        if len(remaining) == len(slots):
            raise HTTPException(status_code=404, detail="Slot not found")

        return self._save(user, "remove slot", slots=remaining)
