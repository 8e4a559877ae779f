"""Auth service - Registration, login and password management"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import ENVIRONMENT, FRONTEND_URL
from ...models import User
from ...security_utils import (
    create_access_token,
    generate_password_reset_token,
    hash_password_bcrypt,
    log_security_event,
    verify_password_bcrypt,
    verify_password_reset_token,
)
from ..users.repository import UserRepository
from ..users.service import DUPLICATE_EMAIL_MESSAGE
from .schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SocialLoginRequest,
)

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent"


def issue_token(user: User) -> str:
    return create_access_token(user.id, user.email, user.role)


class AuthService:
    """Service layer for authentication"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def _create_user(self, **user_data) -> User:
        try:
            return self.repo.create_user(self.db, **user_data)
        except IntegrityError as e:
            # Another request created the same email after our lookup
            self.db.rollback()
            logger.warning(f"⚠️ Duplicate account insert rejected for {user_data.get('email')}")
            raise HTTPException(status_code=409, detail=DUPLICATE_EMAIL_MESSAGE) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create account {user_data.get('email')}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create account") from e

    def register(self, data: RegisterRequest, ip_address: Optional[str] = None) -> dict:
        logger.info(f"📥 Registration attempt for {data.email}")

        if self.repo.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail=DUPLICATE_EMAIL_MESSAGE)

        user = self._create_user(
            name=data.name,
            email=data.email,
            password_hash=hash_password_bcrypt(data.password),
            photo_url=data.photoURL,
            role="member",
            status="active",
        )
        log_security_event("register", user_id=user.id, ip_address=ip_address)
        logger.info(f"✅ New user registered: {user.email}")
        return {"user": user, "token": issue_token(user)}

    def login(self, data: LoginRequest, ip_address: Optional[str] = None) -> dict:
        user = self.repo.get_user_by_email(self.db, data.email)

        if not user or not verify_password_bcrypt(data.password, user.password_hash):
            log_security_event("failed_login", ip_address=ip_address, details={"email": data.email})
            raise HTTPException(status_code=401, detail="Invalid email or password")

        if user.status == "inactive":
            log_security_event("inactive_login", user_id=user.id, ip_address=ip_address)
            raise HTTPException(status_code=401, detail="Account is inactive")

        self.repo.touch_last_login(self.db, user)
        log_security_event("login", user_id=user.id, ip_address=ip_address)
        return {"user": user, "token": issue_token(user)}

    def social_login(self, data: SocialLoginRequest, ip_address: Optional[str] = None) -> dict:
        """Find or create an account for an identity already verified by the provider"""
        user = self.repo.get_user_by_email(self.db, data.email)

        if not user:
            user = self._create_user(
                name=data.name,
                email=data.email,
                photo_url=data.photoURL,
                role="member",
                status="active",
                is_email_verified=True,
            )
            logger.info(f"✅ New {data.provider} account created: {user.email}")
        elif user.status == "inactive":
            raise HTTPException(status_code=401, detail="Account is inactive")

        self.repo.touch_last_login(self.db, user)
        log_security_event(
            "social_login", user_id=user.id, ip_address=ip_address, details={"provider": data.provider}
        )
        return {"user": user, "token": issue_token(user)}

    def issue_token_for_email(self, email: str) -> str:
        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if user.status == "inactive":
            raise HTTPException(status_code=401, detail="Account is inactive")
        return issue_token(user)

    def verify_role(self, email: str) -> dict:
        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return {"role": user.role, "status": user.status}

    # ========================================================================
    # PASSWORDS
    # ========================================================================

    def forgot_password(self, email: str, ip_address: Optional[str] = None) -> dict:
        """Same answer whether or not the account exists"""
        user = self.repo.get_user_by_email(self.db, email)

        if user and user.password_hash and user.status != "inactive":
            token = generate_password_reset_token(user.email)
            log_security_event("password_reset_requested", user_id=user.id, ip_address=ip_address)
            if ENVIRONMENT != "production":
                # No mail delivery wired up; surface the link for local testing
                logger.info(f"🔑 Password reset link: {FRONTEND_URL}/reset-password?token={token}")
        else:
            log_security_event(
                "password_reset_unknown_account", ip_address=ip_address, details={"email": email}
            )

        return {"message": FORGOT_PASSWORD_MESSAGE}

    def reset_password(self, data: ResetPasswordRequest, ip_address: Optional[str] = None) -> dict:
        email = verify_password_reset_token(data.token)
        user = self.repo.get_user_by_email(self.db, email) if email else None
        if not user:
            raise HTTPException(status_code=400, detail="Invalid or expired reset token")

        self.repo.update_user(self.db, user, password_hash=hash_password_bcrypt(data.newPassword))
        log_security_event("password_reset", user_id=user.id, ip_address=ip_address)
        return {"message": "Password has been reset successfully"}

    def change_password(self, user: User, data: ChangePasswordRequest) -> dict:
        if data.newPassword != data.confirmPassword:
            raise HTTPException(status_code=400, detail="Passwords do not match")

        if not user.password_hash:
            raise HTTPException(
                status_code=400, detail="Social login accounts do not have a password to change"
            )

        if not verify_password_bcrypt(data.currentPassword, user.password_hash):
            log_security_event("failed_password_change", user_id=user.id)
            raise HTTPException(status_code=401, detail="Current password is incorrect")

        if data.currentPassword == data.newPassword:
            raise HTTPException(
                status_code=400, detail="New password must be different from the current password"
            )

        self.repo.update_user(self.db, user, password_hash=hash_password_bcrypt(data.newPassword))
        log_security_event("password_changed", user_id=user.id)
        return {"message": "Password changed successfully"}
