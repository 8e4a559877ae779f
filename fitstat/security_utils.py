"""
Security Utilities
Password hashing, JWT access tokens, signed reset tokens, input sanitization
and audit logging
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

# Input sanitization
import bleach

# Token generation and validation
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import (
    JWT_ALGORITHM,
    JWT_AUDIENCE,
    JWT_EXPIRES_HOURS,
    JWT_ISSUER,
    JWT_SECRET,
    PASSWORD_RESET_MAX_AGE,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
PASSWORD_RESET_SALT = "password-reset"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against bcrypt hash"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def check_password_strength(password: str) -> Optional[str]:
    """Return an error message when the password is too weak, otherwise None"""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if password.strip() != password:
        return "Password cannot start or end with whitespace"
    return None


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def create_access_token(user_id: int, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token carrying the user's id, email and role.

    Args:
        user_id: Database id of the user
        email: User email
        role: member, trainer or admin
        expires_delta: Token lifetime (default JWT_EXPIRES_HOURS)
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=JWT_EXPIRES_HOURS))
    to_encode = {
        "id": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": expire,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
    }
    return jose_jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT access token

    Returns:
        Decoded payload if valid, None if invalid, expired or issued for another audience
    """
    try:
        return jose_jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def generate_password_reset_token(email: str) -> str:
    """Generate a time-limited password reset token using itsdangerous"""
    serializer = URLSafeTimedSerializer(JWT_SECRET)
    return serializer.dumps({"email": email}, salt=PASSWORD_RESET_SALT)


def verify_password_reset_token(token: str, max_age: int = PASSWORD_RESET_MAX_AGE) -> Optional[str]:
    """
    Verify a password reset token

    Returns:
        The email the token was issued for, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(JWT_SECRET)
    try:
        data = serializer.loads(token, salt=PASSWORD_RESET_SALT, max_age=max_age)
    except SignatureExpired:
        logger.warning("Password reset token expired")
        return None
    except BadSignature:
        logger.warning("Invalid password reset token signature")
        return None
    return data.get("email") if isinstance(data, dict) else None


# ============================================================================
# INPUT SANITIZATION
# ============================================================================

ALLOWED_TAGS = ["p", "br", "strong", "em", "u", "a", "ul", "ol", "li", "blockquote", "code", "pre"]
ALLOWED_ATTRIBUTES = {"a": ["href", "title"]}


def sanitize_html(html_content: Optional[str], allowed_tags: Optional[list] = None) -> Optional[str]:
    """
    Sanitize user-generated text to prevent stored XSS.

    Disallowed tags are stripped rather than escaped so plain text survives untouched.
    """
    if html_content is None:
        return None

    return bleach.clean(
        html_content,
        tags=allowed_tags if allowed_tags is not None else ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True,
    ).strip()


# ============================================================================
# AUDIT LOGGING
# ============================================================================


def mask_sensitive_data(data: str, visible_chars: int = 4) -> str:
    """Mask sensitive data for logging/display"""
    if len(data) <= visible_chars:
        return "*" * len(data)

    return "*" * (len(data) - visible_chars) + data[-visible_chars:]


def mask_email(email: Optional[str]) -> Optional[str]:
    """jane.doe@example.com -> j*******@example.com"""
    if not email or "@" not in email:
        return email
    local, domain = email.split("@", 1)
    return f"{local[:1]}{'*' * max(len(local) - 1, 1)}@{domain}"


def log_security_event(
    event_type: str,
    user_id: Optional[Any] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """
    Log security-related events for audit trail

    Args:
        event_type: Type of security event (login, failed_auth, refund, role_change, ...)
        user_id: User identifier
        ip_address: Client IP address
        details: Additional event details; email values are masked
    """
    safe_details = {
        key: mask_email(value) if isinstance(value, str) and "email" in key.lower() else value
        for key, value in (details or {}).items()
    }
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "user_id": user_id,
        "ip_address": ip_address,
        "details": safe_details,
    }

    logger.info(f"SECURITY_EVENT: {log_entry}")
