import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import verify_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _resolve_user(token: str, db: Session) -> User:
    """Decode a bearer token and load the account it was issued for"""
    token_parts = token.split(".")
    if len(token_parts) != 3:
        logger.warning(f"⚠️ Malformed token received: {len(token_parts)} parts")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    payload = verify_access_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = payload.get("id")
    if not user_id:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token references unknown user id {user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    if user.status == "inactive":
        logger.warning(f"⚠️ Inactive account attempted access: {user.email}")
        raise HTTPException(status_code=401, detail="Account is inactive")

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the JWT bearer token"""

    if not credentials:
        logger.error("❌ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    user = _resolve_user(credentials.credentials, db)
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


def require_roles(*roles: str):
    """
    Build a dependency that only lets the given roles through.

    Example usage:
        @router.delete("/{class_id}")
        async def delete_class(current_user: User = Depends(require_roles("admin"))):
            ...
    """

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(
                f"⚠️ User {user.email} (role={user.role}) denied access; requires one of {roles}"
            )
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return role_checker


require_admin = require_roles("admin")
require_staff = require_roles("admin", "trainer")
