"""Auth router - Registration, login, tokens and passwords"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import (
    get_client_ip,
    login_rate_limiter,
    password_reset_rate_limiter,
    register_rate_limiter,
    social_login_rate_limiter,
)
from ...security_utils import log_security_event
from ..users.schemas import UserDetailResponse
from .schemas import (
    AuthResponse,
    ChangePasswordRequest,
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    RoleResponse,
    SocialLoginRequest,
    TokenResponse,
)
from .service import AuthService, issue_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=201,
    dependencies=[Depends(register_rate_limiter)],
)
async def register(
    data: RegisterRequest, request: Request, service: AuthService = Depends(get_auth_service)
):
    return service.register(data, get_client_ip(request))


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(login_rate_limiter)])
async def login(
    data: LoginRequest, request: Request, service: AuthService = Depends(get_auth_service)
):
    return service.login(data, get_client_ip(request))


@router.post(
    "/social-login", response_model=AuthResponse, dependencies=[Depends(social_login_rate_limiter)]
)
async def social_login(
    data: SocialLoginRequest, request: Request, service: AuthService = Depends(get_auth_service)
):
    """Provider sign-in; creates the account on first use"""
    return service.social_login(data, get_client_ip(request))


@router.post("/jwt", response_model=TokenResponse, dependencies=[Depends(login_rate_limiter)])
async def issue_jwt(data: EmailRequest, service: AuthService = Depends(get_auth_service)):
    return {"token": service.issue_token_for_email(data.email)}


@router.get("/verify-role", response_model=RoleResponse)
async def verify_role(
    email: str = Query(..., min_length=3), service: AuthService = Depends(get_auth_service)
):
    return service.verify_role(email)


@router.post("/forgot-password", dependencies=[Depends(password_reset_rate_limiter)])
async def forgot_password(
    data: EmailRequest, request: Request, service: AuthService = Depends(get_auth_service)
):
    return service.forgot_password(data.email, get_client_ip(request))


@router.post("/reset-password", dependencies=[Depends(password_reset_rate_limiter)])
async def reset_password(
    data: ResetPasswordRequest, request: Request, service: AuthService = Depends(get_auth_service)
):
    return service.reset_password(data, get_client_ip(request))


# ============================================================================
# AUTHENTICATED
# ============================================================================


@router.get("/me", response_model=UserDetailResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(current_user: User = Depends(get_current_user)):
    return {"token": issue_token(current_user)}


@router.post("/change-password")
@router.patch("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return service.change_password(current_user, data)


@router.post("/logout")
async def logout(request: Request, current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy"""
    log_security_event("logout", user_id=current_user.id, ip_address=get_client_ip(request))
    return {"message": "Logged out successfully"}


__all__ = [
    "router",
    "get_auth_service",
]
