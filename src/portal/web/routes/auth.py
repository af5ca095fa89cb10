"""Authentication endpoints: register, login, logout, current user."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from portal.config.app_config import AppConfig
from portal.core import auth
from portal.db.users_repository import DuplicateUserError
from portal.web.deps import RequestContext, get_authenticated_context, get_config
from portal.web.schemas import (
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post(
    "/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED
)
def register(
    data: RegisterRequest, config: AppConfig = Depends(get_config)
) -> UserResponse:
    """Create a student account."""
    try:
        user = auth.register_user(
            username=data.username,
            password=data.password,
            role="student",
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            min_password_length=config.auth.min_password_length,
        )
    except auth.AccountError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return UserResponse(**user.to_public_dict())


@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    config: AppConfig = Depends(get_config),
) -> TokenResponse:
    """Exchange username/password for a bearer token."""
    try:
        user, token = auth.login(
            form_data.username,
            form_data.password,
            ttl_minutes=config.auth.token_ttl_minutes,
        )
    except auth.InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(
        access_token=token, user=UserResponse(**user.to_public_dict())
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    ctx: RequestContext = Depends(get_authenticated_context),
) -> MessageResponse:
    """Revoke the current bearer token."""
    if ctx.token:
        auth.logout(ctx.token)
    return MessageResponse(message="Logged out")


@router.get("/user", response_model=UserResponse)
def current_user(
    ctx: RequestContext = Depends(get_authenticated_context),
) -> UserResponse:
    """Return the authenticated user (password stripped)."""
    return UserResponse(**ctx.user.to_public_dict())
