"""Admin user management endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from portal.config.app_config import AppConfig
from portal.core import auth
from portal.core.policy import Action
from portal.db import users_repository
from portal.db.users_repository import DuplicateUserError
from portal.web.deps import RequestContext, get_authenticated_context, get_config
from portal.web.schemas import MessageResponse, UserCreate, UserResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=list[UserResponse])
def list_users(
    ctx: RequestContext = Depends(get_authenticated_context),
) -> list[UserResponse]:
    """List all users without password hashes."""
    ctx.require(Action.MANAGE_USERS)
    return [UserResponse(**u.to_public_dict()) for u in users_repository.list_users()]


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    ctx: RequestContext = Depends(get_authenticated_context),
    config: AppConfig = Depends(get_config),
) -> UserResponse:
    """Create a user with any role."""
    ctx.require(Action.MANAGE_USERS)

    try:
        user = auth.register_user(
            username=data.username,
            password=data.password,
            role=data.role.value,
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            min_password_length=config.auth.min_password_length,
        )
    except auth.AccountError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info("admin.user_created", target_user_id=user.id, role=user.role)
    return UserResponse(**user.to_public_dict())


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    ctx: RequestContext = Depends(get_authenticated_context),
) -> MessageResponse:
    """Delete a user other than the caller."""
    ctx.require(Action.DELETE_USER, user_id)

    if not users_repository.delete_user(user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User '{user_id}' not found",
        )

    logger.info("admin.user_deleted", target_user_id=user_id)
    return MessageResponse(message="User deleted successfully")
