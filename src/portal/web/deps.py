"""Request-scoped dependencies.

Handlers never read ambient session state: each one receives a
RequestContext carrying the authenticated user (or None) and the
request id, and checks access through portal.core.policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from starlette.concurrency import run_in_threadpool

from portal.config.app_config import AppConfig
from portal.core.policy import Action, authorize
from portal.db import users_repository
from portal.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


@dataclass
class RequestContext:
    """Who is calling, for the duration of one request."""

    user: UserRecord | None
    request_id: str
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def require(self, action: Action, resource: Any = None) -> None:
        """Raise 401/403 unless the policy allows `action`."""
        if action is not Action.VIEW_CATALOG and self.user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )
        decision = authorize(self.user, action, resource)
        if not decision:
            logger.info(
                "api.access_denied",
                action=action.value,
                reason=decision.reason,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=decision.reason,
            )


def get_config(request: Request) -> AppConfig:
    """AppConfig the application was created with."""
    return request.app.state.config


async def get_request_context(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
) -> RequestContext:
    """Build the RequestContext; an invalid token is rejected with 401."""
    request_id = getattr(request.state, "request_id", "-")
    user = None
    if token:
        user = await run_in_threadpool(users_repository.get_session_user, token)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )
        structlog.contextvars.bind_contextvars(user_id=user.id)
    return RequestContext(user=user, request_id=request_id, token=token)


async def get_authenticated_context(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """RequestContext that is guaranteed to carry a user."""
    if ctx.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ctx
