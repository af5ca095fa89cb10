"""Authorization policy.

Every access decision of the API goes through authorize(); route handlers
only translate a denial into an HTTP response.

Rules:
- VIEW_CATALOG: anyone, including anonymous visitors
- MANAGE_CATEGORIES: admin
- UPLOAD_CONTENT: any authenticated non-student
- DELETE_CONTENT: admin any; teacher own uploads only; student never
- VIEW_OWN_CONTENT: any authenticated user
- MANAGE_USERS: admin
- DELETE_USER: admin, never their own account
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class Role(str, Enum):
    """User roles."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class Action(str, Enum):
    """Operations subject to authorization."""

    VIEW_CATALOG = "view_catalog"
    MANAGE_CATEGORIES = "manage_categories"
    UPLOAD_CONTENT = "upload_content"
    DELETE_CONTENT = "delete_content"
    VIEW_OWN_CONTENT = "view_own_content"
    MANAGE_USERS = "manage_users"
    DELETE_USER = "delete_user"


class Actor(Protocol):
    """Anything with an id and a role (UserRecord, test doubles)."""

    id: str
    role: str


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def authorize(user: Actor | None, action: Action, resource: Any = None) -> Decision:
    """Decide whether `user` may perform `action` on `resource`.

    Args:
        user: Authenticated user, or None for anonymous requests
        action: Requested operation
        resource: Target object when the rule depends on it
            (a content with `uploaded_by` for DELETE_CONTENT, a target
            user id for DELETE_USER)

    Returns:
        Decision; falsy when denied, with a human-readable reason
    """
    if action is Action.VIEW_CATALOG:
        return ALLOW

    if user is None:
        return _deny("Authentication required")

    role = Role(user.role)

    if action is Action.VIEW_OWN_CONTENT:
        return ALLOW

    if action is Action.MANAGE_CATEGORIES:
        return ALLOW if role is Role.ADMIN else _deny("Admin access required")

    if action is Action.UPLOAD_CONTENT:
        if role is Role.STUDENT:
            return _deny("Students cannot upload content")
        return ALLOW

    if action is Action.DELETE_CONTENT:
        if role is Role.ADMIN:
            return ALLOW
        if role is Role.STUDENT:
            return _deny("Students cannot delete content")
        owner = getattr(resource, "uploaded_by", None)
        if owner is None or owner != user.id:
            return _deny("You can only delete your own content")
        return ALLOW

    if action is Action.MANAGE_USERS:
        return ALLOW if role is Role.ADMIN else _deny("Admin access required")

    if action is Action.DELETE_USER:
        if role is not Role.ADMIN:
            return _deny("Admin access required")
        if resource == user.id:
            return _deny("Cannot delete yourself")
        return ALLOW

    return _deny(f"Unknown action: {action}")
