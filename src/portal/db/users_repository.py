"""Repository functions for users and login sessions."""

from __future__ import annotations

import secrets
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog

from portal.db.database import get_db

logger = structlog.get_logger(__name__)

ROLES = ("student", "teacher", "admin")

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class UserRecord:
    """User record from database."""

    id: str
    username: str
    email: str | None
    password_hash: str
    first_name: str | None
    last_name: str | None
    role: str
    created_at: str
    updated_at: str

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else self.username

    def to_public_dict(self) -> dict:
        """Serialize without the password hash."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class DuplicateUserError(Exception):
    """Raised when username or email is already registered."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username or email already registered: {username}")


def create_user(
    username: str,
    password_hash: str,
    role: str = "student",
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> UserRecord:
    """Insert a new user.

    Raises:
        ValueError: If role is unknown
        DuplicateUserError: If username or email already exists
    """
    if role not in ROLES:
        raise ValueError(f"Invalid role: {role}")

    user_id = uuid.uuid4().hex
    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO users (
                    id, username, email, password_hash,
                    first_name, last_name, role
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (user_id, username, email or None, password_hash, first_name, last_name, role),
            )
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    except sqlite3.IntegrityError as e:
        raise DuplicateUserError(username) from e

    logger.info("users.created", user_id=user_id, role=role)
    return _row_to_record(row)


def get_user(user_id: str) -> UserRecord | None:
    """Get user by id."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_user_by_username(username: str) -> UserRecord | None:
    """Get user by username."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE username = ?", (username,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def list_users() -> list[UserRecord]:
    """Get all users ordered by username."""
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM users ORDER BY username").fetchall()

    return [_row_to_record(row) for row in rows]


def delete_user(user_id: str) -> bool:
    """Delete user by id.

    Sessions go with the user; uploaded contents keep existing with
    uploaded_by set to NULL.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.info("users.deleted", user_id=user_id)

    return deleted


# =============================================================================
# SESSIONS
# =============================================================================


def create_session(user_id: str, ttl_minutes: int) -> str:
    """Create a login session and return its bearer token."""
    token = secrets.token_urlsafe(32)
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes)

    with get_db() as conn:
        conn.execute(
            "INSERT INTO sessions (token, user_id, expires_at) VALUES (?, ?, ?)",
            (token, user_id, expires_at.strftime(_TIME_FORMAT)),
        )

    logger.debug("sessions.created", user_id=user_id)
    return token


def get_session_user(token: str) -> UserRecord | None:
    """Return the user owning a non-expired session token."""
    now = datetime.now(timezone.utc).strftime(_TIME_FORMAT)
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT users.* FROM sessions
            JOIN users ON users.id = sessions.user_id
            WHERE sessions.token = ? AND sessions.expires_at > ?
            """,
            (token, now),
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def delete_session(token: str) -> bool:
    """Revoke a session token."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
    return cursor.rowcount > 0


def purge_expired_sessions() -> int:
    """Delete expired sessions and return how many were removed."""
    now = datetime.now(timezone.utc).strftime(_TIME_FORMAT)
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (now,))

    if cursor.rowcount:
        logger.info("sessions.purged", count=cursor.rowcount)
    return cursor.rowcount


def _row_to_record(row) -> UserRecord:
    """Convert database row to UserRecord."""
    return UserRecord(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        role=row["role"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
