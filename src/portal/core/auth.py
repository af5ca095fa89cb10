"""Account management: password hashing, registration and login.

Passwords are hashed with Argon2 through pwdlib. Login issues an opaque
bearer token backed by the sessions table.
"""

from __future__ import annotations

import structlog
from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher

from portal.db import users_repository
from portal.db.users_repository import UserRecord
from portal.utils.validators import validate_email

logger = structlog.get_logger(__name__)

password_hash = PasswordHash((Argon2Hasher(),))


class AccountError(Exception):
    """Base exception for account operations."""

    pass


class InvalidCredentialsError(AccountError):
    """Raised when username/password don't match."""

    def __init__(self):
        super().__init__("Invalid credentials")


class WeakPasswordError(AccountError):
    """Raised when a password is shorter than the configured minimum."""

    def __init__(self, min_length: int):
        self.min_length = min_length
        super().__init__(f"Password must be at least {min_length} characters")


class InvalidEmailError(AccountError):
    """Raised for a malformed email address."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("Invalid email format")


def hash_password(password: str) -> str:
    return password_hash.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return password_hash.verify(password, hashed)


def register_user(
    username: str,
    password: str,
    role: str = "student",
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    min_password_length: int = 6,
) -> UserRecord:
    """Validate and create a user account.

    Raises:
        WeakPasswordError: If the password is too short
        InvalidEmailError: If the email is malformed
        users_repository.DuplicateUserError: If username/email is taken
    """
    if len(password) < min_password_length:
        raise WeakPasswordError(min_password_length)
    if not validate_email(email):
        raise InvalidEmailError(email or "")

    return users_repository.create_user(
        username=username,
        password_hash=hash_password(password),
        role=role,
        email=email,
        first_name=first_name,
        last_name=last_name,
    )


def login(username: str, password: str, ttl_minutes: int) -> tuple[UserRecord, str]:
    """Check credentials and open a session.

    Returns:
        (user, bearer token)

    Raises:
        InvalidCredentialsError: If the user doesn't exist or the
            password doesn't match
    """
    user = users_repository.get_user_by_username(username)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("auth.login_failed", username=username)
        raise InvalidCredentialsError()

    token = users_repository.create_session(user.id, ttl_minutes)
    logger.info("auth.login", user_id=user.id)
    return user, token


def logout(token: str) -> bool:
    """Revoke a bearer token."""
    return users_repository.delete_session(token)
