"""Tests for users_repository: accounts and sessions (F1)."""

import pytest

from portal.db import contents_repository
from portal.db.users_repository import (
    DuplicateUserError,
    create_session,
    create_user,
    delete_session,
    delete_user,
    get_session_user,
    get_user,
    get_user_by_username,
    list_users,
    purge_expired_sessions,
)


class TestUsers:
    """Tests for user CRUD."""

    def test_create_user(self, temp_db):
        user = create_user("maria", "hash", role="teacher", email="maria@example.com")

        assert len(user.id) == 32
        assert user.role == "teacher"
        assert get_user(user.id) == user
        assert get_user_by_username("maria") == user

    def test_default_role_is_student(self, temp_db):
        assert create_user("ana", "hash").role == "student"

    def test_invalid_role(self, temp_db):
        with pytest.raises(ValueError):
            create_user("ana", "hash", role="dean")

    def test_duplicate_username(self, temp_db):
        create_user("ana", "hash")
        with pytest.raises(DuplicateUserError):
            create_user("ana", "other")

    def test_duplicate_email(self, temp_db):
        create_user("ana", "hash", email="a@example.com")
        with pytest.raises(DuplicateUserError):
            create_user("bob", "hash", email="a@example.com")

    def test_empty_email_stored_as_null(self, temp_db):
        create_user("ana", "hash", email="")
        user = create_user("bob", "hash", email="")
        assert user.email is None

    def test_list_users_sorted(self, temp_db):
        create_user("zed", "hash")
        create_user("ana", "hash")
        assert [u.username for u in list_users()] == ["ana", "zed"]

    def test_public_dict_has_no_password(self, temp_db):
        user = create_user("ana", "hash")
        assert "password_hash" not in user.to_public_dict()

    def test_full_name(self, temp_db):
        user = create_user("ana", "hash", first_name="Ana", last_name="Lopez")
        assert user.full_name == "Ana Lopez"
        assert create_user("bob", "hash").full_name == "bob"

    def test_get_missing(self, temp_db):
        assert get_user("nope") is None
        assert get_user_by_username("nope") is None


class TestDeleteUser:
    """Tests for delete_user."""

    def test_delete(self, temp_db):
        user = create_user("ana", "hash")
        assert delete_user(user.id) is True
        assert get_user(user.id) is None
        assert delete_user(user.id) is False

    def test_delete_revokes_sessions(self, temp_db):
        user = create_user("ana", "hash")
        token = create_session(user.id, ttl_minutes=60)

        delete_user(user.id)

        assert get_session_user(token) is None

    def test_delete_keeps_uploaded_contents(self, hierarchy):
        user = create_user("teacher", "hash", role="teacher")
        content = contents_repository.create_content(
            title="Intro",
            type="lesson",
            file_path="/uploads/a.pdf",
            original_file_name="a.pdf",
            subject_id=hierarchy["subject"].id,
            uploaded_by=user.id,
        )

        delete_user(user.id)

        kept = contents_repository.get_content(content.id)
        assert kept is not None
        assert kept.uploaded_by is None


class TestSessions:
    """Tests for session tokens."""

    def test_session_resolves_user(self, temp_db):
        user = create_user("ana", "hash")
        token = create_session(user.id, ttl_minutes=60)

        assert get_session_user(token).id == user.id

    def test_tokens_are_unique(self, temp_db):
        user = create_user("ana", "hash")
        assert create_session(user.id, 60) != create_session(user.id, 60)

    def test_unknown_token(self, temp_db):
        assert get_session_user("not-a-token") is None

    def test_expired_session(self, temp_db):
        user = create_user("ana", "hash")
        token = create_session(user.id, ttl_minutes=-5)

        assert get_session_user(token) is None

    def test_delete_session(self, temp_db):
        user = create_user("ana", "hash")
        token = create_session(user.id, ttl_minutes=60)

        assert delete_session(token) is True
        assert get_session_user(token) is None
        assert delete_session(token) is False

    def test_purge_expired(self, temp_db):
        user = create_user("ana", "hash")
        create_session(user.id, ttl_minutes=-5)
        live = create_session(user.id, ttl_minutes=60)

        assert purge_expired_sessions() == 1
        assert get_session_user(live) is not None
