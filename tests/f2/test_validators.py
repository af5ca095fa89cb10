"""Tests for validators (F2)."""

import pytest

from portal.utils.validators import (
    MAX_ROW_ID,
    is_valid_slug,
    parse_row_id,
    safe_upload_name,
    slugify,
    validate_email,
)


class TestSlugify:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Almaty", "almaty"),
            ("Fall 2024", "fall-2024"),
            ("Álgebra Lineal (II)", "algebra-lineal-ii"),
            ("  Group -- A  ", "group-a"),
            ("***", ""),
        ],
    )
    def test_slugify(self, text, expected):
        assert slugify(text) == expected

    def test_max_length(self):
        slug = slugify("word " * 40)
        assert len(slug) <= 80
        assert not slug.endswith("-")


class TestIsValidSlug:
    @pytest.mark.parametrize("slug", ["almaty", "fall-2024", "a", "group-a-1"])
    def test_valid(self, slug):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize(
        "slug", ["", "Almaty", "fall_2024", "-a", "a-", "a--b", "a b", "a" * 81]
    )
    def test_invalid(self, slug):
        assert not is_valid_slug(slug)


class TestValidateEmail:
    def test_empty_is_valid(self):
        assert validate_email(None)
        assert validate_email("")

    def test_valid(self):
        assert validate_email("ana@example.com")

    def test_invalid(self):
        assert not validate_email("ana@")
        assert not validate_email("not-an-email")


class TestSafeUploadName:
    def test_plain_name(self):
        assert safe_upload_name("abc123.pdf") == "abc123.pdf"
        assert safe_upload_name("abc-page-1.png") == "abc-page-1.png"

    @pytest.mark.parametrize(
        "name", ["", "../secret", ".hidden", "a/b.pdf", "..", "abc.pdf.part"]
    )
    def test_rejected(self, name):
        assert safe_upload_name(name) is None


class TestParseRowId:
    def test_plain_digits(self):
        assert parse_row_id("42") == 42
        assert parse_row_id(str(MAX_ROW_ID)) == MAX_ROW_ID

    @pytest.mark.parametrize(
        "key", ["", "0", "-1", "abc", "²", "١٢", str(MAX_ROW_ID + 1)]
    )
    def test_rejected(self, key):
        assert parse_row_id(key) is None
