"""Data validation helpers.

Slug conventions:
- lowercase ASCII letters, digits and single hyphens
- no leading/trailing hyphen, max 80 chars
- unique within the parent node (cities: globally)

Functions:
- slugify(text) -> str: Build a slug from a display name
- is_valid_slug(slug) -> bool
- validate_email(email) -> bool
- safe_upload_name(filename) -> str | None: Reject path traversal
- parse_row_id(key) -> int | None: ASCII digits within SQLite's INTEGER range
"""

import re
import unicodedata

SLUG_MAX_LENGTH = 80
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")
UPLOAD_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

# Largest value SQLite stores in an INTEGER PRIMARY KEY
MAX_ROW_ID = 2**63 - 1


def slugify(text: str) -> str:
    """Normalize text to slug-friendly format.

    Examples:
        "Almaty" -> "almaty"
        "Álgebra Lineal (II)" -> "algebra-lineal-ii"

    Args:
        text: Display name

    Returns:
        Slug, or "" if nothing slug-worthy remains
    """
    # Remove accents
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = text.lower()
    # Replace spaces and special chars with hyphens
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = re.sub(r"-+", "-", text).strip("-")
    return text[:SLUG_MAX_LENGTH].rstrip("-")


def is_valid_slug(slug: str) -> bool:
    """Check slug format (see module docstring)."""
    return len(slug) <= SLUG_MAX_LENGTH and bool(SLUG_PATTERN.match(slug))


def validate_email(email: str | None) -> bool:
    """Validate email format. Empty or None is valid (optional field).

    Args:
        email: Email address to validate

    Returns:
        True if valid email or empty, False otherwise
    """
    if not email:
        return True
    return bool(EMAIL_PATTERN.match(email))


def safe_upload_name(filename: str) -> str | None:
    """Return filename if it is a plain file name inside the uploads dir.

    Rejects separators, parent references, hidden files and uploads
    still being written (".part").
    """
    if not filename or ".." in filename or filename.endswith(".part"):
        return None
    if not UPLOAD_NAME_PATTERN.match(filename):
        return None
    return filename


def parse_row_id(key: str) -> int | None:
    """Parse a row id from a path key.

    Only ASCII digits count ("²".isdigit() is True but int() rejects it),
    and the value must fit a SQLite INTEGER primary key.

    Returns:
        The id, or None if `key` is not a usable row id
    """
    if not (key.isascii() and key.isdigit()):
        return None
    value = int(key)
    if not 1 <= value <= MAX_ROW_ID:
        return None
    return value
