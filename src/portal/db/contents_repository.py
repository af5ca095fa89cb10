"""Repository functions for contents and content_pages tables.

Provides CRUD operations for uploaded lessons/exercises and their
rendered page images.
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass

import structlog

from portal.db.database import get_db

logger = structlog.get_logger(__name__)

CONTENT_TYPES = ("lesson", "exercise")


@dataclass
class ContentRecord:
    """Content record from database."""

    id: int
    title: str
    description: str | None
    type: str
    file_path: str
    original_file_name: str
    subject_id: int
    uploaded_by: str | None
    created_at: str
    updated_at: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PageRecord:
    """Content page record from database."""

    id: int
    content_id: int
    page_number: int
    image_path: str
    created_at: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class NewPage:
    """Page to insert together with a content row."""

    page_number: int
    image_path: str


class SubjectNotFoundError(Exception):
    """Raised when content references a subject that doesn't exist."""

    def __init__(self, subject_id: int):
        self.subject_id = subject_id
        super().__init__(f"Subject {subject_id} does not exist")


def list_by_subject(subject_id: int) -> list[ContentRecord]:
    """Get contents of a subject, ordered by title.

    Args:
        subject_id: Subject id

    Returns:
        List of ContentRecord sorted ascending by title, then id
    """
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM contents WHERE subject_id = ? ORDER BY title, id",
            (subject_id,),
        ).fetchall()

    return [_row_to_content(row) for row in rows]


def list_by_uploader(user_id: str) -> list[ContentRecord]:
    """Get contents uploaded by a user, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM contents WHERE uploaded_by = ? "
            "ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()

    return [_row_to_content(row) for row in rows]


def get_content(content_id: int) -> ContentRecord | None:
    """Get content by id.

    Returns:
        ContentRecord if found, None otherwise
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM contents WHERE id = ?", (content_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_content(row)


def list_pages(content_id: int) -> list[PageRecord]:
    """Get pages of a content ordered by page number.

    Returns an empty list for unknown or deleted contents.
    """
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM content_pages WHERE content_id = ? ORDER BY page_number",
            (content_id,),
        ).fetchall()

    return [_row_to_page(row) for row in rows]


def append_page(content_id: int, image_path: str) -> PageRecord:
    """Append a page after the last existing page of a content.

    Args:
        content_id: Content id
        image_path: Path or URL of the page image

    Returns:
        The created PageRecord
    """
    with get_db() as conn:
        next_number = conn.execute(
            "SELECT COALESCE(MAX(page_number), 0) + 1 FROM content_pages "
            "WHERE content_id = ?",
            (content_id,),
        ).fetchone()[0]
        cursor = conn.execute(
            "INSERT INTO content_pages (content_id, page_number, image_path) "
            "VALUES (?, ?, ?)",
            (content_id, next_number, image_path),
        )
        row = conn.execute(
            "SELECT * FROM content_pages WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()

    logger.debug("contents.page_appended", content_id=content_id, page=next_number)
    return _row_to_page(row)


def create_content(
    title: str,
    type: str,
    file_path: str,
    original_file_name: str,
    subject_id: int,
    uploaded_by: str | None,
    description: str | None = None,
    pages: list[NewPage] | None = None,
) -> ContentRecord:
    """Insert a content row and its pages in a single transaction.

    Args:
        title: Content title
        type: 'lesson' or 'exercise'
        file_path: Stored file path
        original_file_name: Name of the file as uploaded
        subject_id: Owning subject
        uploaded_by: Uploader user id
        description: Optional description
        pages: Pages to insert with the content

    Returns:
        The created ContentRecord

    Raises:
        ValueError: If type is not a content type
        SubjectNotFoundError: If subject_id doesn't exist
    """
    if type not in CONTENT_TYPES:
        raise ValueError(f"Invalid content type: {type}")

    try:
        with get_db() as conn:
            cursor = conn.execute(
                """
                INSERT INTO contents (
                    title, description, type, file_path,
                    original_file_name, subject_id, uploaded_by
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title,
                    description,
                    type,
                    file_path,
                    original_file_name,
                    subject_id,
                    uploaded_by,
                ),
            )
            content_id = cursor.lastrowid
            conn.executemany(
                "INSERT INTO content_pages (content_id, page_number, image_path) "
                "VALUES (?, ?, ?)",
                [(content_id, p.page_number, p.image_path) for p in pages or []],
            )
            row = conn.execute(
                "SELECT * FROM contents WHERE id = ?", (content_id,)
            ).fetchone()
    except sqlite3.IntegrityError as e:
        if "FOREIGN KEY" in str(e):
            raise SubjectNotFoundError(subject_id) from e
        raise

    record = _row_to_content(row)
    logger.info(
        "contents.created",
        content_id=record.id,
        subject_id=subject_id,
        pages=len(pages or []),
    )
    return record


def delete_content(content_id: int) -> bool:
    """Delete a content and its pages.

    Pages are removed before the content row, in the same transaction.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        pages = conn.execute(
            "DELETE FROM content_pages WHERE content_id = ?", (content_id,)
        )
        cursor = conn.execute("DELETE FROM contents WHERE id = ?", (content_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.info(
            "contents.deleted", content_id=content_id, pages=pages.rowcount
        )

    return deleted


def _row_to_content(row) -> ContentRecord:
    """Convert database row to ContentRecord."""
    return ContentRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        type=row["type"],
        file_path=row["file_path"],
        original_file_name=row["original_file_name"],
        subject_id=row["subject_id"],
        uploaded_by=row["uploaded_by"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_page(row) -> PageRecord:
    """Convert database row to PageRecord."""
    return PageRecord(
        id=row["id"],
        content_id=row["content_id"],
        page_number=row["page_number"],
        image_path=row["image_path"],
        created_at=row["created_at"],
    )
