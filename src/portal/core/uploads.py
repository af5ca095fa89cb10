"""Content upload orchestrator.

Responsibilities:
- Validate the uploaded file (content type, %PDF signature, size)
- Stream it into the uploads directory under a generated name
- Render page images through the configured PageRenderer
- Create the content row and its pages in one transaction
- Remove files again if anything after the write fails

Stored files are referenced as "/uploads/{name}", the URL they are
served from.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

import structlog

from portal.core.pages import (
    PLACEHOLDER_IMAGE_PATH,
    UPLOADS_URL_PREFIX,
    PageRenderer,
    RenderedPage,
)
from portal.db import contents_repository
from portal.db.contents_repository import ContentRecord, NewPage, PageRecord

logger = structlog.get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF"
CHUNK_SIZE = 1024 * 1024


@dataclass
class UploadRequest:
    """Metadata sent alongside the uploaded file."""

    title: str
    type: str
    subject_id: int
    original_file_name: str
    content_type: str | None
    description: str | None = None


@dataclass
class UploadResult:
    """Created content with its pages."""

    content: ContentRecord
    pages: list[RenderedPage] = field(default_factory=list)


class UploadError(Exception):
    """Base exception for upload errors."""

    pass


class InvalidUploadError(UploadError):
    """Raised when the upload is not an acceptable PDF."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class UploadTooLargeError(UploadError):
    """Raised when the upload exceeds the configured maximum."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(f"File exceeds maximum size of {max_bytes // (1024 * 1024)}MB")


def stored_file_url(name: str) -> str:
    return f"{UPLOADS_URL_PREFIX}/{name}"


def url_to_upload_path(url: str, upload_dir: Path) -> Path | None:
    """Map "/uploads/{name}" back to a file inside upload_dir."""
    prefix = UPLOADS_URL_PREFIX + "/"
    if not url.startswith(prefix):
        return None
    name = url[len(prefix):]
    if not name or "/" in name or name.startswith("."):
        return None
    return upload_dir / name


def save_pdf_stream(
    stream: BinaryIO,
    upload_dir: Path,
    max_bytes: int,
    content_type: str | None,
) -> Path:
    """Validate and write an uploaded PDF into upload_dir.

    The file is written as "{name}.part" and renamed only once the
    whole stream passed validation.

    Returns:
        Path of the stored PDF

    Raises:
        InvalidUploadError: Wrong content type or missing %PDF signature
        UploadTooLargeError: More than max_bytes received
    """
    if content_type != PDF_CONTENT_TYPE:
        raise InvalidUploadError("Only PDF files are allowed")

    upload_dir.mkdir(parents=True, exist_ok=True)
    name = f"{uuid.uuid4().hex}.pdf"
    target = upload_dir / name
    partial = upload_dir / f"{name}.part"

    total = 0
    try:
        with open(partial, "wb") as out:
            first = True
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                if first:
                    if not chunk.startswith(PDF_MAGIC):
                        raise InvalidUploadError("File is not a valid PDF")
                    first = False
                total += len(chunk)
                if total > max_bytes:
                    raise UploadTooLargeError(max_bytes)
                out.write(chunk)
        if total == 0:
            raise InvalidUploadError("PDF file is empty")
        partial.rename(target)
    except Exception:
        partial.unlink(missing_ok=True)
        raise

    logger.debug("uploads.saved", file=name, size=total)
    return target


def store_upload(
    request: UploadRequest,
    stream: BinaryIO,
    uploaded_by: str,
    upload_dir: Path,
    max_bytes: int,
    renderer: PageRenderer,
) -> UploadResult:
    """Persist an uploaded PDF and create its content record.

    Args:
        request: Title, type, subject and file metadata
        stream: Binary file stream
        uploaded_by: Uploader user id
        upload_dir: Uploads directory
        max_bytes: Maximum accepted file size
        renderer: Page renderer

    Returns:
        UploadResult with the created content and its pages

    Raises:
        InvalidUploadError, UploadTooLargeError: Before anything is stored
        PageRenderError: If the PDF can't be rendered (file removed)
        contents_repository.SubjectNotFoundError: Unknown subject (file removed)
    """
    pdf_path = save_pdf_stream(stream, upload_dir, max_bytes, request.content_type)

    rendered: list[RenderedPage] = []
    try:
        rendered = renderer.render(pdf_path, upload_dir)
        content = contents_repository.create_content(
            title=request.title,
            type=request.type,
            description=request.description,
            file_path=stored_file_url(pdf_path.name),
            original_file_name=request.original_file_name,
            subject_id=request.subject_id,
            uploaded_by=uploaded_by,
            pages=[NewPage(p.page_number, p.image_path) for p in rendered],
        )
    except Exception:
        logger.warning("uploads.rolled_back", file=pdf_path.name)
        pdf_path.unlink(missing_ok=True)
        for page in rendered:
            if page.file_path is not None:
                page.file_path.unlink(missing_ok=True)
        raise

    logger.info(
        "uploads.stored",
        content_id=content.id,
        renderer=renderer.name,
        pages=len(rendered),
    )
    return UploadResult(content=content, pages=rendered)


def remove_content_files(
    content: ContentRecord, pages: list[PageRecord], upload_dir: Path
) -> int:
    """Delete the stored PDF and rendered page images of a content.

    The shared placeholder image is never removed.

    Returns:
        Number of files deleted
    """
    urls = [content.file_path] + [
        p.image_path for p in pages if p.image_path != PLACEHOLDER_IMAGE_PATH
    ]
    removed = 0
    for url in urls:
        path = url_to_upload_path(url, upload_dir)
        if path is not None and path.exists():
            path.unlink()
            removed += 1

    logger.debug("uploads.files_removed", content_id=content.id, files=removed)
    return removed
