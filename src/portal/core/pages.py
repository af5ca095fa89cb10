"""Page rendering for uploaded PDFs.

A renderer turns a stored PDF into an ordered list of page images. Two
implementations:
- PlaceholderPageRenderer: one shared placeholder image (default)
- PyMuPdfPageRenderer: one PNG per PDF page, rendered with pymupdf

Dependencies:
- pymupdf (fitz)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import fitz
import structlog

logger = structlog.get_logger(__name__)

PLACEHOLDER_IMAGE_PATH = "/uploads/placeholder-page-1.jpg"
UPLOADS_URL_PREFIX = "/uploads"


@dataclass
class RenderedPage:
    """One rendered page.

    image_path is what clients receive; file_path is the file written to
    disk (None when nothing was written).
    """

    page_number: int
    image_path: str
    file_path: Path | None = None


class PageRenderError(Exception):
    """Base exception for page rendering errors."""

    pass


class ProtectedPdfError(PageRenderError):
    """Raised when PDF is password-protected."""

    def __init__(self, file_path: Path):
        self.file_path = file_path
        super().__init__(f"PDF is password-protected: {file_path.name}")


class UnreadablePdfError(PageRenderError):
    """Raised when the PDF cannot be opened or has no pages."""

    def __init__(self, file_path: Path, detail: str):
        self.file_path = file_path
        self.detail = detail
        super().__init__(f"Cannot read PDF {file_path.name}: {detail}")


class PageRenderer(Protocol):
    """Turns a PDF into ordered page images."""

    name: str

    def render(self, pdf_path: Path, output_dir: Path) -> list[RenderedPage]:
        ...


class PlaceholderPageRenderer:
    """Always yields a single placeholder page, whatever the PDF holds."""

    name = "placeholder"

    def render(self, pdf_path: Path, output_dir: Path) -> list[RenderedPage]:
        return [RenderedPage(page_number=1, image_path=PLACEHOLDER_IMAGE_PATH)]


class PyMuPdfPageRenderer:
    """Renders every PDF page to a PNG next to the stored upload."""

    name = "pymupdf"

    def __init__(self, dpi: int = 110):
        self.dpi = dpi

    def render(self, pdf_path: Path, output_dir: Path) -> list[RenderedPage]:
        """Render all pages of pdf_path into output_dir.

        Files are named {pdf stem}-page-{N}.png (N 1-based). If rendering
        fails halfway, images already written are removed.

        Raises:
            ProtectedPdfError: If the PDF is encrypted
            UnreadablePdfError: If the PDF can't be opened or is empty
        """
        try:
            doc = fitz.open(pdf_path)
        except (RuntimeError, ValueError) as e:
            raise UnreadablePdfError(pdf_path, str(e)) from e

        pages: list[RenderedPage] = []
        try:
            if doc.is_encrypted:
                raise ProtectedPdfError(pdf_path)
            if len(doc) == 0:
                raise UnreadablePdfError(pdf_path, "no pages")

            output_dir.mkdir(parents=True, exist_ok=True)
            for index in range(len(doc)):
                page_number = index + 1
                file_name = f"{pdf_path.stem}-page-{page_number}.png"
                target = output_dir / file_name
                pixmap = doc[index].get_pixmap(dpi=self.dpi)
                pixmap.save(str(target))
                pages.append(
                    RenderedPage(
                        page_number=page_number,
                        image_path=f"{UPLOADS_URL_PREFIX}/{file_name}",
                        file_path=target,
                    )
                )
        except Exception:
            for page in pages:
                if page.file_path is not None:
                    page.file_path.unlink(missing_ok=True)
            raise
        finally:
            doc.close()

        logger.info("pages.rendered", pdf=pdf_path.name, pages=len(pages), dpi=self.dpi)
        return pages


def get_page_renderer(name: str, dpi: int = 110) -> PageRenderer:
    """Build the renderer configured under uploads.page_renderer.

    Raises:
        ValueError: For an unknown renderer name
    """
    if name == "placeholder":
        return PlaceholderPageRenderer()
    if name == "pymupdf":
        return PyMuPdfPageRenderer(dpi=dpi)
    raise ValueError(f"Unknown page renderer: {name}")
