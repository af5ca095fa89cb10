"""Content endpoints: listing, detail, upload and delete."""

import structlog
from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Path,
    Request,
    UploadFile,
    status,
)

from portal.config.app_config import AppConfig
from portal.core.hierarchy import Level
from portal.core.pages import PageRenderError, PageRenderer
from portal.core.policy import Action
from portal.core.uploads import (
    InvalidUploadError,
    UploadRequest,
    UploadTooLargeError,
    remove_content_files,
    store_upload,
)
from portal.db import contents_repository, hierarchy_repository
from portal.db.contents_repository import ContentRecord, SubjectNotFoundError
from portal.utils.validators import MAX_ROW_ID
from portal.web.deps import RequestContext, get_authenticated_context, get_config
from portal.web.schemas import (
    ContentDetailResponse,
    ContentResponse,
    ContentTypeSchema,
    MessageResponse,
    PageResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["contents"])


def get_page_renderer(request: Request) -> PageRenderer:
    """Page renderer the application was created with."""
    return request.app.state.page_renderer


def _to_detail(content: ContentRecord) -> ContentDetailResponse:
    pages = contents_repository.list_pages(content.id)
    return ContentDetailResponse(
        **content.to_dict(),
        pages=[PageResponse(**p.to_dict()) for p in pages],
    )


@router.get("/subjects/{subject_id}/contents", response_model=list[ContentResponse])
def list_contents(
    subject_id: int = Path(..., ge=1, le=MAX_ROW_ID),
) -> list[ContentResponse]:
    """List contents of a subject."""
    contents = contents_repository.list_by_subject(subject_id)
    return [ContentResponse(**c.to_dict()) for c in contents]


@router.get("/contents/{content_id}", response_model=ContentDetailResponse)
def get_content(
    content_id: int = Path(..., ge=1, le=MAX_ROW_ID),
) -> ContentDetailResponse:
    """Get a content with its pages."""
    content = contents_repository.get_content(content_id)

    if content is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content not found",
        )

    return _to_detail(content)


@router.post(
    "/contents",
    response_model=ContentDetailResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_content(
    title: str = Form(..., min_length=1, max_length=255),
    type: ContentTypeSchema = Form(...),
    subject_id: int = Form(..., ge=1, le=MAX_ROW_ID),
    description: str | None = Form(default=None),
    pdf: UploadFile | None = File(default=None),
    ctx: RequestContext = Depends(get_authenticated_context),
    config: AppConfig = Depends(get_config),
    renderer: PageRenderer = Depends(get_page_renderer),
) -> ContentDetailResponse:
    """Upload a PDF lesson or exercise (teachers and admins)."""
    ctx.require(Action.UPLOAD_CONTENT)

    if pdf is None or not pdf.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="PDF file is required",
        )

    if pdf.size is not None and pdf.size > config.uploads.max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(UploadTooLargeError(config.uploads.max_bytes)),
        )

    if hierarchy_repository.get_node(Level.SUBJECT, subject_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Subject {subject_id} does not exist",
        )

    request = UploadRequest(
        title=title,
        type=type.value,
        subject_id=subject_id,
        description=description or None,
        original_file_name=pdf.filename,
        content_type=pdf.content_type,
    )

    try:
        result = store_upload(
            request,
            pdf.file,
            uploaded_by=ctx.user.id,
            upload_dir=config.upload_dir,
            max_bytes=config.uploads.max_bytes,
            renderer=renderer,
        )
    except InvalidUploadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UploadTooLargeError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e)
        )
    except PageRenderError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SubjectNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    finally:
        pdf.file.close()

    return _to_detail(result.content)


@router.delete("/contents/{content_id}", response_model=MessageResponse)
def delete_content(
    content_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    ctx: RequestContext = Depends(get_authenticated_context),
    config: AppConfig = Depends(get_config),
) -> MessageResponse:
    """Delete a content, its pages and stored files."""
    content = contents_repository.get_content(content_id)

    if content is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content not found",
        )

    ctx.require(Action.DELETE_CONTENT, content)

    pages = contents_repository.list_pages(content_id)
    contents_repository.delete_content(content_id)
    remove_content_files(content, pages, config.upload_dir)

    return MessageResponse(message="Content deleted successfully")


@router.get("/my-contents", response_model=list[ContentResponse])
def my_contents(
    ctx: RequestContext = Depends(get_authenticated_context),
) -> list[ContentResponse]:
    """List contents uploaded by the caller, newest first."""
    ctx.require(Action.VIEW_OWN_CONTENT)
    contents = contents_repository.list_by_uploader(ctx.user.id)
    return [ContentResponse(**c.to_dict()) for c in contents]
