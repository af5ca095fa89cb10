"""Serve stored uploads."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from portal.config.app_config import AppConfig
from portal.utils.validators import safe_upload_name
from portal.web.deps import get_config

router = APIRouter(tags=["files"])


@router.get("/uploads/{filename}")
def get_upload(
    filename: str, config: AppConfig = Depends(get_config)
) -> FileResponse:
    """Return a previously uploaded file."""
    name = safe_upload_name(filename)
    path = config.upload_dir / name if name else None

    if path is None or not path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    return FileResponse(path)
