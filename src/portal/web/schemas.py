"""Pydantic schemas for the Web API.

Serialization models for users, category nodes, contents and the
browse view.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from portal.utils.validators import MAX_ROW_ID


# =============================================================================
# USER SCHEMAS
# =============================================================================


class RoleSchema(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class RegisterRequest(BaseModel):
    """Request body for self-registration (always a student)."""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=200)
    email: str | None = Field(default=None, max_length=200)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)


class UserCreate(RegisterRequest):
    """Request body for admin user creation."""

    role: RoleSchema = RoleSchema.STUDENT


class UserResponse(BaseModel):
    """A user, without password."""

    id: str
    username: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: RoleSchema
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Bearer token issued by /api/login."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# CATEGORY SCHEMAS
# =============================================================================


class NodeCreate(BaseModel):
    """Common fields for creating a category node.

    slug is derived from name when omitted.
    """

    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=80)


class CityCreate(NodeCreate):
    pass


class SchoolCreate(NodeCreate):
    city_id: int = Field(..., ge=1, le=MAX_ROW_ID)


class SemesterCreate(NodeCreate):
    school_id: int = Field(..., ge=1, le=MAX_ROW_ID)


class GroupCreate(NodeCreate):
    semester_id: int = Field(..., ge=1, le=MAX_ROW_ID)


class SubjectCreate(NodeCreate):
    group_id: int = Field(..., ge=1, le=MAX_ROW_ID)


class NodeResponse(BaseModel):
    """A category node; exactly one parent key is set below cities."""

    id: int
    name: str
    slug: str
    created_at: str
    city_id: int | None = None
    school_id: int | None = None
    semester_id: int | None = None
    group_id: int | None = None

    model_config = {"from_attributes": True}


# =============================================================================
# CONTENT SCHEMAS
# =============================================================================


class ContentTypeSchema(str, Enum):
    LESSON = "lesson"
    EXERCISE = "exercise"


class ContentResponse(BaseModel):
    """Response for a content (without pages)."""

    id: int
    title: str
    description: str | None = None
    type: ContentTypeSchema
    file_path: str
    original_file_name: str
    subject_id: int
    uploaded_by: str | None = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class PageResponse(BaseModel):
    id: int
    content_id: int
    page_number: int
    image_path: str
    created_at: str

    model_config = {"from_attributes": True}


class ContentDetailResponse(ContentResponse):
    """Content together with its pages."""

    pages: list[PageResponse] = Field(default_factory=list)


# =============================================================================
# BROWSE SCHEMAS
# =============================================================================


class BreadcrumbResponse(BaseModel):
    label: str
    href: str


class BrowseItem(BaseModel):
    """One card of the browse grid."""

    id: int
    title: str
    subtitle: str
    type: str | None = None
    href: str


class BrowseResponse(BaseModel):
    """View model of a browse page."""

    path: str
    level: str
    title: str
    endpoint: str
    parent_href: str | None = None
    breadcrumbs: list[BreadcrumbResponse]
    items: list[BrowseItem]


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
