"""Category hierarchy endpoints.

Listings are public; creating and deleting nodes requires an admin.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, status

from portal.core.hierarchy import Level
from portal.core.policy import Action
from portal.db import hierarchy_repository
from portal.db.hierarchy_repository import (
    DuplicateSlugError,
    NodeInUseError,
    NodeRecord,
    ParentNotFoundError,
)
from portal.utils.validators import MAX_ROW_ID, is_valid_slug, slugify
from portal.web.deps import RequestContext, get_authenticated_context
from portal.web.schemas import (
    CityCreate,
    GroupCreate,
    MessageResponse,
    NodeCreate,
    NodeResponse,
    SchoolCreate,
    SemesterCreate,
    SubjectCreate,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["categories"])


def _to_response(node: NodeRecord) -> NodeResponse:
    return NodeResponse(**node.to_dict())


def _list(level: Level, parent_id: int | None = None) -> list[NodeResponse]:
    nodes = hierarchy_repository.list_children(level, parent_id)
    logger.debug("categories.list", level=level.value, parent_id=parent_id, count=len(nodes))
    return [_to_response(n) for n in nodes]


def _create(
    ctx: RequestContext, level: Level, data: NodeCreate, parent_id: int | None = None
) -> NodeResponse:
    ctx.require(Action.MANAGE_CATEGORIES)

    slug = data.slug or slugify(data.name)
    if not is_valid_slug(slug):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid slug '{slug}'",
        )

    try:
        node = hierarchy_repository.create_node(level, data.name, slug, parent_id)
    except ParentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateSlugError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info("categories.created", level=level.value, node_id=node.id)
    return _to_response(node)


def _delete(ctx: RequestContext, level: Level, node_id: int) -> MessageResponse:
    ctx.require(Action.MANAGE_CATEGORIES)

    try:
        deleted = hierarchy_repository.delete_node(level, node_id)
    except NodeInUseError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{level.label} {node_id} not found",
        )

    logger.info("categories.deleted", level=level.value, node_id=node_id)
    return MessageResponse(message=f"{level.label} deleted successfully")


# =============================================================================
# LISTINGS
# =============================================================================


@router.get("/cities", response_model=list[NodeResponse])
def list_cities() -> list[NodeResponse]:
    """List all cities."""
    return _list(Level.CITY)


@router.get("/cities/{city_id}/schools", response_model=list[NodeResponse])
def list_schools(
    city_id: int = Path(..., ge=1, le=MAX_ROW_ID),
) -> list[NodeResponse]:
    """List schools of a city."""
    return _list(Level.SCHOOL, city_id)


@router.get("/schools/{school_id}/semesters", response_model=list[NodeResponse])
def list_semesters(
    school_id: int = Path(..., ge=1, le=MAX_ROW_ID),
) -> list[NodeResponse]:
    """List semesters of a school."""
    return _list(Level.SEMESTER, school_id)


@router.get("/semesters/{semester_id}/groups", response_model=list[NodeResponse])
def list_groups(
    semester_id: int = Path(..., ge=1, le=MAX_ROW_ID),
) -> list[NodeResponse]:
    """List groups of a semester."""
    return _list(Level.GROUP, semester_id)


@router.get("/groups/{group_id}/subjects", response_model=list[NodeResponse])
def list_subjects(
    group_id: int = Path(..., ge=1, le=MAX_ROW_ID),
) -> list[NodeResponse]:
    """List subjects of a group."""
    return _list(Level.SUBJECT, group_id)


# =============================================================================
# ADMIN: CREATE
# =============================================================================


@router.post("/cities", response_model=NodeResponse, status_code=status.HTTP_201_CREATED)
def create_city(
    data: CityCreate, ctx: RequestContext = Depends(get_authenticated_context)
) -> NodeResponse:
    return _create(ctx, Level.CITY, data)


@router.post("/schools", response_model=NodeResponse, status_code=status.HTTP_201_CREATED)
def create_school(
    data: SchoolCreate, ctx: RequestContext = Depends(get_authenticated_context)
) -> NodeResponse:
    return _create(ctx, Level.SCHOOL, data, data.city_id)


@router.post(
    "/semesters", response_model=NodeResponse, status_code=status.HTTP_201_CREATED
)
def create_semester(
    data: SemesterCreate, ctx: RequestContext = Depends(get_authenticated_context)
) -> NodeResponse:
    return _create(ctx, Level.SEMESTER, data, data.school_id)


@router.post("/groups", response_model=NodeResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    data: GroupCreate, ctx: RequestContext = Depends(get_authenticated_context)
) -> NodeResponse:
    return _create(ctx, Level.GROUP, data, data.semester_id)


@router.post("/subjects", response_model=NodeResponse, status_code=status.HTTP_201_CREATED)
def create_subject(
    data: SubjectCreate, ctx: RequestContext = Depends(get_authenticated_context)
) -> NodeResponse:
    return _create(ctx, Level.SUBJECT, data, data.group_id)


# =============================================================================
# ADMIN: DELETE
# =============================================================================


@router.delete("/cities/{node_id}", response_model=MessageResponse)
def delete_city(
    node_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    ctx: RequestContext = Depends(get_authenticated_context),
) -> MessageResponse:
    return _delete(ctx, Level.CITY, node_id)


@router.delete("/schools/{node_id}", response_model=MessageResponse)
def delete_school(
    node_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    ctx: RequestContext = Depends(get_authenticated_context),
) -> MessageResponse:
    return _delete(ctx, Level.SCHOOL, node_id)


@router.delete("/semesters/{node_id}", response_model=MessageResponse)
def delete_semester(
    node_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    ctx: RequestContext = Depends(get_authenticated_context),
) -> MessageResponse:
    return _delete(ctx, Level.SEMESTER, node_id)


@router.delete("/groups/{node_id}", response_model=MessageResponse)
def delete_group(
    node_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    ctx: RequestContext = Depends(get_authenticated_context),
) -> MessageResponse:
    return _delete(ctx, Level.GROUP, node_id)


@router.delete("/subjects/{node_id}", response_model=MessageResponse)
def delete_subject(
    node_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    ctx: RequestContext = Depends(get_authenticated_context),
) -> MessageResponse:
    return _delete(ctx, Level.SUBJECT, node_id)
