"""Navigation endpoints: slug lookups and the browse view."""

from fastapi import APIRouter, HTTPException, status

from portal.core.browse import NodeNotFoundError, build_browse_view
from portal.core.hierarchy import Level
from portal.core.navigation import InvalidBrowsePathError
from portal.db import hierarchy_repository
from portal.web.schemas import (
    BreadcrumbResponse,
    BrowseItem,
    BrowseResponse,
    NodeResponse,
)

router = APIRouter(prefix="/api", tags=["navigation"])


@router.get("/navigate/city/{slug}", response_model=NodeResponse)
def navigate_city(slug: str) -> NodeResponse:
    """Resolve a city slug."""
    city = hierarchy_repository.get_by_slug(Level.CITY, slug)

    if city is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="City not found",
        )

    return NodeResponse(**city.to_dict())


@router.get("/navigate/path/{slug_path:path}", response_model=list[NodeResponse])
def navigate_path(slug_path: str) -> list[NodeResponse]:
    """Resolve a slug chain such as almaty/kbtu/fall-2024."""
    slugs = [s for s in slug_path.split("/") if s]
    nodes = hierarchy_repository.resolve_slug_path(slugs) if slugs else None

    if nodes is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Path '{slug_path}' not found",
        )

    return [NodeResponse(**n.to_dict()) for n in nodes]


@router.get("/browse", response_model=BrowseResponse)
def browse_root() -> BrowseResponse:
    """Browse view of the list of cities."""
    return _browse("")


@router.get("/browse/{browse_path:path}", response_model=BrowseResponse)
def browse(browse_path: str) -> BrowseResponse:
    """Browse view for /browse/{type}/{id}/... paths."""
    return _browse(browse_path)


def _browse(path: str) -> BrowseResponse:
    try:
        view = build_browse_view(path)
    except InvalidBrowsePathError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NodeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return BrowseResponse(
        path=view.location.path(),
        level=view.location.listing_level.value,
        title=view.title,
        endpoint=view.endpoint,
        parent_href=view.location.parent_path(),
        breadcrumbs=[BreadcrumbResponse(label=c.label, href=c.href) for c in view.breadcrumbs],
        items=[
            BrowseItem(id=c.id, title=c.title, subtitle=c.subtitle, type=c.type, href=c.href)
            for c in view.cards
        ],
    )
