"""Browse view assembly.

Combines browse path parsing with storage lookups: every key of the path
is resolved (ids or slugs), each node is checked to belong to the node
before it, and the listing for the location is fetched and turned into
cards with their next-level links. Used by the /api/browse route and the
`portal browse` command.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from portal.core.hierarchy import Level
from portal.core.navigation import (
    Breadcrumb,
    BrowseLocation,
    parse_browse_path,
)
from portal.db import contents_repository, hierarchy_repository
from portal.db.hierarchy_repository import NodeRecord

logger = structlog.get_logger(__name__)

DEFAULT_SUBTITLE = "Click to explore"


class NodeNotFoundError(Exception):
    """Raised when a browse path names a node that doesn't exist."""

    def __init__(self, level: Level, key: str):
        self.level = level
        self.key = key
        super().__init__(f"{level.label} '{key}' not found")


@dataclass
class BrowseCard:
    """One listed item."""

    id: int
    title: str
    subtitle: str
    href: str
    type: str | None = None


@dataclass
class BrowseView:
    """Everything a browse page renders."""

    location: BrowseLocation
    endpoint: str
    nodes: list[NodeRecord] = field(default_factory=list)
    cards: list[BrowseCard] = field(default_factory=list)

    @property
    def title(self) -> str:
        return self.location.title()

    @property
    def breadcrumbs(self) -> list[Breadcrumb]:
        return self.location.breadcrumbs([n.name for n in self.nodes])


def resolve_location(location: BrowseLocation) -> list[NodeRecord]:
    """Look up the node behind every segment of `location`.

    Raises:
        NodeNotFoundError: Unknown id/slug, or a node that isn't a child
            of the previous segment's node
    """
    nodes: list[NodeRecord] = []
    parent_id: int | None = None
    for segment in location.segments:
        if segment.node_id is not None:
            node = hierarchy_repository.get_node(segment.level, segment.node_id)
            if node is not None and nodes and node.parent_id != parent_id:
                node = None
        else:
            node = hierarchy_repository.get_by_slug(segment.level, segment.key, parent_id)

        if node is None:
            raise NodeNotFoundError(segment.level, segment.key)

        nodes.append(node)
        parent_id = node.id

    return nodes


def build_browse_view(path: str) -> BrowseView:
    """Resolve a browse path and fetch its listing.

    Raises:
        InvalidBrowsePathError: Malformed path
        NodeNotFoundError: Path names a missing node
    """
    location = parse_browse_path(path)
    nodes = resolve_location(location)
    resolved = location
    if not location.is_resolved:
        resolved = location.with_ids([n.id for n in nodes])
    parent_id = nodes[-1].id if nodes else None

    cards: list[BrowseCard] = []
    if location.listing_level is Level.CONTENT:
        for content in contents_repository.list_by_subject(parent_id):
            cards.append(
                BrowseCard(
                    id=content.id,
                    title=content.title,
                    subtitle=content.description or DEFAULT_SUBTITLE,
                    href=location.item_href(content.id),
                    type=content.type,
                )
            )
    else:
        for node in hierarchy_repository.list_children(location.listing_level, parent_id):
            cards.append(
                BrowseCard(
                    id=node.id,
                    title=node.name,
                    subtitle=DEFAULT_SUBTITLE,
                    href=location.item_href(node.id),
                )
            )

    logger.debug(
        "browse.view",
        path=location.path(),
        level=location.listing_level.value,
        items=len(cards),
    )
    return BrowseView(
        location=location,
        endpoint=resolved.listing_endpoint(),
        nodes=nodes,
        cards=cards,
    )
