"""Browse path resolution.

Translates browse paths of alternating {type}/{key} segments into the
listing to fetch and the links to render for each listed item:

    /browse                          -> cities
    /browse/city/1                   -> schools of city 1
    /browse/city/1/school/4          -> semesters of school 4
    ...
    /browse/city/1/.../subject/9     -> contents of subject 9

Items listed at the subject level link to /lesson/{id} instead of
another browse path. Keys are numeric ids or slugs; slugs must be
resolved to ids (see BrowseLocation.with_ids) before an API endpoint
can be built.
"""

from __future__ import annotations

from dataclasses import dataclass

from portal.core.hierarchy import CATEGORY_LEVELS, Level, child_of
from portal.utils.validators import is_valid_slug, parse_row_id

BROWSE_ROOT = "/browse"
LESSON_ROOT = "/lesson"


class InvalidBrowsePathError(Exception):
    """Raised when a browse path doesn't follow the hierarchy."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid browse path '{path}': {reason}")


@dataclass(frozen=True)
class BrowseSegment:
    """One {type}/{key} pair of a browse path."""

    level: Level
    key: str

    @property
    def node_id(self) -> int | None:
        """Numeric id, or None when the key is a slug."""
        return parse_row_id(self.key)


@dataclass(frozen=True)
class Breadcrumb:
    label: str
    href: str


@dataclass(frozen=True)
class BrowseLocation:
    """A parsed browse path."""

    segments: tuple[BrowseSegment, ...] = ()

    @property
    def current_level(self) -> Level | None:
        """Level of the deepest selected node (None at the root)."""
        return self.segments[-1].level if self.segments else None

    @property
    def listing_level(self) -> Level:
        """Level of the items listed at this location."""
        return child_of(self.current_level)

    @property
    def is_root(self) -> bool:
        return not self.segments

    @property
    def is_resolved(self) -> bool:
        """True when every key is a numeric id."""
        return all(s.node_id is not None for s in self.segments)

    def path(self, depth: int | None = None) -> str:
        """Browse URL of this location, optionally cut to `depth` segments."""
        segments = self.segments if depth is None else self.segments[:depth]
        parts = [BROWSE_ROOT]
        for segment in segments:
            parts.append(f"{segment.level.value}/{segment.key}")
        return "/".join(parts)

    def with_ids(self, ids: list[int]) -> BrowseLocation:
        """Return a copy whose keys are replaced by resolved node ids."""
        if len(ids) != len(self.segments):
            raise ValueError("One id per segment is required")
        return BrowseLocation(
            tuple(
                BrowseSegment(s.level, str(node_id))
                for s, node_id in zip(self.segments, ids)
            )
        )

    def listing_endpoint(self) -> str:
        """API route that returns the items listed at this location.

        Raises:
            ValueError: If the deepest key is a slug
        """
        if self.is_root:
            return f"/api/{Level.CITY.plural}"
        last = self.segments[-1]
        if last.node_id is None:
            raise ValueError(f"Unresolved slug: {last.key}")
        return f"/api/{last.level.plural}/{last.node_id}/{self.listing_level.plural}"

    def item_href(self, item_id: int) -> str:
        """Link for an item listed at this location."""
        next_level = self.listing_level
        if next_level is Level.CONTENT:
            return f"{LESSON_ROOT}/{item_id}"
        return f"{self.path()}/{next_level.value}/{item_id}"

    def parent_path(self) -> str | None:
        """Browse URL one level up, None at the root."""
        if self.is_root:
            return None
        return self.path(len(self.segments) - 1)

    def title(self) -> str:
        return self.listing_level.plural.capitalize()

    def breadcrumbs(self, labels: list[str] | None = None) -> list[Breadcrumb]:
        """Home > Browse > one crumb per segment.

        Args:
            labels: Display names per segment (e.g. node names); defaults
                to "City 1", "School 4", ...
        """
        crumbs = [Breadcrumb("Home", "/"), Breadcrumb("Browse", BROWSE_ROOT)]
        for depth, segment in enumerate(self.segments, start=1):
            if labels is not None and depth <= len(labels):
                label = labels[depth - 1]
            else:
                label = f"{segment.level.label} {segment.key}"
            crumbs.append(Breadcrumb(label, self.path(depth)))
        return crumbs


def parse_browse_path(path: str) -> BrowseLocation:
    """Parse a browse path into a BrowseLocation.

    Accepts the path with or without the leading "/browse" and with
    or without a trailing slash.

    Raises:
        InvalidBrowsePathError: Odd segment count, levels out of order,
            unknown level names, or malformed keys
    """
    parts = [p for p in path.split("/") if p]
    if parts and parts[0] == BROWSE_ROOT.strip("/"):
        parts = parts[1:]

    if len(parts) % 2:
        raise InvalidBrowsePathError(path, "expected {type}/{id} pairs")
    if len(parts) // 2 > len(CATEGORY_LEVELS):
        raise InvalidBrowsePathError(path, "deeper than the hierarchy")

    segments: list[BrowseSegment] = []
    expected: Level | None = None
    for i in range(0, len(parts), 2):
        type_name, key = parts[i], parts[i + 1]
        expected = child_of(expected)
        if type_name != expected.value:
            raise InvalidBrowsePathError(
                path, f"expected '{expected.value}' but found '{type_name}'"
            )
        if parse_row_id(key) is None and not is_valid_slug(key):
            raise InvalidBrowsePathError(path, f"malformed key '{key}'")
        segments.append(BrowseSegment(expected, key))

    return BrowseLocation(tuple(segments))
