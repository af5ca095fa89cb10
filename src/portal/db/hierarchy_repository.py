"""Repository functions for the category hierarchy.

One set of functions serves all five levels; the level decides the table
and parent column (see portal.core.hierarchy.LEVEL_TABLES).
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from portal.core.hierarchy import CATEGORY_LEVELS, LEVEL_TABLES, Level, child_of
from portal.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class NodeRecord:
    """Category node from database."""

    level: Level
    id: int
    name: str
    slug: str
    parent_id: int | None
    created_at: str

    def to_dict(self) -> dict:
        """Serialize with the level-specific parent key (city_id, ...)."""
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "created_at": self.created_at,
        }
        column = LEVEL_TABLES[self.level].parent_column
        if column:
            data[column] = self.parent_id
        return data


class HierarchyError(Exception):
    """Base exception for hierarchy storage errors."""

    pass


class ParentNotFoundError(HierarchyError):
    """Raised when creating a node under a parent that doesn't exist."""

    def __init__(self, level: Level, parent_id: int | None):
        self.level = level
        self.parent_id = parent_id
        super().__init__(f"Parent {level.value} {parent_id} does not exist")


class DuplicateSlugError(HierarchyError):
    """Raised when a slug is already taken under the same parent."""

    def __init__(self, level: Level, slug: str, parent_id: int | None):
        self.level = level
        self.slug = slug
        self.parent_id = parent_id
        scope = f" under parent {parent_id}" if parent_id is not None else ""
        super().__init__(f"{level.label} slug '{slug}' already exists{scope}")


class NodeInUseError(HierarchyError):
    """Raised when deleting a node that still has children or contents."""

    def __init__(self, level: Level, node_id: int):
        self.level = level
        self.node_id = node_id
        super().__init__(
            f"{level.label} {node_id} still has {child_of(level).plural}"
        )


def _require_category(level: Level) -> None:
    if level not in CATEGORY_LEVELS:
        raise ValueError(f"Not a category level: {level.value}")


def _select(level: Level) -> str:
    layout = LEVEL_TABLES[level]
    parent = layout.parent_column or "NULL"
    return (
        f"SELECT id, name, slug, {parent} AS parent_id, created_at "
        f"FROM {layout.table}"
    )


def list_children(level: Level, parent_id: int | None = None) -> list[NodeRecord]:
    """List nodes of `level` under `parent_id`, ordered by name.

    Args:
        level: Level of the rows to list
        parent_id: Parent node id (ignored for cities)

    Returns:
        Records sorted ascending by name, then id
    """
    _require_category(level)
    layout = LEVEL_TABLES[level]

    with get_db() as conn:
        if layout.parent_column is None:
            rows = conn.execute(f"{_select(level)} ORDER BY name, id").fetchall()
        else:
            rows = conn.execute(
                f"{_select(level)} WHERE {layout.parent_column} = ? ORDER BY name, id",
                (parent_id,),
            ).fetchall()

    return [_row_to_record(level, row) for row in rows]


def get_node(level: Level, node_id: int) -> NodeRecord | None:
    """Get node by id.

    Returns:
        NodeRecord if found, None otherwise
    """
    _require_category(level)
    with get_db() as conn:
        row = conn.execute(f"{_select(level)} WHERE id = ?", (node_id,)).fetchone()

    if row is None:
        return None

    return _row_to_record(level, row)


def get_by_slug(
    level: Level, slug: str, parent_id: int | None = None
) -> NodeRecord | None:
    """Resolve a slug to a node within its parent's scope.

    Args:
        level: Level of the node
        slug: Slug to look up
        parent_id: Parent node id (ignored for cities)

    Returns:
        NodeRecord if found, None otherwise
    """
    _require_category(level)
    layout = LEVEL_TABLES[level]

    with get_db() as conn:
        if layout.parent_column is None:
            row = conn.execute(
                f"{_select(level)} WHERE slug = ?", (slug,)
            ).fetchone()
        else:
            row = conn.execute(
                f"{_select(level)} WHERE {layout.parent_column} = ? AND slug = ?",
                (parent_id, slug),
            ).fetchone()

    if row is None:
        return None

    return _row_to_record(level, row)


def resolve_slug_path(slugs: list[str]) -> list[NodeRecord] | None:
    """Resolve a chain of slugs starting at the city level.

    Example:
        ["almaty", "kbtu", "fall-2024"] -> [city, school, semester]

    Returns:
        Records for each slug, or None if any step doesn't resolve
        or the chain is deeper than the hierarchy.
    """
    if len(slugs) > len(CATEGORY_LEVELS):
        return None

    nodes: list[NodeRecord] = []
    parent_id: int | None = None
    for level, slug in zip(CATEGORY_LEVELS, slugs):
        node = get_by_slug(level, slug, parent_id)
        if node is None:
            return None
        nodes.append(node)
        parent_id = node.id

    return nodes


def create_node(
    level: Level, name: str, slug: str, parent_id: int | None = None
) -> NodeRecord:
    """Insert a new node.

    Args:
        level: Level of the new node
        name: Display name
        slug: URL slug, unique within the parent
        parent_id: Parent node id (required except for cities)

    Returns:
        The created NodeRecord

    Raises:
        ParentNotFoundError: If the parent row doesn't exist
        DuplicateSlugError: If the slug is taken under this parent
    """
    _require_category(level)
    layout = LEVEL_TABLES[level]

    try:
        with get_db() as conn:
            if layout.parent_column is None:
                cursor = conn.execute(
                    f"INSERT INTO {layout.table} (name, slug) VALUES (?, ?)",
                    (name, slug),
                )
            else:
                if parent_id is None:
                    raise ParentNotFoundError(level, parent_id)
                cursor = conn.execute(
                    f"INSERT INTO {layout.table} (name, slug, {layout.parent_column}) "
                    f"VALUES (?, ?, ?)",
                    (name, slug, parent_id),
                )
            row = conn.execute(
                f"{_select(level)} WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
    except sqlite3.IntegrityError as e:
        message = str(e)
        if "FOREIGN KEY" in message:
            raise ParentNotFoundError(level, parent_id) from e
        if "UNIQUE" in message:
            raise DuplicateSlugError(level, slug, parent_id) from e
        raise

    record = _row_to_record(level, row)
    logger.debug(
        "hierarchy.created",
        level=level.value,
        node_id=record.id,
        slug=slug,
        parent_id=parent_id,
    )
    return record


def delete_node(level: Level, node_id: int) -> bool:
    """Delete node by id.

    Returns:
        True if deleted, False if not found

    Raises:
        NodeInUseError: If children (or contents) still reference the node
    """
    _require_category(level)
    layout = LEVEL_TABLES[level]

    try:
        with get_db() as conn:
            cursor = conn.execute(
                f"DELETE FROM {layout.table} WHERE id = ?", (node_id,)
            )
    except sqlite3.IntegrityError as e:
        raise NodeInUseError(level, node_id) from e

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("hierarchy.deleted", level=level.value, node_id=node_id)

    return deleted


def _row_to_record(level: Level, row) -> NodeRecord:
    """Convert database row to NodeRecord."""
    return NodeRecord(
        level=level,
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        parent_id=row["parent_id"],
        created_at=row["created_at"],
    )
