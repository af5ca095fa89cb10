"""Fixed five-level category hierarchy.

city > school > semester > group > subject > content

The adjacency relation lives in CHILD_LEVEL and is validated when the
module is imported, so a missing transition fails fast instead of at
request time.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Level(str, Enum):
    """Node types of the browsing tree."""

    CITY = "city"
    SCHOOL = "school"
    SEMESTER = "semester"
    GROUP = "group"
    SUBJECT = "subject"
    CONTENT = "content"

    @property
    def is_category(self) -> bool:
        """True for the five category levels (everything but content)."""
        return self is not Level.CONTENT

    @property
    def plural(self) -> str:
        return LEVEL_PLURALS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class LevelTable:
    """Storage layout of a category level."""

    table: str
    parent_column: str | None


# None is the root: the list of cities has no parent node.
CHILD_LEVEL: dict[Level | None, Level] = {
    None: Level.CITY,
    Level.CITY: Level.SCHOOL,
    Level.SCHOOL: Level.SEMESTER,
    Level.SEMESTER: Level.GROUP,
    Level.GROUP: Level.SUBJECT,
    Level.SUBJECT: Level.CONTENT,
}

LEVEL_PLURALS: dict[Level, str] = {
    Level.CITY: "cities",
    Level.SCHOOL: "schools",
    Level.SEMESTER: "semesters",
    Level.GROUP: "groups",
    Level.SUBJECT: "subjects",
    Level.CONTENT: "contents",
}

LEVEL_TABLES: dict[Level, LevelTable] = {
    Level.CITY: LevelTable("cities", None),
    Level.SCHOOL: LevelTable("schools", "city_id"),
    Level.SEMESTER: LevelTable("semesters", "school_id"),
    Level.GROUP: LevelTable("student_groups", "semester_id"),
    Level.SUBJECT: LevelTable("subjects", "group_id"),
}

CATEGORY_LEVELS: tuple[Level, ...] = tuple(lv for lv in Level if lv.is_category)


def child_of(level: Level | None) -> Level:
    """Return the level listed beneath `level` (None = root)."""
    return CHILD_LEVEL[level]


def _check_transitions() -> None:
    # Every level is reachable from the root exactly once, in a single chain.
    seen: list[Level] = []
    current: Level | None = None
    while current in CHILD_LEVEL:
        current = CHILD_LEVEL[current]
        if current in seen:
            raise RuntimeError(f"Cycle in hierarchy at {current.value}")
        seen.append(current)
    if set(seen) != set(Level):
        missing = sorted(lv.value for lv in set(Level) - set(seen))
        raise RuntimeError(f"Levels unreachable from root: {missing}")
    if seen[-1] is not Level.CONTENT:
        raise RuntimeError("Hierarchy must terminate at content")
    if set(LEVEL_TABLES) != set(CATEGORY_LEVELS):
        raise RuntimeError("Every category level needs a storage table")
    if set(LEVEL_PLURALS) != set(Level):
        raise RuntimeError("Every level needs a plural route name")


_check_transitions()
