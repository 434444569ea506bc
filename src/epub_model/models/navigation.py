"""Data models for normalized navigation."""

from collections.abc import Iterator
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from epub_model.core.paths import ArchivePath


class NavPoint(BaseModel):
    """Single navigation entry."""

    model_config = ConfigDict(frozen=True)

    label: str
    target: ArchivePath | None = None  # None for heading-only entries
    fragment: str | None = None
    id: str | None = None
    types: frozenset[str] = frozenset()  # epub:type tokens (landmarks)
    children: list["NavPoint"] = Field(default_factory=list)

    @property
    def href(self) -> str | None:
        """Target with its fragment re-attached."""
        if self.target is None:
            return None
        return f"{self.target}#{self.fragment}" if self.fragment else str(self.target)


class NavigationTree(BaseModel):
    """Ordered navigation tree, independent of the source schema."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["toc", "landmarks", "page-list"] = "toc"
    source: Literal["nav", "ncx", "guide"] | None = None
    source_path: ArchivePath | None = None
    points: list[NavPoint] = Field(default_factory=list)

    def walk(self) -> Iterator[tuple[int, NavPoint]]:
        """Depth-first iteration yielding (depth, point)."""
        stack = [(0, point) for point in reversed(self.points)]
        while stack:
            depth, point = stack.pop()
            yield depth, point
            stack.extend((depth + 1, child) for child in reversed(point.children))

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.walk())

    @property
    def is_empty(self) -> bool:
        return not self.points
