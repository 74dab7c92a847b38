from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping

from ..core.types import Book, Page, PageRef, coerce_instant
from ..errors import TraversalError

if TYPE_CHECKING:
    from . import Library


@dataclass(frozen=True)
class _PageSpec:
    last_modified: datetime | None
    robots: bool | None
    children: tuple[PageRef, ...]


def _parse_child(book: str, child: Any) -> PageRef:
    if isinstance(child, str):
        return PageRef(book, child)
    if isinstance(child, Mapping) and isinstance(child.get("path"), str):
        return PageRef(str(child.get("book", book)), child["path"])
    raise ValueError(f"Invalid child reference in book {book}: {child!r}")


class InlineSource:
    """Pages declared directly in the site configuration."""

    def __init__(self, book: str, pages: Mapping[str, Mapping[str, Any] | None]):
        self._pages: dict[str, _PageSpec] = {}
        for path, data in pages.items():
            data = data or {}
            if not isinstance(data, Mapping):
                raise ValueError(f"Page {book}:{path} must be a mapping")
            children = data.get("children") or []
            if not isinstance(children, list):
                raise ValueError(f"'children' of {book}:{path} must be a list")
            robots = data.get("robots")
            self._pages[str(path)] = _PageSpec(
                last_modified=coerce_instant(data.get("modified")),
                robots=None if robots is None else bool(robots),
                children=tuple(_parse_child(book, child) for child in children),
            )

    def load(self, book: Book, ref: PageRef, library: "Library") -> Page:
        spec = self._pages.get(ref.path)
        if spec is None:
            raise TraversalError(f"Page not found: {ref}")
        return Page(
            ref=ref,
            last_modified=spec.last_modified,
            allow_robots=book.allow_robots if spec.robots is None else spec.robots,
            child_refs=spec.children,
        )
