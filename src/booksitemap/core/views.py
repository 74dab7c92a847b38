"""Pluggable per-page views deciding indexability, location and modification time."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .request import DiscoveryRequest
from .types import Page


class View(Protocol):
    name: str

    def allow_robots(self, request: DiscoveryRequest, page: Page) -> bool: ...

    def is_applicable(self, request: DiscoveryRequest, page: Page) -> bool: ...

    def canonical_url(self, request: DiscoveryRequest, page: Page) -> str: ...

    def last_modified(
        self, request: DiscoveryRequest, page: Page
    ) -> datetime | None: ...


class ContentView:
    """The page itself."""

    name = "content"

    def allow_robots(self, request: DiscoveryRequest, page: Page) -> bool:
        return page.allow_robots

    def is_applicable(self, request: DiscoveryRequest, page: Page) -> bool:
        return True

    def canonical_url(self, request: DiscoveryRequest, page: Page) -> str:
        return page.servlet_path

    def last_modified(self, request: DiscoveryRequest, page: Page) -> datetime | None:
        return page.last_modified


class TreeView:
    """Table of contents below a page; only offered where the page has children."""

    name = "tree"

    def allow_robots(self, request: DiscoveryRequest, page: Page) -> bool:
        return page.allow_robots

    def is_applicable(self, request: DiscoveryRequest, page: Page) -> bool:
        return any(child.book == page.ref.book for child in page.child_refs)

    def canonical_url(self, request: DiscoveryRequest, page: Page) -> str:
        return f"{page.servlet_path}?view={self.name}"

    def last_modified(self, request: DiscoveryRequest, page: Page) -> datetime | None:
        return page.last_modified


VIEW_TYPES: dict[str, type] = {
    ContentView.name: ContentView,
    TreeView.name: TreeView,
}
DEFAULT_VIEWS = (ContentView.name,)


def register_view(view_type: type) -> type:
    name = getattr(view_type, "name", None)
    if not isinstance(name, str) or not name:
        raise ValueError("View types must define a non-empty 'name'")
    VIEW_TYPES[name] = view_type
    return view_type


def resolve_views(names: Sequence[str] | None = None) -> tuple[View, ...]:
    """Instantiate views by name, keeping the given order and dropping repeats."""
    views: list[View] = []
    seen: set[str] = set()
    for name in names or DEFAULT_VIEWS:
        if name in seen:
            continue
        view_type = VIEW_TYPES.get(name)
        if view_type is None:
            known = ", ".join(sorted(VIEW_TYPES))
            raise ValueError(f"Unknown view {name!r} (known: {known})")
        seen.add(name)
        views.append(view_type())
    return tuple(views)
