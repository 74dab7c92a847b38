from __future__ import annotations

import pytest

from booksitemap.core import views
from booksitemap.core.request import DiscoveryRequest
from booksitemap.core.types import Page, PageRef
from booksitemap.core.views import (
    ContentView,
    TreeView,
    register_view,
    resolve_views,
)


def test_resolve_keeps_order_and_drops_repeats() -> None:
    resolved = resolve_views(["tree", "content", "tree"])
    assert [type(v) for v in resolved] == [TreeView, ContentView]
    assert [type(v) for v in resolve_views()] == [ContentView]


def test_unknown_view() -> None:
    with pytest.raises(ValueError, match="Unknown view 'print'"):
        resolve_views(["print"])


def test_register_view(monkeypatch) -> None:
    monkeypatch.setattr(views, "VIEW_TYPES", dict(views.VIEW_TYPES))

    @register_view
    class PrintView(ContentView):
        name = "print"

        def canonical_url(self, request, page):
            return page.servlet_path + "?view=print"

    (view,) = resolve_views(["print"])
    page = Page(PageRef("/docs", "/a"))
    assert view.canonical_url(DiscoveryRequest(), page) == "/docs/a?view=print"

    with pytest.raises(ValueError):
        register_view(type("Nameless", (), {"name": ""}))
