from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Sequence

from .request import DiscoveryRequest
from .traversal import (
    PageProvider,
    child_edges,
    same_book,
    traverse_pages_any_order,
    traverse_pages_depth_first,
)
from .types import Book, Page, SiteMapUrl, coerce_instant
from .views import View

logger = logging.getLogger(__name__)


def _indexable(view: View, request: DiscoveryRequest, page: Page) -> bool:
    return view.allow_robots(request, page) and view.is_applicable(request, page)


def has_site_map_url(
    provider: PageProvider,
    request: DiscoveryRequest,
    views: Sequence[View],
    book: Book,
) -> bool:
    """Whether at least one page/view combination of the book may be indexed."""

    def handle_page(page: Page) -> bool | None:
        for view in views:
            if _indexable(view, request, page):
                return True
        return None

    result = traverse_pages_any_order(
        provider,
        request,
        book.content_root,
        handle_page,
        child_edges,
        same_book(book.name),
    )
    assert result is None or result is True
    return result is not None


class _NewestLastModified:
    """
    Running maximum of modification times.

    One unknown time makes the whole result unknown; after that no further
    comparisons are made.
    """

    def __init__(self) -> None:
        self.newest: datetime | None = None
        self.unknown = False

    def add(self, lastmod: datetime | None) -> None:
        if self.unknown:
            return
        lastmod = coerce_instant(lastmod)
        if lastmod is None:
            self.unknown = True
            self.newest = None
        elif self.newest is None or lastmod > self.newest:
            self.newest = lastmod

    @property
    def result(self) -> datetime | None:
        return None if self.unknown else self.newest


def newest_last_modified(lastmods: Iterable[datetime | None]) -> datetime | None:
    newest = _NewestLastModified()
    for lastmod in lastmods:
        newest.add(lastmod)
        if newest.unknown:
            break
    return newest.result


def get_last_modified(
    provider: PageProvider,
    request: DiscoveryRequest,
    views: Sequence[View],
    book: Book,
) -> datetime | None:
    """
    Most recent modification time over every indexable page/view of the book.

    Known only when it is known for every such combination.
    """
    newest = _NewestLastModified()

    def handle_page(page: Page) -> bool | None:
        for view in views:
            if _indexable(view, request, page):
                newest.add(view.last_modified(request, page))
                if newest.unknown:
                    # Stops the traversal; nothing can make it known again
                    return False
        return None

    traverse_pages_any_order(
        provider,
        request,
        book.content_root,
        handle_page,
        child_edges,
        same_book(book.name),
    )
    return newest.result


def collect_site_map_urls(
    provider: PageProvider,
    request: DiscoveryRequest,
    views: Sequence[View],
    book: Book,
) -> list[SiteMapUrl]:
    """All indexable locations of the book, ordered and without duplicates."""
    urls: set[SiteMapUrl] = set()

    def handle_page(page: Page, depth: int) -> None:
        assert page.ref.book == book.name
        for view in views:
            if _indexable(view, request, page):
                urls.add(
                    SiteMapUrl(
                        view.canonical_url(request, page),
                        view.last_modified(request, page),
                    )
                )

    traverse_pages_depth_first(
        provider,
        request,
        book.content_root,
        handle_page,
        child_edges,
        same_book(book.name),
    )
    logger.debug("book %s: %d sitemap urls", book.name, len(urls))
    return sorted(urls)
