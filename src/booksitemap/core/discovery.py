"""Finds the books that belong in the sitemap index, optionally in parallel."""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from datetime import datetime
from typing import Iterable, Sequence

from ..concurrency import run_indexed_tasks
from .aggregate import get_last_modified, has_site_map_url
from .request import DiscoveryRequest
from .traversal import PageProvider
from .types import Book
from .views import View

logger = logging.getLogger(__name__)

SitemapBook = tuple[Book, datetime | None]


def eligible_books(books: Iterable[Book]) -> list[Book]:
    return [book for book in books if book.eligible]


def get_sitemap_books(
    provider: PageProvider,
    request: DiscoveryRequest,
    views: Sequence[View],
    books: Iterable[Book],
    *,
    max_workers: int = 4,
    executor: Executor | None = None,
) -> list[SitemapBook]:
    """
    Books having at least one indexable page/view, each with its last
    modified time when known. Order follows ``books`` regardless of how the
    work was scheduled.
    """
    candidates = eligible_books(books)
    if len(candidates) > 1 and request.concurrent:
        return _concurrent_sitemap_books(
            provider, request, views, candidates, max_workers, executor
        )

    sitemap_books: list[SitemapBook] = []
    for book in candidates:
        if has_site_map_url(provider, request, views, book):
            sitemap_books.append(
                (book, get_last_modified(provider, request, views, book))
            )
    return sitemap_books


def _concurrent_sitemap_books(
    provider: PageProvider,
    request: DiscoveryRequest,
    views: Sequence[View],
    books: list[Book],
    max_workers: int,
    executor: Executor | None,
) -> list[SitemapBook]:
    def has_url_task(book: Book):
        subrequest = request.subrequest()

        def call() -> bool:
            logger.debug("called, subrequest=%r, book=%s", subrequest, book.name)
            return has_site_map_url(provider, subrequest, views, book)

        return call

    def last_modified_task(book: Book):
        subrequest = request.subrequest()

        def call() -> datetime | None:
            logger.debug("called, subrequest=%r, book=%s", subrequest, book.name)
            return get_last_modified(provider, subrequest, views, book)

        return call

    has_urls = run_indexed_tasks(
        [has_url_task(book) for book in books],
        max_workers=max_workers,
        executor=executor,
        cancelled=request.cancelled,
    )
    assert len(has_urls) == len(books)
    with_urls = [book for book, has_url in zip(books, has_urls) if has_url]
    if not with_urls:
        return []
    if len(with_urls) == 1:
        book = with_urls[0]
        return [(book, get_last_modified(provider, request, views, book))]

    lastmods = run_indexed_tasks(
        [last_modified_task(book) for book in with_urls],
        max_workers=max_workers,
        executor=executor,
        cancelled=request.cancelled,
    )
    return list(zip(with_urls, lastmods))
