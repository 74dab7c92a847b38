"""
Request handling for the three discovery documents.

``SiteMapApp`` is built once at startup: it loads the external entries, picks
the views and owns the worker pool shared by every request. Each call to
``handle`` runs a fresh discovery; nothing is cached between requests.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from .config import SiteConfig
from .core.aggregate import collect_site_map_urls, newest_last_modified
from .core.discovery import get_sitemap_books
from .core.request import DiscoveryRequest
from .core.types import SITEMAP_PATH, Book, SiteMapUrl
from .core.views import View, resolve_views
from .errors import SiteMapError
from .library import Library
from .manifest.external import load_external_entries
from .manifest.render import (
    ENCODING,
    INDEX_PATH,
    ROBOTS_PATH,
    TEXT_CONTENT_TYPE,
    XML_CONTENT_TYPE,
    index_last_modified,
    merge_index_entries,
    render_robots_txt,
    render_sitemap_index,
    render_urlset,
)
from .runtime import get_jobs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    status: int
    content_type: str = TEXT_CONTENT_TYPE
    body: str = ""
    last_modified: datetime | None = None
    encoding: str = ENCODING


NOT_FOUND = Response(404, body="Not Found\n")
SERVER_ERROR = Response(500, body="Internal Server Error\n")


class SiteMapApp:
    def __init__(
        self,
        library: Library,
        *,
        views: Sequence[View] | None = None,
        external: Iterable[SiteMapUrl] = (),
        jobs: int | None = None,
        static_root: str | None = None,
        executor: Executor | None = None,
    ):
        self.library = library
        self.views = tuple(views) if views is not None else resolve_views()
        self.external = tuple(external)
        self.jobs = jobs if jobs is not None else get_jobs()
        self.robots_enabled = not (
            static_root and os.path.isfile(os.path.join(static_root, "robots.txt"))
        )
        self._executor = executor
        self._owns_executor = False
        self._executor_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: SiteConfig,
        *,
        jobs: int | None = None,
        include_installed: bool = True,
    ) -> "SiteMapApp":
        external = load_external_entries(
            config.bundles,
            base_dir=config.base_dir,
            include_installed=include_installed,
        )
        return cls(
            config.library,
            views=resolve_views(config.views),
            external=external,
            jobs=jobs if jobs is not None else get_jobs(config.jobs),
            static_root=config.static_root,
        )

    def __enter__(self) -> "SiteMapApp":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        with self._executor_lock:
            executor = self._executor if self._owns_executor else None
            if executor is not None:
                self._executor = None
                self._owns_executor = False
        if executor is not None:
            executor.shutdown(wait=True)

    @property
    def executor(self) -> Executor | None:
        if self._executor is not None or self.jobs <= 1:
            return self._executor
        with self._executor_lock:
            # another request may have created it while we waited
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.jobs, thread_name_prefix="booksitemap"
                )
                self._owns_executor = True
            return self._executor

    def sitemap_books(
        self, request: DiscoveryRequest
    ) -> list[tuple[Book, datetime | None]]:
        return get_sitemap_books(
            self.library,
            request,
            self.views,
            self.library.books,
            max_workers=self.jobs,
            executor=self.executor,
        )

    def index_entries(self, request: DiscoveryRequest) -> list[SiteMapUrl]:
        return merge_index_entries(self.sitemap_books(request), self.external)

    def book_urls(self, request: DiscoveryRequest, book: Book) -> list[SiteMapUrl]:
        return collect_site_map_urls(self.library, request, self.views, book)

    def book_for_path(self, path: str) -> Book | None:
        if not path.endswith(SITEMAP_PATH):
            return None
        name = path[: -len(SITEMAP_PATH)] or "/"
        book = self.library.get_book(name)
        if book is None or not book.eligible:
            return None
        return book

    def handle(self, path: str, request: DiscoveryRequest) -> Response:
        try:
            return self._dispatch(path, request)
        except SiteMapError:
            logger.exception("Failed to render %s", path)
            return SERVER_ERROR

    def _dispatch(self, path: str, request: DiscoveryRequest) -> Response:
        if path == INDEX_PATH:
            entries = self.index_entries(request)
            return Response(
                200,
                XML_CONTENT_TYPE,
                render_sitemap_index(request, entries),
                index_last_modified(entries),
            )
        if path == ROBOTS_PATH:
            if not self.robots_enabled:
                return NOT_FOUND
            return Response(200, TEXT_CONTENT_TYPE, render_robots_txt(request))
        book = self.book_for_path(path)
        if book is None:
            return NOT_FOUND
        urls = self.book_urls(request, book)
        return Response(
            200,
            XML_CONTENT_TYPE,
            render_urlset(request, urls),
            newest_last_modified(url.lastmod for url in urls),
        )
