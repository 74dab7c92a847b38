"""Content-tree providers: books, their pages and the links between pages."""

from __future__ import annotations

import os
from typing import Protocol

from ..core.types import Book, Page, PageRef
from ..errors import TraversalError
from .inline import InlineSource
from .markdown import MarkdownSource


class PageSource(Protocol):
    def load(self, book: Book, ref: PageRef, library: "Library") -> Page: ...


class Library:
    """Books in registration order, each backed by a page source."""

    def __init__(self) -> None:
        self._books: dict[str, Book] = {}
        self._sources: dict[str, PageSource] = {}

    def add_book(self, book: Book, source: PageSource) -> None:
        if book.name in self._books:
            raise ValueError(f"Duplicate book: {book.name}")
        self._books[book.name] = book
        self._sources[book.name] = source

    @property
    def books(self) -> list[Book]:
        return list(self._books.values())

    def get_book(self, name: str) -> Book | None:
        return self._books.get(name)

    def get_page(self, ref: PageRef) -> Page:
        book = self._books.get(ref.book)
        if book is None:
            raise TraversalError(f"Unknown book for page {ref}")
        return self._sources[ref.book].load(book, ref, self)

    def locate(self, file_path: str) -> PageRef | None:
        """The page stored at ``file_path``, choosing the innermost book directory."""
        file_path = os.path.abspath(file_path)
        best: tuple[int, PageRef] | None = None
        for name, source in self._sources.items():
            if not isinstance(source, MarkdownSource):
                continue
            path = source.page_path(file_path)
            if path is None:
                continue
            depth = len(source.root_dir)
            if best is None or depth > best[0]:
                best = (depth, PageRef(name, path))
        return best[1] if best else None


__all__ = ["InlineSource", "Library", "MarkdownSource", "PageSource"]
