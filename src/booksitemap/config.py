"""Site configuration: a YAML mapping with ``config`` and ``books``."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Union

import yaml

from .core.types import Book
from .library import InlineSource, Library, MarkdownSource

_CONFIG_KEYS = {"base-url", "concurrent", "jobs", "views", "bundles", "static-root"}
_BOOK_KEYS = {
    "name",
    "root",
    "dir",
    "pages",
    "published",
    "accessible",
    "allow-robots",
}


@dataclass
class SiteConfig:
    library: Library
    base_url: str = "http://localhost"
    concurrent: bool = True
    jobs: int | None = None
    views: list[str] = field(default_factory=list)
    bundles: list[str] = field(default_factory=list)
    static_root: str | None = None
    base_dir: str = "."


def parse_site_config(source: Union[str, Path, IO]) -> dict[str, Any]:
    if isinstance(source, Path):
        with open(source, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    elif isinstance(source, str):
        if "\n" not in source and Path(source).exists():
            with open(source, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        else:
            data = yaml.safe_load(source)
    else:
        data = yaml.safe_load(source)

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ValueError("Site configuration must be a YAML mapping")

    if "books" not in data:
        data["books"] = []
    if "config" not in data or data["config"] is None:
        data["config"] = {}

    return data


def _string_list(config: dict[str, Any], key: str) -> list[str]:
    value = config.get(key) or []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return list(value)


def _bool(entry: dict[str, Any], key: str, default: bool) -> bool:
    value = entry.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false")
    return value


def _build_book(entry: Any, base_dir: str) -> tuple[Book, Any]:
    if not isinstance(entry, dict):
        raise ValueError("Each book must be a mapping")
    unknown = set(entry) - _BOOK_KEYS
    if unknown:
        raise ValueError(f"Unknown book keys: {', '.join(sorted(unknown))}")
    name = entry.get("name")
    if not isinstance(name, str) or not name.startswith("/"):
        raise ValueError("Book 'name' must be a string starting with '/'")
    if name != "/" and name.endswith("/"):
        raise ValueError(f"Book name must not end with '/': {name}")

    book = Book(
        name=name,
        root=str(entry.get("root", "/")),
        published=_bool(entry, "published", True),
        accessible=_bool(entry, "accessible", True),
        allow_robots=_bool(entry, "allow-robots", True),
    )
    has_dir, has_pages = "dir" in entry, "pages" in entry
    if has_dir == has_pages:
        raise ValueError(f"Book {name} needs exactly one of 'dir' or 'pages'")
    if has_dir:
        book_dir = str(entry["dir"])
        if not os.path.isabs(book_dir):
            book_dir = os.path.join(base_dir, book_dir)
        if not os.path.isdir(book_dir):
            raise ValueError(f"Book directory not found: {book_dir}")
        return book, MarkdownSource(book_dir)
    pages = entry["pages"] or {}
    if not isinstance(pages, dict):
        raise ValueError(f"'pages' of book {name} must be a mapping")
    return book, InlineSource(name, pages)


def build_site_config(data: dict[str, Any], *, base_dir: str = ".") -> SiteConfig:
    config = data.get("config") or {}
    if not isinstance(config, dict):
        raise ValueError("'config' must be a mapping")
    unknown = set(config) - _CONFIG_KEYS
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    books = data.get("books") or []
    if not isinstance(books, list):
        raise ValueError("'books' must be a list")

    library = Library()
    for entry in books:
        book, source = _build_book(entry, base_dir)
        library.add_book(book, source)

    jobs = config.get("jobs")
    if jobs is not None and (not isinstance(jobs, int) or jobs <= 0):
        raise ValueError("'jobs' must be a positive integer")
    static_root = config.get("static-root")
    if static_root is not None and not os.path.isabs(str(static_root)):
        static_root = os.path.join(base_dir, str(static_root))

    return SiteConfig(
        library=library,
        base_url=str(config.get("base-url", "http://localhost")),
        concurrent=_bool(config, "concurrent", True),
        jobs=jobs,
        views=_string_list(config, "views"),
        bundles=_string_list(config, "bundles"),
        static_root=static_root,
        base_dir=base_dir,
    )


def load_site_config(path: Union[str, Path]) -> SiteConfig:
    path = Path(path)
    data = parse_site_config(path)
    return build_site_config(data, base_dir=str(path.resolve().parent))
