from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from functools import total_ordering
from typing import Any

SITEMAP_PATH = "/sitemap.xml"


@dataclass(frozen=True)
class PageRef:
    book: str
    path: str

    def __str__(self) -> str:
        return f"{self.book}:{self.path}"


@dataclass(frozen=True)
class Book:
    name: str
    root: str = "/"
    published: bool = True
    accessible: bool = True
    allow_robots: bool = True

    @property
    def path_prefix(self) -> str:
        return "" if self.name == "/" else self.name

    @property
    def content_root(self) -> PageRef:
        return PageRef(self.name, self.root)

    @property
    def eligible(self) -> bool:
        return self.published and self.accessible

    @property
    def sitemap_path(self) -> str:
        return self.path_prefix + SITEMAP_PATH


@dataclass(frozen=True)
class Page:
    ref: PageRef
    last_modified: datetime | None = None
    allow_robots: bool = True
    child_refs: tuple[PageRef, ...] = field(default_factory=tuple)

    @property
    def servlet_path(self) -> str:
        # book name "/" contributes no prefix
        prefix = "" if self.ref.book == "/" else self.ref.book
        return prefix + self.ref.path


def coerce_instant(value: Any) -> datetime | None:
    """Normalize YAML/front matter timestamps to aware UTC datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            instant = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"Invalid timestamp: {value!r}") from exc
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _compare_ignore_case_careful(a: str, b: str) -> int:
    folded_a, folded_b = a.casefold(), b.casefold()
    if folded_a != folded_b:
        return -1 if folded_a < folded_b else 1
    if a == b:
        return 0
    return -1 if a < b else 1


@total_ordering
@dataclass(frozen=True, eq=True)
class SiteMapUrl:
    """
    One manifest record.

    Ordered by most recent first, unknown modification times last, then by
    location ignoring case with an exact comparison as the final tie-break.
    ``absolute`` separates an external entry from an internal one that happens
    to carry the same text; the two are never merged.

    The nulls-last ordering is relied on by ``index_last_modified``.
    """

    loc: str
    lastmod: datetime | None = None
    absolute: bool = False

    def __post_init__(self) -> None:
        # naive and aware times must stay comparable
        object.__setattr__(self, "lastmod", coerce_instant(self.lastmod))

    def compare_to(self, other: "SiteMapUrl") -> int:
        if self.lastmod is not None:
            if other.lastmod is not None:
                if self.lastmod != other.lastmod:
                    return -1 if self.lastmod > other.lastmod else 1
            else:
                return -1
        elif other.lastmod is not None:
            return 1
        diff = _compare_ignore_case_careful(self.loc, other.loc)
        if diff:
            return diff
        if self.absolute == other.absolute:
            return 0
        return 1 if self.absolute else -1

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SiteMapUrl):
            return NotImplemented
        return self.compare_to(other) < 0
