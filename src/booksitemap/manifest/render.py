"""Sitemap XML and robots.txt documents."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence
from xml.sax.saxutils import escape

from ..core.request import DiscoveryRequest
from ..core.types import Book, SiteMapUrl

ENCODING = "UTF-8"
XML_CONTENT_TYPE = "application/xml"
TEXT_CONTENT_TYPE = "text/plain"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
INDEX_PATH = "/sitemap-index.xml"
ROBOTS_PATH = "/robots.txt"


def format_instant(instant: datetime) -> str:
    """ISO-8601 in UTC without fractional seconds."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def resolve_loc(request: DiscoveryRequest, url: SiteMapUrl) -> str:
    return url.loc if url.absolute else request.absolute_url(url.loc)


def _render_entries(
    request: DiscoveryRequest, root: str, element: str, urls: Iterable[SiteMapUrl]
) -> str:
    lines = [
        f'<?xml version="1.0" encoding="{ENCODING}"?>',
        f'<{root} xmlns="{SITEMAP_NS}">',
    ]
    for url in urls:
        lines.append(f"    <{element}>")
        lines.append(f"        <loc>{escape(resolve_loc(request, url))}</loc>")
        if url.lastmod is not None:
            lines.append(f"        <lastmod>{format_instant(url.lastmod)}</lastmod>")
        lines.append(f"    </{element}>")
    lines.append(f"</{root}>")
    return "\n".join(lines) + "\n"


def render_urlset(request: DiscoveryRequest, urls: Iterable[SiteMapUrl]) -> str:
    return _render_entries(request, "urlset", "url", urls)


def render_sitemap_index(
    request: DiscoveryRequest, entries: Iterable[SiteMapUrl]
) -> str:
    return _render_entries(request, "sitemapindex", "sitemap", entries)


def merge_index_entries(
    sitemap_books: Iterable[tuple[Book, datetime | None]],
    external: Iterable[SiteMapUrl] = (),
) -> list[SiteMapUrl]:
    """
    One ordered set of index entries.

    Only identical entries collapse. An external entry never replaces an
    internal one with the same text since the two differ in ``absolute``.
    """
    entries = {
        SiteMapUrl(book.sitemap_path, lastmod) for book, lastmod in sitemap_books
    }
    entries.update(external)
    return sorted(entries)


def index_last_modified(entries: Sequence[SiteMapUrl]) -> datetime | None:
    """
    The last entry's time: the earliest known one, or None when any entry's
    time is unknown since those sort last.
    """
    if not entries:
        return None
    return entries[-1].lastmod


def render_robots_txt(request: DiscoveryRequest) -> str:
    return (
        "User-agent: *\n"
        "Allow: /\n"
        f"Sitemap: {request.absolute_url(INDEX_PATH)}\n"
    )
