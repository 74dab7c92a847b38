from __future__ import annotations

from datetime import datetime, timedelta, timezone

from booksitemap.core.request import DiscoveryRequest
from booksitemap.core.types import Book, SiteMapUrl
from booksitemap.manifest.render import (
    format_instant,
    index_last_modified,
    merge_index_entries,
    render_robots_txt,
    render_sitemap_index,
    render_urlset,
)


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


REQUEST = DiscoveryRequest(base_url="https://example.com/site/")


def test_format_instant_drops_fractions_and_uses_utc() -> None:
    instant = datetime(
        2024, 6, 1, 12, 30, 15, 123456, tzinfo=timezone(timedelta(hours=2))
    )
    assert format_instant(instant) == "2024-06-01T10:30:15Z"


def test_render_urlset() -> None:
    urls = sorted(
        [
            SiteMapUrl("/a", _utc(2024, 1, 1)),
            SiteMapUrl("/b page", _utc(2024, 6, 1)),
            SiteMapUrl("/c?view=tree&x=1", None),
        ]
    )
    assert render_urlset(REQUEST, urls) == (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        "    <url>\n"
        "        <loc>https://example.com/site/b%20page</loc>\n"
        "        <lastmod>2024-06-01T00:00:00Z</lastmod>\n"
        "    </url>\n"
        "    <url>\n"
        "        <loc>https://example.com/site/a</loc>\n"
        "        <lastmod>2024-01-01T00:00:00Z</lastmod>\n"
        "    </url>\n"
        "    <url>\n"
        "        <loc>https://example.com/site/c?view=tree&amp;x=1</loc>\n"
        "    </url>\n"
        "</urlset>\n"
    )


def test_index_merges_internal_and_external_entries() -> None:
    t1 = _utc(2024, 3, 1)
    external = [
        SiteMapUrl("https://cdn.example.com/lib/sitemap.xml", _utc(2024, 9, 1), True),
        SiteMapUrl("/docs/sitemap.xml", t1, absolute=True),
    ]
    entries = merge_index_entries(
        [(Book("/"), _utc(2024, 1, 1)), (Book("/docs"), t1)], external
    )
    assert entries == [
        external[0],
        SiteMapUrl("/docs/sitemap.xml", t1),
        external[1],
        SiteMapUrl("/sitemap.xml", _utc(2024, 1, 1)),
    ]
    rendered = render_sitemap_index(REQUEST, entries)
    assert rendered.count("<sitemap>") == 4
    assert "<loc>https://cdn.example.com/lib/sitemap.xml</loc>" in rendered
    assert "<loc>https://example.com/site/docs/sitemap.xml</loc>" in rendered
    assert "<loc>/docs/sitemap.xml</loc>" in rendered
    assert rendered.startswith(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
    )


def test_index_last_modified_is_earliest_known() -> None:
    entries = merge_index_entries(
        [(Book("/"), _utc(2024, 1, 1)), (Book("/docs"), _utc(2024, 6, 1))]
    )
    assert index_last_modified(entries) == _utc(2024, 1, 1)


def test_index_last_modified_unknown_when_any_entry_unknown() -> None:
    entries = merge_index_entries(
        [(Book("/"), _utc(2024, 1, 1)), (Book("/docs"), None)],
        [SiteMapUrl("https://x.example/sitemap.xml", _utc(2025, 1, 1), True)],
    )
    assert entries[-1].lastmod is None
    assert index_last_modified(entries) is None
    assert index_last_modified([]) is None


def test_rendering_is_repeatable() -> None:
    first = merge_index_entries(
        [(Book("/b"), None), (Book("/a"), None), (Book("/c"), _utc(2024, 1, 1))]
    )
    second = merge_index_entries(
        [(Book("/c"), _utc(2024, 1, 1)), (Book("/a"), None), (Book("/b"), None)]
    )
    assert [e.loc for e in first] == [
        "/c/sitemap.xml",
        "/a/sitemap.xml",
        "/b/sitemap.xml",
    ]
    assert render_sitemap_index(REQUEST, first) == render_sitemap_index(
        REQUEST, second
    )


def test_robots_txt() -> None:
    assert render_robots_txt(REQUEST) == (
        "User-agent: *\n"
        "Allow: /\n"
        "Sitemap: https://example.com/site/sitemap-index.xml\n"
    )


def test_literal_percent_is_escaped_but_existing_escapes_survive() -> None:
    request = DiscoveryRequest(base_url="https://e.com")
    rendered = render_urlset(request, [SiteMapUrl("/100% done")])
    assert "<loc>https://e.com/100%25%20done</loc>" in rendered
    assert request.absolute_url("/caf%C3%A9/50%") == "https://e.com/caf%C3%A9/50%25"
    assert (
        request.absolute_url("https://cdn.example.com/a%zz")
        == "https://cdn.example.com/a%25zz"
    )


def test_index_merge_accepts_naive_book_times() -> None:
    external = SiteMapUrl("https://x.example/sitemap.xml", _utc(2024, 1, 1), True)
    entries = merge_index_entries([(Book("/"), datetime(2024, 1, 1))], [external])
    assert entries == [SiteMapUrl("/sitemap.xml", _utc(2024, 1, 1)), external]
