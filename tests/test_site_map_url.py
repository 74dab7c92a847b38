from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from booksitemap.core.types import Book, Page, PageRef, SiteMapUrl, coerce_instant


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_most_recent_first_and_unknown_last() -> None:
    urls = [
        SiteMapUrl("/a", _utc(2024, 1, 1)),
        SiteMapUrl("/b", _utc(2024, 6, 1)),
        SiteMapUrl("/c", None),
    ]
    assert [u.loc for u in sorted(urls)] == ["/b", "/a", "/c"]
    assert [u.loc for u in sorted(reversed(urls))] == ["/b", "/a", "/c"]


def test_ties_compare_locations_ignoring_case_then_exactly() -> None:
    when = _utc(2024, 1, 1)
    urls = {
        SiteMapUrl("/b", when),
        SiteMapUrl("/a", when),
        SiteMapUrl("/A", when),
        SiteMapUrl("/B", None),
    }
    assert len(urls) == 4
    assert [u.loc for u in sorted(urls)] == ["/A", "/a", "/b", "/B"]


def test_external_entry_is_kept_beside_identical_internal_text() -> None:
    when = _utc(2024, 1, 1)
    internal = SiteMapUrl("/x", when)
    external = SiteMapUrl("/x", when, absolute=True)
    merged = sorted({internal, external, SiteMapUrl("/x", when)})
    assert merged == [internal, external]
    assert internal.compare_to(external) < 0


def test_equal_instants_in_different_zones_are_equal() -> None:
    first = SiteMapUrl("/a", _utc(2024, 1, 1, 12))
    second = SiteMapUrl("/a", coerce_instant("2024-01-01T14:00:00+02:00"))
    assert first == second
    assert len({first, second}) == 1
    assert first.compare_to(second) == 0


def test_coerce_instant_normalizes_to_utc() -> None:
    assert coerce_instant(None) is None
    assert coerce_instant(date(2024, 3, 1)) == _utc(2024, 3, 1)
    assert coerce_instant("2024-03-01T10:00:00Z") == _utc(2024, 3, 1, 10)
    assert coerce_instant(datetime(2024, 3, 1, 10)) == _utc(2024, 3, 1, 10)
    with pytest.raises(ValueError):
        coerce_instant("yesterday")


def test_book_paths() -> None:
    root = Book("/")
    docs = Book("/docs", root="/intro")
    assert root.path_prefix == ""
    assert root.sitemap_path == "/sitemap.xml"
    assert docs.sitemap_path == "/docs/sitemap.xml"
    assert docs.content_root == PageRef("/docs", "/intro")
    assert not Book("/x", published=False).eligible
    assert not Book("/x", accessible=False).eligible


def test_page_servlet_path() -> None:
    assert Page(PageRef("/", "/a")).servlet_path == "/a"
    assert Page(PageRef("/docs", "/a")).servlet_path == "/docs/a"


def test_naive_and_aware_times_sort_together() -> None:
    naive = SiteMapUrl("/a", datetime(2024, 1, 1, 12))
    aware = SiteMapUrl("/b", _utc(2024, 1, 1, 6), absolute=True)
    assert naive.lastmod == _utc(2024, 1, 1, 12)
    assert sorted([aware, naive]) == [naive, aware]
