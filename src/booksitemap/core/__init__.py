from .aggregate import (
    collect_site_map_urls,
    get_last_modified,
    has_site_map_url,
    newest_last_modified,
)
from .discovery import eligible_books, get_sitemap_books
from .request import DiscoveryRequest
from .traversal import traverse_pages_any_order, traverse_pages_depth_first
from .types import Book, Page, PageRef, SiteMapUrl
from .views import ContentView, TreeView, View, register_view, resolve_views

__all__ = [
    "Book",
    "ContentView",
    "DiscoveryRequest",
    "Page",
    "PageRef",
    "SiteMapUrl",
    "TreeView",
    "View",
    "collect_site_map_urls",
    "eligible_books",
    "get_last_modified",
    "get_sitemap_books",
    "has_site_map_url",
    "newest_last_modified",
    "register_view",
    "resolve_views",
    "traverse_pages_any_order",
    "traverse_pages_depth_first",
]
