from .external import load_external_entries, parse_external_entries
from .render import (
    INDEX_PATH,
    ROBOTS_PATH,
    index_last_modified,
    merge_index_entries,
    render_robots_txt,
    render_sitemap_index,
    render_urlset,
)

__all__ = [
    "INDEX_PATH",
    "ROBOTS_PATH",
    "index_last_modified",
    "load_external_entries",
    "merge_index_entries",
    "parse_external_entries",
    "render_robots_txt",
    "render_sitemap_index",
    "render_urlset",
]
