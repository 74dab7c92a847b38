from pathlib import Path


def _open(config_path: str | Path, jobs: int | None, include_installed: bool):
    from .app import SiteMapApp
    from .config import load_site_config

    config = load_site_config(config_path)
    app = SiteMapApp.from_config(
        config, jobs=jobs, include_installed=include_installed
    )
    return app, config


def _request(config, base_url: str | None, concurrent: bool | None):
    from .core.request import DiscoveryRequest
    from .runtime import get_concurrent_subrequests

    if concurrent is None:
        concurrent = get_concurrent_subrequests(config.concurrent)
    return DiscoveryRequest(base_url=base_url or config.base_url, concurrent=concurrent)


def index(
    config_path: str | Path,
    *,
    base_url: str | None = None,
    concurrent: bool | None = None,
    jobs: int | None = None,
    include_installed: bool = True,
) -> str:
    from .manifest.render import render_sitemap_index

    app, config = _open(config_path, jobs, include_installed)
    with app:
        request = _request(config, base_url, concurrent)
        return render_sitemap_index(request, app.index_entries(request))


def sitemap(
    config_path: str | Path,
    book: str,
    *,
    base_url: str | None = None,
    include_installed: bool = True,
) -> str | None:
    from .manifest.render import render_urlset

    app, config = _open(config_path, None, include_installed)
    with app:
        found = app.library.get_book(book)
        if found is None or not found.eligible:
            return None
        request = _request(config, base_url, None)
        return render_urlset(request, app.book_urls(request, found))


def robots(config_path: str | Path, *, base_url: str | None = None) -> str:
    from .config import load_site_config
    from .manifest.render import render_robots_txt

    config = load_site_config(config_path)
    return render_robots_txt(_request(config, base_url, None))


__all__ = [
    "index",
    "sitemap",
    "robots",
]
