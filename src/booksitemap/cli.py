import logging
import os
import sys

import click
from pyperclip import PyperclipException
from pyperclip import copy as copy_to_clipboard

from .app import SiteMapApp
from .config import load_site_config
from .core.request import DiscoveryRequest
from .errors import SiteMapError
from .manifest.render import (
    render_robots_txt,
    render_sitemap_index,
    render_urlset,
)
from .runtime import get_concurrent_subrequests

DEFAULT_CONFIG = "sitemap.yaml"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="[%(name)s] %(message)s",
    )


def _open_app(ctx: click.Context) -> tuple[SiteMapApp, DiscoveryRequest]:
    obj = ctx.obj
    if "app" in obj:
        return obj["app"], obj["request"]
    config_path = obj["config_path"]
    if not os.path.exists(config_path):
        raise click.ClickException(f"Configuration not found: {config_path}")
    try:
        config = load_site_config(config_path)
        app = SiteMapApp.from_config(
            config,
            jobs=obj["jobs"],
            include_installed=obj["include_installed"],
        )
    except (SiteMapError, ValueError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.call_on_close(app.close)

    concurrent = obj["concurrent"]
    if concurrent is None:
        concurrent = get_concurrent_subrequests(config.concurrent)
    request = DiscoveryRequest(
        base_url=obj["base_url"] or config.base_url,
        concurrent=concurrent,
    )
    obj["app"], obj["request"] = app, request
    return app, request


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-c",
    "--config",
    "config_path",
    default=DEFAULT_CONFIG,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Site configuration (YAML).",
)
@click.option("--base-url", default=None, help="Override config 'base-url'.")
@click.option(
    "--concurrent/--sequential",
    default=None,
    help="Allow or forbid fanning per-book work out to the worker pool.",
)
@click.option("-j", "--jobs", type=click.IntRange(min=1), help="Worker pool size.")
@click.option(
    "--no-installed",
    "include_installed",
    is_flag=True,
    flag_value=False,
    default=True,
    help="Ignore sitemap entries shipped by installed packages.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log discovery to stderr.")
@click.option(
    "--copy",
    is_flag=True,
    help="Copy output to clipboard instead of printing to console.",
)
@click.option(
    "--write-file",
    type=click.Path(),
    help="Optional output file path (overrides clipboard/console output).",
)
@click.pass_context
def cli(
    ctx,
    config_path,
    base_url,
    concurrent,
    jobs,
    include_installed,
    verbose,
    copy,
    write_file,
):
    """
    booksitemap - sitemap discovery for book collections
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["base_url"] = base_url
    ctx.obj["concurrent"] = concurrent
    ctx.obj["jobs"] = jobs
    ctx.obj["include_installed"] = include_installed
    ctx.obj["copy"] = copy
    ctx.obj["write_file"] = write_file
    if copy and write_file:
        raise click.BadParameter("--copy and --write-file are mutually exclusive")


@cli.result_callback()
@click.pass_context
def process_output(ctx, subcommand_output, *args, **kwargs):
    """Write command output to a file, the clipboard or the console."""
    if not subcommand_output:
        return
    write_file = ctx.obj.get("write_file")
    if write_file:
        with open(write_file, "w", encoding="utf-8") as f:
            f.write(subcommand_output)
        click.echo(f"Wrote {len(subcommand_output.splitlines())} lines to {write_file}")
    elif ctx.obj.get("copy"):
        try:
            copy_to_clipboard(subcommand_output)
        except PyperclipException as e:
            raise click.ClickException(f"Error copying to clipboard: {e}") from e
        click.echo(f"Copied {len(subcommand_output.splitlines())} lines to clipboard.")
    else:
        click.echo(subcommand_output, nl=False)


@cli.command("index")
@click.pass_context
def index_cmd(ctx):
    """
    Print the sitemap index: one entry per book with indexable pages, plus
    entries shipped by bundles.
    """
    app, request = _open_app(ctx)
    try:
        entries = app.index_entries(request)
    except SiteMapError as exc:
        raise click.ClickException(str(exc)) from exc
    return render_sitemap_index(request, entries)


@cli.command("sitemap")
@click.argument("book")
@click.pass_context
def sitemap_cmd(ctx, book):
    """
    Print the sitemap of BOOK (its name, e.g. '/' or '/docs').
    """
    app, request = _open_app(ctx)
    found = app.library.get_book(book)
    if found is None or not found.eligible:
        raise click.ClickException(f"Book not found: {book}")
    try:
        urls = app.book_urls(request, found)
    except SiteMapError as exc:
        raise click.ClickException(str(exc)) from exc
    return render_urlset(request, urls)


@cli.command("robots")
@click.pass_context
def robots_cmd(ctx):
    """
    Print robots.txt pointing crawlers at the sitemap index.
    """
    app, request = _open_app(ctx)
    if not app.robots_enabled:
        click.echo("Note: static-root already provides robots.txt", err=True)
    return render_robots_txt(request)


@cli.command("books")
@click.pass_context
def books_cmd(ctx):
    """
    List published, accessible books and their last modified times.
    """
    app, request = _open_app(ctx)
    try:
        found = dict(app.sitemap_books(request))
    except SiteMapError as exc:
        raise click.ClickException(str(exc)) from exc
    lines = []
    for book in app.library.books:
        if not book.eligible:
            continue
        if book not in found:
            lines.append(f"{book.name}\t(no indexable pages)")
            continue
        lastmod = found[book]
        lines.append(f"{book.name}\t{lastmod.isoformat() if lastmod else 'unknown'}")
    return "\n".join(lines) + "\n" if lines else ""


def main():
    cli()


if __name__ == "__main__":
    main()
