"""
Sitemap entries shipped by other bundles.

A bundle is a directory, an installed package registered under the
``booksitemap.bundles`` entry point group, or an http(s) URL. Directories and
packages contribute their ``sitemap-index.xml`` resource when they have one.
The resource is read line by line: every ``<sitemap>`` block must hold one
``<loc>`` and one ``<lastmod>`` before its closing tag. Everything else on
other lines is ignored.
"""

from __future__ import annotations

import logging
import os
import re
from importlib import metadata, resources
from typing import Iterable, Sequence
from xml.sax.saxutils import unescape

import requests

from ..core.types import SiteMapUrl, coerce_instant
from ..errors import ParseError, SiteMapError

logger = logging.getLogger(__name__)

RESOURCE_NAME = "sitemap-index.xml"
ENTRY_POINT_GROUP = "booksitemap.bundles"
FETCH_TIMEOUT = 30

_OPEN_RE = re.compile(r"^<sitemap>$")
_CLOSE_RE = re.compile(r"^</sitemap>$")
_LOC_RE = re.compile(r"^<loc>(.*)</loc>$")
_LASTMOD_RE = re.compile(r"^<lastmod>(.*)</lastmod>$")


def parse_external_entries(lines: Iterable[str], *, source: str) -> list[SiteMapUrl]:
    entries: list[SiteMapUrl] = []
    in_sitemap = False
    loc: str | None = None
    lastmod: str | None = None
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if _OPEN_RE.match(line):
            if in_sitemap:
                raise ParseError("nested <sitemap>", source=source, line=lineno)
            in_sitemap, loc, lastmod = True, None, None
            continue
        match = _LOC_RE.match(line)
        if match:
            if not in_sitemap:
                raise ParseError("<loc> outside <sitemap>", source=source, line=lineno)
            if loc is not None:
                raise ParseError("duplicate <loc>", source=source, line=lineno)
            loc = unescape(match.group(1).strip())
            continue
        match = _LASTMOD_RE.match(line)
        if match:
            if not in_sitemap:
                raise ParseError(
                    "<lastmod> outside <sitemap>", source=source, line=lineno
                )
            if lastmod is not None:
                raise ParseError("duplicate <lastmod>", source=source, line=lineno)
            lastmod = unescape(match.group(1).strip())
            continue
        if _CLOSE_RE.match(line):
            if not in_sitemap:
                raise ParseError("unexpected </sitemap>", source=source, line=lineno)
            if not loc:
                raise ParseError("<loc> not found", source=source, line=lineno)
            if not lastmod:
                raise ParseError("<lastmod> not found", source=source, line=lineno)
            try:
                instant = coerce_instant(lastmod)
            except ValueError as exc:
                raise ParseError(str(exc), source=source, line=lineno) from exc
            entries.append(SiteMapUrl(loc, instant, absolute=True))
            in_sitemap = False
    if in_sitemap:
        raise ParseError("unterminated <sitemap>", source=source)
    return entries


def _is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def _fetch_resource(url: str, session: requests.Session | None) -> str:
    getter = session.get if session is not None else requests.get
    try:
        response = getter(url, timeout=FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise SiteMapError(f"Unable to fetch {url}: {exc}") from exc
    return response.text


def _bundle_resource(bundle: str, base_dir: str) -> tuple[str, str] | None:
    path = bundle if os.path.isabs(bundle) else os.path.join(base_dir, bundle)
    if os.path.isdir(path):
        path = os.path.join(path, RESOURCE_NAME)
        if not os.path.isfile(path):
            return None
    elif not os.path.isfile(path):
        raise SiteMapError(f"Bundle not found: {bundle}")
    with open(path, "r", encoding="utf-8") as fh:
        return path, fh.read()


def _installed_resources() -> list[tuple[str, str]]:
    found = []
    for entry_point in metadata.entry_points(group=ENTRY_POINT_GROUP):
        resource = resources.files(entry_point.value).joinpath(RESOURCE_NAME)
        if resource.is_file():
            found.append(
                (f"{entry_point.value}/{RESOURCE_NAME}", resource.read_text("utf-8"))
            )
    return found


def load_external_entries(
    bundles: Sequence[str] = (),
    *,
    base_dir: str = ".",
    include_installed: bool = True,
    session: requests.Session | None = None,
) -> list[SiteMapUrl]:
    """Scan every bundle for its resource; malformed resources are fatal."""
    texts: list[tuple[str, str]] = []
    for bundle in bundles:
        if _is_http_url(bundle):
            texts.append((bundle, _fetch_resource(bundle, session)))
            continue
        found = _bundle_resource(bundle, base_dir)
        if found is not None:
            texts.append(found)
    if include_installed:
        texts.extend(_installed_resources())

    entries: list[SiteMapUrl] = []
    for source, text in texts:
        parsed = parse_external_entries(text.splitlines(), source=source)
        logger.debug("loaded %d external entries from %s", len(parsed), source)
        entries.extend(parsed)
    return entries
