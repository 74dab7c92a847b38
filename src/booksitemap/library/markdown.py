"""Books stored as directories of markdown files linked to each other."""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING, Any

import yaml

from ..core.types import Book, Page, PageRef, coerce_instant
from ..errors import TraversalError

if TYPE_CHECKING:
    from . import Library

_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s#]+)\)")  # ignore anchors/fragments
_MARKDOWN_EXT = ".md"
_INDEX_NAME = "index"
_LASTMOD_KEYS = ("modified", "lastmod", "updated")


def _strip_fenced_code(md: str) -> str:
    """Remove fenced code blocks to avoid false positives in links."""
    out, in_fence = [], False
    for line in md.splitlines():
        if line.lstrip().startswith("```") or line.lstrip().startswith("~~~"):
            in_fence = not in_fence
            continue
        if not in_fence:
            out.append(line)
    return "\n".join(out)


def _extract_local_hrefs(md: str) -> list[str]:
    """Return hrefs that look local (no scheme/mailto), as written."""
    md = _strip_fenced_code(md)
    hrefs = []
    for _text, href in _LINK_RE.findall(md):
        if href.startswith(("http://", "https://", "mailto:")):
            continue
        if href.startswith("#"):
            continue
        if href.startswith("<") and href.endswith(">"):
            href = href[1:-1]
        hrefs.append(href.split("?", 1)[0])
    return hrefs


def _resolve_to_path(href: str, base_dir: str, root_dir: str) -> str | None:
    """Resolve a local href to a markdown file; absolute hrefs are book-relative."""
    if href.startswith("/"):
        target = os.path.join(root_dir, href.lstrip("/"))
    else:
        target = os.path.join(base_dir, href)
    candidates = [target]
    if target.endswith(("/", os.sep)) or os.path.isdir(target):
        candidates = [os.path.join(target, _INDEX_NAME + _MARKDOWN_EXT)]
    elif not target.endswith(_MARKDOWN_EXT):
        candidates = [target + _MARKDOWN_EXT, target]
    for c in candidates:
        c = os.path.abspath(c)
        if c.endswith(_MARKDOWN_EXT) and os.path.isfile(c):
            return c
    return None


def _split_frontmatter(text: str, *, source: str) -> tuple[dict[str, Any], str]:
    """Separate YAML front matter from the body."""
    if not text.lstrip().startswith("---"):
        return {}, text
    lines = text.splitlines()
    if not lines or not lines[0].strip().startswith("---"):
        return {}, text
    end_idx = None
    for i in range(1, min(len(lines), 200)):
        if lines[i].strip() == "---":
            end_idx = i
            break
    if end_idx is None:
        return {}, text
    yaml_text = "\n".join(lines[1:end_idx])
    body = "\n".join(lines[end_idx + 1 :])
    if not yaml_text.strip():
        return {}, body
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as exc:
        raise TraversalError(f"Invalid front matter in {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise TraversalError(f"Front matter in {source} must be a mapping")
    return data, body


class MarkdownSource:
    """
    Pages are ``.md`` files below ``root_dir``.

    ``index.md`` is the page for its directory: ``/`` for the book root and
    ``/guide/`` for ``guide/index.md``; ``guide/intro.md`` is ``/guide/intro``.
    Local markdown links are the page's edges, in document order. Links into
    another book's directory become edges into that book.
    """

    def __init__(self, root_dir: str):
        self.root_dir = os.path.abspath(root_dir)

    def file_path(self, path: str) -> str:
        rel = path.lstrip("/")
        if not rel or rel.endswith("/"):
            rel += _INDEX_NAME + _MARKDOWN_EXT
        else:
            rel += _MARKDOWN_EXT
        return os.path.join(self.root_dir, *rel.split("/"))

    def page_path(self, file_path: str) -> str | None:
        if not file_path.endswith(_MARKDOWN_EXT):
            return None
        try:
            rel = os.path.relpath(file_path, self.root_dir)
        except ValueError:
            return None
        if rel == os.pardir or rel.startswith(os.pardir + os.sep):
            return None
        parts = rel[: -len(_MARKDOWN_EXT)].split(os.sep)
        if parts[-1] == _INDEX_NAME:
            parts[-1] = ""
        return "/" + "/".join(parts)

    def load(self, book: Book, ref: PageRef, library: "Library") -> Page:
        file_path = self.file_path(ref.path)
        if not os.path.isfile(file_path):
            raise TraversalError(f"Page not found: {ref} ({file_path})")
        try:
            with open(file_path, "r", encoding="utf-8") as fh:
                text = fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise TraversalError(f"Unable to read {file_path}: {exc}") from exc

        meta, body = _split_frontmatter(text, source=file_path)
        try:
            lastmod = coerce_instant(
                next((meta[k] for k in _LASTMOD_KEYS if k in meta), None)
            )
        except ValueError as exc:
            raise TraversalError(f"{file_path}: {exc}") from exc

        base_dir = os.path.dirname(file_path)
        children: list[PageRef] = []
        for href in _extract_local_hrefs(body):
            target = _resolve_to_path(href, base_dir, self.root_dir)
            if target is None:
                continue
            child = library.locate(target)
            if child is not None and child != ref and child not in children:
                children.append(child)

        return Page(
            ref=ref,
            last_modified=lastmod,
            allow_robots=bool(meta.get("robots", book.allow_robots)),
            child_refs=tuple(children),
        )
