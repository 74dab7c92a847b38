"""
Page graph traversal.

Pages form a graph rather than a tree: the same page may be reachable through
several parents and links may loop back. Each traversal call keeps its own
visited set so a page is captured and handled at most once per call. Nothing is
remembered between calls.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Iterable, Protocol, TypeVar

from .request import DiscoveryRequest
from .types import Page, PageRef

logger = logging.getLogger(__name__)

T = TypeVar("T")

EdgeProvider = Callable[[Page], Iterable[PageRef]]
EdgeFilter = Callable[[PageRef], bool]


class PageProvider(Protocol):
    def get_page(self, ref: PageRef) -> Page: ...


def child_edges(page: Page) -> Iterable[PageRef]:
    return page.child_refs


def same_book(book: str) -> EdgeFilter:
    def apply_edge(ref: PageRef) -> bool:
        return ref.book == book

    return apply_edge


def traverse_pages_any_order(
    provider: PageProvider,
    request: DiscoveryRequest,
    root: PageRef,
    handler: Callable[[Page], T | None],
    edges: EdgeProvider = child_edges,
    edge_filter: EdgeFilter | None = None,
) -> T | None:
    """
    Visit pages reachable from ``root`` in no particular order.

    The first non-None value returned by ``handler`` ends the traversal and is
    returned. ``None`` means every reachable page was handled without a result.
    """
    visited: set[PageRef] = {root}
    queue: deque[PageRef] = deque([root])
    while queue:
        request.check_cancelled()
        page = provider.get_page(queue.popleft())
        result = handler(page)
        if result is not None:
            return result
        for ref in edges(page):
            if ref in visited:
                continue
            if edge_filter is not None and not edge_filter(ref):
                continue
            visited.add(ref)
            queue.append(ref)
    return None


def traverse_pages_depth_first(
    provider: PageProvider,
    request: DiscoveryRequest,
    root: PageRef,
    handler: Callable[[Page, int], object],
    edges: EdgeProvider = child_edges,
    edge_filter: EdgeFilter | None = None,
) -> None:
    """
    Visit every page reachable from ``root`` exactly once, depth first.

    Children are entered in the order ``edges`` declares them and ``handler``
    runs before a page's children. Its return value is ignored.
    """
    visited: set[PageRef] = {root}

    def enter(ref: PageRef, depth: int) -> tuple[int, Iterable[PageRef]]:
        request.check_cancelled()
        page = provider.get_page(ref)
        handler(page, depth)
        return depth, iter(edges(page))

    stack = [enter(root, 0)]
    while stack:
        depth, children = stack[-1]
        for ref in children:
            if ref in visited:
                continue
            if edge_filter is not None and not edge_filter(ref):
                continue
            visited.add(ref)
            stack.append(enter(ref, depth + 1))
            break
        else:
            stack.pop()
    logger.debug("depth-first traversal from %s visited %d pages", root, len(visited))
