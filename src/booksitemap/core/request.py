from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field, replace
from urllib.parse import quote, urlsplit

from ..errors import DiscoveryCancelled

# RFC 3986 reserved and unreserved characters, plus existing escapes
_SAFE_URL_CHARS = "/:@!$&'()*+,;=?#[]-._~%"
_STRAY_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class DiscoveryRequest:
    """
    Read-only view of one discovery request.

    ``concurrent`` is the caller's decision on whether per-book work may be
    fanned out to the worker pool. ``cancelled`` is shared by every snapshot
    derived from the request, so setting it reaches in-flight traversals.
    """

    base_url: str = "http://localhost"
    concurrent: bool = True
    cancelled: threading.Event = field(
        default_factory=threading.Event, compare=False, repr=False
    )

    def subrequest(self) -> "DiscoveryRequest":
        return replace(self)

    def cancel(self) -> None:
        self.cancelled.set()

    def check_cancelled(self) -> None:
        if self.cancelled.is_set():
            raise DiscoveryCancelled("Discovery request was cancelled")

    def absolute_url(self, path: str) -> str:
        path = _STRAY_PERCENT_RE.sub("%25", path)
        if urlsplit(path).scheme:
            return quote(path, safe=_SAFE_URL_CHARS)
        base = self.base_url.rstrip("/")
        if not path.startswith("/"):
            path = "/" + path
        return base + quote(path, safe=_SAFE_URL_CHARS)
