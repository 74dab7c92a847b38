from __future__ import annotations


class SiteMapError(Exception):
    pass


class TraversalError(SiteMapError):
    """Raised by a content source or view while a page is being visited."""


class ConcurrencyError(SiteMapError):
    """A worker task was cancelled or interrupted."""


class DiscoveryCancelled(ConcurrencyError):
    pass


class ParseError(SiteMapError, ValueError):
    def __init__(self, message: str, *, source: str, line: int | None = None):
        self.source = source
        self.line = line
        where = source if line is None else f"{source}:{line}"
        super().__init__(f"{where}: {message}")
