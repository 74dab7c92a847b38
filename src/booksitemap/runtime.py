from __future__ import annotations

import os

_DEFAULT_JOBS = 4
_MAX_JOBS = 64
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _read_positive_int_env(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return min(value, _MAX_JOBS)


def _read_bool_env(name: str, default: bool) -> bool:
    raw = (os.environ.get(name) or "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def get_jobs(default: int | None = None) -> int:
    fallback = _DEFAULT_JOBS if default is None else max(1, min(default, _MAX_JOBS))
    return _read_positive_int_env("BOOKSITEMAP_JOBS", fallback)


def get_concurrent_subrequests(default: bool = True) -> bool:
    return _read_bool_env("BOOKSITEMAP_CONCURRENT", default)
