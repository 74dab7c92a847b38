from __future__ import annotations

from typing import Any

import pytest

from booksitemap.core.types import Book, Page, PageRef
from booksitemap.library import InlineSource, Library


class RecordingLibrary:
    """Wraps a library and records every page fetched."""

    def __init__(self, library: Library) -> None:
        self.library = library
        self.fetched: list[PageRef] = []

    def get_page(self, ref: PageRef) -> Page:
        self.fetched.append(ref)
        return self.library.get_page(ref)


def build_library(spec: dict[str, Any]) -> Library:
    """
    ``spec`` maps book names to either a pages mapping or
    ``{"pages": {...}, **book_options}``.
    """
    library = Library()
    for name, value in spec.items():
        options = dict(value) if "pages" in value else {"pages": value}
        pages = options.pop("pages")
        library.add_book(Book(name=name, **options), InlineSource(name, pages))
    return library


@pytest.fixture
def make_library():
    return build_library


@pytest.fixture
def recording():
    return RecordingLibrary


_SITE_FILES = {
    "content/index.md": """---
title: Home
modified: 2024-01-01
---
# Home

- [Guide](guide/)
- [Intro](guide/intro.md)
- [API reference](../api/index.md)
- [Elsewhere](https://example.org/)

```
[Not a link](secret.md)
```
""",
    "content/guide/index.md": """---
modified: 2024-02-01T08:00:00Z
---
Start with the [introduction](intro) or go [home](/).
""",
    "content/guide/intro.md": """---
modified: 2024-03-01
robots: false
---
Back to the [guide](./index.md).
""",
    "content/secret.md": "Only mentioned inside a code block.\n",
    "api/index.md": """---
modified: 2024-04-01
---
See the [handbook](../content/index.md).
""",
    "sitemap.yaml": """config:
  base-url: https://example.com
  concurrent: true
  jobs: 2
  views: [content]
  static-root: public
books:
  - name: /
    dir: content
  - name: /api
    dir: api
  - name: /drafts
    published: false
    pages:
      /: {}
""",
}


@pytest.fixture
def site_dir(tmp_path):
    for rel, text in _SITE_FILES.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    (tmp_path / "public").mkdir()
    return tmp_path
