"""Shared fixtures for building small literate books on disk."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

INTRO_CHAPTER = """---
title: Introduction
description: Where the analysis starts.
---
A

```{python}
1+1
```

B

```{python setup, include=FALSE}
intro_value = 41
```
"""

MODELS_CHAPTER = """# Models

Read [the introduction](01-intro.Rmd#top) first.

```{python broken}
intro_value + 1
```

```{python}
print("recovered")
```
"""


class BookFactory(typ.Protocol):
    def __call__(
        self,
        chapters: dict[str, str] | None = None,
        *,
        book: str = "",
        defaults: str = "",
    ) -> Path: ...


@pytest.fixture
def write_book(tmp_path: Path) -> BookFactory:
    """Return a factory writing ``book.yaml`` plus chapter sources under tmp_path.

    Extra YAML lines may be supplied for the ``book`` and ``defaults``
    sections; each line must already be indented by two spaces.
    """

    def _write(
        chapters: dict[str, str] | None = None,
        *,
        book: str = "",
        defaults: str = "",
    ) -> Path:
        content = tmp_path / "content"
        content.mkdir(exist_ok=True)
        sources = (
            {"01-intro.Rmd": INTRO_CHAPTER, "02-models.Rmd": MODELS_CHAPTER}
            if chapters is None
            else chapters
        )
        for name, text in sources.items():
            (content / name).write_text(text, encoding="utf-8")
        config_path = tmp_path / "book.yaml"
        config_path.write_text(
            "book:\n"
            "  title: Practical Analysis\n"
            "  source_dir: content\n"
            f"{book}"
            "defaults:\n"
            "  output_dir: public\n"
            f"{defaults}"
            "theme:\n"
            "  site_name: Test Shelf\n"
            "  tagline: Worked examples\n",
            encoding="utf-8",
        )
        return config_path

    return _write
