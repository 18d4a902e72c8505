"""Discover and order the literate chapter sources of a book.

Chapters are the files in the configured source directory that match the
book's glob patterns. Files whose name starts with ``_`` are partials and
chapters whose front matter sets ``draft: true`` are skipped. An explicit
``chapters`` list in ``book.yaml`` fixes the leading order; everything else
follows by front-matter ``weight`` and then filename.

Example
-------
>>> from chapter_pages.discovery import chapter_from_text
>>> from pathlib import Path
>>> chapter_from_text(Path("01-intro.Rmd"), "# Getting started\\n").title
'Getting started'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ
from pathlib import Path

from .literate import parse_document

if typ.TYPE_CHECKING:
    from .config import BookConfig

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True)
class ChapterSource:
    """A literate source file discovered in the manuscript directory.

    Attributes
    ----------
    path : Path
        Location of the literate source file.
    slug : str
        URL-safe identifier; the page is written to ``<slug>.html``.
    title : str
        Chapter title from front matter, the first heading, or the filename.
    weight : int
        Ordering hint from front matter; lower sorts first.
    description : str
        Optional summary shown on the book index.
    front_matter : dict[str, Any]
        Raw front-matter mapping.
    """

    path: Path
    slug: str
    title: str
    weight: int = 0
    description: str = ""
    front_matter: dict[str, typ.Any] = dc.field(default_factory=dict)

    @property
    def page_name(self) -> str:
        """Return the filename of the generated HTML page."""
        return f"{self.slug}.html"


def _slugify(value: str) -> str:
    """Convert a filename stem into a lowercase hyphen-separated slug."""
    slug = re.sub(r"[^a-z0-9_]+", "-", value.lower()).strip("-")
    return slug or "chapter"


def _unique_slug(base: str, used: set[str]) -> str:
    """Generate a unique slug, appending numeric suffixes when needed."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def _coerce_weight(value: object) -> int:
    try:
        return int(typ.cast("typ.Any", value))
    except (TypeError, ValueError):
        return 0


def chapter_from_text(path: Path, text: str) -> ChapterSource:
    """Build chapter metadata from a source path and its contents."""
    document = parse_document(text)
    meta = document.front_matter
    title = document.title or path.stem.replace("-", " ").replace("_", " ").title()
    return ChapterSource(
        path=path,
        slug=_slugify(str(meta.get("slug") or path.stem)),
        title=title,
        weight=_coerce_weight(meta.get("weight", 0)),
        description=str(meta.get("description") or "").strip(),
        front_matter=meta,
    )


def chapter_from_path(path: Path) -> ChapterSource:
    """Read ``path`` and return its chapter metadata.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    """
    return chapter_from_text(path, path.read_text(encoding="utf-8"))


def discover_chapters(book: BookConfig) -> list[ChapterSource]:
    """Return the book's chapters in reading order.

    Parameters
    ----------
    book : BookConfig
        Configuration naming the source directory, patterns, and explicit
        chapter order.

    Returns
    -------
    list[ChapterSource]
        Ordered chapters with unique slugs.

    Raises
    ------
    FileNotFoundError
        If the source directory or a chapter named in ``chapter_order`` does
        not exist.
    """
    if not book.source_dir.is_dir():
        msg = f"Source directory '{book.source_dir}' not found."
        raise FileNotFoundError(msg)

    found: dict[str, Path] = {}
    for pattern in book.patterns:
        for path in sorted(book.source_dir.glob(pattern)):
            if path.is_file() and not path.name.startswith("_"):
                found.setdefault(path.name, path)

    ordered: list[ChapterSource] = []
    for name in book.chapter_order:
        path = found.pop(name, None) or book.source_dir / name
        if not path.exists():
            msg = f"Chapter '{name}' listed in the book config was not found."
            raise FileNotFoundError(msg)
        ordered.append(chapter_from_path(path))

    remaining = [chapter_from_path(path) for path in found.values()]
    remaining.sort(key=lambda chapter: (chapter.weight, chapter.path.name))
    chapters: list[ChapterSource] = []
    used: set[str] = set()
    if book.index_output.parent == book.output_dir:
        # Chapter pages must not overwrite the table of contents.
        used.add(book.index_output.stem)
    for chapter in [*ordered, *remaining]:
        if chapter.front_matter.get("draft") is True:
            logger.info("skipping draft chapter %s", chapter.path.name)
            continue
        chapter.slug = _unique_slug(chapter.slug, used)
        chapters.append(chapter)
    return chapters


__all__ = [
    "ChapterSource",
    "chapter_from_path",
    "chapter_from_text",
    "discover_chapters",
]
