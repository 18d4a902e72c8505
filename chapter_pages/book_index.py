"""Build and render the book's table of contents page.

This module takes a :class:`~chapter_pages.config.BookConfig` and the ordered
chapter list and produces ``public/index.html`` (or the configured
``index_output``) linking every chapter page in reading order.

Typical usage pairs the loader with chapter discovery:

>>> from pathlib import Path
>>> from chapter_pages.config import load_book_config
>>> from chapter_pages.discovery import discover_chapters
>>> from chapter_pages.book_index import BookIndexBuilder
>>> book = load_book_config(Path("book.yaml"))  # doctest: +SKIP
>>> BookIndexBuilder(book, discover_chapters(book)).run()  # doctest: +SKIP
PosixPath('public/index.html')

The builder reads Jinja templates from ``chapter_pages/templates`` by default
and writes UTF-8 encoded HTML. The page carries no timestamps so unchanged
books rebuild to identical bytes.
"""

from __future__ import annotations

import os
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from .config import BookConfig
    from .discovery import ChapterSource


class BookIndexBuilder:
    """Render a landing page enumerating the book's chapters."""

    def __init__(
        self,
        book: BookConfig,
        chapters: list[ChapterSource],
        *,
        templates_dir: Path | None = None,
        output_dir: Path | None = None,
    ) -> None:
        """Initialize the book index builder.

        Parameters
        ----------
        book : BookConfig
            Parsed book configuration.
        chapters : list[ChapterSource]
            Chapters in reading order.
        templates_dir : Path, optional
            Directory containing the Jinja templates. Defaults to the
            ``chapter_pages/templates`` directory when ``None``.
        output_dir : Path, optional
            Directory holding the chapter pages when it differs from the
            configured ``output_dir``.
        """
        self.book = book
        self.chapters = chapters
        self.pages_dir = output_dir or book.output_dir
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("book_index.jinja")

    @property
    def output_path(self) -> Path:
        """Return where the index is written, following an output override."""
        return self.book.resolve_index_output(self.pages_dir)

    def run(self) -> Path:
        """Render the table of contents HTML file and return its path."""
        output_path = self.output_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        context = {
            "book": self.book,
            "theme": self.book.theme,
            "entries": self._gather_entries(output_path.parent),
        }
        html = self.template.render(**context)
        if not html.endswith("\n"):
            html += "\n"
        output_path.write_text(html, encoding="utf-8")
        return output_path

    def _gather_entries(self, index_dir: Path) -> list[dict[str, typ.Any]]:
        """Collect the chapter entries rendered into the index."""
        entries: list[dict[str, typ.Any]] = []
        for number, chapter in enumerate(self.chapters, start=1):
            page = self.pages_dir / chapter.page_name
            entries.append(
                {
                    "number": number,
                    "title": chapter.title,
                    "description": chapter.description,
                    "href": Path(os.path.relpath(page, index_dir)).as_posix(),
                    "slug": chapter.slug,
                }
            )
        return entries


__all__ = ["BookIndexBuilder"]
