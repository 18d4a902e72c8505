"""High-level orchestration for rendering literate chapters into HTML pages.

This module coordinates the per-chapter pipeline: parse the literate source,
evaluate its code blocks in a session scoped to that chapter, substitute the
captured output after each block, convert the expanded markdown to HTML,
and write the themed page. It exposes :class:`ChapterGenerator`, which
consumes a :class:`~chapter_pages.config.BookConfig` and writes one
``<slug>.html`` page per chapter plus a build manifest.

Example
-------
>>> from pathlib import Path
>>> from chapter_pages.config import load_book_config
>>> from chapter_pages.generator import ChapterGenerator
>>> book = load_book_config(Path("book.yaml"))  # doctest: +SKIP
>>> ChapterGenerator(book).run()  # doctest: +SKIP
[PosixPath('public/01-intro.html'), ...]
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from chapter_pages._constants import BUILD_MANIFEST
from chapter_pages.discovery import ChapterSource, discover_chapters
from chapter_pages.engines import DocumentSession, FigureWriter
from chapter_pages.generator.knitter import knit
from chapter_pages.generator.link_rewriter import build_link_rewriter
from chapter_pages.generator.models import RenderedChapter
from chapter_pages.generator.renderer import (
    Converter,
    MarkdownConverter,
    PandocConverter,
)
from chapter_pages.literate import parse_document

if typ.TYPE_CHECKING:
    from chapter_pages.config import BookConfig

logger = logging.getLogger(__name__)


class ChapterGenerator:
    """Evaluate literate chapters and emit themed HTML pages."""

    def __init__(
        self,
        book: BookConfig,
        *,
        templates_dir: Path | None = None,
        output_dir: Path | None = None,
        standalone: bool = False,
    ) -> None:
        """Initialize the generator with configuration and template context.

        Parameters
        ----------
        book : BookConfig
            Book configuration describing sources, output, and converter.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package templates.
        output_dir : Path, optional
            Override for the HTML output directory; defaults to the book config.
        standalone : bool, optional
            Render pages without a link to the book index, for single files.

        Raises
        ------
        FileNotFoundError
            If the pandoc converter is configured but ``pandoc`` is missing.
        """
        self.book = book
        self.output_dir = output_dir or book.output_dir
        self.standalone = standalone
        default_templates = Path(__file__).resolve().parents[1] / "templates"
        self.templates_dir = templates_dir or default_templates
        self._pandoc = (
            PandocConverter(book.pandoc_path) if book.converter == "pandoc" else None
        )
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("chapter_page.jinja")

    def run(
        self,
        chapters: list[ChapterSource] | None = None,
        *,
        only: str | None = None,
    ) -> list[Path]:
        """Render every chapter into a themed HTML page on disk.

        Parameters
        ----------
        chapters : list[ChapterSource], optional
            Chapters of the book; defaults to every discovered chapter. Links
            and navigation cover exactly these chapters.
        only : str, optional
            Slug of the single chapter to render. The build manifest is only
            written when every chapter is rendered.

        Returns
        -------
        list[Path]
            Paths to the generated HTML pages in reading order, followed by
            the build manifest when every chapter was rendered.

        Notes
        -----
        Side effects include writing HTML pages, figure images, and the build
        manifest into the output directory.
        """
        if chapters is None:
            chapters = discover_chapters(self.book)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        page_map = self._page_map(chapters)

        written: list[Path] = []
        rendered: list[RenderedChapter] = []
        for position, chapter in enumerate(chapters):
            if only is not None and chapter.slug != only:
                continue
            result = self.render_chapter(chapter, page_map=page_map)
            previous = chapters[position - 1] if position > 0 else None
            following = None
            if position + 1 < len(chapters):
                following = chapters[position + 1]
            path = self.write_page(
                result, chapters, previous=previous, following=following
            )
            written.append(path)
            rendered.append(result)
        if only is None:
            written.append(self._write_manifest(rendered))
        return written

    def render_chapter(
        self,
        chapter: ChapterSource,
        *,
        page_map: typ.Mapping[str, str] | None = None,
    ) -> RenderedChapter:
        """Evaluate ``chapter`` and convert it to an HTML fragment.

        Each chapter gets a fresh :class:`DocumentSession` which is closed
        once the chapter is rendered. The chapter's figure folder is cleared
        first so stale images never survive a rebuild.
        """
        text = chapter.path.read_text(encoding="utf-8")
        document = parse_document(text, option_defaults=self.book.chunk_options)
        figures_dir = self._figures_dir(chapter)
        if figures_dir.exists():
            shutil.rmtree(figures_dir)

        with DocumentSession(
            FigureWriter(figures_dir),
            commands=self.book.engines,
            cwd=chapter.path.parent,
        ) as session:
            woven = knit(document, session, page_dir=self.output_dir)

        html = self._converter_for(chapter, page_map or {}).markdown(woven.markdown)
        if woven.failed_blocks:
            logger.warning(
                "%s: %d block(s) failed: %s",
                chapter.path.name,
                len(woven.failed_blocks),
                ", ".join(woven.failed_blocks),
            )
        return RenderedChapter(
            chapter=chapter,
            markdown=woven.markdown,
            html=html,
            figures=woven.figures,
            failed_blocks=woven.failed_blocks,
        )

    def write_page(
        self,
        rendered: RenderedChapter,
        chapters: list[ChapterSource],
        *,
        previous: ChapterSource | None = None,
        following: ChapterSource | None = None,
    ) -> Path:
        """Render the page template around ``rendered`` and write it to disk."""
        chapter = rendered.chapter
        index_href = None
        if not self.standalone:
            index_output = self.book.resolve_index_output(self.output_dir)
            index_href = self._relative(index_output)
        context = {
            "book": self.book,
            "theme": self.book.theme,
            "chapter": chapter,
            "chapters": chapters,
            "content_html": rendered.html,
            "previous": previous,
            "following": following,
            "index_href": index_href,
            "pygments_css": self._stylesheet(),
            "html_title": f"{chapter.title} | {self.book.title}",
        }
        html = self.template.render(**context)
        if not html.endswith("\n"):
            html += "\n"
        output_path = self.output_dir / chapter.page_name
        output_path.write_text(html, encoding="utf-8")
        logger.info("rendered %s -> %s", chapter.path.name, output_path)
        return output_path

    def _converter_for(
        self, chapter: ChapterSource, page_map: typ.Mapping[str, str]
    ) -> Converter:
        """Return the configured converter, wired for links from ``chapter``."""
        if self._pandoc is not None:
            return self._pandoc
        current = self._source_key(chapter)
        return MarkdownConverter(
            self.book.pygments_style,
            link_extension=build_link_rewriter(page_map, current=current),
        )

    def _stylesheet(self) -> str:
        if self._pandoc is not None:
            return self._pandoc.stylesheet
        return MarkdownConverter(self.book.pygments_style).stylesheet

    def _page_map(self, chapters: list[ChapterSource]) -> dict[str, str]:
        """Map each chapter's source path to its generated page filename."""
        return {self._source_key(chapter): chapter.page_name for chapter in chapters}

    def _source_key(self, chapter: ChapterSource) -> str:
        try:
            return chapter.path.relative_to(self.book.source_dir).as_posix()
        except ValueError:
            return chapter.path.name

    def _figures_dir(self, chapter: ChapterSource) -> Path:
        return self.output_dir / self.book.figures_dir / chapter.slug

    def _relative(self, target: Path) -> str:
        """Return ``target`` as a POSIX path relative to the output directory."""
        return Path(os.path.relpath(target, self.output_dir)).as_posix()

    def _write_manifest(self, rendered: list[RenderedChapter]) -> Path:
        """Persist the build manifest listing pages and figures per chapter."""
        entries = [
            {
                "slug": result.chapter.slug,
                "title": result.chapter.title,
                "source": result.chapter.path.name,
                "page": result.chapter.page_name,
                "figures": [self._relative(path) for path in result.figures],
                "failed_blocks": result.failed_blocks,
            }
            for result in rendered
        ]
        path = self.output_dir / BUILD_MANIFEST
        payload = {"title": self.book.title, "chapters": entries}
        text = json.dumps(payload, indent=2, sort_keys=True) + "\n"
        path.write_text(text, encoding="utf-8")
        return path


__all__ = ["ChapterGenerator"]
