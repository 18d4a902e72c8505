"""Cyclopts CLI entrypoint for rendering literate chapters into a static book.

The ``chapters`` console script defined here evaluates the code blocks in
each literate chapter, renders the chapter pages and the table of contents,
and can render a single literate file without a book configuration.
Typical usage involves running ``chapters build`` locally or in CI to
regenerate the whole book.

Examples
--------
Build every chapter for the default configuration:

>>> from chapter_pages.cli import main
>>> main()  # doctest: +SKIP

Rebuild one chapter into a custom directory:

>>> from chapter_pages.cli import app
>>> app.run(
...     ["build", "--chapter", "01-intro", "--output-dir", "dist"]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import json
import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .book_index import BookIndexBuilder
from .config import BookConfig, load_book_config
from .discovery import chapter_from_path, discover_chapters
from .generator import ChapterGenerator

DEFAULT_CONFIG = Path("book.yaml")

app = App(name="chapters", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _configure_logging(verbose: bool) -> None:
    """Send library logging to stderr at INFO when verbose, else WARNING."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


@app.command(help="Render every chapter and the table of contents.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to book config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    chapter: typ.Annotated[
        str | None, Parameter(help="Render only this chapter slug")
    ] = None,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT_DIR"),
    ] = None,
    verbose: bool = False,
) -> None:
    """Build the book described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``book.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    chapter : str or None, optional
        Slug of a single chapter to render; navigation still lists every
        chapter. When ``None`` (default) all chapters are rendered.
    output_dir : Path or None, optional
        Override output directory for pages, figures, and the index.
    verbose : bool, optional
        Log progress at INFO level.

    Raises
    ------
    ValueError
        If ``chapter`` does not match any discovered chapter slug.
    """
    _configure_logging(verbose)
    book = load_book_config(config)
    chapters = discover_chapters(book)
    generator = ChapterGenerator(book, output_dir=output_dir)

    if chapter and all(entry.slug != chapter for entry in chapters):
        available = ", ".join(entry.slug for entry in chapters)
        msg = f"Unknown chapter '{chapter}'. Known chapters: {available}"
        raise ValueError(msg)
    written = generator.run(chapters, only=chapter)

    for path in written:
        print(f"wrote {_format_path(path)}")
    index_path = BookIndexBuilder(book, chapters, output_dir=output_dir).run()
    print(f"wrote {_format_path(index_path)}")


@app.command(help="Render a single literate file to HTML.")
def render(
    source: Path,
    *,
    output: typ.Annotated[
        Path | None, Parameter(help="Output HTML path (defaults beside SOURCE)")
    ] = None,
    pygments_style: str = "monokai",
    verbose: bool = False,
) -> None:
    """Render one literate document without a book configuration.

    Parameters
    ----------
    source : Path
        Literate source file to render.
    output : Path or None, optional
        Destination HTML file; defaults to ``<source stem>.html`` beside the
        source. Figures are written to ``figures/<stem>/`` next to it.
    pygments_style : str, optional
        Pygments style used for highlighting.
    verbose : bool, optional
        Log progress at INFO level.

    Raises
    ------
    FileNotFoundError
        If ``source`` does not exist.
    """
    _configure_logging(verbose)
    chapter = chapter_from_path(source)
    target = output or source.with_suffix(".html")
    chapter.slug = target.stem
    book = BookConfig(
        title=chapter.title,
        source_dir=source.parent,
        output_dir=target.parent,
        pygments_style=pygments_style,
    )
    generator = ChapterGenerator(book, standalone=True)
    target.parent.mkdir(parents=True, exist_ok=True)
    rendered = generator.render_chapter(chapter)
    path = generator.write_page(rendered, [chapter])
    print(f"wrote {_format_path(path)}")


@app.command(name="list", help="Print chapters in reading order.")
def list_chapters(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to book config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    as_json: typ.Annotated[bool, Parameter(name="--json")] = False,
) -> None:
    """Print ``slug<TAB>title`` for each chapter, or a JSON array with ``--json``."""
    book = load_book_config(config)
    chapters = discover_chapters(book)
    if as_json:
        payload = [
            {"slug": entry.slug, "title": entry.title, "source": entry.path.name}
            for entry in chapters
        ]
        print(json.dumps(payload, indent=2))
        return
    for entry in chapters:
        print(f"{entry.slug}\t{entry.title}")


def main() -> None:
    """Invoke the Cyclopts application that powers the `chapters` command.

    Invalid configuration or an unknown chapter slug ends the process with
    the error message and exit status 1.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    try:
        app()
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
