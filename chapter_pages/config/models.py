"""Typed dataclasses describing book build configuration."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from chapter_pages._constants import DEFAULT_SOURCE_PATTERNS

CONVERTERS = ("markdown", "pandoc")


class BookConfigError(ValueError):
    """Raised when the book configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class ThemeConfig:
    """Visual theming applied to generated chapter pages."""

    site_name: str = "Chapter Pages"
    tagline: str = ""
    contents_label: str = "Contents"
    footer_note: str = ""


@dc.dataclass(slots=True)
class BookConfig:
    """A fully resolved book definition sourced from YAML config.

    Attributes
    ----------
    title : str
        Book title shown on every page.
    source_dir : Path
        Directory holding the literate chapter sources.
    patterns : list[str]
        Glob patterns selecting chapter sources within ``source_dir``.
    chapter_order : list[str]
        Source filenames rendered first, in this order.
    output_dir : Path
        Directory receiving chapter pages.
    index_output : Path
        Path of the generated table of contents page.
    figures_dir : str
        Folder under ``output_dir`` holding per-chapter figure folders.
    pygments_style : str
        Pygments style for highlighted code.
    converter : str
        ``"markdown"`` (Python-Markdown) or ``"pandoc"``.
    pandoc_path : str
        Executable used by the pandoc converter.
    chunk_options : dict[str, object]
        Book-wide chunk option defaults.
    engines : dict[str, list[str]]
        Commands used to evaluate non-Python languages.
    theme : ThemeConfig
        Page chrome labels.
    """

    title: str
    source_dir: Path
    patterns: list[str] = dc.field(
        default_factory=lambda: list(DEFAULT_SOURCE_PATTERNS)
    )
    chapter_order: list[str] = dc.field(default_factory=list)
    output_dir: Path = Path("public")
    index_output: Path = Path("public/index.html")
    figures_dir: str = "figures"
    pygments_style: str = "monokai"
    converter: str = "markdown"
    pandoc_path: str = "pandoc"
    chunk_options: dict[str, typ.Any] = dc.field(default_factory=dict)
    engines: dict[str, list[str]] | None = None
    theme: ThemeConfig = dc.field(default_factory=ThemeConfig)

    def resolve_index_output(self, output_dir: Path | None = None) -> Path:
        """Return the index page path, following an output directory override."""
        if (
            output_dir is not None
            and output_dir != self.output_dir
            and self.index_output.parent == self.output_dir
        ):
            return output_dir / self.index_output.name
        return self.index_output


__all__ = ["CONVERTERS", "BookConfig", "BookConfigError", "ThemeConfig"]
