"""Load book configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    _build_engine_commands,
    _build_theme_config,
    _optional_str,
    _resolve_path,
    _string_list,
)
from .models import CONVERTERS, BookConfig, BookConfigError


def load_book_config(path: Path) -> BookConfig:
    """Load the YAML configuration describing the book and its build output.

    Relative paths in the file are resolved against the directory holding
    the configuration file.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``book.yaml``).

    Returns
    -------
    BookConfig
        Parsed configuration with defaults applied.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    BookConfigError
        If required fields are missing or values are invalid (for example,
        an unknown converter).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from chapter_pages.config import load_book_config
    >>> config = load_book_config(Path("book.yaml"))  # doctest: +SKIP
    >>> config.title  # doctest: +SKIP
    'Data Analysis in Practice'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):  # pragma: no cover - config error guard
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    base_dir = path.resolve().parent
    book = raw.get("book") or {}
    defaults = raw.get("defaults") or {}

    title = _optional_str(book.get("title"))
    if not title:
        msg = "Book configuration is missing 'book.title'."
        raise BookConfigError(msg)

    converter = str(defaults.get("converter", "markdown")).lower()
    if converter not in CONVERTERS:
        known = ", ".join(CONVERTERS)
        msg = f"Unknown converter '{converter}'. Expected one of: {known}"
        raise BookConfigError(msg)

    chunk_options = defaults.get("chunk_options") or {}
    if not isinstance(chunk_options, dict):
        msg = "'defaults.chunk_options' must be a mapping."
        raise BookConfigError(msg)

    output_dir = _resolve_path(base_dir, defaults.get("output_dir", "public"))
    index_raw = defaults.get("index_output")
    index_output = (
        _resolve_path(base_dir, index_raw) if index_raw else output_dir / "index.html"
    )
    patterns = _string_list(book.get("patterns"), field="book.patterns")

    config = BookConfig(
        title=title,
        source_dir=_resolve_path(base_dir, book.get("source_dir", "content")),
        chapter_order=_string_list(book.get("chapters"), field="book.chapters"),
        output_dir=output_dir,
        index_output=index_output,
        figures_dir=str(defaults.get("figures_dir", "figures")),
        pygments_style=str(defaults.get("pygments_style", "monokai")),
        converter=converter,
        pandoc_path=str(defaults.get("pandoc_path", "pandoc")),
        chunk_options=dict(chunk_options),
        engines=_build_engine_commands(defaults.get("engines")),
        theme=_build_theme_config(raw.get("theme")),
    )
    if patterns:
        config.patterns = patterns
    return config


__all__ = ["load_book_config"]
