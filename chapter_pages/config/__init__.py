"""Load and validate book configuration YAML for chapter builds.

This subpackage parses the project's ``book.yaml`` file, applies defaults for
output locations, converters, and chunk options, and produces typed
dataclasses (:class:`BookConfig`, :class:`ThemeConfig`) that the chapter
generator consumes. The primary entry point is :func:`load_book_config`.

Examples
--------
>>> from pathlib import Path
>>> from chapter_pages.config import load_book_config
>>> book = load_book_config(Path("book.yaml"))  # doctest: +SKIP
>>> book.converter  # doctest: +SKIP
'markdown'
"""

from .loader import load_book_config
from .models import CONVERTERS, BookConfig, BookConfigError, ThemeConfig

__all__ = [
    "CONVERTERS",
    "BookConfig",
    "BookConfigError",
    "ThemeConfig",
    "load_book_config",
]
