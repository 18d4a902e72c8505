"""Render literate book chapters into static HTML pages.

This package exposes the CLI entry points used by ``chapters`` to evaluate
the code blocks embedded in literate chapter sources, splice their output
back into the prose, and write chapter pages plus a table of contents.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from chapter_pages import main
>>> main()  # doctest: +SKIP
>>> from chapter_pages import app
>>> callable(app)
True
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
