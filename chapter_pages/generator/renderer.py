"""Converters that turn expanded chapter Markdown into HTML.

Two converters share the :class:`Converter` interface. The default
:class:`MarkdownConverter` runs Python-Markdown with Pygments highlighting
in-process; :class:`PandocConverter` delegates to an installed ``pandoc``.

Example
-------
>>> from chapter_pages.generator.renderer import MarkdownConverter
>>> html = MarkdownConverter().markdown("```output\\n## 2\\n```\\n")
>>> '<div class="codehilite" data-language="output">' in html
True
"""

from __future__ import annotations

import re
import shutil
import subprocess
import typing as typ
from html import escape

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

FENCE_OPEN = re.compile(r"^(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^\n]*)$")
INFO_LANGUAGE = re.compile(r"[A-Za-z0-9_+#.-]+")
HIGHLIGHT_OPEN_TAG = '<div class="codehilite">'
MARKDOWN_EXTENSIONS = ("fenced_code", "codehilite", "tables", "sane_lists")


class Converter(typ.Protocol):
    """Interface shared by Markdown-to-HTML converters."""

    @property
    def stylesheet(self) -> str:
        """Return CSS the converted HTML relies on."""
        ...

    def markdown(self, text: str) -> str:
        """Convert ``text`` into an HTML fragment."""
        ...


def prepare_fences(text: str) -> tuple[str, list[str]]:
    """Left-align fence lines and collect the language of each closed fence.

    Python-Markdown only recognises fences at the margin whose info string is
    a bare language, so openers indented by up to three spaces (as inside
    list items) are dedented and anything after the language is dropped.

    Returns
    -------
    tuple[str, list[str]]
        The normalised text and, in document order, the language of every
        fenced block that is closed (``"text"`` when none is given).
    """
    lines = text.split("\n")
    languages: list[str] = []
    open_fence: str | None = None
    pending = "text"
    for idx, line in enumerate(lines):
        stripped = line.lstrip(" ")
        if len(line) - len(stripped) > 3:
            continue
        if open_fence is not None:
            if stripped.rstrip() == open_fence:
                lines[idx] = open_fence
                languages.append(pending)
                open_fence = None
            continue
        match = FENCE_OPEN.match(stripped)
        if match is None:
            continue
        fence = match.group("fence")
        info = match.group("info")
        if fence.startswith("`") and "`" in info:
            continue
        language = INFO_LANGUAGE.match(info.strip())
        pending = language.group(0) if language else "text"
        lines[idx] = fence + (language.group(0) if language else "")
        open_fence = fence
    return "\n".join(lines), languages


class MarkdownConverter:
    """Convert chapter Markdown with Python-Markdown and Pygments.

    Highlighted blocks are tagged with a ``data-language`` attribute so
    captured output (``output``, ``warning``, ``error``) can be styled apart
    from source code.
    """

    def __init__(
        self, pygments_style: str = "monokai", link_extension: Extension | None = None
    ) -> None:
        """Configure highlighting and optional chapter-link rewriting.

        Parameters
        ----------
        pygments_style : str, optional
            Pygments style for highlighted blocks.
        link_extension : Extension, optional
            Extension rewriting links between chapter sources, or ``None``.
        """
        self.pygments_style = pygments_style
        self.link_extension = link_extension

    @property
    def stylesheet(self) -> str:
        """Return the Pygments CSS scoped to ``.codehilite`` blocks."""
        formatter = HtmlFormatter(style=self.pygments_style, cssclass="codehilite")
        return formatter.get_style_defs(".codehilite")

    def markdown(self, text: str) -> str:
        """Return the HTML fragment for ``text``; blank input gives ``""``."""
        prepared, languages = prepare_fences(text)
        if not prepared.strip():
            return ""
        extensions: list[Extension | str] = list(MARKDOWN_EXTENSIONS)
        if self.link_extension is not None:
            extensions.append(self.link_extension)
        converter = Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "css_class": "codehilite",
                    "guess_lang": False,
                    "linenums": False,
                    "pygments_style": self.pygments_style,
                }
            },
        )
        return _tag_languages(converter.convert(prepared), languages)


def _tag_languages(html: str, languages: list[str]) -> str:
    """Add ``data-language`` to the first ``len(languages)`` highlight wrappers."""
    pieces = html.split(HIGHLIGHT_OPEN_TAG)
    tagged = [pieces[0]]
    for position, piece in enumerate(pieces[1:]):
        if position < len(languages):
            lang = escape(languages[position], quote=True)
            tagged.append(f'<div class="codehilite" data-language="{lang}">{piece}')
        else:
            tagged.append(HIGHLIGHT_OPEN_TAG + piece)
    return "".join(tagged)


class PandocConverter:
    """Convert markdown by piping it through the external ``pandoc`` tool."""

    def __init__(
        self, executable: str = "pandoc", *, extra_args: list[str] | None = None
    ) -> None:
        """Resolve the pandoc executable.

        Raises
        ------
        FileNotFoundError
            If ``executable`` cannot be found on ``PATH``.
        """
        resolved = shutil.which(executable)
        if not resolved:
            msg = f"pandoc is required for this converter ('{executable}' not found)"
            raise FileNotFoundError(msg)
        self.executable = resolved
        self.extra_args = list(extra_args or [])

    @property
    def stylesheet(self) -> str:
        """Pandoc inlines its own highlighting classes; no extra CSS is needed."""
        return ""

    def markdown(self, text: str) -> str:
        """Return pandoc's HTML5 rendering of ``text``."""
        if not text.strip():
            return ""
        completed = subprocess.run(  # noqa: S603
            [
                self.executable,
                "--from",
                "markdown",
                "--to",
                "html5",
                *self.extra_args,
            ],
            input=text,
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = [
    "Converter",
    "MarkdownConverter",
    "PandocConverter",
    "prepare_fences",
]
