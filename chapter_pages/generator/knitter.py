r"""Evaluate a literate document and splice block output into its Markdown.

The knitter walks a :class:`~chapter_pages.literate.LiterateDocument` in
order. Prose segments pass through untouched; every code block is executed
against the document's session and replaced by its (optionally hidden)
source fence followed by its captured output. Failed blocks always leave an
``error`` fence at their position, and later blocks keep running.

Example
-------
>>> from chapter_pages.engines import DocumentSession
>>> from chapter_pages.generator.knitter import knit
>>> from chapter_pages.literate import parse_document
>>> doc = parse_document("A\n\n```{python}\n1+1\n```\n\nB\n")
>>> with DocumentSession() as session:
...     woven = knit(doc, session)
>>> print(woven.markdown)
A
<BLANKLINE>
<BLANKLINE>
```python
1+1
```
<BLANKLINE>
```output
## 2
```
<BLANKLINE>
<BLANKLINE>
B
<BLANKLINE>
"""

from __future__ import annotations

import dataclasses as dc
import logging
import os
import re
import typing as typ
from pathlib import Path

from chapter_pages._constants import ERROR_LANGUAGE, OUTPUT_LANGUAGE, WARNING_LANGUAGE
from chapter_pages.engines import BlockResult
from chapter_pages.literate import CodeBlock, ProseSegment

if typ.TYPE_CHECKING:
    from chapter_pages.engines import Engine, OutputItem
    from chapter_pages.literate import LiterateDocument

logger = logging.getLogger(__name__)

BACKTICK_RUN = re.compile(r"`+")


@dc.dataclass(slots=True)
class WovenDocument:
    """Expanded markdown plus the per-block results that produced it."""

    markdown: str
    results: list[tuple[CodeBlock, BlockResult]]

    @property
    def figures(self) -> list[Path]:
        """Return every image path written by the document's blocks."""
        return [
            item.path
            for _block, result in self.results
            for item in result.items
            if item.kind == "image" and item.path is not None
        ]

    @property
    def failed_blocks(self) -> list[str]:
        """Return labels of blocks that produced an error."""
        return [block.label for block, result in self.results if result.failed]


def knit(
    document: LiterateDocument, session: Engine, *, page_dir: Path | None = None
) -> WovenDocument:
    """Execute ``document``'s blocks in order and return the expanded markdown.

    Parameters
    ----------
    document : LiterateDocument
        Parsed literate source.
    session : Engine
        Evaluation session scoped to this document.
    page_dir : Path, optional
        Directory the final page is written to; image references are made
        relative to it. Defaults to the current directory.

    Returns
    -------
    WovenDocument
        Markdown in which each block is followed by its output, plus the
        results keyed by block.
    """
    base = page_dir or Path()
    parts: list[str] = []
    results: list[tuple[CodeBlock, BlockResult]] = []
    for segment in document.segments:
        if isinstance(segment, ProseSegment):
            parts.append(segment.text)
            continue
        if segment.options.eval:
            result = session.run(segment)
        else:
            result = BlockResult(executed=False)
        results.append((segment, result))
        parts.append(render_block(segment, result, base))

    failed = sum(1 for _block, result in results if result.failed)
    logger.info("evaluated %d blocks (%d failed)", len(results), failed)
    return WovenDocument(markdown="".join(parts), results=results)


def render_block(block: CodeBlock, result: BlockResult, page_dir: Path) -> str:
    """Return the markdown that replaces ``block`` in the expanded document."""
    options = block.options
    if not options.include and not result.failed:
        return ""

    pieces: list[str] = []
    if options.echo and options.include:
        pieces.append(_fence(block.source, block.language))
    for item in result.items:
        piece = _render_item(item, block, page_dir)
        if piece:
            pieces.append(piece)
    if not pieces:
        return ""
    return "\n" + "\n\n".join(pieces) + "\n\n"


def _render_item(item: OutputItem, block: CodeBlock, page_dir: Path) -> str | None:
    options = block.options
    if item.kind == "error":
        return _fence(_comment(f"Error: {item.text}", options.comment), ERROR_LANGUAGE)
    if not options.include:
        return None
    if item.kind == "text":
        if options.results == "hide":
            return None
        if options.results == "asis":
            return item.text.rstrip("\n")
        return _fence(_comment(item.text, options.comment), OUTPUT_LANGUAGE)
    if item.kind == "warning":
        if not options.warning:
            return None
        return _fence(
            _comment(f"Warning: {item.text}", options.comment), WARNING_LANGUAGE
        )
    if item.kind == "image" and item.path is not None:
        href = Path(os.path.relpath(item.path, page_dir)).as_posix()
        alt = item.text.replace("[", r"\[").replace("]", r"\]")
        return f"![{alt}]({href})"
    return None


def _comment(text: str, prefix: str) -> str:
    """Prefix every line of ``text`` with the output comment marker."""
    lines = text.rstrip("\n").split("\n")
    if not prefix:
        return "\n".join(lines)
    return "\n".join(f"{prefix} {line}".rstrip() for line in lines)


def _fence(body: str, language: str) -> str:
    """Wrap ``body`` in a backtick fence longer than any run it contains."""
    longest = max((len(run) for run in BACKTICK_RUN.findall(body)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}{language}\n{body}\n{fence}"


__all__ = ["WovenDocument", "knit", "render_block"]
