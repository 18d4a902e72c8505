"""Shared dataclasses used by the chapter generation pipeline."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from chapter_pages.discovery import ChapterSource


@dc.dataclass(slots=True)
class RenderedChapter:
    """Result of rendering a single chapter.

    Attributes
    ----------
    chapter : ChapterSource
        The chapter that was rendered.
    markdown : str
        Expanded markdown with block output substituted in place.
    html : str
        Converted chapter body (without the page template).
    figures : list[Path]
        Image files written while evaluating the chapter's blocks.
    failed_blocks : list[str]
        Labels of blocks that produced an error.
    """

    chapter: ChapterSource
    markdown: str
    html: str
    figures: list[Path]
    failed_blocks: list[str]


__all__ = ["RenderedChapter"]
