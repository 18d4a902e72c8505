"""Utilities for evaluating, converting, and writing literate chapter pages."""

from chapter_pages.discovery import ChapterSource

from .chapter_generator import ChapterGenerator
from .knitter import WovenDocument, knit
from .link_rewriter import ChapterLinkExtension
from .models import RenderedChapter
from .renderer import MarkdownConverter, PandocConverter

__all__ = [
    "ChapterGenerator",
    "ChapterLinkExtension",
    "ChapterSource",
    "MarkdownConverter",
    "PandocConverter",
    "RenderedChapter",
    "WovenDocument",
    "knit",
]
