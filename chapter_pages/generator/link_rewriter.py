"""Helpers for rewriting links between chapter sources to generated pages."""

from __future__ import annotations

import posixpath
import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any


def build_link_rewriter(
    page_map: typ.Mapping[str, str], *, current: str = ""
) -> Extension | None:
    """Return a ChapterLinkExtension for ``page_map`` or None when it is empty.

    Parameters
    ----------
    page_map : Mapping[str, str]
        Source paths (POSIX, relative to the source directory) mapped to the
        generated page filenames.
    current : str, optional
        Source path of the chapter being rendered; relative links resolve
        against its directory.
    """
    if not page_map:
        return None
    return ChapterLinkExtension(page_map, posixpath.dirname(current))


class ChapterLinkExtension(Extension):
    """Rewrite links to sibling literate sources into links to their pages.

    A manuscript links chapters by source filename (``02-models.Rmd#fit``);
    once rendered, those targets must point at ``02-models.html#fit``. Links
    to anything that is not a known chapter source are left alone.
    """

    def __init__(self, page_map: typ.Mapping[str, str], base_dir: str) -> None:
        self.page_map = dict(page_map)
        self.base_dir = base_dir

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the chapter-link treeprocessor on the Markdown instance."""
        processor = ChapterLinkTreeprocessor(md, self.page_map, self.base_dir)
        md.treeprocessors.register(processor, "chapter_links", 15)


class ChapterLinkTreeprocessor(Treeprocessor):
    """Rewrite anchors that target chapter sources."""

    def __init__(
        self, md: Markdown, page_map: typ.Mapping[str, str], base_dir: str
    ) -> None:
        super().__init__(md)
        self.page_map = page_map
        self.base_dir = base_dir

    def run(self, root: Element) -> Element:  # pragma: no cover - Markdown API
        """Rewrite chapter-source anchors in the parsed markdown tree."""
        for element in root.iter():
            if element.tag == "a":
                rewritten = self._rewrite(element.get("href"))
                if rewritten:
                    element.set("href", rewritten)
        return root

    def _rewrite(self, target: str | None) -> str | None:
        """Return the generated-page URL for ``target`` or None to keep it."""
        if not target or target.startswith(("#", "//", "/")) or "://" in target:
            return None
        parsed = urlsplit(target)
        if parsed.scheme or parsed.netloc or not parsed.path:
            return None
        joined = posixpath.normpath(posixpath.join(self.base_dir, parsed.path))
        page = self.page_map.get(joined)
        if page is None:
            return None
        url = page
        if parsed.query:
            url = f"{url}?{parsed.query}"
        if parsed.fragment:
            url = f"{url}#{parsed.fragment}"
        return url


__all__ = [
    "ChapterLinkExtension",
    "ChapterLinkTreeprocessor",
    "build_link_rewriter",
]
