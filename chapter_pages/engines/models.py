"""Shared dataclasses describing captured code-block output."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from chapter_pages._constants import FIGURE_NAME_TEMPLATE

OutputKind = typ.Literal["text", "warning", "error", "image"]


@dc.dataclass(slots=True)
class OutputItem:
    """One piece of output captured while executing a code block.

    Attributes
    ----------
    kind : {"text", "warning", "error", "image"}
        Category of the captured output.
    text : str
        Printed output, warning message, or error text. For images this is
        the caption (possibly empty).
    path : Path, optional
        Filesystem location of an image written by the block.
    """

    kind: OutputKind
    text: str = ""
    path: Path | None = None


@dc.dataclass(slots=True)
class BlockResult:
    """Ordered output items for a single code block."""

    items: list[OutputItem] = dc.field(default_factory=list)
    executed: bool = True

    @property
    def failed(self) -> bool:
        """Return True when the block produced an error item."""
        return any(item.kind == "error" for item in self.items)

    def add_text(self, text: str) -> None:
        """Append text output, merging with a directly preceding text item."""
        if not text:
            return
        if self.items and self.items[-1].kind == "text":
            self.items[-1].text += text
        else:
            self.items.append(OutputItem("text", text))


@dc.dataclass(slots=True)
class FigureWriter:
    """Allocate figure file paths for one document's figure directory."""

    directory: Path

    def path_for(self, label: str, number: int, ext: str) -> Path:
        """Return the path for figure ``number`` of ``label``, creating the folder."""
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory / FIGURE_NAME_TEMPLATE.format(
            label=label, number=number, ext=ext
        )


__all__ = ["BlockResult", "FigureWriter", "OutputItem", "OutputKind"]
