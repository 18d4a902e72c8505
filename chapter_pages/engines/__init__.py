"""Evaluation engines that execute code blocks and capture their output.

A :class:`DocumentSession` is created per document and dispatches each block
to the engine registered for its language. Python blocks share one
in-process namespace for the whole document; other languages map to
external commands configured in ``book.yaml``.
"""

from __future__ import annotations

import typing as typ

from .command import CommandEngine
from .models import BlockResult, FigureWriter, OutputItem
from .python import PythonSession

if typ.TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from chapter_pages.literate import CodeBlock

PYTHON_LANGUAGES = frozenset({"python", "py", "python3"})
DEFAULT_ENGINE_COMMANDS: dict[str, list[str]] = {"bash": ["bash"], "sh": ["sh"]}


class Engine(typ.Protocol):
    """Interface shared by evaluation engines."""

    def run(self, block: CodeBlock) -> BlockResult:
        """Execute ``block`` and return its captured output."""
        ...

    def close(self) -> None:
        """Release engine resources."""
        ...


class DocumentSession:
    """Evaluation state scoped to a single document.

    Engines are created lazily on first use and closed together by
    :meth:`close`, so nothing survives from one document to the next.
    """

    def __init__(
        self,
        figures: FigureWriter | None = None,
        *,
        commands: Mapping[str, Sequence[str]] | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.figures = figures
        self.commands = {
            key.lower(): list(value)
            for key, value in (
                DEFAULT_ENGINE_COMMANDS if commands is None else commands
            ).items()
        }
        self.cwd = cwd
        self._engines: dict[str, Engine] = {}

    def run(self, block: CodeBlock) -> BlockResult:
        """Execute ``block`` with the engine for its language."""
        engine = self._engine_for(block.language)
        if engine is None:
            msg = f"No evaluation engine for language '{block.language}'"
            return BlockResult(items=[OutputItem("error", msg)])
        return engine.run(block)

    def close(self) -> None:
        """Close and forget every engine started for this document."""
        for engine in self._engines.values():
            engine.close()
        self._engines.clear()

    def __enter__(self) -> DocumentSession:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def _engine_for(self, language: str) -> Engine | None:
        key = "python" if language in PYTHON_LANGUAGES else language
        if key in self._engines:
            return self._engines[key]
        engine: Engine
        if key == "python":
            engine = PythonSession(self.figures)
        elif key in self.commands:
            engine = CommandEngine(self.commands[key], cwd=self.cwd)
        else:
            return None
        self._engines[key] = engine
        return engine


__all__ = [
    "DEFAULT_ENGINE_COMMANDS",
    "PYTHON_LANGUAGES",
    "BlockResult",
    "CommandEngine",
    "DocumentSession",
    "Engine",
    "FigureWriter",
    "OutputItem",
    "PythonSession",
]
