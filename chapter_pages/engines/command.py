"""Evaluate code blocks by piping them to an external interpreter."""

from __future__ import annotations

import logging
import shutil
import subprocess
import typing as typ

from .models import BlockResult, OutputItem

if typ.TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from chapter_pages.literate import CodeBlock

logger = logging.getLogger(__name__)


class CommandEngine:
    """Run each block as standard input of a configured command.

    Unlike :class:`~chapter_pages.engines.python.PythonSession`, every block
    starts a new process, so shell state does not carry between blocks.
    """

    def __init__(self, command: Sequence[str], *, cwd: Path | None = None) -> None:
        if not command:
            msg = "Engine command must not be empty."
            raise ValueError(msg)
        self.command = list(command)
        self.cwd = cwd

    def run(self, block: CodeBlock) -> BlockResult:
        """Execute ``block`` and capture stdout, reporting failures inline."""
        result = BlockResult()
        executable = shutil.which(self.command[0])
        if not executable:
            msg = f"Engine command '{self.command[0]}' was not found on PATH"
            logger.warning("block '%s': %s", block.label, msg)
            result.items.append(OutputItem("error", msg))
            return result

        completed = subprocess.run(  # noqa: S603
            [executable, *self.command[1:]],
            input=block.source + "\n",
            cwd=self.cwd,
            check=False,
            text=True,
            encoding="utf-8",
            errors="replace",
            capture_output=True,
        )
        result.add_text(completed.stdout)
        if completed.returncode != 0:
            detail = completed.stderr.strip() or f"exit status {completed.returncode}"
            logger.warning(
                "block '%s' exited with status %d", block.label, completed.returncode
            )
            result.items.append(OutputItem("error", detail))
        elif completed.stderr.strip():
            result.items.append(OutputItem("warning", completed.stderr.strip()))
        return result

    def close(self) -> None:
        """Command engines hold no state between blocks."""


__all__ = ["CommandEngine"]
