"""In-process Python evaluation with a namespace shared across a document.

Each :class:`PythonSession` owns a fresh module-like namespace. Blocks run in
order against it, so later blocks see names bound by earlier ones. Printed
output, the value of a trailing expression, warnings, and any open
matplotlib figures are captured into a :class:`BlockResult`. Exceptions
raised by a block become an ``error`` item instead of propagating.

Example
-------
>>> from chapter_pages.engines.python import PythonSession
>>> from chapter_pages.literate import parse_document
>>> doc = parse_document("```{python}\\nx = 40\\n```\\n```{python}\\nx + 2\\n```\\n")
>>> session = PythonSession()
>>> [session.run(block).items for block in doc.code_blocks][-1][0].text
'42\\n'
"""

from __future__ import annotations

import ast
import contextlib
import io
import logging
import os
import sys
import traceback
import typing as typ
import warnings

from .models import BlockResult, FigureWriter, OutputItem

if typ.TYPE_CHECKING:
    from pathlib import Path

    from chapter_pages.literate import CodeBlock

logger = logging.getLogger(__name__)

SUPPORTED_FIGURE_FORMATS = ("png", "svg")


class PythonSession:
    """Persistent Python namespace used to evaluate one document's blocks."""

    def __init__(self, figures: FigureWriter | None = None) -> None:
        self.figures = figures
        self.namespace: dict[str, typ.Any] = {"__name__": "__main__"}
        # Figures must render off-screen during builds.
        os.environ.setdefault("MPLBACKEND", "Agg")

    def run(self, block: CodeBlock) -> BlockResult:
        """Execute ``block`` and return its captured output in order.

        Parameters
        ----------
        block : CodeBlock
            Parsed block; its label names the compiled code object and any
            saved figures.

        Returns
        -------
        BlockResult
            Text (stdout, stderr, and the trailing expression's ``repr``),
            warnings, an error item when the block raised, and image items
            for figures left open by the block.
        """
        result = BlockResult()
        stdout = io.StringIO()
        filename = f"<chunk {block.label}>"
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                body, tail = self._compile(block.source, filename)
                with (
                    contextlib.redirect_stdout(stdout),
                    contextlib.redirect_stderr(stdout),
                ):
                    exec(body, self.namespace)  # noqa: S102
                    if tail is not None:
                        value = eval(tail, self.namespace)  # noqa: S307
                        if value is not None:
                            print(repr(value))
            except (Exception, SystemExit) as exc:  # noqa: BLE001 - shown inline
                result.add_text(stdout.getvalue())
                stdout = io.StringIO()
                result.items.extend(self._warning_items(caught))
                caught.clear()
                result.items.append(OutputItem("error", _format_error(exc)))
                logger.warning(
                    "block '%s' raised %s", block.label, type(exc).__name__
                )
        result.add_text(stdout.getvalue())
        result.items.extend(self._warning_items(caught))
        result.items.extend(self._collect_figures(block))
        return result

    def close(self) -> None:
        """Drop the namespace and any figures still open."""
        self.namespace.clear()
        pyplot = sys.modules.get("matplotlib.pyplot")
        if pyplot is not None:
            pyplot.close("all")

    @staticmethod
    def _compile(
        source: str, filename: str
    ) -> tuple[typ.Any, typ.Any | None]:
        """Split ``source`` into compiled statements and a trailing expression."""
        tree = ast.parse(source, filename=filename, mode="exec")
        tail = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            last = typ.cast("ast.Expr", tree.body.pop())
            tail = compile(ast.Expression(last.value), filename, "eval")
        return compile(tree, filename, "exec"), tail

    @staticmethod
    def _warning_items(caught: list[warnings.WarningMessage]) -> list[OutputItem]:
        return [
            OutputItem("warning", f"{entry.category.__name__}: {entry.message}")
            for entry in caught
        ]

    def _collect_figures(self, block: CodeBlock) -> list[OutputItem]:
        """Save and close every open matplotlib figure, in figure-number order.

        A figure that cannot be drawn or saved becomes an error item. Without
        a figure writer the figures are closed unsaved.
        """
        pyplot = sys.modules.get("matplotlib.pyplot")
        if pyplot is None:
            return []
        if self.figures is None:
            pyplot.close("all")
            return []
        fmt = block.options.dev
        if fmt not in SUPPORTED_FIGURE_FORMATS:
            fmt = "png"
        caption = block.options.fig_cap or ""
        items: list[OutputItem] = []
        for number, fignum in enumerate(pyplot.get_fignums(), start=1):
            figure = pyplot.figure(fignum)
            try:
                path = self._save_figure(pyplot, figure, block, number, fmt)
            except Exception as exc:  # noqa: BLE001 - shown inline
                items.append(OutputItem("error", _format_error(exc)))
                logger.warning(
                    "block '%s' figure %d could not be saved: %s",
                    block.label,
                    number,
                    type(exc).__name__,
                )
            else:
                items.append(OutputItem("image", caption, path))
            finally:
                pyplot.close(figure)
        return items

    def _save_figure(
        self,
        pyplot: typ.Any,
        figure: typ.Any,
        block: CodeBlock,
        number: int,
        fmt: str,
    ) -> Path:
        figures = typ.cast("FigureWriter", self.figures)
        figure.set_size_inches(block.options.fig_width, block.options.fig_height)
        path = figures.path_for(block.label, number, fmt)
        save_kwargs: dict[str, typ.Any] = {"format": fmt, "dpi": block.options.dpi}
        if fmt == "svg":
            save_kwargs["metadata"] = {"Date": None}
            with pyplot.rc_context({"svg.hashsalt": block.label}):
                figure.savefig(path, **save_kwargs)
        else:
            figure.savefig(path, **save_kwargs)
        return path


def _format_error(exc: BaseException) -> str:
    """Render the exception type and message the way the interpreter reports it."""
    return "".join(traceback.format_exception_only(type(exc), exc)).rstrip("\n")


__all__ = ["SUPPORTED_FIGURE_FORMATS", "PythonSession"]
