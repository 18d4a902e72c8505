"""Behaviour tests for chapters containing blocks that raise.

The scenario in ``failed_blocks.feature`` builds a small book whose chapter
contains a block raising ``ValueError`` between two healthy blocks. It
checks that the error is rendered in place, that evaluation continues with
the following block, and that the build manifest records the failure.

Usage
-----
Run ``pytest tests/bdd/test_failed_blocks.py -v`` after installing the test
extra (``pip install -e .[test]``).
"""

from __future__ import annotations

import json
import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, scenarios, then, when

from chapter_pages._constants import BUILD_MANIFEST
from chapter_pages.book_index import BookIndexBuilder
from chapter_pages.config import load_book_config
from chapter_pages.discovery import discover_chapters
from chapter_pages.generator import ChapterGenerator

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "failed_blocks.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("a chapter whose second block raises an error")
def given_failing_chapter(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    """Write a book config and a chapter with a failing middle block."""
    content = tmp_path / "content"
    content.mkdir()
    (content / "analysis.Rmd").write_text(
        "# Analysis\n\n"
        "```{python load}\nrows = [3, 1, 2]\nlen(rows)\n```\n\n"
        "```{python validate}\nraise ValueError('rows must be sorted')\n```\n\n"
        "Afterwards.\n\n"
        "```{python summary}\nsorted(rows)\n```\n",
        encoding="utf-8",
    )
    config_path = tmp_path / "book.yaml"
    config_path.write_text(
        "book:\n  title: Failures\n  source_dir: content\n"
        "defaults:\n  output_dir: public\n",
        encoding="utf-8",
    )
    scenario_state["config_path"] = config_path
    scenario_state["output_dir"] = tmp_path / "public"


@when("I build the book")
def when_build(scenario_state: dict[str, object]) -> None:
    """Render every chapter and the book index."""
    book = load_book_config(typ.cast("Path", scenario_state["config_path"]))
    chapters = discover_chapters(book)
    written = ChapterGenerator(book).run(chapters)
    BookIndexBuilder(book, chapters).run()
    scenario_state["written"] = written


def _article(scenario_state: dict[str, object]) -> BeautifulSoup:
    output_dir = typ.cast("Path", scenario_state["output_dir"])
    html = (output_dir / "analysis.html").read_text(encoding="utf-8")
    return BeautifulSoup(html, "html.parser").select_one("article.chapter-article")


@then("the chapter page shows the error after the failing block")
def then_error_inline(scenario_state: dict[str, object]) -> None:
    """Verify the error fence directly follows the failing block's source."""
    article = _article(scenario_state)
    blocks = article.select("div.codehilite")
    languages = [block.get("data-language") for block in blocks]
    assert languages == ["python", "output", "python", "error", "python", "output"]
    assert "ValueError: rows must be sorted" in blocks[3].get_text()


@then("the block after the failure shows its output")
def then_later_output(scenario_state: dict[str, object]) -> None:
    """Verify evaluation continued after the failure."""
    article = _article(scenario_state)
    outputs = article.select('div.codehilite[data-language="output"]')
    assert [block.get_text().strip() for block in outputs] == ["## 3", "## [1, 2, 3]"]
    paragraphs = [p.get_text() for p in article.find_all("p")]
    assert paragraphs == ["Afterwards."]


@then("the build manifest lists the failed block")
def then_manifest(scenario_state: dict[str, object]) -> None:
    """Verify the manifest records the failing block label."""
    output_dir = typ.cast("Path", scenario_state["output_dir"])
    manifest = json.loads((output_dir / BUILD_MANIFEST).read_text(encoding="utf-8"))
    assert manifest["chapters"][0]["failed_blocks"] == ["validate"]
