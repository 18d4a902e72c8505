"""Tests for the Markdown-to-HTML converters."""

from __future__ import annotations

import subprocess
import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from chapter_pages.config import BookConfig
from chapter_pages.generator import (
    ChapterGenerator,
    MarkdownConverter,
    PandocConverter,
)
from chapter_pages.generator.link_rewriter import build_link_rewriter
from chapter_pages.generator.renderer import prepare_fences

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture

WHICH = "chapter_pages.generator.renderer.shutil.which"
RUN = "chapter_pages.generator.renderer.subprocess.run"


def test_output_fences_carry_language_metadata() -> None:
    html = MarkdownConverter().markdown(
        "Intro\n\n```python\nx = 1\n```\n\n```output\n## 1\n```\n\n"
        "```error\n## Error: boom\n```\n"
    )
    soup = BeautifulSoup(html, "html.parser")
    languages = [div["data-language"] for div in soup.select("div.codehilite")]
    assert languages == ["python", "output", "error"]


def test_stylesheet_targets_codehilite() -> None:
    assert ".codehilite" in MarkdownConverter("friendly").stylesheet


def test_blank_markdown_renders_nothing() -> None:
    assert MarkdownConverter().markdown("\n\n") == ""


def test_link_rewriter_resolves_relative_sources() -> None:
    extension = build_link_rewriter(
        {"part1/01-a.Rmd": "01-a.html", "part2/02-b.Rmd": "02-b.html"},
        current="part2/02-b.Rmd",
    )
    html = MarkdownConverter(link_extension=extension).markdown(
        "[a](../part1/01-a.Rmd?x=1#sec) [b](02-b.Rmd) "
        "[ext](https://example.com/01-a.Rmd) "
        "[other](notes.txt) [top](#top)"
    )
    hrefs = [a["href"] for a in BeautifulSoup(html, "html.parser").find_all("a")]
    assert hrefs == [
        "01-a.html?x=1#sec",
        "02-b.html",
        "https://example.com/01-a.Rmd",
        "notes.txt",
        "#top",
    ]


def test_empty_page_map_disables_rewriting() -> None:
    assert build_link_rewriter({}) is None


def test_pandoc_missing_raises(mocker: MockerFixture) -> None:
    mocker.patch(WHICH, return_value=None)
    with pytest.raises(FileNotFoundError, match="pandoc"):
        PandocConverter()


def test_pandoc_pipes_markdown(mocker: MockerFixture) -> None:
    mocker.patch(WHICH, return_value="/usr/bin/pandoc")
    run = mocker.patch(
        RUN,
        return_value=subprocess.CompletedProcess(
            args=[], returncode=0, stdout="<p>Hi</p>\n", stderr=""
        ),
    )
    converter = PandocConverter(extra_args=["--mathjax"])

    assert converter.markdown("Hi\n") == "<p>Hi</p>\n"
    assert converter.stylesheet == ""
    args, kwargs = run.call_args
    assert args[0] == [
        "/usr/bin/pandoc",
        "--from",
        "markdown",
        "--to",
        "html5",
        "--mathjax",
    ]
    assert kwargs["input"] == "Hi\n"
    assert kwargs["check"] is True


def test_generator_requires_pandoc_when_configured(
    tmp_path: Path, mocker: MockerFixture
) -> None:
    mocker.patch(WHICH, return_value=None)
    book = BookConfig(title="T", source_dir=tmp_path, converter="pandoc")
    with pytest.raises(FileNotFoundError):
        ChapterGenerator(book)


def test_prepare_fences_dedents_and_strips_attributes() -> None:
    text = (
        "- item\n\n  ```rust,no_run\n  fn main() {}\n  ```\n\n"
        "~~~\nplain\n~~~\n\n```open\n"
    )
    prepared, languages = prepare_fences(text)
    assert "\n```rust\n  fn main() {}\n```\n" in prepared
    assert languages == ["rust", "text"]
