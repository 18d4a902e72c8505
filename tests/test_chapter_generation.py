"""End-to-end tests for rendering literate chapters into HTML pages."""

from __future__ import annotations

import json
import typing as typ

import pytest
from bs4 import BeautifulSoup

from chapter_pages._constants import BUILD_MANIFEST
from chapter_pages.book_index import BookIndexBuilder
from chapter_pages.config import load_book_config
from chapter_pages.discovery import discover_chapters
from chapter_pages.generator import ChapterGenerator

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import BookFactory


def _soup(path: Path) -> BeautifulSoup:
    return BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")


def _build(config_path: Path) -> list[Path]:
    book = load_book_config(config_path)
    chapters = discover_chapters(book)
    written = ChapterGenerator(book).run(chapters)
    written.append(BookIndexBuilder(book, chapters).run())
    return written


def test_run_writes_pages_in_reading_order(
    tmp_path: Path, write_book: BookFactory
) -> None:
    written = _build(write_book())
    public = tmp_path.resolve() / "public"
    assert written == [
        public / "01-intro.html",
        public / "02-models.html",
        public / BUILD_MANIFEST,
        public / "index.html",
    ]


def test_block_output_sits_between_surrounding_prose(
    tmp_path: Path, write_book: BookFactory
) -> None:
    _build(write_book())
    article = _soup(tmp_path / "public" / "01-intro.html").select_one(
        "article.chapter-article"
    )
    assert article is not None
    blocks = article.find_all(["p", "div"], recursive=False)
    summary = [
        (tag.name, tag.get("data-language"), tag.get_text().strip()) for tag in blocks
    ]
    assert summary == [
        ("p", None, "A"),
        ("div", "python", "1+1"),
        ("div", "output", "## 2"),
        ("p", None, "B"),
    ]


def test_failed_block_is_shown_and_rendering_continues(
    tmp_path: Path, write_book: BookFactory
) -> None:
    _build(write_book())
    article = _soup(tmp_path / "public" / "02-models.html").select_one(
        "article.chapter-article"
    )
    assert article is not None
    error = article.select_one('div.codehilite[data-language="error"]')
    assert error is not None
    assert "NameError: name 'intro_value' is not defined" in error.get_text()
    outputs = article.select('div.codehilite[data-language="output"]')
    assert [tag.get_text().strip() for tag in outputs] == ["## recovered"]

    manifest = json.loads((tmp_path / "public" / BUILD_MANIFEST).read_text())
    assert [entry["failed_blocks"] for entry in manifest["chapters"]] == [
        [],
        ["broken"],
    ]


def test_pages_link_neighbours_and_contents(
    tmp_path: Path, write_book: BookFactory
) -> None:
    _build(write_book())
    intro = _soup(tmp_path / "public" / "01-intro.html")
    models = _soup(tmp_path / "public" / "02-models.html")

    assert intro.select_one(".chapter-nav__prev") is None
    next_link = intro.select_one(".chapter-nav__next")
    assert next_link is not None
    assert next_link["href"] == "02-models.html"
    assert next_link.get_text(strip=True) == "Models"
    prev_link = models.select_one(".chapter-nav__prev")
    assert prev_link is not None
    assert prev_link["href"] == "01-intro.html"
    contents = intro.select_one(".chapter-nav__contents")
    assert contents is not None
    assert contents["href"] == "index.html"

    active = models.select(".chapter-toc__item.is-active a")
    assert [link["href"] for link in active] == ["02-models.html"]
    title = intro.select_one("title")
    assert title is not None
    assert title.get_text() == "Introduction | Practical Analysis"


def test_links_to_chapter_sources_point_at_pages(
    tmp_path: Path, write_book: BookFactory
) -> None:
    _build(write_book())
    article = _soup(tmp_path / "public" / "02-models.html").select_one(
        "article.chapter-article"
    )
    assert article is not None
    hrefs = [link["href"] for link in article.find_all("a")]
    assert hrefs == ["01-intro.html#top"]


def test_rebuild_is_byte_identical(tmp_path: Path, write_book: BookFactory) -> None:
    config_path = write_book()
    first = {path: path.read_bytes() for path in _build(config_path)}
    second = {path: path.read_bytes() for path in _build(config_path)}
    assert first == second


def test_partials_and_drafts_are_skipped(
    tmp_path: Path, write_book: BookFactory
) -> None:
    config_path = write_book(
        {
            "01-intro.Rmd": "# Intro\n",
            "_shared.Rmd": "# Partial\n",
            "02-draft.Rmd": "---\ndraft: true\n---\n# Draft\n",
        }
    )
    written = _build(config_path)
    assert [path.name for path in written] == [
        "01-intro.html",
        BUILD_MANIFEST,
        "index.html",
    ]


def test_book_index_lists_chapters(tmp_path: Path, write_book: BookFactory) -> None:
    _build(write_book())
    index = _soup(tmp_path / "public" / "index.html")
    entries = index.select("li.book-toc__entry")
    assert [entry["data-slug"] for entry in entries] == ["01-intro", "02-models"]
    links = index.select("a.book-toc__link")
    assert [(a["href"], a.get_text(strip=True)) for a in links] == [
        ("01-intro.html", "Introduction"),
        ("02-models.html", "Models"),
    ]
    description = entries[0].select_one(".book-toc__description")
    assert description is not None
    assert description.get_text(strip=True) == "Where the analysis starts."


def test_render_only_one_chapter(tmp_path: Path, write_book: BookFactory) -> None:
    book = load_book_config(write_book())
    chapters = discover_chapters(book)
    written = ChapterGenerator(book).run(chapters, only="02-models")
    assert written == [tmp_path.resolve() / "public" / "02-models.html"]
    assert not (tmp_path / "public" / "01-intro.html").exists()
    toc = _soup(written[0]).select(".chapter-toc__item a")
    assert len(toc) == 2


def test_output_dir_override(tmp_path: Path, write_book: BookFactory) -> None:
    book = load_book_config(write_book())
    chapters = discover_chapters(book)
    dist = tmp_path / "dist"
    ChapterGenerator(book, output_dir=dist).run(chapters)
    index_path = BookIndexBuilder(book, chapters, output_dir=dist).run()
    assert index_path == dist / "index.html"
    assert (dist / "01-intro.html").exists()
    assert not (tmp_path / "public").exists()


def test_chunk_option_defaults_apply_book_wide(
    tmp_path: Path, write_book: BookFactory
) -> None:
    config_path = write_book(
        defaults="  chunk_options:\n    echo: false\n    comment: '#>'\n"
    )
    _build(config_path)
    article = _soup(tmp_path / "public" / "01-intro.html").select_one(
        "article.chapter-article"
    )
    assert article is not None
    languages = [
        tag["data-language"] for tag in article.select("div.codehilite")
    ]
    assert languages == ["output"]
    assert article.select_one("div.codehilite").get_text().strip() == "#> 2"


def test_figures_are_saved_and_linked(
    tmp_path: Path, write_book: BookFactory
) -> None:
    pytest.importorskip("matplotlib")
    chapter = (
        "# Plots\n\n"
        "```{python trend, echo=FALSE, fig.cap='Upward trend'}\n"
        "import matplotlib.pyplot as plt\n"
        "_ = plt.plot([1, 2, 3], [1, 4, 9])\n"
        "```\n"
    )
    config_path = write_book({"plots.Rmd": chapter})
    stale = tmp_path / "public" / "figures" / "plots" / "old-1.png"
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b"stale")

    _build(config_path)

    image = _soup(tmp_path / "public" / "plots.html").select_one(
        "article.chapter-article img"
    )
    assert image is not None
    assert image["src"] == "figures/plots/trend-1.png"
    assert image["alt"] == "Upward trend"
    assert (tmp_path / "public" / "figures" / "plots" / "trend-1.png").exists()
    assert not stale.exists()
    manifest = json.loads((tmp_path / "public" / BUILD_MANIFEST).read_text())
    assert manifest["chapters"][0]["figures"] == ["figures/plots/trend-1.png"]
