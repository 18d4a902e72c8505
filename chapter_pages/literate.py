r"""Parse literate documents into ordered prose and code-block segments.

This module powers the chapter renderer by splitting a literate source file
(Markdown prose with executable fenced blocks such as ```` ```{python} ````)
into front matter and an ordered list of segments. Executable blocks carry
their language, label, and a flat option bag; everything else, including
ordinary fenced code, stays in the surrounding prose untouched.

Example
-------
>>> from chapter_pages.literate import parse_document
>>> doc = parse_document("A\n\n```{python}\n1+1\n```\n\nB\n")
>>> [type(seg).__name__ for seg in doc.segments]
['ProseSegment', 'CodeBlock', 'ProseSegment']
>>> doc.code_blocks[0].label
'unnamed-chunk-1'
"""

from __future__ import annotations

import ast
import dataclasses as dc
import io
import re
import typing as typ

from ruamel.yaml import YAML

from ._constants import UNNAMED_CHUNK_TEMPLATE

CHUNK_OPEN_PATTERN = re.compile(
    r"^[ ]{0,3}(?P<fence>`{3,})\s*\{(?P<header>[^`]*)\}\s*$"
)
FRONT_MATTER_CLOSE = ("---", "...")
_LITERAL_ALIASES: dict[str, object] = {
    "TRUE": True,
    "T": True,
    "FALSE": False,
    "F": False,
    "NULL": None,
    "NA": None,
}


@dc.dataclass(slots=True)
class ChunkOptions:
    """Option bag attached to an executable code block.

    Attributes
    ----------
    echo : bool
        Show the block source in the rendered page.
    eval : bool
        Execute the block.
    include : bool
        Emit the block (source and output) at all; errors are always shown.
    results : str
        ``"markup"`` fences text output, ``"asis"`` inserts it raw, and
        ``"hide"`` drops it.
    comment : str
        Prefix added to each line of captured text output.
    warning : bool
        Show captured warnings.
    fig_width, fig_height : float
        Figure size in inches.
    fig_cap : str or None
        Caption used as the figure alt text.
    dev : str
        Figure format, ``"png"`` or ``"svg"``.
    dpi : int
        Figure resolution.
    cache : bool
        Accepted for compatibility; blocks are never cached.
    extra : dict[str, object]
        Unrecognised options, kept verbatim.
    """

    echo: bool = True
    eval: bool = True
    include: bool = True
    results: str = "markup"
    comment: str = "##"
    warning: bool = True
    fig_width: float = 7.0
    fig_height: float = 5.0
    fig_cap: str | None = None
    dev: str = "png"
    dpi: int = 72
    cache: bool = False
    extra: dict[str, object] = dc.field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        options: typ.Mapping[str, object],
        *,
        defaults: typ.Mapping[str, object] | None = None,
    ) -> ChunkOptions:
        """Build options from ``options`` layered over ``defaults``.

        Keys may use either the dotted (``fig.width``) or the underscored
        (``fig_width``) spelling.
        """
        merged: dict[str, object] = {}
        for source in (defaults or {}, options):
            for key, value in source.items():
                merged[key.replace(".", "_")] = value

        known = {field.name for field in dc.fields(cls)} - {"extra"}
        kwargs: dict[str, typ.Any] = {}
        extra: dict[str, object] = {}
        for key, value in merged.items():
            if key in known:
                kwargs[key] = value
            elif key != "label":
                extra[key] = value
        instance = cls(**kwargs, extra=extra)
        instance.results = str(instance.results).lower()
        instance.comment = "" if instance.comment is None else str(instance.comment)
        instance.dev = str(instance.dev).lower()
        return instance


@dc.dataclass(slots=True)
class ProseSegment:
    """Markdown text between executable blocks, passed through unchanged."""

    text: str


@dc.dataclass(slots=True)
class CodeBlock:
    """An executable fenced block.

    Attributes
    ----------
    language : str
        Lowercased engine name taken from the block header.
    label : str
        Unique label within the document; drives figure filenames.
    index : int
        1-based position of the block among the document's code blocks.
    source : str
        Code between the fences, without the trailing newline.
    options : ChunkOptions
        Parsed option bag.
    """

    language: str
    label: str
    index: int
    source: str
    options: ChunkOptions


Segment = ProseSegment | CodeBlock


@dc.dataclass(slots=True)
class LiterateDocument:
    """Front matter plus ordered segments of a literate source file."""

    front_matter: dict[str, typ.Any]
    segments: list[Segment]

    @property
    def code_blocks(self) -> list[CodeBlock]:
        """Return the executable blocks in document order."""
        return [seg for seg in self.segments if isinstance(seg, CodeBlock)]

    @property
    def title(self) -> str | None:
        """Return the front-matter title or the first level-one heading."""
        title = self.front_matter.get("title")
        if title:
            return str(title).strip()
        for segment in self.segments:
            if isinstance(segment, ProseSegment):
                match = re.search(r"^#\s+(.+?)\s*#*\s*$", segment.text, re.MULTILINE)
                if match:
                    return match.group(1).strip()
        return None


def _split_options(header: str) -> list[str]:
    """Split a chunk header on top-level commas, respecting quotes and brackets."""
    parts: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    depth = 0
    for char in header:
        if quote:
            buf.append(char)
            if char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            parts.append("".join(buf).strip())
            buf = []
            continue
        buf.append(char)
    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return [part for part in parts if part]


def parse_option_value(raw: str) -> object:
    """Convert an option value written in a chunk header into a Python scalar.

    Python literals are evaluated safely; ``TRUE``/``FALSE``/``NULL`` style
    aliases are accepted, and anything else is returned as the bare string.
    """
    text = raw.strip()
    if text in _LITERAL_ALIASES:
        return _LITERAL_ALIASES[text]
    try:
        return ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return text


def parse_chunk_header(header: str) -> tuple[str, str | None, dict[str, object]]:
    """Return ``(language, label, options)`` parsed from a brace header.

    Parameters
    ----------
    header : str
        Text between the braces, e.g. ``"python setup, echo=False"``.

    Returns
    -------
    tuple[str, str | None, dict[str, object]]
        Lowercased language, optional label, and the raw option mapping.
    """
    text = header.strip()
    match = re.match(r"([A-Za-z0-9_+#.-]+)\s*,?\s*(.*)$", text, re.DOTALL)
    if not match:
        return "text", None, {}
    language = match.group(1).lower()
    label: str | None = None
    options: dict[str, object] = {}
    for part in _split_options(match.group(2)):
        if "=" not in part:
            if label is None:
                label = part.strip().strip("'\"")
            continue
        key, _, value = part.partition("=")
        key = key.strip()
        parsed = parse_option_value(value)
        if key == "label":
            label = str(parsed)
        else:
            options[key] = parsed
    return language, label or None, options


def _unique_label(base: str, used: set[str]) -> str:
    """Generate a unique label, appending numeric suffixes when needed."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def split_front_matter(text: str) -> tuple[dict[str, typ.Any], str]:
    """Separate a leading YAML front-matter block from the document body."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != "---":
        return {}, text
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() in FRONT_MATTER_CLOSE:
            loader = YAML(typ="safe")
            loader.version = (1, 2)
            loaded = loader.load(io.StringIO("".join(lines[1:idx]))) or {}
            if not isinstance(loaded, dict):
                msg = "Front matter must be a YAML mapping."
                raise TypeError(msg)
            return dict(loaded), "".join(lines[idx + 1 :])
    return {}, text


def parse_document(
    text: str, *, option_defaults: typ.Mapping[str, object] | None = None
) -> LiterateDocument:
    """Split literate source into front matter and ordered segments.

    Parameters
    ----------
    text : str
        Full contents of the literate source file.
    option_defaults : Mapping[str, object], optional
        Book-wide chunk option defaults layered under each block's header.

    Returns
    -------
    LiterateDocument
        Parsed document. Prose segments preserve their text exactly; an
        executable fence that is never closed is kept as prose.
    """
    front_matter, body = split_front_matter(text)
    lines = body.splitlines(keepends=True)
    segments: list[Segment] = []
    prose: list[str] = []
    used_labels: set[str] = set()
    index = 0
    pos = 0
    while pos < len(lines):
        line = lines[pos]
        opener = CHUNK_OPEN_PATTERN.match(line.rstrip("\r\n"))
        close_at = None
        if opener:
            close_at = _find_close(lines, pos + 1, len(opener.group("fence")))
        if opener is None or close_at is None:
            prose.append(line)
            pos += 1
            continue

        if prose:
            segments.append(ProseSegment("".join(prose)))
            prose = []
        index += 1
        language, label, raw_options = parse_chunk_header(opener.group("header"))
        label = _unique_label(
            label or UNNAMED_CHUNK_TEMPLATE.format(index=index), used_labels
        )
        source = "".join(lines[pos + 1 : close_at]).rstrip("\r\n")
        segments.append(
            CodeBlock(
                language=language,
                label=label,
                index=index,
                source=source,
                options=ChunkOptions.from_mapping(
                    raw_options, defaults=option_defaults
                ),
            )
        )
        pos = close_at + 1
    if prose:
        segments.append(ProseSegment("".join(prose)))
    return LiterateDocument(front_matter=front_matter, segments=segments)


def _find_close(lines: list[str], start: int, fence_len: int) -> int | None:
    """Return the index of the closing fence line, or None when unterminated."""
    for idx in range(start, len(lines)):
        stripped = lines[idx].strip()
        if len(stripped) >= fence_len and set(stripped) == {"`"}:
            return idx
    return None


__all__ = [
    "ChunkOptions",
    "CodeBlock",
    "LiterateDocument",
    "ProseSegment",
    "Segment",
    "parse_chunk_header",
    "parse_document",
    "parse_option_value",
    "split_front_matter",
]
