"""Parse ``.slide`` and ``.article`` source files into `Document` instances.

A document starts with a header block::

    Title of the talk
    Optional subtitle
    Theme: corporate
    Stylesheet: local.css
    HideLastSlide: true
    ClosingMessage: Questions?
    Tags: python, web

    Jane Doe
    jane@example.com

followed by sections introduced with ``* Heading`` lines whose bodies are
Markdown.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Iterable, cast

from markdown_it import MarkdownIt
from mdit_py_plugins.deflist import deflist_plugin

from .models import Document, DocumentKind, Section

SECTION_PREFIX = "* "
_HEADER_KEY = re.compile(r"^(?P<key>[A-Za-z][A-Za-z-]*):\s*(?P<value>.*)$")
_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


class DocumentError(ValueError):
    """Raised when a document cannot be read or its header is malformed."""


class ParseMode(str, Enum):
    FULL = "full"
    TITLES_ONLY = "titles-only"


@lru_cache(maxsize=1)
def _markdown() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"html": True, "typographer": True})
    md.enable("table").enable("strikethrough")
    md.use(deflist_plugin)
    return md


def render_section_body(text: str) -> str:
    if not text.strip():
        return ""
    return cast(str, _markdown().render(text))


def parse_document(path: str | Path, mode: ParseMode = ParseMode.FULL) -> Document:
    """Parse the document at ``path``.

    ``ParseMode.TITLES_ONLY`` reads just enough of the file to find the title,
    which keeps directory listings cheap.
    """
    source_path = Path(path)
    kind = DocumentKind.from_extension(source_path.suffix)
    if kind is None:
        raise DocumentError(f"{source_path}: unrecognized document extension '{source_path.suffix}'")

    try:
        with source_path.open("r", encoding="utf-8") as handle:
            if mode is ParseMode.TITLES_ONLY:
                title = _first_title(handle)
                if title is None:
                    raise DocumentError(f"{source_path}: document has no title")
                return Document(title=title, kind=kind, source_path=str(source_path))
            text = handle.read()
    except DocumentError:
        raise
    except (OSError, ValueError) as exc:
        # ValueError covers undecodable text and paths with embedded NUL bytes.
        raise DocumentError(f"{source_path}: {exc}") from exc

    return parse_text(text, kind=kind, source_path=str(source_path))


def parse_text(text: str, *, kind: DocumentKind, source_path: str = "") -> Document:
    lines = text.splitlines()
    body_start = next(
        (idx for idx, line in enumerate(lines) if line.startswith(SECTION_PREFIX)),
        len(lines),
    )
    header = lines[:body_start]
    data = _parse_header(header, kind=kind, source_path=source_path)
    data["sections"] = _parse_sections(lines[body_start:])
    return Document(kind=kind, source_path=source_path, **data)


def _first_title(lines: Iterable[str]) -> str | None:
    for line in lines:
        if line.startswith(SECTION_PREFIX):
            return None
        text = line.strip()
        if text:
            return text
    return None


def _parse_header(lines: list[str], *, kind: DocumentKind, source_path: str) -> dict[str, object]:
    remaining = [line.rstrip() for line in lines]
    while remaining and not remaining[0].strip():
        remaining.pop(0)
    if not remaining:
        raise DocumentError(f"{source_path}: document has no title")

    data: dict[str, object] = {"title": remaining.pop(0).strip()}
    if remaining and remaining[0].strip() and not _HEADER_KEY.match(remaining[0].strip()):
        data["subtitle"] = remaining.pop(0).strip()

    article_stylesheets: list[str] = []
    slide_stylesheets: list[str] = []
    authors: list[str] = []
    for raw in remaining:
        line = raw.strip()
        if not line:
            continue
        match = _HEADER_KEY.match(line)
        if match is None:
            authors.append(line)
            continue
        key = match.group("key").lower().replace("-", "")
        value = match.group("value").strip()
        if key == "theme":
            data["theme"] = value or None
        elif key == "stylesheet":
            target = article_stylesheets if kind is DocumentKind.ARTICLE else slide_stylesheets
            target.append(value)
        elif key == "articlestylesheet":
            article_stylesheets.append(value)
        elif key == "slidestylesheet":
            slide_stylesheets.append(value)
        elif key == "hidelastslide":
            if value:
                data["hide_last_slide"] = _parse_flag(value, source_path)
        elif key == "closingmessage":
            data["closing_message"] = value or None
        elif key == "tags":
            data["tags"] = [tag.strip() for tag in value.split(",") if tag.strip()]
        else:
            # Unknown keys (e.g. a URL in the author block) are author lines.
            authors.append(line)

    data["article_stylesheets"] = [entry for entry in article_stylesheets if entry]
    data["slide_stylesheets"] = [entry for entry in slide_stylesheets if entry]
    data["authors"] = authors
    return data


def _parse_flag(value: str, source_path: str) -> bool:
    text = value.lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise DocumentError(f"{source_path}: invalid HideLastSlide value '{value}'")


def _parse_sections(lines: list[str]) -> list[Section]:
    sections: list[Section] = []
    title: str | None = None
    body: list[str] = []
    for line in lines:
        if line.startswith(SECTION_PREFIX):
            if title is not None:
                sections.append(Section(title=title, html=render_section_body("\n".join(body))))
            title = line[len(SECTION_PREFIX) :].strip()
            body = []
        else:
            body.append(line)
    if title is not None:
        sections.append(Section(title=title, html=render_section_body("\n".join(body))))
    return sections
