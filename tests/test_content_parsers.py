from pathlib import Path

import pytest

from presentplus.content import DocumentError, DocumentKind, ParseMode, is_document, parse_document

DECK = """\
Intro to Themes
Making slides look right
Theme: corporate
Stylesheet: local.css
HideLastSlide: true
ClosingMessage: Questions?
Tags: python, web

Jane Doe
jane@example.com
https://example.com/jane

* First slide

Some *emphasis* here.

* Second slide

- one
- two
"""


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_parses_header_and_sections(tmp_path: Path) -> None:
    document = parse_document(_write(tmp_path / "intro.slide", DECK))

    assert document.kind is DocumentKind.SLIDE
    assert document.title == "Intro to Themes"
    assert document.subtitle == "Making slides look right"
    assert document.theme == "corporate"
    assert document.slide_stylesheets == ["local.css"]
    assert document.article_stylesheets == []
    assert document.hide_last_slide is True
    assert document.closing_message == "Questions?"
    assert document.tags == ["python", "web"]
    assert document.authors == ["Jane Doe", "jane@example.com", "https://example.com/jane"]
    assert [section.title for section in document.sections] == ["First slide", "Second slide"]
    assert "<em>emphasis</em>" in document.sections[0].html
    assert "<li>two</li>" in document.sections[1].html


def test_stylesheet_key_follows_document_kind(tmp_path: Path) -> None:
    text = "Notes\n\nStylesheet: article.css\nSlideStylesheet: deck.css\n"
    document = parse_document(_write(tmp_path / "notes.article", text))

    assert document.kind is DocumentKind.ARTICLE
    assert document.article_stylesheets == ["article.css"]
    assert document.slide_stylesheets == ["deck.css"]
    assert document.stylesheets == ["article.css"]
    assert document.subtitle is None


def test_unset_presentation_flags_stay_unset(tmp_path: Path) -> None:
    document = parse_document(_write(tmp_path / "plain.slide", "Plain\n\n* Only\n\nBody\n"))

    assert document.theme is None
    assert document.hide_last_slide is None
    assert document.closing_message is None


def test_titles_only_mode_reads_just_the_title(tmp_path: Path) -> None:
    text = "Deep Dive\nHideLastSlide: sometimes\n"
    document = parse_document(_write(tmp_path / "b.article", text), ParseMode.TITLES_ONLY)

    assert document.title == "Deep Dive"
    assert document.sections == []


def test_rejects_invalid_flag(tmp_path: Path) -> None:
    with pytest.raises(DocumentError):
        parse_document(_write(tmp_path / "bad.slide", "Bad\nHideLastSlide: sometimes\n"))


def test_rejects_document_without_title(tmp_path: Path) -> None:
    with pytest.raises(DocumentError):
        parse_document(_write(tmp_path / "empty.slide", "\n\n* Straight to a section\n"))
    with pytest.raises(DocumentError):
        parse_document(tmp_path / "empty.slide", ParseMode.TITLES_ONLY)


def test_missing_file_raises_document_error(tmp_path: Path) -> None:
    with pytest.raises(DocumentError):
        parse_document(tmp_path / "absent.slide")


def test_is_document_checks_extension() -> None:
    assert is_document("talk.slide")
    assert is_document("notes.article")
    assert not is_document("notes.md")
    assert not is_document(".slide")


def test_unopenable_path_raises_document_error(tmp_path: Path) -> None:
    with pytest.raises(DocumentError, match="null"):
        parse_document(str(tmp_path / "x\x00.slide"))
    with pytest.raises(DocumentError):
        parse_document(tmp_path / "x\x00.article", ParseMode.TITLES_ONLY)
