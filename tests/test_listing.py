from __future__ import annotations

import json
import logging
from pathlib import Path

from presentplus.config import default_base_dir
from presentplus.listing import DirectoryLister, read_directory_config, show_dir, show_file
from presentplus.staging import AssetStager, StagingSequence
from presentplus.templates import TemplateSet
from presentplus.themes import ThemeLoader, ThemeResolver


def _lister(content_root: Path, tmp_path: Path, *, default_theme: str = "") -> DirectoryLister:
    resolver = ThemeResolver(builtin_dir=tmp_path / "base" / "themes")
    stager = AssetStager(tmp_path / "base" / "static" / "tmp", StagingSequence())
    return DirectoryLister(
        content_root=content_root,
        templates=TemplateSet(default_base_dir() / "templates"),
        theme_loader=ThemeLoader(resolver, stager),
        default_theme=default_theme,
    )


def _talks_tree(root: Path) -> Path:
    talks = root / "talks"
    (talks / "demos").mkdir(parents=True)
    (talks / "a.slide").write_text("Intro\n\n* One\n", encoding="utf-8")
    (talks / "b.article").write_text("Deep Dive\n\n* Part\n", encoding="utf-8")
    return talks


def _write_theme(root: Path, name: str, descriptor: dict[str, object]) -> None:
    folder = root / "plus-themes" / name
    folder.mkdir(parents=True)
    (folder / "theme.json").write_text(json.dumps(descriptor), encoding="utf-8")


def test_listing_classifies_entries(tmp_path: Path) -> None:
    content = tmp_path / "content"
    _talks_tree(content)

    listing = _lister(content, tmp_path).build("talks")

    assert listing is not None
    assert listing.path == "talks"
    assert [(e.name, e.path) for e in listing.dirs] == [("demos", "talks/demos")]
    assert [(e.name, e.title) for e in listing.slides] == [("a.slide", "Intro")]
    assert [(e.name, e.title) for e in listing.articles] == [("b.article", "Deep Dive")]
    assert listing.other == []
    assert listing.stylesheets == []


def test_listing_renders_titles_and_links(tmp_path: Path) -> None:
    content = tmp_path / "content"
    _talks_tree(content)

    html = _lister(content, tmp_path).render("/talks/")

    assert html is not None
    assert 'href="/talks/demos"' in html
    assert 'href="/talks/a.slide"' in html
    assert "Intro" in html
    assert "Deep Dive" in html


def test_listing_returns_none_for_files_and_missing_paths(tmp_path: Path) -> None:
    content = tmp_path / "content"
    _talks_tree(content)
    lister = _lister(content, tmp_path)

    assert lister.build("talks/a.slide") is None
    assert lister.render("nothing-here") is None


def test_collections_are_sorted_by_name(tmp_path: Path) -> None:
    content = tmp_path / "content"
    content.mkdir()
    for name in ("zeta", "Alpha", "beta"):
        (content / name).mkdir()
    for name in ("c.slide", "B.slide", "a.slide"):
        (content / name).write_text(f"{name}\n", encoding="utf-8")
    for name in ("z.pdf", "a.html", "m.go"):
        (content / name).write_text("", encoding="utf-8")

    listing = _lister(content, tmp_path).build("")

    assert listing is not None
    assert [e.name for e in listing.dirs] == ["Alpha", "beta", "zeta"]
    assert [e.name for e in listing.slides] == ["B.slide", "a.slide", "c.slide"]
    assert [e.name for e in listing.other] == ["a.html", "m.go", "z.pdf"]


def test_hidden_and_reserved_entries_are_skipped(tmp_path: Path) -> None:
    content = tmp_path / "content"
    content.mkdir()
    for name in (".git", "_drafts", "present", "plus-themes", "static", "visible"):
        (content / name).mkdir()
    (content / "notes.txt").write_text("", encoding="utf-8")
    (content / "handout.pdf").write_text("", encoding="utf-8")

    root_listing = _lister(content, tmp_path).build("")
    assert root_listing is not None
    assert [e.name for e in root_listing.dirs] == ["visible"]
    assert [e.name for e in root_listing.other] == ["handout.pdf"]
    assert root_listing.path == ""

    (content / "visible" / "static").mkdir()
    nested = _lister(content, tmp_path).build("visible")
    assert nested is not None
    assert [e.name for e in nested.dirs] == ["static"]


def test_directory_named_like_document_is_listed_as_directory(tmp_path: Path) -> None:
    content = tmp_path / "content"
    (content / "odd.slide").mkdir(parents=True)
    (content / ".hidden.slide").mkdir()

    listing = _lister(content, tmp_path).build("")

    assert listing is not None
    assert [e.name for e in listing.dirs] == ["odd.slide"]
    assert listing.slides == []


def test_directory_config_overrides_title_theme_and_visibility(tmp_path: Path) -> None:
    content = tmp_path / "content"
    talks = _talks_tree(content)
    _write_theme(content, "x", {"directory-stylesheets": ["listing.css", "/shared.css"]})
    (talks / "plus-config.json").write_text(
        json.dumps({"title": "Conference Talks", "theme": "x", "hidePath": True, "hideFileName": True}),
        encoding="utf-8",
    )

    listing = _lister(content, tmp_path, default_theme="other").build("talks")

    assert listing is not None
    assert listing.title == "Conference Talks"
    assert listing.path == ""
    assert listing.stylesheets == ["/static/tmp/0/listing.css", "/shared.css"]
    assert all(not entry.show_file_name for entry in listing.slides + listing.articles)
    assert all(entry.show_file_name for entry in listing.dirs)
    names = [e.name for e in listing.dirs + listing.slides + listing.articles + listing.other]
    assert "plus-config.json" not in names


def test_default_theme_applies_without_directory_config(tmp_path: Path) -> None:
    content = tmp_path / "content"
    _talks_tree(content)
    _write_theme(content, "house", {"directory-stylesheets": ["house.css"]})

    listing = _lister(content, tmp_path, default_theme="house").build("talks")

    assert listing is not None
    assert listing.title == "Talks"
    assert listing.stylesheets == ["/static/tmp/0/house.css"]


def test_malformed_directory_config_is_ignored(tmp_path: Path, caplog) -> None:
    content = tmp_path / "content"
    talks = _talks_tree(content)
    (talks / "plus-config.json").write_text("{broken", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        listing = _lister(content, tmp_path).build("talks")

    assert listing is not None
    assert listing.title == "Talks"
    assert listing.path == "talks"
    assert "directory config" in caplog.text
    assert read_directory_config(talks) is None


def test_null_directory_config_fields_keep_defaults(tmp_path: Path) -> None:
    content = tmp_path / "content"
    talks = _talks_tree(content)
    (talks / "plus-config.json").write_text(
        json.dumps({"title": None, "theme": None, "hidePath": True}),
        encoding="utf-8",
    )

    config = read_directory_config(talks)
    listing = _lister(content, tmp_path).build("talks")

    assert config is not None
    assert config.title == ""
    assert config.theme == ""
    assert listing is not None
    assert listing.title == "Talks"
    assert listing.path == ""


def test_unreadable_document_title_is_logged_and_listed(tmp_path: Path, caplog) -> None:
    content = tmp_path / "content"
    content.mkdir()
    (content / "blank.slide").write_text("\n\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        listing = _lister(content, tmp_path).build("")

    assert listing is not None
    assert [(e.name, e.title) for e in listing.slides] == [("blank.slide", "")]
    assert "blank.slide" in caplog.text


def test_visibility_predicates() -> None:
    assert show_dir("talks")
    assert not show_dir(".cache")
    assert not show_dir("_build")
    assert not show_dir("plus-themes")
    assert show_file("deck.slide")
    assert show_file("paper.pdf")
    assert not show_file("image.png")
