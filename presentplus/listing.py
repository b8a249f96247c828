"""Directory listings with per-directory overrides and theme stylesheets."""

from __future__ import annotations

import json
import logging
import posixpath
from dataclasses import dataclass, field
from operator import attrgetter
from pathlib import Path, PurePath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .content import DocumentError, DocumentKind, ParseMode, is_document, parse_document
from .templates import TemplateSet
from .themes import THEME_COLLECTION_DIRNAME, ThemeLoader, merge_stylesheets

logger = logging.getLogger(__name__)

DIRECTORY_CONFIG_FILENAME = "plus-config.json"
# Shadowed by the /static/ resource route, so never listed at the root.
ROOT_RESERVED_DIRS = frozenset({"static"})
RESERVED_DIRS = frozenset({"present", THEME_COLLECTION_DIRNAME})
VISIBLE_FILE_EXTENSIONS = frozenset({".pdf", ".html", ".go"})


class DirectoryConfig(BaseModel):
    """Overrides read from a directory's ``plus-config.json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(default="")
    theme: str = Field(default="")
    hide_path: bool = Field(default=False, alias="hidePath")
    hide_file_name: bool = Field(default=False, alias="hideFileName")

    @field_validator("title", "theme", mode="before")
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("hide_path", "hide_file_name", mode="before")
    def _null_flag(cls, value: Any) -> Any:
        return False if value is None else value


@dataclass(slots=True)
class DirEntry:
    name: str
    path: str
    title: str = ""
    show_file_name: bool = True


@dataclass(slots=True)
class DirectoryListing:
    """Template model for a directory index page."""

    title: str
    path: str
    stylesheets: list[str] = field(default_factory=list)
    dirs: list[DirEntry] = field(default_factory=list)
    slides: list[DirEntry] = field(default_factory=list)
    articles: list[DirEntry] = field(default_factory=list)
    other: list[DirEntry] = field(default_factory=list)

    def sort(self) -> None:
        for entries in (self.dirs, self.slides, self.articles, self.other):
            entries.sort(key=attrgetter("name"))


def read_directory_config(directory: Path) -> DirectoryConfig | None:
    """Return the directory's overrides, or ``None`` when absent or unusable."""
    config_path = directory / DIRECTORY_CONFIG_FILENAME
    if not config_path.is_file():
        return None
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data: Any = json.load(handle)
    except OSError as exc:
        logger.warning("Error opening directory config file %s: %s", config_path, exc)
        return None
    except json.JSONDecodeError as exc:
        logger.warning("Error parsing JSON object from directory config file %s: %s", config_path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Directory config file %s does not define an object root; ignoring.", config_path)
        return None
    try:
        return DirectoryConfig.model_validate(data)
    except ValidationError as exc:
        logger.warning("Directory config file %s failed validation: %s", config_path, exc)
        return None


def show_dir(name: str) -> bool:
    """Report whether a directory should be displayed in a listing."""
    if name.startswith((".", "_")):
        return False
    return name not in RESERVED_DIRS


def show_file(name: str) -> bool:
    """Report whether a non-directory entry should be displayed in a listing."""
    return PurePath(name).suffix in VISIBLE_FILE_EXTENSIONS or is_document(name)


class DirectoryLister:
    """Build and render the index page for a directory under the content root."""

    def __init__(
        self,
        *,
        content_root: Path,
        templates: TemplateSet,
        theme_loader: ThemeLoader,
        default_theme: str = "",
        default_title: str = "Talks",
    ) -> None:
        self._content_root = content_root
        self._templates = templates
        self._theme_loader = theme_loader
        self._default_theme = default_theme
        self._default_title = default_title

    def build(self, rel_path: str) -> DirectoryListing | None:
        """Assemble the listing model, or return ``None`` if ``rel_path`` is not a directory.

        Raises ``OSError`` when the directory exists but cannot be read.
        """
        rel_path = _normalize(rel_path)
        directory = self._content_root / rel_path if rel_path else self._content_root
        if not directory.is_dir():
            return None

        dir_config = read_directory_config(directory)
        listing = DirectoryListing(title=self._default_title, path=rel_path)
        theme_name = self._default_theme
        hide_path = False
        hide_file_name = False
        if dir_config is not None:
            if dir_config.title:
                listing.title = dir_config.title
            if dir_config.theme:
                theme_name = dir_config.theme
            hide_path = dir_config.hide_path
            hide_file_name = dir_config.hide_file_name

        for child in directory.iterdir():
            name = child.name
            if name == DIRECTORY_CONFIG_FILENAME:
                continue
            if not rel_path and name in ROOT_RESERVED_DIRS:
                continue
            entry = DirEntry(name=name, path=posixpath.join(rel_path, name) if rel_path else name)
            if child.is_dir():
                if show_dir(name):
                    listing.dirs.append(entry)
                continue
            kind = DocumentKind.from_extension(child.suffix)
            if kind is not None:
                entry.title = _document_title(child)
                if kind is DocumentKind.ARTICLE:
                    listing.articles.append(entry)
                else:
                    listing.slides.append(entry)
            elif show_file(name):
                listing.other.append(entry)

        if theme_name:
            loaded = self._theme_loader.load(directory, theme_name)
            if loaded is not None:
                listing.stylesheets = merge_stylesheets(
                    loaded.theme.directory_stylesheets, listing.stylesheets
                )

        if hide_path:
            listing.path = ""
        if hide_file_name:
            for entry in (*listing.slides, *listing.articles):
                entry.show_file_name = False

        listing.sort()
        return listing

    def render(self, rel_path: str) -> str | None:
        listing = self.build(rel_path)
        if listing is None:
            return None
        return self._templates.render_listing({"listing": listing})


def _document_title(path: Path) -> str:
    try:
        return parse_document(path, ParseMode.TITLES_ONLY).title
    except DocumentError as exc:
        logger.warning("Unable to read title of %s: %s", path, exc)
        return ""


def _normalize(rel_path: str) -> str:
    text = rel_path.replace("\\", "/").strip("/")
    if not text:
        return ""
    normalized = posixpath.normpath(text)
    return "" if normalized == "." else normalized
