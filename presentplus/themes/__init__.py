"""Theme resolution, loading, and stylesheet merging for presentplus."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..staging import AssetStager

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "theme.json"
THEME_COLLECTION_DIRNAME = "plus-themes"
ABSOLUTE_PREFIXES = ("/", "http://", "https://")


class Theme(BaseModel):
    """Structured representation of a theme's ``theme.json`` descriptor."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    directory_stylesheets: list[str] = Field(default_factory=list, alias="directory-stylesheets")
    article_stylesheets: list[str] = Field(default_factory=list, alias="article-stylesheets")
    slide_stylesheets: list[str] = Field(default_factory=list, alias="slide-stylesheets")
    hide_last_slide: bool | None = Field(default=None, alias="hide-last-slide")
    closing_message: str | None = Field(default=None, alias="closing-message")

    @field_validator("directory_stylesheets", "article_stylesheets", "slide_stylesheets", mode="before")
    def _coerce_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("hide_last_slide", mode="before")
    def _legacy_flag(cls, value: Any) -> Any:
        # Older descriptors stored the flag as a string; "" meant unset.
        if isinstance(value, str):
            text = value.strip().lower()
            if not text:
                return None
            return text
        return value

    @field_validator("closing_message", mode="before")
    def _blank_message(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def with_staging_path(self, staging_path: str) -> "Theme":
        """Return a copy whose relative stylesheets point into ``staging_path``."""
        return self.model_copy(
            update={
                "directory_stylesheets": rewrite_stylesheets(self.directory_stylesheets, staging_path),
                "article_stylesheets": rewrite_stylesheets(self.article_stylesheets, staging_path),
                "slide_stylesheets": rewrite_stylesheets(self.slide_stylesheets, staging_path),
            }
        )


@dataclass(frozen=True, slots=True)
class LoadedTheme:
    """A theme whose assets have been staged for this resolution."""

    name: str
    source_dir: Path
    staging_path: str
    theme: Theme


def rewrite_stylesheets(stylesheets: Iterable[str], staging_path: str) -> list[str]:
    """Root theme-relative stylesheet entries at ``/<staging_path>/``."""
    prefix = "/" + staging_path.strip("/")
    rewritten: list[str] = []
    for entry in stylesheets:
        href = entry.strip()
        if not href:
            continue
        if not href.startswith(ABSOLUTE_PREFIXES):
            if href.startswith("./"):
                href = href[2:]
            href = f"{prefix}/{href}"
        rewritten.append(href)
    return rewritten


def merge_stylesheets(theme_stylesheets: Sequence[str], own_stylesheets: Sequence[str]) -> list[str]:
    """Theme entries first, then the document's own entries."""
    return [*theme_stylesheets, *own_stylesheets]


class ThemeResolver:
    """Find a theme folder by name across the local, shared, and built-in locations."""

    def __init__(self, *, builtin_dir: Path, repo_dir: Path | None = None) -> None:
        self._builtin_dir = builtin_dir
        self._repo_dir = repo_dir

    def candidates(self, start_dir: Path) -> list[Path]:
        """Every theme collection probed from ``start_dir``, in priority order."""
        locations: list[Path] = []
        current = start_dir.resolve()
        while True:
            locations.append(current / THEME_COLLECTION_DIRNAME)
            parent = current.parent
            if parent == current:
                break
            current = parent
        if self._repo_dir is not None:
            locations.append(self._repo_dir)
        locations.append(self._builtin_dir)
        return locations

    def resolve(self, start_dir: Path, theme_name: str) -> Path | None:
        locations = self.candidates(start_dir)
        for collection in locations:
            candidate = collection / theme_name
            if candidate.is_dir():
                logger.debug("Theme '%s' resolved to %s", theme_name, candidate)
                return candidate

        looked_in = "".join(f"\n  {location}" for location in locations)
        logger.warning(
            "Theme folder '%s' could not be found at any of the following locations:%s",
            theme_name,
            looked_in,
        )
        return None


class ThemeLoader:
    """Resolve a theme, stage its assets, and decode its descriptor."""

    def __init__(self, resolver: ThemeResolver, stager: AssetStager) -> None:
        self._resolver = resolver
        self._stager = stager

    def load(self, start_dir: Path, theme_name: str) -> LoadedTheme | None:
        theme_dir = self._resolver.resolve(start_dir, theme_name)
        if theme_dir is None:
            return None

        staging_path = self._stager.stage(theme_dir)
        if staging_path is None:
            return None

        theme = load_theme_file(theme_dir / MANIFEST_FILENAME)
        if theme is None:
            return None

        return LoadedTheme(
            name=theme_name,
            source_dir=theme_dir,
            staging_path=staging_path,
            theme=theme.with_staging_path(staging_path),
        )


def load_theme_file(path: Path) -> Theme | None:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except OSError as exc:
        logger.warning("Error opening theme file %s: %s", path, exc)
        return None
    except json.JSONDecodeError as exc:
        logger.warning("Error parsing JSON object from theme file %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Theme file %s does not define an object root; ignoring.", path)
        return None
    try:
        return Theme.model_validate(data)
    except ValidationError as exc:
        logger.warning("Theme file %s failed validation: %s", path, exc)
        return None
