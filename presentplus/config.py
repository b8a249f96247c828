"""Server configuration: defaults, the on-disk config file, and derived paths."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

THEME_REPO_DIRNAME = "present-plus-themes"


def default_base_dir() -> Path:
    """Location of the packaged templates and static resources."""
    return Path(__file__).resolve().parent / "resources"


def default_config_path() -> Path:
    filename = "ppconfig.json" if os.name == "nt" else ".ppconfig"
    return Path.home() / filename


class Config(BaseModel):
    """Process-wide settings, read once at startup."""

    http: str = Field(default="127.0.0.1:4999", description="HTTP service address (host:port).")
    orighost: str = Field(default="", description="Host component of the advertised origin URL.")
    base: Path | None = Field(
        default=None,
        description="Base path for templates and static resources; packaged resources when unset.",
    )
    theme: str = Field(
        default="",
        description="Default theme applied when a document defines no styles of its own.",
    )
    repo: Path | None = Field(default=None, description="Shared theme repository path.")
    listing_title: str = Field(default="Talks", description="Title used for directory listings.")

    @field_validator("base", "repo", mode="before")
    def _ensure_optional_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        return Path(value)

    @field_validator("theme", mode="before")
    def _strip_theme(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @property
    def uses_default_base(self) -> bool:
        return self.base is None

    @property
    def base_dir(self) -> Path:
        if self.base is not None:
            return self.base
        return default_base_dir()

    @property
    def templates_dir(self) -> Path:
        return self.base_dir / "templates"

    @property
    def static_dir(self) -> Path:
        return self.base_dir / "static"

    @property
    def builtin_themes_dir(self) -> Path:
        return self.static_dir / "themes"

    @property
    def staging_root(self) -> Path:
        return self.static_dir / "tmp"

    @property
    def theme_repo(self) -> Path | None:
        """Configured repository, else a ``present-plus-themes`` folder beside the packaged base."""
        if self.repo is not None:
            return self.repo
        candidate = (default_base_dir().parent / THEME_REPO_DIRNAME).resolve()
        if candidate.is_dir():
            return candidate
        return None

    def split_address(self) -> tuple[str, int]:
        host, sep, port = self.http.rpartition(":")
        if not sep:
            raise ValueError(f"HTTP address '{self.http}' must be in host:port form.")
        try:
            port_number = int(port)
        except ValueError:
            raise ValueError(f"HTTP address '{self.http}' has a non-numeric port.") from None
        if port_number < 0 or port_number > 65535:
            raise ValueError("Port must be between 0 and 65535.")
        return host.strip("[]"), port_number


def load_config(path: str | Path | None = None, *, create: bool = True) -> Config:
    """Load configuration from ``path`` (default ``~/.ppconfig``).

    The file holds a YAML mapping; plain JSON objects are accepted because
    JSON is valid YAML. When the default file is missing and ``create`` is
    set, it is created containing ``{}``. Relative paths inside the file are
    interpreted relative to the directory holding it.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else default_config_path()

    if not config_path.exists():
        if explicit or not create:
            raise FileNotFoundError(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text("{}", encoding="utf-8")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Unable to parse config file '{config_path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config file '{config_path}' must contain a mapping.")

    cfg = Config(**data)
    base_dir = config_path.parent.resolve()

    def _abs_optional(value: Path | None) -> Path | None:
        if value is None:
            return None
        value = value.expanduser()
        return value if value.is_absolute() else (base_dir / value).resolve()

    cfg.base = _abs_optional(cfg.base)
    cfg.repo = _abs_optional(cfg.repo)
    return cfg
