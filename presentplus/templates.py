"""Jinja2 template set used to render documents and directory listings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, TemplateError as JinjaTemplateError, select_autoescape

logger = logging.getLogger(__name__)

CONTENT_TEMPLATES: Mapping[str, str] = {
    ".slide": "slides.html",
    ".article": "article.html",
}
LISTING_TEMPLATE = "dir.html"


class TemplateError(RuntimeError):
    """Raised when templates cannot be loaded or fail to render."""


class TemplateSet:
    """Load the content and listing templates once and render them on demand."""

    def __init__(self, templates_dir: Path) -> None:
        if not templates_dir.is_dir():
            raise TemplateError(f"Templates directory '{templates_dir}' does not exist.")
        self._templates_dir = templates_dir
        self._environment = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._ensure_templates([*CONTENT_TEMPLATES.values(), LISTING_TEMPLATE])

    @property
    def templates_dir(self) -> Path:
        return self._templates_dir

    def render_document(self, extension: str, context: dict[str, Any]) -> str:
        template_name = CONTENT_TEMPLATES.get(extension)
        if template_name is None:
            raise TemplateError(f"No template is registered for '{extension}' documents.")
        return self._render(template_name, context)

    def render_listing(self, context: dict[str, Any]) -> str:
        return self._render(LISTING_TEMPLATE, context)

    def _render(self, template_name: str, context: dict[str, Any]) -> str:
        try:
            template = self._environment.get_template(template_name)
            return template.render(**context)
        except JinjaTemplateError as exc:
            raise TemplateError(f"Failed to render template '{template_name}': {exc}") from exc

    def _ensure_templates(self, names: list[str]) -> None:
        for name in names:
            try:
                self._environment.get_template(name)
            except JinjaTemplateError as exc:
                raise TemplateError(
                    f"Required template '{name}' could not be loaded from {self._templates_dir}: {exc}"
                ) from exc
        logger.debug("Loaded %d templates from %s", len(names), self._templates_dir)
