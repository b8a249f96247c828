"""Render a single presentation document with its effective theme applied."""

from __future__ import annotations

import logging
from pathlib import Path

from .content import Document, ParseMode, parse_document
from .templates import TemplateSet
from .themes import ThemeLoader, merge_stylesheets

logger = logging.getLogger(__name__)

DEFAULT_CLOSING_MESSAGE = "Thank You"


class DocumentRenderer:
    """Parse a document, overlay its theme, and execute the matching template."""

    def __init__(
        self,
        *,
        templates: TemplateSet,
        theme_loader: ThemeLoader,
        default_theme: str = "",
    ) -> None:
        self._templates = templates
        self._theme_loader = theme_loader
        self._default_theme = default_theme

    def effective_theme(self, document: Document) -> str | None:
        """Explicit theme, else the default when the document has no styles of its own kind."""
        if document.theme:
            return document.theme
        if self._default_theme and not document.stylesheets:
            return self._default_theme
        return None

    def prepare(self, path: Path) -> Document:
        """Parse ``path`` and merge theme data into the document model."""
        document = parse_document(path, ParseMode.FULL)
        theme_name = self.effective_theme(document)
        if theme_name:
            document.theme = theme_name
            self._apply_theme(document, path.resolve().parent, theme_name)

        if document.hide_last_slide is None:
            document.hide_last_slide = False
        if document.closing_message is None:
            document.closing_message = DEFAULT_CLOSING_MESSAGE
        return document

    def render(self, path: Path) -> str:
        """Render the document at ``path``.

        Raises ``DocumentError`` when parsing fails and ``TemplateError`` when the
        template cannot be executed. Theme failures only leave the document unthemed.
        """
        document = self.prepare(path)
        context = {
            "doc": document,
            "stylesheets": document.stylesheets,
        }
        return self._templates.render_document(path.suffix, context)

    def _apply_theme(self, document: Document, start_dir: Path, theme_name: str) -> None:
        loaded = self._theme_loader.load(start_dir, theme_name)
        if loaded is None:
            logger.info("Rendering %s without theme '%s'", document.source_path, theme_name)
            return

        theme = loaded.theme
        document.article_stylesheets = merge_stylesheets(theme.article_stylesheets, document.article_stylesheets)
        document.slide_stylesheets = merge_stylesheets(theme.slide_stylesheets, document.slide_stylesheets)

        if document.hide_last_slide is None:
            document.hide_last_slide = theme.hide_last_slide
        if document.closing_message is None:
            document.closing_message = theme.closing_message
