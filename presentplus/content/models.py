"""Typed representations of parsed presentation documents."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DocumentKind(str, Enum):
    """Presentable document flavours, keyed by file extension."""

    SLIDE = "slide"
    ARTICLE = "article"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @classmethod
    def from_extension(cls, extension: str) -> "DocumentKind | None":
        for kind in cls:
            if kind.extension == extension:
                return kind
        return None


class Section(BaseModel):
    """One ``*`` section of a document; a slide in slide decks."""

    title: str = Field(description="Section heading.")
    html: str = Field(default="", description="Rendered section body.")


class Document(BaseModel):
    """A parsed slide deck or article."""

    title: str = Field(description="Display title.")
    kind: DocumentKind = Field(default=DocumentKind.SLIDE)
    subtitle: Optional[str] = Field(default=None)
    tags: list[str] = Field(default_factory=list)
    authors: list[str] = Field(default_factory=list, description="Author block lines from the header.")
    theme: Optional[str] = Field(default=None, description="Theme declared in the source file.")
    article_stylesheets: list[str] = Field(default_factory=list)
    slide_stylesheets: list[str] = Field(default_factory=list)
    hide_last_slide: Optional[bool] = Field(
        default=None, description="Suppress the closing slide; unset defers to the theme."
    )
    closing_message: Optional[str] = Field(default=None)
    sections: list[Section] = Field(default_factory=list)
    source_path: str = Field(default="")

    @property
    def stylesheets(self) -> list[str]:
        """Stylesheets declared for the document's own kind."""
        if self.kind is DocumentKind.ARTICLE:
            return self.article_stylesheets
        return self.slide_stylesheets
