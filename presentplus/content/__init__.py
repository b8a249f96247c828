"""Presentation document models and the default markup parser."""

from pathlib import PurePath

from .models import Document, DocumentKind, Section
from .parsers import DocumentError, ParseMode, parse_document, parse_text

DOCUMENT_EXTENSIONS = frozenset(kind.extension for kind in DocumentKind)


def is_document(name: str | PurePath) -> bool:
    """Report whether ``name`` carries a presentable document extension."""
    return PurePath(name).suffix in DOCUMENT_EXTENSIONS


__all__ = [
    "DOCUMENT_EXTENSIONS",
    "Document",
    "DocumentError",
    "DocumentKind",
    "ParseMode",
    "Section",
    "is_document",
    "parse_document",
    "parse_text",
]
