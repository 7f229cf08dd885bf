"""Fênix PDF: merge, compress, annotate and edit the text of PDF documents."""

from __future__ import annotations

from .exceptions import FenixPDFError, InvalidPDFError, UploadValidationError
from .loader import load_documents, open_document
from .models import Document, HistoryAction, Page, TextAnnotation
from .validation import Upload
from .workspace import Workspace

__version__ = "0.1.0"

__all__ = [
    "Document",
    "FenixPDFError",
    "HistoryAction",
    "InvalidPDFError",
    "Page",
    "TextAnnotation",
    "Upload",
    "UploadValidationError",
    "Workspace",
    "load_documents",
    "open_document",
    "__version__",
]
