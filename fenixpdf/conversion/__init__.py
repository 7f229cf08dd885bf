"""Text extraction, OCR and Markdown round trips for :mod:`fenixpdf`."""

from __future__ import annotations

from .exceptions import ConversionError, NoTextExtractedError, OcrError, OcrUnavailableError
from .extraction import ExtractionResult, extract_text
from .markdown import pdf_to_markdown
from .ocr import OcrEngine, OcrMyPdfEngine
from .workflows import MarkdownOutcome, OcrEditOutcome, markdown_workflow, ocr_edit_workflow

__all__ = [
    "ConversionError",
    "ExtractionResult",
    "MarkdownOutcome",
    "NoTextExtractedError",
    "OcrEditOutcome",
    "OcrEngine",
    "OcrError",
    "OcrMyPdfEngine",
    "OcrUnavailableError",
    "extract_text",
    "markdown_workflow",
    "ocr_edit_workflow",
    "pdf_to_markdown",
]
