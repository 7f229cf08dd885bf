"""End-to-end extract, edit and re-render workflows."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable

from ..text.layout import render_markdown, render_plain_text
from ..text.replace import TextEdit, apply_replacements
from .exceptions import ConversionError, NoTextExtractedError
from .extraction import ExtractionMethod, extract_text
from .markdown import pdf_to_markdown
from .ocr import OcrEngine

LOGGER = logging.getLogger("fenixpdf.conversion")


def output_file_name(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}.pdf"


@dataclass(frozen=True)
class OcrEditOutcome:
    extracted_text: str
    edited_text: str
    method: ExtractionMethod
    file_name: str
    pdf: bytes = field(repr=False)


@dataclass(frozen=True)
class MarkdownOutcome:
    markdown: str
    file_name: str
    pdf: bytes = field(repr=False)


def ocr_edit_workflow(
    data: bytes,
    filename: str,
    edits: Iterable[TextEdit] = (),
    language: str | None = None,
    *,
    engine: OcrEngine | None = None,
) -> OcrEditOutcome:
    """Extract the text of a PDF, apply *edits* and lay it out on new pages."""

    extraction = extract_text(data, name=filename, language=language, engine=engine)
    extracted = extraction.text
    if not extracted.strip():
        raise NoTextExtractedError(f"No text could be extracted from {filename}")

    edited = apply_replacements(extracted, edits)
    outcome = OcrEditOutcome(
        extracted_text=extracted,
        edited_text=edited,
        method=extraction.method,
        file_name=output_file_name("pdf_ocr_editado"),
        pdf=render_plain_text(edited),
    )
    LOGGER.info("OCR edit workflow finished for %s using %s text", filename, extraction.method)
    return outcome


def markdown_workflow(
    *,
    data: bytes | None = None,
    filename: str | None = None,
    markdown: str | None = None,
    edits: Iterable[TextEdit] = (),
    language: str | None = None,
    engine: OcrEngine | None = None,
) -> MarkdownOutcome:
    """Render Markdown to PDF.

    Supplied *markdown* is rendered as is. Otherwise the PDF in *data* is
    converted to Markdown and *edits* are applied before rendering.
    """

    if markdown:
        final = markdown
    elif data is not None:
        final = apply_replacements(
            pdf_to_markdown(data, filename or "document.pdf", language=language, engine=engine),
            edits,
        )
    else:
        raise ConversionError("A PDF file or Markdown content is required")

    outcome = MarkdownOutcome(
        markdown=final,
        file_name=output_file_name("pdf_markdown_editado"),
        pdf=render_markdown(final),
    )
    LOGGER.info("Markdown workflow produced %s", outcome.file_name)
    return outcome


__all__ = [
    "MarkdownOutcome",
    "OcrEditOutcome",
    "markdown_workflow",
    "ocr_edit_workflow",
    "output_file_name",
]
