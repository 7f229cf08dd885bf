"""Convert the text of a PDF into a simple Markdown document."""

from __future__ import annotations

import logging
import re
from pathlib import PurePath

from ..loader import read_pdf
from .extraction import ExtractionResult, extract_text
from .ocr import OcrEngine

LOGGER = logging.getLogger("fenixpdf.conversion")

_BLANK_RUN = re.compile(r"\n{3,}")


def _title(data: bytes, filename: str) -> str:
    metadata = read_pdf(data, name=filename).metadata
    title = metadata.title if metadata else None
    if title and title.strip():
        return title.strip()
    return PurePath(filename).stem or "Document"


def _normalise(text: str) -> str:
    lines = [line.rstrip() for line in text.splitlines()]
    return _BLANK_RUN.sub("\n\n", "\n".join(lines)).strip()


def render_extraction(title: str, extraction: ExtractionResult, filename: str) -> str:
    sections = [f"# {title}"]
    for number, page_text in enumerate(extraction.pages, start=1):
        body = _normalise(page_text)
        if body:
            sections.append(f"## Page {number}\n\n{body}")
    sections.append(f"---\n\n*Source file: {filename}*")
    return "\n\n".join(sections) + "\n"


def pdf_to_markdown(
    data: bytes,
    filename: str,
    *,
    language: str | None = None,
    engine: OcrEngine | None = None,
) -> str:
    """Return a Markdown rendition of the PDF held in *data*.

    The document title comes from the PDF metadata, or the file name stem
    when there is none. Each page with text becomes a ``## Page N`` section.
    """

    extraction = extract_text(data, name=filename, language=language, engine=engine)
    markdown = render_extraction(_title(data, filename), extraction, filename)
    LOGGER.info("Converted %s to Markdown (%s, %d characters)", filename, extraction.method, len(markdown))
    return markdown


__all__ = ["pdf_to_markdown", "render_extraction"]
