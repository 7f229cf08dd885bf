"""Text extraction with an OCR fallback for scanned documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from pypdf import PdfReader

from ..config import get_settings
from ..loader import read_pdf
from .exceptions import NoTextExtractedError
from .ocr import OcrEngine, OcrMyPdfEngine

LOGGER = logging.getLogger("fenixpdf.conversion")

ExtractionMethod = Literal["native", "ocr"]


@dataclass(frozen=True)
class ExtractionResult:
    pages: tuple[str, ...]
    method: ExtractionMethod

    @property
    def text(self) -> str:
        return "\n\n".join(page for page in self.pages if page)


def extract_native_pages(reader: PdfReader) -> tuple[str, ...]:
    pages = []
    for page_index, page in enumerate(reader.pages):
        try:
            pages.append((page.extract_text() or "").strip())
        except Exception as exc:  # pragma: no cover - dependency exceptions vary
            LOGGER.warning("Failed to extract text from page %d: %s", page_index + 1, exc)
            pages.append("")
    return tuple(pages)


def extract_text(
    data: bytes,
    *,
    name: str = "<memory>",
    language: str | None = None,
    engine: OcrEngine | None = None,
    min_chars: int | None = None,
) -> ExtractionResult:
    """Return the text of every page of *data*.

    The PDF text layer is used when it holds at least *min_chars*
    characters; otherwise the pages are run through OCR.

    Raises:
        InvalidPDFError: If *data* is not a readable PDF.
        OcrUnavailableError: If OCR is needed but cannot run.
        NoTextExtractedError: If no text could be found at all.
    """

    settings = get_settings()
    threshold = min_chars if min_chars is not None else settings.native_text_min_chars

    native = ExtractionResult(extract_native_pages(read_pdf(data, name=name)), "native")
    if len(native.text) >= threshold:
        LOGGER.info("Extracted %d characters from the text layer of %s", len(native.text), name)
        return native

    LOGGER.info(
        "Text layer of %s has %d characters (< %d), falling back to OCR",
        name,
        len(native.text),
        threshold,
    )
    ocr_engine = engine or OcrMyPdfEngine()
    recognized = ExtractionResult(
        tuple(ocr_engine.recognize(data, language or settings.ocr_language)), "ocr"
    )
    if recognized.text:
        return recognized
    if native.text:
        return native
    raise NoTextExtractedError(f"No text could be extracted from {name}")


__all__ = ["ExtractionMethod", "ExtractionResult", "extract_native_pages", "extract_text"]
