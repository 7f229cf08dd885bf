"""Draw text onto PDF pages with :mod:`reportlab` overlays.

Each overlay is rendered as a one-page PDF the size of the target page and
merged on top of it with :meth:`pypdf.PageObject.merge_page`. The original
page content is kept; "replacing" text means painting a white box over the
old text and drawing the new text on top.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from pypdf import PageObject, PdfReader, PdfWriter
from reportlab.lib.colors import Color, HexColor, white
from reportlab.pdfgen import canvas

from ..exceptions import FenixPDFError
from ..loader import get_reader
from ..models import DEFAULT_COLOR, DEFAULT_FONT_SIZE, Document, TextAnnotation
from .analyzer import get_text_bounding_box, validate_coverage_area

LOGGER = logging.getLogger("fenixpdf.text")

COVER_MARGIN = 2.0

_FONT_MAP = {
    "arial": "Helvetica",
    "helvetica": "Helvetica",
    "times": "Times-Roman",
    "courier": "Courier",
}


@dataclass(frozen=True)
class TextEditResult:
    success: bool
    message: str
    document: Document
    recommendations: list[str] = field(default_factory=list)


def resolve_font(font_family: str | None) -> str:
    """Map a family name onto one of the standard PDF fonts."""

    family = (font_family or "").lower()
    for key, font in _FONT_MAP.items():
        if key in family:
            return font
    return "Helvetica"


def resolve_color(value: str | None) -> Color:
    try:
        return HexColor(value or DEFAULT_COLOR)
    except ValueError:
        LOGGER.warning("Invalid color %r, falling back to black", value)
        return HexColor(DEFAULT_COLOR)


def _render_overlay(page: PageObject, draw: Callable[[canvas.Canvas], None]) -> PageObject:
    box = page.mediabox
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(float(box.right), float(box.top)))
    draw(pdf)
    pdf.save()
    buffer.seek(0)
    return PdfReader(buffer).pages[0]


def stamp_annotations(page: PageObject, annotations: Iterable[TextAnnotation]) -> PageObject:
    """Draw *annotations* onto *page* in place and return it."""

    annotations = list(annotations)
    if not annotations:
        return page

    def draw(pdf: canvas.Canvas) -> None:
        for annotation in annotations:
            pdf.setFont(resolve_font(annotation.font_family), annotation.font_size or DEFAULT_FONT_SIZE)
            pdf.setFillColor(resolve_color(annotation.color))
            pdf.drawString(annotation.x, annotation.y, annotation.content)

    page.merge_page(_render_overlay(page, draw))
    LOGGER.debug("Stamped %d annotations", len(annotations))
    return page


def _edit_page(document: Document, page_index: int, draw: Callable[[canvas.Canvas], None]) -> Document:
    writer = PdfWriter(clone_from=get_reader(document))
    page = writer.pages[page_index]
    page.merge_page(_render_overlay(page, draw))
    buffer = io.BytesIO()
    writer.write(buffer)
    return document.with_data(buffer.getvalue())


def _check_page(document: Document, page_index: int) -> str | None:
    page_count = len(get_reader(document).pages)
    if 0 <= page_index < page_count:
        return None
    return f"Page {page_index + 1} does not exist ({page_count} pages)"


def add_text_at_position(
    document: Document,
    page_index: int,
    x: float,
    y: float,
    text: str,
    *,
    font_size: float = DEFAULT_FONT_SIZE,
    color: str | None = None,
) -> TextEditResult:
    """Draw *text* with its baseline starting at ``(x, y)``."""

    def draw(pdf: canvas.Canvas) -> None:
        pdf.setFont("Helvetica", font_size)
        pdf.setFillColor(resolve_color(color))
        pdf.drawString(x, y, text)

    try:
        problem = _check_page(document, page_index)
        if problem:
            return TextEditResult(False, problem, document)
        edited = _edit_page(document, page_index, draw)
    except Exception as exc:  # pragma: no cover - dependency exceptions vary
        LOGGER.error("Failed to add text to %s: %s", document.name, exc)
        return TextEditResult(False, f"Error adding text: {exc}", document)

    LOGGER.info("Added text at (%s, %s) on page %d of %s", x, y, page_index + 1, document.name)
    return TextEditResult(True, "Text added successfully", edited)


def replace_text_in_area(
    document: Document,
    page_index: int,
    x: float,
    y: float,
    width: float,
    height: float,
    text: str,
    *,
    font_size: float = DEFAULT_FONT_SIZE,
) -> TextEditResult:
    """Cover the rectangle ``(x, y, width, height)`` in white and draw *text* in it."""

    def draw(pdf: canvas.Canvas) -> None:
        pdf.setFillColor(white)
        pdf.setStrokeColor(white)
        pdf.rect(x, y, width, height, stroke=0, fill=1)
        pdf.setFont("Helvetica", font_size)
        pdf.setFillColor(resolve_color(None))
        pdf.drawString(x, y + font_size * 0.2, text)

    recommendations = validate_coverage_area(text, font_size, width, height)[1]
    try:
        problem = _check_page(document, page_index)
        if problem:
            return TextEditResult(False, problem, document, recommendations)
        edited = _edit_page(document, page_index, draw)
    except Exception as exc:  # pragma: no cover - dependency exceptions vary
        LOGGER.error("Failed to replace text in %s: %s", document.name, exc)
        return TextEditResult(False, f"Error replacing text: {exc}", document, recommendations)

    LOGGER.info("Replaced area on page %d of %s", page_index + 1, document.name)
    return TextEditResult(True, "Text replaced successfully", edited, recommendations)


def edit_text(document: Document, page_index: int, search_text: str, new_text: str) -> TextEditResult:
    """Find *search_text* in the page text layer and paint *new_text* over it."""

    try:
        problem = _check_page(document, page_index)
        if problem:
            return TextEditResult(False, problem, document)
        result = get_text_bounding_box(get_reader(document), page_index, search_text)
    except FenixPDFError as exc:
        return TextEditResult(False, str(exc), document)

    if not result.found or result.bounding_box is None:
        return TextEditResult(
            False, f'Text "{search_text}" not found on page {page_index + 1}', document
        )

    box = result.bounding_box
    font_size = result.text_items[0].font_size
    outcome = replace_text_in_area(
        document,
        page_index,
        box.x - COVER_MARGIN,
        box.y - COVER_MARGIN,
        box.width + COVER_MARGIN * 2,
        box.height + COVER_MARGIN * 2,
        new_text,
        font_size=font_size,
    )
    if not outcome.success:
        return outcome
    return TextEditResult(
        True,
        f'Replaced {result.total_matches} occurrence(s) of "{search_text}"',
        outcome.document,
        outcome.recommendations,
    )


__all__ = [
    "TextEditResult",
    "add_text_at_position",
    "edit_text",
    "replace_text_in_area",
    "resolve_color",
    "resolve_font",
    "stamp_annotations",
]
