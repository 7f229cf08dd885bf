"""Lay plain text and simple Markdown out onto fresh A4 pages."""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass

from reportlab.lib.colors import Color, black
from reportlab.pdfgen import canvas

LOGGER = logging.getLogger("fenixpdf.text")

PAGE_SIZE = (595.0, 842.0)
LEFT_MARGIN = 50.0
TOP = 800.0
BOTTOM_MARGIN = 50.0
BODY_FONT = "Helvetica"
BODY_SIZE = 12.0
PLAIN_LINE_STEP = 20.0
BLANK_LINE_GAP = 10.0
# Standard Type 1 fonts such as Helvetica only cover WinAnsiEncoding.
BODY_ENCODING = "cp1252"

_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")


@dataclass(frozen=True)
class LineStyle:
    font_size: float = BODY_SIZE
    color: Color = black


_HEADINGS = (
    ("### ", LineStyle(14.0, Color(0, 0, 0.4))),
    ("## ", LineStyle(16.0, Color(0, 0, 0.6))),
    ("# ", LineStyle(18.0, Color(0, 0, 0.8))),
)


def unsupported_characters(text: str) -> set[str]:
    """Return the characters of *text* the body font has no glyph for."""

    missing = set()
    for char in text:
        try:
            char.encode(BODY_ENCODING)
        except UnicodeEncodeError:
            missing.add(char)
    return missing


class _PageCursor:
    """Tracks the baseline and starts a new page below the bottom margin."""

    def __init__(self, pdf: canvas.Canvas) -> None:
        self.pdf = pdf
        self.y = TOP
        self.pages = 1
        self.dropped: set[str] = set()

    def advance(self, step: float) -> None:
        self.y -= step

    def draw(self, text: str, style: LineStyle) -> None:
        self.dropped.update(unsupported_characters(text))
        if self.y < BOTTOM_MARGIN:
            self.pdf.showPage()
            self.pages += 1
            self.y = TOP
        self.pdf.setFont(BODY_FONT, style.font_size)
        self.pdf.setFillColor(style.color)
        self.pdf.drawString(LEFT_MARGIN, self.y, text)

    def warn_dropped(self) -> None:
        if self.dropped:
            LOGGER.warning(
                "Font %s cannot draw %d character(s), they were replaced: %s",
                BODY_FONT,
                len(self.dropped),
                "".join(sorted(self.dropped)),
            )


def _new_canvas(buffer: io.BytesIO) -> canvas.Canvas:
    pdf = canvas.Canvas(buffer, pagesize=PAGE_SIZE)
    pdf.setTitle("Fênix PDF")
    return pdf


def render_plain_text(text: str) -> bytes:
    """Render one line of *text* per 20pt step, skipping blank lines."""

    buffer = io.BytesIO()
    pdf = _new_canvas(buffer)
    cursor = _PageCursor(pdf)
    style = LineStyle()

    for line in text.split("\n"):
        content = line.strip()
        if not content:
            continue
        cursor.draw(content, style)
        cursor.advance(PLAIN_LINE_STEP)

    pdf.save()
    cursor.warn_dropped()
    LOGGER.debug("Rendered plain text onto %d page(s)", cursor.pages)
    return buffer.getvalue()


def style_markdown_line(line: str) -> tuple[str, LineStyle]:
    """Return the display text and style of a single Markdown line."""

    text = line
    style = LineStyle()
    for prefix, heading_style in _HEADINGS:
        if line.startswith(prefix):
            text = line[len(prefix):]
            style = heading_style
            break

    if text.startswith("- ") or text.startswith("* "):
        text = "• " + text[2:]

    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    return text, style


def render_markdown(markdown: str) -> bytes:
    """Render headings, bullets and paragraphs of *markdown*.

    Emphasis markers are dropped; a blank line leaves a 10pt gap.
    """

    buffer = io.BytesIO()
    pdf = _new_canvas(buffer)
    cursor = _PageCursor(pdf)

    for raw_line in markdown.split("\n"):
        line = raw_line.strip()
        if not line:
            cursor.advance(BLANK_LINE_GAP)
            continue
        text, style = style_markdown_line(line)
        if text:
            cursor.draw(text, style)
        cursor.advance(style.font_size + 5)

    pdf.save()
    cursor.warn_dropped()
    LOGGER.debug("Rendered Markdown onto %d page(s)", cursor.pages)
    return buffer.getvalue()


__all__ = [
    "LineStyle",
    "render_markdown",
    "render_plain_text",
    "style_markdown_line",
    "unsupported_characters",
]
