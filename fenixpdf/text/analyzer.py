"""Text-layer analysis: positioned text items, search and coverage helpers.

Positions are expressed in PDF user space (origin at the lower-left corner of
the page, units in points). A :class:`TextItem` bounding box starts slightly
below the baseline so that descenders are covered.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from statistics import fmean

from pypdf import PdfReader

LOGGER = logging.getLogger("fenixpdf.text")

DEFAULT_LINE_HEIGHT = 14.0
COLUMN_GAP = 50.0


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    def contains(self, x: float, y: float, tolerance: float = 0.0) -> bool:
        return (
            self.x - tolerance <= x <= self.x + self.width + tolerance
            and self.y - tolerance <= y <= self.y + self.height + tolerance
        )


@dataclass(frozen=True)
class TextItem:
    content: str
    x: float
    y: float
    width: float
    height: float
    font_size: float
    font_family: str
    page_index: int
    color: str = "#000000"

    @property
    def bounding_box(self) -> BoundingBox:
        return BoundingBox(self.x, self.y - self.font_size * 0.2, self.width, self.height)

    def as_annotation_fields(self) -> dict[str, object]:
        return {
            "text": self.content,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "font_size": self.font_size,
            "font_family": self.font_family,
            "color": self.color,
        }


@dataclass(frozen=True)
class TextSearchResult:
    found: bool
    text_items: list[TextItem] = field(default_factory=list)
    total_matches: int = 0
    bounding_box: BoundingBox | None = None


@dataclass(frozen=True)
class PageTextStructure:
    total_text_items: int
    average_font_size: float
    font_families: list[str]
    text_density: float
    has_multiple_columns: bool
    estimated_line_height: float


def estimate_text_width(text: str, font_size: float) -> float:
    return len(text) * font_size * 0.6


def _multiply(tm: list[float], cm: list[float]) -> list[float]:
    a, b, c, d, e, f = tm
    a2, b2, c2, d2, e2, f2 = cm
    return [
        a * a2 + b * c2,
        a * b2 + b * d2,
        c * a2 + d * c2,
        c * b2 + d * d2,
        e * a2 + f * c2 + e2,
        e * b2 + f * d2 + f2,
    ]


def _font_name(font_dict: object) -> str:
    if not font_dict or not hasattr(font_dict, "get"):
        return "Helvetica"
    base_font = str(font_dict.get("/BaseFont", "/Helvetica")).lstrip("/")
    # Subset fonts are prefixed with six capitals and a plus sign.
    if len(base_font) > 7 and base_font[6] == "+":
        base_font = base_font[7:]
    return base_font


def extract_selectable_text(reader: PdfReader, page_index: int) -> list[TextItem]:
    """Return the positioned text runs of a page.

    Unreadable pages produce an empty list; the error is logged.
    """

    items: list[TextItem] = []

    def visitor(text, cm, tm, font_dict, font_size):
        content = text.strip()
        if not content:
            return
        matrix = _multiply(list(tm), list(cm))
        scale = math.hypot(matrix[2], matrix[3]) or 1.0
        size = float(font_size) * scale if font_size else 12.0
        items.append(
            TextItem(
                content=content,
                x=matrix[4],
                y=matrix[5],
                width=estimate_text_width(content, size),
                height=size * 1.2,
                font_size=size,
                font_family=_font_name(font_dict),
                page_index=page_index,
            )
        )

    try:
        reader.pages[page_index].extract_text(visitor_text=visitor)
    except Exception as exc:
        LOGGER.error("Failed to extract text from page %s: %s", page_index, exc)
        return []
    return items


def find_text_at_position(
    reader: PdfReader,
    page_index: int,
    x: float,
    y: float,
    tolerance: float = 10.0,
) -> TextItem | None:
    for item in extract_selectable_text(reader, page_index):
        if item.bounding_box.contains(x, y, tolerance):
            return item
    return None


def get_text_bounding_box(reader: PdfReader, page_index: int, search_text: str) -> TextSearchResult:
    """Find the runs containing *search_text* and the box enclosing them all."""

    needle = search_text.lower()
    matches = [
        item for item in extract_selectable_text(reader, page_index) if needle in item.content.lower()
    ]
    if not matches:
        return TextSearchResult(found=False)

    boxes = [item.bounding_box for item in matches]
    min_x = min(box.x for box in boxes)
    min_y = min(box.y for box in boxes)
    max_x = max(box.x + box.width for box in boxes)
    max_y = max(box.y + box.height for box in boxes)
    return TextSearchResult(
        found=True,
        text_items=matches,
        total_matches=len(matches),
        bounding_box=BoundingBox(min_x, min_y, max_x - min_x, max_y - min_y),
    )


def has_selectable_text(reader: PdfReader) -> bool:
    return any(extract_selectable_text(reader, index) for index in range(len(reader.pages)))


def _detect_multiple_columns(x_positions: list[float]) -> bool:
    if len(x_positions) < 10:
        return False
    clusters = 1
    for previous, current in zip(x_positions, x_positions[1:]):
        if current - previous >= COLUMN_GAP:
            clusters += 1
    return clusters > 1


def _estimate_line_height(y_positions: list[float]) -> float:
    if len(y_positions) < 2:
        return DEFAULT_LINE_HEIGHT
    gaps = sorted(
        upper - lower
        for upper, lower in zip(y_positions, y_positions[1:])
        if 5 < upper - lower < 50
    )
    if not gaps:
        return DEFAULT_LINE_HEIGHT
    return gaps[len(gaps) // 2]


def analyze_page_text_structure(reader: PdfReader, page_index: int) -> PageTextStructure:
    items = extract_selectable_text(reader, page_index)
    if not items:
        return PageTextStructure(0, 12.0, [], 0.0, False, DEFAULT_LINE_HEIGHT)

    box = reader.pages[page_index].mediabox
    area = float(box.width) * float(box.height)
    families = list(dict.fromkeys(item.font_family for item in items))
    return PageTextStructure(
        total_text_items=len(items),
        average_font_size=fmean(item.font_size for item in items),
        font_families=families,
        text_density=len(items) / area if area else 0.0,
        has_multiple_columns=_detect_multiple_columns(sorted(item.x for item in items)),
        estimated_line_height=_estimate_line_height(sorted((item.y for item in items), reverse=True)),
    )


def calculate_optimal_coverage_area(text: str, font_size: float) -> tuple[float, float]:
    """Return the ``(width, height)`` of a box able to hide *text*, with margins."""

    width = max(50.0, estimate_text_width(text, font_size))
    height = max(12.0, font_size * 1.2)
    return width + 10, height + 4


def validate_coverage_area(
    text: str,
    font_size: float,
    coverage_width: float,
    coverage_height: float,
) -> tuple[bool, list[str]]:
    optimal_width, optimal_height = calculate_optimal_coverage_area(text, font_size)
    recommendations: list[str] = []

    if coverage_width < optimal_width * 0.8:
        recommendations.append(f"Width too small. Recommended: {optimal_width:g}pt")
    if coverage_height < optimal_height * 0.8:
        recommendations.append(f"Height too small. Recommended: {optimal_height:g}pt")
    if coverage_width > optimal_width * 2:
        recommendations.append("Width too large. It may cover adjacent text.")
    if coverage_height > optimal_height * 2:
        recommendations.append("Height too large. It may cover adjacent text.")

    return not recommendations, recommendations


__all__ = [
    "BoundingBox",
    "PageTextStructure",
    "TextItem",
    "TextSearchResult",
    "analyze_page_text_structure",
    "calculate_optimal_coverage_area",
    "estimate_text_width",
    "extract_selectable_text",
    "find_text_at_position",
    "get_text_bounding_box",
    "has_selectable_text",
    "validate_coverage_area",
]
