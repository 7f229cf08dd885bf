"""Text analysis, substitution and drawing helpers for :mod:`fenixpdf`."""

from __future__ import annotations

from .analyzer import (
    BoundingBox,
    PageTextStructure,
    TextItem,
    TextSearchResult,
    analyze_page_text_structure,
    calculate_optimal_coverage_area,
    extract_selectable_text,
    find_text_at_position,
    get_text_bounding_box,
    has_selectable_text,
    validate_coverage_area,
)
from .exceptions import InvalidEditsError, TextError
from .layout import render_markdown, render_plain_text
from .overlay import (
    TextEditResult,
    add_text_at_position,
    edit_text,
    replace_text_in_area,
    stamp_annotations,
)
from .replace import TextEdit, apply_replacements, parse_edits

__all__ = [
    "BoundingBox",
    "InvalidEditsError",
    "PageTextStructure",
    "TextEdit",
    "TextEditResult",
    "TextError",
    "TextItem",
    "TextSearchResult",
    "add_text_at_position",
    "analyze_page_text_structure",
    "apply_replacements",
    "calculate_optimal_coverage_area",
    "edit_text",
    "extract_selectable_text",
    "find_text_at_position",
    "get_text_bounding_box",
    "has_selectable_text",
    "parse_edits",
    "render_markdown",
    "render_plain_text",
    "replace_text_in_area",
    "stamp_annotations",
    "validate_coverage_area",
]
