"""Page and annotation operations on :class:`~fenixpdf.models.Document` records.

Every function returns a new document and leaves its input untouched. A page
index outside the document is ignored and the document is returned as is.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Iterable, Mapping

from .models import (
    DEFAULT_COLOR,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    Document,
    Page,
    TextAnnotation,
)
from .text.analyzer import estimate_text_width
from .utils import new_id

LOGGER = logging.getLogger("fenixpdf.pages")

_ANNOTATION_FIELDS = {f.name for f in dataclasses.fields(TextAnnotation)} - {"id"}


def _in_range(document: Document, page_index: int) -> bool:
    if 0 <= page_index < len(document.pages):
        return True
    LOGGER.debug(
        "Ignoring page index %s for %s (%d pages)", page_index, document.name, len(document.pages)
    )
    return False


def _replace_page(document: Document, page_index: int, page: Page) -> Document:
    pages = list(document.pages)
    pages[page_index] = page
    return dataclasses.replace(document, pages=tuple(pages))


def add_text_annotation(
    document: Document,
    page_index: int,
    text: str,
    x: float,
    y: float,
    *,
    width: float | None = None,
    height: float | None = None,
    font_size: float | None = None,
    font_family: str | None = None,
    color: str | None = None,
) -> Document:
    """Append a text annotation to the page at *page_index*.

    Negative coordinates are clamped to zero. When no box size is given it is
    estimated from the text length and font size.
    """

    if not _in_range(document, page_index):
        return document

    size = font_size or DEFAULT_FONT_SIZE
    annotation = TextAnnotation(
        id=new_id("annotation"),
        content=text,
        x=max(0.0, x),
        y=max(0.0, y),
        width=width or max(estimate_text_width(text, size), 100.0),
        height=height or max(size * 1.2, 20.0),
        font_size=size,
        font_family=font_family or DEFAULT_FONT_FAMILY,
        color=color or DEFAULT_COLOR,
    )
    page = document.pages[page_index]
    updated = dataclasses.replace(page, text_annotations=page.text_annotations + (annotation,))
    return _replace_page(document, page_index, updated)


def update_text_annotation(
    document: Document,
    page_index: int,
    annotation_id: str,
    **updates: Any,
) -> Document:
    """Apply *updates* to the annotation identified by *annotation_id*."""

    unknown = set(updates) - _ANNOTATION_FIELDS
    if unknown:
        raise TypeError(f"Unknown annotation fields: {', '.join(sorted(unknown))}")

    if not _in_range(document, page_index):
        return document

    page = document.pages[page_index]
    annotations = tuple(
        dataclasses.replace(annotation, **updates) if annotation.id == annotation_id else annotation
        for annotation in page.text_annotations
    )
    return _replace_page(document, page_index, dataclasses.replace(page, text_annotations=annotations))


def remove_text_annotation(document: Document, page_index: int, annotation_id: str) -> Document:
    if not _in_range(document, page_index):
        return document

    page = document.pages[page_index]
    annotations = tuple(a for a in page.text_annotations if a.id != annotation_id)
    return _replace_page(document, page_index, dataclasses.replace(page, text_annotations=annotations))


def find_annotation(document: Document, page_index: int, annotation_id: str) -> TextAnnotation | None:
    if not 0 <= page_index < len(document.pages):
        return None
    for annotation in document.pages[page_index].text_annotations:
        if annotation.id == annotation_id:
            return annotation
    return None


def rotate_page(document: Document, page_index: int, degrees: int) -> Document:
    """Rotate a page clockwise by *degrees*, keeping the angle in ``[0, 360)``.

    Raises:
        ValueError: If *degrees* is not a multiple of 90.
    """

    if degrees % 90 != 0:
        raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees}")

    if not _in_range(document, page_index):
        return document

    page = document.pages[page_index]
    rotated = dataclasses.replace(page, rotation=(page.rotation + degrees) % 360)
    return _replace_page(document, page_index, rotated)


def remove_page(document: Document, page_index: int) -> Document:
    if not _in_range(document, page_index):
        return document

    pages = list(document.pages)
    del pages[page_index]
    return document.with_pages(pages)


def insert_page(document: Document, page_index: int, page: Page) -> Document:
    """Insert *page* at *page_index*, clamping the index into range."""

    pages = list(document.pages)
    pages.insert(max(0, min(page_index, len(pages))), page)
    return document.with_pages(pages)


def reorder_pages(document: Document, from_index: int, to_index: int) -> Document:
    """Move the page at *from_index* so that it ends up at *to_index*."""

    if not (_in_range(document, from_index) and _in_range(document, to_index)):
        return document

    pages = list(document.pages)
    moved = pages.pop(from_index)
    pages.insert(to_index, moved)
    return document.with_pages(pages)


def move_page_between_documents(
    source: Document,
    target: Document,
    source_index: int,
    target_index: int,
) -> tuple[Document, Document]:
    """Move a page record from *source* into *target*.

    Only the page records move; the underlying PDF bytes of both documents
    stay as uploaded. When *source* and *target* are the same document the
    move is a reorder, with *target_index* clamped to the last page.
    """

    if not _in_range(source, source_index):
        return source, target

    if source.id == target.id:
        to_index = max(0, min(target_index, len(source.pages) - 1))
        reordered = reorder_pages(source, source_index, to_index)
        return reordered, reordered

    source_pages = list(source.pages)
    moved = source_pages.pop(source_index)
    target_pages = list(target.pages)
    target_pages.insert(max(0, min(target_index, len(target_pages))), moved)
    return source.with_pages(source_pages), target.with_pages(target_pages)


def apply_extracted_text_as_annotations(
    document: Document,
    page_index: int,
    items: Iterable[Mapping[str, Any]],
) -> Document:
    """Turn extracted text items into annotations that keep their style."""

    if not _in_range(document, page_index):
        return document

    annotations = tuple(
        TextAnnotation(
            id=new_id(f"extracted-{position}"),
            content=str(item["text"]),
            x=float(item["x"]),
            y=float(item["y"]),
            width=float(item["width"]),
            height=float(item["height"]),
            font_size=float(item.get("font_size", DEFAULT_FONT_SIZE)),
            font_family=str(item.get("font_family", DEFAULT_FONT_FAMILY)),
            color=str(item.get("color", DEFAULT_COLOR)),
        )
        for position, item in enumerate(items)
    )
    page = document.pages[page_index]
    updated = dataclasses.replace(page, text_annotations=page.text_annotations + annotations)
    return _replace_page(document, page_index, updated)


__all__ = [
    "add_text_annotation",
    "apply_extracted_text_as_annotations",
    "find_annotation",
    "insert_page",
    "move_page_between_documents",
    "remove_page",
    "remove_text_annotation",
    "reorder_pages",
    "rotate_page",
    "update_text_annotation",
]
