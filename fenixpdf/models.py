"""In-memory records describing uploaded documents, pages and annotations."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

from .utils import new_id

DEFAULT_FONT_SIZE = 12
DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_COLOR = "#000000"

ActionType = Literal[
    "add_text",
    "edit_text",
    "delete_text",
    "rotate_page",
    "delete_page",
    "reorder_pages",
    "move_page",
]


@dataclass(frozen=True, slots=True)
class TextAnnotation:
    """Overlay text drawn onto a page when the document is generated.

    Coordinates use the PDF user space of the page: ``(x, y)`` is the
    lower-left corner of the text baseline box, measured in points.
    """

    id: str
    x: float
    y: float
    width: float
    height: float
    content: str
    font_size: float | None = DEFAULT_FONT_SIZE
    font_family: str | None = DEFAULT_FONT_FAMILY
    color: str | None = DEFAULT_COLOR


@dataclass(frozen=True, slots=True)
class Page:
    """Metadata for a single page of a :class:`Document`.

    ``source_id`` and ``source_index`` point at the PDF page this record was
    created from, so page records can be reordered or moved between documents
    and still be resolved when the output is generated.
    """

    id: str
    index: int
    rotation: int = 0
    text_annotations: tuple[TextAnnotation, ...] = ()
    width: float = 0.0
    height: float = 0.0
    source_id: str | None = None
    source_index: int | None = None


@dataclass(frozen=True, slots=True)
class Document:
    """An uploaded PDF together with its page records.

    ``data`` holds the raw file bytes and is the source of truth for every
    structural operation. ``pages`` may be empty until populated by
    :func:`fenixpdf.loader.populate_pages`.
    """

    id: str
    name: str
    size: int
    data: bytes = field(repr=False)
    pages: tuple[Page, ...] = ()

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def with_pages(self, pages: list[Page] | tuple[Page, ...]) -> "Document":
        """Return a copy holding *pages*, reindexed to stay contiguous."""

        return dataclasses.replace(self, pages=reindex(pages))

    def with_data(self, data: bytes) -> "Document":
        """Return a copy backed by new file bytes."""

        return dataclasses.replace(self, data=data, size=len(data))


@dataclass(slots=True)
class HistoryAction:
    """A reversible workspace operation."""

    id: str
    type: ActionType
    timestamp: float
    description: str
    undo: Callable[[], None] = field(repr=False)
    redo: Callable[[], None] = field(repr=False)
    data: Any = None


def reindex(pages: list[Page] | tuple[Page, ...]) -> tuple[Page, ...]:
    """Return *pages* with ``index`` equal to their position."""

    return tuple(
        page if page.index == position else dataclasses.replace(page, index=position)
        for position, page in enumerate(pages)
    )


def new_page(index: int, width: float = 0.0, height: float = 0.0, *, owner: str | None = None) -> Page:
    page_id = f"page-{owner}-{index}" if owner else new_id("page")
    return Page(
        id=page_id,
        index=index,
        width=width,
        height=height,
        source_id=owner,
        source_index=index if owner else None,
    )


__all__ = [
    "ActionType",
    "DEFAULT_COLOR",
    "DEFAULT_FONT_FAMILY",
    "DEFAULT_FONT_SIZE",
    "Document",
    "HistoryAction",
    "Page",
    "TextAnnotation",
    "new_page",
    "reindex",
]
