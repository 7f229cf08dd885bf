"""In-memory editing session over a list of uploaded documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from . import pages as page_ops
from .compress import CompressionStats, compress_documents
from .config import get_settings
from .loader import cleanup_document, clear_cache, load_documents
from .merge import PdfMergeError, merge_documents
from .models import ActionType, Document, HistoryAction
from .history import History
from .utils import timestamp_slug
from .validation import Upload, ensure_pdf_suffix, sanitize_filename, validate_uploads

LOGGER = logging.getLogger("fenixpdf.workspace")


@dataclass
class UploadReport:
    documents: list[Document] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def merged_file_name(name: str | None = None) -> str:
    """Return a safe ``.pdf`` file name, defaulting to a timestamped one."""

    if name and name.strip():
        cleaned = sanitize_filename(name.strip())
        if cleaned:
            return ensure_pdf_suffix(cleaned)
    return f"documentos-unidos-{timestamp_slug()}.pdf"


class Workspace:
    """Ordered documents plus the undo/redo history of the edits made to them.

    Documents are immutable records, so every edit swaps in a new version and
    records the versions it replaced. Undo and redo swap them back.
    """

    def __init__(self, *, history_limit: int | None = None, max_upload_bytes: int | None = None) -> None:
        settings = get_settings()
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        self.history = History(history_limit)
        self._documents: list[Document] = []
        self._sources: dict[str, Document] = {}

    # documents -----------------------------------------------------------

    @property
    def documents(self) -> tuple[Document, ...]:
        return tuple(self._documents)

    def add_uploads(self, uploads: Iterable[Upload]) -> UploadReport:
        valid, errors = validate_uploads(uploads, max_size=self.max_upload_bytes)
        loaded, load_errors = load_documents(valid)
        for document in loaded:
            self._documents.append(document)
            self._sources[document.id] = document
        report = UploadReport(documents=loaded, errors=errors + load_errors)
        LOGGER.info("Added %d document(s), %d rejected", len(loaded), len(report.errors))
        return report

    def get_document(self, document_id: str) -> Document | None:
        for document in self._documents:
            if document.id == document_id:
                return document
        return None

    def _require(self, document_id: str) -> Document:
        document = self.get_document(document_id)
        if document is None:
            raise KeyError(f"Unknown document: {document_id}")
        return document

    def remove_document(self, document_id: str) -> bool:
        before = len(self._documents)
        self._documents = [d for d in self._documents if d.id != document_id]
        if len(self._documents) == before:
            return False
        cleanup_document(document_id)
        LOGGER.info("Removed document %s", document_id)
        return True

    def clear(self) -> None:
        self._documents.clear()
        self._sources.clear()
        self.history.clear()
        clear_cache()

    @property
    def total_pages(self) -> int:
        return sum(document.page_count for document in self._documents)

    @property
    def total_size(self) -> int:
        return sum(document.size for document in self._documents)

    def locate_page(self, global_index: int) -> tuple[Document, int] | None:
        """Map a page index across all documents onto ``(document, local index)``."""

        if global_index < 0:
            return None
        offset = global_index
        for document in self._documents:
            if offset < document.page_count:
                return document, offset
            offset -= document.page_count
        return None

    # history -------------------------------------------------------------

    def _rebase(self, document: Document) -> Document:
        # History versions may predate a compression of the same document.
        current = self._sources.get(document.id)
        if current is None or current.data is document.data:
            return document
        return document.with_data(current.data)

    def _store(self, versions: Mapping[str, Document]) -> None:
        """Swap in *versions*, keeping each document's current file bytes."""

        self._replace({key: self._rebase(document) for key, document in versions.items()})

    def _replace(self, versions: Mapping[str, Document]) -> None:
        for position, document in enumerate(self._documents):
            if document.id in versions:
                self._documents[position] = versions[document.id]
        for document_id, document in versions.items():
            self._sources[document_id] = document

    def _commit(
        self,
        type: ActionType,
        description: str,
        updated: Iterable[Document],
        data: Any = None,
    ) -> HistoryAction | None:
        after = {document.id: document for document in updated}
        before = {document_id: self._require(document_id) for document_id in after}
        if all(before[key] is after[key] for key in after):
            LOGGER.debug("%s left the workspace unchanged", type)
            return None

        self._store(after)
        return self.history.push(
            type,
            description,
            undo=lambda: self._store(before),
            redo=lambda: self._store(after),
            data=data,
        )

    def undo(self) -> HistoryAction | None:
        return self.history.undo()

    def redo(self) -> HistoryAction | None:
        return self.history.redo()

    def _edit(
        self,
        document_id: str,
        type: ActionType,
        description: str,
        operation: Callable[[Document], Document],
        data: Any = None,
    ) -> Document:
        updated = operation(self._require(document_id))
        self._commit(type, description, [updated], data)
        return updated

    # page and annotation operations ---------------------------------------

    def add_text(self, document_id: str, page_index: int, text: str, x: float, y: float, **options: Any) -> Document:
        return self._edit(
            document_id,
            "add_text",
            f'Add text "{text}" on page {page_index + 1}',
            lambda d: page_ops.add_text_annotation(d, page_index, text, x, y, **options),
            data={"page_index": page_index, "text": text},
        )

    def update_text(self, document_id: str, page_index: int, annotation_id: str, **updates: Any) -> Document:
        return self._edit(
            document_id,
            "edit_text",
            f"Edit text on page {page_index + 1}",
            lambda d: page_ops.update_text_annotation(d, page_index, annotation_id, **updates),
            data={"page_index": page_index, "annotation_id": annotation_id, **updates},
        )

    def delete_text(self, document_id: str, page_index: int, annotation_id: str) -> Document:
        return self._edit(
            document_id,
            "delete_text",
            f"Delete text on page {page_index + 1}",
            lambda d: page_ops.remove_text_annotation(d, page_index, annotation_id),
            data={"page_index": page_index, "annotation_id": annotation_id},
        )

    def rotate_page(self, document_id: str, page_index: int, degrees: int = 90) -> Document:
        return self._edit(
            document_id,
            "rotate_page",
            f"Rotate page {page_index + 1} by {degrees}°",
            lambda d: page_ops.rotate_page(d, page_index, degrees),
            data={"page_index": page_index, "degrees": degrees},
        )

    def delete_page(self, document_id: str, page_index: int) -> Document:
        return self._edit(
            document_id,
            "delete_page",
            f"Delete page {page_index + 1}",
            lambda d: page_ops.remove_page(d, page_index),
            data={"page_index": page_index},
        )

    def reorder_pages(self, document_id: str, from_index: int, to_index: int) -> Document:
        return self._edit(
            document_id,
            "reorder_pages",
            f"Move page {from_index + 1} to position {to_index + 1}",
            lambda d: page_ops.reorder_pages(d, from_index, to_index),
            data={"from_index": from_index, "to_index": to_index},
        )

    def move_page(
        self,
        source_id: str,
        target_id: str,
        source_index: int,
        target_index: int,
    ) -> tuple[Document, Document]:
        if source_id == target_id:
            document = self._require(source_id)
            to_index = max(0, min(target_index, document.page_count - 1))
            reordered = self.reorder_pages(source_id, source_index, to_index)
            return reordered, reordered

        source, target = page_ops.move_page_between_documents(
            self._require(source_id), self._require(target_id), source_index, target_index
        )
        self._commit(
            "move_page",
            f"Move page {source_index + 1} to another document",
            [source, target],
            data={
                "source_id": source_id,
                "target_id": target_id,
                "source_index": source_index,
                "target_index": target_index,
            },
        )
        return source, target

    # output ----------------------------------------------------------------

    def merge(self, name: str | None = None) -> tuple[str, bytes]:
        """Merge every document into one PDF and return ``(file name, bytes)``."""

        if len(self._documents) < 2:
            raise PdfMergeError("At least two documents are required to merge")
        data = merge_documents(self._documents, sources=self._sources)
        return merged_file_name(name), data

    def generate(self) -> bytes:
        """Return the bytes of all documents with rotations and annotations applied."""

        if not self._documents:
            raise PdfMergeError("No documents loaded")
        return merge_documents(self._documents, sources=self._sources)

    def compress(self, quality: float = 0.7) -> tuple[list[str], CompressionStats]:
        """Compress every document in place; failures keep the original bytes.

        Compression is not an undoable action. Undo and redo of earlier edits
        keep the compressed bytes.
        """

        compressed, errors, stats = compress_documents(self._documents, quality)
        self._replace({document.id: document for document in compressed})
        LOGGER.info(
            "Compressed workspace: %d -> %d bytes (%.1f%%)",
            stats.original_size,
            stats.compressed_size,
            stats.percentage,
        )
        return errors, stats


__all__ = ["UploadReport", "Workspace", "merged_file_name"]
