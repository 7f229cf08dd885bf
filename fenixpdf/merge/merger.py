"""Merge functionality for the :mod:`fenixpdf.merge` package."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from pypdf import PdfReader, PdfWriter

from ..exceptions import InvalidPDFError
from ..loader import get_reader, wrap_upload
from ..models import Document, Page
from ..text.overlay import stamp_annotations
from ..utils import PathLike, ensure_iterable, ensure_path
from .exceptions import PdfMergeError
from .validators import validate_pdf

LOGGER = logging.getLogger("fenixpdf.merge")


def _reader_for(document: Document) -> PdfReader:
    try:
        return get_reader(document)
    except InvalidPDFError as exc:
        raise PdfMergeError(f"Invalid PDF: {document.name}") from exc


def _resolve_source(
    page: Page,
    owner: Document,
    sources: Mapping[str, Document],
) -> tuple[Document, int]:
    if page.source_id is None or page.source_id == owner.id:
        source_index = page.source_index if page.source_index is not None else page.index
        return owner, source_index
    source = sources.get(page.source_id)
    if source is None:
        raise PdfMergeError(
            f"Page {page.id} of {owner.name} refers to an unknown document {page.source_id}"
        )
    return source, page.source_index if page.source_index is not None else page.index


def _copy_metadata(reader: PdfReader) -> Optional[dict[str, str]]:
    if not reader.metadata:
        return None
    return {
        key: str(value)
        for key, value in reader.metadata.items()
        if isinstance(key, str) and value is not None
    }


def merge_documents(
    documents: Iterable[Document],
    *,
    metadata: bool = True,
    apply_edits: bool = True,
    sources: Optional[Mapping[str, Document]] = None,
) -> bytes:
    """Concatenate the pages of *documents* and return the resulting PDF bytes.

    Args:
        documents: Documents to merge, in output order.
        metadata: When ``True`` metadata from the first document is copied
            into the merged document.
        apply_edits: When ``True`` page rotations and text annotations held
            by the page records are applied. Documents whose pages were never
            populated contribute every PDF page unchanged.
        sources: Extra documents that page records may point at, for pages
            that were moved out of a document no longer being merged.

    Raises:
        PdfMergeError: If merging fails for any reason.
    """

    documents = list(documents)
    if not documents:
        raise PdfMergeError("No input PDFs provided")

    lookup: dict[str, Document] = dict(sources or {})
    lookup.update((document.id, document) for document in documents)

    writer = PdfWriter()
    first_metadata: Optional[dict[str, str]] = None

    for document in documents:
        LOGGER.debug("Processing document %s", document.name)
        reader = _reader_for(document)

        if not document.pages:
            for page_index, pdf_page in enumerate(reader.pages):
                LOGGER.debug("Adding page %s from %s", page_index, document.name)
                writer.add_page(pdf_page)
        else:
            for page in document.pages:
                source, source_index = _resolve_source(page, document, lookup)
                source_reader = reader if source is document else _reader_for(source)
                if not 0 <= source_index < len(source_reader.pages):
                    raise PdfMergeError(
                        f"Page {source_index + 1} does not exist in {source.name}"
                    )
                LOGGER.debug("Adding page %s from %s", source_index, source.name)
                added = writer.add_page(source_reader.pages[source_index])
                if apply_edits:
                    if page.rotation:
                        added.rotate(page.rotation)
                    stamp_annotations(added, page.text_annotations)

        if metadata and first_metadata is None:
            first_metadata = _copy_metadata(reader)

    if metadata and first_metadata:
        LOGGER.debug("Setting metadata on merged PDF: %s", first_metadata)
        writer.add_metadata(first_metadata)

    buffer = io.BytesIO()
    try:
        writer.write(buffer)
    except Exception as exc:  # pragma: no cover - dependency exceptions vary
        LOGGER.error("Failed to write merged PDF: %s", exc)
        raise PdfMergeError("Failed to write merged PDF") from exc

    LOGGER.info("Merged %d documents (%d pages)", len(documents), len(writer.pages))
    return buffer.getvalue()


def merge_pdfs(
    inputs: Iterable[PathLike],
    output: PathLike,
    *,
    metadata: bool = True,
) -> Path:
    """Merge the PDF files *inputs* into *output* and return the resulting path.

    Raises:
        PdfMergeError: If an input is invalid or the output cannot be written.
    """

    pdf_paths = ensure_iterable(inputs)
    if not pdf_paths:
        raise PdfMergeError("No input PDFs provided")

    output_path = ensure_path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    documents = []
    for pdf_path in pdf_paths:
        try:
            validate_pdf(pdf_path)
        except Exception as exc:
            raise PdfMergeError(f"Invalid PDF: {pdf_path}") from exc
        documents.append(wrap_upload(pdf_path.name, pdf_path.read_bytes()))

    merged = merge_documents(documents, metadata=metadata)

    try:
        output_path.write_bytes(merged)
    except OSError as exc:  # pragma: no cover - IO errors vary
        LOGGER.error("Failed to write merged PDF to %s: %s", output_path, exc)
        raise PdfMergeError(f"Failed to write merged PDF to {output_path}") from exc

    LOGGER.info("Merged %d PDFs into %s", len(pdf_paths), output_path)
    return output_path


__all__ = ["merge_documents", "merge_pdfs"]
