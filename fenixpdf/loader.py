"""Turn uploaded bytes into :class:`~fenixpdf.models.Document` records."""

from __future__ import annotations

import io
import logging
import threading
from collections import OrderedDict
from typing import Iterable

from pypdf import PdfReader

from .config import get_settings
from .exceptions import InvalidPDFError
from .models import Document, Page, new_page
from .utils import new_id
from .validation import Upload

LOGGER = logging.getLogger("fenixpdf.loader")


def read_pdf(data: bytes, *, name: str = "<memory>") -> PdfReader:
    """Parse *data* with :class:`pypdf.PdfReader`, decrypting empty passwords.

    Raises:
        InvalidPDFError: If the bytes are not a readable PDF.
    """

    try:
        reader = PdfReader(io.BytesIO(data))
    except Exception as exc:  # pragma: no cover - dependency exceptions vary
        LOGGER.error("Failed to read PDF %s: %s", name, exc)
        raise InvalidPDFError(f"Unable to read PDF: {name}") from exc

    if reader.is_encrypted:
        LOGGER.debug("Attempting to decrypt encrypted PDF %s", name)
        try:
            reader.decrypt("")
        except Exception as exc:  # pragma: no cover - decrypt errors vary
            LOGGER.error("Failed to decrypt PDF %s: %s", name, exc)
            raise InvalidPDFError(f"Unable to decrypt encrypted PDF: {name}") from exc

    try:
        page_count = len(reader.pages)
    except Exception as exc:
        LOGGER.error("PDF %s has an unreadable page tree: %s", name, exc)
        raise InvalidPDFError(f"Unable to read PDF: {name}") from exc

    if page_count == 0:
        LOGGER.error("PDF %s contains no pages", name)
        raise InvalidPDFError(f"PDF contains no pages: {name}")

    return reader


class ReaderCache:
    """First-in first-out cache of parsed readers keyed by document id.

    An entry is only reused while the document still points at the bytes the
    reader was built from; edited documents keep their id but get new bytes.
    Every access holds ``_lock``; PDFs are parsed outside it.
    """

    def __init__(self, max_size: int | None = None) -> None:
        self.max_size = max_size if max_size is not None else get_settings().reader_cache_size
        self._readers: OrderedDict[str, tuple[bytes, PdfReader]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, document: Document) -> PdfReader:
        with self._lock:
            entry = self._readers.get(document.id)
        if entry is not None and entry[0] is document.data:
            return entry[1]
        reader = read_pdf(document.data, name=document.name)
        self.put(document.id, document.data, reader)
        return reader

    def put(self, document_id: str, data: bytes, reader: PdfReader) -> None:
        with self._lock:
            if document_id not in self._readers and len(self._readers) >= self.max_size:
                evicted, _ = self._readers.popitem(last=False)
                LOGGER.debug("Evicted reader for %s from cache", evicted)
            self._readers[document_id] = (data, reader)

    def discard(self, document_id: str) -> None:
        with self._lock:
            self._readers.pop(document_id, None)

    def clear(self) -> None:
        with self._lock:
            self._readers.clear()

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"size": len(self._readers), "max_size": self.max_size}

    def __contains__(self, document_id: object) -> bool:
        with self._lock:
            return document_id in self._readers

    def __len__(self) -> int:
        with self._lock:
            return len(self._readers)


_CACHE = ReaderCache()


def get_reader(document: Document) -> PdfReader:
    """Return a (cached) reader for *document*."""

    return _CACHE.get(document)


def cleanup_document(document_id: str) -> None:
    """Drop the cached reader of *document_id*, if any."""

    _CACHE.discard(document_id)


def clear_cache() -> None:
    _CACHE.clear()


def cache_stats() -> dict[str, int]:
    return _CACHE.stats()


def _page_records(reader: PdfReader, owner: str) -> tuple[Page, ...]:
    pages = []
    for index, pdf_page in enumerate(reader.pages):
        box = pdf_page.mediabox
        pages.append(new_page(index, float(box.width), float(box.height), owner=owner))
    return tuple(pages)


def wrap_upload(name: str, data: bytes) -> Document:
    """Wrap *data* in a document without reading its pages."""

    return Document(id=new_id("doc"), name=name, size=len(data), data=data)


def populate_pages(document: Document) -> Document:
    """Return *document* with one page record per PDF page.

    Documents that already carry page records are returned unchanged.
    """

    if document.pages:
        return document
    reader = get_reader(document)
    populated = document.with_pages(_page_records(reader, document.id))
    LOGGER.debug("Discovered %d pages in %s", populated.page_count, document.name)
    return populated


def open_document(name: str, data: bytes) -> Document:
    """Read *data* and return a fully populated :class:`Document`."""

    reader = read_pdf(data, name=name)
    document = wrap_upload(name, data)
    _CACHE.put(document.id, document.data, reader)
    document = document.with_pages(_page_records(reader, document.id))
    LOGGER.info("Loaded %s (%d pages, %d bytes)", name, document.page_count, document.size)
    return document


def load_documents(uploads: Iterable[Upload]) -> tuple[list[Document], list[str]]:
    """Load every upload, skipping the ones that fail.

    Returns the loaded documents and one error message per failed upload.
    """

    documents: list[Document] = []
    errors: list[str] = []
    for upload in uploads:
        try:
            documents.append(open_document(upload.name, upload.data))
        except InvalidPDFError as exc:
            LOGGER.warning("Skipping %s: %s", upload.name, exc)
            errors.append(f"Error loading {upload.name}: {exc}")
    return documents, errors


__all__ = [
    "ReaderCache",
    "cache_stats",
    "cleanup_document",
    "clear_cache",
    "get_reader",
    "load_documents",
    "open_document",
    "populate_pages",
    "read_pdf",
    "wrap_upload",
]
