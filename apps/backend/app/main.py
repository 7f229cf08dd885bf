"""FastAPI application exposing PDF utilities from the shared library."""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Callable, Iterator, List

from fastapi import BackgroundTasks, Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse

from fenixpdf import __version__
from fenixpdf.compress import CompressionError, compress_bytes
from fenixpdf.config import get_settings
from fenixpdf.conversion import (
    NoTextExtractedError,
    OcrUnavailableError,
    markdown_workflow,
    ocr_edit_workflow,
    pdf_to_markdown,
)
from fenixpdf.exceptions import FenixPDFError, InvalidPDFError, UploadValidationError
from fenixpdf.loader import cleanup_document, get_reader, open_document
from fenixpdf.merge import PdfMergeError, merge_documents
from fenixpdf.models import Document
from fenixpdf.pages import remove_page, reorder_pages, rotate_page
from fenixpdf.text import (
    InvalidEditsError,
    TextEditResult,
    add_text_at_position,
    edit_text,
    has_selectable_text,
    parse_edits,
    replace_text_in_area,
)
from fenixpdf.utils import truncate
from fenixpdf.validation import Upload, require_valid_upload, sanitize_filename
from fenixpdf.workspace import Workspace

from .schemas import DocumentInfoResponse, MarkdownPreviewResponse, OcrEditResponse, PageInfo

LOGGER = logging.getLogger("fenixpdf.backend")

app = FastAPI(title="Fênix PDF API", version=__version__)


def _cleanup_temp_dir(background_tasks: BackgroundTasks, temp_dir: TemporaryDirectory) -> None:
    """Schedule ``temp_dir`` to be cleaned up after the response is sent."""

    background_tasks.add_task(temp_dir.cleanup)


def _safe_filename(filename: str | None, default: str) -> str:
    """Return a filesystem-safe filename derived from user input."""

    if not filename:
        return default

    candidate = sanitize_filename(Path(filename).name)
    return candidate or default


async def _store_upload(upload: UploadFile, default_name: str = "document.pdf") -> Upload:
    """Read ``upload`` into memory and reject it unless it passes validation."""

    contents = await upload.read()
    stored = Upload(
        name=_safe_filename(upload.filename, default_name),
        data=contents,
        content_type=upload.content_type,
    )
    try:
        return require_valid_upload(stored, max_size=get_settings().max_upload_bytes)
    except UploadValidationError as exc:
        raise HTTPException(status_code=400, detail=f"File '{upload.filename}': {exc.reason}") from exc


def _release_readers() -> Iterator[list[str]]:
    """Yield a list for opened document ids and drop their cached readers afterwards."""

    opened: list[str] = []
    try:
        yield opened
    finally:
        for document_id in opened:
            cleanup_document(document_id)


async def _open_upload(upload: UploadFile, opened: list[str]) -> Document:
    """Open ``upload`` and record its id so the request releases its reader."""

    stored = await _store_upload(upload)
    try:
        document = await run_in_threadpool(open_document, stored.name, stored.data)
    except InvalidPDFError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    opened.append(document.id)
    return document


def _pdf_response(
    background_tasks: BackgroundTasks,
    data: bytes,
    filename: str,
    headers: dict[str, str] | None = None,
) -> FileResponse:
    """Write ``data`` to a temporary file and stream it back as an attachment."""

    temp_dir = TemporaryDirectory()
    output_path = Path(temp_dir.name) / filename
    output_path.write_bytes(data)
    _cleanup_temp_dir(background_tasks, temp_dir)

    return FileResponse(
        output_path,
        media_type="application/pdf",
        filename=filename,
        headers=headers,
    )


def _edited_name(document: Document) -> str:
    return f"{Path(document.name).stem}-edited.pdf"


def _check_page(document: Document, page: int, field: str = "page") -> int:
    """Validate a 1-indexed page number and return its zero-based index."""

    if not 1 <= page <= document.page_count:
        raise HTTPException(
            status_code=400,
            detail=f"'{field}' must be between 1 and {document.page_count}.",
        )
    return page - 1


async def _render(document: Document) -> bytes:
    try:
        return await run_in_threadpool(merge_documents, [document])
    except PdfMergeError as exc:  # pragma: no cover - defensive conversion to HTTP error
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _parse_edits(raw_value: str | None):
    try:
        return parse_edits(raw_value)
    except InvalidEditsError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _conversion_error(exc: FenixPDFError) -> HTTPException:
    if isinstance(exc, OcrUnavailableError):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, (InvalidPDFError, NoTextExtractedError)):
        return HTTPException(status_code=400, detail=str(exc))
    LOGGER.error("Conversion failed: %s", exc)
    return HTTPException(status_code=500, detail=f"Internal error: {exc}")


@app.get("/health", response_class=JSONResponse)
async def health() -> dict[str, str]:
    """Lightweight health endpoint for uptime checks."""
    return {"status": "ok"}


@app.post("/api/editar-pdf-ocr", response_model=OcrEditResponse)
async def ocr_edit(
    arquivo: UploadFile | None = File(None, description="PDF whose text should be edited."),
    edicoes: str = Form("[]", description="JSON list of {old, new} substitutions."),
    language: str | None = Form(None, alias="linguagemOCR", description="OCR languages, e.g. 'por+eng'."),
) -> OcrEditResponse:
    """Extract the text of a PDF, apply substitutions and re-render it.

    The text layer is used when it is long enough; scanned documents go
    through OCR. The edited PDF is returned base64 encoded.
    """

    if arquivo is None:
        raise HTTPException(status_code=400, detail="PDF not provided.")

    edits = _parse_edits(edicoes)
    stored = await _store_upload(arquivo)

    try:
        outcome = await run_in_threadpool(
            ocr_edit_workflow,
            stored.data,
            stored.name,
            edits,
            language or get_settings().ocr_language,
        )
    except FenixPDFError as exc:
        raise _conversion_error(exc) from exc

    return OcrEditResponse(
        message="PDF processed and edited successfully!",
        file_name=outcome.file_name,
        method=outcome.method,
        extracted_text=truncate(outcome.extracted_text),
        edited_text=truncate(outcome.edited_text),
        pdf_base64=base64.b64encode(outcome.pdf).decode("ascii"),
    )


@app.post("/api/pdf-markdown-workflow", response_class=FileResponse)
async def markdown_round_trip(
    background_tasks: BackgroundTasks,
    pdf: UploadFile | None = File(None, description="PDF to convert to Markdown."),
    edits: str = Form("[]", description="JSON list of {old, new} substitutions."),
    markdown_content: str | None = Form(
        None,
        alias="markdownContent",
        description="Already edited Markdown; rendered as is when present.",
    ),
) -> FileResponse:
    """Render Markdown (given, or converted from ``pdf`` and edited) back to PDF."""

    if pdf is None and not markdown_content:
        raise HTTPException(status_code=400, detail="PDF or Markdown content not provided.")

    parsed_edits = _parse_edits(edits)
    stored = await _store_upload(pdf) if pdf is not None and not markdown_content else None

    try:
        outcome = await run_in_threadpool(
            lambda: markdown_workflow(
                data=stored.data if stored else None,
                filename=stored.name if stored else None,
                markdown=markdown_content,
                edits=parsed_edits,
            )
        )
    except FenixPDFError as exc:
        raise _conversion_error(exc) from exc

    return _pdf_response(background_tasks, outcome.pdf, outcome.file_name)


@app.post("/api/pdf-markdown-workflow/preview", response_model=MarkdownPreviewResponse)
async def markdown_preview(
    pdf: UploadFile = File(..., description="PDF to convert to Markdown."),
) -> MarkdownPreviewResponse:
    """Return the Markdown rendition of ``pdf`` without re-rendering it."""

    stored = await _store_upload(pdf)
    try:
        markdown = await run_in_threadpool(pdf_to_markdown, stored.data, stored.name)
    except FenixPDFError as exc:
        raise _conversion_error(exc) from exc

    return MarkdownPreviewResponse(
        markdown=markdown,
        file_name=stored.name,
        converted_at=datetime.now(timezone.utc),
    )


@app.post("/merge", response_class=FileResponse)
async def merge_uploads(
    background_tasks: BackgroundTasks,
    files: List[UploadFile] = File(..., description="PDF files to merge"),
    filename: str | None = Form(None, description="Name of the merged file."),
    opened: list[str] = Depends(_release_readers),
) -> FileResponse:
    """Merge multiple PDF uploads, in upload order, into a single document."""

    if len(files) < 2:
        raise HTTPException(status_code=400, detail="At least two PDFs must be provided.")

    uploads = []
    for index, upload in enumerate(files, start=1):
        contents = await upload.read()
        uploads.append(
            Upload(
                name=_safe_filename(upload.filename, f"document_{index}.pdf"),
                data=contents,
                content_type=upload.content_type,
            )
        )

    workspace = Workspace()
    report = await run_in_threadpool(workspace.add_uploads, uploads)
    opened.extend(document.id for document in report.documents)
    if report.errors:
        raise HTTPException(status_code=400, detail="; ".join(report.errors))

    try:
        merged_name, data = await run_in_threadpool(workspace.merge, filename)
    except PdfMergeError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return _pdf_response(background_tasks, data, merged_name)


@app.post("/compress", response_class=FileResponse)
async def compress_upload(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="PDF to compress."),
    quality: float = Form(0.7, gt=0, le=1, description="Quality factor; lower compresses harder."),
) -> FileResponse:
    """Recompress ``file`` and report the size change in response headers."""

    stored = await _store_upload(file)
    try:
        result = await run_in_threadpool(compress_bytes, stored.data, quality, name=stored.name)
    except InvalidPDFError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CompressionError as exc:  # pragma: no cover - defensive conversion to HTTP error
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    headers = {
        "X-FenixPDF-Original-Size": str(result.original_size),
        "X-FenixPDF-Compressed-Size": str(result.compressed_size),
        "X-FenixPDF-Compression-Level": result.level,
    }
    return _pdf_response(
        background_tasks,
        result.data,
        f"{Path(stored.name).stem}-compressed.pdf",
        headers=headers,
    )


@app.post("/documents/info", response_model=DocumentInfoResponse)
async def document_info(
    file: UploadFile = File(..., description="PDF to inspect."),
    opened: list[str] = Depends(_release_readers),
) -> DocumentInfoResponse:
    """Describe the pages and metadata of ``file``."""

    document = await _open_upload(file, opened)
    reader = get_reader(document)
    metadata = {
        str(key).lstrip("/"): str(value)
        for key, value in (reader.metadata or {}).items()
        if value is not None
    }

    return DocumentInfoResponse(
        name=document.name,
        size=document.size,
        page_count=document.page_count,
        encrypted=reader.is_encrypted,
        has_selectable_text=await run_in_threadpool(has_selectable_text, reader),
        metadata=metadata,
        pages=[
            PageInfo(
                number=page.index + 1,
                width=page.width,
                height=page.height,
                rotation=reader.pages[page.index].rotation,
            )
            for page in document.pages
        ],
    )


async def _text_edit_response(
    background_tasks: BackgroundTasks,
    edit: Callable[[], TextEditResult],
) -> FileResponse:
    result = await run_in_threadpool(edit)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    headers = {}
    if result.recommendations:
        headers["X-FenixPDF-Recommendations"] = " | ".join(result.recommendations)
    return _pdf_response(
        background_tasks,
        result.document.data,
        _edited_name(result.document),
        headers=headers or None,
    )


@app.post("/edit/add-text", response_class=FileResponse)
async def add_text(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="PDF to draw on."),
    page: int = Form(1, ge=1, description="1-indexed page number."),
    x: float = Form(..., description="Horizontal position in points."),
    y: float = Form(..., description="Vertical position in points, from the bottom."),
    text: str = Form(..., min_length=1),
    font_size: float = Form(12, gt=0),
    opened: list[str] = Depends(_release_readers),
) -> FileResponse:
    """Draw ``text`` on a page at ``(x, y)``."""

    document = await _open_upload(file, opened)
    page_index = _check_page(document, page)
    return await _text_edit_response(
        background_tasks,
        lambda: add_text_at_position(document, page_index, x, y, text, font_size=font_size),
    )


@app.post("/edit/replace-text", response_class=FileResponse)
async def replace_text(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="PDF to edit."),
    page: int = Form(1, ge=1, description="1-indexed page number."),
    replacement: str = Form(..., description="Text drawn in place of the old text."),
    search: str | None = Form(None, description="Text to find in the page text layer."),
    x: float | None = Form(None),
    y: float | None = Form(None),
    width: float | None = Form(None, gt=0),
    height: float | None = Form(None, gt=0),
    font_size: float = Form(12, gt=0),
    opened: list[str] = Depends(_release_readers),
) -> FileResponse:
    """Cover old text with a white box and draw ``replacement`` over it.

    The area is either found by searching for ``search`` or given explicitly
    with ``x``, ``y``, ``width`` and ``height``.
    """

    document = await _open_upload(file, opened)
    page_index = _check_page(document, page)

    if search:
        return await _text_edit_response(
            background_tasks, lambda: edit_text(document, page_index, search, replacement)
        )
    if None in (x, y, width, height):
        raise HTTPException(
            status_code=400,
            detail="Provide either 'search' or all of 'x', 'y', 'width' and 'height'.",
        )
    return await _text_edit_response(
        background_tasks,
        lambda: replace_text_in_area(
            document, page_index, x, y, width, height, replacement, font_size=font_size
        ),
    )


@app.post("/pages/rotate", response_class=FileResponse)
async def rotate(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    page: int = Form(..., ge=1, description="1-indexed page number."),
    degrees: int = Form(90, description="Clockwise rotation, a multiple of 90."),
    opened: list[str] = Depends(_release_readers),
) -> FileResponse:
    document = await _open_upload(file, opened)
    page_index = _check_page(document, page)
    try:
        rotated = rotate_page(document, page_index, degrees)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _pdf_response(background_tasks, await _render(rotated), _edited_name(document))


@app.post("/pages/delete", response_class=FileResponse)
async def delete(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    page: int = Form(..., ge=1, description="1-indexed page number."),
    opened: list[str] = Depends(_release_readers),
) -> FileResponse:
    document = await _open_upload(file, opened)
    page_index = _check_page(document, page)
    if document.page_count == 1:
        raise HTTPException(status_code=400, detail="Cannot delete the only page of a document.")
    updated = remove_page(document, page_index)
    return _pdf_response(background_tasks, await _render(updated), _edited_name(document))


@app.post("/pages/reorder", response_class=FileResponse)
async def reorder(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    from_page: int = Form(..., ge=1, description="1-indexed page to move."),
    to_page: int = Form(..., ge=1, description="1-indexed destination position."),
    opened: list[str] = Depends(_release_readers),
) -> FileResponse:
    document = await _open_upload(file, opened)
    from_index = _check_page(document, from_page, "from_page")
    to_index = _check_page(document, to_page, "to_page")
    updated = reorder_pages(document, from_index, to_index)
    return _pdf_response(background_tasks, await _render(updated), _edited_name(document))


__all__ = ["app"]
