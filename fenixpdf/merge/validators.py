"""Validation utilities for the :mod:`fenixpdf.merge` package."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pypdf import PdfReader

from ..exceptions import InvalidPDFError
from ..loader import read_pdf
from ..utils import PathLike, ensure_path
from .exceptions import PdfValidationError

LOGGER = logging.getLogger("fenixpdf.merge")

PdfSource = Union[bytes, PathLike]


@dataclass(frozen=True)
class PDFInfo:
    """Summary information describing a PDF document."""

    num_pages: int
    is_encrypted: bool
    metadata: Dict[str, Any]
    path: Optional[Path] = None


def _read_source(source: PdfSource) -> tuple[str, bytes, Optional[Path]]:
    if isinstance(source, (bytes, bytearray)):
        return "<memory>", bytes(source), None

    pdf_path = ensure_path(source)
    try:
        return str(pdf_path), pdf_path.read_bytes(), pdf_path
    except OSError as exc:
        LOGGER.error("Failed to read PDF %s: %s", pdf_path, exc)
        raise PdfValidationError(f"Unable to read PDF: {pdf_path}") from exc


def _open(source: PdfSource) -> tuple[str, PdfReader, Optional[Path]]:
    label, data, path = _read_source(source)
    LOGGER.debug("Validating PDF %s", label)
    try:
        reader = read_pdf(data, name=label)
    except InvalidPDFError as exc:
        raise PdfValidationError(str(exc)) from exc
    return label, reader, path


def validate_pdf(source: PdfSource) -> bool:
    """Return ``True`` if *source* (bytes or a path) is a readable PDF.

    ``PdfValidationError`` is raised if the file cannot be read or does
    not contain any pages.
    """

    label, _, _ = _open(source)
    LOGGER.info("Validated PDF %s successfully", label)
    return True


def get_pdf_info(source: PdfSource) -> PDFInfo:
    """Return :class:`PDFInfo` describing the PDF in *source*."""

    label, reader, path = _open(source)

    metadata: Dict[str, Any] = {}
    if reader.metadata:
        metadata = {
            key: value
            for key, value in reader.metadata.items()
            if value is not None
        }

    info = PDFInfo(
        num_pages=len(reader.pages),
        is_encrypted=reader.is_encrypted,
        metadata=metadata,
        path=path,
    )
    LOGGER.info(
        "PDF info: source=%s, pages=%s, encrypted=%s",
        label,
        info.num_pages,
        info.is_encrypted,
    )
    return info


__all__ = ["PDFInfo", "PdfSource", "get_pdf_info", "validate_pdf"]
