"""Merge utilities for the :mod:`fenixpdf` toolkit."""

from __future__ import annotations

from .exceptions import PdfMergeError, PdfValidationError
from .merger import merge_documents, merge_pdfs
from .validators import PDFInfo, get_pdf_info, validate_pdf

__all__ = [
    "merge_documents",
    "merge_pdfs",
    "validate_pdf",
    "get_pdf_info",
    "PdfMergeError",
    "PdfValidationError",
    "PDFInfo",
]
