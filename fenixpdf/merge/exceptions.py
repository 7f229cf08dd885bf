"""Custom exceptions for :mod:`fenixpdf.merge`."""

from __future__ import annotations

from ..exceptions import FenixPDFError


class PdfMergeError(FenixPDFError):
    """Raised when the merge operation fails."""


class PdfValidationError(FenixPDFError):
    """Raised when a PDF file fails validation."""
