"""Custom exception types for :mod:`fenixpdf.compress`."""

from __future__ import annotations

from ..exceptions import FenixPDFError, InvalidPDFError


class CompressionError(FenixPDFError):
    """Raised when compression fails or produces an invalid document."""


__all__ = ["CompressionError", "InvalidPDFError"]
