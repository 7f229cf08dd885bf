"""Custom exceptions raised by :mod:`fenixpdf.conversion`."""

from __future__ import annotations

from ..exceptions import FenixPDFError


class ConversionError(FenixPDFError):
    """Base exception for text extraction and conversion failures."""


class NoTextExtractedError(ConversionError):
    """Raised when neither the text layer nor OCR produced any text."""


class OcrError(ConversionError):
    """Raised when the OCR engine fails to process a document."""


class OcrUnavailableError(OcrError):
    """Raised when OCR is required but its runtime dependencies are missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            "OCR is not available. Missing: " + ", ".join(missing)
        )


__all__ = ["ConversionError", "NoTextExtractedError", "OcrError", "OcrUnavailableError"]
