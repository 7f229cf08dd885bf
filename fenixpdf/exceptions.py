"""Exception hierarchy shared by every :mod:`fenixpdf` package."""

from __future__ import annotations


class FenixPDFError(Exception):
    """Base exception for all errors raised by :mod:`fenixpdf`."""


class InvalidPDFError(FenixPDFError):
    """Raised when bytes cannot be parsed as a readable PDF."""


class UploadValidationError(FenixPDFError):
    """Raised when an uploaded file is rejected before it is loaded."""

    def __init__(self, filename: str | None, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"{filename or '<unnamed>'}: {reason}")


__all__ = ["FenixPDFError", "InvalidPDFError", "UploadValidationError"]
