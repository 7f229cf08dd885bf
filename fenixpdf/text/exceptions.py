"""Custom exceptions raised by :mod:`fenixpdf.text`."""

from __future__ import annotations

from ..exceptions import FenixPDFError


class TextError(FenixPDFError):
    """Base exception for text analysis and drawing errors."""


class InvalidEditsError(TextError):
    """Raised when a list of text substitutions cannot be parsed."""
