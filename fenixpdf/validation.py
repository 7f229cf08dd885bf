"""Pre-load validation of uploaded files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from .config import Settings
from .exceptions import UploadValidationError

LOGGER = logging.getLogger("fenixpdf.validation")

MAX_FILE_SIZE = Settings().max_upload_bytes

VALID_MIME_TYPES = (
    "application/pdf",
    "application/x-pdf",
    "application/acrobat",
    "text/pdf",
    "text/x-pdf",
)

_DANGEROUS_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass(frozen=True)
class Upload:
    """A file received from a user before it becomes a document."""

    name: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None


def validate_upload(upload: Upload | None, *, max_size: int = MAX_FILE_SIZE) -> ValidationResult:
    """Check *upload* against size, type and filename rules.

    The checks run in a fixed order and the first failure is reported.
    ``content_type`` is only checked when the client supplied one.
    """

    if upload is None:
        return ValidationResult(False, "No file provided")

    if upload.size > max_size:
        limit_mb = max_size / (1024 * 1024)
        return ValidationResult(False, f"File too large. Maximum allowed size: {limit_mb:g}MB")

    if upload.size == 0:
        return ValidationResult(False, "Empty file")

    if upload.content_type is not None and upload.content_type not in VALID_MIME_TYPES:
        return ValidationResult(False, "Invalid file type. Only PDFs are accepted")

    if not upload.name.lower().endswith(".pdf"):
        return ValidationResult(False, "Invalid file extension. Use .pdf")

    if not upload.name.strip():
        return ValidationResult(False, "Invalid file name")

    if _DANGEROUS_CHARS.search(upload.name):
        return ValidationResult(False, "File name contains invalid characters")

    return ValidationResult(True)


def validate_uploads(
    uploads: Iterable[Upload], *, max_size: int = MAX_FILE_SIZE
) -> tuple[list[Upload], list[str]]:
    """Split *uploads* into accepted files and human readable errors."""

    valid: list[Upload] = []
    errors: list[str] = []
    for position, upload in enumerate(uploads, start=1):
        result = validate_upload(upload, max_size=max_size)
        if result.is_valid:
            valid.append(upload)
        else:
            LOGGER.info("Rejected upload %s: %s", upload.name, result.error)
            errors.append(f"File {position} ({upload.name}): {result.error}")
    return valid, errors


def require_valid_upload(upload: Upload, *, max_size: int = MAX_FILE_SIZE) -> Upload:
    """Return *upload* unchanged, or raise if it fails :func:`validate_upload`.

    Raises:
        UploadValidationError: With the first failed rule as the reason.
    """

    result = validate_upload(upload, max_size=max_size)
    if not result.is_valid:
        raise UploadValidationError(upload.name, result.error or "Invalid file")
    return upload


def sanitize_filename(filename: str) -> str:
    """Replace characters that are unsafe in file names with underscores."""

    cleaned = _DANGEROUS_CHARS.sub("_", filename)
    cleaned = re.sub(r"\s+", "_", cleaned)
    cleaned = re.sub(r"_+", "_", cleaned)
    return cleaned.strip("_")


def ensure_pdf_suffix(filename: str) -> str:
    if filename and not filename.lower().endswith(".pdf"):
        return f"{filename}.pdf"
    return filename


__all__ = [
    "MAX_FILE_SIZE",
    "Upload",
    "VALID_MIME_TYPES",
    "ValidationResult",
    "ensure_pdf_suffix",
    "require_valid_upload",
    "sanitize_filename",
    "validate_upload",
    "validate_uploads",
]
