"""Content and image recompression for :mod:`fenixpdf`."""

from __future__ import annotations

from .compressor import (
    CompressionLevel,
    CompressionLevelName,
    CompressionResult,
    CompressionStats,
    calculate_compression_ratio,
    compress_bytes,
    compress_document,
    compress_documents,
    compress_pdf,
    level_for_quality,
)
from .exceptions import CompressionError, InvalidPDFError
from .info import CompressionInfo, get_compression_info

__all__ = [
    "CompressionError",
    "CompressionInfo",
    "CompressionLevel",
    "CompressionLevelName",
    "CompressionResult",
    "CompressionStats",
    "InvalidPDFError",
    "calculate_compression_ratio",
    "compress_bytes",
    "compress_document",
    "compress_documents",
    "compress_pdf",
    "get_compression_info",
    "level_for_quality",
]
