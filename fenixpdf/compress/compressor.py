"""Compression engine for :mod:`fenixpdf.compress`."""

from __future__ import annotations

import dataclasses
import io
import logging
import os
from pathlib import Path
from typing import Iterable, Literal

from PIL import Image
from pypdf import PdfWriter

from ..config import env_flag
from ..exceptions import InvalidPDFError
from ..loader import read_pdf
from ..models import Document
from ..utils import ensure_path
from .exceptions import CompressionError

_LOGGER = logging.getLogger("fenixpdf.compress")

CompressionLevelName = Literal["low", "medium", "high", "maximum"]


@dataclasses.dataclass(slots=True)
class CompressionLevel:
    """Defines behavioural toggles for compression levels."""

    name: CompressionLevelName
    preset_quality: float
    image_quality: int
    downsample_ratio: float


@dataclasses.dataclass(slots=True)
class CompressionResult:
    """Represents the outcome of a compression run."""

    original_size: int
    compressed_size: int
    level: CompressionLevelName
    quality: float
    data: bytes = dataclasses.field(repr=False)
    input_path: Path | None = None
    output_path: Path | None = None

    @property
    def bytes_saved(self) -> int:
        return max(self.original_size - self.compressed_size, 0)

    @property
    def compression_ratio(self) -> float:
        if self.original_size == 0:
            return 1.0
        return self.compressed_size / self.original_size


@dataclasses.dataclass(frozen=True, slots=True)
class CompressionStats:
    """Aggregated size change of one or more compression runs."""

    original_size: int
    compressed_size: int
    saved_bytes: int
    ratio: float
    percentage: float


_LEVELS: dict[CompressionLevelName, CompressionLevel] = {
    "low": CompressionLevel("low", 0.9, image_quality=95, downsample_ratio=1.0),
    "medium": CompressionLevel("medium", 0.7, image_quality=80, downsample_ratio=0.75),
    "high": CompressionLevel("high", 0.5, image_quality=65, downsample_ratio=0.5),
    "maximum": CompressionLevel("maximum", 0.3, image_quality=45, downsample_ratio=0.35),
}


def get_level(name: CompressionLevelName) -> CompressionLevel:
    if name not in _LEVELS:
        raise ValueError(f"Unknown compression level: {name}")
    return _LEVELS[name]


def level_for_quality(quality: float) -> CompressionLevelName:
    """Map a quality factor in ``(0, 1]`` onto a named level."""

    if not 0 < quality <= 1:
        raise ValueError(f"Quality must be in (0, 1], got {quality}")
    if quality >= 0.8:
        return "low"
    if quality >= 0.6:
        return "medium"
    if quality >= 0.4:
        return "high"
    return "maximum"


def _should_recompress_images() -> bool:
    return env_flag("FENIXPDF_COMPRESS_IMAGES", default=True)


def _downsample_page_images(page, level: CompressionLevel) -> int:
    try:
        images = list(page.images)
    except Exception as exc:  # pragma: no cover - best effort
        _LOGGER.debug("Unable to list page images: %s", exc)
        return 0

    replaced = 0
    for image in images:
        try:
            img = image.image
            if img is None or img.mode not in {"RGB", "L"}:
                continue
            new_size = (
                max(1, int(img.width * level.downsample_ratio)),
                max(1, int(img.height * level.downsample_ratio)),
            )
            if new_size != img.size:
                img = img.resize(new_size, Image.LANCZOS)
            image.replace(img, quality=level.image_quality)
            replaced += 1
        except Exception as exc:  # pragma: no cover - optional path
            _LOGGER.debug("Skipping image %s due to error: %s", getattr(image, "name", "?"), exc)
    return replaced


def _compress_with_pypdf(data: bytes, level: CompressionLevel, *, name: str) -> bytes:
    reader = read_pdf(data, name=name)
    writer = PdfWriter(clone_from=reader)
    recompress_images = _should_recompress_images()

    for page_index, page in enumerate(writer.pages):
        if recompress_images:
            count = _downsample_page_images(page, level)
            if count:
                _LOGGER.debug("Re-encoded %d image(s) on page %d", count, page_index + 1)
        try:
            page.compress_content_streams()
        except Exception as exc:  # pragma: no cover - defensive
            _LOGGER.warning("Failed to compress content streams: %s", exc)

    writer.compress_identical_objects()

    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def compress_bytes(data: bytes, quality: float = 0.7, *, name: str = "<memory>") -> CompressionResult:
    """Compress the PDF held in *data*.

    The original bytes are returned when recompression does not make the
    file smaller. The page count is never changed.

    Raises:
        ValueError: If *quality* is outside ``(0, 1]``.
        InvalidPDFError: If *data* is not a readable PDF.
        CompressionError: If the PDF cannot be rewritten.
    """

    level = get_level(level_for_quality(quality))
    try:
        compressed = _compress_with_pypdf(data, level, name=name)
    except InvalidPDFError:
        raise
    except Exception as exc:
        _LOGGER.error("Compression of %s failed: %s", name, exc)
        raise CompressionError(f"Compression failed: {exc}") from exc

    if len(compressed) >= len(data):
        _LOGGER.info("Compression did not reduce %s, keeping the original", name)
        compressed = data

    result = CompressionResult(
        original_size=len(data),
        compressed_size=len(compressed),
        level=level.name,
        quality=quality,
        data=compressed,
    )
    _LOGGER.info(
        "Compressed %s at level %s: %d -> %d bytes",
        name,
        level.name,
        result.original_size,
        result.compressed_size,
    )
    return result


def compress_document(document: Document, quality: float = 0.7) -> Document:
    """Return a copy of *document* backed by compressed bytes."""

    result = compress_bytes(document.data, quality, name=document.name)
    if result.data is document.data:
        return document
    return document.with_data(result.data)


def compress_documents(
    documents: Iterable[Document],
    quality: float = 0.7,
) -> tuple[list[Document], list[str], CompressionStats]:
    """Compress every document, keeping the original of each one that fails.

    Returns the documents, one error message per failure and the aggregated
    statistics over the whole batch.
    """

    compressed: list[Document] = []
    errors: list[str] = []
    original_total = 0
    compressed_total = 0
    for document in documents:
        original_total += document.size
        try:
            result = compress_document(document, quality)
        except (CompressionError, InvalidPDFError) as exc:
            _LOGGER.warning("Skipping compression of %s: %s", document.name, exc)
            errors.append(f"Error compressing {document.name}: {exc}")
            result = document
        compressed.append(result)
        compressed_total += result.size
    return compressed, errors, calculate_compression_ratio(original_total, compressed_total)


def compress_pdf(
    input_path: str | os.PathLike[str],
    output_path: str | os.PathLike[str],
    level: CompressionLevelName = "medium",
) -> CompressionResult:
    """Compress *input_path* writing the output to *output_path*."""

    level_config = get_level(level)
    source = ensure_path(input_path)
    destination = ensure_path(output_path)

    if not source.exists():
        raise FileNotFoundError(source)

    result = compress_bytes(source.read_bytes(), level_config.preset_quality, name=str(source))
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(result.data)
    result.input_path = source
    result.output_path = destination
    return result


def calculate_compression_ratio(original_size: int, compressed_size: int) -> CompressionStats:
    saved = original_size - compressed_size
    ratio = compressed_size / original_size if original_size else 1.0
    return CompressionStats(
        original_size=original_size,
        compressed_size=compressed_size,
        saved_bytes=saved,
        ratio=ratio,
        percentage=(1 - ratio) * 100,
    )


__all__ = [
    "CompressionLevel",
    "CompressionLevelName",
    "CompressionResult",
    "CompressionStats",
    "calculate_compression_ratio",
    "compress_bytes",
    "compress_document",
    "compress_documents",
    "compress_pdf",
    "get_level",
    "level_for_quality",
]
