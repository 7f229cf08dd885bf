"""Information utilities for the :mod:`fenixpdf.compress` package."""

from __future__ import annotations

import dataclasses
import logging

from pypdf import PdfReader

from ..loader import read_pdf
from ..merge.validators import PdfSource
from ..utils import ensure_path

_LOGGER = logging.getLogger("fenixpdf.compress")


@dataclasses.dataclass(slots=True)
class CompressionInfo:
    """Describes metrics about a PDF file relevant for compression."""

    file_size_bytes: int
    page_count: int
    image_count: int
    average_image_dpi: float | None
    potential_savings_bytes: int


def _estimate_image_dpi(reader: PdfReader) -> tuple[int, float | None]:
    image_count = 0
    dpi_values: list[float] = []

    for page in reader.pages:
        page_width_inch = float(page.mediabox.width) / 72.0
        page_height_inch = float(page.mediabox.height) / 72.0
        try:
            images = list(page.images)
        except Exception:  # pragma: no cover - attribute access guard
            images = []
        for image in images:
            image_count += 1
            try:
                width_px, height_px = image.image.size
            except Exception:  # pragma: no cover - undecodable image
                continue
            dpi_x = width_px / max(page_width_inch, 1e-6)
            dpi_y = height_px / max(page_height_inch, 1e-6)
            dpi_values.append((dpi_x + dpi_y) / 2.0)

    average_dpi = sum(dpi_values) / len(dpi_values) if dpi_values else None
    return image_count, average_dpi


def _estimate_potential_savings(file_size_bytes: int, image_count: int) -> int:
    if image_count == 0:
        return int(file_size_bytes * 0.05)
    weight = min(0.35 + image_count * 0.02, 0.6)
    return int(file_size_bytes * weight)


def get_compression_info(source: PdfSource) -> CompressionInfo:
    """Return :class:`CompressionInfo` for *source* (bytes or a path)."""

    if isinstance(source, (bytes, bytearray)):
        data, label = bytes(source), "<memory>"
    else:
        pdf_path = ensure_path(source)
        if not pdf_path.exists():
            raise FileNotFoundError(pdf_path)
        data, label = pdf_path.read_bytes(), str(pdf_path)

    reader = read_pdf(data, name=label)
    image_count, average_dpi = _estimate_image_dpi(reader)

    info = CompressionInfo(
        file_size_bytes=len(data),
        page_count=len(reader.pages),
        image_count=image_count,
        average_image_dpi=average_dpi,
        potential_savings_bytes=_estimate_potential_savings(len(data), image_count),
    )
    _LOGGER.debug("Compression info for %s: %s", label, info)
    return info


__all__ = ["CompressionInfo", "get_compression_info"]
