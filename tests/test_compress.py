from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest
from pypdf import PdfReader

from fenixpdf.compress import (
    CompressionError,
    CompressionResult,
    InvalidPDFError,
    calculate_compression_ratio,
    compress_bytes,
    compress_document,
    compress_documents,
    compress_pdf,
    get_compression_info,
    level_for_quality,
)
from fenixpdf.compress import compressor
from fenixpdf.compress.compressor import get_level
from fenixpdf.loader import open_document, wrap_upload


@pytest.mark.parametrize(
    ("quality", "level"),
    [(1.0, "low"), (0.8, "low"), (0.7, "medium"), (0.5, "high"), (0.39, "maximum"), (0.01, "maximum")],
)
def test_level_for_quality(quality: float, level: str) -> None:
    assert level_for_quality(quality) == level


@pytest.mark.parametrize("quality", [0, -0.5, 1.5])
def test_level_for_quality_rejects_out_of_range(quality: float) -> None:
    with pytest.raises(ValueError):
        level_for_quality(quality)


def test_get_level_unknown() -> None:
    with pytest.raises(ValueError):
        get_level("extreme")  # type: ignore[arg-type]


def test_compress_bytes_shrinks_images(image_pdf: bytes) -> None:
    result = compress_bytes(image_pdf, 0.5, name="photo.pdf")

    assert result.level == "high"
    assert result.quality == 0.5
    assert result.original_size == len(image_pdf)
    assert result.compressed_size < result.original_size
    assert result.bytes_saved == result.original_size - result.compressed_size
    assert result.compression_ratio < 1
    assert len(PdfReader(io.BytesIO(result.data)).pages) == 1


def test_image_recompression_can_be_disabled(monkeypatch: pytest.MonkeyPatch, image_pdf: bytes) -> None:
    monkeypatch.setenv("FENIXPDF_COMPRESS_IMAGES", "0")
    calls: list[object] = []
    monkeypatch.setattr(compressor, "_downsample_page_images", lambda page, level: calls.append(page) or 0)

    compress_bytes(image_pdf, 0.3)

    assert calls == []


def test_compress_bytes_uses_current_pypdf_api(image_pdf: bytes, recwarn: pytest.WarningsRecorder) -> None:
    compress_bytes(image_pdf, 0.5)

    deprecations = [
        str(warning.message)
        for warning in recwarn
        if issubclass(warning.category, DeprecationWarning) and "deprecated" in str(warning.message)
    ]
    assert not any("remove_" in message for message in deprecations)


def test_compress_bytes_keeps_original_without_gain(
    monkeypatch: pytest.MonkeyPatch, blank_pdf_bytes: Callable[..., bytes]
) -> None:
    data = blank_pdf_bytes()
    monkeypatch.setattr(compressor, "_compress_with_pypdf", lambda raw, level, name: raw + b"\n% padding")

    result = compress_bytes(data)

    assert result.data is data
    assert result.compressed_size == result.original_size
    assert result.bytes_saved == 0


def test_compress_bytes_invalid_pdf() -> None:
    with pytest.raises(InvalidPDFError):
        compress_bytes(b"not a pdf")


def test_compress_bytes_wraps_rewrite_failures(
    monkeypatch: pytest.MonkeyPatch, blank_pdf_bytes: Callable[..., bytes]
) -> None:
    def explode(*_: object, **__: object) -> bytes:
        raise RuntimeError("stream error")

    monkeypatch.setattr(compressor, "_compress_with_pypdf", explode)

    with pytest.raises(CompressionError, match="stream error"):
        compress_bytes(blank_pdf_bytes())


def test_compress_document_returns_same_record_when_unchanged(
    monkeypatch: pytest.MonkeyPatch, blank_pdf_bytes: Callable[..., bytes]
) -> None:
    document = open_document("blank.pdf", blank_pdf_bytes())
    monkeypatch.setattr(compressor, "_compress_with_pypdf", lambda raw, level, name: raw * 2)

    assert compress_document(document) is document


def test_compress_document_keeps_identity(image_pdf: bytes) -> None:
    document = open_document("photo.pdf", image_pdf)

    compressed = compress_document(document, 0.3)

    assert compressed.id == document.id
    assert compressed.pages == document.pages
    assert compressed.size == len(compressed.data) < document.size


def test_compress_documents_isolates_failures(image_pdf: bytes) -> None:
    good = open_document("photo.pdf", image_pdf)
    broken = wrap_upload("broken.pdf", b"%PDF-1.4 broken")

    documents, errors, stats = compress_documents([good, broken], 0.5)

    assert documents[1] is broken
    assert documents[0].size < good.size
    assert len(errors) == 1
    assert errors[0].startswith("Error compressing broken.pdf")
    assert stats.original_size == good.size + broken.size
    assert stats.compressed_size == documents[0].size + broken.size
    assert stats.saved_bytes > 0


def test_compress_pdf_writes_output(tmp_path: Path, image_pdf: bytes) -> None:
    source = tmp_path / "photo.pdf"
    source.write_bytes(image_pdf)
    output = tmp_path / "nested" / "photo-small.pdf"

    result = compress_pdf(source, output, level="maximum")

    assert isinstance(result, CompressionResult)
    assert result.level == "maximum"
    assert result.output_path == output.resolve()
    assert output.read_bytes() == result.data


def test_compress_pdf_missing_input(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        compress_pdf(tmp_path / "missing.pdf", tmp_path / "out.pdf")


def test_compress_pdf_invalid_level(sample_pdf: Path, tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        compress_pdf(sample_pdf, tmp_path / "out.pdf", level="invalid")  # type: ignore[arg-type]


def test_calculate_compression_ratio() -> None:
    stats = calculate_compression_ratio(200, 150)
    assert stats.saved_bytes == 50
    assert stats.ratio == pytest.approx(0.75)
    assert stats.percentage == pytest.approx(25)

    empty = calculate_compression_ratio(0, 0)
    assert empty.ratio == 1.0
    assert empty.percentage == 0


def test_get_compression_info(sample_pdf: Path, image_pdf: bytes) -> None:
    info = get_compression_info(sample_pdf)
    assert info.file_size_bytes == sample_pdf.stat().st_size
    assert info.page_count == 5
    assert info.image_count == 0
    assert info.average_image_dpi is None
    assert info.potential_savings_bytes == int(info.file_size_bytes * 0.05)

    photo = get_compression_info(image_pdf)
    assert photo.image_count == 1
    assert photo.average_image_dpi == pytest.approx(600 / (612 / 72) / 2 + 600 / (792 / 72) / 2)
    assert photo.potential_savings_bytes > info.potential_savings_bytes


def test_get_compression_info_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        get_compression_info(tmp_path / "missing.pdf")
