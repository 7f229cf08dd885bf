from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from click.testing import CliRunner
from pypdf import PdfReader

from fenixpdf import __version__
from fenixpdf.cli import cli


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def ata_pdf(tmp_path: Path, long_text_pdf: bytes) -> Path:
    path = tmp_path / "ata.pdf"
    path.write_bytes(long_text_pdf)
    return path


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_info(runner: CliRunner, sample_pdf: Path) -> None:
    result = runner.invoke(cli, ["info", str(sample_pdf)])

    assert result.exit_code == 0, result.output
    assert "Number of Pages" in result.output
    assert "5" in result.output
    assert "Sample" in result.output


def test_info_rejects_invalid_pdf(runner: CliRunner, tmp_path: Path) -> None:
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not a pdf")

    result = runner.invoke(cli, ["info", str(broken)])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_merge(runner: CliRunner, sample_pdfs: list[Path], tmp_path: Path) -> None:
    output = tmp_path / "both"

    result = runner.invoke(cli, ["merge", *map(str, sample_pdfs), "-o", str(output)])

    assert result.exit_code == 0, result.output
    merged = tmp_path / "both.pdf"
    assert len(PdfReader(str(merged)).pages) == 2


def test_merge_needs_two_documents(runner: CliRunner, sample_pdf: Path, tmp_path: Path) -> None:
    result = runner.invoke(cli, ["merge", str(sample_pdf), "-o", str(tmp_path / "out.pdf")])

    assert result.exit_code == 1
    assert "At least two documents" in result.output


def test_compress(runner: CliRunner, tmp_path: Path, image_pdf: bytes) -> None:
    source = tmp_path / "photo.pdf"
    source.write_bytes(image_pdf)
    output = tmp_path / "small.pdf"

    result = runner.invoke(cli, ["compress", str(source), "-o", str(output), "-q", "0.5"])

    assert result.exit_code == 0, result.output
    assert "high" in result.output
    assert output.stat().st_size < source.stat().st_size


def test_compress_rejects_quality_out_of_range(runner: CliRunner, sample_pdf: Path, tmp_path: Path) -> None:
    result = runner.invoke(cli, ["compress", str(sample_pdf), "-o", str(tmp_path / "o.pdf"), "-q", "0"])
    assert result.exit_code == 2


def test_add_text(runner: CliRunner, sample_pdf: Path, tmp_path: Path) -> None:
    output = tmp_path / "stamped.pdf"

    result = runner.invoke(
        cli,
        ["add-text", str(sample_pdf), "-o", str(output), "-p", "3", "--x", "10", "--y", "20", "-t", "Approved"],
    )

    assert result.exit_code == 0, result.output
    reader = PdfReader(str(output))
    assert len(reader.pages) == 5
    assert "Approved" in reader.pages[2].extract_text()


def test_add_text_page_out_of_range(runner: CliRunner, sample_pdf: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        cli,
        ["add-text", str(sample_pdf), "-o", str(tmp_path / "o.pdf"), "-p", "9", "--x", "1", "--y", "1", "-t", "x"],
    )

    assert result.exit_code == 1
    assert "Page 9" in result.output


def test_ocr_edit(runner: CliRunner, ata_pdf: Path, tmp_path: Path) -> None:
    output = tmp_path / "edited.pdf"

    result = runner.invoke(cli, ["ocr-edit", str(ata_pdf), "-o", str(output), "-e", "agosto=setembro"])

    assert result.exit_code == 0, result.output
    assert "native" in result.output
    assert "setembro" in PdfReader(str(output)).pages[0].extract_text()


def test_ocr_edit_rejects_malformed_edit(runner: CliRunner, ata_pdf: Path) -> None:
    result = runner.invoke(cli, ["ocr-edit", str(ata_pdf), "-e", "no-separator"])

    assert result.exit_code == 2
    assert "OLD=NEW" in result.output


def test_markdown_export(runner: CliRunner, ata_pdf: Path, tmp_path: Path) -> None:
    markdown_path = tmp_path / "ata.md"

    result = runner.invoke(cli, ["markdown", str(ata_pdf), "-m", str(markdown_path)])

    assert result.exit_code == 0, result.output
    content = markdown_path.read_text(encoding="utf-8")
    assert content.startswith("# ata\n")
    assert "## Page 2" in content


def test_markdown_round_trip(runner: CliRunner, ata_pdf: Path, tmp_path: Path) -> None:
    output = tmp_path / "final.pdf"

    result = runner.invoke(cli, ["markdown", str(ata_pdf), "-o", str(output), "-e", "Comarca=Vara"])

    assert result.exit_code == 0, result.output
    text = "\n".join(page.extract_text() for page in PdfReader(str(output)).pages)
    assert "Vara" in text
