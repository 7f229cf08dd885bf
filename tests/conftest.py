from __future__ import annotations

import io
import random
from pathlib import Path
from typing import Callable, Sequence
import sys

import pytest
from PIL import Image
from pypdf import PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fenixpdf.loader import clear_cache  # noqa: E402

LONG_TEXT = (
    "Aos onze dias do mes de agosto, na sala de audiencias desta Comarca, "
    "procedeu-se ao sorteio dos jurados para as sessoes ordinarias."
)


@pytest.fixture(autouse=True)
def _reset_reader_cache() -> None:
    clear_cache()


def build_blank_pdf(
    pages: int = 1,
    *,
    width: float = 200,
    height: float = 200,
    title: str | None = None,
) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    if title is not None:
        writer.add_metadata({"/Title": title})
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def build_text_pdf(
    pages: Sequence[Sequence[str]],
    *,
    font_size: float = 12,
    size: tuple[float, float] = (595, 842),
    title: str | None = None,
) -> bytes:
    """Return a PDF whose page *n* shows the lines of ``pages[n]`` from y=750 down."""

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=size)
    pdf.setTitle(title or "")
    for lines in pages:
        pdf.setFont("Helvetica", font_size)
        y = 750
        for line in lines:
            pdf.drawString(72, y, line)
            y -= font_size * 2
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture()
def blank_pdf_bytes() -> Callable[..., bytes]:
    return build_blank_pdf


@pytest.fixture()
def text_pdf_bytes() -> Callable[..., bytes]:
    return build_text_pdf


@pytest.fixture()
def long_text_pdf() -> bytes:
    return build_text_pdf([[LONG_TEXT[:70], LONG_TEXT[70:]], ["Second page body text"]])


@pytest.fixture()
def image_pdf() -> bytes:
    """A one-page PDF embedding a large noisy photograph-like image."""

    rng = random.Random(1234)
    image = Image.new("RGB", (600, 600))
    image.putdata(
        [(rng.randrange(256), rng.randrange(256), rng.randrange(256)) for _ in range(600 * 600)]
    )
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(612, 792))
    pdf.drawImage(ImageReader(image), 6, 96, width=600, height=600)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    pdf_path = tmp_path / "sample.pdf"
    pdf_path.write_bytes(build_blank_pdf(5, title="Sample"))
    return pdf_path


@pytest.fixture()
def empty_pdf(tmp_path: Path) -> Path:
    pdf_path = tmp_path / "empty.pdf"
    writer = PdfWriter()
    with pdf_path.open("wb") as stream:
        writer.write(stream)
    return pdf_path


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[[str, str | None], Path]:
    def _create(filename: str, title: str | None = None) -> Path:
        path = tmp_path / filename
        path.write_bytes(build_blank_pdf(width=72, height=72, title=title))
        return path

    return _create


@pytest.fixture()
def sample_pdfs(pdf_factory: Callable[[str, str | None], Path]) -> list[Path]:
    pdf1 = pdf_factory("one.pdf", title="Document One")
    pdf2 = pdf_factory("two.pdf")
    return [pdf1, pdf2]
