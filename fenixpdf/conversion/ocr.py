"""Optical character recognition through the ``ocrmypdf`` command line tool."""

from __future__ import annotations

import importlib.util
import logging
import re
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Protocol, Sequence

from .exceptions import OcrError, OcrUnavailableError

LOGGER = logging.getLogger("fenixpdf.conversion")

_LANGUAGE = re.compile(r"^[A-Za-z_]+(\+[A-Za-z_]+)*$")


class OcrEngine(Protocol):
    def recognize(self, data: bytes, language: str) -> list[str]:
        """Return the recognised text of every page of the PDF in *data*."""


class OcrMyPdfEngine:
    """Run ``ocrmypdf`` in a subprocess and read back its text sidecar."""

    required_binaries: Sequence[str] = ("tesseract", "gs")

    def __init__(self, *, jobs: int = 1, timeout: float | None = 300) -> None:
        if jobs < 1:
            raise ValueError("jobs must be >= 1")
        self.jobs = jobs
        self.timeout = timeout

    def missing_dependencies(self) -> list[str]:
        missing: list[str] = []
        if importlib.util.find_spec("ocrmypdf") is None:
            missing.append("ocrmypdf (python package)")
        missing.extend(name for name in self.required_binaries if shutil.which(name) is None)
        return missing

    def ensure_available(self) -> None:
        missing = self.missing_dependencies()
        if missing:
            LOGGER.error("OCR dependencies missing: %s", ", ".join(missing))
            raise OcrUnavailableError(missing)

    def build_command(self, input_pdf: Path, output_pdf: Path, sidecar: Path, language: str) -> list[str]:
        return [
            sys.executable,
            "-m",
            "ocrmypdf",
            "--language",
            language,
            "--output-type",
            "pdf",
            "--force-ocr",
            "--jobs",
            str(self.jobs),
            "--quiet",
            "--sidecar",
            str(sidecar),
            str(input_pdf),
            str(output_pdf),
        ]

    def recognize(self, data: bytes, language: str) -> list[str]:
        if not _LANGUAGE.match(language):
            raise OcrError(f"Invalid OCR language: {language!r}")
        self.ensure_available()

        with tempfile.TemporaryDirectory(prefix="fenixpdf-ocr-") as workdir:
            root = Path(workdir)
            input_pdf = root / "input.pdf"
            sidecar = root / "sidecar.txt"
            input_pdf.write_bytes(data)
            command = self.build_command(input_pdf, root / "output.pdf", sidecar, language)

            LOGGER.debug("Executing command: %s", " ".join(command))
            try:
                completed = subprocess.run(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                    timeout=self.timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as exc:
                raise OcrError(f"ocrmypdf timed out after {self.timeout}s") from exc

            if completed.returncode != 0:
                LOGGER.error(
                    "ocrmypdf failed with exit code %s: %s",
                    completed.returncode,
                    completed.stderr.strip(),
                )
                raise OcrError(f"ocrmypdf failed with exit code {completed.returncode}")

            text = sidecar.read_text(encoding="utf-8") if sidecar.exists() else ""

        # Pages in the sidecar are separated by form feeds.
        pages = [page.strip() for page in text.split("\f")]
        LOGGER.info("OCR recognised %d characters on %d page(s)", sum(map(len, pages)), len(pages))
        return pages


__all__ = ["OcrEngine", "OcrMyPdfEngine"]
