"""
Command-line interface for Fênix PDF.
"""

import logging
import os
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from fenixpdf import __version__
from fenixpdf.compress import compress_bytes, get_compression_info
from fenixpdf.config import get_settings
from fenixpdf.conversion import markdown_workflow, ocr_edit_workflow, pdf_to_markdown
from fenixpdf.exceptions import FenixPDFError
from fenixpdf.loader import open_document
from fenixpdf.merge import get_pdf_info
from fenixpdf.text import TextEdit, add_text_at_position
from fenixpdf.utils import sizeof_fmt
from fenixpdf.validation import Upload
from fenixpdf.workspace import Workspace

console = Console()


def _configure_logging(verbose):
    level = logging.DEBUG if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _fail(error):
    console.print(f"\n[bold red]✗ Error:[/bold red] {error}")
    sys.exit(1)


def _parse_edits(values):
    edits = []
    for value in values:
        old, separator, new = value.partition("=")
        if not separator or not old:
            raise click.BadParameter(f"expected OLD=NEW, got {value!r}", param_hint="--edit")
        edits.append(TextEdit(old=old, new=new))
    return edits


def _write(path, data):
    with open(path, "wb") as handle:
        handle.write(data)
    console.print(f"\n[bold green]✓ Successfully created:[/bold green] {path}")
    console.print(f"[dim]Size: {sizeof_fmt(len(data))}[/dim]\n")


edit_option = click.option(
    '--edit', '-e', 'edits',
    multiple=True,
    help='Text substitution in the form OLD=NEW (repeatable)',
)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """
    Fênix PDF - merge, compress, annotate and edit the text of PDF files.
    """
    _configure_logging(verbose)


@cli.command(name="info")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
def show_info(input_pdf):
    """
    Display information about a PDF file.

    Example:

        fenixpdf info input.pdf
    """
    try:
        info = get_pdf_info(input_pdf)
        compression = get_compression_info(input_pdf)

        table = Table(title=f"PDF Information: {os.path.basename(input_pdf)}")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("File Path", os.path.abspath(input_pdf))
        table.add_row("File Size", sizeof_fmt(compression.file_size_bytes))
        table.add_row("Number of Pages", str(info.num_pages))
        table.add_row("Encrypted", "Yes" if info.is_encrypted else "No")
        table.add_row("Images", str(compression.image_count))
        if compression.average_image_dpi:
            table.add_row("Average Image DPI", f"{compression.average_image_dpi:.0f}")
        table.add_row("Potential Savings", sizeof_fmt(compression.potential_savings_bytes))
        title = info.metadata.get("/Title")
        if title:
            table.add_row("Title", str(title))

        console.print()
        console.print(table)
        console.print()

    except FenixPDFError as e:
        _fail(e)


@cli.command(name="merge")
@click.argument('input_pdfs', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--output', '-o',
    help='Output file name (defaults to a timestamped name)',
    type=click.Path(dir_okay=False),
)
def merge(input_pdfs, output):
    """
    Merge two or more PDF files, in the given order.

    Example:

        fenixpdf merge a.pdf b.pdf -o both.pdf
    """
    try:
        workspace = Workspace()
        uploads = []
        for path in input_pdfs:
            with open(path, "rb") as handle:
                uploads.append(Upload(name=os.path.basename(path), data=handle.read()))
        report = workspace.add_uploads(uploads)
        for error in report.errors:
            console.print(f"  [yellow]⚠ {error}[/yellow]")

        console.print(f"\n[bold cyan]Merging {len(report.documents)} documents...[/bold cyan]")
        file_name, data = workspace.merge(os.path.basename(output) if output else None)
        destination = os.path.join(os.path.dirname(output), file_name) if output else file_name
        _write(destination, data)

    except FenixPDFError as e:
        _fail(e)


@cli.command(name="compress")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', required=True, type=click.Path(dir_okay=False), help='Output PDF path')
@click.option(
    '--quality', '-q',
    default=0.7,
    show_default=True,
    type=click.FloatRange(0, 1, min_open=True),
    help='Quality factor; lower values compress harder',
)
def compress(input_pdf, output, quality):
    """
    Recompress a PDF file.

    Example:

        fenixpdf compress input.pdf -o small.pdf -q 0.5
    """
    try:
        with open(input_pdf, "rb") as handle:
            result = compress_bytes(handle.read(), quality, name=input_pdf)

        table = Table(title="Compression", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Level", result.level)
        table.add_row("Original Size", sizeof_fmt(result.original_size))
        table.add_row("Compressed Size", sizeof_fmt(result.compressed_size))
        table.add_row("Reduction", f"{(1 - result.compression_ratio) * 100:.1f}%")
        console.print(table)

        _write(output, result.data)

    except FenixPDFError as e:
        _fail(e)


@cli.command(name="add-text")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', required=True, type=click.Path(dir_okay=False), help='Output PDF path')
@click.option('--page', '-p', default=1, show_default=True, type=click.IntRange(min=1), help='Page number (1-indexed)')
@click.option('--x', 'x', required=True, type=float, help='Horizontal position in points')
@click.option('--y', 'y', required=True, type=float, help='Vertical position in points, from the bottom')
@click.option('--text', '-t', required=True, help='Text to draw')
@click.option('--font-size', default=12.0, show_default=True, type=float)
def add_text(input_pdf, output, page, x, y, text, font_size):
    """
    Draw text onto a page.

    Example:

        fenixpdf add-text input.pdf -o out.pdf -p 2 --x 72 --y 700 -t "Approved"
    """
    try:
        with open(input_pdf, "rb") as handle:
            document = open_document(os.path.basename(input_pdf), handle.read())
        result = add_text_at_position(document, page - 1, x, y, text, font_size=font_size)
        if not result.success:
            _fail(result.message)
        _write(output, result.document.data)

    except FenixPDFError as e:
        _fail(e)


@cli.command(name="ocr-edit")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output PDF path')
@click.option('--language', '-l', default=None, help='OCR languages, e.g. por+eng')
@edit_option
def ocr_edit(input_pdf, output, language, edits):
    """
    Extract the text of a PDF (with OCR when needed), edit it and re-render it.

    Example:

        fenixpdf ocr-edit scan.pdf -e "2024=2025" -o edited.pdf
    """
    try:
        with open(input_pdf, "rb") as handle:
            outcome = ocr_edit_workflow(
                handle.read(), os.path.basename(input_pdf), _parse_edits(edits), language
            )
        console.print(f"[dim]Text source: {outcome.method}[/dim]")
        _write(output or outcome.file_name, outcome.pdf)

    except FenixPDFError as e:
        _fail(e)


@cli.command(name="markdown")
@click.argument('input_pdf', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output PDF path')
@click.option('--markdown-out', '-m', type=click.Path(dir_okay=False), help='Only write the Markdown to this file')
@edit_option
def markdown(input_pdf, output, markdown_out, edits):
    """
    Convert a PDF to Markdown, apply edits and render it back to PDF.

    Examples:

        fenixpdf markdown report.pdf -m report.md

        fenixpdf markdown report.pdf -e "draft=final" -o final.pdf
    """
    try:
        with open(input_pdf, "rb") as handle:
            data = handle.read()
        name = os.path.basename(input_pdf)

        if markdown_out:
            with open(markdown_out, "w", encoding="utf-8") as handle:
                handle.write(pdf_to_markdown(data, name))
            console.print(f"\n[bold green]✓ Successfully created:[/bold green] {markdown_out}\n")
            return

        outcome = markdown_workflow(data=data, filename=name, edits=_parse_edits(edits))
        _write(output or outcome.file_name, outcome.pdf)

    except FenixPDFError as e:
        _fail(e)


if __name__ == '__main__':
    cli()
