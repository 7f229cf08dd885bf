from __future__ import annotations

import io
import re
from typing import Callable

import pytest
from pypdf import PdfReader

from fenixpdf.loader import cache_stats
from fenixpdf.merge import PdfMergeError
from fenixpdf.validation import Upload
from fenixpdf.workspace import Workspace, merged_file_name


def _reader(data: bytes) -> PdfReader:
    return PdfReader(io.BytesIO(data))


@pytest.fixture()
def workspace(text_pdf_bytes: Callable[..., bytes]) -> Workspace:
    space = Workspace(history_limit=10)
    report = space.add_uploads(
        [
            Upload("first.pdf", text_pdf_bytes([["A1"], ["A2"], ["A3"]]), "application/pdf"),
            Upload("second.pdf", text_pdf_bytes([["B1"], ["B2"]]), "application/pdf"),
        ]
    )
    assert report.errors == []
    return space


def _ids(space: Workspace) -> tuple[str, str]:
    first, second = space.documents
    return first.id, second.id


def test_add_uploads_reports_rejections(blank_pdf_bytes: Callable[..., bytes]) -> None:
    space = Workspace(max_upload_bytes=10_000)
    report = space.add_uploads(
        [
            Upload("ok.pdf", blank_pdf_bytes()),
            Upload("notes.txt", b"hello"),
            Upload("broken.pdf", b"%PDF-1.4 nothing else"),
            Upload("huge.pdf", b"%PDF" + b"0" * 20_000),
        ]
    )

    assert [document.name for document in report.documents] == ["ok.pdf"]
    assert len(report.errors) == 3
    assert report.errors[0].startswith("File 2 (notes.txt)")
    assert "File too large" in report.errors[1]
    assert report.errors[2].startswith("Error loading broken.pdf")
    assert len(space.documents) == 1


def test_totals_and_locate_page(workspace: Workspace) -> None:
    first, second = workspace.documents

    assert workspace.total_pages == 5
    assert workspace.total_size == first.size + second.size
    assert workspace.locate_page(0) == (first, 0)
    assert workspace.locate_page(3) == (second, 0)
    assert workspace.locate_page(4) == (second, 1)
    assert workspace.locate_page(5) is None
    assert workspace.locate_page(-1) is None


def test_remove_document_drops_cached_reader(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)
    cached = cache_stats()["size"]

    assert workspace.remove_document(first_id)
    assert not workspace.remove_document(first_id)
    assert cache_stats()["size"] == cached - 1
    assert workspace.total_pages == 2


def test_unknown_document(workspace: Workspace) -> None:
    with pytest.raises(KeyError):
        workspace.rotate_page("doc-missing", 0)


def test_rotate_undo_redo(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)

    workspace.rotate_page(first_id, 1)
    workspace.rotate_page(first_id, 1, 180)
    assert workspace.get_document(first_id).pages[1].rotation == 270

    undone = workspace.undo()
    assert undone is not None and undone.type == "rotate_page"
    assert workspace.get_document(first_id).pages[1].rotation == 90

    workspace.undo()
    assert workspace.get_document(first_id).pages[1].rotation == 0
    assert workspace.undo() is None

    workspace.redo()
    workspace.redo()
    assert workspace.get_document(first_id).pages[1].rotation == 270
    assert workspace.redo() is None


def test_text_annotation_lifecycle(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)

    document = workspace.add_text(first_id, 0, "Note", 10, 20, font_size=14)
    annotation = document.pages[0].text_annotations[0]
    assert annotation.font_size == 14

    workspace.update_text(first_id, 0, annotation.id, content="Edited")
    assert workspace.get_document(first_id).pages[0].text_annotations[0].content == "Edited"

    workspace.delete_text(first_id, 0, annotation.id)
    assert workspace.get_document(first_id).pages[0].text_annotations == ()

    assert [action.type for action in workspace.history.actions] == ["add_text", "edit_text", "delete_text"]

    workspace.undo()
    assert workspace.get_document(first_id).pages[0].text_annotations[0].content == "Edited"
    workspace.undo()
    assert workspace.get_document(first_id).pages[0].text_annotations[0].content == "Note"


def test_noop_operations_are_not_recorded(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)

    workspace.rotate_page(first_id, 99)
    workspace.reorder_pages(first_id, 0, 42)
    workspace.delete_page(first_id, -1)

    assert len(workspace.history) == 0
    assert workspace.undo() is None


def test_delete_and_reorder_pages(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)

    workspace.reorder_pages(first_id, 2, 0)
    workspace.delete_page(first_id, 1)

    output = _reader(workspace.generate())
    texts = [page.extract_text().strip() for page in output.pages]
    assert texts == ["A3", "A2", "B1", "B2"]

    workspace.undo()
    workspace.undo()
    texts = [page.extract_text().strip() for page in _reader(workspace.generate()).pages]
    assert texts == ["A1", "A2", "A3", "B1", "B2"]


def test_move_page_between_documents(workspace: Workspace) -> None:
    first_id, second_id = _ids(workspace)

    source, target = workspace.move_page(first_id, second_id, 0, 1)

    assert source.page_count == 2
    assert target.page_count == 3
    texts = [page.extract_text().strip() for page in _reader(workspace.generate()).pages]
    assert texts == ["A2", "A3", "B1", "A1", "B2"]

    action = workspace.undo()
    assert action is not None and action.type == "move_page"
    assert workspace.get_document(first_id).page_count == 3
    assert workspace.get_document(second_id).page_count == 2


def test_move_page_within_one_document_reorders(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)

    source, target = workspace.move_page(first_id, first_id, 0, 2)

    assert source is target
    assert source.page_count == 3
    assert [page.index for page in source.pages] == [0, 1, 2]
    assert len({page.id for page in source.pages}) == 3
    texts = [page.extract_text().strip() for page in _reader(workspace.generate()).pages]
    assert texts == ["A2", "A3", "A1", "B1", "B2"]

    action = workspace.undo()
    assert action is not None and action.type == "reorder_pages"
    assert workspace.get_document(first_id).page_count == 3


def test_move_page_within_one_document_clamps_target(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)

    workspace.move_page(first_id, first_id, 0, 10)

    texts = [page.extract_text().strip() for page in _reader(workspace.generate()).pages]
    assert texts == ["A2", "A3", "A1", "B1", "B2"]


def test_moved_page_survives_removal_of_its_source(workspace: Workspace) -> None:
    first_id, second_id = _ids(workspace)
    workspace.move_page(first_id, second_id, 2, 0)

    workspace.remove_document(first_id)

    texts = [page.extract_text().strip() for page in _reader(workspace.generate()).pages]
    assert texts == ["A3", "B1", "B2"]


def test_new_action_discards_redo_tail(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)
    workspace.rotate_page(first_id, 0)
    workspace.undo()

    workspace.delete_page(first_id, 0)

    assert workspace.redo() is None
    assert [action.type for action in workspace.history.actions] == ["delete_page"]


def test_history_limit(text_pdf_bytes: Callable[..., bytes]) -> None:
    space = Workspace(history_limit=2)
    space.add_uploads([Upload("one.pdf", text_pdf_bytes([["x"]]))])
    document_id = space.documents[0].id

    for _ in range(4):
        space.rotate_page(document_id, 0)

    assert len(space.history) == 2
    space.undo()
    space.undo()
    assert space.undo() is None
    assert space.get_document(document_id).pages[0].rotation == 180


def test_merge_requires_two_documents(text_pdf_bytes: Callable[..., bytes]) -> None:
    space = Workspace()
    space.add_uploads([Upload("one.pdf", text_pdf_bytes([["x"]]))])

    with pytest.raises(PdfMergeError, match="At least two documents"):
        space.merge()


def test_merge_applies_edits_and_names_output(workspace: Workspace) -> None:
    first_id, _ = _ids(workspace)
    workspace.rotate_page(first_id, 0)

    name, data = workspace.merge("Relatório final")

    assert name == "Relatório_final.pdf"
    output = _reader(data)
    assert len(output.pages) == 5
    assert output.pages[0].rotation == 90


def test_merged_file_name_defaults() -> None:
    assert re.fullmatch(r"documentos-unidos-.+\.pdf", merged_file_name())
    assert re.fullmatch(r"documentos-unidos-.+\.pdf", merged_file_name("  "))
    assert merged_file_name("report.PDF") == "report.PDF"
    assert merged_file_name("a/b") == "a_b.pdf"


def test_generate_requires_documents() -> None:
    with pytest.raises(PdfMergeError):
        Workspace().generate()


def test_compress_keeps_page_records(image_pdf: bytes, text_pdf_bytes: Callable[..., bytes]) -> None:
    space = Workspace()
    space.add_uploads(
        [Upload("photo.pdf", image_pdf), Upload("letter.pdf", text_pdf_bytes([["Hi"]]))]
    )
    photo_id = space.documents[0].id
    space.rotate_page(photo_id, 0)
    before = space.total_size

    errors, stats = space.compress(0.4)

    assert errors == []
    assert stats.original_size == before
    assert space.total_size == stats.compressed_size < before
    assert space.get_document(photo_id).pages[0].rotation == 90
    assert len(_reader(space.generate()).pages) == 2


def test_undo_after_compress_keeps_compressed_bytes(image_pdf: bytes) -> None:
    space = Workspace()
    space.add_uploads([Upload("photo.pdf", image_pdf)])
    photo_id = space.documents[0].id
    space.rotate_page(photo_id, 0)

    _, stats = space.compress(0.3)
    compressed = space.get_document(photo_id)
    assert compressed.size == stats.compressed_size < len(image_pdf)

    space.undo()
    undone = space.get_document(photo_id)
    assert undone.pages[0].rotation == 0
    assert undone.size == compressed.size
    assert undone.data is compressed.data

    space.redo()
    redone = space.get_document(photo_id)
    assert redone.pages[0].rotation == 90
    assert redone.size == compressed.size
    assert _reader(space.generate()).pages[0].rotation == 90


def test_clear(workspace: Workspace) -> None:
    workspace.rotate_page(workspace.documents[0].id, 0)

    workspace.clear()

    assert workspace.documents == ()
    assert len(workspace.history) == 0
    assert cache_stats()["size"] == 0
