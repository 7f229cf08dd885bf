"""Pydantic models returned by the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OcrEditResponse(BaseModel):
    """Result of the extract, edit and re-render workflow."""

    message: str
    file_name: str = Field(..., alias="fileName")
    method: str
    extracted_text: str = Field(..., alias="extractedText")
    edited_text: str = Field(..., alias="editedText")
    pdf_base64: str = Field(..., alias="pdfBase64")

    model_config = ConfigDict(populate_by_name=True)


class MarkdownPreviewResponse(BaseModel):
    """Markdown produced from an uploaded PDF, before any edits."""

    markdown: str
    file_name: str = Field(..., alias="fileName")
    converted_at: datetime = Field(..., alias="convertedAt")

    model_config = ConfigDict(populate_by_name=True)


class PageInfo(BaseModel):
    number: int
    width: float
    height: float
    rotation: int


class DocumentInfoResponse(BaseModel):
    name: str
    size: int
    page_count: int = Field(..., alias="pageCount")
    encrypted: bool
    has_selectable_text: bool = Field(..., alias="hasSelectableText")
    metadata: dict[str, str]
    pages: list[PageInfo]

    model_config = ConfigDict(populate_by_name=True)
