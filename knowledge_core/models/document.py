"""Models for text extracted from uploaded documents."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FileType(str, Enum):  # noqa: UP042
    """Document formats the extractor understands."""

    PDF = "pdf"
    DOCX = "docx"
    DOC = "doc"
    TXT = "txt"
    MD = "md"


class DocumentMetadata(BaseModel):
    """Facts about an extracted document; every field is optional except warnings."""

    model_config = ConfigDict(frozen=True)

    page_count: int | None = Field(default=None, ge=0)
    word_count: int | None = Field(default=None, ge=0)
    author: str | None = None
    title: str | None = None
    # Non-fatal notes from the extraction library (e.g. skipped images).
    warnings: list[str] = Field(default_factory=list)


class ExtractedDocument(BaseModel):
    """Plain text pulled from one file, consumed once by the ingestion service."""

    model_config = ConfigDict(frozen=True)

    text: str
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    file_type: FileType | None = None
