"""Ingestion pipeline: document extraction, chunking and embedding orchestration."""

from knowledge_core.services.ingestion.chunker import TextChunker, chunk_text
from knowledge_core.services.ingestion.document_extractor import (
    DocumentTextExtractor,
    get_file_extension,
    mime_type_to_file_type,
    validate_file_size,
    validate_mime_type,
)
from knowledge_core.services.ingestion.ingestion_service import IngestionService

__all__ = [
    "DocumentTextExtractor",
    "IngestionService",
    "TextChunker",
    "chunk_text",
    "get_file_extension",
    "mime_type_to_file_type",
    "validate_file_size",
    "validate_mime_type",
]
