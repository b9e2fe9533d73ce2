"""Plain-text extraction from uploaded documents.

# ─── DESIGN ────────────────────────────────────────────────────────────
#
# DocumentTextExtractor turns a file under the upload root into an
# ExtractedDocument.  Every call resolves the path first: the candidate
# and the root are both canonicalized with symlinks followed, and the
# candidate must sit inside the root.  Nothing is opened before that
# check passes.
#
# Extraction strategy per format:
#   PDF   → PyMuPDF (fitz), all pages, page count, title/author metadata
#   DOCX  → python-docx paragraphs
#   DOC   → LibreOffice CLI (headless) conversion to text
#   TXT   → UTF-8 read
#   MD    → UTF-8 read
#
# Library parsing is blocking, so it runs in a worker thread via
# asyncio.to_thread.  Any library failure surfaces as ExtractionError
# with no partial text.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from pathlib import Path

import docx
import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from knowledge_core.models.document import DocumentMetadata, ExtractedDocument, FileType
from knowledge_core.utils.errors import (
    ExtractionError,
    PathTraversalError,
    UnsupportedFileTypeError,
)
from knowledge_core.utils.text import count_words

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_UPLOAD_SIZE_MB = 10

MIME_TYPE_TO_FILE_TYPE: dict[str, FileType] = {
    "application/pdf": FileType.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": FileType.DOCX,
    "application/msword": FileType.DOC,
    "text/plain": FileType.TXT,
    "text/markdown": FileType.MD,
}


class DocumentTextExtractor:
    """Extracts plain text from files stored under *root_dir*.

    Parameters
    ----------
    root_dir:
        Upload root.  Relative paths passed to :meth:`extract` are resolved
        against it, and no resolved path may leave it.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    async def extract(self, path: str | Path, file_type: FileType | str) -> ExtractedDocument:
        """Extract the text of *path* according to *file_type*.

        Parameters
        ----------
        path:
            File location, relative to the upload root (absolute paths are
            accepted but must still resolve inside the root).
        file_type:
            One of ``pdf``, ``docx``, ``doc``, ``txt``, ``md``
            (case-insensitive).

        Returns
        -------
        ExtractedDocument
            Full text plus metadata; ``word_count`` is always set.

        Raises
        ------
        UnsupportedFileTypeError
            If *file_type* is not a supported format.
        PathTraversalError
            If the resolved path lies outside the upload root.
        ExtractionError
            If the file is missing or the parsing library fails.
        """
        resolved_type = self._coerce_file_type(file_type)
        safe_path = self.resolve_safe_path(path)

        if resolved_type is FileType.PDF:
            document = await asyncio.to_thread(self._extract_pdf, safe_path)
        elif resolved_type is FileType.DOCX:
            document = await asyncio.to_thread(self._extract_docx, safe_path)
        elif resolved_type is FileType.DOC:
            document = await self._extract_doc(safe_path)
        else:
            document = await asyncio.to_thread(self._extract_plain_text, safe_path, resolved_type)

        logger.info(
            "document_extracted",
            file_type=resolved_type.value,
            characters=len(document.text),
            word_count=document.metadata.word_count,
            page_count=document.metadata.page_count,
        )
        return document

    def resolve_safe_path(self, path: str | Path) -> Path:
        """Return the canonical path of *path*, guaranteed to lie inside the root.

        Symlinks are followed on both sides before the containment check,
        so a link inside the root that points outside it is rejected.
        """
        try:
            real_root = self._root_dir.resolve(strict=True)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise ExtractionError(
                message=f"Upload directory does not exist: {self._root_dir}",
                provider_name="document_extractor",
            ) from exc

        candidate = real_root / path
        try:
            real_path = candidate.resolve(strict=True)
        except (FileNotFoundError, NotADirectoryError) as exc:
            # A missing target may still be an escape attempt; report that first.
            if not _is_within(candidate.resolve(strict=False), real_root):
                raise PathTraversalError(provider_name="document_extractor") from exc
            raise ExtractionError(
                message=f"File not found: {path}",
                provider_name="document_extractor",
            ) from exc
        except OSError as exc:
            raise ExtractionError(
                message=f"Cannot resolve file path {path}: {exc}",
                provider_name="document_extractor",
            ) from exc

        if not _is_within(real_path, real_root):
            logger.warning("path_traversal_blocked", requested=str(path))
            raise PathTraversalError(provider_name="document_extractor")
        if not real_path.is_file():
            raise ExtractionError(
                message=f"Not a regular file: {path}",
                provider_name="document_extractor",
            )
        return real_path

    # ------------------------------------------------------------------
    # Per-format extraction
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_pdf(path: Path) -> ExtractedDocument:
        try:
            with fitz.open(str(path)) as doc:
                page_count = doc.page_count
                text = "\n".join(page.get_text("text") for page in doc)
                info = doc.metadata or {}
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(
                message=f"Failed to extract text from PDF: {exc}",
                provider_name="pymupdf",
            ) from exc

        return ExtractedDocument(
            text=text,
            file_type=FileType.PDF,
            metadata=DocumentMetadata(
                page_count=page_count,
                word_count=count_words(text),
                title=info.get("title") or None,
                author=info.get("author") or None,
            ),
        )

    @staticmethod
    def _extract_docx(path: Path) -> ExtractedDocument:
        try:
            document = docx.Document(str(path))
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(
                message=f"Failed to extract text from DOCX: {exc}",
                provider_name="python_docx",
            ) from exc

        text = "\n".join(paragraph.text for paragraph in document.paragraphs)
        warnings: list[str] = []
        if not text.strip():
            warnings.append("Document contains no paragraph text")
        if document.tables:
            warnings.append(f"{len(document.tables)} table(s) were not extracted")

        return ExtractedDocument(
            text=text,
            file_type=FileType.DOCX,
            metadata=DocumentMetadata(
                word_count=count_words(text),
                title=document.core_properties.title or None,
                author=document.core_properties.author or None,
                warnings=warnings,
            ),
        )

    @staticmethod
    async def _extract_doc(path: Path) -> ExtractedDocument:
        """Convert a legacy .doc to text with LibreOffice running headless."""
        lo_cmd = shutil.which("libreoffice") or shutil.which("soffice")
        if not lo_cmd:
            raise ExtractionError(
                message="LibreOffice is required to read .doc files but was not found on PATH",
                provider_name="libreoffice",
            )

        with tempfile.TemporaryDirectory() as output_dir:
            proc = await asyncio.create_subprocess_exec(
                lo_cmd, "--headless", "--convert-to", "txt:Text",
                "--outdir", output_dir, str(path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()

            # LibreOffice names the output after the input stem.
            output_path = Path(output_dir) / f"{path.stem}.txt"
            if proc.returncode != 0 or not output_path.exists():
                raise ExtractionError(
                    message=f"LibreOffice conversion failed: {stderr.decode(errors='replace')[:500]}",
                    provider_name="libreoffice",
                )
            text = output_path.read_text(encoding="utf-8", errors="replace")

        return ExtractedDocument(
            text=text,
            file_type=FileType.DOC,
            metadata=DocumentMetadata(word_count=count_words(text)),
        )

    @staticmethod
    def _extract_plain_text(path: Path, file_type: FileType) -> ExtractedDocument:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ExtractionError(
                message=f"Failed to read text file: {exc}",
                provider_name="document_extractor",
            ) from exc

        return ExtractedDocument(
            text=text,
            file_type=file_type,
            metadata=DocumentMetadata(word_count=count_words(text)),
        )

    @staticmethod
    def _coerce_file_type(file_type: FileType | str) -> FileType:
        if isinstance(file_type, FileType):
            return file_type
        try:
            return FileType(str(file_type).strip().lower())
        except ValueError as exc:
            raise UnsupportedFileTypeError(
                message=f"Unsupported file type: {file_type}",
                provider_name="document_extractor",
                file_type=str(file_type),
            ) from exc


def _is_within(path: Path, root: Path) -> bool:
    return path == root or path.is_relative_to(root)


# ---------------------------------------------------------------------------
# Upload validation helpers
# ---------------------------------------------------------------------------

def validate_file_size(size_bytes: int, max_size_mb: int = DEFAULT_MAX_UPLOAD_SIZE_MB) -> bool:
    """Return ``True`` when *size_bytes* does not exceed *max_size_mb* mebibytes."""
    return size_bytes <= max_size_mb * 1024 * 1024


def validate_mime_type(mime_type: str) -> bool:
    """Return ``True`` for the MIME types an upload may declare."""
    return mime_type in MIME_TYPE_TO_FILE_TYPE


def mime_type_to_file_type(mime_type: str) -> FileType:
    """Map a MIME type to a :class:`FileType`; unknown types fall back to ``txt``."""
    return MIME_TYPE_TO_FILE_TYPE.get(mime_type, FileType.TXT)


def get_file_extension(filename: str) -> str:
    """Return the lower-cased extension of *filename* without the dot (``""`` if none)."""
    return os.path.splitext(filename)[1].lower().lstrip(".")
