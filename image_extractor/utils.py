"""Utility functions for paths, source validation and display."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Tuple
from zipfile import BadZipFile, ZipFile

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .exceptions import ImageExtractorError, InvalidContainer
from .extraction import ARCHIVE_IMAGE_EXTENSIONS, ARCHIVE_MEDIA_DIRECTORY
from .types import DocumentInfo, DocumentType

LOGGER = logging.getLogger(__name__)


def resolve_path(path: os.PathLike[str] | str) -> Path:
    """Resolve *path* into an absolute :class:`~pathlib.Path`."""

    resolved = Path(path).expanduser().resolve()
    LOGGER.debug("Resolved path '%s' to '%s'", path, resolved)
    return resolved


def ensure_directory_writable(directory: Path) -> Path:
    """
    Create ``directory`` if needed and check that files can be written to it.

    Raises:
        ImageExtractorError: The directory cannot be created or written
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryFile(dir=directory):
            pass
    except OSError as exc:
        raise ImageExtractorError(f"Output directory is not writable: {directory} ({exc})") from exc
    return directory


def validate_pdf(pdf_path: str | os.PathLike[str]) -> Tuple[bool, str]:
    """Perform lightweight validation of a PDF file."""

    path = Path(pdf_path)
    if not path.exists():
        return False, f"File not found: {path}"

    if not path.is_file():
        return False, f"Path is not a file: {path}"

    if path.suffix.lower() != ".pdf":
        return False, f"File does not have .pdf extension: {path}"

    if not os.access(path, os.R_OK):
        return False, f"Cannot read file (permission denied): {path}"

    try:
        reader = PdfReader(str(path))
        if reader.is_encrypted:
            return False, f"PDF is encrypted: {path.name}"
        if len(reader.pages) == 0:
            return False, f"PDF has no pages: {path.name}"
    except (PdfReadError, OSError, ValueError) as exc:
        return False, f"Invalid or corrupted PDF: {exc}"
    return True, ""


def _count_archive_media(path: Path) -> int:
    prefix = f"{ARCHIVE_MEDIA_DIRECTORY}/"
    try:
        with ZipFile(path) as archive:
            return sum(
                1
                for name in archive.namelist()
                if name.startswith(prefix)
                and not name.endswith("/")
                and name.rsplit(".", 1)[-1].lower() in ARCHIVE_IMAGE_EXTENSIONS
            )
    except (BadZipFile, OSError) as exc:
        raise InvalidContainer(str(exc)) from exc


def get_document_info(path: str | os.PathLike[str]) -> DocumentInfo:
    """
    Return basic information about a PDF or DOCX source.

    Raises:
        ImageExtractorError: Unsupported file type or unreadable PDF
        InvalidContainer: The DOCX archive cannot be read
    """
    path = Path(path)
    document_type = DocumentType.from_path(path)
    if document_type is None:
        raise ImageExtractorError(f"Unsupported file type: {path.name}")

    info = DocumentInfo(path=path, document_type=document_type, file_size=path.stat().st_size)

    if document_type is DocumentType.DOCX:
        info.image_count = _count_archive_media(path)
        return info

    try:
        reader = PdfReader(str(path))
        info.is_encrypted = reader.is_encrypted
        if not reader.is_encrypted:
            info.page_count = len(reader.pages)
            if reader.metadata is not None:
                info.title = reader.metadata.title
    except (PdfReadError, ValueError) as exc:
        raise ImageExtractorError(f"Invalid or corrupted PDF: {exc}") from exc
    return info


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500.0 KB")
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"
