"""Image extraction from PDF and DOCX sources."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional
from zipfile import BadZipFile, ZipFile

from .exceptions import InvalidContainer, NoImagesFound, ToolExecutionFailed, ToolNotFound
from .naming import rename_extracted, sequential_name
from .tools import run_subprocess
from .types import ExportFormat

LOGGER = logging.getLogger(__name__)

PDF_IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "tiff", "tif", "ppm", "pbm", "ccitt"})
ARCHIVE_IMAGE_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "png", "tiff", "tif", "gif", "bmp", "emf", "wmf", "svg"}
)
ARCHIVE_MEDIA_DIRECTORY = "word/media"
RAW_OUTPUT_ROOT = "image"


def _extension(path: Path) -> str:
    return path.suffix.lower().lstrip(".")


def pdfimages_command(
    executable: Path | str,
    pdf_path: Path,
    output_dir: Path,
    export_format: ExportFormat,
) -> List[str]:
    """Build the ``pdfimages`` command line for ``export_format``."""
    return [
        str(executable),
        "-p",
        *export_format.pdfimages_flags,
        str(pdf_path),
        str(output_dir / RAW_OUTPUT_ROOT),
    ]


def extract_pdf_images(
    pdf_path: Path | str,
    output_dir: Path | str,
    export_format: ExportFormat,
    document_name: str,
    *,
    executable: Optional[Path | str],
) -> List[Path]:
    """
    Extract embedded images from a PDF with ``pdfimages``.

    Args:
        pdf_path: Source PDF
        output_dir: Directory receiving the images (created if needed)
        export_format: Target format, selects the tool's encoding flags
        document_name: Stem used for canonical file names
        executable: Resolved ``pdfimages`` path

    Returns:
        Paths of the renamed images, in lexicographic order of the raw names.

    Raises:
        ToolNotFound: ``executable`` is unset or cannot be started
        ToolExecutionFailed: The tool exited with a non-zero status
    """
    if executable is None:
        raise ToolNotFound("pdfimages")

    pdf_path = Path(pdf_path)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    command = pdfimages_command(executable, pdf_path, output_dir, export_format)
    result = run_subprocess(command)
    if result.returncode != 0:
        raise ToolExecutionFailed(result.stderr)

    extracted = sorted(
        (
            entry
            for entry in output_dir.iterdir()
            if entry.is_file() and _extension(entry) in PDF_IMAGE_EXTENSIONS
        ),
        key=lambda entry: entry.name,
    )
    renamed = [rename_extracted(entry, document_name) for entry in extracted]
    LOGGER.info("Extracted %d image(s) from %s", len(renamed), pdf_path.name)
    return renamed


def _unpack(container_path: Path, destination: Path, unzip_executable: Optional[Path | str]) -> None:
    if unzip_executable is not None:
        result = run_subprocess(
            [str(unzip_executable), "-o", str(container_path), "-d", str(destination)]
        )
        if result.returncode != 0:
            raise InvalidContainer(result.stderr or f"exit code {result.returncode}")
        return

    try:
        with ZipFile(container_path) as archive:
            archive.extractall(destination)
    except (BadZipFile, OSError) as exc:
        raise InvalidContainer(str(exc)) from exc


def extract_archive_images(
    container_path: Path | str,
    output_dir: Path | str,
    document_name: str,
    *,
    unzip_executable: Optional[Path | str] = None,
) -> List[Path]:
    """
    Copy the embedded media of a DOCX container into ``output_dir``.

    The container is unpacked into a private temporary directory that is
    removed whether or not extraction succeeds. With ``unzip_executable``
    the external ``unzip`` tool does the unpacking, otherwise :mod:`zipfile`.
    Images are renamed ``<doc>_I###.<ext>`` in lexicographic order of their
    original names.

    Raises:
        InvalidContainer: The archive cannot be unpacked
        NoImagesFound: The container has no media folder
    """
    container_path = Path(container_path)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(prefix="image-extractor-") as temp_name:
        temp_dir = Path(temp_name)
        _unpack(container_path, temp_dir, unzip_executable)

        media_dir = temp_dir / ARCHIVE_MEDIA_DIRECTORY
        if not media_dir.is_dir():
            raise NoImagesFound()

        media = sorted(
            (
                entry
                for entry in media_dir.iterdir()
                if entry.is_file() and _extension(entry) in ARCHIVE_IMAGE_EXTENSIONS
            ),
            key=lambda entry: entry.name,
        )

        copied: List[Path] = []
        for number, source in enumerate(media, start=1):
            destination = output_dir / sequential_name(
                document_name, number, source.suffix.lstrip(".")
            )
            shutil.copyfile(source, destination)
            copied.append(destination)

    LOGGER.info("Extracted %d image(s) from %s", len(copied), container_path.name)
    return copied
