"""Canonical output filenames for extracted images.

``pdfimages -p`` names its output ``image-<page>-<index>.<ext>`` with a
1-based page and a 0-based image index. Canonical names are
``<doc>_P<page:03>_I<index+1:03>.<ext>`` for paginated sources and
``<doc>_I<index:03>.<ext>`` for containers without pages. Three-digit padding
keeps lexicographic order equal to numeric order for values up to 999, which
the sort steps of the extraction stages depend on.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

PADDING = 3

RAW_NAME_PATTERN = re.compile(r"^image-(\d+)-(\d+)\.([A-Za-z0-9]+)$")
CANONICAL_PAGE_PATTERN = re.compile(r"_P(\d+)_I\d+\.[A-Za-z0-9]+$")


def paged_name(document_name: str, page: int, image_number: int, extension: str) -> str:
    """Build ``<doc>_P###_I###.<ext>`` from a 1-based page and image number."""
    return (
        f"{document_name}_P{page:0{PADDING}d}_I{image_number:0{PADDING}d}"
        f".{extension}"
    )


def sequential_name(document_name: str, image_number: int, extension: str) -> str:
    """Build ``<doc>_I###.<ext>`` from a 1-based image number."""
    return f"{document_name}_I{image_number:0{PADDING}d}.{extension}"


def canonical_name(raw_name: str, document_name: str) -> Optional[str]:
    """
    Translate a raw ``pdfimages`` file name into its canonical form.

    Args:
        raw_name: File name produced by the extraction tool
        document_name: Stem of the source document

    Returns:
        The canonical name, or None when ``raw_name`` does not follow the
        tool's convention.

    Example:
        >>> canonical_name("image-003-002.png", "Report")
        'Report_P003_I003.png'
    """
    match = RAW_NAME_PATTERN.match(raw_name)
    if not match:
        return None
    page = int(match.group(1))
    index = int(match.group(2))
    return paged_name(document_name, page, index + 1, match.group(3))


def rename_extracted(path: Path, document_name: str) -> Path:
    """Rename ``path`` in place to its canonical name; unknown names pass through."""
    new_name = canonical_name(path.name, document_name)
    if new_name is None or new_name == path.name:
        return path
    destination = path.with_name(new_name)
    path.rename(destination)
    return destination


def parse_page_number(file_name: str) -> Optional[int]:
    """Return the page encoded in a canonical file name, if any."""
    match = CANONICAL_PAGE_PATTERN.search(file_name)
    if not match:
        return None
    return int(match.group(1))
