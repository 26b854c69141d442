"""Descriptive metadata tagging through ``exiftool``.

Each configured field is written to the XMP namespace and, for every format
except JPEG XL, mirrored into the legacy IPTC namespace. Field values are
built by a single resolver shared by all free-text fields; keywords have
their own list-valued resolver.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .exceptions import MetadataWriteFailed, ToolNotFound
from .naming import parse_page_number
from .tools import run_subprocess
from .types import FieldConfig, MetadataConfiguration, TextPlacement

LOGGER = logging.getLogger(__name__)

OVERWRITE_FLAG = "-overwrite_original"

# field name -> (modern XMP tag, legacy IPTC tag or None)
FIELD_TAGS: Dict[str, Tuple[str, Optional[str]]] = {
    "heading": ("XMP-photoshop:Headline", "IPTC:Headline"),
    "description": ("XMP-dc:Description", "IPTC:Caption-Abstract"),
    "copyright": ("XMP-dc:Rights", "IPTC:CopyrightNotice"),
    "keywords": ("XMP-dc:Subject", "IPTC:Keywords"),
    "extendedDescription": ("XMP-iptcCore:ExtDescrAccessibility", None),
}
TEXT_FIELDS = ("heading", "description", "copyright")

# exiftool flags container quirks (e.g. JXL boxes) as "[minor]" warnings and
# exits non-zero even though the file was written.
MINOR_WARNING_MARKER = "[minor]"
UPDATE_CONFIRMATION = re.compile(r"\b[1-9]\d*\s+image files?\s+updated", re.IGNORECASE)

LEGACY_UNSUPPORTED_EXTENSIONS = frozenset({"jxl"})

ProgressCallback = Callable[[int, int], None]


def resolve_field(config: FieldConfig, auto_value: Optional[str]) -> Optional[str]:
    """
    Combine the auto-generated value and custom text of one field.

    Returns None when the field is disabled or has nothing to write.
    """
    if not config.enabled:
        return None

    auto = auto_value if config.include_document_name and auto_value else None
    custom = config.custom_text.strip() or None

    if auto and custom:
        if config.placement is TextPlacement.PREPEND:
            return f"{custom} {auto}"
        return f"{auto} {custom}"
    return auto or custom


def resolve_keywords(config: FieldConfig, document_name: str) -> Optional[List[str]]:
    """Split custom keywords on ``,``/``;`` and merge in the document name."""
    if not config.enabled:
        return None

    custom = [token.strip() for token in re.split(r"[,;]", config.custom_text)]
    custom = [token for token in custom if token]
    name = [document_name] if config.include_document_name and document_name else []

    if config.placement is TextPlacement.PREPEND:
        keywords = custom + name
    else:
        keywords = name + custom
    return keywords or None


def resolve_extended_description(
    config: FieldConfig,
    document_name: str,
    page_number: Optional[int],
) -> Optional[str]:
    auto = f"File name: {document_name}"
    if page_number is not None:
        auto = f"{auto}, Page: {page_number}"
    return resolve_field(config, auto)


def _supports_legacy(path: Path) -> bool:
    return path.suffix.lower().lstrip(".") not in LEGACY_UNSUPPORTED_EXTENSIONS


def build_tag_arguments(
    path: Path,
    configuration: MetadataConfiguration,
    document_name: str,
    page_number: Optional[int] = None,
) -> List[str]:
    """Return only the tag assignments for ``path`` (no flags, no file)."""
    legacy = _supports_legacy(path)
    args: List[str] = []

    def assign(field_name: str, value: str, operator: str = "=") -> None:
        modern_tag, legacy_tag = FIELD_TAGS[field_name]
        args.append(f"-{modern_tag}{operator}{value}")
        if legacy and legacy_tag:
            args.append(f"-{legacy_tag}{operator}{value}")

    for field_name in TEXT_FIELDS:
        value = resolve_field(configuration[field_name], document_name)
        if value:
            assign(field_name, value)

    keywords = resolve_keywords(configuration["keywords"], document_name)
    if keywords:
        assign("keywords", "")
        for keyword in keywords:
            assign("keywords", keyword, "+=")

    extended = resolve_extended_description(
        configuration["extendedDescription"], document_name, page_number
    )
    if extended:
        assign("extendedDescription", extended)

    return args


def build_arguments(
    path: Path,
    configuration: MetadataConfiguration,
    document_name: str,
    page_number: Optional[int] = None,
) -> List[str]:
    """
    Build the full ``exiftool`` argument list for one file.

    Returns an empty list when no tag would be written.
    """
    tags = build_tag_arguments(path, configuration, document_name, page_number)
    if not tags:
        return []
    return [OVERWRITE_FLAG, *tags, str(path)]


def is_minor_warning(stdout: str, stderr: str) -> bool:
    """True when a non-zero exit only reports a minor warning on a written file."""
    return MINOR_WARNING_MARKER in stderr and bool(UPDATE_CONFIRMATION.search(stdout))


def write_metadata(
    files: Sequence[Path],
    configuration: MetadataConfiguration,
    document_name: str,
    *,
    executable: Optional[Path | str],
    progress_callback: Optional[ProgressCallback] = None,
) -> None:
    """
    Tag every file in ``files`` according to ``configuration``.

    Args:
        files: Images to tag, in order
        configuration: Field configuration
        document_name: Display name of the source document
        executable: Resolved ``exiftool`` path
        progress_callback: Called with ``(processed, total)`` after each file

    Raises:
        ToolNotFound: ``executable`` is unset or cannot be started
        MetadataWriteFailed: exiftool reported a fatal error for a file
    """
    if executable is None:
        raise ToolNotFound("exiftool")

    total = len(files)
    for index, path in enumerate(files, start=1):
        path = Path(path)
        page_number = parse_page_number(path.name)
        args = build_arguments(path, configuration, document_name, page_number)

        if args:
            result = run_subprocess([str(executable), *args])
            if result.returncode != 0:
                stderr = result.stderr.strip()
                if is_minor_warning(result.stdout, stderr):
                    LOGGER.warning("exiftool minor warning for %s: %s", path.name, stderr)
                else:
                    raise MetadataWriteFailed(
                        path.name, stderr or f"exit code {result.returncode}"
                    )
        else:
            LOGGER.debug("No metadata to write for %s", path.name)

        if progress_callback:
            progress_callback(index, total)

    LOGGER.info("Wrote metadata to %d file(s)", total)
