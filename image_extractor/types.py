"""
Type definitions and dataclasses for Image Extractor.

This module defines data structures used throughout the library.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .state import ProcessingState


class DocumentType(str, Enum):
    """Kinds of source documents the pipeline accepts."""

    PDF = "pdf"
    DOCX = "docx"

    @classmethod
    def from_path(cls, path: Path | str) -> Optional["DocumentType"]:
        suffix = Path(path).suffix.lower().lstrip(".")
        for member in cls:
            if member.value == suffix:
                return member
        return None


class ExportFormat(str, Enum):
    """
    Target image encodings.

    Attributes:
        file_extension: Extension written for converted files
        accepted_extensions: Extensions that already satisfy the format
        pdfimages_flags: Encoding flags passed to ``pdfimages``
        display_name: Human readable name
    """

    JPEG = "jpeg"
    TIFF = "tiff"
    JPEG_XL = "jpegXL"

    @property
    def file_extension(self) -> str:
        return _FORMAT_EXTENSIONS[self]

    @property
    def accepted_extensions(self) -> Tuple[str, ...]:
        return _FORMAT_ACCEPTED[self]

    @property
    def pdfimages_flags(self) -> Tuple[str, ...]:
        # JPEG XL has no pdfimages mode: extract PNG and convert afterwards.
        return _FORMAT_FLAGS[self]

    @property
    def display_name(self) -> str:
        return _FORMAT_NAMES[self]

    def accepts(self, path: Path | str) -> bool:
        return Path(path).suffix.lower().lstrip(".") in self.accepted_extensions

    @classmethod
    def parse(cls, value: str) -> "ExportFormat":
        key = value.strip().lower()
        aliases = {
            "jpeg": cls.JPEG,
            "jpg": cls.JPEG,
            "tiff": cls.TIFF,
            "tif": cls.TIFF,
            "jpegxl": cls.JPEG_XL,
            "jpeg-xl": cls.JPEG_XL,
            "jxl": cls.JPEG_XL,
        }
        try:
            return aliases[key]
        except KeyError:
            raise ValueError(f"Unknown export format: {value!r}") from None


_FORMAT_EXTENSIONS = {
    ExportFormat.JPEG: "jpg",
    ExportFormat.TIFF: "tiff",
    ExportFormat.JPEG_XL: "jxl",
}
_FORMAT_ACCEPTED = {
    ExportFormat.JPEG: ("jpg", "jpeg"),
    ExportFormat.TIFF: ("tiff", "tif"),
    ExportFormat.JPEG_XL: ("jxl",),
}
_FORMAT_FLAGS = {
    ExportFormat.JPEG: ("-j", "-png"),
    ExportFormat.TIFF: ("-tiff",),
    ExportFormat.JPEG_XL: ("-png",),
}
_FORMAT_NAMES = {
    ExportFormat.JPEG: "JPEG",
    ExportFormat.TIFF: "TIFF",
    ExportFormat.JPEG_XL: "JPEG XL",
}


class OutputDestination(str, Enum):
    """Where per-document output directories are created."""

    NEXT_TO_ORIGINALS = "nextToOriginals"
    CUSTOM_DIRECTORY = "customDirectory"


class TextPlacement(str, Enum):
    """Position of custom text relative to the auto-generated value."""

    PREPEND = "prepend"
    APPEND = "append"


@dataclass
class FieldConfig:
    """
    Configuration of a single metadata field.

    Attributes:
        enabled: Whether the field is written at all
        include_document_name: Whether the auto-generated value is used
        custom_text: Free text combined with the auto-generated value
        placement: Whether custom text goes before or after the auto value
    """
    enabled: bool = False
    include_document_name: bool = False
    custom_text: str = ""
    placement: TextPlacement = TextPlacement.PREPEND


METADATA_FIELDS: Tuple[str, ...] = (
    "heading",
    "description",
    "extendedDescription",
    "keywords",
    "copyright",
)


def _default_fields() -> Dict[str, FieldConfig]:
    fields = {name: FieldConfig() for name in METADATA_FIELDS}
    fields["extendedDescription"] = FieldConfig(enabled=True, include_document_name=True)
    fields["keywords"] = FieldConfig(enabled=True, include_document_name=True)
    return fields


@dataclass
class MetadataConfiguration:
    """
    Top-level metadata switch plus one :class:`FieldConfig` per field.

    The flat record produced by :meth:`to_record` is what gets persisted.
    """
    metadata_enabled: bool = False
    fields: Dict[str, FieldConfig] = field(default_factory=_default_fields)

    def __post_init__(self) -> None:
        unknown = set(self.fields) - set(METADATA_FIELDS)
        if unknown:
            raise ValueError(f"Unknown metadata fields: {', '.join(sorted(unknown))}")
        for name in METADATA_FIELDS:
            self.fields.setdefault(name, FieldConfig())

    def __getitem__(self, name: str) -> FieldConfig:
        return self.fields[name]

    def items(self) -> Iterator[Tuple[str, FieldConfig]]:
        for name in METADATA_FIELDS:
            yield name, self.fields[name]

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"metadataEnabled": self.metadata_enabled}
        for name, config in self.items():
            record[f"{name}.enabled"] = config.enabled
            record[f"{name}.includeDocumentName"] = config.include_document_name
            record[f"{name}.customText"] = config.custom_text
            record[f"{name}.placement"] = config.placement.value
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "MetadataConfiguration":
        defaults = _default_fields()
        fields: Dict[str, FieldConfig] = {}
        for name in METADATA_FIELDS:
            base = defaults[name]
            fields[name] = FieldConfig(
                enabled=bool(record.get(f"{name}.enabled", base.enabled)),
                include_document_name=bool(
                    record.get(f"{name}.includeDocumentName", base.include_document_name)
                ),
                custom_text=str(record.get(f"{name}.customText", base.custom_text) or ""),
                placement=TextPlacement(record.get(f"{name}.placement", base.placement.value)),
            )
        return cls(metadata_enabled=bool(record.get("metadataEnabled", False)), fields=fields)


@dataclass(frozen=True)
class BoundingBox:
    """Normalized rectangle (0-1) with its origin at the bottom-left of the page."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Observation:
    """One recognized line of text."""
    bounding_box: BoundingBox
    text: str
    confidence: float


@dataclass
class OCRResult:
    """Recognized text for one page (0-based index)."""
    page_index: int
    observations: List[Observation] = field(default_factory=list)


@dataclass
class Document:
    """
    A queued source document.

    Attributes:
        source_path: Path to the PDF or DOCX file
        document_type: Kind of container
        id: Stable identity used to key state-change events
        state: Current processing state
        output_directory: Resolved when processing starts
        image_count: Number of images produced
    """
    source_path: Path
    document_type: DocumentType
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: ProcessingState = field(default_factory=ProcessingState.pending)
    output_directory: Optional[Path] = None
    image_count: int = 0

    @property
    def file_name(self) -> str:
        return self.source_path.name

    @property
    def stem(self) -> str:
        return self.source_path.stem

    def transition(self, new_state: ProcessingState) -> None:
        self.state = self.state.advance(new_state)

    def __str__(self) -> str:
        return f"Document({self.file_name}, {self.state.status_text})"


@dataclass
class DocumentInfo:
    """
    Summary of a source document, as shown by ``image-extractor info``.

    Attributes:
        path: Source file
        document_type: Kind of container
        file_size: File size in bytes
        page_count: Number of pages (PDF only)
        image_count: Number of embedded media files (DOCX only)
        title: Document title metadata (PDF only)
        is_encrypted: Whether the PDF is encrypted
    """
    path: Path
    document_type: DocumentType
    file_size: int
    page_count: Optional[int] = None
    image_count: Optional[int] = None
    title: Optional[str] = None
    is_encrypted: bool = False
