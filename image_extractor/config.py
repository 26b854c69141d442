"""Pipeline configuration: loading, saving and output-directory layout."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import ConfigurationError
from .types import ExportFormat, MetadataConfiguration, OutputDestination

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "IMAGE_EXTRACTOR_"
OUTPUT_DIR_SUFFIX = "_images"
SEARCHABLE_SUFFIX = "_searchable.pdf"
DEFAULT_LANGUAGES: Tuple[str, ...] = ("eng", "nor", "dan", "swe", "deu", "fra")


@dataclass
class PipelineConfig:
    """
    Settings handed to the pipeline by its front end.

    Attributes:
        export_format: Target image format
        metadata: Metadata field configuration
        ocr_enabled: Whether PDFs get a searchable overlay
        ocr_languages: Tesseract language codes
        output_destination: Next to the source or under a custom directory
        custom_output_directory: Base directory for the custom destination
        pdfimages_path: Explicit ``pdfimages`` location
        exiftool_path: Explicit ``exiftool`` location
    """
    export_format: ExportFormat = ExportFormat.JPEG
    metadata: MetadataConfiguration = field(default_factory=MetadataConfiguration)
    ocr_enabled: bool = False
    ocr_languages: List[str] = field(default_factory=lambda: list(DEFAULT_LANGUAGES))
    output_destination: OutputDestination = OutputDestination.NEXT_TO_ORIGINALS
    custom_output_directory: Optional[Path] = None
    pdfimages_path: Optional[Path] = None
    exiftool_path: Optional[Path] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "exportFormat": self.export_format.value,
            "ocrEnabled": self.ocr_enabled,
            "ocrLanguages": list(self.ocr_languages),
            "outputDestination": self.output_destination.value,
            "customOutputDirectory": (
                str(self.custom_output_directory) if self.custom_output_directory else None
            ),
            "pdfimagesPath": str(self.pdfimages_path) if self.pdfimages_path else None,
            "exiftoolPath": str(self.exiftool_path) if self.exiftool_path else None,
            "metadata": self.metadata.to_record(),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "PipelineConfig":
        try:
            return cls(
                export_format=ExportFormat.parse(record.get("exportFormat", "jpeg")),
                metadata=MetadataConfiguration.from_record(record.get("metadata") or {}),
                ocr_enabled=bool(record.get("ocrEnabled", False)),
                ocr_languages=list(record.get("ocrLanguages") or DEFAULT_LANGUAGES),
                output_destination=OutputDestination(
                    record.get("outputDestination", OutputDestination.NEXT_TO_ORIGINALS.value)
                ),
                custom_output_directory=_optional_path(record.get("customOutputDirectory")),
                pdfimages_path=_optional_path(record.get("pdfimagesPath")),
                exiftool_path=_optional_path(record.get("exiftoolPath")),
            )
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value).expanduser() if value else None


def _env_flag(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_config(path: Optional[str | os.PathLike[str]] = None) -> PipelineConfig:
    """
    Load configuration from ``path`` (JSON) and apply environment overrides.

    Missing files yield the defaults. Recognized environment variables are
    ``IMAGE_EXTRACTOR_FORMAT``, ``IMAGE_EXTRACTOR_OUTPUT_DIR``,
    ``IMAGE_EXTRACTOR_OCR``, ``IMAGE_EXTRACTOR_PDFIMAGES`` and
    ``IMAGE_EXTRACTOR_EXIFTOOL``.
    """
    record: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path).expanduser()
        if config_path.exists():
            try:
                record = json.loads(config_path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as exc:
                raise ConfigurationError(f"Cannot read configuration {config_path}: {exc}") from exc
            if not isinstance(record, dict):
                raise ConfigurationError(f"Configuration {config_path} is not a JSON object")
        else:
            LOGGER.debug("Configuration file %s not found, using defaults", config_path)

    config = PipelineConfig.from_record(record)

    env_format = os.getenv(f"{ENV_PREFIX}FORMAT")
    if env_format:
        try:
            config.export_format = ExportFormat.parse(env_format)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
    env_output = os.getenv(f"{ENV_PREFIX}OUTPUT_DIR")
    if env_output:
        config.output_destination = OutputDestination.CUSTOM_DIRECTORY
        config.custom_output_directory = Path(env_output).expanduser()
    env_ocr = os.getenv(f"{ENV_PREFIX}OCR")
    if env_ocr:
        config.ocr_enabled = _env_flag(env_ocr)
    env_pdfimages = os.getenv(f"{ENV_PREFIX}PDFIMAGES")
    if env_pdfimages:
        config.pdfimages_path = Path(env_pdfimages).expanduser()
    env_exiftool = os.getenv(f"{ENV_PREFIX}EXIFTOOL")
    if env_exiftool:
        config.exiftool_path = Path(env_exiftool).expanduser()

    return config


def save_config(config: PipelineConfig, path: str | os.PathLike[str]) -> Path:
    """Write ``config`` to ``path`` atomically and return the path."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", delete=False, dir=target.parent, suffix=".tmp", encoding="utf-8"
    ) as handle:
        json.dump(config.to_record(), handle, indent=2, sort_keys=True)
        temp_path = Path(handle.name)
    temp_path.replace(target)
    return target


def resolve_output_directory(
    source_path: Path,
    destination: OutputDestination = OutputDestination.NEXT_TO_ORIGINALS,
    custom_directory: Optional[Path] = None,
) -> Path:
    """Return ``<stem>_images`` next to ``source_path`` or under the custom base."""
    name = f"{source_path.stem}{OUTPUT_DIR_SUFFIX}"
    if destination is OutputDestination.CUSTOM_DIRECTORY:
        if custom_directory is not None:
            return Path(custom_directory) / name
        LOGGER.warning(
            "Custom output destination selected without a directory; writing next to %s",
            source_path.name,
        )
    return source_path.parent / name


def searchable_pdf_path(output_directory: Path, source_path: Path) -> Path:
    return output_directory / f"{source_path.stem}{SEARCHABLE_SUFFIX}"
