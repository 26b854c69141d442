"""
Image Extractor - Pull embedded images out of PDF and DOCX documents.

Images are extracted into a ``<name>_images`` folder, optionally converted
to JPEG, TIFF or JPEG XL, tagged with descriptive metadata, and for PDFs a
searchable copy with an invisible OCR text layer can be produced.

Quick Start:
    >>> import asyncio
    >>> from image_extractor import Pipeline, PipelineConfig, locate_pdfimages
    >>> pipeline = Pipeline(PipelineConfig(), pdfimages_path=locate_pdfimages())
    >>> pipeline.add_documents(['report.pdf'])
    >>> asyncio.run(pipeline.process_all())

Main Classes:
    - Pipeline: Queue and sequential processor for documents
    - EventBus: State-change notifications

Data Classes:
    - Document: A queued source document
    - ProcessingState: Per-document state
    - PipelineConfig: Processing settings
    - MetadataConfiguration: Metadata field settings

Exceptions:
    - ImageExtractorError: Base exception
    - ToolNotFound, ToolExecutionFailed, InvalidContainer, NoImagesFound,
      ConversionFailed, OCRFailed, MetadataWriteFailed, ConfigurationError

For CLI usage, use the 'image-extractor' command after installation.
"""

__version__ = "1.0.0"
__author__ = "Image Extractor Contributors"
__license__ = "MIT"

# Core classes
from image_extractor.pipeline import Pipeline
from image_extractor.events import EventBus, StateChanged

# Data types
from image_extractor.state import ProcessingState, Stage
from image_extractor.types import (
    Document,
    DocumentInfo,
    DocumentType,
    ExportFormat,
    FieldConfig,
    MetadataConfiguration,
    OutputDestination,
    TextPlacement,
)
from image_extractor.config import PipelineConfig, load_config, save_config

# Exceptions
from image_extractor.exceptions import (
    ImageExtractorError,
    ToolNotFound,
    ToolExecutionFailed,
    InvalidContainer,
    NoImagesFound,
    ConversionFailed,
    OCRFailed,
    MetadataWriteFailed,
    ConfigurationError,
    InvalidStateTransition,
)

# Utility functions
from image_extractor.tools import locate_exiftool, locate_pdfimages, locate_unzip
from image_extractor.utils import get_document_info, validate_pdf, format_file_size

__all__ = [
    # Main classes
    "Pipeline",
    "EventBus",
    "StateChanged",
    # Data types
    "ProcessingState",
    "Stage",
    "Document",
    "DocumentInfo",
    "DocumentType",
    "ExportFormat",
    "FieldConfig",
    "MetadataConfiguration",
    "OutputDestination",
    "TextPlacement",
    "PipelineConfig",
    "load_config",
    "save_config",
    # Exceptions
    "ImageExtractorError",
    "ToolNotFound",
    "ToolExecutionFailed",
    "InvalidContainer",
    "NoImagesFound",
    "ConversionFailed",
    "OCRFailed",
    "MetadataWriteFailed",
    "ConfigurationError",
    "InvalidStateTransition",
    # Utility functions
    "locate_pdfimages",
    "locate_exiftool",
    "locate_unzip",
    "get_document_info",
    "validate_pdf",
    "format_file_size",
    # Version info
    "__version__",
]
