"""
Custom exceptions for Image Extractor.

This module defines all custom exceptions used throughout the library.
Every pipeline failure is an :class:`ImageExtractorError`; its message is
recorded verbatim as the ``failed`` state of the document being processed.
"""


class ImageExtractorError(Exception):
    """Base exception for all Image Extractor errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown image extraction error occurred."


class ToolNotFound(ImageExtractorError):
    """Raised when a required external executable cannot be located."""

    def __init__(self, tool: str = "") -> None:
        self.tool = tool
        super().__init__(
            f"{tool} not found. Install it or pass its path explicitly." if tool else ""
        )

    @property
    def default_message(self) -> str:
        return "Required external tool not found."


class ToolExecutionFailed(ImageExtractorError):
    """Raised when the image-extraction executable exits with a non-zero code."""

    def __init__(self, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(f"pdfimages failed: {stderr.strip()}" if stderr.strip() else "")

    @property
    def default_message(self) -> str:
        return "pdfimages failed."


class InvalidContainer(ImageExtractorError):
    """Raised when a DOCX container cannot be unpacked."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"Invalid DOCX file: {detail.strip()}" if detail.strip() else "")

    @property
    def default_message(self) -> str:
        return "Invalid DOCX file."


class NoImagesFound(ImageExtractorError):
    """Raised when a document yields no extractable images."""

    @property
    def default_message(self) -> str:
        return "No images found"


class ConversionFailed(ImageExtractorError):
    """Raised when an image cannot be decoded or re-encoded."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"Image conversion failed: {detail}" if detail else "")

    @property
    def default_message(self) -> str:
        return "Image conversion failed."


class OCRFailed(ImageExtractorError):
    """Raised when text recognition or the searchable overlay fails."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"OCR failed: {detail}" if detail else "")

    @property
    def default_message(self) -> str:
        return "OCR failed."


class MetadataWriteFailed(ImageExtractorError):
    """Raised when the metadata-tagging executable reports a fatal error."""

    def __init__(self, file: str = "", detail: str = "") -> None:
        self.file = file
        self.detail = detail
        super().__init__(f"Metadata write failed: {file}: {detail}" if file else "")

    @property
    def default_message(self) -> str:
        return "Metadata write failed."


class ConfigurationError(ImageExtractorError):
    """Raised when a configuration file cannot be read or is malformed."""

    @property
    def default_message(self) -> str:
        return "Invalid configuration."


class InvalidStateTransition(ValueError):
    """Raised when a document is moved backwards or out of a terminal state."""
