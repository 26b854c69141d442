"""Raster re-encoding of extracted images with Pillow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from PIL import Image, UnidentifiedImageError

from .exceptions import ConversionFailed
from .types import ExportFormat

LOGGER = logging.getLogger(__name__)

JPEG_QUALITY = 92
TIFF_COMPRESSION = "tiff_lzw"

ProgressCallback = Callable[[int, int], None]

# DecompressionBombError derives from Exception, not OSError.
_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)
_ENCODE_ERRORS = (Image.DecompressionBombError, OSError, ValueError, KeyError)


def needs_conversion(files: Iterable[Path], export_format: ExportFormat) -> bool:
    """Return True if any of ``files`` is not already in ``export_format``."""
    return any(not export_format.accepts(path) for path in files)


def _flatten_for_jpeg(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "L", "CMYK"):
        return image
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def _encode_jpeg_xl(image: Image.Image, destination: Path) -> None:
    try:
        import pillow_jxl  # noqa: F401  (registers the JXL codec with Pillow)
    except ImportError as exc:
        raise ConversionFailed(
            f"JPEG XL encoder unavailable, install pillow-jxl-plugin ({exc})"
        ) from exc
    if image.mode not in ("RGB", "RGBA", "L", "LA"):
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
    image.save(destination, format="JXL", lossless=True)


def _encode(image: Image.Image, destination: Path, export_format: ExportFormat) -> None:
    if export_format is ExportFormat.JPEG:
        _flatten_for_jpeg(image).save(destination, format="JPEG", quality=JPEG_QUALITY)
    elif export_format is ExportFormat.TIFF:
        image.save(destination, format="TIFF", compression=TIFF_COMPRESSION)
    else:
        _encode_jpeg_xl(image, destination)


def convert_file(source: Path, destination: Path, export_format: ExportFormat) -> None:
    """Decode ``source`` and write it to ``destination`` in ``export_format``."""
    try:
        image = Image.open(source)
    except _DECODE_ERRORS as exc:
        raise ConversionFailed(f"Cannot read image: {source.name}") from exc

    with image:
        try:
            image.load()
        except _DECODE_ERRORS as exc:
            raise ConversionFailed(f"Cannot read image: {source.name}") from exc

        try:
            _encode(image, destination, export_format)
        except _ENCODE_ERRORS as exc:
            destination.unlink(missing_ok=True)
            raise ConversionFailed(f"Cannot encode image: {source.name} ({exc})") from exc

    if not destination.exists() or destination.stat().st_size == 0:
        raise ConversionFailed(f"Conversion produced no data for: {source.name}")


def convert_images(
    files: Sequence[Path],
    export_format: ExportFormat,
    output_dir: Path | str,
    progress_callback: Optional[ProgressCallback] = None,
) -> List[Path]:
    """
    Convert ``files`` to ``export_format``.

    Files already in the target format are returned unchanged. Every other
    file is re-encoded into ``output_dir`` under the same stem with the
    target extension, and the original is deleted.

    Args:
        files: Ordered input images
        export_format: Target format
        output_dir: Directory for converted files
        progress_callback: Called with ``(processed, total)`` after each file

    Returns:
        Output paths in input order.
    """
    output_dir = Path(output_dir)
    total = len(files)
    outputs: List[Path] = []

    for index, source in enumerate(files, start=1):
        source = Path(source)
        if export_format.accepts(source):
            outputs.append(source)
        else:
            destination = output_dir / f"{source.stem}.{export_format.file_extension}"
            convert_file(source, destination, export_format)
            outputs.append(destination)
            if destination.resolve() != source.resolve():
                source.unlink(missing_ok=True)
            LOGGER.debug("Converted %s -> %s", source.name, destination.name)

        if progress_callback:
            progress_callback(index, total)

    LOGGER.info("Converted %d file(s) to %s", total, export_format.display_name)
    return outputs
