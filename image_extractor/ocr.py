"""Page rasterization and text recognition.

Pages are rendered with PyMuPDF on a single dedicated thread; recognition
runs Tesseract on the calling thread. Tesseract reports words in pixel
coordinates with a top-left origin; they are grouped into lines and
normalized to a bottom-left origin so the overlay builder can map them
straight into PDF user space.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import pymupdf
import pytesseract
from PIL import Image

from .config import DEFAULT_LANGUAGES
from .exceptions import OCRFailed
from .types import BoundingBox, Observation, OCRResult

LOGGER = logging.getLogger(__name__)

RENDER_DPI = 300
POINTS_PER_INCH = 72.0
# LSTM engine, automatic page segmentation.
TESSERACT_CONFIG = "--oem 1 --psm 3"

ProgressCallback = Callable[[int, int], None]
T = TypeVar("T")

_RENDER_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="page-render")


def _on_render_thread(func: Callable[..., T], *args: Any) -> T:
    return _RENDER_EXECUTOR.submit(func, *args).result()


def render_page(document: "pymupdf.Document", page_index: int, dpi: int = RENDER_DPI) -> Image.Image:
    """Rasterize one page onto a white RGB bitmap at ``dpi``."""
    page = document.load_page(page_index)
    zoom = dpi / POINTS_PER_INCH
    pixmap = page.get_pixmap(matrix=pymupdf.Matrix(zoom, zoom), alpha=False)
    return Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)


def resolve_languages(requested: Optional[Sequence[str]] = None) -> str:
    """Return a Tesseract ``lang`` string limited to installed language packs."""
    wanted = list(requested or DEFAULT_LANGUAGES)
    try:
        installed = set(pytesseract.get_languages(config=""))
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as exc:
        raise OCRFailed(f"Tesseract unavailable: {exc}") from exc

    available = [lang for lang in wanted if lang in installed]
    if not available:
        LOGGER.warning(
            "None of the OCR languages %s are installed; using 'eng'", ", ".join(wanted)
        )
        return "eng"
    return "+".join(available)


def _group_lines(data: Dict[str, List[Any]], width: int, height: int) -> List[Observation]:
    lines: "OrderedDict[Tuple[int, int, int, int], List[int]]" = OrderedDict()
    for i, text in enumerate(data["text"]):
        if not str(text).strip():
            continue
        try:
            confidence = float(data["conf"][i])
        except (TypeError, ValueError):
            continue
        if confidence < 0:
            continue
        key = (
            int(data["page_num"][i]),
            int(data["block_num"][i]),
            int(data["par_num"][i]),
            int(data["line_num"][i]),
        )
        lines.setdefault(key, []).append(i)

    observations: List[Observation] = []
    for indices in lines.values():
        left = min(int(data["left"][i]) for i in indices)
        top = min(int(data["top"][i]) for i in indices)
        right = max(int(data["left"][i]) + int(data["width"][i]) for i in indices)
        bottom = max(int(data["top"][i]) + int(data["height"][i]) for i in indices)
        text = " ".join(str(data["text"][i]).strip() for i in indices)
        confidence = sum(float(data["conf"][i]) for i in indices) / len(indices) / 100.0

        box = BoundingBox(
            x=left / width,
            y=1.0 - bottom / height,
            width=(right - left) / width,
            height=(bottom - top) / height,
        )
        observations.append(
            Observation(bounding_box=box, text=text, confidence=min(1.0, confidence))
        )
    return observations


def recognize_text(image: Image.Image, languages: str) -> List[Observation]:
    """Run Tesseract on ``image`` and return one observation per text line."""
    try:
        data = pytesseract.image_to_data(
            image,
            lang=languages,
            config=TESSERACT_CONFIG,
            output_type=pytesseract.Output.DICT,
        )
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError) as exc:
        raise OCRFailed(str(exc)) from exc
    return _group_lines(data, image.width, image.height)


def perform_ocr(
    pdf_path: Path | str,
    progress_callback: Optional[ProgressCallback] = None,
    *,
    languages: Optional[Sequence[str]] = None,
    dpi: int = RENDER_DPI,
) -> List[OCRResult]:
    """
    Recognize the text of every page of a PDF.

    Pages that fail to render are skipped; pages without any recognized text
    are left out of the result.

    Args:
        pdf_path: Source PDF
        progress_callback: Called with ``(processed, total)`` after each page
        languages: Tesseract language codes, defaults to :data:`DEFAULT_LANGUAGES`
        dpi: Rendering resolution

    Raises:
        OCRFailed: The PDF cannot be opened or recognition fails
    """
    pdf_path = Path(pdf_path)
    lang = resolve_languages(languages)
    try:
        document = _on_render_thread(pymupdf.open, str(pdf_path))
    except (RuntimeError, ValueError, OSError) as exc:
        raise OCRFailed("Cannot open PDF document") from exc

    results: List[OCRResult] = []
    try:
        page_count = document.page_count
        for index in range(page_count):
            try:
                image = _on_render_thread(render_page, document, index, dpi)
            except Exception as exc:  # mupdf raises several unrelated types
                LOGGER.warning("Skipping page %d of %s: %s", index + 1, pdf_path.name, exc)
            else:
                observations = recognize_text(image, lang)
                if observations:
                    results.append(OCRResult(page_index=index, observations=observations))

            if progress_callback:
                progress_callback(index + 1, page_count)
    finally:
        _on_render_thread(document.close)

    LOGGER.info("OCR found text on %d page(s) of %s", len(results), pdf_path.name)
    return results
