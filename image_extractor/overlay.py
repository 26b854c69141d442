"""Searchable PDF construction from OCR observations."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence

import pymupdf

from .exceptions import OCRFailed
from .types import Observation, OCRResult

LOGGER = logging.getLogger(__name__)

FONT_NAME = "helv"
FONT_SIZE_RATIO = 0.85
INVISIBLE_RENDER_MODE = 3


def _results_by_page(ocr_results: Sequence[OCRResult]) -> Dict[int, List[Observation]]:
    grouped: Dict[int, List[Observation]] = {}
    for result in ocr_results:
        grouped.setdefault(result.page_index, list(result.observations))
    return grouped


def draw_invisible_text(page: "pymupdf.Page", observation: Observation) -> bool:
    """
    Write ``observation`` onto ``page`` as invisible, searchable text.

    The normalized box is scaled by the page size; the line is stretched
    horizontally to span the box width. Returns False if it was skipped.
    """
    page_width = page.rect.width
    page_height = page.rect.height
    box = observation.bounding_box

    x = box.x * page_width
    y = box.y * page_height
    width = box.width * page_width
    height = box.height * page_height

    font_size = height * FONT_SIZE_RATIO
    text = observation.text
    if font_size <= 0 or not text.strip():
        return False

    natural_width = pymupdf.get_text_length(text, fontname=FONT_NAME, fontsize=font_size)
    scale_x = width / natural_width if natural_width > 0 else 1.0
    if scale_x <= 0:
        return False

    # PyMuPDF places the baseline origin in top-left page space.
    origin = pymupdf.Point(x, page_height - y)
    page.insert_text(
        origin,
        text,
        fontsize=font_size,
        fontname=FONT_NAME,
        render_mode=INVISIBLE_RENDER_MODE,
        morph=(origin, pymupdf.Matrix(scale_x, 1.0)),
    )
    return True


def build_searchable_pdf(
    original_path: Path | str,
    ocr_results: Sequence[OCRResult],
    output_path: Path | str,
) -> Path:
    """
    Write a copy of ``original_path`` with an invisible text layer.

    Every page keeps the original page's size and visual content; the OCR
    text of that page (first result per page index) is drawn on top.

    Raises:
        OCRFailed: The original cannot be opened or the result cannot be saved
    """
    original_path = Path(original_path)
    output_path = Path(output_path)
    observations_by_page = _results_by_page(ocr_results)

    try:
        source = pymupdf.open(str(original_path))
    except (RuntimeError, ValueError, OSError) as exc:
        raise OCRFailed("Cannot open original PDF for searchable overlay") from exc

    output = pymupdf.open()
    drawn = 0
    try:
        for index in range(source.page_count):
            original = source[index]
            page = output.new_page(width=original.rect.width, height=original.rect.height)
            # show_pdf_page rejects pages without a content stream.
            if original.get_contents():
                page.show_pdf_page(page.rect, source, index)
            for observation in observations_by_page.get(index, []):
                if draw_invisible_text(page, observation):
                    drawn += 1

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output.save(str(output_path), garbage=3, deflate=True)
        except (RuntimeError, ValueError, OSError) as exc:
            raise OCRFailed("write failed") from exc
    finally:
        output.close()
        source.close()

    LOGGER.info(
        "Searchable PDF %s written with %d text line(s)", output_path.name, drawn
    )
    return output_path
