from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Optional, Sequence
from zipfile import ZipFile
import io
import os
import sys

import pytest
from PIL import Image
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def png_bytes(size=(8, 8), color=(200, 30, 30, 128)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def write_script(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    os.chmod(path, 0o755)
    return path


@pytest.fixture()
def png_image(tmp_path: Path) -> Path:
    path = tmp_path / "fixture.png"
    path.write_bytes(png_bytes())
    return path


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(filename: str = "doc.pdf", pages: int = 2) -> Path:
        path = tmp_path / filename
        writer = PdfWriter()
        for _ in range(pages):
            writer.add_blank_page(width=200, height=200)
        with path.open("wb") as handle:
            writer.write(handle)
        return path

    return _create


@pytest.fixture()
def sample_pdf(pdf_factory: Callable[..., Path]) -> Path:
    return pdf_factory("doc.pdf", pages=2)


@pytest.fixture()
def docx_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(filename: str = "notes.docx", media: Optional[Dict[str, bytes]] = None) -> Path:
        path = tmp_path / filename
        with ZipFile(path, "w") as archive:
            archive.writestr("[Content_Types].xml", "<Types/>")
            archive.writestr("word/document.xml", "<w:document/>")
            for name, data in (media or {}).items():
                archive.writestr(f"word/media/{name}", data)
        return path

    return _create


@pytest.fixture()
def fake_pdfimages(tmp_path: Path, png_image: Path) -> Callable[..., Path]:
    """
    Build a stand-in for ``pdfimages``.

    The script copies a PNG to each of ``raw_names`` next to the output root
    (its last argument) and records its arguments in ``pdfimages.args``.
    """

    def _create(
        raw_names: Sequence[str] = ("image-001-000.png", "image-002-000.png"),
        exit_code: int = 0,
        stderr: str = "",
    ) -> Path:
        lines = [
            f'echo "$@" > "{tmp_path / "pdfimages.args"}"',
            "for last; do :; done",
            'out="$(dirname "$last")"',
        ]
        lines += [f'cp "{png_image}" "$out/{name}"' for name in raw_names]
        if stderr:
            lines.append(f'echo "{stderr}" >&2')
        lines.append(f"exit {exit_code}")
        return write_script(tmp_path / "bin" / "pdfimages", "\n".join(lines) + "\n")

    return _create


@pytest.fixture()
def fake_exiftool(tmp_path: Path) -> Callable[..., Path]:
    """Build a stand-in for ``exiftool`` that appends each invocation to ``exiftool.log``."""

    def _create(exit_code: int = 0, stdout: str = "    1 image files updated", stderr: str = "") -> Path:
        lines = [
            f'echo "$@" >> "{tmp_path / "exiftool.log"}"',
            f'echo "{stdout}"',
        ]
        if stderr:
            lines.append(f'echo "{stderr}" >&2')
        lines.append(f"exit {exit_code}")
        return write_script(tmp_path / "bin" / "exiftool", "\n".join(lines) + "\n")

    return _create
