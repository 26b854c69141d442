import io
from pathlib import Path

import pytest
from PIL import Image

from image_extractor.conversion import convert_file, convert_images, needs_conversion
from image_extractor.exceptions import ConversionFailed
from image_extractor.types import ExportFormat

from conftest import png_bytes


@pytest.fixture()
def extracted(tmp_path: Path) -> list:
    first = tmp_path / "doc_P001_I001.png"
    second = tmp_path / "doc_P002_I001.png"
    first.write_bytes(png_bytes())
    second.write_bytes(png_bytes(size=(4, 6)))
    return [first, second]


def test_needs_conversion(tmp_path: Path) -> None:
    jpg = tmp_path / "a.JPG"
    png = tmp_path / "b.png"
    assert not needs_conversion([jpg], ExportFormat.JPEG)
    assert needs_conversion([jpg, png], ExportFormat.JPEG)
    assert not needs_conversion([tmp_path / "c.tif"], ExportFormat.TIFF)


def test_convert_to_jpeg_replaces_originals(extracted: list, tmp_path: Path) -> None:
    calls = []

    outputs = convert_images(
        extracted,
        ExportFormat.JPEG,
        tmp_path,
        progress_callback=lambda current, total: calls.append((current, total)),
    )

    assert [path.name for path in outputs] == ["doc_P001_I001.jpg", "doc_P002_I001.jpg"]
    assert not any(path.exists() for path in extracted)
    assert calls == [(1, 2), (2, 2)]
    with Image.open(outputs[0]) as image:
        assert image.format == "JPEG"
        assert image.mode == "RGB"
        # alpha is flattened onto white
        red, green, blue = image.getpixel((4, 4))
        assert green > 60


def test_convert_to_tiff(extracted: list, tmp_path: Path) -> None:
    outputs = convert_images(extracted, ExportFormat.TIFF, tmp_path)

    with Image.open(outputs[1]) as image:
        assert image.format == "TIFF"
        assert image.size == (4, 6)


def test_conforming_files_are_left_untouched(tmp_path: Path) -> None:
    existing = tmp_path / "doc_P001_I001.jpg"
    Image.new("RGB", (5, 5), (0, 0, 255)).save(existing, format="JPEG")
    before = existing.read_bytes()
    png = tmp_path / "doc_P002_I001.png"
    png.write_bytes(png_bytes())

    outputs = convert_images([existing, png], ExportFormat.JPEG, tmp_path)

    assert outputs[0] == existing
    assert existing.read_bytes() == before
    assert outputs[1].name == "doc_P002_I001.jpg"


def test_undecodable_file_raises(tmp_path: Path) -> None:
    garbage = tmp_path / "doc_P001_I001.png"
    garbage.write_bytes(b"not an image")

    with pytest.raises(ConversionFailed) as excinfo:
        convert_images([garbage], ExportFormat.TIFF, tmp_path)
    assert "Cannot read image: doc_P001_I001.png" in str(excinfo.value)


def test_convert_to_jpeg_xl(extracted: list, tmp_path: Path) -> None:
    pytest.importorskip("pillow_jxl")

    destination = tmp_path / "doc_P001_I001.jxl"
    convert_file(extracted[0], destination, ExportFormat.JPEG_XL)

    assert destination.stat().st_size > 0


def test_oversized_image_raises_conversion_failed(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    source = tmp_path / "doc_P001_I001.png"
    Image.new("1", (64, 64)).save(source, format="PNG")

    with pytest.raises(ConversionFailed) as excinfo:
        convert_file(source, tmp_path / "doc_P001_I001.tiff", ExportFormat.TIFF)
    assert isinstance(excinfo.value.__cause__, Image.DecompressionBombError)
    assert not (tmp_path / "doc_P001_I001.tiff").exists()


def test_truncated_image_raises_conversion_failed(tmp_path: Path) -> None:
    buffer = io.BytesIO()
    Image.effect_noise((64, 64), 100).save(buffer, format="PNG")
    source = tmp_path / "doc_P001_I001.png"
    source.write_bytes(buffer.getvalue()[: len(buffer.getvalue()) // 2])

    with pytest.raises(ConversionFailed) as excinfo:
        convert_file(source, tmp_path / "doc_P001_I001.jpg", ExportFormat.JPEG)
    assert "Cannot read image: doc_P001_I001.png" in str(excinfo.value)
