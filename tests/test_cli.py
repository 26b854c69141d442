from pathlib import Path
import json
import sys

import pytest
from click.testing import CliRunner

from image_extractor import cli as cli_module
from image_extractor.cli import cli

from conftest import png_bytes

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="fake tools are shell scripts")


@pytest.fixture()
def runner(monkeypatch) -> CliRunner:
    for name in ("FORMAT", "OUTPUT_DIR", "OCR", "PDFIMAGES", "EXIFTOOL"):
        monkeypatch.delenv(f"IMAGE_EXTRACTOR_{name}", raising=False)
    return CliRunner()


@posix_only
def test_process_pdf(runner: CliRunner, sample_pdf: Path, fake_pdfimages) -> None:
    tool = fake_pdfimages()

    result = runner.invoke(cli, ["process", str(sample_pdf), "--pdfimages", str(tool), "--no-metadata"])

    assert result.exit_code == 0, result.output
    assert "2 image(s) extracted" in result.output
    assert (sample_pdf.parent / "doc_images" / "doc_P002_I001.jpg").exists()


def test_process_docx_to_custom_directory(runner: CliRunner, docx_factory, tmp_path: Path) -> None:
    docx = docx_factory("notes.docx", media={"image1.png": png_bytes()})
    out = tmp_path / "exports"

    result = runner.invoke(cli, ["process", str(docx), "--format", "tiff", "-o", str(out)])

    assert result.exit_code == 0, result.output
    assert (out / "notes_images" / "notes_I001.tiff").exists()


def test_process_reports_failures_with_exit_code(runner: CliRunner, docx_factory, monkeypatch) -> None:
    monkeypatch.setattr(cli_module, "locate_unzip", lambda: None)
    empty = docx_factory("empty.docx")

    result = runner.invoke(cli, ["process", str(empty)])

    assert result.exit_code == 1
    assert "empty.docx: No images found" in result.output


def test_process_rejects_unsupported_files(runner: CliRunner, tmp_path: Path) -> None:
    text = tmp_path / "notes.txt"
    text.write_text("x")

    result = runner.invoke(cli, ["process", str(text)])

    assert result.exit_code == 1
    assert "No PDF or DOCX files" in result.output


def test_process_uses_configuration_file(runner: CliRunner, docx_factory, tmp_path: Path) -> None:
    docx = docx_factory("notes.docx", media={"image1.png": png_bytes()})
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"exportFormat": "tiff"}))

    result = runner.invoke(cli, ["process", str(docx), "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "notes_images" / "notes_I001.tiff").exists()


def test_info_pdf(runner: CliRunner, sample_pdf: Path) -> None:
    result = runner.invoke(cli, ["info", str(sample_pdf)])

    assert result.exit_code == 0, result.output
    assert "Number of Pages" in result.output


def test_info_docx(runner: CliRunner, docx_factory) -> None:
    docx = docx_factory("notes.docx", media={"image1.png": png_bytes(), "image2.png": png_bytes()})

    result = runner.invoke(cli, ["info", str(docx)])

    assert result.exit_code == 0, result.output
    assert "Embedded Media" in result.output


def test_info_invalid_pdf(runner: CliRunner, tmp_path: Path) -> None:
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"garbage")

    result = runner.invoke(cli, ["info", str(broken)])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_tools_lists_every_tool(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["tools"])

    assert result.exit_code == 0
    for name in ("pdfimages", "exiftool", "unzip", "tesseract"):
        assert name in result.output


def test_config_init_and_show(runner: CliRunner, tmp_path: Path) -> None:
    target = tmp_path / "settings.json"

    created = runner.invoke(cli, ["config", "init", str(target)])
    again = runner.invoke(cli, ["config", "init", str(target)])
    shown = runner.invoke(cli, ["config", "show", str(target)])

    assert created.exit_code == 0
    assert json.loads(target.read_text())["exportFormat"] == "jpeg"
    assert again.exit_code == 1
    assert shown.exit_code == 0
    assert '"exportFormat": "jpeg"' in shown.output
