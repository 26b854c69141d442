from pathlib import Path
import os
import subprocess
import sys

import pytest

from image_extractor import tools
from image_extractor.exceptions import ToolNotFound
from image_extractor.tools import locate_executable, locate_pdfimages, run_subprocess


def make_executable(path: Path) -> Path:
    path.write_text("#!/bin/sh\nexit 0\n")
    os.chmod(path, 0o755)
    return path


def test_locate_executable_returns_first_match(tmp_path: Path) -> None:
    first = make_executable(tmp_path / "first")
    second = make_executable(tmp_path / "second")

    assert locate_executable([tmp_path / "missing", first, second]) == first


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_locate_executable_skips_non_executable_files(tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.write_text("data")

    assert locate_executable([plain]) is None


def test_locate_executable_searches_path_for_bare_names(monkeypatch) -> None:
    monkeypatch.setattr(tools.shutil, "which", lambda name: f"/somewhere/{name}")

    assert locate_executable(["", "pdfimages"]) == Path("/somewhere/pdfimages")


def test_locate_pdfimages_prefers_explicit_candidates(tmp_path: Path) -> None:
    custom = make_executable(tmp_path / "pdfimages")

    assert locate_pdfimages([custom]) == custom


def test_locate_returns_none_when_nothing_matches(monkeypatch) -> None:
    monkeypatch.setattr(tools.os.path, "isfile", lambda path: False)
    monkeypatch.setattr(tools.shutil, "which", lambda name: None)

    assert locate_pdfimages() is None


def test_run_subprocess_captures_output(monkeypatch) -> None:
    captured = {}

    def fake_run(args, **kwargs):
        captured["args"] = args
        captured.update(kwargs)
        return subprocess.CompletedProcess(args, 3, stdout="out", stderr="err")

    monkeypatch.setattr(tools.subprocess, "run", fake_run)

    result = run_subprocess(["pdfimages", Path("a.pdf")])

    assert result.returncode == 3
    assert captured["args"] == ["pdfimages", "a.pdf"]
    assert captured["check"] is False
    assert captured["stdout"] is subprocess.PIPE
    assert captured["stderr"] is subprocess.PIPE


def test_run_subprocess_missing_executable(monkeypatch) -> None:
    def fake_run(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(tools.subprocess, "run", fake_run)

    with pytest.raises(ToolNotFound) as excinfo:
        run_subprocess(["/opt/none/exiftool", "-ver"])
    assert excinfo.value.tool == "exiftool"
