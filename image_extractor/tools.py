"""Locating and running the external command-line tools."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .exceptions import ToolNotFound

LOGGER = logging.getLogger(__name__)

_PREFIXES = ("/opt/homebrew/bin", "/usr/local/bin", "/opt/local/bin", "/usr/bin")

PDFIMAGES_CANDIDATES = tuple(f"{prefix}/pdfimages" for prefix in _PREFIXES) + ("pdfimages",)
EXIFTOOL_CANDIDATES = tuple(f"{prefix}/exiftool" for prefix in _PREFIXES) + ("exiftool",)
UNZIP_CANDIDATES = ("/usr/bin/unzip", "unzip")


def locate_executable(candidates: Iterable[str | os.PathLike[str]]) -> Optional[Path]:
    """
    Return the first candidate that is an executable file.

    Candidates containing a path separator are checked as-is; bare names
    are looked up on ``PATH``.
    """
    for candidate in candidates:
        text = os.fspath(candidate)
        if not text:
            continue
        if os.sep in text or (os.altsep and os.altsep in text):
            if os.path.isfile(text) and os.access(text, os.X_OK):
                LOGGER.debug("Detected external tool: %s", text)
                return Path(text)
            continue
        found = shutil.which(text)
        if found:
            LOGGER.debug("Detected external tool: %s -> %s", text, found)
            return Path(found)
    return None


def locate_pdfimages(extra: Sequence[str | os.PathLike[str]] = ()) -> Optional[Path]:
    return locate_executable([*extra, *PDFIMAGES_CANDIDATES])


def locate_exiftool(extra: Sequence[str | os.PathLike[str]] = ()) -> Optional[Path]:
    return locate_executable([*extra, *EXIFTOOL_CANDIDATES])


def locate_unzip(extra: Sequence[str | os.PathLike[str]] = ()) -> Optional[Path]:
    return locate_executable([*extra, *UNZIP_CANDIDATES])


def run_subprocess(
    command: Sequence[str | os.PathLike[str]],
    *,
    cwd: str | os.PathLike[str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run *command* to completion, capturing both output streams.

    Parameters
    ----------
    command:
        Executable followed by its arguments.
    cwd:
        Optional working directory.

    The exit code is returned, never raised on; callers decide what a
    non-zero status means. Both pipes are drained before the exit code is
    read, so large outputs cannot deadlock the child.
    """

    args = [os.fspath(part) for part in command]
    LOGGER.debug("Executing command: %s", " ".join(args))
    try:
        completed = subprocess.run(
            args,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            text=True,
            errors="replace",
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise ToolNotFound(Path(args[0]).name) from exc
    LOGGER.debug(
        "Command finished with exit code %s\nstdout: %s\nstderr: %s",
        completed.returncode,
        completed.stdout,
        completed.stderr,
    )
    return completed
