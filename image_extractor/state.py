"""Per-document processing state machine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .exceptions import InvalidStateTransition


class Stage(IntEnum):
    """Pipeline stages in the only order a document may visit them."""

    PENDING = 0
    EXTRACTING = 1
    CONVERTING = 2
    WRITING_METADATA = 3
    RUNNING_OCR = 4
    COMPLETED = 5
    FAILED = 6


# (start, span) of each in-flight stage within the overall progress bar.
_PROGRESS_WEIGHTS = {
    Stage.EXTRACTING: (0.0, 0.4),
    Stage.CONVERTING: (0.4, 0.2),
    Stage.WRITING_METADATA: (0.6, 0.2),
    Stage.RUNNING_OCR: (0.8, 0.2),
}

_STATUS_TEXT = {
    Stage.PENDING: "Pending",
    Stage.EXTRACTING: "Extracting images…",
    Stage.CONVERTING: "Converting…",
    Stage.WRITING_METADATA: "Writing metadata…",
    Stage.RUNNING_OCR: "Running OCR…",
}


@dataclass(frozen=True)
class ProcessingState:
    """
    Immutable processing state of a document.

    Use the factory class methods rather than the constructor::

        ProcessingState.converting(0.5)
        ProcessingState.completed(12)
        ProcessingState.failed("No images found")
    """

    stage: Stage
    progress: float = 0.0
    image_count: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def pending(cls) -> "ProcessingState":
        return cls(Stage.PENDING)

    @classmethod
    def extracting(cls, progress: float = 0.0) -> "ProcessingState":
        return cls(Stage.EXTRACTING, _clamp(progress))

    @classmethod
    def converting(cls, progress: float = 0.0) -> "ProcessingState":
        return cls(Stage.CONVERTING, _clamp(progress))

    @classmethod
    def writing_metadata(cls, progress: float = 0.0) -> "ProcessingState":
        return cls(Stage.WRITING_METADATA, _clamp(progress))

    @classmethod
    def running_ocr(cls, progress: float = 0.0) -> "ProcessingState":
        return cls(Stage.RUNNING_OCR, _clamp(progress))

    @classmethod
    def completed(cls, image_count: int) -> "ProcessingState":
        return cls(Stage.COMPLETED, 1.0, image_count=image_count)

    @classmethod
    def failed(cls, message: str) -> "ProcessingState":
        return cls(Stage.FAILED, message=message)

    @property
    def is_processing(self) -> bool:
        return self.stage in _PROGRESS_WEIGHTS

    @property
    def is_finished(self) -> bool:
        return self.stage in (Stage.COMPLETED, Stage.FAILED)

    @property
    def progress_value(self) -> float:
        """Overall progress across all stages, in ``[0, 1]``."""
        if self.stage == Stage.COMPLETED:
            return 1.0
        if self.stage in _PROGRESS_WEIGHTS:
            start, span = _PROGRESS_WEIGHTS[self.stage]
            return start + self.progress * span
        return 0.0

    @property
    def status_text(self) -> str:
        if self.stage == Stage.COMPLETED:
            count = self.image_count or 0
            return f"{count} image{'' if count == 1 else 's'} extracted"
        if self.stage == Stage.FAILED:
            return f"Failed: {self.message}"
        return _STATUS_TEXT[self.stage]

    def can_advance_to(self, new: "ProcessingState") -> bool:
        if self.is_finished:
            return False
        if new.stage == Stage.FAILED:
            return True
        if new.stage < self.stage:
            return False
        if new.stage == self.stage:
            return new.stage != Stage.PENDING and new.progress >= self.progress
        return True

    def advance(self, new: "ProcessingState") -> "ProcessingState":
        """Return ``new`` if the transition is legal, otherwise raise."""
        if not self.can_advance_to(new):
            raise InvalidStateTransition(
                f"Illegal transition {self.stage.name}({self.progress:.2f}) -> "
                f"{new.stage.name}({new.progress:.2f})"
            )
        return new

    def __str__(self) -> str:
        if self.is_processing:
            return f"{self.status_text} {self.progress:.0%}"
        return self.status_text


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, float(value)))
