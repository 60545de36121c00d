from __future__ import annotations

from typing import Optional


class MeterReaderError(RuntimeError):
    """
    Base class for every failure surfaced by the reading pipeline.

    `stage` names the pipeline step that failed ("staging", "extracting",
    "resolving") so callers can report it without parsing the message.
    """

    stage: str = "pipeline"

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class StagingFailed(MeterReaderError):
    stage = "staging"


class InferenceFailed(MeterReaderError):
    stage = "extracting"


class DisambiguationFailed(MeterReaderError):
    stage = "resolving"


class InvalidInput(MeterReaderError, ValueError):
    """Reading string with characters outside the meter alphabet."""

    stage = "resolving"
