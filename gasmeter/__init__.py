"""
gasmeter: reads analog gas meters from photographs.

A vision model extracts the reading and date as structured output; digits it
marks as uncertain ("?") are resolved by a second, text-only pass seeded with
the previous confirmed reading.

Nothing in gasmeter.media talks directly to Flask or the command line.
"""

from .errors import (
    DisambiguationFailed,
    InferenceFailed,
    InvalidInput,
    MeterReaderError,
    StagingFailed,
)
from .media.models import MediaReference, ReadingResult, ReadingSession
from .media.pipeline import GasMeterReader, extract_reading

__all__ = [
    "DisambiguationFailed",
    "GasMeterReader",
    "InferenceFailed",
    "InvalidInput",
    "MediaReference",
    "MeterReaderError",
    "ReadingResult",
    "ReadingSession",
    "StagingFailed",
    "extract_reading",
]
