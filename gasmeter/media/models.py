from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

# Character the vision model uses in place of a digit it could not read.
UNCERTAINTY_MARKER = "?"


@dataclass(frozen=True)
class MediaReference:
    """
    Handle for staged image bytes.

    Fields:
        name: Stager-side identifier, used for deletion.
        uri: Location the inference gateway can dereference (URL or data URL).
        mime_type: Content type of the staged bytes.
    """

    name: str
    uri: str
    mime_type: str = "image/jpeg"


@dataclass(frozen=True)
class ReadingSession:
    """
    Carry-over context between sequential reads of the same meter.

    last_reading is only a hint for resolving uncertain digits; it is
    never validated.
    """

    last_reading: str = ""


@dataclass
class ReadingResult:
    """
    Outcome of one pass through the reading pipeline.

    Fields:
        reading: Digits and '.' as shown on the meter, fixed width.
        date: Date text as reported by the vision model (not validated).
        read_at: When the reading became final (after disambiguation).
        elapsed: Wall-clock duration of the whole pipeline, e.g. "1.234s".
        ambiguous_reading: Raw reading with '?' markers, when resolution ran.
    """

    reading: str
    date: str = ""
    read_at: Optional[datetime] = None
    elapsed: str = ""
    ambiguous_reading: Optional[str] = field(default=None, compare=False)

    @property
    def has_uncertain_digits(self) -> bool:
        return UNCERTAINTY_MARKER in self.reading

    def to_dict(self) -> Dict[str, Any]:
        """
        Return the JSON shape served over HTTP and printed by the CLI.
        """
        d: Dict[str, Any] = {
            "read": self.reading,
            "date": self.date,
        }
        if self.read_at is not None:
            d["read_at"] = self.read_at.isoformat()
        if self.elapsed:
            d["it_takes"] = self.elapsed
        if self.ambiguous_reading is not None:
            d["ambiguous_read"] = self.ambiguous_reading
        return d

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "ReadingResult":
        """
        Build from the structured payload returned by the vision model.
        The payload is expected to have passed schema validation already.
        """
        return cls(
            reading=str(raw.get("read", "")),
            date=str(raw.get("date") or ""),
        )
