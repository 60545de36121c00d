from datetime import datetime
import pytz

UTC = pytz.UTC


def now_utc() -> datetime:
    """
    Returns the current time as a timezone-aware UTC datetime.
    Used to stamp when a reading became final.
    """
    return datetime.now(UTC)


def format_elapsed(seconds: float) -> str:
    """
    Render a wall-clock duration compactly, picking the unit by magnitude:
    "2m5.1s", "1.234s", "850.2ms", "12µs".
    """
    if seconds < 0:
        seconds = 0.0

    if seconds >= 60:
        minutes, rest = divmod(round(seconds, 3), 60)
        rest_text = f"{rest:.3f}".rstrip("0").rstrip(".") or "0"
        return f"{int(minutes)}m{rest_text}s"
    if seconds >= 1:
        return f"{seconds:.3f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.1f}ms"
    return f"{seconds * 1e6:.0f}µs"
