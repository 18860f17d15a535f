"""
Timestamp parsing and formatting for API payloads.
"""

import re
from datetime import datetime, timezone
from typing import Optional

# Fractional seconds longer than microseconds are truncated before parsing
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_SHORT_FRACTION_RE = re.compile(r"\.(\d{1,5})(?=$|[+-])")


def parse_date(value: str) -> datetime:
    """
    Parse an API timestamp into an aware UTC datetime.

    Accepts ``2013-09-02T14:56:34.240Z``, explicit offsets, naive values
    (assumed UTC) and date-only values.

    Args:
        value: ISO-8601 timestamp string

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        ValueError: If the value is not a string or not a valid timestamp
    """
    if not isinstance(value, str):
        raise ValueError(f"Expected a timestamp string, got {type(value).__name__}")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(r"\1", text)
    text = _SHORT_FRACTION_RE.sub(lambda m: "." + m.group(1).ljust(6, "0"), text)

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_optional_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp, passing None through."""
    if value is None:
        return None
    return parse_date(value)


def format_date_for_json(value: datetime) -> str:
    """
    Render a datetime the way the API does.

    The result is UTC, ends with ``Z`` and carries milliseconds only when
    they are non-zero, e.g. ``2013-09-02T14:56:34.240Z``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)

    result = value.strftime("%Y-%m-%dT%H:%M:%S")
    milliseconds = value.microsecond // 1000
    if milliseconds > 0:
        result += f".{milliseconds:03d}"
    return result + "Z"
