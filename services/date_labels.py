# services/date_labels.py
"""
Short display labels ("Nov 30, 2025") for billing dates.

Labels use the UTC calendar day. Naive datetimes and strings without an
offset are read as UTC.
"""
from datetime import date, datetime, timezone
from typing import Optional, Union

NOT_AVAILABLE = "N/A"

# Fixed English abbreviations; strftime("%b") follows the process locale.
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

FALLBACK_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d",
    "%b %d, %Y",
    "%B %d, %Y",
)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_string(value: str) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None

    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(iso_text)
    except ValueError:
        pass

    for fmt in FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_timestamp(value: Union[int, float, str, date, None]) -> Optional[datetime]:
    """Epoch seconds, ISO string, date or datetime → aware UTC datetime, or None.

    Epoch 0 counts as unset.
    """
    if value is None or isinstance(value, bool) or value == 0:
        return None

    if isinstance(value, datetime):
        return _to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        parsed = _parse_string(value)
        return _to_utc(parsed) if parsed else None

    return None


def format_date_label(value: Union[int, float, str, date, None]) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return NOT_AVAILABLE
    return f"{MONTH_ABBREVIATIONS[parsed.month - 1]} {parsed.day}, {parsed.year}"


def epoch_to_iso(epoch_seconds: Union[int, float]) -> str:
    """Stripe epoch seconds → ISO-8601 UTC string as stored on the profile."""
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
