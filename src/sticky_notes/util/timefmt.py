"""Human-readable rendering of note timestamps."""

from datetime import UTC, datetime

from sticky_notes.models.note import parse_timestamp


def _aware_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    # Naive values are taken as UTC, like stored timestamps.
    return now if now.tzinfo is not None else now.replace(tzinfo=UTC)


def _parse(timestamp: str | None) -> datetime | str:
    if not timestamp:
        return "unknown time"
    try:
        return parse_timestamp(timestamp)
    except ValueError:
        return "invalid time"


def format_relative_time(timestamp: str | None, now: datetime | None = None) -> str:
    """Format a timestamp relative to now, e.g. "5 minutes ago".

    Older than a week shows the date, future timestamps show the full date and time.
    """
    parsed = _parse(timestamp)
    if isinstance(parsed, str):
        return parsed
    now = _aware_now(now)

    diff = (now - parsed).total_seconds()
    if diff < 0:
        return format_full_datetime(timestamp)

    seconds = int(diff)
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    days = hours // 24
    if days < 7:
        return f"{days} day{'s' if days != 1 else ''} ago"
    return f"{parsed:%b} {parsed.day}"


def format_full_datetime(timestamp: str | None) -> str:
    parsed = _parse(timestamp)
    if isinstance(parsed, str):
        return parsed
    return f"{parsed:%Y-%m-%d %H:%M:%S}"


def is_today(timestamp: str | None, now: datetime | None = None) -> bool:
    parsed = _parse(timestamp)
    if isinstance(parsed, str):
        return False
    now = _aware_now(now)
    return parsed.astimezone(now.tzinfo).date() == now.date()
