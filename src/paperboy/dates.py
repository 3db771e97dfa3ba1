"""Display formatting for article publication timestamps."""

from __future__ import annotations

from datetime import datetime, timedelta

from dateutil.parser import isoparse

# Non-ISO layouts seen in older API payloads.
_FALLBACK_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S",
)


def parse_publication_date(value: str) -> datetime | None:
    """Parse a publication timestamp, returning None when no known layout matches."""

    raw = value.strip()
    if not raw:
        return None
    try:
        return isoparse(raw)
    except ValueError:
        pass
    for layout in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(raw, layout)
        except ValueError:
            continue
    return None


def _time(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_publication_date(value: str, *, now: datetime | None = None) -> str:
    """Render a timestamp relative to ``now``, or return ``value`` unchanged if unparseable."""

    parsed = parse_publication_date(value)
    if parsed is None:
        return value

    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=now.tzinfo)
    local = parsed.astimezone(now.tzinfo)

    if local.date() == now.date():
        return f"Today at {_time(local)}"
    if local.date() == now.date() - timedelta(days=1):
        return f"Yesterday at {_time(local)}"
    if local.year == now.year:
        return f"{local:%b} {local.day}, {local.year} at {_time(local)}"
    return f"{local:%B} {local.day}, {local.year} at {_time(local)}"
