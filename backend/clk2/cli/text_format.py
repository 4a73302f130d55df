"""Text Format — the semicolon-delimited history/rewrite lines used by the CLI.

Invariants:
    - History line: "<YYYY-MM-DD HH:MM:SS ±HH:MM>; <event>; <H:MM:SS>"
    - Rewrite line: "<timestamp>; <event>[; anything]" — extra fields are ignored, so
      history output can be piped straight back into rewrite
    - Whitespace around separators is insignificant; blank lines are skipped
    - Parsed timestamps always carry a UTC offset

Design Decisions:
    - Event names are not validated here; the server reports unknown kinds
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"


class TextFormatError(ValueError):
    """A line of the text format could not be parsed."""


@dataclass(frozen=True)
class RewriteLine:
    event: str
    timestamp: datetime


def render_secs(value: int) -> str:
    """Seconds -> H:MM:SS with unpadded hours."""
    hours, rest = divmod(value, 60 * 60)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def _render_offset(offset: timedelta) -> str:
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def render_timestamp(timestamp: datetime) -> str:
    offset = timestamp.utcoffset() or timedelta(0)
    return f"{timestamp:%Y-%m-%d %H:%M:%S} {_render_offset(offset)}"


def parse_timestamp(raw: str) -> datetime:
    """Accept the rendered form or ISO-8601; both must include an offset."""
    raw = raw.strip()
    try:
        timestamp = datetime.strptime(raw, TIMESTAMP_FORMAT)
    except ValueError:
        try:
            timestamp = datetime.fromisoformat(raw)
        except ValueError:
            raise TextFormatError(f"Cannot parse timestamp '{raw}'") from None
    if timestamp.tzinfo is None:
        raise TextFormatError(f"Timestamp '{raw}' has no UTC offset")
    return timestamp


def render_history_line(timestamp: datetime, event: str, cumulative_sec: int) -> str:
    return f"{render_timestamp(timestamp)}; {event:>5}; {render_secs(cumulative_sec)}"


def parse_rewrite_line(line: str) -> RewriteLine:
    parts = line.split(";")
    if len(parts) < 2 or not parts[1].strip():
        raise TextFormatError(
            f"Line '{line}' does not contain both event timestamp and name",
        )
    return RewriteLine(event=parts[1].strip(), timestamp=parse_timestamp(parts[0]))


def parse_rewrite_text(text: str) -> list[RewriteLine]:
    """Parse every non-blank line; the first bad line raises TextFormatError."""
    return [
        parse_rewrite_line(line.strip())
        for line in text.splitlines()
        if line.strip()
    ]
