"""Event Log — immutable timestamped events and their ordering rules.

Invariants:
    - Events are frozen; timestamps are timezone-aware (the original offset is preserved)
    - sort_events is stable: events with equal timestamps keep their input order
    - merge_event_logs never reorders events within one clock's log

Design Decisions:
    - One Event dataclass with an EventKind discriminant instead of three classes:
      consumers match on event.kind and handle every member explicitly
    - Cross-clock ties put STOP/RESET before START so a same-instant hand-off
      (stop A, start B) replays without tripping the single-active-clock rule
"""

import heapq
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from clk2.core.domain_types import ClockId, EventKind


@dataclass(frozen=True)
class Event:
    """One entry of the log."""

    kind: EventKind
    timestamp: datetime
    clock_id: ClockId

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None or self.timestamp.utcoffset() is None:
            raise ValueError(
                f"Event timestamp must carry a UTC offset: {self.timestamp!r}",
            )


def start_event(timestamp: datetime, clock_id: str) -> Event:
    return Event(EventKind.START, timestamp, ClockId(clock_id))


def stop_event(timestamp: datetime, clock_id: str) -> Event:
    return Event(EventKind.STOP, timestamp, ClockId(clock_id))


def reset_event(timestamp: datetime, clock_id: str) -> Event:
    return Event(EventKind.RESET, timestamp, ClockId(clock_id))


def sort_events(events: Iterable[Event]) -> list[Event]:
    """Stable sort by timestamp. Pure."""
    return sorted(events, key=lambda evt: evt.timestamp)


def _tie_rank(evt: Event) -> int:
    match evt.kind:
        case EventKind.STOP | EventKind.RESET:
            return 0
        case EventKind.START:
            return 1
        case _:
            raise ValueError(f"Unhandled event kind: {evt.kind!r}")


def merge_event_logs(logs: Iterable[Sequence[Event]]) -> list[Event]:
    """Merge per-clock logs into one globally time-ordered log.

    Each log is sorted on its own first; heapq.merge only ever compares the
    heads of the logs, so a clock's own order survives the merge.
    """
    ordered_logs = [sort_events(log) for log in logs]
    return list(heapq.merge(
        *ordered_logs, key=lambda evt: (evt.timestamp, _tie_rank(evt)),
    ))
