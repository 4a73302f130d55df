"""Clock Store — per-clock aggregate, the store snapshot, and read-only derivations.

Invariants:
    - Clock and ClockStore are frozen; every update returns a new snapshot
    - At most one Clock in a ClockStore has Status.CLOCKED_IN
      (enforced by transitions.clock_in, the only way a clock becomes active)
    - elapsed_seconds counts closed sessions since the last reset; the open session is
      computed on demand (live_elapsed_seconds), never stored
    - Derivations take "now" as a parameter — no wall-clock reads in this module

Design Decisions:
    - ClockStore wraps a MappingProxyType so a snapshot handed to a reader cannot be
      mutated behind the writer's back
    - Bounding spans cover a whole reset cycle (first start to last stop before the
      next reset): truncation drops only fully reset cycles, so replaying the retained
      events reproduces elapsed_seconds
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from clk2.core.domain_types import ClockId, EventKind, Status
from clk2.core.errors import CorruptStateError
from clk2.core.events import Event, sort_events
from clk2.core.result import Err, Ok, Result


@dataclass(frozen=True)
class Clock:
    """Derived state of one clock plus the events that produced it."""

    id: ClockId
    status: Status = Status.CLOCK_RESET
    elapsed_seconds: int = 0
    events: tuple[Event, ...] = ()

    @property
    def latest_event(self) -> Event | None:
        return self.events[-1] if self.events else None


def new_clock(clock_id: str) -> Clock:
    """Fresh clock: reset, zero elapsed, empty history."""
    return Clock(id=ClockId(clock_id))


@dataclass(frozen=True)
class ClockStore:
    """Immutable snapshot: clock id -> Clock."""

    clocks: Mapping[str, Clock] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "clocks", MappingProxyType(dict(self.clocks)))

    def __len__(self) -> int:
        return len(self.clocks)

    def __iter__(self) -> Iterator[Clock]:
        return iter(self.clocks.values())

    def __contains__(self, clock_id: object) -> bool:
        return clock_id in self.clocks

    def get(self, clock_id: str) -> Clock | None:
        return self.clocks.get(clock_id)

    def with_clock(self, clock: Clock) -> "ClockStore":
        """New snapshot with `clock` added or replaced. Pure."""
        return ClockStore({**self.clocks, clock.id: clock})

    def without_clock(self, clock_id: str) -> "ClockStore":
        """New snapshot with `clock_id` removed, if present. Pure."""
        return ClockStore({k: v for k, v in self.clocks.items() if k != clock_id})

    def sorted_clocks(self) -> list[Clock]:
        return [self.clocks[key] for key in sorted(self.clocks)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClockStore):
            return NotImplemented
        return dict(self.clocks) == dict(other.clocks)

    def __hash__(self) -> int:
        return hash(frozenset(self.clocks.items()))


EMPTY_STORE = ClockStore()


# ─── Read-only derivations ──────────────────────────────────────

def currently_clocked_in(store: ClockStore) -> Clock | None:
    """The single active clock, or None."""
    for clock in store.sorted_clocks():
        if clock.status == Status.CLOCKED_IN:
            return clock
    return None


def last_clocked_in(clock: Clock) -> datetime | None:
    """Timestamp of the most recent start event, if any."""
    starts = [evt.timestamp for evt in clock.events if evt.kind == EventKind.START]
    return max(starts) if starts else None


def session_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds between two instants, truncated toward zero."""
    return int((end - start).total_seconds())


def live_elapsed_seconds(clock: Clock, now: datetime) -> Result[int]:
    """Stored elapsed plus the open session for an active clock."""
    if clock.status != Status.CLOCKED_IN:
        return Ok(clock.elapsed_seconds)
    started = last_clocked_in(clock)
    if started is None:
        return Err(CorruptStateError(
            f"Clock {clock.id} is clocked in but has no clock-in event",
        ))
    return Ok(clock.elapsed_seconds + session_seconds(started, now))


def cumulative_times(events: Iterable[Event]) -> list[tuple[Event, int]]:
    """Pair every event with the running total of closed start->stop seconds.

    A reset carries the total from just before it; the running figure itself is
    not zeroed, so history shows what each reset closed out.
    """
    history: list[tuple[Event, int]] = []
    total = 0
    open_since: datetime | None = None
    for evt in sort_events(events):
        match evt.kind:
            case EventKind.START:
                open_since = evt.timestamp
            case EventKind.STOP:
                if open_since is not None:
                    total += session_seconds(open_since, evt.timestamp)
                open_since = None
            case EventKind.RESET:
                open_since = None
            case _:
                raise ValueError(f"Unhandled event kind: {evt.kind!r}")
        history.append((evt, total))
    return history


def clock_bounding_times(
    clock: Clock, now: datetime,
) -> list[tuple[datetime, datetime]]:
    """(start, end) of each reset cycle of the clock, oldest first.

    A cycle runs from its first start to its last stop. A cycle that is still
    open (clock active) ends at `now` so it is never mistaken for history that
    lies entirely before a cutoff.
    """
    bounds: list[tuple[datetime, datetime]] = []
    cycle_start: datetime | None = None
    cycle_end: datetime | None = None
    for evt in sort_events(clock.events):
        match evt.kind:
            case EventKind.START:
                if cycle_start is None:
                    cycle_start = evt.timestamp
            case EventKind.STOP:
                cycle_end = evt.timestamp
            case EventKind.RESET:
                if cycle_start is not None and cycle_end is not None:
                    bounds.append((cycle_start, cycle_end))
                cycle_start, cycle_end = None, None
            case _:
                raise ValueError(f"Unhandled event kind: {evt.kind!r}")

    if cycle_start is not None:
        if clock.status == Status.CLOCKED_IN:
            bounds.append((cycle_start, now))
        elif cycle_end is not None:
            bounds.append((cycle_start, cycle_end))
    return bounds
