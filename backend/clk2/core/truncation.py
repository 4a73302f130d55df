"""Retention / Truncation — prune history older than a horizon without splitting sessions.

Invariants:
    - Only events positioned before the kept cycle's opening start are dropped
      (a reset sharing that timestamp is dropped with its own cycle)
    - A cycle that spans the cutoff is kept whole
    - A clock with no cycle ending on or after the cutoff is left untouched
    - status and elapsed_seconds are never changed; only the event tuple shrinks
    - Never yields a log whose first retained event for a clock is a stop

Design Decisions:
    - Rounds the cutoff back to the start of a reset cycle per clock: everything
      dropped was already zeroed by a reset, so a reload reproduces the same figures
"""

from dataclasses import replace
from datetime import datetime

from clk2.core.clock_store import Clock, ClockStore, clock_bounding_times
from clk2.core.domain_types import EventKind


def truncate_clock(clock: Clock, cutoff: datetime, now: datetime) -> Clock:
    """Drop the clock's events that precede the first cycle still relevant at `cutoff`."""
    keep_from = next(
        (start for start, end in clock_bounding_times(clock, now) if end >= cutoff),
        None,
    )
    if keep_from is None:
        return clock
    for index, evt in enumerate(clock.events):
        opens_cycle = evt.kind == EventKind.START and (
            index == 0 or clock.events[index - 1].kind == EventKind.RESET
        )
        if opens_cycle and evt.timestamp == keep_from:
            return replace(clock, events=clock.events[index:])
    return clock


def truncate_clockstore(
    store: ClockStore, cutoff: datetime, now: datetime,
) -> ClockStore:
    """Apply truncate_clock to every clock. Pure."""
    return ClockStore({
        clock.id: truncate_clock(clock, cutoff, now) for clock in store
    })
