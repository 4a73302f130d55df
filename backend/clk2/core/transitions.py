"""State-Transition Engine — validates and applies one event to a ClockStore.

Invariants:
    - Every function is PURE: takes a snapshot, returns Ok(new snapshot) or Err(reason)
    - clock_in is the only transition into CLOCKED_IN and refuses while any other
      clock is active, so a Store never holds two active clocks
    - elapsed_seconds changes only on stop (adds the closed session) and reset (zeroed)
    - A clock's events stay in timestamp order: an event older than the clock's
      latest event is refused (OutOfOrderEventError)

Design Decisions:
    - Checks run in a fixed order (identifier, status, exclusivity, ordering) so the
      reported reason is deterministic when several would apply
    - process_event matches every EventKind explicitly; an unknown kind is a bug, not data
"""

from dataclasses import replace
from datetime import datetime

from clk2.core.clock_store import (
    Clock, ClockStore, currently_clocked_in, last_clocked_in, new_clock,
    session_seconds,
)
from clk2.core.domain_types import EventKind, Status
from clk2.core.errors import (
    ClockConflictError, ClockNotFoundError, IllegalTransitionError,
    InvalidClockIdError, MissingClockInError, OutOfOrderEventError,
)
from clk2.core.events import Event, reset_event, start_event, stop_event
from clk2.core.result import Err, Ok, Result


def fetch_clock(store: ClockStore, clock_id: str, with_default: bool) -> Result[Clock]:
    """Look up a clock. Unknown ids get a fresh clock only when with_default."""
    if clock_id == "":
        return Err(InvalidClockIdError())
    clock = store.get(clock_id)
    if clock is not None:
        return Ok(clock)
    if with_default:
        return Ok(new_clock(clock_id))
    return Err(ClockNotFoundError(clock_id))


def _check_order(clock: Clock, timestamp: datetime) -> Err | None:
    latest = clock.latest_event
    if latest is not None and timestamp < latest.timestamp:
        return Err(OutOfOrderEventError(clock.id, timestamp, latest.timestamp))
    return None


def _append(clock: Clock, evt: Event, **changes) -> Clock:
    return replace(clock, events=clock.events + (evt,), **changes)


def clock_in(store: ClockStore, clock_id: str, now: datetime) -> Result[ClockStore]:
    """Start a clock at `now`."""
    fetched = fetch_clock(store, clock_id, with_default=True)
    if isinstance(fetched, Err):
        return fetched
    clock = fetched.value

    if clock.status == Status.CLOCKED_IN:
        return Err(IllegalTransitionError(
            f"Clock {clock_id} must be stopped before it can be started",
        ))

    active = currently_clocked_in(store)
    if active is not None:
        return Err(ClockConflictError(
            f"Cannot clock in {clock_id} while {active.id} is already clocked in",
        ))

    out_of_order = _check_order(clock, now)
    if out_of_order:
        return out_of_order

    updated = _append(clock, start_event(now, clock_id), status=Status.CLOCKED_IN)
    return Ok(store.with_clock(updated))


def clock_out(store: ClockStore, clock_id: str, now: datetime) -> Result[ClockStore]:
    """Stop a clock at `now`, adding the closed session to its elapsed total."""
    fetched = fetch_clock(store, clock_id, with_default=False)
    if isinstance(fetched, Err):
        return fetched
    clock = fetched.value

    if clock.status != Status.CLOCKED_IN:
        return Err(IllegalTransitionError(
            f"Clock {clock_id} must be started before it can be stopped",
        ))

    started = last_clocked_in(clock)
    if started is None:
        return Err(MissingClockInError(clock_id))

    out_of_order = _check_order(clock, now)
    if out_of_order:
        return out_of_order

    updated = _append(
        clock, stop_event(now, clock_id),
        status=Status.CLOCKED_OUT,
        elapsed_seconds=clock.elapsed_seconds + session_seconds(started, now),
    )
    return Ok(store.with_clock(updated))


def clock_reset(
    store: ClockStore, clock_id: str, now: datetime,
) -> Result[tuple[ClockStore, int]]:
    """Reset a stopped clock. Ok value is (new store, elapsed before the reset)."""
    fetched = fetch_clock(store, clock_id, with_default=False)
    if isinstance(fetched, Err):
        return fetched
    clock = fetched.value

    if clock.status != Status.CLOCKED_OUT:
        return Err(IllegalTransitionError(
            f"Clock {clock_id} must be stopped before it can be reset",
        ))

    out_of_order = _check_order(clock, now)
    if out_of_order:
        return out_of_order

    updated = _append(
        clock, reset_event(now, clock_id),
        status=Status.CLOCK_RESET, elapsed_seconds=0,
    )
    return Ok((store.with_clock(updated), clock.elapsed_seconds))


def process_event(store: ClockStore, evt: Event) -> Result[ClockStore]:
    """Apply one logged event through the matching transition."""
    match evt.kind:
        case EventKind.START:
            return clock_in(store, evt.clock_id, evt.timestamp)
        case EventKind.STOP:
            return clock_out(store, evt.clock_id, evt.timestamp)
        case EventKind.RESET:
            reset = clock_reset(store, evt.clock_id, evt.timestamp)
            if isinstance(reset, Err):
                return reset
            return Ok(reset.value[0])
        case _:
            raise ValueError(f"Unhandled event kind: {evt.kind!r}")
