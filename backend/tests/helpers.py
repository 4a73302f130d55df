"""Shared builders for clock tests: fixed instants and ready-made stores."""

from datetime import datetime, timedelta, timezone

from clk2.core.clock_store import ClockStore
from clk2.core.events import Event
from clk2.core.replay import replay_events
from clk2.core.result import unwrap

CET = timezone(timedelta(hours=1))


def at(hour: int, minute: int = 0, second: int = 0, day: int = 1) -> datetime:
    """Fixed instant on 2021-03-<day> at UTC+01:00."""
    return datetime(2021, 3, day, hour, minute, second, tzinfo=CET)


def store_from(*events: Event) -> ClockStore:
    """Replay events onto an empty store; fails the test on a refused event."""
    return unwrap(replay_events(ClockStore(), events))
