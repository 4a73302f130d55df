"""Persistence Codec — ClockStore <-> JSON-safe event records.

Invariants:
    - serialize_clockstore produces one globally time-ordered list of records for all
      clocks; output never depends on the Store's internal map order
    - deserialize_clockstore rebuilds from an empty Store by replaying every event;
      any bad record or failed transition fails the whole load (CorruptStoreError)
    - Timestamps are written with their original UTC offset and must carry one on read

Design Decisions:
    - Record shape {"event", "timestamp", "id"} mirrors the RPC event shape plus the id
    - Pure dict conversion; file IO lives in infrastructure/store_file.py
"""

from datetime import datetime
from typing import Any

from clk2.core.clock_store import ClockStore
from clk2.core.domain_types import ClockId, EventKind
from clk2.core.errors import Clk2Error, CorruptStoreError, InvalidEventKindError
from clk2.core.events import Event, sort_events
from clk2.core.replay import global_event_log, replay_events
from clk2.core.result import Err, Ok, Result


def parse_event_kind(kind: str) -> Result[EventKind]:
    """Map a wire string onto EventKind."""
    try:
        return Ok(EventKind(kind))
    except ValueError:
        return Err(InvalidEventKindError(kind))


def parse_timestamp(raw: str) -> datetime:
    """ISO-8601 with offset -> aware datetime. Raises ValueError otherwise."""
    timestamp = datetime.fromisoformat(raw)
    if timestamp.tzinfo is None:
        raise ValueError(f"timestamp {raw!r} has no UTC offset")
    return timestamp


def event_to_record(evt: Event) -> dict:
    return {
        "event": evt.kind.value,
        "timestamp": evt.timestamp.isoformat(),
        "id": evt.clock_id,
    }


def event_from_record(record: Any) -> Result[Event]:
    """Decode one stored record."""
    if not isinstance(record, dict):
        return Err(CorruptStoreError(f"event record must be an object, got {record!r}"))
    missing = [key for key in ("event", "timestamp", "id") if key not in record]
    if missing:
        return Err(CorruptStoreError(
            f"event record is missing {', '.join(missing)}: {record!r}",
        ))

    kind = parse_event_kind(str(record["event"]))
    if isinstance(kind, Err):
        return kind
    try:
        timestamp = parse_timestamp(str(record["timestamp"]))
    except ValueError as e:
        return Err(CorruptStoreError(str(e)))
    return Ok(Event(kind.value, timestamp, ClockId(str(record["id"]))))


def serialize_clockstore(store: ClockStore) -> list[dict]:
    """Flatten the Store to time-ordered records. Pure, no IO."""
    return [event_to_record(evt) for evt in global_event_log(store)]


def deserialize_clockstore(records: list[Any]) -> Result[ClockStore]:
    """Rebuild a Store from records by replaying them. Pure, no IO."""
    events: list[Event] = []
    for record in records:
        decoded = event_from_record(record)
        if isinstance(decoded, Err):
            return _as_corrupt(decoded.error)
        events.append(decoded.value)

    replayed = replay_events(ClockStore(), sort_events(events))
    if isinstance(replayed, Err):
        return _as_corrupt(replayed.error)
    return replayed


def _as_corrupt(error: Clk2Error) -> Err:
    if isinstance(error, CorruptStoreError):
        return Err(error)
    return Err(CorruptStoreError(error.message))
