"""Clock Service — single-writer shell: lock, transition, swap snapshot, write through.

Invariants:
    - Mutations (start, stop, finish, rewrite) run transition + snapshot swap + disk write
      under one asyncio.Lock, so two mutations never interleave
    - A failed transition leaves the snapshot untouched and raises the typed Clk2Error
    - A failed write keeps the new in-memory snapshot but raises PersistenceError; the
      next successful write re-establishes the file
    - Reads (list, current, history) use the current immutable snapshot without the lock
    - "now" comes from the injected now_fn, never from datetime.now() directly, and is
      truncated to whole seconds so history lines round-trip through rewrite unchanged

Design Decisions:
    - Singleton clock_service initialized on startup: FastAPI lifespan manages lifecycle
      (no global import side effects)
    - store_path=None runs purely in memory (tests, dry runs)
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from clk2.core.clock_store import (
    ClockStore, cumulative_times, currently_clocked_in, live_elapsed_seconds,
)
from clk2.core.codec import parse_event_kind
from clk2.core.errors import Clk2Error, InvalidEventError
from clk2.core.events import Event
from clk2.core.replay import clock_rewrite
from clk2.core.result import Err, Result, unwrap
from clk2.core.transitions import clock_in, clock_out, clock_reset, fetch_clock
from clk2.infrastructure.store_file import write_store_file
from clk2.schemas.rpc import RpcClock, RpcHistoryEvent

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Wall-clock time, whole seconds, with the local UTC offset attached."""
    return datetime.now().astimezone().replace(microsecond=0)


class ClockService:
    """Owns the current ClockStore snapshot and its durable copy."""

    def __init__(
        self,
        store: ClockStore | None = None,
        store_path: Path | None = None,
        now_fn: Callable[[], datetime] = local_now,
    ):
        self._store = store if store is not None else ClockStore()
        self._store_path = store_path
        self._now = now_fn
        self._lock = asyncio.Lock()

    @property
    def store(self) -> ClockStore:
        return self._store

    # ─── Mutations ──────────────────────────────────────────────

    async def start(self, clock_id: str) -> None:
        async with self._lock:
            result = clock_in(self._store, clock_id, self._tick())
            await self._commit(self._checked(result, "start", clock_id), "start", clock_id)

    async def stop(self, clock_id: str) -> None:
        async with self._lock:
            result = clock_out(self._store, clock_id, self._tick())
            await self._commit(self._checked(result, "stop", clock_id), "stop", clock_id)

    async def finish(self, clock_id: str) -> int:
        """Reset the clock and return the elapsed seconds it had."""
        async with self._lock:
            result = clock_reset(self._store, clock_id, self._tick())
            new_store, elapsed = self._checked(result, "finish", clock_id)
            await self._commit(new_store, "finish", clock_id)
            return elapsed

    async def rewrite(
        self, clock_id: str, entries: Iterable[tuple[str, datetime]],
    ) -> None:
        """Replace the clock's history with (event kind, timestamp) entries."""
        events = [self._to_event(clock_id, kind, ts) for kind, ts in entries]
        async with self._lock:
            result = clock_rewrite(self._store, clock_id, events)
            await self._commit(
                self._checked(result, "rewrite", clock_id), "rewrite", clock_id,
            )

    # ─── Reads ──────────────────────────────────────────────────

    def list_clocks(self) -> list[RpcClock]:
        store, now = self._store, self._tick()
        return [
            RpcClock(
                id=clock.id,
                status=clock.status,
                elapsed_sec=unwrap(live_elapsed_seconds(clock, now)),
            )
            for clock in store.sorted_clocks()
        ]

    def current(self) -> str | None:
        active = currently_clocked_in(self._store)
        return active.id if active else None

    def history(self, clock_id: str) -> list[RpcHistoryEvent]:
        clock = self._checked(fetch_clock(self._store, clock_id, False), "history", clock_id)
        return [
            RpcHistoryEvent(event=evt.kind, timestamp=evt.timestamp, cumulative_sec=total)
            for evt, total in cumulative_times(clock.events)
        ]

    # ─── Internals ──────────────────────────────────────────────

    def _tick(self) -> datetime:
        """Current time from now_fn, truncated to whole seconds."""
        return self._now().replace(microsecond=0)

    @staticmethod
    def _to_event(clock_id: str, kind: str, timestamp: datetime) -> Event:
        parsed = unwrap(parse_event_kind(kind))
        if timestamp.tzinfo is None:
            raise InvalidEventError(f"Timestamp {timestamp.isoformat()} has no UTC offset")
        return Event(parsed, timestamp, clock_id)

    @staticmethod
    def _checked(result: Result, operation: str, clock_id: str):
        if isinstance(result, Err):
            logger.warning(
                f"{operation} refused: {result.error.message}",
                extra={"clock_id": clock_id, "error_code": result.error.code},
            )
        return unwrap(result)

    async def _commit(self, new_store: ClockStore, operation: str, clock_id: str) -> None:
        self._store = new_store
        logger.info(f"{operation} {clock_id}", extra={"clock_id": clock_id})
        if self._store_path is None:
            return
        try:
            await asyncio.to_thread(write_store_file, self._store_path, new_store)
        except Clk2Error:
            logger.error(
                f"{operation} {clock_id} applied in memory but not persisted",
                extra={"clock_id": clock_id, "store_path": str(self._store_path)},
                exc_info=True,
            )
            raise


# Singleton (initialized on startup)
clock_service: ClockService | None = None


def init_clock_service(
    store: ClockStore,
    store_path: Path | None,
    now_fn: Callable[[], datetime] = local_now,
) -> ClockService:
    global clock_service
    clock_service = ClockService(store, store_path, now_fn)
    return clock_service


def get_clock_service() -> ClockService:
    """FastAPI dependency for the clock service."""
    if not clock_service:
        raise RuntimeError("Clock service not initialized")
    return clock_service
