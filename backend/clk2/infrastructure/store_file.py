"""Store File — durable JSON artifact holding the global event log.

Invariants:
    - Writes are atomic: temp file in the same directory, then os.replace
    - A failed write leaves the previous file intact and removes the temp file
    - OS errors map to PersistenceError; unreadable contents map to CorruptStoreError
    - A missing file is not an error for load_store (empty Store)

Design Decisions:
    - Codec stays pure (core/codec.py); this module only does bytes <-> records
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from clk2.core.clock_store import ClockStore
from clk2.core.codec import deserialize_clockstore, serialize_clockstore
from clk2.core.errors import CorruptStoreError, PersistenceError
from clk2.core.result import unwrap

logger = logging.getLogger(__name__)


def write_store_file(path: Path, store: ClockStore) -> None:
    """Serialize `store` and atomically replace the file at `path`."""
    records = serialize_clockstore(store)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    except OSError as e:
        logger.error(f"Cannot prepare store file {path}: {e}")
        raise PersistenceError(str(e), "write") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        logger.error(f"Store write to {path} failed: {e}")
        raise PersistenceError(str(e), "write") from e

    logger.debug(
        "Store written",
        extra={"store_path": str(path), "event_count": len(records)},
    )


def read_store_records(path: Path) -> list:
    """Read the raw record list from `path`."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PersistenceError(str(e), "read") from e

    try:
        records = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptStoreError(f"invalid JSON ({e})") from e
    if not isinstance(records, list):
        raise CorruptStoreError("top-level value must be an array of events")
    return records


def load_store(path: Path) -> ClockStore:
    """Rebuild the Store from `path`; a missing file yields an empty Store."""
    if not path.exists():
        logger.info(f"No store file at {path}, starting empty")
        return ClockStore()
    records = read_store_records(path)
    store = unwrap(deserialize_clockstore(records))
    logger.info(
        f"Loaded {len(store)} clock(s) from {path}",
        extra={"store_path": str(path), "event_count": len(records)},
    )
    return store
