"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ClockId wraps str — an empty ClockId is never valid in a Store
    - Status and EventKind values are the exact wire strings ("in"/"out"/"reset",
      "start"/"stop"/"reset") used by the RPC layer and the text format

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ClockId = NewType("ClockId", str)


# ─── Value Types ─────────────────────────────────────────────────

ElapsedSeconds = NewType("ElapsedSeconds", int)  # whole seconds, truncated


# ─── Enums ───────────────────────────────────────────────────────

class Status(str, Enum):
    """Clock lifecycle states. CLOCK_RESET is both initial and post-reset."""
    CLOCKED_IN = "in"
    CLOCKED_OUT = "out"
    CLOCK_RESET = "reset"


class EventKind(str, Enum):
    """The three event variants of the log."""
    START = "start"
    STOP = "stop"
    RESET = "reset"
