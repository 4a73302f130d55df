"""RPC Schemas — JSON-RPC 2.0 envelope plus per-method params and results.

Invariants:
    - RpcRequest.jsonrpc must be exactly "2.0"
    - Params models list fields in positional order: positional params bind to them in order
    - Event kinds arrive as plain strings; unknown kinds are reported by the service
      as INVALID_EVENT_KIND, not as a schema failure
    - Incoming timestamps must carry a UTC offset (AwareDatetime)

Design Decisions:
    - Result models serialize with model_dump(mode="json"): enums become their wire
      strings, datetimes ISO-8601 with their original offset
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from clk2.core.domain_types import EventKind, Status


# ─── Envelope ────────────────────────────────────────────────────

class RpcRequest(BaseModel):
    """One JSON-RPC 2.0 request object."""
    model_config = ConfigDict(extra="forbid")

    jsonrpc: Literal["2.0"]
    method: str = Field(min_length=1)
    params: list[Any] | dict[str, Any] | None = None
    id: int | str | None = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


# ─── Params ──────────────────────────────────────────────────────

class NoParams(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ClockIdParams(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str


class RpcEventIn(BaseModel):
    """Event supplied to rewrite."""
    event: str
    timestamp: AwareDatetime


class RewriteParams(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    events: list[RpcEventIn]


# ─── Results ─────────────────────────────────────────────────────

class RpcClock(BaseModel):
    """One row of `list`."""
    id: str
    status: Status
    elapsed_sec: int


class RpcHistoryEvent(BaseModel):
    """One row of `history`."""
    event: EventKind
    timestamp: datetime
    cumulative_sec: int
