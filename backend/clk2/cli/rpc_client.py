"""RPC Client — synchronous JSON-RPC 2.0 client for the clk2 server.

Invariants:
    - Every failure (transport, HTTP, content type, JSON-RPC error) surfaces as RpcCallError
    - JSON-RPC error messages are passed through verbatim so the server's wording reaches
      the user

Design Decisions:
    - httpx.Client with an injectable transport (httpx.MockTransport in tests)
"""

import itertools
import json
import logging
from datetime import datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)

RPC_CONTENT_TYPES = ("application/json", "application/json-rpc")


class RpcCallError(Exception):
    """A call could not be completed or the server reported an error."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class RpcClient:
    """Thin wrapper: one method per server RPC method."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._url = url
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def call(self, method: str, params: list | None = None) -> Any:
        request = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        logger.debug(f"RPC -> {method}", extra={"rpc_method": method})
        try:
            response = self._client.post(
                self._url,
                content=json.dumps(request),
                headers={
                    "Content-Type": "application/json-rpc",
                    "Accept": "application/json, application/json-rpc",
                },
            )
        except httpx.HTTPError as e:
            raise RpcCallError(f"Cannot reach server at {self._url}: {e}") from e

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if content_type not in RPC_CONTENT_TYPES:
            raise RpcCallError(
                f"Received unexpected content type {content_type or '(none)'} "
                f"from server (HTTP {response.status_code})",
            )
        try:
            body = response.json()
        except ValueError as e:
            raise RpcCallError(f"Server sent invalid JSON: {e}") from e

        if "error" in body:
            error = body["error"] or {}
            raise RpcCallError(error.get("message", "Unknown error"), error.get("code"))
        return body.get("result")

    # ─── Methods ────────────────────────────────────────────────

    def start(self, clock_id: str) -> None:
        self.call("start", [clock_id])

    def stop(self, clock_id: str) -> None:
        self.call("stop", [clock_id])

    def finish(self, clock_id: str) -> int:
        return int(self.call("finish", [clock_id]))

    def history(self, clock_id: str) -> list[dict]:
        return self.call("history", [clock_id])

    def rewrite(self, clock_id: str, events: list[tuple[str, datetime]]) -> None:
        payload = [
            {"event": event, "timestamp": timestamp.isoformat()}
            for event, timestamp in events
        ]
        self.call("rewrite", [clock_id, payload])

    def list_clocks(self) -> list[dict]:
        return self.call("list")

    def current(self) -> str | None:
        return self.call("current")
