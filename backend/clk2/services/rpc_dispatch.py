"""RPC Dispatch — explicit routing from JSON-RPC method name to ClockService call.

Invariants:
    - Every method->handler mapping is visible in one dict — no getattr magic
    - handle_rpc_payload never raises: protocol errors, Clk2Errors and unexpected
      exceptions all become JSON-RPC error objects
    - Unexpected exceptions are logged with traceback and reported as -32603 without details
    - Notifications (requests without "id") produce no response object

Design Decisions:
    - Positional params bind to the params model's fields in declaration order
    - Batch requests are not supported (single request per HTTP call)
"""

import logging
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from clk2.core.errors import Clk2Error
from clk2.schemas.rpc import ClockIdParams, NoParams, RewriteParams, RpcRequest
from clk2.services.clock_service import ClockService

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JsonRpcError(Exception):
    """Protocol-level failure (bad envelope, unknown method, bad params)."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_rpc_error(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


def bind_params(model: type[BaseModel], params: list | dict | None) -> BaseModel:
    """Validate positional or named params against `model`."""
    if params is None:
        data: dict = {}
    elif isinstance(params, list):
        names = list(model.model_fields)
        if len(params) > len(names):
            raise JsonRpcError(
                INVALID_PARAMS,
                f"Expected at most {len(names)} positional params, got {len(params)}",
            )
        data = dict(zip(names, params))
    else:
        data = params

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise JsonRpcError(
            INVALID_PARAMS, "Invalid params",
            [
                {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        ) from e


class RpcDispatch:
    """Routes method -> handler. Explicit registration, no auto-discovery."""

    def __init__(self, service: ClockService):
        self._service = service
        self._handlers: dict[str, Callable[[list | dict | None], Awaitable[Any]]] = {
            # Mutations
            "start": self._start,
            "stop": self._stop,
            "finish": self._finish,
            "rewrite": self._rewrite,
            # Reads
            "history": self._history,
            "list": self._list,
            "current": self._current,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._handlers)

    async def execute(self, method: str, params: list | dict | None) -> Any:
        handler = self._handlers.get(method)
        if not handler:
            raise JsonRpcError(METHOD_NOT_FOUND, f"Method '{method}' not found")
        return await handler(params)

    async def _start(self, params):
        p = bind_params(ClockIdParams, params)
        await self._service.start(p.id)
        return None

    async def _stop(self, params):
        p = bind_params(ClockIdParams, params)
        await self._service.stop(p.id)
        return None

    async def _finish(self, params):
        p = bind_params(ClockIdParams, params)
        return await self._service.finish(p.id)

    async def _rewrite(self, params):
        p = bind_params(RewriteParams, params)
        await self._service.rewrite(p.id, [(e.event, e.timestamp) for e in p.events])
        return None

    async def _history(self, params):
        p = bind_params(ClockIdParams, params)
        return [row.model_dump(mode="json") for row in self._service.history(p.id)]

    async def _list(self, params):
        bind_params(NoParams, params)
        return [row.model_dump(mode="json") for row in self._service.list_clocks()]

    async def _current(self, params):
        bind_params(NoParams, params)
        return self._service.current()


def error_response(request_id: Any, error: dict) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "error": error, "id": request_id}


def result_response(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "result": result, "id": request_id}


async def handle_rpc_payload(payload: Any, dispatch: RpcDispatch) -> dict | None:
    """Turn a decoded JSON payload into a JSON-RPC response dict (None for notifications)."""
    if isinstance(payload, list):
        return error_response(None, JsonRpcError(
            INVALID_REQUEST, "Batch requests are not supported",
        ).to_rpc_error())

    try:
        request = RpcRequest.model_validate(payload)
    except ValidationError:
        request_id = payload.get("id") if isinstance(payload, dict) else None
        return error_response(request_id, JsonRpcError(
            INVALID_REQUEST, "Invalid Request",
        ).to_rpc_error())

    try:
        result = await dispatch.execute(request.method, request.params)
        response = result_response(request.id, result)
    except JsonRpcError as e:
        logger.warning(
            f"RPC {request.method} rejected: {e.message}",
            extra={"rpc_method": request.method},
        )
        response = error_response(request.id, e.to_rpc_error())
    except Clk2Error as e:
        response = error_response(request.id, e.to_rpc_error())
    except Exception as e:
        logger.error(
            f"Unhandled exception in RPC {request.method}: {e}",
            extra={"rpc_method": request.method},
            exc_info=True,
        )
        response = error_response(request.id, JsonRpcError(
            INTERNAL_ERROR, "Internal error",
        ).to_rpc_error())

    return None if request.is_notification else response
