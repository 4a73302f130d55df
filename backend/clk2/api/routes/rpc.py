"""JSON-RPC Endpoint — POST / carrying one JSON-RPC 2.0 request.

Invariants:
    - Only application/json and application/json-rpc bodies are accepted (400 otherwise)
    - Malformed JSON yields a -32700 parse error response, never an HTTP 500
    - Every response body is a JSON-RPC envelope with media type application/json-rpc
    - Notifications get an empty 204 response
"""

import json
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from clk2.services.clock_service import ClockService, get_clock_service
from clk2.services.rpc_dispatch import (
    PARSE_ERROR, JsonRpcError, RpcDispatch, error_response, handle_rpc_payload,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["rpc"])

RPC_CONTENT_TYPES = frozenset({"application/json", "application/json-rpc"})
RPC_MEDIA_TYPE = "application/json-rpc"


@router.post("/")
async def rpc_endpoint(
    request: Request, service: ClockService = Depends(get_clock_service),
):
    """Dispatch a single JSON-RPC request to the clock service."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type not in RPC_CONTENT_TYPES:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Illegal Content-Type"},
        )

    body = await request.body()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("RPC body is not valid JSON")
        return JSONResponse(
            content=error_response(None, JsonRpcError(
                PARSE_ERROR, "Parse error",
            ).to_rpc_error()),
            media_type=RPC_MEDIA_TYPE,
        )

    response = await handle_rpc_payload(payload, RpcDispatch(service))
    if response is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return JSONResponse(content=response, media_type=RPC_MEDIA_TYPE)
