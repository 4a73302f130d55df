"""RPC Dispatch — method routing, param binding and JSON-RPC error mapping.

Tests cover:
    - All seven methods are registered
    - Positional and named params bind to the same fields
    - Protocol errors use the reserved JSON-RPC codes
    - Clk2Errors keep their own code and message
    - Unexpected exceptions become -32603 without details
    - Notifications run but produce no response
"""

import pytest

from clk2.schemas.rpc import ClockIdParams, RewriteParams
from clk2.services.rpc_dispatch import (
    INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND,
    JsonRpcError, RpcDispatch, bind_params, handle_rpc_payload,
)


@pytest.fixture
def dispatch(service):
    return RpcDispatch(service)


def _request(method, params=None, request_id=1):
    body = {"jsonrpc": "2.0", "method": method, "id": request_id}
    if params is not None:
        body["params"] = params
    return body


def test_all_methods_registered(dispatch):
    assert set(dispatch.methods) == {
        "start", "stop", "finish", "rewrite", "history", "list", "current",
    }


def test_bind_positional_and_named_params():
    assert bind_params(ClockIdParams, ["work"]).id == "work"
    assert bind_params(ClockIdParams, {"id": "work"}).id == "work"


def test_bind_too_many_positional_params():
    with pytest.raises(JsonRpcError) as exc_info:
        bind_params(ClockIdParams, ["a", "b"])
    assert exc_info.value.code == INVALID_PARAMS


def test_bind_reports_field_errors():
    with pytest.raises(JsonRpcError) as exc_info:
        bind_params(RewriteParams, ["a", [{"event": "start", "timestamp": "2021-03-01T08:00:00"}]])
    assert exc_info.value.code == INVALID_PARAMS
    assert exc_info.value.data[0]["field"].startswith("events.0.timestamp")


async def test_start_returns_null_result(dispatch):
    response = await handle_rpc_payload(_request("start", ["work"], 7), dispatch)
    assert response == {"jsonrpc": "2.0", "result": None, "id": 7}


async def test_string_ids_are_echoed(dispatch):
    response = await handle_rpc_payload(_request("current", [], "abc"), dispatch)
    assert response["id"] == "abc"


async def test_finish_returns_elapsed(dispatch, fake_now):
    await handle_rpc_payload(_request("start", ["work"]), dispatch)
    fake_now.advance(seconds=90)
    await handle_rpc_payload(_request("stop", {"id": "work"}), dispatch)
    response = await handle_rpc_payload(_request("finish", ["work"]), dispatch)
    assert response["result"] == 90


async def test_list_result_shape(dispatch, fake_now):
    await handle_rpc_payload(_request("start", ["work"]), dispatch)
    fake_now.advance(minutes=1)
    response = await handle_rpc_payload(_request("list"), dispatch)
    assert response["result"] == [{"id": "work", "status": "in", "elapsed_sec": 60}]


async def test_history_result_shape(dispatch, fake_now):
    await handle_rpc_payload(_request("start", ["work"]), dispatch)
    fake_now.advance(minutes=1)
    await handle_rpc_payload(_request("stop", ["work"]), dispatch)
    response = await handle_rpc_payload(_request("history", ["work"]), dispatch)
    assert response["result"] == [
        {"event": "start", "timestamp": "2021-03-01T08:00:00+01:00", "cumulative_sec": 0},
        {"event": "stop", "timestamp": "2021-03-01T08:01:00+01:00", "cumulative_sec": 60},
    ]


async def test_rewrite_then_history_work_day(dispatch):
    events = [
        {"event": "start", "timestamp": "2021-03-01T00:00:00+01:00"},
        {"event": "stop", "timestamp": "2021-03-01T05:36:21+01:00"},
        {"event": "start", "timestamp": "2021-03-01T06:00:00+01:00"},
        {"event": "stop", "timestamp": "2021-03-01T08:23:39+01:00"},
        {"event": "reset", "timestamp": "2021-03-01T09:00:00+01:00"},
    ]
    response = await handle_rpc_payload(_request("rewrite", ["work", events]), dispatch)
    assert response["result"] is None
    history = await handle_rpc_payload(_request("history", ["work"]), dispatch)
    assert [row["cumulative_sec"] for row in history["result"]] == [
        0, 20181, 20181, 28800, 28800,
    ]
    listing = await handle_rpc_payload(_request("list"), dispatch)
    assert listing["result"] == [{"id": "work", "status": "reset", "elapsed_sec": 0}]


async def test_rewrite_with_history_output_is_accepted(dispatch, fake_now):
    await handle_rpc_payload(_request("start", ["work"]), dispatch)
    fake_now.advance(minutes=5)
    await handle_rpc_payload(_request("stop", ["work"]), dispatch)
    history = (await handle_rpc_payload(_request("history", ["work"]), dispatch))["result"]
    response = await handle_rpc_payload(_request("rewrite", ["work", history]), dispatch)
    assert response["result"] is None
    again = (await handle_rpc_payload(_request("history", ["work"]), dispatch))["result"]
    assert again == history


async def test_unknown_event_kind_in_rewrite(dispatch):
    events = [{"event": "lunch", "timestamp": "2021-03-01T12:00:00+01:00"}]
    response = await handle_rpc_payload(_request("rewrite", ["work", events]), dispatch)
    assert response["error"]["code"] == -32001
    assert response["error"]["message"] == "Event type lunch is not valid"


async def test_domain_error_keeps_code_and_message(dispatch):
    await handle_rpc_payload(_request("start", ["a"]), dispatch)
    response = await handle_rpc_payload(_request("start", ["b"]), dispatch)
    assert response["error"]["code"] == -32003
    assert response["error"]["message"] == "Cannot clock in b while a is already clocked in"
    assert response["error"]["data"]["code"] == "CLOCK_CONFLICT"


async def test_unknown_method(dispatch):
    response = await handle_rpc_payload(_request("pause", ["a"]), dispatch)
    assert response["error"]["code"] == METHOD_NOT_FOUND


async def test_missing_params(dispatch):
    response = await handle_rpc_payload(_request("start"), dispatch)
    assert response["error"]["code"] == INVALID_PARAMS


async def test_list_rejects_params(dispatch):
    response = await handle_rpc_payload(_request("list", ["extra"]), dispatch)
    assert response["error"]["code"] == INVALID_PARAMS


async def test_invalid_envelope_echoes_id(dispatch):
    response = await handle_rpc_payload(
        {"jsonrpc": "1.0", "method": "list", "id": 3}, dispatch,
    )
    assert response["error"]["code"] == INVALID_REQUEST
    assert response["id"] == 3


async def test_non_object_payload(dispatch):
    response = await handle_rpc_payload("list", dispatch)
    assert response["error"]["code"] == INVALID_REQUEST
    assert response["id"] is None


async def test_batch_not_supported(dispatch):
    response = await handle_rpc_payload([_request("list")], dispatch)
    assert response["error"]["code"] == INVALID_REQUEST


async def test_unexpected_exception_is_internal_error(dispatch, service, monkeypatch):
    def _boom():
        raise RuntimeError("secret detail")

    monkeypatch.setattr(service, "list_clocks", _boom)
    response = await handle_rpc_payload(_request("list"), dispatch)
    assert response["error"] == {"code": INTERNAL_ERROR, "message": "Internal error"}


async def test_notification_runs_without_response(dispatch, service):
    payload = {"jsonrpc": "2.0", "method": "start", "params": ["work"]}
    assert await handle_rpc_payload(payload, dispatch) is None
    assert service.current() == "work"


async def test_explicit_null_id_is_not_a_notification(dispatch):
    response = await handle_rpc_payload(_request("current", [], None), dispatch)
    assert response == {"jsonrpc": "2.0", "result": None, "id": None}
