"""Domain Types — verifies identity wrappers and the wire values of the enums.

Tests:
    - ClockId wraps str
    - Status and EventKind values are the exact wire strings
    - Each enum has exactly three members
"""

import json

from clk2.core.domain_types import ClockId, ElapsedSeconds, EventKind, Status


def test_clock_id_wraps_str():
    assert ClockId("work") == "work"
    assert isinstance(ClockId("work"), str)


def test_elapsed_seconds_wraps_int():
    assert ElapsedSeconds(90) == 90


def test_status_has_three_states_with_wire_values():
    assert {s.value for s in Status} == {"in", "out", "reset"}
    assert Status("in") is Status.CLOCKED_IN
    assert Status("out") is Status.CLOCKED_OUT
    assert Status("reset") is Status.CLOCK_RESET


def test_event_kind_has_three_kinds_with_wire_values():
    assert [k.value for k in EventKind] == ["start", "stop", "reset"]


def test_str_enums_serialize_to_json_as_plain_strings():
    assert json.dumps([Status.CLOCKED_IN, EventKind.RESET]) == '["in", "reset"]'
