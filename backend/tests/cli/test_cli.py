"""clk2 CLI — command output and error reporting with a fake RPC client."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

import clk2.cli.main as cli_main
from clk2.cli.main import app
from clk2.cli.rpc_client import RpcCallError

runner = CliRunner()


class FakeClient:
    """Stands in for RpcClient; records calls and replays canned results."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.calls: list[tuple] = []
        FakeClient.last = self

    results: dict = {}
    last: "FakeClient | None" = None

    def close(self) -> None:
        pass

    def _record(self, name, *args):
        self.calls.append((name, *args))
        result = FakeClient.results.get(name)
        if isinstance(result, Exception):
            raise result
        return result

    def start(self, clock_id):
        return self._record("start", clock_id)

    def stop(self, clock_id):
        return self._record("stop", clock_id)

    def finish(self, clock_id):
        return self._record("finish", clock_id)

    def history(self, clock_id):
        return self._record("history", clock_id)

    def rewrite(self, clock_id, events):
        return self._record("rewrite", clock_id, events)

    def list_clocks(self):
        return self._record("list")

    def current(self):
        return self._record("current")


@pytest.fixture(autouse=True)
def fake_client(monkeypatch):
    FakeClient.results = {}
    FakeClient.last = None
    monkeypatch.setattr(cli_main, "RpcClient", FakeClient)
    return FakeClient


def test_list_prints_tab_separated_rows(fake_client):
    fake_client.results["list"] = [
        {"id": "chores", "status": "out", "elapsed_sec": 61},
        {"id": "work", "status": "in", "elapsed_sec": 28800},
    ]
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert result.output == "chores\tout\t0:01:01\nwork\tin\t8:00:00\n"


def test_current_prints_id_or_nothing(fake_client):
    fake_client.results["current"] = "work"
    assert runner.invoke(app, ["current"]).output == "work\n"
    fake_client.results["current"] = None
    result = runner.invoke(app, ["current"])
    assert result.exit_code == 0
    assert result.output == ""


def test_start_and_stop_call_server(fake_client):
    assert runner.invoke(app, ["start", "work"]).exit_code == 0
    assert fake_client.last.calls == [("start", "work")]
    assert runner.invoke(app, ["stop", "work"]).exit_code == 0
    assert fake_client.last.calls == [("stop", "work")]


def test_finish_prints_elapsed(fake_client):
    fake_client.results["finish"] = 20181
    result = runner.invoke(app, ["finish", "work"])
    assert result.output == "5:36:21\n"


def test_history_renders_lines(fake_client):
    fake_client.results["history"] = [
        {"event": "start", "timestamp": "2021-03-01T00:00:00+01:00", "cumulative_sec": 0},
        {"event": "stop", "timestamp": "2021-03-01T05:36:21+01:00", "cumulative_sec": 20181},
    ]
    result = runner.invoke(app, ["history", "work"])
    assert result.output.splitlines() == [
        "2021-03-01 00:00:00 +01:00; start; 0:00:00",
        "2021-03-01 05:36:21 +01:00;  stop; 5:36:21",
    ]


def test_rewrite_reads_stdin(fake_client):
    text = "2021-03-01 08:00:00 +01:00; start; 0:00:00\n2021-03-01 09:00:00 +01:00;  stop\n"
    result = runner.invoke(app, ["rewrite", "work"], input=text)
    assert result.exit_code == 0
    name, clock_id, events = fake_client.last.calls[0]
    assert (name, clock_id) == ("rewrite", "work")
    assert [kind for kind, _ in events] == ["start", "stop"]
    assert events[1][1].isoformat() == "2021-03-01T09:00:00+01:00"


def test_rewrite_bad_input_fails_before_calling_server(fake_client):
    result = runner.invoke(app, ["rewrite", "work"], input="not a line\n")
    assert result.exit_code == 1
    assert "Input error" in result.output
    assert fake_client.last.calls == []


def test_server_errors_exit_nonzero(fake_client):
    fake_client.results["stop"] = RpcCallError("Could not find clock with ID nosuch", -32005)
    result = runner.invoke(app, ["stop", "nosuch"])
    assert result.exit_code == 1
    assert "Server error: Could not find clock with ID nosuch" in result.output


def test_url_option_overrides_settings(fake_client):
    runner.invoke(app, ["--url", "http://elsewhere:7000/", "current"])
    assert fake_client.last.url == "http://elsewhere:7000/"


def test_default_url_from_settings(fake_client):
    runner.invoke(app, ["current"])
    assert fake_client.last.url == cli_main.get_settings().server_url
