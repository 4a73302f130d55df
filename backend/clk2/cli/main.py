"""clk2 CLI — `clk2` console script talking to a running clk2 server.

Usage:
    clk2 [--url URL] list
    clk2 [--url URL] current
    clk2 [--url URL] start ID | stop ID | finish ID | history ID
    clk2 [--url URL] rewrite ID < history.txt
"""

from __future__ import annotations

from datetime import datetime
from typing import NoReturn

import typer

from clk2.cli.rpc_client import RpcCallError, RpcClient
from clk2.cli.text_format import (
    TextFormatError, parse_rewrite_text, render_history_line, render_secs,
)
from clk2.config import get_settings
from clk2.infrastructure.observability import setup_logging

app = typer.Typer(
    help="Start, stop and inspect clk2 work clocks.",
    no_args_is_help=True,
    add_completion=False,
)


def _client(ctx: typer.Context) -> RpcClient:
    return ctx.obj


def _fail(prefix: str, message: str) -> NoReturn:
    typer.echo(f"{prefix}: {message}", err=True)
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    url: str | None = typer.Option(
        None, "--url", "-u",
        help="Server endpoint (defaults to CLK2_SERVER_URL or http://localhost:6996/)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log RPC traffic to stderr"),
) -> None:
    settings = get_settings()
    if verbose:
        setup_logging("DEBUG", "text")
    client = RpcClient(url or settings.server_url, timeout=settings.client_timeout_seconds)
    ctx.obj = client
    ctx.call_on_close(client.close)


@app.command("list")
def list_clocks(ctx: typer.Context) -> None:
    """Show every clock with its status and elapsed time."""
    try:
        clocks = _client(ctx).list_clocks()
    except RpcCallError as e:
        _fail("Server error", e.message)
    for clock in clocks:
        typer.echo(f"{clock['id']}\t{clock['status']}\t{render_secs(clock['elapsed_sec'])}")


@app.command()
def current(ctx: typer.Context) -> None:
    """Print the clocked-in clock, if any."""
    try:
        clock_id = _client(ctx).current()
    except RpcCallError as e:
        _fail("Server error", e.message)
    if clock_id is not None:
        typer.echo(clock_id)


@app.command()
def start(ctx: typer.Context, clock_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Clock in."""
    try:
        _client(ctx).start(clock_id)
    except RpcCallError as e:
        _fail("Server error", e.message)


@app.command()
def stop(ctx: typer.Context, clock_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Clock out."""
    try:
        _client(ctx).stop(clock_id)
    except RpcCallError as e:
        _fail("Server error", e.message)


@app.command()
def finish(ctx: typer.Context, clock_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Reset a stopped clock and print the time it had accumulated."""
    try:
        elapsed = _client(ctx).finish(clock_id)
    except RpcCallError as e:
        _fail("Server error", e.message)
    typer.echo(render_secs(elapsed))


@app.command()
def history(ctx: typer.Context, clock_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Print the clock's events with running totals."""
    try:
        rows = _client(ctx).history(clock_id)
    except RpcCallError as e:
        _fail("Server error", e.message)
    for row in rows:
        timestamp = datetime.fromisoformat(row["timestamp"])
        typer.echo(render_history_line(timestamp, row["event"], row["cumulative_sec"]))


@app.command()
def rewrite(ctx: typer.Context, clock_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Replace the clock's history with lines read from stdin."""
    text = typer.get_text_stream("stdin").read()
    try:
        lines = parse_rewrite_text(text)
    except TextFormatError as e:
        _fail("Input error", str(e))
    try:
        _client(ctx).rewrite(clock_id, [(line.event, line.timestamp) for line in lines])
    except RpcCallError as e:
        _fail("Server error", e.message)


if __name__ == "__main__":
    app()
