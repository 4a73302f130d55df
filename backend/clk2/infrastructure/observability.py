"""Structured Logging — JSON formatter and setup for the clock server.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (clock_id, rpc_method, error_code) surfaced when present
    - JSON format by default, human-readable when log_format="text"

What gets logged:
    - INFO: every applied mutation (start, stop, finish, rewrite) with clock_id; store
      load with store_path and event_count; pruning on startup; startup and shutdown
    - WARNING: refused mutations with clock_id and error_code; JSON-RPC envelope
      rejections with rpc_method; malformed request bodies
    - ERROR: failed store writes with store_path and exc_info; unhandled exceptions
    - DEBUG: each completed store write, and outgoing RPC calls from `clk2 --verbose`

Design Decisions:
    - JSONFormatter on the stdlib logging module, no extra dependency
    - setup_logging called once on startup via lifespan (and by the CLI for --verbose)
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = ("clock_id", "rpc_method", "error_code", "store_path", "event_count")


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


_HANDLER_NAME = "clk2:root"


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure root logging. Calling it again replaces the previous handler."""
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
