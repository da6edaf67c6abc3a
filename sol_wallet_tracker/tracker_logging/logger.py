"""
Logging setup for the wallet tracker.

Every lookup step (RPC call, detail fetch, cache read/write, session start
and end) logs one snake_case event with short wallet / signature ids bound as
context. LOG_FORMAT=json (default) renders one JSON object per line on
stderr; any other value uses the console renderer.

Imports nothing from sol_wallet_tracker so every module can import it first.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Store structlog's `event` under event_type and mirror it into message."""
    event = event_dict.pop("event", None)
    if event is not None:
        event_dict.setdefault("event_type", event)
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


def _renderer() -> Any:
    if LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog() -> None:
    """Install the tracker's processor chain; runs once at import."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            _event_type,
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        # stdout is reserved for CLI output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger with `logger=<name>` bound.

        logger = get_logger(__name__)
        logger.debug("rpc_request", method="getBalance", request_id=3)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet_id: str) -> structlog.BoundLogger:
    """Logger for one lookup; every event carries the shortened wallet_id."""
    return get_logger("sol_wallet_tracker").bind(wallet_id=short_id(wallet_id))


def short_id(value: str | None, keep: int = 8) -> str:
    """First `keep` characters of an address or signature, then "..."."""
    if not value:
        return ""
    return value if len(value) <= keep else value[:keep] + "..."
