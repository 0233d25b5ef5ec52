"""
Decoder diagnostics log: registry changes, decode failures, tree warnings.

Rendered transactions go to stdout (or the caller's sink); this log goes to
stderr as structlog events so the two never interleave. Events carry an
event_type plus keyword context, e.g.

    decoder_registered      program_id, program_label
    decoder_replaced        program_id, previous, program_label
    decode_failed           program_id, error_kind, reason   (debug)
    tree_reconstruction_warning   message, line_index
    transaction_decoded     signature, tx_number, instructions, warnings

LOG_FORMAT=json (default) emits one JSON object per line; anything else uses
the console renderer. LOG_LEVEL filters (default INFO, so decode_failed is
silent unless LOG_LEVEL=DEBUG).

No other instruction_decoder imports here: every module imports this one.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type; tree warnings keep their own message."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog() -> None:
    """Install the stderr pipeline. Runs once, on first import, unless the host already configured structlog."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
    ]
    if LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger with the module name bound as 'logger'.

        logger = get_logger(__name__)
        logger.debug("decode_failed", program_id=str(pid), error_kind="truncated_input")
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_signature(signature: str) -> structlog.BoundLogger:
    """Logger for one transaction: every event carries its signature."""
    return get_logger("instruction_decoder.transaction").bind(signature=signature)
