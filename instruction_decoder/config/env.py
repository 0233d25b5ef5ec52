"""
Environment variable loading for the instruction decoder.

- INSTRUCTION_DECODER_VERBOSITY: quiet | condensed | full (default: condensed)
- INSTRUCTION_DECODER_LOG_EVENTS: print every transaction, not only failures (default: off)
- INSTRUCTION_DECODER_SHOW_RAW_LOGS: include the raw program log block (default: on)
- INSTRUCTION_DECODER_MAX_DATA_BYTES: raw hex cut-off for undecoded data (default: 256)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is instruction_decoder/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

VERBOSITY_ENV = "INSTRUCTION_DECODER_VERBOSITY"
LOG_EVENTS_ENV = "INSTRUCTION_DECODER_LOG_EVENTS"
SHOW_RAW_LOGS_ENV = "INSTRUCTION_DECODER_SHOW_RAW_LOGS"
MAX_DATA_BYTES_ENV = "INSTRUCTION_DECODER_MAX_DATA_BYTES"

DEFAULT_VERBOSITY = "condensed"
DEFAULT_MAX_DATA_BYTES = 256


def load_decoder_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env vars win."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH, override=False)


def _parse_bool_env(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


def get_verbosity_name() -> str:
    """Return INSTRUCTION_DECODER_VERBOSITY lowercased; unknown values fall back to the default."""
    load_decoder_env()
    raw = (os.getenv(VERBOSITY_ENV) or "").strip().lower()
    if raw in ("quiet", "condensed", "full"):
        return raw
    # Legacy spellings
    if raw in ("debug", "verbose"):
        return "full"
    return DEFAULT_VERBOSITY


def get_log_events() -> bool:
    load_decoder_env()
    return _parse_bool_env(LOG_EVENTS_ENV, False)


def get_show_raw_logs() -> bool:
    load_decoder_env()
    return _parse_bool_env(SHOW_RAW_LOGS_ENV, True)


def get_max_data_bytes() -> int:
    """Return INSTRUCTION_DECODER_MAX_DATA_BYTES; invalid or negative values fall back to the default."""
    load_decoder_env()
    raw = (os.getenv(MAX_DATA_BYTES_ENV) or "").strip()
    if not raw:
        return DEFAULT_MAX_DATA_BYTES
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_MAX_DATA_BYTES
    return value if value >= 0 else DEFAULT_MAX_DATA_BYTES
