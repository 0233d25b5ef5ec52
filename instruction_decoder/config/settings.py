"""
Decoder settings: verbosity and output switches for the transaction formatter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from instruction_decoder.config import env


class Verbosity(str, Enum):
    """How much of a transaction the formatter renders."""

    QUIET = "quiet"
    CONDENSED = "condensed"
    FULL = "full"


@dataclass(frozen=True)
class DecoderSettings:
    """Formatter and logger switches (env or explicit)."""

    verbosity: Verbosity = Verbosity.CONDENSED
    """Detail level for successful transactions; failed ones always render in full."""
    log_events: bool = False
    """Forward every rendered transaction to the sink, not only failures."""
    show_raw_logs: bool = True
    """Include the verbatim program log block in full renders."""
    max_data_bytes: int = env.DEFAULT_MAX_DATA_BYTES
    """Raw hex fallback shows at most this many bytes (0 = no limit)."""

    @classmethod
    def from_env(cls) -> "DecoderSettings":
        return cls(
            verbosity=Verbosity(env.get_verbosity_name()),
            log_events=env.get_log_events(),
            show_raw_logs=env.get_show_raw_logs(),
            max_data_bytes=env.get_max_data_bytes(),
        )

    @classmethod
    def debug(cls) -> "DecoderSettings":
        """Everything on: full tables, raw logs, every transaction forwarded."""
        return cls(verbosity=Verbosity.FULL, log_events=True, show_raw_logs=True, max_data_bytes=0)


def get_settings() -> DecoderSettings:
    """Return settings built from the current environment."""
    return DecoderSettings.from_env()
