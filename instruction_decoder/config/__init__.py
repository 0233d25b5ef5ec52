"""
Configuration for the instruction decoder.

Loads settings from environment variables and an optional .env file.
Exposes a single settings object consumed by the formatter and logger.
"""

from instruction_decoder.config.settings import DecoderSettings, Verbosity, get_settings  # noqa: F401

__all__ = ["DecoderSettings", "Verbosity", "get_settings"]
