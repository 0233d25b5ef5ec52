"""
Structured logging for the instruction decoder.

Use get_logger(__name__) in every module; log snake_case event names with
keyword context.
"""

from instruction_decoder.decoder_logging.logger import get_logger

__all__ = ["get_logger"]
