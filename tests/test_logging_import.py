"""
Decoder logging: importable from any module, events carry bound context.
"""

from __future__ import annotations


def test_get_logger_emits_decoder_events():
    """Module loggers accept the registry and decode events at every level."""
    from instruction_decoder.decoder_logging import get_logger

    logger = get_logger("instruction_decoder.decoding.registry")
    assert logger is not None
    for method in ("debug", "info", "warning", "error"):
        assert callable(getattr(logger, method))
    logger.info("decoder_registered", program_id="11111111111111111111111111111111", program_label="System Program")
    logger.debug("decode_failed", error_kind="truncated_input", reason="needed 8 bytes")


def test_bind_signature():
    from instruction_decoder.decoder_logging.logger import bind_signature

    logger = bind_signature("5sig")
    logger.warning("tree_reconstruction_warning", line_index=3, message="skips levels")


def test_package_import():
    """Top-level package exposes the main entry points."""
    import instruction_decoder

    assert instruction_decoder.__version__
    assert callable(instruction_decoder.build_tree)
    assert callable(instruction_decoder.render)
    assert callable(instruction_decoder.decode_transaction)
