"""
Decode and render a saved getTransaction result.

Usage:
  python -m instruction_decoder tx.json
  python -m instruction_decoder tx.json --verbosity full --idl counter.json

The file may hold the bare result or the full JSON-RPC response. Extra
Anchor IDLs (--idl, repeatable) are registered before decoding.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

from instruction_decoder.config.settings import DecoderSettings, Verbosity, get_settings
from instruction_decoder.core.exceptions import InstructionDecoderError
from instruction_decoder.decoder_logging import get_logger
from instruction_decoder.decoding.idl import anchor_decoder_from_idl
from instruction_decoder.decoding.programs import default_registry
from instruction_decoder.rendering.formatter import TransactionFormatter
from instruction_decoder.rpc.parser import parse_rpc_transaction
from instruction_decoder.transaction import decode_transaction

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    import argparse

    ap = argparse.ArgumentParser(prog="instruction_decoder", description="Decode a Solana transaction into a CPI tree")
    ap.add_argument("path", type=Path, help="JSON file with a getTransaction result")
    ap.add_argument(
        "--verbosity",
        choices=[v.value for v in Verbosity],
        default=None,
        help="Override INSTRUCTION_DECODER_VERBOSITY",
    )
    ap.add_argument("--idl", type=Path, action="append", default=[], help="Anchor IDL JSON to register")
    args = ap.parse_args(argv)

    try:
        raw = json.loads(args.path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error("transaction_file_unreadable", path=str(args.path), error=str(e))
        print(f"Cannot read {args.path}: {e}", file=sys.stderr)
        return 1

    registry = default_registry()
    for idl_path in args.idl:
        try:
            registry.register(anchor_decoder_from_idl(json.loads(idl_path.read_text(encoding="utf-8"))))
        except (OSError, ValueError, KeyError, InstructionDecoderError) as e:
            logger.error("idl_unloadable", path=str(idl_path), error=str(e))
            print(f"Cannot load IDL {idl_path}: {e}", file=sys.stderr)
            return 1

    parsed = parse_rpc_transaction(raw) if isinstance(raw, dict) else None
    if parsed is None:
        print(f"{args.path} does not contain a transaction", file=sys.stderr)
        return 1
    tx, pre, post = parsed

    settings: DecoderSettings = get_settings()
    formatter = TransactionFormatter(settings, labels=registry.labels())
    log = decode_transaction(tx, registry, pre, post)
    level = Verbosity(args.verbosity) if args.verbosity else None
    sys.stdout.write(formatter.render(log, verbosity=level))
    return 0


if __name__ == "__main__":
    sys.exit(main())
