"""
Instruction decoder — readable diagnostics for Solana transactions.

Decodes raw instruction bytes through a registry of per-program decoders,
rebuilds the cross-program invocation tree from the runtime's invoke logs,
diffs account state across the transaction, and renders the result as
nested tables for test output.
"""

__version__ = "0.1.0"

from instruction_decoder.accounts import AccountDelta, AccountSnapshot, capture, diff
from instruction_decoder.config import DecoderSettings, Verbosity, get_settings
from instruction_decoder.decoding import (
    DecodedField,
    DecodedInstruction,
    DecoderRegistry,
    Field,
    InstructionDef,
    ProgramDecoder,
    anchor_decoder_from_idl,
    anchor_discriminator,
    default_registry,
)
from instruction_decoder.rendering import TransactionFormatter, render
from instruction_decoder.transaction import (
    TransactionInput,
    TransactionLog,
    TransactionLogger,
    TransactionStatus,
    decode_transaction,
    transaction_log_to_snapshot,
)
from instruction_decoder.tree import InnerInstruction, InstructionForest, InstructionNode, build_tree

__all__ = [
    "AccountDelta",
    "AccountSnapshot",
    "DecodedField",
    "DecodedInstruction",
    "DecoderRegistry",
    "DecoderSettings",
    "Field",
    "InnerInstruction",
    "InstructionDef",
    "InstructionForest",
    "InstructionNode",
    "ProgramDecoder",
    "TransactionFormatter",
    "TransactionInput",
    "TransactionLog",
    "TransactionLogger",
    "TransactionStatus",
    "Verbosity",
    "anchor_decoder_from_idl",
    "anchor_discriminator",
    "build_tree",
    "capture",
    "decode_transaction",
    "default_registry",
    "diff",
    "get_settings",
    "render",
    "transaction_log_to_snapshot",
]
