"""
Solana RPC transaction parser — getTransaction results to TransactionInput.

Handles legacy and versioned transactions returned with encoding=json:
account keys (plus meta.loadedAddresses), signer/writable flags from the
message header, base58 instruction data, inner instructions with
stackHeight, log messages, fee and compute units. Balances become
lamport-only account snapshots.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import base58
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from instruction_decoder.accounts.differ import AccountSnapshot, snapshots_from_balances
from instruction_decoder.decoder_logging import get_logger
from instruction_decoder.decoding.programs import COMPUTE_BUDGET_PROGRAM_ID
from instruction_decoder.transaction import TransactionInput, TransactionStatus
from instruction_decoder.tree.models import InnerInstruction

logger = get_logger(__name__)

DEFAULT_UNITS_PER_INSTRUCTION = 200_000
MAX_COMPUTE_UNIT_LIMIT = 1_400_000
SET_COMPUTE_UNIT_LIMIT_TAG = 2


def _get_message_and_meta(raw: dict[str, Any]) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
    """Return (transaction.message, meta) from getTransaction-style result."""
    tx_obj = raw.get("transaction")
    if not tx_obj or not isinstance(tx_obj, dict):
        return None, None
    message = tx_obj.get("message")
    if not message or not isinstance(message, dict):
        return None, None
    meta = raw.get("meta")
    if not isinstance(meta, dict):
        meta = None
    return message, meta


def _account_keys(message: dict[str, Any], meta: dict[str, Any] | None) -> tuple[list[Pubkey], list[bool], list[bool]]:
    """
    Resolve accountKeys to (pubkeys, is_signer, is_writable).
    For versioned transactions, appends meta.loadedAddresses (writable, then readonly).
    """
    keys = message.get("accountKeys") or []
    static = [k if isinstance(k, str) else k.get("pubkey", "") for k in keys]
    header = message.get("header") or {}
    num_signers = int(header.get("numRequiredSignatures", 1))
    readonly_signed = int(header.get("numReadonlySignedAccounts", 0))
    readonly_unsigned = int(header.get("numReadonlyUnsignedAccounts", 0))

    pubkeys = [Pubkey.from_string(k) for k in static]
    signers = [i < num_signers for i in range(len(static))]
    writable = [
        i < num_signers - readonly_signed if i < num_signers else i < len(static) - readonly_unsigned
        for i in range(len(static))
    ]
    loaded = (meta or {}).get("loadedAddresses") or {}
    for role in ("writable", "readonly"):
        for addr in loaded.get(role) or []:
            pubkeys.append(Pubkey.from_string(addr))
            signers.append(False)
            writable.append(role == "writable")
    return pubkeys, signers, writable


def _decode_data(data: Any) -> bytes:
    """Instruction data is base58 for encoding=json; ["...", "base64"] pairs and plain base64 are accepted too."""
    if isinstance(data, list) and len(data) == 2 and data[1] == "base64":
        return base64.b64decode(data[0])
    if not data:
        return b""
    try:
        return base58.b58decode(data)
    except ValueError:
        pass
    try:
        return base64.b64decode(data, validate=True)
    except ValueError as e:
        raise ValueError(f"Could not decode instruction data (base58/base64): {e}") from e


def _instruction(
    compiled: dict[str, Any],
    pubkeys: list[Pubkey],
    signers: list[bool],
    writable: list[bool],
) -> Instruction:
    program_index = int(compiled["programIdIndex"])
    accounts = [
        AccountMeta(pubkey=pubkeys[i], is_signer=signers[i], is_writable=writable[i])
        for i in (int(a) for a in compiled.get("accounts") or [])
    ]
    return Instruction(program_id=pubkeys[program_index], data=_decode_data(compiled.get("data")), accounts=accounts)


def estimate_compute_limit(instructions: list[Instruction]) -> int:
    """
    SetComputeUnitLimit when present, else 200,000 CU per non-compute-budget
    instruction, capped at 1,400,000.
    """
    for ix in instructions:
        data = bytes(ix.data)
        if ix.program_id == COMPUTE_BUDGET_PROGRAM_ID and len(data) >= 5 and data[0] == SET_COMPUTE_UNIT_LIMIT_TAG:
            return min(int.from_bytes(data[1:5], "little"), MAX_COMPUTE_UNIT_LIMIT)
    regular = sum(1 for ix in instructions if ix.program_id != COMPUTE_BUDGET_PROGRAM_ID)
    return min(regular * DEFAULT_UNITS_PER_INSTRUCTION, MAX_COMPUTE_UNIT_LIMIT)


def _status(meta: dict[str, Any]) -> TransactionStatus:
    err = meta.get("err")
    if err is None:
        return TransactionStatus.ok()
    return TransactionStatus.failed(err if isinstance(err, str) else json.dumps(err, sort_keys=True))


def parse_rpc_transaction(
    raw: dict[str, Any],
) -> tuple[TransactionInput, dict[Pubkey, AccountSnapshot], dict[Pubkey, AccountSnapshot]] | None:
    """
    Parse one getTransaction result into (TransactionInput, pre, post).

    Accepts the bare result or a full JSON-RPC envelope ({"result": ...}).
    Returns None if the payload cannot be parsed (missing message, bad keys, etc.).
    """
    if "result" in raw and isinstance(raw["result"], dict):
        raw = raw["result"]
    message, meta = _get_message_and_meta(raw)
    if not message:
        return None
    meta = meta or {}
    try:
        pubkeys, signers, writable = _account_keys(message, meta)
        instructions = [_instruction(ix, pubkeys, signers, writable) for ix in message.get("instructions") or []]
        inner: list[InnerInstruction] = []
        for block in meta.get("innerInstructions") or []:
            parent_index = int(block["index"])
            for compiled in block.get("instructions") or []:
                inner.append(
                    InnerInstruction(
                        parent_index=parent_index,
                        instruction=_instruction(compiled, pubkeys, signers, writable),
                        stack_height=compiled.get("stackHeight"),
                    )
                )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning("rpc_transaction_unparseable", error=str(e))
        return None

    signatures = (raw.get("transaction") or {}).get("signatures") or []
    tx = TransactionInput(
        signature=signatures[0] if signatures else "",
        instructions=instructions,
        inner_instructions=inner,
        logs=list(meta.get("logMessages") or []),
        status=_status(meta),
        slot=int(raw.get("slot") or 0),
        fee_lamports=int(meta.get("fee") or 0),
        compute_used=int(meta.get("computeUnitsConsumed") or 0),
        compute_limit=estimate_compute_limit(instructions),
    )
    pre = snapshots_from_balances(pubkeys, meta.get("preBalances") or [])
    post = snapshots_from_balances(pubkeys, meta.get("postBalances") or [])
    return tx, pre, post
