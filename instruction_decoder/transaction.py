"""
Transaction assembly — execution results to a decoded, renderable TransactionLog.

The execution collaborator supplies instructions, inner instructions, logs,
metrics and pre/post account snapshots; this module builds the CPI forest,
diffs the snapshots, and offers a JSON-serialisable snapshot form for
snapshot tests. TransactionLogger numbers transactions and forwards rendered
text to an opaque sink.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from solders.pubkey import Pubkey

from instruction_decoder.accounts.differ import AccountDelta, AccountSnapshot, diff
from instruction_decoder.config.settings import DecoderSettings
from instruction_decoder.decoder_logging.logger import bind_signature
from instruction_decoder.decoding.programs import default_registry
from instruction_decoder.decoding.registry import DecoderRegistry
from instruction_decoder.rendering.formatter import TransactionFormatter
from instruction_decoder.tree.builder import build_tree
from instruction_decoder.tree.models import InnerInstruction, InstructionForest, InstructionNode

DEFAULT_COMPUTE_LIMIT = 200_000


@dataclass(frozen=True)
class TransactionStatus:
    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "TransactionStatus":
        return cls(True)

    @classmethod
    def failed(cls, error: str) -> "TransactionStatus":
        return cls(False, error)

    def text(self) -> str:
        if self.success:
            return "Success"
        return f"Failed: {self.error}" if self.error else "Failed"


@dataclass
class TransactionInput:
    """Everything the execution collaborator reports for one transaction."""

    signature: str
    instructions: Sequence[Any]
    inner_instructions: Sequence[InnerInstruction] = ()
    logs: Sequence[str] = ()
    status: TransactionStatus = field(default_factory=TransactionStatus.ok)
    slot: int = 0
    fee_lamports: int = 0
    compute_used: int = 0
    compute_limit: int = DEFAULT_COMPUTE_LIMIT


@dataclass
class TransactionLog:
    """Decoded transaction: the unit consumed by the formatter."""

    signature: str
    slot: int
    status: TransactionStatus
    fee_lamports: int
    compute_used: int
    compute_limit: int
    forest: InstructionForest
    raw_logs: list[str] = field(default_factory=list)
    account_deltas: dict[Pubkey, AccountDelta] | None = None

    @property
    def roots(self) -> list[InstructionNode]:
        return self.forest.root_nodes()

    @property
    def warnings(self) -> list[Any]:
        return self.forest.warnings


def decode_transaction(
    tx: TransactionInput,
    registry: DecoderRegistry | None = None,
    pre: Mapping[Pubkey, AccountSnapshot] | None = None,
    post: Mapping[Pubkey, AccountSnapshot] | None = None,
) -> TransactionLog:
    """
    Decode every instruction of tx and rebuild its CPI forest.

    account_deltas is filled only when both pre and post snapshots are given.
    """
    registry = registry if registry is not None else default_registry()
    forest = build_tree(tx.instructions, tx.inner_instructions, tx.logs, registry)
    return TransactionLog(
        signature=tx.signature,
        slot=tx.slot,
        status=tx.status,
        fee_lamports=tx.fee_lamports,
        compute_used=tx.compute_used,
        compute_limit=tx.compute_limit,
        forest=forest,
        raw_logs=list(tx.logs),
        account_deltas=diff(pre, post) if pre is not None and post is not None else None,
    )


def _node_snapshot(forest: InstructionForest, node: InstructionNode) -> dict[str, Any]:
    ix = node.instruction
    out: dict[str, Any] = {
        "program_id": str(ix.program_id),
        "program_name": node.program_label,
    }
    if node.decoded is not None:
        out["instruction_name"] = node.decoded.instruction_name
    out["accounts"] = [
        {"pubkey": str(meta.pubkey), "is_signer": meta.is_signer, "is_writable": meta.is_writable}
        for meta in ix.accounts
    ]
    if node.decoded is not None:
        out["decoded_fields"] = [{"name": f.name, "value": f.value} for f in node.decoded.fields]
    if node.children:
        out["inner_instructions"] = [_node_snapshot(forest, c) for c in forest.children(node)]
    return out


def transaction_log_to_snapshot(log: TransactionLog) -> dict[str, Any]:
    """JSON-serialisable view of a TransactionLog for snapshot tests; absent optional keys are omitted."""
    return {
        "signature": log.signature,
        "status": log.status.text(),
        "fee": log.fee_lamports,
        "compute_used": log.compute_used,
        "instructions": [_node_snapshot(log.forest, root) for root in log.roots],
    }


class TransactionLogger:
    """
    Decode, render and forward transactions in order.

    Failed transactions are always forwarded; successful ones only when
    settings.log_events is on. sink is any callable taking the rendered text
    (print to stderr, append to a file); it is never called with an empty string.
    """

    def __init__(
        self,
        settings: DecoderSettings | None = None,
        registry: DecoderRegistry | None = None,
        sink: Callable[[str], Any] | None = None,
    ) -> None:
        self.settings = settings or DecoderSettings()
        self.registry = registry if registry is not None else default_registry()
        self.sink = sink
        self.formatter = TransactionFormatter(self.settings, labels=self.registry.labels())
        self.count = 0

    def log_transaction(
        self,
        tx: TransactionInput,
        pre: Mapping[Pubkey, AccountSnapshot] | None = None,
        post: Mapping[Pubkey, AccountSnapshot] | None = None,
    ) -> str:
        """Returns the rendered text (empty when verbosity hides it)."""
        self.count += 1
        log = decode_transaction(tx, self.registry, pre, post)
        text = self.formatter.render(log, tx_number=self.count)
        logger = bind_signature(tx.signature)
        logger.debug(
            "transaction_decoded",
            tx_number=self.count,
            success=tx.status.success,
            instructions=len(log.forest),
            warnings=len(log.warnings),
        )
        should_forward = self.settings.log_events or not tx.status.success
        if self.sink is not None and text and should_forward:
            self.sink(text)
        return text
