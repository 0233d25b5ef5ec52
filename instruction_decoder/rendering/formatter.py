"""
Transaction formatter — decoded transaction log to bordered, nested text.

Layout: header (signature, slot, status), summary (fee in SOL, compute),
the instruction hierarchy with per-instruction account and field tables,
reconstruction warnings, then the raw program logs. CPI children are drawn
inside their parent with ├─ / └─ connectors. Returns a string; never writes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping

from solders.pubkey import Pubkey

from instruction_decoder.accounts.differ import AccountDelta, DeltaKind
from instruction_decoder.config.settings import DecoderSettings, Verbosity
from instruction_decoder.decoding.programs import KNOWN_PROGRAM_LABELS
from instruction_decoder.rendering.table import render_table
from instruction_decoder.tree.models import InstructionForest, InstructionNode

if TYPE_CHECKING:
    from instruction_decoder.transaction import TransactionLog

LAMPORTS_PER_SOL = 1_000_000_000
SUMMARY_SOL_DECIMALS = 6
HEX_BYTES_PER_LINE = 32
RULE_WIDTH = 100

ACCOUNT_HEADERS = ("#", "Pubkey", "Flags", "Name", "Owner", "Data Len", "Lamports", "Change")
ACCOUNT_ALIGN = (">", "<", "<", "<", "<", ">", ">", ">")
FIELD_HEADERS = ("Field", "Type", "Value")

BRANCH = "├─ "
LAST_BRANCH = "└─ "
PIPE = "│  "
BLANK = "   "


def format_sol(lamports: int, decimals: int = SUMMARY_SOL_DECIMALS) -> str:
    """5000 -> '0.000005' (six decimal places by default)."""
    sol = Decimal(lamports) / Decimal(LAMPORTS_PER_SOL)
    return f"{sol:.{decimals}f}"


def _flags(meta: Any) -> str:
    return ("S" if meta.is_signer else "-") + ("W" if meta.is_writable else "-")


def _short_label(pubkey: Pubkey, labels: Mapping[Pubkey, str]) -> str:
    return labels.get(pubkey) or KNOWN_PROGRAM_LABELS.get(pubkey) or str(pubkey)


class TransactionFormatter:
    """Renders TransactionLog objects according to DecoderSettings."""

    def __init__(self, settings: DecoderSettings | None = None, labels: Mapping[Pubkey, str] | None = None) -> None:
        self.settings = settings or DecoderSettings()
        self.labels: Mapping[Pubkey, str] = labels or {}

    def effective_verbosity(self, log: "TransactionLog", verbosity: Verbosity | None = None) -> Verbosity:
        """Failed transactions always render in full."""
        if not log.status.success:
            return Verbosity.FULL
        return Verbosity(verbosity or self.settings.verbosity)

    def render(
        self,
        log: "TransactionLog",
        tx_number: int | None = None,
        verbosity: Verbosity | None = None,
        account_deltas: Mapping[Pubkey, AccountDelta] | None = None,
    ) -> str:
        level = self.effective_verbosity(log, verbosity)
        if level is Verbosity.QUIET:
            return ""
        deltas = account_deltas if account_deltas is not None else log.account_deltas
        full = level is Verbosity.FULL

        sections: list[list[str]] = [self._header(log, tx_number)]
        body: list[str] = [f"Instructions ({len(log.forest.roots)})"]
        for position, root in enumerate(log.forest.roots):
            if full and position:
                body.append("")
            body.extend(self._node_lines(log.forest, log.forest.nodes[root], "", "", "", deltas, full))
        sections.append(body)
        if log.forest.warnings:
            sections.append(["Warnings"] + [f"⚠ {w}" for w in log.forest.warnings])
        if full and self.settings.show_raw_logs and log.raw_logs:
            sections.append([f"Program logs ({len(log.raw_logs)})"] + list(log.raw_logs))

        out = ["┌" + "─" * RULE_WIDTH]
        for i, section in enumerate(sections):
            if i:
                out.append("├" + "─" * RULE_WIDTH)
            out.extend(("│ " + line).rstrip() for line in section)
        out.append("└" + "─" * RULE_WIDTH)
        return "\n".join(out) + "\n"

    def _header(self, log: "TransactionLog", tx_number: int | None) -> list[str]:
        title = f"Transaction #{tx_number}" if tx_number is not None else "Transaction"
        return [
            f"{title} │ {log.signature} │ Slot {log.slot} │ {log.status.text()}",
            f"Fee: {format_sol(log.fee_lamports)} SOL │ Compute: {log.compute_used:,} / {log.compute_limit:,} CU",
        ]

    def _title(self, node: InstructionNode) -> str:
        if node.decoded is not None:
            title = f"#{node.index_path} {node.program_label} › {node.decoded.instruction_name}"
        else:
            title = f"#{node.index_path} {node.program_label} › <undecoded>"
            if node.decode_error is not None:
                title += f" ({node.decode_error.describe()})"
        if node.failed:
            title += f"  ✗ {node.outcome}"
        return title

    def _node_lines(
        self,
        forest: InstructionForest,
        node: InstructionNode,
        lead: str,
        connector: str,
        child_lead: str,
        deltas: Mapping[Pubkey, AccountDelta] | None,
        full: bool,
    ) -> list[str]:
        lines = [lead + connector + self._title(node)]
        if full:
            body_prefix = child_lead + (PIPE if node.children else BLANK)
            lines.extend(body_prefix + line for line in self._node_body(node, deltas))
        for i, child_index in enumerate(node.children):
            last = i == len(node.children) - 1
            lines.extend(
                self._node_lines(
                    forest,
                    forest.nodes[child_index],
                    child_lead,
                    LAST_BRANCH if last else BRANCH,
                    child_lead + (BLANK if last else PIPE),
                    deltas,
                    full,
                )
            )
        return lines

    def _node_body(self, node: InstructionNode, deltas: Mapping[Pubkey, AccountDelta] | None) -> list[str]:
        lines: list[str] = []
        accounts = list(node.instruction.accounts)
        if accounts:
            lines.append(f"Accounts ({len(accounts)})")
            lines.extend(self._account_table(node, accounts, deltas))
        if node.decoded is not None:
            if node.decoded.fields:
                lines.append("Fields")
                lines.extend(
                    render_table(FIELD_HEADERS, [(f.name, f.type_label, f.value) for f in node.decoded.fields])
                )
        else:
            lines.extend(self._raw_data(node))
        return lines

    def _account_name(self, node: InstructionNode, index: int, pubkey: Pubkey) -> str:
        if node.decoded is not None and index < len(node.decoded.account_names):
            return node.decoded.account_names[index]
        return self.labels.get(pubkey) or KNOWN_PROGRAM_LABELS.get(pubkey) or "-"

    def _account_table(
        self,
        node: InstructionNode,
        accounts: list[Any],
        deltas: Mapping[Pubkey, AccountDelta] | None,
    ) -> list[str]:
        if deltas is None:
            rows = [
                (str(i), str(meta.pubkey), _flags(meta), self._account_name(node, i, meta.pubkey))
                for i, meta in enumerate(accounts)
            ]
            return render_table(ACCOUNT_HEADERS[:4], rows, ACCOUNT_ALIGN[:4])
        rows = []
        for i, meta in enumerate(accounts):
            delta = deltas.get(meta.pubkey)
            rows.append(
                (str(i), str(meta.pubkey), _flags(meta), self._account_name(node, i, meta.pubkey))
                + self._state_cells(delta)
            )
        return render_table(ACCOUNT_HEADERS, rows, ACCOUNT_ALIGN)

    def _state_cells(self, delta: AccountDelta | None) -> tuple[str, str, str, str]:
        if delta is None:
            return ("-", "-", "-", "-")
        snapshot = delta.current
        owner = _short_label(snapshot.owner, self.labels) if snapshot.owner is not None else "-"
        data_len = f"{snapshot.data_len:,}" if snapshot.data_len is not None else "-"
        lamports = 0 if delta.kind is DeltaKind.CLOSED else snapshot.lamports
        return (owner, data_len, f"{lamports:,}", delta.format_change())

    def _raw_data(self, node: InstructionNode) -> list[str]:
        data = bytes(node.instruction.data)
        reason = node.decode_error.describe() if node.decode_error is not None else "not decoded"
        limit = self.settings.max_data_bytes
        shown = data[:limit] if limit else data
        lines = [f"Raw data ({len(data)} bytes, {reason})"]
        for start in range(0, len(shown), HEX_BYTES_PER_LINE):
            lines.append("  " + shown[start : start + HEX_BYTES_PER_LINE].hex())
        if len(shown) < len(data):
            lines.append(f"  … {len(data) - len(shown)} more bytes")
        return lines


def render(
    transaction_log: "TransactionLog",
    account_deltas: Mapping[Pubkey, AccountDelta] | None = None,
    verbosity: Verbosity | str | None = None,
    settings: DecoderSettings | None = None,
) -> str:
    """Render one transaction; see TransactionFormatter.render."""
    level = Verbosity(verbosity) if verbosity is not None else None
    return TransactionFormatter(settings).render(transaction_log, verbosity=level, account_deltas=account_deltas)
