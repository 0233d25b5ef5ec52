"""
Account state capture and per-transaction lamport deltas.
"""

from instruction_decoder.accounts.differ import (
    AccountDelta,
    AccountSnapshot,
    DeltaKind,
    capture,
    collect_pubkeys,
    diff,
    snapshots_from_balances,
)

__all__ = [
    "AccountDelta",
    "AccountSnapshot",
    "DeltaKind",
    "capture",
    "collect_pubkeys",
    "diff",
    "snapshots_from_balances",
]
