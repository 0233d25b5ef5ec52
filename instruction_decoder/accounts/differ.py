"""
Account snapshot differ — pre/post account metadata to per-account deltas.

Snapshots are taken only at transaction boundaries, so a delta covers the
whole transaction; per-instruction balances are not observable. An account
missing before execution is a creation, one missing after is a closure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Sequence

from solders.pubkey import Pubkey

from instruction_decoder.decoder_logging import get_logger

logger = get_logger(__name__)


class DeltaKind(str, Enum):
    CHANGED = "changed"
    CREATED = "created"
    CLOSED = "closed"


@dataclass(frozen=True)
class AccountSnapshot:
    """Account metadata at one point in time. owner and data_len are None when the source cannot report them."""

    pubkey: Pubkey
    owner: Pubkey | None
    lamports: int
    data_len: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pubkey": str(self.pubkey),
            "owner": str(self.owner) if self.owner is not None else None,
            "lamports": self.lamports,
            "data_len": self.data_len,
        }


@dataclass(frozen=True)
class AccountDelta:
    """
    Whole-transaction change for one account.

    pre is None for a created account, post is None for a closed one;
    never both.
    """

    pubkey: Pubkey
    pre: AccountSnapshot | None
    post: AccountSnapshot | None

    @property
    def kind(self) -> DeltaKind:
        if self.pre is None:
            return DeltaKind.CREATED
        if self.post is None:
            return DeltaKind.CLOSED
        return DeltaKind.CHANGED

    @property
    def change(self) -> int:
        """Signed lamport change: post - pre, full post for creations, minus full pre for closures."""
        pre = self.pre.lamports if self.pre is not None else 0
        post = self.post.lamports if self.post is not None else 0
        return post - pre

    @property
    def current(self) -> AccountSnapshot:
        """Post snapshot when the account still exists, else the pre snapshot."""
        return self.post if self.post is not None else self.pre  # type: ignore[return-value]

    def format_change(self) -> str:
        """+1,000 / -5,000 / 0; creations and closures are tagged."""
        change = self.change
        text = f"{change:+,}" if change else "0"
        if self.kind is DeltaKind.CREATED:
            return f"{text} (new)"
        if self.kind is DeltaKind.CLOSED:
            return f"{text} (closed)"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "pubkey": str(self.pubkey),
            "kind": self.kind.value,
            "change": self.change,
            "pre": self.pre.to_dict() if self.pre is not None else None,
            "post": self.post.to_dict() if self.post is not None else None,
        }


def collect_pubkeys(instructions: Iterable[Any], inner_instructions: Iterable[Any] = ()) -> list[Pubkey]:
    """
    Ordered, de-duplicated union of every program id and account referenced
    by top-level and inner instructions. Inner entries may be wrapped
    (anything with an .instruction attribute).
    """
    seen: dict[Pubkey, None] = {}
    for ix in list(instructions) + [getattr(i, "instruction", i) for i in inner_instructions]:
        seen.setdefault(ix.program_id, None)
        for meta in ix.accounts:
            seen.setdefault(meta.pubkey, None)
    return list(seen)


def capture(
    accounts_of_interest: Iterable[Pubkey],
    get_account: Callable[[Pubkey], Any],
) -> dict[Pubkey, AccountSnapshot]:
    """
    Snapshot every account in accounts_of_interest.

    get_account(pubkey) returns an object with lamports, owner and data
    (solders Account, litesvm account, RPC wrapper) or None when the account
    does not exist; missing accounts are left out of the mapping.
    """
    out: dict[Pubkey, AccountSnapshot] = {}
    for pubkey in accounts_of_interest:
        account = get_account(pubkey)
        if account is None:
            continue
        out[pubkey] = AccountSnapshot(
            pubkey=pubkey,
            owner=getattr(account, "owner", None),
            lamports=int(account.lamports),
            data_len=len(getattr(account, "data", b"") or b""),
        )
    return out


def snapshots_from_balances(pubkeys: Sequence[Pubkey], balances: Sequence[int]) -> dict[Pubkey, AccountSnapshot]:
    """
    Lamport-only snapshots from RPC preBalances/postBalances arrays.

    Zero-balance accounts are treated as absent (RPC reports 0 for accounts
    that do not exist yet or were closed).
    """
    if len(pubkeys) != len(balances):
        logger.warning("balance_length_mismatch", pubkeys=len(pubkeys), balances=len(balances))
    out: dict[Pubkey, AccountSnapshot] = {}
    for pubkey, lamports in zip(pubkeys, balances):
        if not lamports:
            continue
        out[pubkey] = AccountSnapshot(pubkey=pubkey, owner=None, lamports=int(lamports), data_len=None)
    return out


def diff(
    pre: Mapping[Pubkey, AccountSnapshot],
    post: Mapping[Pubkey, AccountSnapshot],
) -> dict[Pubkey, AccountDelta]:
    """One delta per pubkey in pre or post, in first-seen order (pre first)."""
    out: dict[Pubkey, AccountDelta] = {}
    for pubkey in list(pre) + [k for k in post if k not in pre]:
        out[pubkey] = AccountDelta(pubkey=pubkey, pre=pre.get(pubkey), post=post.get(pubkey))
    return out
