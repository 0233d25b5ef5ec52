"""
Tests for the account snapshot differ (accounts.differ).
"""

from __future__ import annotations

from types import SimpleNamespace

from conftest import key, make_ix
from instruction_decoder.accounts import (
    AccountSnapshot,
    DeltaKind,
    capture,
    collect_pubkeys,
    diff,
    snapshots_from_balances,
)
from instruction_decoder.tree.models import InnerInstruction

OWNER = key(20)


def _snap(pubkey, lamports, data_len=0):
    return AccountSnapshot(pubkey=pubkey, owner=OWNER, lamports=lamports, data_len=data_len)


def test_lamport_change():
    a = key(10)
    deltas = diff({a: _snap(a, 5_000)}, {a: _snap(a, 6_000)})
    delta = deltas[a]
    assert delta.kind is DeltaKind.CHANGED
    assert delta.change == 1_000
    assert delta.format_change() == "+1,000"


def test_unchanged_account_reports_zero():
    a = key(10)
    delta = diff({a: _snap(a, 5_000)}, {a: _snap(a, 5_000)})[a]
    assert delta.change == 0
    assert delta.format_change() == "0"


def test_creation():
    a = key(11)
    delta = diff({}, {a: _snap(a, 2_039_280, 165)})[a]
    assert delta.kind is DeltaKind.CREATED
    assert delta.pre is None
    assert delta.change == 2_039_280
    assert delta.format_change() == "+2,039,280 (new)"
    assert delta.current.data_len == 165


def test_closure():
    a = key(12)
    delta = diff({a: _snap(a, 890_880, 8)}, {})[a]
    assert delta.kind is DeltaKind.CLOSED
    assert delta.post is None
    assert delta.change == -890_880
    assert delta.format_change() == "-890,880 (closed)"
    assert delta.current.lamports == 890_880


def test_diff_order_pre_first():
    a, b, c = key(10), key(11), key(12)
    deltas = diff({a: _snap(a, 1), b: _snap(b, 1)}, {c: _snap(c, 1), a: _snap(a, 2)})
    assert list(deltas) == [a, b, c]


def test_delta_to_dict():
    a = key(10)
    d = diff({}, {a: _snap(a, 10)})[a].to_dict()
    assert d["kind"] == "created"
    assert d["change"] == 10
    assert d["pre"] is None
    assert d["post"]["lamports"] == 10


def test_capture_skips_missing_accounts():
    a, b = key(10), key(11)
    accounts = {a: SimpleNamespace(lamports=1_000, owner=OWNER, data=b"\x00" * 40)}
    snaps = capture([a, b], accounts.get)
    assert list(snaps) == [a]
    assert snaps[a].lamports == 1_000
    assert snaps[a].owner == OWNER
    assert snaps[a].data_len == 40


def test_collect_pubkeys_dedupes_in_order():
    prog, a, b = key(40), key(10), key(11)
    top = make_ix(prog, b"", [a, b])
    inner = InnerInstruction(0, make_ix(key(41), b"", [b, key(12)]))
    assert collect_pubkeys([top], [inner]) == [prog, a, b, key(41), key(12)]


def test_snapshots_from_balances_skips_zero():
    a, b, c = key(10), key(11), key(12)
    snaps = snapshots_from_balances([a, b, c], [100, 0, 300])
    assert list(snaps) == [a, c]
    assert snaps[a].owner is None
    assert snaps[a].data_len is None
    deltas = diff(snapshots_from_balances([a, b], [100, 0]), snapshots_from_balances([a, b], [0, 50]))
    assert deltas[a].kind is DeltaKind.CLOSED
    assert deltas[b].kind is DeltaKind.CREATED
