"""
Pytest fixtures for instruction decoder tests: a small Anchor-style counter
program, a registry that knows it, and an instruction builder.
"""

from __future__ import annotations

import pytest
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from instruction_decoder.decoding import Field, InstructionDef, ProgramDecoder, anchor_discriminator, default_registry


def key(n: int) -> Pubkey:
    """Deterministic test pubkey (n >= 10 keeps clear of the all-zero System Program id)."""
    return Pubkey(bytes([n]) * 32)


def make_ix(program_id: Pubkey, data: bytes = b"", accounts=()) -> Instruction:
    """accounts: iterable of Pubkey or (pubkey, is_signer, is_writable)."""
    metas = []
    for acc in accounts:
        if isinstance(acc, Pubkey):
            metas.append(AccountMeta(acc, False, False))
        else:
            metas.append(AccountMeta(*acc))
    return Instruction(program_id, bytes(data), metas)


@pytest.fixture
def counter_id() -> Pubkey:
    return key(77)


@pytest.fixture
def counter_decoder(counter_id) -> ProgramDecoder:
    """initialize / increment(amount) / decrement(amount) with Anchor discriminators."""
    names = ("counter", "authority")
    return ProgramDecoder(
        counter_id,
        "Counter",
        8,
        [
            InstructionDef(anchor_discriminator("initialize"), "Initialize", (), names),
            InstructionDef(anchor_discriminator("increment"), "Increment", (Field("amount", "u64"),), names),
            InstructionDef(anchor_discriminator("decrement"), "Decrement", (Field("amount", "u64"),), names),
        ],
    )


@pytest.fixture
def registry(counter_decoder):
    """Built-in decoders plus the counter program."""
    return default_registry([counter_decoder])


@pytest.fixture
def build_ix():
    return make_ix


@pytest.fixture
def pubkey():
    return key
