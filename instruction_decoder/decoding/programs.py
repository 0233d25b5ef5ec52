"""
Built-in decoders for native Solana programs and well-known program labels.

- System Program: 4-byte (u32) instruction tags
- Compute Budget: 1-byte tags
- SPL Token / Token-2022: 1-byte tags (shared base instruction set)
"""

from __future__ import annotations

from typing import Iterable

from solders.pubkey import Pubkey

from instruction_decoder.decoding.fields import Field, OptionOf
from instruction_decoder.decoding.registry import (
    DecoderRegistry,
    InstructionDecoder,
    InstructionDef,
    ProgramDecoder,
    tag_discriminator,
)

SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
COMPUTE_BUDGET_PROGRAM_ID = Pubkey.from_string("ComputeBudget111111111111111111111111111111")
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_2022_PROGRAM_ID = Pubkey.from_string("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
MEMO_PROGRAM_ID = Pubkey.from_string("MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr")
BPF_UPGRADEABLE_LOADER_ID = Pubkey.from_string("BPFLoaderUpgradeab1e11111111111111111111111")
RENT_SYSVAR_ID = Pubkey.from_string("SysvarRent111111111111111111111111111111111")
CLOCK_SYSVAR_ID = Pubkey.from_string("SysvarC1ock11111111111111111111111111111111")
RECENT_BLOCKHASHES_SYSVAR_ID = Pubkey.from_string("SysvarRecentB1ockHashes11111111111111111111")
INSTRUCTIONS_SYSVAR_ID = Pubkey.from_string("Sysvar1nstructions1111111111111111111111111")

# Labels for programs and sysvars that appear in account tables even without a decoder
KNOWN_PROGRAM_LABELS: dict[Pubkey, str] = {
    SYSTEM_PROGRAM_ID: "System Program",
    COMPUTE_BUDGET_PROGRAM_ID: "Compute Budget",
    TOKEN_PROGRAM_ID: "Token Program",
    TOKEN_2022_PROGRAM_ID: "Token 2022",
    ASSOCIATED_TOKEN_PROGRAM_ID: "Associated Token Account",
    MEMO_PROGRAM_ID: "Memo Program",
    BPF_UPGRADEABLE_LOADER_ID: "BPF Upgradeable Loader",
    RENT_SYSVAR_ID: "Rent Sysvar",
    CLOCK_SYSVAR_ID: "Clock Sysvar",
    RECENT_BLOCKHASHES_SYSVAR_ID: "Recent Blockhashes Sysvar",
    INSTRUCTIONS_SYSVAR_ID: "Instructions Sysvar",
}
UNKNOWN_PROGRAM_LABEL = "Unknown Program"

LAMPORTS = "u64"


def _system(tag: int, name: str, fields: Iterable[Field], accounts: Iterable[str]) -> InstructionDef:
    return InstructionDef(tag_discriminator(tag, 4), name, tuple(fields), tuple(accounts))


def _one_byte(tag: int, name: str, fields: Iterable[Field], accounts: Iterable[str]) -> InstructionDef:
    return InstructionDef(tag_discriminator(tag, 1), name, tuple(fields), tuple(accounts))


# Seed-based variants use bincode u64 string prefixes and are left undecoded.
SYSTEM_INSTRUCTIONS = (
    _system(
        0,
        "CreateAccount",
        [Field("lamports", LAMPORTS), Field("space", "u64"), Field("owner", "pubkey")],
        ["funding_account", "new_account"],
    ),
    _system(1, "Assign", [Field("owner", "pubkey")], ["assigned_account"]),
    _system(2, "Transfer", [Field("lamports", LAMPORTS)], ["from", "to"]),
    _system(
        4,
        "AdvanceNonceAccount",
        [],
        ["nonce_account", "recent_blockhashes_sysvar", "nonce_authority"],
    ),
    _system(
        5,
        "WithdrawNonceAccount",
        [Field("lamports", LAMPORTS)],
        ["nonce_account", "recipient", "recent_blockhashes_sysvar", "rent_sysvar", "nonce_authority"],
    ),
    _system(
        6,
        "InitializeNonceAccount",
        [Field("authority", "pubkey")],
        ["nonce_account", "recent_blockhashes_sysvar", "rent_sysvar"],
    ),
    _system(7, "AuthorizeNonceAccount", [Field("new_authority", "pubkey")], ["nonce_account", "nonce_authority"]),
    _system(8, "Allocate", [Field("space", "u64")], ["new_account"]),
    _system(12, "UpgradeNonceAccount", [], ["nonce_account"]),
)

COMPUTE_BUDGET_INSTRUCTIONS = (
    _one_byte(0, "RequestUnits", [Field("units", "u32"), Field("additional_fee", "u32")], []),
    _one_byte(1, "RequestHeapFrame", [Field("bytes", "u32")], []),
    _one_byte(2, "SetComputeUnitLimit", [Field("units", "u32")], []),
    _one_byte(3, "SetComputeUnitPrice", [Field("micro_lamports", "u64")], []),
    _one_byte(4, "SetLoadedAccountsDataSizeLimit", [Field("bytes", "u32")], []),
)

_AMOUNT = Field("amount", "u64")
_DECIMALS = Field("decimals", "u8")
_MINT_AUTHORITIES = [
    _DECIMALS,
    Field("mint_authority", "pubkey"),
    Field("freeze_authority", OptionOf("pubkey")),
]

TOKEN_INSTRUCTIONS = (
    _one_byte(0, "InitializeMint", _MINT_AUTHORITIES, ["mint", "rent_sysvar"]),
    _one_byte(1, "InitializeAccount", [], ["account", "mint", "owner", "rent_sysvar"]),
    _one_byte(2, "InitializeMultisig", [Field("m", "u8")], ["multisig", "rent_sysvar"]),
    _one_byte(3, "Transfer", [_AMOUNT], ["source", "destination", "authority"]),
    _one_byte(4, "Approve", [_AMOUNT], ["source", "delegate", "owner"]),
    _one_byte(5, "Revoke", [], ["source", "owner"]),
    _one_byte(
        6,
        "SetAuthority",
        [Field("authority_type", "u8"), Field("new_authority", OptionOf("pubkey"))],
        ["account", "current_authority"],
    ),
    _one_byte(7, "MintTo", [_AMOUNT], ["mint", "account", "mint_authority"]),
    _one_byte(8, "Burn", [_AMOUNT], ["account", "mint", "authority"]),
    _one_byte(9, "CloseAccount", [], ["account", "destination", "owner"]),
    _one_byte(10, "FreezeAccount", [], ["account", "mint", "freeze_authority"]),
    _one_byte(11, "ThawAccount", [], ["account", "mint", "freeze_authority"]),
    _one_byte(12, "TransferChecked", [_AMOUNT, _DECIMALS], ["source", "mint", "destination", "authority"]),
    _one_byte(13, "ApproveChecked", [_AMOUNT, _DECIMALS], ["source", "mint", "delegate", "owner"]),
    _one_byte(14, "MintToChecked", [_AMOUNT, _DECIMALS], ["mint", "account", "mint_authority"]),
    _one_byte(15, "BurnChecked", [_AMOUNT, _DECIMALS], ["account", "mint", "authority"]),
    _one_byte(16, "InitializeAccount2", [Field("owner", "pubkey")], ["account", "mint", "rent_sysvar"]),
    _one_byte(17, "SyncNative", [], ["account"]),
    _one_byte(18, "InitializeAccount3", [Field("owner", "pubkey")], ["account", "mint"]),
    _one_byte(20, "InitializeMint2", _MINT_AUTHORITIES, ["mint"]),
)


def system_decoder() -> ProgramDecoder:
    return ProgramDecoder(SYSTEM_PROGRAM_ID, "System Program", 4, SYSTEM_INSTRUCTIONS)


def compute_budget_decoder() -> ProgramDecoder:
    return ProgramDecoder(COMPUTE_BUDGET_PROGRAM_ID, "Compute Budget", 1, COMPUTE_BUDGET_INSTRUCTIONS)


def token_decoder() -> ProgramDecoder:
    return ProgramDecoder(TOKEN_PROGRAM_ID, "Token Program", 1, TOKEN_INSTRUCTIONS)


def token_2022_decoder() -> ProgramDecoder:
    return ProgramDecoder(TOKEN_2022_PROGRAM_ID, "Token 2022", 1, TOKEN_INSTRUCTIONS)


def builtin_decoders() -> list[ProgramDecoder]:
    return [system_decoder(), compute_budget_decoder(), token_decoder(), token_2022_decoder()]


def default_registry(extra: Iterable[InstructionDecoder] = ()) -> DecoderRegistry:
    """Registry with every built-in decoder; extra decoders are registered after and win on conflict."""
    registry = DecoderRegistry(builtin_decoders())
    for decoder in extra:
        registry.register(decoder)
    return registry


def program_label(program_id: Pubkey, registry: DecoderRegistry | None = None) -> str:
    """Registry label, then well-known label, then 'Unknown Program'."""
    if registry is not None:
        label = registry.program_label(program_id)
        if label:
            return label
    return KNOWN_PROGRAM_LABELS.get(program_id, UNKNOWN_PROGRAM_LABEL)
