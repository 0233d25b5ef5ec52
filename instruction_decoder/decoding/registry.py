"""
Decoder registry — program id to decoder, discriminator matching, field decoding.

A decoder is any object with program_id(), program_label() and
decode(data, accounts). ProgramDecoder is the table-driven implementation:
a fixed discriminator size per program and one InstructionDef per
instruction. Lookups are O(1) by program id and a linear scan of the
program's instruction table by exact discriminator bytes.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol, Sequence, runtime_checkable

from solders.pubkey import Pubkey

from instruction_decoder.core.exceptions import (
    DecodeError,
    DiscriminatorMismatch,
    DuplicateDiscriminator,
    TruncatedInput,
    UnknownProgram,
)
from instruction_decoder.decoder_logging import get_logger
from instruction_decoder.decoding.fields import Field, decode_fields
from instruction_decoder.decoding.models import DecodedInstruction

logger = get_logger(__name__)

ALLOWED_DISCRIMINATOR_SIZES = (1, 4, 8)
ANCHOR_DISCRIMINATOR_LEN = 8


def anchor_discriminator(name: str, namespace: str = "global") -> bytes:
    """Anchor: instruction discriminator = first 8 bytes of sha256("global:<snake_case_name>")."""
    return hashlib.sha256(f"{namespace}:{to_snake_case(name)}".encode()).digest()[:ANCHOR_DISCRIMINATOR_LEN]


def to_snake_case(name: str) -> str:
    """updateTrustScore / UpdateTrustScore -> update_trust_score; snake_case passes through."""
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def to_pascal_case(name: str) -> str:
    """update_trust_score -> UpdateTrustScore (display name for Anchor instructions)."""
    if "_" not in name and name[:1].isupper():
        return name
    return "".join(part[:1].upper() + part[1:] for part in to_snake_case(name).split("_") if part)


def tag_discriminator(value: int, size: int) -> bytes:
    """Enum-style native tag (ordinal) as a little-endian discriminator of size bytes."""
    return value.to_bytes(size, "little")


@runtime_checkable
class InstructionDecoder(Protocol):
    """The contract every decoder satisfies; generated decoders only need these three methods."""

    def program_id(self) -> Pubkey: ...

    def program_label(self) -> str: ...

    def decode(self, data: bytes, accounts: Sequence[Any]) -> DecodedInstruction | None: ...


@dataclass(frozen=True)
class InstructionDef:
    """One row of a program's instruction table."""

    discriminator: bytes
    name: str
    fields: tuple[Field, ...] = field(default_factory=tuple)
    account_names: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "discriminator", bytes(self.discriminator))
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "account_names", tuple(self.account_names))


@dataclass(frozen=True)
class DecodeOutcome:
    """decoded is set on success; error holds the failure kind otherwise."""

    decoded: DecodedInstruction | None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.decoded is not None


def resolve_account_names(declared: Sequence[str], account_count: int) -> tuple[str, ...]:
    """Zip declared names against the accounts present; extras become account_<index>."""
    names = list(declared[:account_count])
    names.extend(f"account_{i}" for i in range(len(names), account_count))
    return tuple(names)


class ProgramDecoder:
    """
    Table-driven decoder for one program.

    Raises ValueError for an unsupported discriminator size or a
    discriminator of the wrong length, DuplicateDiscriminator when two
    instructions share one.
    """

    def __init__(
        self,
        program_id: Pubkey,
        program_label: str,
        discriminator_size: int,
        instructions: Iterable[InstructionDef],
    ) -> None:
        if discriminator_size not in ALLOWED_DISCRIMINATOR_SIZES:
            raise ValueError(
                f"{program_label}: discriminator size must be one of {ALLOWED_DISCRIMINATOR_SIZES}, got {discriminator_size}"
            )
        self._program_id = program_id
        self._program_label = program_label
        self.discriminator_size = discriminator_size
        self.instructions: tuple[InstructionDef, ...] = tuple(instructions)
        seen: dict[bytes, str] = {}
        for ix in self.instructions:
            if len(ix.discriminator) != discriminator_size:
                raise ValueError(
                    f"{program_label}.{ix.name}: discriminator is {len(ix.discriminator)} bytes, expected {discriminator_size}"
                )
            if ix.discriminator in seen:
                raise DuplicateDiscriminator(program_label, ix.discriminator, seen[ix.discriminator], ix.name)
            seen[ix.discriminator] = ix.name

    def program_id(self) -> Pubkey:
        return self._program_id

    def program_label(self) -> str:
        return self._program_label

    def find(self, discriminator: bytes) -> InstructionDef | None:
        for ix in self.instructions:
            if ix.discriminator == discriminator:
                return ix
        return None

    def decode_outcome(self, data: bytes, accounts: Sequence[Any]) -> DecodeOutcome:
        data = bytes(data)
        size = self.discriminator_size
        if len(data) < size:
            return DecodeOutcome(None, TruncatedInput(needed=size, available=len(data), offset=0))
        ix = self.find(data[:size])
        if ix is None:
            return DecodeOutcome(None, DiscriminatorMismatch(data[:size]))
        try:
            fields, _ = decode_fields(data[size:], ix.fields)
        except TruncatedInput as e:
            # Offsets are reported relative to the whole payload.
            return DecodeOutcome(None, TruncatedInput(e.needed, e.available, e.offset + size))
        except DecodeError as e:
            return DecodeOutcome(None, e)
        return DecodeOutcome(
            DecodedInstruction(
                program_label=self._program_label,
                instruction_name=ix.name,
                fields=tuple(fields),
                account_names=resolve_account_names(ix.account_names, len(accounts)),
            )
        )

    def decode(self, data: bytes, accounts: Sequence[Any]) -> DecodedInstruction | None:
        return self.decode_outcome(data, accounts).decoded

    def __repr__(self) -> str:
        return f"ProgramDecoder({self._program_label!r}, {self._program_id}, {len(self.instructions)} instructions)"


class DecoderRegistry:
    """
    Decoders keyed by program id. Read-only once built; safe to share.

    Registering a second decoder for the same program id replaces the first.
    """

    def __init__(self, decoders: Iterable[InstructionDecoder] = ()) -> None:
        self._decoders: dict[Pubkey, InstructionDecoder] = {}
        for decoder in decoders:
            self.register(decoder)

    def register(self, decoder: InstructionDecoder) -> None:
        program_id = decoder.program_id()
        previous = self._decoders.get(program_id)
        if previous is not None:
            logger.warning(
                "decoder_replaced",
                program_id=str(program_id),
                previous=previous.program_label(),
                program_label=decoder.program_label(),
            )
        self._decoders[program_id] = decoder
        logger.debug("decoder_registered", program_id=str(program_id), program_label=decoder.program_label())

    def has_decoder(self, program_id: Pubkey) -> bool:
        return program_id in self._decoders

    def get(self, program_id: Pubkey) -> InstructionDecoder | None:
        return self._decoders.get(program_id)

    def program_label(self, program_id: Pubkey) -> str | None:
        decoder = self._decoders.get(program_id)
        return decoder.program_label() if decoder is not None else None

    def decode_outcome(self, program_id: Pubkey, data: bytes, accounts: Sequence[Any]) -> DecodeOutcome:
        """Decode with the failure kind kept; never raises for bad payloads."""
        decoder = self._decoders.get(program_id)
        if decoder is None:
            return DecodeOutcome(None, UnknownProgram(program_id))
        if isinstance(decoder, ProgramDecoder):
            outcome = decoder.decode_outcome(data, accounts)
        else:
            outcome = _foreign_outcome(decoder, bytes(data), accounts)
        if outcome.error is not None:
            logger.debug(
                "decode_failed",
                program_id=str(program_id),
                program_label=decoder.program_label(),
                error_kind=outcome.error.kind,
                reason=str(outcome.error),
            )
        return outcome

    def decode(self, program_id: Pubkey, data: bytes, accounts: Sequence[Any]) -> DecodedInstruction | None:
        """Best-effort decode: None for unknown programs, unknown discriminators and short payloads."""
        return self.decode_outcome(program_id, data, accounts).decoded

    def labels(self) -> Mapping[Pubkey, str]:
        return {pid: d.program_label() for pid, d in self._decoders.items()}

    def __contains__(self, program_id: object) -> bool:
        return program_id in self._decoders

    def __len__(self) -> int:
        return len(self._decoders)

    def __iter__(self):
        return iter(self._decoders.values())


def _foreign_outcome(decoder: InstructionDecoder, data: bytes, accounts: Sequence[Any]) -> DecodeOutcome:
    """Run a decoder that only implements the three-method contract; any exception becomes a failed outcome."""
    try:
        decoded = decoder.decode(data, accounts)
    except DecodeError as e:
        return DecodeOutcome(None, e)
    except Exception as e:
        logger.warning(
            "decoder_raised",
            program_label=decoder.program_label(),
            error_type=type(e).__name__,
            error=str(e),
        )
        return DecodeOutcome(None, DecodeError(f"decoder raised {type(e).__name__}: {e}"))
    if decoded is not None:
        return DecodeOutcome(decoded)
    size = getattr(decoder, "discriminator_size", ANCHOR_DISCRIMINATOR_LEN)
    return DecodeOutcome(None, DiscriminatorMismatch(data[:size]))
