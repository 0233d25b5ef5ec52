"""
Application-level exceptions.

Decoding failures are local to one instruction: the registry catches them
and the renderer falls back to raw hex. Only registration errors propagate.
"""

from __future__ import annotations


class InstructionDecoderError(Exception):
    """Base class for all instruction decoder errors."""


class DecodeError(InstructionDecoderError):
    """An instruction payload could not be decoded."""

    kind = "decode_error"

    def describe(self) -> str:
        """Short reason shown next to the raw hex fallback."""
        return str(self) or self.kind.replace("_", " ")


class UnknownProgram(DecodeError):
    kind = "unknown_program"

    def __init__(self, program_id: object) -> None:
        super().__init__(f"no decoder registered for {program_id}")
        self.program_id = program_id

    def describe(self) -> str:
        return "unknown program"


class DiscriminatorMismatch(DecodeError):
    kind = "discriminator_mismatch"

    def __init__(self, discriminator: bytes) -> None:
        super().__init__(f"no instruction matches discriminator {discriminator.hex() or '<empty>'}")
        self.discriminator = discriminator

    def describe(self) -> str:
        return f"unknown discriminator {self.discriminator.hex() or '<empty>'}"


class TruncatedInput(DecodeError):
    kind = "truncated_input"

    def __init__(self, needed: int, available: int, offset: int = 0) -> None:
        super().__init__(
            f"needed {needed} bytes at offset {offset}, only {available} available"
        )
        self.needed = needed
        self.available = available
        self.offset = offset

    def describe(self) -> str:
        return f"truncated: needed {self.needed} bytes at offset {self.offset}, had {self.available}"


class UnsupportedType(DecodeError):
    kind = "unsupported_type"

    def __init__(self, type_tag: object) -> None:
        super().__init__(f"unsupported type tag {type_tag!r}")
        self.type_tag = type_tag


class DuplicateDiscriminator(InstructionDecoderError):
    """Two instructions of one program share a discriminator. Raised at registration."""

    def __init__(self, program_label: str, discriminator: bytes, first: str, second: str) -> None:
        super().__init__(
            f"{program_label}: discriminator {discriminator.hex()} declared by both {first} and {second}"
        )
        self.program_label = program_label
        self.discriminator = discriminator
        self.names = (first, second)


class TreeReconstructionWarning(UserWarning):
    """The invoke log does not line up with the instruction lists. Collected, never raised."""

    def __init__(self, message: str, line_index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line_index = line_index

    def __str__(self) -> str:
        if self.line_index is None:
            return self.message
        return f"log line {self.line_index + 1}: {self.message}"
