"""
Decoded instruction models shared by the field decoder, the registry and the renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DecodedField:
    """One named, typed value read from an instruction payload. Order follows the schema."""

    name: str
    type_label: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type_label, "value": self.value}


@dataclass(frozen=True)
class DecodedInstruction:
    """
    Result of a successful registry lookup and payload decode.

    account_names has exactly one entry per account passed to the decoder;
    accounts beyond the declared names get account_<index>.
    """

    program_label: str
    instruction_name: str
    fields: tuple[DecodedField, ...] = field(default_factory=tuple)
    account_names: tuple[str, ...] = field(default_factory=tuple)

    def field_value(self, name: str) -> str | None:
        """Return the formatted value of the first field called name, or None."""
        for f in self.fields:
            if f.name == name:
                return f.value
        return None
