"""
Binary field decoder — instruction payload bytes to typed, formatted values.

Reads fields left to right in schema order using the borsh conventions of
Solana programs: little-endian integers, 1-byte booleans, 4-byte
little-endian length prefixes for variable data, 1-byte option tags.
Pure functions; no state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Sequence, TypeAlias, Union

from solders.pubkey import Pubkey

from instruction_decoder.core.exceptions import DecodeError, TruncatedInput, UnsupportedType
from instruction_decoder.decoding.models import DecodedField

PrimitiveType: TypeAlias = Literal[
    "i8", "i16", "i32", "i64", "i128", "u8", "u16", "u32", "u64", "u128", "bool"
]
ElementType: TypeAlias = Union[
    str, "FixedBytes", "FixedArray", "Vec", "OptionOf", "Struct", "Enum"
]

# tag -> (width in bytes, signed)
INTEGER_TYPES: dict[str, tuple[int, bool]] = {
    "u8": (1, False),
    "u16": (2, False),
    "u32": (4, False),
    "u64": (8, False),
    "u128": (16, False),
    "i8": (1, True),
    "i16": (2, True),
    "i32": (4, True),
    "i64": (8, True),
    "i128": (16, True),
}
PUBKEY_LEN = 32
LENGTH_PREFIX_LEN = 4


@dataclass(frozen=True)
class FixedBytes:
    """Fixed-length raw byte array, e.g. a 32-byte seed or hash."""

    size: int


@dataclass(frozen=True)
class FixedArray:
    element_type: ElementType
    size: int


@dataclass(frozen=True)
class Vec:
    """Length-prefixed sequence (u32 LE count, then elements)."""

    element_type: ElementType


@dataclass(frozen=True)
class OptionOf:
    """1-byte tag (0 = None, 1 = Some) followed by the value when present."""

    element_type: ElementType


@dataclass(frozen=True)
class Field:
    """
    One schema entry.

    decimals: display integers as fixed-point with this many decimal places
    (lamports -> SOL uses 9). None formats plain integers.
    """

    name: str
    field_type: ElementType
    decimals: int | None = None


@dataclass(frozen=True)
class Struct:
    fields: tuple[Field, ...]

    def __init__(self, fields: Sequence[Field]) -> None:
        object.__setattr__(self, "fields", tuple(fields))


@dataclass(frozen=True)
class Variant:
    name: str
    element_type: ElementType | None = None


@dataclass(frozen=True)
class Enum:
    """Borsh enum: 1-byte variant index, then the variant payload if it has one."""

    variants: tuple[Variant, ...]

    def __init__(self, variants: Sequence[Variant]) -> None:
        object.__setattr__(self, "variants", tuple(variants))


def _take(data: bytes, offset: int, size: int) -> bytes:
    available = len(data) - offset
    if size > available:
        raise TruncatedInput(needed=size, available=max(available, 0), offset=offset)
    return data[offset : offset + size]


def min_size(type_tag: ElementType) -> int:
    """Fewest bytes a value of type_tag can occupy (0 for empty structs and zero-length arrays)."""
    if isinstance(type_tag, str):
        if type_tag in INTEGER_TYPES:
            return INTEGER_TYPES[type_tag][0]
        if type_tag == "bool":
            return 1
        if type_tag == "pubkey":
            return PUBKEY_LEN
        if type_tag in ("bytes", "string"):
            return LENGTH_PREFIX_LEN
        return 0
    if isinstance(type_tag, FixedBytes):
        return type_tag.size
    if isinstance(type_tag, FixedArray):
        return type_tag.size * min_size(type_tag.element_type)
    if isinstance(type_tag, Vec):
        return LENGTH_PREFIX_LEN
    if isinstance(type_tag, (OptionOf, Enum)):
        return 1
    if isinstance(type_tag, Struct):
        return sum(min_size(f.field_type) for f in type_tag.fields)
    return 0


def read_value(data: bytes, offset: int, type_tag: ElementType) -> tuple[Any, int]:
    """
    Read one value of type_tag at offset. Returns (value, new_offset).

    Values: int for integers, bool, Pubkey, bytes for byte data, str for
    strings (bytes if not valid UTF-8), list for arrays, dict for structs,
    None for an empty option.
    """
    if isinstance(type_tag, str):
        if type_tag in INTEGER_TYPES:
            width, signed = INTEGER_TYPES[type_tag]
            raw = _take(data, offset, width)
            return int.from_bytes(raw, "little", signed=signed), offset + width
        if type_tag == "bool":
            raw = _take(data, offset, 1)
            return raw[0] != 0, offset + 1
        if type_tag == "pubkey":
            raw = _take(data, offset, PUBKEY_LEN)
            return Pubkey(raw), offset + PUBKEY_LEN
        if type_tag in ("bytes", "string"):
            length, offset = read_value(data, offset, "u32")
            raw = _take(data, offset, length)
            if type_tag == "bytes":
                return bytes(raw), offset + length
            try:
                return raw.decode("utf-8"), offset + length
            except UnicodeDecodeError:
                return bytes(raw), offset + length
        raise UnsupportedType(type_tag)
    if isinstance(type_tag, FixedBytes):
        raw = _take(data, offset, type_tag.size)
        return bytes(raw), offset + type_tag.size
    if isinstance(type_tag, FixedArray):
        items = []
        for _ in range(type_tag.size):
            item, offset = read_value(data, offset, type_tag.element_type)
            items.append(item)
        return items, offset
    if isinstance(type_tag, Vec):
        count, offset = read_value(data, offset, "u32")
        # Reject impossible counts before looping; zero-sized elements never truncate.
        element_size = min_size(type_tag.element_type)
        if element_size and count * element_size > len(data) - offset:
            raise TruncatedInput(needed=count * element_size, available=len(data) - offset, offset=offset)
        if type_tag.element_type == "u8":
            return bytes(data[offset : offset + count]), offset + count
        items = []
        for _ in range(count):
            item, offset = read_value(data, offset, type_tag.element_type)
            items.append(item)
        return items, offset
    if isinstance(type_tag, OptionOf):
        tag, offset = read_value(data, offset, "u8")
        if tag == 0:
            return None, offset
        if tag != 1:
            raise DecodeError(f"invalid option tag {tag} at offset {offset - 1}")
        return read_value(data, offset, type_tag.element_type)
    if isinstance(type_tag, Enum):
        index, offset = read_value(data, offset, "u8")
        if index >= len(type_tag.variants):
            raise DecodeError(f"invalid enum variant {index} at offset {offset - 1}")
        variant = type_tag.variants[index]
        if variant.element_type is None:
            return (variant.name, None), offset
        payload, offset = read_value(data, offset, variant.element_type)
        return (variant.name, payload), offset
    if isinstance(type_tag, Struct):
        out: dict[str, Any] = {}
        for f in type_tag.fields:
            out[f.name], offset = read_value(data, offset, f.field_type)
        return out, offset
    raise UnsupportedType(type_tag)


def format_fixed_point(value: int, decimals: int) -> str:
    """Format an integer amount with a fixed number of decimal places (1500000000, 9 -> '1.500000000')."""
    if decimals <= 0:
        return str(value)
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    return f"{sign}{whole}.{frac:0{decimals}d}"


def format_value(value: Any, type_tag: ElementType, decimals: int | None = None) -> str:
    """Render a value read by read_value for display."""
    if value is None:
        return "None"
    if isinstance(type_tag, OptionOf):
        return format_value(value, type_tag.element_type, decimals)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if decimals is not None:
            return format_fixed_point(value, decimals)
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex() if value else "<empty>"
    if isinstance(value, Pubkey):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(type_tag, Struct) and isinstance(value, dict):
        parts = [
            f"{f.name}: {format_value(value.get(f.name), f.field_type, f.decimals)}"
            for f in type_tag.fields
        ]
        return "{" + ", ".join(parts) + "}"
    if isinstance(type_tag, Enum) and isinstance(value, tuple):
        name, payload = value
        variant = next(v for v in type_tag.variants if v.name == name)
        if variant.element_type is None:
            return name
        return f"{name} {format_value(payload, variant.element_type, decimals)}"
    if isinstance(type_tag, (FixedArray, Vec)) and isinstance(value, list):
        return "[" + ", ".join(format_value(v, type_tag.element_type, decimals) for v in value) + "]"
    return str(value)


def type_label(type_tag: ElementType) -> str:
    """Rust-flavoured label for a type tag: u64, pubkey, [u8; 32], Vec<u8>, Option<u64>."""
    if isinstance(type_tag, str):
        if type_tag == "bytes":
            return "Vec<u8>"
        if type_tag == "string":
            return "String"
        return type_tag
    if isinstance(type_tag, FixedBytes):
        return f"[u8; {type_tag.size}]"
    if isinstance(type_tag, FixedArray):
        return f"[{type_label(type_tag.element_type)}; {type_tag.size}]"
    if isinstance(type_tag, Vec):
        return f"Vec<{type_label(type_tag.element_type)}>"
    if isinstance(type_tag, OptionOf):
        return f"Option<{type_label(type_tag.element_type)}>"
    if isinstance(type_tag, Enum):
        return "enum { " + ", ".join(v.name for v in type_tag.variants) + " }"
    if isinstance(type_tag, Struct):
        return "{ " + ", ".join(f"{f.name}: {type_label(f.field_type)}" for f in type_tag.fields) + " }"
    return repr(type_tag)


def decode_values(data: bytes, schema: Sequence[Field]) -> tuple[list[Any], int]:
    """Read every schema field from data. Returns (raw values, bytes consumed)."""
    offset = 0
    values: list[Any] = []
    for f in schema:
        value, offset = read_value(data, offset, f.field_type)
        values.append(value)
    return values, offset


def decode_fields(data: bytes, schema: Sequence[Field]) -> tuple[list[DecodedField], int]:
    """
    Decode data against schema into display fields.

    Raises TruncatedInput when data is shorter than the schema needs and
    UnsupportedType for an unknown tag. Trailing bytes are not an error.
    """
    values, consumed = decode_values(data, schema)
    fields = [
        DecodedField(
            name=f.name,
            type_label=type_label(f.field_type),
            value=format_value(value, f.field_type, f.decimals),
        )
        for f, value in zip(schema, values)
    ]
    return fields, consumed
