"""
Anchor IDL to ProgramDecoder.

Accepts both IDL layouts:
- legacy (name at top level, address under metadata, discriminators derived
  from sha256("global:<name>"))
- 0.30+ (address at top level, name under metadata, explicit discriminator arrays)

Arg types map onto the field decoder's tags; "defined" types are resolved
against the IDL's "types" section (structs and enums).
"""

from __future__ import annotations

from typing import Any

from solders.pubkey import Pubkey

from instruction_decoder.core.exceptions import UnsupportedType
from instruction_decoder.decoder_logging import get_logger
from instruction_decoder.decoding.fields import (
    INTEGER_TYPES,
    ElementType,
    Enum,
    Field,
    FixedArray,
    FixedBytes,
    OptionOf,
    Struct,
    Variant,
    Vec,
)
from instruction_decoder.decoding.registry import (
    ANCHOR_DISCRIMINATOR_LEN,
    InstructionDef,
    ProgramDecoder,
    anchor_discriminator,
    to_pascal_case,
)

logger = get_logger(__name__)

_SCALAR_ALIASES = {
    "publicKey": "pubkey",
    "pubkey": "pubkey",
    "bool": "bool",
    "string": "string",
    "bytes": "bytes",
}


def _defined_name(spec: Any) -> str:
    # 0.30: {"defined": {"name": "X", "generics": []}}; legacy: {"defined": "X"}
    return spec["name"] if isinstance(spec, dict) else str(spec)


def idl_type(type_spec: Any, types: dict[str, dict[str, Any]]) -> ElementType:
    """Convert one IDL type declaration to a field decoder type tag."""
    if isinstance(type_spec, str):
        if type_spec in INTEGER_TYPES:
            return type_spec
        if type_spec in _SCALAR_ALIASES:
            return _SCALAR_ALIASES[type_spec]
        raise UnsupportedType(type_spec)
    if not isinstance(type_spec, dict) or len(type_spec) != 1:
        raise UnsupportedType(type_spec)
    (kind, inner), = type_spec.items()
    if kind == "vec":
        return Vec(idl_type(inner, types))
    if kind in ("option", "coption"):
        return OptionOf(idl_type(inner, types))
    if kind == "array":
        element, size = inner
        element_type = idl_type(element, types)
        if element_type == "u8":
            return FixedBytes(int(size))
        return FixedArray(element_type, int(size))
    if kind == "defined":
        name = _defined_name(inner)
        if name not in types:
            raise UnsupportedType(type_spec)
        return _defined_type(types[name], types)
    raise UnsupportedType(type_spec)


def _fields(raw_fields: list[Any], types: dict[str, dict[str, Any]]) -> list[Field]:
    out = []
    for i, f in enumerate(raw_fields):
        if isinstance(f, dict) and "name" in f:
            out.append(Field(f["name"], idl_type(f["type"], types)))
        else:
            # Tuple-style fields carry only a type.
            out.append(Field(str(i), idl_type(f, types)))
    return out


def _defined_type(decl: dict[str, Any], types: dict[str, dict[str, Any]]) -> ElementType:
    body = decl.get("type") or {}
    kind = body.get("kind")
    if kind == "struct":
        return Struct(_fields(body.get("fields") or [], types))
    if kind == "enum":
        variants = []
        for v in body.get("variants") or []:
            raw_fields = v.get("fields")
            variants.append(Variant(v["name"], Struct(_fields(raw_fields, types)) if raw_fields else None))
        return Enum(variants)
    if kind == "alias" and "value" in body:
        return idl_type(body["value"], types)
    raise UnsupportedType(decl.get("name", decl))


def _account_names(accounts: list[dict[str, Any]]) -> list[str]:
    """Flatten nested account groups in declaration order."""
    names: list[str] = []
    for acc in accounts:
        if "accounts" in acc:
            names.extend(_account_names(acc["accounts"]))
        else:
            names.append(acc["name"])
    return names


def _label_from_name(name: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in name.replace("-", "_").split("_") if part)


def anchor_decoder_from_idl(
    idl: dict[str, Any],
    program_id: Pubkey | str | None = None,
    program_label: str | None = None,
) -> ProgramDecoder:
    """
    Build an 8-byte-discriminator ProgramDecoder from an Anchor IDL dict.

    program_id falls back to idl["address"] / idl["metadata"]["address"];
    program_label to the title-cased IDL name ("trust_oracle" -> "Trust Oracle").
    Raises ValueError when no program id is available or an instruction has
    no name. Instructions whose arg types the field decoder cannot read
    (f32, f64, unknown defined types) are skipped with a warning and stay
    undecoded.
    """
    metadata = idl.get("metadata") or {}
    raw_id = program_id or idl.get("address") or metadata.get("address")
    if raw_id is None:
        raise ValueError("IDL has no address; pass program_id explicitly")
    pid = raw_id if isinstance(raw_id, Pubkey) else Pubkey.from_string(str(raw_id))
    name = idl.get("name") or metadata.get("name") or str(pid)
    types = {t["name"]: t for t in idl.get("types") or []}

    instructions = []
    for ix in idl.get("instructions") or []:
        if not ix.get("name"):
            raise ValueError(f"{name}: instruction without a name")
        try:
            fields = tuple(_fields(ix.get("args") or [], types))
        except UnsupportedType as e:
            logger.warning("idl_instruction_skipped", program=name, instruction=ix["name"], reason=str(e))
            continue
        raw_disc = ix.get("discriminator")
        disc = bytes(raw_disc) if raw_disc is not None else anchor_discriminator(ix["name"])
        if len(disc) != ANCHOR_DISCRIMINATOR_LEN:
            raise ValueError(f"{name}.{ix['name']}: discriminator must be {ANCHOR_DISCRIMINATOR_LEN} bytes")
        instructions.append(
            InstructionDef(
                discriminator=disc,
                name=to_pascal_case(ix["name"]),
                fields=fields,
                account_names=tuple(_account_names(ix.get("accounts") or [])),
            )
        )
    return ProgramDecoder(pid, program_label or _label_from_name(name), ANCHOR_DISCRIMINATOR_LEN, instructions)
