"""
Instruction decoding: binary field decoder, decoder registry, built-in
native program decoders and the Anchor IDL loader.
"""

from instruction_decoder.decoding.fields import (
    Enum,
    Field,
    FixedArray,
    FixedBytes,
    OptionOf,
    Struct,
    Variant,
    Vec,
    decode_fields,
    decode_values,
)
from instruction_decoder.decoding.idl import anchor_decoder_from_idl
from instruction_decoder.decoding.models import DecodedField, DecodedInstruction
from instruction_decoder.decoding.programs import default_registry, program_label
from instruction_decoder.decoding.registry import (
    DecodeOutcome,
    DecoderRegistry,
    InstructionDecoder,
    InstructionDef,
    ProgramDecoder,
    anchor_discriminator,
    tag_discriminator,
)

__all__ = [
    "DecodeOutcome",
    "DecodedField",
    "DecodedInstruction",
    "DecoderRegistry",
    "Enum",
    "Field",
    "FixedArray",
    "FixedBytes",
    "InstructionDecoder",
    "InstructionDef",
    "OptionOf",
    "ProgramDecoder",
    "Struct",
    "Variant",
    "Vec",
    "anchor_decoder_from_idl",
    "anchor_discriminator",
    "decode_fields",
    "decode_values",
    "default_registry",
    "program_label",
    "tag_discriminator",
]
