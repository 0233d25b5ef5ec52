"""
Tests for the binary field decoder (decoding.fields).

Payloads are built by hand with int.to_bytes so every expected value is
visible in the test.
"""

from __future__ import annotations

import pytest
from solders.pubkey import Pubkey

from instruction_decoder.core.exceptions import DecodeError, TruncatedInput, UnsupportedType
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
    format_fixed_point,
    min_size,
    type_label,
)


def _u32(n: int) -> bytes:
    return n.to_bytes(4, "little")


def _u64(n: int) -> bytes:
    return n.to_bytes(8, "little")


def test_integers_are_little_endian():
    """u64 and signed i16 read little-endian with correct sign."""
    data = _u64(1_000_000) + (-2).to_bytes(2, "little", signed=True)
    fields, consumed = decode_fields(data, [Field("amount", "u64"), Field("delta", "i16")])
    assert consumed == 10
    assert [(f.name, f.type_label, f.value) for f in fields] == [
        ("amount", "u64", "1000000"),
        ("delta", "i16", "-2"),
    ]


def test_u128_full_width():
    value = 2**127 + 5
    values, _ = decode_values(value.to_bytes(16, "little"), [Field("big", "u128")])
    assert values == [value]


def test_bool_any_nonzero_is_true():
    fields, _ = decode_fields(bytes([0, 2]), [Field("a", "bool"), Field("b", "bool")])
    assert [f.value for f in fields] == ["false", "true"]


def test_pubkey_rendered_base58():
    owner = Pubkey(bytes([9]) * 32)
    fields, consumed = decode_fields(bytes(owner), [Field("owner", "pubkey")])
    assert consumed == 32
    assert fields[0].value == str(owner)
    assert fields[0].type_label == "pubkey"


def test_string_and_bytes_length_prefixed():
    data = _u32(5) + b"hello" + _u32(2) + b"\xab\xcd" + _u32(0)
    fields, consumed = decode_fields(
        data, [Field("label", "string"), Field("blob", "bytes"), Field("empty", "bytes")]
    )
    assert consumed == len(data)
    assert [f.value for f in fields] == ["hello", "abcd", "<empty>"]
    assert [f.type_label for f in fields] == ["String", "Vec<u8>", "Vec<u8>"]


def test_fixed_bytes_hex():
    fields, _ = decode_fields(b"\x01\x02\x03\x04", [Field("seed", FixedBytes(4))])
    assert fields[0].value == "01020304"
    assert fields[0].type_label == "[u8; 4]"


def test_fixed_array_of_integers():
    data = (7).to_bytes(2, "little") + (8).to_bytes(2, "little")
    fields, _ = decode_fields(data, [Field("pair", FixedArray("u16", 2))])
    assert fields[0].value == "[7, 8]"
    assert fields[0].type_label == "[u16; 2]"


def test_vec_of_u16():
    data = _u32(2) + (1).to_bytes(2, "little") + (2).to_bytes(2, "little")
    fields, consumed = decode_fields(data, [Field("items", Vec("u16"))])
    assert consumed == 8
    assert fields[0].value == "[1, 2]"
    assert fields[0].type_label == "Vec<u16>"


def test_vec_count_larger_than_payload_is_truncated():
    with pytest.raises(TruncatedInput):
        decode_fields(_u32(1_000_000) + b"\x01", [Field("items", Vec("u64"))])


def test_option_none_and_some():
    schema = [Field("a", OptionOf("u64")), Field("b", OptionOf("u64"))]
    fields, consumed = decode_fields(b"\x00" + b"\x01" + _u64(7), schema)
    assert consumed == 10
    assert [f.value for f in fields] == ["None", "7"]
    assert fields[0].type_label == "Option<u64>"


def test_option_invalid_tag():
    with pytest.raises(DecodeError):
        decode_fields(b"\x02", [Field("a", OptionOf("u8"))])


def test_enum_variants():
    mode = Enum([Variant("Off"), Variant("On", "u8")])
    fields, _ = decode_fields(b"\x01\x05\x00", [Field("first", mode), Field("second", mode)])
    assert [f.value for f in fields] == ["On 5", "Off"]
    assert fields[0].type_label == "enum { Off, On }"


def test_enum_index_out_of_range():
    with pytest.raises(DecodeError):
        decode_fields(b"\x05", [Field("mode", Enum([Variant("Off")]))])


def test_struct_values():
    params = Struct([Field("a", "u8"), Field("b", "bool")])
    fields, _ = decode_fields(b"\x01\x01", [Field("params", params)])
    assert fields[0].value == "{a: 1, b: true}"
    assert fields[0].type_label == "{ a: u8, b: bool }"


def test_truncated_reports_offset():
    """Second field starts at offset 8 and needs 8 bytes but only 3 remain."""
    data = _u64(1) + b"\x00\x00\x00"
    with pytest.raises(TruncatedInput) as exc:
        decode_fields(data, [Field("a", "u64"), Field("b", "u64")])
    assert exc.value.needed == 8
    assert exc.value.available == 3
    assert exc.value.offset == 8


def test_unsupported_type():
    with pytest.raises(UnsupportedType):
        decode_fields(b"\x00\x00\x00\x00", [Field("x", "f32")])


def test_trailing_bytes_are_not_an_error():
    fields, consumed = decode_fields(b"\x05\xff\xff", [Field("x", "u8")])
    assert fields[0].value == "5"
    assert consumed == 1


def test_empty_schema_reads_nothing():
    fields, consumed = decode_fields(b"\x01\x02", [])
    assert fields == []
    assert consumed == 0


def test_fixed_point_formatting():
    assert format_fixed_point(1_500_000_000, 9) == "1.500000000"
    assert format_fixed_point(-5, 2) == "-0.05"
    assert format_fixed_point(42, 0) == "42"
    fields, _ = decode_fields(_u64(2_500_000), [Field("amount", "u64", decimals=6)])
    assert fields[0].value == "2.500000"


def test_type_label_nested():
    assert type_label(OptionOf(Vec("pubkey"))) == "Option<Vec<pubkey>>"
    assert type_label(Vec("u8")) == "Vec<u8>"


def test_vec_of_zero_sized_elements():
    fields, consumed = decode_fields(_u32(3), [Field("units", Vec(Struct([])))])
    assert consumed == 4
    assert fields[0].value == "[{}, {}, {}]"


def test_min_size():
    assert min_size("u64") == 8
    assert min_size(Struct([])) == 0
    assert min_size(FixedBytes(0)) == 0
    assert min_size(Struct([Field("a", "u16"), Field("b", OptionOf("u64"))])) == 3
