import struct

import pytest

from chvalues.unmarshal import ScalarKind, unmarshal

INT_CASES = [
    (ScalarKind.U8, 0),
    (ScalarKind.U8, 255),
    (ScalarKind.U16, 65535),
    (ScalarKind.U32, 2**32 - 1),
    (ScalarKind.U64, 2**64 - 1),
    (ScalarKind.U128, 2**128 - 1),
    (ScalarKind.I8, -128),
    (ScalarKind.I8, 127),
    (ScalarKind.I16, -32768),
    (ScalarKind.I32, -(2**31)),
    (ScalarKind.I64, 2**63 - 1),
    (ScalarKind.I128, -(2**127)),
    (ScalarKind.I128, 3_000_000_000),
]


@pytest.mark.parametrize("kind,value", INT_CASES)
def test_integer_round_trip(kind, value):
    raw = value.to_bytes(kind.size, "little", signed=kind.signed)
    assert unmarshal(kind, raw) == value


def test_little_endian_order():
    assert unmarshal(ScalarKind.U16, b"\x01\x02") == 0x0201


def test_signed_all_ones_is_minus_one():
    assert unmarshal(ScalarKind.I32, b"\xff\xff\xff\xff") == -1
    assert unmarshal(ScalarKind.U32, b"\xff\xff\xff\xff") == 2**32 - 1


@pytest.mark.parametrize(
    "kind,fmt,value",
    [
        (ScalarKind.F32, "<f", 1.5),
        (ScalarKind.F32, "<f", -42.0),
        (ScalarKind.F64, "<d", 3.1),
        (ScalarKind.F64, "<d", -0.25),
    ],
)
def test_float_round_trip(kind, fmt, value):
    assert unmarshal(kind, struct.pack(fmt, value)) == value


def test_bool_values():
    assert unmarshal(ScalarKind.BOOL, b"\x00") is False
    assert unmarshal(ScalarKind.BOOL, b"\x07") is True


def test_bool_reads_only_first_byte():
    assert unmarshal(ScalarKind.BOOL, b"\x01\x00") is True
    assert unmarshal(ScalarKind.BOOL, b"\x00\x01") is False


def test_accepts_bytearray_and_memoryview():
    raw = (1000).to_bytes(4, "little")
    assert unmarshal(ScalarKind.U32, bytearray(raw)) == 1000
    assert unmarshal(ScalarKind.U32, memoryview(raw)) == 1000


@pytest.mark.parametrize(
    "kind,raw",
    [
        (ScalarKind.U32, b"\x00\x00\x00"),
        (ScalarKind.U8, b"\x00\x00"),
        (ScalarKind.F64, b"\x00" * 4),
        (ScalarKind.I128, b""),
    ],
)
def test_wrong_length_raises(kind, raw):
    with pytest.raises(ValueError):
        unmarshal(kind, raw)


def test_empty_bool_raises():
    with pytest.raises(ValueError):
        unmarshal(ScalarKind.BOOL, b"")