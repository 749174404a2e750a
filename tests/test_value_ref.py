import uuid
from datetime import timedelta, timezone

import pytest

from chvalues.sqltypes import Decimal, Enum8, Kind, SqlType
from chvalues.value_ref import FromSqlError, ValueRef

INT_KINDS = [
    Kind.UINT8,
    Kind.UINT16,
    Kind.UINT32,
    Kind.UINT64,
    Kind.UINT128,
    Kind.INT8,
    Kind.INT16,
    Kind.INT32,
    Kind.INT64,
    Kind.INT128,
]


def _int_array():
    return ValueRef(
        Kind.ARRAY,
        (ValueRef(Kind.INT32, 1), ValueRef(Kind.INT32, 2), ValueRef(Kind.INT32, 3)),
        item_type=SqlType(Kind.INT32),
    )


def test_display_binary_string():
    assert str(ValueRef(Kind.STRING, bytes([0, 159, 146, 150]))) == "[0, 159, 146, 150]"


def test_display_text():
    assert str(ValueRef(Kind.STRING, b"text")) == "text"


@pytest.mark.parametrize("kind", INT_KINDS)
def test_display_ints(kind):
    assert str(ValueRef(kind, 42)) == "42"


@pytest.mark.parametrize("kind", [Kind.FLOAT32, Kind.FLOAT64])
def test_display_floats(kind):
    assert str(ValueRef(kind, 42.0)) == "42"


def test_display_nullable():
    assert str(ValueRef(Kind.NULLABLE, None, item_type=SqlType(Kind.UINT8))) == "NULL"
    assert str(ValueRef(Kind.NULLABLE, ValueRef(Kind.UINT8, 42))) == "42"


def test_display_array():
    assert str(_int_array()) == "[1, 2, 3]"


def test_display_date():
    assert str(ValueRef(Kind.DATE, 0)) == "1970-01-01"
    assert ValueRef(Kind.DATE, 0).format(alternate=True) == "1970-01-01"


def test_display_datetime():
    value = ValueRef(Kind.DATETIME, 0)
    assert str(value) == "1970-01-01 00:00:00"
    assert value.format(alternate=True) in (
        "Thu, 1 Jan 1970 00:00:00 +0000",
        "Thu, 01 Jan 1970 00:00:00 +0000",
    )


def test_display_datetime64():
    value = ValueRef(Kind.DATETIME64, 1_500, precision=3)
    assert str(value) == "1970-01-01 00:00:01"


def test_display_decimal():
    assert str(ValueRef(Kind.DECIMAL, Decimal.of(2.0, 2))) == "2.00"


def test_display_ipv4_and_enum_and_map():
    assert str(ValueRef(Kind.IPV4, bytes([1, 0, 0, 127]))) == "127.0.0.1"
    assert str(ValueRef(Kind.ENUM8, Enum8(3))) == "3"
    mapping = ValueRef(
        Kind.MAP,
        {ValueRef(Kind.UINT8, 1): ValueRef(Kind.UINT8, 2)},
        key_type=SqlType(Kind.UINT8),
        item_type=SqlType(Kind.UINT8),
    )
    assert str(mapping) == "[1-2]"


def test_uuid():
    parsed = uuid.UUID("936da01f-9abd-4d9d-80c7-02af85c822a8")
    raw = parsed.bytes
    value = ValueRef(Kind.UUID, raw[:8][::-1] + raw[8:][::-1])
    assert str(value) == "936da01f-9abd-4d9d-80c7-02af85c822a8"


@pytest.mark.parametrize("kind", INT_KINDS + [Kind.FLOAT32, Kind.FLOAT64])
def test_get_sql_type_numbers(kind):
    data = 42.0 if kind in (Kind.FLOAT32, Kind.FLOAT64) else 42
    assert ValueRef(kind, data).sql_type() == SqlType(kind)


def test_get_sql_type_other():
    assert ValueRef(Kind.STRING, b"").sql_type() == SqlType(Kind.STRING)
    assert ValueRef(Kind.DATE, 42).sql_type() == SqlType(Kind.DATE)
    assert ValueRef(Kind.DATETIME, 42).sql_type() == SqlType(Kind.DATETIME)
    assert ValueRef(Kind.DECIMAL, Decimal.of(2.0, 4)).sql_type() == SqlType(
        Kind.DECIMAL, precision=18, scale=4
    )
    assert _int_array().sql_type() == SqlType(Kind.ARRAY, inner=SqlType(Kind.INT32))
    assert ValueRef(
        Kind.NULLABLE, None, item_type=SqlType(Kind.UINT8)
    ).sql_type() == SqlType(Kind.NULLABLE, inner=SqlType(Kind.UINT8))
    assert ValueRef(Kind.NULLABLE, ValueRef(Kind.INT8, 42)).sql_type() == SqlType(
        Kind.NULLABLE, inner=SqlType(Kind.INT8)
    )


def test_from_python():
    assert ValueRef.from_python("text") == ValueRef(Kind.STRING, b"text")
    assert ValueRef.from_python(b"\x01") == ValueRef(Kind.STRING, b"\x01")
    assert ValueRef.from_python(42) == ValueRef(Kind.INT64, 42)
    assert ValueRef.from_python(2**64 - 1) == ValueRef(Kind.UINT64, 2**64 - 1)
    assert ValueRef.from_python(1.5) == ValueRef(Kind.FLOAT64, 1.5)
    assert ValueRef.from_python(True).kind is Kind.BOOL
    with pytest.raises(TypeError):
        ValueRef.from_python(None)


def test_datetime_equality_by_instant():
    utc = ValueRef(Kind.DATETIME, 100, tz=timezone.utc)
    shifted = ValueRef(Kind.DATETIME, 100, tz=timezone(timedelta(hours=3)))
    assert utc == shifted
    assert utc != ValueRef(Kind.DATETIME, 101)


def test_datetime64_equality_across_precision():
    assert ValueRef(Kind.DATETIME64, 1_000, precision=3) == ValueRef(
        Kind.DATETIME64, 1, precision=0
    )


def test_bool_values_never_equal():
    assert (ValueRef(Kind.BOOL, True) == ValueRef(Kind.BOOL, True)) is False


def test_kinds_differ():
    assert ValueRef(Kind.UINT8, 1) != ValueRef(Kind.UINT16, 1)


def test_map_equality():
    def build(number):
        return ValueRef(
            Kind.MAP,
            {ValueRef(Kind.UINT8, 1): ValueRef(Kind.UINT8, number)},
            key_type=SqlType(Kind.UINT8),
            item_type=SqlType(Kind.UINT8),
        )

    assert build(2) == build(2)
    assert build(2) != build(3)


def test_hash():
    assert hash(ValueRef(Kind.UINT8, 1)) == hash(ValueRef(Kind.UINT8, 1))
    assert {ValueRef(Kind.STRING, b"a"), ValueRef(Kind.STRING, b"a")} == {
        ValueRef(Kind.STRING, b"a")
    }
    with pytest.raises(TypeError):
        hash(ValueRef(Kind.DATE, 1))


def test_as_str_and_bytes():
    value = ValueRef(Kind.STRING, b"text")
    assert value.as_str() == "text"
    assert value.as_string() == "text"
    assert value.as_bytes() == b"text"


def test_as_str_invalid_utf8():
    with pytest.raises(UnicodeDecodeError):
        ValueRef(Kind.STRING, bytes([0, 159, 146, 150])).as_str()


def test_as_str_wrong_type():
    with pytest.raises(FromSqlError) as info:
        ValueRef(Kind.UINT8, 1).as_str()
    assert info.value.src == "UInt8"
    assert info.value.dst == "str"


def test_as_bytes_wrong_type():
    with pytest.raises(FromSqlError) as info:
        ValueRef(Kind.INT32, 1).as_bytes()
    assert info.value.dst == "bytes"


def test_rejects_out_of_range():
    with pytest.raises(ValueError):
        ValueRef(Kind.UINT8, 256)
    with pytest.raises(ValueError):
        ValueRef(Kind.IPV4, b"\x00")