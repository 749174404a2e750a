# chvalues

Client-side representations of the values held in columns of a columnar SQL
database: integers of every width up to 128 bits, Bool, Float32 and Float64,
strings, dates, date-times with time zones and sub-second precision,
decimals, Enum8 and Enum16, IPv4 and IPv6 addresses, UUIDs, nullable values,
arrays and maps. The package has no dependencies outside the standard
library.

## Modules

- `chvalues.sqltypes`
  - `Kind`: the family of a column type (`UInt8` ... `Int128`, `String`,
    `FixedString`, `Date`, `DateTime`, `DateTime64`, `Nullable`, `Array`,
    `Map`, `Decimal`, `Enum8`, `Enum16`, `IPv4`, `IPv6`, `UUID`,
    `LowCardinality`, `SimpleAggregateFunction`, ...).
  - `SqlType`: a frozen column type. `str()` gives the type's name, for
    example `Array(Int32)`, `Decimal(18, 4)` or `Map(String, UInt8)`.
    Missing or invalid parameters raise `ValueError`.
  - `Decimal`: a fixed-point number `underlying / 10**scale`.
    `Decimal.of(number, scale)` builds one with precision 18 from an int or a
    float (rounding half away from zero); `str()` and `float()` read it back.
  - `Enum8`, `Enum16`: range-checked enum numbers.
  - `ConversionError` (a `TypeError`): raised when a value is asked for a type
    it does not hold.
  - `decode_ipv4(octets)` (stored bytes are reversed), `decode_ipv6(octets)`
    and `datetime64_to_datetime(value, precision, tz)` (sub-microsecond
    digits are truncated).
- `chvalues.unmarshal`: `unmarshal(kind, scratch)` decodes one little-endian
  scalar of a `ScalarKind` (`U8` ... `I128`, `F32`, `F64`, `BOOL`). A buffer
  of the wrong length raises `ValueError`; a bool looks only at the first
  byte.
- `chvalues.value`: `Value`, an owned, immutable value tagged with its
  `Kind`.
  - Constructors: `Value.from_python(obj)` (ints become Int64 when they fit,
    then UInt64, Int128, UInt128; lists and mappings take their element types
    from the first entry), `Value.from_optional(obj, sql_type)`,
    `Value.from_uuid`, `Value.from_date`, `Value.from_utc_datetime`,
    `Value.from_mapping(mapping, key_type, value_type)`,
    `Value.array(item_type, items)` and `Value.default(sql_type)`.
  - `sql_type()`, `format(alternate=False)` and `str()`.
  - Conversions: `to_str`, `to_bytes`, `to_int(kind=None)`, `to_float`,
    `to_bool`, `to_date`, `to_datetime`, `to_ipv4`; each raises
    `ConversionError` for a value of another kind.
  - Only integer, String, Date, DateTime (held as a second count) and
    DateTime64 values are hashable, so only those can be Map keys. Map values
    never compare equal.
- `chvalues.value_ref`: `ValueRef`, a read-only view of a value as read from
  a column, with `sql_type()`, `format()`, `ValueRef.from_python(obj)` (str,
  bytes, bool, int, float) and `as_str`, `as_string`, `as_bytes`. A non-String
  value raises `FromSqlError` (a `TypeError`); invalid UTF-8 raises
  `UnicodeDecodeError`. DateTime and DateTime64 views compare by instant;
  Bool, IPv4, IPv6 and UUID views never compare equal; only integer and
  String views are hashable.
- `chvalues.ref_convert`: `value_to_ref(value)`, `ref_to_value(value_ref)`,
  and `ref_to_int`, `ref_to_float`, `ref_to_bool`, `ref_to_date`,
  `ref_to_datetime`, `ref_to_enum8`, `ref_to_enum16`, which raise
  `ConversionError` for a view of another kind. A `Value` DateTime that holds
  a `datetime` object has no view; `value_to_ref` raises `ValueError` for it.

## Formatting

`Value` and `ValueRef` print dates as `YYYY-MM-DD` and strings as text (or as
a list of byte numbers when they are not UTF-8). They differ for date-times:

- `Value` DateTime prints in RFC 2822 form, for example
  `Thu, 01 Jan 1970 00:00:00 +0000`; `format(alternate=True)` gives
  `1970-01-01 00:00:00 UTC`. DateTime64 always prints in RFC 2822 form.
  Enums print as `Enum8, 5`; maps as `[key=>k value=>v, ...]`.
- `ValueRef` DateTime and DateTime64 print as `1970-01-01 00:00:00`;
  `format(alternate=True)` gives the RFC 2822 form for DateTime. Enums print
  as the bare number; maps as `[k-v, ...]`.

## Example

```python
import uuid
from chvalues.sqltypes import Decimal, Kind, SqlType
from chvalues.unmarshal import ScalarKind, unmarshal
from chvalues.value import Value
from chvalues.value_ref import ValueRef
from chvalues.ref_convert import ref_to_value

v = Value.from_uuid(uuid.UUID("936da01f-9abd-4d9d-80c7-02af85c822a8"))
print(v)                                        # 936da01f-9abd-4d9d-80c7-02af85c822a8
print(v.sql_type())                             # UUID

print(Value.from_optional(None, SqlType(Kind.UINT8)))   # NULL
print(Value.array(SqlType(Kind.INT32), [1, 2, 3]))      # [1, 2, 3]
print(Decimal.of(2.0, 2))                               # 2.00

r = ValueRef(Kind.DATETIME, 0)
print(r)                                        # 1970-01-01 00:00:00
print(r.format(alternate=True))                 # Thu, 01 Jan 1970 00:00:00 +0000
print(ref_to_value(ValueRef(Kind.UINT8, 42)) == Value(Kind.UINT8, 42))  # True

print(unmarshal(ScalarKind.U16, b"\x01\x02"))   # 513
```

## What it does not do

The package holds and converts single values only. It does not connect to a
database server, speak its network protocol, run queries, or build or read
blocks of columns; apart from `unmarshal` for fixed-width scalars, it does
not decode column data from bytes.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```