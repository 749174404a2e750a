"""Owned client-side representation of a single column value."""

from __future__ import annotations

import decimal as _decimal
import ipaddress
import math
import struct
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any

from chvalues.sqltypes import (
    DEFAULT_TZ,
    ConversionError,
    Decimal,
    Enum8,
    Enum16,
    Kind,
    SqlType,
    datetime64_to_datetime,
    decode_ipv4,
    decode_ipv6,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_EPOCH_DATE = date(1970, 1, 1)

_INT_RANGES = {
    Kind.UINT8: (0, 2**8 - 1),
    Kind.UINT16: (0, 2**16 - 1),
    Kind.UINT32: (0, 2**32 - 1),
    Kind.UINT64: (0, 2**64 - 1),
    Kind.UINT128: (0, 2**128 - 1),
    Kind.INT8: (-(2**7), 2**7 - 1),
    Kind.INT16: (-(2**15), 2**15 - 1),
    Kind.INT32: (-(2**31), 2**31 - 1),
    Kind.INT64: (-(2**63), 2**63 - 1),
    Kind.INT128: (-(2**127), 2**127 - 1),
}

_PYTHON_INT_KINDS = (Kind.INT64, Kind.UINT64, Kind.INT128, Kind.UINT128)

_UNSUPPORTED_KINDS = {
    Kind.FIXED_STRING,
    Kind.LOW_CARDINALITY,
    Kind.SIMPLE_AGGREGATE_FUNCTION,
}

_ENUM_NUMBERS = {Kind.ENUM8: Enum8, Kind.ENUM16: Enum16}

_FIXED_BYTES = {Kind.IPV4: 4, Kind.IPV6: 16, Kind.UUID: 16}

_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _to_f32(number: Any) -> float:
    if isinstance(number, bool) or not isinstance(number, (int, float)):
        raise TypeError(f"Float32 needs a number, got {type(number).__name__}")
    try:
        return struct.unpack("<f", struct.pack("<f", float(number)))[0]
    except OverflowError as exc:
        raise ValueError(f"{number} does not fit in Float32") from exc


def _plain_decimal(text: str) -> str:
    return format(_decimal.Decimal(text), "f")


def _format_float(number: float, single: bool) -> str:
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    if number == 0:
        return "-0" if math.copysign(1.0, number) < 0 else "0"
    if number.is_integer():
        return str(int(number))
    if single:
        for digits in range(1, 18):
            text = f"{number:.{digits}g}"
            if _to_f32(float(text)) == number:
                return _plain_decimal(text)
    return _plain_decimal(repr(number))


def _rfc2822(moment: datetime) -> str:
    offset = moment.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return (
        f"{_DAY_NAMES[moment.weekday()]}, {moment.day:02d} "
        f"{_MONTH_NAMES[moment.month - 1]} {moment.year:04d} "
        f"{moment:%H:%M:%S} {sign}{hours:02d}{mins:02d}"
    )


def _display_datetime(moment: datetime) -> str:
    text = f"{moment:%Y-%m-%d %H:%M:%S}"
    if moment.microsecond:
        text += f".{moment.microsecond:06d}"
    return f"{text} {moment.tzname()}"


def _epoch_seconds(seconds: int, tz: tzinfo) -> datetime:
    return (_EPOCH + timedelta(seconds=seconds)).astimezone(tz)


@dataclass(frozen=True, eq=False)
class Value:
    """A single value of a column, tagged with its column kind.

    ``data`` holds the payload: an int, float, bool or bytes for scalars,
    a day count for Date, a second count (or an aware datetime) for
    DateTime, a tick count for DateTime64, the inner Value (or None for
    NULL) for Nullable, a tuple of Values for Array, a dict for Map and a
    Decimal, Enum8 or Enum16 for those kinds. ``item_type`` is the element
    type of Array and Map and the declared type of a NULL; ``key_type`` is
    the key type of Map.
    """

    kind: Kind
    data: Any = None
    item_type: SqlType | None = None
    key_type: SqlType | None = None
    tz: tzinfo | None = None
    precision: int | None = None
    enum_values: tuple[tuple[str, int], ...] = ()

    def __post_init__(self) -> None:
        kind = self.kind
        data = self.data
        set_field = object.__setattr__
        if kind in _UNSUPPORTED_KINDS:
            raise ValueError(f"a value cannot have kind {kind.value}")
        if kind in _INT_RANGES:
            if isinstance(data, bool) or not isinstance(data, int):
                raise TypeError(f"{kind.value} needs an int")
            low, high = _INT_RANGES[kind]
            if not low <= data <= high:
                raise ValueError(f"{data} is out of range for {kind.value}")
        elif kind is Kind.BOOL:
            if not isinstance(data, bool):
                raise TypeError("Bool needs a bool")
        elif kind is Kind.FLOAT32:
            set_field(self, "data", _to_f32(data))
        elif kind is Kind.FLOAT64:
            if isinstance(data, bool) or not isinstance(data, (int, float)):
                raise TypeError("Float64 needs a number")
            set_field(self, "data", float(data))
        elif kind is Kind.STRING:
            if not isinstance(data, (bytes, bytearray, memoryview)):
                raise TypeError("String needs bytes")
            set_field(self, "data", bytes(data))
        elif kind is Kind.DATE:
            if isinstance(data, bool) or not isinstance(data, int):
                raise TypeError("Date needs a day count")
            if not 0 <= data <= 2**16 - 1:
                raise ValueError(f"day count {data} is out of range for Date")
        elif kind is Kind.DATETIME:
            self._check_datetime(data)
        elif kind is Kind.DATETIME64:
            if isinstance(data, bool) or not isinstance(data, int):
                raise TypeError("DateTime64 needs a tick count")
            if not -(2**63) <= data <= 2**63 - 1:
                raise ValueError(f"{data} is out of range for DateTime64")
            if self.precision is None or not 0 <= self.precision <= 9:
                raise ValueError("DateTime64 precision must be in 0..9")
            if self.tz is None:
                set_field(self, "tz", DEFAULT_TZ)
        elif kind is Kind.NULLABLE:
            if data is None:
                if self.item_type is None:
                    raise ValueError("a NULL needs its declared type")
            elif not isinstance(data, Value):
                raise TypeError("Nullable holds a Value or None")
        elif kind is Kind.ARRAY:
            if self.item_type is None:
                raise ValueError("Array needs an item type")
            items = tuple(data if data is not None else ())
            if not all(isinstance(item, Value) for item in items):
                raise TypeError("Array items must be Values")
            set_field(self, "data", items)
        elif kind is Kind.DECIMAL:
            if not isinstance(data, Decimal):
                raise TypeError("Decimal needs a Decimal")
        elif kind in _FIXED_BYTES:
            if not isinstance(data, (bytes, bytearray, memoryview)):
                raise TypeError(f"{kind.value} needs bytes")
            raw = bytes(data)
            if len(raw) != _FIXED_BYTES[kind]:
                raise ValueError(
                    f"{kind.value} needs {_FIXED_BYTES[kind]} bytes, got {len(raw)}"
                )
            set_field(self, "data", raw)
        elif kind in _ENUM_NUMBERS:
            if not isinstance(data, _ENUM_NUMBERS[kind]):
                raise TypeError(f"{kind.value} needs an {kind.value} number")
            set_field(
                self,
                "enum_values",
                tuple((str(name), int(number)) for name, number in self.enum_values),
            )
        elif kind is Kind.MAP:
            if self.key_type is None or self.item_type is None:
                raise ValueError("Map needs key and value types")
            entries = dict(data if data is not None else {})
            if not all(
                isinstance(key, Value) and isinstance(val, Value)
                for key, val in entries.items()
            ):
                raise TypeError("Map entries must be Values")
            set_field(self, "data", entries)

    def _check_datetime(self, data: Any) -> None:
        if isinstance(data, datetime):
            if data.tzinfo is None or data.utcoffset() is None:
                raise ValueError("DateTime needs an aware datetime")
            return
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError("DateTime needs a second count or a datetime")
        if not 0 <= data <= 2**32 - 1:
            raise ValueError(f"{data} is out of range for DateTime")
        if self.tz is None:
            object.__setattr__(self, "tz", DEFAULT_TZ)

    # construction

    @classmethod
    def default(cls, sql_type: SqlType) -> Value:
        """The zero value of a column of ``sql_type``."""
        kind = sql_type.kind
        if kind is Kind.BOOL:
            return cls(Kind.BOOL, False)
        if kind in _INT_RANGES:
            return cls(kind, 0)
        if kind in (Kind.FLOAT32, Kind.FLOAT64):
            return cls(kind, 0.0)
        if kind is Kind.STRING:
            return cls(Kind.STRING, b"")
        if kind is Kind.FIXED_STRING:
            return cls(Kind.STRING, bytes(sql_type.length or 0))
        if kind in (Kind.LOW_CARDINALITY, Kind.SIMPLE_AGGREGATE_FUNCTION):
            return cls.default(sql_type.inner)
        if kind is Kind.DATE:
            return cls(Kind.DATE, 0)
        if kind is Kind.DATETIME64:
            return cls(Kind.DATETIME64, 0, precision=1, tz=DEFAULT_TZ)
        if kind is Kind.DATETIME:
            return cls(Kind.DATETIME, _EPOCH.astimezone(DEFAULT_TZ))
        if kind is Kind.NULLABLE:
            return cls(Kind.NULLABLE, None, item_type=sql_type.inner)
        if kind is Kind.ARRAY:
            return cls(Kind.ARRAY, (), item_type=sql_type.inner)
        if kind is Kind.DECIMAL:
            return cls(Kind.DECIMAL, Decimal(0, sql_type.precision, sql_type.scale))
        if kind in _FIXED_BYTES:
            return cls(kind, bytes(_FIXED_BYTES[kind]))
        if kind in _ENUM_NUMBERS:
            return cls(kind, _ENUM_NUMBERS[kind](0), enum_values=sql_type.enum_values)
        if kind is Kind.MAP:
            return cls(Kind.MAP, {}, key_type=sql_type.key, item_type=sql_type.inner)
        raise ValueError(f"no default for {sql_type}")

    @classmethod
    def from_python(cls, obj: Any) -> Value:
        """Build a value from a plain Python object.

        Integers become Int64 when they fit, then UInt64, Int128 and UInt128.
        Lists and mappings take their element types from their first entry.
        """
        if isinstance(obj, Value):
            return obj
        if isinstance(obj, bool):
            return cls(Kind.BOOL, obj)
        if isinstance(obj, int):
            for kind in _PYTHON_INT_KINDS:
                low, high = _INT_RANGES[kind]
                if low <= obj <= high:
                    return cls(kind, obj)
            raise ValueError(f"{obj} does not fit in any integer column")
        if isinstance(obj, float):
            return cls(Kind.FLOAT64, obj)
        if isinstance(obj, str):
            return cls(Kind.STRING, obj.encode("utf-8"))
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return cls(Kind.STRING, bytes(obj))
        if isinstance(obj, Decimal):
            return cls(Kind.DECIMAL, obj)
        if isinstance(obj, Enum8):
            return cls(Kind.ENUM8, obj)
        if isinstance(obj, Enum16):
            return cls(Kind.ENUM16, obj)
        if isinstance(obj, datetime):
            if obj.tzinfo is None or obj.utcoffset() is None:
                raise ValueError("a datetime needs a time zone")
            return cls(Kind.DATETIME, obj)
        if isinstance(obj, date):
            return cls.from_date(obj)
        if isinstance(obj, uuid.UUID):
            return cls.from_uuid(obj)
        if isinstance(obj, ipaddress.IPv4Address):
            return cls(Kind.IPV4, obj.packed[::-1])
        if isinstance(obj, ipaddress.IPv6Address):
            return cls(Kind.IPV6, obj.packed)
        if isinstance(obj, Mapping):
            return cls.from_mapping(obj, None, None)
        if isinstance(obj, (list, tuple)):
            if not obj:
                raise ValueError("cannot infer the item type of an empty sequence")
            item_type = cls.from_python(obj[0]).sql_type()
            return cls.array(item_type, obj)
        if obj is None:
            raise TypeError("None needs a type; use Value.from_optional")
        raise TypeError(f"cannot make a Value from {type(obj).__name__}")

    @classmethod
    def _coerce(cls, item: Any, sql_type: SqlType) -> Value:
        if isinstance(item, Value):
            return item
        kind = sql_type.kind
        if kind in (Kind.LOW_CARDINALITY, Kind.SIMPLE_AGGREGATE_FUNCTION):
            return cls._coerce(item, sql_type.inner)
        if kind is Kind.NULLABLE:
            return cls.from_optional(item, sql_type.inner)
        if kind in _INT_RANGES or kind in (Kind.BOOL, Kind.FLOAT32, Kind.FLOAT64):
            return cls(kind, item)
        if kind is Kind.ARRAY:
            return cls.array(sql_type.inner, item)
        if kind is Kind.MAP:
            return cls.from_mapping(item, sql_type.key, sql_type.inner)
        if kind in _ENUM_NUMBERS:
            number_type = _ENUM_NUMBERS[kind]
            number = item if isinstance(item, number_type) else number_type(item)
            return cls(kind, number, enum_values=sql_type.enum_values)
        return cls.from_python(item)

    @classmethod
    def from_optional(cls, obj: Any, sql_type: SqlType | None = None) -> Value:
        """Wrap ``obj`` as a Nullable value; None becomes NULL of ``sql_type``."""
        if obj is None:
            if sql_type is None:
                raise TypeError("a NULL needs its declared type")
            return cls(Kind.NULLABLE, None, item_type=sql_type)
        inner = cls._coerce(obj, sql_type) if sql_type is not None else cls.from_python(obj)
        return cls(Kind.NULLABLE, inner)

    @classmethod
    def from_uuid(cls, uuid_value: uuid.UUID) -> Value:
        """Store a UUID with each half in reversed byte order."""
        raw = uuid_value.bytes
        return cls(Kind.UUID, raw[:8][::-1] + raw[8:][::-1])

    @classmethod
    def from_date(cls, date_value: date) -> Value:
        """A Date holding the days since 1970-01-01."""
        if isinstance(date_value, datetime):
            date_value = date_value.date()
        return cls(Kind.DATE, (date_value - _EPOCH_DATE).days)

    @classmethod
    def from_utc_datetime(cls, datetime_value: datetime) -> Value:
        """A DateTime holding whole seconds since the epoch, in UTC."""
        if datetime_value.tzinfo is None or datetime_value.utcoffset() is None:
            raise ValueError("a datetime needs a time zone")
        seconds = math.floor((datetime_value - _EPOCH).total_seconds())
        return cls(Kind.DATETIME, seconds, tz=timezone.utc)

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[Any, Any],
        key_type: SqlType | None = None,
        value_type: SqlType | None = None,
    ) -> Value:
        """A Map value; missing types are taken from the first entry."""
        entries = list(mapping.items())
        if key_type is None or value_type is None:
            if not entries:
                raise ValueError("cannot infer the types of an empty mapping")
            first_key, first_value = entries[0]
            if key_type is None:
                key_type = cls.from_python(first_key).sql_type()
            if value_type is None:
                value_type = cls.from_python(first_value).sql_type()
        converted = {
            cls._coerce(key, key_type): cls._coerce(val, value_type)
            for key, val in entries
        }
        return cls(Kind.MAP, converted, key_type=key_type, item_type=value_type)

    @classmethod
    def array(cls, item_type: SqlType, items: Iterable[Any]) -> Value:
        """An Array of ``item_type``, converting plain items to that type."""
        return cls(
            Kind.ARRAY,
            tuple(cls._coerce(item, item_type) for item in items),
            item_type=item_type,
        )

    # inspection

    def sql_type(self) -> SqlType:
        """The column type this value belongs to."""
        kind = self.kind
        if kind is Kind.DATETIME64:
            return SqlType(Kind.DATETIME64, precision=self.precision, tz=self.tz)
        if kind is Kind.NULLABLE:
            inner = self.item_type if self.data is None else self.data.sql_type()
            return SqlType(Kind.NULLABLE, inner=inner)
        if kind is Kind.ARRAY:
            return SqlType(Kind.ARRAY, inner=self.item_type)
        if kind is Kind.DECIMAL:
            return SqlType(Kind.DECIMAL, precision=self.data.precision, scale=self.data.scale)
        if kind in _ENUM_NUMBERS:
            return SqlType(kind, enum_values=self.enum_values)
        if kind is Kind.MAP:
            return SqlType(Kind.MAP, key=self.key_type, inner=self.item_type)
        return SqlType(kind)

    def format(self, alternate: bool = False) -> str:
        """Render the value; ``alternate`` picks the long date-time form."""
        kind = self.kind
        data = self.data
        if kind is Kind.BOOL:
            return "true" if data else "false"
        if kind in _INT_RANGES:
            return str(data)
        if kind is Kind.FLOAT32:
            return _format_float(data, single=True)
        if kind is Kind.FLOAT64:
            return _format_float(data, single=False)
        if kind is Kind.STRING:
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError:
                return "[" + ", ".join(str(byte) for byte in data) + "]"
        if kind is Kind.DATE:
            return (_EPOCH_DATE + timedelta(days=data)).strftime("%Y-%m-%d")
        if kind is Kind.DATETIME:
            if isinstance(data, datetime):
                return _rfc2822(data)
            moment = _epoch_seconds(data, self.tz)
            return _display_datetime(moment) if alternate else _rfc2822(moment)
        if kind is Kind.DATETIME64:
            return _rfc2822(datetime64_to_datetime(data, self.precision, self.tz))
        if kind is Kind.NULLABLE:
            return "NULL" if data is None else data.format(alternate)
        if kind is Kind.ARRAY:
            return "[" + ", ".join(str(item) for item in data) + "]"
        if kind is Kind.DECIMAL:
            return str(data)
        if kind is Kind.IPV4:
            return str(decode_ipv4(data))
        if kind is Kind.IPV6:
            return str(decode_ipv6(data))
        if kind is Kind.UUID:
            return str(uuid.UUID(bytes=data[:8][::-1] + data[8:][::-1]))
        if kind in _ENUM_NUMBERS:
            return f"{kind.value}, {data}"
        if kind is Kind.MAP:
            cells = (f"key=>{key} value=>{val}" for key, val in data.items())
            return "[" + ", ".join(cells) + "]"
        raise ValueError(f"cannot format a value of kind {kind.value}")

    def __str__(self) -> str:
        return self.format(False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        kind = self.kind
        if kind is Kind.DATETIME:
            mine_chrono = isinstance(self.data, datetime)
            if mine_chrono != isinstance(other.data, datetime):
                return False
            return self.data == other.data
        if kind is Kind.DATETIME64:
            return self.precision == other.precision and self.data == other.data
        if kind is Kind.NULLABLE:
            if self.data is None or other.data is None:
                return (
                    self.data is None
                    and other.data is None
                    and self.item_type == other.item_type
                )
            return self.data == other.data
        if kind is Kind.ARRAY:
            return self.item_type == other.item_type and self.data == other.data
        if kind in _ENUM_NUMBERS:
            return self.enum_values == other.enum_values and self.data == other.data
        if kind is Kind.MAP:
            return False
        return self.data == other.data

    def __hash__(self) -> int:
        kind = self.kind
        if kind in _INT_RANGES or kind in (Kind.STRING, Kind.DATE):
            return hash((kind, self.data))
        if kind is Kind.DATETIME and not isinstance(self.data, datetime):
            return hash((kind, self.data))
        if kind is Kind.DATETIME64:
            return hash((kind, self.data, self.precision))
        raise TypeError(f"a {self.sql_type()} value is not hashable")

    # conversion

    def _fail(self, target: str) -> ConversionError:
        return ConversionError(self.sql_type(), target)

    def to_str(self) -> str:
        """The text of a String value."""
        if self.kind is Kind.STRING:
            try:
                return self.data.decode("utf-8")
            except UnicodeDecodeError:
                pass
        raise self._fail("str")

    def to_bytes(self) -> bytes:
        """The raw bytes of a String value."""
        if self.kind is Kind.STRING:
            return self.data
        raise self._fail("bytes")

    def to_int(self, kind: Kind | None = None) -> int:
        """The number of an integer value, of exactly ``kind`` when given."""
        if kind is not None and kind not in _INT_RANGES:
            raise ValueError(f"{kind.value} is not an integer kind")
        if self.kind in _INT_RANGES and (kind is None or self.kind is kind):
            return self.data
        raise self._fail(kind.value if kind is not None else "int")

    def to_float(self) -> float:
        """The number of a Float32 or Float64 value."""
        if self.kind in (Kind.FLOAT32, Kind.FLOAT64):
            return self.data
        raise self._fail("float")

    def to_bool(self) -> bool:
        if self.kind is Kind.BOOL:
            return self.data
        raise self._fail("bool")

    def to_date(self) -> date:
        if self.kind is Kind.DATE:
            return _EPOCH_DATE + timedelta(days=self.data)
        raise self._fail("date")

    def to_datetime(self) -> datetime:
        """An aware datetime for DateTime and DateTime64 values."""
        if self.kind is Kind.DATETIME:
            if isinstance(self.data, datetime):
                return self.data
            return _epoch_seconds(self.data, self.tz)
        if self.kind is Kind.DATETIME64:
            return datetime64_to_datetime(self.data, self.precision, self.tz)
        raise self._fail("datetime")

    def to_ipv4(self) -> ipaddress.IPv4Address:
        if self.kind is Kind.IPV4:
            return decode_ipv4(self.data)
        raise self._fail("IPv4Address")