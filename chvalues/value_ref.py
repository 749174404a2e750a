"""Read-only view of a single column value as it comes out of a block."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any

from chvalues.sqltypes import (
    DEFAULT_TZ,
    Decimal,
    Kind,
    SqlType,
    datetime64_to_datetime,
    decode_ipv4,
    decode_ipv6,
)
from chvalues.value import (
    _ENUM_NUMBERS,
    _EPOCH,
    _FIXED_BYTES,
    _INT_RANGES,
    _PYTHON_INT_KINDS,
    _format_float,
    _rfc2822,
    _to_f32,
)

_EPOCH_DATE = date(1970, 1, 1)

_UNSUPPORTED_KINDS = {
    Kind.FIXED_STRING,
    Kind.LOW_CARDINALITY,
    Kind.SIMPLE_AGGREGATE_FUNCTION,
}

_PLAIN_FORMAT = "%Y-%m-%d %H:%M:%S"


class FromSqlError(TypeError):
    """A column value cannot be read as the requested type."""

    def __init__(self, src: str, dst: str) -> None:
        super().__init__(f"invalid type: {src} cannot be read as {dst}")
        self.src = src
        self.dst = dst


def _is_int(data: Any) -> bool:
    return isinstance(data, int) and not isinstance(data, bool)


@dataclass(frozen=True, eq=False)
class ValueRef:
    """A single value read from a column, tagged with its column kind.

    ``data`` holds the payload: an int, float, bool or bytes for scalars,
    a day count for Date, a second count for DateTime, a tick count for
    DateTime64, the inner ValueRef (or None for NULL) for Nullable, a tuple
    of ValueRefs for Array, a dict for Map and a Decimal, Enum8 or Enum16
    for those kinds. ``item_type`` is the element type of Array and Map and
    the declared type of a NULL; ``key_type`` is the key type of Map.

    Equality follows the column semantics: DateTime and DateTime64 values
    compare by instant, while Bool, IPv4, IPv6 and UUID values never
    compare equal.
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
            if not _is_int(data):
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
            if not _is_int(data):
                raise TypeError("Date needs a day count")
            if not 0 <= data <= 2**16 - 1:
                raise ValueError(f"day count {data} is out of range for Date")
        elif kind is Kind.DATETIME:
            if not _is_int(data):
                raise TypeError("DateTime needs a second count")
            if not 0 <= data <= 2**32 - 1:
                raise ValueError(f"{data} is out of range for DateTime")
            if self.tz is None:
                set_field(self, "tz", DEFAULT_TZ)
        elif kind is Kind.DATETIME64:
            if not _is_int(data):
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
            elif not isinstance(data, ValueRef):
                raise TypeError("Nullable holds a ValueRef or None")
        elif kind is Kind.ARRAY:
            if self.item_type is None:
                raise ValueError("Array needs an item type")
            items = tuple(data if data is not None else ())
            if not all(isinstance(item, ValueRef) for item in items):
                raise TypeError("Array items must be ValueRefs")
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
                isinstance(key, ValueRef) and isinstance(val, ValueRef)
                for key, val in entries.items()
            ):
                raise TypeError("Map entries must be ValueRefs")
            set_field(self, "data", entries)

    @classmethod
    def from_python(cls, obj: Any) -> ValueRef:
        """Build a value from a str, bytes, bool, int or float.

        Integers become Int64 when they fit, then UInt64, Int128 and UInt128.
        """
        if isinstance(obj, ValueRef):
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
        raise TypeError(f"cannot make a ValueRef from {type(obj).__name__}")

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
            return SqlType(
                Kind.DECIMAL, precision=self.data.precision, scale=self.data.scale
            )
        if kind in _ENUM_NUMBERS:
            return SqlType(kind, enum_values=self.enum_values)
        if kind is Kind.MAP:
            return SqlType(Kind.MAP, key=self.key_type, inner=self.item_type)
        return SqlType(kind)

    def _moment(self) -> datetime:
        if self.kind is Kind.DATETIME:
            return (_EPOCH + timedelta(seconds=self.data)).astimezone(self.tz)
        return datetime64_to_datetime(self.data, self.precision, self.tz)

    def format(self, alternate: bool = False) -> str:
        """Render the value; ``alternate`` picks the RFC 2822 DateTime form."""
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
            moment = self._moment()
            return _rfc2822(moment) if alternate else moment.strftime(_PLAIN_FORMAT)
        if kind is Kind.DATETIME64:
            return self._moment().strftime(_PLAIN_FORMAT)
        if kind is Kind.NULLABLE:
            return "NULL" if data is None else str(data)
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
            return str(data)
        if kind is Kind.MAP:
            return "[" + ", ".join(f"{key}-{val}" for key, val in data.items()) + "]"
        raise ValueError(f"cannot format a value of kind {kind.value}")

    def __str__(self) -> str:
        return self.format(False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueRef):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        kind = self.kind
        if kind in (Kind.BOOL, Kind.IPV4, Kind.IPV6, Kind.UUID):
            return False
        if kind in (Kind.DATETIME, Kind.DATETIME64):
            return self._moment() == other._moment()
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
            return self.data == other.data and self.enum_values == other.enum_values
        if kind is Kind.MAP:
            return (
                len(self.data) == len(other.data)
                and self.key_type == other.key_type
                and self.item_type == other.item_type
                and self.data == other.data
            )
        return self.data == other.data

    def __hash__(self) -> int:
        if self.kind in _INT_RANGES or self.kind is Kind.STRING:
            return hash((self.kind, self.data))
        raise TypeError(f"a {self.sql_type()} value is not hashable")

    def _invalid(self, dst: str) -> FromSqlError:
        return FromSqlError(str(self.sql_type()), dst)

    def as_str(self) -> str:
        """The text of a String value; invalid UTF-8 raises UnicodeDecodeError."""
        if self.kind is Kind.STRING:
            return self.data.decode("utf-8")
        raise self._invalid("str")

    def as_string(self) -> str:
        """The text of a String value, as a new string."""
        return str(self.as_str())

    def as_bytes(self) -> bytes:
        """The raw bytes of a String value."""
        if self.kind is Kind.STRING:
            return self.data
        raise self._invalid("bytes")