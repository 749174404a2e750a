"""Column type descriptions and the small value types they refer to."""

from __future__ import annotations

import enum
import ipaddress
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo

DEFAULT_TZ: tzinfo = timezone.utc

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MAX_DECIMAL_OF_SCALE = 18
_MAX_DATETIME64_PRECISION = 9


class ConversionError(TypeError):
    """A value could not be converted into the requested type."""

    def __init__(self, source: object, target: str, prefix: str = "Value") -> None:
        super().__init__(f"Can't convert {prefix}::{source} into {target}.")
        self.source = source
        self.target = target


class Kind(enum.Enum):
    """The family of a column type."""

    BOOL = "Bool"
    UINT8 = "UInt8"
    UINT16 = "UInt16"
    UINT32 = "UInt32"
    UINT64 = "UInt64"
    UINT128 = "UInt128"
    INT8 = "Int8"
    INT16 = "Int16"
    INT32 = "Int32"
    INT64 = "Int64"
    INT128 = "Int128"
    STRING = "String"
    FIXED_STRING = "FixedString"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"
    DATE = "Date"
    DATETIME = "DateTime"
    DATETIME64 = "DateTime64"
    NULLABLE = "Nullable"
    ARRAY = "Array"
    DECIMAL = "Decimal"
    IPV4 = "IPv4"
    IPV6 = "IPv6"
    UUID = "UUID"
    ENUM8 = "Enum8"
    ENUM16 = "Enum16"
    MAP = "Map"
    LOW_CARDINALITY = "LowCardinality"
    SIMPLE_AGGREGATE_FUNCTION = "SimpleAggregateFunction"


_WRAPPERS = {
    Kind.NULLABLE,
    Kind.ARRAY,
    Kind.LOW_CARDINALITY,
    Kind.SIMPLE_AGGREGATE_FUNCTION,
    Kind.MAP,
}


@dataclass(frozen=True)
class SqlType:
    """A column type.

    ``inner`` is the wrapped type of Nullable, Array, LowCardinality and
    SimpleAggregateFunction, and the value type of Map; ``key`` is the key
    type of Map.
    """

    kind: Kind
    inner: SqlType | None = None
    key: SqlType | None = None
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    tz: tzinfo | None = None
    enum_values: tuple[tuple[str, int], ...] = ()
    function: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "enum_values",
            tuple((str(name), int(number)) for name, number in self.enum_values),
        )
        kind = self.kind
        if kind in _WRAPPERS and self.inner is None:
            raise ValueError(f"{kind.value} needs an inner type")
        if kind is Kind.MAP and self.key is None:
            raise ValueError("Map needs a key type")
        if kind is Kind.SIMPLE_AGGREGATE_FUNCTION and not self.function:
            raise ValueError("SimpleAggregateFunction needs a function name")
        if kind is Kind.FIXED_STRING and (self.length is None or self.length < 0):
            raise ValueError("FixedString needs a non-negative length")
        if kind is Kind.DECIMAL:
            if self.precision is None or self.scale is None:
                raise ValueError("Decimal needs precision and scale")
            if self.precision < 1 or not 0 <= self.scale <= self.precision:
                raise ValueError(
                    f"invalid Decimal({self.precision}, {self.scale})"
                )
        if kind is Kind.DATETIME64:
            if self.precision is None or not (
                0 <= self.precision <= _MAX_DATETIME64_PRECISION
            ):
                raise ValueError("DateTime64 precision must be in 0..9")

    def __str__(self) -> str:
        kind = self.kind
        name = kind.value
        if kind is Kind.FIXED_STRING:
            return f"{name}({self.length})"
        if kind in (Kind.NULLABLE, Kind.ARRAY, Kind.LOW_CARDINALITY):
            return f"{name}({self.inner})"
        if kind is Kind.SIMPLE_AGGREGATE_FUNCTION:
            return f"{name}({self.function}, {self.inner})"
        if kind is Kind.MAP:
            return f"{name}({self.key}, {self.inner})"
        if kind is Kind.DECIMAL:
            return f"{name}({self.precision}, {self.scale})"
        if kind is Kind.DATETIME64:
            zone = self.tz if self.tz is not None else DEFAULT_TZ
            return f"{name}({self.precision}, '{zone}')"
        if kind in (Kind.ENUM8, Kind.ENUM16):
            items = ", ".join(f"'{label}' = {number}" for label, number in self.enum_values)
            return f"{name}({items})"
        return name


@dataclass(frozen=True, order=True)
class _EnumNumber:
    value: int

    _LOW = 0
    _HIGH = 0

    def __post_init__(self) -> None:
        if not self._LOW <= self.value <= self._HIGH:
            raise ValueError(
                f"{type(self).__name__} value {self.value} is out of range "
                f"{self._LOW}..{self._HIGH}"
            )

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class Enum8(_EnumNumber):
    """A stored Enum8 number."""

    _LOW = -(2**7)
    _HIGH = 2**7 - 1


class Enum16(_EnumNumber):
    """A stored Enum16 number."""

    _LOW = -(2**15)
    _HIGH = 2**15 - 1


def _round_half_away(number: float) -> int:
    magnitude = math.floor(abs(number) + 0.5)
    return -magnitude if number < 0 else magnitude


@dataclass(frozen=True)
class Decimal:
    """A fixed-point number: ``underlying / 10**scale``."""

    underlying: int
    precision: int
    scale: int

    def __post_init__(self) -> None:
        if self.precision < 1 or not 0 <= self.scale <= self.precision:
            raise ValueError(f"invalid Decimal({self.precision}, {self.scale})")

    @property
    def bits(self) -> int:
        """Storage width the precision calls for."""
        if self.precision <= 9:
            return 32
        if self.precision <= 18:
            return 64
        return 128

    @classmethod
    def of(cls, number: int | float, scale: int) -> Decimal:
        """Build a 64-bit decimal from an integer or a float at ``scale``."""
        if not 0 <= scale <= _MAX_DECIMAL_OF_SCALE:
            raise ValueError(f"scale must be in 0..{_MAX_DECIMAL_OF_SCALE}")
        factor = 10**scale
        if isinstance(number, bool) or not isinstance(number, (int, float)):
            raise TypeError(f"cannot make a Decimal from {type(number).__name__}")
        if isinstance(number, int):
            underlying = number * factor
        else:
            if not math.isfinite(number):
                raise ValueError("cannot make a Decimal from a non-finite float")
            underlying = _round_half_away(number * factor)
        return cls(underlying=underlying, precision=18, scale=scale)

    def __str__(self) -> str:
        if self.scale == 0:
            return str(self.underlying)
        sign = "-" if self.underlying < 0 else ""
        integer, fraction = divmod(abs(self.underlying), 10**self.scale)
        return f"{sign}{integer}.{fraction:0{self.scale}d}"

    def __float__(self) -> float:
        return self.underlying / 10**self.scale


def decode_ipv4(octets: bytes) -> ipaddress.IPv4Address:
    """Decode a stored IPv4 value, whose bytes are kept in reverse order."""
    data = bytes(octets)
    if len(data) != 4:
        raise ValueError(f"IPv4 needs 4 bytes, got {len(data)}")
    return ipaddress.IPv4Address(data[::-1])


def decode_ipv6(octets: bytes) -> ipaddress.IPv6Address:
    """Decode a stored IPv6 value."""
    data = bytes(octets)
    if len(data) != 16:
        raise ValueError(f"IPv6 needs 16 bytes, got {len(data)}")
    return ipaddress.IPv6Address(data)


def datetime64_to_datetime(value: int, precision: int, tz: tzinfo) -> datetime:
    """Turn a tick count at ``10**-precision`` seconds into a datetime in ``tz``.

    Sub-microsecond digits are truncated.
    """
    if not 0 <= precision <= _MAX_DATETIME64_PRECISION:
        raise ValueError("DateTime64 precision must be in 0..9")
    divisor = 10**precision
    seconds, rest = divmod(value, divisor)
    micros = rest * 1_000_000 // divisor
    return (_EPOCH + timedelta(seconds=seconds, microseconds=micros)).astimezone(tz)