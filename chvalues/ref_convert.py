"""Conversions between column views, owned values and plain Python objects."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Any

from chvalues.sqltypes import (
    ConversionError,
    Enum8,
    Enum16,
    Kind,
    datetime64_to_datetime,
)
from chvalues.value import _EPOCH, _INT_RANGES, Value
from chvalues.value_ref import ValueRef

_EPOCH_DATE = date(1970, 1, 1)


def _payload(kind: Kind, data: Any, convert: Callable[[Any], Any]) -> Any:
    """Convert the nested parts of a payload with ``convert``."""
    if kind is Kind.NULLABLE:
        return None if data is None else convert(data)
    if kind is Kind.ARRAY:
        return tuple(convert(item) for item in data)
    if kind is Kind.MAP:
        return {convert(key): convert(val) for key, val in data.items()}
    return data


def value_to_ref(value: Value) -> ValueRef:
    """A column view of an owned value.

    A DateTime that holds a datetime object rather than a second count has
    no column view and raises ValueError.
    """
    if value.kind is Kind.DATETIME and isinstance(value.data, datetime):
        raise ValueError("a DateTime holding a datetime object has no column view")
    return ValueRef(
        value.kind,
        _payload(value.kind, value.data, value_to_ref),
        item_type=value.item_type,
        key_type=value.key_type,
        tz=value.tz,
        precision=value.precision,
        enum_values=value.enum_values,
    )


def ref_to_value(value_ref: ValueRef) -> Value:
    """An owned copy of a column view."""
    return Value(
        value_ref.kind,
        _payload(value_ref.kind, value_ref.data, ref_to_value),
        item_type=value_ref.item_type,
        key_type=value_ref.key_type,
        tz=value_ref.tz,
        precision=value_ref.precision,
        enum_values=value_ref.enum_values,
    )


def _fail(value_ref: ValueRef, target: str) -> ConversionError:
    return ConversionError(value_ref.sql_type(), target, prefix="ValueRef")


def ref_to_int(value_ref: ValueRef, kind: Kind | None = None) -> int:
    """The number of an integer value, of exactly ``kind`` when given."""
    if kind is not None and kind not in _INT_RANGES:
        raise ValueError(f"{kind.value} is not an integer kind")
    if value_ref.kind in _INT_RANGES and (kind is None or value_ref.kind is kind):
        return value_ref.data
    raise _fail(value_ref, kind.value if kind is not None else "int")


def ref_to_float(value_ref: ValueRef) -> float:
    """The number of a Float32 or Float64 value."""
    if value_ref.kind in (Kind.FLOAT32, Kind.FLOAT64):
        return value_ref.data
    raise _fail(value_ref, "float")


def ref_to_bool(value_ref: ValueRef) -> bool:
    """The flag of a Bool value."""
    if value_ref.kind is Kind.BOOL:
        return value_ref.data
    raise _fail(value_ref, "bool")


def ref_to_date(value_ref: ValueRef) -> date:
    """The calendar day of a Date value."""
    if value_ref.kind is Kind.DATE:
        return _EPOCH_DATE + timedelta(days=value_ref.data)
    raise _fail(value_ref, "date")


def ref_to_datetime(value_ref: ValueRef) -> datetime:
    """An aware datetime for DateTime and DateTime64 values."""
    if value_ref.kind is Kind.DATETIME:
        return (_EPOCH + timedelta(seconds=value_ref.data)).astimezone(value_ref.tz)
    if value_ref.kind is Kind.DATETIME64:
        return datetime64_to_datetime(
            value_ref.data, value_ref.precision, value_ref.tz
        )
    raise _fail(value_ref, "datetime")


def ref_to_enum8(value_ref: ValueRef) -> Enum8:
    """The stored number of an Enum8 value."""
    if value_ref.kind is Kind.ENUM8:
        return value_ref.data
    raise _fail(value_ref, "Enum8")


def ref_to_enum16(value_ref: ValueRef) -> Enum16:
    """The stored number of an Enum16 value."""
    if value_ref.kind is Kind.ENUM16:
        return value_ref.data
    raise _fail(value_ref, "Enum16")