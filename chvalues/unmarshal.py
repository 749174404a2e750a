"""Decoding of little-endian scalar column values from raw bytes."""

from __future__ import annotations

import enum
import struct
from typing import Union

Scalar = Union[int, float, bool]


class ScalarKind(enum.Enum):
    """Fixed-width scalar types that can be read from a byte slice."""

    U8 = ("u8", 1, False)
    U16 = ("u16", 2, False)
    U32 = ("u32", 4, False)
    U64 = ("u64", 8, False)
    U128 = ("u128", 16, False)
    I8 = ("i8", 1, True)
    I16 = ("i16", 2, True)
    I32 = ("i32", 4, True)
    I64 = ("i64", 8, True)
    I128 = ("i128", 16, True)
    F32 = ("f32", 4, True)
    F64 = ("f64", 8, True)
    BOOL = ("bool", 1, False)

    @property
    def size(self) -> int:
        """Width of the encoded value in bytes."""
        return self.value[1]

    @property
    def signed(self) -> bool:
        """Whether the type holds negative numbers."""
        return self.value[2]

    @property
    def is_float(self) -> bool:
        return self in (ScalarKind.F32, ScalarKind.F64)


_FLOAT_FORMATS = {ScalarKind.F32: "<f", ScalarKind.F64: "<d"}


def unmarshal(kind: ScalarKind, scratch: bytes) -> Scalar:
    """Decode one little-endian value of ``kind`` from ``scratch``.

    Booleans look only at the first byte; every other kind needs exactly
    ``kind.size`` bytes.
    """
    data = bytes(scratch)
    if kind is ScalarKind.BOOL:
        if not data:
            raise ValueError("cannot read a bool from an empty buffer")
        return data[0] != 0
    if len(data) != kind.size:
        raise ValueError(
            f"{kind.value[0]} needs {kind.size} bytes, got {len(data)}"
        )
    if kind.is_float:
        return struct.unpack(_FLOAT_FORMATS[kind], data)[0]
    return int.from_bytes(data, "little", signed=kind.signed)