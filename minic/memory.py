"""Byte store primitives.

`read_at` and `write_at` are the only functions that touch raw bytes.
Values are encoded little-endian with a width taken from the declared
type; pointers are stored as 32-bit signed offsets.
"""

from __future__ import annotations

from typing import Any

from .types import (
    TypeSpec, Int32Val, Int16Val, Int8Val, CharVal, BoolVal, NullVal, widen,
)


WIDTHS = {
    'int32': 4,
    'pointer': 4,
    'int16': 2,
    'int8': 1,
    'char': 1,
    'bool': 1,
}


def _ensure_access(buf: bytearray, offset: int, width: int) -> None:
    if offset < 0 or offset + width > len(buf):
        raise IndexError(
            f"access of {width} bytes at offset {offset} is outside a {len(buf)}-byte buffer"
        )


def read_at(buf: bytearray, offset: int, type_spec: TypeSpec) -> Any:
    """Decode the value of `type_spec` stored at `offset`."""
    kind = type_spec.kind
    width = WIDTHS.get(kind)
    if width is None:
        raise NotImplementedError(f"cannot read a value of type {type_spec!r}")
    _ensure_access(buf, offset, width)
    raw = bytes(buf[offset:offset + width])
    if kind in ('int32', 'pointer'):
        return Int32Val(int.from_bytes(raw, 'little', signed=True))
    if kind == 'int16':
        return Int16Val(int.from_bytes(raw, 'little', signed=True))
    if kind == 'int8':
        return Int8Val(int.from_bytes(raw, 'little', signed=True))
    if kind == 'char':
        return CharVal(raw[0])
    return BoolVal(raw[0] != 0)


def write_at(buf: bytearray, offset: int, type_spec: TypeSpec, value: Any) -> None:
    """Encode `value` at `offset` using the width of `type_spec`.

    Writing the null value is a no-op.
    """
    if isinstance(value, NullVal):
        return
    width = WIDTHS.get(type_spec.kind)
    if width is None:
        raise NotImplementedError(f"cannot write a value of type {type_spec!r}")
    _ensure_access(buf, offset, width)
    raw = widen(value) & ((1 << (8 * width)) - 1)
    buf[offset:offset + width] = raw.to_bytes(width, 'little')
