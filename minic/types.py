"""Type definitions and helpers for minic.

This module defines the declared types and the runtime values used by the
evaluator, together with the C conversion rules between them: casting
between integer widths, the common type of a binary operation, and the
byte widths used for storage and address arithmetic.

Helpers here raise plain Python exceptions (TypeError, ValueError,
NotImplementedError). The interpreter translates them into MiniCError
values carrying the matching error kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple


# Integer-like kinds in promotion priority order: the first kind found on
# either side of a binary operation is the common type.
PROMOTION_ORDER = ('int32', 'int16', 'int8', 'char', 'bool')

# Recognized type keywords without any supported operation.
UNSUPPORTED_KINDS = ('uint8', 'uint16', 'uint32', 'float')

SCALAR_SIZES = {
    'int32': 4,
    'int16': 2,
    'int8': 1,
    'char': 1,
    'bool': 1,
}

POINTER_SIZE = 4
UNSUPPORTED_SIZE = 2048

C_NAMES = {
    'int32': 'int32_t',
    'int16': 'int16_t',
    'int8': 'int8_t',
    'uint32': 'uint32_t',
    'uint16': 'uint16_t',
    'uint8': 'uint8_t',
}


@dataclass(frozen=True)
class TypeSpec:
    """Represents a declared C type.

    A type is described by its `kind` (one of the integer kinds, 'bool',
    'char', 'float', 'void', 'pointer' or 'array'). Pointers and arrays
    carry their pointee/element type in `args`; arrays also carry their
    declared `length` (0 when the length comes from the initializer).
    For example `int8_t*` becomes
    `TypeSpec(kind='pointer', args=(TypeSpec(kind='int8'),))`.
    """
    kind: str
    args: Tuple['TypeSpec', ...] = ()
    length: int = 0

    def __repr__(self) -> str:
        if self.kind == 'pointer':
            return f"{self.args[0]!r}*"
        if self.kind == 'array':
            size = self.length if self.length else ''
            return f"{self.args[0]!r}[{size}]"
        return C_NAMES.get(self.kind, self.kind)

    @property
    def elem(self) -> 'TypeSpec':
        """Pointee type of a pointer or element type of an array."""
        return self.args[0]

    # Convenience constructors
    @staticmethod
    def int32() -> 'TypeSpec':
        return TypeSpec('int32')

    @staticmethod
    def int16() -> 'TypeSpec':
        return TypeSpec('int16')

    @staticmethod
    def int8() -> 'TypeSpec':
        return TypeSpec('int8')

    @staticmethod
    def char() -> 'TypeSpec':
        return TypeSpec('char')

    @staticmethod
    def boolean() -> 'TypeSpec':
        return TypeSpec('bool')

    @staticmethod
    def void() -> 'TypeSpec':
        return TypeSpec('void')

    @staticmethod
    def pointer(to: 'TypeSpec') -> 'TypeSpec':
        return TypeSpec('pointer', (to,))

    @staticmethod
    def array(elem: 'TypeSpec', length: int = 0) -> 'TypeSpec':
        return TypeSpec('array', (elem,), length)


@dataclass(frozen=True)
class Int32Val:
    value: int


@dataclass(frozen=True)
class Int16Val:
    value: int


@dataclass(frozen=True)
class Int8Val:
    value: int


@dataclass(frozen=True)
class CharVal:
    """A character held as its byte code (0..255)."""
    code: int

    def __repr__(self) -> str:
        return f"CharVal({chr(self.code)!r})"


@dataclass(frozen=True)
class BoolVal:
    value: bool


@dataclass(frozen=True)
class NullVal:
    """Marker for the null/uninitialized value; it occupies no bytes."""
    def __repr__(self) -> str:
        return 'null'


@dataclass
class ErrorVal:
    """Represents an evaluator error: a kind name and a message."""
    name: str
    message: str

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, message={self.message!r})"


def wrap_int(x: int, bits: int) -> int:
    """Truncate `x` to a signed two's-complement integer of `bits` bits."""
    x &= (1 << bits) - 1
    if x >> (bits - 1):
        return x - (1 << bits)
    return x


def widen(value: Any) -> int:
    """Return the 32-bit integer view of an integer-like runtime value."""
    if isinstance(value, (Int32Val, Int16Val, Int8Val)):
        return value.value
    if isinstance(value, CharVal):
        return value.code
    if isinstance(value, BoolVal):
        return 1 if value.value else 0
    raise TypeError(f"not supported type to cast: {value!r}")


def cast_value(value: Any, target: TypeSpec) -> Any:
    """Convert a runtime value to the representation of `target`.

    Every source is first widened to a 32-bit int and then narrowed to the
    requested width by truncation. Pointers are 32-bit offsets, so a
    pointer target behaves like int32. Raises ValueError when a value does
    not fit a char and TypeError for unsupported sources or targets.
    """
    kind = target.kind
    if kind == 'pointer':
        kind = 'int32'
    x = widen(value)
    if kind == 'int32':
        return Int32Val(wrap_int(x, 32))
    if kind == 'int16':
        return Int16Val(wrap_int(x, 16))
    if kind == 'int8':
        return Int8Val(wrap_int(x, 8))
    if kind == 'char':
        if 0 <= x <= 255:
            return CharVal(x)
        raise ValueError(f"Trying to convert int number {x} not in char boundaries in char")
    if kind == 'bool':
        return BoolVal(x != 0)
    raise TypeError(f"cannot cast {value!r} to {target!r}")


def promote(t1: TypeSpec, t2: TypeSpec) -> TypeSpec:
    """Return the common type two operands are coerced to."""
    for kind in PROMOTION_ORDER:
        if t1.kind == kind or t2.kind == kind:
            return TypeSpec(kind)
    raise TypeError(f"It is impossible to combine {t1!r} with {t2!r}")


def size_of(t: TypeSpec) -> int:
    """Byte width used for addressing.

    Pointers and arrays report the width of their element, which is the
    stride for index arithmetic.
    """
    if t.kind in ('pointer', 'array'):
        return size_of(t.elem)
    return SCALAR_SIZES.get(t.kind, UNSUPPORTED_SIZE)


def storage_size(t: TypeSpec) -> int:
    """Bytes a variable of type `t` occupies in a frame."""
    if t.kind == 'pointer':
        return POINTER_SIZE
    if t.kind == 'array':
        return t.length * size_of(t.elem)
    return size_of(t)


def is_scalar(t: TypeSpec) -> bool:
    return t.kind not in ('pointer', 'array')


def default_value(t: TypeSpec) -> Any:
    """Value bound by a declaration without an initializer."""
    kind = t.kind
    if kind == 'int32':
        return Int32Val(0)
    if kind == 'int16':
        return Int16Val(0)
    if kind == 'int8':
        return Int8Val(0)
    if kind == 'bool':
        # Kept as true, unlike every other zero-like default.
        return BoolVal(True)
    if kind == 'char':
        return CharVal(0)
    if kind in ('pointer', 'array'):
        return Int32Val(0)
    raise NotImplementedError(f"no default value for type {t!r}")


def to_string(value: Any) -> str:
    """Convert a runtime value to its printable form."""
    if isinstance(value, (Int32Val, Int16Val, Int8Val)):
        return str(value.value)
    if isinstance(value, CharVal):
        return chr(value.code)
    if isinstance(value, BoolVal):
        return 'true' if value.value else 'false'
    if isinstance(value, NullVal):
        return 'null'
    if isinstance(value, ErrorVal):
        return f"{value.name}: {value.message}"
    return str(value)
