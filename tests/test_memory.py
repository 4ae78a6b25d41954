import pytest

from minic.memory import read_at, write_at
from minic.types import (
    TypeSpec, Int32Val, Int16Val, Int8Val, CharVal, BoolVal, NullVal, cast_value,
)


def test_int32_is_little_endian():
    buf = bytearray(8)
    write_at(buf, 2, TypeSpec.int32(), Int32Val(0x01020304))
    assert buf == bytearray([0, 0, 4, 3, 2, 1, 0, 0])
    assert read_at(buf, 2, TypeSpec.int32()) == Int32Val(0x01020304)


def test_negative_values_round_trip():
    buf = bytearray(4)
    write_at(buf, 0, TypeSpec.int16(), Int16Val(-2))
    assert buf[:2] == bytearray([0xFE, 0xFF])
    assert read_at(buf, 0, TypeSpec.int16()) == Int16Val(-2)
    write_at(buf, 3, TypeSpec.int8(), Int8Val(-128))
    assert read_at(buf, 3, TypeSpec.int8()) == Int8Val(-128)


@pytest.mark.parametrize('v', [0, 1, -1, 127, 128, 255, 256, 40000, -40000, 2 ** 31 - 1, -2 ** 31])
@pytest.mark.parametrize('target, bits', [(TypeSpec.int16(), 16), (TypeSpec.int8(), 8)])
def test_narrow_store_keeps_low_order_bytes(v, target, bits):
    buf = bytearray(4)
    write_at(buf, 0, target, cast_value(Int32Val(v), target))
    back = cast_value(read_at(buf, 0, target), TypeSpec.int32())
    low = v & ((1 << bits) - 1)
    expected = low - (1 << bits) if low >> (bits - 1) else low
    assert back == Int32Val(expected)


def test_char_bool_and_pointer():
    buf = bytearray(6)
    write_at(buf, 0, TypeSpec.char(), CharVal(ord('q')))
    write_at(buf, 1, TypeSpec.boolean(), BoolVal(True))
    write_at(buf, 2, TypeSpec.pointer(TypeSpec.int8()), Int32Val(17))
    assert read_at(buf, 0, TypeSpec.char()) == CharVal(ord('q'))
    assert read_at(buf, 1, TypeSpec.boolean()) == BoolVal(True)
    assert read_at(buf, 2, TypeSpec.pointer(TypeSpec.char())) == Int32Val(17)


def test_null_write_is_noop():
    buf = bytearray(b'\x07' * 4)
    write_at(buf, 0, TypeSpec.int32(), NullVal())
    assert buf == bytearray(b'\x07' * 4)


@pytest.mark.parametrize('t', [
    TypeSpec('float'), TypeSpec.void(), TypeSpec.array(TypeSpec.int8(), 2), TypeSpec('uint32'),
])
def test_unsupported_reads_fail(t):
    with pytest.raises(NotImplementedError):
        read_at(bytearray(8), 0, t)


@pytest.mark.parametrize('offset', [-1, 5, 8])
def test_out_of_bounds_access(offset):
    with pytest.raises(IndexError):
        read_at(bytearray(8), offset, TypeSpec.int32())
    with pytest.raises(IndexError):
        write_at(bytearray(8), offset, TypeSpec.int32(), Int32Val(1))
