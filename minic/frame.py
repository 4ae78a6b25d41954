"""Per-call execution context for the minic evaluator.

Each function call gets a Frame owning a fixed-size stack buffer, the
bump cursor that hands out offsets in it, and the symbol table mapping
names to stack or heap residents. All raw byte access goes through
`load` and `store`, which turn byte-store failures into MiniCError.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from minic.ast import Program
from minic.errors import MiniCError
from minic.memory import read_at, write_at
from minic.types import ErrorVal, TypeSpec, NullVal, storage_size


DEFAULT_STACK_SIZE = 1024


@dataclass
class StackVar:
    addr_in_stack: int
    var_type: TypeSpec


@dataclass
class HeapVar:
    own_heap: bytearray
    var_type: TypeSpec


Variable = Union[StackVar, HeapVar]


class Frame:
    """Per-call execution state.

    A frame owns a fixed-capacity stack buffer with a bump-allocation
    cursor, the symbol table of the running function, and the return
    bookkeeping (`last_value`, the `returned` latch, and the pending
    `jump` of a break/continue). A new frame is created for every call and
    is only touched by that call.
    """
    def __init__(self, program: Program, func_name: str = 'main',
                 return_type: Optional[TypeSpec] = None,
                 stack_size: int = DEFAULT_STACK_SIZE):
        self.program = program
        self.func_name = func_name
        self.return_type = return_type if return_type is not None else TypeSpec.int32()
        self.stack = bytearray(stack_size)
        self.free_byte_stack = 0
        self.variables: Dict[str, Variable] = {}
        self.last_value: Any = NullVal()
        self.returned = False
        self.jump: Optional[str] = None
        self.loop_depth = 0

    @property
    def capacity(self) -> int:
        return len(self.stack)

    def lookup(self, name: str) -> Variable:
        if name in self.variables:
            return self.variables[name]
        raise MiniCError(ErrorVal('UnknownVariable', f'undefined variable {name}'))

    def allocate(self, size: int) -> int:
        """Reserve `size` zeroed bytes at the bump cursor and return their offset."""
        if self.free_byte_stack + size > self.capacity:
            raise MiniCError(ErrorVal(
                'StackOverflow',
                f'{self.func_name}: cannot allocate {size} bytes, '
                f'{self.capacity - self.free_byte_stack} of {self.capacity} left',
            ))
        addr = self.free_byte_stack
        self.stack[addr:addr + size] = bytes(size)
        self.free_byte_stack += size
        return addr

    def bind_stack(self, name: str, type_spec: TypeSpec, value: Any) -> StackVar:
        addr = self.allocate(storage_size(type_spec))
        self.store(self.stack, addr, type_spec, value)
        var = StackVar(addr, type_spec)
        self.variables[name] = var
        return var

    def bind_heap(self, name: str, type_spec: TypeSpec, size: int) -> HeapVar:
        var = HeapVar(bytearray(size), type_spec)
        self.variables[name] = var
        return var

    def load(self, buf: bytearray, addr: int, type_spec: TypeSpec) -> Any:
        try:
            return read_at(buf, addr, type_spec)
        except IndexError as e:
            raise MiniCError(ErrorVal('OutOfBounds', str(e)))
        except NotImplementedError as e:
            raise MiniCError(ErrorVal('NotImplemented', str(e)))

    def store(self, buf: bytearray, addr: int, type_spec: TypeSpec, value: Any) -> None:
        try:
            write_at(buf, addr, type_spec, value)
        except IndexError as e:
            raise MiniCError(ErrorVal('OutOfBounds', str(e)))
        except NotImplementedError as e:
            raise MiniCError(ErrorVal('NotImplemented', str(e)))

    def read_var(self, var: Variable) -> Any:
        if isinstance(var, HeapVar):
            return self.load(var.own_heap, 0, var.var_type)
        return self.load(self.stack, var.addr_in_stack, var.var_type)

    def write_var(self, var: Variable, value: Any) -> None:
        if isinstance(var, HeapVar):
            self.store(var.own_heap, 0, var.var_type, value)
        else:
            self.store(self.stack, var.addr_in_stack, var.var_type, value)

    def enter_scope(self) -> Dict[str, Variable]:
        return dict(self.variables)

    def leave_scope(self, saved: Dict[str, Variable]) -> None:
        # Names declared in the block go away; their bytes stay allocated.
        self.variables = saved
