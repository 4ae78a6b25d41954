"""Evaluator for the minic C subset.

This module executes a parsed Program: it evaluates expressions to typed
values, executes statements against the current call frame, binds
arguments into fresh frames for function calls, and runs `main`.

All storage lives in byte buffers owned by the frames (see frame.py), so
values are reinterpreted through their declared types exactly as C does:
writing through an `int32_t*` that points at an `int8_t` overwrites four
bytes of the stack.
"""

from __future__ import annotations

import operator
import pathlib
from typing import Any, Callable, Dict, List, Optional, Tuple

from .types import (
    TypeSpec, ErrorVal, Int32Val, CharVal, BoolVal, NullVal,
    UNSUPPORTED_KINDS, cast_value, default_value, is_scalar, promote,
    size_of, to_string, wrap_int,
)
from .ast import (
    Program, FuncDecl, Block, VarDecl, Assign, ReturnStmt, IfStmt,
    WhileStmt, ForStmt, BreakStmt, ContinueStmt, ExprStmt, Const, Ident,
    BinaryOp, UnaryOp, Index, Call, ArrayInit, Node,
)
from .errors import MiniCError
from .frame import Frame, HeapVar, DEFAULT_STACK_SIZE
from .parser import parse_program


INT32 = TypeSpec.int32()
BOOL = TypeSpec.boolean()


def c_div(x: int, y: int) -> int:
    q = abs(x) // abs(y)
    return q if (x >= 0) == (y >= 0) else -q


def c_mod(x: int, y: int) -> int:
    return x - y * c_div(x, y)


ARITH_OPS: Dict[str, Callable[[int, int], int]] = {
    '+': operator.add,
    '-': operator.sub,
    '*': operator.mul,
    '/': c_div,
    '%': c_mod,
    '<<': lambda x, y: x << (y & 31),
    '>>': lambda x, y: x >> (y & 31),
}

COMPARE_OPS: Dict[str, Callable[[int, int], bool]] = {
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
    '==': operator.eq,
    '!=': operator.ne,
}


class Interpreter:
    """Core interpreter that executes a minic Program."""
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = 'debug.txt',
                 stack_size: int = DEFAULT_STACK_SIZE):
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.stack_size = stack_size
        self.debug_fp = None
        self.debug_opened = False

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp is None and self.debug_file:
                # The first run truncates the trace file, later runs append to it.
                mode = 'a' if self.debug_opened else 'w'
                self.debug_fp = open(self.debug_file, mode, encoding='utf-8')
                self.debug_opened = True
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    # Public API
    def run(self, program: Program) -> Any:
        """Run `main` and return its value cast to its declared return type."""
        try:
            main = self.find_function(program, 'main')
            if main is None:
                raise MiniCError(ErrorVal('NoFunctionDeclaration', 'main'))
            return_type = TypeSpec.void() if main.return_type.kind == 'void' else INT32
            frame = Frame(program, 'main', return_type, self.stack_size)
            return self.execute_function(main, frame)
        except RecursionError:
            raise MiniCError(ErrorVal('StackOverflow', 'maximum call depth exceeded'))
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    @staticmethod
    def find_function(program: Program, name: str) -> Optional[FuncDecl]:
        for func in program.functions:
            if func.name == name:
                return func
        return None

    def cast(self, value: Any, target: TypeSpec) -> Any:
        try:
            return cast_value(value, target)
        except (TypeError, ValueError) as e:
            raise MiniCError(ErrorVal('TypeMismatch', str(e)))

    # Functions
    def execute_function(self, func: FuncDecl, frame: Frame) -> Any:
        if self.debug_level >= 1:
            self.debug(f"enter {func.name}")
        self.execute_block(func.body.statements, frame)
        if not frame.returned:
            if func.return_type.kind == 'void':
                return NullVal()
            raise MiniCError(ErrorVal(
                'MissingReturn', f'function {func.name} ended without returning a value'))
        if func.return_type.kind == 'void':
            result = NullVal()
        else:
            result = self.cast(frame.last_value, func.return_type)
        if self.debug_level >= 1:
            self.debug(f"leave {func.name} -> {to_string(result)}")
        return result

    def call_function(self, node: Call, frame: Frame) -> Tuple[TypeSpec, Any]:
        func = self.find_function(frame.program, node.name)
        if func is None:
            raise MiniCError(ErrorVal(
                'UnknownVariable', f'Call undefined function with name - {node.name}'))
        if len(node.args) != len(func.params):
            raise MiniCError(ErrorVal(
                'InvalidOperation',
                f'{func.name} expects {len(func.params)} arguments, got {len(node.args)}'))
        callee = Frame(frame.program, func.name, func.return_type, self.stack_size)
        for param, arg in zip(func.params, node.args):
            # Arguments are evaluated in the caller's frame.
            _, value = self.evaluate(arg, frame)
            self.bind_value(callee, param.type_spec, param.name, value)
        return func.return_type, self.execute_function(func, callee)

    # Statements
    def execute_block(self, statements: List[Node], frame: Frame) -> None:
        for stmt in statements:
            if frame.returned or frame.jump is not None:
                break
            self.execute(stmt, frame)

    def execute(self, node: Node, frame: Frame) -> None:
        if isinstance(node, ReturnStmt):
            self.execute_return(node, frame)
            return
        if isinstance(node, VarDecl):
            self.declare(frame, node.type_spec, node.name, node.init)
            if self.debug_level >= 2:
                var = frame.variables[node.name]
                self.debug(f"declare {node.name}: {var.var_type!r} = {to_string(frame.read_var(var))}")
            return
        if isinstance(node, Assign):
            self.assign(node, frame)
            return
        if isinstance(node, Block):
            saved = frame.enter_scope()
            self.execute_block(node.statements, frame)
            frame.leave_scope(saved)
            return
        if isinstance(node, IfStmt):
            if self.truth(node.condition, frame):
                self.execute(node.then_branch, frame)
            elif node.else_branch is not None:
                self.execute(node.else_branch, frame)
            return
        if isinstance(node, WhileStmt):
            self.run_loop(node.condition, node.body, None, frame)
            return
        if isinstance(node, ForStmt):
            saved = frame.enter_scope()
            if node.init is not None:
                self.execute(node.init, frame)
            self.run_loop(node.condition, node.body, node.step, frame)
            frame.leave_scope(saved)
            return
        if isinstance(node, (BreakStmt, ContinueStmt)):
            word = 'break' if isinstance(node, BreakStmt) else 'continue'
            if frame.loop_depth == 0:
                raise MiniCError(ErrorVal('InvalidOperation', f'{word} statement not within a loop'))
            frame.jump = word
            return
        if isinstance(node, ExprStmt):
            self.evaluate(node.expr, frame)
            return
        raise MiniCError(ErrorVal('NotImplemented', f'statement {type(node).__name__}'))

    def execute_return(self, node: ReturnStmt, frame: Frame) -> None:
        if frame.return_type.kind == 'void':
            if node.value is not None:
                raise MiniCError(ErrorVal(
                    'TypeMismatch', f'void function {frame.func_name} should not return a value'))
            value = NullVal()
        else:
            if node.value is None:
                raise MiniCError(ErrorVal(
                    'TypeMismatch', f'function {frame.func_name} must return {frame.return_type!r}'))
            _, value = self.evaluate(node.value, frame)
            value = self.cast(value, frame.return_type)
        frame.last_value = value
        frame.returned = True

    def run_loop(self, condition: Optional[Node], body: Node, step: Optional[Node],
                 frame: Frame) -> None:
        frame.loop_depth += 1
        while condition is None or self.truth(condition, frame):
            self.execute(body, frame)
            if frame.returned:
                break
            jump, frame.jump = frame.jump, None
            if jump == 'break':
                break
            if step is not None:
                self.execute(step, frame)
        frame.loop_depth -= 1

    def truth(self, expr: Node, frame: Frame) -> bool:
        _, value = self.evaluate(expr, frame)
        return self.cast(value, BOOL).value

    # Declarations
    def declare(self, frame: Frame, type_spec: TypeSpec, name: str, init: Optional[Node]) -> None:
        kind = type_spec.kind
        if kind == 'void':
            raise MiniCError(ErrorVal('UndefinedType', f'variable {name} declared void'))
        if kind in UNSUPPORTED_KINDS:
            raise MiniCError(ErrorVal('NotImplemented', f'variables of type {type_spec!r}'))
        if kind == 'array':
            self.declare_array(frame, type_spec, name, init)
            return
        if init is None:
            try:
                value = default_value(type_spec)
            except NotImplementedError as e:
                raise MiniCError(ErrorVal('NotImplemented', str(e)))
            frame.bind_stack(name, type_spec, value)
            return
        if isinstance(init, ArrayInit):
            raise MiniCError(ErrorVal(
                'InvalidOperation', f'brace initializer for non-array variable {name}'))
        if isinstance(init, Call) and init.name == 'malloc':
            if kind != 'pointer':
                raise MiniCError(ErrorVal('InvalidOperation', 'malloc not supported for simple type'))
            if len(init.args) != 1:
                raise MiniCError(ErrorVal(
                    'InvalidOperation',
                    'there are too many arguments for the signature malloc function'))
            raise MiniCError(ErrorVal('NotImplemented', 'heap allocation through malloc'))
        _, value = self.evaluate(init, frame)
        self.bind_value(frame, type_spec, name, value)

    def bind_value(self, frame: Frame, type_spec: TypeSpec, name: str, value: Any) -> None:
        """Cast `value` to the declared type and place it at the next stack offset."""
        kind = type_spec.kind
        if kind == 'void':
            raise MiniCError(ErrorVal('UndefinedType', f'variable {name} declared void'))
        if kind in UNSUPPORTED_KINDS:
            raise MiniCError(ErrorVal('NotImplemented', f'variables of type {type_spec!r}'))
        if kind == 'array':
            # Array parameters decay to a pointer to their first element.
            type_spec = TypeSpec.pointer(type_spec.elem)
        frame.bind_stack(name, type_spec, self.cast(value, type_spec))

    def declare_array(self, frame: Frame, type_spec: TypeSpec, name: str,
                      init: Optional[Node]) -> None:
        elem = type_spec.elem
        if not is_scalar(elem) or elem.kind == 'void' or elem.kind in UNSUPPORTED_KINDS:
            raise MiniCError(ErrorVal('NotImplemented', f'arrays of {elem!r}'))
        if init is not None and not isinstance(init, ArrayInit):
            raise MiniCError(ErrorVal('InvalidOperation', 'Array definition only {....} template'))
        elements = init.elements if init is not None else []
        length = type_spec.length or len(elements)
        if len(elements) > length:
            raise MiniCError(ErrorVal(
                'InvalidOperation', f'too many initializers for {name}: {len(elements)} > {length}'))
        width = size_of(elem)
        start = frame.allocate(length * width)
        for i, expr in enumerate(elements):
            _, value = self.evaluate(expr, frame)
            frame.store(frame.stack, start + i * width, elem, self.cast(value, elem))
        frame.bind_stack(name, TypeSpec.pointer(elem), Int32Val(start))

    # Assignment
    def assign(self, node: Assign, frame: Frame) -> None:
        target = node.target
        _, value = self.evaluate(node.value, frame)
        if isinstance(target, Ident):
            var = frame.lookup(target.name)
            frame.write_var(var, self.cast(value, var.var_type))
        elif isinstance(target, UnaryOp) and target.op == '*' and isinstance(target.operand, Ident):
            pointee, addr = self.pointer_target(target.operand.name, frame)
            frame.store(frame.stack, addr, pointee, self.cast(value, pointee))
        elif isinstance(target, Index):
            elem, addr = self.element_address(target, frame)
            frame.store(frame.stack, addr, elem, self.cast(value, elem))
        else:
            raise MiniCError(ErrorVal('NotImplemented', f'assignment to {type(target).__name__}'))
        if self.debug_level >= 2:
            self.debug(f"assign {target} <- {to_string(value)}")

    # Expressions
    def evaluate(self, node: Node, frame: Frame) -> Tuple[TypeSpec, Any]:
        """Evaluate an expression to a (type, value) pair."""
        if isinstance(node, Const):
            return self.eval_const(node)
        if isinstance(node, Ident):
            var = frame.lookup(node.name)
            return var.var_type, frame.read_var(var)
        if isinstance(node, BinaryOp):
            return self.eval_binary(node, frame)
        if isinstance(node, UnaryOp):
            return self.eval_unary(node, frame)
        if isinstance(node, Index):
            elem, addr = self.element_address(node, frame)
            return elem, frame.load(frame.stack, addr, elem)
        if isinstance(node, Call):
            return self.call_function(node, frame)
        if isinstance(node, ArrayInit):
            raise MiniCError(ErrorVal('InvalidOperation', 'array initializer outside a declaration'))
        raise MiniCError(ErrorVal('NotImplemented', f'expression {type(node).__name__}'))

    def eval_const(self, node: Const) -> Tuple[TypeSpec, Any]:
        if node.literal_type == 'int':
            return INT32, Int32Val(wrap_int(int(node.value), 32))
        if node.literal_type == 'char':
            code = ord(node.value) if isinstance(node.value, str) else int(node.value)
            if not 0 <= code <= 255:
                raise MiniCError(ErrorVal('TypeMismatch', f'character constant {node.value!r} is not a byte'))
            return TypeSpec.char(), CharVal(code)
        # float/void/null constants are never produced by the parser
        raise MiniCError(ErrorVal('Unreachable', f'{node.literal_type} constant'))

    def eval_binary(self, node: BinaryOp, frame: Frame) -> Tuple[TypeSpec, Any]:
        left_type, left = self.evaluate(node.left, frame)
        if node.op in ('&&', '||'):
            decided = self.cast(left, BOOL).value
            if node.op == '&&' and not decided:
                return BOOL, BoolVal(False)
            if node.op == '||' and decided:
                return BOOL, BoolVal(True)
        right_type, right = self.evaluate(node.right, frame)
        raw = self.apply_binary_op(node.op, left, right)
        try:
            common = promote(left_type, right_type)
        except TypeError as e:
            raise MiniCError(ErrorVal('TypeMismatch', str(e)))
        result = self.cast(raw, common)
        if self.debug_level >= 3:
            self.debug(f"{to_string(left)} {node.op} {to_string(right)} -> {to_string(result)}: {common!r}")
        return common, result

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        if op in ('/', '%'):
            if self.cast(b, INT32).value == 0:
                raise MiniCError(ErrorVal('DivisionByZero', f'right operand of {op} is zero'))
        x = self.cast(a, INT32).value
        y = self.cast(b, INT32).value
        if op in ARITH_OPS:
            return Int32Val(wrap_int(ARITH_OPS[op](x, y), 32))
        if op in COMPARE_OPS:
            return BoolVal(COMPARE_OPS[op](x, y))
        if op == '&&':
            # Only reached when the left operand did not decide the result.
            return BoolVal(y != 0)
        if op == '||':
            return BoolVal(y == 0)
        raise MiniCError(ErrorVal('NotImplemented', f'binary operator {op}'))

    def eval_unary(self, node: UnaryOp, frame: Frame) -> Tuple[TypeSpec, Any]:
        op, operand = node.op, node.operand
        if op == '&':
            if not isinstance(operand, Ident):
                raise MiniCError(ErrorVal(
                    'InvalidOperation', 'the address can only be taken from the variable name'))
            var = frame.lookup(operand.name)
            if isinstance(var, HeapVar):
                raise MiniCError(ErrorVal('NotImplemented', f'address of heap variable {operand.name}'))
            return INT32, Int32Val(var.addr_in_stack)
        if op == '*':
            if isinstance(operand, Index):
                raise MiniCError(ErrorVal('NotImplemented', 'dereference of an indexed expression'))
            if not isinstance(operand, Ident):
                raise MiniCError(ErrorVal('InvalidOperation', 'only a pointer variable can be dereferenced'))
            pointee, addr = self.pointer_target(operand.name, frame)
            return pointee, frame.load(frame.stack, addr, pointee)
        if op == '-':
            _, value = self.evaluate(operand, frame)
            return INT32, Int32Val(wrap_int(-self.cast(value, INT32).value, 32))
        if op == '!':
            _, value = self.evaluate(operand, frame)
            return BOOL, BoolVal(not self.cast(value, BOOL).value)
        raise MiniCError(ErrorVal('NotImplemented', f'unary operator {op}'))

    # Addressing
    def pointer_target(self, name: str, frame: Frame) -> Tuple[TypeSpec, int]:
        """Pointee type and stack offset held by the pointer variable `name`."""
        var = frame.lookup(name)
        if isinstance(var, HeapVar):
            raise MiniCError(ErrorVal('NotImplemented', f'dereference of heap variable {name}'))
        if var.var_type.kind != 'pointer':
            raise MiniCError(ErrorVal('InvalidOperation', f'dereference only pointer, {name} is {var.var_type!r}'))
        return var.var_type.elem, frame.read_var(var).value

    def element_address(self, node: Index, frame: Frame) -> Tuple[TypeSpec, int]:
        if not isinstance(node.target, Ident):
            raise MiniCError(ErrorVal('NotImplemented', 'only a named pointer can be indexed'))
        _, index = self.evaluate(node.index, frame)
        index = self.cast(index, INT32).value
        name = node.target.name
        var = frame.lookup(name)
        if isinstance(var, HeapVar):
            raise MiniCError(ErrorVal('NotImplemented', f'indexing heap variable {name}'))
        ptr_type = var.var_type
        if ptr_type.kind != 'pointer' or not is_scalar(ptr_type.elem):
            raise MiniCError(ErrorVal(
                'InvalidOperation', f'Only a pointer to a scalar can be indexed, {name} is {ptr_type!r}'))
        base = frame.read_var(var).value
        return ptr_type.elem, base + index * size_of(ptr_type.elem)


def run_program(source: str, debug_level: int = 0, stack_size: int = DEFAULT_STACK_SIZE) -> Any:
    """Parse and run a C source string, returning the value of main."""
    program = parse_program(source)
    interpreter = Interpreter(debug_level=debug_level, stack_size=stack_size)
    return interpreter.run(program)


def run_file(file_path: str, debug_level: int = 0, stack_size: int = DEFAULT_STACK_SIZE) -> Any:
    """Run a C source file from disk."""
    source = pathlib.Path(file_path).read_text(encoding='utf-8')
    return run_program(source, debug_level=debug_level, stack_size=stack_size)
