"""Abstract Syntax Tree (AST) definitions for the minic C subset.

The AST is the hand-off format between the front end and the evaluator.
A Program is an ordered list of function declarations; each function body
is a Block of statements built from the closed set of nodes below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Any, Union

from .types import TypeSpec


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


# Expressions

@dataclass
class Const(Node):
    value: Any
    literal_type: str  # 'int', 'char', 'float', 'void', 'null'


@dataclass
class Ident(Node):
    name: str


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str  # '&', '*', '-', '!'
    operand: Node


@dataclass
class Index(Node):
    target: Node
    index: Node


@dataclass
class Call(Node):
    name: str
    args: List[Node]


@dataclass
class ArrayInit(Node):
    """Brace-enclosed element list, only valid as an array initializer."""
    elements: List[Node]


# Statements

@dataclass
class Block(Node):
    statements: List[Node]


@dataclass
class VarDecl(Node):
    type_spec: TypeSpec
    name: str
    init: Optional[Union[Node, ArrayInit]] = None


@dataclass
class Assign(Node):
    target: Node  # Ident, UnaryOp('*', Ident) or Index
    value: Node


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]


@dataclass
class IfStmt(Node):
    condition: Node
    then_branch: Node
    else_branch: Optional[Node]


@dataclass
class WhileStmt(Node):
    condition: Node
    body: Node


@dataclass
class ForStmt(Node):
    init: Optional[Node]  # VarDecl, Assign or None
    condition: Optional[Node]
    step: Optional[Node]  # Assign, ExprStmt or None
    body: Node


@dataclass
class BreakStmt(Node):
    pass


@dataclass
class ContinueStmt(Node):
    pass


@dataclass
class ExprStmt(Node):
    expr: Node


# Declarations

@dataclass
class FuncParam:
    type_spec: TypeSpec
    name: str


@dataclass
class FuncDecl(Node):
    return_type: TypeSpec
    name: str
    params: List[FuncParam]
    body: Block


@dataclass
class Program(Node):
    functions: List[FuncDecl]
