"""Parser for the minic C subset.

The source text is fed into a Lark LALR parser configured with a grammar
for the supported subset of C. The resulting parse tree is transformed
into the AST defined in `minic.ast` by `ASTTransformer`.

`parse_program` is the public entry point and returns a `Program` node
holding every function definition of the translation unit.
"""

from __future__ import annotations

import ast as py_ast

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedInput, VisitError

from .ast import (
    Program, FuncDecl, FuncParam, Block, VarDecl, Assign, ReturnStmt,
    IfStmt, WhileStmt, ForStmt, BreakStmt, ContinueStmt, ExprStmt,
    Const, Ident, BinaryOp, UnaryOp, Index, Call, ArrayInit,
)
from .errors import ParseError
from .types import TypeSpec


BASE_TYPES = {
    'int': 'int32',
    'int32_t': 'int32',
    'int16_t': 'int16',
    'int8_t': 'int8',
    'uint32_t': 'uint32',
    'uint16_t': 'uint16',
    'uint8_t': 'uint8',
    'char': 'char',
    'bool': 'bool',
    'float': 'float',
    'void': 'void',
}


C_GRAMMAR = r"""
    ?start: program
    program: func_decl*

    func_decl: type_spec IDENT "(" [param_list] ")" block
    param_list: param ("," param)*
    param: type_spec IDENT [array_suffix]

    type_spec: base_type STAR*
    !base_type: "int" | "int32_t" | "int16_t" | "int8_t"
              | "uint32_t" | "uint16_t" | "uint8_t"
              | "char" | "bool" | "float" | "void"
    array_suffix: "[" [INT_LIT] "]"

    // Statements
    block: "{" statement* "}"

    ?statement: var_decl ";"
              | assign ";"
              | expr_stmt ";"
              | "return" [expression] ";"                      -> return_stmt
              | "if" "(" expression ")" statement ["else" statement] -> if_stmt
              | "while" "(" expression ")" statement           -> while_stmt
              | "for" "(" [for_init] ";" [expression] ";" [for_step] ")" statement -> for_stmt
              | "break" ";"                                    -> break_stmt
              | "continue" ";"                                 -> continue_stmt
              | block
              | ";"                                            -> empty_stmt

    var_decl: type_spec IDENT [array_suffix] ["=" initializer]
    ?initializer: expression
                | array_init
    array_init: "{" "}"
              | "{" expression ("," expression)* "}"

    assign: expression "=" expression
    expr_stmt: expression

    ?for_init: var_decl
             | assign
    ?for_step: assign
             | expression

    // Expressions, lowest precedence first
    ?expression: logic_or

    ?logic_or: logic_and
             | logic_or OR logic_and                  -> binary
    ?logic_and: equality
              | logic_and AND equality                -> binary
    ?equality: relational
             | equality (EQ | NE) relational          -> binary
    ?relational: shift
               | relational (LT | LE | GT | GE) shift -> binary
    ?shift: additive
          | shift (SHL | SHR) additive                -> binary
    ?additive: multiplicative
             | additive (PLUS | MINUS) multiplicative -> binary
    ?multiplicative: unary
                   | multiplicative (STAR | SLASH | PERCENT) unary -> binary

    ?unary: postfix
          | (AMP | STAR | MINUS | BANG) unary         -> unary_op

    ?postfix: primary
            | postfix "[" expression "]"              -> index

    ?primary: INT_LIT                                 -> int_const
            | CHAR_LIT                                -> char_const
            | IDENT "(" [arg_list] ")"                -> call
            | IDENT                                   -> var
            | "(" expression ")"

    arg_list: expression ("," expression)*

    // Tokens
    OR: "||"
    AND: "&&"
    EQ: "=="
    NE: "!="
    LE: "<="
    GE: ">="
    LT: "<"
    GT: ">"
    SHL: "<<"
    SHR: ">>"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    PERCENT: "%"
    AMP: "&"
    BANG: "!"

    INT_LIT: /[0-9]+/
    CHAR_LIT: /'(\\.|[^'\\])'/

    %import common.CNAME -> IDENT
    %import common.WS
    %ignore WS

    // Comments and preprocessor lines
    LINE_COMMENT: /\/\/[^\n]*/
    %ignore LINE_COMMENT
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//
    %ignore BLOCK_COMMENT
    PREPROCESSOR: /#[^\n]*/
    %ignore PREPROCESSOR
"""


C_PARSER = Lark(
    C_GRAMMAR,
    parser='lalr',
    lexer='contextual',
    propagate_positions=True,
    maybe_placeholders=True,
)


@v_args(inline=True)
class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def program(self, *functions):
        return Program(functions=list(functions))

    def func_decl(self, return_type, name, params, body):
        return FuncDecl(return_type=return_type, name=str(name), params=params or [], body=body)

    def param_list(self, *params):
        return list(params)

    def param(self, type_spec, name, length):
        if length is not None:
            type_spec = TypeSpec.array(type_spec, length)
        return FuncParam(type_spec, str(name))

    def type_spec(self, base, *stars):
        for _ in stars:
            base = TypeSpec.pointer(base)
        return base

    def base_type(self, token):
        return TypeSpec(BASE_TYPES[str(token)])

    def array_suffix(self, length):
        return int(length) if length is not None else 0

    # Statements
    def block(self, *statements):
        return Block(statements=list(statements))

    def var_decl(self, type_spec, name, length, init):
        if length is not None:
            type_spec = TypeSpec.array(type_spec, length)
        return VarDecl(type_spec=type_spec, name=str(name), init=init)

    def array_init(self, *elements):
        return ArrayInit(list(elements))

    def assign(self, target, value):
        return Assign(target=target, value=value)

    def expr_stmt(self, expr):
        return ExprStmt(expr)

    def return_stmt(self, value):
        return ReturnStmt(value)

    def if_stmt(self, condition, then_branch, else_branch):
        return IfStmt(condition, then_branch, else_branch)

    def while_stmt(self, condition, body):
        return WhileStmt(condition, body)

    def for_stmt(self, init, condition, step, body):
        if step is not None and not isinstance(step, Assign):
            step = ExprStmt(step)
        return ForStmt(init, condition, step, body)

    def break_stmt(self):
        return BreakStmt()

    def continue_stmt(self):
        return ContinueStmt()

    def empty_stmt(self):
        return Block(statements=[])

    # Expressions
    def binary(self, left, op, right):
        return BinaryOp(op=str(op), left=left, right=right)

    def unary_op(self, op, operand):
        return UnaryOp(op=str(op), operand=operand)

    def index(self, target, index):
        return Index(target=target, index=index)

    def int_const(self, token):
        return Const(int(token), 'int')

    def char_const(self, token):
        # Python literal syntax handles the escapes ('\n', '\0', '\\')
        try:
            value = py_ast.literal_eval(str(token))
        except (SyntaxError, ValueError) as e:
            raise ParseError(f"bad character constant {token} at line {token.line}", e) from e
        if len(value) != 1:
            raise ParseError(f"bad character constant {token} at line {token.line}")
        return Const(value, 'char')

    def call(self, name, args):
        return Call(name=str(name), args=args or [])

    def var(self, token):
        return Ident(str(token))

    def arg_list(self, *args):
        return list(args)


def parse_program(source: str) -> Program:
    """Parse C source code into an AST Program.

    Syntax errors are raised as ParseError with the position of the
    offending input.
    """
    try:
        tree = C_PARSER.parse(source)
    except UnexpectedInput as e:
        raise ParseError(f"syntax error at line {e.line}, column {e.column}", e) from e
    try:
        return ASTTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ParseError):
            raise e.orig_exc from e
        raise ParseError(str(e.orig_exc), e) from e
