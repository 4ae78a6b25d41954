import pytest

from minic.ast import (
    Program, FuncDecl, FuncParam, Block, VarDecl, Assign, ReturnStmt, IfStmt,
    WhileStmt, ForStmt, BreakStmt, ExprStmt, Const, Ident, BinaryOp, UnaryOp,
    Index, Call, ArrayInit,
)
from minic.errors import ParseError
from minic.parser import parse_program
from minic.types import TypeSpec


def body_of(source):
    program = parse_program(source)
    return program.functions[0].body.statements


def test_function_signature():
    program = parse_program("int16_t f(int8_t a, char *s, int32_t v[]) { return a; }")
    func = program.functions[0]
    assert isinstance(program, Program)
    assert func.name == 'f'
    assert func.return_type == TypeSpec.int16()
    assert func.params == [
        FuncParam(TypeSpec.int8(), 'a'),
        FuncParam(TypeSpec.pointer(TypeSpec.char()), 's'),
        FuncParam(TypeSpec.array(TypeSpec.int32()), 'v'),
    ]


def test_int_keyword_is_int32():
    program = parse_program("int main() { return 0; }")
    assert program.functions[0] == FuncDecl(
        TypeSpec.int32(), 'main', [], Block([ReturnStmt(Const(0, 'int'))]))


def test_declarations():
    stmts = body_of("""
        void main() {
            int32_t x;
            int8_t **pp = &p;
            int16_t a[4] = {1, 2};
            char s[] = {'h', '\\n'};
        }
    """)
    assert stmts[0] == VarDecl(TypeSpec.int32(), 'x', None)
    assert stmts[1] == VarDecl(
        TypeSpec.pointer(TypeSpec.pointer(TypeSpec.int8())), 'pp', UnaryOp('&', Ident('p')))
    assert stmts[2] == VarDecl(
        TypeSpec.array(TypeSpec.int16(), 4), 'a', ArrayInit([Const(1, 'int'), Const(2, 'int')]))
    assert stmts[3] == VarDecl(
        TypeSpec.array(TypeSpec.char()), 's', ArrayInit([Const('h', 'char'), Const('\n', 'char')]))


def test_precedence():
    [ret] = body_of("int main() { return 1 + 2 * 3 < 4 && -x || !y; }")
    product = BinaryOp('*', Const(2, 'int'), Const(3, 'int'))
    less = BinaryOp('<', BinaryOp('+', Const(1, 'int'), product), Const(4, 'int'))
    conj = BinaryOp('&&', less, UnaryOp('-', Ident('x')))
    assert ret == ReturnStmt(BinaryOp('||', conj, UnaryOp('!', Ident('y'))))


def test_left_associativity():
    [ret] = body_of("int main() { return 8 - 4 - 2; }")
    assert ret.value == BinaryOp('-', BinaryOp('-', Const(8, 'int'), Const(4, 'int')), Const(2, 'int'))


def test_pointer_and_index_targets():
    stmts = body_of("int main() { *p = a[i + 1]; v[0] = f(1, x); g(); }")
    assert stmts[0] == Assign(
        UnaryOp('*', Ident('p')),
        Index(Ident('a'), BinaryOp('+', Ident('i'), Const(1, 'int'))))
    assert stmts[1] == Assign(
        Index(Ident('v'), Const(0, 'int')), Call('f', [Const(1, 'int'), Ident('x')]))
    assert stmts[2] == ExprStmt(Call('g', []))


def test_control_flow():
    stmts = body_of("""
        int main() {
            if (x) if (y) return 1; else return 2;
            while (1) break;
            for (int i = 0; i < 3; i = i + 1) {}
            return;
        }
    """)
    inner = IfStmt(Ident('y'), ReturnStmt(Const(1, 'int')), ReturnStmt(Const(2, 'int')))
    assert stmts[0] == IfStmt(Ident('x'), inner, None)
    assert stmts[1] == WhileStmt(Const(1, 'int'), BreakStmt())
    assert stmts[2] == ForStmt(
        VarDecl(TypeSpec.int32(), 'i', Const(0, 'int')),
        BinaryOp('<', Ident('i'), Const(3, 'int')),
        Assign(Ident('i'), BinaryOp('+', Ident('i'), Const(1, 'int'))),
        Block([]),
    )
    assert stmts[3] == ReturnStmt(None)


def test_for_without_clauses():
    [loop] = body_of("int main() { for (;;) break; }")
    assert loop == ForStmt(None, None, None, BreakStmt())


def test_comments_and_includes_are_ignored():
    program = parse_program("""
        #include <stdint.h>
        // line comment
        /* block
           comment */
        int main() { return 0; /* trailing */ }
    """)
    assert [f.name for f in program.functions] == ['main']


@pytest.mark.parametrize('source', [
    "int main() { return 0 }",
    "int main( { }",
    "main() { return 0; }",
    "int main() { int = 3; }",
])
def test_syntax_errors(source):
    with pytest.raises(ParseError) as excinfo:
        parse_program(source)
    assert 'syntax error at line' in str(excinfo.value)


@pytest.mark.parametrize('literal', [r"'\q'", r"'\x'"])
def test_bad_character_escapes(literal):
    source = "int main() { char c = %s; return c; }" % literal
    with pytest.raises(ParseError) as excinfo:
        parse_program(source)
    assert 'bad character constant' in str(excinfo.value)


def test_character_escapes():
    [decl, _] = body_of(r"int main() { char c = '\0'; return c; }")
    assert decl.init == Const('\0', 'char')
