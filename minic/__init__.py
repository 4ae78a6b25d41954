# minic package
# This package provides a parser and a byte-level evaluator for a subset of C.
from .interpreter import run_program, run_file, Interpreter
from .errors import MiniCError, ParseError
from .parser import parse_program

__all__ = [
    'run_program',
    'run_file',
    'Interpreter',
    'MiniCError',
    'ParseError',
    'parse_program',
]
