"""CLI entry point for the minic interpreter.

Usage:
    python -m minic [-v|-vv|-vvv] [--stack-size N] <program.c>
    python -m minic [-v...] --emit-ast <program.c>
    python -m minic [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --stack-size  Bytes of stack given to every call frame (default 1024)
  --emit-ast    Parse the given C file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. On success the value returned by `main`
is printed; on failure the error is printed to stderr and the exit code
is 1.
"""

import argparse
import json
import sys
from pathlib import Path

from .ast_json import ast_to_obj, ast_from_obj
from .errors import MiniCError, ParseError
from .frame import DEFAULT_STACK_SIZE
from .interpreter import Interpreter
from .parser import parse_program
from .types import to_string


def _read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _parse(path: Path):
    try:
        return parse_program(_read_source(path))
    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="minic C-subset interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--stack-size', type=int, default=DEFAULT_STACK_SIZE,
                        help='bytes of stack per call frame')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='C_FILE', help='emit AST JSON for the given C file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='C program file to execute')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        program = _parse(program_file)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(program), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    if args.ast:
        program = ast_from_obj(json.loads(_read_source(Path(args.ast))))
    else:
        if not args.program:
            parser.error('missing program file; or use --emit-ast/--ast')
        program = _parse(Path(args.program))

    interpreter = Interpreter(debug_level=args.v, stack_size=args.stack_size)
    try:
        result = interpreter.run(program)
    except MiniCError as e:
        print(f"Runtime error: {e.err.name}: {e.err.message}", file=sys.stderr)
        sys.exit(1)
    print(to_string(result))


if __name__ == '__main__':
    main()
