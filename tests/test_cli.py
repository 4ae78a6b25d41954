import json
from pathlib import Path

import pytest

from minic.__main__ import main


EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_run_prints_main_result(capsys):
    main([str(EXAMPLES / 'factorial.c')])
    assert capsys.readouterr().out.strip() == '3628800'


def test_runtime_error_exits_with_status_one(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([str(EXAMPLES / 'division_by_zero.c')])
    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith('Runtime error: DivisionByZero')


def test_parse_error_exits_with_status_one(tmp_path, capsys):
    source = tmp_path / 'broken.c'
    source.write_text('int main() { return 1 }', encoding='utf-8')
    with pytest.raises(SystemExit) as excinfo:
        main([str(source)])
    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith('Parse error:')


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit):
        main([str(tmp_path / 'nope.c')])
    assert 'not found' in capsys.readouterr().err


def test_stack_size_option(capsys):
    with pytest.raises(SystemExit):
        main(['--stack-size', '16', str(EXAMPLES / 'array_assign.c')])
    assert 'StackOverflow' in capsys.readouterr().err


def test_emit_ast_then_run_it(tmp_path, capsys):
    source = tmp_path / 'prog.c'
    source.write_text((EXAMPLES / 'bubble_sort.c').read_text(encoding='utf-8'), encoding='utf-8')
    main(['--emit-ast', str(source)])
    out_path = Path(capsys.readouterr().out.strip())
    assert out_path == tmp_path / 'prog.c.ast.json'
    with open(out_path, encoding='utf-8') as f:
        assert json.load(f)['type'] == 'Program'

    main(['--ast', str(out_path)])
    assert capsys.readouterr().out.strip() == '12345'


def test_verbose_writes_debug_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(['-v', str(EXAMPLES / 'factorial.c')])
    capsys.readouterr()
    trace = (tmp_path / 'debug.txt').read_text()
    assert 'enter main' in trace
    assert 'enter factorial' in trace
