from pathlib import Path

import pytest

from minic.parser import parse_program


EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


@pytest.fixture
def load_example():
    def load(name):
        with open(EXAMPLES / name, 'r', encoding='utf-8') as f:
            return parse_program(f.read())
    return load
