from typing import Any
from minic.types import ErrorVal


class MiniCError(Exception):
    """Exception type used to propagate evaluator errors."""
    def __init__(self, err: ErrorVal):
        super().__init__(f"MiniCError: {err.name}: {err.message}")
        self.err = err

    @property
    def kind(self) -> str:
        return self.err.name


class ParseError(Exception):
    """Raised when source text cannot be turned into a Program."""
    def __init__(self, message: str, cause: Any = None):
        super().__init__(message)
        self.cause = cause
