"""
Diagnostics shared by every stage of the couch pipeline.

Classes:
    Position: A source location (0-based character index, 1-based line and column).
    CouchError: A phase-tagged error. Lexer and parser errors are collected, runtime
        errors are raised by the evaluator.
    ErrorCollector: Ordered accumulator of non-fatal diagnostics.
"""

from collections.abc import Iterator
from typing import Any

LEXER = "lexer"
PARSER = "parser"
RUNTIME = "runtime"

_PHASE_NAMES = {
    LEXER: "LexerError",
    PARSER: "ParserError",
    RUNTIME: "RuntimeError",
}


class Position:
    """A location in the source text.

    Attributes:
        index (int): 0-based character offset.
        line (int): 1-based line number.
        col (int): 1-based column number.
    """

    def __init__(self, index: int = 0, line: int = 1, col: int = 1) -> None:
        self.index = index
        self.line = line
        self.col = col

    @classmethod
    def end_of(cls, text: str) -> "Position":
        """Returns the position just past the last character of `text`."""
        lines = text.split("\n")
        return cls(len(text), len(lines), len(lines[-1]) + 1)

    def __repr__(self) -> str:
        return f"Position({self.index}, {self.line}, {self.col})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Position)
            and self.index == other.index
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.index, self.line, self.col))


class CouchError(Exception):
    """An error raised or collected by one of the couch pipeline stages.

    Attributes:
        phase (str): One of "lexer", "parser" or "runtime".
        message (str): Human-readable description.
        line (int): 1-based line of the offending source.
        col (int): 1-based column of the offending source.
        index (int): 0-based character offset of the offending source.
    """

    def __init__(
        self, phase: str, message: str, line: int = 0, col: int = 0, index: int = 0
    ) -> None:
        if phase not in _PHASE_NAMES:
            raise ValueError(f"Unknown error phase: {phase!r}")
        super().__init__(message)
        self.phase = phase
        self.message = message
        self.line = line
        self.col = col
        self.index = index

    @classmethod
    def at(cls, phase: str, message: str, position: Position) -> "CouchError":
        return cls(phase, message, position.line, position.col, position.index)

    @property
    def kind(self) -> str:
        return _PHASE_NAMES[self.phase]

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}, at {self.line}:{self.col}"

    def __repr__(self) -> str:
        return f"CouchError({self.phase}, {self.message!r}, {self.line}, {self.col})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, CouchError)
            and self.phase == other.phase
            and self.message == other.message
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.phase, self.message, self.line, self.col))


class ErrorCollector:
    """Accumulates lexer and parser diagnostics without halting the pass."""

    def __init__(self) -> None:
        self.errors: list[CouchError] = []

    def add(self, phase: str, message: str, position: Position) -> CouchError:
        error = CouchError.at(phase, message, position)
        self.errors.append(error)
        return error

    def extend(self, errors: list[CouchError]) -> None:
        self.errors.extend(errors)

    def ordered(self) -> list[CouchError]:
        """Returns the diagnostics ordered by source position (stable per position)."""
        return sorted(self.errors, key=lambda e: e.index)

    def __len__(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def __iter__(self) -> Iterator[CouchError]:
        return iter(self.errors)


__all__ = ["LEXER", "PARSER", "RUNTIME", "CouchError", "ErrorCollector", "Position"]
