import pytest

from couch.couch_errors import (
    LEXER,
    PARSER,
    RUNTIME,
    CouchError,
    ErrorCollector,
    Position,
)


@pytest.mark.parametrize(
    "phase,kind",
    [(LEXER, "LexerError"), (PARSER, "ParserError"), (RUNTIME, "RuntimeError")],
)  # type: ignore[misc]
def test_error_rendering(phase: str, kind: str) -> None:
    error = CouchError(phase, "something broke", 3, 7, 20)
    assert error.kind == kind
    assert str(error) == f"{kind}: something broke, at 3:7"


def test_unknown_phase_is_rejected() -> None:
    with pytest.raises(ValueError):
        CouchError("linker", "nope")


def test_error_is_raisable_and_comparable() -> None:
    with pytest.raises(CouchError) as info:
        raise CouchError.at(RUNTIME, "division by zero", Position(4, 1, 5))
    assert info.value == CouchError(RUNTIME, "division by zero", 1, 5)
    assert info.value != CouchError(PARSER, "division by zero", 1, 5)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("", Position(0, 1, 1)),
        ("abc", Position(3, 1, 4)),
        ("a\nbc", Position(4, 2, 3)),
        ("a\n", Position(2, 2, 1)),
    ],
)  # type: ignore[misc]
def test_end_of_position(text: str, expected: Position) -> None:
    assert Position.end_of(text) == expected


def test_collector_orders_by_index() -> None:
    errors = ErrorCollector()
    assert not errors
    errors.add(PARSER, "second", Position(9, 1, 10))
    errors.add(LEXER, "first", Position(2, 1, 3))
    errors.extend([CouchError(LEXER, "third", 2, 1, 30)])
    assert len(errors) == 3
    assert [e.message for e in errors.ordered()] == ["first", "second", "third"]
    assert [e.message for e in errors] == ["second", "first", "third"]
