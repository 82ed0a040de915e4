"""
Runtime values and operator semantics for the couch language.

Classes:
    Value: Tagged runtime value (integer, float, bool, string, unit, tuple, array, function).
    Builtin: A native function bound in the outermost scope.
    OperationError: Raised by value operations; the evaluator attaches a source position.

Semantics:
    - `+ - * /` work on two integers or two floats, never mixed; `+` also concatenates
      two strings. Integers are signed 64-bit, overflow is an error, and integer division
      truncates toward zero. Division by zero is an error for both numeric kinds, and a
      float result that is not finite is a "float overflow" error.
    - `==` and `!=` compare structurally across all kinds and never fail; values of
      different kinds are simply unequal (so `1 == 1.0` is false).
    - `in` / `not in` test membership in arrays and tuples, and substrings in strings.
    - Indexing takes an integer into a string (one-character string), tuple or array.
"""

import math
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from couch.couch_constants import INT_MAX, INT_MIN, operator_symbols

INTEGER = "integer"
FLOAT = "float"
BOOL = "bool"
STRING = "string"
UNIT = "unit"
TUPLE = "tuple"
ARRAY = "array"
FUNCTION = "function"


class OperationError(Exception):
    """A runtime failure of a value operation, not yet tied to a source position."""


class Value:
    """A couch runtime value.

    Attributes:
        kind (str): Type tag, also used verbatim in error messages.
        data (Any): The Python payload. Tuples and arrays hold a list of Values,
            functions hold a Builtin, unit holds None.
    """

    def __init__(self, kind: str, data: Any = None) -> None:
        self.kind = kind
        self.data = data

    @classmethod
    def integer(cls, value: int) -> "Value":
        return cls(INTEGER, checked_int(value))

    @classmethod
    def float_(cls, value: float) -> "Value":
        return cls(FLOAT, float(value))

    @classmethod
    def boolean(cls, value: bool) -> "Value":
        return cls(BOOL, bool(value))

    @classmethod
    def string(cls, value: str) -> "Value":
        return cls(STRING, value)

    @classmethod
    def unit(cls) -> "Value":
        return cls(UNIT)

    @classmethod
    def tuple_(cls, items: list["Value"]) -> "Value":
        return cls(TUPLE, list(items))

    @classmethod
    def array(cls, items: list["Value"]) -> "Value":
        return cls(ARRAY, list(items))

    @classmethod
    def function(cls, builtin: "Builtin") -> "Value":
        return cls(FUNCTION, builtin)

    @classmethod
    def from_python(cls, obj: Any) -> "Value":
        """Wraps a plain Python object; tuples and lists convert recursively."""
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls.unit()
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, int):
            return cls.integer(obj)
        if isinstance(obj, float):
            return cls.float_(obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, tuple):
            return cls.tuple_([cls.from_python(o) for o in obj])
        if isinstance(obj, list):
            return cls.array([cls.from_python(o) for o in obj])
        raise TypeError(f"Cannot convert {type(obj).__name__} to a couch value")

    def to_python(self) -> Any:
        if self.kind == TUPLE:
            return tuple(v.to_python() for v in self.data)
        if self.kind == ARRAY:
            return [v.to_python() for v in self.data]
        return self.data

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Value):
            return False
        if self.kind != other.kind:
            return False
        if self.kind == FUNCTION:
            return self.data is other.data
        return bool(self.data == other.data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Value({self.kind}, {self.data!r})"

    def __str__(self) -> str:
        return self.display()

    def display(self) -> str:
        """Renders the value the way it would be written in couch source."""
        if self.kind == BOOL:
            return "true" if self.data else "false"
        if self.kind == STRING:
            return f'"{escape_string(self.data)}"'
        if self.kind == UNIT:
            return "()"
        if self.kind == TUPLE:
            inner = ", ".join(v.display() for v in self.data)
            return f"({inner},)" if len(self.data) == 1 else f"({inner})"
        if self.kind == ARRAY:
            return "[" + ", ".join(v.display() for v in self.data) + "]"
        if self.kind == FUNCTION:
            return f"<builtin {self.data.name}>"
        if self.kind == FLOAT:
            return format_float(self.data)
        return repr(self.data)

    def text(self) -> str:
        """Like display(), but strings render as their raw contents."""
        return self.data if self.kind == STRING else self.display()


def format_float(value: float) -> str:
    """Renders a float as a couch literal: plain digits with a fraction, no exponent."""
    text = repr(value)
    if "e" in text:
        text = format(Decimal(text), "f")
    if "." not in text:
        text += ".0"
    return text


def escape_string(source: str) -> str:
    out = []
    for ch in source:
        if ch == '"':
            out.append('\\"')
        elif ch == "\\":
            out.append("\\\\")
        elif ch == "\0":
            out.append("\\0")
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\r":
            out.append("\\r")
        else:
            out.append(ch)
    return "".join(out)


def checked_int(value: int) -> int:
    if value < INT_MIN or value > INT_MAX:
        raise OperationError("integer overflow")
    return value


def _truncating_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


_INT_OPS: dict[str, Callable[[int, int], int]] = {
    "ADD": lambda a, b: a + b,
    "SUB": lambda a, b: a - b,
    "MUL": lambda a, b: a * b,
    "DIV": _truncating_div,
}

_FLOAT_OPS: dict[str, Callable[[float, float], float]] = {
    "ADD": lambda a, b: a + b,
    "SUB": lambda a, b: a - b,
    "MUL": lambda a, b: a * b,
    "DIV": lambda a, b: a / b,
}


def no_implementation(op: str, left: Value, right: Value) -> OperationError:
    return OperationError(
        f"no implementation exists for {left.kind} {operator_symbols[op]} {right.kind}"
    )


def arithmetic(op: str, left: Value, right: Value) -> Value:
    """Applies `+ - * /` (op is ADD, SUB, MUL or DIV)."""
    if left.kind == INTEGER and right.kind == INTEGER:
        if op == "DIV" and right.data == 0:
            raise OperationError("division by zero")
        return Value.integer(_INT_OPS[op](left.data, right.data))
    if left.kind == FLOAT and right.kind == FLOAT:
        if op == "DIV" and right.data == 0.0:
            raise OperationError("division by zero")
        result = _FLOAT_OPS[op](left.data, right.data)
        if not math.isfinite(result):
            raise OperationError("float overflow")
        return Value.float_(result)
    if op == "ADD" and left.kind == STRING and right.kind == STRING:
        return Value.string(left.data + right.data)
    raise no_implementation(op, left, right)


def contains(op: str, item: Value, container: Value) -> bool:
    if container.kind in (ARRAY, TUPLE):
        return any(item == v for v in container.data)
    if container.kind == STRING and item.kind == STRING:
        return item.data in container.data
    raise no_implementation(op, item, container)


def binary_op(op: str, left: Value, right: Value) -> Value:
    """Applies a non-short-circuiting binary operator."""
    if op in _INT_OPS:
        return arithmetic(op, left, right)
    if op == "EQ":
        return Value.boolean(left == right)
    if op == "NE":
        return Value.boolean(left != right)
    if op == "IN":
        return Value.boolean(contains(op, left, right))
    if op == "NOT_IN":
        return Value.boolean(not contains(op, left, right))
    raise ValueError(f"Unknown binary operator: {op!r}")


def unary_op(op: str, operand: Value) -> Value:
    if op == "NEG":
        if operand.kind == INTEGER:
            return Value.integer(-operand.data)
        if operand.kind == FLOAT:
            return Value.float_(-operand.data)
        raise OperationError(f"expected number, got {operand.kind}")
    if op == "NOT":
        if operand.kind == BOOL:
            return Value.boolean(not operand.data)
        raise OperationError(f"expected bool, got {operand.kind}")
    raise ValueError(f"Unknown unary operator: {op!r}")


def index_value(subject: Value, index: Value) -> Value:
    if subject.kind not in (STRING, TUPLE, ARRAY) or index.kind != INTEGER:
        raise OperationError(f"cannot index into {subject.kind} with {index.kind}")
    i = index.data
    if i < 0 or i >= len(subject.data):
        raise OperationError(
            f"index {i} out of range for {subject.kind} of length {len(subject.data)}"
        )
    if subject.kind == STRING:
        return Value.string(subject.data[i])
    return subject.data[i]


class Builtin:
    """A native function.

    Attributes:
        name (str): The identifier it is bound to.
        arity (int | None): Exact argument count, or None for variadic.
        func (Callable): Implementation taking a list of Values and returning a Value.
    """

    def __init__(
        self, name: str, arity: int | None, func: Callable[[list[Value]], Value]
    ) -> None:
        self.name = name
        self.arity = arity
        self.func = func

    def call(self, args: list[Value]) -> Value:
        if self.arity is not None and len(args) != self.arity:
            raise OperationError(
                f"{self.name}() takes {self.arity} argument(s), got {len(args)}"
            )
        return self.func(args)

    def __repr__(self) -> str:
        return f"Builtin({self.name})"


def _len(args: list[Value]) -> Value:
    (subject,) = args
    if subject.kind not in (STRING, TUPLE, ARRAY):
        raise OperationError(f"len() expects string, tuple or array, got {subject.kind}")
    return Value.integer(len(subject.data))


def _print(args: list[Value]) -> Value:
    print(" ".join(a.text() for a in args))
    return Value.unit()


BUILTINS: dict[str, Builtin] = {
    b.name: b
    for b in (
        Builtin("len", 1, _len),
        Builtin("str", 1, lambda args: Value.string(args[0].text())),
        Builtin("type", 1, lambda args: Value.string(args[0].kind)),
        Builtin("print", None, _print),
    )
}


__all__ = [
    "ARRAY",
    "BOOL",
    "BUILTINS",
    "FLOAT",
    "FUNCTION",
    "INTEGER",
    "STRING",
    "TUPLE",
    "UNIT",
    "Builtin",
    "OperationError",
    "Value",
    "arithmetic",
    "binary_op",
    "escape_string",
    "format_float",
    "index_value",
    "unary_op",
]
