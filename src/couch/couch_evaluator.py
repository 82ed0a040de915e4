"""
Tree-walking evaluator for the couch language.

The evaluator reduces a list of statement nodes to a single Value. Scoping is a
depth-tagged symbol list:

    - `let` appends a symbol tagged with the current depth
    - lookups scan from the most recent symbol backwards, so inner scopes shadow outer
      ones and a later `let` at the same depth supersedes an earlier one
    - entering a block increments the depth; leaving it decrements the depth and evicts
      every symbol tagged deeper than the new depth

Builtin functions (`len`, `str`, `type`, `print`) are bound at depth 0 as function
bindings and cannot be assigned to.

Runtime errors are raised as `CouchError` (phase "runtime") and short-circuit the
whole evaluation. The module-level `evaluate()` returns them instead of raising.
Evaluating a tree that still contains parser error nodes is a caller bug and raises
`ValueError`.
"""

from __future__ import annotations

from couch.couch_ast import ASTNode, contains_errors
from couch.couch_errors import RUNTIME, CouchError
from couch.couch_values import (
    BOOL,
    BUILTINS,
    FUNCTION,
    OperationError,
    Value,
    binary_op,
    index_value,
    unary_op,
)


class Symbol:
    """One entry of the symbol list.

    Attributes:
        name (str): Identifier.
        value (Value): Current value.
        mutable (bool): Declared with `mut`.
        depth (int): Scope depth the symbol was declared at.
        is_function (bool): Builtin function binding.
    """

    def __init__(
        self,
        name: str,
        value: Value,
        mutable: bool,
        depth: int,
        is_function: bool = False,
    ) -> None:
        self.name = name
        self.value = value
        self.mutable = mutable
        self.depth = depth
        self.is_function = is_function

    def __repr__(self) -> str:
        flag = "mut " if self.mutable else ""
        return f"Symbol({flag}{self.name}={self.value!r} @{self.depth})"


class ReturnSignal(Exception):
    """Unwinds nested blocks when a `return` statement runs."""

    def __init__(self, value: Value) -> None:
        super().__init__("return")
        self.value = value


class Evaluator:
    """Evaluates couch ASTs.

    One instance keeps its outermost scope between `evaluate_statements` calls, which
    lets an interactive session build on earlier input.
    """

    def __init__(self, builtins: bool = True) -> None:
        self.depth = 0
        self.symbols: list[Symbol] = []
        if builtins:
            for builtin in BUILTINS.values():
                self.symbols.append(
                    Symbol(builtin.name, Value.function(builtin), False, 0, True)
                )

    # Scope handling

    def enter_scope(self) -> None:
        self.depth += 1

    def leave_scope(self) -> None:
        self.unwind_to(self.depth - 1)

    def unwind_to(self, depth: int) -> None:
        """Drops every scope deeper than `depth` along with its symbols."""
        self.depth = depth
        self.symbols = [s for s in self.symbols if s.depth <= depth]

    def define(self, name: str, value: Value, mutable: bool) -> None:
        self.symbols.append(Symbol(name, value, mutable, self.depth))

    def lookup(self, name: str) -> Symbol | None:
        for symbol in reversed(self.symbols):
            if symbol.name == name:
                return symbol
        return None

    # Entry points

    def evaluate_statements(self, statements: list[ASTNode]) -> Value | None:
        """Evaluate statements in order; returns the last one's value, or None if empty.

        Raises:
            CouchError: On the first runtime error.
            ValueError: If the tree contains error nodes.
        """
        if contains_errors(statements):
            raise ValueError("cannot evaluate a tree that contains error nodes")
        result: Value | None = None
        depth = self.depth
        try:
            for statement in statements:
                try:
                    result = self.eval(statement)
                except RecursionError:
                    self.unwind_to(depth)
                    message = "expression nested too deeply"
                    raise self.error(message, statement) from None
        except ReturnSignal as signal:
            return signal.value
        return result

    def evaluate_expression(self, node: ASTNode) -> Value:
        result = self.evaluate_statements([node])
        if result is None:
            raise ValueError("expression produced no value")
        return result

    def error(self, message: str, node: ASTNode) -> CouchError:
        return CouchError(RUNTIME, message, node.line, node.col, node.index)

    def eval(self, node: ASTNode) -> Value:
        method = getattr(self, f"eval_{node.kind}", None)
        if method is None:
            raise ValueError(f"No evaluation rule for node kind {node.kind!r}")
        result: Value = method(node)
        return result

    # Node kinds

    def eval_integer(self, node: ASTNode) -> Value:
        return Value.integer(node.value)

    def eval_float(self, node: ASTNode) -> Value:
        return Value.float_(node.value)

    def eval_string(self, node: ASTNode) -> Value:
        return Value.string(node.value)

    def eval_bool(self, node: ASTNode) -> Value:
        return Value.boolean(node.value)

    def eval_unit(self, node: ASTNode) -> Value:
        return Value.unit()

    def eval_tuple(self, node: ASTNode) -> Value:
        return Value.tuple_([self.eval(c) for c in node.children])

    def eval_array(self, node: ASTNode) -> Value:
        return Value.array([self.eval(c) for c in node.children])

    def eval_identifier(self, node: ASTNode) -> Value:
        symbol = self.lookup(node.value)
        if symbol is None:
            raise self.error(f"undefined identifier '{node.value}'", node)
        return symbol.value

    def eval_unary(self, node: ASTNode) -> Value:
        operand = self.eval(node.children[0])
        try:
            return unary_op(node.value, operand)
        except OperationError as e:
            raise self.error(str(e), node) from e

    def eval_binary(self, node: ASTNode) -> Value:
        op = node.value
        left_node, right_node = node.children
        if op in ("AND", "OR"):
            return self.eval_logical(op, left_node, right_node)
        left = self.eval(left_node)
        right = self.eval(right_node)
        try:
            return binary_op(op, left, right)
        except OperationError as e:
            raise self.error(str(e), node) from e

    def eval_logical(self, op: str, left_node: ASTNode, right_node: ASTNode) -> Value:
        keyword = op.lower()
        left = self.eval(left_node)
        if left.kind != BOOL:
            raise self.error(f"`{keyword}` expects bool, got {left.kind}", left_node)
        if (op == "AND" and not left.data) or (op == "OR" and left.data):
            return left
        right = self.eval(right_node)
        if right.kind != BOOL:
            raise self.error(f"`{keyword}` expects bool, got {right.kind}", right_node)
        return right

    def eval_call(self, node: ASTNode) -> Value:
        callee = self.eval(node.value)
        if callee.kind != FUNCTION:
            raise self.error(f"cannot call value of type {callee.kind}", node)
        args = [self.eval(a) for a in node.children]
        try:
            return callee.data.call(args)
        except OperationError as e:
            raise self.error(str(e), node) from e

    def eval_index(self, node: ASTNode) -> Value:
        subject = self.eval(node.children[0])
        index = self.eval(node.children[1])
        try:
            return index_value(subject, index)
        except OperationError as e:
            raise self.error(str(e), node) from e

    def eval_block(self, node: ASTNode) -> Value:
        self.enter_scope()
        try:
            for statement in node.children:
                self.eval(statement)
            if node.value is None:
                return Value.unit()
            return self.eval(node.value)
        finally:
            self.leave_scope()

    def eval_if(self, node: ASTNode) -> Value:
        condition_node, then_block = node.children
        condition = self.eval(condition_node)
        if condition.kind != BOOL:
            raise self.error(f"expected bool, got {condition.kind}", condition_node)
        if condition.data:
            return self.eval(then_block)
        if node.else_children:
            return self.eval(node.else_children[0])
        return Value.unit()

    def eval_let(self, node: ASTNode) -> Value:
        value = self.eval(node.children[0])
        self.define(node.value, value, node.mutable)
        return Value.unit()

    def eval_assign(self, node: ASTNode) -> Value:
        target, right_node = node.children
        name = target.value
        symbol = self.lookup(name)
        if symbol is None:
            raise self.error(f"cannot assign to undeclared identifier '{name}'", target)
        if symbol.is_function:
            raise self.error(f"cannot assign to function '{name}'", target)
        if not symbol.mutable:
            raise self.error(f"identifier '{name}' is not mutable", target)
        right = self.eval(right_node)
        if node.value == "ASSIGN":
            symbol.value = right
            return Value.unit()
        try:
            symbol.value = binary_op(node.value, symbol.value, right)
        except OperationError as e:
            raise self.error(str(e), node) from e
        return Value.unit()

    def eval_return(self, node: ASTNode) -> Value:
        value = self.eval(node.children[0]) if node.children else Value.unit()
        raise ReturnSignal(value)

    def eval_error(self, node: ASTNode) -> Value:
        raise ValueError(f"cannot evaluate error node: {node.value}")


def evaluate(
    statements: list[ASTNode], evaluator: Evaluator | None = None
) -> Value | CouchError | None:
    """Evaluate `statements`, returning the resulting Value or the runtime error."""
    evaluator = evaluator or Evaluator()
    try:
        return evaluator.evaluate_statements(statements)
    except CouchError as e:
        return e


__all__ = ["Evaluator", "ReturnSignal", "Symbol", "evaluate"]
