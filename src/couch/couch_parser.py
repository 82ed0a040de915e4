"""
couch Language Parser

Parses a couch token stream into structured abstract syntax trees (ASTs).

The parser is a one-token-lookahead recursive descent over a lazy token iterator: it
pulls exactly one token from the lexer each time it advances, so every diagnostic is
attached to the token that triggered it.

Precedence Ladder (lowest to highest)
-------------------------------------
1. assignment        `= += -= *= /=`   right-hand side is a full expression
2. logical or        `or`              loops, left-associative
3. logical and       `and`             loops, left-associative
4. equality          `== != in not in` right-recursive
5. additive          `+ -`             right-recursive
6. multiplicative    `* /`             right-recursive
7. unary prefix      `- ! not`         right-recursive
8. postfix           call `f(a)`, index `e[i]`
9. operand           literal, identifier, group/tuple/unit, array, block, if, let

Levels 4-6 call themselves on the right-hand side instead of looping, so same-precedence
chains associate to the right: `20 - 10 - 5` is `20 - (10 - 5)`.

Error Recovery
--------------
The parser never raises on malformed input. A local grammar violation becomes an
`error` ASTNode carrying the message and position, and the diagnostic is appended to
`Parser.errors`. A statement that consumes no tokens causes the offending token to be
skipped, so one pass always terminates and can report several problems.

Entry Points
------------
- `parse()`: Parse a full program into a list of top-level AST nodes.
- `parse_statement()`: Parse a single statement (let, return, or expression).
- `parse_expression()`: Parse a single expression starting at the assignment level.
- `parse_expr_entrypoint()`: Parse exactly one expression spanning the whole input.
- module `parse(tokens, text)`: Parse and merge lexer + parser diagnostics.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from couch.couch_ast import ASTNode
from couch.couch_constants import (
    INT_MAX,
    additive_ops,
    assignment_ops,
    equality_ops,
    multiplicative_ops,
    unary_ops,
)
from couch.couch_errors import PARSER, CouchError, ErrorCollector, Position
from couch.couch_lexer import Token, lex, unescape_string

# Expressions that end in `}` and may stand as statements without a `;`.
BLOCK_LIKE = frozenset({"block", "if"})


class Parser:
    """
    couch Parser Class

    Attributes
    ----------
    tokens : Iterator[Token]
        The lazily consumed token stream.
    text : str
        The source text the tokens were produced from.
    errors : ErrorCollector
        Syntactic diagnostics found so far.
    consumed : int
        Number of tokens consumed; used to detect statements that made no progress.
    """

    def __init__(self, tokens: Iterable[Token], text: str) -> None:
        self.tokens = iter(tokens)
        self.text = text
        self.errors = ErrorCollector()
        self.consumed = 0
        self._current = self._pull()

    def _pull(self) -> Token:
        tok = next(self.tokens, None)
        if tok is None or tok.type == "EOF":
            end = Position.end_of(self.text)
            return Token("EOF", "", end.line, end.col, end.index, 0)
        return tok

    def current(self) -> Token:
        return self._current

    def advance(self) -> Token:
        """Consumes the current token and returns it."""
        tok = self._current
        if tok.type != "EOF":
            self._current = self._pull()
            self.consumed += 1
        return tok

    def check(self, *types: str) -> bool:
        return self._current.type in types

    def match(self, *types: str) -> Token | None:
        if self._current.type in types:
            return self.advance()
        return None

    def describe(self, tok: Token | None = None) -> str:
        tok = tok or self._current
        if tok.type == "EOF":
            return "end of input"
        return f"`{tok.value}`"

    def error(
        self, message: str, position: Position | None = None, record: bool = True
    ) -> ASTNode:
        """Builds an error node, recording the diagnostic unless told otherwise."""
        position = position or self._current.position
        if record:
            self.errors.add(PARSER, message, position)
        return ASTNode.at("error", position, message)

    def expected(self, what: str) -> ASTNode:
        return self.error(f"expected {what}, got {self.describe()}")

    # Statements

    def parse(self) -> list[ASTNode]:
        """Parse a full couch program and return a list of top-level AST nodes.

        Input nested deeper than the interpreter stack allows is reported as a single
        error node; the rest of the input is still lexed so its diagnostics are kept.
        """
        try:
            statements, trailing = self.parse_sequence("EOF")
        except RecursionError:
            return [self.nested_too_deeply()]
        if trailing is not None:
            statements.append(trailing)
        return statements

    def nested_too_deeply(self) -> ASTNode:
        node = self.error("expression nested too deeply")
        while not self.check("EOF"):
            self.advance()
        return node

    def parse_sequence(self, closing: str) -> tuple[list[ASTNode], ASTNode | None]:
        """Parse statements up to (not including) `closing` or end of input.

        Returns the `;`-terminated statements and the trailing unterminated one, if any.
        """
        statements: list[ASTNode] = []
        trailing: ASTNode | None = None
        while not self.check(closing, "EOF"):
            if self.match("SEMICOLON"):
                continue
            before = self.consumed
            node = self.parse_statement()
            if self.consumed == before:
                self.advance()
            if self.match("SEMICOLON"):
                statements.append(node)
            elif self.check(closing):
                trailing = node
            elif node.is_error:
                statements.append(node)
                self.synchronize(closing)
            elif node.kind in BLOCK_LIKE:
                statements.append(node)
            else:
                statements.append(node)
                statements.append(self.expected("`;`"))
        return statements, trailing

    def synchronize(self, closing: str) -> None:
        """Skip tokens up to the next `;` or `closing` at the current nesting level."""
        depth = 0
        while not self.check("EOF"):
            if depth == 0 and self.check("SEMICOLON", closing):
                return
            tok = self.advance()
            if tok.type == "LBRACE":
                depth += 1
            elif tok.type == "RBRACE" and depth > 0:
                depth -= 1

    def parse_statement(self) -> ASTNode:
        tok = self.current()
        if tok.type == "LET":
            return self.parse_let()
        if tok.type == "RETURN":
            return self.parse_return()
        return self.parse_expression()

    def parse_let(self) -> ASTNode:
        """Parse `let [mut] name = expr` (the `;` belongs to the enclosing sequence)."""
        let_tok = self.advance()
        param = self.parse_parameter()
        if isinstance(param, ASTNode):
            return param
        mutable, name = param
        if not self.match("ASSIGN"):
            return self.expected("`=`")
        value = self.parse_expression()
        return ASTNode.at("let", let_tok.position, name.value, [value], mutable=mutable)

    def parse_parameter(self) -> tuple[bool, Token] | ASTNode:
        """Parse an optional `mut` followed by an identifier."""
        mutable = self.match("MUT") is not None
        name = self.match("IDENT")
        if name is None:
            return self.expected("identifier")
        return mutable, name

    def parse_return(self) -> ASTNode:
        ret_tok = self.advance()
        if self.check("SEMICOLON", "RBRACE", "EOF"):
            return ASTNode.at("return", ret_tok.position)
        return ASTNode.at("return", ret_tok.position, children=[self.parse_expression()])

    # Expressions

    def parse_expression(self) -> ASTNode:
        return self.parse_assignment()

    def parse_expr_entrypoint(self) -> ASTNode:
        """Parse one expression that must span the whole input."""
        try:
            expr = self.parse_expression()
        except RecursionError:
            return self.nested_too_deeply()
        if not self.check("EOF") and not expr.is_error:
            return self.expected("end of input")
        return expr

    def parse_assignment(self) -> ASTNode:
        left = self.parse_or()
        op_tok = self.current()
        if op_tok.type not in assignment_ops:
            return left
        self.advance()
        right = self.parse_assignment()
        if left.is_error:
            return left
        if left.kind != "identifier":
            return self.error("invalid assignment target", left.position)
        return ASTNode.at(
            "assign", left.position, assignment_ops[op_tok.type], [left, right]
        )

    def parse_or(self) -> ASTNode:
        left = self.parse_and()
        while self.match("OR"):
            right = self.parse_and()
            left = ASTNode.at("binary", left.position, "OR", [left, right])
        return left

    def parse_and(self) -> ASTNode:
        left = self.parse_equality()
        while self.match("AND"):
            right = self.parse_equality()
            left = ASTNode.at("binary", left.position, "AND", [left, right])
        return left

    def parse_equality(self) -> ASTNode:
        left = self.parse_add_subtract()
        tok = self.current()
        if tok.type in equality_ops:
            self.advance()
            op = equality_ops[tok.type]
        elif tok.type == "NOT":
            self.advance()
            if not self.match("IN"):
                return self.expected("`in` after `not`")
            op = "NOT_IN"
        else:
            return left
        right = self.parse_equality()
        return ASTNode.at("binary", left.position, op, [left, right])

    def parse_add_subtract(self) -> ASTNode:
        left = self.parse_multiply_divide()
        tok = self.current()
        if tok.type not in additive_ops:
            return left
        self.advance()
        right = self.parse_add_subtract()
        return ASTNode.at("binary", left.position, additive_ops[tok.type], [left, right])

    def parse_multiply_divide(self) -> ASTNode:
        left = self.parse_unary()
        tok = self.current()
        if tok.type not in multiplicative_ops:
            return left
        self.advance()
        right = self.parse_multiply_divide()
        return ASTNode.at(
            "binary", left.position, multiplicative_ops[tok.type], [left, right]
        )

    def parse_unary(self) -> ASTNode:
        tok = self.current()
        if tok.type not in unary_ops:
            return self.parse_postfix()
        self.advance()
        operand = self.parse_unary()
        return ASTNode.at("unary", tok.position, unary_ops[tok.type], [operand])

    def parse_postfix(self) -> ASTNode:
        node = self.parse_operand()
        if node.kind in BLOCK_LIKE or node.kind in ("let", "error"):
            return node
        while True:
            if self.match("LPAREN"):
                args = self.parse_items("RPAREN", "`)`")
                if isinstance(args, ASTNode):
                    return args
                node = ASTNode.at("call", node.position, node, args[0])
            elif self.match("LBRACK"):
                index = self.parse_expression()
                if index.is_error:
                    return index
                if not self.match("RBRACK"):
                    return self.expected("`]`")
                node = ASTNode.at("index", node.position, None, [node, index])
            else:
                return node

    def parse_items(
        self, closing: str, glyph: str
    ) -> tuple[list[ASTNode], bool] | ASTNode:
        """Parse `expr, expr, ...` up to and including `closing`.

        A trailing comma is permitted. Returns the items and whether any comma was
        seen, or an error node.
        """
        items: list[ASTNode] = []
        saw_comma = False
        while not self.check(closing):
            item = self.parse_expression()
            if item.is_error:
                return item
            items.append(item)
            if not self.match("COMMA"):
                break
            saw_comma = True
        if not self.match(closing):
            return self.expected(glyph)
        return items, saw_comma

    def parse_operand(self) -> ASTNode:
        tok = self.current()
        kind = tok.type

        if kind == "INTEGER":
            self.advance()
            # int() refuses very long digit strings, so compare lengths first
            digits = tok.value.lstrip("0") or "0"
            if len(digits) > len(str(INT_MAX)) or int(digits) > INT_MAX:
                return self.error(f"integer literal {tok.value} is out of range", tok.position)
            return ASTNode.at("integer", tok.position, int(digits))

        if kind == "FLOAT":
            self.advance()
            number = float(tok.value)
            if math.isinf(number):
                return self.error(f"float literal {tok.value} is out of range", tok.position)
            return ASTNode.at("float", tok.position, number)

        if kind == "STRING":
            self.advance()
            return ASTNode.at("string", tok.position, unescape_string(tok.value))

        if kind in ("TRUE", "FALSE"):
            self.advance()
            return ASTNode.at("bool", tok.position, kind == "TRUE")

        if kind == "IDENT":
            self.advance()
            return ASTNode.at("identifier", tok.position, tok.value)

        if kind == "LPAREN":
            return self.parse_group()
        if kind == "LBRACK":
            return self.parse_array()
        if kind == "LBRACE":
            return self.parse_block()
        if kind == "IF":
            return self.parse_if()
        if kind == "LET":
            return self.parse_let()

        if kind == "FN":
            self.advance()
            return self.error("function declarations are not supported", tok.position)

        if kind == "ERROR":
            # already reported by the lexer
            self.advance()
            return self.error(f"invalid token `{tok.value}`", tok.position, record=False)

        return self.expected("expression")

    def parse_group(self) -> ASTNode:
        """Parse `()`, `(expr)` or a tuple `(expr, ...)`."""
        open_tok = self.advance()
        if self.match("RPAREN"):
            return ASTNode.at("unit", open_tok.position)
        result = self.parse_items("RPAREN", "`)`")
        if isinstance(result, ASTNode):
            return result
        items, saw_comma = result
        if len(items) == 1 and not saw_comma:
            return items[0]
        return ASTNode.at("tuple", open_tok.position, None, items)

    def parse_array(self) -> ASTNode:
        open_tok = self.advance()
        result = self.parse_items("RBRACK", "`]`")
        if isinstance(result, ASTNode):
            return result
        return ASTNode.at("array", open_tok.position, None, result[0])

    def parse_block(self) -> ASTNode:
        """Parse `{ stmt; stmt; trailing_expr }`; the trailing expression is the value."""
        open_tok = self.advance()
        statements, trailing = self.parse_sequence("RBRACE")
        if not self.match("RBRACE"):
            return self.expected("`}`")
        return ASTNode.at("block", open_tok.position, trailing, statements)

    def parse_if(self) -> ASTNode:
        if_tok = self.advance()
        condition = self.parse_expression()
        if condition.is_error:
            return condition
        if not self.check("LBRACE"):
            return self.expected("`{` after `if` condition")
        then_block = self.parse_block()
        if then_block.is_error:
            return then_block
        node = ASTNode.at("if", if_tok.position, None, [condition, then_block])
        if self.match("ELSE"):
            if self.check("IF"):
                else_node = self.parse_if()
            elif self.check("LBRACE"):
                else_node = self.parse_block()
            else:
                return self.expected("`{` or `if` after `else`")
            if else_node.is_error:
                return else_node
            node.else_children = [else_node]
        return node


class ParseResult:
    """Statements produced by one parse plus every lexer and parser diagnostic.

    Attributes:
        statements (list[ASTNode]): Top-level statement nodes, error nodes included.
        errors (list[CouchError]): Diagnostics ordered by source position.
    """

    def __init__(self, statements: list[ASTNode], errors: list[CouchError]) -> None:
        self.statements = statements
        self.errors = errors

    @property
    def ok(self) -> bool:
        return not self.errors

    def __repr__(self) -> str:
        return f"ParseResult(statements={self.statements!r}, errors={self.errors!r})"


def parse(tokens: Iterable[Token], text: str) -> ParseResult:
    """Parse a whole program from `tokens`.

    When `tokens` is a Lexer its diagnostics are merged with the parser's.
    """
    parser = Parser(tokens, text)
    statements = parser.parse()
    collected = ErrorCollector()
    lexer_errors = getattr(tokens, "errors", None)
    if lexer_errors is not None:
        collected.extend(list(lexer_errors))
    collected.extend(parser.errors.errors)
    return ParseResult(statements, collected.ordered())


def parse_source(text: str) -> ParseResult:
    """Lex and parse `text` in one lazy pass."""
    return parse(lex(text), text)


__all__ = ["BLOCK_LIKE", "ParseResult", "Parser", "parse", "parse_source"]
