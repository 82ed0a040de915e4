"""
Lexical analyzer for the couch language.

This module converts raw source text into a lazy stream of positioned tokens:

Classes:
    CharacterStream: Stream abstraction for reading characters with index/line/column tracking.
    Token: A single token with type, lexeme, and source span.
    Lexer: Pulls characters from a CharacterStream and yields tokens on demand.

Features:
    - Skips whitespace, line comments (`//`) and block comments (`/* ... */`, no nesting)
    - Maximal-munch identifiers, checked against the keyword table afterwards
    - Integer and float literals (`5`, `5.0`, `5.`)
    - Double-quoted strings where `\\` escapes the next character
    - One-character lookahead for two-character operators (`==`, `+=`, `!=`, ...)

Malformed input never raises. Each malformed region becomes an `ERROR` token and a
diagnostic is appended to `Lexer.errors`:
    - unterminated string literal
    - malformed number literal (a second `.`)
    - invalid character
    - unterminated block comment (no token is produced)

Example:
    >>> [t.type for t in lex("let x = 1;")]
    ['LET', 'IDENT', 'ASSIGN', 'INTEGER', 'SEMICOLON']

Exports:
    - CharacterStream
    - Token
    - Lexer
    - lex
    - unescape_string
"""

from collections.abc import Iterator
from typing import Any

from couch.couch_constants import (
    ESCAPES,
    MAX_OPERATOR_LENGTH,
    WHITESPACE,
    keyword_tokens,
    operator_tokens,
)
from couch.couch_errors import LEXER, ErrorCollector, Position

_IDENT_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_DIGITS = frozenset("0123456789")
_IDENT_PART = _IDENT_START | _DIGITS


class CharacterStream:
    """
    Reads characters from a string source with index, line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str: The next character.

        Raises:
            IndexError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise IndexError(
                f"CharacterStreamError: Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """
        Returns the character at the given offset from the current position without advancing.

        Returns:
            str: The character at the offset, or an empty string if out of bounds.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def mark(self) -> Position:
        """Returns the current location as a Position."""
        return Position(self.position, self.line, self.column)

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the couch language.

    Attributes:
        type (str): The token kind (e.g. 'IDENT', 'INTEGER', 'PLUS_ASSIGN', 'EOF').
        value (str): The lexeme, exactly as it appears in the source.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
        index (int): The 0-based offset where the token starts.
        length (int): Number of source characters the token spans.
    """

    def __init__(
        self,
        type_: str,
        value: str,
        line: int = 0,
        col: int = 0,
        index: int = 0,
        length: int | None = None,
    ):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col
        self.index = index
        self.length = len(value) if length is None else length

    @property
    def position(self) -> Position:
        return Position(self.index, self.line, self.col)

    def lexeme(self, source: str) -> str:
        """Re-slices the token's span out of `source`."""
        return source[self.index : self.index + self.length]

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
            and self.index == other.index
            and self.length == other.length
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col, self.index))


class Lexer:
    """Lexical analyzer for the couch language.

    The Lexer is a lazy, finite, non-restartable iterator of tokens. Iteration stops at
    end of input without yielding the EOF token; `next_token()` keeps returning EOF.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        errors (ErrorCollector): Lexical diagnostics found so far.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream
        self.errors = ErrorCollector()

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        tok = self.next_token()
        if tok.type == "EOF":
            raise StopIteration
        return tok

    @property
    def source(self) -> str:
        return self.stream.source

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_trivia(self) -> None:
        """Skips all whitespace and comments in the stream."""
        while not self.stream.end_of_file():
            ch = self.peek()
            if ch in WHITESPACE:
                self.advance()
            elif ch == "/" and self.peek(1) == "/":
                self.skip_line_comment()
            elif ch == "/" and self.peek(1) == "*":
                self.skip_block_comment()
            else:
                break

    def skip_line_comment(self) -> None:
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def skip_block_comment(self) -> None:
        start = self.stream.mark()
        self.advance()
        self.advance()
        while not self.stream.end_of_file():
            if self.peek() == "*" and self.peek(1) == "/":
                self.advance()
                self.advance()
                return
            self.advance()
        self.errors.add(LEXER, "unterminated block comment", start)

    def make_token(self, type_: str, start: Position) -> Token:
        """Builds a token spanning from `start` to the current stream position."""
        length = self.stream.position - start.index
        value = self.source[start.index : start.index + length]
        return Token(type_, value, start.line, start.col, start.index, length)

    def error_token(self, message: str, start: Position) -> Token:
        self.errors.add(LEXER, message, start)
        return self.make_token("ERROR", start)

    def match_operator(self) -> Token | None:
        """Attempts to match the longest valid operator from the current position.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        start = self.stream.mark()
        max_token = None
        candidate = ""

        for i in range(MAX_OPERATOR_LENGTH):
            ch = self.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in operator_tokens:
                max_token = candidate

        if max_token:
            for _ in range(len(max_token)):
                self.advance()
            return self.make_token(operator_tokens[max_token], start)

        return None

    def read_identifier(self, start: Position) -> Token:
        while self.peek() in _IDENT_PART:
            self.advance()
        tok = self.make_token("IDENT", start)
        if tok.value in keyword_tokens:
            tok.type = keyword_tokens[tok.value]
        return tok

    def read_number(self, start: Position) -> Token:
        has_dot = False
        while not self.stream.end_of_file():
            ch = self.peek()
            if ch in _DIGITS:
                self.advance()
            elif ch == ".":
                self.advance()
                if has_dot:
                    return self.error_token("malformed number literal", start)
                has_dot = True
            else:
                break
        return self.make_token("FLOAT" if has_dot else "INTEGER", start)

    def read_string(self, start: Position) -> Token:
        self.advance()  # opening quote
        while not self.stream.end_of_file():
            ch = self.advance()
            if ch == "\\":
                if self.stream.end_of_file():
                    break
                self.advance()
            elif ch == '"':
                return self.make_token("STRING", start)
        return self.error_token("unterminated string literal", start)

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, an ERROR token for malformed input, or EOF.
        """
        self.skip_trivia()

        start = self.stream.mark()
        if self.stream.end_of_file():
            return Token("EOF", "", start.line, start.col, start.index, 0)

        ch = self.peek()

        # 1. Identifier or keyword
        if ch in _IDENT_START:
            return self.read_identifier(start)

        # 2. Number or float
        if ch in _DIGITS:
            return self.read_number(start)

        # 3. String
        if ch == '"':
            return self.read_string(start)

        # 4. Compound or symbolic operator
        token = self.match_operator()
        if token:
            return token

        # 5. Unknown character → error
        bad = self.advance()
        return self.error_token(f"invalid character {bad!r}", start)


def lex(text: str) -> Lexer:
    """Returns a lazy token iterator over `text`."""
    return Lexer(CharacterStream(text))


def unescape_string(lexeme: str) -> str:
    """Converts a string literal lexeme (quotes included) into its runtime text.

    `\\t`, `\\r`, `\\n` and `\\0` are translated; any other escaped character stands
    for itself.
    """
    body = lexeme[1:-1] if len(lexeme) >= 2 and lexeme[0] == '"' else lexeme
    out: list[str] = []
    chars = iter(body)
    for ch in chars:
        if ch == "\\":
            escaped = next(chars, "")
            out.append(ESCAPES.get(escaped, escaped))
        else:
            out.append(ch)
    return "".join(out)


__all__ = [
    "CharacterStream",
    "Lexer",
    "Token",
    "lex",
    "unescape_string",
]
