"""
Static lexical tables for the couch language.

Everything in this module is built once at import time and never mutated afterwards.

Exports:
    keyword_tokens: exact-spelling keyword → token type.
    operator_tokens: operator/punctuation glyph → token type.
    assignment_ops: token type → assignment operator name stored in the AST.
"""

from types import MappingProxyType

keyword_tokens = MappingProxyType(
    {
        "let": "LET",
        "mut": "MUT",
        "fn": "FN",
        "return": "RETURN",
        "if": "IF",
        "else": "ELSE",
        "and": "AND",
        "or": "OR",
        "not": "NOT",
        "in": "IN",
        "true": "TRUE",
        "false": "FALSE",
    }
)

operator_tokens = MappingProxyType(
    {
        "=": "ASSIGN",
        "==": "EQ",
        "+": "PLUS",
        "+=": "PLUS_ASSIGN",
        "-": "SUB",
        "-=": "SUB_ASSIGN",
        "*": "MULT",
        "*=": "MULT_ASSIGN",
        "/": "DIV",
        "/=": "DIV_ASSIGN",
        "!": "BANG",
        "!=": "NE",
        "(": "LPAREN",
        ")": "RPAREN",
        "{": "LBRACE",
        "}": "RBRACE",
        "[": "LBRACK",
        "]": "RBRACK",
        ",": "COMMA",
        ";": "SEMICOLON",
    }
)

# Longest operator glyph; bounds the lexer's lookahead.
MAX_OPERATOR_LENGTH = max(len(op) for op in operator_tokens)

WHITESPACE = frozenset(" \t\r\n")

ESCAPES = MappingProxyType({"t": "\t", "r": "\r", "n": "\n", "0": "\0"})

assignment_ops = MappingProxyType(
    {
        "ASSIGN": "ASSIGN",
        "PLUS_ASSIGN": "ADD",
        "SUB_ASSIGN": "SUB",
        "MULT_ASSIGN": "MUL",
        "DIV_ASSIGN": "DIV",
    }
)

additive_ops = MappingProxyType({"PLUS": "ADD", "SUB": "SUB"})
multiplicative_ops = MappingProxyType({"MULT": "MUL", "DIV": "DIV"})
equality_ops = MappingProxyType({"EQ": "EQ", "NE": "NE", "IN": "IN"})
unary_ops = MappingProxyType({"SUB": "NEG", "BANG": "NOT", "NOT": "NOT"})

# Human-readable glyphs for binary operator names, used in runtime messages.
operator_symbols = MappingProxyType(
    {
        "ADD": "+",
        "SUB": "-",
        "MUL": "*",
        "DIV": "/",
        "EQ": "==",
        "NE": "!=",
        "AND": "and",
        "OR": "or",
        "IN": "in",
        "NOT_IN": "not in",
    }
)

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

__all__ = [
    "ESCAPES",
    "INT_MAX",
    "INT_MIN",
    "MAX_OPERATOR_LENGTH",
    "WHITESPACE",
    "additive_ops",
    "assignment_ops",
    "equality_ops",
    "keyword_tokens",
    "multiplicative_ops",
    "operator_symbols",
    "operator_tokens",
    "unary_ops",
]
