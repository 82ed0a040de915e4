"""
couch CLI Entrypoint.

This module provides the command-line interface for running couch source code.

Features:
    - Read source from `.couch` files or inline strings.
    - Lex, parse and evaluate, printing the resulting value or every diagnostic.
    - Optionally dump the token stream and the AST.
    - Launch an interactive REPL.

Example usage:
    couch program.couch
    couch -s "let mut a = 5; a += 5; a"
    couch -s "20 - 10 - 5" --tokens --ast
    couch --repl --multi

Functions:
    run_source(source, evaluator=None, show_tokens=False, show_ast=False) -> bool:
        Runs one source string through the pipeline and prints the outcome.

    run_couch(source, is_string=False, show_tokens=False, show_ast=False) -> int:
        Reads a file (or inline string) and returns a process exit code.

    main() -> None:
        Parses CLI arguments and invokes the appropriate action (REPL or run).
"""

import argparse
import json
import sys

from couch.couch_ast import ASTNode
from couch.couch_errors import CouchError
from couch.couch_evaluator import Evaluator, evaluate
from couch.couch_lexer import lex
from couch.couch_parser import parse


def print_tokens(source: str) -> None:
    print("[tokens] >>>")
    for tok in lex(source):
        print(f"  {tok.type:<12} {tok.value!r:<16} {tok.line}:{tok.col}")


def print_ast(statements: list[ASTNode]) -> None:
    print("[ast] >>>")
    print(json.dumps([node.to_dict() for node in statements], indent=2))


def run_source(
    source: str,
    evaluator: Evaluator | None = None,
    show_tokens: bool = False,
    show_ast: bool = False,
) -> bool:
    """
    Run one couch program: lex → parse → evaluate, printing the value or errors.

    Args:
        source (str): The couch source code.
        evaluator (Evaluator | None): Evaluator to reuse (keeps bindings across calls).
        show_tokens (bool): Print the token stream before parsing.
        show_ast (bool): Print the parsed AST as JSON.

    Returns:
        bool: True if the program evaluated without lexical, syntactic or runtime errors.
    """
    if show_tokens:
        print_tokens(source)

    result = parse(lex(source), source)

    if show_ast:
        print_ast(result.statements)

    if not result.ok:
        for error in result.errors:
            print(f"[error] >>> {error}")
        return False

    value = evaluate(result.statements, evaluator)
    if isinstance(value, CouchError):
        print(f"[error] >>> {value}")
        return False
    if value is not None:
        print(value.display())
    return True


def run_couch(
    source: str,
    is_string: bool = False,
    show_tokens: bool = False,
    show_ast: bool = False,
) -> int:
    """
    Run the couch toolchain on a file or inline source.

    Args:
        source (str): The couch source code or path to a `.couch` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        show_tokens (bool): Print the token stream.
        show_ast (bool): Print the AST.

    Returns:
        int: 0 on success, 1 if any error was reported.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.couch'.
    """
    if not is_string and not source.endswith(".couch"):
        raise ValueError("Only .couch files are supported.")
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    ok = run_source(source, show_tokens=show_tokens, show_ast=show_ast)
    return 0 if ok else 1


def main() -> None:
    """
    Entry point for the couch CLI.

    - Launches the REPL if no arguments are passed or `--repl` is specified.
    - Otherwise runs the given file or `-s` string and exits with its status.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-t`, `--tokens`: Include the generated tokens in the output.
        - `-a`, `--ast`: Include the generated AST in the output.
        - `-m`, `--multi`: Start the REPL in multi-line mode.
        - `--repl`: Launch the interactive REPL.
    """
    if len(sys.argv) == 1:
        from couch.couch_repl import start_repl

        start_repl()
        return
    parser = argparse.ArgumentParser(prog="couch")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-t", "--tokens", action="store_true", help="Print the generated tokens"
    )
    parser.add_argument("-a", "--ast", action="store_true", help="Print the generated AST")
    parser.add_argument(
        "-m", "--multi", action="store_true", help="Multi-line REPL mode (if --repl)"
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL instead of running a program",
    )

    args = parser.parse_args()

    if args.repl or args.source is None:
        from couch.couch_repl import start_repl

        start_repl(show_tokens=args.tokens, show_ast=args.ast, multiline=args.multi)
    else:
        code = run_couch(
            source=args.source,
            is_string=args.string,
            show_tokens=args.tokens,
            show_ast=args.ast,
        )
        if code:
            sys.exit(code)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
