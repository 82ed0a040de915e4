"""
Interactive read-eval-print loop for couch.

Single-line mode evaluates each entry as soon as its braces balance (continuation lines
get a `... ` prompt). Multi-line mode buffers lines until `:eval`; `:show` prints the
buffer. `:exit`, `exit` and `quit` leave the loop. Bindings persist between entries.
"""

from couch.couch_cli import run_source
from couch.couch_evaluator import Evaluator

EXIT_COMMANDS = (":exit", "exit", "quit")


def start_repl(
    show_tokens: bool = False, show_ast: bool = False, multiline: bool = False
) -> None:
    mode = "multi-line" if multiline else "single-line"
    print(f"couch REPL [{mode}]. Type ':exit' to leave.")
    evaluator = Evaluator()
    buffer: list[str] = []

    while True:
        try:
            if multiline:
                line = input("> ")
                command = line.strip()
                if command in EXIT_COMMANDS:
                    print("Exiting couch REPL.")
                    return
                if command == ":show":
                    print("\n".join(buffer))
                elif command == ":eval":
                    run_source("\n".join(buffer), evaluator, show_tokens, show_ast)
                    buffer = []
                else:
                    buffer.append(line)
                continue

            src_lines: list[str] = []
            brace_count = 0
            while True:
                prompt = "> " if not src_lines else "... "
                line = input(prompt)
                if line.strip() in EXIT_COMMANDS and not src_lines:
                    print("Exiting couch REPL.")
                    return
                src_lines.append(line)
                brace_count += line.count("{") - line.count("}")
                if brace_count <= 0:
                    break
            src = "\n".join(src_lines).strip()
            if not src:
                continue
            run_source(src, evaluator, show_tokens, show_ast)

        except (KeyboardInterrupt, EOFError):
            print("\nExiting couch REPL.")
            break


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
