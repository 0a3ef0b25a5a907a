from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import Optional, Union

from .dump import format_ast, format_tokens
from .evaluator import eval_program
from .lexer_rd import LexError, tokenize
from .parser_rd import ParseError, parse
from .runtime import Environment
from .types import LairRuntimeError
from .utils import debug_py_trace_enabled

LAIR_ERRORS = (LexError, ParseError, LairRuntimeError)

def run(src: Union[str, bytes], env: Optional[Environment] = None) -> int:
    """Lex, parse and evaluate one program; returns the evaluator status."""
    tokens = tokenize(src)
    ast = parse(tokens)
    return eval_program(ast, env if env is not None else Environment())

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.exists():
        return candidate.read_text(encoding="utf-8")

    return arg

def report_error(exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled() and exc.__traceback__ is not None:
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")

def main(argv: Optional[list[str]] = None) -> int:
    mode = "run"
    arg = None
    args = sys.argv[1:] if argv is None else argv

    for token in args:
        if token in ("--tokens", "--ast", "--repl"):
            mode = token[2:]
            continue

        if token.startswith("--"):
            raise SystemExit(f"Unknown flag: {token}")

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    if mode == "repl":
        from .repl import repl  # prompt_toolkit is only needed here

        repl()
        return 0

    source = _load_source(arg)

    try:
        match mode:
            case "tokens":
                print(format_tokens(tokenize(source)))
                return 0
            case "ast":
                print(format_ast(parse(tokenize(source))), end="")
                return 0
            case _:
                return run(source)
    except LAIR_ERRORS as exc:
        report_error(exc)
        return 1
    except RecursionError as exc:
        # self-calling definitions have no depth guard of their own
        report_error(exc)
        return 1

if __name__ == "__main__":
    sys.exit(main())
