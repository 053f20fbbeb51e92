from __future__ import annotations

import logging
import os
import sys
import traceback
from pathlib import Path
from typing import List, Optional, Tuple

from lark import Tree

from .ast_transforms import to_sexpr
from .evaluator import execute
from .lexer_rd import LexError, tokenize
from .parser_rd import ParseError, parse_tokens
from .types import SlangRuntimeError, State, StmtResult
from .utils import debug_py_trace_enabled, stringify

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

LOG_LEVEL_ENV = "SLANG_LOG"

SlangError = (LexError, ParseError, SlangRuntimeError)

def parse(src: str) -> Tree:
    """Lex the whole buffer, then parse it into a program block."""
    logger.debug("lexing %d characters", len(src))
    tokens = tokenize(src)

    logger.debug("parsing %d tokens", len(tokens))
    return parse_tokens(tokens)

def run(src: str, state: Optional[State]=None) -> StmtResult:
    program = parse(src)

    if state is None:
        state = State(source=src)
    else:
        state.source = src

    logger.debug("executing %d top-level statement(s)", len(program.children))
    return execute(program, state)

def repl_eval(src: str, state: State) -> Tuple[StmtResult, bool]:
    """
    Run one interactive input against a persistent State.

    Returns the result plus whether the input ended in a statement (as
    opposed to a bare expression), which decides if the REPL echoes it.
    """
    program = parse(src)
    state.source = src

    last = program.children[-1] if program.children else None
    is_stmt = last is None or getattr(last, 'data', None) != 'exprstmt'

    return execute(program, state), is_stmt

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

def _configure_logging(verbose: bool) -> None:
    requested = os.environ.get(LOG_LEVEL_ENV, "").lower()

    if verbose or requested == "debug":
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(name)s: %(message)s",
        )

def _report(exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")

def main(argv: Optional[List[str]]=None) -> None:
    show_ast = False
    show_sexpr = False
    verbose = False
    arg = None
    args = sys.argv[1:] if argv is None else argv

    for token in args:
        if token == "--ast":
            show_ast = True
            continue

        if token == "--sexpr":
            show_sexpr = True
            continue

        if token == "--verbose":
            verbose = True
            continue

        if token.startswith("--"):
            raise SystemExit(f"Unknown option: {token}")

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    _configure_logging(verbose)

    if arg is None and sys.stdin.isatty():
        from .repl import repl
        repl()
        return

    source = _load_source(arg)

    try:
        if show_ast or show_sexpr:
            program = parse(source)
            if show_ast:
                print(program.pretty(), end="")
            if show_sexpr:
                print(to_sexpr(program))
            return

        result = run(source)
    except SlangError as exc:
        _report(exc)
        raise SystemExit(1) from None
    except RecursionError as exc:
        _report(exc)
        raise SystemExit(1) from None

    if result is not None:
        print(stringify(result))

if __name__ == "__main__":
    main()
