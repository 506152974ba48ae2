from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from .evaluator import evaluate
from .lexer_rd import LexError
from .parser_rd import ParseError, parse_source
from .semantic import SemanticError, analyze
from .symbols import ScopedSymbolTable
from .tree import Program, dump_postorder, to_lark_tree
from .types import EvaluationError
from .utils import debug_py_trace_enabled, setup_logging

# Every error a stage can raise; the driver is the only place they become text.
PIPELINE_ERRORS = (LexError, ParseError, SemanticError, EvaluationError)

USAGE = "usage: minipas [--scope] [--stack] [--tree] [--quiet] [--repl] FILE|-"

Echo = Callable[[str], None]


@dataclass
class RunResult:
    program: Program
    scope: ScopedSymbolTable
    bindings: Dict[str, int]


def format_ast(program: Program, tree_view: bool = False) -> str:
    if tree_view:
        try:
            return to_lark_tree(program).pretty().rstrip('\n')
        except RecursionError:
            # too deep for the nested view; the postorder dump is iterative
            pass
    return dump_postorder(program)


def format_bindings(bindings: Dict[str, int]) -> str:
    lines = ["GLOBAL SCOPE:"]
    lines.extend(f'{{ ["{name}"] = {value} }}' for name, value in bindings.items())
    return '\n'.join(lines)


def run(source: str, echo: Optional[Echo] = None, tree_view: bool = False) -> RunResult:
    """Lex, parse, check and evaluate *source*.

    When *echo* is given it receives the AST dump after parsing, the global
    symbol table after analysis and the bindings after evaluation, so output
    produced before a failing stage is still shown.
    """
    program = parse_source(source)
    if echo is not None:
        echo(format_ast(program, tree_view))

    scope = analyze(program)
    if echo is not None:
        echo(str(scope))

    bindings = evaluate(program)
    if echo is not None:
        echo(format_bindings(bindings))

    return RunResult(program, scope, bindings)


def report_error(exc: BaseException) -> None:
    print(f"{type(exc).__name__}: {exc}", file=sys.stderr)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")


def _load_source(arg: str) -> str:
    """
    Resolve CLI input into source text.
    - "-" => read stdin.
    - Otherwise the argument is a path; its lines are joined with newlines.
    """
    if arg == "-":
        return sys.stdin.read()

    try:
        text = Path(arg).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        print("Could not open file", file=sys.stderr)
        raise SystemExit(1) from None

    return '\n'.join(text.splitlines())


def main(argv: Optional[list[str]] = None) -> int:
    scope = False
    stack = False
    tree_view = False
    quiet = False
    arg = None
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        if token == "--scope":
            scope = True
            continue

        if token == "--stack":
            stack = True
            continue

        if token == "--tree":
            tree_view = True
            continue

        if token == "--quiet":
            quiet = True
            continue

        if token == "--repl":
            from .repl import repl
            setup_logging(scope=scope, stack=stack)
            repl()
            return 0

        if token.startswith("--"):
            raise SystemExit(f"Unknown option: {token}\n{USAGE}")

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}\n{USAGE}")

    if arg is None:
        raise SystemExit(f"Must have a program file path.\n{USAGE}")

    source = _load_source(arg)
    setup_logging(scope=scope, stack=stack)

    try:
        run(source, echo=None if quiet else print, tree_view=tree_view)
    except PIPELINE_ERRORS as exc:
        report_error(exc)
        return 1

    if not quiet:
        print("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
