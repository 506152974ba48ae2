from __future__ import annotations

import pytest

from tests.support.harness import (
    CallDepthExceeded,
    DivisionByZero,
    DuplicateIdentifier,
    DuplicateProcedure,
    EvaluationError,
    LexError,
    NotAVariable,
    ParseError,
    SemanticError,
    UnboundVariable,
    UndeclaredIdentifier,
    UnresolvedProcedure,
    WrongArgumentCount,
    eval_expr,
    program,
    run_error_case,
)
from minipas.token_types import TT
from minipas.types import CallStack

ERROR_CASES = [
    pytest.param("program T; begin a := 1 ! end.", LexError, 1, 25, id="lex"),
    pytest.param("program T; begin a := (1 end.", ParseError, 1, 26, id="parse"),
    pytest.param(program("a := b", decls="var a : integer;"), UndeclaredIdentifier, 4, 6, id="undeclared"),
    pytest.param(program("", decls="var a, a : integer;"), DuplicateIdentifier, 2, 8, id="duplicate"),
    pytest.param(
        "program T;\nprocedure p; begin end;\nprocedure p; begin end;\nbegin end.",
        DuplicateProcedure,
        3,
        11,
        id="duplicate-procedure",
    ),
    pytest.param(
        "program T; procedure p; begin end; begin p(1) end.",
        WrongArgumentCount,
        1,
        42,
        id="arity",
    ),
    pytest.param(program("a := 4 div (1 - 1)", decls="var a : integer;"), DivisionByZero, 4, 8, id="div-zero"),
]


@pytest.mark.parametrize("source, exc, line, column", ERROR_CASES)
def test_errors_carry_positions(source: str, exc: type, line: int, column: int) -> None:
    err = run_error_case(source, exc, line, column)
    assert f"{line}" in str(err)


def test_error_families() -> None:
    for sub in (UndeclaredIdentifier, DuplicateIdentifier, DuplicateProcedure, NotAVariable, WrongArgumentCount):
        assert issubclass(sub, SemanticError)

    for sub in (UnboundVariable, DivisionByZero, UnresolvedProcedure, CallDepthExceeded):
        assert issubclass(sub, EvaluationError)

    # Stages never share an error base beyond Exception.
    assert not issubclass(ParseError, LexError)
    assert not issubclass(SemanticError, EvaluationError)


def test_parse_error_keeps_expected_kind() -> None:
    err = run_error_case("program T begin end.", ParseError, 1, 11)

    assert err.expected is TT.SEMI
    assert err.token.type is TT.BEGIN
    assert err.token.lexeme == "begin"


def test_parse_error_for_factor_names_production() -> None:
    err = run_error_case(program("a := * 2", decls="var a : integer;"), ParseError, 4, 6)
    assert err.expected == "factor"


def test_lex_error_keeps_character() -> None:
    err = run_error_case("program T; begin a := 1 ? end.", LexError, 1, 25)
    assert err.char == "?"


def test_semantic_error_keeps_token() -> None:
    err = run_error_case(program("a := b", decls="var a : integer;"), UndeclaredIdentifier)
    assert err.token == "b"
    assert err.token.type == "VARIABLE"


def test_errors_without_position_render_plain_message() -> None:
    err = EvaluationError("boom")

    assert err.line is None
    assert err.column is None
    assert str(err) == "boom"
    assert str(SemanticError("nope")) == "nope"


def test_empty_call_stack_has_no_frame() -> None:
    with pytest.raises(EvaluationError, match="No active frame"):
        CallStack().peek()


def test_deep_parentheses_are_a_parse_error() -> None:
    depth = 2000
    source = program("a := " + "(" * depth + "1" + ")" * depth, decls="var a : integer;")

    err = run_error_case(source, ParseError)
    assert err.message == "Expression nesting too deep"
    assert err.line == 4


def test_moderate_parentheses_still_parse() -> None:
    assert eval_expr("(" * 50 + "7" + ")" * 50) == 7
