from __future__ import annotations

import logging
from textwrap import dedent

import pytest

from tests.support.harness import (
    DuplicateIdentifier,
    DuplicateProcedure,
    END_TO_END_SOURCE,
    NotAVariable,
    SemanticError,
    UndeclaredIdentifier,
    WrongArgumentCount,
    analyze_source,
    program,
)
from minipas.symbols import (
    BuiltinTypeSymbol,
    ProcedureSymbol,
    ProgramSymbol,
    ScopedSymbolTable,
    VarSymbol,
)

NESTED_ONLY_SOURCE = dedent(
    """\
    program T;
    var a : integer;
    procedure p;
       var inner : integer;
    begin
       inner := 1
    end;
    begin
       a := inner
    end.
    """
)

SHADOWING_SOURCE = dedent(
    """\
    program T;
    var x : integer;
    procedure p;
       var x : real;
    begin
       x := 1
    end;
    begin
       x := 2;
       p()
    end.
    """
)

SEMANTIC_ERROR_CASES = [
    pytest.param(
        program("a := c", decls="var a : integer;"),
        UndeclaredIdentifier,
        "c",
        4,
        6,
        id="undeclared-rhs",
    ),
    pytest.param(
        program("z := 1", decls="var a : integer;"),
        UndeclaredIdentifier,
        "z",
        4,
        1,
        id="undeclared-target",
    ),
    pytest.param(
        program("b := c", decls="var a : integer;"),
        UndeclaredIdentifier,
        "c",
        4,
        6,
        id="rhs-checked-before-target",
    ),
    pytest.param(
        program("A := 1", decls="var a : integer;"),
        UndeclaredIdentifier,
        "A",
        4,
        1,
        id="names-are-case-sensitive",
    ),
    pytest.param(
        NESTED_ONLY_SOURCE,
        UndeclaredIdentifier,
        "inner",
        9,
        9,
        id="inner-variable-not-visible-outside",
    ),
    pytest.param(
        program("", decls="var x : integer; x : integer;"),
        DuplicateIdentifier,
        "x",
        2,
        18,
        id="duplicate-var-two-lines",
    ),
    pytest.param(
        program("", decls="var x, x : real;"),
        DuplicateIdentifier,
        "x",
        2,
        8,
        id="duplicate-var-one-line",
    ),
    pytest.param(
        "program T; procedure p(a, a : integer); begin end; begin end.",
        DuplicateIdentifier,
        "a",
        1,
        27,
        id="duplicate-param",
    ),
    pytest.param(
        "program T; procedure p(a : integer); var a : integer; begin end; begin end.",
        DuplicateIdentifier,
        "a",
        1,
        42,
        id="local-clashes-with-param",
    ),
    pytest.param(
        dedent(
            """\
            program T;
            procedure p; begin end;
            procedure p; begin end;
            begin
            end.
            """
        ),
        DuplicateProcedure,
        "p",
        3,
        11,
        id="duplicate-procedure",
    ),
    pytest.param(
        "program T; var p : integer; procedure p; begin end; begin end.",
        DuplicateProcedure,
        "p",
        1,
        39,
        id="procedure-clashes-with-global-var",
    ),
    pytest.param(
        dedent(
            """\
            program T;
            procedure p;
               procedure p; begin end;
            begin
            end;
            begin
            end.
            """
        ),
        DuplicateProcedure,
        "p",
        3,
        14,
        id="nested-procedure-reuses-global-name",
    ),
    pytest.param(
        program("q()"),
        UndeclaredIdentifier,
        "q",
        3,
        1,
        id="call-undeclared-procedure",
    ),
    pytest.param(
        program("a(1)", decls="var a : integer;"),
        UndeclaredIdentifier,
        "a",
        4,
        1,
        id="call-a-variable",
    ),
    pytest.param(
        "program T; procedure p(a : integer); begin end; begin p(b) end.",
        UndeclaredIdentifier,
        "b",
        1,
        57,
        id="call-undeclared-argument",
    ),
    pytest.param(
        "program T; procedure p(a, b : integer); begin end; begin p(1) end.",
        WrongArgumentCount,
        "p",
        1,
        58,
        id="call-too-few-arguments",
    ),
    pytest.param(
        program("Test := 5"),
        NotAVariable,
        "Test",
        3,
        1,
        id="assign-to-program-name",
    ),
    pytest.param(
        program("a := p", decls="var a : integer; procedure p; begin end;"),
        NotAVariable,
        "p",
        4,
        6,
        id="read-procedure-as-variable",
    ),
    pytest.param(
        "program T; procedure p; begin p := 3 end; begin end.",
        NotAVariable,
        "p",
        1,
        31,
        id="assign-to-procedure-name",
    ),
]


@pytest.mark.parametrize("source, exc, name, line, column", SEMANTIC_ERROR_CASES)
def test_semantic_errors(source: str, exc: type, name: str, line: int, column: int) -> None:
    with pytest.raises(exc) as exc_info:
        analyze_source(source)

    err = exc_info.value
    assert isinstance(err, SemanticError)
    assert err.name == name
    assert f"'{name}'" in str(err)
    assert err.line == line, f"expected line {line}, got {err.line}"
    assert err.column == column, f"expected col {column}, got {err.column}"


def test_wrong_argument_count_reports_both_counts() -> None:
    with pytest.raises(WrongArgumentCount) as exc_info:
        analyze_source("program T; procedure p; begin end; begin p(1, 2) end.")

    err = exc_info.value
    assert (err.expected, err.got) == (0, 2)
    assert "expects 0 argument(s); got 2" in str(err)


def test_global_scope_contents() -> None:
    scope = analyze_source(END_TO_END_SOURCE)

    assert scope.scope_name == "global"
    assert scope.scope_level == 1
    assert isinstance(scope.lookup("Test"), ProgramSymbol)

    builtins = scope.enclosing_scope
    assert builtins is not None
    assert builtins.scope_level == 0
    assert builtins.enclosing_scope is None
    assert sorted(sym.name for sym in builtins) == ["INTEGER", "REAL"]

    a = scope.lookup("a", current_scope_only=True)
    assert isinstance(a, VarSymbol)
    assert a.type is builtins.lookup("INTEGER")


def test_procedure_symbol_records_params() -> None:
    scope = analyze_source(
        "program T; procedure p(a : integer; b : real); begin end; begin p(1, 2) end."
    )

    proc = scope.lookup("p")
    assert isinstance(proc, ProcedureSymbol)
    assert [(param.name, param.type.name) for param in proc.params] == [
        ("a", "INTEGER"),
        ("b", "REAL"),
    ]


def test_procedure_scopes_are_discarded() -> None:
    scope = analyze_source(SHADOWING_SOURCE)

    assert "p" in scope
    assert isinstance(scope.lookup("x"), VarSymbol)
    assert scope.lookup("x").type.name == "INTEGER"
    assert len(scope) == 3  # program, x, p


def test_nested_procedures_are_registered_globally() -> None:
    scope = analyze_source(
        dedent(
            """\
            program T;
            procedure outer;
               procedure inner; begin end;
            begin
               inner()
            end;
            begin
               outer()
            end.
            """
        )
    )

    assert isinstance(scope.lookup("outer", current_scope_only=True), ProcedureSymbol)
    assert isinstance(scope.lookup("inner", current_scope_only=True), ProcedureSymbol)


def test_call_resolves_past_shadowing_local() -> None:
    scope = analyze_source(
        "program T; procedure p; begin end; "
        "procedure q; var p : integer; begin p := 1; p() end; "
        "begin q() end."
    )

    assert isinstance(scope.lookup("p"), ProcedureSymbol)


def test_recursive_procedure_can_name_itself() -> None:
    analyze_source("program T; procedure p(n : integer); begin p(n - 1) end; begin end.")


def test_procedure_body_sees_enclosing_variables() -> None:
    analyze_source(
        dedent(
            """\
            program T;
            var g : integer;
            procedure p(a : integer);
            begin
               a := g + a
            end;
            begin
            end.
            """
        )
    )


def test_shadowed_lookup_prefers_innermost_scope() -> None:
    builtins = ScopedSymbolTable.builtins()
    global_scope = builtins.child("global")
    inner = global_scope.child("p")

    global_scope.define(VarSymbol("x", builtins.lookup("INTEGER")))
    inner.define(VarSymbol("x", builtins.lookup("REAL")))

    assert inner.scope_level == 2
    assert inner.lookup("x").type.name == "REAL"
    assert global_scope.lookup("x").type.name == "INTEGER"
    assert inner.lookup("x", current_scope_only=True) is not None
    assert inner.lookup("INTEGER", current_scope_only=True) is None
    assert isinstance(inner.lookup("INTEGER"), BuiltinTypeSymbol)
    assert inner.global_scope() is global_scope


def test_scope_dump_lists_header_and_symbols() -> None:
    text = str(analyze_source(END_TO_END_SOURCE))

    assert text.startswith("SCOPE (SCOPED SYMBOL TABLE)")
    assert "Scope name     : global" in text
    assert "Scope level    : 1" in text
    assert "Enclosing scope: builtins" in text
    assert "<VarSymbol(name=a, type=INTEGER)>" in text


def test_scope_tracing_logs_entry_and_exit(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="minipas.semantic")

    analyze_source("program T; procedure p; begin end; begin p() end.")

    messages = [record.getMessage() for record in caplog.records]
    assert "ENTER scope global" in messages
    assert "ENTER scope p" in messages
    assert "LEAVE scope p" in messages
    assert messages[-1] == "LEAVE scope global"
