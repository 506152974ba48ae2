"""Static checks over the AST: scoped symbol tables and name resolution.

A single traversal threads the current scope through every call. It fails on
the first undeclared name, duplicate declaration or call arity mismatch.
"""
from __future__ import annotations

import logging
from typing import Optional

from lark import Token

from .symbols import ProcedureSymbol, ProgramSymbol, ScopedSymbolTable, VarSymbol
from .tree import (
    Assign,
    BinOp,
    Block,
    Compound,
    NoOp,
    Node,
    Num,
    Param,
    ProcedureCall,
    ProcedureDecl,
    Program,
    TypeSpec,
    UnaryOp,
    Var,
    VarDecl,
)

logger = logging.getLogger(__name__)

# ---------- Errors ----------

class SemanticError(Exception):
    def __init__(self, message: str, token: Optional[Token] = None):
        self.message = message
        self.token = token
        self.line = getattr(token, "line", None)
        self.column = getattr(token, "column", None)
        super().__init__(message)

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} at line {self.line}, col {self.column}"


class UndeclaredIdentifier(SemanticError):
    def __init__(self, token: Token):
        super().__init__(f"Undeclared identifier '{token.value}'", token)
        self.name = str(token.value)


class DuplicateIdentifier(SemanticError):
    def __init__(self, token: Token):
        super().__init__(f"Duplicate identifier '{token.value}'", token)
        self.name = str(token.value)


class DuplicateProcedure(SemanticError):
    def __init__(self, token: Token):
        super().__init__(f"Duplicate procedure '{token.value}'", token)
        self.name = str(token.value)


class NotAVariable(SemanticError):
    """A program or procedure name used where a variable is expected."""

    def __init__(self, token: Token):
        super().__init__(f"'{token.value}' is not a variable", token)
        self.name = str(token.value)


class WrongArgumentCount(SemanticError):
    def __init__(self, token: Token, expected: int, got: int):
        super().__init__(
            f"Procedure '{token.value}' expects {expected} argument(s); got {got}", token
        )
        self.name = str(token.value)
        self.expected = expected
        self.got = got

# ---------- Public API ----------

def analyze(program: Program) -> ScopedSymbolTable:
    """Check the program and return its global scope.

    The global scope's ``enclosing_scope`` is the builtin scope.
    """
    builtins = ScopedSymbolTable.builtins()
    global_scope = builtins.child("global")

    logger.debug("ENTER scope %s", global_scope.scope_name)
    global_scope.define(ProgramSymbol(program.name))
    try:
        visit(program.block, global_scope)
    except RecursionError:
        raise SemanticError("Expression nesting too deep") from None
    logger.debug("%s", global_scope)
    logger.debug("LEAVE scope %s", global_scope.scope_name)

    return global_scope

# ---------- Traversal ----------

def visit(node: Node, scope: ScopedSymbolTable) -> None:
    match node:
        case Block():
            visit_block(node, scope)
        case VarDecl(var=var, type=type_spec) | Param(var=var, type=type_spec):
            declare_variable(var, type_spec, scope)
        case ProcedureDecl():
            visit_procedure(node, scope)
        case Compound(children=children):
            for child in children:
                visit(child, scope)
        case Assign(target=target, value=value):
            visit(value, scope)
            visit(target, scope)
        case ProcedureCall():
            visit_call(node, scope)
        case BinOp():
            # left-associative chains nest to the left; walk that spine in a loop
            right_operands = []
            while isinstance(node, BinOp):
                right_operands.append(node.right)
                node = node.left
            visit(node, scope)
            for operand in reversed(right_operands):
                visit(operand, scope)
        case UnaryOp(operand=operand):
            visit(operand, scope)
        case Var(token=tok):
            symbol = scope.lookup(node.name)
            if symbol is None:
                raise UndeclaredIdentifier(tok)
            if not isinstance(symbol, VarSymbol):
                raise NotAVariable(tok)
        case Num() | NoOp() | TypeSpec():
            pass
        case Program():
            raise TypeError("nested Program node")
        case _:
            raise TypeError(f"not an AST node: {node!r}")


def visit_block(block: Block, scope: ScopedSymbolTable) -> None:
    for decl in block.declarations:
        visit(decl, scope)

    for proc in block.procedures:
        visit(proc, scope)

    visit(block.compound, scope)


def declare_variable(var: Var, type_spec: TypeSpec, scope: ScopedSymbolTable) -> VarSymbol:
    if scope.lookup(var.name, current_scope_only=True) is not None:
        raise DuplicateIdentifier(var.token)

    type_symbol = scope.lookup(type_spec.name)
    if type_symbol is None:
        raise UndeclaredIdentifier(type_spec.token)

    symbol = VarSymbol(var.name, type_symbol)
    scope.define(symbol)
    return symbol


def visit_procedure(decl: ProcedureDecl, scope: ScopedSymbolTable) -> None:
    global_scope = scope.global_scope()

    if global_scope.lookup(decl.name, current_scope_only=True) is not None:
        raise DuplicateProcedure(decl.token)

    proc_symbol = ProcedureSymbol(decl.name)
    global_scope.define(proc_symbol)

    proc_scope = scope.child(decl.name)
    logger.debug("ENTER scope %s", proc_scope.scope_name)

    for param in decl.params:
        proc_symbol.params.append(declare_variable(param.var, param.type, proc_scope))

    visit(decl.block, proc_scope)

    logger.debug("%s", proc_scope)
    logger.debug("LEAVE scope %s", proc_scope.scope_name)


def visit_call(call: ProcedureCall, scope: ScopedSymbolTable) -> None:
    for arg in call.args:
        visit(arg, scope)

    # procedures always live in the global scope; locals never shadow them
    symbol = scope.global_scope().lookup(call.name, current_scope_only=True)
    if not isinstance(symbol, ProcedureSymbol):
        raise UndeclaredIdentifier(call.token)

    if len(call.args) != len(symbol.params):
        raise WrongArgumentCount(call.token, len(symbol.params), len(call.args))
