"""AST node types shared by the parser, the semantic analyzer and the evaluator.

Every node kind is a frozen dataclass; consumers dispatch with ``match`` on
the class. Nodes that need a source position keep the lark ``Token`` they were
built from.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple, Union

from lark import Token, Tree
from typing_extensions import TypeAlias


# ---------- Expressions ----------

@dataclass(frozen=True)
class Num:
    token: Token
    value: int


@dataclass(frozen=True)
class BinOp:
    op: Token
    left: 'Node'
    right: 'Node'


@dataclass(frozen=True)
class UnaryOp:
    op: Token
    operand: 'Node'


@dataclass(frozen=True)
class Var:
    token: Token

    @property
    def name(self) -> str:
        return str(self.token.value)


# ---------- Statements ----------

@dataclass(frozen=True)
class Compound:
    children: Tuple['Node', ...]


@dataclass(frozen=True)
class Assign:
    target: Var
    op: Token
    value: 'Node'


@dataclass(frozen=True)
class ProcedureCall:
    token: Token
    args: Tuple['Node', ...]

    @property
    def name(self) -> str:
        return str(self.token.value)


@dataclass(frozen=True)
class NoOp:
    pass


# ---------- Declarations ----------

@dataclass(frozen=True)
class TypeSpec:
    token: Token

    @property
    def name(self) -> str:
        # INTEGER / REAL, matching the builtin type symbols
        return str(self.token.type)


@dataclass(frozen=True)
class VarDecl:
    var: Var
    type: TypeSpec


@dataclass(frozen=True)
class Param:
    var: Var
    type: TypeSpec


@dataclass(frozen=True)
class ProcedureDecl:
    token: Token
    params: Tuple[Param, ...]
    block: 'Block'

    @property
    def name(self) -> str:
        return str(self.token.value)


@dataclass(frozen=True)
class Block:
    declarations: Tuple[VarDecl, ...]
    procedures: Tuple[ProcedureDecl, ...]
    compound: Compound


@dataclass(frozen=True)
class Program:
    token: Token
    block: Block

    @property
    def name(self) -> str:
        return str(self.token.value)


Node: TypeAlias = Union[
    Num, BinOp, UnaryOp, Var,
    Compound, Assign, ProcedureCall, NoOp,
    TypeSpec, VarDecl, Param, ProcedureDecl, Block, Program,
]


# ---------- Traversal helpers ----------

def node_children(node: Node) -> List[Node]:
    """Direct children in printing order."""
    match node:
        case Program(block=block):
            return [block]
        case Block(declarations=decls, procedures=procs, compound=compound):
            return [*procs, *decls, compound]
        case ProcedureDecl(params=params, block=block):
            return [block, *params]
        case Compound(children=children):
            return list(children)
        case Assign(target=target, value=value):
            return [target, value]
        case ProcedureCall(args=args):
            return list(args)
        case BinOp(left=left, right=right):
            return [left, right]
        case UnaryOp(operand=operand):
            return [operand]
        case _:
            return []


def walk_postorder(node: Node, depth: int = 0) -> Iterator[Tuple[Node, int]]:
    """Yield (node, depth) pairs, children before their parent.

    Uses an explicit stack so long operator chains do not hit the recursion limit.
    """
    stack = [(node, depth, False)]
    while stack:
        current, level, expanded = stack.pop()
        if expanded:
            yield current, level
            continue

        stack.append((current, level, True))
        for child in reversed(node_children(current)):
            stack.append((child, level + 1, False))


def node_label(node: Node) -> str:
    match node:
        case Num(value=value):
            return f"Number {value}"
        case BinOp(op=op):
            return f"BinaryOp {op.type}"
        case UnaryOp(op=op):
            return f"UnaryOp {op.type}"
        case Var(token=tok):
            return f'Variable "{tok.value}"'
        case Compound():
            return "Compound Statement"
        case Assign(target=target):
            return f"Assignment {target.name} := ..."
        case ProcedureCall(token=tok, args=args):
            return f'ProcedureCall "{tok.value}" ({len(args)} args)'
        case NoOp():
            return "Empty Statement"
        case TypeSpec(token=tok):
            return f"Type {tok.type}"
        case VarDecl(var=var, type=type_):
            return f"VAR {var.name} : {type_.name}"
        case Param(var=var, type=type_):
            return f"PARAM {var.name} : {type_.name}"
        case ProcedureDecl(token=tok):
            return f'Procedure "{tok.value}"'
        case Block():
            return "Block"
        case Program(token=tok):
            return f'Program "{tok.value}"'
    raise TypeError(f"not an AST node: {node!r}")


def dump_postorder(node: Node, indent: str = '    ') -> str:
    """Postorder text dump, one node per line, indented by depth."""
    lines = []

    for n, depth in walk_postorder(node):
        lines.append(f"{indent * depth}{node_label(n)}")

    return '\n'.join(lines)


def to_lark_tree(node: Node) -> Union[Tree, Token]:
    """Structural view of the AST as a lark Tree (see ``Tree.pretty``)."""
    match node:
        case Num(token=tok) | Var(token=tok) | TypeSpec(token=tok):
            return tok
        case NoOp():
            return Tree('noop', [])
        case BinOp(op=op, left=left, right=right):
            return Tree('binop', [to_lark_tree(left), op, to_lark_tree(right)])
        case UnaryOp(op=op, operand=operand):
            return Tree('unaryop', [op, to_lark_tree(operand)])
        case Assign(target=target, op=op, value=value):
            return Tree('assign', [target.token, op, to_lark_tree(value)])
        case ProcedureCall(token=tok, args=args):
            return Tree('call', [tok, *[to_lark_tree(a) for a in args]])
        case Compound(children=children):
            return Tree('compound', [to_lark_tree(c) for c in children])
        case VarDecl(var=var, type=type_):
            return Tree('vardecl', [var.token, type_.token])
        case Param(var=var, type=type_):
            return Tree('param', [var.token, type_.token])
        case ProcedureDecl(token=tok, params=params, block=block):
            return Tree('procedure', [tok, *[to_lark_tree(p) for p in params], to_lark_tree(block)])
        case Block(declarations=decls, procedures=procs, compound=compound):
            return Tree('block', [
                *[to_lark_tree(d) for d in decls],
                *[to_lark_tree(p) for p in procs],
                to_lark_tree(compound),
            ])
        case Program(token=tok, block=block):
            return Tree('program', [tok, to_lark_tree(block)])
    raise TypeError(f"not an AST node: {node!r}")
