from __future__ import annotations

from typing import Dict, Optional

from .eval.calls import call_procedure, eval_block, register_procedure, run_activation
from .eval.expr import apply_binary_operator, apply_unary_operator
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
from .types import ActivationRecord, ARType, EvalContext, EvaluationError, UnboundVariable


def _maybe_attach_location(exc: EvaluationError, node: Node) -> None:
    if exc.line is not None:
        return

    token = getattr(node, "token", None) or getattr(node, "op", None)
    if token is None or getattr(token, "line", None) is None:
        return

    exc.token = token
    exc.line = token.line
    exc.column = token.column

# ---------------- Public API ----------------

def evaluate(program: Program, ctx: Optional[EvalContext] = None) -> Dict[str, int]:
    """Run *program* and return the final bindings of its outermost frame."""
    if ctx is None:
        ctx = EvalContext()

    ar = ActivationRecord(program.name, ARType.PROGRAM, 1)
    try:
        return run_activation(ar, program.block, ctx, eval_node)
    except EvaluationError as e:
        _maybe_attach_location(e, program)
        raise
    except RecursionError:
        raise EvaluationError("Expression nesting too deep") from None

# ---------------- Core evaluator ----------------

def eval_node(n: Node, ctx: EvalContext) -> Optional[int]:
    try:
        return _eval_node_inner(n, ctx)
    except EvaluationError as e:
        _maybe_attach_location(e, n)
        raise


def _eval_node_inner(n: Node, ctx: EvalContext) -> Optional[int]:
    match n:
        # expressions
        case Num(value=value):
            return value
        case BinOp():
            return _eval_binop_chain(n, ctx)
        case UnaryOp(op=op, operand=operand):
            return apply_unary_operator(op, eval_node(operand, ctx))
        case Var(token=tok):
            frame = ctx.stack.peek()
            if n.name not in frame:
                raise UnboundVariable(tok, frame.name)
            return frame[n.name]

        # statements
        case Compound(children=children):
            for child in children:
                eval_node(child, ctx)
            return None
        case Assign(target=target, value=value):
            result = eval_node(value, ctx)
            ctx.stack.peek()[target.name] = result
            return None
        case ProcedureCall():
            call_procedure(n, ctx, eval_node)
            return None
        case NoOp():
            return None

        # declarations
        case VarDecl(var=var):
            ctx.stack.peek()[var.name] = 0
            return None
        case ProcedureDecl():
            register_procedure(n, ctx)
            return None
        case Block():
            eval_block(n, ctx, eval_node)
            return None
        case Param() | TypeSpec():
            return None
        case Program():
            raise EvaluationError("Nested program node")

    raise EvaluationError(f"Unsupported node {type(n).__name__}")


def _eval_binop_chain(n: BinOp, ctx: EvalContext) -> int:
    """Fold a left-nested operator chain in a loop, innermost operator first."""
    spine = []
    node: Node = n
    while isinstance(node, BinOp):
        spine.append(node)
        node = node.left

    acc = eval_node(node, ctx)
    for binop in reversed(spine):
        rhs = eval_node(binop.right, ctx)
        try:
            acc = apply_binary_operator(binop.op, acc, rhs)
        except EvaluationError as e:
            _maybe_attach_location(e, binop)
            raise
    return acc
