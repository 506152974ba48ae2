from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from ..tree import Block, Node, ProcedureCall, ProcedureDecl
from ..types import (
    ActivationRecord,
    ARType,
    CallDepthExceeded,
    EvalContext,
    EvaluationError,
    UnresolvedProcedure,
)

logger = logging.getLogger("minipas.evaluator")

EvalFunc = Callable[[Node, EvalContext], Optional[int]]


def run_activation(ar: ActivationRecord, block: Block, ctx: EvalContext, eval_func: EvalFunc) -> Dict[str, int]:
    """Push *ar*, run *block* in it, pop it; return the final bindings.

    The record is popped on the error path too, so the stack stays balanced.
    """
    ctx.stack.push(ar)
    logger.debug("ENTER: %s %s", ar.type.value, ar.name)
    logger.debug("%s", ctx.stack)

    try:
        eval_block(block, ctx, eval_func)
        bindings = dict(ar.members)
        logger.debug("LEAVE: %s %s", ar.type.value, ar.name)
        logger.debug("%s", ctx.stack)
    finally:
        ctx.stack.pop()

    return bindings


def eval_block(block: Block, ctx: EvalContext, eval_func: EvalFunc) -> None:
    for decl in block.declarations:
        eval_func(decl, ctx)

    for proc in block.procedures:
        eval_func(proc, ctx)

    eval_func(block.compound, ctx)


def register_procedure(decl: ProcedureDecl, ctx: EvalContext) -> None:
    """Make *decl* callable while the declaring frame is live.

    The body only runs when called. The registration is dropped with the
    frame, so a nested procedure is unreachable once its parent returns.
    """
    frame = ctx.stack.peek()
    level = frame.nesting_level + 1
    frame.procedures[decl.name] = (decl, level)
    logger.debug("Register: PROCEDURE %s (level %d)", decl.name, level)


def call_procedure(call: ProcedureCall, ctx: EvalContext, eval_func: EvalFunc) -> None:
    entry = ctx.stack.find_procedure(call.name)
    if entry is None:
        raise UnresolvedProcedure(call.token)

    decl, level = entry
    if len(call.args) != len(decl.params):
        raise EvaluationError(
            f"Procedure '{call.name}' expects {len(decl.params)} argument(s); got {len(call.args)}",
            call.token,
        )

    if len(ctx.stack) >= ctx.max_depth:
        raise CallDepthExceeded(call.token, ctx.max_depth)

    # Arguments are evaluated in the caller's frame, left to right.
    values = [eval_func(arg, ctx) for arg in call.args]

    ar = ActivationRecord(decl.name, ARType.PROCEDURE, level)
    for param, value in zip(decl.params, values):
        ar[param.var.name] = value

    run_activation(ar, decl.block, ctx, eval_func)
