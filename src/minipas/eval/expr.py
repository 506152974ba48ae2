from __future__ import annotations

from lark import Token

from ..types import DivisionByZero, EvaluationError


def trunc_div(lhs: int, rhs: int, op: Token) -> int:
    """Integer division rounding toward zero (-7 div 2 == -3)."""
    if rhs == 0:
        raise DivisionByZero(op)

    quotient = abs(lhs) // abs(rhs)
    return -quotient if (lhs < 0) != (rhs < 0) else quotient


def apply_binary_operator(op: Token, lhs: int, rhs: int) -> int:
    match op.type:
        case 'ADD':
            return lhs + rhs
        case 'SUB':
            return lhs - rhs
        case 'MUL':
            return lhs * rhs
        case 'DIV' | 'INT_DIV':
            return trunc_div(lhs, rhs, op)
        case _:
            raise EvaluationError(f"Unsupported binary operator '{op.value}'", op)


def apply_unary_operator(op: Token, operand: int) -> int:
    match op.type:
        case 'ADD':
            return operand
        case 'SUB':
            return -operand
        case _:
            raise EvaluationError(f"Unsupported unary operator '{op.value}'", op)
