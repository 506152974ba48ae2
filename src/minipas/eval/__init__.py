"""Evaluator helper modules for the minipas runtime."""

__all__ = [
    "calls",
    "expr",
]
