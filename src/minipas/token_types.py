"""
Token Types for the Pascal subset

Shared between lexer and parser to avoid circular dependencies.
"""

from dataclasses import dataclass
from enum import Enum, auto


class TokenCategory(Enum):
    OPERATOR = auto()
    DELIMITER = auto()
    LITERAL = auto()
    KEYWORD = auto()
    IDENTIFIER = auto()
    END = auto()


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Operators
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    INT_DIV = auto()  # div
    ASSIGN = auto()  # :=

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    COLON = auto()
    SEMI = auto()
    COMMA = auto()
    DOT = auto()

    # Literals
    INT = auto()

    # Keywords
    PROGRAM = auto()
    VAR = auto()
    PROCEDURE = auto()
    BEGIN = auto()
    END = auto()
    INTEGER = auto()
    REAL = auto()

    VARIABLE = auto()

    # Special
    EOF = auto()

    @property
    def category(self) -> TokenCategory:
        return _CATEGORIES[self]


_CATEGORIES = {
    TT.ADD: TokenCategory.OPERATOR,
    TT.SUB: TokenCategory.OPERATOR,
    TT.MUL: TokenCategory.OPERATOR,
    TT.DIV: TokenCategory.OPERATOR,
    TT.INT_DIV: TokenCategory.OPERATOR,
    TT.ASSIGN: TokenCategory.OPERATOR,
    TT.LPAREN: TokenCategory.DELIMITER,
    TT.RPAREN: TokenCategory.DELIMITER,
    TT.COLON: TokenCategory.DELIMITER,
    TT.SEMI: TokenCategory.DELIMITER,
    TT.COMMA: TokenCategory.DELIMITER,
    TT.DOT: TokenCategory.DELIMITER,
    TT.INT: TokenCategory.LITERAL,
    TT.PROGRAM: TokenCategory.KEYWORD,
    TT.VAR: TokenCategory.KEYWORD,
    TT.PROCEDURE: TokenCategory.KEYWORD,
    TT.BEGIN: TokenCategory.KEYWORD,
    TT.END: TokenCategory.KEYWORD,
    TT.INTEGER: TokenCategory.KEYWORD,
    TT.REAL: TokenCategory.KEYWORD,
    TT.VARIABLE: TokenCategory.IDENTIFIER,
    TT.EOF: TokenCategory.END,
}


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    lexeme: str
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.lexeme!r}, {self.line}:{self.column})"
