"""
Lexer for the Pascal subset - Recursive Descent Parser

Turns source text into a lazy stream of tokens.

Features:
- On-demand tokenization (`next_token`), stable at end of input
- Position tracking (line, column)
- Case-insensitive keywords, case-preserving identifiers
- `{ ... }` comments
"""

from typing import Iterator, List, Optional

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, line: int, column: int, char: Optional[str] = None):
        self.message = message
        self.line = line
        self.column = column
        self.char = char
        super().__init__(f"{message} at line {line}, col {column}")


class Lexer:
    """
    Pascal subset lexer.

    The cursor moves one character at a time; `peek()` looks at the
    character under the cursor without consuming it.
    """

    # Keyword mapping (lower-cased lexeme -> kind)
    KEYWORDS = {
        'begin': TT.BEGIN,
        'end': TT.END,
        'program': TT.PROGRAM,
        'var': TT.VAR,
        'procedure': TT.PROCEDURE,
        'integer': TT.INTEGER,
        'real': TT.REAL,
        'div': TT.INT_DIV,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        (':=', TT.ASSIGN),

        # Single-character operators
        ('+', TT.ADD),
        ('-', TT.SUB),
        ('*', TT.MUL),
        ('/', TT.DIV),
        ('(', TT.LPAREN),
        (')', TT.RPAREN),
        (':', TT.COLON),
        (',', TT.COMMA),
        ('.', TT.DOT),
        (';', TT.SEMI),
    ]

    WHITESPACE = (' ', '\t', '\r', '\n')

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def __iter__(self) -> Iterator[Tok]:
        """Yield tokens up to and including EOF"""
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == TT.EOF:
                return

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def next_token(self) -> Tok:
        """Scan and return the next token; EOF repeats once reached"""
        while True:
            if self.skip_whitespace():
                continue
            if self.peek() == '{':
                self.skip_comment()
                continue
            break

        if self.at_end():
            return Tok(TT.EOF, '', self.line, self.column)

        # Numbers
        if _is_digit(self.peek()):
            return self.scan_number()

        # Identifiers and keywords
        if self.peek().isalnum():
            return self.scan_identifier()

        # Operators and punctuation
        return self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_number(self) -> Tok:
        """Scan integer literal (maximal digit run)"""
        line, column = self.line, self.column
        value = ''

        while _is_digit(self.peek()):
            value += self.advance()

        return Tok(TT.INT, value, line, column)

    def scan_identifier(self) -> Tok:
        """Scan identifier or keyword"""
        line, column = self.line, self.column
        value = ''

        while self.peek().isalnum():
            value += self.advance()

        lowered = value.lower()
        token_type = self.KEYWORDS.get(lowered)
        if token_type is not None:
            return Tok(token_type, lowered, line, column)

        return Tok(TT.VARIABLE, value, line, column)

    def scan_operator(self) -> Tok:
        """Scan operators and punctuation"""
        line, column = self.line, self.column

        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                return Tok(op_type, op_str, line, column)

        ch = self.peek()
        raise LexError(f"Unexpected character '{ch}'", line, column, ch)

    # ========================================================================
    # Utilities
    # ========================================================================

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            if self.at_end():
                break
            ch = self.source[self.pos]
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace, return True if any skipped"""
        skipped = False
        while not self.at_end() and self.peek() in self.WHITESPACE:
            self.advance()
            skipped = True
        return skipped

    def skip_comment(self):
        """Skip a { ... } comment"""
        line, column = self.line, self.column
        self.advance()  # {

        while not self.at_end() and self.peek() != '}':
            self.advance()

        if self.at_end():
            raise LexError("Unterminated comment", line, column, '{')

        self.advance()  # }


def _is_digit(ch: str) -> bool:
    return ch.isascii() and ch.isdigit()


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source, EOF included"""
    return list(Lexer(source))
