"""prompt_toolkit lexer for live syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as PasLexer, LexError
from .token_types import TT, TokenCategory

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "type": "bold ansiblue",
    "number": "ansimagenta",
    "identifier": "",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
}

_CATEGORY_GROUP = {
    TokenCategory.KEYWORD: "keyword",
    TokenCategory.LITERAL: "number",
    TokenCategory.IDENTIFIER: "identifier",
    TokenCategory.OPERATOR: "operator",
    TokenCategory.DELIMITER: "punctuation",
}

# div is spelled like a keyword but behaves as an operator.
_TT_GROUP = {
    TT.INTEGER: "type",
    TT.REAL: "type",
    TT.INT_DIV: "keyword",
}


def token_group(tt: TT) -> str:
    return _TT_GROUP.get(tt) or _CATEGORY_GROUP.get(tt.category, "")


def _gap(text: str) -> StyleAndTextTuples:
    """Unstyled text between tokens; comments get their own style."""
    if '{' in text:
        idx = text.index('{')
        spans: StyleAndTextTuples = []
        if idx:
            spans.append(("", text[:idx]))
        spans.append((GROUP_STYLE["comment"], text[idx:]))
        return spans
    return [("", text)]


def highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = list(PasLexer(text))
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for tok in tokens:
        if tok.type == TT.EOF:
            continue

        start = tok.column - 1
        end = start + len(tok.lexeme)

        if start > pos:
            result.extend(_gap(text[pos:start]))

        style = GROUP_STYLE.get(token_group(tok.type), "")
        # keyword lexemes are lower-cased; show what the user typed
        result.append((style, text[start:end]))
        pos = end

    if pos < len(text):
        result.extend(_gap(text[pos:]))

    return result if result else [("", text)]


class PascalLexer(Lexer):
    """prompt_toolkit Lexer that highlights source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
