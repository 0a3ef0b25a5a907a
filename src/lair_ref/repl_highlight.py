"""prompt_toolkit lexer for live Lair syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable, Dict, List

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import LexError, tokenize
from .token_types import TK, Token

GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "function": "bold ansiyellow",
    "parameter": "italic ansiyellow",
    "operator": "",
    "identifier": "",
    "comment": "italic ansigray",
}

_TK_GROUP = {
    TK.RETURN: "keyword",
    TK.NUMBER: "number",
    TK.STRING: "string",
    TK.FUNCTION: "function",
    TK.FUNCTION_ARG: "parameter",
    TK.VARIABLE: "parameter",
    TK.OPERATOR: "operator",
    TK.ATOM: "identifier",
}

_LAYOUT = {TK.INDENT, TK.DEDENT, TK.EOF}


def _highlight_line(text: str, tokens: List[Token]) -> StyleAndTextTuples:
    """Style one source line from the tokens the lexer produced for it."""
    result: StyleAndTextTuples = []
    pos = 0

    for tok in tokens:
        start = tok.column - 1
        end = tok.end_column - 1
        if start < pos or end > len(text):
            continue

        if start > pos:
            result.append(("", text[pos:start]))

        style = GROUP_STYLE.get(_TK_GROUP.get(tok.kind, ""), "")
        result.append((style, text[start:end]))
        pos = end

    if pos < len(text):
        rest = text[pos:]
        style = GROUP_STYLE["comment"] if rest.lstrip().startswith("#") else ""
        result.append((style, rest))

    return result if result else [("", text)]


class LairLexer(Lexer):
    """prompt_toolkit Lexer that highlights Lair source using lexer_rd."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines
        by_line: Dict[int, List[Token]] = {}

        # The whole buffer is lexed at once so definition headers are seen
        try:
            for tok in tokenize(document.text):
                if tok.kind not in _LAYOUT:
                    by_line.setdefault(tok.line - 1, []).append(tok)
        except LexError:
            by_line = {}

        cache: Dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno], by_line.get(lineno, []))
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
