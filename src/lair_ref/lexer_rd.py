"""
Lexer for Lair

Tokenizes Lair source code into a doubly linked TokenList.

Features:
- Line oriented: every logical line is closed by a DEDENT
- Indentation-aware (INDENT on increase, DEDENT carries the next level)
- Definition headers recognised by lookahead at the next line
- Byte offset, line and column tracking for errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple, Union

from .token_types import TK, Token, TokenList

# ============================================================================
# Lexer Implementation
# ============================================================================

@dataclass
class _RawTok:
    text: str
    kind: TK
    pos: int
    column: int
    end_column: int = 0
    ident: bool = False


@dataclass
class _Line:
    number: int
    start: int
    indent: int
    indent_str: str
    toks: List[_RawTok] = field(default_factory=list)


class Lexer:
    """
    Lair lexer.

    Indentation model:
    - indent level is the count of leading indentation characters
    - the first indented line fixes the unit (tab or space) for the buffer
    - INDENT precedes a line that is deeper than the previous one
    - DEDENT closes every line and carries the level of the next line
    """

    KEYWORDS = {
        'return': TK.RETURN,
    }

    OPERATOR_CHARS = frozenset('+-*/%=<>!?')

    ESCAPES = {
        '\\': '\\',
        '"': '"',
        'n': '\n',
        't': '\t',
    }

    def __init__(self, source: Union[str, bytes], length: Optional[int] = None):
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
            if length is not None:
                data = data[:length]
            try:
                source = data.decode('utf-8')
            except UnicodeDecodeError as exc:
                raise LexError("Invalid UTF-8 in source", offset=exc.start) from None
        elif length is not None:
            source = source[:length]

        self.source: str = source
        self.tokens = TokenList()
        self.indent_char: Optional[str] = None
        self._ascii = source.isascii()

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> TokenList:
        """Tokenize entire source, return token list"""
        lines = self.scan_lines()
        prev_level = 0
        # (header indent, parameter names) for each open definition body
        scopes: List[Tuple[int, Set[str]]] = []

        for idx, line in enumerate(lines):
            next_level = lines[idx + 1].indent if idx + 1 < len(lines) else 0

            if line.indent > prev_level:
                self.emit(TK.INDENT, line.indent_str, line.indent, line.start, line.number, 1, line.indent + 1)

            while scopes and scopes[-1][0] >= line.indent:
                scopes.pop()

            first = line.toks[0]
            if next_level > line.indent and first.ident:
                self.classify_header(line)
                scopes.append((line.indent, {t.text for t in line.toks[1:] if t.ident}))
            else:
                params: Set[str] = set()
                for _, names in scopes:
                    params |= names
                for tok in line.toks:
                    if tok.ident and tok.text in params:
                        tok.kind = TK.VARIABLE

            for tok in line.toks:
                self.emit(tok.kind, tok.text, line.indent, tok.pos, line.number, tok.column, tok.end_column)

            end_col = line.toks[-1].end_column
            self.emit(TK.DEDENT, '', next_level, line.start + end_col - 1, line.number, end_col)
            prev_level = line.indent

        self.emit(TK.EOF, '', 0, len(self.source), len(self.source.split('\n')), 1)
        return self.tokens

    def classify_header(self, line: _Line) -> None:
        """First identifier names the function, later ones are its parameters"""
        line.toks[0].kind = TK.FUNCTION
        for tok in line.toks[1:]:
            if tok.ident:
                tok.kind = TK.FUNCTION_ARG

    # ========================================================================
    # Line Scanning
    # ========================================================================

    def scan_lines(self) -> List[_Line]:
        """Split into logical lines, dropping blank and comment-only ones"""
        lines: List[_Line] = []
        start = 0

        for number, raw in enumerate(self.source.split('\n'), start=1):
            text = raw[:-1] if raw.endswith('\r') else raw
            line = self.scan_line(text, start, number)
            if line.toks:
                lines.append(line)
            start += len(raw) + 1

        return lines

    def scan_line(self, text: str, start: int, number: int) -> _Line:
        indent_str = ''
        for ch in text:
            if ch not in (' ', '\t'):
                break
            indent_str += ch

        line = _Line(number=number, start=start, indent=len(indent_str), indent_str=indent_str)
        body_start = len(indent_str)

        # Blank and comment-only lines never reach the indentation check
        if body_start == len(text) or text[body_start] == '#':
            return line

        self.check_indentation(indent_str, start, number)

        i = body_start
        while i < len(text):
            ch = text[i]

            if ch in (' ', '\t'):
                i += 1
                continue

            if ch == '#':
                break

            if ch == '"':
                i = self.scan_string(text, i, line)
            elif ch.isdigit():
                i = self.scan_number(text, i, line)
            elif ch.isalpha() or ch == '_':
                i = self.scan_identifier(text, i, line)
            elif ch in self.OPERATOR_CHARS:
                i = self.scan_operator(text, i, line)
            else:
                raise self.error(f"Unexpected character {ch!r}", start + i, number, i + 1)

        return line

    def check_indentation(self, indent_str: str, start: int, number: int) -> None:
        for i, ch in enumerate(indent_str):
            if self.indent_char is None:
                self.indent_char = ch
            elif ch != self.indent_char:
                raise self.error("Inconsistent indentation", start + i, number, i + 1)

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self, text: str, i: int, line: _Line) -> int:
        """Scan string literal: "..." with \\\\ \\" \\n \\t escapes"""
        open_at = i
        value = ''
        i += 1

        while i < len(text) and text[i] != '"':
            if text[i] == '\\':
                if i + 1 >= len(text):
                    # a trailing backslash leaves the string open
                    i = len(text)
                    break
                esc = text[i + 1]
                if esc not in self.ESCAPES:
                    raise self.error("Unknown escape sequence", line.start + i, line.number, i + 1)
                value += self.ESCAPES[esc]
                i += 2
            else:
                value += text[i]
                i += 1

        if i >= len(text):
            raise self.error("Unterminated string", line.start + open_at, line.number, open_at + 1)

        line.toks.append(_RawTok(value, TK.STRING, line.start + open_at, open_at + 1, i + 2))
        return i + 1

    def scan_number(self, text: str, i: int, line: _Line) -> int:
        begin = i
        while i < len(text) and (text[i].isalnum() or text[i] == '_'):
            i += 1

        value = text[begin:i]
        if not value.isdigit() or not value.isascii():
            raise self.error("Invalid number literal", line.start + begin, line.number, begin + 1)

        line.toks.append(_RawTok(value, TK.NUMBER, line.start + begin, begin + 1, i + 1))
        return i

    def scan_identifier(self, text: str, i: int, line: _Line) -> int:
        begin = i
        while i < len(text) and (text[i].isalnum() or text[i] == '_'):
            i += 1

        value = text[begin:i]
        kind = self.KEYWORDS.get(value)
        if kind is not None:
            line.toks.append(_RawTok(value, kind, line.start + begin, begin + 1, i + 1))
        else:
            line.toks.append(_RawTok(value, TK.ATOM, line.start + begin, begin + 1, i + 1, ident=True))
        return i

    def scan_operator(self, text: str, i: int, line: _Line) -> int:
        begin = i
        while i < len(text) and text[i] in self.OPERATOR_CHARS:
            i += 1

        line.toks.append(_RawTok(text[begin:i], TK.OPERATOR, line.start + begin, begin + 1, i + 1))
        return i

    # ========================================================================
    # Utilities
    # ========================================================================

    def byte_offset(self, pos: int) -> int:
        if self._ascii:
            return pos
        return len(self.source[:pos].encode('utf-8'))

    def error(self, message: str, pos: int, line: int, column: int) -> LexError:
        return LexError(message, offset=self.byte_offset(pos), line=line, column=column)

    def emit(self, kind: TK, text: str, indent: int, pos: int, line: int, column: int,
             end_column: Optional[int] = None) -> Token:
        """Emit a token"""
        tok = Token(
            text=text,
            kind=kind,
            indent_level=indent,
            offset=self.byte_offset(pos),
            line=line,
            column=column,
            end_column=column if end_column is None else end_column,
        )
        return self.tokens.append(tok)


class LexError(Exception):
    """Lexical analysis error, positioned by byte offset"""

    def __init__(self, message: str, offset: int, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        where = f"at line {line}, col {column}" if line is not None else f"at byte {offset}"
        super().__init__(f"{message} {where}")


def tokenize(source: Union[str, bytes], length: Optional[int] = None) -> TokenList:
    """Convenience function to tokenize source.

    length truncates the buffer first: it counts bytes for bytes input and
    characters for str input. LexError offsets are always UTF-8 byte offsets.
    """
    lexer = Lexer(source, length=length)
    return lexer.tokenize()
