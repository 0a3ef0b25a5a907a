"""
Token Types for Lair

Shared between lexer, parser and the dump helpers to avoid circular
dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional


class TK(Enum):
    """Token kinds. AST nodes are tagged with the same enum."""

    ERROR = auto()
    FUNCTION = auto()
    OPERATOR = auto()
    RETURN = auto()
    FUNCTION_ARG = auto()
    VARIABLE = auto()
    INDENT = auto()
    DEDENT = auto()  # closes every logical line
    EOF = auto()
    STRING = auto()
    CALL = auto()  # only produced by the parser
    ATOM = auto()
    NUMBER = auto()


@dataclass(eq=False)
class Token:
    """Token with indentation and position info, linked into a TokenList"""

    text: str
    kind: TK
    indent_level: int = 0
    offset: int = 0
    line: int = 0
    column: int = 0
    end_column: int = 0
    prev: Optional[Token] = field(default=None, repr=False)
    next: Optional[Token] = field(default=None, repr=False)

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, indent={self.indent_level}, {self.line}:{self.column})"


class TokenList:
    """Doubly linked token sequence.

    The lexer appends; the parser detaches from the head with popleft(), so
    a caller holding the list sees how far parsing got.
    """

    def __init__(self) -> None:
        self.head: Optional[Token] = None
        self.tail: Optional[Token] = None
        self._size = 0

    def append(self, tok: Token) -> Token:
        tok.prev = self.tail
        tok.next = None

        if self.tail is None:
            self.head = tok
        else:
            self.tail.next = tok

        self.tail = tok
        self._size += 1
        return tok

    def peek(self) -> Optional[Token]:
        return self.head

    def popleft(self) -> Token:
        tok = self.head
        if tok is None:
            raise IndexError("pop from an empty TokenList")

        self.head = tok.next
        if self.head is None:
            self.tail = None
        else:
            self.head.prev = None

        tok.next = None
        self._size -= 1
        return tok

    def __iter__(self) -> Iterator[Token]:
        cur = self.head
        while cur is not None:
            yield cur
            cur = cur.next

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self.head is not None

    def kinds(self) -> list[TK]:
        return [tok.kind for tok in self]

    def __repr__(self) -> str:
        return f"TokenList({list(self)!r})"
