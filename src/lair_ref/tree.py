"""AST arena shared by the parser, evaluator and dump helpers.

Nodes live in one list and refer to each other by integer handle, so the
three relations a node takes part in stay separate:

- ``children``: first node of the block nested under this one
- ``sibling``: next node at the same nesting level
- ``next``: next node in this statement's chain (callee, argument,
  parameter markers, body start)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional

from .token_types import TK
from .types import Integer, Text, Value

Handle = int


@dataclass
class Node:
    kind: TK
    atom: Value
    children: Optional[Handle] = None
    sibling: Optional[Handle] = None
    next: Optional[Handle] = None
    line: int = 0
    column: int = 0

    def __post_init__(self) -> None:
        expected = Integer if self.kind is TK.NUMBER else Text
        if not isinstance(self.atom, expected):
            raise TypeError(f"{self.kind.name} node needs a {expected.__name__} atom, got {self.atom!r}")

    @property
    def name(self) -> str:
        """Text payload; only meaningful for non-NUMBER nodes."""
        atom = self.atom
        return atom.value if isinstance(atom, Text) else str(atom.value)


class Ast:
    """Arena of nodes plus the handle of the first top-level statement."""

    def __init__(self) -> None:
        self.nodes: List[Node] = []
        self.first: Optional[Handle] = None

    def add(self, kind: TK, atom: Value, line: int = 0, column: int = 0) -> Handle:
        self.nodes.append(Node(kind, atom, line=line, column=column))
        return len(self.nodes) - 1

    def __getitem__(self, handle: Handle) -> Node:
        return self.nodes[handle]

    def __len__(self) -> int:
        return len(self.nodes)

    def siblings(self, handle: Optional[Handle]) -> Iterator[Handle]:
        while handle is not None:
            yield handle
            handle = self.nodes[handle].sibling

    def chain(self, handle: Optional[Handle]) -> Iterator[Handle]:
        while handle is not None:
            yield handle
            handle = self.nodes[handle].next

    def top_level(self) -> Iterator[Handle]:
        return self.siblings(self.first)

    def children_of(self, handle: Handle) -> Iterator[Handle]:
        return self.siblings(self.nodes[handle].children)

    def __repr__(self) -> str:
        return f"Ast(nodes={len(self.nodes)}, first={self.first})"
