"""Human readable dumps of token lists and parsed Asts for debugging.

Nothing in the lexer, parser or evaluator depends on this module.
"""
from __future__ import annotations

from typing import List, Optional, Union

from lark import Token as LarkToken
from lark import Tree

from .token_types import TK, TokenList
from .tree import Ast, Handle


def format_tokens(tokens: TokenList) -> str:
    """One token per line: kind, indent level, text. Does not consume the list."""
    lines: List[str] = []

    for tok in tokens:
        text = repr(tok.text) if tok.text else ''
        lines.append(f"{tok.kind.name:<12}\t{tok.indent_level}\t{text}".rstrip())

    return "\n".join(lines)


def _leaf(ast: Ast, handle: Handle) -> LarkToken:
    node = ast[handle]
    value = str(node.atom.value)
    return LarkToken(node.kind.name, value, line=node.line, column=node.column)


def _statement(ast: Ast, handle: Handle) -> Tree:
    node = ast[handle]
    kids: List[Union[Tree, LarkToken]] = []

    # the statement's own next chain, stopping where a definition's body starts
    nxt: Optional[Handle] = node.next
    while nxt is not None and nxt != node.children:
        if ast[nxt].kind is TK.CALL:
            kids.append(_statement(ast, nxt))
            break
        kids.append(_leaf(ast, nxt))
        nxt = ast[nxt].next

    if node.children is not None:
        kids.append(Tree("body", [_statement(ast, h) for h in ast.children_of(handle)]))

    label = node.kind.name.lower()
    if node.kind is TK.CALL:
        return Tree(label, kids)
    return Tree(label, [_leaf(ast, handle), *kids])


def to_tree(ast: Ast) -> Tree:
    """Convert the arena into a lark Tree rooted at ``program``."""
    return Tree("program", [_statement(ast, h) for h in ast.top_level()])


def format_ast(ast: Ast) -> str:
    return to_tree(ast).pretty()
