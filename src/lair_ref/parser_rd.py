"""
Recursive Descent Parser for Lair

Consumes a TokenList produced by lexer_rd and builds an Ast arena.

Structure:
- One statement per logical line, each closed by a DEDENT token
- Nesting driven by a stack of indentation scopes: INDENT opens a
  children scope under the last statement, DEDENT pops back to the level
  it carries
- Calls are right-nested prefix applications with at most one argument
  expression: ``print double 2`` is ``print (double 2)``

Shapes produced (``->`` is the ``next`` link):
- call:        CALL -> callee -> argument
- return:      RETURN -> value
- definition:  FUNCTION -> FUNCTION_ARG ... -> first body statement,
               with the body also hanging off FUNCTION.children
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .token_types import TK, Token, TokenList
from .tree import Ast, Handle
from .types import Integer, Text

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Token] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )


@dataclass
class _Scope:
    level: int
    parent: Optional[Handle]
    last: Optional[Handle] = None
    # tail of the parent's next chain that must point at the first body statement
    body_link: Optional[Handle] = None


class Parser:
    """
    Indentation driven parser for Lair.

    The token list is consumed from the head, so once parse() returns the
    caller's TokenList is empty.
    """

    CALLEES = (TK.ATOM, TK.OPERATOR)
    LITERALS = (TK.NUMBER, TK.STRING, TK.VARIABLE)

    def __init__(self, tokens: TokenList):
        self.tokens = tokens
        self.ast = Ast()
        self.scopes: List[_Scope] = [_Scope(level=0, parent=None)]
        self._body_links: Dict[Handle, Handle] = {}

    # ========================================================================
    # Token Helpers
    # ========================================================================

    def peek(self) -> Token:
        tok = self.tokens.peek()
        if tok is None:
            raise ParseError("Unexpected end of input: missing EOF")
        return tok

    def advance(self) -> Token:
        """Detach and return the head token"""
        self.peek()
        return self.tokens.popleft()

    def check(self, *kinds: TK) -> bool:
        return self.peek().kind in kinds

    def expect(self, kind: TK, message: Optional[str] = None) -> Token:
        if not self.check(kind):
            cur = self.peek()
            raise ParseError(message or f"Expected {kind.name}, got {cur.kind.name}", cur)
        return self.advance()

    def node_from(self, tok: Token) -> Handle:
        atom: Union[Integer, Text]
        if tok.kind is TK.NUMBER:
            atom = Integer(int(tok.text))
        else:
            atom = Text(tok.text)
        return self.ast.add(tok.kind, atom, tok.line, tok.column)

    def link_next(self, prev: Handle, nxt: Handle) -> None:
        self.ast[prev].next = nxt

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Ast:
        """Parse entire program"""
        while True:
            tok = self.peek()
            match tok.kind:
                case TK.EOF:
                    self.advance()
                    break
                case TK.INDENT:
                    self.open_scope(self.advance())
                case TK.DEDENT:
                    self.close_scopes(self.advance())
                case _:
                    self.parse_line()

        return self.ast

    def parse_line(self) -> None:
        tok = self.peek()
        header: Optional[Token] = None

        match tok.kind:
            case TK.FUNCTION:
                header = tok
                handle = self.parse_definition()
            case TK.RETURN:
                handle = self.parse_return()
            case TK.ATOM | TK.OPERATOR:
                handle = self.parse_call(self.advance())
            case _:
                handle = self.node_from(self.advance())

        self.add_statement(handle)
        end = self.expect(TK.DEDENT, f"Unexpected {self.peek().kind.name} token after statement")
        self.close_scopes(end)

        if header is not None and not self.check(TK.INDENT):
            raise ParseError(f"Empty definition of '{header.text}'", header)

    # ========================================================================
    # Indentation
    # ========================================================================

    def open_scope(self, tok: Token) -> None:
        cur = self.scopes[-1]
        if tok.indent_level <= cur.level:
            raise ParseError("Indent does not increase the indentation level", tok)
        if cur.last is None:
            raise ParseError("Indented block without a parent statement", tok)

        self.scopes.append(_Scope(
            level=tok.indent_level,
            parent=cur.last,
            body_link=self._body_links.get(cur.last),
        ))

    def close_scopes(self, tok: Token) -> None:
        level = tok.indent_level
        while len(self.scopes) > 1 and self.scopes[-1].level > level:
            self.scopes.pop()

        if self.scopes[-1].level == level:
            return

        # Deeper than every open scope: only valid right before an INDENT
        # that opens exactly that level.
        nxt = self.tokens.peek()
        if nxt is None or nxt.kind is not TK.INDENT or nxt.indent_level != level:
            raise ParseError(f"Unbalanced indentation: level {level} was never opened", tok)

    def add_statement(self, handle: Handle) -> None:
        scope = self.scopes[-1]

        if scope.last is not None:
            self.ast[scope.last].sibling = handle
        elif scope.parent is None:
            self.ast.first = handle
        else:
            self.ast[scope.parent].children = handle
            if scope.body_link is not None:
                self.link_next(scope.body_link, handle)

        scope.last = handle

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_definition(self) -> Handle:
        """FUNCTION FUNCTION_ARG* DEDENT, body follows as an indented block"""
        fn = self.node_from(self.expect(TK.FUNCTION))
        tail = fn

        while self.check(TK.FUNCTION_ARG):
            arg = self.node_from(self.advance())
            self.link_next(tail, arg)
            tail = arg

        if not self.check(TK.DEDENT):
            raise ParseError("Unexpected token in function header", self.peek())

        self._body_links[fn] = tail
        return fn

    def parse_return(self) -> Handle:
        ret = self.node_from(self.expect(TK.RETURN))
        if self.check(TK.DEDENT):
            return ret

        if not self.check(*self.LITERALS, *self.CALLEES):
            raise ParseError("Unexpected token after return", self.peek())

        self.link_next(ret, self.node_from(self.advance()))
        if not self.check(TK.DEDENT):
            raise ParseError("return takes a single value", self.peek())
        return ret

    def parse_call(self, callee_tok: Token) -> Handle:
        call = self.ast.add(TK.CALL, Text(callee_tok.text), callee_tok.line, callee_tok.column)
        callee = self.node_from(callee_tok)
        self.link_next(call, callee)

        if self.check(TK.DEDENT):
            return call

        self.link_next(callee, self.parse_argument())

        if not self.check(TK.DEDENT):
            raise ParseError(
                f"'{callee_tok.text}' accepts at most one argument expression", self.peek()
            )
        return call

    def parse_argument(self) -> Handle:
        tok = self.advance()

        if tok.kind in self.LITERALS:
            return self.node_from(tok)

        if tok.kind in self.CALLEES:
            # A lone name is an atom; a name with more tokens is a nested call
            if self.check(TK.DEDENT):
                return self.node_from(tok)
            return self.parse_call(tok)

        raise ParseError(f"Unexpected {tok.kind.name} token in argument", tok)


def parse(tokens: TokenList) -> Ast:
    """Parse a token list into an Ast, consuming the list."""
    return Parser(tokens).parse()


def parse_source(source: Union[str, bytes]) -> Ast:
    """
    Parse Lair source code to an Ast.

    Args:
        source: Source code to parse, as text or UTF-8 bytes
    """
    from .lexer_rd import tokenize

    return parse(tokenize(source))
