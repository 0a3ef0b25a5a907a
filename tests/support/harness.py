from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from lair_ref.evaluator import eval_program, evaluate
from lair_ref.lexer_rd import LexError, Lexer, tokenize
from lair_ref.parser_rd import ParseError, parse, parse_source
from lair_ref.runner import run as run_program
from lair_ref.runtime import CollisionPolicy, Environment
from lair_ref.token_types import TK, Token, TokenList
from lair_ref.tree import Ast
from lair_ref.types import (
    ArityError,
    DuplicateNameError,
    Integer,
    LairRuntimeError,
    LairTypeError,
    NativeFunction,
    NotSupportedError,
    Text,
    UndefinedFunctionError,
    Value,
)

TokenShape = Tuple[TK, str]


@dataclass
class CallLog:
    """Records every value a native was called with, in order."""

    calls: List[Tuple[str, Value]]

    def native(self, name: str) -> Callable[[List[Value]], Value]:
        def fn(args: List[Value]) -> Value:
            self.calls.append((name, args[0]))
            return args[0]

        return fn


def recording_env(*names: str, policy: CollisionPolicy = CollisionPolicy.NATIVE_FIRST) -> Tuple[Environment, CallLog]:
    """Environment whose natives (arity 1) only log their argument."""
    log = CallLog(calls=[])
    natives = [NativeFunction(name=n, arity=1, fn=log.native(n)) for n in names]
    return Environment(natives=natives, policy=policy), log


def token_shapes(source: str, with_layout: bool = True) -> List[TokenShape]:
    layout = {TK.INDENT, TK.DEDENT, TK.EOF}
    return [
        (tok.kind, tok.text)
        for tok in tokenize(source)
        if with_layout or tok.kind not in layout
    ]


def make_tokens(*specs: Tuple[TK, str, int]) -> TokenList:
    """Build a TokenList by hand: (kind, text, indent_level) per token."""
    tokens = TokenList()
    for line, (kind, text, level) in enumerate(specs, start=1):
        tokens.append(Token(text=text, kind=kind, indent_level=level, line=line, column=1))
    return tokens


def run_output(source: str, capsys: pytest.CaptureFixture[str], env: Optional[Environment] = None) -> List[str]:
    """Run source and return the lines it printed."""
    status = run_program(source, env)
    assert status == 0
    out = capsys.readouterr().out
    return out.splitlines()


def statement_kinds(ast: Ast) -> List[TK]:
    return [ast[h].kind for h in ast.top_level()]


def chain_atoms(ast: Ast, handle: int) -> List[Tuple[TK, Value]]:
    return [(ast[h].kind, ast[h].atom) for h in ast.chain(handle)]
