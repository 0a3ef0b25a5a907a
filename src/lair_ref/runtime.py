from __future__ import annotations

import importlib
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .token_types import TK
from .tree import Ast, Handle
from .types import NativeFn, NativeFunction, UserFunction, DuplicateNameError, UndefinedFunctionError

# Catalogue of built-ins, filled by @register_stdlib at import time. Each
# Environment copies what it needs into its own tables.
STDLIB_FUNCTIONS: Dict[str, NativeFunction] = {}

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("lair_ref.stdlib")
    _STDLIB_INITIALIZED = True

def register_stdlib(name: str, *, arity: int):
    def dec(fn: NativeFn):
        STDLIB_FUNCTIONS[name] = NativeFunction(name=name, arity=arity, fn=fn)
        return fn

    return dec

def standard_natives() -> List[NativeFunction]:
    init_stdlib()
    return list(STDLIB_FUNCTIONS.values())


class CollisionPolicy(Enum):
    """What happens when a name is both native and user-defined."""
    NATIVE_FIRST = "native-first"  # user definition is stored but unreachable
    USER_FIRST = "user-first"
    REJECT = "reject"  # defining over a native raises DuplicateNameError


class Environment:
    """Run-scoped registry of native and user-defined functions.

    The two tables are disjoint namespaces. The Environment borrows the
    Ast that user functions point into; it never mutates it.
    """

    def __init__(
        self,
        natives: Optional[Iterable[NativeFunction]] = None,
        policy: CollisionPolicy = CollisionPolicy.NATIVE_FIRST,
    ):
        self.natives: Dict[str, NativeFunction] = {}
        self.functions: Dict[str, UserFunction] = {}
        self.policy = policy

        for native in (standard_natives() if natives is None else natives):
            self.register_native(native.name, native.arity, native.fn)

    def register_native(self, name: str, arity: int, fn: NativeFn) -> NativeFunction:
        if not name:
            raise ValueError("native function name must not be empty")
        if arity < 0:
            raise ValueError(f"arity must be non-negative, got {arity}")

        if name in self.natives:
            raise DuplicateNameError(name)

        func = NativeFunction(name=name, arity=arity, fn=fn)
        self.natives[name] = func
        return func

    def register_user_function(self, name: str, ast: Ast, body: Handle) -> UserFunction:
        """Bind or rebind name to the FUNCTION node at body."""
        if self.policy is CollisionPolicy.REJECT and name in self.natives:
            raise DuplicateNameError(name)

        arity = sum(1 for h in ast.chain(ast[body].next) if ast[h].kind is TK.FUNCTION_ARG)
        func = UserFunction(name=name, arity=arity, ast=ast, body=body)
        self.functions[name] = func
        return func

    def lookup_native(self, name: str) -> Optional[NativeFunction]:
        return self.natives.get(name)

    def lookup_user_function(self, name: str) -> Optional[UserFunction]:
        return self.functions.get(name)

    def resolve(self, name: str) -> NativeFunction | UserFunction:
        native = self.lookup_native(name)
        user = self.lookup_user_function(name)

        if self.policy is CollisionPolicy.USER_FIRST:
            found = user or native
        else:
            found = native or user

        if found is None:
            raise UndefinedFunctionError(name)
        return found

    def is_bound(self, name: str) -> bool:
        return name in self.natives or name in self.functions

    def names(self) -> List[str]:
        return sorted(set(self.natives) | set(self.functions))

    def __repr__(self) -> str:
        return f"Environment(natives={sorted(self.natives)}, functions={sorted(self.functions)})"
