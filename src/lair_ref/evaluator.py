from __future__ import annotations

from typing import Optional

from .runtime import Environment
from .token_types import TK
from .tree import Ast, Handle, Node
from .types import (
    NativeFunction,
    UserFunction,
    Value,
    ArityError,
    LairRuntimeError,
    NotSupportedError,
)
from .utils import trace


def _maybe_attach_location(exc: LairRuntimeError, node: Node) -> None:
    if exc.line is not None or not node.line:
        return

    exc.line = node.line
    exc.column = node.column

# ---------------- Public API ----------------

def eval_program(ast: Ast, env: Optional[Environment] = None) -> int:
    """Run the top-level statements of ast once, in order; returns status 0.

    Calls run for their effects and definitions are registered without
    running their bodies. Any other top-level node is skipped.
    """
    if env is None:
        env = Environment()

    for handle in ast.top_level():
        node = ast[handle]

        match node.kind:
            case TK.CALL:
                evaluate(ast, handle, env)
            case TK.FUNCTION:
                func = env.register_user_function(node.name, ast, handle)
                trace(f"defined {func!r} at line {node.line}")
            case _:
                trace(f"skipped top-level {node.kind.name} {node.atom!r} at line {node.line}")

    return 0

def evaluate(ast: Ast, handle: Handle, env: Environment) -> Value:
    """Evaluate one node. The Ast is only read, never modified."""
    node = ast[handle]
    try:
        return _eval_node_inner(ast, node, env)
    except LairRuntimeError as e:
        _maybe_attach_location(e, node)
        raise

# ---------------- Core evaluator ----------------

def _eval_node_inner(ast: Ast, node: Node, env: Environment) -> Value:
    match node.kind:
        case TK.CALL:
            if node.next is None:
                raise LairRuntimeError("call without a callee")
            return call_function(ast, node.next, env)
        case TK.ATOM | TK.OPERATOR:
            return eval_atom(node, env)
        case TK.RETURN:
            if node.next is None:
                raise LairRuntimeError("return without a value")
            # one level only: the value node is not evaluated further
            return ast[node.next].atom
        case _:
            return node.atom

def eval_atom(node: Node, env: Environment) -> Value:
    if env.is_bound(node.name):
        raise NotSupportedError(f"indirect reference to function '{node.name}'")
    return node.atom

def call_function(ast: Ast, callee: Handle, env: Environment) -> Value:
    callee_node = ast[callee]
    func = env.resolve(callee_node.name)
    arg = callee_node.next

    match func:
        case NativeFunction():
            args = [] if arg is None else [evaluate(ast, arg, env)]
            return func.invoke(args)
        case UserFunction():
            return call_user_function(func, arg, env)

    raise LairRuntimeError(f"cannot call {func!r}")

def call_user_function(func: UserFunction, arg: Optional[Handle], env: Environment) -> Value:
    if func.arity > 0:
        raise NotSupportedError(f"calling '{func.name}' with {func.arity} parameter(s)")
    if arg is not None:
        raise ArityError(f"{func.name} expects 0 argument(s); got 1")

    body = func.ast
    start = body[func.body].next
    while start is not None and body[start].kind is TK.FUNCTION_ARG:
        start = body[start].next

    if start is None:
        raise LairRuntimeError(f"function '{func.name}' has no body")

    return eval_body(body, start, env)

def eval_body(ast: Ast, first: Optional[Handle], env: Environment) -> Value:
    """Run body statements in order; a return statement ends the body."""
    result: Optional[Value] = None

    for handle in ast.siblings(first):
        node = ast[handle]
        if node.kind is TK.FUNCTION:
            raise NotSupportedError(f"nested definition of '{node.name}'")

        result = evaluate(ast, handle, env)
        if node.kind is TK.RETURN:
            break

    if result is None:
        raise LairRuntimeError("function body has no statements")
    return result
