"""Built-in native functions (print, +) registered via register_stdlib."""

from __future__ import annotations

from typing import List

from .runtime import register_stdlib
from .types import Integer, Text, Value, LairTypeError, render

@register_stdlib("print", arity=1)
def std_print(args: List[Value]) -> Value:
    print(render(args[0]))
    return args[0]

@register_stdlib("+", arity=2)
def std_plus(args: List[Value]) -> Value:
    lhs, rhs = args

    if isinstance(lhs, Integer) and isinstance(rhs, Integer):
        return Integer(lhs.value + rhs.value)
    if isinstance(lhs, Text) and isinstance(rhs, Text):
        return Text(lhs.value + rhs.value)

    raise LairTypeError(f"+ cannot combine {type(lhs).__name__} and {type(rhs).__name__}")
