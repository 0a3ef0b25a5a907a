from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Union
from typing_extensions import Protocol, TypeAlias

if TYPE_CHECKING:
    from .tree import Ast

# ---------- Value Model ----------

@dataclass(frozen=True)
class Integer:
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Integer payload must be int, got {type(self.value).__name__}")

    def __repr__(self) -> str:
        return f"Integer({self.value})"

@dataclass(frozen=True)
class Text:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(f"Text payload must be str, got {type(self.value).__name__}")

    def __repr__(self) -> str:
        return f"Text({self.value!r})"

Value: TypeAlias = Union[Integer, Text]

def is_value(obj: object) -> bool:
    return isinstance(obj, (Integer, Text))

def render(value: Value) -> str:
    """Textual form used by print and the REPL."""
    match value:
        case Integer(value=n):
            return str(n)
        case Text(value=s):
            return s
        case _:
            raise LairTypeError(f"cannot render {type(value).__name__}")

# ---------- Functions ----------

class NativeFn(Protocol):
    def __call__(self, args: List[Value]) -> Value: ...

@dataclass(frozen=True)
class NativeFunction:
    name: str
    arity: int
    fn: NativeFn

    def invoke(self, args: List[Value]) -> Value:
        if len(args) != self.arity:
            raise ArityError(f"{self.name} expects {self.arity} argument(s); got {len(args)}")

        result = self.fn(args)
        if not is_value(result):
            raise LairTypeError(f"{self.name} returned a non-value {type(result).__name__}")
        return result

    def __repr__(self) -> str:
        return f"<native {self.name}/{self.arity}>"

@dataclass(frozen=True)
class UserFunction:
    """A definition bound to its FUNCTION node handle inside a borrowed Ast."""
    name: str
    arity: int
    ast: Ast = field(repr=False, compare=False)
    body: int

    def __repr__(self) -> str:
        return f"<fn {self.name}/{self.arity}>"

# ---------- Errors ----------

class LairRuntimeError(Exception):
    """Base for failures raised while evaluating a parsed program."""
    line: Optional[int]
    column: Optional[int]

    def __init__(self, message: str):
        super().__init__(message)
        self.line = None
        self.column = None

    def __str__(self) -> str:
        msg = super().__str__()
        if self.line is None:
            return msg
        return f"{msg} at line {self.line}, col {self.column}"

class LairTypeError(LairRuntimeError):
    pass

class ArityError(LairRuntimeError):
    pass

class DuplicateNameError(LairRuntimeError):
    def __init__(self, name: str, table: str = "native"):
        super().__init__(f"{table} function '{name}' is already defined")
        self.name = name
        self.table = table

class UndefinedFunctionError(LairRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"No such function to call: '{name}'")
        self.name = name

class NotSupportedError(LairRuntimeError):
    """A language path that is recognised but not implemented."""
    def __init__(self, feature: str):
        super().__init__(f"Not supported yet: {feature}")
        self.feature = feature
