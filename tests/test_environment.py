from __future__ import annotations

import pytest

from tests.support.harness import (
    ArityError,
    CollisionPolicy,
    DuplicateNameError,
    Environment,
    Integer,
    LairTypeError,
    NativeFunction,
    Text,
    UndefinedFunctionError,
    parse_source,
    recording_env,
    run_program,
)
from lair_ref.runtime import STDLIB_FUNCTIONS, init_stdlib, standard_natives
from lair_ref.types import UserFunction, render


def test_default_environment_has_stdlib() -> None:
    env = Environment()

    assert env.names() == ["+", "print"]
    assert env.lookup_native("print") is not None
    assert env.lookup_native("+").arity == 2  # type: ignore[union-attr]
    assert env.functions == {}


def test_init_stdlib_is_idempotent() -> None:
    init_stdlib()
    before = dict(STDLIB_FUNCTIONS)
    init_stdlib()

    assert STDLIB_FUNCTIONS == before
    assert {f.name for f in standard_natives()} == {"print", "+"}


def test_environment_tables_are_per_instance() -> None:
    a = Environment()
    b = Environment()
    a.register_native("extra", 1, lambda args: args[0])

    assert a.is_bound("extra")
    assert not b.is_bound("extra")
    assert "extra" not in STDLIB_FUNCTIONS


def test_register_native_rejects_duplicate(capsys: pytest.CaptureFixture[str]) -> None:
    env = Environment()
    orig = env.lookup_native("print")

    with pytest.raises(DuplicateNameError) as exc_info:
        env.register_native("print", 1, lambda args: Text("replaced"))

    assert str(exc_info.value) == "native function 'print' is already defined"
    assert exc_info.value.name == "print"

    # first binding is untouched and still the one that runs
    assert env.lookup_native("print") is orig
    run_program("print 1", env)
    assert capsys.readouterr().out == "1\n"


@pytest.mark.parametrize(
    ("name", "arity"),
    [
        pytest.param("", 1, id="empty-name"),
        pytest.param("neg", -1, id="negative-arity"),
    ],
)
def test_register_native_validates_arguments(name: str, arity: int) -> None:
    env = Environment(natives=[])

    with pytest.raises(ValueError):
        env.register_native(name, arity, lambda args: Integer(0))

    assert env.names() == []


def test_lookups_on_empty_environment() -> None:
    env = Environment(natives=[])

    assert env.lookup_native("print") is None
    assert env.lookup_user_function("print") is None
    with pytest.raises(UndefinedFunctionError) as exc_info:
        env.resolve("print")
    assert str(exc_info.value) == "No such function to call: 'print'"


def test_user_function_recorded_with_its_tree() -> None:
    ast = parse_source("f\n\tprint 1\n")
    env = Environment()
    assert ast.first is not None

    func = env.register_user_function("f", ast, ast.first)

    assert isinstance(func, UserFunction)
    assert func.ast is ast
    assert func.body == ast.first
    assert repr(func) == "<fn f/0>"
    assert env.resolve("f") is func


def _collision_env(policy: CollisionPolicy):
    env, log = recording_env("shout", "print", policy=policy)
    return env, log


def test_native_first_collision() -> None:
    env, log = _collision_env(CollisionPolicy.NATIVE_FIRST)
    run_program('shout\n\tprint "user"\nshout "native"\n', env)

    assert env.lookup_user_function("shout") is not None
    assert log.calls == [("shout", Text("native"))]


def test_user_first_collision() -> None:
    env, log = _collision_env(CollisionPolicy.USER_FIRST)
    run_program('shout\n\tprint "user"\nshout\n', env)

    assert log.calls == [("print", Text("user"))]


def test_reject_collision() -> None:
    env, log = _collision_env(CollisionPolicy.REJECT)

    with pytest.raises(DuplicateNameError):
        run_program('shout\n\tprint "user"\n', env)

    assert env.lookup_user_function("shout") is None
    # a name that is not native can still be defined
    run_program('other\n\tprint "user"\n', env)
    assert env.lookup_user_function("other") is not None


def test_native_invoke_checks_arity_and_result() -> None:
    echo = NativeFunction(name="echo", arity=1, fn=lambda args: args[0])
    broken = NativeFunction(name="broken", arity=0, fn=lambda args: 5)  # type: ignore[arg-type,return-value]

    assert echo.invoke([Text("x")]) == Text("x")
    assert repr(echo) == "<native echo/1>"
    with pytest.raises(ArityError):
        echo.invoke([])
    with pytest.raises(LairTypeError):
        broken.invoke([])


@pytest.mark.parametrize(
    ("lhs", "rhs", "expected"),
    [
        pytest.param(Integer(2), Integer(3), Integer(5), id="integers"),
        pytest.param(Text("ab"), Text("cd"), Text("abcd"), id="texts"),
    ],
)
def test_plus(lhs, rhs, expected) -> None:
    plus = Environment().lookup_native("+")
    assert plus is not None

    assert plus.invoke([lhs, rhs]) == expected


def test_plus_rejects_mixed_values() -> None:
    plus = Environment().lookup_native("+")
    assert plus is not None

    with pytest.raises(LairTypeError) as exc_info:
        plus.invoke([Integer(1), Text("a")])

    assert "+ cannot combine Integer and Text" in str(exc_info.value)


def test_value_payloads_are_checked() -> None:
    with pytest.raises(TypeError):
        Integer(True)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Integer("1")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Text(1)  # type: ignore[arg-type]

    assert Integer(3) == Integer(3)
    assert Integer(3) != Text("3")
    assert render(Integer(3)) == render(Text("3")) == "3"
    assert repr(Text("x")) == "Text('x')"
