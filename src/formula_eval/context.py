"""Named variables and functions visible during an evaluation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from .ast import Expr
from .values import Matrix, Scalar, Value, Values, Vector, as_value, validate_value


def _coerce_values(values: object) -> Values:
    if isinstance(values, Values):
        return values
    # A sequence of Value objects is a multi-valued binding; a plain
    # sequence of numbers is a single vector (or matrix).
    if isinstance(values, (list, tuple)) and values and all(isinstance(v, (Scalar, Vector, Matrix)) for v in values):
        return Values(values)
    return Values([as_value(values)])


@dataclass(frozen=True)
class Variable:
    """A name bound to one or more simultaneous values."""

    name: str
    values: Values

    def __post_init__(self) -> None:
        coerced = _coerce_values(self.values)
        for idx, value in enumerate(coerced):
            validate_value(value, where=f"variable {self.name!r}[{idx}]")
        object.__setattr__(self, "values", coerced)


@dataclass(frozen=True)
class Function:
    """A user function: a parsed body and its ordered parameter names."""

    name: str
    ast: Expr
    params: tuple[str, ...]

    def __post_init__(self) -> None:
        if isinstance(self.params, str):
            object.__setattr__(self, "params", (self.params,))
        else:
            object.__setattr__(self, "params", tuple(self.params))


class Context:
    """Variables and functions, each unique by name, in insertion order.

    Re-adding a name replaces the earlier entry (which moves to the end).
    Nested evaluations use `extend`, which copies before adding, so a
    context is never mutated through an alias.
    """

    __slots__ = ("_vars", "_funs")

    def __init__(self, vars: Iterable[Variable] = (), funs: Iterable[Function] = ()) -> None:
        self._vars: dict[str, Variable] = {}
        self._funs: dict[str, Function] = {}
        for var in vars:
            self.add_var(var)
        for fun in funs:
            self.add_fun(fun)

    @classmethod
    def default(cls) -> "Context":
        return cls.from_vars([Variable("pi", Scalar(math.pi)), Variable("e", Scalar(math.e))])

    @classmethod
    def empty(cls) -> "Context":
        return cls()

    @classmethod
    def from_vars(cls, vars: Iterable[Variable]) -> "Context":
        return cls(vars=vars)

    @classmethod
    def from_funs(cls, funs: Iterable[Function]) -> "Context":
        return cls(funs=funs)

    @property
    def vars(self) -> tuple[Variable, ...]:
        return tuple(self._vars.values())

    @property
    def funs(self) -> tuple[Function, ...]:
        return tuple(self._funs.values())

    def add_var(self, var: Variable) -> None:
        self._vars.pop(var.name, None)
        self._vars[var.name] = var

    def add_fun(self, fun: Function) -> None:
        self._funs.pop(fun.name, None)
        self._funs[fun.name] = fun

    def set_var(self, name: str, values: Values | Value | float) -> None:
        self.add_var(Variable(name, values))

    def remove_var(self, name: str) -> None:
        self._vars.pop(name, None)

    def remove_fun(self, name: str) -> None:
        self._funs.pop(name, None)

    def get_var(self, name: str) -> Variable | None:
        return self._vars.get(name)

    def get_fun(self, name: str) -> Function | None:
        return self._funs.get(name)

    def has_var(self, name: str) -> bool:
        return name in self._vars

    def has_fun(self, name: str) -> bool:
        return name in self._funs

    def copy(self) -> "Context":
        out = Context.__new__(Context)
        out._vars = dict(self._vars)
        out._funs = dict(self._funs)
        return out

    def extend(self, vars: Iterable[Variable] = (), funs: Iterable[Function] = ()) -> "Context":
        out = self.copy()
        for var in vars:
            out.add_var(var)
        for fun in funs:
            out.add_fun(fun)
        return out

    def bind(self, name: str, value: Value) -> "Context":
        """Copy of this context with `name` bound to the single `value`."""
        out = self.copy()
        out._vars.pop(name, None)
        out._vars[name] = Variable(name, Values((value,)))
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Context):
            return NotImplemented
        return self.vars == other.vars and self.funs == other.funs

    def __repr__(self) -> str:
        return f"Context(vars={list(self._vars)!r}, funs={list(self._funs)!r})"
