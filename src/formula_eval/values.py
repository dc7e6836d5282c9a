"""Runtime value model: scalars, vectors, matrices and multi-valued results."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Union, overload


@dataclass(frozen=True)
class Scalar:
    value: float

    def __float__(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class Vector:
    items: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Matrix:
    """Dense matrix stored as a tuple of equal-length rows."""

    rows: tuple[tuple[float, ...], ...]

    @property
    def shape(self) -> tuple[int, int]:
        if not self.rows:
            return (0, 0)
        return (len(self.rows), len(self.rows[0]))


Value = Union[Scalar, Vector, Matrix]


class ValueKind(str, Enum):
    SCALAR = "scalar"
    VECTOR = "vector"
    MATRIX = "matrix"


@dataclass(frozen=True)
class ValueInfo:
    kind: ValueKind
    shape: tuple[int, ...]


def scalar(value: float) -> Scalar:
    return Scalar(float(value))


def vector(items: Iterable[float]) -> Vector:
    return Vector(tuple(float(x) for x in items))


def matrix(rows: Iterable[Iterable[float]]) -> Matrix:
    """Build a matrix from row iterables, rejecting ragged input."""
    packed = tuple(tuple(float(x) for x in row) for row in rows)
    if packed and any(len(row) != len(packed[0]) for row in packed):
        raise ValueError("Matrix rows must all have the same length")
    return Matrix(packed)


def as_value(obj: object) -> Value:
    """Coerce plain Python numbers / nested sequences into a Value."""
    if isinstance(obj, (Scalar, Vector, Matrix)):
        return obj
    if isinstance(obj, numbers.Real) and not isinstance(obj, bool):
        return scalar(obj)
    if isinstance(obj, (list, tuple)):
        if obj and all(isinstance(row, (list, tuple)) for row in obj):
            return matrix(obj)
        return vector(obj)
    raise TypeError(f"Can't convert {type(obj).__name__} into a value")


def kind_of(value: Value) -> ValueKind:
    if isinstance(value, Scalar):
        return ValueKind.SCALAR
    if isinstance(value, Vector):
        return ValueKind.VECTOR
    if isinstance(value, Matrix):
        return ValueKind.MATRIX
    raise TypeError(f"Unsupported runtime value {type(value).__name__}")


def shape_of(value: Value) -> tuple[int, ...]:
    if isinstance(value, Scalar):
        return ()
    if isinstance(value, Vector):
        return (len(value.items),)
    return value.shape


def value_info(value: Value) -> ValueInfo:
    return ValueInfo(kind=kind_of(value), shape=shape_of(value))


def is_scalar(value: Value) -> bool:
    return isinstance(value, Scalar)


def is_vector(value: Value) -> bool:
    return isinstance(value, Vector)


def is_matrix(value: Value) -> bool:
    return isinstance(value, Matrix)


def _round_half_away(x: float, prec: int) -> float:
    if not math.isfinite(x):
        return x
    factor = 10.0**prec
    return math.copysign(math.floor(abs(x) * factor + 0.5), x) / factor


def round_value(value: Value, prec: int) -> Value:
    if isinstance(value, Scalar):
        return Scalar(_round_half_away(value.value, prec))
    if isinstance(value, Vector):
        return Vector(tuple(_round_half_away(x, prec) for x in value.items))
    return Matrix(tuple(tuple(_round_half_away(x, prec) for x in row) for row in value.rows))


def flat_items(value: Value) -> tuple[float, ...]:
    if isinstance(value, Scalar):
        return (value.value,)
    if isinstance(value, Vector):
        return value.items
    return tuple(x for row in value.rows for x in row)


def is_inf_or_nan(value: Value) -> bool:
    return any(math.isinf(x) or math.isnan(x) for x in flat_items(value))


def _format_float(x: float) -> str:
    if x.is_integer():
        return str(int(x))
    return repr(x)


def value_as_string(value: Value) -> str:
    if isinstance(value, Scalar):
        return _format_float(value.value)
    if isinstance(value, Vector):
        return "[" + ",".join(_format_float(x) for x in value.items) + "]"
    return "[" + ",".join("[" + ",".join(_format_float(x) for x in row) + "]" for row in value.rows) + "]"


def validate_value(value: object, *, where: str = "value") -> None:
    if isinstance(value, Scalar):
        if not isinstance(value.value, float):
            raise TypeError(f"{where} holds a non-float scalar {type(value.value).__name__}")
        return
    if isinstance(value, Vector):
        if not all(isinstance(x, float) for x in value.items):
            raise TypeError(f"{where} holds non-float vector entries")
        return
    if isinstance(value, Matrix):
        if value.rows and any(len(row) != len(value.rows[0]) for row in value.rows):
            raise TypeError(f"{where} is a ragged matrix")
        return
    raise TypeError(f"{where} has unsupported runtime type {type(value).__name__}")


class Values:
    """Ordered, immutable collection of every outcome of one evaluation.

    Empty only when an equation has no real solution.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Value] = ()) -> None:
        self._items: tuple[Value, ...] = tuple(items)

    @classmethod
    def of(cls, *items: object) -> "Values":
        return cls(as_value(item) for item in items)

    def __iter__(self) -> Iterator[Value]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    @overload
    def __getitem__(self, index: int) -> Value:
        ...

    @overload
    def __getitem__(self, index: slice) -> "Values":
        ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Values(self._items[index])
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Values):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"Values({list(self._items)!r})"

    def to_list(self) -> list[Value]:
        return list(self._items)

    def get(self, index: int) -> Value | None:
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def round(self, prec: int) -> "Values":
        return Values(round_value(v, prec) for v in self._items)

    def as_string(self) -> str:
        return "{" + ", ".join(value_as_string(v) for v in self._items) + "}"
