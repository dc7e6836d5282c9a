"""Arithmetic and built-in function primitives over runtime values.

Every primitive takes and returns `Value` objects and reports shape or
kind mismatches as `MathError`. Scalar arithmetic follows IEEE 754:
division by zero and out-of-domain inputs give inf or NaN instead of
raising. Matrix products and inverses run on jax.numpy in float64.

Importing this module sets the process-wide ``jax_enable_x64`` flag, so
a host application embedding the package gets 64-bit jax defaults too.
"""

from __future__ import annotations

import math
from typing import Callable, Final

import jax
import jax.numpy as jnp

from .errors import MathError
from .values import Matrix, Scalar, Value, Vector

jax.config.update("jax_enable_x64", True)

_KIND_NAMES: Final[dict[type, str]] = {Scalar: "scalar", Vector: "vector", Matrix: "matrix"}


def _kind(value: Value) -> str:
    return _KIND_NAMES[type(value)]


def ieee_div(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and int(x) % 2 == 1


def ieee_pow(a: float, b: float) -> float:
    # Odd integer exponents keep the base's sign, including that of -0.0.
    if a == 0.0 and b < 0.0:
        return math.copysign(math.inf, a) if _is_odd_integer(b) else math.inf
    try:
        return math.pow(a, b)
    except ValueError:
        return math.nan
    except OverflowError:
        if a < 0.0 and _is_odd_integer(b):
            return -math.inf
        return math.inf


def _ieee_unary(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(x: float) -> float:
        try:
            return fn(x)
        except ValueError:
            return math.nan
        except OverflowError:
            return math.inf

    return wrapped


def _ln(x: float) -> float:
    if x == 0.0:
        return -math.inf
    if x < 0.0:
        return math.nan
    return math.log(x)


def _sqrt(x: float) -> float:
    if x < 0.0:
        return math.nan
    return math.sqrt(x)


def _map_items(value: Vector, fn: Callable[[float], float]) -> Vector:
    return Vector(tuple(fn(x) for x in value.items))


def _map_rows(value: Matrix, fn: Callable[[float], float]) -> Matrix:
    return Matrix(tuple(tuple(fn(x) for x in row) for row in value.rows))


def _to_jax(value: Matrix | Vector) -> jax.Array:
    if isinstance(value, Vector):
        return jnp.asarray(value.items, dtype=jnp.float64)
    return jnp.asarray(value.rows, dtype=jnp.float64)


def _from_jax(arr: jax.Array) -> Value:
    data = arr.tolist()
    if arr.ndim == 0:
        return Scalar(float(data))
    if arr.ndim == 1:
        return Vector(tuple(float(x) for x in data))
    return Matrix(tuple(tuple(float(x) for x in row) for row in data))


def _elementwise(a: Value, b: Value, fn: Callable[[float, float], float], mismatch: str) -> Value:
    if isinstance(a, Scalar):
        return Scalar(fn(a.value, b.value))
    if isinstance(a, Vector):
        if len(a.items) != len(b.items):
            raise MathError("Vectors have different dimensions!")
        return Vector(tuple(fn(x, y) for x, y in zip(a.items, b.items)))
    if a.shape != b.shape:
        raise MathError(mismatch)
    return Matrix(tuple(tuple(fn(x, y) for x, y in zip(ra, rb)) for ra, rb in zip(a.rows, b.rows)))


def add(a: Value, b: Value) -> Value:
    if type(a) is not type(b):
        raise MathError(f"Can't add {_kind(b)} to {_kind(a)}!")
    return _elementwise(a, b, lambda x, y: x + y, "Matrices have different dimensions!")


def sub(a: Value, b: Value) -> Value:
    if type(a) is not type(b):
        raise MathError(f"Can't subtract {_kind(b)} from {_kind(a)}!")
    return _elementwise(a, b, lambda x, y: x - y, "Matrices have different dimensions!")


def neg(a: Value) -> Value:
    if isinstance(a, Scalar):
        return Scalar(-a.value)
    if isinstance(a, Vector):
        return _map_items(a, lambda x: -x)
    return _map_rows(a, lambda x: -x)


def _scale(value: Value, factor: float) -> Value:
    if isinstance(value, Scalar):
        return Scalar(value.value * factor)
    if isinstance(value, Vector):
        return _map_items(value, lambda x: x * factor)
    return _map_rows(value, lambda x: x * factor)


def mult(a: Value, b: Value) -> Value:
    """Scalar scaling, dot product, or linear map (matrix on the left)."""
    if isinstance(a, Scalar):
        return _scale(b, a.value)
    if isinstance(b, Scalar):
        return _scale(a, b.value)
    if isinstance(a, Vector) and isinstance(b, Vector):
        if len(a.items) != len(b.items):
            raise MathError("Vectors have different dimensions!")
        return Scalar(math.fsum(x * y for x, y in zip(a.items, b.items)))
    if isinstance(a, Vector):
        raise MathError("Vector has to be on the right side of linear transformation!")
    if isinstance(b, Vector):
        if a.shape[1] != len(b.items):
            raise MathError("Vector and matrix have incompatible dimensions!")
        return _from_jax(jnp.matmul(_to_jax(a), _to_jax(b)))
    if a.shape[1] != b.shape[0]:
        raise MathError("Matrices have incompatible dimensions!")
    return _from_jax(jnp.matmul(_to_jax(a), _to_jax(b)))


def div(a: Value, b: Value) -> Value:
    if isinstance(b, Scalar):
        if isinstance(a, Scalar):
            return Scalar(ieee_div(a.value, b.value))
        return _scale(a, ieee_div(1.0, b.value))
    if isinstance(a, Vector) and isinstance(b, Vector):
        if len(a.items) != len(b.items):
            raise MathError("Vectors have different dimensions!")
        return Vector(tuple(ieee_div(x, y) for x, y in zip(a.items, b.items)))
    raise MathError(f"Can't divide {_kind(a)} by {_kind(b)}!")


def cross(a: Value, b: Value) -> Value:
    """Cross product; vectors shorter than 3 are zero-padded."""
    if not (isinstance(a, Vector) and isinstance(b, Vector)):
        raise MathError("Cross product can only be computed between two vectors!")
    if len(a.items) != len(b.items):
        raise MathError("Vectors have different dimensions!")
    if len(a.items) > 3:
        raise MathError("Can't compute cross product with dim(V) > 3!")
    pad = (0.0,) * (3 - len(a.items))
    a1, a2, a3 = a.items + pad
    b1, b2, b3 = b.items + pad
    return Vector((a2 * b3 - a3 * b2, a3 * b1 - a1 * b3, a1 * b2 - a2 * b1))


def get(a: Value, b: Value) -> Value:
    if not (isinstance(a, Vector) and isinstance(b, Scalar)):
        raise MathError("Can only index vector with scalar!")
    index = b.value
    if not math.isfinite(index) or not index.is_integer() or math.copysign(1.0, index) < 0:
        raise MathError("Index must be a positive Integer!")
    if int(index) >= len(a.items):
        raise MathError("Index out of bounds for vector!")
    return Scalar(a.items[int(index)])


def pow(a: Value, b: Value) -> Value:
    if not (isinstance(a, Scalar) and isinstance(b, Scalar)):
        raise MathError("Can only raise scalar to the power of scalar!")
    return Scalar(ieee_pow(a.value, b.value))


def _scalar_only(name: str, fn: Callable[[float], float]) -> Callable[[Value], Value]:
    def apply(a: Value) -> Value:
        if not isinstance(a, Scalar):
            raise MathError(f"Can't take {name} of {_kind(a)}!")
        return Scalar(fn(a.value))

    apply.__name__ = name
    return apply


sin = _scalar_only("sin", _ieee_unary(math.sin))
cos = _scalar_only("cos", _ieee_unary(math.cos))
tan = _scalar_only("tan", _ieee_unary(math.tan))
arcsin = _scalar_only("arcsin", _ieee_unary(math.asin))
arccos = _scalar_only("arccos", _ieee_unary(math.acos))
arctan = _scalar_only("arctan", math.atan)
ln = _scalar_only("ln", _ln)


def abs(a: Value) -> Value:
    """Absolute value of a scalar, Euclidean length of a vector."""
    if isinstance(a, Scalar):
        return Scalar(math.fabs(a.value))
    if isinstance(a, Vector):
        return Scalar(math.sqrt(math.fsum(x * x for x in a.items)))
    raise MathError("Can't take abs of matrix!")


def sqrt(a: Value) -> list[Value]:
    """Both square roots, positive first."""
    if not isinstance(a, Scalar):
        raise MathError(f"Can't take sqrt of {_kind(a)}!")
    root = _sqrt(a.value)
    return [Scalar(root), Scalar(-root)]


def root(a: Value, n: Value) -> list[Value]:
    """n-th root; even degrees yield both signs."""
    if not (isinstance(a, Scalar) and isinstance(n, Scalar)):
        raise MathError("Can only take root of a scalar!")
    principal = ieee_pow(a.value, ieee_div(1.0, n.value))
    if math.fmod(n.value, 2.0) == 0.0:
        return [Scalar(principal), Scalar(-principal)]
    return [Scalar(principal)]


def _cofactor_det(rows: tuple[tuple[float, ...], ...]) -> float:
    if len(rows) == 1:
        return rows[0][0]
    if len(rows) == 2:
        return rows[0][0] * rows[1][1] - rows[0][1] * rows[1][0]
    total = 0.0
    for col, pivot in enumerate(rows[0]):
        if pivot == 0.0:
            continue
        minor = tuple(row[:col] + row[col + 1 :] for row in rows[1:])
        sign = -1.0 if col % 2 else 1.0
        total += sign * pivot * _cofactor_det(minor)
    return total


def det(a: Value) -> Value:
    """Determinant by cofactor expansion along the first row."""
    if not isinstance(a, Matrix):
        raise MathError(f"Can't calculate determinant of a {_kind(a)}!")
    rows, cols = a.shape
    if rows == 0 or rows != cols:
        raise MathError("Can't calculate determinant of a non-square matrix!")
    return Scalar(_cofactor_det(a.rows))


def inv(a: Value) -> Value:
    if not isinstance(a, Matrix):
        raise MathError(f"Can't calculate inverse of a {_kind(a)}!")
    rows, cols = a.shape
    if rows == 0 or rows != cols:
        raise MathError("Can't calculate inverse of a non-square matrix!")
    if _cofactor_det(a.rows) == 0.0:
        raise MathError("Can't calculate inverse of a singular matrix!")
    return _from_jax(jnp.linalg.inv(_to_jax(a)))
