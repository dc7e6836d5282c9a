"""AST nodes for parsed formulas."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Union

from .values import Matrix as MatrixValue
from .values import Scalar as ScalarValue
from .values import Value
from .values import Vector as VectorValue


class SimpleOpType(Enum):
    """Operator and built-in tags.

    Declaration order is reverse precedence: earlier members bind more
    loosely and are split on first by the parser.
    """

    ADD = "add"
    SUB = "sub"
    ADD_SUB = "add_sub"
    MULT = "mult"
    NEG = "neg"
    DIV = "div"
    CROSS = "cross"
    HIDDEN_MULT = "hidden_mult"
    POW = "pow"
    GET = "get"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ABS = "abs"
    SQRT = "sqrt"
    ROOT = "root"
    LN = "ln"
    ARCSIN = "arcsin"
    ARCCOS = "arccos"
    ARCTAN = "arctan"
    DET = "det"
    INV = "inv"
    PARENTHS = "parenths"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]


_PRECEDENCE: Final[dict[SimpleOpType, int]] = {op: idx for idx, op in enumerate(SimpleOpType)}


# Unary tags whose operand sits on the right; every other unary tag keeps it on the left.
RIGHT_OPERAND_OPS: Final[frozenset[SimpleOpType]] = frozenset({SimpleOpType.NEG})

UNARY_OPS: Final[frozenset[SimpleOpType]] = frozenset(
    {
        SimpleOpType.NEG,
        SimpleOpType.SIN,
        SimpleOpType.COS,
        SimpleOpType.TAN,
        SimpleOpType.ABS,
        SimpleOpType.SQRT,
        SimpleOpType.LN,
        SimpleOpType.ARCSIN,
        SimpleOpType.ARCCOS,
        SimpleOpType.ARCTAN,
        SimpleOpType.DET,
        SimpleOpType.INV,
        SimpleOpType.PARENTHS,
    }
)


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Vector:
    items: tuple["Expr", ...]


@dataclass(frozen=True)
class Matrix:
    """Matrix literal, already in storage (row) orientation."""

    rows: tuple[tuple["Expr", ...], ...]


@dataclass(frozen=True)
class List:
    """Alternative literals `{a, b}`: outcomes are concatenated, not producted."""

    items: tuple["Expr", ...]


@dataclass(frozen=True)
class Name:
    value: str


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Expr", ...]


@dataclass(frozen=True)
class SimpleOperation:
    op_type: SimpleOpType
    left: "Expr | None"
    right: "Expr | None"


@dataclass(frozen=True)
class Integral:
    expr: "Expr"
    in_terms_of: str
    lower_bound: "Expr"
    upper_bound: "Expr"


@dataclass(frozen=True)
class Derivative:
    expr: "Expr"
    in_terms_of: str
    at: "Expr"


@dataclass(frozen=True)
class Equation:
    equations: tuple[tuple["Expr", "Expr"], ...]
    search_vars: tuple[str, ...] = ()


Operation = Union[SimpleOperation, Integral, Derivative, Equation]
Expr = Union[Number, Vector, Matrix, List, Name, Call, SimpleOperation, Integral, Derivative, Equation]

OPERATION_NODES: Final[tuple[type, ...]] = (SimpleOperation, Integral, Derivative, Equation)


def is_operation(expr: Expr) -> bool:
    return isinstance(expr, OPERATION_NODES)


def unary(op_type: SimpleOpType, operand: Expr) -> SimpleOperation:
    if op_type in RIGHT_OPERAND_OPS:
        return SimpleOperation(op_type=op_type, left=None, right=operand)
    return SimpleOperation(op_type=op_type, left=operand, right=None)


def binary(op_type: SimpleOpType, left: Expr, right: Expr) -> SimpleOperation:
    return SimpleOperation(op_type=op_type, left=left, right=right)


def from_value(value: Value) -> Expr:
    if isinstance(value, ScalarValue):
        return Number(value.value)
    if isinstance(value, VectorValue):
        return Vector(tuple(Number(x) for x in value.items))
    if isinstance(value, MatrixValue):
        return Matrix(tuple(tuple(Number(x) for x in row) for row in value.rows))
    raise TypeError(f"Unsupported value node: {type(value)!r}")


def from_variable_name(name: str) -> Name:
    return Name(name)
