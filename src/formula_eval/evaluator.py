"""Multi-valued tree evaluator plus the parse-and-run convenience wrappers."""

from __future__ import annotations

from itertools import product
from typing import Callable, Final, Iterable, Sequence, TypeVar

from . import primitives as prim
from .ast import (
    RIGHT_OPERAND_OPS,
    UNARY_OPS,
    Call,
    Derivative,
    Equation,
    Expr,
    Integral,
    List,
    Matrix,
    Name,
    Number,
    SimpleOperation,
    SimpleOpType,
    Vector,
    binary,
)
from .calculus import derivative, integral
from .context import Context, Variable
from .errors import (
    ArityMismatchError,
    CallDepthExceededError,
    EmptyExpressionError,
    FormulaError,
    NonScalarInMatrixError,
    NonScalarInVectorError,
    QuickEvalError,
    RecursiveFunctionError,
    ReservedNameError,
    UndefinedFunctionError,
    UndefinedVariableError,
)
from .parser import parse, parse_equation
from .scanner import split_args, strip_whitespace
from .settings import DEFAULT_SETTINGS, Settings
from .solver import Solver
from .values import Matrix as MatrixValue
from .values import Scalar, Value, Values
from .values import Vector as VectorValue

T = TypeVar("T")

RESERVED_NAMES: Final[tuple[str, ...]] = ("pi", "e")

_UNARY_PRIMITIVES: Final[dict[SimpleOpType, Callable[[Value], Value]]] = {
    SimpleOpType.NEG: prim.neg,
    SimpleOpType.SIN: prim.sin,
    SimpleOpType.COS: prim.cos,
    SimpleOpType.TAN: prim.tan,
    SimpleOpType.ABS: prim.abs,
    SimpleOpType.LN: prim.ln,
    SimpleOpType.ARCSIN: prim.arcsin,
    SimpleOpType.ARCCOS: prim.arccos,
    SimpleOpType.ARCTAN: prim.arctan,
    SimpleOpType.DET: prim.det,
    SimpleOpType.INV: prim.inv,
}

_BINARY_PRIMITIVES: Final[dict[SimpleOpType, Callable[[Value, Value], Value]]] = {
    SimpleOpType.ADD: prim.add,
    SimpleOpType.SUB: prim.sub,
    SimpleOpType.MULT: prim.mult,
    SimpleOpType.HIDDEN_MULT: prim.mult,
    SimpleOpType.DIV: prim.div,
    SimpleOpType.CROSS: prim.cross,
    SimpleOpType.POW: prim.pow,
    SimpleOpType.GET: prim.get,
}


def cartesian_product(groups: Sequence[Sequence[T]]) -> list[tuple[T, ...]]:
    """Every combination picking one item per group, first group slowest."""
    return list(product(*groups))


def concat_outcomes(parts: Iterable[Iterable[Value]]) -> Values:
    return Values(value for part in parts for value in part)


def _scalar_slot(outcomes: Values, error: type[FormulaError]) -> list[float]:
    slot: list[float] = []
    for outcome in outcomes:
        if not isinstance(outcome, Scalar):
            raise error()
        slot.append(outcome.value)
    return slot


class _Evaluator:
    """One evaluation run: shared settings, recursion state passed per call."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def eval(self, expr: Expr, context: Context, last_fn: str | None, depth: int) -> Values:
        if isinstance(expr, Number):
            return Values((Scalar(expr.value),))
        if isinstance(expr, Name):
            var = context.get_var(expr.value)
            if var is None:
                raise UndefinedVariableError(expr.value)
            return var.values
        if isinstance(expr, SimpleOperation):
            return self._eval_simple(expr, context, last_fn, depth)
        if isinstance(expr, Vector):
            slots = [_scalar_slot(self.eval(item, context, last_fn, depth), NonScalarInVectorError) for item in expr.items]
            return Values(VectorValue(items) for items in cartesian_product(slots))
        if isinstance(expr, Matrix):
            return self._eval_matrix(expr, context, last_fn, depth)
        if isinstance(expr, List):
            return concat_outcomes(self.eval(item, context, last_fn, depth) for item in expr.items)
        if isinstance(expr, Call):
            return self._eval_call(expr, context, last_fn, depth)
        if isinstance(expr, Integral):
            return self._eval_integral(expr, context, last_fn, depth)
        if isinstance(expr, Derivative):
            return self._eval_derivative(expr, context, last_fn, depth)
        if isinstance(expr, Equation):
            return self._eval_equation(expr, context, last_fn, depth)
        raise TypeError(f"Unsupported AST node: {type(expr).__name__}")

    def _bound(self, last_fn: str | None, depth: int) -> Callable[[Expr, Context], Values]:
        return lambda expr, context: self.eval(expr, context, last_fn, depth)

    def _eval_simple(self, node: SimpleOperation, context: Context, last_fn: str | None, depth: int) -> Values:
        op = node.op_type
        if op in UNARY_OPS:
            operand = node.right if op in RIGHT_OPERAND_OPS else node.left
            outcomes = self.eval(operand, context, last_fn, depth)
            if op is SimpleOpType.PARENTHS:
                return outcomes
            if op is SimpleOpType.SQRT:
                return concat_outcomes(prim.sqrt(value) for value in outcomes)
            apply = _UNARY_PRIMITIVES[op]
            return Values(apply(value) for value in outcomes)

        lefts = self.eval(node.left, context, last_fn, depth)
        rights = self.eval(node.right, context, last_fn, depth)
        results: list[Value] = []
        for left, right in cartesian_product((lefts, rights)):
            if op is SimpleOpType.ADD_SUB:
                results.append(prim.add(left, right))
                results.append(prim.sub(left, right))
            elif op is SimpleOpType.ROOT:
                results.extend(prim.root(left, right))
            else:
                results.append(_BINARY_PRIMITIVES[op](left, right))
        return Values(results)

    def _eval_matrix(self, node: Matrix, context: Context, last_fn: str | None, depth: int) -> Values:
        row_choices = []
        for row in node.rows:
            slots = [_scalar_slot(self.eval(item, context, last_fn, depth), NonScalarInMatrixError) for item in row]
            row_choices.append(cartesian_product(slots))
        return Values(MatrixValue(rows) for rows in cartesian_product(row_choices))

    def _eval_call(self, node: Call, context: Context, last_fn: str | None, depth: int) -> Values:
        # Only direct self-recursion is caught here; the depth cap bounds the rest.
        if node.name == last_fn:
            raise RecursiveFunctionError(node.name)
        function = context.get_fun(node.name)
        if function is None:
            raise UndefinedFunctionError(node.name)
        if len(node.args) != len(function.params):
            raise ArityMismatchError(node.name, len(function.params), len(node.args))
        if depth >= self.settings.max_call_depth:
            raise CallDepthExceededError(self.settings.max_call_depth)

        arg_outcomes = [self.eval(arg, context, last_fn, depth) for arg in node.args]
        results: list[Values] = []
        for combo in cartesian_product(arg_outcomes):
            params = [Variable(name, Values((value,))) for name, value in zip(function.params, combo)]
            results.append(self.eval(function.ast, context.extend(vars=params), node.name, depth + 1))
        return concat_outcomes(results)

    def _eval_integral(self, node: Integral, context: Context, last_fn: str | None, depth: int) -> Values:
        lowers = self.eval(node.lower_bound, context, last_fn, depth)
        uppers = self.eval(node.upper_bound, context, last_fn, depth)
        evaluate = self._bound(last_fn, depth)
        return concat_outcomes(
            integral(evaluate, node.expr, node.in_terms_of, lower, upper, context, self.settings)
            for lower, upper in cartesian_product((lowers, uppers))
        )

    def _eval_derivative(self, node: Derivative, context: Context, last_fn: str | None, depth: int) -> Values:
        points = self.eval(node.at, context, last_fn, depth)
        evaluate = self._bound(last_fn, depth)
        return concat_outcomes(
            derivative(evaluate, node.expr, node.in_terms_of, point, context, self.settings) for point in points
        )

    def _eval_equation(self, node: Equation, context: Context, last_fn: str | None, depth: int) -> Values:
        residuals = [binary(SimpleOpType.SUB, left, right) for left, right in node.equations]
        solver = Solver(residuals, context, node.search_vars, self.settings, evaluate=self._bound(last_fn, depth))
        return solver.solve()


def evaluate(expr: Expr, context: Context | None = None, settings: Settings | None = None) -> Values:
    """Evaluate a parsed formula to every one of its outcomes."""
    evaluator = _Evaluator(settings or DEFAULT_SETTINGS)
    return evaluator.eval(expr, context if context is not None else Context.empty(), None, 0)


def _seeded_context(context: Context | None) -> Context:
    base = Context.default()
    if context is None:
        return base
    clashing = tuple(name for name in RESERVED_NAMES if context.has_var(name))
    if clashing:
        raise ReservedNameError(clashing)
    return base.extend(vars=context.vars, funs=context.funs)


def quick_eval(text: str, context: Context | None = None, settings: Settings | None = None) -> Values:
    """Parse and evaluate `text` with `pi` and `e` predefined.

    Parser and evaluation failures are re-raised as `QuickEvalError`
    with the underlying error as `cause`.
    """
    scope = _seeded_context(context)
    try:
        return evaluate(parse(text, settings), scope, settings)
    except QuickEvalError:
        raise
    except FormulaError as err:
        raise QuickEvalError.from_error(err) from err


def quick_solve(
    text: str,
    context: Context | None = None,
    unknowns: str | Iterable[str] = (),
    settings: Settings | None = None,
) -> Values:
    """Solve comma-separated equations such as ``"y=x^2+6x-8, y=4x+7"``.

    Unknowns are inferred from the free names when none are given.
    """
    scope = _seeded_context(context)
    pieces = split_args(strip_whitespace(text))
    if not pieces:
        raise EmptyExpressionError()
    residuals = []
    for piece in pieces:
        left, right = parse_equation(piece, settings)
        residuals.append(binary(SimpleOpType.SUB, left, right))
    if isinstance(unknowns, str):
        unknowns = (unknowns,)
    return Solver(residuals, scope, tuple(unknowns), settings).solve()
