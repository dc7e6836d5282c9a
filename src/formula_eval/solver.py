"""Newton-Raphson root finding for single equations and systems.

Each equation is handed in as a residual expression (``left - right``).
When there are more equations than unknowns, every combination of
``len(unknowns)`` equations is tried as the square search system and the
remaining equations must also vanish at an accepted root.
"""

from __future__ import annotations

import logging
import math
from itertools import combinations
from typing import Callable, Iterable, Sequence

from .ast import (
    Call,
    Derivative,
    Expr,
    Integral,
    List,
    Matrix,
    Name,
    SimpleOperation,
    SimpleOpType,
    Vector,
    binary,
    is_operation,
)
from .calculus import derivative_at_first
from .context import Context
from .errors import (
    ExpressionCheckFailedError,
    InfiniteSolutionsError,
    MatrixInEquationError,
    NaNOrInfError,
    NothingToSolveError,
    UnderdeterminedSystemError,
    UnknownAlreadyBoundError,
    VectorInEquationError,
)
from .primitives import ieee_div
from .settings import DEFAULT_SETTINGS, Settings
from .values import Scalar, Value, Values
from .values import Vector as VectorValue

logger = logging.getLogger(__name__)

Evaluate = Callable[[Expr, Context], Values]


def free_names(expr: Expr) -> list[str]:
    """Names an expression reads, in order of appearance (duplicates kept).

    A call contributes only its arguments; an integral only its bounds and
    a derivative only its evaluation point, since their bodies bind their
    own variable.
    """
    if isinstance(expr, Name):
        return [expr.value]
    if isinstance(expr, Call):
        return [name for arg in expr.args for name in free_names(arg)]
    if isinstance(expr, (Vector, List)):
        return [name for item in expr.items for name in free_names(item)]
    if isinstance(expr, Matrix):
        return [name for row in expr.rows for item in row for name in free_names(item)]
    if isinstance(expr, SimpleOperation):
        names: list[str] = []
        if expr.left is not None:
            names.extend(free_names(expr.left))
        if expr.right is not None:
            names.extend(free_names(expr.right))
        return names
    if isinstance(expr, Integral):
        return free_names(expr.upper_bound) + free_names(expr.lower_bound)
    if isinstance(expr, Derivative):
        return free_names(expr.at)
    return []


def discover_unknowns(expressions: Iterable[Expr], context: Context) -> list[str]:
    unknowns: list[str] = []
    for expr in expressions:
        for position, name in enumerate(free_names(expr)):
            if context.has_var(name) or name in unknowns:
                continue
            # Position is relative to this expression's name list.
            unknowns.insert(position, name)
    return unknowns


def _eliminate(rows: list[list[float]]) -> None:
    for i in range(len(rows) - 1):
        for j in range(i + 1, len(rows)):
            divisor = ieee_div(rows[i][i], rows[j][i])
            zero_line = True
            for k in range(i, len(rows[j])):
                rows[j][k] -= ieee_div(rows[i][k], divisor)
                if rows[j][k] != 0.0:
                    zero_line = False
            if zero_line:
                raise InfiniteSolutionsError()


def gauss_solve(augmented: list[list[float]]) -> list[float]:
    """Solve an n x (n+1) augmented system in place.

    Forward elimination, then the same elimination on the row- and
    column-reversed system for the back substitution. An all-zero row
    raises `InfiniteSolutionsError`.
    """
    if len(augmented) + 1 != len(augmented[0]):
        raise UnderdeterminedSystemError()
    _eliminate(augmented)

    augmented.reverse()
    for row in augmented:
        row.reverse()
        row.append(row.pop(0))
    _eliminate(augmented)

    result = [ieee_div(row[-1], row[i]) for i, row in enumerate(augmented)]
    result.reverse()
    return result


def _norm(values: Sequence[float]) -> float:
    return math.sqrt(sum(x * x for x in values))


def _scalar_of(value: Value) -> float:
    if isinstance(value, Scalar):
        return value.value
    if isinstance(value, VectorValue):
        raise VectorInEquationError()
    raise MatrixInEquationError()


def _first_scalar(outcomes: Values) -> float:
    if not outcomes:
        return math.nan
    return _scalar_of(outcomes[0])


def clean_results(results: Sequence[Value], settings: Settings) -> Values:
    """Drop near-duplicate roots and cap how many are reported.

    Roots are equal when they agree to PREC-2 digits. Above the cap the
    roots closest to zero are kept, sorted ascending.
    """
    digits = settings.display_precision
    unique: list[Value] = []
    seen: list[Value] = []
    for value in results:
        key = Values((value,)).round(digits)[0]
        if key in seen:
            continue
        seen.append(key)
        unique.append(value)

    if len(unique) > settings.max_roots:
        def lead(value: Value) -> float:
            if isinstance(value, Scalar):
                return value.value
            return value.items[0]

        unique.sort(key=lambda value: math.fabs(lead(value)))
        unique = unique[: settings.max_roots]
        unique.sort(key=lead)
    return Values(unique)


class Solver:
    """Root finder over residual expressions.

    Construction validates the system (unknowns, shape of the residuals)
    and precomputes the equation combinations; `solve` runs the search.
    """

    def __init__(
        self,
        expressions: Sequence[Expr],
        context: Context,
        unknowns: Sequence[str] = (),
        settings: Settings | None = None,
        evaluate: Evaluate | None = None,
    ) -> None:
        self.settings = settings or DEFAULT_SETTINGS
        if evaluate is None:
            from .evaluator import evaluate as evaluate_expr

            def evaluate(expr: Expr, ctx: Context) -> Values:
                return evaluate_expr(expr, ctx, self.settings)

        self._evaluate = evaluate
        self.expressions = tuple(expressions)
        self.context = context

        if not self.expressions or not all(is_operation(expr) for expr in self.expressions):
            raise NothingToSolveError()

        if unknowns:
            bound = tuple(name for name in unknowns if context.has_var(name))
            if bound:
                raise UnknownAlreadyBoundError(bound)
            self.unknowns = tuple(unknowns)
        else:
            self.unknowns = tuple(discover_unknowns(self.expressions, context))
        logger.debug("unknowns: %s", self.unknowns)

        if not self.unknowns:
            raise NothingToSolveError()
        if len(self.unknowns) > len(self.expressions):
            raise UnderdeterminedSystemError()

        self._probe()

        if len(self.unknowns) < len(self.expressions):
            self.combinations = list(combinations(range(len(self.expressions)), len(self.unknowns)))
        else:
            self.combinations = [tuple(range(len(self.expressions)))]

    def _bind_all(self, point: Sequence[float]) -> Context:
        ctx = self.context
        for name, x in zip(self.unknowns, point):
            ctx = ctx.bind(name, Scalar(x))
        return ctx

    def _probe(self) -> None:
        ctx = self._bind_all([self.settings.probe_value] * len(self.unknowns))
        for expr in self.expressions:
            for outcome in self._evaluate(expr, ctx):
                if isinstance(outcome, VectorValue):
                    raise VectorInEquationError()
                if not isinstance(outcome, Scalar):
                    raise MatrixInEquationError()

    def _residuals(self, exprs: Sequence[Expr], ctx: Context) -> list[float]:
        return [_first_scalar(self._evaluate(expr, ctx)) for expr in exprs]

    def _jacobian_step(self, search: Sequence[Expr], point: list[float], fx: list[float]) -> list[float]:
        ctx = self._bind_all(point)
        augmented: list[list[float]] = []
        for expr, f in zip(search, fx):
            row = []
            for name, x in zip(self.unknowns, point):
                slope = derivative_at_first(self._evaluate, expr, name, Scalar(x), ctx, self.settings, fx=Scalar(f))
                row.append(_scalar_of(slope))
            row.append(-f)
            augmented.append(row)
        delta = gauss_solve(augmented)
        return [x + dx for x, dx in zip(point, delta)]

    def newton_step(self, search: Sequence[Expr], checks: Sequence[Expr], point: list[float]) -> tuple[bool, list[float]]:
        """One iteration: `(True, point)` once converged, else `(False, next_point)`."""
        tolerance = self.settings.tolerance
        fx = self._residuals(search, self._bind_all(point))
        if _norm(fx) < tolerance:
            if checks and not _norm(self._residuals(checks, self._bind_all(point))) < tolerance:
                raise ExpressionCheckFailedError()
            return True, point

        next_point = self._jacobian_step(search, point, fx)
        if any(math.isnan(x) or math.isinf(x) for x in next_point):
            raise NaNOrInfError()
        return False, next_point

    def _search_combination(self, chosen: Sequence[int]) -> list[Value]:
        search = [self.expressions[i] for i in chosen]
        checks = [expr for i, expr in enumerate(self.expressions) if i not in chosen]
        roots: list[Value] = []
        low, high = self.settings.start_range
        for start in range(low, high):
            point = [float(start)] * len(self.unknowns)
            for _ in range(self.settings.max_iterations):
                try:
                    done, point = self.newton_step(search, checks, point)
                except InfiniteSolutionsError:
                    logger.debug("combination %s is degenerate", chosen)
                    return roots
                except (NaNOrInfError, ExpressionCheckFailedError):
                    break
                if done:
                    roots.append(Scalar(point[0]) if len(point) == 1 else VectorValue(tuple(point)))
                    break
        return roots

    def solve(self) -> Values:
        for chosen in self.combinations:
            roots = clean_results(self._search_combination(chosen), self.settings)
            logger.debug("combination %s: %d root(s)", chosen, len(roots))
            if roots:
                return roots
        logger.debug("no combination produced a root")
        return Values()


def solve_equations(
    equations: Sequence[tuple[Expr, Expr]],
    context: Context,
    unknowns: Sequence[str] = (),
    settings: Settings | None = None,
) -> Values:
    """Solve `(left, right)` pairs by finding the roots of `left - right`."""
    residuals = [binary(SimpleOpType.SUB, left, right) for left, right in equations]
    return Solver(residuals, context, unknowns, settings).solve()
