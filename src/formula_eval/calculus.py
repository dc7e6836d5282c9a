"""Numeric derivative and integral expressed as re-evaluation of an AST."""

from __future__ import annotations

import math
from typing import Callable

from .ast import Expr, Number, SimpleOpType, binary, from_value
from .context import Context
from .errors import MathError
from .primitives import add, mult
from .settings import DEFAULT_SETTINGS, Settings
from .values import Scalar, Value, Values

Evaluate = Callable[[Expr, Context], Values]


def _difference_quotient(evaluate: Evaluate, fxh: Value, fx: Value, h: float, context: Context) -> Values:
    quotient = binary(
        SimpleOpType.DIV,
        binary(SimpleOpType.SUB, from_value(fxh), from_value(fx)),
        Number(h),
    )
    return evaluate(quotient, context)


def derivative(
    evaluate: Evaluate,
    expr: Expr,
    in_terms_of: str,
    at: Value,
    context: Context,
    settings: Settings | None = None,
) -> Values:
    """Forward difference (f(x+h) - f(x)) / h for every outcome of f."""
    settings = settings or DEFAULT_SETTINGS
    if not isinstance(at, Scalar):
        raise MathError("Only scalar values are allowed!")
    h = settings.step
    fxs = evaluate(expr, context.bind(in_terms_of, at))
    fxhs = evaluate(expr, context.bind(in_terms_of, Scalar(at.value + h)))
    if len(fxs) != len(fxhs):
        raise MathError("Amount of solutions for f(x) and f(x+h) are different!")
    results: list[Value] = []
    for fx, fxh in zip(fxs, fxhs):
        results.extend(_difference_quotient(evaluate, fxh, fx, h, context))
    return Values(results)


def derivative_at_first(
    evaluate: Evaluate,
    expr: Expr,
    in_terms_of: str,
    at: Value,
    context: Context,
    settings: Settings | None = None,
    fx: Value | None = None,
) -> Value:
    """Single-outcome derivative used by Newton steps.

    Only the first outcome of f is followed. A caller that already has
    f(x) passes it as `fx` to skip one evaluation. An f without outcomes
    has slope NaN.
    """
    settings = settings or DEFAULT_SETTINGS
    if not isinstance(at, Scalar):
        raise MathError("Only scalar values are allowed!")
    h = settings.step
    if fx is None:
        fxs = evaluate(expr, context.bind(in_terms_of, at))
        if not fxs:
            return Scalar(math.nan)
        fx = fxs[0]
    fxhs = evaluate(expr, context.bind(in_terms_of, Scalar(at.value + h)))
    if not fxhs:
        return Scalar(math.nan)
    return _difference_quotient(evaluate, fxhs[0], fx, h, context)[0]


def integral(
    evaluate: Evaluate,
    expr: Expr,
    in_terms_of: str,
    lower_bound: Value,
    upper_bound: Value,
    context: Context,
    settings: Settings | None = None,
) -> Values:
    """Midpoint Riemann sum over 10**(PREC-3) equal steps.

    Outcomes are summed position by position across steps, so `expr` is
    expected to produce its outcomes in a stable order.
    """
    settings = settings or DEFAULT_SETTINGS
    if not (isinstance(lower_bound, Scalar) and isinstance(upper_bound, Scalar)):
        raise MathError("Only scalar bounds are allowed!")
    lb, ub = lower_bound.value, upper_bound.value
    if lb == ub:
        return Values([Scalar(0.0)])
    if ub < lb:
        lb, ub = ub, lb

    steps = max(1, int(round(settings.integral_steps)))
    dx = (ub - lb) / steps
    sums: list[Value] = []
    for k in range(steps):
        outcomes = evaluate(expr, context.bind(in_terms_of, Scalar(lb + (k + 0.5) * dx)))
        for idx, outcome in enumerate(outcomes):
            if idx < len(sums):
                sums[idx] = add(sums[idx], outcome)
            else:
                sums.append(outcome)
    return Values(mult(total, Scalar(dx)) for total in sums)
