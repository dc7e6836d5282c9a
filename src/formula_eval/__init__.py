"""formula-eval public API."""

from .ast import SimpleOpType, from_value, from_variable_name
from .context import Context, Function, Variable
from .errors import (
    EvalError,
    FormulaError,
    MathError,
    ParserError,
    QuickEvalError,
    ReservedNameError,
    SolveError,
)
from .parser import parse, parse_equation
from .settings import DEFAULT_SETTINGS, HIGH_PRECISION, Settings
from .values import Matrix, Scalar, Value, ValueKind, Values, Vector

try:
    from .evaluator import evaluate, quick_eval, quick_solve
    from .solver import Solver, solve_equations
except ModuleNotFoundError as exc:
    if exc.name and exc.name.startswith("jax"):
        _jax_import_error = exc

        def evaluate(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for evaluate(). Install runtime deps first."
            ) from _jax_import_error

        def quick_eval(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for quick_eval(). Install runtime deps first."
            ) from _jax_import_error

        def quick_solve(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for quick_solve(). Install runtime deps first."
            ) from _jax_import_error

        def solve_equations(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for solve_equations(). Install runtime deps first."
            ) from _jax_import_error

        class Solver:  # pragma: no cover - import-time fallback
            def __init__(self, *_args, **_kwargs) -> None:
                raise ModuleNotFoundError(
                    "jax is required for Solver(). Install runtime deps first."
                ) from _jax_import_error

    else:
        raise

__all__ = [
    "Context",
    "DEFAULT_SETTINGS",
    "EvalError",
    "FormulaError",
    "Function",
    "HIGH_PRECISION",
    "MathError",
    "Matrix",
    "ParserError",
    "QuickEvalError",
    "ReservedNameError",
    "Scalar",
    "Settings",
    "SimpleOpType",
    "SolveError",
    "Solver",
    "Value",
    "ValueKind",
    "Values",
    "Variable",
    "Vector",
    "evaluate",
    "from_value",
    "from_variable_name",
    "parse",
    "parse_equation",
    "quick_eval",
    "quick_solve",
    "solve_equations",
]
