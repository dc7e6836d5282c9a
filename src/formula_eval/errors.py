"""Structured error types for parser / evaluator / solver separation."""

from __future__ import annotations


class FormulaError(Exception):
    """Base class for structured formula-eval errors."""

    reason_text = "Formula error!"

    def __init__(self, reason: str | None = None) -> None:
        self.reason = self.reason_text if reason is None else reason
        super().__init__(self.reason)

    def __str__(self) -> str:
        return self.reason


class ParserError(FormulaError):
    """Malformed input text; no partial tree is ever produced."""


class EmptyExpressionError(ParserError):
    reason_text = "Could not parse empty expression!"


class UnmatchedOpenDelimiterError(ParserError):
    reason_text = "Unmatched opening delimiter!"


class UnmatchedCloseDelimiterError(ParserError):
    reason_text = "Unmatched closing delimiter!"


class MissingBracketError(ParserError):
    reason_text = "Could not parse vector/matrix because of missing brackets!"


class EmptyVectorError(ParserError):
    reason_text = "Could not parse vector/matrix because it is (partially) empty!"


class NotRectangularError(ParserError):
    reason_text = "Could not parse matrix because it is not rectangular!"


class EquationWithoutEqualError(ParserError):
    reason_text = "Equation does not contain an '='!"


class ValueParseError(ParserError):
    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Could not parse value {text}!")


class InvalidVariableNameError(ParserError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Found invalid variable name: {name}!")


class InvalidFunctionNameError(ParserError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Found invalid function name: {name}!")


class WrongArgumentCountError(ParserError):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Wrong number of arguments for {operation} operation!")


class TooManyEqualsError(ParserError):
    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(
            f"Too many = in equation {text}. Separate the equations of a system with ','."
        )


class NestingTooDeepError(ParserError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"Expression exceeds the parse depth limit of {limit}! "
            "Every bracket level and every chained operator counts."
        )


class EvalError(FormulaError):
    """Failure after a successful parse."""


class NonScalarInVectorError(EvalError):
    reason_text = "Vectors can only contain scalars!"


class NonScalarInMatrixError(EvalError):
    reason_text = "Matrices can only contain scalars!"


class RecursiveFunctionError(EvalError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Can't call the recursive function {name}!")


class UndefinedVariableError(EvalError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Could not find variable {name}!")


class UndefinedFunctionError(EvalError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Could not find function {name}!")


class ArityMismatchError(EvalError):
    def __init__(self, name: str, expected: int, given: int) -> None:
        self.name = name
        self.expected = expected
        self.given = given
        super().__init__(
            f"Wrong number of arguments for {name}! Expected {expected} arguments, {given} were given!"
        )


class MathError(EvalError):
    """Shape mismatch or unsupported operand kinds reported by a primitive."""


class CallDepthExceededError(EvalError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Function calls nested deeper than {limit}!")


class SolveError(EvalError):
    """Failure reported by the equation solver."""


class NothingToSolveError(SolveError):
    reason_text = "Nothing to do!"


class VectorInEquationError(SolveError):
    reason_text = "Can't have vectors in equations! Please convert your equation into a system of equations!"


class MatrixInEquationError(SolveError):
    reason_text = "Can't have matrices in equations!"


class UnderdeterminedSystemError(SolveError):
    reason_text = "Underdetermined system of equations!"


class InfiniteSolutionsError(SolveError):
    reason_text = "Infinite Solutions!"


class NaNOrInfError(SolveError):
    reason_text = "NaN or Inf"


class ExpressionCheckFailedError(SolveError):
    reason_text = "Expression Check Failed!"


class UnknownAlreadyBoundError(SolveError):
    def __init__(self, names: tuple[str, ...]) -> None:
        self.names = names
        super().__init__(
            f"The given solve variables already exist in the context: {', '.join(names)}!"
        )


class QuickEvalError(FormulaError):
    """Failure of the parse-and-evaluate convenience wrappers."""

    def __init__(self, reason: str | None = None, cause: FormulaError | None = None) -> None:
        self.cause = cause
        super().__init__(reason)

    @classmethod
    def from_error(cls, err: FormulaError) -> "QuickEvalError":
        return cls(err.reason, cause=err)


class ReservedNameError(QuickEvalError):
    def __init__(self, names: tuple[str, ...]) -> None:
        self.names = names
        super().__init__(f"Can't specify {' and '.join(names)} twice!")
