"""Recursive-split parser from formula text to an AST.

There is no tokenizing pass. Each (sub)string is scanned once for the
loosest-binding operator at bracket depth zero, split there, and both
halves are parsed recursively.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from .ast import (
    Call,
    Derivative,
    Equation,
    Expr,
    Integral,
    List,
    Matrix,
    Name,
    Number,
    SimpleOpType,
    Vector,
    binary,
    unary,
)
from .errors import (
    EmptyExpressionError,
    EmptyVectorError,
    EquationWithoutEqualError,
    InvalidFunctionNameError,
    InvalidVariableNameError,
    MissingBracketError,
    NestingTooDeepError,
    NotRectangularError,
    TooManyEqualsError,
    UnmatchedCloseDelimiterError,
    UnmatchedOpenDelimiterError,
    ValueParseError,
    WrongArgumentCountError,
)
from .scanner import ESCAPE_MARKER, is_name_start, is_valid_name, round_depth_profile, split_args, split_call, strip_whitespace
from .settings import DEFAULT_SETTINGS, Settings

_OPERATOR_SYMBOLS: Final[dict[str, SimpleOpType]] = {
    "?": SimpleOpType.GET,
    "+": SimpleOpType.ADD,
    "-": SimpleOpType.SUB,
    "&": SimpleOpType.ADD_SUB,
    "*": SimpleOpType.MULT,
    "/": SimpleOpType.DIV,
    "^": SimpleOpType.POW,
    "#": SimpleOpType.CROSS,
}

# Tags whose occurrences are split rightmost-first.
_REVERSED_SPLIT_OPS: Final[frozenset[SimpleOpType]] = frozenset({SimpleOpType.SUB, SimpleOpType.MULT})

# Infix tags that may start an expression with an implied zero on the left.
_IMPLIED_ZERO_OPS: Final[frozenset[SimpleOpType]] = frozenset({SimpleOpType.ADD, SimpleOpType.ADD_SUB})

_BUILTIN_FUNCTIONS: Final[tuple[tuple[str, SimpleOpType], ...]] = (
    ("sin(", SimpleOpType.SIN),
    ("cos(", SimpleOpType.COS),
    ("tan(", SimpleOpType.TAN),
    ("abs(", SimpleOpType.ABS),
    ("sqrt(", SimpleOpType.SQRT),
    ("root(", SimpleOpType.ROOT),
    ("ln(", SimpleOpType.LN),
    ("arcsin(", SimpleOpType.ARCSIN),
    ("arccos(", SimpleOpType.ARCCOS),
    ("arctan(", SimpleOpType.ARCTAN),
    ("det(", SimpleOpType.DET),
    ("inv(", SimpleOpType.INV),
)

_ADVANCED_FORMS: Final[tuple[tuple[str, str], ...]] = (
    ("I(", "integral"),
    ("D(", "derivative"),
    ("eq(", "equation"),
)

_NUMBER_RE = re.compile(r"^(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)$")


def _starts_hidden_mult(previous: str, ch: str) -> bool:
    if previous.isdigit() and (ch.isalpha() or ch == ESCAPE_MARKER or ch in "(["):
        return True
    return previous == ")" and ch == "("


def _call_body(text: str, prefix: str) -> str | None:
    """Inner text of `prefix...)` when the prefix's `(` closes at the end."""
    if not text.startswith(prefix) or not text.endswith(")"):
        return None
    depth, wrapped = round_depth_profile(text[len(prefix) - 1 :])
    if depth != 0 or not wrapped:
        return None
    return text[len(prefix) : -1]


@dataclass
class _Parser:
    settings: Settings

    def parse(self, text: str, depth: int = 0) -> Expr:
        if depth > self.settings.max_parse_depth:
            raise NestingTooDeepError(self.settings.max_parse_depth)
        if not text:
            raise EmptyExpressionError()

        open_count, wrapped = round_depth_profile(text)
        if open_count > 0:
            raise UnmatchedOpenDelimiterError()
        if open_count < 0:
            raise UnmatchedCloseDelimiterError()

        if wrapped and text[0] == "(" and text[-1] == ")":
            return unary(SimpleOpType.PARENTHS, self.parse(text[1:-1], depth + 1))

        split = self._find_split(text)
        if split is not None:
            return self._parse_split(text, split, depth)

        builtin = self._parse_builtin(text, depth)
        if builtin is not None:
            return builtin

        advanced = self._parse_advanced(text, depth)
        if advanced is not None:
            return advanced

        call = split_call(text)
        if call is not None:
            name, arg_text = call
            if not is_valid_name(name):
                raise InvalidFunctionNameError(name)
            args = tuple(self.parse(arg, depth + 1) for arg in split_args(arg_text))
            return Call(name=name, args=args)

        if is_name_start(text[0]):
            if not is_valid_name(text):
                raise InvalidVariableNameError(text)
            return Name(text)

        if text[0] == "{" and text[-1] == "}":
            entries = split_args(text[1:-1])
            if not entries:
                raise EmptyExpressionError()
            return List(tuple(self.parse(entry, depth + 1) for entry in entries))

        return self._parse_value(text, depth)

    def _find_split(self, text: str) -> tuple[SimpleOpType, int, int] | None:
        """Pick the split point: (tag, position, width of the operator symbol)."""
        found: list[tuple[SimpleOpType, int, int]] = []
        round_open = square_open = curly_open = 0
        previous = ESCAPE_MARKER
        last = len(text) - 1
        for idx, ch in enumerate(text):
            at_top = round_open == 0 and square_open == 0 and curly_open == 0
            # A digit after `_x` is a subscript, not the start of a product.
            if at_top and _starts_hidden_mult(previous, ch) and not (idx >= 2 and text[idx - 2] == "_"):
                found.append((SimpleOpType.HIDDEN_MULT, idx, 0))
            previous = ch

            if ch == "(":
                round_open += 1
            elif ch == ")":
                round_open -= 1
            elif ch == "[":
                square_open += 1
            elif ch == "]":
                square_open -= 1
            elif ch == "{":
                curly_open += 1
            elif ch == "}":
                curly_open -= 1
            elif at_top and idx != last:
                op = _OPERATOR_SYMBOLS.get(ch)
                if op is None:
                    continue
                if idx == 0 and op is SimpleOpType.SUB:
                    op = SimpleOpType.NEG
                found.append((op, idx, 1))

        if not found:
            return None

        loosest = min((entry[0] for entry in found), key=lambda op: op.precedence)
        candidates = [entry for entry in found if entry[0] is loosest]
        if loosest in _REVERSED_SPLIT_OPS:
            return candidates[-1]
        return candidates[0]

    def _parse_split(self, text: str, split: tuple[SimpleOpType, int, int], depth: int) -> Expr:
        op, pos, width = split
        left_text = text[:pos]
        right = self.parse(text[pos + width :], depth + 1)
        if op is SimpleOpType.NEG:
            return unary(SimpleOpType.NEG, right)
        if not left_text:
            if op in _IMPLIED_ZERO_OPS:
                return binary(op, Number(0.0), right)
            raise EmptyExpressionError()
        return binary(op, self.parse(left_text, depth + 1), right)

    def _parse_builtin(self, text: str, depth: int) -> Expr | None:
        for prefix, op in _BUILTIN_FUNCTIONS:
            body = _call_body(text, prefix)
            if body is None:
                continue
            if op is SimpleOpType.ROOT:
                args = split_args(body)
                if len(args) != 2:
                    raise WrongArgumentCountError("root")
                return binary(op, self.parse(args[0], depth + 1), self.parse(args[1], depth + 1))
            return unary(op, self.parse(body, depth + 1))
        return None

    def _parse_advanced(self, text: str, depth: int) -> Expr | None:
        for prefix, kind in _ADVANCED_FORMS:
            body = _call_body(text, prefix)
            if body is None:
                continue
            args = split_args(body)
            if kind == "integral":
                if len(args) != 4:
                    raise WrongArgumentCountError("integral")
                return Integral(
                    expr=self.parse(args[0], depth + 1),
                    in_terms_of=self._bound_name(args[1]),
                    lower_bound=self.parse(args[2], depth + 1),
                    upper_bound=self.parse(args[3], depth + 1),
                )
            if kind == "derivative":
                if len(args) != 3:
                    raise WrongArgumentCountError("derivative")
                return Derivative(
                    expr=self.parse(args[0], depth + 1),
                    in_terms_of=self._bound_name(args[1]),
                    at=self.parse(args[2], depth + 1),
                )
            return self._parse_equation(args, depth)
        return None

    def _parse_equation(self, entries: list[str], depth: int) -> Equation:
        equations: list[tuple[Expr, Expr]] = []
        search_vars: list[str] = []
        for entry in entries:
            if "=" not in entry:
                search_vars.append(self._bound_name(entry))
                continue
            equations.append(self.parse_equation_sides(entry, depth))
        return Equation(equations=tuple(equations), search_vars=tuple(search_vars))

    def parse_equation_sides(self, entry: str, depth: int = 0) -> tuple[Expr, Expr]:
        """`left=right`, longer side first so the split is unambiguous."""
        if entry.count("=") > 1:
            raise TooManyEqualsError(entry)
        left, right = entry.split("=")
        if len(left) < len(right):
            left, right = right, left
        return self.parse(left, depth + 1), self.parse(right, depth + 1)

    def _bound_name(self, text: str) -> str:
        if not text:
            raise EmptyExpressionError()
        if not is_valid_name(text):
            raise InvalidVariableNameError(text)
        return text

    def _parse_value(self, text: str, depth: int) -> Expr:
        if "[" not in text:
            if not _NUMBER_RE.match(text):
                raise ValueParseError(text)
            return Number(float(text))

        if len(text) < 2 or text[0] != "[" or text[-1] != "]":
            raise MissingBracketError()

        slots = split_args(text[1:-1])
        if not slots or any(not slot for slot in slots):
            raise EmptyVectorError()
        items = [self.parse(slot, depth + 1) for slot in slots]

        has_vectors = any(isinstance(item, Vector) for item in items)
        has_matrices = any(isinstance(item, Matrix) for item in items)
        if has_matrices:
            raise ValueParseError(text)
        if not has_vectors:
            return Vector(tuple(items))

        lines: list[tuple[Expr, ...]] = []
        for item in items:
            if not isinstance(item, Vector):
                raise NotRectangularError()
            lines.append(item.items)
        width = len(lines[0])
        if any(len(line) != width for line in lines):
            raise NotRectangularError()
        if self.settings.row_major:
            return Matrix(tuple(lines))
        # Column-major input: each inner bracket is one column.
        return Matrix(tuple(tuple(line[col] for line in lines) for col in range(width)))


def parse(text: str, settings: Settings | None = None) -> Expr:
    """Parse formula text into an AST; whitespace is ignored entirely."""
    return _Parser(settings or DEFAULT_SETTINGS).parse(strip_whitespace(text))


def parse_equation(text: str, settings: Settings | None = None) -> tuple[Expr, Expr]:
    """Parse one `left=right` equation into its two sides."""
    cleaned = strip_whitespace(text)
    if "=" not in cleaned:
        raise EquationWithoutEqualError()
    return _Parser(settings or DEFAULT_SETTINGS).parse_equation_sides(cleaned)
