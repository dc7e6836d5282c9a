"""Precision and resource-bound configuration threaded through evaluation."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Final

_DEFAULT_PRECISION: Final[int] = int(os.environ.get("FORMULA_EVAL_PRECISION", "8"))
_DEFAULT_ROW_MAJOR: Final[bool] = os.environ.get("FORMULA_EVAL_ROW_MAJOR", "0") == "1"
_DEFAULT_MAX_PARSE_DEPTH: Final[int] = max(1, int(os.environ.get("FORMULA_EVAL_MAX_PARSE_DEPTH", "250")))
_DEFAULT_MAX_CALL_DEPTH: Final[int] = max(1, int(os.environ.get("FORMULA_EVAL_MAX_CALL_DEPTH", "64")))

HIGH_PRECISION: Final[int] = 13


@dataclass(frozen=True)
class Settings:
    """Explicit configuration for parsing, evaluation and solving.

    `precision` (PREC) sets the solver tolerance and derivative step
    (10**-PREC), the integral resolution (10**(PREC-3) steps) and the
    rounding used to de-duplicate roots (PREC-2 digits).
    """

    precision: int = _DEFAULT_PRECISION
    row_major: bool = _DEFAULT_ROW_MAJOR
    start_range: tuple[int, int] = (-1000, 1000)
    max_iterations: int = 1000
    max_roots: int = 10
    probe_value: float = 2.5690823
    max_parse_depth: int = _DEFAULT_MAX_PARSE_DEPTH
    max_call_depth: int = _DEFAULT_MAX_CALL_DEPTH

    def __post_init__(self) -> None:
        if self.precision < 3:
            raise ValueError("precision must be at least 3")
        lo, hi = self.start_range
        if lo >= hi:
            raise ValueError("start_range must be a non-empty (low, high) interval")
        if self.max_iterations < 1 or self.max_roots < 1:
            raise ValueError("max_iterations and max_roots must be positive")

    @property
    def tolerance(self) -> float:
        return 10.0 ** -self.precision

    @property
    def step(self) -> float:
        return 10.0 ** -self.precision

    @property
    def integral_steps(self) -> float:
        return 10.0 ** (self.precision - 3)

    @property
    def display_precision(self) -> int:
        return self.precision - 2

    @classmethod
    def high_precision(cls) -> "Settings":
        return cls(precision=HIGH_PRECISION)

    def with_changes(self, **changes) -> "Settings":
        return replace(self, **changes)


DEFAULT_SETTINGS: Final[Settings] = Settings()
