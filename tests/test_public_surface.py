from __future__ import annotations

import unittest

import formula_eval
from formula_eval import errors
from formula_eval.settings import HIGH_PRECISION, Settings


class PublicSurfaceTests(unittest.TestCase):
    def test_all_names_resolve(self) -> None:
        for name in formula_eval.__all__:
            with self.subTest(name=name):
                self.assertTrue(hasattr(formula_eval, name))

    def test_error_hierarchy(self) -> None:
        parser_errors = (
            errors.EmptyExpressionError,
            errors.UnmatchedOpenDelimiterError,
            errors.UnmatchedCloseDelimiterError,
            errors.MissingBracketError,
            errors.EmptyVectorError,
            errors.NotRectangularError,
            errors.EquationWithoutEqualError,
            errors.TooManyEqualsError,
            errors.NestingTooDeepError,
        )
        for cls in parser_errors:
            with self.subTest(cls=cls.__name__):
                self.assertTrue(issubclass(cls, errors.ParserError))

        for cls in (errors.MathError, errors.SolveError, errors.RecursiveFunctionError):
            with self.subTest(cls=cls.__name__):
                self.assertTrue(issubclass(cls, errors.EvalError))

        for cls in (errors.NothingToSolveError, errors.NaNOrInfError, errors.UnknownAlreadyBoundError):
            with self.subTest(cls=cls.__name__):
                self.assertTrue(issubclass(cls, errors.SolveError))

        self.assertTrue(issubclass(errors.ReservedNameError, errors.QuickEvalError))
        self.assertTrue(issubclass(errors.QuickEvalError, errors.FormulaError))
        self.assertFalse(issubclass(errors.QuickEvalError, errors.EvalError))

    def test_reasons_are_human_readable(self) -> None:
        err = errors.EmptyExpressionError()
        self.assertEqual(str(err), err.reason)
        self.assertEqual(str(errors.MathError("custom")), "custom")
        wrapped = errors.QuickEvalError.from_error(err)
        self.assertIs(wrapped.cause, err)
        self.assertEqual(wrapped.reason, err.reason)


class SettingsTests(unittest.TestCase):
    def test_derived_quantities(self) -> None:
        settings = Settings(precision=8)
        self.assertEqual(settings.tolerance, 1e-8)
        self.assertEqual(settings.step, 1e-8)
        self.assertEqual(int(round(settings.integral_steps)), 100_000)
        self.assertEqual(settings.display_precision, 6)

    def test_high_precision(self) -> None:
        self.assertEqual(Settings.high_precision().precision, HIGH_PRECISION)
        self.assertEqual(HIGH_PRECISION, 13)

    def test_with_changes_returns_a_new_instance(self) -> None:
        base = Settings()
        changed = base.with_changes(row_major=True)
        self.assertTrue(changed.row_major)
        self.assertEqual(base.row_major, Settings().row_major)
        self.assertEqual(changed.precision, base.precision)

    def test_validation(self) -> None:
        with self.assertRaises(ValueError):
            Settings(precision=2)
        with self.assertRaises(ValueError):
            Settings(start_range=(5, 5))
        with self.assertRaises(ValueError):
            Settings(max_roots=0)


if __name__ == "__main__":
    unittest.main()
