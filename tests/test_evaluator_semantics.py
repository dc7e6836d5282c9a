from __future__ import annotations

import importlib.util
import math
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for evaluator tests")
class ArithmeticSemanticsTests(unittest.TestCase):
    def test_basic_arithmetic(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(quick_eval("3*3"), Values.of(9))
        self.assertEqual(quick_eval("3-4-5"), Values.of(-6))
        self.assertEqual(quick_eval("3^2^4"), Values.of(43_046_721))
        self.assertEqual(quick_eval("((3*3))"), Values.of(9))
        self.assertEqual(quick_eval("3(6+2)"), Values.of(24))

    def test_vector_literals(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(quick_eval("[3, 3/4, 6]"), Values.of([3, 0.75, 6]))
        self.assertEqual(quick_eval("[-3 ,-5, -2]"), Values.of([-3, -5, -2]))
        self.assertEqual(quick_eval("[3, 3*3, -5]"), Values.of([3, 9, -5]))
        self.assertEqual(quick_eval("3[4, 5, 6]"), Values.of([12, 15, 18]))
        self.assertEqual(quick_eval("[sqrt(25), 2pi, 3]")[0], quick_eval("[5, 2pi, 3]")[0])

    def test_matrix_literal_inner_brackets_are_columns(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(
            quick_eval("[[3, 4, 5], [1, 2, 3], [5, 6, 7]]"),
            Values.of([[3, 1, 5], [4, 2, 6], [5, 3, 7]]),
        )

    def test_matrix_literal_row_major_setting(self) -> None:
        from formula_eval import Settings, Values, quick_eval

        self.assertEqual(
            quick_eval("[[3, 4, 5], [1, 2, 3]]", settings=Settings(row_major=True)),
            Values.of([[3, 4, 5], [1, 2, 3]]),
        )

    def test_linear_maps(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(quick_eval("[[1, 0], [0, 6], [0, 0]]*[3, 4, 5]"), Values.of([3, 24]))
        self.assertEqual(
            quick_eval("3*[[2, 0, 0], [0, 1, 0], [0, 0, 5]]*[[1, 0, 0], [0, 1, 0], [0, 0, 1]]*[3, 4, 5]"),
            Values.of([18, 12, 75]),
        )

    def test_context_variables(self) -> None:
        from formula_eval import Context, Values, Variable, quick_eval

        self.assertEqual(quick_eval("3x", Context.from_vars([Variable("x", 3)])), Values.of(9))
        self.assertEqual(quick_eval("3A", Context.from_vars([Variable("A", [3, 5, 8])])), Values.of([9, 15, 24]))
        ctx = Context.from_vars(
            [
                Variable("A", [3, 5, 8]),
                Variable("B", [[2, 0, 0], [0, 2, 0], [0, 0, 1]]),
            ]
        )
        self.assertEqual(quick_eval("B*A", ctx), Values.of([6, 10, 8]))

    def test_matrix_product(self) -> None:
        from formula_eval import Context, Values, Variable, quick_eval

        ctx = Context.from_vars(
            [
                Variable("A", [[3, 5, 7], [4, 8, 2], [1, 9, 2]]),
                Variable("B", [[7, 9, 10], [1, 55, 8], [22, 9, 2]]),
            ]
        )
        self.assertEqual(quick_eval("A*B", ctx), Values.of([[180, 365, 84], [80, 494, 108], [60, 522, 86]]))

    def test_index_after_products(self) -> None:
        from formula_eval import Context, Values, Variable, quick_eval

        ctx = Context.from_vars(
            [
                Variable("A", [3, 2, 1]),
                Variable("x", 3),
                Variable("B", [[2, 3, 4], [5, 1, 7], [2, 3, 6]]),
            ]
        )
        self.assertEqual(quick_eval("(x*B*A)?1", ctx), Values.of(72))

    def test_subscripted_names(self) -> None:
        from formula_eval import Context, Values, Variable, quick_eval

        ctx = Context.from_vars([Variable("A_{3*6}", 3)])
        self.assertEqual(quick_eval("A_{3*6}*3", ctx), Values.of(9))

    def test_cross_product(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(quick_eval("[0, 0.5, 0]#[-0.8, 0, 0.6]"), Values.of([0.3, 0, 0.4]))

    def test_constants_are_seeded(self) -> None:
        from formula_eval import quick_eval

        self.assertAlmostEqual(quick_eval("2pi")[0].value, 2 * math.pi)
        self.assertAlmostEqual(quick_eval("ln(e)")[0].value, 1.0)

    def test_division_by_zero_is_infinite(self) -> None:
        from formula_eval import Scalar, quick_eval

        self.assertEqual(quick_eval("1/0")[0], Scalar(math.inf))


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for evaluator tests")
class MultiValuedSemanticsTests(unittest.TestCase):
    def test_sqrt_yields_both_signs(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(quick_eval("sqrt(9)"), Values.of(3, -3))
        self.assertEqual(quick_eval("2*sqrt(9)"), Values.of(6, -6))

    def test_odd_root_is_single_valued(self) -> None:
        from formula_eval import quick_eval

        result = quick_eval("root(8,3)")
        self.assertEqual(len(result), 1)
        self.assertAlmostEqual(result[0].value, 2.0)

    def test_vector_slots_expand_to_cartesian_product(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(
            quick_eval("[sqrt(9), sqrt(9), 0]"),
            Values.of([3, 3, 0], [3, -3, 0], [-3, 3, 0], [-3, -3, 0]),
        )

    def test_plus_minus_operator(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(quick_eval("3&1"), Values.of(4, 2))

    def test_lists_concatenate(self) -> None:
        from formula_eval import Values, quick_eval

        self.assertEqual(quick_eval("{1, 2}"), Values.of(1, 2))
        self.assertEqual(quick_eval("{1, 2}+{10, 20}"), Values.of(11, 21, 12, 22))

    def test_multi_valued_variable(self) -> None:
        from formula_eval import Context, Scalar, Values, Variable, quick_eval

        ctx = Context.from_vars([Variable("r", [Scalar(2.0), Scalar(-2.0)])])
        self.assertEqual(quick_eval("r^2", ctx), Values.of(4, 4))

    def test_non_scalar_slot_is_an_error(self) -> None:
        from formula_eval import Context, Variable, evaluate, parse
        from formula_eval.errors import NonScalarInMatrixError, NonScalarInVectorError

        ctx = Context.from_vars([Variable("v", [1, 2])])
        with self.assertRaises(NonScalarInVectorError):
            evaluate(parse("[v, 1]"), ctx)
        with self.assertRaises(NonScalarInMatrixError):
            evaluate(parse("[[v, 1], [2, 3]]"), ctx)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for evaluator tests")
class FunctionCallSemanticsTests(unittest.TestCase):
    def _context(self, *definitions: tuple[str, str, tuple[str, ...]]):
        from formula_eval import Context, Function, parse

        return Context.from_funs([Function(name, parse(body), params) for name, body, params in definitions])

    def test_function_call(self) -> None:
        from formula_eval import Values, quick_eval

        ctx = self._context(("f", "5x^2+2x+x", ("x",)))
        self.assertEqual(quick_eval("f(5)", ctx), Values.of(140))

    def test_redefined_function_uses_the_new_body(self) -> None:
        from formula_eval import Function, Values, parse, quick_eval

        ctx = self._context(("f", "3*x", ("x",)))
        ctx.add_fun(Function("f", parse("2*x"), ("x",)))
        self.assertEqual(len(ctx.funs), 1)
        self.assertEqual(quick_eval("f(3)", ctx), Values.of(6))

    def test_parameters_shadow_outer_variables(self) -> None:
        from formula_eval import Context, Function, Values, Variable, parse, quick_eval

        ctx = Context(
            vars=[Variable("A", [3, 4, 5]), Variable("x", 100)],
            funs=[Function("f", parse("x-A"), ("x",))],
        )
        self.assertEqual(quick_eval("f([3, 4, 5])", ctx), Values.of([0, 0, 0]))

    def test_nested_calls_of_the_same_function(self) -> None:
        from formula_eval import Values, quick_eval

        ctx = self._context(("f", "3*x", ("x",)))
        self.assertEqual(quick_eval("f(f(6))", ctx), Values.of(54))

    def test_direct_self_recursion_is_rejected(self) -> None:
        from formula_eval import evaluate, parse
        from formula_eval.errors import RecursiveFunctionError

        ctx = self._context(("f", "3*f(x)", ("x",)))
        with self.assertRaises(RecursiveFunctionError):
            evaluate(parse("f(5)"), ctx)

    def test_indirect_recursion_hits_the_call_depth_cap(self) -> None:
        from formula_eval import Settings, evaluate, parse
        from formula_eval.errors import CallDepthExceededError

        ctx = self._context(("f", "g(x)", ("x",)), ("g", "f(x)", ("x",)))
        with self.assertRaises(CallDepthExceededError):
            evaluate(parse("f(1)"), ctx, Settings(max_call_depth=16))

    def test_argument_outcomes_are_producted(self) -> None:
        from formula_eval import Values, quick_eval

        ctx = self._context(("f", "x+y", ("x", "y")))
        self.assertEqual(quick_eval("f({1, 2}, {10, 20})", ctx), Values.of(11, 21, 12, 22))

    def test_lookup_errors(self) -> None:
        from formula_eval import evaluate, parse
        from formula_eval.errors import ArityMismatchError, UndefinedFunctionError, UndefinedVariableError

        ctx = self._context(("f", "x", ("x",)))
        with self.assertRaises(UndefinedVariableError):
            evaluate(parse("y+1"), ctx)
        with self.assertRaises(UndefinedFunctionError):
            evaluate(parse("g(1)"), ctx)
        with self.assertRaises(ArityMismatchError) as caught:
            evaluate(parse("f(1,2)"), ctx)
        self.assertEqual((caught.exception.expected, caught.exception.given), (1, 2))


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for evaluator tests")
class QuickEvalErrorTests(unittest.TestCase):
    def test_parser_errors_are_wrapped(self) -> None:
        from formula_eval import QuickEvalError, quick_eval
        from formula_eval.errors import EmptyExpressionError, NotRectangularError

        with self.assertRaises(QuickEvalError) as caught:
            quick_eval("")
        self.assertIsInstance(caught.exception.cause, EmptyExpressionError)
        self.assertIs(caught.exception.__cause__, caught.exception.cause)

        with self.assertRaises(QuickEvalError) as caught:
            quick_eval("[[3, 0, 5], [2, 4, 5], [1, 2]]")
        self.assertIsInstance(caught.exception.cause, NotRectangularError)

    def test_eval_errors_are_wrapped(self) -> None:
        from formula_eval import QuickEvalError, quick_eval
        from formula_eval.errors import UndefinedVariableError

        with self.assertRaises(QuickEvalError) as caught:
            quick_eval("x+1")
        self.assertIsInstance(caught.exception.cause, UndefinedVariableError)
        self.assertEqual(caught.exception.reason, caught.exception.cause.reason)

    def test_reserved_names(self) -> None:
        from formula_eval import Context, ReservedNameError, Variable, quick_eval

        with self.assertRaises(ReservedNameError) as caught:
            quick_eval("pi", Context.from_vars([Variable("pi", 3)]))
        self.assertEqual(caught.exception.names, ("pi",))

    def test_evaluate_without_context_has_no_constants(self) -> None:
        from formula_eval import evaluate, parse
        from formula_eval.errors import UndefinedVariableError

        with self.assertRaises(UndefinedVariableError):
            evaluate(parse("pi"))


if __name__ == "__main__":
    unittest.main()
