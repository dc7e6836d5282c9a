from __future__ import annotations

import math
import unittest

from formula_eval.values import (
    Matrix,
    Scalar,
    ValueKind,
    Values,
    Vector,
    as_value,
    is_inf_or_nan,
    is_matrix,
    is_scalar,
    is_vector,
    matrix,
    round_value,
    validate_value,
    value_as_string,
    value_info,
)


class ValueModelTests(unittest.TestCase):
    def test_as_value_coerces_plain_python_data(self) -> None:
        self.assertEqual(as_value(3), Scalar(3.0))
        self.assertEqual(as_value([1, 2]), Vector((1.0, 2.0)))
        self.assertEqual(as_value([[1, 2], [3, 4]]), Matrix(((1.0, 2.0), (3.0, 4.0))))
        with self.assertRaises(TypeError):
            as_value("3")
        with self.assertRaises(TypeError):
            as_value(True)

    def test_matrix_rejects_ragged_rows(self) -> None:
        with self.assertRaises(ValueError):
            matrix([[1, 2], [3]])

    def test_value_info(self) -> None:
        self.assertEqual(value_info(Scalar(1.0)).kind, ValueKind.SCALAR)
        self.assertEqual(value_info(Scalar(1.0)).shape, ())
        self.assertEqual(value_info(Vector((1.0, 2.0, 3.0))).shape, (3,))
        info = value_info(as_value([[1, 2, 3], [4, 5, 6]]))
        self.assertEqual(info.kind, ValueKind.MATRIX)
        self.assertEqual(info.shape, (2, 3))

    def test_kind_predicates(self) -> None:
        self.assertTrue(is_scalar(Scalar(1.0)))
        self.assertTrue(is_vector(Vector((1.0,))))
        self.assertTrue(is_matrix(as_value([[1, 2]])))
        self.assertFalse(is_matrix(Vector((1.0,))))

    def test_rounding_is_half_away_from_zero(self) -> None:
        self.assertEqual(round_value(Scalar(2.5), 0), Scalar(3.0))
        self.assertEqual(round_value(Scalar(-2.5), 0), Scalar(-3.0))
        self.assertEqual(round_value(Vector((1.23456, -0.0004)), 3), Vector((1.235, -0.0)))

    def test_inf_or_nan(self) -> None:
        self.assertTrue(is_inf_or_nan(Vector((1.0, math.inf))))
        self.assertTrue(is_inf_or_nan(Scalar(math.nan)))
        self.assertFalse(is_inf_or_nan(as_value([[1, 2], [3, 4]])))

    def test_value_as_string(self) -> None:
        self.assertEqual(value_as_string(Scalar(3.0)), "3")
        self.assertEqual(value_as_string(Vector((1.0, 2.5))), "[1,2.5]")
        self.assertEqual(value_as_string(as_value([[1, 2], [3, 4]])), "[[1,2],[3,4]]")

    def test_validate_value(self) -> None:
        validate_value(Scalar(1.0))
        with self.assertRaises(TypeError):
            validate_value(Scalar(1))
        with self.assertRaises(TypeError):
            validate_value(Matrix(((1.0, 2.0), (3.0,))))
        with self.assertRaises(TypeError):
            validate_value(1.0)


class ValuesCollectionTests(unittest.TestCase):
    def test_values_behave_like_an_immutable_sequence(self) -> None:
        values = Values.of(1, [1, 2], 3)
        self.assertEqual(len(values), 3)
        self.assertEqual(values[0], Scalar(1.0))
        self.assertEqual(values[1:], Values.of([1, 2], 3))
        self.assertEqual(list(values), [Scalar(1.0), Vector((1.0, 2.0)), Scalar(3.0)])
        self.assertEqual(values.get(5), None)
        self.assertTrue(values)
        self.assertFalse(Values())

    def test_values_compare_against_lists(self) -> None:
        self.assertEqual(Values.of(3, -3), [Scalar(3.0), Scalar(-3.0)])
        self.assertEqual(Values(), [])
        self.assertEqual(hash(Values.of(1)), hash(Values.of(1)))

    def test_values_round_and_format(self) -> None:
        values = Values.of(1.23456, [0.5, 2])
        self.assertEqual(values.round(2), Values.of(1.23, [0.5, 2]))
        self.assertEqual(values.round(1).as_string(), "{1.2, [0.5,2]}")


if __name__ == "__main__":
    unittest.main()
