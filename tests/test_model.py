import unittest

import numpy as np

from gmdhsearch.dataset import Dataset, InputShapeError
from gmdhsearch.models import (
    LinearModel,
    PolynomialModel,
    fit_linear,
    fit_polynomial,
    linear_features,
    quadratic_features,
)


# decimals to compare for numerical accuracy
DECIMALS = 8


class TestFitLinear(unittest.TestCase):
    def setUp(self) -> None:
        self.X = np.array([[1, 1], [2, 1], [3, 2], [4, 2], [5, 3]], dtype=float)

    def test_exact_plane(self):
        y = 2 + 3 * self.X[:, 0] + 4 * self.X[:, 1]
        solution = fit_linear(self.X, y)

        self.assertFalse(solution.is_degenerate)
        self.assertListEqual(solution.x.round(DECIMALS).tolist(), [2.0, 3.0, 4.0])

        model = LinearModel(solution.x, [0, 1])
        self.assertAlmostEqual(model.predict([[3.0, 2.0]])[0], 19.0)

    def test_reference_samples(self):
        # these targets lie exactly on y = 4 + 3*x1 + 2*x2
        y = np.array([9, 12, 17, 20, 25], dtype=float)
        solution = fit_linear(self.X, y)

        self.assertListEqual(solution.x.round(DECIMALS).tolist(), [4.0, 3.0, 2.0])

        model = LinearModel(solution.x, [0, 1])
        self.assertAlmostEqual(model.predict([[3.0, 2.0]])[0], 17.0)

    def test_collinear(self):
        X = np.array([[1, 1], [2, 2], [3, 3], [4, 4]], dtype=float)
        solution = fit_linear(X, [1.0, 2.0, 3.0, 4.0])

        self.assertTrue(solution.is_singular)
        self.assertListEqual(solution.x.tolist(), [0.0, 0.0, 0.0])

    def test_missing_values_degenerate(self):
        X = self.X.copy()
        X[2, 0] = np.nan
        solution = fit_linear(X, [9.0, 12.0, 17.0, 20.0, 25.0])
        self.assertTrue(solution.is_degenerate)

    def test_shape(self):
        with self.assertRaises(InputShapeError):
            fit_linear(self.X, [1.0, 2.0])


class TestFitPolynomial(unittest.TestCase):
    def setUp(self) -> None:
        g1, g2 = np.meshgrid(np.arange(5.0), np.arange(5.0))
        self.x1 = g1.ravel()
        self.x2 = g2.ravel()
        self.coeffs = [1.0, 2.0, -1.0, 0.5, 0.25, -0.75]
        self.y = quadratic_features(self.x1, self.x2) @ np.array(self.coeffs)

    def test_exact_quadratic(self):
        solution = fit_polynomial(self.x1, self.x2, self.y)

        self.assertFalse(solution.is_degenerate)
        self.assertListEqual(solution.x.round(DECIMALS).tolist(), self.coeffs)

    def test_prediction(self):
        solution = fit_polynomial(self.x1, self.x2, self.y)
        model = PolynomialModel(solution.x, 0, 1)

        expected = 1 + 2 * 3 - 2 + 0.5 * 9 + 0.25 * 4 - 0.75 * 6
        self.assertAlmostEqual(model.predict([3.0], [2.0])[0], expected)

    def test_missing_rows_ignored(self):
        x1 = self.x1.copy()
        y = self.y.copy()
        x1[3] = np.nan
        y[7] = np.nan
        y[11] = 1000.0
        x1[11] = np.nan

        keep = np.ones_like(y, dtype=bool)
        keep[[3, 7, 11]] = False

        with_missing = fit_polynomial(x1, self.x2, y)
        clean = fit_polynomial(self.x1[keep], self.x2[keep], self.y[keep])

        self.assertListEqual(
            with_missing.x.round(DECIMALS).tolist(),
            clean.x.round(DECIMALS).tolist(),
            "missing rows changed the fit",
        )

    def test_constant_feature(self):
        solution = fit_polynomial(np.ones(10), np.arange(10.0), np.arange(10.0))

        self.assertTrue(solution.is_singular)
        self.assertListEqual(solution.x.tolist(), [0.0] * 6)

    def test_shape(self):
        with self.assertRaises(InputShapeError):
            fit_polynomial([1.0, 2.0], [1.0], [1.0, 2.0])
        with self.assertRaises(InputShapeError):
            fit_polynomial([1.0, 2.0], [1.0, 2.0], [1.0])


class TestModels(unittest.TestCase):
    def setUp(self) -> None:
        self.dataset = Dataset(
            [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]],
            [0.0, 0.0],
        )

    def test_polynomial_predict_dataset(self):
        model = PolynomialModel([1, 1, 1, 0, 0, 1], 0, 2)
        pred = model.predict_dataset(self.dataset)
        self.assertListEqual(pred.tolist(), [1 + 1 + 3 + 3, 1 + 4 + 6 + 24])

    def test_linear_predict_dataset(self):
        model = LinearModel([1.0, 2.0, -1.0], [1, 2])
        pred = model.predict_dataset(self.dataset)
        self.assertListEqual(pred.tolist(), [1 + 4 - 3, 1 + 10 - 6])

    def test_polynomial_invalid(self):
        with self.assertRaises(InputShapeError):
            PolynomialModel([0.0] * 6, 2, 1)
        with self.assertRaises(InputShapeError):
            PolynomialModel([0.0] * 5, 0, 1)

    def test_linear_invalid(self):
        with self.assertRaises(InputShapeError):
            LinearModel([0.0, 0.0, 0.0], [1, 1])
        with self.assertRaises(InputShapeError):
            LinearModel([0.0, 0.0], [0, 1])
        with self.assertRaises(InputShapeError):
            LinearModel([0.0, 0.0], [-1])

    def test_out_of_range_reference(self):
        model = LinearModel([0.0, 1.0], [5])
        with self.assertRaises(InputShapeError):
            model.predict_dataset(self.dataset)

    def test_coefficients_read_only(self):
        model = LinearModel([1.0, 2.0], [0])
        with self.assertRaises(ValueError):
            model.coeffs[0] = 5.0


class TestFeatures(unittest.TestCase):
    def test_quadratic_basis(self):
        X = quadratic_features([2.0], [3.0])
        self.assertListEqual(X.tolist(), [[1.0, 2.0, 3.0, 4.0, 9.0, 6.0]])

    def test_linear_design(self):
        X = linear_features([[2.0, 3.0], [4.0, 5.0]])
        self.assertListEqual(X.tolist(), [[1.0, 2.0, 3.0], [1.0, 4.0, 5.0]])

    def test_linear_design_columns(self):
        with self.assertRaises(InputShapeError):
            linear_features([[2.0, 3.0]], 3)


if __name__ == "__main__":
    unittest.main()
