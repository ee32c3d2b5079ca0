import numpy as np
import pytest

from impulse_filters.exceptions import InvalidConfigurationError, NumericalError
from impulse_filters.filters import savgol
from impulse_filters.filters.savgol import (
    SavgolFilter,
    gauss_solve,
    reflect_indices,
    savgol_coefficients,
)


class TestGaussSolve:
    def test_matches_numpy(self, rng):
        matrix = rng.normal(size=(5, 5)) + 5 * np.eye(5)
        rhs = rng.normal(size=5)
        np.testing.assert_allclose(gauss_solve(matrix, rhs), np.linalg.solve(matrix, rhs))

    def test_needs_pivoting(self):
        """A zero in the leading position only solves with row exchange."""
        matrix = np.array([[0.0, 1.0], [1.0, 0.0]])
        np.testing.assert_allclose(gauss_solve(matrix, np.array([2.0, 3.0])), [3.0, 2.0])

    def test_inputs_untouched(self):
        matrix = np.array([[4.0, 1.0], [2.0, 3.0]])
        rhs = np.array([1.0, 2.0])
        gauss_solve(matrix, rhs)
        np.testing.assert_array_equal(matrix, [[4.0, 1.0], [2.0, 3.0]])
        np.testing.assert_array_equal(rhs, [1.0, 2.0])

    def test_singular_matrix_raises(self):
        with pytest.raises(NumericalError):
            gauss_solve(np.array([[1.0, 2.0], [2.0, 4.0]]), np.array([1.0, 1.0]))

    def test_numerical_error_is_arithmetic_error(self):
        assert issubclass(NumericalError, ArithmeticError)


class TestCoefficients:
    def test_classic_five_point_quadratic(self):
        expected = np.array([-3.0, 12.0, 17.0, 12.0, -3.0]) / 35.0
        np.testing.assert_allclose(savgol_coefficients(5, 2), expected, atol=1e-12)

    @pytest.mark.parametrize("window, order", [(3, 0), (5, 2), (7, 3), (11, 3), (21, 4)])
    def test_taps_sum_to_one(self, window, order):
        assert np.isclose(savgol_coefficients(window, order).sum(), 1.0)

    def test_order_zero_is_moving_average(self):
        np.testing.assert_allclose(savgol_coefficients(7, 0), np.full(7, 1 / 7))

    def test_taps_are_symmetric(self):
        taps = savgol_coefficients(9, 4)
        np.testing.assert_allclose(taps, taps[::-1], atol=1e-12)


class TestReflectIndices:
    def test_in_range_unchanged(self):
        np.testing.assert_array_equal(reflect_indices(np.arange(5), 5), np.arange(5))

    def test_mirrors_both_ends(self):
        np.testing.assert_array_equal(reflect_indices(np.array([-2, -1, 5, 6]), 5), [2, 1, 3, 2])

    def test_short_signal_clamps(self):
        out = reflect_indices(np.arange(-5, 8), 2)
        assert out.min() >= 0
        assert out.max() <= 1

    def test_length_one(self):
        np.testing.assert_array_equal(reflect_indices(np.array([-3, 0, 3]), 1), [0, 0, 0])


class TestSavgolFilter:
    def test_defaults_and_name(self):
        filt = SavgolFilter()
        assert filt.window_size == 11
        assert filt.poly_order == 3
        assert filt.name == "SavgolFilter_11_3"
        assert SavgolFilter(7, 2).name == "SavgolFilter_7_2"

    @pytest.mark.parametrize("window, order", [(4, 2), (5, 5), (5, 7), (0, 0), (5, -1)])
    def test_rejects_invalid_parameters(self, window, order):
        with pytest.raises(InvalidConfigurationError):
            SavgolFilter(window, order)

    def test_coefficients_property_is_a_copy(self):
        filt = SavgolFilter(5, 2)
        taps = filt.coefficients
        taps[:] = 0.0
        assert np.isclose(filt.coefficients.sum(), 1.0)

    def test_reproduces_polynomial_in_interior(self):
        n = np.arange(40, dtype=float)
        signal = 0.5 - 0.2 * n + 0.03 * n**2 - 0.001 * n**3
        out = SavgolFilter(11, 3).process(signal)
        np.testing.assert_allclose(out[5:-5], signal[5:-5], rtol=1e-9, atol=1e-9)

    def test_constant_signal_unchanged(self):
        signal = np.full(30, -1.5)
        np.testing.assert_allclose(SavgolFilter(9, 2).process(signal), signal)

    def test_boundary_uses_reflection(self):
        x = np.array([0.0, 1.0, 0.0, 0.0, 0.0])
        filt = SavgolFilter(3, 0)
        # index 0 sees x[1], x[0], x[1]
        assert np.isclose(filt.process(x)[0], 2.0 / 3.0)

    def test_smooths_noise(self, rng, clean_signal):
        noisy = clean_signal + rng.normal(0.0, 0.1, clean_signal.size)
        out = SavgolFilter(11, 3).process(noisy)
        assert np.mean((out - clean_signal) ** 2) < np.mean((noisy - clean_signal) ** 2)

    def test_set_parameters_recomputes_taps(self):
        filt = SavgolFilter(5, 2)
        filt.set_parameters(7, 3)
        np.testing.assert_allclose(filt.coefficients, savgol_coefficients(7, 3))

    def test_failed_solve_keeps_previous_state(self, monkeypatch):
        filt = SavgolFilter(5, 2)
        taps = filt.coefficients

        def singular(window_size, poly_order):
            raise NumericalError("singular")

        monkeypatch.setattr(savgol, "savgol_coefficients", singular)
        with pytest.raises(NumericalError):
            filt.set_parameters(9, 4)
        assert filt.name == "SavgolFilter_5_2"
        np.testing.assert_array_equal(filt.coefficients, taps)
