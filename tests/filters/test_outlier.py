import numpy as np
import pytest

from impulse_filters.exceptions import InvalidConfigurationError
from impulse_filters.filters.outlier import (
    DetectionMethod,
    InterpolationMethod,
    OutlierDetector,
    nearest_normal_points,
)

# Must match the impulse positions of the ``noisy_signal`` fixture in conftest.py
IMPULSE_POSITIONS = [25, 60, 61, 130, 170]


class TestConfiguration:
    def test_defaults(self):
        det = OutlierDetector()
        assert det.detection is DetectionMethod.MAD_BASED
        assert det.interpolation is InterpolationMethod.LINEAR
        assert det.threshold == 3.0
        assert det.window_size == 11
        assert det.ar_order == 5

    @pytest.mark.parametrize(
        "detection, interpolation, threshold, window, expected",
        [
            ("mad_based", "linear", 3.0, 11, "OutlierDetection_MAD_Linear_300_11"),
            ("statistical", "median_based", 3.0, 11, "OutlierDetection_Statistical_Median_300_11"),
            ("adaptive_threshold", "autoregressive", 2.0, 7, "OutlierDetection_Adaptive_AR_200_7"),
            ("MAD", "Spline", 2.5, 9, "OutlierDetection_MAD_Spline_250_9"),
        ],
    )
    def test_name(self, detection, interpolation, threshold, window, expected):
        assert OutlierDetector(detection, interpolation, threshold, window).name == expected

    @pytest.mark.parametrize("threshold, window", [(0.0, 5), (-1.0, 5), (3.0, 4), (3.0, 0)])
    def test_rejects_invalid_parameters(self, threshold, window):
        with pytest.raises(InvalidConfigurationError):
            OutlierDetector(DetectionMethod.MAD_BASED, InterpolationMethod.LINEAR, threshold, window)

    def test_rejects_unknown_method(self):
        with pytest.raises(InvalidConfigurationError):
            OutlierDetector("isolation_forest")

    def test_failed_set_parameters_keeps_configuration(self):
        det = OutlierDetector("statistical", "median_based", 2.0, 7)
        with pytest.raises(InvalidConfigurationError):
            det.set_parameters("mad_based", "linear", 3.0, 8)
        assert det.name == "OutlierDetection_Statistical_Median_200_7"


class TestDetection:
    def test_mad_flags_single_spike(self):
        det = OutlierDetector(DetectionMethod.MAD_BASED, InterpolationMethod.LINEAR, 3.0, 5)
        mask = det.detect([0.0, 0.0, 0.0, 10.0, 0.0, 0.0, 0.0])
        np.testing.assert_array_equal(mask, [False, False, False, True, False, False, False])

    def test_mad_then_linear_replaces_spike(self):
        det = OutlierDetector(DetectionMethod.MAD_BASED, InterpolationMethod.LINEAR, 3.0, 5)
        out = det.process([0.0, 0.0, 0.0, 10.0, 0.0, 0.0, 0.0])
        np.testing.assert_array_equal(out, np.zeros(7))

    def test_mad_skips_windows_below_three_samples(self):
        det = OutlierDetector(DetectionMethod.MAD_BASED, InterpolationMethod.LINEAR, 1.0, 1)
        assert not det.detect([0.0, 50.0, 0.0]).any()

    def test_mad_constant_signal_has_no_flags(self):
        det = OutlierDetector(DetectionMethod.MAD_BASED, InterpolationMethod.LINEAR, 3.0, 5)
        assert not det.detect(np.full(20, 2.0)).any()

    def test_mad_finds_fixture_impulses(self, noisy_signal):
        mask = OutlierDetector().detect(noisy_signal)
        assert mask.dtype == bool
        assert mask.shape == noisy_signal.shape
        assert set(IMPULSE_POSITIONS) <= set(np.flatnonzero(mask).tolist())

    def test_statistical_z_score(self):
        # mean 1, population std 3, so the spike sits at z = 3
        x = np.array([0.0] * 9 + [10.0])
        det = OutlierDetector(DetectionMethod.STATISTICAL, InterpolationMethod.LINEAR, 2.0, 5)
        np.testing.assert_array_equal(np.flatnonzero(det.detect(x)), [9])
        det.set_parameters(DetectionMethod.STATISTICAL, InterpolationMethod.LINEAR, 3.0, 5)
        assert not det.detect(x).any()

    def test_statistical_zero_variance(self):
        det = OutlierDetector(DetectionMethod.STATISTICAL, InterpolationMethod.LINEAR, 0.1, 5)
        assert not det.detect(np.full(10, 4.0)).any()

    def test_adaptive_excludes_tested_sample(self):
        x = [1.0, 2.0, 1.0, 2.0, 20.0, 2.0, 1.0, 2.0, 1.0]
        det = OutlierDetector(DetectionMethod.ADAPTIVE_THRESHOLD, InterpolationMethod.LINEAR, 3.0, 5)
        np.testing.assert_array_equal(np.flatnonzero(det.detect(x)), [4])

    def test_adaptive_zero_std_uses_flat_threshold(self):
        det = OutlierDetector(DetectionMethod.ADAPTIVE_THRESHOLD, InterpolationMethod.LINEAR, 1.0, 3)
        assert not det.detect([5.0, 5.0, 5.0, 5.5, 5.0, 5.0, 5.0]).any()
        np.testing.assert_array_equal(
            np.flatnonzero(det.detect([5.0, 5.0, 5.0, 7.0, 5.0, 5.0, 5.0])), [3]
        )

    def test_detect_empty(self):
        assert OutlierDetector().detect([]).size == 0


class TestInterpolation:
    def test_nearest_normal_points(self):
        mask = np.array([False, True, True, False, True])
        assert nearest_normal_points(mask, 1) == (0, 3)
        assert nearest_normal_points(mask, 4) == (3, -1)

    def test_linear_across_run(self):
        x = np.array([0.0, 9.0, 9.0, 3.0])
        mask = np.array([False, True, True, False])
        out = OutlierDetector._interpolate_linear(x, mask)
        np.testing.assert_allclose(out, [0.0, 1.0, 2.0, 3.0])

    def test_linear_single_sided(self):
        x = np.array([9.0, 9.0, 4.0, 8.0, 8.0])
        mask = np.array([True, True, False, True, True])
        out = OutlierDetector._interpolate_linear(x, mask)
        np.testing.assert_array_equal(out, [4.0, 4.0, 4.0, 4.0, 4.0])

    def test_linear_all_flagged_unchanged(self):
        x = np.array([1.0, 2.0, 3.0])
        out = OutlierDetector._interpolate_linear(x, np.ones(3, dtype=bool))
        np.testing.assert_array_equal(out, x)

    def test_spline_falls_back_to_linear(self, noisy_signal):
        linear = OutlierDetector("mad_based", "linear", 3.0, 11).process(noisy_signal)
        spline = OutlierDetector("mad_based", "spline", 3.0, 11).process(noisy_signal)
        np.testing.assert_array_equal(linear, spline)

    def test_median_of_neighbours(self):
        det = OutlierDetector("mad_based", "median_based", 3.0, 11)
        x = np.array([1.0, 2.0, 3.0, 50.0, 4.0, 5.0, 6.0])
        mask = np.zeros(7, dtype=bool)
        mask[3] = True
        out = det._interpolate_median(x, mask)
        assert out[3] == 3.5
        np.testing.assert_array_equal(np.delete(out, 3), np.delete(x, 3))

    def test_median_half_window_is_capped(self):
        """Window 21 would reach index 0 from index 10, the cap of 5 does not."""
        det = OutlierDetector("mad_based", "median_based", 3.0, 21)
        x = np.full(11, 1.0)
        x[0] = -100.0
        x[1] = -100.0
        x[10] = 50.0
        mask = np.zeros(11, dtype=bool)
        mask[10] = True
        out = det._interpolate_median(x, mask)
        assert out[10] == 1.0

    def test_median_without_neighbours_unchanged(self):
        det = OutlierDetector("mad_based", "median_based", 3.0, 3)
        x = np.array([1.0, 7.0, 1.0])
        out = det._interpolate_median(x, np.ones(3, dtype=bool))
        np.testing.assert_array_equal(out, x)

    def test_autoregressive_inverse_distance_weights(self):
        det = OutlierDetector("mad_based", "autoregressive", 3.0, 5)
        x = np.array([1.0, 2.0, 3.0, 4.0, 100.0])
        mask = np.array([False, False, False, False, True])
        out = det._interpolate_autoregressive(x, mask)
        weights = np.array([1.0, 1 / 2, 1 / 3, 1 / 4])
        expected = np.dot(weights, [4.0, 3.0, 2.0, 1.0]) / weights.sum()
        assert np.isclose(out[4], expected)

    def test_autoregressive_skips_flagged_predecessors(self):
        det = OutlierDetector("mad_based", "autoregressive", 3.0, 5)
        x = np.array([1.0, 2.0, 3.0, 100.0, 100.0])
        mask = np.array([False, False, False, True, True])
        out = det._interpolate_autoregressive(x, mask)

        w3 = np.array([1.0, 1 / 2, 1 / 3])
        assert np.isclose(out[3], np.dot(w3, [3.0, 2.0, 1.0]) / w3.sum())
        # index 4: lag 1 is flagged, lags 2..4 remain
        w4 = np.array([1 / 2, 1 / 3, 1 / 4])
        assert np.isclose(out[4], np.dot(w4, [3.0, 2.0, 1.0]) / w4.sum())

    def test_autoregressive_uses_at_most_ar_order_lags(self):
        det = OutlierDetector("mad_based", "autoregressive", 3.0, 5)
        x = np.array([1000.0, 1.0, 1.0, 1.0, 1.0, 1.0, 50.0])
        mask = np.zeros(7, dtype=bool)
        mask[6] = True
        out = det._interpolate_autoregressive(x, mask)
        assert np.isclose(out[6], 1.0)

    def test_autoregressive_falls_back_to_linear(self):
        det = OutlierDetector("mad_based", "autoregressive", 3.0, 5)
        x = np.array([100.0, 2.0, 3.0])
        mask = np.array([True, False, False])
        out = det._interpolate_autoregressive(x, mask)
        np.testing.assert_array_equal(out, [2.0, 2.0, 3.0])


class TestProcess:
    @pytest.mark.parametrize(
        "interpolation, tolerance",
        [
            ("linear", 0.5),
            ("spline", 0.5),
            ("median_based", 0.5),
            # predecessors only, so the estimate lags on steep slopes
            ("autoregressive", 1.0),
        ],
    )
    def test_impulses_suppressed(self, interpolation, tolerance, clean_signal, noisy_signal):
        out = OutlierDetector("mad_based", interpolation, 3.0, 11).process(noisy_signal)
        errors = np.abs(out - clean_signal)[IMPULSE_POSITIONS]
        assert np.all(errors < tolerance)

    def test_unflagged_samples_untouched(self, noisy_signal):
        det = OutlierDetector()
        mask = det.detect(noisy_signal)
        out = det.process(noisy_signal)
        np.testing.assert_array_equal(out[~mask], noisy_signal[~mask])
