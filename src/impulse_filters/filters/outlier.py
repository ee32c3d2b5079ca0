"""Impulse removal by outlier detection followed by interpolation.

Processing happens in two stages:

1. A detection method turns the signal into a boolean outlier mask.
2. An interpolation method replaces the flagged samples using only unflagged
   samples as anchors.

Detection methods:
    * ``MAD_BASED``: local median and median absolute deviation over a
      clipped window.
    * ``STATISTICAL``: global z-score.
    * ``ADAPTIVE_THRESHOLD``: local mean and standard deviation over the
      window with the tested sample left out.

Interpolation methods:
    * ``LINEAR``: straight line between the nearest unflagged neighbours.
    * ``SPLINE``: currently identical to ``LINEAR``.
    * ``MEDIAN_BASED``: median of unflagged neighbours in a short window.
    * ``AUTOREGRESSIVE``: inverse-distance weighted mean of already resolved
      predecessors, evaluated strictly left to right.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from impulse_filters.config import (
    MAD_MIN_WINDOW,
    OUTLIER_AR_ORDER,
    OUTLIER_MEDIAN_HALF_WINDOW_CAP,
    OUTLIER_THRESHOLD,
    OUTLIER_WINDOW_SIZE,
)
from impulse_filters.exceptions import InvalidConfigurationError
from impulse_filters.filters.base import (
    SignalFilter,
    as_signal,
    linear_interpolate,
    mad,
    median,
    require_odd_window,
    require_positive,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

LOGGER = logging.getLogger(__name__)


class DetectionMethod(Enum):
    MAD_BASED = "MAD"
    STATISTICAL = "Statistical"
    ADAPTIVE_THRESHOLD = "Adaptive"


class InterpolationMethod(Enum):
    LINEAR = "Linear"
    SPLINE = "Spline"
    MEDIAN_BASED = "Median"
    AUTOREGRESSIVE = "AR"


def _coerce(enum_cls: type[Enum], value: Enum | str) -> Enum:
    if isinstance(value, enum_cls):
        return value
    key = str(value)
    for member in enum_cls:
        if key.upper() in (member.name, member.value.upper()):
            return member
    raise InvalidConfigurationError(f"Unknown {enum_cls.__name__}: {value!r}")


def _window_bounds(index: int, half: int, length: int) -> tuple[int, int]:
    """Clipped [start, end) bounds of the window centred on ``index``."""
    return max(0, index - half), min(index + half + 1, length)


def nearest_normal_points(outliers: np.ndarray, index: int) -> tuple[int, int]:
    """
    Indices of the closest unflagged samples left and right of ``index``.

    The search is unbounded; -1 marks a side without any unflagged sample.
    """
    left = -1
    for i in range(index - 1, -1, -1):
        if not outliers[i]:
            left = i
            break

    right = -1
    for i in range(index + 1, outliers.size):
        if not outliers[i]:
            right = i
            break
    return left, right


class OutlierDetector(SignalFilter):
    """
    Detect impulsive outliers and replace them by interpolation.

    Args:
        detection: Detection method (enum member or its name).
        interpolation: Interpolation method (enum member or its name).
        threshold: Detection threshold in MAD units, z-score units or local
            standard deviations depending on ``detection``; must be > 0.
        window_size: Odd, positive analysis window size.
    """

    ar_order = OUTLIER_AR_ORDER

    def __init__(
        self,
        detection: DetectionMethod | str = DetectionMethod.MAD_BASED,
        interpolation: InterpolationMethod | str = InterpolationMethod.LINEAR,
        threshold: float = OUTLIER_THRESHOLD,
        window_size: int = OUTLIER_WINDOW_SIZE,
    ):
        self.set_parameters(detection, interpolation, threshold, window_size)

    def set_parameters(
        self,
        detection: DetectionMethod | str,
        interpolation: InterpolationMethod | str,
        threshold: float,
        window_size: int,
    ) -> None:
        """Validate every parameter first, then apply them together."""
        detection = _coerce(DetectionMethod, detection)
        interpolation = _coerce(InterpolationMethod, interpolation)
        threshold = require_positive(threshold, "Threshold")
        window_size = require_odd_window(window_size)

        self._detection = detection
        self._interpolation = interpolation
        self._threshold = threshold
        self._window_size = window_size
        LOGGER.debug(f"Configured outlier detector {self.name}")

    @property
    def name(self) -> str:
        return (
            f"OutlierDetection_{self._detection.value}_{self._interpolation.value}_"
            f"{int(self._threshold * 100)}_{self._window_size}"
        )

    @property
    def detection(self) -> DetectionMethod:
        return self._detection

    @property
    def interpolation(self) -> InterpolationMethod:
        return self._interpolation

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def window_size(self) -> int:
        return self._window_size

    def process(self, signal: ArrayLike) -> np.ndarray:
        x = as_signal(signal)
        if x.size == 0:
            return np.empty(0, dtype=np.float64)

        outliers = self.detect(x)
        LOGGER.debug(f"{self.name}: flagged {int(outliers.sum())} of {x.size} samples")

        method = self._interpolation
        if method is InterpolationMethod.MEDIAN_BASED:
            return self._interpolate_median(x, outliers)
        if method is InterpolationMethod.AUTOREGRESSIVE:
            return self._interpolate_autoregressive(x, outliers)
        # SPLINE has no dedicated implementation and falls back to LINEAR
        return self._interpolate_linear(x, outliers)

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect(self, signal: ArrayLike) -> np.ndarray:
        """Boolean mask, True where a sample is flagged as an outlier."""
        x = as_signal(signal)
        if x.size == 0:
            return np.zeros(0, dtype=bool)
        if self._detection is DetectionMethod.STATISTICAL:
            return self._detect_statistical(x)
        if self._detection is DetectionMethod.ADAPTIVE_THRESHOLD:
            return self._detect_adaptive(x)
        return self._detect_mad(x)

    def _detect_mad(self, x: np.ndarray) -> np.ndarray:
        outliers = np.zeros(x.size, dtype=bool)
        half = self._window_size // 2

        for i in range(x.size):
            start, end = _window_bounds(i, half, x.size)
            window = x[start:end]
            if window.size < MAD_MIN_WINDOW:
                continue

            med = median(window)
            mad_value = mad(window, med)
            # A zero MAD flags any sample that differs from the window median
            if abs(x[i] - med) > self._threshold * mad_value:
                outliers[i] = True
        return outliers

    def _detect_statistical(self, x: np.ndarray) -> np.ndarray:
        mean = float(np.mean(x))
        stddev = float(np.sqrt(np.mean((x - mean) ** 2)))
        if stddev == 0.0:
            return np.zeros(x.size, dtype=bool)
        return np.abs(x - mean) / stddev > self._threshold

    def _detect_adaptive(self, x: np.ndarray) -> np.ndarray:
        outliers = np.zeros(x.size, dtype=bool)
        half = self._window_size // 2

        for i in range(x.size):
            start, end = _window_bounds(i, half, x.size)
            neighbours = np.concatenate((x[start:i], x[i + 1 : end]))
            if neighbours.size == 0:
                continue

            local_mean = float(np.mean(neighbours))
            local_std = float(np.sqrt(np.mean((neighbours - local_mean) ** 2)))
            limit = self._threshold * local_std if local_std != 0.0 else self._threshold
            if abs(x[i] - local_mean) > limit:
                outliers[i] = True
        return outliers

    # ------------------------------------------------------------------
    # Interpolation
    # ------------------------------------------------------------------

    @staticmethod
    def _interpolate_linear(x: np.ndarray, outliers: np.ndarray) -> np.ndarray:
        result = x.copy()
        for i in np.flatnonzero(outliers):
            left, right = nearest_normal_points(outliers, int(i))
            if left >= 0 and right >= 0:
                result[i] = linear_interpolate(left, x[left], right, x[right], float(i))
            elif left >= 0:
                result[i] = x[left]
            elif right >= 0:
                result[i] = x[right]
            # No unflagged sample anywhere: keep the original value
        return result

    def _interpolate_median(self, x: np.ndarray, outliers: np.ndarray) -> np.ndarray:
        result = x.copy()
        half = min(self._window_size // 2, OUTLIER_MEDIAN_HALF_WINDOW_CAP)

        for i in np.flatnonzero(outliers):
            start, end = _window_bounds(int(i), half, x.size)
            neighbours = [x[j] for j in range(start, end) if j != i and not outliers[j]]
            if neighbours:
                result[i] = median(neighbours)
        return result

    def _interpolate_autoregressive(self, x: np.ndarray, outliers: np.ndarray) -> np.ndarray:
        """
        Left-to-right fold over the flagged indices.

        Predecessors are read from ``result`` as it is being built and
        flagged predecessors are skipped. An index with no unflagged
        predecessor within ``ar_order`` takes its linear interpolation.
        """
        result = x.copy()
        linear: np.ndarray | None = None

        for i in np.flatnonzero(outliers):
            i = int(i)
            total = 0.0
            weight_sum = 0.0
            for lag in range(1, min(self.ar_order, i) + 1):
                idx = i - lag
                if not outliers[idx]:
                    weight = 1.0 / lag
                    total += weight * result[idx]
                    weight_sum += weight

            if weight_sum > 0.0:
                result[i] = total / weight_sum
            else:
                if linear is None:
                    linear = self._interpolate_linear(x, outliers)
                result[i] = linear[i]
        return result
