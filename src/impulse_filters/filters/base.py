"""Common contract shared by every denoising filter.

Every concrete filter takes a whole one-dimensional signal and returns a new
signal of the same length. The helpers in this module (median, MAD, linear
interpolation and the parameter checks) are reused by the concrete filters so
that edge-case policy stays identical across them.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

from impulse_filters.config import INTERPOLATION_SPACING_FLOOR
from impulse_filters.exceptions import InvalidConfigurationError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

LOGGER = logging.getLogger(__name__)


def as_signal(signal: ArrayLike) -> np.ndarray:
    """Return ``signal`` as a one-dimensional float64 array.

    Raises:
        ValueError: If the input is not one-dimensional.
    """
    arr = np.asarray(signal, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"Expected a one-dimensional signal, got shape {arr.shape}")
    return arr


def median(values: ArrayLike) -> float:
    """Sort-and-middle median; the mean of both middles for even counts, 0.0 if empty."""
    arr = np.sort(np.asarray(values, dtype=np.float64))
    n = arr.size
    if n == 0:
        return 0.0
    if n % 2 == 0:
        return float((arr[n // 2 - 1] + arr[n // 2]) / 2.0)
    return float(arr[n // 2])


def mad(values: ArrayLike, centre: float) -> float:
    """Median absolute deviation of ``values`` around ``centre``."""
    return median(np.abs(np.asarray(values, dtype=np.float64) - centre))


def linear_interpolate(x1: float, y1: float, x2: float, y2: float, x: float) -> float:
    """Straight-line value at ``x`` through (x1, y1) and (x2, y2)."""
    if abs(x2 - x1) < INTERPOLATION_SPACING_FLOOR:
        return y1
    return y1 + (y2 - y1) * (x - x1) / (x2 - x1)


def require_integer(value: int, what: str) -> int:
    """Validate that ``value`` is integral (booleans excluded) and return it as an int."""
    try:
        as_int = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidConfigurationError(f"{what} must be an integer, got {value!r}") from exc
    if isinstance(value, bool) or as_int != value:
        raise InvalidConfigurationError(f"{what} must be an integer, got {value!r}")
    return as_int


def require_odd_window(window_size: int, what: str = "Window size") -> int:
    """Validate that ``window_size`` is a positive odd integer and return it."""
    window_size = require_integer(window_size, what)
    if window_size <= 0 or window_size % 2 == 0:
        raise InvalidConfigurationError(
            f"{what} must be positive and odd, got {window_size}"
        )
    return window_size


def require_positive(value: float, what: str) -> float:
    """Validate that ``value`` is strictly positive and return it as a float."""
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(f"{what} must be a number, got {value!r}") from exc
    if not value > 0.0:
        raise InvalidConfigurationError(f"{what} must be positive, got {value}")
    return value


class SignalFilter(ABC):
    """Abstract base class for all denoising filters.

    Subclasses implement :meth:`process` and :attr:`name`. ``process`` must
    return a fresh array (never a view of the input), an empty array for an
    empty input, and otherwise an array of the input's length.
    """

    @abstractmethod
    def process(self, signal: ArrayLike) -> np.ndarray:
        """Filter a whole signal.

        Args:
            signal: One-dimensional sequence of samples.

        Returns:
            The filtered signal as a new float64 array.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Parameter-embedding identifier used for reporting, e.g. ``MedianFilter_5``."""

    def measure(self, signal: ArrayLike) -> tuple[np.ndarray, float]:
        """Run :meth:`process` under a monotonic clock.

        Timing is best effort: concurrent work on the machine still shows up
        in the elapsed time.

        Returns:
            Tuple of (filtered signal, elapsed seconds).
        """
        start = time.perf_counter()
        result = self.process(signal)
        elapsed = time.perf_counter() - start
        LOGGER.debug(f"{self.name}: processed {len(result)} samples in {elapsed:.6e} s")
        return result, elapsed

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
