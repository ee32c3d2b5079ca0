"""Savitzky-Golay smoothing via a local least-squares polynomial fit."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from impulse_filters.config import PIVOT_TOLERANCE, SAVGOL_POLY_ORDER, SAVGOL_WINDOW_SIZE
from impulse_filters.exceptions import InvalidConfigurationError, NumericalError
from impulse_filters.filters.base import SignalFilter, as_signal, require_integer, require_odd_window

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

LOGGER = logging.getLogger(__name__)


def gauss_solve(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """
    Solve ``matrix @ x = rhs`` by Gaussian elimination with partial pivoting.

    Args:
        matrix: Square coefficient matrix (not modified).
        rhs: Right-hand side vector (not modified).

    Returns:
        The solution vector.

    Raises:
        NumericalError: If a pivot magnitude falls below ``PIVOT_TOLERANCE``.
    """
    a = np.array(matrix, dtype=np.float64)
    b = np.array(rhs, dtype=np.float64)
    n = a.shape[0]

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(a[col:, col])))
        if pivot_row != col:
            a[[col, pivot_row]] = a[[pivot_row, col]]
            b[[col, pivot_row]] = b[[pivot_row, col]]

        if abs(a[col, col]) < PIVOT_TOLERANCE:
            raise NumericalError(f"Matrix is singular (pivot {a[col, col]:.3e} in column {col})")

        factors = a[col + 1 :, col] / a[col, col]
        a[col + 1 :, col:] -= np.outer(factors, a[col, col:])
        b[col + 1 :] -= factors * b[col]

    solution = np.zeros(n)
    for row in range(n - 1, -1, -1):
        solution[row] = (b[row] - a[row, row + 1 :] @ solution[row + 1 :]) / a[row, row]
    return solution


def savgol_coefficients(window_size: int, poly_order: int) -> np.ndarray:
    """
    Convolution taps that evaluate the least-squares polynomial at the window centre.

    The normal matrix has entries ``sum_k k**(p + q)`` over the integer offsets
    ``k`` in ``[-half, half]``. Solving it against the unit vector ``e0``
    gives the polynomial weights ``a``; tap ``i`` is ``sum_j a[j] * k_i**j``.
    """
    half = window_size // 2
    offsets = np.arange(-half, half + 1, dtype=np.float64)
    powers = np.arange(poly_order + 1)

    vander = offsets[:, np.newaxis] ** powers  # (window, order + 1)
    normal = vander.T @ vander
    rhs = np.zeros(poly_order + 1)
    rhs[0] = 1.0

    poly_coeffs = gauss_solve(normal, rhs)
    return vander @ poly_coeffs


def reflect_indices(indices: np.ndarray, length: int) -> np.ndarray:
    """
    Map out-of-range sample indices back into ``[0, length)``.

    Negative indices mirror around the first sample (``-i``), indices at or
    past the end mirror around the last (``2 * length - 2 - i``); anything
    still negative after that clamps to 0.
    """
    idx = np.abs(indices)
    past_end = idx >= length
    idx[past_end] = 2 * length - 2 - idx[past_end]
    return np.maximum(idx, 0)


class SavgolFilter(SignalFilter):
    """
    Savitzky-Golay FIR smoother with reflective boundary handling.

    The taps are derived once per configuration and cached; ``process`` is a
    plain convolution against reflected samples. A signal that is a sampled
    polynomial of degree ``<= poly_order`` passes through unchanged.
    """

    def __init__(self, window_size: int = SAVGOL_WINDOW_SIZE, poly_order: int = SAVGOL_POLY_ORDER):
        self._window_size = 0
        self._poly_order = 0
        self._coefficients = np.zeros(0)
        self.set_parameters(window_size, poly_order)

    @property
    def name(self) -> str:
        return f"SavgolFilter_{self._window_size}_{self._poly_order}"

    @property
    def window_size(self) -> int:
        return self._window_size

    @property
    def poly_order(self) -> int:
        return self._poly_order

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients.copy()

    def set_parameters(self, window_size: int, poly_order: int) -> None:
        """
        Validate the parameters and recompute the taps.

        Raises:
            InvalidConfigurationError: Even or non-positive window, negative
                order, or order not below the window size.
            NumericalError: The normal equations are singular. The filter
                keeps its previous parameters and taps.
        """
        window_size = require_odd_window(window_size)
        poly_order = require_integer(poly_order, "Polynomial order")
        if poly_order < 0:
            raise InvalidConfigurationError(f"Polynomial order must be non-negative, got {poly_order}")
        if poly_order >= window_size:
            raise InvalidConfigurationError(
                f"Polynomial order ({poly_order}) must be less than window size ({window_size})"
            )

        coefficients = savgol_coefficients(window_size, poly_order)
        self._window_size = window_size
        self._poly_order = poly_order
        self._coefficients = coefficients
        LOGGER.debug(f"Computed {coefficients.size} taps for {self.name}")

    def process(self, signal: ArrayLike) -> np.ndarray:
        x = as_signal(signal)
        if x.size == 0:
            return np.empty(0, dtype=np.float64)

        half = self._window_size // 2
        positions = np.arange(x.size)[:, np.newaxis] + np.arange(-half, half + 1)
        windows = x[reflect_indices(positions, x.size)]
        return windows @ self._coefficients
