"""Morphological erosion, dilation, opening and closing for 1-D signals.

The structuring element is a vector of additive offsets centred on each
sample. Positions that fall outside the signal are left out of the extremum
search rather than being zero padded. Opening (erosion then dilation)
suppresses positive spikes narrower than the element, closing (dilation then
erosion) suppresses negative ones.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from numba import njit

from impulse_filters.config import MORPHOLOGICAL_ELEMENT_SIZE
from impulse_filters.exceptions import InvalidConfigurationError
from impulse_filters.filters.base import SignalFilter, as_signal, require_integer

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

LOGGER = logging.getLogger(__name__)


class MorphologicalOperation(Enum):
    EROSION = "Erosion"
    DILATION = "Dilation"
    OPENING = "Opening"
    CLOSING = "Closing"


def flat_element(size: int) -> np.ndarray:
    """All-zero structuring element of the given size."""
    size = require_integer(size, "Element size")
    if size <= 0:
        raise InvalidConfigurationError(f"Element size must be positive, got {size}")
    return np.zeros(size, dtype=np.float64)


def _as_element(element: ArrayLike) -> np.ndarray:
    arr = np.array(element, dtype=np.float64)
    if arr.ndim != 1 or arr.size == 0:
        raise InvalidConfigurationError("Structuring element cannot be empty")
    return arr


@njit(cache=True)
def _extremum_kernel(x: np.ndarray, element: np.ndarray, sign: float) -> np.ndarray:
    """
    Shared erosion/dilation loop.

    sign = -1.0 computes min(x - element) (erosion), sign = +1.0 computes
    max(x + element) (dilation). Both are evaluated as sign * max(sign * v).
    """
    n_samples = x.shape[0]
    size = element.shape[0]
    half = size // 2
    out = np.empty(n_samples)

    for i in range(n_samples):
        best = 0.0
        found = False
        for j in range(size):
            idx = i - half + j
            if idx >= 0 and idx < n_samples:
                value = sign * (x[idx] + sign * element[j])
                if not found or value > best:
                    best = value
                    found = True
        out[i] = sign * best if found else x[i]
    return out


def erode(signal: ArrayLike, element: ArrayLike) -> np.ndarray:
    """Erosion: min over the window of ``x[i - half + j] - element[j]``."""
    x = as_signal(signal)
    if x.size == 0:
        return np.empty(0, dtype=np.float64)
    return _extremum_kernel(x, _as_element(element), -1.0)


def dilate(signal: ArrayLike, element: ArrayLike) -> np.ndarray:
    """Dilation: max over the window of ``x[i - half + j] + element[j]``."""
    x = as_signal(signal)
    if x.size == 0:
        return np.empty(0, dtype=np.float64)
    return _extremum_kernel(x, _as_element(element), 1.0)


class MorphologicalFilter(SignalFilter):
    """
    Apply one morphological operation with a fixed structuring element.

    ``element`` is either a positive integer (size of a flat element) or an
    explicit sequence of offsets.

    Note:
        The element is centred at ``size // 2``, so an even-sized element
        covers one more sample on the left than on the right. Opening and
        closing are idempotent only for odd, symmetric elements; with an even
        element repeated openings can shift plateaus one sample to the right.
    """

    def __init__(
        self,
        operation: MorphologicalOperation | str = MorphologicalOperation.OPENING,
        element: int | Sequence[float] | np.ndarray = MORPHOLOGICAL_ELEMENT_SIZE,
    ):
        self._operation = self._coerce_operation(operation)
        self._element = self._build_element(element)
        LOGGER.debug(
            f"Initialising morphological filter: {self._operation.value}, "
            f"element size {self._element.size}"
        )

    @staticmethod
    def _coerce_operation(operation: MorphologicalOperation | str) -> MorphologicalOperation:
        if isinstance(operation, MorphologicalOperation):
            return operation
        try:
            return MorphologicalOperation[str(operation).upper()]
        except KeyError as exc:
            raise InvalidConfigurationError(f"Unknown morphological operation: {operation!r}") from exc

    @staticmethod
    def _build_element(element: int | Sequence[float] | np.ndarray) -> np.ndarray:
        if isinstance(element, (int, np.integer)) and not isinstance(element, bool):
            return flat_element(int(element))
        return _as_element(element)

    @property
    def name(self) -> str:
        return f"MorphologicalFilter_{self._operation.value}_{self._element.size}"

    @property
    def operation(self) -> MorphologicalOperation:
        return self._operation

    @property
    def structuring_element(self) -> np.ndarray:
        return self._element.copy()

    def set_operation(self, operation: MorphologicalOperation | str) -> None:
        self._operation = self._coerce_operation(operation)

    def set_structuring_element(self, element: int | Sequence[float] | np.ndarray) -> None:
        self._element = self._build_element(element)

    def process(self, signal: ArrayLike) -> np.ndarray:
        x = as_signal(signal)
        if x.size == 0:
            return np.empty(0, dtype=np.float64)

        op = self._operation
        if op is MorphologicalOperation.EROSION:
            return erode(x, self._element)
        if op is MorphologicalOperation.DILATION:
            return dilate(x, self._element)
        if op is MorphologicalOperation.OPENING:
            return dilate(erode(x, self._element), self._element)
        return erode(dilate(x, self._element), self._element)
