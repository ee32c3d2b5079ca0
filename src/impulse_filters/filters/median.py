from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from impulse_filters.config import MEDIAN_WINDOW_SIZE
from impulse_filters.filters.base import SignalFilter, as_signal, require_odd_window

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

LOGGER = logging.getLogger(__name__)


class MedianFilter(SignalFilter):
    """
    Sliding-window median filter.

    Windows that run past either end of the signal are padded by repeating the
    nearest boundary sample until they hold exactly ``window_size`` entries, so
    boundary outputs are the median of an edge-replicated window rather than
    of a shorter clipped one.
    """

    def __init__(self, window_size: int = MEDIAN_WINDOW_SIZE):
        self._window_size = require_odd_window(window_size)
        LOGGER.debug(f"Initialising median filter with window_size={self._window_size}")

    @property
    def name(self) -> str:
        return f"MedianFilter_{self._window_size}"

    @property
    def window_size(self) -> int:
        return self._window_size

    def set_window_size(self, window_size: int) -> None:
        self._window_size = require_odd_window(window_size)

    def process(self, signal: ArrayLike) -> np.ndarray:
        x = as_signal(signal)
        if x.size == 0:
            return np.empty(0, dtype=np.float64)

        half = self._window_size // 2
        padded = np.pad(x, half, mode="edge")
        windows = sliding_window_view(padded, self._window_size)
        # Odd window, so the median is always the middle order statistic
        return np.median(windows, axis=1)
