"""
Signal quality metrics comparing a filtered signal against a clean reference.

All metrics return a neutral value (0.0) instead of raising when the two
signals differ in length or either is empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from impulse_filters.config import CORRELATION_FLOOR, NOISE_POWER_FLOOR, SNR_NOISELESS_DB

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

LOGGER = logging.getLogger(__name__)


def _paired(a: ArrayLike, b: ArrayLike) -> tuple[np.ndarray, np.ndarray] | None:
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    if a.size == 0 or a.size != b.size:
        LOGGER.debug(f"Neutral metric for lengths {a.size} and {b.size}")
        return None
    return a, b


def snr(clean: ArrayLike, test: ArrayLike) -> float:
    """
    Signal-to-noise ratio in dB, ``10 log10(mean(clean**2) / mean((test - clean)**2))``.

    Returns ``SNR_NOISELESS_DB`` (100 dB) when the noise power is below
    ``NOISE_POWER_FLOOR``.
    """
    pair = _paired(clean, test)
    if pair is None:
        return 0.0
    clean, test = pair

    signal_power = float(np.mean(clean**2))
    noise_power = float(np.mean((test - clean) ** 2))
    if noise_power < NOISE_POWER_FLOOR:
        return SNR_NOISELESS_DB
    if signal_power == 0.0:
        # Silent reference: log10(0)
        return float("-inf")
    return float(10.0 * np.log10(signal_power / noise_power))


def mse(a: ArrayLike, b: ArrayLike) -> float:
    """Mean squared error between two signals."""
    pair = _paired(a, b)
    if pair is None:
        return 0.0
    a, b = pair
    return float(np.mean((a - b) ** 2))


def correlation(a: ArrayLike, b: ArrayLike) -> float:
    """Pearson correlation coefficient; 0.0 if either signal has no variance."""
    pair = _paired(a, b)
    if pair is None:
        return 0.0
    a, b = pair

    da = a - a.mean()
    db = b - b.mean()
    denominator = float(np.sqrt(np.sum(da**2) * np.sum(db**2)))
    if denominator < CORRELATION_FLOOR:
        return 0.0
    return float(np.sum(da * db) / denominator)


@dataclass(frozen=True)
class QualityScores:
    """The three quality metrics for one (clean, filtered) pair."""

    snr: float
    mse: float
    correlation: float


def evaluate(clean: ArrayLike, test: ArrayLike) -> QualityScores:
    """Score ``test`` against ``clean`` with every metric."""
    return QualityScores(
        snr=snr(clean, test),
        mse=mse(clean, test),
        correlation=correlation(clean, test),
    )
