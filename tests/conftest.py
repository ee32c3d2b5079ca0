"""
Common pytest fixtures for the filter tests.

Signals are small and deterministic so that expected values can be reasoned
about by hand where needed.
"""

from __future__ import annotations

import logging

import numpy as np
import pytest

# Keep numba's compiler chatter out of the captured logs
logging.getLogger("numba").setLevel(logging.WARNING)

IMPULSE_POSITIONS = (25, 60, 61, 130, 170)


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator so noisy fixtures are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def clean_signal() -> np.ndarray:
    """Two-tone echo-like trace of 200 samples."""
    t = np.linspace(0.0, 1.0, 200)
    return np.sin(2 * np.pi * 3 * t) + 0.5 * np.sin(2 * np.pi * 7 * t)


@pytest.fixture
def noisy_signal(clean_signal: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Clean signal plus mild Gaussian noise and a handful of large impulses."""
    noisy = clean_signal + rng.normal(0.0, 0.02, clean_signal.size)
    amplitudes = np.array([6.0, -5.0, 7.0, 8.0, -6.0])
    noisy[list(IMPULSE_POSITIONS)] += amplitudes
    return noisy


@pytest.fixture
def signal_pairs(clean_signal: np.ndarray, rng: np.random.Generator) -> list[tuple[np.ndarray, np.ndarray]]:
    """Three (clean, noisy) pairs sharing the clean signal."""
    pairs = []
    for _ in range(3):
        noisy = clean_signal + rng.normal(0.0, 0.05, clean_signal.size)
        spikes = rng.choice(clean_signal.size, size=6, replace=False)
        noisy[spikes] += rng.choice([-5.0, 5.0], size=6)
        pairs.append((clean_signal.copy(), noisy))
    return pairs
