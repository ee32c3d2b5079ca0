# src/impulse_filters/config.py
"""
Default parameters and numeric guards shared by the filters and the benchmark.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# =============================================================================
# FILTER DEFAULTS
# =============================================================================

MEDIAN_WINDOW_SIZE = 5

ADAPTIVE_ORDER = 10
ADAPTIVE_MU = 0.01
ADAPTIVE_LAMBDA = 0.99
ADAPTIVE_INITIAL_WEIGHT_SCALE = 0.001  # weights start in +-scale/2
RLS_DELTA = 0.001  # P(0) = I / delta

MORPHOLOGICAL_ELEMENT_SIZE = 5

OUTLIER_THRESHOLD = 3.0
OUTLIER_WINDOW_SIZE = 11
OUTLIER_AR_ORDER = 5
OUTLIER_MEDIAN_HALF_WINDOW_CAP = 5
MAD_MIN_WINDOW = 3

SAVGOL_WINDOW_SIZE = 11
SAVGOL_POLY_ORDER = 3

# =============================================================================
# NUMERIC GUARDS
# =============================================================================

SNR_NOISELESS_DB = 100.0
NOISE_POWER_FLOOR = 1e-10
CORRELATION_FLOOR = 1e-10
PIVOT_TOLERANCE = 1e-12
INTERPOLATION_SPACING_FLOOR = 1e-10

# =============================================================================
# BENCHMARK SETTINGS
# =============================================================================


@dataclass
class BenchmarkSettings:
    """Settings for :class:`impulse_filters.benchmark.FilterBenchmark` runs."""

    show_progress: bool = field(default=False)
    # Pairs each scalability dataset is expected to hold; mismatches are warned about
    scalability_signals: int = 10
    skip_invalid_pairs: bool = True

    def __post_init__(self):
        if self.scalability_signals <= 0:
            raise ValueError(
                f"scalability_signals must be positive, got {self.scalability_signals}"
            )
        if not self.skip_invalid_pairs:
            logger.warning(
                "skip_invalid_pairs=False: mismatched pairs will score with neutral metrics."
            )


DEFAULT_BENCHMARK_SETTINGS = BenchmarkSettings()
