"""Compare filters on a dataset of (clean, noisy) signal pairs.

The harness only drives already-defined filters through
:meth:`SignalFilter.measure` and aggregates the metrics from
:mod:`impulse_filters.metrics`. Producing the dataset and formatting reports
are left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from tqdm import tqdm

from impulse_filters.config import DEFAULT_BENCHMARK_SETTINGS, BenchmarkSettings
from impulse_filters.filters.adaptive import AdaptiveFilter
from impulse_filters.filters.median import MedianFilter
from impulse_filters.filters.morphological import MorphologicalFilter, MorphologicalOperation
from impulse_filters.filters.outlier import DetectionMethod, InterpolationMethod, OutlierDetector
from impulse_filters.filters.savgol import SavgolFilter
from impulse_filters.metrics import evaluate

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from numpy.typing import ArrayLike

    from impulse_filters.filters.base import SignalFilter

LOGGER = logging.getLogger(__name__)

SignalPair = tuple[np.ndarray, np.ndarray]


def _mean_std(values: Sequence[float]) -> tuple[float, float]:
    """Mean and population standard deviation, (0.0, 0.0) for no values."""
    if len(values) == 0:
        return 0.0, 0.0
    arr = np.asarray(values, dtype=np.float64)
    return float(arr.mean()), float(arr.std())


@dataclass
class BenchmarkResult:
    """Per-pair scores of one filter over a dataset, with their aggregates.

    Attributes:
        filter_name: ``name`` of the evaluated filter
        snr: SNR in dB for each pair
        mse: MSE for each pair
        correlation: Pearson correlation for each pair
        elapsed: Processing time in seconds for each pair
    """

    filter_name: str
    snr: list[float] = field(default_factory=list)
    mse: list[float] = field(default_factory=list)
    correlation: list[float] = field(default_factory=list)
    elapsed: list[float] = field(default_factory=list)

    @property
    def avg_snr(self) -> float:
        return _mean_std(self.snr)[0]

    @property
    def std_snr(self) -> float:
        return _mean_std(self.snr)[1]

    @property
    def avg_mse(self) -> float:
        return _mean_std(self.mse)[0]

    @property
    def std_mse(self) -> float:
        return _mean_std(self.mse)[1]

    @property
    def avg_correlation(self) -> float:
        return _mean_std(self.correlation)[0]

    @property
    def std_correlation(self) -> float:
        return _mean_std(self.correlation)[1]

    @property
    def avg_elapsed(self) -> float:
        return _mean_std(self.elapsed)[0]

    @property
    def std_elapsed(self) -> float:
        return _mean_std(self.elapsed)[1]

    def summary(self) -> dict[str, float | str]:
        return {
            "algorithm": self.filter_name,
            "avg_snr": self.avg_snr,
            "std_snr": self.std_snr,
            "avg_mse": self.avg_mse,
            "std_mse": self.std_mse,
            "avg_correlation": self.avg_correlation,
            "std_correlation": self.std_correlation,
            "avg_elapsed": self.avg_elapsed,
            "std_elapsed": self.std_elapsed,
        }

    def to_frame(self) -> pd.DataFrame:
        """One row per dataset pair."""
        return pd.DataFrame(
            {
                "pair": np.arange(len(self.snr)),
                "snr": self.snr,
                "mse": self.mse,
                "correlation": self.correlation,
                "elapsed": self.elapsed,
            }
        ).assign(algorithm=self.filter_name)


def default_filters() -> list[SignalFilter]:
    """The standard comparison suite, one representative per filter kind."""
    return [
        MedianFilter(7),
        AdaptiveFilter(8, 0.01, 0.99),
        MorphologicalFilter(MorphologicalOperation.OPENING, 5),
        OutlierDetector(DetectionMethod.MAD_BASED, InterpolationMethod.LINEAR, 3.0, 11),
        SavgolFilter(11, 3),
    ]


def results_frame(results: Iterable[BenchmarkResult]) -> pd.DataFrame:
    """Aggregate table with one row per filter, indexed by filter name."""
    rows = [result.summary() for result in results]
    if not rows:
        return pd.DataFrame(columns=list(BenchmarkResult("").summary())).set_index("algorithm")
    return pd.DataFrame(rows).set_index("algorithm")


def best_by(results: Sequence[BenchmarkResult]) -> dict[str, str]:
    """Names of the best-SNR, fastest and best-correlation filters."""
    if not results:
        return {}
    return {
        "best_snr": max(results, key=lambda r: r.avg_snr).filter_name,
        "fastest": min(results, key=lambda r: r.avg_elapsed).filter_name,
        "best_correlation": max(results, key=lambda r: r.avg_correlation).filter_name,
    }


class FilterBenchmark:
    """
    Run registered filters over a dataset of (clean, noisy) pairs.

    Usage:
        bench = FilterBenchmark(dataset=pairs)
        for filt in default_filters():
            bench.add_filter(filt)
        table = results_frame(bench.run())
    """

    def __init__(
        self,
        dataset: Iterable[tuple[ArrayLike, ArrayLike]] | None = None,
        settings: BenchmarkSettings | None = None,
    ):
        self.settings = settings if settings is not None else DEFAULT_BENCHMARK_SETTINGS
        self._filters: list[SignalFilter] = []
        self._dataset: list[SignalPair] = []
        if dataset is not None:
            self.set_dataset(dataset)

    @property
    def filters(self) -> list[SignalFilter]:
        return list(self._filters)

    @property
    def dataset(self) -> list[SignalPair]:
        return list(self._dataset)

    def add_filter(self, signal_filter: SignalFilter) -> None:
        self._filters.append(signal_filter)
        LOGGER.debug(f"Registered {signal_filter.name}")

    def set_dataset(self, pairs: Iterable[tuple[ArrayLike, ArrayLike]]) -> None:
        """Replace the dataset, dropping empty or mismatched pairs when configured to."""
        dataset: list[SignalPair] = []
        for idx, (clean, noisy) in enumerate(pairs):
            clean = np.asarray(clean, dtype=np.float64)
            noisy = np.asarray(noisy, dtype=np.float64)
            if self.settings.skip_invalid_pairs and (clean.size == 0 or clean.shape != noisy.shape):
                LOGGER.warning(
                    f"Skipping pair {idx}: clean has {clean.size} samples, noisy has {noisy.size}"
                )
                continue
            dataset.append((clean, noisy))
        self._dataset = dataset
        LOGGER.info(f"Benchmark dataset holds {len(dataset)} pairs")

    def evaluate(self, signal_filter: SignalFilter) -> BenchmarkResult:
        """Score one filter on every pair of the dataset."""
        result = BenchmarkResult(signal_filter.name)
        pairs = tqdm(
            self._dataset,
            desc=signal_filter.name,
            disable=not self.settings.show_progress,
        )
        for clean, noisy in pairs:
            filtered, elapsed = signal_filter.measure(noisy)
            scores = evaluate(clean, filtered)
            result.snr.append(scores.snr)
            result.mse.append(scores.mse)
            result.correlation.append(scores.correlation)
            result.elapsed.append(elapsed)
        return result

    def run(self) -> list[BenchmarkResult]:
        """Evaluate every registered filter in registration order."""
        results = []
        for signal_filter in self._filters:
            result = self.evaluate(signal_filter)
            results.append(result)
            LOGGER.info(f"Finished {result.filter_name} (SNR: {result.avg_snr:.2f} dB)")
        return results

    def compare(self, first: SignalFilter, second: SignalFilter) -> dict[str, float]:
        """
        Head-to-head comparison of two filters.

        Positive differences and ratios above one favour ``first``, except
        ``speed_ratio`` where values below one mean ``first`` is faster.
        Zero denominators follow numpy semantics (inf or nan).
        """
        a = self.evaluate(first)
        b = self.evaluate(second)
        with np.errstate(divide="ignore", invalid="ignore"):
            mse_ratio = np.float64(b.avg_mse) / np.float64(a.avg_mse)
            speed_ratio = np.float64(a.avg_elapsed) / np.float64(b.avg_elapsed)
            quality_a = a.avg_snr + a.avg_correlation - np.log10(np.float64(a.avg_mse))
            quality_b = b.avg_snr + b.avg_correlation - np.log10(np.float64(b.avg_mse))
            quality_difference = quality_a - quality_b
        return {
            "snr_difference": a.avg_snr - b.avg_snr,
            "mse_ratio": float(mse_ratio),
            "correlation_difference": a.avg_correlation - b.avg_correlation,
            "speed_ratio": float(speed_ratio),
            "quality_index_difference": float(quality_difference),
        }

    def dataset_statistics(self) -> dict[str, float]:
        """Average signal length and average RMS noise level of the dataset."""
        if not self._dataset:
            return {}
        lengths = [clean.size for clean, _ in self._dataset]
        noise = [float(np.sqrt(np.mean((noisy - clean) ** 2))) for clean, noisy in self._dataset]
        return {
            "avg_length": float(np.mean(lengths)),
            "avg_noise_level": float(np.mean(noise)),
        }

    def scalability(
        self, datasets_by_length: Mapping[int, Iterable[tuple[ArrayLike, ArrayLike]]]
    ) -> dict[str, list[tuple[int, float]]]:
        """
        Mean processing time of every filter per signal length.

        Each dataset should hold ``settings.scalability_signals`` valid pairs so
        the averages are comparable across lengths; a mismatch is logged as a
        warning. The current dataset is restored afterwards, even if a filter
        raises.
        """
        original = self._dataset
        timings: dict[str, list[tuple[int, float]]] = {}
        try:
            for length, pairs in datasets_by_length.items():
                self.set_dataset(pairs)
                if len(self._dataset) != self.settings.scalability_signals:
                    LOGGER.warning(
                        f"Scalability dataset for length {length} holds {len(self._dataset)} pairs, "
                        f"expected {self.settings.scalability_signals}"
                    )
                for signal_filter in self._filters:
                    result = self.evaluate(signal_filter)
                    timings.setdefault(result.filter_name, []).append((int(length), result.avg_elapsed))
        finally:
            self._dataset = original
        return timings
