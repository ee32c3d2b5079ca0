"""Adaptive predictive ("Wiener") filter with LMS and RLS coefficient updates.

Unlike the other filters, this one is stateful: the weight vector adapts
sample by sample during :meth:`AdaptiveFilter.process` and the adapted weights
carry over into the next call on the same instance. Call
:meth:`AdaptiveFilter.reset` (or :meth:`AdaptiveFilter.set_parameters`) to
start from freshly initialised weights. Instances must not be shared between
threads.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from numba import njit

from impulse_filters.config import (
    ADAPTIVE_INITIAL_WEIGHT_SCALE,
    ADAPTIVE_LAMBDA,
    ADAPTIVE_MU,
    ADAPTIVE_ORDER,
    RLS_DELTA,
)
from impulse_filters.exceptions import InvalidConfigurationError
from impulse_filters.filters.base import (
    SignalFilter,
    as_signal,
    require_integer,
    require_positive,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

LOGGER = logging.getLogger(__name__)


class AdaptationStrategy(str, Enum):
    """Coefficient update rule used by :class:`AdaptiveFilter`."""

    LMS = "lms"
    RLS = "rls"


def _validate(order: int, mu: float, lam: float) -> tuple[int, float, float]:
    order = require_integer(order, "Filter order")
    if order <= 0:
        raise InvalidConfigurationError(f"Filter order must be positive, got {order}")
    mu = require_positive(mu, "Adaptation step mu")
    lam = require_positive(lam, "Forgetting factor lambda")
    if mu >= 1.0:
        raise InvalidConfigurationError(f"Adaptation step mu must be in (0, 1), got {mu}")
    if lam > 1.0:
        raise InvalidConfigurationError(f"Forgetting factor lambda must be in (0, 1], got {lam}")
    return order, mu, lam


class AdaptiveFilter(SignalFilter):
    """
    Online adaptive predictor smoothing a signal in a single pass.

    Usage:
        filt = AdaptiveFilter(order=8, mu=0.01, lam=0.99, seed=42)
        cleaned = filt.process(noisy)

    The LMS strategy (default) predicts each sample from a newest-first delay
    line of raw samples and adapts towards the mean of the two neighbouring
    raw samples. The RLS strategy adapts towards a five-sample centred mean
    using a recursively updated inverse correlation matrix.
    """

    def __init__(
        self,
        order: int = ADAPTIVE_ORDER,
        mu: float = ADAPTIVE_MU,
        lam: float = ADAPTIVE_LAMBDA,
        strategy: AdaptationStrategy | str = AdaptationStrategy.LMS,
        seed: int | None = None,
    ):
        """
        Initialise the filter and draw its starting weights.

        Args:
            order: Number of filter taps (delay line length), > 0.
            mu: LMS adaptation step, in (0, 1).
            lam: RLS forgetting factor, in (0, 1].
            strategy: Coefficient update rule, ``"lms"`` or ``"rls"``.
            seed: Seed for the weight initialisation. ``None`` draws fresh
                entropy, so runs are not reproducible.
        """
        self._order, self._mu, self._lam = _validate(order, mu, lam)
        self._strategy = self._coerce_strategy(strategy)
        self._seed = seed
        self._rng = np.random.default_rng(seed)
        self._weights = np.zeros(self._order, dtype=np.float64)

        LOGGER.debug(
            f"Initialising adaptive filter with order={self._order}, mu={self._mu}, "
            f"lambda={self._lam}, strategy={self._strategy.value}, seed={seed}"
        )
        self.reset()

    @staticmethod
    def _coerce_strategy(strategy: AdaptationStrategy | str) -> AdaptationStrategy:
        if isinstance(strategy, AdaptationStrategy):
            return strategy
        try:
            return AdaptationStrategy(str(strategy).lower())
        except ValueError as exc:
            raise InvalidConfigurationError(f"Unknown adaptation strategy: {strategy!r}") from exc

    @property
    def name(self) -> str:
        name = f"WienerFilter_{self._order}_{int(self._mu * 1000)}_{int(self._lam * 1000)}"
        if self._strategy is AdaptationStrategy.RLS:
            name += "_RLS"
        return name

    @property
    def order(self) -> int:
        return self._order

    @property
    def mu(self) -> float:
        return self._mu

    @property
    def lam(self) -> float:
        return self._lam

    @property
    def strategy(self) -> AdaptationStrategy:
        return self._strategy

    @property
    def weights(self) -> np.ndarray:
        """Copy of the current weight vector."""
        return self._weights.copy()

    def set_parameters(
        self,
        order: int,
        mu: float,
        lam: float,
        strategy: AdaptationStrategy | str | None = None,
    ) -> None:
        """Validate and apply new parameters, then reset the weights."""
        order, mu, lam = _validate(order, mu, lam)
        new_strategy = self._strategy if strategy is None else self._coerce_strategy(strategy)
        self._order, self._mu, self._lam = order, mu, lam
        self._strategy = new_strategy
        LOGGER.debug(f"Reconfigured adaptive filter to {self.name}")
        self.reset()

    def reset(self) -> None:
        """Re-draw the starting weights as if the filter had just been constructed."""
        self._rng = np.random.default_rng(self._seed)
        scale = ADAPTIVE_INITIAL_WEIGHT_SCALE
        self._weights = scale * (self._rng.random(self._order) - 0.5)

    def process(self, signal: ArrayLike) -> np.ndarray:
        x = as_signal(signal)
        if x.size == 0:
            return np.empty(0, dtype=np.float64)

        # Kernels adapt self._weights in place; the state is kept for the next call
        if self._strategy is AdaptationStrategy.RLS:
            out = _rls_kernel(x, self._weights, self._lam, RLS_DELTA)
        else:
            out = _lms_kernel(x, self._weights, self._mu)

        LOGGER.debug(
            f"{self.name}: adapted over {x.size} samples, "
            f"weight norm {np.linalg.norm(self._weights):.6e}"
        )
        return out


@njit(cache=True)
def _lms_kernel(x: np.ndarray, weights: np.ndarray, mu: float) -> np.ndarray:
    """
    Least-mean-squares pass over ``x``, updating ``weights`` in place.

    Target at sample n is the mean of x[n-1] and x[n+1] (x[n] replaces the
    missing right neighbour at the last sample, and the raw sample is used at
    n == 0).
    """
    n_samples = x.shape[0]
    order = weights.shape[0]
    out = np.empty(n_samples)
    delay = np.zeros(order)

    for n in range(n_samples):
        for i in range(order - 1, 0, -1):
            delay[i] = delay[i - 1]
        delay[0] = x[n]

        y = 0.0
        for i in range(order):
            y += weights[i] * delay[i]

        target = x[n]
        if n > 0:
            right = x[n + 1] if n < n_samples - 1 else x[n]
            target = 0.5 * (x[n - 1] + right)

        error = target - y
        for i in range(order):
            weights[i] += mu * error * delay[i]

        out[n] = y
    return out


@njit(cache=True)
def _rls_kernel(x: np.ndarray, weights: np.ndarray, lam: float, delta: float) -> np.ndarray:
    """
    Recursive-least-squares pass over ``x``, updating ``weights`` in place.

    The inverse correlation matrix starts at I / delta on every call. Target
    at sample n is the centred five-sample mean where it fits, the raw sample
    otherwise.
    """
    n_samples = x.shape[0]
    order = weights.shape[0]
    out = np.empty(n_samples)
    delay = np.zeros(order)
    gain = np.zeros(order)
    p = np.eye(order) / delta

    for n in range(n_samples):
        for i in range(order - 1, 0, -1):
            delay[i] = delay[i - 1]
        delay[0] = x[n]

        y = 0.0
        for i in range(order):
            y += weights[i] * delay[i]

        target = x[n]
        if n > 2 and n < n_samples - 2:
            target = (x[n - 2] + x[n - 1] + x[n] + x[n + 1] + x[n + 2]) / 5.0

        error = target - y

        denominator = lam
        for i in range(order):
            for j in range(order):
                denominator += delay[i] * p[i, j] * delay[j]

        for i in range(order):
            acc = 0.0
            for j in range(order):
                acc += p[i, j] * delay[j]
            gain[i] = acc / denominator

        for i in range(order):
            weights[i] += gain[i] * error

        # Elementwise update, each entry only reads its own previous value
        for i in range(order):
            for j in range(order):
                p[i, j] = (p[i, j] - gain[i] * delay[j]) / lam

        out[n] = y
    return out
