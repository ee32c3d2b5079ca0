"""Exception types raised by the filters."""

from __future__ import annotations


class FilterError(Exception):
    """Base class for every error raised by :mod:`impulse_filters`."""


class InvalidConfigurationError(FilterError, ValueError):
    """A filter parameter violates its invariant.

    Raised at construction or from an explicit ``set_parameters`` style call,
    never from ``process``.
    """


class NumericalError(FilterError, ArithmeticError):
    """A linear system could not be solved (pivot below tolerance)."""
