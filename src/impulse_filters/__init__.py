"""Public interface for the impulse_filters package.

The package bundles interchangeable denoising filters for one-dimensional
signals corrupted by impulsive noise, the quality metrics used to score them,
and a small benchmark harness that compares filters on (clean, noisy) pairs.
"""

# Importing * is a bad practice and you should be punished for using it
__all__: list[str] = []
