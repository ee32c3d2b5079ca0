"""Denoising filters sharing the :class:`~impulse_filters.filters.base.SignalFilter` contract.

Modules cover the sliding-window median, the adaptive LMS/RLS predictor,
morphological erosion/dilation compositions, outlier detection with
interpolation, and Savitzky-Golay smoothing.
"""

# Importing * is a bad practice and you should be punished for using it
__all__: list[str] = []
