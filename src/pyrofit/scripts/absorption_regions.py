# file: src/pyrofit/scripts/absorption_regions.py
"""
absorption_regions.py
---------------------

Locate candidate absorption-dip centres in a spectrum (or in the residual of
a fit).

The signal is first smoothed with a second-order Savitzky-Golay filter, then
every interior sample that is *strictly* lower than both neighbours is
reported.  The first and last samples are never reported.

When no minimum exists an **empty** array is returned; downstream code treats
that as "nothing to downweight".
"""
from __future__ import annotations

import logging
import numbers

import numpy as np
from scipy.signal import savgol_filter

from pyrofit.errors import InvalidInput

__all__ = ["smooth", "detect", "check_window"]

logger = logging.getLogger(__name__)

# Differences within this many float64 ulps of the signal magnitude are
# rounding noise from the filter (edge polynomial fits), not curvature.
_ROUNDING_ULPS = 256


def check_window(window) -> int:
    if isinstance(window, bool) or not isinstance(window, numbers.Integral):
        raise InvalidInput(
            f"Smoothing window must be a positive integer, got {window!r}."
        )
    if window <= 0:
        raise InvalidInput(f"Smoothing window must be positive, got {window}.")
    return int(window)


def smooth(y, window: int, polyorder: int = 2) -> np.ndarray:
    """
    Savitzky-Golay smoothing that never fails on short input.

    Even windows are widened to the next odd length, windows longer than the
    signal shrink to fit, and a signal too short for the polynomial order is
    returned unchanged (as a copy).
    """
    y2 = np.asarray(y, dtype=float).copy()
    n = y2.size
    if n < 3:
        return y2
    window = check_window(window)
    if window % 2 == 0:
        window += 1
    if window > n:
        window = n if n % 2 else n - 1
    if window <= polyorder:
        return y2
    return savgol_filter(y2, window, polyorder)


def detect(x, y, window: int, polyorder: int = 2) -> np.ndarray:
    """
    Return the wavelengths of strict local minima of the smoothed *y*.

    Parameters
    ----------
    x, y
        Wavelength grid and signal of equal length.
    window
        Savitzky-Golay window in samples (positive integer).
    polyorder
        Order of the local polynomial (2 for the reweighted fit).

    Returns
    -------
    np.ndarray
        Read-only, ascending array of ``x`` values; empty if none were found.
    """
    window = check_window(window)
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.ndim != 1 or x_arr.shape != y_arr.shape:
        raise InvalidInput(
            f"x and y must be 1-D arrays of equal length "
            f"(got {x_arr.shape} and {y_arr.shape})."
        )
    if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))):
        raise InvalidInput("x and y must contain only finite values.")

    if x_arr.size < 3:
        regions = np.empty(0, dtype=float)
    else:
        smoothed = smooth(y_arr, window, polyorder)
        tol = _ROUNDING_ULPS * np.finfo(float).eps * float(np.max(np.abs(smoothed)))
        centre = smoothed[1:-1]
        is_min = (centre < smoothed[:-2] - tol) & (centre < smoothed[2:] - tol)
        regions = np.sort(x_arr[np.flatnonzero(is_min) + 1])

    logger.debug("Detected %d absorption region(s) (window=%d)", regions.size, window)
    regions.setflags(write=False)
    return regions
