# file: src/pyrofit/scripts/weights.py
"""
Per-point weights for the reweighted Planck fit.

Every sample starts at 1.  Samples close to an absorption region are set to
``downweight``; samples inside the window around the peak guess are then
multiplied by ``boost``.  A sample that is both ends at
``downweight * boost`` (0.6 with the defaults).
"""
from __future__ import annotations

import numpy as np

from pyrofit.config import DEFAULT_CONFIG
from pyrofit.errors import InvalidInput

__all__ = ["build_weights"]


def build_weights(
    x,
    regions,
    peak_guess_nm: float,
    *,
    proximity: float = DEFAULT_CONFIG.region_proximity,
    peak_half_width: float = DEFAULT_CONFIG.peak_half_width,
    downweight: float = DEFAULT_CONFIG.region_downweight,
    boost: float = DEFAULT_CONFIG.peak_boost,
) -> np.ndarray:
    """
    Build a fresh, read-only weight vector.

    Parameters
    ----------
    x : array-like
        Wavelength grid (nm).
    regions : array-like
        Absorption-region centres, same unit as *x*.  May be empty.
    peak_guess_nm : float
        Centre of the boosted window.
    proximity, peak_half_width, downweight, boost
        Thresholds and factors; inclusive distances.
    """
    for name, value in (
        ("proximity", proximity),
        ("peak_half_width", peak_half_width),
        ("downweight", downweight),
        ("boost", boost),
    ):
        if not np.isfinite(value) or value < 0:
            raise InvalidInput(f"{name} must be finite and non-negative, got {value!r}.")

    x_arr = np.asarray(x, dtype=float)
    if x_arr.ndim != 1:
        raise InvalidInput(f"x must be a 1-D array, got shape {x_arr.shape}.")
    region_arr = np.asarray(regions, dtype=float).ravel()
    weights = np.ones_like(x_arr, dtype=float)

    if region_arr.size:
        distance = np.abs(x_arr[:, np.newaxis] - region_arr[np.newaxis, :])
        near_region = np.any(distance <= proximity, axis=1)
        weights[near_region] = downweight

    in_peak = np.abs(x_arr - float(peak_guess_nm)) <= peak_half_width
    weights[in_peak] *= boost

    weights.setflags(write=False)
    return weights
