# file: src/pyrofit/config.py
"""
Tunable constants of the reweighted Planck fit.

Every threshold used by the weight builder and the fit loop lives here so
that none of them is a literal buried in the algorithms.
"""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, replace

__all__ = ["FitConfig", "DEFAULT_CONFIG"]


@dataclass(frozen=True)
class FitConfig:
    max_iterations: int = 15
    tolerance: float = 1e-6

    # Weight builder
    region_proximity: float = 1.0   # same unit as the wavelength axis
    peak_half_width: float = 50.0   # nm around the peak guess
    region_downweight: float = 0.3
    peak_boost: float = 2.0

    # Smoothing / solver
    smoothing_polyorder: int = 2
    solver_max_evaluations: int = 100000

    def validate(self) -> list[str]:
        errs = []
        for name, minimum in (
            ("max_iterations", 1),
            ("smoothing_polyorder", 0),
            ("solver_max_evaluations", 1),
        ):
            value = getattr(self, name)
            if not _is_int(value) or value < minimum:
                errs.append(f"{name} must be an integer >= {minimum}")
        for name in ("tolerance", "region_proximity", "peak_half_width"):
            if not _is_non_negative(getattr(self, name)):
                errs.append(f"{name} must be a finite, non-negative number")
        for name in ("region_downweight", "peak_boost"):
            if not _is_non_negative(getattr(self, name)):
                errs.append(f"{name} must be finite and non-negative (weights stay >= 0)")
        return errs

    def replace(self, **changes) -> "FitConfig":
        """Return a copy with *changes* applied."""
        return replace(self, **changes)


DEFAULT_CONFIG = FitConfig()


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_non_negative(value) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value >= 0
    )
