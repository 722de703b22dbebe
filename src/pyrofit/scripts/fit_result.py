# file: src/pyrofit/scripts/fit_result.py
"""Value types returned by the Planck fit."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Tuple

import numpy as np

from pyrofit.scripts.planck_model import planck_intensity

__all__ = ["FitParameters", "IterationRecord", "FitResult"]


class FitParameters(NamedTuple):
    """``(T, scale, a, b)``: temperature [K], intensity scale, background terms."""

    T: float
    scale: float
    a: float
    b: float


class IterationRecord(NamedTuple):
    iteration: int
    chisq: Optional[float]  # None when the solve failed
    n_regions: int
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class FitResult:
    """
    Outcome of :func:`pyrofit.controllers.temperature_controller.fit_planck_spectrum`.

    ``status`` is one of ``"converged"``, ``"max_iterations"`` or
    ``"aborted"``; ``converged`` is True only for the first.
    """

    params: FitParameters
    chisq: float
    iterations: int
    converged: bool
    status: str = "converged"
    weights: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False)
    regions: np.ndarray = field(default_factory=lambda: np.empty(0), repr=False)
    history: Tuple[IterationRecord, ...] = ()

    @property
    def failed_iterations(self) -> Tuple[int, ...]:
        return tuple(rec.iteration for rec in self.history if rec.failed)

    def model(self, wavelengths_nm) -> np.ndarray:
        """Evaluate the fitted curve on *wavelengths_nm*."""
        return planck_intensity(wavelengths_nm, *self.params)
