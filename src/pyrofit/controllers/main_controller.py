# file: src/pyrofit/controllers/main_controller.py
"""
main_controller.py
------------------

Top-level pipeline for one measured spectrum.

* Applies the enabled response corrections through
  :class:`pyrofit.controllers.corrections_controller.CorrectionsController`.
* Restricts the fit to a global wavelength range minus any excluded regions.
* Hands the masked spectrum to
  :class:`pyrofit.controllers.temperature_controller.TemperatureController`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from pyrofit.controllers.corrections_controller import CorrectionsController
from pyrofit.controllers.temperature_controller import TemperatureController
from pyrofit.errors import InvalidInput
from pyrofit.scripts.fit_result import FitResult

__all__ = ["MainController", "ProcessedSpectrum"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessedSpectrum:
    wavelengths_nm: np.ndarray
    corrected_counts: np.ndarray
    fit_mask: np.ndarray
    result: FitResult

    @property
    def fit_wavelengths(self) -> np.ndarray:
        return self.wavelengths_nm[self.fit_mask]


# --------------------------------------------------------------------------- #
#                              Main Controller                                #
# --------------------------------------------------------------------------- #
class MainController:
    """
    Spectrum in, fit out: response corrections, fit range and excluded
    regions, then the reweighted Planck fit on the points that remain.
    """

    def __init__(
        self,
        corrections: CorrectionsController | None = None,
        fitter: TemperatureController | None = None,
    ) -> None:
        self._corr_manager = corrections or CorrectionsController()
        self._temp_manager = fitter or TemperatureController()

        # Fit range state
        self._global_xmin: Optional[float] = None
        self._global_xmax: Optional[float] = None
        self._excluded: List[Tuple[float, float]] = []

    @property
    def corrections(self) -> CorrectionsController:
        return self._corr_manager

    # ------------------------------------------------------------------ #
    # Fit range
    # ------------------------------------------------------------------ #
    def set_global_range(self, xmin: Optional[float], xmax: Optional[float]) -> None:
        """Limit the fit to ``[xmin, xmax]``; *None* leaves that side open."""
        if xmin is not None and xmax is not None and xmin >= xmax:
            raise InvalidInput("The minimum wavelength must be smaller than the maximum.")
        self._global_xmin = xmin
        self._global_xmax = xmax

    def add_excluded_region(self, xmin: float, xmax: float) -> None:
        if xmin >= xmax:
            raise InvalidInput(f"Excluded region: x-min ({xmin}) must be smaller than x-max ({xmax}).")
        self._excluded.append((float(xmin), float(xmax)))

    def clear_excluded_regions(self) -> None:
        self._excluded.clear()

    def excluded_regions(self) -> List[Tuple[float, float]]:
        return list(self._excluded)

    def build_fit_mask(self, wavelengths_nm: np.ndarray) -> np.ndarray:
        """True where a sample is inside the global range and outside every exclusion."""
        wavelengths_nm = np.asarray(wavelengths_nm, dtype=float)
        fit_mask = np.ones_like(wavelengths_nm, dtype=bool)
        if self._global_xmin is not None:
            fit_mask &= wavelengths_nm >= self._global_xmin
        if self._global_xmax is not None:
            fit_mask &= wavelengths_nm <= self._global_xmax

        for xmin, xmax in self._excluded:
            fit_mask &= ~((wavelengths_nm >= xmin) & (wavelengths_nm <= xmax))
        return fit_mask

    # ------------------------------------------------------------------ #
    # Processing
    # ------------------------------------------------------------------ #
    def process(
        self,
        wavelengths_nm,
        counts,
        peak_guess_nm: float,
        scale_guess: float,
        smoothing_window: int,
        a_bound: Optional[float] = None,
        b_bound: Optional[float] = None,
    ) -> ProcessedSpectrum:
        wavelengths_nm = np.asarray(wavelengths_nm, dtype=float)
        counts = np.asarray(counts, dtype=float)
        if wavelengths_nm.shape != counts.shape:
            raise InvalidInput(
                f"Wavelengths and counts differ in shape "
                f"({wavelengths_nm.shape} vs {counts.shape})."
            )

        corrected_counts = self._corr_manager.apply(wavelengths_nm, counts)

        fit_mask = self.build_fit_mask(wavelengths_nm)
        if not np.any(fit_mask):
            raise InvalidInput("No samples left to fit after range and exclusions.")
        logger.debug("Fitting %d of %d samples", int(fit_mask.sum()), fit_mask.size)

        result = self._temp_manager.fit(
            wavelengths_nm[fit_mask],
            corrected_counts[fit_mask],
            peak_guess_nm,
            scale_guess,
            smoothing_window,
            a_bound=a_bound,
            b_bound=b_bound,
        )
        return ProcessedSpectrum(wavelengths_nm, corrected_counts, fit_mask, result)
