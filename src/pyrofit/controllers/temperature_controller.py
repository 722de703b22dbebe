# file: src/pyrofit/controllers/temperature_controller.py
"""
temperature_controller.py
-------------------------

Iteratively reweighted Planck fit built on
:class:`pyrofit.scripts.temperature_fitter.TemperatureFitter`.

* Receives a wavelength grid (nm) and measured intensities.
* Starts from a Wien's-law temperature guess and weights derived from the
  dips of the raw spectrum.
* Alternates between a weighted solve and re-detecting dips in the residual,
  until two consecutive chi-square values agree or the iteration cap is hit.

Only this controller knows about the loop; the solver, the region detector
and the weight builder are independent, stateless pieces.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import numpy as np

from pyrofit.config import DEFAULT_CONFIG, FitConfig
from pyrofit.errors import InvalidInput, NumericOverflow, SolverFailure
from pyrofit.scripts.absorption_regions import check_window, detect
from pyrofit.scripts.fit_result import FitParameters, FitResult, IterationRecord
from pyrofit.scripts.planck_model import planck_intensity, wien_temperature
from pyrofit.scripts.temperature_fitter import TemperatureFitter
from pyrofit.scripts.weights import build_weights

__all__ = ["TemperatureController", "fit_planck_spectrum"]

logger = logging.getLogger(__name__)

_STATUS_CONVERGED = "converged"
_STATUS_MAX_ITER = "max_iterations"
_STATUS_ABORTED = "aborted"


class TemperatureController:
    """Runs the reweighted fit; one instance can serve any number of spectra."""

    def __init__(
        self,
        config: FitConfig | None = None,
        fitter: TemperatureFitter | None = None,
    ) -> None:
        self._config = config or DEFAULT_CONFIG
        errs = self._config.validate()
        if errs:
            raise InvalidInput("Invalid fit configuration: " + "; ".join(errs))
        self._fitter = fitter or TemperatureFitter(
            maxfev=self._config.solver_max_evaluations
        )

    @property
    def config(self) -> FitConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def fit(
        self,
        wavelengths_nm,
        counts,
        peak_guess_nm: float,
        scale_guess: float,
        smoothing_window: int,
        a_bound: Optional[float] = None,
        b_bound: Optional[float] = None,
    ) -> FitResult:
        """
        Fit ``counts`` to Planck's law plus ``a + b·λ``.

        Parameters
        ----------
        wavelengths_nm, counts
            Spectrum; wavelengths strictly increasing, both finite.
        peak_guess_nm
            Wavelength of the emission peak; gives the starting temperature
            and the centre of the boosted weight window.
        scale_guess
            Starting intensity scale.
        smoothing_window
            Savitzky-Golay window (samples) for dip detection.
        a_bound, b_bound
            Optional symmetric limits ``|a| <= a_bound``, ``|b| <= b_bound``.
            ``None`` leaves the term unconstrained.

        Returns
        -------
        FitResult
            ``converged`` is False when the iteration cap was reached or the
            loop had to stop after a repeated solver failure.

        Raises
        ------
        InvalidInput
            Before any solve, when an argument is unusable.
        SolverFailure
            When not a single iteration produced a solution.
        """
        cfg = self._config
        wl, y = _validate_spectrum(wavelengths_nm, counts)
        window = check_window(smoothing_window)
        a_bound = _validate_bound("a_bound", a_bound)
        b_bound = _validate_bound("b_bound", b_bound)
        peak_guess_nm = float(peak_guess_nm)

        # ---- Initializing ---------------------------------------------- #
        t_guess = wien_temperature(peak_guess_nm)
        scale_guess = float(scale_guess)
        if not np.isfinite(scale_guess):
            raise InvalidInput(f"scale_guess must be finite, got {scale_guess!r}.")
        params = FitParameters(t_guess, scale_guess, 0.0, 0.0)
        try:
            planck_intensity(wl, *params)
        except NumericOverflow as err:
            raise InvalidInput(
                f"Initial guess (T = {t_guess:.4g} K) cannot be evaluated: {err}"
            ) from err

        regions = detect(wl, y, window, cfg.smoothing_polyorder)
        weights = self._weights(wl, regions, peak_guess_nm)
        logger.debug(
            "Initial guess T=%.1f K, scale=%.4g; %d region(s) in raw data",
            t_guess, scale_guess, regions.size,
        )

        history: List[IterationRecord] = []
        fitted: Optional[Tuple[FitParameters, float, np.ndarray, np.ndarray]] = None
        prev_chisq: Optional[float] = None
        last_error: Optional[SolverFailure] = None
        status = _STATUS_MAX_ITER
        iteration = 0

        for iteration in range(1, cfg.max_iterations + 1):
            # ---- Fitting ----------------------------------------------- #
            try:
                new_params, chisq = self._fitter.fit(wl, y, params, weights)
            except SolverFailure as err:
                last_error = err
                logger.warning("Iteration %d: solver failed: %s", iteration, err)
                history.append(IterationRecord(iteration, None, regions.size, str(err)))
                retry_regions, retry_weights = self._reweight(
                    wl, y, params, window, peak_guess_nm
                )
                if np.array_equal(retry_weights, weights):
                    logger.warning(
                        "Iteration %d: weights unchanged after failure; aborting",
                        iteration,
                    )
                    status = _STATUS_ABORTED
                    break
                regions, weights = retry_regions, retry_weights
                continue

            params, chisq = self._clamp(new_params, chisq, wl, y, weights, a_bound, b_bound)
            fitted = (params, chisq, weights, regions)
            history.append(IterationRecord(iteration, chisq, regions.size))
            logger.debug(
                "Iteration %d: T=%.2f K, chisq=%.6g, %d region(s)",
                iteration, params.T, chisq, regions.size,
            )

            # ---- CheckingConvergence ----------------------------------- #
            if prev_chisq is not None and abs(prev_chisq - chisq) < cfg.tolerance:
                status = _STATUS_CONVERGED
                break
            prev_chisq = chisq

            # ---- Reweighting ------------------------------------------- #
            if iteration < cfg.max_iterations:
                regions, weights = self._reweight(wl, y, params, window, peak_guess_nm)

        if fitted is None:
            raise SolverFailure(
                f"No successful solve in {iteration} iteration(s): {last_error}"
            ) from last_error

        best_params, best_chisq, best_weights, best_regions = fitted
        result = FitResult(
            params=best_params,
            chisq=best_chisq,
            iterations=iteration,
            converged=status == _STATUS_CONVERGED,
            status=status,
            weights=best_weights,
            regions=best_regions,
            history=tuple(history),
        )
        logger.info(
            "Planck fit %s after %d iteration(s): T=%.2f K, chisq=%.6g",
            status, iteration, best_params.T, best_chisq,
        )
        if result.failed_iterations:
            logger.warning("Solver failed in iteration(s) %s", result.failed_iterations)
        return result

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _weights(self, wl: np.ndarray, regions: np.ndarray, peak_guess_nm: float) -> np.ndarray:
        cfg = self._config
        return build_weights(
            wl,
            regions,
            peak_guess_nm,
            proximity=cfg.region_proximity,
            peak_half_width=cfg.peak_half_width,
            downweight=cfg.region_downweight,
            boost=cfg.peak_boost,
        )

    def _reweight(
        self,
        wl: np.ndarray,
        y: np.ndarray,
        params: FitParameters,
        window: int,
        peak_guess_nm: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Detect dips in the residual of *params* and rebuild the weights."""
        residual = y - planck_intensity(wl, *params)
        regions = detect(wl, residual, window, self._config.smoothing_polyorder)
        return regions, self._weights(wl, regions, peak_guess_nm)

    def _clamp(
        self,
        params: FitParameters,
        chisq: float,
        wl: np.ndarray,
        y: np.ndarray,
        weights: np.ndarray,
        a_bound: Optional[float],
        b_bound: Optional[float],
    ) -> Tuple[FitParameters, float]:
        """Clamp the background terms into their bounds (absent bound: no clamp)."""
        a, b = params.a, params.b
        if a_bound is not None:
            a = min(max(a, -a_bound), a_bound)
        if b_bound is not None:
            b = min(max(b, -b_bound), b_bound)
        if (a, b) == (params.a, params.b):
            return params, chisq

        clamped = params._replace(a=a, b=b)
        logger.debug("Clamped background a: %.6g -> %.6g, b: %.6g -> %.6g",
                     params.a, a, params.b, b)
        return clamped, self._fitter.chi_square(clamped, wl, y, weights)


def fit_planck_spectrum(
    x,
    y,
    peak_guess_nm: float,
    scale_guess: float,
    smoothing_window: int,
    a_bound: Optional[float] = None,
    b_bound: Optional[float] = None,
    config: FitConfig | None = None,
) -> FitResult:
    """Convenience wrapper: ``TemperatureController(config).fit(...)``."""
    return TemperatureController(config).fit(
        x, y, peak_guess_nm, scale_guess, smoothing_window,
        a_bound=a_bound, b_bound=b_bound,
    )


# ------------------------------------------------------------------------- #
# Helper functions (private)
# ------------------------------------------------------------------------- #
def _validate_spectrum(wavelengths_nm, counts) -> Tuple[np.ndarray, np.ndarray]:
    try:
        wl = np.asarray(wavelengths_nm, dtype=float)
        y = np.asarray(counts, dtype=float)
    except (TypeError, ValueError) as err:
        raise InvalidInput(f"Spectrum is not numeric: {err}") from err

    if wl.ndim != 1 or y.ndim != 1:
        raise InvalidInput("Wavelengths and counts must be 1-D arrays.")
    if wl.size != y.size:
        raise InvalidInput(
            f"Wavelengths and counts differ in length ({wl.size} vs {y.size})."
        )
    if wl.size == 0:
        raise InvalidInput("Spectrum is empty.")
    if wl.size < 4:
        raise InvalidInput(f"At least 4 points are needed to fit 4 parameters, got {wl.size}.")
    if not (np.all(np.isfinite(wl)) and np.all(np.isfinite(y))):
        raise InvalidInput("Spectrum contains non-finite values.")
    if wl[0] <= 0:
        raise InvalidInput("Wavelengths must be strictly positive.")
    if np.any(np.diff(wl) <= 0):
        raise InvalidInput("Wavelengths must be strictly increasing.")
    return wl, y


def _validate_bound(name: str, bound: Optional[float]) -> Optional[float]:
    if bound is None:
        return None
    bound = float(bound)
    if not np.isfinite(bound) or bound < 0:
        raise InvalidInput(f"{name} must be a finite, non-negative number, got {bound!r}.")
    return bound
