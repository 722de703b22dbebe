# file: src/pyrofit/scripts/temperature_fitter.py
import logging
import warnings

import numpy as np
from scipy.optimize import OptimizeWarning, curve_fit

from pyrofit.errors import InvalidInput, NumericOverflow, SolverFailure
from pyrofit.scripts.fit_result import FitParameters
from pyrofit.scripts.planck_model import planck_intensity, planck_jacobian

logger = logging.getLogger(__name__)


class TemperatureFitter:
    """
    Weighted fit of a spectrum to a black-body (Planck) curve plus a linear
    background.

    Model:
        I(λ; T, S, a, b) = S * (c1 / λ^5) * 1 / (exp(c2 / (λ T)) - 1) + a + b λ

    where λ is in meters inside the model (callers pass nanometres).

    Minimises ``chisq = Σ w_i (y_i - I(λ_i))^2`` with Levenberg-Marquardt
    (``scipy.optimize.curve_fit``).  Points with zero weight do not take
    part in the solve.
    """

    _N_PARAMS = 4

    @staticmethod
    def _planck(wl_nm, T, S, a, b):
        return planck_intensity(wl_nm, T, S, a, b)

    @staticmethod
    def _planck_jac(wl_nm, T, S, a, b):
        return planck_jacobian(wl_nm, T, S, a, b)

    def __init__(self, maxfev: int = 100000):
        """
        Parameters
        ----------
        maxfev : int
            Evaluation budget handed to the solver for one call.
        """
        self._maxfev = int(maxfev)

    @staticmethod
    def chi_square(params, wavelengths_nm, counts, weights) -> float:
        """Weighted sum of squared residuals of *params* against the data."""
        resid = np.asarray(counts, dtype=float) - planck_intensity(wavelengths_nm, *params)
        return float(np.sum(np.asarray(weights, dtype=float) * resid ** 2))

    def fit(self, wavelengths_nm: np.ndarray, counts: np.ndarray,
            p0, weights: np.ndarray | None = None):
        """
        Run one weighted least-squares solve.

        Parameters
        ----------
        wavelengths_nm : array-like
            Wavelengths in nanometers.
        counts : array-like
            Measured intensities.
        p0 : sequence of 4 floats
            Starting point ``(T, scale, a, b)``.
        weights : array-like, optional
            Non-negative per-point weights; uniform when omitted.

        Returns
        -------
        params, chisq : FitParameters, float

        Raises
        ------
        SolverFailure
            The solver did not converge or the model left the float range.
        """
        wl = np.asarray(wavelengths_nm, dtype=float)
        y = np.asarray(counts, dtype=float)
        w = np.ones_like(y) if weights is None else np.asarray(weights, dtype=float)
        if not (wl.ndim == 1 and wl.shape == y.shape == w.shape):
            raise InvalidInput("Wavelengths, counts and weights must have equal length.")
        if np.any(~np.isfinite(wl)) or np.any(wl <= 0) or np.any(~np.isfinite(y)):
            raise InvalidInput("Wavelengths must be positive and all data finite.")
        if np.any(~np.isfinite(w)) or np.any(w < 0):
            raise InvalidInput("Weights must be finite and non-negative.")
        if len(p0) != self._N_PARAMS:
            raise InvalidInput(f"p0 must hold {self._N_PARAMS} values (T, scale, a, b).")

        use = w > 0
        if np.count_nonzero(use) < self._N_PARAMS:
            raise SolverFailure(
                f"Only {np.count_nonzero(use)} point(s) carry weight; "
                f"at least {self._N_PARAMS} are needed."
            )

        try:
            with warnings.catch_warnings():
                # Covariance is not used; its estimation warning is irrelevant.
                warnings.simplefilter("ignore", OptimizeWarning)
                popt, _pcov = curve_fit(
                    self._planck,
                    wl[use],
                    y[use],
                    p0=[float(v) for v in p0],
                    sigma=1.0 / np.sqrt(w[use]),
                    jac=self._planck_jac,
                    maxfev=self._maxfev,
                )
        except NumericOverflow as err:
            raise SolverFailure(f"Model overflow during solve: {err}") from err
        except (RuntimeError, ValueError) as err:
            raise SolverFailure(f"Least-squares solve failed: {err}") from err

        if not np.all(np.isfinite(popt)):
            raise SolverFailure(f"Solver returned non-finite parameters {popt!r}.")
        params = FitParameters(*(float(v) for v in popt))

        try:
            chisq = self.chi_square(params, wl, y, w)
        except NumericOverflow as err:
            raise SolverFailure(f"Fitted model cannot be evaluated: {err}") from err
        if not np.isfinite(chisq):
            raise SolverFailure("Chi-square of the fitted model is not finite.")

        logger.debug("Solve finished: T=%.2f K, chisq=%.6g", params.T, chisq)
        return params, chisq
