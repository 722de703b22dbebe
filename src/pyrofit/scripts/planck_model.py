# file: src/pyrofit/scripts/planck_model.py
"""
Planck black-body law plus a linear background.

Model:
    I(λ; T, S, a, b) = S * (c1 / λ^5) / (exp(c2 / (λ T)) - 1) + a + b λ

where:
    λ in meters (callers pass nanometres, converted here),
    T in Kelvin,
    S is the intensity scaling factor,
    a, b are the constant and linear background terms (b per meter),
    c1 = 2 h c^2,
    c2 = h c / k.
"""
from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy.constants import Wien, c, h, k

from pyrofit.errors import InvalidInput, NumericOverflow

__all__ = ["planck_intensity", "planck_jacobian", "evaluate", "wien_temperature", "NM_TO_M"]

NM_TO_M = 1e-9

# Physical constants
_C1 = 2.0 * h * c ** 2  # W·m^2·sr^-1
_C2 = h * c / k  # m·K
# Largest argument np.exp accepts without overflowing a float64
_MAX_EXPONENT = float(np.log(np.finfo(float).max))


def planck_intensity(wavelength_nm, T, scale, a, b):
    """Evaluate the model on a scalar or an array of wavelengths (nm)."""
    wl_m = np.asarray(wavelength_nm, dtype=float) * NM_TO_M
    if not np.all(np.isfinite(wl_m)) or np.any(wl_m <= 0):
        raise InvalidInput("Wavelengths must be finite and strictly positive.")

    T = float(T)
    if not np.isfinite(T) or T <= 0:
        raise NumericOverflow(f"Temperature must be positive and finite, got {T!r}.")

    lambda_T = wl_m * T
    if not np.all(np.isfinite(lambda_T)) or np.any(lambda_T <= 0):
        raise NumericOverflow("λ·T under/overflowed; exponent is undefined.")

    exponent = _C2 / lambda_T
    if np.any(exponent > _MAX_EXPONENT):
        raise NumericOverflow(
            f"Planck exponent {float(np.max(exponent)):.4g} exceeds the float "
            f"range (T = {T:.4g} K)."
        )

    with np.errstate(over="raise", invalid="raise", divide="raise"):
        try:
            radiance = (_C1 / wl_m ** 5) / np.expm1(exponent)
            intensity = scale * radiance + a + b * wl_m
        except FloatingPointError as err:
            raise NumericOverflow(f"Planck model overflowed: {err}") from err

    if not np.all(np.isfinite(intensity)):
        raise NumericOverflow("Planck model produced non-finite intensities.")
    return intensity


def planck_jacobian(wavelength_nm, T, scale, a, b):
    """
    Partial derivatives of :func:`planck_intensity` with respect to
    ``(T, scale, a, b)``, one row per wavelength.
    """
    wl_m = np.atleast_1d(np.asarray(wavelength_nm, dtype=float)) * NM_TO_M
    # Runs the same overflow guards as the model itself
    planck_intensity(wavelength_nm, T, 1.0, 0.0, 0.0)
    T = float(T)
    x = _C2 / (wl_m * T)

    with np.errstate(over="raise", invalid="raise", divide="raise"):
        try:
            radiance = (_C1 / wl_m ** 5) / np.expm1(x)
            # d/dT [1 / (e^x - 1)] = x e^x / (e^x - 1)^2 / T
            d_dT = scale * radiance * (x / -np.expm1(-x)) / T
        except FloatingPointError as err:
            raise NumericOverflow(f"Planck Jacobian overflowed: {err}") from err

    jac = np.column_stack([d_dT, radiance, np.ones_like(wl_m), wl_m])
    if not np.all(np.isfinite(jac)):
        raise NumericOverflow("Planck Jacobian contains non-finite values.")
    return jac


def evaluate(params: Sequence[float], wavelength_nm: float) -> float:
    """Intensity of ``params = (T, scale, a, b)`` at one wavelength (nm)."""
    T, scale, a, b = params
    return float(planck_intensity(wavelength_nm, T, scale, a, b))


def wien_temperature(peak_nm: float) -> float:
    """Temperature whose emission peaks at *peak_nm* (Wien's displacement law)."""
    peak_nm = float(peak_nm)
    if not np.isfinite(peak_nm) or peak_nm <= 0:
        raise InvalidInput(f"Peak wavelength must be positive, got {peak_nm!r}.")
    return Wien / (peak_nm * NM_TO_M)
