import numpy as np
import pytest
from scipy.constants import c, h, k

from pyrofit.errors import InvalidInput, NumericOverflow
from pyrofit.scripts.planck_model import (
    evaluate,
    planck_intensity,
    planck_jacobian,
    wien_temperature,
)


def test_evaluate_matches_planck_law_in_meters():
    wl_m = 600e-9
    expected = 1e-10 * (2 * h * c**2) / (wl_m**5 * (np.exp(h * c / (wl_m * k * 5000.0)) - 1))
    assert evaluate((5000.0, 1e-10, 0.0, 0.0), 600.0) == pytest.approx(expected, rel=1e-12)


def test_background_terms_use_meters():
    # scale 0 leaves only a + b·λ with λ = 500e-9 m
    value = evaluate((5000.0, 0.0, 1.0, 1e6), 500.0)
    assert value == pytest.approx(1.5)


def test_vectorised_evaluation_matches_scalar():
    wl = np.array([450.0, 600.0, 850.0])
    params = (3200.0, 2e-9, 3.0, -1e5)
    vector = planck_intensity(wl, *params)
    assert vector.shape == wl.shape
    for wavelength, value in zip(wl, vector):
        assert evaluate(params, wavelength) == pytest.approx(value)


@pytest.mark.parametrize("wavelength", [0.0, -500.0, np.nan])
def test_non_positive_wavelength_is_invalid_input(wavelength):
    with pytest.raises(InvalidInput):
        evaluate((5000.0, 1e-10, 0.0, 0.0), wavelength)


@pytest.mark.parametrize("temperature", [0.0, -100.0, np.inf])
def test_non_positive_temperature_overflows(temperature):
    with pytest.raises(NumericOverflow):
        evaluate((temperature, 1e-10, 0.0, 0.0), 600.0)


def test_exponent_beyond_float_range_overflows():
    # hc/(λkT) ≈ 24000 for 600 nm at 1 K
    with pytest.raises(NumericOverflow):
        planck_intensity(np.array([600.0, 700.0]), 1.0, 1e-10, 0.0, 0.0)


def test_overflowing_scale_is_reported_not_propagated():
    with pytest.raises(NumericOverflow):
        evaluate((5000.0, 1e300, 0.0, 0.0), 600.0)


def test_wien_temperature_of_known_peak():
    assert wien_temperature(579.5) == pytest.approx(5000.0, rel=1e-3)
    with pytest.raises(InvalidInput):
        wien_temperature(0.0)


def test_jacobian_matches_finite_differences():
    wl = np.linspace(400.0, 900.0, 11)
    params = np.array([4500.0, 1e-10, 2.0, 3e6])
    jac = planck_jacobian(wl, *params)
    assert jac.shape == (wl.size, 4)

    # b multiplies λ ~ 1e-7 m, so it needs a large step to rise above rounding
    steps = (1e-3, 1e-16, 1e-3, 1e3)
    for col, size in enumerate(steps):
        step = np.zeros(4)
        step[col] = size
        forward = planck_intensity(wl, *(params + step))
        backward = planck_intensity(wl, *(params - step))
        numeric = (forward - backward) / (2 * size)
        np.testing.assert_allclose(jac[:, col], numeric, rtol=1e-5)
