import numpy as np
import pytest

from pyrofit.errors import InvalidInput
from pyrofit.scripts.absorption_regions import detect, smooth


@pytest.mark.parametrize("window", [3, 5, 7, 11, 15])
def test_boundary_points_are_never_flagged(window):
    rng = np.random.default_rng(1234)
    x = np.linspace(400.0, 900.0, 120)
    # Minima sit right at both ends of the cosine, plus noise everywhere
    y = -np.cos(np.linspace(0.0, 2 * np.pi, x.size)) + 0.3 * rng.normal(size=x.size)

    regions = detect(x, y, window)

    assert x[0] not in regions
    assert x[-1] not in regions
    assert set(regions) <= set(x)


@pytest.mark.parametrize(
    "y",
    [
        np.linspace(0.0, 50.0, 60),
        np.linspace(50.0, 0.0, 60),
        np.exp(np.linspace(0.0, 3.0, 60)),
        np.full(60, 7.25),
    ],
    ids=["increasing", "decreasing", "convex-increasing", "constant"],
)
def test_monotonic_or_constant_signal_has_no_regions(y):
    x = np.arange(500.0, 560.0)
    regions = detect(x, y, 7)
    assert regions.size == 0


def test_single_interior_minimum_is_reported():
    x = np.arange(600.0, 640.0)
    k = 17
    y = (x - x[k]) ** 2 + 3.0

    regions = detect(x, y, 5)

    np.testing.assert_array_equal(regions, [x[k]])


def test_narrow_dip_on_sloped_continuum():
    x = np.arange(700.0, 760.0)
    y = 1000.0 - 2.0 * (x - 700.0)
    y = y - 150.0 * np.exp(-0.5 * ((x - 730.0) / 1.0) ** 2)

    regions = detect(x, y, 5)

    assert 730.0 in regions


def test_regions_are_ascending_and_read_only():
    x = np.linspace(0.0, 10.0, 200) + 1.0
    y = np.sin(3 * x)
    regions = detect(x, y, 5)

    assert regions.size >= 2
    assert np.all(np.diff(regions) > 0)
    with pytest.raises(ValueError):
        regions[0] = 0.0


@pytest.mark.parametrize("window", [0, -3, 2.5, True, "7"])
def test_invalid_window_is_rejected(window):
    x = np.arange(10.0)
    with pytest.raises(InvalidInput):
        detect(x, x, window)


def test_mismatched_lengths_are_rejected():
    with pytest.raises(InvalidInput):
        detect(np.arange(10.0), np.arange(9.0), 5)


def test_short_signals_have_no_regions():
    assert detect([1.0, 2.0], [3.0, 1.0], 5).size == 0


def test_smooth_keeps_length_and_handles_awkward_windows():
    y = np.sin(np.linspace(0.0, 4.0, 9))
    for window in (1, 2, 4, 9, 25):
        out = smooth(y, window)
        assert out.shape == y.shape
        assert np.all(np.isfinite(out))
    # Too short for a quadratic: returned untouched
    np.testing.assert_array_equal(smooth([1.0, 5.0], 7), [1.0, 5.0])


def test_smooth_preserves_quadratics():
    x = np.linspace(-3.0, 3.0, 31)
    y = 2.0 * x**2 - x + 4.0
    np.testing.assert_allclose(smooth(y, 7), y, rtol=1e-10, atol=1e-10)


def test_shallow_dip_on_large_offset_is_reported():
    x = np.arange(300.0, 320.0)
    y = np.full(x.size, 1e8)
    y[9] -= 1e-3

    regions = detect(x, y, 3)

    np.testing.assert_array_equal(regions, [x[9]])
