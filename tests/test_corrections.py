import numpy as np
import pytest

from pyrofit.controllers.corrections_controller import CorrectionsController
from pyrofit.corrections.response_corrector import ResponseCurveCorrector
from pyrofit.errors import InvalidInput


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_percent_curve_is_interpolated_and_divided_out(tmp_path):
    csv = _write(tmp_path, "grating.csv", "wavelength_nm,efficiency (%)\n400,50%\n800,25 %\n")
    corrector = ResponseCurveCorrector.from_percent_csv(csv)

    corrected = corrector.correct(np.array([400.0, 600.0, 800.0]), np.array([10.0, 30.0, 5.0]))

    np.testing.assert_allclose(corrected, [20.0, 80.0, 20.0])


def test_repeated_reflections_raise_the_fraction_to_a_power(tmp_path):
    csv = _write(tmp_path, "mirror.csv", "wavelength_nm,reflectivity_percent\n400,50\n900,50\n")
    corrector = ResponseCurveCorrector.from_percent_csv(csv, n_passes=3)
    np.testing.assert_allclose(corrector.throughput([650.0]), [0.125])


def test_attenuation_curve_scales_with_length(tmp_path):
    csv = _write(tmp_path, "fiber.csv", "wavelength_nm,attenuation_db_per_m\n400,0.1\n800,0.1\n")
    corrector = ResponseCurveCorrector.from_attenuation_csv(csv, length_m=10.0)
    np.testing.assert_allclose(corrector.throughput([500.0]), [10 ** -0.1])


def test_unparseable_csv_values_are_rejected(tmp_path):
    csv = _write(tmp_path, "bad.csv", "wavelength_nm,qe\n400,abc\n800,40\n")
    with pytest.raises(InvalidInput):
        ResponseCurveCorrector.from_percent_csv(csv)


def test_zero_throughput_cannot_be_corrected():
    corrector = ResponseCurveCorrector([400.0, 800.0], [0.0, 0.5], name="lens")
    with pytest.raises(InvalidInput, match="lens"):
        corrector.correct(np.array([400.0, 600.0]), np.ones(2))


@pytest.mark.parametrize("n_passes", [0, -1, 1.5, True])
def test_invalid_pass_count_is_rejected(tmp_path, n_passes):
    csv = _write(tmp_path, "mirror.csv", "wavelength_nm,reflectivity_percent\n400,50\n900,50\n")
    with pytest.raises(InvalidInput):
        ResponseCurveCorrector.from_percent_csv(csv, n_passes=n_passes)


def test_controller_applies_enabled_corrections_in_order():
    half = ResponseCurveCorrector([300.0, 1000.0], [0.5, 0.5], name="half")
    quarter = ResponseCurveCorrector([300.0, 1000.0], [0.25, 0.25], name="quarter")
    controller = CorrectionsController({"half": half, "quarter": quarter})
    wl = np.array([400.0, 500.0])
    counts = np.array([1.0, 2.0])

    assert controller.available_corrections() == ["half", "quarter"]
    np.testing.assert_allclose(controller.apply(wl, counts), [8.0, 16.0])

    controller.set_enabled("quarter", False)
    assert not controller.is_enabled("quarter")
    assert controller.state() == {"half": True, "quarter": False}
    np.testing.assert_allclose(controller.apply(wl, counts), [2.0, 4.0])
    np.testing.assert_array_equal(counts, [1.0, 2.0])


def test_controller_rejects_unknown_and_duplicate_names():
    controller = CorrectionsController()
    controller.add("lens", ResponseCurveCorrector([300.0, 1000.0], [0.9, 0.9]))
    with pytest.raises(KeyError):
        controller.set_enabled("grating", True)
    with pytest.raises(KeyError):
        controller.add("lens", ResponseCurveCorrector([300.0, 1000.0], [0.8, 0.8]))
