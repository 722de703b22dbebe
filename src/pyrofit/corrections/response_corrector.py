# file: src/pyrofit/corrections/response_corrector.py
import logging

import numpy as np
import pandas as pd
from scipy.interpolate import interp1d

from pyrofit.errors import InvalidInput

logger = logging.getLogger(__name__)


class ResponseCurveCorrector:
    """
    Compensates measured counts for a wavelength-dependent throughput in the
    optical path (grating efficiency, detector QE, lens transmission, mirror
    reflectivity, fibre attenuation, ...).

    The throughput is stored as a fraction (0‒1) and linearly interpolated
    (extrapolated outside the tabulated range).  Counts are divided by it:

        counts_true(λ) = counts_measured(λ) / R(λ)
    """

    def __init__(self, wavelengths_nm, throughput, name: str = "response"):
        """
        Parameters
        ----------
        wavelengths_nm : array-like
            Tabulated wavelengths in nanometres.
        throughput : array-like
            Throughput fraction at each tabulated wavelength.
        name : str
            Label used in log messages.
        """
        wl = np.asarray(wavelengths_nm, dtype=float)
        frac = np.asarray(throughput, dtype=float)
        if wl.ndim != 1 or wl.shape != frac.shape or wl.size < 2:
            raise InvalidInput(
                f"{name}: need at least two (wavelength, throughput) pairs of equal length."
            )
        if not (np.all(np.isfinite(wl)) and np.all(np.isfinite(frac))):
            raise InvalidInput(f"{name}: response curve contains non-finite values.")

        order = np.argsort(wl)
        self.name = name
        self._wl = wl[order]
        self._frac = frac[order]
        self._interp = interp1d(
            self._wl,
            self._frac,
            kind="linear",
            bounds_error=False,
            fill_value="extrapolate",
        )

    # ------------------------------------------------------------------
    # CSV constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_percent_csv(cls, csv_path, n_passes: int = 1, name: str | None = None):
        """
        Load a ``wavelength_nm, percent`` table (header row expected).

        ``n_passes`` counts how many times the light meets the element, e.g.
        three reflections off the same mirror coating give ``R(λ)**3``.
        """
        if isinstance(n_passes, bool) or not isinstance(n_passes, int) or n_passes < 1:
            raise InvalidInput("n_passes must be a positive integer (≥ 1).")
        df = _read_numeric_csv(csv_path, ["wavelength_nm", "pct"])
        frac = (df["pct"].values / 100.0) ** n_passes
        return cls(df["wavelength_nm"].values, frac, name=name or str(csv_path))

    @classmethod
    def from_attenuation_csv(cls, csv_path, length_m: float, name: str | None = None):
        """
        Load a ``wavelength_nm, attenuation_db_per_m`` table and turn it into
        the transmission of *length_m* metres of fibre: ``10^(-dB·L/10)``.
        """
        length_m = float(length_m)
        if not np.isfinite(length_m) or length_m < 0:
            raise InvalidInput("Fibre length must be finite and non-negative.")
        df = _read_numeric_csv(csv_path, ["wavelength_nm", "att_dbm"])
        transmission = 10 ** (-(df["att_dbm"].values * length_m) / 10.0)
        return cls(df["wavelength_nm"].values, transmission, name=name or str(csv_path))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def throughput(self, wavelengths: np.ndarray) -> np.ndarray:
        """Interpolated throughput fraction at *wavelengths* (nm)."""
        return np.asarray(self._interp(np.asarray(wavelengths, dtype=float)), dtype=float)

    def correct(self, wavelengths: np.ndarray, counts: np.ndarray) -> np.ndarray:
        """
        Apply the correction.

        Parameters
        ----------
        wavelengths : array-like
            Wavelengths [nm] corresponding to ``counts``.
        counts : array-like
            Measured counts at each wavelength.

        Returns
        -------
        corrected_counts : np.ndarray
            Counts divided by the throughput at each wavelength.
        """
        frac = self.throughput(wavelengths)
        if np.any(frac <= 0):
            raise InvalidInput(
                f"{self.name}: throughput is zero or negative at some "
                "wavelengths; cannot correct."
            )
        return np.asarray(counts, dtype=float) / frac


def _read_numeric_csv(csv_path, columns: list[str]) -> pd.DataFrame:
    """Read the first ``len(columns)`` columns of a CSV as numbers."""
    df = pd.read_csv(csv_path)
    if df.shape[1] < len(columns):
        raise InvalidInput(
            f"{csv_path}: expected at least {len(columns)} columns, found {df.shape[1]}."
        )
    df = df.iloc[:, : len(columns)].copy()
    df.columns = columns

    # Coerce to numeric, stripping stray characters (e.g. "%")
    for col in columns:
        df[col] = pd.to_numeric(
            df[col].astype(str).str.replace(r"[^0-9eE.\-+]", "", regex=True),
            errors="coerce",
        )
    if df[columns].isnull().any().any():
        raise InvalidInput(f"{csv_path}: some values could not be parsed as numbers.")
    logger.debug("Loaded %d rows from %s", len(df), csv_path)
    return df
