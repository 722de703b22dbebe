"""
corrections_controller.py
=========================

Keeps an ordered set of wavelength-dependent response corrections, tracks
which ones are *enabled*, and applies the enabled set in insertion order
before a spectrum is fitted.

The controller is independent of how the curves were obtained; every
corrector only has to provide ``correct(wavelengths_nm, counts)``.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np

from pyrofit.corrections.response_corrector import ResponseCurveCorrector

__all__ = ["CorrectionsController"]

logger = logging.getLogger(__name__)


class CorrectionsController:
    """
    Maintains and applies a user-selectable set of spectral corrections.

    Parameters
    ----------
    correctors
        Optional initial ``name → corrector`` mapping; its order is the
        execution order.
    """

    def __init__(
        self,
        correctors: Optional[Dict[str, ResponseCurveCorrector]] = None,
    ) -> None:
        self._order: List[str] = []
        self._correctors: Dict[str, ResponseCurveCorrector] = {}
        self._enabled: Dict[str, bool] = {}
        for name, corrector in (correctors or {}).items():
            self.add(name, corrector)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    # -- Introspection -------------------------------------------------- #
    def available_corrections(self) -> Iterable[str]:
        """Return the names of all known corrections (in execution order)."""
        return list(self._order)

    def is_enabled(self, name: str) -> bool:
        """True if *name* is currently enabled."""
        return self._enabled.get(name, False)

    def state(self) -> Dict[str, bool]:
        """Mapping of correction name → enabled, in execution order."""
        return {name: self._enabled[name] for name in self._order}

    # -- Mutation ------------------------------------------------------- #
    def add(self, name: str, corrector: ResponseCurveCorrector, enabled: bool = True) -> None:
        """Append *corrector* under *name* (names are unique)."""
        if name in self._correctors:
            raise KeyError(f"Correction already registered: {name!r}")
        self._order.append(name)
        self._correctors[name] = corrector
        self._enabled[name] = bool(enabled)

    def set_enabled(self, name: str, enabled: bool) -> None:
        """Enable or disable a single correction by *name*."""
        if name not in self._enabled:
            raise KeyError(f"Unknown correction: {name!r}")
        self._enabled[name] = bool(enabled)

    # -- Core functionality -------------------------------------------- #
    def apply(
        self,
        wavelengths_nm: np.ndarray,
        counts: np.ndarray,
    ) -> np.ndarray:
        """
        Apply all *enabled* corrections, returning a **new** array.

        The input arrays are **never** mutated.
        """
        corrected = np.asarray(counts, dtype=float).copy()

        for name in self._order:
            if self._enabled[name]:
                corrected = self._correctors[name].correct(wavelengths_nm, corrected)
            else:
                logger.debug("Correction %r disabled; skipped", name)

        return corrected
