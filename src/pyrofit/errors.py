# file: src/pyrofit/errors.py
"""
errors.py
---------

Exception hierarchy shared by the whole package.

Callers only ever see these (never a raw numpy/scipy failure):

* :class:`InvalidInput`     – rejected before any fitting work starts.
* :class:`NumericOverflow`  – the Planck model left the float range.
* :class:`SolverFailure`    – one least-squares solve did not succeed.
"""
from __future__ import annotations

__all__ = ["PyrofitError", "InvalidInput", "NumericOverflow", "SolverFailure"]


class PyrofitError(Exception):
    """Base class for every error raised by pyrofit."""


class InvalidInput(PyrofitError, ValueError):
    """An argument violates a documented invariant."""


class NumericOverflow(PyrofitError, ArithmeticError):
    """The forward model cannot be evaluated in floating point."""


class SolverFailure(PyrofitError, RuntimeError):
    """The non-linear least-squares solver did not produce usable parameters."""
