"""Contains utility functions of the package, the result types returned by iterative
routines and the custom exception classes.

Every iterative routine returns either :class:`Converged` or :class:`DidNotConverge`.
It is up to the caller to decide whether a non-converged result is fatal.

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Generic, TypeAlias, TypeVar, Union

import numba
import numpy as np

from ._core import NUMBA_FAST_MATH

__all__ = [
    "normalize_rows",
    "Converged",
    "DidNotConverge",
    "SolverResult",
    "CompositionalModellingError",
    "PreconditionError",
    "InvalidInputError",
    "NumericalDegeneracyError",
    "FlashConvergenceError",
]


_Value = TypeVar("_Value")
"""Type variable for the value computed by an iterative routine."""


@numba.njit("float64[:,:](float64[:,:])", fastmath=NUMBA_FAST_MATH, cache=True)
def normalize_rows(x: np.ndarray) -> np.ndarray:
    """Takes a 2D array and normalizes it row-wise.

    Each row vector is divided by the sum of row elements. Rows with a non-positive
    sum are replaced by a uniform distribution.

    Inteded use is for families of fractional variables, which ought to be normalized
    such that they fulfill the unity constraint (e.g. the extended fractions of an
    absent phase).

    NJIT-ed function with signature ``(float64[:,:]) -> float64[:,:]``.

    Parameters:
        x: ``shape=(N, M)``

            Rectangular 2D array.

    Returns:
        A normalized version of ``x``, with the normalization performed row-wise.

    """
    n, m = x.shape
    out = np.empty_like(x)
    for i in range(n):
        s = 0.0
        for j in range(m):
            s += x[i, j]
        if s > 0.0:
            for j in range(m):
                out[i, j] = x[i, j] / s
        else:
            for j in range(m):
                out[i, j] = 1.0 / m
    return out


@dataclass(frozen=True)
class Converged(Generic[_Value]):
    """Result of an iterative routine which reached its convergence criterion."""

    converged: ClassVar[bool] = True

    value: _Value
    """The converged value."""

    iterations: int
    """Number of iterations performed."""


@dataclass(frozen=True)
class DidNotConverge(Generic[_Value]):
    """Result of an iterative routine which exhausted its iteration budget without
    reaching the convergence criterion."""

    converged: ClassVar[bool] = False

    last_value: _Value
    """The last iterate."""

    residual: float
    """Measure of the residual at the last iterate, in the norm used by the routine
    for its convergence criterion."""

    iterations: int
    """Number of iterations performed."""


SolverResult: TypeAlias = Union[Converged[_Value], DidNotConverge[_Value]]
"""Tagged result of an iterative routine. Check with ``result.converged`` or
``isinstance``."""


class CompositionalModellingError(Exception):
    """Custom exception class to alert the user when the framework is inconsistently
    used.

    Such usage includes for example:

    - creating fluid systems without any components or phases,
    - passing fluid states of mismatching size,
    - requesting unsupported flash configurations.

    Base class of all errors raised in this package.

    """


class PreconditionError(CompositionalModellingError):
    """Raised if a physical precondition of an operation is violated, e.g. differing
    phase temperatures when a single temperature is assumed."""


class InvalidInputError(CompositionalModellingError, ValueError):
    """Raised for ill-posed input, like negative densities or molarities, or fractions
    violating the unity constraint."""


class NumericalDegeneracyError(CompositionalModellingError, ArithmeticError):
    """Raised if an iterative method encounters a zero, near-zero or non-finite
    derivative, i.e. the update would not be finite."""


class FlashConvergenceError(CompositionalModellingError):
    """Raised by callers of the flash which treat a non-converged flash, or another
    non-converged iteration on the way to an equilibrium state, as fatal.

    Parameters:
        message: Error message.
        result: The non-converged result, for diagnostics.

    """

    def __init__(self, message: str, result: DidNotConverge | None = None) -> None:
        super().__init__(message)
        self.result: DidNotConverge | None = result
        """The non-converged result, if available."""
