"""This private module contains central assumptions and data for the entire package.

Changes here should be done with much care.

"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "R_IDEAL_MOL",
    "P_REF",
    "T_KELVIN_OFFSET",
    "PhysicalState",
]


NUMBA_CACHE: bool = True
"""Flag to instruct the numba compiler to cache (!and use cached!) functions.

This might cause some confusion in the developing process due to some lack in numba's
caching functionality.
(Does not recognize changes in nested functions and hence does not trigger
re-compilation).

Use with care.

See Also:
    https://numba.readthedocs.io/en/stable/user/jit.html#cache

"""

NUMBA_FAST_MATH: bool = False
"""Flag to instruct the numba compiler to use it's ``fastmath`` functions.

To be used with care, due to loss in precision. The density inversion relies on
bitwise reproducible property evaluations, hence it is off by default.

See Also:
    https://numba.readthedocs.io/en/stable/reference/jit-compilation.html#numba.jit

"""

R_IDEAL_MOL: float = 8.31446261815324
"""Universal gas constant in ``[J / K mol]``."""

P_REF: float = 611.657
"""The reference pressure is set to the triple point pressure of pure water in
``[Pa]``."""

T_KELVIN_OFFSET: float = 273.15
"""Offset between degree Celsius and Kelvin."""

DEFAULT_SALINITY: float = 0.1
"""Default mass fraction of NaCl in brine, used only when no salinity is given
explicitly when instantiating a brine component."""


class PhysicalState(Enum):
    """Enum object for characterizing the physical states of a phase.

    - :attr:`liquid`: liquid-like state (value 0)
    - ``gas: int = 1``: gas-like state (value 1)
    - values above 1 are reserved for further development

    """

    liquid: int = 0
    gas: int = 1
