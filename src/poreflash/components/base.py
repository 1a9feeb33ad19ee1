"""Base class for pure components (or mixture surrogates like brine) and the generic
inversion of a density correlation with respect to pressure.

All properties are in SI units: temperature ``[K]``, pressure ``[Pa]``, density
``[kg / m^3]``, specific enthalpy and internal energy ``[J / kg]``, dynamic viscosity
``[Pa s]``.

"""

from __future__ import annotations

import logging
from typing import Callable, TypeAlias, Union

import numpy as np

from .._core import R_IDEAL_MOL
from ..utils import (
    Converged,
    DidNotConverge,
    InvalidInputError,
    NumericalDegeneracyError,
    SolverResult,
)

__all__ = [
    "FloatLike",
    "Component",
    "pressure_from_density",
]

logger = logging.getLogger(__name__)


FloatLike: TypeAlias = Union[float, np.ndarray]
"""Scalar or array-valued argument or return value of property functions."""

DensityFunction: TypeAlias = Callable[[float, float], float]
"""Signature ``(T, p) -> rho`` of a density correlation."""


def pressure_from_density(
    density: DensityFunction,
    T: float,
    rho: float,
    p_initial: float,
    max_iterations: int = 5,
    tolerance: float = 1e-9,
) -> SolverResult[float]:
    """Inverts a density correlation ``rho = density(T, p)`` for the pressure at fixed
    temperature, using Newton's method with a central finite difference derivative.

    The finite difference step ``p_initial * 1e-7`` is fixed for all iterations.
    The iteration stops if the pressure update is smaller than ``tolerance`` relative
    to the current pressure, or after ``max_iterations`` steps.

    Parameters:
        density: Density correlation of the component.
        T: Temperature.
        rho: Target density.
        p_initial: Initial guess for the pressure.
        max_iterations: ``default=5``

            Maximal number of Newton steps.
        tolerance: ``default=1e-9``

            Relative tolerance for the pressure update.

    Raises:
        InvalidInputError: If ``rho`` or ``T`` are not positive and finite, if the
            initial guess is not positive, or if an iterate is not positive, i.e. the
            target density is not attained at positive pressures.
        NumericalDegeneracyError: If the derivative of the density with respect to
            pressure is (almost) zero or not finite, or the update is not finite.

    Returns:
        :class:`~poreflash.utils.Converged` with the pressure and the number of
        iterations, or :class:`~poreflash.utils.DidNotConverge` with the last iterate
        and the last relative update.

    """
    if not (np.isfinite(rho) and rho > 0.0):
        raise InvalidInputError(f"Target density must be positive, got {rho}.")
    if not (np.isfinite(T) and T > 0.0):
        raise InvalidInputError(f"Temperature must be positive, got {T}.")
    if not (np.isfinite(p_initial) and p_initial > 0.0):
        raise InvalidInputError(f"Initial pressure must be positive, got {p_initial}.")

    eps = p_initial * 1e-7
    p = float(p_initial)
    res = np.inf

    for i in range(1, max_iterations + 1):
        f = float(density(T, p)) - rho
        df_dp = (float(density(T, p + eps)) - float(density(T, p - eps))) / (2 * eps)

        # density changes by less than 1e-12 relative if the pressure doubles
        if not np.isfinite(df_dp) or abs(df_dp) * p < 1e-12 * rho:
            raise NumericalDegeneracyError(
                f"Degenerate density derivative {df_dp} at T={T}, p={p}."
            )
        delta_p = f / df_dp
        p = p - delta_p
        if not np.isfinite(p):
            raise NumericalDegeneracyError(
                f"Non-finite pressure update at T={T}, target density {rho}."
            )
        if p <= 0.0:
            raise InvalidInputError(
                f"Target density {rho} not attained at positive pressure for T={T}"
                + f" (iterate {p} after {i} iterations)."
            )

        res = abs(delta_p) / p
        logger.debug(f"Pressure from density: iteration {i}, p={p}, rel. update {res}")
        if res < tolerance:
            return Converged(value=p, iterations=i)

    logger.debug(
        f"Pressure from density did not converge after {max_iterations} iterations"
        + f" (T={T}, rho={rho}, rel. update {res})."
    )
    return DidNotConverge(last_value=p, residual=res, iterations=max_iterations)


class Component:
    """Base class for components with analytical or empirical property correlations.

    The base class provides the pressure inversions and the internal energies based on
    the density and enthalpy correlations. Derived classes must implement the
    correlations they support. Calling an unsupported correlation raises a
    :obj:`NotImplementedError`.

    Components are stateless. Parameters of a correlation (e.g. the salinity of brine)
    are passed at instantiation and remain constant.

    Parameters:
        name: Name of the component.

    """

    molar_mass: float = 0.0
    """Molar mass in ``[kg / mol]``."""

    critical_temperature: float = 0.0
    """Critical temperature in ``[K]``."""

    critical_pressure: float = 0.0
    """Critical pressure in ``[Pa]``."""

    triple_temperature: float = 0.0
    """Temperature at the triple point in ``[K]``."""

    triple_pressure: float = 0.0
    """Pressure at the triple point in ``[Pa]``."""

    def __init__(self, name: str) -> None:
        self.name: str = str(name)
        """Name of the component."""

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    def vapor_pressure(self, T: FloatLike) -> FloatLike:
        """Vapor pressure of the pure component at given temperature."""
        raise NotImplementedError(f"Vapor pressure not available for {self.name}.")

    def liquid_density(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Density of the liquid component."""
        raise NotImplementedError(f"Liquid density not available for {self.name}.")

    def gas_density(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Density of the gaseous component."""
        raise NotImplementedError(f"Gas density not available for {self.name}.")

    def liquid_enthalpy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Specific enthalpy of the liquid component."""
        raise NotImplementedError(f"Liquid enthalpy not available for {self.name}.")

    def gas_enthalpy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Specific enthalpy of the gaseous component."""
        raise NotImplementedError(f"Gas enthalpy not available for {self.name}.")

    def liquid_viscosity(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Dynamic viscosity of the liquid component."""
        raise NotImplementedError(f"Liquid viscosity not available for {self.name}.")

    def gas_viscosity(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Dynamic viscosity of the gaseous component."""
        raise NotImplementedError(f"Gas viscosity not available for {self.name}.")

    def liquid_internal_energy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Specific internal energy ``h - p / rho`` of the liquid component."""
        return self.liquid_enthalpy(T, p) - p / self.liquid_density(T, p)

    def gas_internal_energy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Specific internal energy ``h - p / rho`` of the gaseous component."""
        return self.gas_enthalpy(T, p) - p / self.gas_density(T, p)

    def liquid_pressure(self, T: float, rho: float) -> SolverResult[float]:
        """Pressure of the liquid component at given temperature and density.

        Inverts :meth:`liquid_density` using :func:`pressure_from_density`, starting
        from 1.1 times the :meth:`vapor_pressure`.

        """
        return pressure_from_density(
            self.liquid_density, T, rho, p_initial=1.1 * float(self.vapor_pressure(T))
        )

    def gas_pressure(self, T: float, rho: float) -> SolverResult[float]:
        """Pressure of the gaseous component at given temperature and density.

        Inverts :meth:`gas_density` using :func:`pressure_from_density`, starting
        from the ideal gas pressure.

        """
        if not (np.isfinite(rho) and rho > 0.0):
            raise InvalidInputError(f"Target density must be positive, got {rho}.")
        p_ideal = rho * R_IDEAL_MOL * T / self.molar_mass
        return pressure_from_density(self.gas_density, T, rho, p_initial=p_ideal)
