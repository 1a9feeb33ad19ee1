"""Nitrogen as an ideal gas."""

from __future__ import annotations

import numpy as np

from .._core import R_IDEAL_MOL, T_KELVIN_OFFSET
from .base import Component, FloatLike

__all__ = ["N2"]


class N2(Component):
    """Nitrogen with ideal gas density, constant heat capacity and the viscosity given
    by Sutherland's law.

    Liquid properties are not supported.

    Parameters:
        name: ``default='N2'``

            Name of the component.

    """

    molar_mass: float = 28.0134e-3
    critical_temperature: float = 126.192
    critical_pressure: float = 3.3958e6
    triple_temperature: float = 63.151
    triple_pressure: float = 12.523e3

    heat_capacity: float = 1.039e3
    """Isobaric specific heat capacity of the gas in ``[J / kg K]``.
    The enthalpy is zero at 0 degree Celsius."""

    def __init__(self, name: str = "N2") -> None:
        super().__init__(name)

    def gas_density(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Ideal gas density."""
        return p * self.molar_mass / (R_IDEAL_MOL * T)

    def gas_enthalpy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        # ideal gas, no pressure dependency
        return self.heat_capacity * (T - T_KELVIN_OFFSET) + 0.0 * p

    def gas_viscosity(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Sutherland's law with reference viscosity 17.81e-6 Pa s at 300.55 K and
        Sutherland constant 111 K."""
        mu_ref, T_ref, C = 17.81e-6, 300.55, 111.0
        return mu_ref * (T_ref + C) / (T + C) * np.power(T / T_ref, 1.5) + 0.0 * p
