"""Brine as an aqueous solution of NaCl, modelled as a single pseudo-component with
fixed salinity.

The liquid correlations are corrections of the pure water properties of
:class:`~poreflash.components.h2o.H2O`, such that a salinity of zero reproduces pure
water exactly. Gas properties and the vapor pressure are those of pure water.

References:
    Batzle, M. and Wang, Z. (1992). Seismic properties of pore fluids.
    Geophysics, 57.

    Palliser, C. and McKibbin, R. (1998). A model for deep geothermal brines, III:
    Thermodynamic properties - enthalpy and viscosity. Transport in Porous Media, 33.

    Michaelides, E. E. (1981). Thermodynamic properties of geothermal fluids.
    Geothermal Resources Council Transactions, 5.

"""

from __future__ import annotations

import numpy as np

from .._core import DEFAULT_SALINITY, T_KELVIN_OFFSET
from ..utils import InvalidInputError
from .base import Component, FloatLike
from .h2o import H2O

__all__ = ["Brine"]


_M_NACL: float = 58.44e-3
"""Molar mass of NaCl in ``[kg / mol]``."""

# Saturation limit of NaCl in water, as a polynomial in the temperature in Celsius.
_F_SAT = (2.63500e-1, 7.48368e-6, 1.44611e-6, -3.80860e-10)

# Michaelides' correction of the enthalpy of mixing, a[i][j] for theta^i * m^j.
_A_MIX = (
    (-9633.6, -4080.0, 286.49),
    (166.58, 68.577, -4.6856),
    (-0.90963, -0.36524, 0.249667e-1),
    (0.17965e-2, 0.71924e-3, -0.4900e-4),
)

_T_MIN_VISCOSITY: float = 275.0
"""Temperature floor of the viscosity correlation in ``[K]``."""


def _batzle_wang_viscosity(S: FloatLike, T: FloatLike) -> FloatLike:
    """Brine viscosity in ``[cP]`` according to Batzle & Wang, with ``T`` clamped to
    :data:`_T_MIN_VISCOSITY`."""
    T_C = np.maximum(T, _T_MIN_VISCOSITY) - T_KELVIN_OFFSET
    A = (0.42 * (S**0.8 - 0.17) ** 2 + 0.045) * T_C**0.8
    return 0.1 + 0.333 * S + (1.65 + 91.9 * S**3) * np.exp(-A)


class Brine(Component):
    """Brine with a constant mass fraction of NaCl.

    Parameters:
        salinity: ``default=0.1``

            Mass fraction of NaCl in brine, between 0 and 1.
        name: ``default='brine'``

            Name of the component.
        water: ``default=None``

            Model for pure water. If None, an instance of
            :class:`~poreflash.components.h2o.H2O` is created.

    Raises:
        InvalidInputError: If the salinity is not in ``[0, 1)``.

    """

    critical_temperature: float = H2O.critical_temperature
    critical_pressure: float = H2O.critical_pressure
    triple_temperature: float = H2O.triple_temperature
    triple_pressure: float = H2O.triple_pressure

    def __init__(
        self,
        salinity: float = DEFAULT_SALINITY,
        name: str = "brine",
        water: H2O | None = None,
    ) -> None:
        super().__init__(name)

        if not (0.0 <= salinity < 1.0):
            raise InvalidInputError(f"Salinity must be in [0, 1), got {salinity}.")

        self._salinity: float = float(salinity)
        self._water: H2O = H2O() if water is None else water

    @property
    def salinity(self) -> float:
        """Mass fraction of NaCl. Fixed at instantiation."""
        return self._salinity

    @property
    def water(self) -> H2O:
        """The pure water model used for the salinity corrections."""
        return self._water

    @property
    def molar_mass(self) -> float:  # type:ignore[override]
        """Mass-weighted molar mass of water and NaCl in ``[kg / mol]``."""
        return self._water.molar_mass * (1.0 - self._salinity) + (
            _M_NACL * self._salinity
        )

    def vapor_pressure(self, T: FloatLike) -> FloatLike:
        """Vapor pressure of pure water. The lowering due to dissolved salt is
        neglected."""
        return self._water.vapor_pressure(T)

    def liquid_density(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Liquid density according to Batzle & Wang."""
        S = self._salinity
        T_C = T - T_KELVIN_OFFSET
        p_MPa = p / 1e6
        rho_w = self._water.liquid_density(T, p)

        return rho_w + 1000.0 * S * (
            0.668
            + 0.44 * S
            + 1.0e-6
            * (
                300.0 * p_MPa
                - 2400.0 * p_MPa * S
                + T_C
                * (
                    80.0
                    - 3.0 * T_C
                    - 3300.0 * S
                    - 13.0 * p_MPa
                    + 47.0 * p_MPa * S
                )
            )
        )

    def liquid_enthalpy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Specific enthalpy of the liquid according to Palliser & McKibbin, with the
        enthalpy of mixing by Michaelides.

        The salinity is capped at the saturation limit of NaCl at given temperature.

        """
        theta = T - T_KELVIN_OFFSET
        S_sat = _F_SAT[0] + _F_SAT[1] * theta + _F_SAT[2] * theta**2
        S_sat = S_sat + _F_SAT[3] * theta**3
        S = np.minimum(self._salinity, S_sat)

        h_w = self._water.liquid_enthalpy(T, p)

        # NaCl enthalpy by integration of the heat capacity, J/kg
        h_nacl = (
            3.6710e4 * T
            + 0.5 * 6.2770e1 * T**2
            - (6.6670e-2 / 3.0) * T**3
            + (2.8000e-5 / 4.0) * T**4
        ) / 58.44 - 2.045698e5

        # molality
        m = (1e3 / 58.44) * (S / (1.0 - S))
        d_h = 0.0
        for i in range(len(_A_MIX)):
            for j in range(len(_A_MIX[i])):
                d_h = d_h + _A_MIX[i][j] * theta**i * m**j
        delta_h = 4.184e3 / (1e3 + 58.44 * m) * d_h

        return (1.0 - S) * h_w + S * (h_nacl + delta_h)

    def liquid_viscosity(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Liquid viscosity as the pure water viscosity, scaled with the ratio of the
        Batzle & Wang viscosities at given and zero salinity.

        The correlation is evaluated with a temperature floor of 275 K.

        """
        factor = _batzle_wang_viscosity(self._salinity, T) / _batzle_wang_viscosity(
            0.0, T
        )
        return self._water.liquid_viscosity(T, p) * factor

    def gas_density(self, T: FloatLike, p: FloatLike) -> FloatLike:
        return self._water.gas_density(T, p)

    def gas_enthalpy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        return self._water.gas_enthalpy(T, p)

    def gas_viscosity(self, T: FloatLike, p: FloatLike) -> FloatLike:
        return self._water.gas_viscosity(T, p)
