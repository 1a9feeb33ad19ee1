"""Tests the ideal gas model of nitrogen."""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf


def test_gas_properties() -> None:
    n2 = pf.N2()
    T, p = 300.0, 1.0e5

    assert np.isclose(
        n2.gas_density(T, p), p * n2.molar_mass / (pf.R_IDEAL_MOL * T), rtol=1e-14
    )
    # enthalpy is zero at 0 degree Celsius, independent of pressure
    assert n2.gas_enthalpy(pf.T_KELVIN_OFFSET, p) == 0.0
    assert n2.gas_enthalpy(T, p) == n2.gas_enthalpy(T, 2 * p)
    assert n2.gas_enthalpy(T, p) > 0.0

    # Sutherland's law reproduces its reference value
    assert np.isclose(n2.gas_viscosity(300.55, p), 17.81e-6, rtol=1e-12)
    assert n2.gas_viscosity(400.0, p) > n2.gas_viscosity(300.0, p)


def test_unsupported_correlations() -> None:
    n2 = pf.N2()
    with pytest.raises(NotImplementedError):
        n2.liquid_density(100.0, 1.0e5)
    with pytest.raises(NotImplementedError):
        n2.vapor_pressure(100.0)


def test_gas_pressure_round_trip() -> None:
    """The ideal gas density is linear in pressure, the ideal gas initial guess is
    exact."""
    n2 = pf.N2()
    T, p = 320.0, 3.0e6
    rho = float(n2.gas_density(T, p))

    result = n2.gas_pressure(T, rho)

    assert result.converged
    assert result.iterations == 1
    assert np.isclose(result.value, p, rtol=1e-10)
