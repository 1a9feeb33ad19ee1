"""Tests the fluid systems, i.e. the construction of phase properties from component
models."""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf


def test_invalid_fluid_systems() -> None:
    liquid = pf.IdealPhase("liquid", pf.PhysicalState.liquid, (1e3, 1e9))
    gas = pf.IdealPhase("gas", pf.PhysicalState.gas)

    with pytest.raises(pf.CompositionalModellingError):
        pf.IdealMixtureFluidSystem([], [], [liquid, gas])
    with pytest.raises(pf.CompositionalModellingError):
        pf.IdealMixtureFluidSystem(["a", "b"], [1.0, 1.0], [])
    with pytest.raises(pf.CompositionalModellingError):
        pf.IdealMixtureFluidSystem(["a", "a"], [1.0, 1.0], [liquid, gas])
    with pytest.raises(pf.CompositionalModellingError):
        pf.IdealMixtureFluidSystem(["a", "b"], [1.0, 1.0], [liquid, gas, gas])
    # negative molar mass
    with pytest.raises(pf.CompositionalModellingError):
        pf.IdealMixtureFluidSystem(["a", "b"], [1.0, -1.0], [liquid, gas])
    # missing Henry constant for the liquid phase
    with pytest.raises(pf.CompositionalModellingError):
        pf.IdealMixtureFluidSystem(["a", "b", "c"], [1.0, 1.0, 1.0], [liquid, gas])


def test_ideal_mixture(ideal_fluid_system: pf.IdealMixtureFluidSystem) -> None:
    fs = ideal_fluid_system
    assert fs.num_components == 2
    assert fs.num_phases == 2
    assert fs.gas_phase_index == 1

    T, p = 300.0, 1e5
    x = np.array([0.3, 0.7])
    assert fs.molar_density(0, T, p, x) == 55.5e3
    assert np.isclose(fs.molar_density(1, T, p, x), p / (pf.R_IDEAL_MOL * T))
    assert np.allclose(fs.fugacity_coefficients(0, T, p, x), [2e3 / p, 1e9 / p])
    assert np.all(fs.fugacity_coefficients(1, T, p, x) == 1.0)
    assert np.isclose(
        fs.mass_density(1, T, p, x),
        fs.molar_density(1, T, p, x) * (0.3 * 18e-3 + 0.7 * 28e-3),
    )
    X = fs.mass_fractions(x)
    assert np.isclose(X.sum(), 1.0)
    assert X[1] > x[1]


def test_update_fluid_state(ideal_fluid_system: pf.IdealMixtureFluidSystem) -> None:
    """Properties are evaluated with normalized fractions, fugacities with the extended
    fractions."""
    fs = ideal_fluid_system
    state = fs.new_fluid_state()
    state.T = np.array([300.0, 300.0])
    state.p = np.array([1e5, 1e5])
    state.sat = np.array([1.0, 0.0])
    state.x = np.array([[0.9, 0.1], [0.2, 0.3]])

    fs.update_fluid_state(state, full=False)

    assert np.allclose(state.fug[0], [2e3 * 0.9, 1e9 * 0.1])
    assert np.allclose(state.fug[1], [0.2e5, 0.3e5])
    assert np.isclose(state.rho[1], state.rho_molar[1] * (0.4 * 18e-3 + 0.6 * 28e-3))
    # enthalpies and viscosities are not evaluated
    assert np.all(state.h == 0.0)
    assert np.all(state.mu == 0.0)

    fs.update_fluid_state(state, full=True)
    assert np.allclose(state.mu, [1e-3, 1e-3])
    assert np.allclose(state.h, 1e3 * (300.0 - pf.T_KELVIN_OFFSET))

    with pytest.raises(pf.CompositionalModellingError):
        fs.update_fluid_state(pf.initialize_fluid_state(2, 3))


def test_henry_coefficient_of_nitrogen() -> None:
    """The Henry coefficient of N2 in water at 25 degree Celsius is approximately
    8.6 GPa, and increases with temperature at ambient conditions."""
    fs = pf.H2ON2FluidSystem()
    H = fs.henry_n2(298.15)
    assert 8.0e9 < H < 9.2e9
    assert fs.henry_n2(320.0) > H


def test_brine_nitrogen_system() -> None:
    fs = pf.H2ON2FluidSystem(salinity=0.1)
    assert fs.salinity == 0.1
    assert fs.component_names == ["brine", "N2"]
    assert fs.gas_phase_index == 1
    assert np.allclose(fs.molar_masses, [fs.brine.molar_mass, 28.0134e-3])

    T, p = 330.0, 1e6
    x_l = np.array([0.9999, 1e-4])
    x_g = np.array([0.02, 0.98])

    c_l = fs.molar_density(0, T, p, x_l)
    assert np.isclose(c_l * fs.brine.molar_mass, fs.brine.liquid_density(T, p))
    assert np.isclose(fs.molar_density(1, T, p, x_g), p / (pf.R_IDEAL_MOL * T))

    phis = fs.fugacity_coefficients(0, T, p, x_l)
    assert np.isclose(phis[0] * p, fs.brine.vapor_pressure(T))
    assert np.isclose(phis[1] * p, fs.henry_n2(T))

    # gas viscosity lies between the viscosities of the pure gases
    mu_g = fs.viscosity(1, T, p, x_g)
    mu_pure = [fs.brine.gas_viscosity(T, 0.02 * p), fs.n2.gas_viscosity(T, p)]
    assert min(mu_pure) < mu_g < max(mu_pure)
    assert np.isclose(fs.viscosity(1, T, p, np.array([0.0, 1.0])), mu_pure[1])

    assert np.isfinite(fs.enthalpy(1, T, p, x_g))
    assert fs.enthalpy(0, T, p, x_l) == fs.brine.liquid_enthalpy(T, p)


def test_wilke_viscosity_of_pure_gas() -> None:
    mu = np.array([1e-5, 2e-5])
    M = np.array([0.018, 0.028])
    assert np.isclose(pf.wilke_viscosity(np.array([1.0, 0.0]), mu, M), 1e-5)
    assert np.isclose(pf.wilke_viscosity(np.array([0.0, 1.0]), mu, M), 2e-5)
