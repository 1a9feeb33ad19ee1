"""Fixtures shared by the test modules of PoreFlash.

The ideal two-phase, two-component fluid system has an analytical equilibrium:
Liquid fugacities are ``H_c x_Lc``, gas fugacities ``p_G x_Gc``. With both phases
present and the unity constraints, the liquid composition is given by
``x_L0 = (H_1 - p_G) / (H_1 - H_0)``.

"""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf

T_ANALYTIC: float = 300.0
"""Temperature of the analytical equilibrium."""

HENRY_CONSTANTS: tuple[float, float] = (2.0e3, 1.0e9)
"""Henry constants of the volatile solvent and the almost insoluble gas."""


@pytest.fixture
def ideal_fluid_system() -> pf.IdealMixtureFluidSystem:
    return pf.IdealMixtureFluidSystem(
        ["solvent", "gas"],
        [18.0e-3, 28.0e-3],
        [
            pf.IdealPhase("liquid", pf.PhysicalState.liquid, HENRY_CONSTANTS),
            pf.IdealPhase("gas", pf.PhysicalState.gas),
        ],
    )


@pytest.fixture
def linear_law() -> pf.LinearCapillaryPressure:
    return pf.LinearCapillaryPressure(entry_pressure=0.0, max_pressure=1.0e4)


@pytest.fixture
def analytic_equilibrium(
    ideal_fluid_system: pf.IdealMixtureFluidSystem,
    linear_law: pf.LinearCapillaryPressure,
) -> pf.FluidState:
    """Equilibrium state with liquid saturation 0.6 and liquid pressure 1e5 Pa.
    The gas pressure is 1.04e5 Pa due to the capillary pressure."""
    fs = ideal_fluid_system
    state = fs.new_fluid_state()
    state.T = np.full(2, T_ANALYTIC)
    state.sat = np.array([0.6, 0.4])
    state.p = linear_law.phase_pressures(1.0e5, state.sat)

    H = np.array(HENRY_CONSTANTS)
    p_g = state.p[1]
    x_l0 = (H[1] - p_g) / (H[1] - H[0])
    x_l = np.array([x_l0, 1.0 - x_l0])
    x_g = H * x_l / p_g
    state.x = np.array([x_l, x_g])

    fs.update_fluid_state(state)
    return state
