"""Module containing functionality to provide initial guesses for the equilibrium
problem, for the case where no state close to the equilibrium is available."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from scipy.optimize import brentq

from .._core import P_REF
from ..capillary_pressures import CapillaryPressureLaw, NoCapillaryPressure
from ..fluid_systems import FluidSystem
from ..states import FluidState
from ..utils import normalize_rows

__all__ = [
    "rachford_rice_residual",
    "rachford_rice_binary",
    "FlashInitializer",
]

logger = logging.getLogger(__name__)


def rachford_rice_residual(y: float, z: np.ndarray, K: np.ndarray) -> float:
    """Residual of the two-phase Rachford-Rice equation

    .. math::

        f(y) = \\sum_i \\frac{(K_i - 1) z_i}{1 + y (K_i - 1)}

    Parameters:
        y: Phase fraction of the second phase.
        z: ``shape=(num_components,)``

            Vector of feed fractions.
        K: ``shape=(num_components,)``

            K-values of the second phase relative to the reference phase.

    """
    return float(np.sum((K - 1) * z / (1 + y * (K - 1))))


def rachford_rice_binary(z: np.ndarray, K: np.ndarray) -> float:
    """Solves the two-phase Rachford-Rice equation for the phase fraction of the
    second phase, restricted to ``[0, 1]``.

    The residual is monotonously decreasing in ``y``. If it has no root in ``[0, 1]``,
    the respective bound is returned (single phase regime).

    Parameters:
        z: ``shape=(num_components,)``

            Vector of feed fractions.
        K: ``shape=(num_components,)``

            K-values of the second phase relative to the reference phase.

    Returns:
        The phase fraction of the second phase.

    """
    f0 = rachford_rice_residual(0.0, z, K)
    if f0 <= 0.0:
        return 0.0
    f1 = rachford_rice_residual(1.0, z, K)
    if f1 >= 0.0:
        return 1.0
    return float(brentq(rachford_rice_residual, 0.0, 1.0, args=(z, K)))


class FlashInitializer:
    """Class computing an initial guess for the flash from the global molarities.

    The pressure (or a reference pressure if none is given) and temperature of the
    given state are kept. K-values are computed from the fugacity coefficients of the
    phases at that pressure, evaluated at the overall composition.
    For two phases, the phase fractions are obtained with the Rachford-Rice equation.
    For more phases, the amount is equally distributed.
    Saturations follow from the molar densities of the phases.

    Parameters:
        fluid_system: Fluid system of the flash.

    """

    def __init__(self, fluid_system: FluidSystem) -> None:
        self.fluid_system: FluidSystem = fluid_system
        """Fluid system passed at instantiation."""

    def k_values(self, T: np.ndarray, p: float, z: np.ndarray) -> np.ndarray:
        """Returns the K-values ``x_ic / x_0c`` for every phase ``i`` (rows) and
        component ``c`` (columns), relative to the reference phase.

        The row of the reference phase contains ones.

        """
        fs = self.fluid_system
        phis = np.array(
            [
                fs.fugacity_coefficients(j, float(T[j]), p, z)
                for j in range(fs.num_phases)
            ]
        )
        return phis[0] / phis

    def guess(
        self,
        state: FluidState,
        global_molarities: np.ndarray,
        material_params: Optional[CapillaryPressureLaw] = None,
    ) -> FluidState:
        """Computes an initial guess.

        Parameters:
            state: A fluid state providing the temperatures and the reference pressure.
                It is not modified.
            global_molarities: ``shape=(N,)``

                Total concentration of each component.
            material_params: ``default=None``

                Capillary pressure law used to compute the phase pressures.

        Returns:
            A new fluid state with saturations, compositions and pressures, and the
            densities and fugacities evaluated.

        """
        fs = self.fluid_system
        if material_params is None:
            material_params = NoCapillaryPressure()

        nphase = fs.num_phases
        z = global_molarities / global_molarities.sum()
        T = state.T.copy()
        p = float(state.p[0]) if state.p[0] > 0.0 else P_REF

        K = self.k_values(T, p, z)

        if nphase == 2:
            y1 = rachford_rice_binary(z, K[1])
            y = np.array([1.0 - y1, y1])
        else:
            y = np.ones(nphase) / nphase

        # x_0c from sum_j y_j x_jc = z_c, with x_jc = K_jc x_0c
        x_ref = z / (y @ K)
        x = K * x_ref

        # volumes per mole of mixture from molar densities of normalized compositions
        x_norm = normalize_rows(np.ascontiguousarray(x, dtype=np.float64))
        v = np.array(
            [
                y[j] / fs.molar_density(j, float(T[j]), p, x_norm[j])
                for j in range(nphase)
            ]
        )
        sat = v / v.sum()

        guess = fs.new_fluid_state()
        guess.T = T
        guess.sat = sat
        guess.x = x
        guess.p = material_params.phase_pressures(p, sat)
        fs.update_fluid_state(guess, full=False)

        logger.debug(
            f"Heuristic initial guess: phase fractions {y}, saturations {sat}"
        )
        return guess
