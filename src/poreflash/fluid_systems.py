"""Module containing fluid systems, i.e. the mixing rules combining the pure component
models into phase properties.

A fluid system defines the phases and components of a fluid, and computes per phase the
molar and mass densities, the fugacity coefficients of each component, the specific
enthalpy and the dynamic viscosity, as functions of temperature, pressure and
composition of a phase.

Properties are always evaluated with normalized compositions, while fugacities are
computed with the (possibly extended) fractions stored in a fluid state:

.. math::

    f_{ic} = \\varphi_{ic}(T_i, p_i, \\hat{x}_i) x_{ic} p_i

This makes the fugacities of absent phases meaningful in the sense of the unified
formulation of the equilibrium problem.

"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from ._core import DEFAULT_SALINITY, R_IDEAL_MOL, T_KELVIN_OFFSET, PhysicalState
from .components import H2O, N2, Brine, FloatLike
from .states import FluidState, initialize_fluid_state
from .utils import CompositionalModellingError, normalize_rows

__all__ = [
    "henry_iapws",
    "wilke_viscosity",
    "FluidSystem",
    "IdealPhase",
    "IdealMixtureFluidSystem",
    "H2ON2FluidSystem",
]


def henry_iapws(
    A: float, B: float, C: float, T: FloatLike, water: Optional[H2O] = None
) -> FloatLike:
    """Henry coefficient of a gas dissolved in liquid water according to the IAPWS
    guideline G7-04.

    .. math::

        \\ln(H / p_{sat}) = A / T_r + B \\tau^{0.355} / T_r + C T_r^{-0.41} e^{\\tau}

    with :math:`T_r = T / T_c` and :math:`\\tau = 1 - T_r`.

    Parameters:
        A: First coefficient of the gas.
        B: Second coefficient of the gas.
        C: Third coefficient of the gas.
        T: Temperature.
        water: ``default=None``

            Model for the vapor pressure of water. Defaults to
            :class:`~poreflash.components.h2o.H2O`.

    Returns:
        The Henry coefficient in ``[Pa]``.

    """
    if water is None:
        water = H2O()
    T_r = T / water.critical_temperature
    tau = 1.0 - T_r
    p_sat = water.vapor_pressure(T)
    return p_sat * np.exp(
        A / T_r + B * tau**0.355 / T_r + C * T_r ** (-0.41) * np.exp(tau)
    )


def wilke_viscosity(x: np.ndarray, mu: np.ndarray, M: np.ndarray) -> float:
    """Viscosity of a gas mixture according to Wilke's mixing rule.

    Parameters:
        x: ``shape=(N,)``

            Mole fractions.
        mu: ``shape=(N,)``

            Viscosities of the pure gases.
        M: ``shape=(N,)``

            Molar masses of the gases.

    Returns:
        The viscosity of the mixture.

    """
    mu_mix = 0.0
    for i in range(x.shape[0]):
        divisor = 0.0
        for j in range(x.shape[0]):
            phi_ij = (1.0 + np.sqrt(mu[i] / mu[j]) * (M[j] / M[i]) ** 0.25) ** 2
            phi_ij /= np.sqrt(8.0 * (1.0 + M[i] / M[j]))
            divisor += x[j] * phi_ij
        mu_mix += x[i] * mu[i] / divisor
    return float(mu_mix)


class FluidSystem(abc.ABC):
    """Abstract base class for fluid systems.

    The first phase is the reference phase. Its pressure and fugacities are stored as
    primary variables, and capillary pressures are relative to it.

    Parameters:
        component_names: Names of the components.
        phase_names: Names of the phases.
        phase_states: Physical state per phase.

    Raises:
        CompositionalModellingError: If no components or phases are given, if the
            number of phase states does not match the number of phases, or if more than
            one gas phase is modelled.

    """

    def __init__(
        self,
        component_names: Sequence[str],
        phase_names: Sequence[str],
        phase_states: Sequence[PhysicalState],
    ) -> None:
        if len(component_names) == 0:
            raise CompositionalModellingError("Fluid system requires components.")
        if len(phase_names) == 0:
            raise CompositionalModellingError("Fluid system requires phases.")
        if len(phase_names) != len(phase_states):
            raise CompositionalModellingError(
                f"Got {len(phase_names)} phases but {len(phase_states)} phase states."
            )
        if len([s for s in phase_states if s == PhysicalState.gas]) > 1:
            raise CompositionalModellingError("At most one gas phase supported.")
        if len(set(component_names)) != len(component_names):
            raise CompositionalModellingError("Component names must be unique.")

        self.component_names: list[str] = list(component_names)
        """Names of the components."""

        self.phase_names: list[str] = list(phase_names)
        """Names of the phases."""

        self.phase_states: list[PhysicalState] = list(phase_states)
        """Physical states of the phases."""

    def __str__(self) -> str:
        return (
            f"{type(self).__name__} with {self.num_components} components "
            + f"{self.component_names} and {self.num_phases} phases {self.phase_names}"
        )

    @property
    def num_components(self) -> int:
        """Number of components in the fluid."""
        return len(self.component_names)

    @property
    def num_phases(self) -> int:
        """Number of phases in the fluid."""
        return len(self.phase_names)

    @property
    def gas_phase_index(self) -> int | None:
        """Index of the gas phase. None if no gas phase is modelled."""
        for i, state in enumerate(self.phase_states):
            if state == PhysicalState.gas:
                return i
        return None

    @property
    @abc.abstractmethod
    def molar_masses(self) -> np.ndarray:
        """Molar masses of the components in ``[kg / mol]``, ``shape=(N,)``."""
        ...

    @abc.abstractmethod
    def molar_density(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        """Molar density of a phase in ``[mol / m^3]``.

        Parameters:
            phase: Index of the phase.
            T: Temperature of the phase.
            p: Pressure of the phase.
            x: ``shape=(N,)``

                Normalized mole fractions of the components in the phase.

        """
        ...

    @abc.abstractmethod
    def fugacity_coefficients(
        self, phase: int, T: float, p: float, x: np.ndarray
    ) -> np.ndarray:
        """Fugacity coefficients of all components in a phase, ``shape=(N,)``.

        The arguments are as for :meth:`molar_density`.

        """
        ...

    @abc.abstractmethod
    def enthalpy(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        """Specific enthalpy of a phase in ``[J / kg]``.

        The arguments are as for :meth:`molar_density`.

        """
        ...

    @abc.abstractmethod
    def viscosity(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        """Dynamic viscosity of a phase in ``[Pa s]``.

        The arguments are as for :meth:`molar_density`.

        """
        ...

    def mean_molar_mass(self, x: np.ndarray) -> float:
        """Mean molar mass of a phase with given normalized mole fractions."""
        return float(np.dot(x, self.molar_masses))

    def mass_density(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        """Mass density of a phase in ``[kg / m^3]``, computed from the
        :meth:`molar_density` and the :meth:`mean_molar_mass`."""
        return self.molar_density(phase, T, p, x) * self.mean_molar_mass(x)

    def mass_fractions(self, x: np.ndarray) -> np.ndarray:
        """Converts normalized mole fractions of a phase into mass fractions."""
        mx = x * self.molar_masses
        return mx / mx.sum()

    def new_fluid_state(self) -> FluidState:
        """Returns a zero-initialized fluid state with the sizes and phase states of
        this fluid system."""
        return initialize_fluid_state(
            self.num_phases, self.num_components, self.phase_states
        )

    def update_fluid_state(self, state: FluidState, full: bool = True) -> None:
        """Evaluates all derived quantities of a fluid state in place, based on the
        temperatures, pressures and compositions stored in it.

        Parameters:
            state: A fluid state of this fluid system.
            full: ``default=True``

                If False, only densities, fugacity coefficients and fugacities are
                computed. Enthalpies and viscosities are only evaluated if True.

        Raises:
            CompositionalModellingError: If the sizes of the state do not match the
                fluid system.

        """
        nphase, ncomp = state.x.shape
        if nphase != self.num_phases or ncomp != self.num_components:
            raise CompositionalModellingError(
                f"Fluid state of size ({nphase}, {ncomp}) incompatible with {self}."
            )

        x_norm = normalize_rows(np.ascontiguousarray(state.x, dtype=np.float64))
        rho_molar = np.zeros(nphase)
        rho = np.zeros(nphase)
        phis = np.zeros((nphase, ncomp))

        for j in range(nphase):
            T_j = float(state.T[j])
            p_j = float(state.p[j])
            rho_molar[j] = self.molar_density(j, T_j, p_j, x_norm[j])
            rho[j] = rho_molar[j] * self.mean_molar_mass(x_norm[j])
            phis[j] = self.fugacity_coefficients(j, T_j, p_j, x_norm[j])

        state.rho_molar = rho_molar
        state.rho = rho
        state.phis = phis
        state.fug = phis * state.x * state.p[:, np.newaxis]
        state.phase_states = list(self.phase_states)

        if full:
            h = np.zeros(nphase)
            mu = np.zeros(nphase)
            for j in range(nphase):
                T_j = float(state.T[j])
                p_j = float(state.p[j])
                h[j] = self.enthalpy(j, T_j, p_j, x_norm[j])
                mu[j] = self.viscosity(j, T_j, p_j, x_norm[j])
            state.h = h
            state.mu = mu


@dataclass(frozen=True)
class IdealPhase:
    """Parameters of a phase in an :class:`IdealMixtureFluidSystem`."""

    name: str
    """Name of the phase."""

    state: PhysicalState = PhysicalState.liquid
    """Physical state of the phase."""

    henry_constants: tuple[float, ...] = field(default_factory=tuple)
    """Henry constants ``H_c`` in ``[Pa]`` per component, such that the fugacity
    coefficients are ``H_c / p``. Required for liquid phases, ignored for the gas
    phase."""

    molar_density: float = 55.5e3
    """Constant molar density in ``[mol / m^3]`` of a liquid phase. Ignored for the
    gas phase, which is an ideal gas."""

    heat_capacity: float = 1.0e3
    """Constant specific heat capacity in ``[J / kg K]``. The enthalpy is zero at 0
    degree Celsius."""

    viscosity: float = 1.0e-3
    """Constant dynamic viscosity in ``[Pa s]``."""


class IdealMixtureFluidSystem(FluidSystem):
    """Fluid system of ideal liquid mixtures and at most one ideal gas phase.

    Liquid phases have a constant molar density and Henry-type fugacity coefficients
    ``phi_c = H_c / p``. The gas phase is an ideal gas with ``phi_c = 1``.

    With this, the phase equilibrium between a liquid and the gas is given by
    ``H_c x_{L,c} = p_G x_{G,c}``, which allows analytical solutions.

    Parameters:
        component_names: Names of the components.
        molar_masses: Molar masses of the components in ``[kg / mol]``.
        phases: Phase parameters. The first phase is the reference phase.

    Raises:
        CompositionalModellingError: If the number of molar masses or Henry constants
            does not match the number of components, or if any of them is not positive.

    """

    def __init__(
        self,
        component_names: Sequence[str],
        molar_masses: Sequence[float],
        phases: Sequence[IdealPhase],
    ) -> None:
        super().__init__(
            component_names,
            [phase.name for phase in phases],
            [phase.state for phase in phases],
        )

        ncomp = len(component_names)
        if len(molar_masses) != ncomp or np.any(np.array(molar_masses) <= 0.0):
            raise CompositionalModellingError(
                f"Expecting {ncomp} positive molar masses, got {molar_masses}."
            )
        for phase in phases:
            if phase.state == PhysicalState.gas:
                continue
            H = np.array(phase.henry_constants, dtype=float)
            if H.shape != (ncomp,) or np.any(H <= 0.0):
                raise CompositionalModellingError(
                    f"Expecting {ncomp} positive Henry constants for liquid phase"
                    + f" {phase.name}, got {phase.henry_constants}."
                )

        self._molar_masses = np.array(molar_masses, dtype=float)
        self.phases: list[IdealPhase] = list(phases)
        """Parameters per phase."""

    @property
    def molar_masses(self) -> np.ndarray:
        return self._molar_masses

    def molar_density(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        if self.phases[phase].state == PhysicalState.gas:
            return p / (R_IDEAL_MOL * T)
        return self.phases[phase].molar_density

    def fugacity_coefficients(
        self, phase: int, T: float, p: float, x: np.ndarray
    ) -> np.ndarray:
        if self.phases[phase].state == PhysicalState.gas:
            return np.ones(self.num_components)
        return np.array(self.phases[phase].henry_constants, dtype=float) / p

    def enthalpy(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        return self.phases[phase].heat_capacity * (T - T_KELVIN_OFFSET)

    def viscosity(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        return self.phases[phase].viscosity


class H2ON2FluidSystem(FluidSystem):
    """Fluid system with brine and nitrogen, in a liquid and a gas phase.

    Components are brine (water with a fixed salinity, as a pseudo-component) and N2.
    The liquid phase is the reference phase.

    - Liquid: the molar density is the one of brine, i.e. dissolved nitrogen
      replaces brine molecules. The brine component follows Raoult's law
      (``phi = p_sat / p``) and nitrogen Henry's law with the IAPWS correlation.
    - Gas: ideal gas of steam and nitrogen (``phi = 1``), with Wilke's mixing rule
      for the viscosity.

    Parameters:
        salinity: ``default=0.1``

            Mass fraction of NaCl in brine.

    """

    liquid_phase_index: int = 0
    """Index of the liquid phase, which is the reference phase."""

    brine_index: int = 0
    n2_index: int = 1

    _N2_HENRY = (-9.67578, 4.72162, 11.70585)
    """IAPWS coefficients of the Henry correlation for nitrogen."""

    def __init__(self, salinity: float = DEFAULT_SALINITY) -> None:
        self.brine: Brine = Brine(salinity)
        """Model of the brine component."""
        self.n2: N2 = N2()
        """Model of the nitrogen component."""

        super().__init__(
            [self.brine.name, self.n2.name],
            ["liquid", "gas"],
            [PhysicalState.liquid, PhysicalState.gas],
        )

    @property
    def salinity(self) -> float:
        """Salinity of the brine component."""
        return self.brine.salinity

    @property
    def molar_masses(self) -> np.ndarray:
        return np.array([self.brine.molar_mass, self.n2.molar_mass])

    def henry_n2(self, T: FloatLike) -> FloatLike:
        """Henry coefficient of nitrogen in water in ``[Pa]``."""
        A, B, C = self._N2_HENRY
        return henry_iapws(A, B, C, T, self.brine.water)

    def molar_density(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        if phase == self.liquid_phase_index:
            return float(self.brine.liquid_density(T, p)) / self.brine.molar_mass
        return p / (R_IDEAL_MOL * T)

    def fugacity_coefficients(
        self, phase: int, T: float, p: float, x: np.ndarray
    ) -> np.ndarray:
        if phase == self.liquid_phase_index:
            return np.array(
                [float(self.brine.vapor_pressure(T)), float(self.henry_n2(T))]
            ) / p
        return np.ones(self.num_components)

    def enthalpy(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        if phase == self.liquid_phase_index:
            # enthalpy of dissolution of nitrogen is neglected
            return float(self.brine.liquid_enthalpy(T, p))
        X = self.mass_fractions(x)
        # partial pressures as arguments of the pure gas enthalpies
        p_w = max(x[self.brine_index], 1e-10) * p
        p_n2 = max(x[self.n2_index], 1e-10) * p
        h_w = float(self.brine.gas_enthalpy(T, p_w))
        h_n2 = float(self.n2.gas_enthalpy(T, p_n2))
        return float(X[self.brine_index] * h_w + X[self.n2_index] * h_n2)

    def viscosity(self, phase: int, T: float, p: float, x: np.ndarray) -> float:
        if phase == self.liquid_phase_index:
            return float(self.brine.liquid_viscosity(T, p))
        p_w = max(x[self.brine_index], 1e-10) * p
        p_n2 = max(x[self.n2_index], 1e-10) * p
        mu = np.array(
            [
                float(self.brine.gas_viscosity(T, p_w)),
                float(self.n2.gas_viscosity(T, p_n2)),
            ]
        )
        return wilke_viscosity(x, mu, self.molar_masses)
