"""Module containing the primary variables of a control volume and the mapping between
fluid states and primary variables.

The primary variables of a control volume with ``M`` phases and ``N`` components are,
in this order,

1. the fugacities of all components in the reference phase (``N`` values),
2. the saturations of the first ``M - 1`` phases (the last is given by closure),
3. the pressure of the reference phase,
4. the temperatures, as many as the energy module requires.

The primary variables determine a fluid state uniquely: the last saturation follows
from closure, the phase pressures from the capillary pressure law and the compositions
from the fugacities, given that all phases are in equilibrium.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

import numpy as np

from .capillary_pressures import CapillaryPressureLaw, NoCapillaryPressure
from .energy import EnergyModule
from .flash import AbstractFlash, NcpFlash
from .fluid_systems import FluidSystem
from .states import FluidState
from .utils import (
    CompositionalModellingError,
    Converged,
    DidNotConverge,
    FlashConvergenceError,
    InvalidInputError,
    SolverResult,
    normalize_rows,
)

__all__ = [
    "PrimaryVariableIndices",
    "PrimaryVariables",
    "PrimaryVariableMapper",
]

logger = logging.getLogger(__name__)

_Value = TypeVar("_Value")


@dataclass(frozen=True)
class PrimaryVariableIndices:
    """Layout of the vector of primary variables.

    Offsets are computed from the number of phases, components and temperature slots.

    """

    num_phases: int
    """Number of phases ``M``."""

    num_components: int
    """Number of components ``N``."""

    num_temperatures: int = 0
    """Number of temperature slots required by the energy module."""

    def __post_init__(self) -> None:
        if self.num_phases < 1 or self.num_components < 1:
            raise CompositionalModellingError(
                "Primary variables require at least 1 phase and 1 component."
            )
        if self.num_temperatures < 0:
            raise CompositionalModellingError("Negative number of temperatures.")

    @classmethod
    def from_fluid_system(
        cls, fluid_system: FluidSystem, energy_module: EnergyModule
    ) -> PrimaryVariableIndices:
        """Creates the layout for a fluid system and energy module."""
        return cls(
            num_phases=fluid_system.num_phases,
            num_components=fluid_system.num_components,
            num_temperatures=energy_module.num_temperature_slots(
                fluid_system.num_phases
            ),
        )

    @property
    def fug0_idx(self) -> int:
        """Index of the fugacity of the first component in the reference phase."""
        return 0

    @property
    def s0_idx(self) -> int:
        """Index of the saturation of the first phase."""
        return self.fug0_idx + self.num_components

    @property
    def p0_idx(self) -> int:
        """Index of the pressure of the reference phase."""
        return self.s0_idx + self.num_phases - 1

    @property
    def temperature_idx(self) -> int:
        """Index of the first temperature slot."""
        return self.p0_idx + 1

    @property
    def num_eq(self) -> int:
        """Length of the vector of primary variables."""
        return self.num_components + self.num_phases + self.num_temperatures


class PrimaryVariables:
    """Fixed-length vector of primary variables of a control volume, with named access
    to its parts.

    Parameters:
        indices: Layout of the primary variables.
        values: ``default=None``

            Initial values. Zeros if None.

    Raises:
        InvalidInputError: If ``values`` has not the length given by the layout.

    """

    def __init__(
        self, indices: PrimaryVariableIndices, values: Optional[np.ndarray] = None
    ) -> None:
        self.indices: PrimaryVariableIndices = indices
        """Layout of the primary variables."""

        if values is None:
            values = np.zeros(indices.num_eq)
        values = np.array(values, dtype=float)
        if values.shape != (indices.num_eq,):
            raise InvalidInputError(
                f"Expecting {indices.num_eq} primary variables, got {values.shape}."
            )

        self.values: np.ndarray = values
        """The values of the primary variables."""

    def __len__(self) -> int:
        return self.indices.num_eq

    def __getitem__(self, key):
        return self.values[key]

    def __setitem__(self, key, value) -> None:
        self.values[key] = value

    def __repr__(self) -> str:
        return f"PrimaryVariables({self.values!r})"

    @property
    def fugacities(self) -> np.ndarray:
        """Fugacities of all components in the reference phase (view)."""
        i = self.indices.fug0_idx
        return self.values[i : i + self.indices.num_components]

    @property
    def saturations(self) -> np.ndarray:
        """Saturations of the first ``M - 1`` phases (view)."""
        i = self.indices.s0_idx
        return self.values[i : i + self.indices.num_phases - 1]

    @property
    def pressure(self) -> float:
        """Pressure of the reference phase."""
        return float(self.values[self.indices.p0_idx])

    @property
    def temperatures(self) -> np.ndarray:
        """Temperature slots (view). Empty for isothermal problems."""
        i = self.indices.temperature_idx
        return self.values[i : i + self.indices.num_temperatures]

    def copy(self) -> PrimaryVariables:
        """Returns a copy with an independent array of values."""
        return PrimaryVariables(self.indices, self.values.copy())


class PrimaryVariableMapper:
    """Converts fluid states into primary variables and back.

    Supported parameters (``params``):

    - ``'on_nonconvergence'``: ``'raise'`` (default) to raise a
      :class:`~poreflash.utils.FlashConvergenceError` if the flash or the computation
      of compositions from fugacities did not converge, or ``'warn'`` to log a
      warning and use the last iterate.
    - ``'composition_tolerance'``: ``1e-12`` (default). Tolerance of the fixed-point
      iteration computing compositions from fugacities.
    - ``'composition_max_iterations'``: ``50`` (default). Maximal number of
      iterations of the fixed-point iteration.

    Parameters:
        fluid_system: The fluid system of the control volumes.
        energy_module: Energy module deciding on the temperature slots.
        flash: ``default=None``

            The flash used for states which are not in equilibrium. Defaults to an
            :class:`~poreflash.flash.ncp_flash.NcpFlash`.
        params: ``default=None``

            Parameters of the mapper, see above.

    """

    def __init__(
        self,
        fluid_system: FluidSystem,
        energy_module: EnergyModule,
        flash: Optional[AbstractFlash] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        self.fluid_system: FluidSystem = fluid_system
        """The fluid system passed at instantiation."""

        self.energy_module: EnergyModule = energy_module
        """The energy module passed at instantiation."""

        self.indices: PrimaryVariableIndices = PrimaryVariableIndices.from_fluid_system(
            fluid_system, energy_module
        )
        """Layout of the primary variables."""

        if flash is None:
            flash = NcpFlash(
                fluid_system,
                {"isothermal": not energy_module.allows_phase_temperatures},
            )
        self.flash: AbstractFlash = flash
        """The flash used for states not in equilibrium."""

        self.params: dict[str, Any] = {
            "on_nonconvergence": "raise",
            "composition_tolerance": 1e-12,
            "composition_max_iterations": 50,
        }
        """Parameters of the mapper, merged into the defaults."""
        if params is not None:
            self.params.update(params)

        if self.params["on_nonconvergence"] not in ("raise", "warn"):
            raise CompositionalModellingError(
                f"Unknown policy {self.params['on_nonconvergence']} for non-converged"
                + " flashes."
            )

    def new_primary_variables(self) -> PrimaryVariables:
        """Returns zero-initialized primary variables."""
        return PrimaryVariables(self.indices)

    def assign_from_fluid_state(
        self,
        fluid_state: FluidState,
        material_params: Optional[CapillaryPressureLaw] = None,
        is_in_equilibrium: bool = False,
    ) -> PrimaryVariables:
        """Computes the primary variables representing a fluid state.

        If the state is in equilibrium, the fugacities of the reference phase, the
        first ``M - 1`` saturations and the pressure of the reference phase are copied
        without any computation. The equilibrium is not verified.

        Otherwise, the global molarities of the state are computed and the flash is
        performed, starting from the given state. The primary variables are then
        extracted from the result.

        Parameters:
            fluid_state: A fluid state with temperatures, pressures, saturations,
                compositions and molar densities. It is not modified.
            material_params: ``default=None``

                Capillary pressure law. If None, phase pressures are equal.
            is_in_equilibrium: ``default=False``

                Flag indicating that the given state is in equilibrium.

        Raises:
            PreconditionError: If the phase temperatures differ, and the energy module
                does not support different temperatures, or if they differ from the
                temperature of an isothermal energy module.
            InvalidInputError: If the fluid state violates closure conditions or
                contains invalid values (only checked if not in equilibrium).
            FlashConvergenceError: If the flash did not converge and the mapper is
                configured to raise in this case.
            NumericalDegeneracyError: If the flash diverged.

        Returns:
            The primary variables.

        """
        self.energy_module.check_temperatures(fluid_state)

        pv = self.new_primary_variables()

        if is_in_equilibrium:
            self._assign_naive(pv, fluid_state)
            return pv

        fluid_state.validate()
        global_molarities = fluid_state.global_molarities()
        logger.debug(f"Flashing fluid state with global molarities {global_molarities}")

        result = self.flash.solve(fluid_state, global_molarities, material_params)
        equilibrium_state = self._handle_result(result, "Flash")

        self._assign_naive(pv, equilibrium_state)
        return pv

    def _handle_result(self, result: SolverResult[_Value], name: str) -> _Value:
        """Returns the value of a converged result, or applies the policy
        ``'on_nonconvergence'`` to a non-converged one."""
        if isinstance(result, Converged):
            return result.value

        msg = (
            f"{name} did not converge after {result.iterations} iterations"
            + f" (residual {result.residual})."
        )
        if self.params["on_nonconvergence"] == "raise":
            raise FlashConvergenceError(msg, result)
        logger.warning(f"{msg} Using the last iterate.")
        return result.last_value

    def _assign_naive(self, pv: PrimaryVariables, fluid_state: FluidState) -> None:
        """Copies the primary variables from a fluid state without any checks."""
        idx = self.indices
        self.energy_module.set_primary_variable_temperatures(
            pv.values, idx, fluid_state
        )
        pv.values[idx.fug0_idx : idx.fug0_idx + idx.num_components] = fluid_state.fug[
            0
        ]
        pv.values[idx.p0_idx] = fluid_state.p[0]
        pv.values[idx.s0_idx : idx.s0_idx + idx.num_phases - 1] = fluid_state.sat[
            : idx.num_phases - 1
        ]

    def to_fluid_state(
        self,
        pv: PrimaryVariables,
        material_params: Optional[CapillaryPressureLaw] = None,
    ) -> FluidState:
        """Reconstructs the fluid state determined by primary variables.

        The last saturation is given by closure, the phase pressures by the capillary
        pressure law, and the compositions by ``x_ic = f_c / (phi_ic p_i)``, assuming
        equal fugacities in all phases. For fluid systems with composition dependent
        fugacity coefficients, this is solved with a fixed-point iteration.

        The fugacities of the returned state are the fugacities stored in the primary
        variables, for every phase.

        Parameters:
            pv: The primary variables.
            material_params: ``default=None``

                Capillary pressure law. If None, phase pressures are equal.

        Raises:
            InvalidInputError: If the primary variables do not fit the layout of this
                mapper, or contain invalid pressures or fugacities.
            FlashConvergenceError: If the fixed-point iteration for the compositions
                did not converge and the mapper is configured to raise in this case.

        Returns:
            A fluid state with all derived quantities evaluated.

        """
        if pv.indices != self.indices:
            raise InvalidInputError(
                f"Primary variables with layout {pv.indices} incompatible with"
                + f" {self.indices}."
            )
        if material_params is None:
            material_params = NoCapillaryPressure()

        fs = self.fluid_system
        nphase = self.indices.num_phases

        fug = np.array(pv.fugacities, dtype=float)
        p_ref = pv.pressure
        if not (np.isfinite(p_ref) and p_ref > 0.0):
            raise InvalidInputError(f"Invalid reference pressure {p_ref}.")
        if not np.all(np.isfinite(fug)) or np.any(fug < 0.0):
            raise InvalidInputError(f"Invalid fugacities {fug}.")

        state = fs.new_fluid_state()
        state.T = self.energy_module.temperatures_from_primary_variables(
            pv.values, self.indices
        )
        sat = np.zeros(nphase)
        sat[: nphase - 1] = pv.saturations
        sat[nphase - 1] = 1.0 - pv.saturations.sum()
        state.sat = sat
        state.p = material_params.phase_pressures(p_ref, sat)

        state.x = self._handle_result(
            self._compositions_from_fugacities(state.T, state.p, fug),
            "Compositions from fugacities",
        )
        fs.update_fluid_state(state, full=True)
        state.fug = np.tile(fug, (nphase, 1))
        return state

    def _compositions_from_fugacities(
        self, T: np.ndarray, p: np.ndarray, fug: np.ndarray
    ) -> SolverResult[np.ndarray]:
        """Fixed-point iteration ``x = f / (phi(x) p)`` per phase, starting from a
        uniform composition.

        Returns:
            The compositions with ``shape=(M, N)``. If the iteration did not converge
            for some phase, the last iterates of all phases, together with the largest
            change of a fraction in the last iteration.

        """
        fs = self.fluid_system
        nphase = self.indices.num_phases
        ncomp = self.indices.num_components
        tol = float(self.params["composition_tolerance"])
        max_iter = int(self.params["composition_max_iterations"])

        x = np.ones((nphase, ncomp)) / ncomp
        num_iter = 0
        converged = True
        residual = 0.0
        for j in range(nphase):
            for i in range(1, max_iter + 1):
                x_norm = normalize_rows(np.ascontiguousarray(x[j : j + 1]))[0]
                phis = fs.fugacity_coefficients(j, float(T[j]), float(p[j]), x_norm)
                x_new = fug / (phis * p[j])
                change = float(np.max(np.abs(x_new - x[j])))
                x[j] = x_new
                if change < tol:
                    num_iter = max(num_iter, i)
                    break
            else:
                logger.debug(
                    f"Compositions of phase {j} from fugacities did not converge"
                    + f" after {max_iter} iterations (change {change})."
                )
                num_iter = max_iter
                converged = False
                residual = max(residual, change)

        if not converged:
            return DidNotConverge(last_value=x, residual=residual, iterations=num_iter)
        return Converged(value=x, iterations=num_iter)
