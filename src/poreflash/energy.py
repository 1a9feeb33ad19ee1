"""Energy modules, deciding how temperatures are stored in the vector of primary
variables.

- :class:`IsothermalEnergyModule`: The temperature is a configuration constant.
  No slots in the primary variables are used.
- :class:`NonIsothermalEnergyModule`: One shared temperature slot, or one slot per
  phase if kinetic energy transfer between phases is modelled (phases may have
  different temperatures).

"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

import numpy as np

from .states import FluidState
from .utils import InvalidInputError, PreconditionError

if TYPE_CHECKING:
    from .primary_variables import PrimaryVariableIndices

__all__ = [
    "EnergyModule",
    "IsothermalEnergyModule",
    "NonIsothermalEnergyModule",
]


class EnergyModule(abc.ABC):
    """Base class for energy modules."""

    @property
    def allows_phase_temperatures(self) -> bool:
        """True, if the phases may have different temperatures."""
        return False

    def check_temperatures(self, fluid_state: FluidState) -> None:
        """Checks that the temperatures of a fluid state are compatible with this
        module.

        Raises:
            PreconditionError: If the phase temperatures differ and the module does
                not allow different phase temperatures.

        """
        if not self.allows_phase_temperatures:
            fluid_state.check_isothermal()

    @abc.abstractmethod
    def num_temperature_slots(self, num_phases: int) -> int:
        """Number of temperature slots in the primary variables."""
        ...

    @abc.abstractmethod
    def set_primary_variable_temperatures(
        self,
        values: np.ndarray,
        indices: PrimaryVariableIndices,
        fluid_state: FluidState,
    ) -> None:
        """Writes the temperatures of a fluid state into the primary variables.

        Parameters:
            values: ``shape=(num_eq,)``

                Values of the primary variables. Modified in place.
            indices: Layout of the primary variables.
            fluid_state: The fluid state providing the temperatures.

        """
        ...

    @abc.abstractmethod
    def temperatures_from_primary_variables(
        self, values: np.ndarray, indices: PrimaryVariableIndices
    ) -> np.ndarray:
        """Returns the temperature of each phase, ``shape=(M,)``."""
        ...


class IsothermalEnergyModule(EnergyModule):
    """Energy module for isothermal problems.

    Parameters:
        temperature: The constant temperature of the problem in ``[K]``.

    Raises:
        InvalidInputError: If the temperature is not positive.

    """

    def __init__(self, temperature: float) -> None:
        if not (np.isfinite(temperature) and temperature > 0.0):
            raise InvalidInputError(f"Invalid temperature {temperature}.")
        self.temperature: float = float(temperature)
        """The configured temperature."""

    def num_temperature_slots(self, num_phases: int) -> int:
        return 0

    def check_temperatures(self, fluid_state: FluidState) -> None:
        """Checks in addition that the temperature of the fluid state is the
        configured temperature.

        Raises:
            PreconditionError: If the phase temperatures differ from each other or
                from :attr:`temperature`.

        """
        super().check_temperatures(fluid_state)
        if np.any(fluid_state.T != self.temperature):
            raise PreconditionError(
                f"Fluid state temperatures {fluid_state.T} differ from the isothermal"
                + f" temperature {self.temperature}."
            )

    def set_primary_variable_temperatures(
        self,
        values: np.ndarray,
        indices: PrimaryVariableIndices,
        fluid_state: FluidState,
    ) -> None:
        """Writes nothing. The temperature is a configuration constant, which is
        checked against the fluid state with :meth:`check_temperatures`."""
        self.check_temperatures(fluid_state)

    def temperatures_from_primary_variables(
        self, values: np.ndarray, indices: PrimaryVariableIndices
    ) -> np.ndarray:
        return np.full(indices.num_phases, self.temperature)


class NonIsothermalEnergyModule(EnergyModule):
    """Energy module storing temperatures as primary variables.

    Parameters:
        kinetic: ``default=False``

            If True, one temperature per phase is stored. Otherwise a single
            temperature shared by all phases, taken from the reference phase.

    """

    def __init__(self, kinetic: bool = False) -> None:
        self.kinetic: bool = bool(kinetic)
        """Flag for per-phase temperatures."""

    @property
    def allows_phase_temperatures(self) -> bool:
        return self.kinetic

    def num_temperature_slots(self, num_phases: int) -> int:
        return num_phases if self.kinetic else 1

    def set_primary_variable_temperatures(
        self,
        values: np.ndarray,
        indices: PrimaryVariableIndices,
        fluid_state: FluidState,
    ) -> None:
        idx = indices.temperature_idx
        if self.kinetic:
            values[idx : idx + indices.num_phases] = fluid_state.T
        else:
            values[idx] = fluid_state.T[0]

    def temperatures_from_primary_variables(
        self, values: np.ndarray, indices: PrimaryVariableIndices
    ) -> np.ndarray:
        idx = indices.temperature_idx
        if self.kinetic:
            return np.array(values[idx : idx + indices.num_phases], dtype=float)
        return np.full(indices.num_phases, float(values[idx]))
