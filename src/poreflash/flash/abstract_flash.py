"""Module containing an abstraction layer for the flash procedure."""

from __future__ import annotations

import abc
import logging
from typing import Any, Optional

import numpy as np

from .. import config
from ..capillary_pressures import CapillaryPressureLaw, NoCapillaryPressure
from ..fluid_systems import FluidSystem
from ..states import FluidState
from ..utils import CompositionalModellingError, InvalidInputError, SolverResult
from .solvers import DEFAULT_SOLVER_PARAMETERS

__all__ = [
    "AbstractFlash",
]

logger = logging.getLogger(__name__)


class AbstractFlash(abc.ABC):
    """Abstract base class for flash algorithms defining the interface of flash objects.

    A flash computes a fluid state in thermodynamic and mechanical equilibrium, given
    the total concentration of each component in a control volume (global molarities),
    the capillary pressure law and an initial guess.

    Supported parameters (``params``):

    - ``'solver_params'``: Dictionary overriding entries in
      :data:`~poreflash.flash.solvers.DEFAULT_SOLVER_PARAMETERS`. Entries found in the
      ``[flash]`` section of the package configuration are applied before.
    - ``'initial_guess'``: ``'given'`` (default) to start from the given fluid state,
      or ``'heuristic'`` to compute an initial guess with
      :class:`~poreflash.flash.flash_initializer.FlashInitializer`.
    - ``'isothermal'``: ``True`` (default). If True, all phase temperatures of the
      given state must be equal, and the result has this temperature in all phases.
      If False, the phase temperatures of the given state are kept.

    Parameters:
        fluid_system: The fluid system whose equilibrium is computed.
        params: ``default=None``

            Flash parameters, see above.

    Raises:
        CompositionalModellingError: If the fluid system has less than 2 phases.

    """

    def __init__(
        self,
        fluid_system: FluidSystem,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__()

        if fluid_system.num_phases < 2:
            raise CompositionalModellingError(
                "Flash calculations require at least 2 phases, got"
                + f" {fluid_system.num_phases}."
            )

        if params is None:
            params = {}

        self.fluid_system: FluidSystem = fluid_system
        """The fluid system passed at instantiation."""

        self.params: dict[str, Any] = {
            "initial_guess": "given",
            "isothermal": True,
        }
        """Flash parameters given at instantiation, merged into the defaults."""
        self.params.update(params)

        if self.params["initial_guess"] not in ("given", "heuristic"):
            raise CompositionalModellingError(
                f"Unknown initial guess strategy {self.params['initial_guess']}."
            )

        self.solver_params: dict[str, float] = dict(DEFAULT_SOLVER_PARAMETERS)
        """A dictionary containing solver parameters.

        Note:
            Expects values which are convertible to floats.

        """

        for key, value in config.get("flash", {}).items():
            if key in self.solver_params:
                self.solver_params[key] = float(value)

        if "solver_params" in self.params:
            solver_params = self.params.get("solver_params")
            assert isinstance(solver_params, dict)
            self.solver_params.update(
                {key: float(val) for key, val in solver_params.items()}
            )

        logger.debug(f"Created {type(self).__name__} for {fluid_system}")

    def parse_flash_arguments(
        self,
        initial_state: FluidState,
        global_molarities: np.ndarray,
        material_params: Optional[CapillaryPressureLaw],
    ) -> tuple[FluidState, np.ndarray, CapillaryPressureLaw]:
        """Helper method to check the flash input and cast it into uniform formats.

        Raises:
            InvalidInputError: If the global molarities are negative, not finite, all
                zero or of wrong size, if the initial state has the wrong size, or if
                the capillary pressure law does not support the number of phases.
            PreconditionError: If ``'isothermal'`` is requested and the phase
                temperatures of the initial state differ.

        Returns:
            A copy of the initial state, the global molarities as a float array and
            the capillary pressure law (:class:`NoCapillaryPressure` if None was
            given).

        """
        nphase = self.fluid_system.num_phases
        ncomp = self.fluid_system.num_components

        C = np.array(global_molarities, dtype=float)
        if C.shape != (ncomp,):
            raise InvalidInputError(
                f"Expecting {ncomp} global molarities, got shape {C.shape}."
            )
        if not np.all(np.isfinite(C)):
            raise InvalidInputError(f"Non-finite global molarities {C}.")
        if np.any(C < 0.0):
            raise InvalidInputError(f"Negative global molarities {C}.")
        if not np.any(C > 0.0):
            raise InvalidInputError("Global molarities are all zero.")

        if initial_state.x.shape != (nphase, ncomp) or initial_state.sat.shape != (
            nphase,
        ):
            raise InvalidInputError(
                f"Initial state of size {initial_state.x.shape} incompatible with"
                + f" {self.fluid_system}."
            )
        if not np.all(np.isfinite(initial_state.T)) or np.any(initial_state.T <= 0.0):
            raise InvalidInputError(f"Invalid temperatures {initial_state.T}.")
        if self.params["isothermal"]:
            initial_state.check_isothermal()

        if material_params is None:
            material_params = NoCapillaryPressure()
        if material_params.num_phases not in (None, nphase):
            raise InvalidInputError(
                f"{type(material_params).__name__} defined for"
                + f" {material_params.num_phases} phases, fluid has {nphase}."
            )

        return initial_state.copy(), C, material_params

    @abc.abstractmethod
    def solve(
        self,
        initial_state: FluidState,
        global_molarities: np.ndarray,
        material_params: Optional[CapillaryPressureLaw] = None,
    ) -> SolverResult[FluidState]:
        """Abstract method for performing a flash procedure.

        Parameters:
            initial_state: Initial guess for the equilibrium state. It must contain
                temperatures, pressures, saturations and compositions. It is not
                modified.
            global_molarities: ``shape=(N,)``

                Total concentration of each component in ``[mol / m^3]``.
            material_params: ``default=None``

                Capillary pressure law. If None, phase pressures are equal.

        Returns:
            :class:`~poreflash.utils.Converged` with the equilibrium state, or
            :class:`~poreflash.utils.DidNotConverge` with the last iterate.

        """
        ...
