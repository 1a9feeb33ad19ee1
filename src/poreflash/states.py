"""Module containing the data structure storing the thermodynamic state of a fluid in a
single control volume.

Note:
    The fluid state is the common currency of this package. It is produced by the outer
    assembly code (or by :meth:`~poreflash.fluid_systems.FluidSystem.update_fluid_state`),
    consumed by the flash and the primary variable mapper, and discarded afterwards.
    It has no identity across time steps.

All per-phase quantities are stored in arrays with the phase index along the first axis.
Per-phase and per-component quantities are stored in 2D arrays with ``shape=(M, N)``,
where ``M`` is the number of phases and ``N`` the number of components.

"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from ._core import PhysicalState
from .utils import InvalidInputError, PreconditionError, normalize_rows

__all__ = [
    "FluidState",
    "initialize_fluid_state",
]


@dataclass
class FluidState:
    """Dataclass for storing the thermodynamic state of a multiphase, multicomponent
    fluid in a control volume.

    Invariants of a physically consistent state:

    - the saturations sum up to 1,
    - the mole fractions of every present phase sum up to 1,
    - at equilibrium, the fugacities of a component are equal in all present phases.

    None of the invariants is enforced on assignment. Use :meth:`validate` to check
    the consistency of a given state.

    """

    T: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Temperature per phase in ``[K]``."""

    p: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Pressure per phase in ``[Pa]``."""

    sat: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Saturation per phase."""

    x: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    """Mole fractions of components (columns) per phase (rows).

    For absent phases, these are the unconstrained (extended) fractions returned by
    the flash. They need not sum up to 1.

    """

    rho: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Mass density per phase in ``[kg / m^3]``."""

    rho_molar: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Molar density per phase in ``[mol / m^3]``."""

    phis: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    """Fugacity coefficients of components (columns) per phase (rows)."""

    fug: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    """Fugacities of components (columns) per phase (rows) in ``[Pa]``."""

    h: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Specific enthalpy per phase in ``[J / kg]``."""

    mu: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Dynamic viscosity per phase in ``[Pa s]``."""

    phase_states: Sequence[PhysicalState] = field(default_factory=lambda: list())
    """Physical state of each phase."""

    @property
    def num_phases(self) -> int:
        """Number of phases, deduced from the size of :attr:`sat`."""
        return int(self.sat.shape[0])

    @property
    def num_components(self) -> int:
        """Number of components, deduced from the number of columns in :attr:`x`."""
        return int(self.x.shape[1])

    @property
    def x_normalized(self) -> np.ndarray:
        """Normalized values of fractions found in :attr:`x`.
        The normalization is performed per phase."""
        return normalize_rows(np.ascontiguousarray(self.x, dtype=np.float64))

    @property
    def v(self) -> np.ndarray:
        """Specific volume as the reciprocal of :attr:`rho`.

        Returns zeros, where :attr:`rho` is zero.

        """
        v = np.zeros_like(self.rho)
        # special treatment for zero values to avoid division-by zero errors
        idx = self.rho > 0.0
        v[idx] = 1.0 / self.rho[idx]
        return v

    @property
    def u(self) -> np.ndarray:
        """Specific internal energy per phase ``h - p / rho`` in ``[J / kg]``."""
        return self.h - self.p * self.v

    def molarities(self) -> np.ndarray:
        """Returns the molar concentration of each component in each phase in
        ``[mol / m^3]`` (product of molar density and mole fraction)."""
        return self.rho_molar[:, np.newaxis] * self.x

    def global_molarities(self) -> np.ndarray:
        """Returns the total concentration of each component in the control volume in
        ``[mol / m^3]``, i.e. the saturation-weighted sum of :meth:`molarities`."""
        return self.sat @ self.molarities()

    def check_isothermal(self) -> None:
        """Checks that all phases have identical temperature.

        Raises:
            PreconditionError: If the temperatures of the phases differ.

        """
        if self.T.size > 0 and not np.all(self.T == self.T[0]):
            raise PreconditionError(
                f"Phase temperatures differ ({self.T}), while a single temperature is"
                + " assumed."
            )

    def validate(self, tol: float = 1e-8) -> None:
        """Checks the shapes and the closure conditions of this state.

        Compositions are only checked for phases with a positive saturation.

        Parameters:
            tol: ``default=1e-8``

                Tolerance for the unity constraints.

        Raises:
            InvalidInputError: If the state has inconsistent shapes, non-finite or
                negative values, or violates the unity constraint of saturations or
                compositions.

        """
        nphase = self.sat.shape[0]
        if self.x.ndim != 2 or self.x.shape[0] != nphase:
            raise InvalidInputError(
                f"Expecting compositions of shape ({nphase}, N), got {self.x.shape}."
            )
        for name in ["T", "p", "rho_molar"]:
            if getattr(self, name).shape != (nphase,):
                raise InvalidInputError(
                    f"Expecting {name} of shape ({nphase},),"
                    + f" got {getattr(self, name).shape}."
                )

        for name in ["T", "p", "sat", "x", "rho_molar"]:
            values = getattr(self, name)
            if not np.all(np.isfinite(values)):
                raise InvalidInputError(f"Non-finite values in {name}: {values}")
            if np.any(values < 0.0):
                raise InvalidInputError(f"Negative values in {name}: {values}")
        if np.any(self.T <= 0.0):
            raise InvalidInputError(f"Non-positive temperatures: {self.T}")

        if abs(self.sat.sum() - 1.0) > tol:
            raise InvalidInputError(
                f"Saturations {self.sat} do not sum up to 1 (tolerance {tol})."
            )
        present = self.sat > 0.0
        x_sum = self.x.sum(axis=1)
        violating = present & (np.abs(x_sum - 1.0) > tol)
        if np.any(violating):
            raise InvalidInputError(
                f"Compositions of present phases {np.where(violating)[0]} do not sum"
                + f" up to 1 (sums {x_sum}, tolerance {tol})."
            )

    def copy(self) -> FluidState:
        """Returns a deep copy of this state."""
        return copy.deepcopy(self)

    def assign(self, other: FluidState) -> None:
        """Copies all values of ``other`` into this state."""
        for name in self.__dataclass_fields__:
            setattr(self, name, copy.deepcopy(getattr(other, name)))


def initialize_fluid_state(
    nphase: int,
    ncomp: int,
    phase_states: Optional[Sequence[PhysicalState]] = None,
) -> FluidState:
    """Creates a fluid state structure filled with zero values of defined size.

    Parameters:
        nphase: Number of phases.
        ncomp: Number of components.
        phase_states: ``default=None``

            Physical states per phase. If None, all phases are assigned a liquid state.

    Returns:
        A zero-initialized fluid state.

    """
    if phase_states is None:
        phase_states = [PhysicalState.liquid] * nphase
    assert len(phase_states) == nphase, "Need a physical state for every phase."

    return FluidState(
        T=np.zeros(nphase),
        p=np.zeros(nphase),
        sat=np.zeros(nphase),
        x=np.zeros((nphase, ncomp)),
        rho=np.zeros(nphase),
        rho_molar=np.zeros(nphase),
        phis=np.zeros((nphase, ncomp)),
        fug=np.zeros((nphase, ncomp)),
        h=np.zeros(nphase),
        mu=np.zeros(nphase),
        phase_states=list(phase_states),
    )
