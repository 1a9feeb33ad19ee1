"""Module containing a flash based on nonlinear complementarity problems (NCP).

The unknowns of the flash are the pressure of the reference phase, the saturations of
all but the last phase, and the (extended) mole fractions of all components in all
phases. The last saturation is given by closure, the phase pressures by the
capillary pressure law.

With ``M`` phases and ``N`` components, the ``M * (N + 1)`` equations are

- ``N`` mass balances: ``sum_i S_i c_i x_ic - C_c = 0``,
- ``(M - 1) * N`` fugacity equalities: ``ln f_ic - ln f_0c = 0`` for ``i > 0``,
- ``M`` complementarity conditions: ``min(S_i, 1 - sum_c x_ic) = 0``.

The complementarity conditions allow phases to appear and disappear during the
iterations. A phase is considered present if ``S_i > 1 - sum_c x_ic``. The set of
present phases (:class:`ActivePhaseSet`) selects the branch of the ``min`` function
which is linearized in the semi-smooth Newton method.

The logarithmic form of the fugacity equalities weighs all components equally,
independent of the magnitude of their fugacities. Newton updates are limited such that
the pressure changes by at most a fraction of its value and mole fractions stay
strictly positive.

References:
    Lauser, A. et al. (2011). A new approach for phase transitions in miscible
    multi-phase flow in porous media. Advances in Water Resources, 34.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from ..capillary_pressures import CapillaryPressureLaw
from ..fluid_systems import FluidSystem
from ..states import FluidState
from ..utils import (
    Converged,
    DidNotConverge,
    NumericalDegeneracyError,
    SolverResult,
)
from .abstract_flash import AbstractFlash
from .flash_initializer import FlashInitializer
from .solvers import central_difference_jacobian, newton

__all__ = [
    "ActivePhaseSet",
    "NcpFlash",
]

logger = logging.getLogger(__name__)

_MIN_FRACTION: float = 1e-12
"""Lower bound of mole fractions in the initial guess and projected iterates."""


@dataclass(frozen=True)
class ActivePhaseSet:
    """The set of present phases, selecting the branch of each complementarity
    condition.

    For a present phase, the condition is ``1 - sum_c x_ic = 0``, for an absent phase
    ``S_i = 0``.

    """

    present: tuple[bool, ...]
    """Flag per phase indicating if the phase is present."""

    @classmethod
    def from_values(cls, sat: np.ndarray, x_sum: np.ndarray) -> ActivePhaseSet:
        """Determines the present phases from saturations and sums of fractions."""
        return cls(tuple(bool(b) for b in sat > 1.0 - x_sum))

    def complementarity(self, sat: np.ndarray, x_sum: np.ndarray) -> np.ndarray:
        """Evaluates the complementarity conditions on the selected branches."""
        return np.where(np.array(self.present), 1.0 - x_sum, sat)

    def __str__(self) -> str:
        return str([i for i, p in enumerate(self.present) if p])


@dataclass(frozen=True)
class _NcpProblem:
    """Data of a single flash problem."""

    T: np.ndarray
    C: np.ndarray
    law: CapillaryPressureLaw
    p_scale: float
    c_scale: float


class NcpFlash(AbstractFlash):
    """Flash for a given total concentration of each component, temperature and
    capillary pressure law, solving the NCP formulation with a semi-smooth Newton
    method.

    The Jacobian is approximated with central differences on the branch selected by
    the active phase set at the current iterate. Iterates are projected such that
    fractions and the independent saturations stay in ``[0, 1]``. Newton updates are
    shortened by :meth:`max_step` before the line search.

    See :class:`~poreflash.flash.abstract_flash.AbstractFlash` for the parameters.

    """

    def __init__(
        self,
        fluid_system: FluidSystem,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(fluid_system, params)

        self.initializer: FlashInitializer = FlashInitializer(fluid_system)
        """Initializer used if a heuristic initial guess is requested."""

    @property
    def num_unknowns(self) -> int:
        """Number of unknowns ``M * (N + 1)``."""
        fs = self.fluid_system
        return fs.num_phases * (fs.num_components + 1)

    def unknowns_from_state(self, state: FluidState) -> np.ndarray:
        """Assembles the vector of unknowns from a fluid state.

        The order is reference pressure, first ``M - 1`` saturations, and mole
        fractions stored phase by phase.

        """
        nphase = self.fluid_system.num_phases
        return np.concatenate(
            [
                np.array([state.p[0]], dtype=float),
                np.asarray(state.sat[: nphase - 1], dtype=float),
                np.asarray(state.x, dtype=float).ravel(),
            ]
        )

    def state_from_unknowns(
        self, u: np.ndarray, problem: _NcpProblem, full: bool = False
    ) -> FluidState:
        """Creates a fluid state from the unknowns and evaluates its properties.

        Parameters:
            u: Vector of unknowns.
            problem: Data of the flash problem.
            full: ``default=False``

                Passed to :meth:`~poreflash.fluid_systems.FluidSystem.update_fluid_state`.

        """
        fs = self.fluid_system
        nphase = fs.num_phases
        ncomp = fs.num_components

        sat = np.zeros(nphase)
        sat[: nphase - 1] = u[1:nphase]
        sat[nphase - 1] = 1.0 - u[1:nphase].sum()

        state = fs.new_fluid_state()
        state.T = problem.T.copy()
        state.sat = sat
        state.x = u[nphase:].reshape((nphase, ncomp)).copy()
        state.p = problem.law.phase_pressures(float(u[0]), sat)
        fs.update_fluid_state(state, full=full)
        return state

    def active_phases(self, u: np.ndarray) -> ActivePhaseSet:
        """Returns the set of present phases at given unknowns."""
        fs = self.fluid_system
        nphase = fs.num_phases
        sat = np.zeros(nphase)
        sat[: nphase - 1] = u[1:nphase]
        sat[nphase - 1] = 1.0 - u[1:nphase].sum()
        x_sum = u[nphase:].reshape((nphase, fs.num_components)).sum(axis=1)
        return ActivePhaseSet.from_values(sat, x_sum)

    def residual(
        self,
        u: np.ndarray,
        problem: _NcpProblem,
        active: Optional[ActivePhaseSet] = None,
    ) -> np.ndarray:
        """Evaluates the scaled residual of the flash equations.

        Parameters:
            u: Vector of unknowns.
            problem: Data of the flash problem.
            active: ``default=None``

                If given, the complementarity conditions are evaluated on the branches
                selected by it. Otherwise the ``min`` function is evaluated.

        Raises:
            NumericalDegeneracyError: If a fugacity is not positive or not finite.

        Returns:
            Mass balances scaled with the sum of global molarities, differences of
            logarithmic fugacities, and the complementarity conditions.

        """
        state = self.state_from_unknowns(u, problem)

        if not np.all(np.isfinite(state.fug)) or np.any(state.fug <= 0.0):
            raise NumericalDegeneracyError(
                f"Non-positive fugacities {state.fug} at pressures {state.p}."
            )

        mass = (state.sat @ state.molarities() - problem.C) / problem.c_scale
        ln_fug = np.log(state.fug)
        fug = (ln_fug[1:] - ln_fug[0]).ravel()
        x_sum = state.x.sum(axis=1)
        if active is None:
            ncp = np.minimum(state.sat, 1.0 - x_sum)
        else:
            ncp = active.complementarity(state.sat, x_sum)

        return np.concatenate([mass, fug, ncp])

    def jacobian(self, u: np.ndarray, problem: _NcpProblem) -> np.ndarray:
        """Approximates the generalized Jacobian of :meth:`residual` at ``u``, with
        the complementarity branches fixed by the active phase set at ``u``.

        Pressure and fractions are perturbed relative to their value, such that the
        perturbed arguments stay positive.

        """
        nphase = self.fluid_system.num_phases
        active = self.active_phases(u)
        steps = self.solver_params["jacobian_step"] * np.abs(u)
        steps[1:nphase] = self.solver_params["jacobian_step"]
        return central_difference_jacobian(
            lambda v: self.residual(v, problem, active), u, steps
        )

    def project(self, u: np.ndarray, problem: _NcpProblem) -> np.ndarray:
        """Projects unknowns onto the admissible set: positive reference pressure,
        independent saturations in ``[0, 1]`` and fractions in ``(0, 1]``."""
        nphase = self.fluid_system.num_phases
        v = u.copy()
        v[0] = max(v[0], 1e-6 * problem.p_scale)
        v[1:nphase] = np.clip(v[1:nphase], 0.0, 1.0)
        v[nphase:] = np.clip(v[nphase:], _MIN_FRACTION, 1.0)
        # the last saturation must not become negative by more than the others
        s_sum = v[1:nphase].sum()
        if s_sum > 1.0:
            v[1:nphase] /= s_sum
        return v

    def max_step(self, u: np.ndarray, du: np.ndarray) -> float:
        """Returns the largest step-size in ``(0, 1]`` for the Newton update ``du``,
        such that the pressure changes by at most ``'max_pressure_change'`` of its
        value and no fraction decreases by more than ``'fraction_to_boundary'`` of its
        value."""
        nphase = self.fluid_system.num_phases
        step = 1.0

        dp_max = self.solver_params["max_pressure_change"] * u[0]
        if abs(du[0]) > dp_max:
            step = dp_max / abs(du[0])

        x = u[nphase:]
        dx = du[nphase:]
        decreasing = dx < 0.0
        if np.any(decreasing):
            tau = self.solver_params["fraction_to_boundary"]
            step = min(step, float(np.min(tau * x[decreasing] / -dx[decreasing])))

        return step

    def solve(
        self,
        initial_state: FluidState,
        global_molarities: np.ndarray,
        material_params: Optional[CapillaryPressureLaw] = None,
    ) -> SolverResult[FluidState]:
        """Solves the flash problem.

        See :meth:`~poreflash.flash.abstract_flash.AbstractFlash.solve`.

        Raises:
            InvalidInputError: See
                :meth:`~poreflash.flash.abstract_flash.AbstractFlash.parse_flash_arguments`.
            PreconditionError: Same as above.
            NumericalDegeneracyError: If the Newton method diverged, i.e. the Jacobian
                was singular or the update not finite.

        """
        state, C, law = self.parse_flash_arguments(
            initial_state, global_molarities, material_params
        )

        if self.params["isothermal"]:
            state.T = np.full(self.fluid_system.num_phases, float(state.T[0]))

        if self.params["initial_guess"] == "heuristic":
            state = self.initializer.guess(state, C, law)

        p_scale = abs(float(state.p[0]))
        if p_scale == 0.0 or not np.isfinite(p_scale):
            p_scale = 1e5
        problem = _NcpProblem(
            T=state.T.copy(), C=C, law=law, p_scale=p_scale, c_scale=float(C.sum())
        )

        u_0 = self.project(self.unknowns_from_state(state), problem)
        active_0 = self.active_phases(u_0)
        logger.debug(f"Flash initial active phase set: {active_0}")

        last_active = [active_0]

        def _log_switch(i: int, u: np.ndarray) -> None:
            active = self.active_phases(u)
            if active != last_active[0]:
                logger.info(
                    f"Flash iteration {i}: active phases switched from"
                    + f" {last_active[0]} to {active}"
                )
                last_active[0] = active

        exitcode, num_iter, u, res = newton(
            u_0,
            lambda v: self.residual(v, problem),
            lambda v: self.jacobian(v, problem),
            self.solver_params,
            project=lambda v: self.project(v, problem),
            callback=_log_switch,
            max_step=self.max_step,
        )

        if exitcode == 2:
            raise NumericalDegeneracyError(
                f"Flash diverged after {num_iter} iterations (residual {res})."
            )

        result = self.state_from_unknowns(u, problem, full=True)

        if exitcode == 0:
            logger.debug(f"Flash converged after {num_iter} iterations.")
            return Converged(value=result, iterations=num_iter)

        logger.info(
            f"Flash did not converge after {num_iter} iterations (residual {res})."
        )
        return DidNotConverge(last_value=result, residual=res, iterations=num_iter)
