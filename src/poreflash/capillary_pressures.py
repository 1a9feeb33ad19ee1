"""Capillary pressure laws acting as material law parameters for the flash and the
primary variable mapper.

A capillary pressure law returns for given saturations one value ``pc_a`` per phase,
such that the phase pressures are given by

.. math::

    p_a = p_0 + pc_a - pc_0,

where the phase with index 0 is the reference phase.

The two-phase laws assume the wetting phase to be the reference phase (index 0).
They return ``[0, pc(S_w)]``, i.e. the pressure of the non-wetting phase is
``p_n = p_w + pc``.

Laws are immutable. They are passed by reference to the flash and the mapper, which
never alter them.

"""

from __future__ import annotations

import abc
from dataclasses import dataclass

import numpy as np

from .utils import InvalidInputError

__all__ = [
    "CapillaryPressureLaw",
    "NoCapillaryPressure",
    "LinearCapillaryPressure",
    "RegularizedBrooksCorey",
    "RegularizedVanGenuchten",
]


@dataclass(frozen=True)
class CapillaryPressureLaw(abc.ABC):
    """Base class for capillary pressure laws."""

    @property
    @abc.abstractmethod
    def num_phases(self) -> int | None:
        """Number of phases the law is defined for. None if any number is
        supported."""
        ...

    @abc.abstractmethod
    def capillary_pressures(self, saturations: np.ndarray) -> np.ndarray:
        """Computes the capillary pressure of every phase.

        Parameters:
            saturations: ``shape=(M,)``

                Saturations of all phases.

        Returns:
            An array with ``shape=(M,)``. The pressure of phase ``a`` is
            ``p_0 + pc[a] - pc[0]``.

        """
        ...

    def phase_pressures(self, p_ref: float, saturations: np.ndarray) -> np.ndarray:
        """Returns the phase pressures, given the pressure of the reference phase and
        the saturations of all phases."""
        pc = self.capillary_pressures(saturations)
        return p_ref + (pc - pc[0])

    def _check_num_phases(self, saturations: np.ndarray) -> None:
        if self.num_phases is not None and saturations.shape != (self.num_phases,):
            raise InvalidInputError(
                f"{type(self).__name__} requires {self.num_phases} saturations,"
                + f" got {saturations.shape}."
            )


@dataclass(frozen=True)
class NoCapillaryPressure(CapillaryPressureLaw):
    """All phases have equal pressures. Supports any number of phases."""

    @property
    def num_phases(self) -> int | None:
        return None

    def capillary_pressures(self, saturations: np.ndarray) -> np.ndarray:
        return np.zeros(np.asarray(saturations).shape[0])


@dataclass(frozen=True)
class _TwoPhaseLaw(CapillaryPressureLaw):
    """Two-phase law in terms of the effective wetting saturation."""

    residual_saturation_w: float = 0.0
    """Residual saturation of the wetting phase."""

    residual_saturation_n: float = 0.0
    """Residual saturation of the non-wetting phase."""

    def __post_init__(self) -> None:
        s_wr = self.residual_saturation_w
        s_nr = self.residual_saturation_n
        if s_wr < 0.0 or s_nr < 0.0 or s_wr + s_nr >= 1.0:
            raise InvalidInputError(
                f"Invalid residual saturations {s_wr} (wetting) and {s_nr}"
                + " (non-wetting)."
            )

    @property
    def num_phases(self) -> int | None:
        return 2

    def effective_saturation(self, s_w: float) -> float:
        """Effective saturation of the wetting phase, not bounded to ``[0, 1]``."""
        s_wr = self.residual_saturation_w
        return (s_w - s_wr) / (1.0 - s_wr - self.residual_saturation_n)

    @abc.abstractmethod
    def pc(self, s_we: float) -> float:
        """Capillary pressure as a function of the effective wetting saturation."""
        ...

    def capillary_pressures(self, saturations: np.ndarray) -> np.ndarray:
        saturations = np.asarray(saturations, dtype=float)
        self._check_num_phases(saturations)
        return np.array([0.0, self.pc(self.effective_saturation(saturations[0]))])


@dataclass(frozen=True)
class LinearCapillaryPressure(_TwoPhaseLaw):
    """Linear capillary pressure law

    .. math::

        pc = pc_e + (1 - S_{we}) (pc_{max} - pc_e).

    The law is linear for all saturations, no regularization is required.

    """

    entry_pressure: float = 0.0
    """Capillary pressure at full wetting saturation."""

    max_pressure: float = 0.0
    """Capillary pressure at residual wetting saturation."""

    def pc(self, s_we: float) -> float:
        return self.entry_pressure + (1.0 - s_we) * (
            self.max_pressure - self.entry_pressure
        )


@dataclass(frozen=True)
class RegularizedBrooksCorey(_TwoPhaseLaw):
    """Brooks-Corey law ``pc = pc_e S_we^(-1 / lambda)``.

    Below ``low_threshold`` and above 1, the law is extended linearly with the tangent
    at the respective point.

    """

    entry_pressure: float = 1.0e4
    """Entry pressure in ``[Pa]``."""

    lambda_: float = 2.0
    """Pore size distribution index."""

    low_threshold: float = 0.01
    """Effective saturation below which the law is regularized."""

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.entry_pressure <= 0.0 or self.lambda_ <= 0.0:
            raise InvalidInputError("Entry pressure and lambda must be positive.")
        if not (0.0 < self.low_threshold < 1.0):
            raise InvalidInputError("Threshold must be in (0, 1).")

    def _pc(self, s_we: float) -> float:
        return self.entry_pressure * s_we ** (-1.0 / self.lambda_)

    def _dpc(self, s_we: float) -> float:
        return (
            -self.entry_pressure
            / self.lambda_
            * s_we ** (-1.0 / self.lambda_ - 1.0)
        )

    def pc(self, s_we: float) -> float:
        if s_we < self.low_threshold:
            s = self.low_threshold
            return self._pc(s) + self._dpc(s) * (s_we - s)
        elif s_we > 1.0:
            return self._pc(1.0) + self._dpc(1.0) * (s_we - 1.0)
        return self._pc(s_we)


@dataclass(frozen=True)
class RegularizedVanGenuchten(_TwoPhaseLaw):
    """Van Genuchten law ``pc = (S_we^(-1/m) - 1)^(1/n) / alpha``, ``m = 1 - 1/n``.

    Below ``low_threshold``, the law is extended with the tangent. Above
    ``high_threshold``, it is replaced by the straight line connecting the value at the
    threshold with zero capillary pressure at ``S_we = 1``, and extended beyond.

    """

    alpha: float = 1.0e-4
    """Shape parameter in ``[1 / Pa]``."""

    n: float = 2.0
    """Shape parameter, larger than 1."""

    low_threshold: float = 0.01
    """Effective saturation below which the law is regularized."""

    high_threshold: float = 0.99
    """Effective saturation above which the law is regularized."""

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.alpha <= 0.0 or self.n <= 1.0:
            raise InvalidInputError("Require alpha > 0 and n > 1.")
        if not (0.0 < self.low_threshold < self.high_threshold < 1.0):
            raise InvalidInputError("Require 0 < low threshold < high threshold < 1.")

    @property
    def m(self) -> float:
        """Shape parameter ``1 - 1/n``."""
        return 1.0 - 1.0 / self.n

    def _pc(self, s_we: float) -> float:
        return (s_we ** (-1.0 / self.m) - 1.0) ** (1.0 / self.n) / self.alpha

    def _dpc(self, s_we: float) -> float:
        m, n = self.m, self.n
        return (
            (s_we ** (-1.0 / m) - 1.0) ** (1.0 / n - 1.0)
            / (n * self.alpha)
            * (-1.0 / m)
            * s_we ** (-1.0 / m - 1.0)
        )

    def pc(self, s_we: float) -> float:
        if s_we < self.low_threshold:
            s = self.low_threshold
            return self._pc(s) + self._dpc(s) * (s_we - s)
        elif s_we > self.high_threshold:
            s = self.high_threshold
            return self._pc(s) * (1.0 - s_we) / (1.0 - s)
        return self._pc(s_we)
