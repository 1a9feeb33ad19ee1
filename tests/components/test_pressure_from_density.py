"""Tests the generic inversion of density correlations with respect to pressure."""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf


def test_linear_density() -> None:
    """For a linear correlation, the first Newton step is exact up to the error of the
    finite difference, and the iteration converges in a few steps."""

    def density(T: float, p: float) -> float:
        return 1000.0 + 1e-6 * (p - 1e5)

    result = pf.pressure_from_density(density, 300.0, 1000.5, p_initial=1e5)

    assert result.converged
    assert result.iterations <= 4
    assert np.isclose(result.value, 6e5, rtol=1e-8)


def test_non_convergence_is_reported() -> None:
    """If the iteration budget is exhausted, the last iterate and the last relative
    update are returned."""

    def density(T: float, p: float) -> float:
        return np.sqrt(p)

    result = pf.pressure_from_density(
        density, 300.0, 100.0, p_initial=1.0, max_iterations=2
    )

    assert not result.converged
    assert isinstance(result, pf.DidNotConverge)
    assert result.iterations == 2
    assert result.residual > 1e-9
    assert 1.0 < result.last_value < 1e4


def test_zero_derivative() -> None:
    """A density independent of pressure can not be inverted."""

    def density(T: float, p: float) -> float:
        return 1000.0

    with pytest.raises(pf.NumericalDegeneracyError):
        pf.pressure_from_density(density, 300.0, 900.0, p_initial=1e5)


def test_non_finite_derivative() -> None:
    def density(T: float, p: float) -> float:
        return np.inf

    with pytest.raises(pf.NumericalDegeneracyError):
        pf.pressure_from_density(density, 300.0, 900.0, p_initial=1e5)


@pytest.mark.parametrize(
    "T, rho, p_initial",
    [
        (300.0, -1.0, 1e5),
        (300.0, np.nan, 1e5),
        (0.0, 1000.0, 1e5),
        (-10.0, 1000.0, 1e5),
        (300.0, 1000.0, 0.0),
        (300.0, 1000.0, -1e5),
    ],
)
def test_invalid_input(T: float, rho: float, p_initial: float) -> None:
    with pytest.raises(pf.InvalidInputError):
        pf.pressure_from_density(lambda T, p: p, T, rho, p_initial)


def test_errors_are_compositional_modelling_errors() -> None:
    """Invalid input and degeneracy are also standard Python errors."""
    assert issubclass(pf.InvalidInputError, ValueError)
    assert issubclass(pf.NumericalDegeneracyError, ArithmeticError)
    assert issubclass(pf.InvalidInputError, pf.CompositionalModellingError)
    assert issubclass(pf.PreconditionError, pf.CompositionalModellingError)


def test_almost_zero_derivative() -> None:
    """A density which changes by less than 1e-12 relative if the pressure doubles is
    considered independent of pressure."""

    def density(T: float, p: float) -> float:
        return 900.0 + 1e-20 * p

    with pytest.raises(pf.NumericalDegeneracyError):
        pf.pressure_from_density(density, 300.0, 1000.0, p_initial=1e5)


def test_density_not_attained_at_positive_pressure() -> None:
    """Densities below the density at vanishing pressure lead to negative iterates,
    which are not returned as a result."""

    def density(T: float, p: float) -> float:
        return 1000.0 + 1e-6 * p

    with pytest.raises(pf.InvalidInputError):
        pf.pressure_from_density(density, 300.0, 990.0, p_initial=1e5)

    # the liquid water density at 293.15 K is above 998 kg/m^3 for all pressures
    with pytest.raises(pf.InvalidInputError):
        pf.H2O().liquid_pressure(293.15, 990.0)
