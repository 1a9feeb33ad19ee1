"""Module testing utility functions, result types and the package configuration."""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf


def test_normalize_rows() -> None:
    x = np.array([[1.0, 3.0], [0.0, 0.0], [-1.0, 0.5]])
    x_n = pf.normalize_rows(x)

    assert np.allclose(x_n[0], [0.25, 0.75], rtol=0.0, atol=1e-15)
    # rows with non-positive sum are replaced by a uniform distribution
    assert np.all(x_n[1] == 0.5)
    assert np.all(x_n[2] == 0.5)


def test_result_types() -> None:
    converged = pf.Converged(value=1.0, iterations=3)
    not_converged = pf.DidNotConverge(last_value=2.0, residual=0.1, iterations=5)

    assert converged.converged
    assert not not_converged.converged
    assert converged.value == 1.0
    assert not_converged.last_value == 2.0

    # results are immutable
    with pytest.raises(AttributeError):
        converged.value = 2.0  # type:ignore[misc]


def test_flash_convergence_error_carries_result() -> None:
    result = pf.DidNotConverge(last_value=None, residual=1.0, iterations=10)
    error = pf.FlashConvergenceError("message", result)
    assert error.result is result
    assert isinstance(error, pf.CompositionalModellingError)


def test_config_is_read_only() -> None:
    with pytest.raises(TypeError):
        pf.config["flash"] = {}  # type:ignore[index]
