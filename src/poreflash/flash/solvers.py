"""Module containing the numerical methods used by the flash: a damped (semi-smooth)
Newton method with Armijo line search and the central difference approximation of
Jacobians.

The Newton method returns exit codes, which are universal for all procedures:

- 0: converged,
- 1: maximal number of iterations reached,
- 2: diverged (non-finite values in the update or a singular Jacobian).

"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

__all__ = [
    "DEFAULT_SOLVER_PARAMETERS",
    "l2_potential",
    "armijo_line_search",
    "central_difference_jacobian",
    "newton",
]

logger = logging.getLogger(__name__)


DEFAULT_SOLVER_PARAMETERS: dict[str, float] = {
    "tolerance": 1e-8,
    "max_iterations": 150.0,
    "armijo_kappa": 0.4,
    "armijo_rho": 0.5,
    "armijo_j_max": 30.0,
    "armijo_return_max": 1.0,
    "jacobian_step": 1e-6,
    "max_pressure_change": 0.5,
    "fraction_to_boundary": 0.99,
}
"""Default solver parameters.

- ``'tolerance': 1e-8``: tolerance for the L2-norm of the residual.
- ``'max_iterations': 150``: maximal number of Newton iterations.
- ``'armijo_kappa': 0.4``: sufficient decrease parameter of the Armijo condition.
- ``'armijo_rho': 0.5``: step-size reduction factor of the line search.
- ``'armijo_j_max': 30``: maximal number of line search iterations.
- ``'armijo_return_max': 1``: If non-zero, the smallest step-size is used if the
  line search was not successful, otherwise the full step is taken.
- ``'jacobian_step': 1e-6``: relative step-size of the central differences.
- ``'max_pressure_change': 0.5``: maximal relative change of the pressure in a
  Newton update.
- ``'fraction_to_boundary': 0.99``: maximal relative decrease of a mole fraction
  in a Newton update, keeping fractions strictly positive.

Note:
    Values are floats to be storable in a single-typed dictionary.

"""


def l2_potential(vec: np.ndarray) -> float:
    """Auxiliary function implementing the potential function which is to be
    minimized in the line search. Currently it uses the least-squares-potential.

    Parameters:
        vec: Vector for which the potential should be computed

    Returns:
        Value of potential.

    """
    return float(np.dot(vec, vec) / 2)


def armijo_line_search(
    X_k: np.ndarray,
    DX: np.ndarray,
    F: Callable[[np.ndarray], np.ndarray],
    pot_k: float,
    params: dict[str, float],
    project: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    newton_iter: int = 0,
    max_step: float = 1.0,
) -> float:
    """Performs the Armijo line-search for a given function ``F(X)``
    and a preliminary update ``DX`` starting from ``X_k``,
    using the least-square potential.

    Trial points for which ``F`` can not be evaluated or returns non-finite values are
    treated as not reducing the potential.

    Parameters:
        X_k: Last iterate.
        DX: Preliminary update to iterate.
        F: A callable representing the function for which a potential-reducing
            step-size should be found.
        pot_k: Potential of ``F`` at ``X_k``.
        params: Solver parameters, see :data:`DEFAULT_SOLVER_PARAMETERS`.
        project: ``default=None``

            Optional projection of trial points onto the admissible set.
        newton_iter: ``default=0``

            Current Newton iteration, used for logging.
        max_step: ``default=1.``

            Largest admissible step-size, the starting point of the line search.

    Returns:
        The step-size resulting from the line-search algorithm.

    """
    kappa = params["armijo_kappa"]
    rho = params["armijo_rho"]
    j_max = int(params["armijo_j_max"])
    return_max = bool(params["armijo_return_max"])

    msg = f"Newton iteration {newton_iter}"
    rho_j = max_step

    for j in range(0, j_max + 1):
        rho_j = max_step * rho**j
        X_j = X_k + rho_j * DX
        if project is not None:
            X_j = project(X_j)

        try:
            pot_j = l2_potential(F(X_j))
        except (ArithmeticError, ValueError) as err:
            logger.debug(f"{msg} ; Armijo search j={j}: evaluation failed ({err})")
            continue
        if not np.isfinite(pot_j):
            logger.debug(f"{msg} ; Armijo search j={j}: non-finite potential")
            continue

        logger.debug(f"{msg} ; Armijo search j={j}: pot = {pot_j}")

        if pot_j <= (1 - 2 * kappa * rho_j) * pot_k:
            return rho_j

    logger.debug(f"{msg} ; Armijo search: reached max iter")
    return rho_j if return_max else max_step


def central_difference_jacobian(
    G: Callable[[np.ndarray], np.ndarray],
    X: np.ndarray,
    steps: np.ndarray,
) -> np.ndarray:
    """Approximates the Jacobian of ``G`` at ``X`` column-wise with central
    differences.

    Parameters:
        G: A vector-valued function.
        X: ``shape=(n,)``

            Point of linearization.
        steps: ``shape=(n,)``

            Step-sizes per argument.

    Returns:
        The Jacobian with ``shape=(m, n)``, where ``m`` is the size of ``G(X)``.

    """
    columns = []
    for i in range(X.shape[0]):
        e = np.zeros_like(X)
        e[i] = steps[i]
        columns.append((G(X + e) - G(X - e)) / (2 * steps[i]))
    return np.array(columns).T


def newton(
    X_0: np.ndarray,
    F: Callable[[np.ndarray], np.ndarray],
    DF: Callable[[np.ndarray], np.ndarray],
    params: dict[str, float],
    project: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    callback: Optional[Callable[[int, np.ndarray], None]] = None,
    max_step: Optional[Callable[[np.ndarray, np.ndarray], float]] = None,
) -> tuple[int, int, np.ndarray, float]:
    """Performs damped Newton iterations using the Jacobian ``DF`` and residual ``F``,
    until (possibly) the L2-norm of the residual reaches the convergence criterion.

    For semi-smooth problems, ``DF`` is expected to return an element of the
    generalized Jacobian at the given point.

    Parameters:
        X_0: Starting point for iterations.
        F: Residual function.
        DF: Jacobian of ``F``.
        params: Solver parameters, see :data:`DEFAULT_SOLVER_PARAMETERS`.
        project: ``default=None``

            Optional projection of iterates onto the admissible set.
        callback: ``default=None``

            Called with the iteration number and the new iterate after each update.
        max_step: ``default=None``

            Optional callable returning the largest admissible step-size in
            ``(0, 1]`` for an iterate and its Newton update. Trial points of the line
            search do not exceed it.

    Returns:
        A 4-tuple containing

        1. the exit code (see module documentation),
        2. the number of iterations performed,
        3. the found root (or the last iterate if not converged),
        4. the L2-norm of the residual at the last iterate.

    """
    tol = params["tolerance"]
    max_iter = int(params["max_iterations"])

    X_k = X_0.copy()
    F_k = F(X_k)
    res_norm = float(np.linalg.norm(F_k))

    if not np.isfinite(res_norm):
        logger.debug("Newton iteration 0: non-finite residual")
        return 2, 0, X_k, res_norm

    # if residual is already small enough
    if res_norm <= tol:
        logger.debug("Newton iteration 0: success")
        return 0, 0, X_k, res_norm

    for i in range(1, max_iter + 1):
        try:
            DX = np.linalg.solve(DF(X_k), -F_k)
        except np.linalg.LinAlgError:
            logger.debug(f"Newton iteration {i}: singular Jacobian")
            return 2, i, X_k, res_norm

        if not np.all(np.isfinite(DX)):
            logger.debug(f"Newton iteration {i}: divergence detected")
            return 2, i, X_k, res_norm

        step_max = 1.0 if max_step is None else max_step(X_k, DX)
        step_size = armijo_line_search(
            X_k,
            DX,
            F,
            l2_potential(F_k),
            params,
            project=project,
            newton_iter=i,
            max_step=step_max,
        )
        X_k = X_k + step_size * DX
        if project is not None:
            X_k = project(X_k)

        try:
            F_k = F(X_k)
        except (ArithmeticError, ValueError) as err:
            logger.debug(f"Newton iteration {i}: evaluation failed ({err})")
            return 2, i, X_k, res_norm
        res_norm = float(np.linalg.norm(F_k))
        logger.debug(f"Newton iteration {i}: res = {res_norm}, step = {step_size}")

        if callback is not None:
            callback(i, X_k)

        if not np.isfinite(res_norm):
            return 2, i, X_k, res_norm
        if res_norm <= tol:
            logger.debug(f"Newton iteration {i}: success")
            return 0, i, X_k, res_norm

    return 1, max_iter, X_k, res_norm
