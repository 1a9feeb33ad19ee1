"""Pure water according to the IAPWS Industrial Formulation 1997 (IAPWS-IF97).

Implemented are

- region 1 (compressed liquid) for liquid densities and enthalpies,
- region 2 (superheated steam) for gas densities and enthalpies,
- region 4 (saturation line) for the vapor pressure,
- the IAPWS 2008 formulation of the viscosity, without the critical enhancement.

The regions are not switched automatically. Liquid properties are always evaluated
with region 1 and gas properties with region 2, also slightly outside their range of
validity (metastable states).

The property kernels are compiled with numba and vectorized, i.e. they accept scalars
and arrays of same shape.

References:
    Wagner, W. et al. (2000). The IAPWS Industrial Formulation 1997 for the
    Thermodynamic Properties of Water and Steam. J. Eng. Gas Turbines Power, 122.

    Huber, M. L. et al. (2009). New International Formulation for the Viscosity of
    H2O. J. Phys. Chem. Ref. Data, 38.

"""

from __future__ import annotations

import numba
import numpy as np

from .._core import NUMBA_CACHE, NUMBA_FAST_MATH
from .base import Component, FloatLike

__all__ = [
    "region1_density",
    "region1_enthalpy",
    "region2_density",
    "region2_enthalpy",
    "saturation_pressure",
    "viscosity",
    "H2O",
]


_R_SPECIFIC: float = 461.526
"""Specific gas constant of water in ``[J / kg K]``."""

# Region 1, Table 2 of IAPWS-IF97.
_I1 = np.array(
    [0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 1, 1, 2, 2, 2, 2, 2, 3, 3, 3, 4, 4, 4, 5, 8, 8]
    + [21, 23, 29, 30, 31, 32],
    dtype=np.float64,
)
_J1 = np.array(
    [-2, -1, 0, 1, 2, 3, 4, 5, -9, -7, -1, 0, 1, 3, -3, 0, 1, 3, 17, -4, 0, 6, -5, -2]
    + [10, -8, -11, -6, -29, -31, -38, -39, -40, -41],
    dtype=np.float64,
)
_N1 = np.array(
    [
        0.14632971213167e00,
        -0.84548187389013e00,
        -0.37563603672040e01,
        0.33855169168385e01,
        -0.95791963387872e00,
        0.15772038513228e00,
        -0.16616417199501e-01,
        0.81214629983568e-03,
        0.28319080123804e-03,
        -0.60706301565874e-03,
        -0.18990068218419e-01,
        -0.32529748770505e-01,
        -0.21841717175414e-01,
        -0.52838357969930e-04,
        -0.47184321073267e-03,
        -0.30001780793026e-03,
        0.47661393906987e-04,
        -0.44141845330846e-05,
        -0.72694996297594e-15,
        -0.31679644845054e-04,
        -0.28270797985312e-05,
        -0.85205128120103e-09,
        -0.22425281908000e-05,
        -0.65171222895601e-06,
        -0.14341729937924e-12,
        -0.40516996860117e-06,
        -0.12734301741682e-08,
        -0.17424871230634e-09,
        -0.68762131295531e-18,
        0.14478307828521e-19,
        0.26335781662795e-22,
        -0.11947622640071e-22,
        0.18228094581404e-23,
        -0.93537087292458e-25,
    ]
)

# Region 2, ideal-gas part, Table 10 of IAPWS-IF97.
_J0 = np.array([0, 1, -5, -4, -3, -2, -1, 2, 3], dtype=np.float64)
_N0 = np.array(
    [
        -0.96927686500217e01,
        0.10086655968018e02,
        -0.56087911283020e-02,
        0.71452738081455e-01,
        -0.40710498223928e00,
        0.14240819171444e01,
        -0.43839511319450e01,
        -0.28408632460772e00,
        0.21268463753307e-01,
    ]
)

# Region 2, residual part, Table 11 of IAPWS-IF97.
_I2 = np.array(
    [1, 1, 1, 1, 1, 2, 2, 2, 2, 2, 3, 3, 3, 3, 3, 4, 4, 4, 5, 6, 6, 6, 7, 7, 7, 8, 8]
    + [9, 10, 10, 10, 16, 16, 18, 20, 20, 20, 21, 22, 23, 24, 24, 24],
    dtype=np.float64,
)
_J2 = np.array(
    [0, 1, 2, 3, 6, 1, 2, 4, 7, 36, 0, 1, 3, 6, 35, 1, 2, 3, 7, 3, 16, 35, 0, 11, 25]
    + [8, 36, 13, 4, 10, 14, 29, 50, 57, 20, 35, 48, 21, 53, 39, 26, 40, 58],
    dtype=np.float64,
)
_N2 = np.array(
    [
        -0.17731742473213e-02,
        -0.17834862292358e-01,
        -0.45996013696365e-01,
        -0.57581259083432e-01,
        -0.50325278727930e-01,
        -0.33032641670203e-04,
        -0.18948987516315e-03,
        -0.39392777243355e-02,
        -0.43797295650573e-01,
        -0.26674547914087e-04,
        0.20481737692309e-07,
        0.43870667284435e-06,
        -0.32277677238570e-04,
        -0.15033924542148e-02,
        -0.40668253562649e-01,
        -0.78847309559367e-09,
        0.12790717852285e-07,
        0.48225372718507e-06,
        0.22922076337661e-05,
        -0.16714766451061e-10,
        -0.21171472321355e-02,
        -0.23895741934104e02,
        -0.59059564324270e-17,
        -0.12621808899101e-05,
        -0.38946842435739e-01,
        0.11256211360459e-10,
        -0.82311340897998e01,
        0.19809712802088e-07,
        0.10406965210174e-18,
        -0.10234747095929e-12,
        -0.10018179379511e-08,
        -0.80882908646985e-10,
        0.10693031879409e00,
        -0.33662250574171e00,
        0.89185845355421e-24,
        0.30629316876232e-12,
        -0.42002467698208e-05,
        -0.59056029685639e-25,
        0.37826947613457e-05,
        -0.12768608934681e-14,
        0.73087610595061e-28,
        0.55414715350778e-16,
        -0.94369707241210e-06,
    ]
)

# Region 4, Table 34 of IAPWS-IF97.
_N4 = np.array(
    [
        0.11670521452767e04,
        -0.72421316703206e06,
        -0.17073846940092e02,
        0.12020824702470e05,
        -0.32325550322333e07,
        0.14915108613530e02,
        -0.48232657361591e04,
        0.40511340542057e06,
        -0.23855557567849e00,
        0.65017534844798e03,
    ]
)

# IAPWS 2008 viscosity, Tables 1 and 2.
_H0 = np.array([1.67752, 2.20462, 0.6366564, -0.241605])
_IH = np.array(
    [0, 1, 2, 3, 0, 1, 2, 3, 5, 0, 1, 2, 3, 4, 0, 1, 0, 3, 4, 3, 5], dtype=np.float64
)
_JH = np.array(
    [0, 0, 0, 0, 1, 1, 1, 1, 1, 2, 2, 2, 2, 2, 3, 3, 4, 4, 5, 6, 6], dtype=np.float64
)
_H1 = np.array(
    [
        5.20094e-1,
        8.50895e-2,
        -1.08374,
        -2.89555e-1,
        2.22531e-1,
        9.99115e-1,
        1.88797,
        1.26613,
        1.20573e-1,
        -2.81378e-1,
        -9.06851e-1,
        -7.72479e-1,
        -4.89837e-1,
        -2.57040e-1,
        1.61913e-1,
        2.57399e-1,
        -3.25372e-2,
        6.98452e-2,
        8.72102e-3,
        -4.35673e-3,
        -5.93264e-4,
    ]
)


@numba.njit(
    "UniTuple(float64, 2)(float64, float64)",
    fastmath=NUMBA_FAST_MATH,
    cache=NUMBA_CACHE,
)
def _gamma1(pi: float, tau: float) -> tuple[float, float]:
    """Derivatives of the dimensionless Gibbs energy of region 1 with respect to
    ``pi`` and ``tau``."""
    a = 7.1 - pi
    b = tau - 1.222
    g_pi = 0.0
    g_tau = 0.0
    for i in range(_N1.shape[0]):
        ei = _I1[i]
        ej = _J1[i]
        if ei != 0.0:
            g_pi -= _N1[i] * ei * a ** (ei - 1.0) * b**ej
        if ej != 0.0:
            g_tau += _N1[i] * a**ei * ej * b ** (ej - 1.0)
    return g_pi, g_tau


@numba.njit(
    "UniTuple(float64, 3)(float64, float64)",
    fastmath=NUMBA_FAST_MATH,
    cache=NUMBA_CACHE,
)
def _gamma2(pi: float, tau: float) -> tuple[float, float, float]:
    """Derivatives of region 2: residual part w.r.t. ``pi``, ideal-gas and residual
    part w.r.t. ``tau``."""
    b = tau - 0.5
    gr_pi = 0.0
    gr_tau = 0.0
    for i in range(_N2.shape[0]):
        ei = _I2[i]
        ej = _J2[i]
        gr_pi += _N2[i] * ei * pi ** (ei - 1.0) * b**ej
        if ej != 0.0:
            gr_tau += _N2[i] * pi**ei * ej * b ** (ej - 1.0)
    g0_tau = 0.0
    for i in range(_N0.shape[0]):
        if _J0[i] != 0.0:
            g0_tau += _N0[i] * _J0[i] * tau ** (_J0[i] - 1.0)
    return gr_pi, g0_tau, gr_tau


@numba.vectorize(["float64(float64, float64)"], nopython=True, cache=NUMBA_CACHE)
def region1_density(T: float, p: float) -> float:
    """Density of compressed liquid water (IF97 region 1).

    Valid for ``273.15 <= T <= 623.15`` and ``p_sat(T) <= p <= 100 MPa``.

    """
    pi = p / 16.53e6
    g_pi, _ = _gamma1(pi, 1386.0 / T)
    return p / (_R_SPECIFIC * T * pi * g_pi)


@numba.vectorize(["float64(float64, float64)"], nopython=True, cache=NUMBA_CACHE)
def region1_enthalpy(T: float, p: float) -> float:
    """Specific enthalpy of compressed liquid water (IF97 region 1)."""
    tau = 1386.0 / T
    _, g_tau = _gamma1(p / 16.53e6, tau)
    return _R_SPECIFIC * T * tau * g_tau


@numba.vectorize(["float64(float64, float64)"], nopython=True, cache=NUMBA_CACHE)
def region2_density(T: float, p: float) -> float:
    """Density of steam (IF97 region 2).

    Valid for ``273.15 <= T <= 623.15`` and ``0 < p <= p_sat(T)``, and above up to
    1073.15 K for pressures up to 100 MPa.

    """
    pi = p / 1e6
    gr_pi, _, _ = _gamma2(pi, 540.0 / T)
    return p / (_R_SPECIFIC * T * (1.0 + pi * gr_pi))


@numba.vectorize(["float64(float64, float64)"], nopython=True, cache=NUMBA_CACHE)
def region2_enthalpy(T: float, p: float) -> float:
    """Specific enthalpy of steam (IF97 region 2)."""
    tau = 540.0 / T
    _, g0_tau, gr_tau = _gamma2(p / 1e6, tau)
    return _R_SPECIFIC * T * tau * (g0_tau + gr_tau)


@numba.vectorize(["float64(float64)"], nopython=True, cache=NUMBA_CACHE)
def saturation_pressure(T: float) -> float:
    """Vapor pressure of water (IF97 region 4), valid between the triple point and the
    critical point."""
    theta = T + _N4[8] / (T - _N4[9])
    A = theta**2 + _N4[0] * theta + _N4[1]
    B = _N4[2] * theta**2 + _N4[3] * theta + _N4[4]
    C = _N4[5] * theta**2 + _N4[6] * theta + _N4[7]
    return (2.0 * C / (-B + np.sqrt(B**2 - 4.0 * A * C))) ** 4 * 1e6


@numba.vectorize(["float64(float64, float64)"], nopython=True, cache=NUMBA_CACHE)
def viscosity(T: float, rho: float) -> float:
    """Dynamic viscosity of water as a function of temperature and density
    (IAPWS 2008, without critical enhancement)."""
    T_bar = T / 647.096
    rho_bar = rho / 322.0

    mu0_denom = 0.0
    for i in range(_H0.shape[0]):
        mu0_denom += _H0[i] / T_bar**i
    mu0 = 100.0 * np.sqrt(T_bar) / mu0_denom

    a = 1.0 / T_bar - 1.0
    b = rho_bar - 1.0
    s = 0.0
    for k in range(_H1.shape[0]):
        s += _H1[k] * a ** _IH[k] * b ** _JH[k]
    mu1 = np.exp(rho_bar * s)

    return mu0 * mu1 * 1e-6


class H2O(Component):
    """Pure water with properties according to IAPWS-IF97.

    Parameters:
        name: ``default='H2O'``

            Name of the component.

    """

    molar_mass: float = 18.015268e-3
    critical_temperature: float = 647.096
    critical_pressure: float = 22.064e6
    triple_temperature: float = 273.16
    triple_pressure: float = 611.657

    def __init__(self, name: str = "H2O") -> None:
        super().__init__(name)

    def vapor_pressure(self, T: FloatLike) -> FloatLike:
        """Vapor pressure (IF97 region 4)."""
        return saturation_pressure(T)

    def liquid_density(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Liquid density (IF97 region 1)."""
        return region1_density(T, p)

    def gas_density(self, T: FloatLike, p: FloatLike) -> FloatLike:
        """Steam density (IF97 region 2)."""
        return region2_density(T, p)

    def liquid_enthalpy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        return region1_enthalpy(T, p)

    def gas_enthalpy(self, T: FloatLike, p: FloatLike) -> FloatLike:
        return region2_enthalpy(T, p)

    def liquid_viscosity(self, T: FloatLike, p: FloatLike) -> FloatLike:
        return viscosity(T, region1_density(T, p))

    def gas_viscosity(self, T: FloatLike, p: FloatLike) -> FloatLike:
        return viscosity(T, region2_density(T, p))
