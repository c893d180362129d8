"""
    International Standard Atmosphere 1976, as functions of geometric
    height in meters. Used to give generated layers a temperature and
    pressure.

    https://en.wikipedia.org/wiki/Barometric_formula

    Each function accepts a float or an array; above the ISA ceiling
    the result is NaN.
"""
import numpy as np
from numpy.typing import ArrayLike

from layertrans.constants import ISA_CEILING

R_STAR = 8.3144598  # J/(mol K)
G_0 = 9.80665
M_AIR = 0.0289644  # kg/mol

# base height, base temperature, lapse rate, base density
_BANDS = np.array(
    [
        [0.0, 288.15, -0.0065, 1.225],
        [11000.0, 216.65, 0.0, 0.36391],
        [20000.0, 216.65, 0.001, 0.08803],
        [32000.0, 228.65, 0.0028, 0.01322],
        [47000.0, 270.65, 0.0, 0.00143],
        [51000.0, 270.65, -0.0028, 0.00086],
        [71000.0, 214.65, -0.002, 0.000064],
    ]
)


def _band_parameters(h: np.ndarray):
    """Looks up the ISA band each height falls in."""
    idx = np.searchsorted(_BANDS[:, 0], h, side="right") - 1
    idx = np.clip(idx, 0, len(_BANDS) - 1)
    hb, tb, lb, rhob = _BANDS[idx].T
    return hb, tb, lb, rhob


def _out_of_range(h: np.ndarray) -> np.ndarray:
    return (h < 0) | (h >= ISA_CEILING)


def _as_output(values: np.ndarray, scalar: bool):
    if scalar:
        return float(values[0])
    return values


def get_temperature(h: ArrayLike):
    """
    ISA temperature as a function of height.

    Args:
        h: height in meters, float or array.

    Returns:
        temperature in K, NaN outside [0, ISA_CEILING).
    """
    scalar = np.ndim(h) == 0
    h = np.atleast_1d(np.asarray(h, dtype=float))
    hb, tb, lb, _ = _band_parameters(h)
    temperature = tb + lb * (h - hb)
    temperature[_out_of_range(h)] = np.nan
    return _as_output(temperature, scalar)


def get_density(h: ArrayLike):
    """
    ISA density as a function of height.

    Args:
        h: height in meters, float or array.

    Returns:
        density in kg/m^3, NaN outside [0, ISA_CEILING).
    """
    scalar = np.ndim(h) == 0
    h = np.atleast_1d(np.asarray(h, dtype=float))
    hb, tb, lb, rhob = _band_parameters(h)
    isothermal = lb == 0
    # avoid dividing by zero lapse rate, the isothermal branch
    # replaces those entries below
    safe_lb = np.where(isothermal, 1.0, lb)
    with np.errstate(divide="ignore", invalid="ignore"):
        gradient = rhob * (tb / (tb + safe_lb * (h - hb))) ** (
            1 + G_0 * M_AIR / (R_STAR * safe_lb)
        )
    flat = rhob * np.exp(-G_0 * M_AIR * (h - hb) / (R_STAR * tb))
    density = np.where(isothermal, flat, gradient)
    density[_out_of_range(h)] = np.nan
    return _as_output(density, scalar)


def get_pressure(h: ArrayLike, atm: bool = False):
    """
    Pressure from the ISA density and temperature via the ideal gas
    law.

    Args:
        h: height in meters, float or array.
        atm: if True returns atmospheres rather than Pa.

    Returns:
        pressure in Pa (or atm).
    """
    p = get_density(h) * R_STAR * get_temperature(h) / M_AIR
    if atm:
        p = p / 101325
    return p
