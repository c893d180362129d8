"""
    Plank function implementation that is convenient for this
    project. The transfer calculation works in frequency, wavenumber
    units are kept for comparison with line by line tools.
"""
import numpy as np
import scipy.constants as cst


def plank_nu(nu_, temperature, flux: bool = False, units: str = "Hz"):
    """
    Plank Function as a function of frequency or wavenumber.

    Args:
        nu_: float or array, frequency in Hz or wavenumber.
        temperature: temperature in K, float or array broadcastable
            against nu_.
        flux: False returns radiance, True returns the hemispheric
            flux (radiance * pi).
        units: "Hz" for frequency, returning W/(m^2 sr Hz);
            "m" or "cm" for wavenumber in inverse meters or inverse
            centimeters, returning W/(m^2 sr m^-1) or W/(m^2 sr cm^-1).

    Returns:
        spectral radiance (or flux) evaluated at every nu_.
    """
    nu_ = np.asarray(nu_, dtype=float)
    temperature = np.asarray(temperature, dtype=float)
    if units == "Hz":
        c_1 = 2 * cst.h / cst.c**2
        c_2 = cst.h / cst.k
        k = 1
    elif units == "m":
        c_1 = 2 * cst.h * cst.c**2
        c_2 = cst.h * cst.c / cst.k
        k = 1
    elif units == "cm":  # per cm^-1 rather than per m^-1
        nu_ = nu_ * 100
        c_1 = 2 * cst.h * cst.c**2
        c_2 = cst.h * cst.c / cst.k
        k = 100
    else:
        raise ValueError(f"Unknown units {units!r}, use 'Hz', 'm' or 'cm'")
    if flux:
        pifac = cst.pi
    else:
        pifac = 1
    with np.errstate(over="ignore"):
        radiance = (
            pifac * c_1 * nu_**3 / (np.exp(c_2 * nu_ / temperature) - 1) * k
        )
    if radiance.ndim == 0:
        return float(radiance)
    return radiance
