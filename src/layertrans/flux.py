"""
    Conversion of an emergent spectral radiance into a photon count
    rate over the band.
"""
import scipy.constants as cst

from layertrans.errors import NumericDegeneracy, require_positive


def photon_energy(frequency: float) -> float:
    """
    Energy of one photon, h * nu, in J.

    Raises:
        NumericDegeneracy: frequency is not positive, so no photon
            count can be formed from an energy.
    """
    if not frequency > 0:
        raise NumericDegeneracy(
            f"photon energy at frequency {frequency} Hz is not positive",
            ["Configure a band with a positive frequency"],
        )
    return cst.h * frequency


def bandwidth_hz(
    frequency: float, bandwidth: float, fractional: bool = True
) -> float:
    """
    Args:
        frequency: band centre in Hz.
        bandwidth: fraction of the centre frequency if fractional,
            otherwise an absolute width in Hz.
        fractional: how bandwidth is to be read.

    Returns:
        the bandwidth in Hz.
    """
    bandwidth = require_positive("bandwidth", bandwidth)
    if fractional:
        return bandwidth * frequency
    return bandwidth


def photon_flux(
    radiance: float, frequency: float, bandwidth: float, solid_angle: float
) -> float:
    """
    Photons per second per m^2 collected over a bandwidth and solid
    angle.

    A zero radiance is a valid outcome (a saturated stack, or no
    emission at all) and gives exactly 0.

    Args:
        radiance: spectral radiance in W/(m^2 sr Hz).
        frequency: band centre in Hz.
        bandwidth: band width in Hz.
        solid_angle: collection solid angle in sr.

    Returns:
        photon flux in photons/(s m^2).
    """
    photon_flux_density = radiance / photon_energy(frequency)
    return photon_flux_density * bandwidth * solid_angle
