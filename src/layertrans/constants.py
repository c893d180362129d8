"""
    Physical constants and the CO2 15 micron band parameters used by
    the layer property calculations. Constants come straight from
    scipy.constants so that every module agrees on their values.
"""
from dataclasses import dataclass, fields

import numpy as np
import scipy.constants as cst

h = cst.h
k_B = cst.k
c = cst.c
amu = cst.atomic_mass

ISA_CEILING = 84852.0  # m, top of the 1976 standard atmosphere tables

# N2 kinetic diameter, used for both mean free path and collision
# cross section at sea level.
N2_DIAMETER = 3.7e-10  # m
N2_MASS = 4.65e-26  # kg


@dataclass(frozen=True)
class Co2Band:
    """
    The single absorption band modelled. Defaults describe the CO2
    bending mode at 15 micrometers.

    Attributes:
        wavelength: centre wavelength in m.
        einstein_a: spontaneous emission coefficient A21 in s^-1.
        collision_cross_section: de-excitation collision cross section,
            m^2.
        absorption_cross_section: band averaged absorption cross
            section, m^2.
        molecular_mass: mass of one CO2 molecule in kg.
    """

    wavelength: float = 15e-6
    einstein_a: float = 1.5
    collision_cross_section: float = np.pi * N2_DIAMETER**2
    absorption_cross_section: float = 1e-22
    molecular_mass: float = 44.0095 * amu

    @property
    def frequency(self) -> float:
        """Transition frequency in Hz."""
        return c / self.wavelength

    @property
    def transition_energy(self) -> float:
        """Energy gap between the two levels in J."""
        return h * self.frequency

    @classmethod
    def field_names(cls) -> tuple:
        return tuple(f.name for f in fields(cls))
