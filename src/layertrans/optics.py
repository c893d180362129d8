"""
    Optical properties of each layer for the single CO2 band.

    The two level approximation is used, with the partition function
    taken as 1: a fraction exp(-E / kT) of the CO2 molecules sits in
    the upper level. An excited molecule either radiates, at the
    Einstein A rate, or loses its energy in a collision, at a rate set
    by the air density and the mean molecular speed.

    Everything here is a pure function of one layer and the band, so
    the stack can be processed in any order.
"""
import logging
import math
import sys
from dataclasses import dataclass
from typing import Iterable, Tuple

from tqdm import tqdm

from layertrans.constants import Co2Band, k_B
from layertrans.errors import (
    NON_POSITIVE_KAPPA,
    RADIATIVE_PROBABILITY_OUT_OF_RANGE,
)
from layertrans.kinetics import thermal_speed
from layertrans.layers import AtmosphericLayer
from layertrans.plank import plank_nu

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerOpticalState:
    """Derived optical state of one layer.

    Attributes:
        layer_index: index of the AtmosphericLayer it belongs to.
        boltzmann_factor: exp(-E / kT).
        n_upper, n_lower: level populations in molecules/m^3.
        collisional_rate, radiative_rate: de-excitation rates in s^-1.
        p_radiative, p_collisional: chance an excitation ends by
            emission or by collision.
        kappa: absorption coefficient in m^-1.
        planck_radiance: B_nu(T) at the band frequency.
        emission_coefficient: kappa * p_radiative * planck_radiance.
        issues: physical inconsistencies found for this layer.
    """

    layer_index: int
    boltzmann_factor: float
    n_upper: float
    n_lower: float
    collisional_rate: float
    radiative_rate: float
    p_radiative: float
    p_collisional: float
    kappa: float
    planck_radiance: float
    emission_coefficient: float
    issues: Tuple[str, ...] = ()

    @property
    def total_deexcitation_rate(self) -> float:
        return self.collisional_rate + self.radiative_rate


def boltzmann_factor(transition_energy: float, temperature: float) -> float:
    """
    Excited to ground population ratio, exp(-E / kT).

    Floored at the smallest normal float, so very cold layers keep a
    tiny but non-zero excited population instead of underflowing to 0.
    """
    return max(
        math.exp(-transition_energy / (k_B * temperature)), sys.float_info.min
    )


def collisional_rate(
    number_density: float, cross_section: float, speed: float
) -> float:
    """Collisional de-excitation rate n * sigma * v in s^-1."""
    return number_density * cross_section * speed


def deexcitation_probabilities(
    radiative_rate: float, collision_rate: float
) -> Tuple[float, float]:
    """
    Splits de-excitation between emission and collisions.

    Args:
        radiative_rate: Einstein A coefficient in s^-1.
        collision_rate: collisional de-excitation rate in s^-1.

    Returns:
        p_radiative, p_collisional, adding up to 1.
    """
    total = radiative_rate + collision_rate
    if total == 0:
        # no way to de-excite at all, nothing is emitted
        return 0.0, 1.0
    p_radiative = radiative_rate / total
    return p_radiative, 1.0 - p_radiative


def layer_optical_state(
    layer: AtmosphericLayer, band: Co2Band = Co2Band()
) -> LayerOpticalState:
    """
    Computes the optical state of a single layer.

    Inconsistent results, a non-positive kappa or a radiative
    probability outside [0, 1], are recorded in issues rather than
    raised, so that the rest of the stack can still be inspected.

    Args:
        layer: the layer.
        band: band constants.

    Returns:
        LayerOpticalState of the layer.
    """
    co2_density = layer.co2_number_density
    b_factor = boltzmann_factor(band.transition_energy, layer.temperature)
    n_upper = co2_density * b_factor
    n_lower = co2_density * (1 - b_factor)

    speed = thermal_speed(layer.temperature, band.molecular_mass)
    c_rate = collisional_rate(
        layer.number_density, band.collision_cross_section, speed
    )
    p_radiative, p_collisional = deexcitation_probabilities(
        band.einstein_a, c_rate
    )
    kappa = (n_lower - n_upper) * band.absorption_cross_section
    planck_radiance = plank_nu(band.frequency, layer.temperature)

    issues = []
    if not kappa > 0:
        issues.append(NON_POSITIVE_KAPPA)
    if not 0 <= p_radiative <= 1:
        issues.append(RADIATIVE_PROBABILITY_OUT_OF_RANGE)
    for issue in issues:
        logger.warning("Layer %d: %s", layer.index, issue)

    return LayerOpticalState(
        layer_index=layer.index,
        boltzmann_factor=b_factor,
        n_upper=n_upper,
        n_lower=n_lower,
        collisional_rate=c_rate,
        radiative_rate=band.einstein_a,
        p_radiative=p_radiative,
        p_collisional=p_collisional,
        kappa=kappa,
        planck_radiance=planck_radiance,
        emission_coefficient=kappa * p_radiative * planck_radiance,
        issues=tuple(issues),
    )


def optical_states(
    layers: Iterable[AtmosphericLayer],
    band: Co2Band = Co2Band(),
    verbose: bool = False,
) -> Tuple[LayerOpticalState, ...]:
    """
    Maps layer_optical_state over a stack, keeping its order.

    Args:
        layers: the stack, any order.
        band: band constants.
        verbose: Controls whether a progress bar is shown.

    Returns:
        one LayerOpticalState per layer.
    """
    layers = tuple(layers)
    if verbose:
        tqdm.write(f"Computing optical state of {len(layers)} layers")
    states = tuple(
        layer_optical_state(layer, band)
        for layer in tqdm(layers, disable=not verbose)
    )
    flagged = sum(1 for state in states if state.issues)
    if flagged:
        logger.info("%d of %d layers flagged as inconsistent", flagged, len(states))
    return states
