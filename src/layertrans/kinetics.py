"""
    Closed form estimates that go alongside the layer model: how far a
    photon or a molecule travels between events, how often molecules
    collide, and how long a photon takes to random walk out of a slab.
"""
import math
from typing import Tuple

from scipy import constants


def photon_mean_free_path(number_density: float, cross_section: float) -> float:
    """
    Mean distance travelled by a photon before absorption, 1 / (n sigma).

    Args:
        number_density: absorbers per m^3.
        cross_section: absorption cross section in m^2.

    Returns:
        mean free path in m.
    """
    return 1 / (number_density * cross_section)


def gas_mean_free_path(
    temperature: float, diameter: float, pressure: float
) -> float:
    """
    Mean free path of a gas molecule, kT / (sqrt(2) pi d^2 P).

    Args:
        temperature: K.
        diameter: kinetic diameter of the molecule in m.
        pressure: Pa.

    Returns:
        mean free path in m.
    """
    return (constants.k * temperature) / (
        math.sqrt(2) * math.pi * diameter**2 * pressure
    )


def thermal_speed(temperature: float, mass: float) -> float:
    """Mean thermal speed sqrt(8kT / (pi m)) in m/s."""
    return math.sqrt(8 * constants.k * temperature / (math.pi * mass))


def collision_frequency(speed: float, mean_free_path: float) -> float:
    """Collisions per second."""
    return speed / mean_free_path


def random_walk_escape(
    distance: float, step: float, step_time: float
) -> Tuple[float, float]:
    """
    Time for a photon to random walk a distance, being absorbed and
    re-emitted in a random direction after every step.

    Example:
        random_walk_escape(100, 2, 1e-4) returns (2500.0, 0.25)

    Args:
        distance: distance to cover in m.
        step: mean free path in m.
        step_time: delay between absorption and re-emission in s.

    Returns:
        number of steps, total time in s.
    """
    steps = (distance / step) ** 2
    return steps, steps * step_time
