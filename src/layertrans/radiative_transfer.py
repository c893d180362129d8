"""
The radiative transfer through a stack of layers, for a single band.

The stack is walked from the top of the atmosphere down to the
observer at the bottom boundary. Each layer emits
B_nu(T) * (1 - exp(-dtau)) of which a fraction p_radiative actually
leaves as a photon, and the emission is attenuated by exp(-tau), tau
being the optical depth accumulated from the top down to the layer's
base.

The walk is an explicit fold over TransferState; every intermediate
state is returned as a TransferStep so the trace can be inspected.
Layer order matters: reversing the stack changes the result, so the
integrator only accepts stacks ordered top-of-atmosphere first.

integrate_vectorised is the same calculation reformulated as a prefix
sum of the layer optical depths, followed by all emissions at once.

dtau is short for the optical depth of a single layer
tau is short for the accumulated optical depth
"""
import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from layertrans.errors import ConfigurationError, NON_FINITE_OPTICAL_DEPTH
from layertrans.layers import AtmosphericLayer
from layertrans.optics import LayerOpticalState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferState:
    """Running accumulator of the fold."""

    optical_depth: float = 0.0
    radiance: float = 0.0


@dataclass(frozen=True)
class TransferStep:
    """Contribution of one layer, and the state after adding it."""

    layer_index: int
    delta_tau: float
    optical_depth: float
    planck_radiance: float
    delta_radiance: float
    radiance: float
    issues: Tuple[str, ...] = ()

    @property
    def state(self) -> TransferState:
        return TransferState(self.optical_depth, self.radiance)


@dataclass(frozen=True)
class TransferResult:
    steps: Tuple[TransferStep, ...]
    radiance: float
    optical_depth: float


def check_top_down(layers: Sequence[AtmosphericLayer]):
    """Raises ConfigurationError unless altitudes strictly decrease."""
    for upper, lower in zip(layers, layers[1:]):
        if not lower.start_altitude < upper.start_altitude:
            raise ConfigurationError(
                "layers must be ordered top-of-atmosphere first, layer "
                f"{lower.index} at {lower.start_altitude} m follows layer "
                f"{upper.index} at {upper.start_altitude} m",
                ["Pass the stack through layertrans.layers.top_down"],
            )


def _pair_states(
    layers: Sequence[AtmosphericLayer],
    states: Sequence[LayerOpticalState],
) -> Sequence[LayerOpticalState]:
    by_index = {state.layer_index: state for state in states}
    try:
        return [by_index[layer.index] for layer in layers]
    except KeyError as e:
        raise ConfigurationError(
            f"no optical state for layer {e.args[0]}"
        ) from None


def _path_factor(zenith_angle: float) -> float:
    if not 0 <= zenith_angle < math.pi / 2:
        raise ConfigurationError(
            f"zenith angle {zenith_angle} rad does not cross the layers",
            ["Use a zenith angle in [0, pi/2) radians"],
        )
    return 1.0 / math.cos(zenith_angle)


def transfer_step(
    state: TransferState,
    layer: AtmosphericLayer,
    optical_state: LayerOpticalState,
    path_factor: float = 1.0,
) -> TransferStep:
    """
    Adds a single layer to the accumulated state.

    Args:
        state: state accumulated over the layers above.
        layer: the layer being crossed.
        optical_state: its optical state.
        path_factor: 1 / cos(zenith angle).

    Returns:
        TransferStep with the new accumulated optical depth and
        radiance.
    """
    delta_tau = optical_state.kappa * layer.thickness * path_factor
    optical_depth = state.optical_depth + delta_tau
    planck_radiance = optical_state.planck_radiance
    with np.errstate(over="ignore", invalid="ignore"):
        delta_radiance = float(
            planck_radiance
            * -np.expm1(-delta_tau)
            * np.exp(-optical_depth)
            * optical_state.p_radiative
        )
    issues = ()
    if not math.isfinite(optical_depth):
        issues = (NON_FINITE_OPTICAL_DEPTH,)
        logger.warning("Layer %d: %s", layer.index, NON_FINITE_OPTICAL_DEPTH)
    return TransferStep(
        layer_index=layer.index,
        delta_tau=delta_tau,
        optical_depth=optical_depth,
        planck_radiance=planck_radiance,
        delta_radiance=delta_radiance,
        radiance=state.radiance + delta_radiance,
        issues=issues,
    )


def integrate(
    layers: Sequence[AtmosphericLayer],
    states: Sequence[LayerOpticalState],
    zenith_angle: float = 0.0,
    boundary_radiance: float = 0.0,
) -> TransferResult:
    """
    Integrates the transfer equation down through the stack.

    The radiance starts at boundary_radiance and each layer adds its
    own contribution. The boundary value is not attenuated by the
    column: it reaches the bottom unchanged however opaque the stack
    is. Pass 0 (the default) for emission from the layers alone.

    Args:
        layers: the stack, top-of-atmosphere first.
        states: optical state of every layer, matched by layer index.
        zenith_angle: viewing angle from the vertical in radians.
        boundary_radiance: radiance entering at the top of the
            atmosphere, added to the result without attenuation.

    Returns:
        TransferResult with the trace, bottom boundary radiance and
        total optical depth.
    """
    layers = tuple(layers)
    check_top_down(layers)
    paired = _pair_states(layers, states)
    path_factor = _path_factor(zenith_angle)

    state = TransferState(optical_depth=0.0, radiance=boundary_radiance)
    steps = []
    for layer, optical_state in zip(layers, paired):
        step = transfer_step(state, layer, optical_state, path_factor)
        steps.append(step)
        state = step.state
    logger.debug(
        "Integrated %d layers, tau = %g, radiance = %g",
        len(steps),
        state.optical_depth,
        state.radiance,
    )
    return TransferResult(
        steps=tuple(steps),
        radiance=state.radiance,
        optical_depth=state.optical_depth,
    )


def integrate_vectorised(
    layers: Sequence[AtmosphericLayer],
    states: Sequence[LayerOpticalState],
    zenith_angle: float = 0.0,
    boundary_radiance: float = 0.0,
) -> TransferResult:
    """
    Same as integrate, computed with a prefix sum over the layer
    optical depths instead of a sequential loop. Preferable for large
    layer counts.
    """
    layers = tuple(layers)
    check_top_down(layers)
    paired = _pair_states(layers, states)
    path_factor = _path_factor(zenith_angle)
    if not layers:
        return TransferResult((), boundary_radiance, 0.0)

    kappa = np.array([state.kappa for state in paired])
    thickness = np.array([layer.thickness for layer in layers])
    planck = np.array([state.planck_radiance for state in paired])
    p_radiative = np.array([state.p_radiative for state in paired])

    dtau = kappa * thickness * path_factor
    tau = np.cumsum(dtau)
    with np.errstate(over="ignore", invalid="ignore"):
        d_radiance = planck * -np.expm1(-dtau) * np.exp(-tau) * p_radiative
    radiance = boundary_radiance + np.cumsum(d_radiance)

    steps = []
    for i, layer in enumerate(layers):
        issues = ()
        if not np.isfinite(tau[i]):
            issues = (NON_FINITE_OPTICAL_DEPTH,)
            logger.warning("Layer %d: %s", layer.index, NON_FINITE_OPTICAL_DEPTH)
        steps.append(
            TransferStep(
                layer_index=layer.index,
                delta_tau=float(dtau[i]),
                optical_depth=float(tau[i]),
                planck_radiance=float(planck[i]),
                delta_radiance=float(d_radiance[i]),
                radiance=float(radiance[i]),
                issues=issues,
            )
        )
    return TransferResult(
        steps=tuple(steps),
        radiance=float(radiance[-1]),
        optical_depth=float(tau[-1]),
    )
