"""Tests for the radiative transfer integrator."""

import math
from dataclasses import replace

import numpy as np
import pytest

from layertrans.constants import Co2Band
from layertrans.errors import ConfigurationError, NON_FINITE_OPTICAL_DEPTH
from layertrans.layers import build_layers, layers_from_table, top_down
from layertrans.optics import optical_states
from layertrans.radiative_transfer import (
    TransferState,
    integrate,
    integrate_vectorised,
    transfer_step,
)


def thin_stack():
    """Five thin, cold-topped layers that are far from saturating."""
    rows = [
        (0.0, 280.0, 1000.0, 400e-6),
        (100.0, 270.0, 900.0, 400e-6),
        (200.0, 260.0, 800.0, 400e-6),
        (300.0, 250.0, 700.0, 400e-6),
        (400.0, 240.0, 600.0, 400e-6),
    ]
    return layers_from_table(rows, top_altitude=500.0)


@pytest.fixture
def band():
    # low absorption cross section keeps the stack optically thin
    return Co2Band(absorption_cross_section=1e-26)


class TestTransferStep:
    def test_single_layer(self, band):
        layer = thin_stack()[0]
        state = optical_states([layer], band)[0]
        step = transfer_step(TransferState(), layer, state)
        dtau = state.kappa * layer.thickness
        expected = (
            state.planck_radiance
            * (1 - math.exp(-dtau))
            * math.exp(-dtau)
            * state.p_radiative
        )
        assert step.delta_tau == pytest.approx(dtau)
        assert step.optical_depth == pytest.approx(dtau)
        assert step.delta_radiance == pytest.approx(expected, rel=1e-9)
        assert step.radiance == step.delta_radiance

    def test_slant_path_is_longer(self, band):
        layer = thin_stack()[0]
        state = optical_states([layer], band)[0]
        nadir = transfer_step(TransferState(), layer, state)
        slant = transfer_step(TransferState(), layer, state, 1 / math.cos(1.0))
        assert slant.delta_tau == pytest.approx(nadir.delta_tau / math.cos(1.0))


class TestIntegrate:
    """Test the layer by layer fold."""

    def test_optical_depth_non_decreasing(self, band):
        layers = top_down(build_layers(100, 12000, 12000, 411e-6))
        result = integrate(layers, optical_states(layers, band))
        depths = [step.optical_depth for step in result.steps]
        assert all(b >= a for a, b in zip(depths, depths[1:])), (
            "Optical depth must not decrease going down the stack"
        )
        assert result.optical_depth == depths[-1]
        assert result.radiance == result.steps[-1].radiance

    def test_trace_accumulates(self, band):
        layers = top_down(thin_stack())
        result = integrate(layers, optical_states(layers, band))
        radiance = 0.0
        tau = 0.0
        for layer, step in zip(layers, result.steps):
            assert step.layer_index == layer.index
            tau += step.delta_tau
            radiance += step.delta_radiance
            assert step.optical_depth == pytest.approx(tau)
            assert step.radiance == pytest.approx(radiance)
        assert result.radiance > 0

    def test_zero_kappa_gives_zero_radiance(self):
        band = Co2Band(absorption_cross_section=0.0)
        layers = top_down(thin_stack())
        result = integrate(layers, optical_states(layers, band))
        for step in result.steps:
            assert step.optical_depth == 0.0
            assert step.radiance == 0.0
        assert result.radiance == 0.0

    def test_boundary_radiance(self, band):
        layers = top_down(thin_stack())
        states = optical_states(layers, band)
        dark = integrate(layers, states)
        lit = integrate(layers, states, boundary_radiance=1e-12)
        assert lit.radiance == pytest.approx(dark.radiance + 1e-12)

    def test_order_is_a_precondition(self, band):
        layers = thin_stack()
        with pytest.raises(ConfigurationError, match="top-of-atmosphere first"):
            integrate(layers, optical_states(layers, band))

    def test_order_changes_the_result(self, band):
        # swapped temperatures: the warm layer on top is
        # attenuated less, so the emergent radiance differs
        warm_top = layers_from_table(
            [(0.0, 200.0, 1000.0, 4e-4), (100.0, 300.0, 1000.0, 4e-4)],
            top_altitude=200.0,
        )
        cold_top = layers_from_table(
            [(0.0, 300.0, 1000.0, 4e-4), (100.0, 200.0, 1000.0, 4e-4)],
            top_altitude=200.0,
        )
        thick = Co2Band(absorption_cross_section=1e-23)
        a = integrate(top_down(warm_top), optical_states(warm_top, thick))
        b = integrate(top_down(cold_top), optical_states(cold_top, thick))
        assert a.radiance != pytest.approx(b.radiance)

    def test_missing_state_rejected(self, band):
        layers = top_down(thin_stack())
        states = optical_states(layers, band)[1:]
        with pytest.raises(ConfigurationError, match="no optical state"):
            integrate(layers, states)

    def test_horizontal_view_rejected(self, band):
        layers = top_down(thin_stack())
        with pytest.raises(ConfigurationError):
            integrate(layers, optical_states(layers, band), zenith_angle=math.pi / 2)

    def test_non_finite_optical_depth_flagged(self, band):
        layers = top_down(thin_stack())
        states = list(optical_states(layers, band))
        states[0] = replace(states[0], kappa=float("inf"))
        result = integrate(layers, states)
        assert NON_FINITE_OPTICAL_DEPTH in result.steps[0].issues
        assert all(NON_FINITE_OPTICAL_DEPTH in s.issues for s in result.steps)
        assert len(result.steps) == len(layers)

    def test_saturated_stack_reaches_zero(self):
        # default band, full column: every layer is optically thick
        layers = top_down(build_layers(100, 12000, 12000, 411e-6))
        result = integrate(layers, optical_states(layers))
        assert result.optical_depth > 1000
        assert result.steps[-1].delta_radiance == 0.0

    def test_boundary_radiance_is_not_attenuated(self):
        layers = top_down(build_layers(100, 12000, 12000, 411e-6))
        states = optical_states(layers)
        dark = integrate(layers, states)
        lit = integrate(layers, states, boundary_radiance=1e-9)
        assert lit.optical_depth > 1000
        assert lit.radiance - dark.radiance == pytest.approx(1e-9), (
            "Boundary radiance is carried to the bottom unchanged"
        )

    def test_empty_stack(self):
        result = integrate((), ())
        assert result.steps == ()
        assert result.radiance == 0.0


class TestIntegrateVectorised:
    """Test the prefix sum formulation agrees with the fold."""

    @pytest.mark.parametrize("zenith", [0.0, 0.3, 1.2])
    def test_matches_fold(self, band, zenith):
        layers = top_down(build_layers(50, 8000, 20000, 411e-6))
        states = optical_states(layers, band)
        fold = integrate(layers, states, zenith, 1e-15)
        vectorised = integrate_vectorised(layers, states, zenith, 1e-15)
        assert len(fold.steps) == len(vectorised.steps)
        for a, b in zip(fold.steps, vectorised.steps):
            assert a.layer_index == b.layer_index
            assert b.optical_depth == pytest.approx(a.optical_depth, rel=1e-12)
            assert b.radiance == pytest.approx(a.radiance, rel=1e-12)
        assert vectorised.radiance == pytest.approx(fold.radiance, rel=1e-12)

    def test_empty_stack(self):
        result = integrate_vectorised((), (), boundary_radiance=2.0)
        assert result.radiance == 2.0

    def test_order_is_a_precondition(self, band):
        layers = thin_stack()
        with pytest.raises(ConfigurationError):
            integrate_vectorised(layers, optical_states(layers, band))

    def test_flags_non_finite(self, band):
        layers = top_down(thin_stack())
        states = list(optical_states(layers, band))
        states[2] = replace(states[2], kappa=float("inf"))
        result = integrate_vectorised(layers, states)
        flagged = [bool(step.issues) for step in result.steps]
        assert flagged == [False, False, True, True, True]
        assert not np.isfinite(result.optical_depth)
