"""Tests for the flux converter and the closed form estimates."""

import math

import pytest
import scipy.constants as cst

from layertrans.constants import N2_DIAMETER, N2_MASS
from layertrans.errors import ConfigurationError, NumericDegeneracy
from layertrans.flux import bandwidth_hz, photon_energy, photon_flux
from layertrans.kinetics import (
    collision_frequency,
    gas_mean_free_path,
    photon_mean_free_path,
    random_walk_escape,
    thermal_speed,
)


class TestPhotonFlux:
    def test_zero_radiance_gives_exactly_zero(self):
        flux = photon_flux(0.0, 2e13, 1e12, 1.0)
        assert flux == 0.0

    def test_conversion(self):
        frequency = 2e13
        flux = photon_flux(1e-12, frequency, 1e12, 0.5)
        expected = 1e-12 / (cst.h * frequency) * 1e12 * 0.5
        assert flux == pytest.approx(expected)

    @pytest.mark.parametrize("frequency", [0.0, -1.0])
    def test_zero_frequency_is_degenerate(self, frequency):
        with pytest.raises(NumericDegeneracy):
            photon_flux(1.0, frequency, 1.0, 1.0)
        with pytest.raises(ZeroDivisionError):
            photon_energy(frequency)

    def test_photon_energy(self):
        assert photon_energy(1.0) == cst.h

    def test_bandwidth(self):
        assert bandwidth_hz(2e13, 0.05) == pytest.approx(1e12)
        assert bandwidth_hz(2e13, 3e11, fractional=False) == 3e11
        with pytest.raises(ConfigurationError):
            bandwidth_hz(2e13, 0.0)


class TestKinetics:
    """Test the closed form estimates against worked examples."""

    def test_photon_mean_free_path_at_sea_level(self):
        n0 = 2.5e25
        n_co2 = n0 * 400 / 1e6
        assert n_co2 == pytest.approx(1.0e22)
        assert photon_mean_free_path(n_co2, 1e-22) == pytest.approx(1.0, rel=0.01)

    def test_random_walk_escape(self):
        steps, time = random_walk_escape(100, 2, 1e-4)
        assert steps == 2500
        assert time == pytest.approx(0.25)

    def test_nitrogen_collisions(self):
        mfp = gas_mean_free_path(288, N2_DIAMETER, 101325)
        speed = thermal_speed(288, N2_MASS)
        rate = collision_frequency(speed, mfp)
        assert mfp == pytest.approx(
            cst.k * 288 / (math.sqrt(2) * math.pi * N2_DIAMETER**2 * 101325)
        )
        assert 6e-8 < mfp < 7e-8
        assert 460 < speed < 480
        assert 6e9 < rate < 8e9
