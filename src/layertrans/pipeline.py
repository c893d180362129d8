"""
This file provides run_scenario, which chains the stages of a run:

    layers -> optical states -> transfer trace -> photon flux

and the Report it returns. Each stage consumes the previous stage's
tuples and produces new ones, nothing is modified in place, so two runs
on the same config give identical reports.

The report tables are pandas DataFrames indexed by layer index, one row
per layer, for inspection and printing.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

import pandas as pd

from layertrans.config import ScenarioConfig, read_profile_table
from layertrans.flux import bandwidth_hz, photon_flux
from layertrans.layers import (
    AtmosphericLayer,
    build_layers,
    layers_from_table,
    top_down,
)
from layertrans.optics import LayerOpticalState, optical_states
from layertrans.radiative_transfer import TransferResult, integrate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Report:
    config: ScenarioConfig
    layers: Tuple[AtmosphericLayer, ...]
    optical_states: Tuple[LayerOpticalState, ...]
    transfer: TransferResult
    bandwidth: float
    photon_flux: float

    @property
    def radiance(self) -> float:
        return self.transfer.radiance

    @property
    def issues(self) -> dict:
        """Layer index -> inconsistencies found for it, flagged layers only."""
        found = {}
        for record in (*self.optical_states, *self.transfer.steps):
            if record.issues:
                found.setdefault(record.layer_index, []).extend(record.issues)
        return {index: tuple(issues) for index, issues in found.items()}

    def layer_frame(self) -> pd.DataFrame:
        rows = [
            {
                **asdict(layer),
                "top_altitude": layer.top_altitude,
                "number_density": layer.number_density,
                "co2_number_density": layer.co2_number_density,
            }
            for layer in self.layers
        ]
        return pd.DataFrame(rows).set_index("index")

    def optical_frame(self) -> pd.DataFrame:
        rows = [
            {
                **asdict(state),
                "total_deexcitation_rate": state.total_deexcitation_rate,
                "issues": "; ".join(state.issues),
            }
            for state in self.optical_states
        ]
        return pd.DataFrame(rows).set_index("layer_index")

    def trace_frame(self) -> pd.DataFrame:
        """Transfer trace in integration order, top of atmosphere first."""
        rows = [
            {**asdict(step), "issues": "; ".join(step.issues)}
            for step in self.transfer.steps
        ]
        return pd.DataFrame(rows).set_index("layer_index")

    def summary(self) -> str:
        lines = [
            f"layers:           {len(self.layers)}",
            f"column height:    {self.layers[-1].top_altitude:.2f} m",
            f"optical depth:    {self.transfer.optical_depth:.6g}",
            f"radiance:         {self.radiance:.6g} W/(m^2 sr Hz)",
            f"bandwidth:        {self.bandwidth:.6g} Hz",
            f"photon flux:      {self.photon_flux:.6g} photons/(s m^2)",
        ]
        if self.issues:
            lines.append(f"flagged layers:   {sorted(self.issues)}")
        return "\n".join(lines)


def scenario_layers(config: ScenarioConfig) -> Tuple[AtmosphericLayer, ...]:
    """The layer stack of a scenario, bottom first."""
    if config.profile_table is not None:
        return layers_from_table(
            read_profile_table(config.profile_table), config.top_altitude
        )
    if config.profile_rows is not None:
        return layers_from_table(config.profile_rows, config.top_altitude)
    return build_layers(
        config.initial_thickness,
        config.scale_height,
        config.total_height,
        config.mixing_ratio,
    )


def run_scenario(config: Optional[ScenarioConfig] = None) -> Report:
    """
    Runs one scenario end to end.

    Args:
        config: the scenario, defaults to ScenarioConfig().

    Returns:
        Report with every intermediate stage.

    Raises:
        ConfigurationError: before anything is computed, if the
            scenario is invalid.
    """
    if config is None:
        config = ScenarioConfig()
    config.validate()

    layers = scenario_layers(config)
    states = optical_states(layers, config.band, verbose=config.verbose)
    transfer = integrate(
        top_down(layers),
        states,
        zenith_angle=config.zenith_angle_rad,
        boundary_radiance=config.boundary_radiance,
    )
    frequency = config.band.frequency
    bandwidth = bandwidth_hz(
        frequency, config.bandwidth, config.fractional_bandwidth
    )
    flux = photon_flux(transfer.radiance, frequency, bandwidth, config.solid_angle)
    logger.info(
        "%d layers, radiance %g, photon flux %g",
        len(layers),
        transfer.radiance,
        flux,
    )
    return Report(
        config=config,
        layers=layers,
        optical_states=states,
        transfer=transfer,
        bandwidth=bandwidth,
        photon_flux=flux,
    )
