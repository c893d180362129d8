"""
This file turns an atmosphere description into an ordered stack of
homogeneous layers, which the optical property and transfer
calculations then consume.

Two ways of building the stack are provided:
    * build_layers generates the layers from an exponential growth law,
      thin at the ground where the air is dense and thicker higher up,
      with temperature and pressure from the ISA.
    * layers_from_table takes an explicit altitude, temperature,
      pressure, mixing ratio table verbatim.

Stacks are returned bottom first, as tuples of frozen AtmosphericLayer.
Use top_down to get the order the transfer integrator expects.
"""
import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from layertrans import isa
from layertrans.constants import ISA_CEILING, k_B
from layertrans.errors import ConfigurationError, require_number, require_positive

logger = logging.getLogger(__name__)

TABLE_COLUMNS = ("altitude", "temperature", "pressure", "mixing_ratio")


@dataclass(frozen=True)
class AtmosphericLayer:
    """One horizontal, homogeneous slab of atmosphere.

    Attributes:
        index: position in the stack, 0 at the ground.
        start_altitude: altitude of the layer base in m.
        thickness: vertical extent in m.
        temperature: K.
        pressure: Pa.
        mixing_ratio: CO2 volume mixing ratio (ppm * 1e-6).
    """

    index: int
    start_altitude: float
    thickness: float
    temperature: float
    pressure: float
    mixing_ratio: float

    @property
    def top_altitude(self) -> float:
        return self.start_altitude + self.thickness

    @property
    def number_density(self) -> float:
        """Air molecules per m^3 from the ideal gas law."""
        return self.pressure / (k_B * self.temperature)

    @property
    def co2_number_density(self) -> float:
        return self.number_density * self.mixing_ratio


def layer_thicknesses(
    initial_thickness: float, scale_height: float, total_height: float
) -> Tuple[Tuple[float, float], ...]:
    """
    Splits the column [0, total_height] into layers whose thickness
    grows as initial_thickness * exp(h / scale_height), h being the
    height reached so far. The last layer is clipped so the
    thicknesses add up to total_height exactly.

    Example:
        layer_thicknesses(100, 12000, 300)
        returns ((0, 100), (100, 100.84), (200.84, 99.16))

    Args:
        initial_thickness: thickness of the ground layer in m.
        scale_height: e-folding height of the thickness growth in m.
        total_height: height of the column top in m.

    Returns:
        (start_altitude, thickness) pairs, bottom first.
    """
    initial_thickness = require_positive("initial_thickness", initial_thickness)
    scale_height = require_positive("scale_height", scale_height)
    total_height = require_positive("total_height", total_height)

    if initial_thickness >= total_height:
        return ((0.0, total_height),)

    bounds = [(0.0, initial_thickness)]
    accumulated = initial_thickness
    # every layer is at least initial_thickness thick, so this bounds
    # the loop
    max_layers = math.ceil(total_height / initial_thickness)
    while accumulated < total_height:
        if len(bounds) > max_layers:
            raise RuntimeError("layer generation did not reach the column top")
        thickness = initial_thickness * math.exp(accumulated / scale_height)
        if accumulated + thickness >= total_height:
            thickness = total_height - accumulated
            bounds.append((accumulated, thickness))
            accumulated = total_height
        else:
            bounds.append((accumulated, thickness))
            accumulated += thickness
    return tuple(bounds)


def build_layers(
    initial_thickness: float,
    scale_height: float,
    total_height: float,
    mixing_ratio: float,
) -> Tuple[AtmosphericLayer, ...]:
    """
    Generates a layer stack, with the temperature and pressure of each
    layer taken from the ISA at the layer mid point.

    Args:
        initial_thickness: thickness of the ground layer in m.
        scale_height: e-folding height of the thickness growth in m.
        total_height: height of the column top in m, at most the ISA
            ceiling.
        mixing_ratio: CO2 volume mixing ratio, constant with height.

    Returns:
        tuple of AtmosphericLayer, bottom first.
    """
    total_height = require_positive("total_height", total_height)
    if total_height > ISA_CEILING:
        raise ConfigurationError(
            f"total_height {total_height} m is above the ISA ceiling",
            [
                f"Use a column of at most {ISA_CEILING} m",
                "Or supply an explicit profile table",
            ],
        )
    _check_mixing_ratio(mixing_ratio)
    bounds = layer_thicknesses(initial_thickness, scale_height, total_height)
    starts = np.array([start for start, _ in bounds])
    widths = np.array([width for _, width in bounds])
    mid_points = starts + widths / 2
    temperatures = isa.get_temperature(mid_points)
    pressures = isa.get_pressure(mid_points)
    layers = tuple(
        AtmosphericLayer(
            index=i,
            start_altitude=float(start),
            thickness=float(width),
            temperature=float(temperature),
            pressure=float(pressure),
            mixing_ratio=float(mixing_ratio),
        )
        for i, (start, width, temperature, pressure) in enumerate(
            zip(starts, widths, temperatures, pressures)
        )
    )
    logger.debug(
        "Generated %d layers up to %.1f m", len(layers), total_height
    )
    return layers


def layers_from_table(
    table, top_altitude: Optional[float] = None
) -> Tuple[AtmosphericLayer, ...]:
    """
    Builds the layer stack from a profile table, rows taken verbatim.

    Every row is the base of a layer reaching up to the next row's
    altitude. The last row is the base of a top layer reaching
    top_altitude, or, when top_altitude is not given, only marks the
    top of the column.

    Args:
        table: pandas DataFrame with columns altitude, temperature,
            pressure, mixing_ratio, or an iterable of such 4-tuples.
        top_altitude: altitude of the column top in m.

    Returns:
        tuple of AtmosphericLayer, bottom first.
    """
    rows = _table_rows(table)
    altitudes = [row[0] for row in rows]
    if top_altitude is not None:
        altitudes.append(require_positive("top_altitude", top_altitude))
    else:
        rows = rows[:-1]
    if not rows:
        raise ConfigurationError(
            "profile table describes no layers",
            [
                "Give at least two rows",
                "Or set top_altitude for a single row table",
            ],
        )
    finite = np.isfinite(altitudes)
    if not np.all(finite):
        bad = int(np.argmax(~finite))
        raise ConfigurationError(
            f"profile table altitude in row {bad} is not finite, "
            f"got {altitudes[bad]}"
        )
    if altitudes[0] < 0:
        raise ConfigurationError(
            f"profile table starts below the ground at {altitudes[0]} m"
        )
    thicknesses = np.diff(altitudes)
    increasing = thicknesses > 0
    if not np.all(increasing):
        bad = int(np.argmax(~increasing))
        raise ConfigurationError(
            "profile table altitudes must be strictly increasing, "
            f"row {bad + 1} at {altitudes[bad + 1]} m follows "
            f"{altitudes[bad]} m"
        )
    layers = []
    for i, ((altitude, temperature, pressure, mixing_ratio), thickness) in (
        enumerate(zip(rows, thicknesses))
    ):
        _check_state(i, temperature, pressure)
        _check_mixing_ratio(mixing_ratio)
        layers.append(
            AtmosphericLayer(
                index=i,
                start_altitude=altitude,
                thickness=float(thickness),
                temperature=temperature,
                pressure=pressure,
                mixing_ratio=mixing_ratio,
            )
        )
    logger.debug("Read %d layers from profile table", len(layers))
    return tuple(layers)


def top_down(layers: Iterable[AtmosphericLayer]) -> Tuple[AtmosphericLayer, ...]:
    """Orders a stack top-of-atmosphere first."""
    return tuple(
        sorted(layers, key=lambda layer: layer.start_altitude, reverse=True)
    )


def _table_rows(table) -> list:
    if isinstance(table, pd.DataFrame):
        missing = set(TABLE_COLUMNS) - set(table.columns)
        if missing:
            raise ConfigurationError(
                f"profile table is missing columns {sorted(missing)}",
                [f"Expected columns: {', '.join(TABLE_COLUMNS)}"],
            )
        table = table.loc[:, list(TABLE_COLUMNS)].itertuples(index=False)
    rows = []
    for row in table:
        if len(row) != 4:
            raise ConfigurationError(
                f"profile table row {tuple(row)} does not have 4 entries",
                [f"Expected columns: {', '.join(TABLE_COLUMNS)}"],
            )
        rows.append(
            tuple(
                require_number(f"profile table {column}", value)
                for column, value in zip(TABLE_COLUMNS, row)
            )
        )
    return rows


def _check_state(index: int, temperature: float, pressure: float):
    if not temperature > 0:
        raise ConfigurationError(
            f"layer {index} temperature must be above 0 K, got {temperature}"
        )
    if not pressure >= 0:
        raise ConfigurationError(
            f"layer {index} pressure must not be negative, got {pressure}"
        )


def _check_mixing_ratio(mixing_ratio: float):
    if not 0 <= mixing_ratio <= 1:
        raise ConfigurationError(
            f"mixing ratio must be within [0, 1], got {mixing_ratio}",
            ["Convert ppm to a mixing ratio by multiplying by 1e-6"],
        )
