"""
Scenario configuration for layertrans.

A scenario is one atmosphere seen in one band. It is described by a
ScenarioConfig, built in code or read from a YAML file:

    initial_thickness: 100      # m
    scale_height: 12000         # m
    total_height: 12000         # m
    co2_ppm: 411
    zenith_angle: 0             # degrees
    bandwidth: 0.05             # fraction of the band frequency
    solid_angle: 1.0            # sr
    profile_table: profile.csv  # optional, replaces the generated layers
    band:
      wavelength: 15.0e-6
      einstein_a: 1.5

Every key is optional; anything left out keeps its default.
"""

import logging
import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd
import yaml

from layertrans.constants import Co2Band
from layertrans.errors import ConfigurationError, require_number, require_positive
from layertrans.layers import TABLE_COLUMNS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioConfig:
    """All inputs of a single run.

    Attributes:
        initial_thickness: ground layer thickness in m.
        scale_height: e-folding height of the layer thickness in m.
        total_height: column height in m.
        co2_ppm: CO2 concentration of generated layers, ppm.
        zenith_angle: viewing angle from the vertical in degrees.
        boundary_radiance: radiance entering the top of the atmosphere,
            W/(m^2 sr Hz).
        bandwidth: band width, fraction of the band frequency when
            fractional_bandwidth, otherwise Hz.
        fractional_bandwidth: how bandwidth is read.
        solid_angle: collection solid angle in sr.
        profile_table: CSV profile, replaces the generated layers.
        profile_rows: inline profile rows, same meaning as
            profile_table.
        top_altitude: top of the column for a profile table.
        verbose: show progress bars.
        band: band constants.
    """

    initial_thickness: float = 100.0
    scale_height: float = 12000.0
    total_height: float = 12000.0
    co2_ppm: float = 411.0
    zenith_angle: float = 0.0
    boundary_radiance: float = 0.0
    bandwidth: float = 0.05
    fractional_bandwidth: bool = True
    solid_angle: float = 1.0
    profile_table: Optional[Path] = None
    profile_rows: Optional[tuple] = None
    top_altitude: Optional[float] = None
    verbose: bool = False
    band: Co2Band = field(default_factory=Co2Band)

    @property
    def mixing_ratio(self) -> float:
        return self.co2_ppm * 1e-6

    @property
    def zenith_angle_rad(self) -> float:
        return math.radians(self.zenith_angle)

    @property
    def uses_table(self) -> bool:
        return self.profile_table is not None or self.profile_rows is not None

    def validate(self) -> "ScenarioConfig":
        """
        Checks the scenario before anything is computed.

        Returns:
            self, so calls can be chained.

        Raises:
            ConfigurationError: first problem found.
        """
        if not self.uses_table:
            require_positive("initial_thickness", self.initial_thickness)
            require_positive("scale_height", self.scale_height)
            require_positive("total_height", self.total_height)
            if not 0 <= require_number("co2_ppm", self.co2_ppm) <= 1e6:
                raise ConfigurationError(
                    f"co2_ppm must be within [0, 1e6], got {self.co2_ppm}"
                )
        if self.profile_table is not None and self.profile_rows is not None:
            raise ConfigurationError(
                "give either profile_table or profile_rows, not both"
            )
        if not 0 <= require_number("zenith_angle", self.zenith_angle) < 90:
            raise ConfigurationError(
                f"zenith_angle must be within [0, 90) degrees, "
                f"got {self.zenith_angle}"
            )
        boundary = require_number("boundary_radiance", self.boundary_radiance)
        if not boundary >= 0:
            raise ConfigurationError(
                "boundary_radiance must not be negative, "
                f"got {self.boundary_radiance}"
            )
        require_positive("bandwidth", self.bandwidth)
        require_positive("solid_angle", self.solid_angle)
        require_positive("band.wavelength", self.band.wavelength)
        require_positive("band.molecular_mass", self.band.molecular_mass)
        for name in ("einstein_a", "collision_cross_section",
                     "absorption_cross_section"):
            if not math.isfinite(getattr(self.band, name)):
                raise ConfigurationError(f"band.{name} must be finite")
        return self

    def with_overrides(self, **overrides: Any) -> "ScenarioConfig":
        """Copy of the config with some values replaced, None is ignored."""
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **overrides)


NUMERIC_KEYS = (
    "initial_thickness",
    "scale_height",
    "total_height",
    "co2_ppm",
    "zenith_angle",
    "boundary_radiance",
    "bandwidth",
    "solid_angle",
    "top_altitude",
)


def _profile_row(index: int, row) -> tuple:
    if not isinstance(row, (list, tuple)) or len(row) != len(TABLE_COLUMNS):
        raise ConfigurationError(
            f"profile_rows entry {index} must have {len(TABLE_COLUMNS)} values",
            [f"Expected columns: {', '.join(TABLE_COLUMNS)}"],
        )
    return tuple(
        require_number(f"profile_rows[{index}].{column}", value)
        for column, value in zip(TABLE_COLUMNS, row)
    )


def config_from_dict(values: Dict[str, Any], base_dir: Path = Path(".")):
    """
    Builds a ScenarioConfig from a mapping, e.g. parsed YAML.

    Args:
        values: configuration keys and values.
        base_dir: directory relative profile_table paths are resolved
            against.

    Returns:
        validated ScenarioConfig.
    """
    values = dict(values or {})
    known = {f.name for f in fields(ScenarioConfig)}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(
            f"unknown configuration keys {sorted(unknown)}",
            [f"Known keys: {', '.join(sorted(known))}"],
        )

    band_values = values.pop("band", None) or {}
    if not isinstance(band_values, dict):
        raise ConfigurationError("band must be a mapping of band constants")
    unknown_band = set(band_values) - set(Co2Band.field_names())
    if unknown_band:
        raise ConfigurationError(
            f"unknown band constants {sorted(unknown_band)}",
            [f"Known constants: {', '.join(Co2Band.field_names())}"],
        )
    try:
        band = Co2Band(**{k: float(v) for k, v in band_values.items()})
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid band constant: {e}") from None

    if values.get("profile_table") is not None:
        table = Path(values["profile_table"])
        if not table.is_absolute():
            table = base_dir / table
        values["profile_table"] = table
    for name in NUMERIC_KEYS:
        if values.get(name) is not None:
            values[name] = require_number(name, values[name])
    if values.get("profile_rows") is not None:
        rows = values["profile_rows"]
        if not isinstance(rows, (list, tuple)):
            raise ConfigurationError("profile_rows must be a list of rows")
        values["profile_rows"] = tuple(
            _profile_row(i, row) for i, row in enumerate(rows)
        )
    return ScenarioConfig(band=band, **values).validate()


def load_config(path: Union[str, Path]) -> ScenarioConfig:
    """
    Reads a scenario from a YAML file.

    Args:
        path: /path/to/scenario.yaml

    Returns:
        validated ScenarioConfig.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(
            f"configuration file {path} does not exist"
        )
    with open(path) as f:
        try:
            values = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"could not parse {path}: {e}") from None
    if values is not None and not isinstance(values, dict):
        raise ConfigurationError(f"{path} must contain a mapping of settings")
    logger.info("Loaded config from: %s", path)
    return config_from_dict(values, base_dir=path.parent)


def read_profile_table(path: Union[str, Path]) -> pd.DataFrame:
    """
    Reads a CSV profile with columns altitude, temperature, pressure
    and mixing_ratio, one row per layer base.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"profile table {path} does not exist")
    table = pd.read_csv(path, comment="#", skipinitialspace=True)
    missing = set(TABLE_COLUMNS) - set(table.columns)
    if missing:
        raise ConfigurationError(
            f"profile table {path} is missing columns {sorted(missing)}",
            [f"Expected a header with: {', '.join(TABLE_COLUMNS)}"],
        )
    logger.debug("Read %d profile rows from %s", len(table), path)
    return table
