"""Repack configuration: presets, weather profiles and profile inheritance.

The configuration file (``repack.toml`` by default) has two main tables::

    [preset.morning]
    time = "6:30"
    weather = ["clear", "overcast"]

    [weather.clear]
    cloud_preset = "Preset1"
    cloud_base_min = 2500
    cloud_base_max = 4000
    weight = 3

    [weather.overcast]
    inherit = ["clear"]
    cloud_preset = "Preset10"

Inheritance is merged on the raw decoded tree before anything is validated, so
a field the profile leaves out can be told apart from a field set to its
default. The merged tree is then validated strictly: unknown keys are errors.
"""
from __future__ import annotations

import json
import logging
import random
import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from miz_repacker.errors import ConfigError
from miz_repacker.randomize import choose_weighted, draw, roll

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "repack.toml"


class Preset(BaseModel):
    """A named output mission: a start time plus candidate weather profiles."""

    model_config = ConfigDict(extra="forbid")

    time: str
    weather: Optional[list[str]] = None
    flip_wind: bool = False


class Weather(BaseModel):
    """A weather profile made of optional ``*_min`` / ``*_max`` ranges.

    A range with neither bound set leaves the mission field untouched. The
    2000 m and 8000 m wind speeds are increases over the band below.
    """

    model_config = ConfigDict(extra="forbid")

    cloud_preset: Optional[str] = None
    cloud_base_min: Optional[int] = None
    cloud_base_max: Optional[int] = None

    wind_ground_speed_min: Optional[float] = None
    wind_ground_speed_max: Optional[float] = None
    wind_ground_heading_min: Optional[int] = None
    wind_ground_heading_max: Optional[int] = None
    wind_2000m_speed_increase_min: Optional[float] = None
    wind_2000m_speed_increase_max: Optional[float] = None
    wind_2000m_heading_min: Optional[int] = None
    wind_2000m_heading_max: Optional[int] = None
    wind_8000m_speed_increase_min: Optional[float] = None
    wind_8000m_speed_increase_max: Optional[float] = None
    wind_8000m_heading_min: Optional[int] = None
    wind_8000m_heading_max: Optional[int] = None
    wind_flip_chance: float = Field(default=0.0, ge=0.0, le=1.0)

    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    qnh_min: Optional[float] = None
    qnh_max: Optional[float] = None

    weight: float = Field(default=1.0, gt=0.0)
    inherit: list[str] = Field(default_factory=list)

    def random_cloud_base(self, rng: random.Random) -> Optional[int]:
        return draw(self.cloud_base_min, self.cloud_base_max, rng, "cloud_base")

    def random_wind_speed_ground(self, rng: random.Random) -> Optional[float]:
        return draw(
            self.wind_ground_speed_min, self.wind_ground_speed_max, rng, "wind_ground_speed"
        )

    def random_wind_heading_ground(self, rng: random.Random) -> Optional[int]:
        return draw(
            self.wind_ground_heading_min, self.wind_ground_heading_max, rng, "wind_ground_heading"
        )

    def random_wind_speed_2000m(self, base: float, rng: random.Random) -> Optional[float]:
        increase = draw(
            self.wind_2000m_speed_increase_min,
            self.wind_2000m_speed_increase_max,
            rng,
            "wind_2000m_speed_increase",
        )
        return None if increase is None else base + increase

    def random_wind_heading_2000m(self, rng: random.Random) -> Optional[int]:
        return draw(
            self.wind_2000m_heading_min, self.wind_2000m_heading_max, rng, "wind_2000m_heading"
        )

    def random_wind_speed_8000m(self, base: float, rng: random.Random) -> Optional[float]:
        increase = draw(
            self.wind_8000m_speed_increase_min,
            self.wind_8000m_speed_increase_max,
            rng,
            "wind_8000m_speed_increase",
        )
        return None if increase is None else base + increase

    def random_wind_heading_8000m(self, rng: random.Random) -> Optional[int]:
        return draw(
            self.wind_8000m_heading_min, self.wind_8000m_heading_max, rng, "wind_8000m_heading"
        )

    def random_temp(self, rng: random.Random) -> Optional[float]:
        return draw(self.temp_min, self.temp_max, rng, "temp")

    def random_qnh(self, rng: random.Random) -> Optional[float]:
        return draw(self.qnh_min, self.qnh_max, rng, "qnh")


class Misc(BaseModel):
    """Mission-wide tweaks applied once, before any preset is generated."""

    model_config = ConfigDict(extra="forbid")

    remove_required_modules: bool = False


class Config(BaseModel):
    """The whole configuration file."""

    model_config = ConfigDict(extra="forbid")

    preset: dict[str, Preset]
    weather: dict[str, Weather] = Field(default_factory=dict)
    misc: Misc = Field(default_factory=Misc)


# ---------------------------------------------------------------------
# Inheritance
# ---------------------------------------------------------------------

def resolve_inheritance(raw: dict[str, Any]) -> dict[str, Any]:
    """Merge inherited weather fields into every profile that declares ``inherit``.

    Parents are applied in list order, later parents overriding earlier ones,
    and the profile's own fields override everything inherited. Parents that
    inherit themselves are resolved first. ``raw`` is not modified.

    Raises:
        ConfigError: On a missing or non-table parent, or an inheritance cycle.
    """
    weather = raw.get("weather")
    if not isinstance(weather, dict):
        return raw

    resolved: dict[str, dict[str, Any]] = {}

    def resolve(name: str, chain: list[str]) -> dict[str, Any]:
        if name in resolved:
            return resolved[name]
        if name in chain:
            cycle = " -> ".join(chain[chain.index(name):] + [name])
            raise ConfigError(f"Weather inheritance cycle: {cycle}")

        own = weather[name]
        parents = own.get("inherit", [])
        if not isinstance(parents, list) or not all(isinstance(p, str) for p in parents):
            raise ConfigError(f"weather.{name}.inherit must be a list of profile names")

        merged: dict[str, Any] = {}
        for parent in parents:
            target = weather.get(parent)
            if target is None:
                raise ConfigError(
                    f"Weather profile '{name}' inherits from '{parent}', which does not exist"
                )
            if not isinstance(target, dict):
                raise ConfigError(
                    f"Weather profile '{name}' inherits from '{parent}', which is not a table"
                )
            inherited = resolve(parent, chain + [name])
            merged.update({k: v for k, v in inherited.items() if k != "inherit"})
        merged.update(own)

        resolved[name] = merged
        return merged

    new_weather: dict[str, Any] = {}
    for name, entry in weather.items():
        if isinstance(entry, dict):
            new_weather[name] = resolve(name, [])
        else:
            # Left for the schema to reject with a proper message
            new_weather[name] = entry

    return {**raw, "weather": new_weather}


def parse_config(raw: dict[str, Any]) -> Config:
    """Resolve inheritance on ``raw`` and validate it into a :class:`Config`."""
    merged = resolve_inheritance(raw)
    try:
        return Config.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration:\n{exc}") from exc


def load_config(path: Path) -> Config:
    """Read and validate a TOML (or ``.json``) configuration file."""
    LOGGER.debug("Reading configuration from %s", path)
    try:
        if path.suffix.lower() == ".json":
            raw = json.loads(path.read_text(encoding="utf-8"))
        else:
            with path.open("rb") as fh:
                raw = tomllib.load(fh)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot parse {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a table at the top level")
    return parse_config(raw)


# ---------------------------------------------------------------------
# Per-preset selection
# ---------------------------------------------------------------------

def choose_weather(config: Config, preset_name: str, rng: random.Random) -> Optional[str]:
    """Pick a weather profile name for a preset, weighted by profile ``weight``.

    Returns None when the preset does not ask for weather changes.
    """
    preset = config.preset[preset_name]
    if preset.weather is None:
        return None
    if not preset.weather:
        raise ConfigError(f"Preset '{preset_name}' has an empty weather list")

    for name in preset.weather:
        if name not in config.weather:
            raise ConfigError(f"Weather preset not found: {name} (used by preset '{preset_name}')")

    weights = [config.weather[name].weight for name in preset.weather]
    return choose_weighted(preset.weather, weights, rng)


def roll_wind_flip(weather: Weather, preset: Preset, rng: random.Random) -> bool:
    """Decide whether wind headings are flipped for one preset/profile pairing."""
    return roll(weather.wind_flip_chance, rng) != preset.flip_wind
