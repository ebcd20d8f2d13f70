"""Wind speed and heading at ground level, 2000 m and 8000 m.

Each band lives in its own table inside ``["wind"]``::

    ["wind"] =
    {
        ["at8000"] =
        {
            ["speed"] = 12,
            ["dir"] = 270,
        }, -- end of ["at8000"]
        ...

Anchors are bound to the band's table so the ``["speed"]`` of one band (or of
a unit route) is never mistaken for another.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

from miz_repacker.anchors import Anchor, anchor, table_field
from miz_repacker.config import Weather

LOGGER = logging.getLogger(__name__)


def flip_heading(heading: int) -> int:
    """Turn a wind heading around by 180 degrees."""
    return (heading + 180) % 360


@dataclass(frozen=True)
class WindBand:
    label: str
    speed: Anchor
    heading: Anchor


GROUND = WindBand(
    "Ground",
    anchor("ground wind speed", table_field("atGround", "speed")),
    anchor("ground wind direction", table_field("atGround", "dir")),
)
AT_2000M = WindBand(
    "2000m",
    anchor("2000m wind speed", table_field("at2000", "speed")),
    anchor("2000m wind direction", table_field("at2000", "dir")),
)
AT_8000M = WindBand(
    "8000m",
    anchor("8000m wind speed", table_field("at8000", "speed")),
    anchor("8000m wind direction", table_field("at8000", "dir")),
)


def _modify_band(
    mission: str,
    band: WindBand,
    speed: Optional[float],
    heading: Optional[int],
    wind_flipped: bool,
    dry_run: bool,
) -> str:
    if speed is not None:
        LOGGER.info("   %-23s%.1f m/s", f"{band.label} wind speed:", speed)
        mission = band.speed.patch(mission, f"{speed:.2f}", dry_run)

    if heading is not None:
        if wind_flipped:
            heading = flip_heading(heading)
        LOGGER.info(
            "   %-23s%d°%s",
            f"{band.label} wind heading:",
            heading,
            " (flipped)" if wind_flipped else "",
        )
        mission = band.heading.patch(mission, str(heading), dry_run)

    return mission


def modify_ground_wind(
    mission: str,
    weather: Weather,
    rng: random.Random,
    wind_flipped: bool = False,
    dry_run: bool = False,
) -> tuple[str, Optional[float]]:
    """Patch the ground wind. Returns the new mission and the speed used (if any)."""
    speed = weather.random_wind_speed_ground(rng)
    heading = weather.random_wind_heading_ground(rng)
    return _modify_band(mission, GROUND, speed, heading, wind_flipped, dry_run), speed


def _modify_upper_band(
    mission: str,
    band: WindBand,
    speed_fn: Callable[[float, random.Random], Optional[float]],
    heading_fn: Callable[[random.Random], Optional[int]],
    base_speed: float,
    rng: random.Random,
    wind_flipped: bool,
    dry_run: bool,
) -> tuple[str, Optional[float]]:
    speed = speed_fn(base_speed, rng)
    heading = heading_fn(rng)
    return _modify_band(mission, band, speed, heading, wind_flipped, dry_run), speed


def modify_2000m_wind(
    mission: str,
    weather: Weather,
    base_speed: float,
    rng: random.Random,
    wind_flipped: bool = False,
    dry_run: bool = False,
) -> tuple[str, Optional[float]]:
    """Patch the 2000 m wind; its speed is ``base_speed`` plus the configured increase."""
    return _modify_upper_band(
        mission,
        AT_2000M,
        weather.random_wind_speed_2000m,
        weather.random_wind_heading_2000m,
        base_speed,
        rng,
        wind_flipped,
        dry_run,
    )


def modify_8000m_wind(
    mission: str,
    weather: Weather,
    base_speed: float,
    rng: random.Random,
    wind_flipped: bool = False,
    dry_run: bool = False,
) -> tuple[str, Optional[float]]:
    """Patch the 8000 m wind; its speed is ``base_speed`` plus the configured increase."""
    return _modify_upper_band(
        mission,
        AT_8000M,
        weather.random_wind_speed_8000m,
        weather.random_wind_heading_8000m,
        base_speed,
        rng,
        wind_flipped,
        dry_run,
    )
