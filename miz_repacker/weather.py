"""Apply a weather profile to a mission.

Fields are patched in a fixed order: cloud preset, cloud base, then wind from
the ground up (each upper band adds to the speed of the band below),
temperature and finally QNH.
"""
from __future__ import annotations

import random

from miz_repacker import atmosphere, clouds, wind
from miz_repacker.config import Weather


def modify_weather(
    mission: str,
    profile_name: str,
    weather: Weather,
    rng: random.Random,
    wind_flipped: bool = False,
    dry_run: bool = False,
) -> str:
    """Return a copy of ``mission`` with every field the profile sets randomized.

    ``wind_flipped`` is decided once per preset (see
    :func:`miz_repacker.config.roll_wind_flip`) and applies to all three bands.
    """
    mission = clouds.modify_cloud_preset(mission, profile_name, weather, dry_run)
    mission = clouds.modify_cloud_base(mission, weather, rng, dry_run)

    # Each base is the speed written to the band below, 0 if it was left alone
    ground_speed = 0.0
    speed_2000m = 0.0
    mission, speed = wind.modify_ground_wind(mission, weather, rng, wind_flipped, dry_run)
    if speed is not None:
        ground_speed = speed
    mission, speed = wind.modify_2000m_wind(
        mission, weather, ground_speed, rng, wind_flipped, dry_run
    )
    if speed is not None:
        speed_2000m = speed
    mission, _ = wind.modify_8000m_wind(
        mission, weather, speed_2000m, rng, wind_flipped, dry_run
    )

    mission = atmosphere.modify_temp(mission, weather, rng, dry_run)
    mission = atmosphere.modify_qnh(mission, weather, rng, dry_run)
    return mission
