"""Cloud preset and cloud base fields.

Preset names are checked against pydcs's catalogue of DCS cloud presets. An
unknown name or a base outside the preset's limits is only a warning: DCS
ships new presets faster than pydcs, and clamps out-of-range bases itself.
"""
from __future__ import annotations

import logging
import random
from typing import Optional

from dcs.cloud_presets import CloudPreset, Clouds

from miz_repacker.anchors import anchor, table_field
from miz_repacker.config import Weather
from miz_repacker.errors import ConfigError

LOGGER = logging.getLogger(__name__)

CLOUD_PRESET = anchor("cloud preset", table_field("clouds", "preset", r'"[^"\n]*"'))
CLOUD_BASE = anchor("cloud base", table_field("clouds", "base"))


def known_cloud_presets() -> dict[str, CloudPreset]:
    """Map DCS preset names (``"Preset1"``, ``"RainyPreset2"``, ...) to pydcs presets."""
    return {clouds.value.name: clouds.value for clouds in Clouds}


def modify_cloud_preset(
    mission: str, profile_name: str, weather: Weather, dry_run: bool = False
) -> str:
    """Set the cloud preset name. The profile must define ``cloud_preset``."""
    cloud_preset = weather.cloud_preset
    if cloud_preset is None:
        raise ConfigError(f"Cloud preset not defined in weather key: {profile_name}")

    if cloud_preset not in known_cloud_presets():
        LOGGER.warning("   Cloud preset %s is not a preset known to pydcs", cloud_preset)

    LOGGER.info("   Cloud preset:          %s", cloud_preset)
    return CLOUD_PRESET.patch(mission, f'"{cloud_preset}"', dry_run)


def modify_cloud_base(
    mission: str, weather: Weather, rng: random.Random, dry_run: bool = False
) -> str:
    cloud_base = weather.random_cloud_base(rng)
    if cloud_base is None:
        return mission

    LOGGER.info("   Cloud base:            %d meters", cloud_base)
    _check_base_limits(weather.cloud_preset, cloud_base)
    return CLOUD_BASE.patch(mission, str(cloud_base), dry_run)


def _check_base_limits(cloud_preset: Optional[str], cloud_base: int) -> None:
    preset = known_cloud_presets().get(cloud_preset) if cloud_preset else None
    if preset is None:
        return
    if not preset.min_base <= cloud_base <= preset.max_base:
        LOGGER.warning(
            "   Cloud base %d m is outside %s limits (%d-%d m); DCS will clamp it",
            cloud_base,
            cloud_preset,
            preset.min_base,
            preset.max_base,
        )
