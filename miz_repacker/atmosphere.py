"""Temperature and QNH fields."""
from __future__ import annotations

import logging
import random

from miz_repacker.anchors import NUM_RE, anchor, table_field
from miz_repacker.config import Weather

LOGGER = logging.getLogger(__name__)

TEMPERATURE = anchor("temperature", table_field("season", "temperature"))
# ["qnh"] only appears once, directly in the weather table
QNH = anchor("QNH", rf'(?P<head>\["qnh"\]\s*=\s*){NUM_RE}(?P<tail>,)')


def modify_temp(mission: str, weather: Weather, rng: random.Random, dry_run: bool = False) -> str:
    temperature = weather.random_temp(rng)
    if temperature is None:
        return mission

    LOGGER.info("   Temperature:           %.2f °C", temperature)
    return TEMPERATURE.patch(mission, f"{temperature:.2f}", dry_run)


def modify_qnh(mission: str, weather: Weather, rng: random.Random, dry_run: bool = False) -> str:
    qnh = weather.random_qnh(rng)
    if qnh is None:
        return mission

    LOGGER.info("   QNH:                   %.2f mmHg", qnh)
    return QNH.patch(mission, f"{qnh:.2f}", dry_run)
