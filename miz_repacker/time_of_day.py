"""Mission start time.

Preset times are written ``H``, ``H:M`` or ``H:M:S``. Components may overflow
(``"6:90"`` is 07:30) and carry upwards; whole days are dropped, so ``"25:00"``
starts at 01:00 on the mission's original date.
"""
from __future__ import annotations

import logging
import re

from miz_repacker.anchors import anchor
from miz_repacker.config import Preset
from miz_repacker.errors import FormatError

LOGGER = logging.getLogger(__name__)

# Groups and units also carry a ["start_time"]; only the mission's own key sits
# exactly one indentation level deep.
START_TIME = anchor(
    "start_time",
    r'^(?P<head>(?:    |\t)\["start_time"\] = )\d+(?P<tail>,)$',
    re.MULTILINE,
)

_COMPONENTS = ("hours", "minutes", "seconds")
# ASCII digits with an optional sign; no spaces or underscores
_COMPONENT_RE = re.compile(r"[+-]?[0-9]+\Z")


def parse_time(time: str) -> tuple[int, int, int]:
    """Split ``H[:M[:S]]`` into integers; missing components are 0."""
    parts = time.split(":")
    if len(parts) > len(_COMPONENTS):
        raise FormatError(f"Invalid time format: {time} (expected H[:M[:S]])")

    values = [0, 0, 0]
    for i, part in enumerate(parts):
        if not _COMPONENT_RE.match(part):
            raise FormatError(f"cannot read {_COMPONENTS[i]} from time {time}")
        values[i] = int(part)
    return values[0], values[1], values[2]


def normalize_time(hours: int, minutes: int, seconds: int) -> tuple[int, int, int]:
    """Carry overflowing seconds and minutes upwards and wrap hours at 24."""
    carry, seconds = divmod(seconds, 60)
    minutes += carry
    carry, minutes = divmod(minutes, 60)
    hours = (hours + carry) % 24
    return hours, minutes, seconds


def seconds_of_day(time: str) -> int:
    hours, minutes, seconds = normalize_time(*parse_time(time))
    return hours * 3600 + minutes * 60 + seconds


def modify_time(mission: str, preset: Preset, dry_run: bool = False) -> str:
    hours, minutes, seconds = normalize_time(*parse_time(preset.time))
    LOGGER.info("   Start time: %02d:%02d:%02d", hours, minutes, seconds)
    return START_TIME.patch(mission, str(hours * 3600 + minutes * 60 + seconds), dry_run)
