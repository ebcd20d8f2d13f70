"""Mission-wide clean-ups applied before presets are generated."""
from __future__ import annotations

import logging
import re

LOGGER = logging.getLogger(__name__)

# Keeps the table header, opening brace and closing line; drops the entries.
REQUIRED_MODULES_RE = re.compile(
    r'(\["requiredModules"\] = ?\n)'
    r"([ \t]+\{\n)"
    r"(?:.+\n)*?"
    r'([ \t]+\}, -- end of \["requiredModules"\]\n)',
    re.MULTILINE,
)


def remove_required_modules(mission: str, dry_run: bool = False) -> str:
    """Empty the ``["requiredModules"]`` table so the mission loads without those mods."""
    if not dry_run and not REQUIRED_MODULES_RE.search(mission):
        LOGGER.warning(
            "The mission does not seem to have a requiredModules table, no need to remove it..."
        )
        return mission

    LOGGER.info("-> Removing required modules")
    return REQUIRED_MODULES_RE.sub(r"\1\2\3", mission, count=1)
