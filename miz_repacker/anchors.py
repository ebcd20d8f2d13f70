"""Locate and rewrite single values inside the serialized mission table.

The ``mission`` file inside a ``.miz`` is a large Lua table dump. Rather than
parsing it, each field is found with a regular expression that captures the
text before the value (``head``) and after it (``tail``). Only the value in
between is replaced, so every other byte of the mission is preserved.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from miz_repacker.errors import PatchError

LOGGER = logging.getLogger(__name__)

# Existing numeric value in the mission (may be negative or fractional)
NUM_RE = r"-?\d+(?:\.\d+)?"


@dataclass(frozen=True)
class Anchor:
    """A field in the mission, identified by a pattern with ``head``/``tail`` groups."""

    label: str
    pattern: re.Pattern[str]

    def locate(self, mission: str) -> bool:
        return self.pattern.search(mission) is not None

    def require(self, mission: str, dry_run: bool) -> None:
        """Raise PatchError if the field is missing (skipped in dry-run mode)."""
        if not dry_run and not self.locate(mission):
            raise PatchError(f"Could not find {self.label} key in mission file")

    def patch(self, mission: str, value: str, dry_run: bool = False) -> str:
        """Return ``mission`` with the first occurrence of the field set to ``value``."""
        self.require(mission, dry_run)

        def repl(m: re.Match[str]) -> str:
            LOGGER.debug("Patching %s at offset %d", self.label, m.start())
            return f"{m.group('head')}{value}{m.group('tail')}"

        return self.pattern.sub(repl, mission, count=1)


def anchor(label: str, regex: str, flags: int = 0) -> Anchor:
    return Anchor(label, re.compile(regex, flags))


def table_field(table: str, key: str, value_re: str = NUM_RE) -> str:
    """Regex for ``["key"] = <value>,`` directly inside the ``["table"]`` block.

    ``[^{}]*?`` keeps the match inside the table's own braces, so a key of the
    same name in a sibling or nested table never matches.
    """
    return (
        rf'(?P<head>\["{table}"\]\s*=\s*\{{[^{{}}]*?\["{key}"\]\s*=\s*)'
        rf"{value_re}"
        r"(?P<tail>,)"
    )
