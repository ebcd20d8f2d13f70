"""Exception types raised while repacking a mission."""
from __future__ import annotations


class RepackError(Exception):
    """Base class for every error the repacker reports to the user."""


class ConfigError(RepackError):
    """The configuration is malformed, inconsistent or references missing profiles."""


class PatchError(RepackError):
    """A field was requested but its anchor could not be found in the mission."""


class FormatError(RepackError):
    """A value in the configuration could not be parsed (e.g. a start time)."""
