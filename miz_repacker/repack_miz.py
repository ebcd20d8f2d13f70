"""Generate weather and time variants of a DCS mission.

For every preset in the configuration a copy of the input ``.miz`` is written
next to it, named ``<mission>_<preset>.miz``, with the start time set and the
weather randomized from one of the preset's weather profiles.

Usage:
    python -m miz_repacker.repack_miz Mission.miz
    python -m miz_repacker.repack_miz --dry-run
    python -m miz_repacker.repack_miz            # re-runs the most recent mission

Without a mission path, the last repacked mission recorded in
``repacker_recent.txt`` (next to the configuration file) is used.
"""
from __future__ import annotations

import argparse
import logging
import random
import sys
import zipfile
from pathlib import Path
from typing import Optional, Sequence

from miz_repacker import archive, clouds
from miz_repacker.cleanup import remove_required_modules
from miz_repacker.config import (
    DEFAULT_CONFIG_FILE,
    Config,
    choose_weather,
    load_config,
    roll_wind_flip,
)
from miz_repacker.errors import RepackError
from miz_repacker.time_of_day import modify_time
from miz_repacker.weather import modify_weather

LOGGER = logging.getLogger(__name__)

RECENT_FILE_NAME = "repacker_recent.txt"
DRY_RUN_PATH = "dry run"


def generate_preset(
    mission: str,
    config: Config,
    preset_name: str,
    rng: random.Random,
    dry_run: bool = False,
) -> str:
    """Apply one preset (time, then weather) to a copy of ``mission``."""
    preset = config.preset[preset_name]
    mission = modify_time(mission, preset, dry_run)

    profile_name = choose_weather(config, preset_name, rng)
    if profile_name is not None:
        LOGGER.info("-> Using weather preset:  %s", profile_name)
        weather = config.weather[profile_name]
        wind_flipped = roll_wind_flip(weather, preset, rng)
        mission = modify_weather(mission, profile_name, weather, rng, wind_flipped, dry_run)
    return mission


def repack_miz(
    path: str,
    config: Config,
    rng: random.Random,
    dry_run: bool = False,
) -> list[Path]:
    """Write one repacked ``.miz`` per preset. Returns the written paths.

    In dry-run mode nothing is read or written; every random draw and
    configuration check still runs against an empty mission.
    """
    LOGGER.info("Processing %s...", path)
    miz_path = Path(path)
    mission = "" if dry_run else archive.read_mission(miz_path)

    if config.misc.remove_required_modules:
        mission = remove_required_modules(mission, dry_run)

    written: list[Path] = []
    for name in config.preset:
        LOGGER.info("-> Generating miz preset: %s", name)
        out_mission = generate_preset(mission, config, name, rng, dry_run)

        if not dry_run:
            new_path = archive.splice_filename(miz_path, name)
            LOGGER.info("-> Writing new miz: %s", new_path)
            archive.write_miz(
                new_path, out_mission, miz_path, miz_path.parent / archive.REPACK_DIR
            )
            written.append(new_path)
        LOGGER.info("-> Done")

    LOGGER.info("All done!")
    return written


# ---------------------------------------------------------------------
# Most recently used mission
# ---------------------------------------------------------------------

def recent_file_path(config_path: Path) -> Path:
    return config_path.resolve().parent / RECENT_FILE_NAME


def read_recent(recent_path: Path) -> Optional[str]:
    if not recent_path.is_file():
        return None
    lines = recent_path.read_text(encoding="utf-8").splitlines()
    return lines[0].strip() if lines and lines[0].strip() else None


def write_recent(recent_path: Path, miz_path: Path) -> None:
    LOGGER.info('Writing current path to "most recently accessed" file...')
    recent_path.write_text(str(miz_path.resolve()), encoding="utf-8")


def resolve_miz_path(miz_path: Optional[str], recent_path: Path) -> str:
    if miz_path:
        return miz_path
    recent = read_recent(recent_path)
    if recent is None:
        raise RepackError(
            ".miz file not provided and no recent file was found\n"
            "Pass a .miz path on the command line to run it"
        )
    LOGGER.info("Trying most recently opened .miz: %s", recent)
    return recent


# ---------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate time and weather variants of a DCS mission"
    )
    parser.add_argument(
        "miz_path",
        nargs="?",
        help="Mission to repack (default: the most recently repacked mission)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path(DEFAULT_CONFIG_FILE),
        help=f"Configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "-b",
        "--batch",
        action="store_true",
        help="Exit immediately instead of waiting for a key press at the end",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Run without reading or writing any miz file",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the random generator, for reproducible output",
    )
    parser.add_argument(
        "--list-cloud-presets",
        action="store_true",
        help="List the DCS cloud presets known to pydcs and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def list_cloud_presets() -> None:
    for name, preset in clouds.known_cloud_presets().items():
        print(f"{name:<16} {preset.ui_name:<28} base {preset.min_base}-{preset.max_base} m")


def run(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except (RepackError, OSError) as exc:
        LOGGER.error("Failed to read configuration from %s: %s", args.config, exc)
        return 1

    rng = random.Random(args.seed)

    if args.dry_run:
        try:
            repack_miz(DRY_RUN_PATH, config, rng, dry_run=True)
        except RepackError as exc:
            LOGGER.error("Dry run failed: %s", exc)
            return 1
        return 0

    recent_path = recent_file_path(args.config)
    miz_path = ""
    try:
        miz_path = resolve_miz_path(args.miz_path, recent_path)
        repack_miz(miz_path, config, rng)
        write_recent(recent_path, Path(miz_path))
    except (RepackError, OSError, zipfile.BadZipFile, KeyError) as exc:
        LOGGER.error("Failed to process %s: %s", miz_path or "mission", exc)
        return 1
    return 0


def pause(batch: bool) -> None:
    """Keep the console window open when started by drag and drop."""
    if batch or not sys.stdout.isatty() or not sys.stdin.isatty():
        return
    try:
        input("Press Enter to continue...")
    except EOFError:
        pass


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    try:
        args = parse_args(argv)
    except SystemExit as exc:
        # --help exits with 0 and needs no pause
        if not exc.code:
            raise
        raw = sys.argv[1:] if argv is None else list(argv)
        pause("-b" in raw or "--batch" in raw)
        return exc.code if isinstance(exc.code, int) else 2
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if args.list_cloud_presets:
        list_cloud_presets()
        return 0

    code = run(args)
    pause(args.batch)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
